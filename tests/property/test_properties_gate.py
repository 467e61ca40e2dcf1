"""Property-based tests for the startup gate"""
import subprocess

import pytest
from hypothesis import given, settings, strategies as st

from stackgate.core.domain.gate_report import ProbeOutcome
from stackgate.core.domain.states import GateResult, ReadinessState
from stackgate.core.gate.retry_policy import RetryPolicy
from stackgate.core.gate.startup_gate import StartupGate
from stackgate.core.steps.command_step import CommandStep
from stackgate.utils.errors import ReadinessTimeoutError


class ScriptedProbe:
    """Probe that fails a fixed number of times, then reports ready"""

    def __init__(self, name="postgres", failures=0, events=None, raise_errors=False):
        self.name = name
        self.failures = failures
        self.events = events if events is not None else []
        self.raise_errors = raise_errors
        self.calls = 0

    def check(self):
        self.calls += 1
        self.events.append(f"probe:{self.name}")
        if self.calls <= self.failures:
            if self.raise_errors:
                raise ConnectionRefusedError("connection refused")
            return ProbeOutcome(dependency=self.name, ready=False, detail="connection refused")
        return ProbeOutcome(dependency=self.name, ready=True, detail="accepting connections")


class RecordingStep:
    """Verification or workload stand-in returning a fixed exit code"""

    def __init__(self, label, exit_code=0, events=None):
        self.label = label
        self.exit_code = exit_code
        self.events = events if events is not None else []
        self.calls = 0

    def __call__(self):
        self.calls += 1
        self.events.append(self.label)
        return self.exit_code


def make_gate(failures=0, verify_code=0, policy=None, with_verifier=True):
    events = []
    sleeps = []
    probe = ScriptedProbe(failures=failures, events=events)
    verifier = RecordingStep("verify", verify_code, events) if with_verifier else None
    workload = RecordingStep("workload", 0, events)
    gate = StartupGate(
        probes=[probe],
        workload=workload,
        verifier=verifier,
        policy=policy or RetryPolicy(interval_seconds=2.0),
        sleep=sleeps.append,
    )
    return gate, probe, verifier, workload, events, sleeps


def test_unreachable_three_times_then_ready():
    """Three failed probes, one successful probe, then verification, then the workload"""
    gate, probe, verifier, workload, events, sleeps = make_gate(failures=3)

    report = gate.run()

    assert probe.calls == 4
    assert events == ["probe:postgres"] * 4 + ["verify", "workload"]
    assert sleeps == [2.0, 2.0, 2.0]
    assert report.probe_attempts == {"postgres": 4}
    assert report.readiness == ReadinessState.READY
    assert gate.state_machine.failures("postgres") == 3


def test_verification_failure_blocks_workload():
    """A failing verification step never launches the workload and exits non-zero"""
    gate, probe, verifier, workload, events, sleeps = make_gate(verify_code=1)

    report = gate.run()

    assert verifier.calls == 1
    assert workload.calls == 0
    assert not report.workload_started
    assert report.verification == GateResult.FAILED
    assert report.exit_code != 0


def test_verification_failure_exit_code_is_propagated():
    gate, probe, verifier, workload, events, sleeps = make_gate(verify_code=5)

    report = gate.run()

    assert report.verification_exit_code == 5
    assert report.exit_code == 5


def test_verification_success_launches_workload_once_with_arguments():
    """A passing verification launches the workload exactly once with its argv"""
    launched = []

    def runner(argv, **kwargs):
        launched.append(list(argv))
        return subprocess.CompletedProcess(argv, 0)

    gate = StartupGate(
        probes=[ScriptedProbe(failures=1)],
        workload=CommandStep("workload", "python init.py --mode live", runner=runner),
        verifier=CommandStep("verification", "pytest test_docker_compose.py", runner=runner),
        policy=RetryPolicy(interval_seconds=0.5),
        sleep=lambda seconds: None,
    )

    report = gate.run()

    assert launched == [
        ["pytest", "test_docker_compose.py"],
        ["python", "init.py", "--mode", "live"],
    ]
    assert report.verification == GateResult.PASSED
    assert report.workload_exit_code == 0
    assert report.exit_code == 0


def test_workload_exit_code_is_reported():
    events = []
    gate = StartupGate(
        probes=[ScriptedProbe(events=events)],
        workload=RecordingStep("workload", 42, events),
        sleep=lambda seconds: None,
    )

    report = gate.run()

    assert report.exit_code == 42
    assert report.verification is None


def test_workload_not_started_while_waiting():
    """No probe attempt observes a started workload"""
    workload = RecordingStep("workload")
    seen_calls = []

    class WatchingProbe(ScriptedProbe):
        def check(self):
            seen_calls.append(workload.calls)
            return super().check()

    gate = StartupGate(
        probes=[WatchingProbe(failures=5)],
        workload=workload,
        sleep=lambda seconds: None,
    )
    gate.run()

    assert seen_calls == [0] * 6
    assert workload.calls == 1


def test_probe_errors_are_retried():
    sleeps = []
    probe = ScriptedProbe(failures=2, raise_errors=True)
    workload = RecordingStep("workload")
    gate = StartupGate(probes=[probe], workload=workload, sleep=sleeps.append)

    report = gate.run()

    assert probe.calls == 3
    assert len(sleeps) == 2
    assert workload.calls == 1
    assert report.probe_attempts == {"postgres": 3}


def test_unexpected_probe_error_propagates():
    class BrokenProbe:
        name = "postgres"

        def check(self):
            raise RuntimeError("probe bug")

    workload = RecordingStep("workload")
    gate = StartupGate(probes=[BrokenProbe()], workload=workload, sleep=lambda s: None)

    with pytest.raises(RuntimeError):
        gate.run()
    assert workload.calls == 0


def test_dependencies_are_waited_for_in_order():
    events = []
    postgres = ScriptedProbe("postgres", failures=2, events=events)
    broker = ScriptedProbe("broker", failures=1, events=events)
    gate = StartupGate(
        probes=[postgres, broker],
        workload=RecordingStep("workload", events=events),
        sleep=lambda seconds: None,
    )

    report = gate.run()

    assert events == (
        ["probe:postgres"] * 3 + ["probe:broker"] * 2 + ["workload"]
    )
    assert report.probe_attempts == {"postgres": 3, "broker": 2}


def test_bounded_policy_exhausted_raises():
    gate, probe, verifier, workload, events, sleeps = make_gate(
        failures=10, policy=RetryPolicy(interval_seconds=1.0, max_attempts=3)
    )

    with pytest.raises(ReadinessTimeoutError) as exc_info:
        gate.run()

    assert exc_info.value.dependency == "postgres"
    assert exc_info.value.attempts == 3
    assert "connection refused" in str(exc_info.value)
    assert probe.calls == 3
    assert sleeps == [1.0, 1.0]
    assert verifier.calls == 0
    assert workload.calls == 0
    assert gate.state == ReadinessState.WAITING


def test_gate_requires_probes():
    with pytest.raises(ValueError):
        StartupGate(probes=[], workload=RecordingStep("workload"))


def test_gate_rejects_duplicate_probe_names():
    with pytest.raises(ValueError):
        StartupGate(
            probes=[ScriptedProbe("postgres"), ScriptedProbe("postgres")],
            workload=RecordingStep("workload"),
        )


# Property: interval between attempts is the configured duration
@given(
    failures=st.integers(min_value=0, max_value=25),
    interval=st.floats(min_value=0.01, max_value=60.0, allow_nan=False, allow_infinity=False),
)
@settings(max_examples=100)
def test_sleeps_once_per_failed_probe_for_configured_interval(failures, interval):
    """
    For any number of failed probes before readiness, the gate sleeps exactly
    once per failure for the configured interval, then launches the workload once.
    """
    gate, probe, verifier, workload, events, sleeps = make_gate(
        failures=failures, policy=RetryPolicy(interval_seconds=interval)
    )

    report = gate.run()

    assert probe.calls == failures + 1
    assert sleeps == [interval] * failures
    assert all(s > 0 for s in sleeps)
    assert verifier.calls == 1
    assert workload.calls == 1
    assert events.index("verify") == failures + 1
    assert report.exit_code == 0


# Property: verification outcome decides whether the workload runs
@given(verify_code=st.integers(min_value=0, max_value=255))
@settings(max_examples=50)
def test_workload_runs_iff_verification_passes(verify_code):
    gate, probe, verifier, workload, events, sleeps = make_gate(verify_code=verify_code)

    report = gate.run()

    if verify_code == 0:
        assert workload.calls == 1
        assert report.verification == GateResult.PASSED
    else:
        assert workload.calls == 0
        assert report.verification == GateResult.FAILED
        assert report.exit_code == verify_code


# Property: a bounded policy never starts the workload once exhausted
@given(
    max_attempts=st.integers(min_value=1, max_value=10),
    extra_failures=st.integers(min_value=0, max_value=10),
)
@settings(max_examples=50)
def test_bounded_policy_never_starts_workload_when_exhausted(max_attempts, extra_failures):
    gate, probe, verifier, workload, events, sleeps = make_gate(
        failures=max_attempts + extra_failures,
        policy=RetryPolicy(interval_seconds=0.5, max_attempts=max_attempts),
    )

    with pytest.raises(ReadinessTimeoutError):
        gate.run()

    assert probe.calls == max_attempts
    assert len(sleeps) == max_attempts - 1
    assert workload.calls == 0
