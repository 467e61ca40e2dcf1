"""Property-based tests for the readiness retry policy"""
import time

import pytest
from hypothesis import given, settings, strategies as st
from tenacity import stop_never

from stackgate.config.settings import GateConfig
from stackgate.core.domain.gate_report import ProbeOutcome
from stackgate.core.gate.retry_policy import RetryPolicy, wait_until_ready
from stackgate.utils.errors import ReadinessTimeoutError


class FlakyProbe:
    name = "postgres"

    def __init__(self, failures):
        self.failures = failures
        self.calls = 0

    def check(self):
        self.calls += 1
        return ProbeOutcome(self.name, self.calls > self.failures, f"attempt {self.calls}")


def test_default_policy_is_unbounded_with_two_second_interval():
    policy = RetryPolicy()

    assert policy.interval_seconds == 2.0
    assert not policy.is_bounded
    assert policy.stop_condition() is stop_never


@pytest.mark.parametrize("kwargs", [
    {"interval_seconds": 0},
    {"interval_seconds": -1},
    {"max_attempts": 0},
    {"timeout_seconds": 0},
])
def test_invalid_policy_rejected(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


def test_policy_from_gate_config(monkeypatch):
    monkeypatch.setenv("GATE__POLL_INTERVAL_SECONDS", "0.5")
    monkeypatch.setenv("GATE__MAX_ATTEMPTS", "7")
    monkeypatch.delenv("GATE__TIMEOUT_SECONDS", raising=False)

    policy = RetryPolicy.from_config(GateConfig())

    assert policy == RetryPolicy(interval_seconds=0.5, max_attempts=7)
    assert policy.is_bounded


def test_wait_until_ready_reports_attempts_and_outcomes():
    probe = FlakyProbe(failures=2)
    outcomes = []
    sleeps = []

    attempts = wait_until_ready(
        probe, RetryPolicy(interval_seconds=3.0), sleep=sleeps.append, on_attempt=outcomes.append
    )

    assert attempts == 3
    assert sleeps == [3.0, 3.0]
    assert [o.ready for o in outcomes] == [False, False, True]


def test_timeout_bound_stops_waiting():
    probe = FlakyProbe(failures=1000)

    with pytest.raises(ReadinessTimeoutError) as exc_info:
        wait_until_ready(
            probe,
            RetryPolicy(interval_seconds=5.0, timeout_seconds=0.001),
            sleep=lambda seconds: time.sleep(0.01),
        )

    assert exc_info.value.attempts == probe.calls
    assert probe.calls <= 2


def test_ready_on_first_attempt_never_sleeps():
    sleeps = []

    assert wait_until_ready(FlakyProbe(failures=0), RetryPolicy(), sleep=sleeps.append) == 1
    assert sleeps == []


# Property: attempt bound is respected exactly
@given(
    max_attempts=st.integers(min_value=1, max_value=20),
    failures=st.integers(min_value=0, max_value=30),
)
@settings(max_examples=100)
def test_attempt_bound_respected(max_attempts, failures):
    probe = FlakyProbe(failures=failures)
    sleeps = []
    policy = RetryPolicy(interval_seconds=1.0, max_attempts=max_attempts)

    if failures < max_attempts:
        assert wait_until_ready(probe, policy, sleep=sleeps.append) == failures + 1
        assert len(sleeps) == failures
    else:
        with pytest.raises(ReadinessTimeoutError) as exc_info:
            wait_until_ready(probe, policy, sleep=sleeps.append)
        assert exc_info.value.attempts == max_attempts
        assert probe.calls == max_attempts
        assert len(sleeps) == max_attempts - 1
