"""Startup gate: dependency-ready -> verify -> launch"""
import logging
import time
from typing import Callable, Optional, Sequence

from stackgate.core.domain.gate_report import GateReport
from stackgate.core.domain.states import GateResult, ReadinessState
from stackgate.core.gate.readiness_state_machine import ReadinessStateMachine
from stackgate.core.gate.retry_policy import RetryPolicy, wait_until_ready
from stackgate.core.probes.probe_protocol import ReadinessProbe

logger = logging.getLogger(__name__)


class StartupGate:
    """
    Sequential startup gate.

    Steps:
    1. Poll each dependency in order until it reports ready
    2. Run the verification step, if one is configured
    3. Launch the workload exactly once, only if verification passed

    The verification step and the workload are callables returning an exit
    code; CommandStep provides both for external commands.
    """

    def __init__(
        self,
        probes: Sequence[ReadinessProbe],
        workload: Callable[[], int],
        verifier: Optional[Callable[[], int]] = None,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize gate.

        Args:
            probes: Readiness probes, polled in order
            workload: Main workload; returns its exit code
            verifier: Verification step; returns 0 on success
            policy: Retry policy for the probes
            sleep: Sleep function used between probe attempts
        """
        if not probes:
            raise ValueError("StartupGate needs at least one readiness probe")
        names = [probe.name for probe in probes]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate probe names: {names}")

        self.probes = list(probes)
        self.workload = workload
        self.verifier = verifier
        self.policy = policy or RetryPolicy()
        self.sleep = sleep
        self.state_machine = ReadinessStateMachine(names)

    @property
    def state(self) -> ReadinessState:
        return self.state_machine.state

    def wait_for_dependencies(self, report: GateReport) -> None:
        """
        Block until every dependency is ready.

        Raises:
            ReadinessTimeoutError: if the retry policy is bounded and exhausted
        """
        for probe in self.probes:
            logger.info(
                f"Waiting for {probe.name}",
                extra={'dependency': probe.name, 'component': 'StartupGate'}
            )
            report.probe_attempts[probe.name] = wait_until_ready(
                probe,
                self.policy,
                sleep=self.sleep,
                on_attempt=self.state_machine.observe,
            )
        report.readiness = self.state_machine.state

    def verify(self, report: GateReport) -> GateResult:
        """Run the verification step and record its outcome"""
        if self.verifier is None:
            logger.info("No verification step configured, skipping")
            return GateResult.PASSED

        exit_code = self.verifier()
        result = GateResult.from_exit_code(exit_code)
        report.verification_exit_code = exit_code
        report.verification = result
        return result

    def run(self) -> GateReport:
        """
        Run the full gate.

        Returns:
            GateReport; exit_code is the verification's exit code if it
            failed, otherwise the workload's exit code
        """
        report = GateReport()

        self.wait_for_dependencies(report)

        if self.verify(report) == GateResult.FAILED:
            logger.error(
                f"Verification failed with exit code {report.verification_exit_code}, "
                f"not starting the workload",
                extra={'component': 'StartupGate'}
            )
            report.exit_code = report.verification_exit_code
            return report

        if self.verifier is not None:
            logger.info("Tests passed, running the app")

        report.workload_exit_code = self.workload()
        report.exit_code = report.workload_exit_code
        level = logging.INFO if report.exit_code == 0 else logging.WARNING
        logger.log(
            level,
            f"Workload exited with code {report.exit_code}",
            extra={'component': 'StartupGate'}
        )
        return report
