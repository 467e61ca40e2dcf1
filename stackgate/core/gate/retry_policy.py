"""Readiness retry policy built on tenacity"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    stop_never,
    wait_fixed,
)

from stackgate.core.domain.gate_report import ProbeOutcome
from stackgate.core.probes.probe_protocol import ReadinessProbe
from stackgate.utils.errors import ReadinessTimeoutError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Fixed-backoff retry policy for readiness probes.

    The default is unbounded: probe every interval until the dependency
    answers. max_attempts and timeout_seconds bound the wait; whichever is
    hit first ends it.
    """
    interval_seconds: float = 2.0
    max_attempts: Optional[int] = None
    timeout_seconds: Optional[float] = None

    def __post_init__(self):
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be greater than 0")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be greater than 0")

    @classmethod
    def from_config(cls, gate_config) -> "RetryPolicy":
        return cls(
            interval_seconds=gate_config.poll_interval_seconds,
            max_attempts=gate_config.max_attempts,
            timeout_seconds=gate_config.timeout_seconds,
        )

    @property
    def is_bounded(self) -> bool:
        return self.max_attempts is not None or self.timeout_seconds is not None

    def stop_condition(self):
        """Build the tenacity stop strategy for this policy"""
        stop = stop_never
        if self.max_attempts is not None:
            stop = stop_after_attempt(self.max_attempts)
        if self.timeout_seconds is not None:
            by_delay = stop_after_delay(self.timeout_seconds)
            stop = by_delay if stop is stop_never else stop | by_delay
        return stop


def _not_ready(outcome: ProbeOutcome) -> bool:
    return not outcome.ready


def _outcome_detail(retry_state: RetryCallState) -> str:
    outcome = retry_state.outcome
    if outcome is None:
        return ""
    if outcome.failed:
        return str(outcome.exception())
    return outcome.result().detail


def _log_waiting(dependency: str) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        logger.info(
            f"Waiting for {dependency} (attempt {retry_state.attempt_number}): "
            f"{_outcome_detail(retry_state)}",
            extra={'dependency': dependency, 'attempt': retry_state.attempt_number}
        )
    return before_sleep


def wait_until_ready(
    probe: ReadinessProbe,
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
    on_attempt: Optional[Callable[[ProbeOutcome], None]] = None,
) -> int:
    """
    Block until the probe reports ready.

    Probe failures, whether a not-ready outcome or an OSError raised by the
    probe, are retried after sleeping the policy interval.

    Args:
        probe: Readiness probe to poll
        policy: Retry policy
        sleep: Sleep function, injectable for tests
        on_attempt: Called with every outcome, ready or not

    Returns:
        Number of probe attempts made, including the successful one

    Raises:
        ReadinessTimeoutError: if the policy is bounded and exhausted
    """
    attempts = 0

    def attempt() -> ProbeOutcome:
        nonlocal attempts
        attempts += 1
        try:
            outcome = probe.check()
        except OSError as e:
            if on_attempt:
                on_attempt(ProbeOutcome(dependency=probe.name, ready=False, detail=str(e)))
            raise
        if on_attempt:
            on_attempt(outcome)
        return outcome

    retrying = Retrying(
        stop=policy.stop_condition(),
        wait=wait_fixed(policy.interval_seconds),
        retry=retry_if_result(_not_ready) | retry_if_exception_type(OSError),
        before_sleep=_log_waiting(probe.name),
        sleep=sleep,
    )

    try:
        retrying(attempt)
    except RetryError as e:
        last = e.last_attempt
        detail = str(last.exception()) if last.failed else last.result().detail
        raise ReadinessTimeoutError(probe.name, attempts, detail) from e

    logger.info(
        f"{probe.name} is ready after {attempts} attempt(s)",
        extra={'dependency': probe.name, 'attempt': attempts}
    )
    return attempts
