"""Readiness state machine implementation"""
import logging
from typing import Dict, Iterable

from stackgate.core.domain.gate_report import ProbeOutcome
from stackgate.core.domain.states import ReadinessState
from stackgate.utils.errors import InvalidTransitionError

logger = logging.getLogger(__name__)


class ReadinessStateMachine:
    """
    Tracks readiness per dependency and for the gate as a whole.

    State transition rules:
    - Waiting -> Ready: when a probe for the dependency succeeds
    - Ready -> Waiting: not allowed within one startup invocation

    The overall state is Ready once every registered dependency is Ready.
    """

    def __init__(self, dependencies: Iterable[str]):
        """
        Initialize state machine.

        Args:
            dependencies: Names of the dependencies to track
        """
        self._states: Dict[str, ReadinessState] = {
            name: ReadinessState.WAITING for name in dependencies
        }
        self._attempts: Dict[str, int] = {name: 0 for name in self._states}
        self._failures: Dict[str, int] = {name: 0 for name in self._states}

    @property
    def state(self) -> ReadinessState:
        if all(s == ReadinessState.READY for s in self._states.values()):
            return ReadinessState.READY
        return ReadinessState.WAITING

    def state_of(self, dependency: str) -> ReadinessState:
        return self._states[dependency]

    def attempts(self, dependency: str) -> int:
        return self._attempts[dependency]

    def failures(self, dependency: str) -> int:
        return self._failures[dependency]

    def observe(self, outcome: ProbeOutcome) -> ReadinessState:
        """
        Record a probe attempt.

        Args:
            outcome: Result of the probe attempt

        Returns:
            State of the dependency after the attempt
        """
        name = outcome.dependency
        if name not in self._states:
            raise KeyError(f"Unknown dependency: {name}")

        self._attempts[name] += 1
        if outcome.ready:
            self.transition(name, ReadinessState.READY)
        else:
            self._failures[name] += 1
            if self._states[name] == ReadinessState.READY:
                raise InvalidTransitionError(
                    f"{name} reported not ready after reaching Ready"
                )
        return self._states[name]

    def transition(self, dependency: str, new_state: ReadinessState) -> None:
        current = self._states[dependency]
        if current == new_state:
            return
        if current == ReadinessState.READY:
            raise InvalidTransitionError(
                f"{dependency}: {current.value} -> {new_state.value} is not allowed"
            )
        self._states[dependency] = new_state
        logger.info(
            f"{dependency}: {current.value} -> {new_state.value}",
            extra={'dependency': dependency}
        )
