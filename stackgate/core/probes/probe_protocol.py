"""Readiness probe protocol definition"""
from typing import Protocol

from stackgate.core.domain.gate_report import ProbeOutcome


class ReadinessProbe(Protocol):
    """Protocol for dependency readiness checks"""

    name: str

    def check(self) -> ProbeOutcome:
        """
        Attempt one connectivity check against the dependency.

        Returns:
            ProbeOutcome with ready=True if the dependency accepts requests
        """
        ...
