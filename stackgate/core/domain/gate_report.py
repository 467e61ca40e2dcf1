"""Probe and gate run records"""
from dataclasses import dataclass, field
from typing import Dict, Optional

from stackgate.core.domain.states import GateResult, ReadinessState


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of a single readiness probe attempt"""
    dependency: str
    ready: bool
    detail: str = ""


@dataclass
class GateReport:
    """Summary of one startup gate invocation"""
    readiness: ReadinessState = ReadinessState.WAITING
    probe_attempts: Dict[str, int] = field(default_factory=dict)
    verification: Optional[GateResult] = None
    verification_exit_code: Optional[int] = None
    workload_exit_code: Optional[int] = None
    exit_code: int = 0

    @property
    def workload_started(self) -> bool:
        return self.workload_exit_code is not None
