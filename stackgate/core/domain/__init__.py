"""Domain types"""
from stackgate.core.domain.states import ReadinessState, GateResult
from stackgate.core.domain.gate_report import ProbeOutcome, GateReport

__all__ = [
    "ReadinessState",
    "GateResult",
    "ProbeOutcome",
    "GateReport",
]
