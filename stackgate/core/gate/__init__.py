"""Startup gate"""
from stackgate.core.gate.retry_policy import RetryPolicy, wait_until_ready
from stackgate.core.gate.readiness_state_machine import ReadinessStateMachine
from stackgate.core.gate.startup_gate import StartupGate

__all__ = [
    "RetryPolicy",
    "wait_until_ready",
    "ReadinessStateMachine",
    "StartupGate",
]
