"""Readiness and verification states"""
from enum import Enum


class ReadinessState(str, Enum):
    """Readiness state enumeration"""
    WAITING = "Waiting"
    READY = "Ready"


class GateResult(str, Enum):
    """Verification outcome enumeration"""
    PASSED = "Passed"
    FAILED = "Failed"

    @classmethod
    def from_exit_code(cls, exit_code: int) -> "GateResult":
        return cls.PASSED if exit_code == 0 else cls.FAILED
