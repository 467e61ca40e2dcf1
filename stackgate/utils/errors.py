"""Exception types raised across stackgate"""


class StackGateError(Exception):
    """Base class for stackgate errors"""


class ConfigurationError(StackGateError, ValueError):
    """Configuration is missing or invalid"""


class ReadinessTimeoutError(StackGateError):
    """A dependency did not become ready within the retry policy's bounds"""

    def __init__(self, dependency: str, attempts: int, detail: str = ""):
        self.dependency = dependency
        self.attempts = attempts
        self.detail = detail
        message = f"{dependency} not ready after {attempts} attempt(s)"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class InvalidTransitionError(StackGateError):
    """A readiness state transition that is not allowed"""


class ExportError(StackGateError):
    """Data export could not be completed"""
