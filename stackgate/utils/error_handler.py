"""Centralized error handling"""
import logging

from stackgate.utils.errors import (
    ConfigurationError,
    ExportError,
    ReadinessTimeoutError,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_READINESS_TIMEOUT = 3
EXIT_COMMAND_NOT_EXECUTABLE = 126
EXIT_COMMAND_NOT_FOUND = 127


class ErrorHandler:
    """
    Centralized error handling for the command-line entry points.

    Handles different types of errors:
    - Startup errors (fatal): logged with stack trace, mapped to an exit code
    - Runtime errors (non-fatal): logged, execution continues
    """

    EXIT_CODES = (
        (ConfigurationError, EXIT_CONFIG_ERROR),
        (ReadinessTimeoutError, EXIT_READINESS_TIMEOUT),
        (FileNotFoundError, EXIT_COMMAND_NOT_FOUND),
        (PermissionError, EXIT_COMMAND_NOT_EXECUTABLE),
        (ExportError, EXIT_FAILURE),
    )

    def exit_code_for(self, error: BaseException) -> int:
        for error_type, code in self.EXIT_CODES:
            if isinstance(error, error_type):
                return code
        return EXIT_FAILURE

    def handle_startup_error(self, component: str, error: BaseException) -> int:
        """
        Handle fatal startup errors.

        Args:
            component: Component where error occurred
            error: The exception

        Returns:
            Process exit code for the error
        """
        exit_code = self.exit_code_for(error)

        if isinstance(error, ConfigurationError):
            # The message already lists every problem
            logger.critical(
                f"FATAL STARTUP ERROR in {component}: {error}",
                extra={'component': component}
            )
        else:
            logger.critical(
                f"FATAL STARTUP ERROR in {component}: {error}",
                extra={'component': component},
                exc_info=error
            )
        return exit_code

    def handle_runtime_error(self, component: str, error: BaseException) -> None:
        """
        Handle non-fatal runtime errors.

        Args:
            component: Component where error occurred
            error: The exception
        """
        logger.error(
            f"RUNTIME ERROR in {component}: {error}",
            extra={'component': component},
            exc_info=error
        )
