"""
Unified error handling for StackLayer programs.

Every failure raised by the program builder derives from StackLayerError,
carries a human-readable message plus a details dict, and maps onto a
process exit code for scripts that embed a program run.

Exit Codes:
- 0: Success
- 10: Configuration error (settings, app config files)
- 11: Provider error (resource constructor failed)
- 12: Validation error (config shape violations)
- 13: Program error (module graph misuse, output misuse, app lifecycle)
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for program runs."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    PROVIDER_ERROR = 11
    VALIDATION_ERROR = 12
    PROGRAM_ERROR = 13
    UNKNOWN_ERROR = 127


class StackLayerError(Exception):
    """Base exception for StackLayer errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(StackLayerError):
    """Raised for settings and app configuration file errors."""

    exit_code = ExitCode.CONFIG_ERROR


class ProviderError(StackLayerError):
    """Raised when an external resource provider fails."""

    exit_code = ExitCode.PROVIDER_ERROR


class ValidationError(StackLayerError):
    """Raised for validation failures."""

    exit_code = ExitCode.VALIDATION_ERROR


class ProgramError(StackLayerError):
    """Raised when a program misuses the builder API."""

    exit_code = ExitCode.PROGRAM_ERROR


class AlreadyResolvedError(ProgramError):
    """Raised when an Output is resolved (or rejected) a second time."""


class UnresolvedOutputError(ProgramError):
    """Raised when a pending Output is read synchronously."""


class ModuleAlreadyRegisteredError(ProgramError):
    """Raised when the same module definition is added twice to one app."""


class ModuleNotFoundInAppError(ProgramError):
    """Raised when a module definition was never added to the app."""


class ModuleRunError(ProgramError):
    """Raised when a module factory fails while being added."""


class ProgramStateError(ProgramError):
    """Raised when an app is run concurrently or more than once."""


class RunNotActiveError(ProgramError):
    """Raised when run-scoped context is read outside of a run."""


class ConfigShapeError(ValidationError):
    """Raised when a resource config field outside the declared shape is used."""


class ResourceConstructionError(ProviderError):
    """Raised when a resource constructor fails during drain."""

    show_traceback = True

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        *,
        original: BaseException | None = None,
    ):
        super().__init__(message, details)
        self.original = original


class HandlerExecutionError(ProgramError):
    """Raised when a queued handler fails during drain."""

    show_traceback = True

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        *,
        original: BaseException | None = None,
    ):
        super().__init__(message, details)
        self.original = original


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for script entry points that run a program.

    Catches exceptions and converts them to appropriate exit codes with
    consistent error reporting.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Usage:
        @main_with_error_handling()
        def main() -> int:
            asyncio.run(app.run_program({}))
            return 0

    Exit codes:
        - StackLayerError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except StackLayerError as e:
                if log_errors:
                    logger.error(
                        "program_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=e.exit_code,
                        **e.details,
                    )
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("program_interrupted")
                return 130  # Standard exit code for SIGINT
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=ExitCode.UNKNOWN_ERROR,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: StackLayerError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
