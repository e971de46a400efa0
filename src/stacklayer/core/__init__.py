"""Core modules for StackLayer - centralized error definitions."""

from stacklayer.core.errors import (
    AlreadyResolvedError,
    ConfigShapeError,
    ConfigurationError,
    ExitCode,
    HandlerExecutionError,
    ModuleAlreadyRegisteredError,
    ModuleNotFoundInAppError,
    ModuleRunError,
    ProgramError,
    ProgramStateError,
    ProviderError,
    ResourceConstructionError,
    RunNotActiveError,
    StackLayerError,
    UnresolvedOutputError,
    ValidationError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "StackLayerError",
    "ConfigurationError",
    "ProviderError",
    "ValidationError",
    "ProgramError",
    # Outputs
    "AlreadyResolvedError",
    "UnresolvedOutputError",
    # Modules
    "ModuleAlreadyRegisteredError",
    "ModuleNotFoundInAppError",
    "ModuleRunError",
    # Lifecycle
    "ProgramStateError",
    "RunNotActiveError",
    # Drain
    "ConfigShapeError",
    "ResourceConstructionError",
    "HandlerExecutionError",
    "main_with_error_handling",
    "format_error_message",
]
