"""Core primitives shared by every runtime component: errors, logging, settings."""

from jobrunner.core.errors import (
    ActivationError,
    AmbiguousTypeError,
    BindingError,
    ConfigurationError,
    ConstructionError,
    DependencyError,
    ErrorCategory,
    ErrorContext,
    JobRunnerError,
    NoCompatibleEntryPointError,
    NullInstanceError,
    ParameterCastError,
    TypeNotFoundError,
    TypeResolutionError,
)
from jobrunner.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from jobrunner.core.settings import RuntimeSettings, clear_settings_cache, get_settings

__all__ = [
    # errors
    "ErrorCategory",
    "ErrorContext",
    "JobRunnerError",
    "ActivationError",
    "TypeResolutionError",
    "TypeNotFoundError",
    "AmbiguousTypeError",
    "ConstructionError",
    "NullInstanceError",
    "DependencyError",
    "BindingError",
    "NoCompatibleEntryPointError",
    "ParameterCastError",
    "ConfigurationError",
    # logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
    # settings
    "RuntimeSettings",
    "get_settings",
    "clear_settings_cache",
]
