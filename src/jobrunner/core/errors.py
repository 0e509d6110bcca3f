"""
Structured error types for the job runtime.

Every failure the runtime recognises is a typed subclass of
:class:`JobRunnerError` carrying a category, structured context and an
optional chained cause. The orchestrator decides how to treat a failure by
its class alone: activation and binding errors are *soft failures* (the run
ends unsuccessfully without surfacing an exception), everything else that
escapes orchestration is reported as an infrastructure exception.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                        JobRunnerError                            │
        │               (category, context, cause)                         │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ActivationError             BindingError        ParameterCast   │
        │  (ACTIVATION)                (BINDING)           Error           │
        │     │                           │                (VALIDATION)    │
        │  TypeResolutionError         NoCompatible                        │
        │     ├─ TypeNotFoundError     EntryPointError                     │
        │     └─ AmbiguousTypeError                                        │
        │  ConstructionError                                               │
        │  NullInstanceError                                               │
        │                                                                  │
        │  DependencyError (INJECTION)     ConfigurationError (CONFIG)     │
        └─────────────────────────────────────────────────────────────────┘

    Soft failures:   ActivationError, BindingError
    Propagating:     ParameterCastError (reported as infrastructure exception)

Examples:
    >>> error = TypeNotFoundError("acme.jobs.Missing")
    >>> error.category
    <ErrorCategory.RESOLUTION: 'RESOLUTION'>
    >>> error.to_dict()["job_type"]
    'acme.jobs.Missing'

    Chaining a construction failure:

    >>> try:
    ...     raise RuntimeError("database unavailable")
    ... except RuntimeError as e:
    ...     error = ConstructionError(ReportJob, cause=e)
    >>> error.cause
    RuntimeError('database unavailable')

Tags:
    error-handling, exception-hierarchy, error-context, jobrunner

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Categories follow the runtime's stages so log aggregation can group
    failures by where they happened rather than by exception class.

    Attributes:
        RESOLUTION: Job type identifier could not be mapped to a class
        ACTIVATION: Class found but no instance could be constructed
        INJECTION: Constructor dependencies could not be satisfied
        BINDING: No usable entry point on the job instance
        VALIDATION: A raw parameter could not be cast to its declared type
        CONFIG: Missing or invalid runtime settings
        INTERNAL: Bugs, unexpected state
    """

    RESOLUTION = "RESOLUTION"
    ACTIVATION = "ACTIVATION"
    INJECTION = "INJECTION"
    BINDING = "BINDING"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to a runtime error.

    Only set what is relevant; ``to_dict()`` drops unset fields so the
    result can be passed straight to a structured log call.

    Attributes:
        job_type: The job type identifier from the request
        run_id: Identifier of the execution the error belongs to
        user_id: User the execution runs on behalf of
        entry_point: Name of the entry point being bound
        metadata: Additional key-value pairs
    """

    job_type: str | None = None
    run_id: str | None = None
    user_id: str | None = None
    entry_point: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["job_type", "run_id", "user_id", "entry_point"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class JobRunnerError(Exception):
    """
    Base exception for all job runtime errors.

    Every instance carries:
    - **category:** ErrorCategory for classification
    - **context:** ErrorContext with structured metadata
    - **cause:** Optional underlying exception, also set as ``__cause__``

    Subclasses set ``default_category`` to give sensible defaults.

    Examples:
        >>> error = JobRunnerError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        Adding context fluently:

        >>> error = JobRunnerError("Run failed").with_context(
        ...     job_type="acme.jobs.Report", attempt=1
        ... )
        >>> error.context.metadata["attempt"]
        1
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> JobRunnerError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ConstructionError(job_class, cause=e).with_context(
                run_id=run_id,
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }

        context_dict = self.context.to_dict()
        if context_dict:
            result.update(context_dict)

        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"

        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# ACTIVATION ERRORS (soft failures)
# =============================================================================


class ActivationError(JobRunnerError):
    """The job could not be turned into an instance."""

    default_category = ErrorCategory.ACTIVATION


class TypeResolutionError(ActivationError):
    """The job type identifier did not resolve to exactly one class."""

    default_category = ErrorCategory.RESOLUTION

    def __init__(self, message: str, *, job_type: str, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.job_type = job_type
        self.context.job_type = job_type


class TypeNotFoundError(TypeResolutionError):
    """No strategy found a class for the identifier."""

    def __init__(self, job_type: str, **kwargs: Any):
        super().__init__(
            f"Unable to resolve the job type '{job_type}'",
            job_type=job_type,
            **kwargs,
        )


class AmbiguousTypeError(TypeResolutionError):
    """More than one concrete class shares the requested short name."""

    def __init__(self, job_type: str, candidates: list[str], **kwargs: Any):
        super().__init__(
            f"More than one matching type found for '{job_type}'. "
            f"Matches: {', '.join(candidates)}",
            job_type=job_type,
            **kwargs,
        )
        self.candidates = list(candidates)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["candidates"] = self.candidates
        return result


class ConstructionError(ActivationError):
    """The service provider raised while constructing the job."""

    def __init__(self, job_class: type, *, cause: BaseException, **kwargs: Any):
        super().__init__(
            f"Exception while activating type '{_qualified_name(job_class)}': {cause}",
            cause=cause,
            **kwargs,
        )
        self.job_class = job_class


class NullInstanceError(ActivationError):
    """The service provider returned no instance."""

    def __init__(self, job_class: type, **kwargs: Any):
        super().__init__(
            f"Unable to create an instance of the type '{_qualified_name(job_class)}'",
            **kwargs,
        )
        self.job_class = job_class


# =============================================================================
# INJECTION ERRORS
# =============================================================================


class DependencyError(JobRunnerError):
    """A constructor dependency could not be satisfied or is misannotated."""

    default_category = ErrorCategory.INJECTION


# =============================================================================
# BINDING ERRORS
# =============================================================================


class BindingError(JobRunnerError):
    """No callable could be produced for the job instance."""

    default_category = ErrorCategory.BINDING


class NoCompatibleEntryPointError(BindingError):
    """The job exposes no ``run`` entry point with a supported signature."""

    def __init__(self, job_class: type, reason: str, **kwargs: Any):
        super().__init__(
            f"No compatible entry point on '{_qualified_name(job_class)}': {reason}",
            **kwargs,
        )
        self.job_class = job_class
        self.reason = reason


class ParameterCastError(JobRunnerError):
    """
    A raw parameter could not be deserialized into its declared type.

    Not a :class:`BindingError`: it escapes the binding stage and is
    reported by the orchestrator as an infrastructure exception.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        parameter: str,
        target_type: Any,
        value: Any,
        *,
        cause: BaseException | None = None,
        **kwargs: Any,
    ):
        super().__init__(
            f"Unable to cast the value for parameter '{parameter}' to '{_type_name(target_type)}'",
            cause=cause,
            **kwargs,
        )
        self.parameter = parameter
        self.target_type = target_type
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["parameter"] = self.parameter
        result["target_type"] = _type_name(self.target_type)
        result["value"] = repr(self.value)
        return result


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(JobRunnerError):
    """Invalid runtime configuration."""

    default_category = ErrorCategory.CONFIG


def _qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def _type_name(target: Any) -> str:
    if isinstance(target, type):
        return _qualified_name(target)
    return repr(target)


__all__ = [
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
]
