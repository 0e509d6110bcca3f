"""Execution data model.

Defines the values that flow through one execution:
- ExecutionRequest: what the upstream scheduler asks us to run
- UserContext: who the run is on behalf of
- RuntimeContext: the context object offered to job constructors
- ExecutionResult: how the run ended
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ExecutionRequest:
    """A single job execution request, immutable for the whole run.

    Example:
        >>> request = ExecutionRequest(
        ...     job_type="acme.jobs.DailyReport",
        ...     job_parameter='{"region": "emea"}',
        ...     user_id="jdoe",
        ... )
    """

    job_type: str
    """Identifier of the job's implementing class."""

    job_parameter: Any = None
    """Opaque, JSON-compatible parameter shared by all runs of the job."""

    instance_parameter: Any = None
    """Opaque, JSON-compatible parameter specific to this run."""

    user_id: str | None = None
    user_display_name: str | None = None

    def user_context(self) -> UserContext:
        return UserContext(user_id=self.user_id, user_display_name=self.user_display_name)


@dataclass(frozen=True)
class UserContext:
    """The user an execution runs on behalf of."""

    user_id: str | None = None
    user_display_name: str | None = None

    @property
    def has_user(self) -> bool:
        """True when a non-blank user id is present."""
        return bool(self.user_id and self.user_id.strip())


@dataclass(frozen=True)
class RuntimeContext:
    """Context registered with a configurable service provider before activation.

    Job classes receive it by declaring a constructor parameter annotated
    ``RuntimeContext``; this is the explicit alternative to reading the
    ambient principal.
    """

    user_id: str | None = None
    user_display_name: str | None = None
    run_id: str | None = None

    @classmethod
    def from_user_context(cls, user_context: UserContext, run_id: str | None = None) -> RuntimeContext:
        return cls(
            user_id=user_context.user_id,
            user_display_name=user_context.user_display_name,
            run_id=run_id,
        )


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one execution."""

    succeeded: bool
    exception: BaseException | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "succeeded": self.succeeded,
            "exception": f"{type(self.exception).__name__}: {self.exception}" if self.exception else None,
        }


__all__ = ["ExecutionRequest", "UserContext", "RuntimeContext", "ExecutionResult"]
