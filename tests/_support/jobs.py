"""
Sample jobs exercised by the runtime tests.

Jobs that need to report back append to ``RECORDED``; the ``recorded``
fixture in ``tests/conftest.py`` clears it around every test.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, overload

from pydantic import BaseModel, Field

from jobrunner.execution.identity import get_current_principal
from jobrunner.models import RuntimeContext

RECORDED: list[Any] = []


class JobBodyFailure(Exception):
    """Raised by ``FailingJob``."""


# =============================================================================
# Entry-point shapes
# =============================================================================


class NoOpJob:
    def run(self):
        pass


class TypedJob:
    def run(self, job_param: int, instance_param: str):
        RECORDED.append((job_param, instance_param))


class UntypedJob:
    def run(self, job_param, instance_param):
        RECORDED.append((job_param, instance_param))


class OptionalParameterJob:
    def run(self, job_param: int | None, instance_param: list[int] | None):
        RECORDED.append((job_param, instance_param))


class OverloadedJob:
    """Declares both shapes; the two-parameter one must win."""

    @overload
    def run(self) -> None: ...

    @overload
    def run(self, job_param: int, instance_param: int) -> None: ...

    def run(self, *args):
        RECORDED.append(("overloaded", args))


class ReportSettings(BaseModel):
    region: str
    max_rows: int = Field(default=10, alias="maxRows")


class ModelParameterJob:
    def run(self, settings: ReportSettings, instance_param: Any):
        RECORDED.append((settings, instance_param))


@dataclass
class Window:
    start: int
    end: int


class DataclassParameterJob:
    def run(self, windows: list[Window], limits: dict[str, int] | None):
        RECORDED.append((windows, limits))


class ReturningJob:
    def run(self):
        return 42


# =============================================================================
# Failure modes
# =============================================================================


class FailingJob:
    def run(self):
        raise JobBodyFailure("boom")


class ExplodingConstructorJob:
    def __init__(self):
        raise RuntimeError("cannot construct")

    def run(self):
        pass


class NoEntryPointJob:
    def execute(self):
        pass


class WrongArityJob:
    def run(self, only_one):
        pass


class KeywordOnlyJob:
    def run(self, *, job_param, instance_param):
        pass


# =============================================================================
# Identity and context
# =============================================================================


class PrincipalCapturingJob:
    def run(self):
        RECORDED.append((threading.current_thread().name, get_current_principal()))


class ContextAwareJob:
    def __init__(self, context: RuntimeContext):
        self.context = context

    def run(self):
        RECORDED.append(self.context)


class IdentityReportingJob:
    """Reports the injected context next to the principal the body runs under."""

    def __init__(self, context: RuntimeContext):
        self.context = context

    def run(self):
        RECORDED.append((self.context, get_current_principal().identity.name))


class UniquelyNamedSampleJob:
    def run(self):
        RECORDED.append("unique")


class Container:
    class NestedJob:
        def run(self):
            RECORDED.append("nested")
