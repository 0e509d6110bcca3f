"""
Shared pytest fixtures and configuration for jobrunner tests.

This module provides:
- Registry, settings and logging cleanup for test isolation
- The ``recorded`` list sample jobs report into
- Factories for synthetic job modules and for runtimes with an event log

Usage:
    Fixtures are auto-discovered by pytest; request them as arguments.

    def test_something(make_runtime):
        runtime, events = make_runtime()
        ...
"""

import os
import sys
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Generator

import pytest
import structlog

# Ensure jobrunner package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from jobrunner.activation.registry import reset_default_registry
from jobrunner.configuration import RuntimeConfiguration
from jobrunner.core.settings import clear_settings_cache
from jobrunner.events import LifecycleEvent
from jobrunner.runtime import JobRuntime
from tests._support import jobs


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every test without an explicit marker as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Cleanup Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_default_registry() -> Generator[None, None, None]:
    """Reset the global job registry before and after each test."""
    reset_default_registry()
    yield
    reset_default_registry()


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Drop cached settings and any ``JOBRUNNER_*`` variables from the environment."""
    for name in list(os.environ):
        if name.startswith("JOBRUNNER_"):
            monkeypatch.delenv(name)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any ``configure_logging`` call made by a test."""
    yield
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def recorded() -> Generator[list[Any], None, None]:
    """What the sample jobs reported during the test."""
    jobs.RECORDED.clear()
    yield jobs.RECORDED
    jobs.RECORDED.clear()


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_module(monkeypatch: pytest.MonkeyPatch) -> Callable[..., ModuleType]:
    """
    Factory for synthetic modules placed in ``sys.modules`` for the test.

    Classes passed as keyword arguments are created fresh, with
    ``__module__`` pointing at the new module:

        mod = make_module("Acme.Jobs", NoOp={"run": lambda self: None})
    """

    def _make_module(name: str, **classes: dict[str, Any]) -> ModuleType:
        module = ModuleType(name)
        for class_name, namespace in classes.items():
            cls = type(class_name, (), {"__module__": name, **namespace})
            setattr(module, class_name, cls)
        monkeypatch.setitem(sys.modules, name, module)
        return module

    return _make_module


@pytest.fixture
def acme_jobs(make_module) -> ModuleType:
    """``Acme.Jobs`` with a do-nothing ``NoOp`` job, reachable as ``Acme.Jobs.NoOp``."""
    acme = make_module("Acme")
    module = make_module("Acme.Jobs", NoOp={"run": lambda self: None})
    acme.Jobs = module
    return module


@pytest.fixture
def make_runtime() -> Callable[..., tuple[JobRuntime, list[LifecycleEvent]]]:
    """
    Factory for a runtime plus the list of every event it emits.

        runtime, events = make_runtime(job_type_search_modules=["acme.jobs"])
    """

    def _make_runtime(**configuration: Any) -> tuple[JobRuntime, list[LifecycleEvent]]:
        runtime = JobRuntime(RuntimeConfiguration(**configuration))
        events: list[LifecycleEvent] = []
        runtime.subscribe("*", events.append)
        return runtime, events

    return _make_runtime
