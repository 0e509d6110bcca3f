"""Job Registry — explicit name → job class lookup.

Manifesto:
The resolver can find a job class from almost any identifier, but the
broad fallbacks scan whatever happens to be imported. Registering job
classes explicitly at startup makes resolution deterministic: the
registry is consulted before any other strategy, and
``register_module`` is the deliberate replacement for the process-wide
short-name scan.

ARCHITECTURE
────────────
::

    JobRegistry
      ├── .register(name, job_class)   ─ store class under a key
      ├── .register_module(module)     ─ register every job class in a module
      ├── .get(name)                   ─ lookup by key (None if absent)
      ├── .has(name)                   ─ existence check
      ├── .list_jobs()                 ─ all registered keys
      └── .unregister(name) / .clear()

    register_job(name=None)    ─ class decorator (global registry)
    get_default_registry()     ─ module-level singleton
    reset_default_registry()   ─ clear for testing

BEST PRACTICES
──────────────
- Use ``@register_job`` in job modules; pass an explicit ``JobRegistry``
  in tests.
- Call ``reset_default_registry()`` in test fixtures.

Related modules:
    resolver.py  — JobTypeResolver consults the registry first
    activator.py — JobActivator builds instances of resolved classes

Tags:
    jobrunner, activation, registry, job-registry, lookup

Doc-Types:
    api-reference
"""

from __future__ import annotations

import inspect
import threading
from collections.abc import Callable
from types import ModuleType

from jobrunner.core.logging import get_logger

logger = get_logger(__name__)

ENTRY_POINT_NAME = "run"


class JobRegistry:
    """Injectable job class registry.

    Example:
        >>> registry = JobRegistry()
        >>>
        >>> @register_job("daily-report", registry=registry)
        ... class DailyReport:
        ...     def run(self):
        ...         ...
        >>>
        >>> registry.get("daily-report")
        <class 'DailyReport'>
    """

    def __init__(self):
        self._jobs: dict[str, type] = {}
        self._lock = threading.Lock()

    def register(self, name: str, job_class: type) -> None:
        """Register a job class under ``name``.

        Raises:
            TypeError: If ``job_class`` is not a class
            ValueError: If ``name`` is already taken by a different class
        """
        if not inspect.isclass(job_class):
            raise TypeError(f"Only classes can be registered as jobs, got {job_class!r}")

        with self._lock:
            existing = self._jobs.get(name)
            if existing is not None and existing is not job_class:
                raise ValueError(
                    f"Job '{name}' is already registered to "
                    f"{existing.__module__}.{existing.__qualname__}"
                )
            self._jobs[name] = job_class

        logger.debug(
            "job_registered",
            name=name,
            cls=f"{job_class.__module__}.{job_class.__qualname__}",
        )

    def register_module(self, module: ModuleType) -> list[str]:
        """Register every public concrete job class defined in ``module``.

        A job class is a non-abstract class exposing a callable ``run``.
        Classes are registered under their short name.

        Returns:
            The names registered, in definition order
        """
        registered = []
        for attr_name, value in list(vars(module).items()):
            if attr_name.startswith("_") or not inspect.isclass(value):
                continue
            if value.__module__ != module.__name__ or inspect.isabstract(value):
                continue
            if not callable(getattr(value, ENTRY_POINT_NAME, None)):
                continue
            self.register(value.__name__, value)
            registered.append(value.__name__)
        return registered

    def get(self, name: str) -> type | None:
        """Get a job class, or None if nothing is registered under ``name``."""
        with self._lock:
            return self._jobs.get(name)

    def has(self, name: str) -> bool:
        """Check if a job class is registered."""
        with self._lock:
            return name in self._jobs

    def list_jobs(self) -> list[str]:
        """List all registered names, sorted."""
        with self._lock:
            return sorted(self._jobs)

    def unregister(self, name: str) -> bool:
        """Unregister a job.

        Returns:
            True if the job was removed, False if not found
        """
        with self._lock:
            return self._jobs.pop(name, None) is not None

    def clear(self) -> None:
        """Clear all jobs (for testing)."""
        with self._lock:
            self._jobs.clear()

    def __len__(self) -> int:
        return len(self._jobs)


# === GLOBAL DEFAULT REGISTRY ===

_default_registry: JobRegistry | None = None


def get_default_registry() -> JobRegistry:
    """Get the global default registry.

    Creates it lazily on first access.
    """
    global _default_registry
    if _default_registry is None:
        _default_registry = JobRegistry()
    return _default_registry


def reset_default_registry() -> None:
    """Reset the global registry (for testing)."""
    global _default_registry
    _default_registry = None


# === DECORATOR API ===


def register_job(
    name: str | None = None,
    registry: JobRegistry | None = None,
) -> Callable[[type], type]:
    """Class decorator registering a job.

    Args:
        name: Registry key (defaults to the class's short name)
        registry: Optional registry (uses global if None)

    Example:
        >>> @register_job("cleanup")
        ... class CleanupJob:
        ...     def run(self, job_param, instance_param):
        ...         ...
    """

    def decorator(cls: type) -> type:
        target = registry if registry is not None else get_default_registry()
        target.register(name or cls.__name__, cls)
        return cls

    return decorator


__all__ = [
    "ENTRY_POINT_NAME",
    "JobRegistry",
    "get_default_registry",
    "reset_default_registry",
    "register_job",
]
