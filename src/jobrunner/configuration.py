"""Construction-time configuration of a :class:`~jobrunner.runtime.JobRuntime`."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import ModuleType

from jobrunner.activation.providers import ServiceProvider
from jobrunner.activation.registry import JobRegistry, get_default_registry
from jobrunner.core.settings import RuntimeSettings, get_settings


@dataclass
class RuntimeConfiguration:
    """What the runtime needs to know before its first execution.

    Attributes:
        job_type_search_modules: Modules probed, in order, for a job type
            before the broad fallbacks. Empty skips straight to them.
        service_provider: Custom provider for job instances. Implement
            ``register_instance`` as well to receive the per-run
            ``RuntimeContext``. Defaults to ``DefaultServiceProvider``.
        registry: Explicit job registry consulted before any other strategy.
        host_module: Module whose imports are scanned when the search
            modules miss.
    """

    job_type_search_modules: list[ModuleType | str] = field(default_factory=list)
    service_provider: ServiceProvider | None = None
    registry: JobRegistry | None = None
    host_module: ModuleType | str = "__main__"

    @classmethod
    def from_settings(
        cls,
        settings: RuntimeSettings | None = None,
        **overrides,
    ) -> RuntimeConfiguration:
        """Build a configuration from ``RuntimeSettings`` (env / .env driven).

        Jobs registered with ``@register_job`` are visible through the
        default registry unless ``registry`` is overridden.
        """
        settings = settings or get_settings()
        values = {
            "registry": get_default_registry(),
            "job_type_search_modules": list(settings.job_type_search_modules),
            "host_module": settings.host_module,
        }
        values.update(overrides)
        return cls(**values)


__all__ = ["RuntimeConfiguration"]
