"""Job activation — identifier in, job instance out.

``JobActivator`` is the seam between resolution and construction. It
normalises every way activation can go wrong into an
:class:`~jobrunner.core.errors.ActivationError` subclass so the
orchestrator can treat all of them as one soft failure.
"""

from __future__ import annotations

from typing import Any

from jobrunner.activation.providers import ConfigurableServiceProvider, ScopedServiceProvider, ServiceProvider
from jobrunner.activation.resolver import JobTypeResolver
from jobrunner.core.errors import ConstructionError, NullInstanceError, TypeResolutionError
from jobrunner.core.logging import get_logger

logger = get_logger(__name__)


class JobActivator:
    """Resolve a job type identifier and construct an instance of it."""

    def __init__(self, resolver: JobTypeResolver, service_provider: ServiceProvider):
        self._resolver = resolver
        self._service_provider = service_provider

    @property
    def service_provider(self) -> ServiceProvider:
        return self._service_provider

    def create_instance(self, job_type: str) -> Any:
        """Build an instance of the class ``job_type`` resolves to.

        Raises:
            TypeNotFoundError: The identifier did not resolve
            AmbiguousTypeError: The identifier matched several classes
            ConstructionError: The provider raised while constructing
            NullInstanceError: The provider returned None
        """
        logger.debug("resolving_job_type", job_type=job_type)

        try:
            job_class = self._resolver.resolve(job_type)
        except TypeResolutionError as e:
            logger.error("job_type_unresolved", job_type=job_type, error=str(e))
            raise

        logger.debug(
            "activating_job",
            job_type=job_type,
            cls=f"{job_class.__module__}.{job_class.__qualname__}",
        )

        try:
            instance = self._service_provider.get_service(job_class)
        except Exception as e:
            logger.error("job_activation_failed", job_type=job_type, exc_info=e)
            raise ConstructionError(job_class, cause=e).with_context(job_type=job_type) from e

        if instance is None:
            logger.error("job_activation_returned_nothing", job_type=job_type)
            raise NullInstanceError(job_class).with_context(job_type=job_type)

        return instance

    def for_run(self, *instances: Any) -> JobActivator:
        """Activator to use for one run, with ``instances`` available for injection.

        A ``ScopedServiceProvider`` gets the instances in a child scope that
        is discarded with the returned activator, so nothing accumulates on
        the shared provider and concurrent runs stay isolated. Otherwise the
        instances go through :meth:`add_dependencies` and ``self`` is returned.
        """
        provider = self._service_provider
        if not isinstance(provider, ScopedServiceProvider):
            self.add_dependencies(*instances)
            return self

        try:
            run_scope = provider.scoped(*instances)
        except Exception as e:
            logger.warning(
                "dependency_scope_failed",
                provider=type(provider).__qualname__,
                exc_info=e,
            )
            return self
        return JobActivator(self._resolver, run_scope)

    def add_dependencies(self, *instances: Any) -> None:
        """Offer ``instances`` to the provider for constructor injection.

        Only providers implementing ``register_instance`` take part.
        Registration failures are logged and never fail the run.
        """
        if not isinstance(self._service_provider, ConfigurableServiceProvider):
            logger.debug(
                "provider_not_configurable",
                provider=type(self._service_provider).__qualname__,
            )
            return

        try:
            for instance in instances:
                self._service_provider.register_instance(instance)
        except Exception as e:
            logger.warning(
                "dependency_registration_failed",
                provider=type(self._service_provider).__qualname__,
                exc_info=e,
            )


__all__ = ["JobActivator"]
