"""Service providers — how a resolved job class becomes an instance.

The runtime never calls a job constructor itself; it asks a
``ServiceProvider``. Embedding applications plug in their own container;
the runtime ships two implementations:

    DefaultServiceProvider     zero-argument constructor, no injection
    InjectingServiceProvider   pre-built instances injected into the
                               constructor by type annotation

A provider that also implements ``register_instance`` (the
``ConfigurableServiceProvider`` protocol) receives per-run objects such
as the :class:`~jobrunner.models.RuntimeContext` before activation.
Providers that implement ``scoped`` (``ScopedServiceProvider``) receive
them in a child scope that lives for one run only, so concurrent runs
never see each other's instances:

    shared provider   registered once, by the embedding application
      └─ run scope    RuntimeContext of one execution, dropped afterwards
"""

from __future__ import annotations

import inspect
import threading
import types
from typing import Any, Protocol, Union, get_args, get_origin, get_type_hints, runtime_checkable

from jobrunner.core.errors import DependencyError
from jobrunner.core.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class ServiceProvider(Protocol):
    """Builds instances of job classes."""

    def get_service(self, service_type: type) -> Any | None:
        """Return an instance of ``service_type`` (None if the provider cannot)."""
        ...


@runtime_checkable
class ConfigurableServiceProvider(ServiceProvider, Protocol):
    """A provider that accepts additional pre-built instances."""

    def register_instance(self, instance: Any) -> None:
        """Make ``instance`` available to subsequent ``get_service`` calls."""
        ...


@runtime_checkable
class ScopedServiceProvider(ServiceProvider, Protocol):
    """A provider that can layer per-run instances over its own."""

    def scoped(self, *instances: Any) -> ServiceProvider:
        """Return a child provider that also sees ``instances``; ``self`` is unchanged."""
        ...


class DefaultServiceProvider:
    """Activates job classes that have no constructor dependencies."""

    def get_service(self, service_type: type) -> Any:
        return service_type()


class InjectingServiceProvider:
    """Provider with constructor injection from registered instances.

    ``get_service(t)`` returns a registered instance of ``t`` when there is
    one; otherwise it constructs ``t``, passing registered instances to
    every constructor parameter whose annotation they satisfy. Parameters
    with defaults are left to their default when nothing matches.

    Example:
        >>> provider = InjectingServiceProvider()
        >>> provider.register_instance(RuntimeContext(user_id="jdoe"))
        >>>
        >>> class AuditJob:
        ...     def __init__(self, context: RuntimeContext):
        ...         self.context = context
        >>>
        >>> provider.get_service(AuditJob).context.user_id
        'jdoe'

        Per-run instances go into a child scope instead:

        >>> run_scope = provider.scoped(RuntimeContext(user_id="asmith"))
        >>> run_scope.get_service(AuditJob).context.user_id
        'asmith'
        >>> provider.get_service(AuditJob).context.user_id
        'jdoe'
    """

    def __init__(self, *instances: Any, parent: InjectingServiceProvider | None = None):
        self._instances: list[Any] = []
        self._parent = parent
        self._lock = threading.Lock()
        for instance in instances:
            self.register_instance(instance)

    def register_instance(self, instance: Any) -> None:
        with self._lock:
            self._instances.append(instance)

    def scoped(self, *instances: Any) -> InjectingServiceProvider:
        """Child provider seeing ``instances`` on top of everything registered here."""
        return InjectingServiceProvider(*instances, parent=self)

    @property
    def parent(self) -> InjectingServiceProvider | None:
        return self._parent

    @property
    def registered_instances(self) -> list[Any]:
        """Instances visible to this provider, oldest first (inherited ones before own)."""
        with self._lock:
            own = list(self._instances)
        if self._parent is None:
            return own
        return self._parent.registered_instances + own

    def get_service(self, service_type: type) -> Any:
        existing = self._find(service_type)
        if existing is not None:
            return existing

        return service_type(**self._constructor_arguments(service_type))

    def _find(self, service_type: type) -> Any | None:
        # latest registration wins
        for instance in reversed(self.registered_instances):
            if isinstance(instance, service_type):
                return instance
        return None

    def _constructor_arguments(self, service_type: type) -> dict[str, Any]:
        init = service_type.__init__
        if init is object.__init__:
            return {}

        try:
            hints = get_type_hints(init)
        except (NameError, TypeError) as e:
            raise DependencyError(
                f"Constructor annotations of '{service_type.__qualname__}' cannot be evaluated",
                cause=e,
            ) from e

        arguments: dict[str, Any] = {}
        for name, param in inspect.signature(service_type).parameters.items():
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue

            instance = None
            for candidate in _candidate_types(hints.get(name)):
                instance = self._find(candidate)
                if instance is not None:
                    break

            if instance is not None:
                arguments[name] = instance
            elif param.default is param.empty:
                raise DependencyError(
                    "Dependency <%s> of <%s> cannot be satisfied by the registered instances"
                    % (name, service_type.__qualname__)
                )

        logger.debug(
            "constructor_dependencies_resolved",
            service_type=service_type.__qualname__,
            injected=sorted(arguments),
        )
        return arguments


def _candidate_types(annotation: Any) -> list[type]:
    """Concrete classes an annotation accepts (unwrapping ``X | None``)."""
    if annotation is None:
        return []
    if get_origin(annotation) in (Union, types.UnionType):
        return [arg for arg in get_args(annotation) if isinstance(arg, type) and arg is not type(None)]
    return [annotation] if isinstance(annotation, type) else []


__all__ = [
    "ServiceProvider",
    "ConfigurableServiceProvider",
    "ScopedServiceProvider",
    "DefaultServiceProvider",
    "InjectingServiceProvider",
]
