"""Job type resolution — textual identifier → job class via layered fallback.

The upstream scheduler only knows a job by the string it was configured
with. Depending on how the job was set up that string is a registry key,
a fully qualified ``package.module.Class`` path, a differently-cased
qualified name, or just the bare class name. The resolver tries
progressively broader strategies until one produces a class.

ARCHITECTURE
────────────
::

    resolve(identifier)
      0. explicit JobRegistry key                  (exact)
      1. qualified reference  pkg.mod.Class         (import + getattr)
                              pkg.mod:Outer.Inner
      2. configured search modules, in order       (case-insensitive,
                                                    first hit wins)
      3. modules referenced by the host module     (case-insensitive,
                                                    last hit wins)
      4. every loaded module, short class name     (case-sensitive,
                                                    exactly one match)

Resolution is stateless per call and nothing is cached: a job module
imported between two calls is visible to the second. Strategy 4 walks a
snapshot of ``sys.modules`` and only reads module namespaces, so
concurrent resolutions are safe.

Related modules:
    registry.py  — JobRegistry consulted by strategy 0
    activator.py — JobActivator turns the class into an instance
"""

from __future__ import annotations

import importlib
import inspect
import sys
from collections.abc import Iterable, Sequence
from types import ModuleType

from jobrunner.activation.registry import JobRegistry
from jobrunner.core.errors import AmbiguousTypeError, ConfigurationError, TypeNotFoundError
from jobrunner.core.logging import get_logger

logger = get_logger(__name__)


class JobTypeResolver:
    """Resolve job type identifiers to classes.

    Args:
        search_modules: Ordered modules (objects or dotted names) probed
            before the broad scans. Names are imported once, here.
        registry: Optional explicit registry consulted first.
        host_module: Module whose imports form the "referenced modules"
            set of strategy 3. Looked up on every call.

    Raises:
        ConfigurationError: If a search module name cannot be imported
    """

    def __init__(
        self,
        search_modules: Sequence[ModuleType | str] | None = None,
        *,
        registry: JobRegistry | None = None,
        host_module: ModuleType | str = "__main__",
    ):
        self._search_modules = [_load_search_module(m) for m in search_modules or ()]
        self._registry = registry
        self._host_module = host_module

    @property
    def search_modules(self) -> list[ModuleType]:
        return list(self._search_modules)

    def resolve(self, identifier: str) -> type:
        """Resolve ``identifier`` to a class.

        Raises:
            TypeNotFoundError: If no strategy finds a class
            AmbiguousTypeError: If only the short-name scan matches, more than once
        """
        if not identifier or not identifier.strip():
            raise TypeNotFoundError(identifier or "")

        job_class = self._from_registry(identifier)

        if job_class is None:
            logger.debug("resolving_qualified_name", job_type=identifier)
            job_class = self._from_qualified_name(identifier)

        if job_class is None and self._search_modules:
            job_class = self._from_search_modules(identifier)

        if job_class is None:
            job_class = self._from_referenced_modules(identifier)

        if job_class is None:
            job_class = self._from_loaded_classes(identifier)

        logger.debug(
            "job_type_resolved",
            job_type=identifier,
            resolved=f"{job_class.__module__}.{job_class.__qualname__}",
        )
        return job_class

    # ------------------------------------------------------------------ #
    # Strategies
    # ------------------------------------------------------------------ #

    def _from_registry(self, identifier: str) -> type | None:
        if self._registry is None:
            return None
        return self._registry.get(identifier)

    def _from_qualified_name(self, identifier: str) -> type | None:
        if ":" in identifier:
            module_name, _, attr_path = identifier.partition(":")
            module = _try_import(module_name)
            return _walk(module, attr_path.split(".")) if module is not None else None

        parts = identifier.split(".")
        for split in range(len(parts) - 1, 0, -1):
            module = _try_import(".".join(parts[:split]))
            if module is None:
                continue
            found = _walk(module, parts[split:])
            if found is not None:
                return found
        return None

    def _from_search_modules(self, identifier: str) -> type | None:
        for module in self._search_modules:
            logger.debug("probing_search_module", job_type=identifier, module=module.__name__)
            found = _probe(module, identifier)
            if found is not None:
                return found
        return None

    def _from_referenced_modules(self, identifier: str) -> type | None:
        host = _host(self._host_module)
        if host is None:
            return None

        referenced = list(_referenced_modules(host))
        logger.debug(
            "probing_referenced_modules",
            job_type=identifier,
            host=host.__name__,
            modules=[m.__name__ for m in referenced],
        )

        # every referenced module is probed; a later hit replaces an earlier one
        found = None
        for module in referenced:
            match = _probe(module, identifier)
            if match is not None:
                found = match
        return found

    def _from_loaded_classes(self, identifier: str) -> type:
        logger.debug("scanning_loaded_classes", job_type=identifier)

        matches: dict[int, type] = {}
        for module in list(sys.modules.values()):
            for value in _namespace(module):
                if (
                    inspect.isclass(value)
                    and value.__name__ == identifier
                    and _is_concrete(value)
                ):
                    matches[id(value)] = value

        if len(matches) == 1:
            (found,) = matches.values()
            logger.debug("matching_class_found", job_type=identifier, cls=_qualified_name(found))
            return found

        if matches:
            candidates = sorted(_qualified_name(cls) for cls in matches.values())
            logger.warning("ambiguous_job_type", job_type=identifier, candidates=candidates)
            raise AmbiguousTypeError(identifier, candidates)

        logger.warning("job_type_not_found", job_type=identifier)
        raise TypeNotFoundError(identifier)


# ---------------------------------------------------------------------- #
# Helpers
# ---------------------------------------------------------------------- #


def _load_search_module(module: ModuleType | str) -> ModuleType:
    if isinstance(module, ModuleType):
        return module
    try:
        return importlib.import_module(module)
    except ImportError as e:
        raise ConfigurationError(f"Job type search module '{module}' cannot be imported", cause=e) from e


def _try_import(name: str) -> ModuleType | None:
    if not name:
        return None
    try:
        return importlib.import_module(name)
    except (ImportError, TypeError, ValueError):
        # relative (".x") and malformed names raise TypeError / ValueError
        return None


def _walk(obj: object, attr_path: Iterable[str]) -> type | None:
    for attr in attr_path:
        obj = getattr(obj, attr, None)
        if obj is None:
            return None
    return obj if inspect.isclass(obj) else None


def _probe(module: ModuleType, identifier: str) -> type | None:
    """Case-insensitive match of ``identifier`` against ``<module>.<ClassName>``."""
    wanted = identifier.casefold()
    prefix = module.__name__
    for attr_name, value in list(vars(module).items()):
        if inspect.isclass(value) and f"{prefix}.{attr_name}".casefold() == wanted:
            return value
    return None


def _host(host_module: ModuleType | str) -> ModuleType | None:
    if isinstance(host_module, ModuleType):
        return host_module
    return sys.modules.get(host_module)


def _referenced_modules(host: ModuleType) -> Iterable[ModuleType]:
    """Modules bound in ``host``'s namespace plus the defining modules of its imported names."""
    seen: set[str] = {host.__name__}
    for value in list(vars(host).values()):
        if isinstance(value, ModuleType):
            module = value
        elif inspect.isclass(value) or inspect.isfunction(value):
            module_name = getattr(value, "__module__", None)
            if not module_name or module_name in seen:
                continue
            module = sys.modules.get(module_name) or _try_import(module_name)
            if module is None:
                continue
        else:
            continue

        if module.__name__ in seen:
            continue
        seen.add(module.__name__)
        yield module


def _namespace(module: object) -> list[object]:
    try:
        return list(vars(module).values())
    except TypeError:
        # entries in sys.modules are not required to be real modules
        return []


def _is_concrete(cls: type) -> bool:
    return not inspect.isabstract(cls) and not getattr(cls, "_is_protocol", False)


def _qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


__all__ = ["JobTypeResolver"]
