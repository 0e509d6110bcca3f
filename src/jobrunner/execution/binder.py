"""Entry-point binding — find ``run`` on a job instance and prepare the call.

A job exposes its work through a public ``run`` method in one of two
shapes::

    def run(self): ...                                  # zero-parameter
    def run(self, job_param: T1, instance_param: T2):   # two-parameter

Signatures declared with ``typing.overload`` count as well. The
two-parameter shape always wins when present; its parameters receive, in
declaration order, the request's job parameter and instance parameter.

Raw parameters arrive as JSON-compatible values or JSON text. Each one is
adapted to the annotation of the parameter it feeds:

    None                     → None (no cast)
    Any / object / missing   → raw value, unchanged
    text target              → JSON string literal unquoted, other text
                               kept as is
    anything else            → JSON text decoded, mapping keys matched
                               to declared field names case-insensitively,
                               then validated with a pydantic ``TypeAdapter``

A value that cannot be adapted raises ``ParameterCastError``.
"""

from __future__ import annotations

import dataclasses
import functools
import inspect
import types
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Annotated, Any, Union, get_args, get_origin, get_overloads, get_type_hints, is_typeddict

from pydantic import BaseModel, TypeAdapter
from pydantic_core import from_json

from jobrunner.activation.registry import ENTRY_POINT_NAME
from jobrunner.core.errors import NoCompatibleEntryPointError, ParameterCastError
from jobrunner.core.logging import get_logger

logger = get_logger(__name__)

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
_PASS_THROUGH = (Any, object, inspect.Parameter.empty)


@dataclass(frozen=True)
class EntryPoint:
    """The chosen ``run`` signature of a job instance."""

    method: Callable[..., Any]
    parameters: tuple[inspect.Parameter, ...]
    annotations: dict[str, Any]

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def annotation_of(self, parameter: inspect.Parameter) -> Any:
        annotation = self.annotations.get(parameter.name, parameter.annotation)
        # unresolvable string annotations are treated as undeclared
        return inspect.Parameter.empty if isinstance(annotation, str) else annotation

    def describe(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        return f"{ENTRY_POINT_NAME}({params})"


class EntryPointBinder:
    """Turn a job instance and raw parameters into a zero-argument callable."""

    def __init__(self, entry_point_name: str = ENTRY_POINT_NAME):
        self._entry_point_name = entry_point_name

    @property
    def entry_point_name(self) -> str:
        return self._entry_point_name

    def bind(self, instance: Any, job_parameter: Any, instance_parameter: Any) -> Callable[[], Any]:
        """Select the entry point and adapt the parameters for it.

        Nothing runs until the returned callable is invoked.

        Raises:
            NoCompatibleEntryPointError: No zero- or two-parameter ``run``
            ParameterCastError: A parameter cannot be adapted to its annotation
        """
        entry_point = self.resolve_entry_point(instance)

        if entry_point.arity == 0:
            logger.debug("using_parameterless_entry_point", entry_point=entry_point.describe())
            return functools.partial(entry_point.method)

        logger.debug(
            "using_parameterized_entry_point",
            entry_point=entry_point.describe(),
            job_parameter=_preview(job_parameter),
            instance_parameter=_preview(instance_parameter),
        )
        first, second = entry_point.parameters
        job_value = self.adapt(job_parameter, entry_point.annotation_of(first), first.name, "job")
        instance_value = self.adapt(
            instance_parameter, entry_point.annotation_of(second), second.name, "instance"
        )
        return functools.partial(entry_point.method, job_value, instance_value)

    def resolve_entry_point(self, instance: Any) -> EntryPoint:
        """Pick the signature ``bind`` will use, preferring two parameters over zero."""
        job_class = type(instance)
        name = self._entry_point_name
        method = getattr(instance, name, None)

        if name.startswith("_") or method is None or not callable(method):
            logger.error("entry_point_missing", cls=job_class.__qualname__, entry_point=name)
            raise NoCompatibleEntryPointError(job_class, f"there is no public {name}() method")

        candidates = list(_candidate_signatures(method))
        for arity in (2, 0):
            for function, parameters in candidates:
                if len(parameters) == arity and all(p.kind in _POSITIONAL for p in parameters):
                    return EntryPoint(method, tuple(parameters), _annotations(function))

        logger.error(
            "entry_point_incompatible",
            cls=job_class.__qualname__,
            signatures=[f"{name}({', '.join(str(p) for p in params)})" for _, params in candidates],
        )
        raise NoCompatibleEntryPointError(
            job_class, f"none of the {name}() signatures take zero or two parameters"
        )

    def adapt(self, value: Any, annotation: Any, parameter_name: str, source: str) -> Any:
        """Adapt one raw ``value`` to ``annotation``.

        Args:
            value: Raw request value (JSON-compatible or JSON text)
            annotation: Declared type of the receiving parameter
            parameter_name: Name of the receiving parameter (for errors)
            source: Which request field the value came from ("job" / "instance")
        """
        logger.info(
            "casting_parameter",
            source=source,
            parameter=parameter_name,
            target_type=_type_name(annotation),
        )

        if value is None:
            return None

        if annotation in _PASS_THROUGH:
            return value

        try:
            payload = value
            if isinstance(value, (str, bytes, bytearray)):
                if not _accepts_text(annotation):
                    try:
                        payload = from_json(value)
                    except ValueError:
                        payload = value
                else:
                    payload = _unquote(value)
            payload = _match_field_names(payload, annotation)
            return TypeAdapter(annotation).validate_python(payload)
        except (ValueError, TypeError) as e:
            logger.error(
                "parameter_cast_failed",
                source=source,
                parameter=parameter_name,
                target_type=_type_name(annotation),
                error=str(e),
            )
            raise ParameterCastError(parameter_name, annotation, value, cause=e) from e


# ---------------------------------------------------------------------- #
# Signature helpers
# ---------------------------------------------------------------------- #


def _candidate_signatures(method: Callable[..., Any]):
    """Yield ``(function, parameters)`` for every declared overload, then the implementation."""
    bound = inspect.ismethod(method)
    function = getattr(method, "__func__", method)

    if inspect.isfunction(function):
        for overload in get_overloads(function):
            parameters = list(inspect.signature(overload).parameters.values())
            yield overload, parameters[1:] if bound else parameters

    try:
        signature = inspect.signature(method)
    except (TypeError, ValueError):
        return
    yield function, list(signature.parameters.values())


def _annotations(function: Callable[..., Any]) -> dict[str, Any]:
    try:
        return get_type_hints(function)
    except (NameError, TypeError) as e:
        logger.debug("entry_point_annotations_unresolved", error=str(e))
        return {}


# ---------------------------------------------------------------------- #
# Adaptation helpers
# ---------------------------------------------------------------------- #


def _unwrap(annotation: Any) -> Any:
    """Strip ``Annotated`` and ``X | None`` down to ``X`` where unambiguous."""
    origin = get_origin(annotation)
    if origin is Annotated:
        return _unwrap(get_args(annotation)[0])
    if origin in (Union, types.UnionType):
        members = [a for a in get_args(annotation) if a is not type(None)]
        if len(members) == 1:
            return _unwrap(members[0])
    return annotation


def _unquote(value: str | bytes | bytearray) -> Any:
    """Decode a JSON string literal (``'"text"'`` → ``'text'``); anything else is returned as is."""
    text = value.strip()
    quote = '"' if isinstance(text, str) else b'"'
    if len(text) < 2 or not (text.startswith(quote) and text.endswith(quote)):
        return value
    try:
        decoded = from_json(text)
    except ValueError:
        return value
    return decoded if isinstance(decoded, str) else value


def _accepts_text(annotation: Any) -> bool:
    origin = get_origin(annotation)
    if origin is Annotated:
        return _accepts_text(get_args(annotation)[0])
    if origin in (Union, types.UnionType):
        return any(_accepts_text(a) for a in get_args(annotation))
    return isinstance(annotation, type) and issubclass(annotation, str)


def _declared_fields(annotation: Any) -> dict[str, Any]:
    target = _unwrap(annotation)
    if not isinstance(target, type) or get_origin(target) is not None:
        return {}

    if issubclass(target, BaseModel):
        return {
            (info.alias if isinstance(info.alias, str) else name): info.annotation
            for name, info in target.model_fields.items()
        }

    if dataclasses.is_dataclass(target):
        try:
            hints = get_type_hints(target)
        except (NameError, TypeError):
            hints = {}
        return {f.name: hints.get(f.name, f.type) for f in dataclasses.fields(target)}

    if is_typeddict(target):
        return get_type_hints(target)

    return {}


def _item_type(annotation: Any) -> Any:
    target = _unwrap(annotation)
    if get_origin(target) in (list, set, frozenset, Sequence):
        args = get_args(target)
        return args[0] if args else None
    return None


def _match_field_names(payload: Any, annotation: Any) -> Any:
    """Rename mapping keys to the declared field names, ignoring case, recursively."""
    if isinstance(payload, list):
        item_type = _item_type(annotation)
        if item_type is None:
            return payload
        return [_match_field_names(item, item_type) for item in payload]

    if not isinstance(payload, dict):
        return payload

    fields = _declared_fields(annotation)
    if not fields:
        return payload

    by_folded_name = {name.casefold(): name for name in fields}
    matched = {}
    for key, value in payload.items():
        name = by_folded_name.get(key.casefold(), key) if isinstance(key, str) else key
        matched[name] = _match_field_names(value, fields.get(name))
    return matched


def _type_name(annotation: Any) -> str:
    if annotation is inspect.Parameter.empty:
        return "<unannotated>"
    if isinstance(annotation, type):
        return annotation.__qualname__
    return repr(annotation)


def _preview(value: Any) -> str:
    return "<null>" if value is None else str(value)


__all__ = ["EntryPoint", "EntryPointBinder"]
