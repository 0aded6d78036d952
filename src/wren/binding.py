"""Handler argument binding.

Handler signatures are inspected once, when the route is registered,
and turned into a ``HandlerDescriptor``: one ``ParamSpec`` per parameter
with every type question already answered. Binding at request time is a
walk over those specs with dictionary lookups, no introspection.

Resolution priority for each handler parameter (fixed):

1. ``Request`` (or a supertype of it) annotation: the request
2. Known factory types (``ResponseFactory``): from the container
3. Annotation registered in the container: the registered instance
4. Route parameter with the same name: coerced to the annotation
5. Reserved names ``body`` and ``query``: decoded body / query mapping
6. Declared default
7. ``dict`` annotation: the full route parameter mapping

Typed dependencies come first so a route parameter can never shadow
them. Anything left over raises ``UnresolvableParameter``.
"""

import inspect
import types
import typing
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from wren._internal.multimap import MultiValueMapping
from wren.container import Container
from wren.errors import ConfigurationError, UnresolvableParameter
from wren.http.factory import ResponseFactory
from wren.http.request import Request
from wren.routing.params import coerce_param, is_coercible

# Types always resolved through the container, never by name
FACTORY_TYPES: tuple[type, ...] = (ResponseFactory,)

_EMPTY = inspect.Parameter.empty
_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


@dataclass(frozen=True, slots=True)
class ParamSpec:
    """Pre-classified handler parameter."""

    name: str
    annotation: Any = None
    default: Any = _EMPTY
    keyword_only: bool = False
    binds_request: bool = False
    factory_type: type | None = None
    registry_key: Any = None
    coerce_as: Any = None
    wants_param_map: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not _EMPTY


@dataclass(frozen=True, slots=True)
class HandlerDescriptor:
    """Everything the binder needs to know about a handler's signature."""

    qualname: str
    params: tuple[ParamSpec, ...] = ()


@dataclass(slots=True)
class BoundArguments:
    args: list[Any] = field(default_factory=list)
    kwargs: dict[str, Any] = field(default_factory=dict)

    def call(self, handler: Callable[..., Any]) -> Any:
        return handler(*self.args, **self.kwargs)


def describe(handler: Callable[..., Any]) -> HandlerDescriptor:
    """Inspect *handler* once and classify each of its parameters.

    Raises ``ConfigurationError`` if the signature cannot be read or an
    annotation cannot be evaluated.
    """
    qualname = getattr(handler, "__qualname__", None) or type(handler).__qualname__
    try:
        sig = inspect.signature(handler, eval_str=True)
    except (NameError, TypeError, ValueError) as exc:
        msg = f"Unable to inspect handler {qualname}: {exc}"
        raise ConfigurationError(msg) from exc

    specs: list[ParamSpec] = []
    for name, param in sig.parameters.items():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        annotation = None if param.annotation is _EMPTY else param.annotation
        target = _unwrap_optional(annotation)
        specs.append(
            ParamSpec(
                name=name,
                annotation=annotation,
                default=param.default,
                keyword_only=param.kind not in _POSITIONAL,
                binds_request=_is_request_type(target),
                factory_type=_factory_type(target),
                registry_key=target if _is_registry_key(target) else None,
                coerce_as=_coercion_target(target),
                wants_param_map=target is dict or typing.get_origin(target) is dict,
            )
        )
    return HandlerDescriptor(qualname=qualname, params=tuple(specs))


class ParameterBinder:
    """Resolve a handler's arguments from request, route params and registry.

    Usage::

        binder = ParameterBinder(container)
        bound = binder.bind(route.descriptor, request, match.params)
        result = bound.call(route.handler)
    """

    __slots__ = ("container",)

    def __init__(self, container: Container) -> None:
        self.container = container

    def bind(
        self,
        descriptor: HandlerDescriptor,
        request: Request,
        params: Mapping[str, str],
    ) -> BoundArguments:
        bound = BoundArguments()
        for spec in descriptor.params:
            value = self.resolve(spec, request, params)
            if spec.keyword_only:
                bound.kwargs[spec.name] = value
            else:
                bound.args.append(value)
        return bound

    def resolve(self, spec: ParamSpec, request: Request, params: Mapping[str, str]) -> Any:
        """Value for a single parameter, following the fixed priority order."""
        if spec.binds_request:
            return request

        if spec.factory_type is not None:
            return self.container.get(spec.factory_type)

        if spec.registry_key is not None and self.container.has(spec.registry_key):
            return self.container.get(spec.registry_key)

        if spec.name in params:
            raw = params[spec.name]
            try:
                return coerce_param(raw, spec.coerce_as)
            except ValueError:
                msg = f"Route parameter {spec.name!r} value {raw!r} is not a valid {spec.coerce_as.__name__}"
                raise UnresolvableParameter(spec.name, msg) from None

        if spec.name == "body":
            return decode_body(request)

        if spec.name == "query":
            return request.query.to_dict()

        if spec.has_default:
            return spec.default

        if spec.wants_param_map:
            return dict(params)

        raise UnresolvableParameter(spec.name)


def decode_body(request: Request) -> Any:
    """Decode the request body according to its Content-Type.

    Empty bodies and malformed JSON give ``{}``. URL-encoded forms give a
    dict of first values (lists for repeated fields). Anything else is
    returned as text, or as the raw bytes when it is not valid UTF-8.
    """
    if not request.body:
        return {}

    content_type = (request.content_type or "").lower()

    if "application/json" in content_type:
        try:
            decoded = request.json()
        except ValueError:
            return {}
        return {} if decoded is None else decoded

    if "application/x-www-form-urlencoded" in content_type:
        return flatten(request.form())

    try:
        return request.text()
    except UnicodeDecodeError:
        return request.body


def flatten(values: MultiValueMapping) -> dict[str, Any]:
    """First value per key, or the full list when a key repeats."""
    result: dict[str, Any] = {}
    for key in values:
        found = values.get_list(key)
        result[key] = found[0] if len(found) == 1 else found
    return result


# -- Classification helpers (registration time only) --


def _unwrap_optional(annotation: Any) -> Any:
    """``X | None`` / ``Optional[X]`` -> ``X``; anything else unchanged."""
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _is_request_type(annotation: Any) -> bool:
    if not inspect.isclass(annotation) or annotation is object:
        return False
    try:
        return issubclass(Request, annotation)
    except TypeError:
        # Protocols with data members refuse issubclass()
        return False


def _factory_type(annotation: Any) -> type | None:
    if not inspect.isclass(annotation):
        return None
    for factory in FACTORY_TYPES:
        if issubclass(annotation, factory):
            return factory
    return None


def _is_registry_key(annotation: Any) -> bool:
    """Classes other than the coercible scalars can come from the container."""
    if annotation is None or is_coercible(annotation) or annotation is dict:
        return False
    return inspect.isclass(annotation)


def _coercion_target(annotation: Any) -> Any:
    if is_coercible(annotation):
        return annotation
    origin = typing.get_origin(annotation)
    if origin is not None and is_coercible(origin):
        return origin
    return None
