# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Action and controller descriptors for Genro Controllers.

Decorators never mutate functions. Each one records metadata in a side table
keyed by the decorated function (or class) and the registrar reads it back at
registration time.

Objects
-------
``ParamSource``
    Where a bound argument comes from: raw request/response, the whole body,
    a body field, a query-string field or a path parameter.
``ParamBinding``
    One bound argument: positional ``index`` (``self`` excluded), ``source``,
    field ``name``, ``type_tag`` and ``optional`` flag.
``ActionDescriptor``
    Verb, path, bindings, middleware and permission metadata of one method.
``ControllerDescriptor``
    Path prefix and permission metadata of one controller class.

Lazy initialization
-------------------
``set_route``, ``add_param``, ``add_middleware`` and ``add_permission`` create
the descriptor on first touch, so decorators may be stacked in any order.
``action_descriptor(func)`` returns None for undecorated functions: "not a
route" is distinct from "route without parameters".
"""

from __future__ import annotations

import inspect
import weakref
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from genro_controllers.exceptions import ConfigurationError

__all__ = [
    "VERBS",
    "ActionDescriptor",
    "ControllerDescriptor",
    "ParamBinding",
    "ParamSource",
    "action_descriptor",
    "add_middleware",
    "add_param",
    "add_permission",
    "argument_index",
    "controller_descriptor",
    "join_paths",
    "normalize_path",
    "set_controller",
    "set_controller_permission",
    "set_route",
]

VERBS = ("GET", "POST", "PUT", "HEAD", "OPTIONS", "DELETE")

ANONYMOUS = "__anonymous__"


class ParamSource(str, Enum):
    RAW_REQUEST = "request"
    RAW_RESPONSE = "response"
    BODY_FIELD = "body_field"
    FULL_BODY = "body"
    QUERY_FIELD = "query"
    PATH_FIELD = "path"


# Sources whose binders read request data and need a validator.
VALIDATED_SOURCES = frozenset(
    {ParamSource.BODY_FIELD, ParamSource.FULL_BODY, ParamSource.QUERY_FIELD, ParamSource.PATH_FIELD}
)
# Sources whose raw values are strings and must be parsed first.
PARSED_SOURCES = frozenset({ParamSource.QUERY_FIELD, ParamSource.PATH_FIELD})


@dataclass(frozen=True)
class ParamBinding:
    """Binding of one method argument to a request source."""

    index: int
    source: ParamSource
    arg: str
    name: str | None = None
    type_tag: Any = None
    optional: bool = False


@dataclass
class ActionDescriptor:
    """Metadata accumulated on a decorated controller method.

    Attributes:
        func_name: Name of the decorated function.
        verb: Upper-case HTTP verb (None until a route decorator runs).
        path: Action path, always starting with '/'.
        params: Bindings keyed by argument index.
        middlewares: Middleware entries in declaration order.
        permissions: Opaque permission rules, in declaration order.
        anonymous: True when the action was marked ``allow_anonymous``.
    """

    func_name: str
    verb: str | None = None
    path: str | None = None
    params: dict[int, ParamBinding] = field(default_factory=dict)
    middlewares: list[Any] = field(default_factory=list)
    permissions: list[str] = field(default_factory=list)
    anonymous: bool = False

    def ordered_params(self) -> list[ParamBinding]:
        return [self.params[index] for index in sorted(self.params)]

    @property
    def param_count(self) -> int:
        return max(self.params) + 1 if self.params else 0

    @property
    def binds_response(self) -> bool:
        return any(b.source is ParamSource.RAW_RESPONSE for b in self.params.values())


@dataclass
class ControllerDescriptor:
    """Class-level metadata set by ``@controller`` and permission decorators."""

    prefix: str | None = None
    permissions: list[str] = field(default_factory=list)
    anonymous: bool = False


_ACTIONS: weakref.WeakKeyDictionary[Callable, ActionDescriptor] = weakref.WeakKeyDictionary()
_CONTROLLERS: weakref.WeakKeyDictionary[type, ControllerDescriptor] = weakref.WeakKeyDictionary()


def normalize_path(path: str) -> str:
    """Return ``path`` with a single leading '/'."""
    return "/" + path.lstrip("/")


def join_paths(*parts: str) -> str:
    """Concatenate normalized segments without producing '//' at the joints."""
    result = ""
    for part in parts:
        if not part:
            continue
        result = result.rstrip("/") + normalize_path(part)
    return result or "/"


# ----------------------------------------------------------------------
# Action side table
# ----------------------------------------------------------------------
def _unwrap(func: Callable) -> Callable:
    return getattr(func, "__func__", func)


def action_descriptor(func: Any) -> ActionDescriptor | None:
    """Return the descriptor of ``func`` or None when it is not a route."""
    try:
        return _ACTIONS.get(_unwrap(func))
    except TypeError:  # not weak-referenceable, so never decorated
        return None


def _touch(func: Callable) -> ActionDescriptor:
    key = _unwrap(func)
    descriptor = _ACTIONS.get(key)
    if descriptor is None:
        descriptor = ActionDescriptor(func_name=key.__name__)
        _ACTIONS[key] = descriptor
    return descriptor


def set_route(func: Callable, verb: str, path: str | None = None) -> ActionDescriptor:
    verb = verb.upper()
    if verb not in VERBS:
        raise ConfigurationError(f"Unsupported HTTP verb {verb!r} on {func.__name__}")
    descriptor = _touch(func)
    if descriptor.verb is not None:
        raise ConfigurationError(
            f"Route already set on {descriptor.func_name}: {descriptor.verb} {descriptor.path}"
        )
    descriptor.verb = verb
    descriptor.path = normalize_path(descriptor.func_name if path is None else path)
    return descriptor


def argument_index(func: Callable, arg: str) -> int:
    """Return the positional index of ``arg`` in ``func``, ``self`` excluded."""
    params = [
        p
        for p in inspect.signature(_unwrap(func)).parameters.values()
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    names = [p.name for p in params[1:]]
    if arg not in names:
        raise ConfigurationError(
            f"{func.__name__}() has no positional argument {arg!r} (available: {', '.join(names) or 'none'})"
        )
    return names.index(arg)


def add_param(func: Callable, binding: ParamBinding) -> ActionDescriptor:
    descriptor = _touch(func)
    existing = descriptor.params.get(binding.index)
    if existing is not None:
        raise ConfigurationError(
            f"Argument {binding.arg!r} of {descriptor.func_name} is already bound "
            f"to {existing.source.value}"
        )
    descriptor.params[binding.index] = binding
    return descriptor


def add_middleware(func: Callable, *entries: Any) -> ActionDescriptor:
    """Add middleware entries ahead of those added by decorators applied earlier.

    Decorators apply bottom-up, so inserting at the front keeps the
    top-to-bottom order in which they were written.
    """
    descriptor = _touch(func)
    descriptor.middlewares[0:0] = list(entries)
    return descriptor


def add_permission(func: Callable, rule: str) -> ActionDescriptor:
    descriptor = _touch(func)
    if rule == ANONYMOUS:
        descriptor.anonymous = True
    else:
        descriptor.permissions.insert(0, rule)
    return descriptor


# ----------------------------------------------------------------------
# Controller side table
# ----------------------------------------------------------------------
def _touch_controller(cls: type) -> ControllerDescriptor:
    descriptor = _CONTROLLERS.get(cls)
    if descriptor is None:
        descriptor = ControllerDescriptor()
        _CONTROLLERS[cls] = descriptor
    return descriptor


def set_controller(cls: type, prefix: str) -> ControllerDescriptor:
    descriptor = _touch_controller(cls)
    if descriptor.prefix is not None:
        raise ConfigurationError(f"Controller {cls.__name__} already declared as {descriptor.prefix!r}")
    descriptor.prefix = normalize_path(prefix)
    return descriptor


def set_controller_permission(cls: type, rule: str) -> ControllerDescriptor:
    descriptor = _touch_controller(cls)
    if rule == ANONYMOUS:
        descriptor.anonymous = True
    else:
        descriptor.permissions.insert(0, rule)
    return descriptor


def controller_descriptor(cls: type) -> ControllerDescriptor | None:
    """Return the effective descriptor of ``cls``, or None if it has no prefix.

    The prefix comes from the nearest class along ``cls.__mro__`` that declares
    one. Permission rules and the anonymous flag are merged from every class
    in the MRO, ancestors first.
    """
    prefix = None
    for base in cls.__mro__:
        descriptor = _CONTROLLERS.get(base)
        if descriptor is not None and descriptor.prefix is not None:
            prefix = descriptor.prefix
            break
    if prefix is None:
        return None
    merged = ControllerDescriptor(prefix=prefix)
    for base in reversed(cls.__mro__):
        descriptor = _CONTROLLERS.get(base)
        if descriptor is None:
            continue
        merged.permissions.extend(descriptor.permissions)
        merged.anonymous = merged.anonymous or descriptor.anonymous
    return merged
