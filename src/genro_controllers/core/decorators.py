# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Decorators for declaring controllers and their actions.

This module contains only marker helpers: decorators record metadata in the
descriptor side tables and return the decorated object unchanged. Nothing is
registered on a host until ``Controller.register`` runs.

Class decorators
----------------
``controller(prefix)``
    Declare the path prefix of a controller class (exactly once per class).

Route decorators
----------------
``route(verb, path=None)`` and the shortcuts ``get``, ``post``, ``put``,
``head``, ``options``, ``delete``. A missing path defaults to the method name.

Binding decorators
------------------
Each binds one method argument, named by ``arg`` (defaults to the field
name), to a request source:

- ``req(arg)`` / ``res(arg)``: raw request / response objects. Binding the
  response hands the response lifecycle over to the action.
- ``body(type_tag, arg=...)``: the whole parsed body.
- ``body_field(name, type_tag, optional=False)``: ``body[name]``.
- ``query(name, type_tag, optional=False)``: a query-string value.
- ``path_param(name, type_tag=str)``: a path parameter.

Middleware and permissions
--------------------------
``use(*middlewares)`` adds ``(request, response, next)`` callables (or names
of controller methods) run before the action. ``permission(rule)`` and
``allow_anonymous`` attach opaque permission metadata to methods or classes.

Example::

    @controller("returns")
    class ReturnsController(Controller):
        @get("get-promise")
        @query("value", int)
        async def get_promise(self, value):
            await asyncio.sleep(0.02)
            return {"value": value}
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from .descriptors import (
    ANONYMOUS,
    ParamBinding,
    ParamSource,
    add_middleware,
    add_param,
    add_permission,
    argument_index,
    set_controller,
    set_controller_permission,
    set_route,
)

__all__ = [
    "allow_anonymous",
    "body",
    "body_field",
    "controller",
    "delete",
    "get",
    "head",
    "options",
    "path_param",
    "permission",
    "post",
    "put",
    "query",
    "req",
    "res",
    "route",
    "use",
]

F = TypeVar("F", bound=Callable[..., Any])
C = TypeVar("C", bound=type)


def controller(prefix: str) -> Callable[[C], C]:
    """Declare ``prefix`` as the path prefix of the decorated class."""

    def decorator(cls: C) -> C:
        set_controller(cls, prefix)
        return cls

    return decorator


def route(verb: str, path: str | None = None) -> Callable[[F], F]:
    """Mark a method as an action answering ``verb`` on ``path``.

    Args:
        verb: HTTP verb, case-insensitive (GET, POST, PUT, HEAD, OPTIONS, DELETE).
        path: Action path relative to the controller prefix. Defaults to the
            method name. A leading '/' is added when missing.
    """

    def decorator(func: F) -> F:
        set_route(func, verb, path)
        return func

    return decorator


def get(path: str | None = None) -> Callable[[F], F]:
    return route("GET", path)


def post(path: str | None = None) -> Callable[[F], F]:
    return route("POST", path)


def put(path: str | None = None) -> Callable[[F], F]:
    return route("PUT", path)


def head(path: str | None = None) -> Callable[[F], F]:
    return route("HEAD", path)


def options(path: str | None = None) -> Callable[[F], F]:
    return route("OPTIONS", path)


def delete(path: str | None = None) -> Callable[[F], F]:
    return route("DELETE", path)


def _binding(
    source: ParamSource,
    arg: str,
    *,
    name: str | None = None,
    type_tag: Any = None,
    optional: bool = False,
) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        binding = ParamBinding(
            index=argument_index(func, arg),
            source=source,
            arg=arg,
            name=name,
            type_tag=type_tag,
            optional=optional,
        )
        add_param(func, binding)
        return func

    return decorator


def req(arg: str = "request") -> Callable[[F], F]:
    """Bind the raw request object to argument ``arg``."""
    return _binding(ParamSource.RAW_REQUEST, arg)


def res(arg: str = "response") -> Callable[[F], F]:
    """Bind the raw response object to argument ``arg``.

    The action becomes responsible for sending the response: nothing is sent
    automatically from its return value.
    """
    return _binding(ParamSource.RAW_RESPONSE, arg)


def body(type_tag: Any = dict, *, arg: str = "body") -> Callable[[F], F]:
    """Bind the whole parsed request body, validated against ``type_tag``."""
    return _binding(ParamSource.FULL_BODY, arg, type_tag=type_tag)


def body_field(
    name: str, type_tag: Any, *, optional: bool = False, arg: str | None = None
) -> Callable[[F], F]:
    """Bind ``body[name]`` validated against ``type_tag``."""
    return _binding(
        ParamSource.BODY_FIELD, arg or name, name=name, type_tag=type_tag, optional=optional
    )


def query(
    name: str, type_tag: Any, *, optional: bool = False, arg: str | None = None
) -> Callable[[F], F]:
    """Bind the query-string value ``name``, parsed and validated as ``type_tag``."""
    return _binding(
        ParamSource.QUERY_FIELD, arg or name, name=name, type_tag=type_tag, optional=optional
    )


def path_param(name: str, type_tag: Any = str, *, arg: str | None = None) -> Callable[[F], F]:
    """Bind the path parameter ``name`` (``:name`` in the route path)."""
    return _binding(ParamSource.PATH_FIELD, arg or name, name=name, type_tag=type_tag)


def use(*middlewares: Any) -> Callable[[F], F]:
    """Run ``middlewares`` before the action, in the order written.

    Entries are ``(request, response, next)`` callables or names of methods
    on the controller; both are resolved against the instance at registration.
    """

    def decorator(func: F) -> F:
        add_middleware(func, *middlewares)
        return func

    return decorator


def permission(rule: str) -> Callable[[Any], Any]:
    """Attach a permission rule to an action or to a whole controller.

    Rules are opaque to this package; an authorizer passed to ``register``
    decides what they mean (see ``genro_controllers.plugins.auth``).
    """

    def decorator(target: Any) -> Any:
        if isinstance(target, type):
            set_controller_permission(target, rule)
        else:
            add_permission(target, rule)
        return target

    return decorator


def allow_anonymous(target: Any) -> Any:
    """Mark an action or controller as reachable without credentials."""
    return permission(ANONYMOUS)(target)
