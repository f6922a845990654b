# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Controller registrar - wires decorated controllers onto a host.

``ControllerRegistrar(registry).register(controller, host, logger, settings)``:

1. reads the ``ControllerDescriptor`` of the controller class (nearest along
   the MRO); a missing one raises ``ConfigurationError``;
2. discovers actions (see below);
3. plans every action first (path, middleware, binders) so a broken action
   aborts registration before the host is touched;
4. for each action, in name order, registers its middleware on the full path
   and then its ``DispatchPipeline`` under the lower-cased verb.

Action discovery
----------------
``iter_actions`` walks ``type(obj).__mro__`` (derived first), collecting
attributes by name and keeping plain functions. The first occurrence of a
name wins, so an override is registered once and an undecorated override hides
a decorated base method. Names are yielded in sorted order.

Full path
---------
``namespace + controller prefix + action path``, each part normalized to begin
with '/' and joined without doubling separators.

Permissions
-----------
Permission metadata is opaque here. When ``settings.authorizer`` is given it
is called with the action's ``AccessPolicy`` and may return a middleware,
which is placed before the action's own middleware.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from genro_controllers.exceptions import ConfigurationError

from .binders import compile_binders
from .descriptors import (
    ActionDescriptor,
    ControllerDescriptor,
    action_descriptor,
    controller_descriptor,
    join_paths,
)
from .dispatch import DispatchPipeline
from .validators import ValidatorRegistry, default_registry

__all__ = [
    "AccessPolicy",
    "ControllerRegistrar",
    "RegisteredRoute",
    "RegistrationSettings",
    "iter_actions",
]


@dataclass(frozen=True)
class AccessPolicy:
    """Permission metadata handed to an authorizer for one action.

    Attributes:
        rules: Controller rules followed by action rules, in declaration order.
        anonymous: True when the action or its controller allows anonymous access.
        implicit_access: Registration setting; actions without rules are public.
        action: ``"VERB /full/path"`` of the action.
    """

    rules: tuple[str, ...]
    anonymous: bool
    implicit_access: bool
    action: str


class RegistrationSettings(BaseModel):
    """Options accepted by ``Controller.register``."""

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    namespace: str = ""
    implicit_access: bool = False
    authorizer: Callable[[AccessPolicy], Any] | None = None
    registry: ValidatorRegistry | None = None

    @field_validator("namespace")
    @classmethod
    def _normalize_namespace(cls, value: str) -> str:
        value = value.strip().strip("/")
        return f"/{value}" if value else ""


@dataclass
class RegisteredRoute:
    """Record of one action registered on a host."""

    verb: str
    path: str
    name: str
    params: tuple[str, ...]
    handler: DispatchPipeline
    middlewares: list[Any] = field(default_factory=list)


def iter_actions(controller: Any) -> Iterator[tuple[str, Callable, ActionDescriptor]]:
    """Yield ``(name, function, descriptor)`` for every action of ``controller``."""
    resolved: dict[str, Any] = {}
    for base in type(controller).__mro__:
        for attr_name, value in vars(base).items():
            # MRO: derived wins
            resolved.setdefault(attr_name, value)
    for attr_name in sorted(resolved):
        value = resolved[attr_name]
        if not inspect.isfunction(value):
            continue
        descriptor = action_descriptor(value)
        if descriptor is not None:
            yield attr_name, value, descriptor


class ControllerRegistrar:
    """Compile and register the actions of controller instances."""

    __slots__ = ("registry",)

    def __init__(self, registry: ValidatorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else default_registry

    def register(
        self,
        controller: Any,
        host: Any,
        logger: logging.Logger | None = None,
        settings: RegistrationSettings | dict[str, Any] | None = None,
    ) -> list[RegisteredRoute]:
        """Register every action of ``controller`` on ``host``.

        Raises:
            ConfigurationError: missing ``@controller``, action without verb
                or path, unresolvable validator, invalid settings.
        """
        settings = self._settings(settings)
        descriptor = controller_descriptor(type(controller))
        if descriptor is None:
            raise ConfigurationError(
                f"{type(controller).__name__} is not a controller: decorate it with @controller(prefix)"
            )
        routes = [
            self._plan(controller, name, func, action, descriptor, settings, logger)
            for name, func, action in iter_actions(controller)
        ]
        for route in routes:
            for middleware in route.middlewares:
                host.use_middleware(route.path, middleware)
            host.register_route(route.verb.lower(), route.path, route.handler)
            if logger is not None:
                logger.debug("%s %s (%s)", route.verb, route.path, ", ".join(route.params))
        return routes

    def _settings(self, settings: RegistrationSettings | dict[str, Any] | None) -> RegistrationSettings:
        if isinstance(settings, RegistrationSettings):
            return settings
        try:
            return RegistrationSettings(**(settings or {}))
        except ValidationError as err:
            raise ConfigurationError(f"Invalid registration settings: {err}") from err

    def _plan(
        self,
        controller: Any,
        name: str,
        func: Callable,
        action: ActionDescriptor,
        descriptor: ControllerDescriptor,
        settings: RegistrationSettings,
        logger: logging.Logger | None,
    ) -> RegisteredRoute:
        if action.verb is None or action.path is None:
            raise ConfigurationError(
                f"{type(controller).__name__}.{name} has bindings but no route: "
                "add @get/@post/... or @route(verb, path)"
            )
        full_path = join_paths(settings.namespace, descriptor.prefix or "", action.path)
        label = f"{action.verb} {full_path}"
        registry = settings.registry if settings.registry is not None else self.registry

        middlewares = [self._resolve_middleware(controller, entry, label) for entry in action.middlewares]
        if settings.authorizer is not None:
            policy = AccessPolicy(
                rules=tuple(descriptor.permissions) + tuple(action.permissions),
                anonymous=descriptor.anonymous or action.anonymous,
                implicit_access=settings.implicit_access,
                action=label,
            )
            guard = settings.authorizer(policy)
            if guard is not None:
                middlewares.insert(0, guard)

        pipeline = DispatchPipeline(
            func.__get__(controller, type(controller)),
            compile_binders(action, registry),
            param_count=action.param_count,
            auto_close=not action.binds_response,
            label=label,
            logger=logger,
        )
        return RegisteredRoute(
            verb=action.verb,
            path=full_path,
            name=name,
            params=tuple(binding.arg for binding in action.ordered_params()),
            handler=pipeline,
            middlewares=middlewares,
        )

    def _resolve_middleware(self, controller: Any, entry: Any, label: str) -> Callable:
        if isinstance(entry, str):
            bound = getattr(controller, entry, None)
            if not callable(bound):
                raise ConfigurationError(f"Middleware {entry!r} of {label} is not a controller method")
            return bound
        if not callable(entry):
            raise ConfigurationError(f"Middleware {entry!r} of {label} is not callable")
        if inspect.isfunction(entry):
            owner_attr = inspect.getattr_static(type(controller), entry.__name__, None)
            if owner_attr is entry:
                return entry.__get__(controller, type(controller))
        return entry
