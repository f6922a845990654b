# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Controller mixin for Genro Controllers.

Controller
----------
A mixin giving decorated classes a ``register`` entry point:

- ``register(host, logger=None, **settings)`` validates ``settings`` with
  ``RegistrationSettings`` and wires every action onto ``host`` through
  ``ControllerRegistrar``. It returns the ``RegisteredRoute`` records.
- ``actions()`` lists ``(name, descriptor)`` pairs without touching a host.

Example::

    from genro_controllers import Controller, controller, get, query

    @controller("returns")
    class ReturnsController(Controller):
        @get("echo")
        @query("value", int)
        def echo(self, value):
            return {"value": value}

    ReturnsController().register(host, logger, namespace="v1")
"""

from __future__ import annotations

import logging
from typing import Any

from .descriptors import ActionDescriptor
from .registrar import ControllerRegistrar, RegisteredRoute, iter_actions

__all__ = ["Controller"]


class Controller:
    """Mixin for classes decorated with ``@controller``."""

    __slots__ = ()

    def register(
        self, host: Any, logger: logging.Logger | None = None, **settings: Any
    ) -> list[RegisteredRoute]:
        """Register this controller's actions on ``host``.

        Args:
            host: Router exposing ``register_route`` and ``use_middleware``.
            logger: Optional sink for registration and unhandled-error logs.
            **settings: ``RegistrationSettings`` fields (``namespace``,
                ``implicit_access``, ``authorizer``, ``registry``).

        Raises:
            ConfigurationError: on any wiring mistake; nothing is registered.
        """
        registrar = ControllerRegistrar(settings.get("registry"))
        return registrar.register(self, host, logger=logger, settings=settings)

    def actions(self) -> list[tuple[str, ActionDescriptor]]:
        """Return ``(method name, descriptor)`` for every action, sorted by name."""
        return [(name, descriptor) for name, _, descriptor in iter_actions(self)]
