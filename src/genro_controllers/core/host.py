# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Host contracts - abstract bases for the HTTP collaborators.

Genro Controllers does not serve HTTP. It wires handlers onto an existing
router ("host") and talks to the request/response objects that host creates.
These interfaces document the minimal surface used; the core only duck-calls
them, so adapters may subclass or simply match the method names.

Required surface:
    - host: ``register_route(verb, path, handler)``, ``use_middleware(path, fn)``
    - request: ``body``, ``query``, ``params``
    - response: ``send_status``, ``send_json``, ``send_text``
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

__all__ = ["HostInterface", "RequestInterface", "ResponseInterface", "Handler", "Middleware"]

Handler = Callable[[Any, Any], Awaitable[None]]
Middleware = Callable[[Any, Any, Callable[[], Awaitable[None]]], Any]


class HostInterface(ABC):
    """Router that actions and middleware are registered on."""

    @abstractmethod
    def register_route(self, verb: str, path: str, handler: Handler) -> None:
        """Register ``handler`` for ``verb`` (lower case) on ``path``.

        ``handler`` is a coroutine function ``handler(request, response)``.
        """
        ...

    @abstractmethod
    def use_middleware(self, path: str, fn: Middleware) -> None:
        """Run ``fn(request, response, next)`` for requests matching ``path``.

        Middleware registered for a path runs in registration order before
        the route handler of the same path.
        """
        ...


class RequestInterface(ABC):
    """Incoming request as seen by binders."""

    @property
    @abstractmethod
    def body(self) -> Mapping[str, Any] | Any | None:
        """Pre-parsed body, or None when the request has none."""
        ...

    @property
    @abstractmethod
    def query(self) -> Mapping[str, str]:
        """Query-string values."""
        ...

    @property
    @abstractmethod
    def params(self) -> Mapping[str, str]:
        """Path parameters matched by the host."""
        ...


class ResponseInterface(ABC):
    """Outgoing response."""

    @abstractmethod
    def send_status(self, status: int) -> None:
        """Send ``status`` with an empty body."""
        ...

    @abstractmethod
    def send_json(self, payload: Any, status: int = 200) -> None:
        """Send ``payload`` serialized as JSON."""
        ...

    @abstractmethod
    def send_text(self, text: str, status: int) -> None:
        """Send ``text`` as a plain text body."""
        ...
