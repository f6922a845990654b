# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""In-memory host for exercising controllers without a server.

``MemoryHost`` implements the host contract:

- routes and middleware are matched on the full path; ``:name`` segments
  capture path parameters;
- middleware registered for a matching path runs in registration order, each
  receiving ``next``. Calling it schedules the rest of the chain and returns
  an awaitable; the host awaits the rest of the chain even when a sync
  middleware calls ``next()`` without returning it. A middleware that never
  calls ``next`` ends the chain;
- unmatched requests answer 404.

``MemoryResponse`` records what was sent and refuses a second send, which
makes double responses visible in tests.

Example::

    host = MemoryHost()
    ReturnsController().register(host)
    response = await host.request("GET", "/returns/get-promise?value=99")
    assert response.status == 200
    assert response.json() == {"value": 99}
"""

from __future__ import annotations

import asyncio
import inspect
import json
import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl

from genro_controllers.core.host import HostInterface, RequestInterface, ResponseInterface

__all__ = ["MemoryHost", "MemoryRequest", "MemoryResponse", "ResponseAlreadySent"]

_PARAM_SEGMENT = re.compile(r"^:([A-Za-z_][A-Za-z0-9_]*)$")


class ResponseAlreadySent(RuntimeError):
    """Raised when a ``MemoryResponse`` is sent twice."""


class MemoryRequest(RequestInterface):
    """Request with a pre-parsed body, query mapping and path parameters."""

    def __init__(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        query: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.method = method.upper()
        self.path = path
        self._body = body
        self._query = dict(query or {})
        self._params = dict(params or {})
        self.headers = {key.lower(): value for key, value in (headers or {}).items()}
        self.state: dict[str, Any] = {}

    @property
    def body(self) -> Any:
        return self._body

    @property
    def query(self) -> dict[str, str]:
        return self._query

    @property
    def params(self) -> dict[str, str]:
        return self._params

    @params.setter
    def params(self, value: Mapping[str, str]) -> None:
        self._params = dict(value)

    def __repr__(self) -> str:
        return f"<MemoryRequest {self.method} {self.path}>"


class MemoryResponse(ResponseInterface):
    """Response capturing status, content type and serialized body."""

    def __init__(self) -> None:
        self.status: int | None = None
        self.content_type: str | None = None
        self.text: str = ""

    @property
    def sent(self) -> bool:
        return self.status is not None

    def _record(self, status: int, content_type: str | None, text: str) -> None:
        if self.sent:
            raise ResponseAlreadySent(f"Response already sent with status {self.status}")
        self.status = status
        self.content_type = content_type
        self.text = text

    def send_status(self, status: int) -> None:
        self._record(status, None, "")

    def send_json(self, payload: Any, status: int = 200) -> None:
        self._record(status, "application/json", json.dumps(payload))

    def send_text(self, text: str, status: int) -> None:
        self._record(status, "text/plain", text)

    def json(self) -> Any:
        """Return the parsed JSON body (None for an empty body)."""
        return json.loads(self.text) if self.text else None

    def __repr__(self) -> str:
        return f"<MemoryResponse {self.status} {self.text[:40]!r}>"


def _compile_path(path: str) -> re.Pattern[str]:
    parts = []
    for segment in path.strip("/").split("/"):
        match = _PARAM_SEGMENT.match(segment)
        parts.append(f"(?P<{match.group(1)}>[^/]+)" if match else re.escape(segment))
    return re.compile("^/" + "/".join(parts) + "/?$")


class MemoryHost(HostInterface):
    """Host router keeping routes and middleware in memory."""

    def __init__(self) -> None:
        self._routes: list[tuple[str, str, re.Pattern[str], Any]] = []
        self._middlewares: list[tuple[str, re.Pattern[str], Any]] = []

    # ------------------------------------------------------------------
    # Host contract
    # ------------------------------------------------------------------
    def register_route(self, verb: str, path: str, handler: Any) -> None:
        self._routes.append((verb.lower(), path, _compile_path(path), handler))

    def use_middleware(self, path: str, fn: Any) -> None:
        self._middlewares.append((path, _compile_path(path), fn))

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def routes(self) -> list[tuple[str, str]]:
        """``(verb, path)`` pairs in registration order."""
        return [(verb, path) for verb, path, _, _ in self._routes]

    @property
    def middleware_paths(self) -> list[str]:
        return [path for path, _, _ in self._middlewares]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def _match_route(self, verb: str, path: str) -> tuple[Any, dict[str, str]]:
        for route_verb, _, pattern, handler in self._routes:
            if route_verb != verb:
                continue
            match = pattern.match(path)
            if match:
                return handler, match.groupdict()
        return None, {}

    async def dispatch(self, request: MemoryRequest, response: MemoryResponse) -> MemoryResponse:
        """Run matching middleware, then the route handler, for ``request``."""
        handler, params = self._match_route(request.method.lower(), request.path)
        request.params = params
        chain = [fn for _, pattern, fn in self._middlewares if pattern.match(request.path)]

        async def run(index: int) -> None:
            if index < len(chain):
                continuation: list[asyncio.Future] = []

                def call_next() -> asyncio.Future:
                    if not continuation:
                        continuation.append(asyncio.ensure_future(run(index + 1)))
                    return continuation[0]

                result = chain[index](request, response, call_next)
                if inspect.isawaitable(result):
                    await result
                # sync middleware may call next() without awaiting it
                if continuation:
                    await continuation[0]
                return
            if handler is None:
                response.send_status(404)
                return
            await handler(request, response)

        await run(0)
        return response

    async def request(
        self,
        verb: str,
        path: str,
        *,
        body: Any = None,
        query: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> MemoryResponse:
        """Build a request (``path`` may carry a query string) and dispatch it."""
        path, _, query_string = path.partition("?")
        merged = dict(parse_qsl(query_string, keep_blank_values=True))
        merged.update(query or {})
        request = MemoryRequest(verb, path, body=body, query=merged, headers=headers)
        return await self.dispatch(request, MemoryResponse())
