# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Dispatch pipeline for Genro Controllers.

A ``DispatchPipeline`` is the request handler registered on the host for one
action. Each call:

1. allocates a fresh argument list sized to the action's bindings;
2. runs the compiled binders in argument order, stopping at the first failure;
3. invokes the bound method, capturing the result as an ``Outcome``
   (``ok``, ``pending`` for awaitables, ``failed`` for synchronous raises);
4. settles a pending outcome by awaiting it;
5. sends the response: 200 with an empty body for None, 200 with the
   JSON-serialized value otherwise.

Every failure (binder, synchronous raise, awaited rejection, serialization)
goes through ``shape_response``. When the action binds the raw response
(``auto_close`` False) successful results are left to the action, but
failures are still shaped. If the action already sent on that response, the
failure is only logged.

Error shaping
-------------
``shape_response(error, response, logger=None)``:

- errors with a ``status_code`` (``WebError`` and duck-typed equivalents) send
  their ``json`` payload, else their ``text``, else just the status;
- anything else is logged (when a logger is given) and answered with a bare 500.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from pydantic_core import to_jsonable_python

from genro_controllers.exceptions import ClientInputError, WebError

from .binders import Binder

__all__ = ["DispatchPipeline", "Outcome", "invoke", "shape_response"]


class Outcome:
    """Tagged result of invoking an action: ``ok``, ``pending`` or ``failed``."""

    OK = "ok"
    PENDING = "pending"
    FAILED = "failed"

    __slots__ = ("state", "value", "error")

    def __init__(self, state: str, value: Any = None, error: BaseException | None = None) -> None:
        self.state = state
        self.value = value
        self.error = error

    @classmethod
    def ok(cls, value: Any) -> Outcome:
        return cls(cls.OK, value=value)

    @classmethod
    def pending(cls, awaitable: Awaitable[Any]) -> Outcome:
        return cls(cls.PENDING, value=awaitable)

    @classmethod
    def failed(cls, error: BaseException) -> Outcome:
        return cls(cls.FAILED, error=error)

    @property
    def is_failed(self) -> bool:
        return self.state == self.FAILED

    async def settle(self) -> Outcome:
        """Await a pending outcome; other states are returned unchanged."""
        if self.state != self.PENDING:
            return self
        try:
            value = await self.value
        except Exception as error:
            return Outcome.failed(error)
        return Outcome.ok(value)

    def __repr__(self) -> str:
        if self.is_failed:
            return f"Outcome(failed, {self.error!r})"
        return f"Outcome({self.state}, {self.value!r})"


def invoke(method: Callable[..., Any], args: Sequence[Any]) -> Outcome:
    """Call ``method(*args)`` and classify what happened."""
    try:
        result = method(*args)
    except Exception as error:
        return Outcome.failed(error)
    if inspect.isawaitable(result):
        return Outcome.pending(result)
    return Outcome.ok(result)


def _payload_attr(error: BaseException, name: str) -> Any:
    value = getattr(error, name, None)
    return None if callable(value) else value


def shape_response(
    error: BaseException, response: Any, logger: logging.Logger | None = None
) -> None:
    """Send the HTTP response describing ``error``."""
    status = getattr(error, "status_code", None)
    if isinstance(error, WebError) or (isinstance(status, int) and not isinstance(status, bool)):
        status = status or 500
        payload = _payload_attr(error, "json")
        text = _payload_attr(error, "text")
        if payload is not None:
            response.send_json(payload, status)
        elif text is not None:
            response.send_text(str(text), status)
        else:
            response.send_status(status)
        return
    if logger is not None:
        logger.error("Unhandled error: %s", error, exc_info=error)
    response.send_status(500)


class DispatchPipeline:
    """Request handler for one action.

    Attributes:
        label: ``"VERB /full/path"``, used in log messages.
        method: Action bound to its controller instance.
        binders: Compiled binders in argument order.
        param_count: Size of the argument list passed to ``method``.
        auto_close: False when the action binds the raw response.
        logger: Optional sink for unhandled errors.
    """

    __slots__ = ("label", "method", "binders", "param_count", "auto_close", "logger")

    def __init__(
        self,
        method: Callable[..., Any],
        binders: Sequence[Binder],
        *,
        param_count: int,
        auto_close: bool = True,
        label: str = "",
        logger: logging.Logger | None = None,
    ) -> None:
        self.label = label or getattr(method, "__name__", "action")
        self.method = method
        self.binders = list(binders)
        self.param_count = param_count
        self.auto_close = auto_close
        self.logger = logger

    async def __call__(self, request: Any, response: Any) -> None:
        args: list[Any] = [None] * self.param_count
        try:
            for binder in self.binders:
                binder(args, request, response)
        except Exception as error:
            self._fail(error, response)
            return

        outcome = await invoke(self.method, args).settle()
        if outcome.is_failed:
            self._fail(outcome.error, response)
            return
        if not self.auto_close:
            return
        try:
            self._send(outcome.value, response)
        except Exception as error:
            self._fail(error, response)

    def _send(self, value: Any, response: Any) -> None:
        if value is None:
            response.send_status(200)
            return
        response.send_json(to_jsonable_python(value), 200)

    def _fail(self, error: BaseException, response: Any) -> None:
        if isinstance(error, ClientInputError) and self.logger is not None:
            self.logger.debug("%s rejected: %s", self.label, error.message)
        try:
            shape_response(error, response, self.logger)
        except Exception as secondary:
            # the action already sent on a bound response
            if self.logger is not None:
                self.logger.error(
                    "%s failed after responding: %s (%s)",
                    self.label,
                    error,
                    secondary,
                    exc_info=error,
                )

    def __repr__(self) -> str:
        return f"<DispatchPipeline {self.label}>"
