# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Exceptions for Genro Controllers.

Two families live here:

- setup-time errors (``ConfigurationError``) raised while decorating or
  registering controllers. They are never caught by the library.
- request-time errors (``WebError`` and friends) that the dispatch pipeline
  converts into HTTP responses.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "ConfigurationError",
    "WebError",
    "ClientInputError",
    "ValidationMismatchError",
]


class ConfigurationError(Exception):
    """Raised when a controller, action or validator is wired incorrectly.

    Examples: registering a controller without ``@controller``, an action
    without verb/path, or a binding whose type has no registered validator.
    """


class WebError(Exception):
    """Error carrying the HTTP response that should be sent for it.

    Attributes:
        status_code: HTTP status code (default 500).
        json: Structured payload sent as JSON, if any.
        text: Plain text payload, used when ``json`` is None.
    """

    def __init__(
        self,
        status_code: int = 500,
        *,
        json: Any = None,
        text: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.json = json
        self.text = text
        super().__init__(text or f"HTTP {status_code}")


class ClientInputError(WebError):
    """Raised when a request does not satisfy a binding precondition (400).

    This is also the error application code raises inside an action to
    control the status code and payload sent back to the client.

    Attributes:
        message: Human readable reason, sent as ``{"message": ...}``.
    """

    def __init__(self, message: str, status_code: int = 400) -> None:
        self.message = message
        super().__init__(status_code, json={"message": message})
        self.args = (message,)


class ValidationMismatchError(ValueError):
    """Raised when a bound value fails its validator ``check``.

    Not a ``WebError``: it is shaped like any unhandled error (bare 500).

    Attributes:
        name: Field name (None for the full body).
        type_tag: Declared type of the binding.
        value: The offending value.
    """

    def __init__(self, name: str | None, type_tag: Any, value: Any) -> None:
        self.name = name
        self.type_tag = type_tag
        self.value = value
        label = name if name is not None else "body"
        type_name = getattr(type_tag, "__name__", repr(type_tag))
        super().__init__(f"Invalid value for '{label}': expected {type_name}, got {value!r}")
