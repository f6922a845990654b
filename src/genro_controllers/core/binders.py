# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Parameter binder compiler.

``compile_binders(descriptor, registry)`` turns the bindings of an action into
an ordered list of binders. A binder has the signature
``binder(args, request, response) -> None``: it writes the bound value into
``args[binding.index]`` or raises.

Compilation happens once, at registration. It raises ``ConfigurationError``
when a validated binding has no validator in the registry, or when a query or
path binding's validator cannot parse strings.

Runtime failures:

- missing required data: ``ClientInputError`` (400).
- value failing ``check``: ``ValidationMismatchError`` (shaped as 500).
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from genro_controllers.exceptions import (
    ClientInputError,
    ConfigurationError,
    ValidationMismatchError,
)

from .descriptors import (
    PARSED_SOURCES,
    VALIDATED_SOURCES,
    ActionDescriptor,
    ParamBinding,
    ParamSource,
)
from .validators import Validator, ValidatorRegistry

__all__ = ["Binder", "compile_binders"]

Binder = Callable[[list, Any, Any], None]

_MISSING = object()


def compile_binders(descriptor: ActionDescriptor, registry: ValidatorRegistry) -> list[Binder]:
    """Return one binder per binding of ``descriptor``, in argument order."""
    return [_compile(descriptor, binding, registry) for binding in descriptor.ordered_params()]


def _resolve_validator(
    descriptor: ActionDescriptor, binding: ParamBinding, registry: ValidatorRegistry
) -> Validator:
    validator = registry.lookup(binding.type_tag)
    if validator is None:
        type_name = getattr(binding.type_tag, "__name__", repr(binding.type_tag))
        raise ConfigurationError(
            f"No validator registered for {type_name} "
            f"(argument {binding.arg!r} of {descriptor.func_name})"
        )
    if binding.source in PARSED_SOURCES and validator.parse is None:
        raise ConfigurationError(
            f"Validator for {getattr(binding.type_tag, '__name__', binding.type_tag)!s} "
            f"cannot parse strings (argument {binding.arg!r} of {descriptor.func_name})"
        )
    return validator


def _compile(
    descriptor: ActionDescriptor, binding: ParamBinding, registry: ValidatorRegistry
) -> Binder:
    index = binding.index
    source = binding.source

    if source is ParamSource.RAW_REQUEST:

        def bind_request(args: list, request: Any, response: Any) -> None:
            args[index] = request

        return bind_request

    if source is ParamSource.RAW_RESPONSE:

        def bind_response(args: list, request: Any, response: Any) -> None:
            args[index] = response

        return bind_response

    if source not in VALIDATED_SOURCES:  # pragma: no cover - enum is closed
        raise ConfigurationError(f"Unknown binding source {source!r}")

    validator = _resolve_validator(descriptor, binding, registry)
    check = validator.check
    name = binding.name
    type_tag = binding.type_tag
    optional = binding.optional

    if source is ParamSource.FULL_BODY:

        def bind_body(args: list, request: Any, response: Any) -> None:
            value = getattr(request, "body", None)
            if value is None:
                raise ClientInputError("Empty Body")
            if not check(value):
                raise ValidationMismatchError(None, type_tag, value)
            args[index] = value

        return bind_body

    if source is ParamSource.BODY_FIELD:

        def bind_body_field(args: list, request: Any, response: Any) -> None:
            payload = getattr(request, "body", None)
            value = payload.get(name, _MISSING) if isinstance(payload, Mapping) else _MISSING
            if value is _MISSING:
                if not optional:
                    raise ClientInputError(f"Missing property: {name}")
                args[index] = None
                return
            if not check(value):
                raise ValidationMismatchError(name, type_tag, value)
            args[index] = value

        return bind_body_field

    parse = validator.parse
    attribute = "query" if source is ParamSource.QUERY_FIELD else "params"
    label = "query parameter" if source is ParamSource.QUERY_FIELD else "path parameter"

    def bind_string(args: list, request: Any, response: Any) -> None:
        values = getattr(request, attribute, None) or {}
        raw = values.get(name)
        if raw is None:
            if not optional:
                raise ClientInputError(f"Missing {label}: {name}")
            args[index] = None
            return
        value = parse(raw)
        if not check(value):
            raise ValidationMismatchError(name, type_tag, raw)
        args[index] = value

    return bind_string
