# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Validator registry for Genro Controllers.

A validator pairs a type ``check`` with an optional string ``parse`` and is
registered under a type tag (usually a Python type). Binders compiled from
action descriptors look validators up here.

Registry
--------
``ValidatorRegistry`` is a plain mapping ``type_tag -> Validator``:

- ``register(validator)`` rejects a second validator for the same tag with
  ``ConfigurationError``. There is no removal.
- ``lookup(type_tag)`` returns the validator or None.

``default_registry`` is the process-wide instance seeded with the built-in
validators; ``register_validator(type_tag, check, parse=None)`` is the
extension point bound to it. Registries are passed explicitly to the binder
compiler and the registrar, so tests can use isolated instances.

Built-ins
---------
==========  ===========================  ===========================
tag         check                        parse
==========  ===========================  ===========================
``str``     is a string                  identity
``int``     is a number (not bool)       leading integer (parseInt)
``float``   is a number (not bool)       float
``bool``    is a bool                    true/1/yes, false/0/no
``dict``    is a plain mapping           JSON decode
``list``    is a list                    JSON decode
==========  ===========================  ===========================

Parsers return None when the string cannot be converted; the subsequent
``check`` then fails.

Example::

    from genro_controllers import register_validator

    register_validator(Color, lambda v: v in Color.__members__, str.upper)
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from genro_controllers.exceptions import ConfigurationError

__all__ = [
    "Validator",
    "ValidatorRegistry",
    "default_registry",
    "register_validator",
    "validator_for_model",
]

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class Validator:
    """Check/parse pair registered under ``type_tag``."""

    type_tag: Any
    check: Callable[[Any], bool]
    parse: Callable[[str], Any] | None = None


class ValidatorRegistry:
    """Mapping of type tags to validators with unique-key semantics."""

    __slots__ = ("_validators",)

    def __init__(self, *, builtins: bool = True) -> None:
        self._validators: dict[Any, Validator] = {}
        if builtins:
            for validator in _builtin_validators():
                self.register(validator)

    def register(self, validator: Validator) -> Validator:
        """Add ``validator``; raise ``ConfigurationError`` if its tag exists."""
        if validator.type_tag in self._validators:
            raise ConfigurationError(
                f"Validator for {_tag_name(validator.type_tag)} already registered"
            )
        self._validators[validator.type_tag] = validator
        return validator

    def register_validator(
        self,
        type_tag: Any,
        check: Callable[[Any], bool],
        parse: Callable[[str], Any] | None = None,
    ) -> Validator:
        """Build and register a ``Validator`` from its parts."""
        if not callable(check):
            raise ConfigurationError(f"Validator check for {_tag_name(type_tag)} is not callable")
        if parse is not None and not callable(parse):
            raise ConfigurationError(f"Validator parse for {_tag_name(type_tag)} is not callable")
        return self.register(Validator(type_tag, check, parse))

    def lookup(self, type_tag: Any) -> Validator | None:
        return self._validators.get(type_tag)

    def __contains__(self, type_tag: Any) -> bool:
        return type_tag in self._validators

    def __len__(self) -> int:
        return len(self._validators)


def _tag_name(type_tag: Any) -> str:
    return getattr(type_tag, "__name__", None) or repr(type_tag)


# ----------------------------------------------------------------------
# Built-in checks and parsers
# ----------------------------------------------------------------------
def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_int(raw: str) -> int | None:
    match = _LEADING_INT.match(raw)
    return int(match.group(1)) if match else None


def _parse_float(raw: str) -> float | None:
    try:
        return float(raw)
    except ValueError:
        return None


def _parse_bool(raw: str) -> bool | None:
    lowered = raw.strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    return None


def _parse_json(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        return None


def _builtin_validators() -> list[Validator]:
    return [
        Validator(str, lambda value: isinstance(value, str), lambda raw: raw),
        Validator(int, _is_number, _parse_int),
        Validator(float, _is_number, _parse_float),
        Validator(bool, lambda value: isinstance(value, bool), _parse_bool),
        Validator(dict, lambda value: isinstance(value, dict), _parse_json),
        Validator(list, lambda value: isinstance(value, list), _parse_json),
    ]


def validator_for_model(model: type[BaseModel]) -> Validator:
    """Return a validator accepting values that validate against ``model``.

    The bound value is passed through unchanged; validation only decides
    whether it is acceptable.
    """
    if not (isinstance(model, type) and issubclass(model, BaseModel)):
        raise ConfigurationError(f"{model!r} is not a pydantic model")

    def check(value: Any) -> bool:
        if isinstance(value, model):
            return True
        try:
            model.model_validate(value)
        except ValidationError:
            return False
        return True

    def parse(raw: str) -> Any:
        try:
            return model.model_validate_json(raw).model_dump()
        except ValidationError:
            return None

    return Validator(model, check, parse)


default_registry = ValidatorRegistry()


def register_validator(
    type_tag: Any,
    check: Callable[[Any], bool],
    parse: Callable[[str], Any] | None = None,
) -> Validator:
    """Register a validator on the process-wide ``default_registry``."""
    return default_registry.register_validator(type_tag, check, parse)
