# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for the validator registry and built-in validators."""

import pytest
from pydantic import BaseModel

from genro_controllers import (
    ConfigurationError,
    ValidatorRegistry,
    default_registry,
    register_validator,
    validator_for_model,
)


class Point(BaseModel):
    x: int
    y: int


def test_builtin_validators_are_registered():
    registry = ValidatorRegistry()
    for tag in (str, int, float, bool, dict, list):
        assert registry.lookup(tag) is not None
    assert len(registry) == 6


def test_empty_registry_without_builtins():
    registry = ValidatorRegistry(builtins=False)
    assert len(registry) == 0
    assert registry.lookup(str) is None


def test_duplicate_type_tag_is_configuration_error():
    registry = ValidatorRegistry()
    with pytest.raises(ConfigurationError, match="already registered"):
        registry.register_validator(str, lambda value: True)


def test_distinct_type_tags_register():
    class Alpha:
        pass

    class Beta:
        pass

    registry = ValidatorRegistry(builtins=False)
    registry.register_validator(Alpha, lambda value: isinstance(value, Alpha))
    registry.register_validator(Beta, lambda value: isinstance(value, Beta), lambda raw: Beta())
    assert Alpha in registry and Beta in registry
    assert registry.lookup(Alpha).parse is None
    assert isinstance(registry.lookup(Beta).parse("x"), Beta)


def test_non_callable_check_or_parse_rejected():
    registry = ValidatorRegistry(builtins=False)
    with pytest.raises(ConfigurationError):
        registry.register_validator("tag", "not-callable")
    with pytest.raises(ConfigurationError):
        registry.register_validator("tag", lambda value: True, parse=42)


def test_string_validator():
    validator = ValidatorRegistry().lookup(str)
    assert validator.check("abc")
    assert not validator.check(3)
    assert validator.parse("abc") == "abc"


def test_number_validator_checks_and_parses_like_parse_int():
    validator = ValidatorRegistry().lookup(int)
    assert validator.check(3)
    assert validator.check(2.5)
    assert not validator.check(True)
    assert not validator.check("3")
    assert validator.parse("99") == 99
    assert validator.parse(" -7") == -7
    assert validator.parse("12abc") == 12
    assert validator.parse("abc") is None
    assert not validator.check(validator.parse("abc"))


def test_float_and_bool_parsers():
    registry = ValidatorRegistry()
    assert registry.lookup(float).parse("2.5") == 2.5
    assert registry.lookup(float).parse("x") is None
    boolean = registry.lookup(bool)
    assert boolean.parse("true") is True
    assert boolean.parse("No") is False
    assert boolean.parse("maybe") is None
    assert not boolean.check(1)


def test_object_and_array_validators_decode_json():
    registry = ValidatorRegistry()
    obj = registry.lookup(dict)
    arr = registry.lookup(list)
    assert obj.parse('{"a": 1}') == {"a": 1}
    assert obj.parse("not json") is None
    assert obj.check({}) and not obj.check([])
    assert arr.parse("[1, 2]") == [1, 2]
    assert arr.check([]) and not arr.check({})


def test_validator_for_model():
    validator = validator_for_model(Point)
    assert validator.type_tag is Point
    assert validator.check({"x": 1, "y": 2})
    assert validator.check(Point(x=1, y=2))
    assert not validator.check({"x": "nope"})
    assert validator.parse('{"x": 1, "y": 2}') == {"x": 1, "y": 2}
    assert validator.parse("{broken") is None


def test_validator_for_model_rejects_non_models():
    with pytest.raises(ConfigurationError):
        validator_for_model(dict)


def test_register_validator_targets_default_registry():
    class Token:
        pass

    validator = register_validator(Token, lambda value: isinstance(value, Token))
    assert default_registry.lookup(Token) is validator
    with pytest.raises(ConfigurationError):
        register_validator(Token, lambda value: True)
