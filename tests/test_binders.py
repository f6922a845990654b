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

"""Tests for the parameter binder compiler."""

import pytest

from genro_controllers import (
    ClientInputError,
    ConfigurationError,
    ValidationMismatchError,
    ValidatorRegistry,
    action_descriptor,
    body,
    body_field,
    get,
    path_param,
    post,
    query,
    req,
    res,
)
from genro_controllers.core.binders import compile_binders
from genro_controllers.testing import MemoryRequest, MemoryResponse


def bind(func, request, response=None, registry=None):
    descriptor = action_descriptor(func)
    binders = compile_binders(descriptor, registry or ValidatorRegistry())
    args = [None] * descriptor.param_count
    for binder in binders:
        binder(args, request, response)
    return args


@post("body")
@body(dict)
def whole_body(self, body):
    return body


@post("fields")
@body_field("name", str)
@body_field("age", int, optional=True)
def fields(self, name, age):
    return name, age


@get("search")
@query("value", int)
@query("term", str, optional=True)
def search(self, value, term):
    return value, term


@get("items/:item_id")
@path_param("item_id", int)
def item(self, item_id):
    return item_id


@get("raw")
@req()
@res()
def raw(self, request, response):
    return None


def test_full_body_is_written_as_is():
    payload = {"a": 1}
    assert bind(whole_body, MemoryRequest("POST", "/body", body=payload)) == [payload]


def test_full_body_missing_is_client_error():
    with pytest.raises(ClientInputError) as excinfo:
        bind(whole_body, MemoryRequest("POST", "/body"))
    assert excinfo.value.status_code == 400
    assert excinfo.value.json == {"message": "Empty Body"}


def test_full_body_type_mismatch():
    with pytest.raises(ValidationMismatchError):
        bind(whole_body, MemoryRequest("POST", "/body", body=[1, 2]))


def test_body_field_present():
    request = MemoryRequest("POST", "/fields", body={"name": "ada", "age": 36})
    assert bind(fields, request) == ["ada", 36]


def test_body_field_required_missing():
    request = MemoryRequest("POST", "/fields", body={"age": 36})
    with pytest.raises(ClientInputError) as excinfo:
        bind(fields, request)
    assert excinfo.value.status_code == 400
    assert excinfo.value.message == "Missing property: name"


def test_body_field_required_missing_without_body():
    with pytest.raises(ClientInputError, match="Missing property: name"):
        bind(fields, MemoryRequest("POST", "/fields"))


def test_body_field_optional_missing_is_none():
    request = MemoryRequest("POST", "/fields", body={"name": "ada"})
    assert bind(fields, request) == ["ada", None]


def test_body_field_type_mismatch():
    request = MemoryRequest("POST", "/fields", body={"name": "ada", "age": "old"})
    with pytest.raises(ValidationMismatchError) as excinfo:
        bind(fields, request)
    assert excinfo.value.name == "age"
    assert excinfo.value.value == "old"


def test_query_value_is_parsed():
    request = MemoryRequest("GET", "/search", query={"value": "99", "term": "x"})
    assert bind(search, request) == [99, "x"]


def test_query_required_missing():
    with pytest.raises(ClientInputError) as excinfo:
        bind(search, MemoryRequest("GET", "/search"))
    assert excinfo.value.status_code == 400


def test_query_optional_missing_is_none():
    request = MemoryRequest("GET", "/search", query={"value": "1"})
    assert bind(search, request) == [1, None]


def test_query_unparseable_value_is_mismatch():
    request = MemoryRequest("GET", "/search", query={"value": "abc"})
    with pytest.raises(ValidationMismatchError):
        bind(search, request)


def test_path_param_is_parsed():
    request = MemoryRequest("GET", "/items/7", params={"item_id": "7"})
    assert bind(item, request) == [7]


def test_path_param_missing_is_client_error():
    with pytest.raises(ClientInputError, match="Missing path parameter: item_id"):
        bind(item, MemoryRequest("GET", "/items/"))


def test_raw_request_and_response():
    request = MemoryRequest("GET", "/raw")
    response = MemoryResponse()
    assert bind(raw, request, response) == [request, response]


def test_binders_follow_argument_order():
    calls = []
    registry = ValidatorRegistry(builtins=False)
    registry.register_validator("a", lambda value: calls.append("a") or True)
    registry.register_validator("b", lambda value: calls.append("b") or True)

    @post("ordered")
    @body_field("second", "b")
    @body_field("first", "a")
    def ordered(self, first, second):
        return None

    bind(ordered, MemoryRequest("POST", "/ordered", body={"first": 1, "second": 2}), registry=registry)
    assert calls == ["a", "b"]


def test_compile_fails_for_unregistered_type():
    class Unknown:
        pass

    @get("unknown")
    @query("value", Unknown)
    def action(self, value):
        return None

    with pytest.raises(ConfigurationError, match="No validator registered for Unknown"):
        compile_binders(action_descriptor(action), ValidatorRegistry())


def test_compile_fails_when_string_source_cannot_parse():
    class Opaque:
        pass

    registry = ValidatorRegistry(builtins=False)
    registry.register_validator(Opaque, lambda value: True)

    @get("opaque")
    @query("value", Opaque)
    def from_query(self, value):
        return None

    @post("opaque")
    @body_field("value", Opaque)
    def from_body(self, value):
        return None

    with pytest.raises(ConfigurationError, match="cannot parse strings"):
        compile_binders(action_descriptor(from_query), registry)
    assert len(compile_binders(action_descriptor(from_body), registry)) == 1
