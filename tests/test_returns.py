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

"""End-to-end tests: controllers served by the in-memory host."""

import asyncio

import pytest

from genro_controllers import (
    ClientInputError,
    Controller,
    WebError,
    body,
    body_field,
    controller,
    delete,
    get,
    path_param,
    post,
    put,
    query,
    res,
)
from genro_controllers.testing import MemoryHost


@controller("returns")
class ReturnsController(Controller):
    def __init__(self):
        self.calls = 0

    @get("get-promise")
    @query("value", int)
    async def get_promise(self, value):
        await asyncio.sleep(0.02)
        return {"value": value}

    @get("get-promise-rejected")
    @query("code", int)
    async def get_promise_rejected(self, code):
        await asyncio.sleep(0.02)
        raise WebError(code)

    @get("failing-autoclosed")
    @res()
    def failing_autoclosed(self, response):
        raise RuntimeError("Catch me!")

    @get("failing-autoclosed-async")
    @res()
    async def failing_autoclosed_async(self, response):
        await asyncio.sleep(0.01)
        raise RuntimeError("Catch me async!")

    @get("manual")
    @res()
    def manual(self, response):
        self.calls += 1

    @get("manual-send")
    @res()
    def manual_send(self, response):
        response.send_text("created by hand", 201)

    @get("sync-value")
    def sync_value(self):
        return [1, 2, 3]

    @get("nothing")
    def nothing(self):
        return None

    @get("client-error")
    def client_error(self):
        raise ClientInputError("Nope", 422)

    @post("users")
    @body_field("name", str)
    @body_field("age", int, optional=True)
    def create_user(self, name, age):
        self.calls += 1
        return {"name": name, "age": age}

    @put("items/:item_id")
    @path_param("item_id", int)
    @body(dict)
    def update_item(self, item_id, body):
        return {"id": item_id, **body}

    @delete("items/:item_id")
    @path_param("item_id", int)
    def delete_item(self, item_id):
        return None


@controller("somectrl")
class NamespaceController(Controller):
    @get()
    def test(self):
        return {"done": True}


@pytest.fixture
def served():
    host = MemoryHost()
    ctrl = ReturnsController()
    ctrl.register(host)
    return host, ctrl


@pytest.mark.asyncio
async def test_returns_the_awaited_value(served):
    host, _ = served
    response = await host.request("GET", "/returns/get-promise?value=99")
    assert response.status == 200
    assert response.json() == {"value": 99}


@pytest.mark.asyncio
async def test_rejected_with_error_code(served):
    host, _ = served
    response = await host.request("GET", "/returns/get-promise-rejected?code=999")
    assert response.status == 999


@pytest.mark.asyncio
async def test_sync_failure_with_bound_response(served):
    host, _ = served
    response = await host.request("GET", "/returns/failing-autoclosed")
    assert response.status == 500


@pytest.mark.asyncio
async def test_async_failure_with_bound_response(served):
    host, _ = served
    response = await host.request("GET", "/returns/failing-autoclosed-async")
    assert response.status == 500


@pytest.mark.asyncio
async def test_bound_response_disables_auto_close(served):
    host, ctrl = served
    response = await host.request("GET", "/returns/manual")
    assert ctrl.calls == 1
    assert not response.sent
    manual = await host.request("GET", "/returns/manual-send")
    assert (manual.status, manual.text) == (201, "created by hand")


@pytest.mark.asyncio
async def test_sync_values_and_none(served):
    host, _ = served
    assert (await host.request("GET", "/returns/sync-value")).json() == [1, 2, 3]
    nothing = await host.request("GET", "/returns/nothing")
    assert (nothing.status, nothing.text) == (200, "")


@pytest.mark.asyncio
async def test_client_error_raised_in_action(served):
    host, _ = served
    response = await host.request("GET", "/returns/client-error")
    assert (response.status, response.json()) == (422, {"message": "Nope"})


@pytest.mark.asyncio
async def test_missing_required_field_never_calls_action(served):
    host, ctrl = served
    response = await host.request("POST", "/returns/users", body={"age": 3})
    assert response.status == 400
    assert response.json() == {"message": "Missing property: name"}
    assert ctrl.calls == 0


@pytest.mark.asyncio
async def test_optional_field_absent(served):
    host, ctrl = served
    response = await host.request("POST", "/returns/users", body={"name": "ada"})
    assert response.json() == {"name": "ada", "age": None}
    assert ctrl.calls == 1


@pytest.mark.asyncio
async def test_type_mismatch_is_500(served):
    host, ctrl = served
    response = await host.request("POST", "/returns/users", body={"name": 42})
    assert (response.status, response.text) == (500, "")
    assert ctrl.calls == 0


@pytest.mark.asyncio
async def test_missing_query_value_is_400(served):
    host, _ = served
    response = await host.request("GET", "/returns/get-promise")
    assert response.status == 400


@pytest.mark.asyncio
async def test_path_params_and_full_body(served):
    host, _ = served
    response = await host.request("PUT", "/returns/items/7", body={"name": "pen"})
    assert response.json() == {"id": 7, "name": "pen"}
    empty = await host.request("PUT", "/returns/items/7")
    assert (empty.status, empty.json()) == (400, {"message": "Empty Body"})
    deleted = await host.request("DELETE", "/returns/items/7")
    assert deleted.status == 200


@pytest.mark.asyncio
async def test_unknown_route_is_404(served):
    host, _ = served
    assert (await host.request("GET", "/returns/nowhere")).status == 404
    assert (await host.request("POST", "/returns/sync-value")).status == 404


@pytest.mark.asyncio
async def test_pending_action_does_not_block_other_requests(served):
    host, _ = served
    slow = asyncio.create_task(host.request("GET", "/returns/get-promise?value=1"))
    await asyncio.sleep(0)
    fast = await host.request("GET", "/returns/sync-value")
    assert fast.status == 200
    assert not slow.done()
    assert (await slow).json() == {"value": 1}


@pytest.mark.asyncio
async def test_namespace_registration():
    host = MemoryHost()
    NamespaceController().register(host, namespace="my-namespace")
    response = await host.request("GET", "/my-namespace/somectrl/test")
    assert response.status == 200
    assert response.json() == {"done": True}
