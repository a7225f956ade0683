import json

import httpx
import pytest

from fourmica_sdk.errors import RpcError
from fourmica_sdk.rpc import RpcProxy

PUBLIC_PARAMS = {
    "public_key": "0x" + "11" * 48,
    "contract_address": "0x0000000000000000000000000000000000000001",
    "ethereum_http_rpc_url": "https://eth.example.com",
    "eip712_name": "4Mica",
    "eip712_version": "1",
    "chain_id": 11155111,
}


class Recorder:
    def __init__(self, status=200, **kwargs):
        self.requests = []
        self.status = status
        self.kwargs = kwargs or {"json": []}

    def __call__(self, request):
        self.requests.append(request)
        return httpx.Response(self.status, **self.kwargs)


def make_proxy(recorder, **kwargs):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    return RpcProxy("https://core.example.com/", http_client=http_client, **kwargs), http_client


@pytest.mark.asyncio
async def test_get_public_params():
    recorder = Recorder(200, json=PUBLIC_PARAMS)
    proxy, http_client = make_proxy(recorder)
    try:
        params = await proxy.get_public_params()
    finally:
        await http_client.aclose()
    assert recorder.requests[0].url == "https://core.example.com/core/public-params"
    assert params.chain_id == 11155111
    assert params.eip712_name == "4Mica"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "call, method, path",
    [
        (lambda p: p.list_settled_tabs("0xabc"), "GET", "/core/recipients/0xabc/settled-tabs"),
        (
            lambda p: p.list_pending_remunerations("0xabc"),
            "GET",
            "/core/recipients/0xabc/pending-remunerations",
        ),
        (lambda p: p.get_tab(255), "GET", "/core/tabs/0xff"),
        (lambda p: p.get_tab_guarantees(1), "GET", "/core/tabs/0x1/guarantees"),
        (lambda p: p.get_latest_guarantee(1), "GET", "/core/tabs/0x1/guarantees/latest"),
        (lambda p: p.get_guarantee(1, 3), "GET", "/core/tabs/0x1/guarantees/3"),
        (lambda p: p.list_recipient_payments("0xabc"), "GET", "/core/recipients/0xabc/payments"),
        (
            lambda p: p.get_collateral_events_for_tab(16),
            "GET",
            "/core/tabs/0x10/collateral-events",
        ),
        (
            lambda p: p.get_user_asset_balance("0xu", "0xa"),
            "GET",
            "/core/users/0xu/assets/0xa",
        ),
        (lambda p: p.issue_guarantee({"a": 1}), "POST", "/core/guarantees"),
        (lambda p: p.create_payment_tab({"a": 1}), "POST", "/core/payment-tabs"),
        (lambda p: p.list_admin_api_keys(), "GET", "/core/admin/api-keys"),
        (lambda p: p.create_admin_api_key({"name": "ops"}), "POST", "/core/admin/api-keys"),
        (lambda p: p.revoke_admin_api_key("k1"), "POST", "/core/admin/api-keys/k1/revoke"),
        (
            lambda p: p.update_user_suspension("0xu", True),
            "POST",
            "/core/users/0xu/suspension",
        ),
    ],
)
async def test_endpoint_paths(call, method, path):
    recorder = Recorder()
    proxy, http_client = make_proxy(recorder)
    try:
        await call(proxy)
    finally:
        await http_client.aclose()
    request = recorder.requests[0]
    assert request.method == method
    assert request.url.path == path


@pytest.mark.asyncio
async def test_list_recipient_tabs_sends_settlement_filter():
    recorder = Recorder()
    proxy, http_client = make_proxy(recorder)
    try:
        await proxy.list_recipient_tabs("0xabc", ["pending", "settled"])
        await proxy.list_recipient_tabs("0xabc")
    finally:
        await http_client.aclose()
    filtered, unfiltered = recorder.requests
    assert filtered.url.params.get_list("settlementStatus") == ["pending", "settled"]
    assert "settlementStatus" not in unfiltered.url.params


@pytest.mark.asyncio
async def test_post_sends_json_body():
    recorder = Recorder(200, json={"id": "0x1"})
    proxy, http_client = make_proxy(recorder)
    try:
        result = await proxy.update_user_suspension("0xu", False)
    finally:
        await http_client.aclose()
    assert json.loads(recorder.requests[0].content) == {"suspended": False}
    assert result == {"id": "0x1"}


@pytest.mark.asyncio
async def test_admin_key_and_bearer_headers():
    recorder = Recorder()
    proxy, http_client = make_proxy(recorder, admin_api_key="secret")
    proxy.with_bearer_token("tok")
    try:
        await proxy.list_settled_tabs("0xabc")
    finally:
        await http_client.aclose()
    headers = recorder.requests[0].headers
    assert headers["x-api-key"] == "secret"
    assert headers["authorization"] == "Bearer tok"


@pytest.mark.asyncio
async def test_token_provider_is_awaited_per_request():
    recorder = Recorder()
    tokens = iter(["first", "second"])

    async def provider():
        return next(tokens)

    proxy, http_client = make_proxy(recorder)
    proxy.with_token_provider(provider)
    try:
        await proxy.list_settled_tabs("0xabc")
        await proxy.list_settled_tabs("0xabc")
    finally:
        await http_client.aclose()
    assert [r.headers["authorization"] for r in recorder.requests] == [
        "Bearer first",
        "Bearer second",
    ]


@pytest.mark.asyncio
async def test_no_auth_headers_by_default():
    recorder = Recorder()
    proxy, http_client = make_proxy(recorder)
    try:
        await proxy.list_settled_tabs("0xabc")
    finally:
        await http_client.aclose()
    assert "authorization" not in recorder.requests[0].headers
    assert "x-api-key" not in recorder.requests[0].headers


@pytest.mark.asyncio
async def test_http_error_carries_status_and_body():
    recorder = Recorder(404, json={"error": "tab not found"})
    proxy, http_client = make_proxy(recorder)
    try:
        with pytest.raises(RpcError) as excinfo:
            await proxy.get_tab(1)
    finally:
        await http_client.aclose()
    assert excinfo.value.status == 404
    assert excinfo.value.body == {"error": "tab not found"}
    assert "tab not found" in str(excinfo.value)


@pytest.mark.asyncio
async def test_invalid_json_is_rpc_error():
    recorder = Recorder(200, text="oops")
    proxy, http_client = make_proxy(recorder)
    try:
        with pytest.raises(RpcError, match="invalid JSON"):
            await proxy.get_tab(1)
    finally:
        await http_client.aclose()


@pytest.mark.asyncio
async def test_transport_error_is_rpc_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    proxy, http_client = make_proxy(handler)
    try:
        with pytest.raises(RpcError, match="failed"):
            await proxy.get_tab(1)
    finally:
        await http_client.aclose()
