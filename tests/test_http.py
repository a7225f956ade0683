import httpx
import pytest

from fourmica_sdk.http import extract_error_message, normalize_base_url, request_json


class DecodeFailure(Exception):
    pass


class HttpFailure(Exception):
    def __init__(self, message, status, body):
        super().__init__(message)
        self.status = status
        self.body = body


def _decode_error(message, response):
    return DecodeFailure(message)


def _http_error(message, response, body):
    return HttpFailure(message, response.status_code, body)


async def _call(handler, **kwargs):
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        return await request_json(
            client,
            "GET",
            "https://core.example.com/thing",
            decode_error=_decode_error,
            http_error=_http_error,
            **kwargs,
        )


def test_normalize_base_url_strips_one_trailing_slash():
    assert normalize_base_url("https://x.com/") == "https://x.com"
    assert normalize_base_url("https://x.com") == "https://x.com"
    assert normalize_base_url("https://x.com//") == "https://x.com/"


def test_extract_error_message():
    assert extract_error_message({"error": "bad", "message": "ignored"}) == "bad"
    assert extract_error_message({"message": "worse"}) == "worse"
    assert extract_error_message({"code": 7}) == '{"code": 7}'
    assert extract_error_message("  plain text \n") == "plain text"
    assert extract_error_message(None) == "unknown error"
    assert extract_error_message("   ") == "unknown error"


@pytest.mark.asyncio
async def test_returns_decoded_json():
    payload = await _call(lambda request: httpx.Response(200, json={"ok": True}))
    assert payload == {"ok": True}


@pytest.mark.asyncio
async def test_non_2xx_includes_status_and_server_message():
    with pytest.raises(HttpFailure) as excinfo:
        await _call(lambda request: httpx.Response(422, json={"error": "bad amount"}))
    assert str(excinfo.value) == "422: bad amount"
    assert excinfo.value.status == 422
    assert excinfo.value.body == {"error": "bad amount"}


@pytest.mark.asyncio
async def test_non_2xx_with_text_body():
    with pytest.raises(HttpFailure) as excinfo:
        await _call(lambda request: httpx.Response(502, text="bad gateway"))
    assert str(excinfo.value) == "502: bad gateway"
    assert excinfo.value.body == "bad gateway"


@pytest.mark.asyncio
async def test_invalid_json_is_decode_error():
    with pytest.raises(DecodeFailure, match="invalid JSON response"):
        await _call(lambda request: httpx.Response(200, text="<html>"))


@pytest.mark.asyncio
async def test_empty_body_rejected_unless_allowed():
    with pytest.raises(DecodeFailure, match="empty response body"):
        await _call(lambda request: httpx.Response(200))
    assert await _call(lambda request: httpx.Response(204), allow_empty_ok=True) is None


@pytest.mark.asyncio
async def test_transport_errors_propagate():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(httpx.ConnectError):
        await _call(handler)
