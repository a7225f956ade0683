"""Small JSON-over-HTTP helpers shared by the auth and core RPC clients."""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, Optional

import httpx

DecodeErrorFactory = Callable[[str, httpx.Response], Exception]
HttpErrorFactory = Callable[[str, httpx.Response, Any], Exception]


def normalize_base_url(endpoint: str) -> str:
    return endpoint[:-1] if endpoint.endswith("/") else endpoint


def extract_error_message(payload: Any) -> str:
    if isinstance(payload, dict):
        error = payload.get("error")
        message = payload.get("message")
        if isinstance(error, str) and error:
            return error
        if isinstance(message, str) and message:
            return message
        return json.dumps(payload)
    if isinstance(payload, str) and payload.strip():
        return payload.strip()
    return "unknown error"


def _parse_body(text: str) -> tuple[Any, Optional[ValueError]]:
    if not text:
        return None, None
    try:
        return json.loads(text), None
    except ValueError as exc:
        return text, exc


async def request_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    decode_error: DecodeErrorFactory,
    http_error: HttpErrorFactory,
    allow_empty_ok: bool = False,
    json_body: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Any:
    """Send a request and return its decoded JSON body.

    Transport failures surface as ``httpx.HTTPError`` for the caller to wrap.
    Non-2xx responses go through ``http_error`` with the decoded body (or raw
    text); an empty or non-JSON 2xx body goes through ``decode_error`` unless
    ``allow_empty_ok`` permits an empty one, in which case ``None`` is returned.
    """
    response = await client.request(method, url, json=json_body, params=params, headers=headers)
    payload, parse_error = _parse_body(response.text)

    if not response.is_success:
        message = f"{response.status_code}: {extract_error_message(payload)}"
        raise http_error(message, response, payload)

    if not response.text and not allow_empty_ok:
        raise decode_error(f"invalid JSON response from {response.url}: empty response body", response)

    if parse_error is not None:
        raise decode_error(f"invalid JSON response from {response.url}: {parse_error}", response)

    return payload
