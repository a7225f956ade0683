"""Async client for the 4mica core ``/core/...`` HTTP API."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import httpx

from .constants import ADMIN_API_KEY_HEADER
from .errors import RpcError
from .http import normalize_base_url, request_json
from .signing import CorePublicParameters
from .utils import serialize_u256

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str]]


def _http_error(message: str, response: httpx.Response, body: Any) -> RpcError:
    return RpcError(message, status=response.status_code, body=body)


def _decode_error(message: str, response: httpx.Response) -> RpcError:
    return RpcError(message, status=response.status_code)


class RpcProxy:
    def __init__(
        self,
        endpoint: str,
        admin_api_key: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        bearer_token: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
    ) -> None:
        self._base_url = normalize_base_url(endpoint)
        self._admin_api_key = admin_api_key
        self._bearer_token = bearer_token
        self._token_provider = token_provider
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient()

    def with_bearer_token(self, token: Optional[str]) -> "RpcProxy":
        self._bearer_token = token
        return self

    def with_token_provider(self, provider: Optional[TokenProvider]) -> "RpcProxy":
        self._token_provider = provider
        return self

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self._admin_api_key:
            headers[ADMIN_API_KEY_HEADER] = self._admin_api_key
        token = self._bearer_token
        if self._token_provider is not None:
            token = await self._token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        logger.debug("core rpc %s %s", method, path)
        try:
            return await request_json(
                self._http,
                method,
                f"{self._base_url}{path}",
                json_body=body,
                params=params,
                headers=await self._headers(),
                decode_error=_decode_error,
                http_error=_http_error,
            )
        except httpx.HTTPError as exc:
            raise RpcError(f"request to {path} failed: {exc}") from exc

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def _post(self, path: str, body: Dict[str, Any]) -> Any:
        return await self._request("POST", path, body=body)

    async def get_public_params(self) -> CorePublicParameters:
        return CorePublicParameters.from_rpc(await self._get("/core/public-params"))

    async def issue_guarantee(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._post("/core/guarantees", body)

    async def create_payment_tab(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._post("/core/payment-tabs", body)

    async def list_settled_tabs(self, recipient_address: str) -> List[Dict[str, Any]]:
        return await self._get(f"/core/recipients/{recipient_address}/settled-tabs")

    async def list_pending_remunerations(self, recipient_address: str) -> List[Dict[str, Any]]:
        return await self._get(f"/core/recipients/{recipient_address}/pending-remunerations")

    async def get_tab(self, tab_id: int) -> Optional[Dict[str, Any]]:
        return await self._get(f"/core/tabs/{serialize_u256(tab_id)}")

    async def list_recipient_tabs(
        self, recipient_address: str, settlement_statuses: Optional[Sequence[str]] = None
    ) -> List[Dict[str, Any]]:
        params = {"settlementStatus": list(settlement_statuses)} if settlement_statuses else None
        return await self._get(f"/core/recipients/{recipient_address}/tabs", params=params)

    async def get_tab_guarantees(self, tab_id: int) -> List[Dict[str, Any]]:
        return await self._get(f"/core/tabs/{serialize_u256(tab_id)}/guarantees")

    async def get_latest_guarantee(self, tab_id: int) -> Optional[Dict[str, Any]]:
        return await self._get(f"/core/tabs/{serialize_u256(tab_id)}/guarantees/latest")

    async def get_guarantee(self, tab_id: int, req_id: int) -> Optional[Dict[str, Any]]:
        return await self._get(f"/core/tabs/{serialize_u256(tab_id)}/guarantees/{int(req_id)}")

    async def list_recipient_payments(self, recipient_address: str) -> List[Dict[str, Any]]:
        return await self._get(f"/core/recipients/{recipient_address}/payments")

    async def get_collateral_events_for_tab(self, tab_id: int) -> List[Dict[str, Any]]:
        return await self._get(f"/core/tabs/{serialize_u256(tab_id)}/collateral-events")

    async def get_user_asset_balance(
        self, user_address: str, asset_address: str
    ) -> Optional[Dict[str, Any]]:
        return await self._get(f"/core/users/{user_address}/assets/{asset_address}")

    # Admin endpoints; require an admin API key.

    async def update_user_suspension(self, user_address: str, suspended: bool) -> Any:
        return await self._post(f"/core/users/{user_address}/suspension", {"suspended": suspended})

    async def create_admin_api_key(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._post("/core/admin/api-keys", body)

    async def list_admin_api_keys(self) -> List[Dict[str, Any]]:
        return await self._get("/core/admin/api-keys")

    async def revoke_admin_api_key(self, key_id: str) -> Any:
        return await self._post(f"/core/admin/api-keys/{key_id}/revoke", {})
