"""Sign-In with Ethereum sessions against the 4mica auth endpoint."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx
from eth_account import Account
from eth_account.messages import encode_defunct

from .constants import DEFAULT_AUTH_REFRESH_MARGIN_SECS
from .errors import (
    AuthApiError,
    AuthConfigError,
    AuthDecodeError,
    AuthMissingConfigError,
    AuthTransportError,
    AuthUrlError,
    ValidationError,
)
from .http import normalize_base_url, request_json
from .serde import get_any, is_record
from .singleflight import SingleFlight
from .utils import bytes_to_hex, normalize_private_key, validate_url

logger = logging.getLogger(__name__)

TOKEN_FIELDS = {
    "access_token": ("access_token", "accessToken"),
    "refresh_token": ("refresh_token", "refreshToken"),
    "expires_in": ("expires_in", "expiresIn"),
}

SIWE_TEMPLATE_FIELDS = {
    "domain": ("domain",),
    "uri": ("uri",),
    "chain_id": ("chain_id", "chainId"),
    "statement": ("statement",),
    "expiration": ("expiration",),
    "issued_at": ("issued_at", "issuedAt"),
}


@dataclass(frozen=True)
class AuthTokens:
    access_token: str
    refresh_token: str
    expires_in: float


@dataclass(frozen=True)
class SiweTemplate:
    domain: str
    uri: str
    chain_id: int
    statement: str
    expiration: str
    issued_at: str


@dataclass(frozen=True)
class AuthNonceResponse:
    nonce: str
    siwe: SiweTemplate


def _read_string(value: Any, label: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    raise AuthDecodeError(f"invalid auth response: missing {label}")


def _read_number(value: Any, label: str) -> float:
    parsed: Optional[float] = None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = float(value)
        except ValueError:
            parsed = None
    if parsed is None or not math.isfinite(parsed):
        raise AuthDecodeError(f"invalid auth response: missing {label}")
    return parsed


def parse_tokens(payload: Any, what: str = "token") -> AuthTokens:
    if not is_record(payload):
        raise AuthDecodeError(f"invalid auth response: {what} payload")
    return AuthTokens(
        access_token=_read_string(get_any(payload, *TOKEN_FIELDS["access_token"]), "access_token"),
        refresh_token=_read_string(
            get_any(payload, *TOKEN_FIELDS["refresh_token"]), "refresh_token"
        ),
        expires_in=_read_number(get_any(payload, *TOKEN_FIELDS["expires_in"]), "expires_in"),
    )


def parse_siwe_template(payload: Dict[str, Any]) -> SiweTemplate:
    def field(name: str) -> Any:
        return get_any(payload, *SIWE_TEMPLATE_FIELDS[name])

    return SiweTemplate(
        domain=_read_string(field("domain"), "siwe.domain"),
        uri=_read_string(field("uri"), "siwe.uri"),
        chain_id=int(_read_number(field("chain_id"), "siwe.chain_id")),
        statement=_read_string(field("statement"), "siwe.statement"),
        expiration=_read_string(field("expiration"), "siwe.expiration"),
        issued_at=_read_string(field("issued_at"), "siwe.issued_at"),
    )


def parse_nonce_response(payload: Any) -> AuthNonceResponse:
    if not is_record(payload):
        raise AuthDecodeError("invalid auth response: nonce payload")
    nonce = _read_string(payload.get("nonce"), "nonce")
    siwe = payload.get("siwe")
    if not is_record(siwe):
        raise AuthDecodeError("invalid auth response: missing siwe template")
    return AuthNonceResponse(nonce=nonce, siwe=parse_siwe_template(siwe))


def build_siwe_message(
    *,
    domain: str,
    address: str,
    statement: str,
    uri: str,
    chain_id: Any,
    nonce: str,
    issued_at: str,
    expiration: str,
) -> str:
    # The server verifies the signature over this exact text.
    return (
        f"{domain} wants you to sign in with your Ethereum account:\n"
        f"{address}\n"
        "\n"
        f"{statement}\n"
        "\n"
        f"URI: {uri}\n"
        "Version: 1\n"
        f"Chain ID: {chain_id}\n"
        f"Nonce: {nonce}\n"
        f"Issued At: {issued_at}\n"
        f"Expiration Time: {expiration}"
    )


def _api_error(message: str, response: httpx.Response, body: Any) -> AuthApiError:
    return AuthApiError(message, status=response.status_code, body=body)


def _decode_error(message: str, response: httpx.Response) -> AuthDecodeError:
    return AuthDecodeError(message)


class AuthClient:
    """Thin client for ``/auth/nonce``, ``/auth/verify``, ``/auth/refresh`` and ``/auth/logout``."""

    def __init__(self, endpoint: str, http_client: Optional[httpx.AsyncClient] = None) -> None:
        try:
            self._base_url = normalize_base_url(validate_url(endpoint))
        except ValidationError as exc:
            raise AuthUrlError(str(exc)) from exc
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _post(self, path: str, body: Dict[str, Any], *, allow_empty_ok: bool = False) -> Any:
        try:
            return await request_json(
                self._http,
                "POST",
                f"{self._base_url}{path}",
                json_body=body,
                decode_error=_decode_error,
                http_error=_api_error,
                allow_empty_ok=allow_empty_ok,
            )
        except httpx.HTTPError as exc:
            raise AuthTransportError(f"auth request failed: {exc}") from exc

    async def get_nonce(self, address: str) -> AuthNonceResponse:
        payload = await self._post("/auth/nonce", {"address": address})
        return parse_nonce_response(payload)

    async def verify(self, address: str, message: str, signature: str) -> AuthTokens:
        payload = await self._post(
            "/auth/verify", {"address": address, "message": message, "signature": signature}
        )
        return parse_tokens(payload, "verify")

    async def refresh(self, refresh_token: str) -> AuthTokens:
        payload = await self._post("/auth/refresh", {"refresh_token": refresh_token})
        return parse_tokens(payload, "refresh")

    async def logout(self, refresh_token: str) -> None:
        await self._post("/auth/logout", {"refresh_token": refresh_token}, allow_empty_ok=True)


@dataclass
class _CachedTokens:
    access_token: str
    refresh_token: str
    expires_at: float


class AuthSession:
    """Keeps a bearer token fresh for one wallet.

    ``access_token()`` returns the cached token until it is within
    ``refresh_margin_secs`` of expiry, then refreshes it. A refresh rejected
    with 401 falls back to a full SIWE login. Concurrent callers share the
    in-flight refresh or login.
    """

    def __init__(
        self,
        auth_url: Optional[str],
        private_key: str,
        refresh_margin_secs: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not auth_url:
            raise AuthMissingConfigError("missing auth_url")

        try:
            self._account = Account.from_key(normalize_private_key(private_key))
        except ValidationError as exc:
            raise AuthConfigError(str(exc)) from exc

        margin = DEFAULT_AUTH_REFRESH_MARGIN_SECS if refresh_margin_secs is None else refresh_margin_secs
        if isinstance(margin, bool) or not isinstance(margin, (int, float)):
            raise AuthConfigError("refresh margin must be a number")
        if not math.isfinite(margin) or margin < 0:
            raise AuthConfigError("refresh margin must be non-negative")
        self._refresh_margin = float(margin)
        self._client = AuthClient(auth_url, http_client)

        self._clock = clock
        self._tokens: Optional[_CachedTokens] = None
        self._token_flight: SingleFlight[str] = SingleFlight()
        self._login_flight: SingleFlight[AuthTokens] = SingleFlight()

    @property
    def address(self) -> str:
        return self._account.address

    async def aclose(self) -> None:
        await self._client.aclose()

    async def access_token(self) -> str:
        tokens = self._tokens
        if tokens is not None and not self._expiring_soon(tokens):
            return tokens.access_token
        return await self._token_flight.run(self._refresh_or_login)

    async def login(self) -> AuthTokens:
        return await self._login_flight.run(self._perform_login)

    async def logout(self) -> None:
        tokens = self._tokens
        if tokens is None or not tokens.refresh_token:
            return
        await self._client.logout(tokens.refresh_token)
        self._tokens = None
        logger.debug("Logged out %s", self.address)

    async def _refresh_or_login(self) -> str:
        tokens = self._tokens
        if tokens is not None and tokens.refresh_token:
            try:
                refreshed = await self._refresh(tokens.refresh_token)
                return refreshed.access_token
            except AuthApiError as exc:
                if exc.status != 401:
                    raise
                logger.info("Refresh token rejected (401); logging in again")
        fresh = await self.login()
        return fresh.access_token

    async def _refresh(self, refresh_token: str) -> AuthTokens:
        logger.debug("Refreshing access token for %s", self.address)
        tokens = await self._client.refresh(refresh_token)
        self._cache(tokens)
        return tokens

    async def _perform_login(self) -> AuthTokens:
        address = self.address
        logger.debug("Starting SIWE login for %s", address)
        nonce = await self._client.get_nonce(address)
        message = build_siwe_message(
            domain=nonce.siwe.domain,
            address=address,
            statement=nonce.siwe.statement,
            uri=nonce.siwe.uri,
            chain_id=nonce.siwe.chain_id,
            nonce=nonce.nonce,
            issued_at=nonce.siwe.issued_at,
            expiration=nonce.siwe.expiration,
        )
        signed = self._account.sign_message(encode_defunct(text=message))
        tokens = await self._client.verify(address, message, bytes_to_hex(signed.signature))
        self._cache(tokens)
        logger.debug("SIWE login finished for %s", address)
        return tokens

    def _cache(self, tokens: AuthTokens) -> None:
        self._tokens = _CachedTokens(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_at=self._clock() + tokens.expires_in,
        )

    def _expiring_soon(self, tokens: _CachedTokens) -> bool:
        return self._clock() + self._refresh_margin >= tokens.expires_at
