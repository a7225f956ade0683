"""SDK configuration and its fluent builder."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from typing import Optional, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .constants import (
    DEFAULT_RPC_URL,
    ENV_ADMIN_API_KEY,
    ENV_AUTH_REFRESH_MARGIN_SECS,
    ENV_AUTH_URL,
    ENV_BEARER_TOKEN,
    ENV_CONTRACT_ADDRESS,
    ENV_ETHEREUM_HTTP_RPC_URL,
    ENV_RPC_URL,
    ENV_WALLET_PRIVATE_KEY,
    get_default_rpc_url,
)
from .errors import ConfigError, ValidationError
from .utils import normalize_address, normalize_private_key, validate_url


@dataclass(frozen=True)
class Config:
    rpc_url: str
    wallet_private_key: str = field(repr=False)
    ethereum_http_rpc_url: Optional[str] = None
    contract_address: Optional[str] = None
    admin_api_key: Optional[str] = field(default=None, repr=False)
    auth_url: Optional[str] = None
    auth_refresh_margin_secs: Optional[float] = None
    bearer_token: Optional[str] = field(default=None, repr=False)

    @property
    def signer(self) -> LocalAccount:
        return Account.from_key(self.wallet_private_key)

    @property
    def auth_enabled(self) -> bool:
        return self.auth_url is not None


def _parse_margin(raw: Union[str, float, int]) -> float:
    if isinstance(raw, bool):
        raise ConfigError("auth_refresh_margin_secs must be a number")
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid auth_refresh_margin_secs: {raw!r}") from exc
    if not math.isfinite(value) or value < 0:
        raise ConfigError("auth_refresh_margin_secs must be a non-negative number")
    return value


class ConfigBuilder:
    def __init__(self) -> None:
        self._rpc_url: Optional[str] = DEFAULT_RPC_URL
        self._wallet_private_key: Optional[str] = None
        self._ethereum_http_rpc_url: Optional[str] = None
        self._contract_address: Optional[str] = None
        self._admin_api_key: Optional[str] = None
        self._auth_url: Optional[str] = None
        self._auth_refresh_margin_secs: Optional[Union[str, float]] = None
        self._bearer_token: Optional[str] = None

    def rpc_url(self, value: str) -> "ConfigBuilder":
        self._rpc_url = value
        return self

    def network(self, network: str) -> "ConfigBuilder":
        """Point ``rpc_url`` at the default 4mica endpoint for a CAIP-2 network id."""
        self._rpc_url = get_default_rpc_url(network)
        return self

    def wallet_private_key(self, value: str) -> "ConfigBuilder":
        self._wallet_private_key = value
        return self

    def ethereum_http_rpc_url(self, value: str) -> "ConfigBuilder":
        self._ethereum_http_rpc_url = value
        return self

    def contract_address(self, value: str) -> "ConfigBuilder":
        self._contract_address = value
        return self

    def admin_api_key(self, value: str) -> "ConfigBuilder":
        self._admin_api_key = value
        return self

    def auth_url(self, value: str) -> "ConfigBuilder":
        self._auth_url = value
        return self

    def auth_refresh_margin_secs(self, value: float) -> "ConfigBuilder":
        self._auth_refresh_margin_secs = value
        return self

    def bearer_token(self, value: str) -> "ConfigBuilder":
        self._bearer_token = value
        return self

    def from_env(self) -> "ConfigBuilder":
        env = os.environ
        if env.get(ENV_RPC_URL):
            self._rpc_url = env[ENV_RPC_URL]
        if env.get(ENV_WALLET_PRIVATE_KEY):
            self._wallet_private_key = env[ENV_WALLET_PRIVATE_KEY]
        if env.get(ENV_ETHEREUM_HTTP_RPC_URL):
            self._ethereum_http_rpc_url = env[ENV_ETHEREUM_HTTP_RPC_URL]
        if env.get(ENV_CONTRACT_ADDRESS):
            self._contract_address = env[ENV_CONTRACT_ADDRESS]
        if env.get(ENV_ADMIN_API_KEY):
            self._admin_api_key = env[ENV_ADMIN_API_KEY]
        if env.get(ENV_AUTH_URL):
            self._auth_url = env[ENV_AUTH_URL]
        if env.get(ENV_AUTH_REFRESH_MARGIN_SECS):
            self._auth_refresh_margin_secs = env[ENV_AUTH_REFRESH_MARGIN_SECS]
        if env.get(ENV_BEARER_TOKEN):
            self._bearer_token = env[ENV_BEARER_TOKEN]
        return self

    def build(self) -> Config:
        if not self._wallet_private_key:
            raise ConfigError("missing wallet_private_key")
        if not self._rpc_url:
            raise ConfigError("missing rpc_url")

        margin = (
            _parse_margin(self._auth_refresh_margin_secs)
            if self._auth_refresh_margin_secs is not None
            else None
        )

        try:
            rpc_url = validate_url(self._rpc_url)
            private_key = normalize_private_key(self._wallet_private_key)
            ethereum_http_rpc_url = (
                validate_url(self._ethereum_http_rpc_url) if self._ethereum_http_rpc_url else None
            )
            contract_address = (
                normalize_address(self._contract_address) if self._contract_address else None
            )
            auth_url = validate_url(self._auth_url) if self._auth_url else None
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc

        if auth_url is None and margin is not None:
            auth_url = rpc_url

        return Config(
            rpc_url=rpc_url,
            wallet_private_key=private_key,
            ethereum_http_rpc_url=ethereum_http_rpc_url,
            contract_address=contract_address,
            admin_api_key=self._admin_api_key,
            auth_url=auth_url,
            auth_refresh_margin_secs=margin,
            bearer_token=self._bearer_token,
        )
