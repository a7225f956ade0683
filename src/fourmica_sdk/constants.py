"""Shared constants for the 4mica SDK."""

from __future__ import annotations

from typing import Dict, List

from .errors import UnsupportedNetworkError

DEFAULT_RPC_URL = "https://api.4mica.xyz/"

SUPPORTED_NETWORKS: List[str] = ["eip155:11155111", "eip155:80002"]

DEFAULT_RPC_URLS: Dict[str, str] = {
    "eip155:11155111": "https://ethereum.sepolia.api.4mica.xyz",
    "eip155:80002": "https://api.4mica.xyz",
}

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DEFAULT_AUTH_REFRESH_MARGIN_SECS = 60.0

ADMIN_API_KEY_HEADER = "x-api-key"

EIP712_DEFAULT_NAME = "4Mica"
EIP712_DEFAULT_VERSION = "1"

ENV_RPC_URL = "4MICA_RPC_URL"
ENV_WALLET_PRIVATE_KEY = "4MICA_WALLET_PRIVATE_KEY"
ENV_ETHEREUM_HTTP_RPC_URL = "4MICA_ETHEREUM_HTTP_RPC_URL"
ENV_CONTRACT_ADDRESS = "4MICA_CONTRACT_ADDRESS"
ENV_ADMIN_API_KEY = "4MICA_ADMIN_API_KEY"
ENV_AUTH_URL = "4MICA_AUTH_URL"
ENV_AUTH_REFRESH_MARGIN_SECS = "4MICA_AUTH_REFRESH_MARGIN_SECS"
ENV_BEARER_TOKEN = "4MICA_BEARER_TOKEN"


def get_default_rpc_url(network: str) -> str:
    """Return the 4mica core RPC URL for a CAIP-2 ``network`` id."""
    try:
        return DEFAULT_RPC_URLS[network]
    except KeyError as exc:
        raise UnsupportedNetworkError(f"No default RPC URL configured for network {network}") from exc
