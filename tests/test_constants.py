import pytest

from fourmica_sdk.config import ConfigBuilder
from fourmica_sdk.constants import (
    DEFAULT_RPC_URL,
    DEFAULT_RPC_URLS,
    SUPPORTED_NETWORKS,
    get_default_rpc_url,
)
from fourmica_sdk.errors import ConfigError, UnsupportedNetworkError


def test_supported_networks_match_expected():
    assert SUPPORTED_NETWORKS == ["eip155:11155111", "eip155:80002"]


def test_default_rpc_urls_match_expected():
    assert DEFAULT_RPC_URLS["eip155:11155111"] == "https://ethereum.sepolia.api.4mica.xyz"
    assert DEFAULT_RPC_URLS["eip155:80002"] == "https://api.4mica.xyz"
    assert DEFAULT_RPC_URL == "https://api.4mica.xyz/"


def test_get_default_rpc_url_raises_on_unsupported_network():
    with pytest.raises(UnsupportedNetworkError):
        get_default_rpc_url("eip155:1")


def test_unsupported_network_is_a_config_error():
    with pytest.raises(ConfigError):
        ConfigBuilder().network("eip155:1")
