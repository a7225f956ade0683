"""Python client SDK for the 4mica payment network."""

from __future__ import annotations

from .auth import (
    AuthClient,
    AuthNonceResponse,
    AuthSession,
    AuthTokens,
    SiweTemplate,
    build_siwe_message,
)
from .bls import signature_to_words, signature_to_words_async
from .client import Client, RecipientClient, UserClient
from .config import Config, ConfigBuilder
from .constants import DEFAULT_RPC_URLS, SUPPORTED_NETWORKS, get_default_rpc_url
from .contract import ContractGateway, TxReceiptWaitOptions
from .errors import (
    AuthApiError,
    AuthConfigError,
    AuthDecodeError,
    AuthError,
    AuthMissingConfigError,
    AuthTransportError,
    AuthUrlError,
    ClientInitializationError,
    ConfigError,
    ContractError,
    FourMicaError,
    RpcError,
    SigningError,
    UnsupportedNetworkError,
    ValidationError,
    VerificationError,
    X402Error,
)
from .guarantee import decode_guarantee_claims, encode_guarantee_claims
from .models import (
    AssetBalanceInfo,
    BLSCert,
    CollateralEventInfo,
    GuaranteeInfo,
    PaymentGuaranteeClaims,
    PaymentGuaranteeRequestClaims,
    PaymentSignature,
    PendingRemunerationInfo,
    RecipientPaymentInfo,
    SigningScheme,
    TabInfo,
    TabPaymentStatus,
    UserInfo,
)
from .payment import build_payment_payload, serialize_payment_claims
from .rpc import RpcProxy
from .signing import CorePublicParameters, PaymentSigner
from .utils import normalize_address, parse_u256, serialize_u256
from .x402 import (
    PaymentRequirementsV1,
    PaymentRequirementsV2,
    TabResponse,
    X402Flow,
    X402PaymentRequired,
    X402ResourceInfo,
    X402SettledPayment,
    X402SignedPayment,
)

__all__ = [
    "AssetBalanceInfo",
    "AuthApiError",
    "AuthClient",
    "AuthConfigError",
    "AuthDecodeError",
    "AuthError",
    "AuthMissingConfigError",
    "AuthNonceResponse",
    "AuthSession",
    "AuthTokens",
    "AuthTransportError",
    "AuthUrlError",
    "BLSCert",
    "Client",
    "ClientInitializationError",
    "CollateralEventInfo",
    "Config",
    "ConfigBuilder",
    "ConfigError",
    "ContractError",
    "ContractGateway",
    "CorePublicParameters",
    "DEFAULT_RPC_URLS",
    "FourMicaError",
    "GuaranteeInfo",
    "PaymentGuaranteeClaims",
    "PaymentGuaranteeRequestClaims",
    "PaymentRequirementsV1",
    "PaymentRequirementsV2",
    "PaymentSignature",
    "PaymentSigner",
    "PendingRemunerationInfo",
    "RecipientClient",
    "RecipientPaymentInfo",
    "RpcError",
    "RpcProxy",
    "SUPPORTED_NETWORKS",
    "SigningError",
    "SigningScheme",
    "SiweTemplate",
    "TabInfo",
    "TabPaymentStatus",
    "TabResponse",
    "TxReceiptWaitOptions",
    "UnsupportedNetworkError",
    "UserClient",
    "UserInfo",
    "ValidationError",
    "VerificationError",
    "X402Error",
    "X402Flow",
    "X402PaymentRequired",
    "X402ResourceInfo",
    "X402SettledPayment",
    "X402SignedPayment",
    "build_payment_payload",
    "build_siwe_message",
    "decode_guarantee_claims",
    "encode_guarantee_claims",
    "get_default_rpc_url",
    "normalize_address",
    "parse_u256",
    "serialize_payment_claims",
    "serialize_u256",
    "signature_to_words",
    "signature_to_words_async",
]
