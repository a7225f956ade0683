"""Versioned binary codec for payment guarantee claims.

Encoded claims are an ABI tuple wrapped in a ``(uint64 version, bytes claims)``
envelope. Decoding also accepts the bare tuple, which some issuers emit
without the envelope; the two forms are told apart by length only.
"""

from __future__ import annotations

from typing import Union

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import to_checksum_address

from .errors import ValidationError, VerificationError
from .models import PaymentGuaranteeClaims
from .utils import HexInput, bytes_to_hex, hex_to_bytes, normalize_address, parse_u256

GUARANTEE_CLAIMS_VERSION = 1

CLAIM_TYPES = [
    "bytes32",  # domain
    "uint256",  # tab_id
    "uint256",  # req_id
    "address",  # user
    "address",  # recipient
    "uint256",  # amount
    "uint256",  # total_amount
    "address",  # asset
    "uint64",  # timestamp
    "uint64",  # version
]
WRAPPER_TYPES = ["uint64", "bytes"]

BARE_CLAIMS_LENGTH = 32 * len(CLAIM_TYPES)
# version word + bytes offset word + bytes length word + tuple
WRAPPED_CLAIMS_LENGTH = 32 * 3 + BARE_CLAIMS_LENGTH


def _ensure_domain_bytes(domain: Union[str, bytes, bytearray, memoryview]) -> bytes:
    try:
        raw = hex_to_bytes(domain)
    except ValidationError as exc:
        raise VerificationError(f"invalid domain separator: {exc}") from exc
    if len(raw) != 32:
        raise VerificationError("domain separator must be 32 bytes")
    return raw


def _check_version(version: int) -> None:
    if version != GUARANTEE_CLAIMS_VERSION:
        raise VerificationError(f"unsupported guarantee claims version: {version}")


def encode_guarantee_claims(claims: PaymentGuaranteeClaims) -> str:
    _check_version(claims.version)
    domain = _ensure_domain_bytes(claims.domain)
    try:
        inner = abi_encode(
            CLAIM_TYPES,
            [
                domain,
                parse_u256(claims.tab_id),
                parse_u256(claims.req_id),
                normalize_address(claims.user_address),
                normalize_address(claims.recipient_address),
                parse_u256(claims.amount),
                parse_u256(claims.total_amount),
                normalize_address(claims.asset_address),
                int(claims.timestamp),
                int(claims.version),
            ],
        )
        encoded = abi_encode(WRAPPER_TYPES, [int(claims.version), inner])
    except ValidationError as exc:
        raise VerificationError(f"invalid guarantee claims: {exc}") from exc
    except (EncodingError, TypeError, ValueError) as exc:
        raise VerificationError(f"failed to encode guarantee claims: {exc}") from exc
    return bytes_to_hex(encoded)


def _decode_claims_tuple(inner: bytes) -> PaymentGuaranteeClaims:
    if len(inner) != BARE_CLAIMS_LENGTH:
        raise VerificationError(
            f"unexpected guarantee claims length: {len(inner)} bytes (expected {BARE_CLAIMS_LENGTH})"
        )
    try:
        (
            domain,
            tab_id,
            req_id,
            user,
            recipient,
            amount,
            total_amount,
            asset,
            timestamp,
            claims_version,
        ) = abi_decode(CLAIM_TYPES, inner)
    except DecodingError as exc:
        raise VerificationError(f"failed to decode guarantee claims: {exc}") from exc

    _check_version(claims_version)
    return PaymentGuaranteeClaims(
        domain=bytes(domain),
        user_address=to_checksum_address(user),
        recipient_address=to_checksum_address(recipient),
        tab_id=int(tab_id),
        req_id=int(req_id),
        amount=int(amount),
        total_amount=int(total_amount),
        asset_address=to_checksum_address(asset),
        timestamp=int(timestamp),
        version=int(claims_version),
    )


def decode_guarantee_claims(data: HexInput) -> PaymentGuaranteeClaims:
    try:
        raw = hex_to_bytes(data)
    except ValidationError as exc:
        raise VerificationError(f"invalid guarantee claims encoding: {exc}") from exc

    if len(raw) == BARE_CLAIMS_LENGTH:
        return _decode_claims_tuple(raw)

    if len(raw) != WRAPPED_CLAIMS_LENGTH:
        raise VerificationError(
            f"unexpected guarantee claims length: {len(raw)} bytes "
            f"(expected {BARE_CLAIMS_LENGTH} or {WRAPPED_CLAIMS_LENGTH})"
        )

    try:
        version, inner = abi_decode(WRAPPER_TYPES, raw)
    except DecodingError as exc:
        raise VerificationError(f"failed to decode guarantee claims envelope: {exc}") from exc
    _check_version(version)
    return _decode_claims_tuple(bytes(inner))
