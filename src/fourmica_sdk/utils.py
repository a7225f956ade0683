"""Numeric, address and hex normalization helpers."""

from __future__ import annotations

import binascii
import math
import re
from typing import Union
from urllib.parse import urlparse

from eth_utils import is_address, to_checksum_address

from .errors import ValidationError

U256_MAX = 2**256 - 1

# Decoders accept either a hex string (0x-prefixed or bare) or a bytes-like buffer.
HexInput = Union[str, bytes, bytearray, memoryview]

_PRIVATE_KEY_RE = re.compile(r"^[0-9a-fA-F]{64}$")
_U256_STRING_RE = re.compile(r"0[xX][0-9a-fA-F]+|[0-9]+")
_HEX_DIGITS_RE = re.compile(r"[0-9a-fA-F]*")


def validate_url(raw: str) -> str:
    if not isinstance(raw, str):
        raise ValidationError(f"invalid URL: {raw!r}")
    parsed = urlparse(raw)
    if not parsed.scheme or not parsed.netloc:
        raise ValidationError(f"invalid URL: {raw}")
    return raw


def normalize_private_key(raw: str) -> str:
    if not isinstance(raw, str):
        raise ValidationError("invalid private key (expected 32 byte hex)")
    key = raw.strip()
    if key.startswith(("0x", "0X")):
        key = key[2:]
    if not _PRIVATE_KEY_RE.match(key):
        raise ValidationError("invalid private key (expected 32 byte hex)")
    return "0x" + key.lower()


def normalize_address(raw: str) -> str:
    if not isinstance(raw, str):
        raise ValidationError(f"invalid address: {raw!r}")
    candidate = raw.strip()
    if is_address(candidate):
        return to_checksum_address(candidate)
    lower = candidate.lower()
    if is_address(lower):
        return to_checksum_address(lower)
    raise ValidationError(f"invalid address: {raw}")


def _parse_numeric_string(raw: str) -> int:
    text = raw.strip()
    if not text:
        raise ValidationError("u256 cannot be empty")
    # int() would also take underscores, signs and non-ASCII digits.
    if not _U256_STRING_RE.fullmatch(text):
        raise ValidationError(f"invalid u256 value: {raw!r}")
    if text[:2] in ("0x", "0X"):
        return int(text, 16)
    return int(text, 10)


def parse_u256(value: Union[int, float, str]) -> int:
    """Parse ``value`` into a non-negative integer that fits in 256 bits."""
    if isinstance(value, bool):
        raise ValidationError(f"unsupported numeric type: {type(value).__name__}")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValidationError("invalid integer")
        parsed = int(value)
    elif isinstance(value, str):
        parsed = _parse_numeric_string(value)
    else:
        raise ValidationError(f"unsupported numeric type: {type(value).__name__}")

    if parsed < 0:
        raise ValidationError("u256 cannot be negative")
    if parsed > U256_MAX:
        raise ValidationError("u256 overflow")
    return parsed


def serialize_u256(value: Union[int, float, str]) -> str:
    return hex(parse_u256(value))


def hex_to_bytes(value: HexInput) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        text = value.strip()
        if text.startswith(("0x", "0X")):
            text = text[2:]
        if not _HEX_DIGITS_RE.fullmatch(text):
            raise ValidationError(f"invalid hex string: {value[:16]!r}")
        try:
            return bytes.fromhex(text)
        except ValueError as exc:
            raise ValidationError(f"invalid hex string: {value[:16]!r}") from exc
    raise ValidationError(f"expected hex string or bytes, got {type(value).__name__}")


def bytes_to_hex(data: Union[bytes, bytearray, memoryview]) -> str:
    return "0x" + binascii.hexlify(bytes(data)).decode("ascii")
