"""x402 (HTTP 402) payment flow on top of 4mica guarantees."""

from __future__ import annotations

from .flow import FlowSigner, X402Flow, decode_payment_header, encode_payment_header
from .models import (
    PaymentRequirementsV1,
    PaymentRequirementsV2,
    TabResponse,
    X402PaymentRequired,
    X402ResourceInfo,
    X402SettledPayment,
    X402SignedPayment,
)

__all__ = [
    "FlowSigner",
    "PaymentRequirementsV1",
    "PaymentRequirementsV2",
    "TabResponse",
    "X402Flow",
    "X402PaymentRequired",
    "X402ResourceInfo",
    "X402SettledPayment",
    "X402SignedPayment",
    "decode_payment_header",
    "encode_payment_header",
]
