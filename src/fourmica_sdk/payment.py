"""Wire payloads for signed guarantee requests."""

from __future__ import annotations

from typing import Any, Dict, Optional, Union

from .models import PaymentGuaranteeRequestClaims, PaymentSignature, SigningScheme
from .utils import serialize_u256


def serialize_payment_claims(claims: PaymentGuaranteeRequestClaims) -> Dict[str, Any]:
    return {
        "version": "v1",
        "user_address": claims.user_address,
        "recipient_address": claims.recipient_address,
        "tab_id": serialize_u256(claims.tab_id),
        "req_id": serialize_u256(claims.req_id),
        "amount": serialize_u256(claims.amount),
        "asset_address": claims.asset_address,
        "timestamp": int(claims.timestamp),
    }


def build_payment_payload(
    claims: PaymentGuaranteeRequestClaims,
    signature: Union[PaymentSignature, str],
    scheme: Optional[SigningScheme] = None,
) -> Dict[str, Any]:
    if isinstance(signature, str):
        if scheme is None:
            raise ValueError("scheme is required when providing a signature string")
        signature = PaymentSignature(signature=signature, scheme=SigningScheme(scheme))
    return {
        "claims": serialize_payment_claims(claims),
        "signature": signature.signature,
        "scheme": signature.scheme.value,
    }
