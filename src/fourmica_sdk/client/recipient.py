"""Recipient-side operations: tabs, guarantees and remuneration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

from ..bls import signature_to_words_async
from ..contract import TxReceiptWaitOptions
from ..errors import ValidationError, VerificationError
from ..guarantee import decode_guarantee_claims
from ..models import (
    AssetBalanceInfo,
    BLSCert,
    CollateralEventInfo,
    GuaranteeInfo,
    PaymentGuaranteeClaims,
    PaymentGuaranteeRequestClaims,
    PendingRemunerationInfo,
    RecipientPaymentInfo,
    SigningScheme,
    TabInfo,
    TabPaymentStatus,
)
from ..payment import build_payment_payload
from ..serde import get_any
from ..utils import hex_to_bytes, normalize_address, parse_u256
from .shared import is_numeric_like, tab_status_from_rpc

if TYPE_CHECKING:
    from . import Client

logger = logging.getLogger(__name__)


def _describe(value: Any) -> str:
    if value is None:
        return "None"
    if isinstance(value, (list, tuple)):
        return f"{type(value).__name__}(len={len(value)})"
    if isinstance(value, dict):
        keys = list(value)
        more = ",..." if len(keys) > 6 else ""
        return f"dict(keys={','.join(map(str, keys[:6]))}{more})"
    if isinstance(value, str):
        if not value.strip():
            return "empty string"
        if value.strip().lower() == "0x":
            return "empty hex string"
        return "non-hex string"
    return type(value).__name__


def _require_hex(value: Any, field: str) -> bytes:
    if isinstance(value, str) and value.strip():
        try:
            raw = hex_to_bytes(value)
        except ValidationError:
            raw = b""
        if raw:
            return raw
    raise VerificationError(f"certificate.{field} must be a hex string, got {_describe(value)}")


class RecipientClient:
    def __init__(self, client: "Client") -> None:
        self._client = client

    @property
    def recipient_address(self) -> str:
        return normalize_address(self._client.signer.address)

    @property
    def guarantee_domain(self) -> bytes:
        return self._client.guarantee_domain

    async def create_tab(
        self,
        user_address: str,
        recipient_address: str,
        erc20_token: Optional[str] = None,
        ttl: Optional[int] = None,
    ) -> int:
        body = {
            "user_address": normalize_address(user_address),
            "recipient_address": normalize_address(recipient_address),
            "erc20_token": normalize_address(erc20_token) if erc20_token else None,
            "ttl": ttl,
        }
        result = await self._client.rpc.create_payment_tab(body)
        tab_id = get_any(result or {}, "id", "tabId", "tab_id")
        return parse_u256(tab_id if is_numeric_like(tab_id) else 0)

    async def get_tab_payment_status(self, tab_id: Any) -> TabPaymentStatus:
        return tab_status_from_rpc(await self._client.gateway.get_payment_status(tab_id))

    async def issue_payment_guarantee(
        self,
        claims: PaymentGuaranteeRequestClaims,
        signature: str,
        scheme: SigningScheme,
    ) -> BLSCert:
        payload = build_payment_payload(claims, signature, scheme)
        cert = await self._client.rpc.issue_guarantee(payload) or {}
        claims_hex = cert.get("claims")
        signature_hex = cert.get("signature")
        return BLSCert(
            claims=claims_hex if isinstance(claims_hex, str) else "",
            signature=signature_hex if isinstance(signature_hex, str) else "",
        )

    def verify_payment_guarantee(self, cert: BLSCert) -> PaymentGuaranteeClaims:
        claims_bytes = _require_hex(cert.claims, "claims")
        claims = decode_guarantee_claims(claims_bytes)
        if bytes(claims.domain) != bytes(self.guarantee_domain):
            raise VerificationError("guarantee domain mismatch")
        return claims

    async def remunerate(
        self, cert: BLSCert, wait_options: Optional[TxReceiptWaitOptions] = None
    ) -> Any:
        claims_bytes = _require_hex(cert.claims, "claims")
        _require_hex(cert.signature, "signature")
        claims = self.verify_payment_guarantee(cert)
        words = await signature_to_words_async(cert.signature)
        logger.info("Remunerating tab %s req %s", hex(claims.tab_id), hex(claims.req_id))
        return await self._client.gateway.remunerate(claims_bytes, words, wait_options)

    async def list_settled_tabs(self) -> List[TabInfo]:
        tabs = await self._client.rpc.list_settled_tabs(self.recipient_address)
        return [TabInfo.from_rpc(tab) for tab in tabs or []]

    async def list_pending_remunerations(self) -> List[PendingRemunerationInfo]:
        items = await self._client.rpc.list_pending_remunerations(self.recipient_address)
        return [PendingRemunerationInfo.from_rpc(item) for item in items or []]

    async def get_tab(self, tab_id: Any) -> Optional[TabInfo]:
        result = await self._client.rpc.get_tab(parse_u256(tab_id))
        return TabInfo.from_rpc(result) if result else None

    async def list_recipient_tabs(
        self, settlement_statuses: Optional[Sequence[str]] = None
    ) -> List[TabInfo]:
        tabs = await self._client.rpc.list_recipient_tabs(
            self.recipient_address, settlement_statuses
        )
        return [TabInfo.from_rpc(tab) for tab in tabs or []]

    async def get_tab_guarantees(self, tab_id: Any) -> List[GuaranteeInfo]:
        guarantees = await self._client.rpc.get_tab_guarantees(parse_u256(tab_id))
        return [GuaranteeInfo.from_rpc(g) for g in guarantees or []]

    async def get_latest_guarantee(self, tab_id: Any) -> Optional[GuaranteeInfo]:
        result = await self._client.rpc.get_latest_guarantee(parse_u256(tab_id))
        return GuaranteeInfo.from_rpc(result) if result else None

    async def get_guarantee(self, tab_id: Any, req_id: Any) -> Optional[GuaranteeInfo]:
        result = await self._client.rpc.get_guarantee(parse_u256(tab_id), parse_u256(req_id))
        return GuaranteeInfo.from_rpc(result) if result else None

    async def list_recipient_payments(self) -> List[RecipientPaymentInfo]:
        payments = await self._client.rpc.list_recipient_payments(self.recipient_address)
        return [RecipientPaymentInfo.from_rpc(p) for p in payments or []]

    async def get_collateral_events_for_tab(self, tab_id: Any) -> List[CollateralEventInfo]:
        events = await self._client.rpc.get_collateral_events_for_tab(parse_u256(tab_id))
        return [CollateralEventInfo.from_rpc(ev) for ev in events or []]

    async def get_user_asset_balance(
        self, user_address: str, asset_address: str
    ) -> Optional[AssetBalanceInfo]:
        balance = await self._client.rpc.get_user_asset_balance(user_address, asset_address)
        return AssetBalanceInfo.from_rpc(balance) if balance else None
