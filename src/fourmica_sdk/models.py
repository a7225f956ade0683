"""Data models shared by the payment, guarantee and RPC layers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from .constants import ZERO_ADDRESS
from .serde import get_any, pick_fields
from .utils import normalize_address, parse_u256

U256Like = Union[int, str]


class SigningScheme(str, Enum):
    EIP712 = "eip712"
    EIP191 = "eip191"


@dataclass(frozen=True)
class PaymentSignature:
    signature: str
    scheme: SigningScheme


@dataclass(frozen=True)
class PaymentGuaranteeRequestClaims:
    """Unsigned claim a payer signs to request a guarantee on a tab."""

    user_address: str
    recipient_address: str
    tab_id: int
    amount: int
    timestamp: int
    asset_address: str = ZERO_ADDRESS
    req_id: int = 0

    @classmethod
    def new(
        cls,
        user_address: str,
        recipient_address: str,
        tab_id: U256Like,
        amount: U256Like,
        timestamp: int,
        erc20_token: Optional[str] = None,
        req_id: Optional[U256Like] = None,
    ) -> "PaymentGuaranteeRequestClaims":
        return cls(
            user_address=normalize_address(user_address),
            recipient_address=normalize_address(recipient_address),
            tab_id=parse_u256(tab_id),
            amount=parse_u256(amount),
            timestamp=int(timestamp),
            asset_address=normalize_address(erc20_token or ZERO_ADDRESS),
            req_id=parse_u256(req_id) if req_id is not None else 0,
        )


@dataclass(frozen=True)
class PaymentGuaranteeClaims:
    """Certified claim returned by the guarantee issuer."""

    domain: bytes
    user_address: str
    recipient_address: str
    tab_id: int
    req_id: int
    amount: int
    total_amount: int
    asset_address: str
    timestamp: int
    version: int = 1


@dataclass(frozen=True)
class BLSCert:
    claims: str
    signature: str


@dataclass(frozen=True)
class TabPaymentStatus:
    paid: int
    remunerated: bool
    asset: str


@dataclass(frozen=True)
class UserInfo:
    asset: str
    collateral: int
    withdrawal_request_amount: int
    withdrawal_request_timestamp: int


def _u256_or_zero(value: Any) -> int:
    return parse_u256(value if value is not None else 0)


def _int_or_zero(value: Any) -> int:
    return int(value) if value is not None else 0


TAB_INFO_FIELDS = {
    "tab_id": ("tab_id", "tabId"),
    "user_address": ("user_address", "userAddress"),
    "recipient_address": ("recipient_address", "recipientAddress"),
    "asset_address": ("asset_address", "assetAddress"),
    "start_timestamp": ("start_timestamp", "startTimestamp"),
    "ttl_seconds": ("ttl_seconds", "ttlSeconds"),
    "status": ("status",),
    "settlement_status": ("settlement_status", "settlementStatus"),
    "created_at": ("created_at", "createdAt"),
    "updated_at": ("updated_at", "updatedAt"),
}


@dataclass
class TabInfo:
    tab_id: int
    user_address: str
    recipient_address: str
    asset_address: str
    start_timestamp: int
    ttl_seconds: int
    status: str
    settlement_status: str
    created_at: int
    updated_at: int

    @classmethod
    def from_rpc(cls, raw: Dict[str, Any]) -> "TabInfo":
        f = pick_fields(raw, TAB_INFO_FIELDS)
        return cls(
            tab_id=_u256_or_zero(f["tab_id"]),
            user_address=str(f["user_address"] or ""),
            recipient_address=str(f["recipient_address"] or ""),
            asset_address=str(f["asset_address"] or ""),
            start_timestamp=_int_or_zero(f["start_timestamp"]),
            ttl_seconds=_int_or_zero(f["ttl_seconds"]),
            status=str(f["status"] or ""),
            settlement_status=str(f["settlement_status"] or ""),
            created_at=_int_or_zero(f["created_at"]),
            updated_at=_int_or_zero(f["updated_at"]),
        )


GUARANTEE_INFO_FIELDS = {
    "tab_id": ("tab_id", "tabId"),
    "req_id": ("req_id", "reqId"),
    "from_address": ("from_address", "fromAddress"),
    "to_address": ("to_address", "toAddress"),
    "asset_address": ("asset_address", "assetAddress"),
    "amount": ("amount",),
    "timestamp": ("start_timestamp", "startTimestamp", "timestamp"),
    "certificate": ("certificate",),
}


@dataclass
class GuaranteeInfo:
    tab_id: int
    req_id: int
    from_address: str
    to_address: str
    asset_address: str
    amount: int
    timestamp: int
    certificate: Optional[str] = None

    @classmethod
    def from_rpc(cls, raw: Dict[str, Any]) -> "GuaranteeInfo":
        f = pick_fields(raw, GUARANTEE_INFO_FIELDS)
        return cls(
            tab_id=_u256_or_zero(f["tab_id"]),
            req_id=_u256_or_zero(f["req_id"]),
            from_address=str(f["from_address"] or ""),
            to_address=str(f["to_address"] or ""),
            asset_address=str(f["asset_address"] or ""),
            amount=_u256_or_zero(f["amount"]),
            timestamp=_int_or_zero(f["timestamp"]),
            certificate=f["certificate"],
        )


@dataclass
class PendingRemunerationInfo:
    tab: TabInfo
    latest_guarantee: Optional[GuaranteeInfo] = None

    @classmethod
    def from_rpc(cls, raw: Dict[str, Any]) -> "PendingRemunerationInfo":
        latest = get_any(raw, "latest_guarantee", "latestGuarantee")
        return cls(
            tab=TabInfo.from_rpc(get_any(raw, "tab", default={})),
            latest_guarantee=GuaranteeInfo.from_rpc(latest) if latest else None,
        )


COLLATERAL_EVENT_FIELDS = {
    "id": ("id",),
    "user_address": ("user_address", "userAddress"),
    "asset_address": ("asset_address", "assetAddress"),
    "amount": ("amount",),
    "event_type": ("event_type", "eventType"),
    "tab_id": ("tab_id", "tabId"),
    "req_id": ("req_id", "reqId"),
    "tx_id": ("tx_id", "txId"),
    "created_at": ("created_at", "createdAt"),
}


@dataclass
class CollateralEventInfo:
    id: str
    user_address: str
    asset_address: str
    amount: int
    event_type: str
    tab_id: Optional[int] = None
    req_id: Optional[int] = None
    tx_id: Optional[str] = None
    created_at: int = 0

    @classmethod
    def from_rpc(cls, raw: Dict[str, Any]) -> "CollateralEventInfo":
        f = pick_fields(raw, COLLATERAL_EVENT_FIELDS)
        return cls(
            id=str(f["id"] or ""),
            user_address=str(f["user_address"] or ""),
            asset_address=str(f["asset_address"] or ""),
            amount=_u256_or_zero(f["amount"]),
            event_type=str(f["event_type"] or ""),
            tab_id=parse_u256(f["tab_id"]) if f["tab_id"] is not None else None,
            req_id=parse_u256(f["req_id"]) if f["req_id"] is not None else None,
            tx_id=f["tx_id"],
            created_at=_int_or_zero(f["created_at"]),
        )


ASSET_BALANCE_FIELDS = {
    "user_address": ("user_address", "userAddress"),
    "asset_address": ("asset_address", "assetAddress"),
    "total": ("total",),
    "locked": ("locked",),
    "version": ("version",),
    "updated_at": ("updated_at", "updatedAt"),
}


@dataclass
class AssetBalanceInfo:
    user_address: str
    asset_address: str
    total: int
    locked: int
    version: int
    updated_at: int

    @classmethod
    def from_rpc(cls, raw: Dict[str, Any]) -> "AssetBalanceInfo":
        f = pick_fields(raw, ASSET_BALANCE_FIELDS)
        return cls(
            user_address=str(f["user_address"] or ""),
            asset_address=str(f["asset_address"] or ""),
            total=_u256_or_zero(f["total"]),
            locked=_u256_or_zero(f["locked"]),
            version=_int_or_zero(f["version"]),
            updated_at=_int_or_zero(f["updated_at"]),
        )


RECIPIENT_PAYMENT_FIELDS = {
    "user_address": ("user_address", "userAddress"),
    "recipient_address": ("recipient_address", "recipientAddress"),
    "tx_hash": ("tx_hash", "txHash"),
    "amount": ("amount",),
    "verified": ("verified",),
    "finalized": ("finalized",),
    "failed": ("failed",),
    "created_at": ("created_at", "createdAt"),
}


@dataclass
class RecipientPaymentInfo:
    user_address: str
    recipient_address: str
    tx_hash: str
    amount: int
    verified: bool
    finalized: bool
    failed: bool
    created_at: int

    @classmethod
    def from_rpc(cls, raw: Dict[str, Any]) -> "RecipientPaymentInfo":
        f = pick_fields(raw, RECIPIENT_PAYMENT_FIELDS)
        return cls(
            user_address=str(f["user_address"] or ""),
            recipient_address=str(f["recipient_address"] or ""),
            tx_hash=str(f["tx_hash"] or ""),
            amount=_u256_or_zero(f["amount"]),
            verified=bool(f["verified"]),
            finalized=bool(f["finalized"]),
            failed=bool(f["failed"]),
            created_at=_int_or_zero(f["created_at"]),
        )
