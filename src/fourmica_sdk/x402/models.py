"""x402 payment requirement and envelope models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import X402Error
from ..models import PaymentSignature
from ..serde import get_any, is_record


def _require(raw: Dict[str, Any], label: str, *keys: str) -> str:
    value = get_any(raw, *keys)
    if value is None or value == "":
        raise X402Error(f"payment requirements missing {label}")
    return str(value)


def _extra(raw: Dict[str, Any]) -> Dict[str, Any]:
    extra = raw.get("extra")
    return dict(extra) if is_record(extra) else {}


@dataclass
class PaymentRequirementsV1:
    scheme: str
    network: str
    max_amount_required: str
    pay_to: str
    asset: str
    resource: Optional[str] = None
    description: Optional[str] = None
    mime_type: Optional[str] = None
    output_schema: Any = None
    max_timeout_seconds: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "PaymentRequirementsV1":
        timeout = get_any(raw, "maxTimeoutSeconds", "max_timeout_seconds")
        return cls(
            scheme=_require(raw, "scheme", "scheme"),
            network=_require(raw, "network", "network"),
            max_amount_required=_require(
                raw, "maxAmountRequired", "maxAmountRequired", "max_amount_required"
            ),
            pay_to=_require(raw, "payTo", "payTo", "pay_to"),
            asset=_require(raw, "asset", "asset"),
            resource=get_any(raw, "resource"),
            description=get_any(raw, "description"),
            mime_type=get_any(raw, "mimeType", "mime_type"),
            output_schema=get_any(raw, "outputSchema", "output_schema"),
            max_timeout_seconds=int(timeout) if timeout is not None else None,
            extra=_extra(raw),
        )

    @property
    def amount(self) -> str:
        return self.max_amount_required

    @property
    def tab_endpoint(self) -> Optional[str]:
        return self.extra.get("tabEndpoint")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "scheme": self.scheme,
            "network": self.network,
            "maxAmountRequired": self.max_amount_required,
            "payTo": self.pay_to,
            "asset": self.asset,
        }
        optional = {
            "resource": self.resource,
            "description": self.description,
            "mimeType": self.mime_type,
            "outputSchema": self.output_schema,
            "maxTimeoutSeconds": self.max_timeout_seconds,
        }
        out.update({k: v for k, v in optional.items() if v is not None})
        if self.extra:
            out["extra"] = dict(self.extra)
        return out


@dataclass
class PaymentRequirementsV2:
    scheme: str
    network: str
    asset: str
    amount: str
    pay_to: str
    max_timeout_seconds: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "PaymentRequirementsV2":
        timeout = get_any(raw, "maxTimeoutSeconds", "max_timeout_seconds")
        return cls(
            scheme=_require(raw, "scheme", "scheme"),
            network=_require(raw, "network", "network"),
            asset=_require(raw, "asset", "asset"),
            amount=_require(raw, "amount", "amount", "maxAmountRequired"),
            pay_to=_require(raw, "payTo", "payTo", "pay_to"),
            max_timeout_seconds=int(timeout) if timeout is not None else None,
            extra=_extra(raw),
        )

    @property
    def tab_endpoint(self) -> Optional[str]:
        return self.extra.get("tabEndpoint")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "scheme": self.scheme,
            "network": self.network,
            "asset": self.asset,
            "amount": self.amount,
            "payTo": self.pay_to,
        }
        if self.max_timeout_seconds is not None:
            out["maxTimeoutSeconds"] = self.max_timeout_seconds
        if self.extra:
            out["extra"] = dict(self.extra)
        return out


@dataclass
class X402ResourceInfo:
    url: str
    description: str = ""
    mime_type: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "description": self.description, "mimeType": self.mime_type}


@dataclass
class X402PaymentRequired:
    x402_version: int
    resource: X402ResourceInfo
    accepts: List[PaymentRequirementsV2]
    error: Optional[str] = None
    extensions: Optional[Dict[str, Any]] = None

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "X402PaymentRequired":
        resource = get_any(raw, "resource", default={})
        return cls(
            x402_version=int(get_any(raw, "x402Version", "x402_version", default=2)),
            resource=X402ResourceInfo(
                url=str(resource.get("url") or ""),
                description=str(resource.get("description") or ""),
                mime_type=str(get_any(resource, "mimeType", "mime_type", default="")),
            ),
            accepts=[PaymentRequirementsV2.from_raw(r) for r in raw.get("accepts") or []],
            error=raw.get("error"),
            extensions=raw.get("extensions"),
        )


@dataclass
class TabResponse:
    tab_id: str
    user_address: str
    next_req_id: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "TabResponse":
        if not is_record(payload):
            raise X402Error("tab resolution returned a non-object body")
        tab_id = get_any(payload, "tabId", "tab_id")
        user_address = get_any(payload, "userAddress", "user_address")
        next_req_id = get_any(payload, "nextReqId", "next_req_id", "reqId", "req_id")
        if tab_id is None or not user_address:
            raise X402Error("tab response missing tabId or userAddress")
        return cls(
            tab_id=str(tab_id),
            user_address=str(user_address),
            next_req_id=str(next_req_id) if next_req_id is not None else None,
        )


@dataclass
class X402SignedPayment:
    header: str
    payload: Dict[str, Any]
    signature: PaymentSignature


@dataclass
class X402SettledPayment:
    payment: X402SignedPayment
    settlement: Any
