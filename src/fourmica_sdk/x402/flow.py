"""Build and settle ``X-PAYMENT`` headers for 4mica credit payments."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Protocol, Union

import httpx

from ..errors import X402Error
from ..models import PaymentGuaranteeRequestClaims, PaymentSignature, SigningScheme
from ..payment import build_payment_payload
from ..utils import normalize_address, parse_u256
from .models import (
    PaymentRequirementsV1,
    PaymentRequirementsV2,
    TabResponse,
    X402PaymentRequired,
    X402ResourceInfo,
    X402SettledPayment,
    X402SignedPayment,
)

logger = logging.getLogger(__name__)

Requirements = Union[PaymentRequirementsV1, PaymentRequirementsV2]


class FlowSigner(Protocol):
    async def sign_payment(
        self, claims: PaymentGuaranteeRequestClaims, scheme: SigningScheme
    ) -> PaymentSignature: ...


def encode_payment_header(envelope: Dict[str, Any]) -> str:
    raw = json.dumps(envelope, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def decode_payment_header(header: str) -> Dict[str, Any]:
    if not header or not isinstance(header, str):
        raise X402Error("missing payment header")
    try:
        return json.loads(base64.b64decode(header, validate=True).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise X402Error(f"invalid payment header: {exc}") from exc


def _validate_scheme(scheme: str) -> None:
    if "4mica" not in scheme.lower():
        raise X402Error(f"invalid scheme: {scheme}")


class X402Flow:
    """Turns x402 payment requirements into signed 4mica payment headers."""

    def __init__(
        self,
        signer: FlowSigner,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._signer = signer
        self.http = http_client or httpx.AsyncClient()
        self._clock = clock

    @classmethod
    def from_client(cls, client: Any, http_client: Optional[httpx.AsyncClient] = None) -> "X402Flow":
        return cls(client.user, http_client=http_client)

    async def aclose(self) -> None:
        await self.http.aclose()

    async def sign_payment(
        self, payment_requirements: PaymentRequirementsV1, user_address: str
    ) -> X402SignedPayment:
        _validate_scheme(payment_requirements.scheme)
        tab = await self._request_tab(1, payment_requirements, user_address)
        claims = self._build_claims(payment_requirements, tab, user_address)
        signature = await self._signer.sign_payment(claims, SigningScheme.EIP712)
        payload = build_payment_payload(claims, signature)

        envelope = {
            "x402Version": 1,
            "scheme": payment_requirements.scheme,
            "network": payment_requirements.network,
            "payload": payload,
        }
        return X402SignedPayment(
            header=encode_payment_header(envelope), payload=payload, signature=signature
        )

    async def sign_payment_v2(
        self,
        payment_required: X402PaymentRequired,
        accepted: PaymentRequirementsV2,
        user_address: str,
    ) -> X402SignedPayment:
        _validate_scheme(accepted.scheme)
        tab = await self._request_tab(2, accepted, user_address, payment_required.resource)
        claims = self._build_claims(accepted, tab, user_address)
        signature = await self._signer.sign_payment(claims, SigningScheme.EIP712)
        payload = build_payment_payload(claims, signature)

        envelope = {
            "x402Version": 2,
            "accepted": accepted.to_dict(),
            "payload": payload,
            "resource": payment_required.resource.to_dict(),
        }
        return X402SignedPayment(
            header=encode_payment_header(envelope), payload=payload, signature=signature
        )

    async def settle_payment(
        self,
        payment: X402SignedPayment,
        payment_requirements: Union[Requirements, Dict[str, Any]],
        facilitator_url: str,
    ) -> X402SettledPayment:
        url = f"{facilitator_url.rstrip('/')}/settle"
        envelope = decode_payment_header(payment.header)
        requirements = (
            payment_requirements.to_dict()
            if hasattr(payment_requirements, "to_dict")
            else payment_requirements
        )
        body: Dict[str, Any] = {}
        if isinstance(envelope, dict) and envelope.get("x402Version"):
            body["x402Version"] = envelope["x402Version"]
        body.update(
            {
                "paymentHeader": payment.header,
                "paymentPayload": envelope,
                "paymentRequirements": requirements,
            }
        )

        try:
            response = await self.http.post(url, json=body)
        except httpx.HTTPError as exc:
            raise X402Error(f"settlement request failed: {exc}") from exc
        if not response.is_success:
            raise X402Error(f"settlement failed with status {response.status_code}: {response.text}")
        try:
            settlement = response.json() if response.text else {}
        except ValueError as exc:
            raise X402Error(f"invalid settlement response: {exc}") from exc
        logger.debug("Settled payment via %s", url)
        return X402SettledPayment(payment=payment, settlement=settlement)

    async def _request_tab(
        self,
        x402_version: int,
        requirements: Requirements,
        user_address: str,
        resource: Optional[X402ResourceInfo] = None,
    ) -> TabResponse:
        tab_endpoint = requirements.tab_endpoint
        if not tab_endpoint or not isinstance(tab_endpoint, str):
            raise X402Error("missing tabEndpoint in paymentRequirements.extra")

        body = {
            "x402Version": x402_version,
            "userAddress": user_address,
            "paymentRequirements": requirements.to_dict(),
            "resource": resource.to_dict() if resource is not None else None,
        }
        try:
            response = await self.http.post(tab_endpoint, json=body)
        except httpx.HTTPError as exc:
            raise X402Error(f"tab resolution failed: {exc}") from exc
        if not response.is_success:
            raise X402Error(f"tab resolution failed: {response.status_code} {response.text}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise X402Error(f"tab resolution returned invalid JSON: {exc}") from exc
        return TabResponse.from_payload(payload)

    def _build_claims(
        self, requirements: Requirements, tab: TabResponse, user_address: str
    ) -> PaymentGuaranteeRequestClaims:
        if tab.user_address.lower() != user_address.lower():
            raise X402Error(
                f"user mismatch in paymentRequirements: found {tab.user_address}, "
                f"expected {user_address}"
            )
        return PaymentGuaranteeRequestClaims.new(
            user_address,
            normalize_address(requirements.pay_to),
            parse_u256(tab.tab_id),
            parse_u256(requirements.amount),
            int(self._clock()),
            erc20_token=requirements.asset,
            req_id=parse_u256(tab.next_req_id) if tab.next_req_id is not None else 0,
        )
