"""Payer-side operations: collateral, signing and tab payments."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Optional

from ..contract import TxReceiptWaitOptions
from ..models import (
    PaymentGuaranteeRequestClaims,
    PaymentSignature,
    SigningScheme,
    TabPaymentStatus,
    UserInfo,
)
from .shared import tab_status_from_rpc

if TYPE_CHECKING:
    from . import Client


class UserClient:
    def __init__(self, client: "Client") -> None:
        self._client = client

    @property
    def guarantee_domain(self) -> bytes:
        return self._client.guarantee_domain

    async def sign_payment(
        self,
        claims: PaymentGuaranteeRequestClaims,
        scheme: SigningScheme = SigningScheme.EIP712,
    ) -> PaymentSignature:
        return await self._client.signer.sign_request(self._client.params, claims, scheme)

    async def approve_erc20(
        self, token: str, amount: Any, wait_options: Optional[TxReceiptWaitOptions] = None
    ) -> Any:
        return await self._client.gateway.approve_erc20(token, amount, wait_options)

    async def deposit(
        self,
        amount: Any,
        erc20_token: Optional[str] = None,
        wait_options: Optional[TxReceiptWaitOptions] = None,
    ) -> Any:
        return await self._client.gateway.deposit(amount, erc20_token, wait_options)

    async def get_user(self) -> List[UserInfo]:
        return await self._client.gateway.get_user_assets()

    async def get_tab_payment_status(self, tab_id: Any) -> TabPaymentStatus:
        return tab_status_from_rpc(await self._client.gateway.get_payment_status(tab_id))

    async def pay_tab(
        self,
        tab_id: Any,
        req_id: Any,
        amount: Any,
        recipient_address: str,
        erc20_token: Optional[str] = None,
        wait_options: Optional[TxReceiptWaitOptions] = None,
    ) -> Any:
        gateway = self._client.gateway
        if erc20_token:
            return await gateway.pay_tab_erc20(
                tab_id, amount, erc20_token, recipient_address, wait_options
            )
        return await gateway.pay_tab_eth(tab_id, req_id, amount, recipient_address, wait_options)

    async def request_withdrawal(
        self,
        amount: Any,
        erc20_token: Optional[str] = None,
        wait_options: Optional[TxReceiptWaitOptions] = None,
    ) -> Any:
        return await self._client.gateway.request_withdrawal(amount, erc20_token, wait_options)

    async def cancel_withdrawal(
        self, erc20_token: Optional[str] = None, wait_options: Optional[TxReceiptWaitOptions] = None
    ) -> Any:
        return await self._client.gateway.cancel_withdrawal(erc20_token, wait_options)

    async def finalize_withdrawal(
        self, erc20_token: Optional[str] = None, wait_options: Optional[TxReceiptWaitOptions] = None
    ) -> Any:
        return await self._client.gateway.finalize_withdrawal(erc20_token, wait_options)
