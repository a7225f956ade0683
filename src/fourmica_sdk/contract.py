"""Async web3 gateway to the Core4Mica contract."""

from __future__ import annotations

import asyncio
import logging
import os
import ssl
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import certifi
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3

from .abi import CORE4MICA_ABI, ERC20_ABI
from .errors import ContractError
from .models import TabPaymentStatus, UserInfo
from .utils import normalize_address, parse_u256

logger = logging.getLogger(__name__)


@dataclass
class TxReceiptWaitOptions:
    timeout: float = 120.0
    poll_latency: float = 0.1


def _ssl_request_kwargs() -> Dict[str, Any]:
    # aiohttp ignores the system store on some Python builds.
    cafile = os.getenv("SSL_CERT_FILE") or certifi.where()
    return {"ssl": ssl.create_default_context(cafile=cafile)}


class ContractGateway:
    """Reads and writes against Core4Mica with one wallet.

    Transaction submissions are serialized so concurrent writes from the same
    account never race for a nonce; a failed submission releases the slot for
    the next one.
    """

    def __init__(self, w3: AsyncWeb3, account: LocalAccount, contract_address: str) -> None:
        self.w3 = w3
        self.account = account
        self.contract = w3.eth.contract(
            address=normalize_address(contract_address), abi=CORE4MICA_ABI
        )
        self._erc20_cache: Dict[str, Any] = {}
        self._tx_lock = asyncio.Lock()

    @classmethod
    async def create(
        cls,
        rpc_url: str,
        account: LocalAccount,
        contract_address: str,
        chain_id: int,
    ) -> "ContractGateway":
        provider = AsyncHTTPProvider(rpc_url, request_kwargs=_ssl_request_kwargs())
        w3 = AsyncWeb3(provider)
        rpc_chain_id = await w3.eth.chain_id
        if int(rpc_chain_id) != int(chain_id):
            raise ContractError(f"Connected to chain {rpc_chain_id}, expected {chain_id}")
        return cls(w3, account, contract_address)

    @property
    def address(self) -> str:
        return self.account.address

    def _erc20(self, token: str) -> Any:
        token = normalize_address(token)
        if token not in self._erc20_cache:
            self._erc20_cache[token] = self.w3.eth.contract(address=token, abi=ERC20_ABI)
        return self._erc20_cache[token]

    async def _submit(self, build: Callable[[int], Awaitable[Dict[str, Any]]]) -> bytes:
        async with self._tx_lock:
            nonce = await self.w3.eth.get_transaction_count(self.address, "pending")
            tx = await build(nonce)
            signed = self.account.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        logger.info("Submitted transaction %s", bytes(tx_hash).hex())
        return tx_hash

    async def _wait(self, tx_hash: bytes, wait_options: Optional[TxReceiptWaitOptions]) -> Any:
        opts = wait_options or TxReceiptWaitOptions()
        receipt = await self.w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=opts.timeout, poll_latency=opts.poll_latency
        )
        logger.debug("Receipt for %s: status=%s", bytes(tx_hash).hex(), receipt.get("status"))
        return receipt

    async def _send_call(
        self,
        fn_call: Any,
        value: int = 0,
        wait_options: Optional[TxReceiptWaitOptions] = None,
    ) -> Any:
        async def build(nonce: int) -> Dict[str, Any]:
            params: Dict[str, Any] = {"from": self.address, "nonce": nonce}
            if value:
                params["value"] = value
            return await fn_call.build_transaction(params)

        return await self._wait(await self._submit(build), wait_options)

    async def get_guarantee_domain(self) -> bytes:
        return bytes(await self.contract.functions.guaranteeDomainSeparator().call())

    async def approve_erc20(
        self, token: str, amount: Any, wait_options: Optional[TxReceiptWaitOptions] = None
    ) -> Any:
        erc20 = self._erc20(token)
        call = erc20.functions.approve(self.contract.address, parse_u256(amount))
        return await self._send_call(call, wait_options=wait_options)

    async def deposit(
        self,
        amount: Any,
        erc20_token: Optional[str] = None,
        wait_options: Optional[TxReceiptWaitOptions] = None,
    ) -> Any:
        value = parse_u256(amount)
        if erc20_token:
            call = self.contract.functions.depositStablecoin(normalize_address(erc20_token), value)
            return await self._send_call(call, wait_options=wait_options)
        return await self._send_call(
            self.contract.functions.deposit(), value=value, wait_options=wait_options
        )

    async def get_user_assets(self) -> List[UserInfo]:
        rows = await self.contract.functions.getUserAllAssets(self.address).call()
        return [
            UserInfo(
                asset=asset,
                collateral=int(collateral),
                withdrawal_request_timestamp=int(withdrawal_ts),
                withdrawal_request_amount=int(withdrawal_amount),
            )
            for asset, collateral, withdrawal_ts, withdrawal_amount in rows
        ]

    async def get_payment_status(self, tab_id: Any) -> TabPaymentStatus:
        paid, remunerated, asset = await self.contract.functions.getPaymentStatus(
            parse_u256(tab_id)
        ).call()
        return TabPaymentStatus(paid=int(paid), remunerated=bool(remunerated), asset=asset)

    async def pay_tab_eth(
        self,
        tab_id: Any,
        req_id: Any,
        amount: Any,
        recipient: str,
        wait_options: Optional[TxReceiptWaitOptions] = None,
    ) -> Any:
        data = f"tab_id:{parse_u256(tab_id):x};req_id:{parse_u256(req_id):x}".encode()
        value = parse_u256(amount)
        to = normalize_address(recipient)

        async def build(nonce: int) -> Dict[str, Any]:
            tx: Dict[str, Any] = {
                "from": self.address,
                "to": to,
                "value": value,
                "data": data,
                "nonce": nonce,
                "chainId": await self.w3.eth.chain_id,
                "gasPrice": await self.w3.eth.gas_price,
            }
            tx["gas"] = await self.w3.eth.estimate_gas(tx)
            return tx

        return await self._wait(await self._submit(build), wait_options)

    async def pay_tab_erc20(
        self,
        tab_id: Any,
        amount: Any,
        erc20_token: str,
        recipient: str,
        wait_options: Optional[TxReceiptWaitOptions] = None,
    ) -> Any:
        call = self.contract.functions.payTabInERC20Token(
            parse_u256(tab_id),
            normalize_address(erc20_token),
            parse_u256(amount),
            normalize_address(recipient),
        )
        return await self._send_call(call, wait_options=wait_options)

    async def request_withdrawal(
        self,
        amount: Any,
        erc20_token: Optional[str] = None,
        wait_options: Optional[TxReceiptWaitOptions] = None,
    ) -> Any:
        value = parse_u256(amount)
        if erc20_token:
            fn = self.contract.get_function_by_signature("requestWithdrawal(address,uint256)")
            call = fn(normalize_address(erc20_token), value)
        else:
            call = self.contract.get_function_by_signature("requestWithdrawal(uint256)")(value)
        return await self._send_call(call, wait_options=wait_options)

    async def cancel_withdrawal(
        self, erc20_token: Optional[str] = None, wait_options: Optional[TxReceiptWaitOptions] = None
    ) -> Any:
        if erc20_token:
            call = self.contract.get_function_by_signature("cancelWithdrawal(address)")(
                normalize_address(erc20_token)
            )
        else:
            call = self.contract.get_function_by_signature("cancelWithdrawal()")()
        return await self._send_call(call, wait_options=wait_options)

    async def finalize_withdrawal(
        self, erc20_token: Optional[str] = None, wait_options: Optional[TxReceiptWaitOptions] = None
    ) -> Any:
        if erc20_token:
            call = self.contract.get_function_by_signature("finalizeWithdrawal(address)")(
                normalize_address(erc20_token)
            )
        else:
            call = self.contract.get_function_by_signature("finalizeWithdrawal()")()
        return await self._send_call(call, wait_options=wait_options)

    async def remunerate(
        self,
        claims_blob: bytes,
        signature_words: Sequence[bytes],
        wait_options: Optional[TxReceiptWaitOptions] = None,
    ) -> Any:
        if len(signature_words) != 8:
            raise ContractError(f"expected 8 signature words, got {len(signature_words)}")
        # (x_c0_a, x_c0_b, x_c1_a, x_c1_b, y_c0_a, y_c0_b, y_c1_a, y_c1_b)
        sig_struct = tuple(bytes(word) for word in signature_words)
        call = self.contract.functions.remunerate(bytes(claims_blob), sig_struct)
        return await self._send_call(call, wait_options=wait_options)
