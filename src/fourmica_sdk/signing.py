"""Payment claim signing (EIP-712 typed data and EIP-191 personal messages)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Union

from eth_abi import encode as abi_encode
from eth_account import Account
from eth_account.messages import encode_defunct, encode_typed_data
from eth_account.signers.local import LocalAccount

from .constants import EIP712_DEFAULT_NAME, EIP712_DEFAULT_VERSION
from .errors import SigningError, ValidationError
from .models import PaymentGuaranteeRequestClaims, PaymentSignature, SigningScheme
from .serde import pick_fields
from .utils import bytes_to_hex, hex_to_bytes, normalize_address, normalize_private_key

PUBLIC_PARAMS_FIELDS = {
    "public_key": ("public_key", "publicKey"),
    "contract_address": ("contract_address", "contractAddress"),
    "ethereum_http_rpc_url": ("ethereum_http_rpc_url", "ethereumHttpRpcUrl"),
    "eip712_name": ("eip712_name", "eip712Name"),
    "eip712_version": ("eip712_version", "eip712Version"),
    "chain_id": ("chain_id", "chainId"),
}

EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
]

# Hashed into every signature: field names, types and order must not change.
GUARANTEE_REQUEST_TYPE_NAME = "SolGuaranteeRequestClaimsV1"
GUARANTEE_REQUEST_TYPE = [
    {"name": "user", "type": "address"},
    {"name": "recipient", "type": "address"},
    {"name": "tabId", "type": "uint256"},
    {"name": "reqId", "type": "uint256"},
    {"name": "amount", "type": "uint256"},
    {"name": "asset", "type": "address"},
    {"name": "timestamp", "type": "uint64"},
]

EIP191_TYPES = ["address", "address", "uint256", "uint256", "uint256", "address", "uint64"]


@dataclass
class CorePublicParameters:
    public_key: bytes
    contract_address: str
    ethereum_http_rpc_url: str
    eip712_name: str
    eip712_version: str
    chain_id: int

    @classmethod
    def from_rpc(cls, payload: Dict[str, Any]) -> "CorePublicParameters":
        f = pick_fields(payload, PUBLIC_PARAMS_FIELDS)
        raw_key = f["public_key"]
        if isinstance(raw_key, str):
            public_key = hex_to_bytes(raw_key)
        elif raw_key:
            public_key = bytes(raw_key)
        else:
            public_key = b""
        if f["chain_id"] is None:
            raise ValidationError("core public params missing chain_id")
        return cls(
            public_key=public_key,
            contract_address=str(f["contract_address"] or ""),
            ethereum_http_rpc_url=str(f["ethereum_http_rpc_url"] or ""),
            eip712_name=str(f["eip712_name"] or EIP712_DEFAULT_NAME),
            eip712_version=str(f["eip712_version"] or EIP712_DEFAULT_VERSION),
            chain_id=int(f["chain_id"]),
        )


def build_typed_message(
    params: CorePublicParameters, claims: PaymentGuaranteeRequestClaims
) -> Dict[str, Any]:
    return {
        "types": {
            "EIP712Domain": EIP712_DOMAIN_TYPE,
            GUARANTEE_REQUEST_TYPE_NAME: GUARANTEE_REQUEST_TYPE,
        },
        "primaryType": GUARANTEE_REQUEST_TYPE_NAME,
        "domain": {
            "name": params.eip712_name,
            "version": params.eip712_version,
            "chainId": int(params.chain_id),
        },
        "message": {
            "user": claims.user_address,
            "recipient": claims.recipient_address,
            "tabId": int(claims.tab_id),
            "reqId": int(claims.req_id),
            "amount": int(claims.amount),
            "asset": claims.asset_address,
            "timestamp": int(claims.timestamp),
        },
    }


def encode_eip191_payload(claims: PaymentGuaranteeRequestClaims) -> bytes:
    return abi_encode(
        EIP191_TYPES,
        [
            normalize_address(claims.user_address),
            normalize_address(claims.recipient_address),
            int(claims.tab_id),
            int(claims.req_id),
            int(claims.amount),
            normalize_address(claims.asset_address),
            int(claims.timestamp),
        ],
    )


class PaymentSigner:
    """Signs guarantee requests with a locally held key."""

    def __init__(self, signer: Union[str, LocalAccount]) -> None:
        if isinstance(signer, str):
            try:
                signer = Account.from_key(normalize_private_key(signer))
            except ValidationError as exc:
                raise SigningError(str(exc)) from exc
        self.signer: LocalAccount = signer

    @property
    def address(self) -> str:
        return self.signer.address

    def _ensure_owner(self, claims: PaymentGuaranteeRequestClaims) -> None:
        try:
            expected = normalize_address(claims.user_address)
        except ValidationError as exc:
            raise SigningError(str(exc)) from exc
        if normalize_address(self.signer.address) != expected:
            raise SigningError(
                f"address mismatch: signer {self.signer.address} != "
                f"claims.user_address {claims.user_address}"
            )

    async def sign_request(
        self,
        params: CorePublicParameters,
        claims: PaymentGuaranteeRequestClaims,
        scheme: SigningScheme = SigningScheme.EIP712,
    ) -> PaymentSignature:
        self._ensure_owner(claims)

        try:
            scheme = SigningScheme(scheme)
        except ValueError as exc:
            raise SigningError(f"unsupported signing scheme: {scheme}") from exc

        try:
            if scheme is SigningScheme.EIP712:
                signable = encode_typed_data(full_message=build_typed_message(params, claims))
            else:
                signable = encode_defunct(primitive=encode_eip191_payload(claims))
            signed = self.signer.sign_message(signable)
        except Exception as exc:
            raise SigningError(str(exc)) from exc

        return PaymentSignature(signature=bytes_to_hex(signed.signature), scheme=scheme)
