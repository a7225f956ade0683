"""ABI fragments for the Core4Mica contract and the ERC20 calls the SDK makes."""

from __future__ import annotations

from typing import Any, Dict, List

G2_SIGNATURE_COMPONENTS = [
    {"name": "x_c0_a", "type": "bytes32"},
    {"name": "x_c0_b", "type": "bytes32"},
    {"name": "x_c1_a", "type": "bytes32"},
    {"name": "x_c1_b", "type": "bytes32"},
    {"name": "y_c0_a", "type": "bytes32"},
    {"name": "y_c0_b", "type": "bytes32"},
    {"name": "y_c1_a", "type": "bytes32"},
    {"name": "y_c1_b", "type": "bytes32"},
]


def _fn(
    name: str,
    inputs: List[Dict[str, Any]],
    outputs: List[Dict[str, Any]] | None = None,
    mutability: str = "nonpayable",
) -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": inputs,
        "outputs": outputs or [],
        "stateMutability": mutability,
    }


CORE4MICA_ABI: List[Dict[str, Any]] = [
    _fn("guaranteeDomainSeparator", [], [{"name": "", "type": "bytes32"}], "view"),
    _fn("deposit", [], mutability="payable"),
    _fn(
        "depositStablecoin",
        [{"name": "asset", "type": "address"}, {"name": "amount", "type": "uint256"}],
    ),
    _fn(
        "getUserAllAssets",
        [{"name": "userAddr", "type": "address"}],
        [
            {
                "name": "",
                "type": "tuple[]",
                "components": [
                    {"name": "asset", "type": "address"},
                    {"name": "collateral", "type": "uint256"},
                    {"name": "withdrawalRequestTimestamp", "type": "uint256"},
                    {"name": "withdrawalRequestAmount", "type": "uint256"},
                ],
            }
        ],
        "view",
    ),
    _fn(
        "getPaymentStatus",
        [{"name": "tabId", "type": "uint256"}],
        [
            {"name": "paid", "type": "uint256"},
            {"name": "remunerated", "type": "bool"},
            {"name": "asset", "type": "address"},
        ],
        "view",
    ),
    _fn(
        "payTabInERC20Token",
        [
            {"name": "tabId", "type": "uint256"},
            {"name": "asset", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "recipient", "type": "address"},
        ],
    ),
    # withdrawal entry points are overloaded on an optional ERC20 asset
    _fn("requestWithdrawal", [{"name": "amount", "type": "uint256"}]),
    _fn(
        "requestWithdrawal",
        [{"name": "asset", "type": "address"}, {"name": "amount", "type": "uint256"}],
    ),
    _fn("cancelWithdrawal", []),
    _fn("cancelWithdrawal", [{"name": "asset", "type": "address"}]),
    _fn("finalizeWithdrawal", []),
    _fn("finalizeWithdrawal", [{"name": "asset", "type": "address"}]),
    _fn(
        "remunerate",
        [
            {"name": "guaranteeData", "type": "bytes"},
            {"name": "signature", "type": "tuple", "components": G2_SIGNATURE_COMPONENTS},
        ],
    ),
]

ERC20_ABI: List[Dict[str, Any]] = [
    _fn(
        "approve",
        [{"name": "spender", "type": "address"}, {"name": "amount", "type": "uint256"}],
        [{"name": "", "type": "bool"}],
    ),
    _fn(
        "allowance",
        [{"name": "owner", "type": "address"}, {"name": "spender", "type": "address"}],
        [{"name": "", "type": "uint256"}],
        "view",
    ),
]
