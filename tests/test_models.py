import pytest

from fourmica_sdk.client.shared import is_numeric_like, tab_status_from_rpc
from fourmica_sdk.constants import ZERO_ADDRESS
from fourmica_sdk.errors import ValidationError
from fourmica_sdk.models import (
    AssetBalanceInfo,
    CollateralEventInfo,
    GuaranteeInfo,
    PaymentGuaranteeRequestClaims,
    PendingRemunerationInfo,
    RecipientPaymentInfo,
    TabInfo,
    TabPaymentStatus,
)
from fourmica_sdk.serde import get_any, pick_fields

USER = "0x" + "11" * 20
RECIPIENT = "0x" + "22" * 20


def test_get_any_skips_missing_and_null_keys():
    raw = {"a": None, "b": 0, "c": 2}
    assert get_any(raw, "a", "b", "c") == 0
    assert get_any(raw, "a", "z", default="d") == "d"


def test_pick_fields_resolves_alias_table():
    table = {"tab_id": ("tab_id", "tabId"), "status": ("status",)}
    assert pick_fields({"tabId": "0x1"}, table) == {"tab_id": "0x1", "status": None}


def test_request_claims_defaults():
    claims = PaymentGuaranteeRequestClaims.new(USER, RECIPIENT, 1, "0x64", 42)
    assert claims.asset_address == ZERO_ADDRESS
    assert claims.req_id == 0
    assert claims.amount == 100


def test_request_claims_reject_bad_values():
    with pytest.raises(ValidationError):
        PaymentGuaranteeRequestClaims.new("0x12", RECIPIENT, 1, 1, 1)
    with pytest.raises(ValidationError):
        PaymentGuaranteeRequestClaims.new(USER, RECIPIENT, -1, 1, 1)


@pytest.mark.parametrize(
    "raw",
    [
        {
            "tab_id": "0x5",
            "user_address": USER,
            "recipient_address": RECIPIENT,
            "asset_address": ZERO_ADDRESS,
            "start_timestamp": 10,
            "ttl_seconds": 60,
            "status": "open",
            "settlement_status": "pending",
            "created_at": 1,
            "updated_at": 2,
        },
        {
            "tabId": 5,
            "userAddress": USER,
            "recipientAddress": RECIPIENT,
            "assetAddress": ZERO_ADDRESS,
            "startTimestamp": 10,
            "ttlSeconds": 60,
            "status": "open",
            "settlementStatus": "pending",
            "createdAt": 1,
            "updatedAt": 2,
        },
    ],
)
def test_tab_info_accepts_both_casings(raw):
    tab = TabInfo.from_rpc(raw)
    assert tab.tab_id == 5
    assert tab.user_address == USER
    assert tab.ttl_seconds == 60
    assert tab.settlement_status == "pending"
    assert tab.updated_at == 2


def test_guarantee_info_and_pending_remuneration():
    guarantee = {
        "tabId": "0x5",
        "reqId": "0x1",
        "fromAddress": USER,
        "toAddress": RECIPIENT,
        "assetAddress": ZERO_ADDRESS,
        "amount": "1000",
        "startTimestamp": 99,
        "certificate": "0xcert",
    }
    info = GuaranteeInfo.from_rpc(guarantee)
    assert (info.tab_id, info.req_id, info.amount, info.timestamp) == (5, 1, 1000, 99)
    assert info.certificate == "0xcert"

    pending = PendingRemunerationInfo.from_rpc(
        {"tab": {"tab_id": 5}, "latestGuarantee": guarantee}
    )
    assert pending.tab.tab_id == 5
    assert pending.latest_guarantee == info
    assert PendingRemunerationInfo.from_rpc({"tab": {}}).latest_guarantee is None


def test_collateral_event_optional_ids():
    event = CollateralEventInfo.from_rpc(
        {"id": "e1", "userAddress": USER, "amount": "0x10", "eventType": "deposit"}
    )
    assert event.amount == 16
    assert event.tab_id is None
    assert event.req_id is None
    assert event.event_type == "deposit"


def test_asset_balance_and_recipient_payment():
    balance = AssetBalanceInfo.from_rpc(
        {"user_address": USER, "asset_address": ZERO_ADDRESS, "total": "10", "locked": 4, "version": 2}
    )
    assert (balance.total, balance.locked, balance.version, balance.updated_at) == (10, 4, 2, 0)

    payment = RecipientPaymentInfo.from_rpc(
        {"txHash": "0xabc", "amount": "0x1", "verified": True, "finalized": False}
    )
    assert payment.tx_hash == "0xabc"
    assert payment.verified and not payment.finalized and not payment.failed


def test_tab_status_from_rpc():
    status = TabPaymentStatus(paid=1, remunerated=False, asset=ZERO_ADDRESS)
    assert tab_status_from_rpc(status) is status
    converted = tab_status_from_rpc({"paidAmount": "0x20", "paidOut": True, "assetAddress": "0xa"})
    assert converted == TabPaymentStatus(paid=32, remunerated=True, asset="0xa")


def test_is_numeric_like():
    assert is_numeric_like(1)
    assert is_numeric_like("0x1")
    assert not is_numeric_like(True)
    assert not is_numeric_like(None)
