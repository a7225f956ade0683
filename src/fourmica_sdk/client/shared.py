"""Helpers shared by the user and recipient facades."""

from __future__ import annotations

from typing import Any, Mapping, Union

from ..models import TabPaymentStatus
from ..serde import get_any
from ..utils import parse_u256

TAB_STATUS_FIELDS = {
    "paid": ("paid", "paidAmount", "paid_amount"),
    "remunerated": ("remunerated", "paidOut", "paid_out"),
    "asset": ("asset", "assetAddress", "asset_address"),
}


def is_numeric_like(value: Any) -> bool:
    return isinstance(value, (int, str)) and not isinstance(value, bool)


def tab_status_from_rpc(status: Union[TabPaymentStatus, Mapping[str, Any]]) -> TabPaymentStatus:
    if isinstance(status, TabPaymentStatus):
        return status
    paid = get_any(status, *TAB_STATUS_FIELDS["paid"], default=0)
    remunerated = get_any(status, *TAB_STATUS_FIELDS["remunerated"], default=False)
    asset = get_any(status, *TAB_STATUS_FIELDS["asset"], default="")
    return TabPaymentStatus(paid=parse_u256(paid), remunerated=bool(remunerated), asset=str(asset))
