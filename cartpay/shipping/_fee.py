"""
Fee extraction from a provider price breakdown.

The provider reports money as numbers, numeric strings, or {"amount", "currency"}
objects depending on the market; all are accepted.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from cartpay._types import Money

# Checked in order; the first present field wins.
FEE_FIELDS = ("total", "totalExcludePriorityFee", "totalBeforeOptimization", "base")


def parse_money(raw: Any) -> Money | None:
    """Parse a money-like value. None when it is missing or unparsable."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Mapping):
        return parse_money(raw.get("amount"))
    if isinstance(raw, (int, float)):
        return int(raw) if math.isfinite(raw) else None
    if isinstance(raw, str):
        try:
            value = Decimal(raw.strip().replace(",", ""))
        except InvalidOperation:
            return None
        return int(value) if value.is_finite() else None
    return None


def extract_fee(breakdown: Mapping[str, Any] | None) -> Money:
    """
    Shipping fee from a price breakdown, 0 when none can be read.

    Example:
        extract_fee({"base": "18000", "total": "25000"})  # 25000
        extract_fee({"totalExcludePriorityFee": 21000})   # 21000
        extract_fee({})                                    # 0
    """
    if not breakdown:
        return 0
    for name in FEE_FIELDS:
        if breakdown.get(name) is None:
            continue
        return parse_money(breakdown[name]) or 0
    return 0


__all__ = ("FEE_FIELDS", "parse_money", "extract_fee")
