"""
Discount calculation.

Pure and deterministic: same voucher + subtotal → same discount.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from cartpay._types import Money
from cartpay.domain import Voucher, VoucherType


@dataclass(frozen=True, slots=True)
class Discount:
    """
    Computed discount.

    capped_by: the cap that bounded the discount, None when the cap was not hit.
    """

    discount: Money
    capped_by: Money | None = None


NO_DISCOUNT = Discount(discount=0)


def _raw_discount(voucher: Voucher, subtotal: Money) -> float:
    match voucher.type:
        case VoucherType.PERCENTAGE:
            return subtotal * voucher.discount_value / 100
        case VoucherType.FREE_SHIPPING:
            # Applied to the shipping fee, never to the products.
            return 0.0
        case _:
            return float(voucher.discount_value)


def compute_discount(voucher: Voucher | None, subtotal: Money) -> Discount:
    """
    Discount a voucher grants on the product subtotal.

    Always within [0, subtotal] and never above the voucher cap.

    Example:
        v = Voucher("v1", VoucherType.PERCENTAGE, 20, discount_cap=50_000)
        compute_discount(v, 500_000)  # Discount(discount=50_000, capped_by=50_000)
    """
    if voucher is None or subtotal <= 0:
        return NO_DISCOUNT

    raw = _raw_discount(voucher, subtotal)
    capped_by: Money | None = None

    if voucher.discount_cap is not None and raw > voucher.discount_cap:
        raw = float(voucher.discount_cap)
        capped_by = voucher.discount_cap

    if not math.isfinite(raw):
        raw = 0.0

    clamped = min(max(raw, 0.0), float(subtotal))
    return Discount(discount=math.floor(clamped), capped_by=capped_by)


__all__ = ("Discount", "NO_DISCOUNT", "compute_discount")
