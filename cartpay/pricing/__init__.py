"""
Pricing — discounts and totals.

    from cartpay import pricing as P

    totals = P.price_checkout(lines, voucher, quoted_fee=25_000)
"""

from __future__ import annotations

from cartpay.pricing._discount import Discount, NO_DISCOUNT, compute_discount
from cartpay.pricing._totals import (
    product_subtotal,
    effective_shipping_fee,
    final_total,
    CheckoutTotals,
    price_checkout,
)
from cartpay.pricing._vouchers import is_usable, eligible_vouchers

__all__ = (
    "Discount",
    "NO_DISCOUNT",
    "compute_discount",
    "product_subtotal",
    "effective_shipping_fee",
    "final_total",
    "CheckoutTotals",
    "price_checkout",
    "is_usable",
    "eligible_vouchers",
)
