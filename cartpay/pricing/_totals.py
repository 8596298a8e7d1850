"""
Checkout totals — subtotal, shipping, final amount.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from cartpay._types import Money
from cartpay.domain import CartLine, Voucher
from cartpay.pricing._discount import Discount, compute_discount


# ═══════════════════════════════════════════════════════════════════════════════
# Components
# ═══════════════════════════════════════════════════════════════════════════════


def product_subtotal(lines: Iterable[CartLine]) -> Money:
    """Sum of purchasable lines. Blocked lines never count toward the price."""
    return sum((line.line_total for line in lines if line.selectable), 0)


def effective_shipping_fee(voucher: Voucher | None, fee: Money) -> Money:
    if voucher is not None and voucher.is_free_shipping:
        return 0
    return max(fee, 0)


def final_total(subtotal: Money, discount: Money, shipping_fee: Money) -> Money:
    return max(0, subtotal - discount) + shipping_fee


# ═══════════════════════════════════════════════════════════════════════════════
# Bundle
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CheckoutTotals:
    subtotal: Money
    discount: Discount
    shipping_fee: Money
    total: Money

    @property
    def products_after_discount(self) -> Money:
        return max(0, self.subtotal - self.discount.discount)


def price_checkout(
    lines: Iterable[CartLine],
    voucher: Voucher | None,
    quoted_fee: Money,
) -> CheckoutTotals:
    """
    Price a checkout.

    Example:
        totals = price_checkout(lines, voucher, quoted_fee=25_000)
        totals.total
    """
    subtotal = product_subtotal(lines)
    discount = compute_discount(voucher, subtotal)
    shipping = effective_shipping_fee(voucher, quoted_fee)
    return CheckoutTotals(
        subtotal=subtotal,
        discount=discount,
        shipping_fee=shipping,
        total=final_total(subtotal, discount.discount, shipping),
    )


__all__ = (
    "product_subtotal",
    "effective_shipping_fee",
    "final_total",
    "CheckoutTotals",
    "price_checkout",
)
