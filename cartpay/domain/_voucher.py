"""
Voucher — a server-issued discount.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from cartpay._types import Money


class VoucherType(Enum):
    """Voucher kinds. Unknown kinds behave as a flat amount."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREE_SHIPPING = "freeShipping"
    FIRST_ORDER = "firstOrder"
    SPECIAL = "special"

    @classmethod
    def parse(cls, raw: str) -> VoucherType:
        for member in cls:
            if member.value.lower() == raw.strip().lower():
                return member
        return cls.SPECIAL


@dataclass(frozen=True, slots=True)
class Voucher:
    """
    Immutable voucher as returned by the voucher service.

    discount_value: percent for PERCENTAGE, currency amount otherwise.
    discount_cap: upper bound of the computed discount (None = uncapped).
    """

    id: str
    type: VoucherType
    discount_value: float
    title: str = ""
    discount_cap: Money | None = None
    min_order_value: Money | None = None
    max_order_value: Money | None = None
    remaining_usage: int | None = None
    expires_at: datetime | None = None
    loyal_only: bool = False

    @property
    def is_free_shipping(self) -> bool:
        return self.type is VoucherType.FREE_SHIPPING

    def is_expired(self, today: date) -> bool:
        """Expiry is per calendar day: a voucher expiring today is still usable."""
        if self.expires_at is None:
            return False
        return self.expires_at.date() < today


__all__ = ("VoucherType", "Voucher")
