"""
Voucher eligibility for the picker.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from cartpay.domain import UserProfile, Voucher


def is_usable(voucher: Voucher, profile: UserProfile | None, today: date) -> bool:
    if voucher.is_expired(today):
        return False
    if voucher.loyal_only and not (profile and profile.is_loyal_customer):
        return False
    if voucher.remaining_usage is not None and voucher.remaining_usage <= 0:
        return False
    return True


def eligible_vouchers(
    vouchers: Iterable[Voucher],
    profile: UserProfile | None,
    today: date | None = None,
) -> list[Voucher]:
    """Vouchers the user may pick right now, in server order."""
    today = today or date.today()
    return [v for v in vouchers if is_usable(v, profile, today)]


__all__ = ("is_usable", "eligible_vouchers")
