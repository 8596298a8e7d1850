"""
Quote cache keys.
"""

from __future__ import annotations

from cartpay.domain import Address


def normalize_address(detail: str) -> str:
    return " ".join(detail.split())


def quote_key(address: Address | None, line_count: int) -> str | None:
    """
    Cache key for a delivery quotation, None when no quote can be requested.

    Example:
        quote_key(Address("12 Trịnh Văn Bô", 21.03, 105.74), 2)
        # "12 Trịnh Văn Bô|21.03,105.74|2"
    """
    if address is None or line_count <= 0:
        return None
    detail = normalize_address(address.address_detail)
    if not detail:
        return None
    return f"{detail}|{address.latitude},{address.longitude}|{line_count}"


__all__ = ("normalize_address", "quote_key")
