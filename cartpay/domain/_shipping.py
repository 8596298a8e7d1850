"""
Delivery quotation types.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True, slots=True)
class Stop:
    """A pickup or drop-off point. stop_id is assigned by the delivery provider."""

    stop_id: str | None
    lat: str
    lng: str
    address: str | None = None


@dataclass(frozen=True, slots=True)
class ShippingQuote:
    """
    A delivery quotation.

    Note: price_breakdown is kept as the provider sent it.
    The fee is derived from it by cartpay.shipping.extract_fee.
    """

    quotation_id: str
    stops: tuple[Stop, ...]
    price_breakdown: Mapping[str, Any] = field(default_factory=dict)
    distance_meters: float | None = None
    expires_at: datetime | None = None

    @property
    def stop_refs(self) -> tuple[str, ...]:
        """Provider stop ids, in route order."""
        return tuple(s.stop_id for s in self.stops if s.stop_id)

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires = self.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now >= expires


__all__ = ("Stop", "ShippingQuote")
