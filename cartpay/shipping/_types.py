"""
Shipping quote cache types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from cartpay._types import Money
from cartpay.domain import ShippingQuote

NO_FEE_MESSAGE = "No shipping charges can be charged."


# ═══════════════════════════════════════════════════════════════════════════════
# Local Tier — In-Memory LRU owned by one cache instance
# ═══════════════════════════════════════════════════════════════════════════════


class LocalTier[T]:
    """
    In-memory LRU tier.

    Note: synchronous on purpose. A hit must be served without suspending,
    so the caller sees the cached quote in the same tick.

    Example:
        tier = LocalTier[QuoteEntry](max_size=32)
    """

    def __init__(self, max_size: int = 32) -> None:
        self._max_size = max_size
        self._cache: dict[str, T] = {}
        self._order: list[str] = []

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: object) -> bool:
        return key in self._cache

    def get(self, key: str) -> T | None:
        if key in self._cache:
            # Move to end (most recent)
            self._order.remove(key)
            self._order.append(key)
            return self._cache[key]
        return None

    def set(self, key: str, value: T) -> None:
        if key in self._cache:
            self._order.remove(key)
        elif len(self._cache) >= self._max_size:
            # Evict oldest
            oldest = self._order.pop(0)
            del self._cache[oldest]

        self._cache[key] = value
        self._order.append(key)

    def delete(self, key: str) -> bool:
        if key in self._cache:
            del self._cache[key]
            self._order.remove(key)
            return True
        return False

    def clear(self) -> None:
        self._cache.clear()
        self._order.clear()


# ═══════════════════════════════════════════════════════════════════════════════
# Entries and Lookups
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class QuoteEntry:
    """What the cache stores per key."""

    fee: Money
    quote: ShippingQuote


@dataclass(frozen=True, slots=True)
class QuoteLookup:
    """Resolve result with metadata."""

    entry: QuoteEntry
    hit: bool
    key: str

    @property
    def fee(self) -> Money:
        return self.entry.fee

    @property
    def quote(self) -> ShippingQuote:
        return self.entry.quote


# ═══════════════════════════════════════════════════════════════════════════════
# Displayed State
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ShippingState:
    """
    What the checkout screen shows for shipping.

    Note: only the newest resolve may replace this.
    """

    fee: Money = 0
    quote: ShippingQuote | None = None
    calculating: bool = False
    error: str | None = None

    @property
    def distance_meters(self) -> float | None:
        return self.quote.distance_meters if self.quote else None

    @property
    def quotation_id(self) -> str | None:
        return self.quote.quotation_id if self.quote else None

    @property
    def stop_count(self) -> int:
        return len(self.quote.stops) if self.quote else 0


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


class QuoteErrorKind(Enum):
    """Quote error kinds."""

    NO_KEY = auto()  # No address or nothing to deliver
    PROVIDER = auto()  # Quotation call failed
    CANCELLED = auto()  # Focus lost while in flight, never shown to the user


@dataclass(frozen=True, slots=True)
class QuoteError:
    kind: QuoteErrorKind
    message: str
    cause: Exception | None = None

    @property
    def silent(self) -> bool:
        return self.kind is not QuoteErrorKind.PROVIDER


__all__ = (
    "NO_FEE_MESSAGE",
    "LocalTier",
    "QuoteEntry",
    "QuoteLookup",
    "ShippingState",
    "QuoteErrorKind",
    "QuoteError",
)
