"""
Shipping — delivery quotations with a single-flight cache.

    from cartpay import shipping as S

    cache = S.ShippingQuoteCache(max_size=32)
    result = await cache.resolve_for(profile.default_address, 2, delivery.quote)
"""

from __future__ import annotations

from cartpay.shipping._types import (
    NO_FEE_MESSAGE,
    LocalTier,
    QuoteEntry,
    QuoteLookup,
    ShippingState,
    QuoteErrorKind,
    QuoteError,
)
from cartpay.shipping._fee import FEE_FIELDS, parse_money, extract_fee
from cartpay.shipping._key import normalize_address, quote_key
from cartpay.shipping._request import dropoff_stop, build_quote_request
from cartpay.shipping._cache import ShippingQuoteCache, QuoteFetch, QuoteFetchFor

__all__ = (
    # Types
    "NO_FEE_MESSAGE",
    "LocalTier",
    "QuoteEntry",
    "QuoteLookup",
    "ShippingState",
    "QuoteErrorKind",
    "QuoteError",
    # Fee
    "FEE_FIELDS",
    "parse_money",
    "extract_fee",
    # Keys
    "normalize_address",
    "quote_key",
    # Request
    "dropoff_stop",
    "build_quote_request",
    # Cache
    "ShippingQuoteCache",
    "QuoteFetch",
    "QuoteFetchFor",
)
