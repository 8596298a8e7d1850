"""
Eligibility — checkout preconditions.

    from cartpay import eligibility as G

    gate = G.EligibilityGate(max_distance_m=10_000)
    gate.evaluate(lines, distance_m=12_000).too_far  # True
"""

from __future__ import annotations

from cartpay.eligibility._gate import (
    DISCONTINUED_LABEL,
    OUT_OF_STOCK_LABEL,
    BlockedLine,
    block_label,
    Eligibility,
    BlockKind,
    Block,
    MISSING_PHONE_MESSAGE,
    NO_PURCHASABLE_MESSAGE,
    QUOTE_NOT_PREPARED_MESSAGE,
    FEE_CALCULATING_MESSAGE,
    TOO_FAR_FALLBACK_MESSAGE,
    EligibilityGate,
)

__all__ = (
    "DISCONTINUED_LABEL",
    "OUT_OF_STOCK_LABEL",
    "BlockedLine",
    "block_label",
    "Eligibility",
    "BlockKind",
    "Block",
    "MISSING_PHONE_MESSAGE",
    "NO_PURCHASABLE_MESSAGE",
    "QUOTE_NOT_PREPARED_MESSAGE",
    "FEE_CALCULATING_MESSAGE",
    "TOO_FAR_FALLBACK_MESSAGE",
    "EligibilityGate",
)
