"""
Wallet redirects — where to send the user, and how to read where they came back.
"""

from __future__ import annotations

import re
from enum import Enum, auto

import httpx

from cartpay.domain import PaymentIntent

# Checked in order; the first present key wins.
STATUS_KEYS = ("status", "resultCode", "result_code", "return_code", "code")
FLAG_KEYS = ("success", "isSuccess", "paid")

SUCCESS_STATUSES = frozenset({"1", "01", "00", "success", "successful"})
SUCCESS_FLAGS = frozenset({"true", "1"})

_SUCCESS_SEGMENT = re.compile(r"(?:^|[/?#])(?:success|paid)(?:[/?#]|$)")
_CANCEL_MARKER = re.compile(r"cancel|canceled|cancelled|failed|error")


class ReturnKind(Enum):
    SUCCESS = auto()
    CANCELLED = auto()
    UNKNOWN = auto()  # Intermediate page, keep waiting


def pick_redirect_target(intent: PaymentIntent) -> str | None:
    """Deeplink opens the wallet app directly; the order URL is the web fallback."""
    return intent.deeplink or intent.order_url or None


def _first(params: httpx.QueryParams, keys: tuple[str, ...]) -> str:
    for key in keys:
        if key in params:
            return params[key].strip().lower()
    return ""


def classify_return_url(url: str) -> ReturnKind:
    """
    Classify a URL the wallet checkout page navigated to.

    Example:
        classify_return_url("https://shop.example/return?status=1")        # SUCCESS
        classify_return_url("https://shop.example/payment/paid")           # SUCCESS
        classify_return_url("https://shop.example/return?reason=cancelled")  # CANCELLED
    """
    if not url:
        return ReturnKind.UNKNOWN
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return ReturnKind.UNKNOWN

    status = _first(parsed.params, STATUS_KEYS)
    flag = _first(parsed.params, FLAG_KEYS)
    base = f"{parsed.scheme}://{parsed.host}{parsed.path}".lower()

    if status in SUCCESS_STATUSES or flag in SUCCESS_FLAGS or _SUCCESS_SEGMENT.search(base):
        return ReturnKind.SUCCESS
    if _CANCEL_MARKER.search(url.lower()):
        return ReturnKind.CANCELLED
    return ReturnKind.UNKNOWN


__all__ = (
    "STATUS_KEYS",
    "FLAG_KEYS",
    "ReturnKind",
    "pick_redirect_target",
    "classify_return_url",
)
