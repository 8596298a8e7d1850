"""
Checkout outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from cartpay.domain import CartLine, Invoice, PaymentIntent, UserProfile, Voucher
from cartpay.ports import QrSession
from cartpay.pricing import CheckoutTotals


class CheckoutMethod(Enum):
    CASH = "cash"
    QR = "qr"
    WALLET = "wallet"


# ═══════════════════════════════════════════════════════════════════════════════
# Outcomes — one per method
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderPlaced:
    """The order exists. Cash right away, QR after confirmation."""

    invoice: Invoice
    totals: CheckoutTotals | None = None


@dataclass(frozen=True, slots=True)
class WalletRedirect:
    """Send the user to the wallet. Completion arrives through watch_wallet."""

    intent: PaymentIntent
    url: str
    totals: CheckoutTotals

    @property
    def intent_id(self) -> str:
        return self.intent.intent_id


@dataclass(frozen=True, slots=True)
class QrChallenge:
    """Show the QR code and wait for "I've paid"."""

    session: QrSession
    totals: CheckoutTotals

    @property
    def qr_url(self) -> str:
        return self.session.qr_url


type CheckoutOutcome = OrderPlaced | WalletRedirect | QrChallenge


# ═══════════════════════════════════════════════════════════════════════════════
# QR session waiting for confirmation
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PendingQr:
    """Everything the confirmation step needs, captured at checkout time."""

    session: QrSession
    lines: tuple[CartLine, ...]
    profile: UserProfile | None
    voucher: Voucher | None
    totals: CheckoutTotals

    @property
    def attempt_key(self) -> str:
        return f"qr:{self.session.session_id}"


__all__ = (
    "CheckoutMethod",
    "OrderPlaced",
    "WalletRedirect",
    "QrChallenge",
    "CheckoutOutcome",
    "PendingQr",
)
