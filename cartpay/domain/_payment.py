"""
Payment intent — the wallet provider's view of one payment.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from cartpay._types import Money


# ═══════════════════════════════════════════════════════════════════════════════
# Status — Intent Lifecycle
# ═══════════════════════════════════════════════════════════════════════════════


class IntentStatus(Enum):
    """
    Lifecycle:
        REQUIRES_ACTION → PENDING → SUCCEEDED
                                  → CANCELED
                                  → EXPIRED
    """

    REQUIRES_ACTION = "requires_action"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    CANCELED = "canceled"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in (IntentStatus.SUCCEEDED, IntentStatus.CANCELED, IntentStatus.EXPIRED)


class PaymentMethod(Enum):
    """How an invoice is paid, as the invoice service names it."""

    COD = "COD"
    QR_PAY = "QRPay"
    ZALOPAY = "ZaloPay"


# ═══════════════════════════════════════════════════════════════════════════════
# Payment Intent
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PaymentIntent:
    """
    Provider-side payment.

    Note: invoice_id is attached by the server once the payment settles.
    Only SUCCEEDED with an invoice_id means the order exists.
    """

    intent_id: str
    amount: Money
    status: IntentStatus
    method: PaymentMethod = PaymentMethod.ZALOPAY
    app_trans_id: str | None = None
    provider_trans_id: str | None = None
    order_url: str | None = None
    deeplink: str | None = None
    invoice_id: str | None = None
    expires_at: datetime | None = None

    @property
    def is_settled(self) -> bool:
        if self.status is IntentStatus.SUCCEEDED:
            return self.invoice_id is not None
        return self.status.is_terminal


__all__ = ("IntentStatus", "PaymentMethod", "PaymentIntent")
