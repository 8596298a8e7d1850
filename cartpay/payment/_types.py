"""
Payment intent orchestration types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from cartpay.domain import IntentStatus, PaymentIntent

STILL_PENDING_MESSAGE = "Payment is still pending. Please try again."
NO_REDIRECT_MESSAGE = "Cannot get ZaloPay link."
CANCELED_MESSAGE = "Payment canceled."
EXPIRED_MESSAGE = "Payment expired."


@dataclass(frozen=True, slots=True)
class PollOutcome:
    """
    Terminal observation of an intent.

    Note: SUCCEEDED always carries invoice_id. The order already exists
    server-side; the caller hands it over and never creates another.
    """

    intent: PaymentIntent

    @property
    def status(self) -> IntentStatus:
        return self.intent.status

    @property
    def invoice_id(self) -> str | None:
        return self.intent.invoice_id

    @property
    def succeeded(self) -> bool:
        return self.intent.status is IntentStatus.SUCCEEDED

    @property
    def message(self) -> str | None:
        match self.intent.status:
            case IntentStatus.CANCELED:
                return CANCELED_MESSAGE
            case IntentStatus.EXPIRED:
                return EXPIRED_MESSAGE
            case _:
                return None


class PaymentErrorKind(Enum):
    """Payment error kinds."""

    NO_REDIRECT = auto()  # Provider returned neither order_url nor deeplink
    PROVIDER = auto()  # Provider call failed
    STILL_PENDING = auto()  # Poll budget exhausted, intent untouched


@dataclass(frozen=True, slots=True)
class PaymentError:
    kind: PaymentErrorKind
    message: str
    cause: Exception | None = None

    @property
    def retryable(self) -> bool:
        """Still pending: the user may check again, nothing failed."""
        return self.kind is PaymentErrorKind.STILL_PENDING


__all__ = (
    "STILL_PENDING_MESSAGE",
    "NO_REDIRECT_MESSAGE",
    "CANCELED_MESSAGE",
    "EXPIRED_MESSAGE",
    "PollOutcome",
    "PaymentErrorKind",
    "PaymentError",
)
