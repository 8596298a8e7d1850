"""
Checkout errors — every blocking condition has one specific reason.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from cartpay.eligibility import Block, BlockKind

VOUCHER_REJECTED_MESSAGE = "Failed to apply voucher."
ORDER_FAILED_MESSAGE = "Failed to place order."
QR_FAILED_MESSAGE = "Failed to create VietQR."
VERIFY_FAILED_MESSAGE = "Failed to verify payment."
NO_QR_SESSION_MESSAGE = "No QR payment is waiting for confirmation."
NO_INTENT_MESSAGE = "No wallet payment is in progress."
IN_PROGRESS_MESSAGE = "Checkout is already in progress."


class CheckoutErrorKind(Enum):
    """Checkout error kinds."""

    IN_PROGRESS = auto()  # Double tap, ignored silently
    # Preconditions, in the order they are checked
    MISSING_PHONE = auto()
    NO_PURCHASABLE_LINES = auto()
    SHIPPING_NOT_READY = auto()
    TOO_FAR = auto()
    VOUCHER_REJECTED = auto()
    # Providers
    ORDER_FAILED = auto()  # Order creation refused or unreachable
    NO_REDIRECT = auto()  # Wallet intent without a link
    INTENT_FAILED = auto()  # Wallet intent creation refused or unreachable
    QR_FAILED = auto()  # QR session could not be created
    SETTLEMENT_FAILED = auto()  # QR order created but not marked paid
    # Wallet outcomes
    STILL_PENDING = auto()
    PAYMENT_CANCELED = auto()
    PAYMENT_EXPIRED = auto()
    # State
    NO_QR_SESSION = auto()
    NO_INTENT = auto()


_BLOCK_KINDS = {
    BlockKind.MISSING_PHONE: CheckoutErrorKind.MISSING_PHONE,
    BlockKind.NO_PURCHASABLE_LINES: CheckoutErrorKind.NO_PURCHASABLE_LINES,
    BlockKind.SHIPPING_NOT_READY: CheckoutErrorKind.SHIPPING_NOT_READY,
    BlockKind.TOO_FAR: CheckoutErrorKind.TOO_FAR,
}


@dataclass(frozen=True, slots=True)
class CheckoutError:
    """
    Why a checkout did not complete.

    invoice_id: set when an order exists server-side despite the failure.
    Look it up by id; never create it again.
    rollback_complete: for SETTLEMENT_FAILED, whether that order was voided.
    """

    kind: CheckoutErrorKind
    message: str
    invoice_id: str | None = None
    rollback_complete: bool | None = None

    @property
    def silent(self) -> bool:
        """Nothing to show the user."""
        return self.kind is CheckoutErrorKind.IN_PROGRESS

    @property
    def blocked(self) -> bool:
        """A local precondition failed; no mutating call was made."""
        return self.kind in _BLOCK_KINDS.values()

    @classmethod
    def from_block(cls, block: Block) -> CheckoutError:
        return cls(_BLOCK_KINDS[block.kind], block.message)

    @classmethod
    def in_progress(cls) -> CheckoutError:
        return cls(CheckoutErrorKind.IN_PROGRESS, IN_PROGRESS_MESSAGE)


__all__ = (
    "VOUCHER_REJECTED_MESSAGE",
    "ORDER_FAILED_MESSAGE",
    "QR_FAILED_MESSAGE",
    "VERIFY_FAILED_MESSAGE",
    "NO_QR_SESSION_MESSAGE",
    "NO_INTENT_MESSAGE",
    "IN_PROGRESS_MESSAGE",
    "CheckoutErrorKind",
    "CheckoutError",
)
