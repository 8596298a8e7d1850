"""
Invoice — the persisted order record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from cartpay._types import Money
from cartpay.domain._payment import PaymentMethod


class InvoiceStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPING = "shipping"
    DELIVERED = "delivered"
    CANCELED = "canceled"


class PaymentState(Enum):
    PENDING = "pending"
    PAID = "paid"


@dataclass(frozen=True, slots=True)
class InvoicePayment:
    method: PaymentMethod
    status: PaymentState = PaymentState.PENDING
    reference: str | None = None


@dataclass(frozen=True, slots=True)
class Invoice:
    id: str
    total: Money
    payment: InvoicePayment
    shipping_fee: Money = 0
    status: InvoiceStatus = InvoiceStatus.PENDING
    voucher_id: str | None = None
    line_ids: tuple[str, ...] = ()

    @property
    def is_paid(self) -> bool:
        return self.payment.status is PaymentState.PAID


# ═══════════════════════════════════════════════════════════════════════════════
# Cancel Policy — reported by the invoice service on cancellation
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CancelWarning:
    key: str
    count: int
    limit: int


@dataclass(frozen=True, slots=True)
class CancelPolicyResult:
    """
    Cancellation quota state. Computed server-side, only surfaced here.

    breached_keys: windows over the limit (perDay, per7Days, per30Days, perMonth, perYear).
    """

    breached: bool = False
    breached_keys: tuple[str, ...] = ()
    counts: dict[str, int] = field(default_factory=dict)
    warns: tuple[CancelWarning, ...] = ()


@dataclass(frozen=True, slots=True)
class CancelledInvoice:
    invoice: Invoice
    policy: CancelPolicyResult | None = None


__all__ = (
    "InvoiceStatus",
    "PaymentState",
    "InvoicePayment",
    "Invoice",
    "CancelWarning",
    "CancelPolicyResult",
    "CancelledInvoice",
)
