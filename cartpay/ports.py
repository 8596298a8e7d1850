"""
Ports — what checkout needs from the outside world.

Implement these for custom backends. cartpay.apis ships HTTP adapters;
tests use in-memory fakes.

Example:
    class StaticQuotes:
        async def create_quotation(self, pickup: Stop, dropoff: Stop, quantity: int) -> ShippingQuote:
            return ShippingQuote("q-1", (pickup, dropoff), {"total": "25000"}, 3_200)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from cartpay._types import Money
from cartpay.domain import (
    CancelledInvoice,
    Invoice,
    PaymentIntent,
    PaymentMethod,
    ShippingQuote,
    Stop,
    UserProfile,
    Voucher,
)


# ═══════════════════════════════════════════════════════════════════════════════
# Requests
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ShippingContext:
    """Resolved shipping facts every mutating call carries."""

    fee: Money
    quotation_id: str
    stop_refs: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class OrderRequest:
    line_ids: tuple[str, ...]
    payment_method: PaymentMethod
    shipping: ShippingContext
    voucher_id: str | None = None
    payment_ref: str | None = None
    note: str | None = None


@dataclass(frozen=True, slots=True)
class IntentRequest:
    amount: Money
    description: str
    line_ids: tuple[str, ...]
    shipping: ShippingContext
    voucher_id: str | None = None
    note: str = ""


@dataclass(frozen=True, slots=True)
class VoucherCheck:
    """Server verdict on a voucher for a given order amount."""

    success: bool
    message: str | None = None


@dataclass(frozen=True, slots=True)
class QrSession:
    session_id: str
    qr_url: str


# ═══════════════════════════════════════════════════════════════════════════════
# Collaborators
# ═══════════════════════════════════════════════════════════════════════════════


class DeliveryQuotes(Protocol):
    async def create_quotation(self, pickup: Stop, dropoff: Stop, quantity: int) -> ShippingQuote:
        """Price a delivery. Raises on provider failure."""
        ...


class VoucherService(Protocol):
    async def validate(
        self, voucher_id: str, order_amount: Money, *, validate_only: bool = True
    ) -> VoucherCheck:
        """Check a voucher against an order amount. validate_only does not consume it."""
        ...

    async def list_vouchers(self) -> list[Voucher]:
        """Current vouchers of the user. Also used to refresh after a purchase."""
        ...


class InvoiceService(Protocol):
    async def create(self, request: OrderRequest) -> Invoice: ...

    async def mark_paid(self, invoice_id: str) -> Invoice: ...

    async def cancel(self, invoice_id: str) -> CancelledInvoice: ...

    async def get(self, invoice_id: str) -> Invoice: ...


class PaymentIntentService(Protocol):
    async def create(self, request: IntentRequest) -> PaymentIntent: ...

    async def get(self, intent_id: str) -> PaymentIntent: ...

    async def cancel(self, intent_id: str) -> str:
        """Returns the cancelled intent id."""
        ...


class QrProvider(Protocol):
    async def create(self, amount: Money, description: str) -> QrSession: ...


class ProfileService(Protocol):
    async def get_profile(self) -> UserProfile: ...


__all__ = (
    "ShippingContext",
    "OrderRequest",
    "IntentRequest",
    "VoucherCheck",
    "QrSession",
    "DeliveryQuotes",
    "VoucherService",
    "InvoiceService",
    "PaymentIntentService",
    "QrProvider",
    "ProfileService",
)
