"""
Domain — checkout data model.

    from cartpay import domain as D

    line = D.CartLine("c1", "pho-bo", D.ItemType.FOOD, quantity=1, unit_price=45_000)
"""

from __future__ import annotations

from cartpay.domain._cart import ItemType, Availability, CartLine
from cartpay.domain._voucher import VoucherType, Voucher
from cartpay.domain._shipping import Stop, ShippingQuote
from cartpay.domain._payment import IntentStatus, PaymentMethod, PaymentIntent
from cartpay.domain._invoice import (
    InvoiceStatus,
    PaymentState,
    InvoicePayment,
    Invoice,
    CancelWarning,
    CancelPolicyResult,
    CancelledInvoice,
)
from cartpay.domain._profile import Address, UserProfile

__all__ = (
    # Cart
    "ItemType",
    "Availability",
    "CartLine",
    # Voucher
    "VoucherType",
    "Voucher",
    # Shipping
    "Stop",
    "ShippingQuote",
    # Payment
    "IntentStatus",
    "PaymentMethod",
    "PaymentIntent",
    # Invoice
    "InvoiceStatus",
    "PaymentState",
    "InvoicePayment",
    "Invoice",
    "CancelWarning",
    "CancelPolicyResult",
    "CancelledInvoice",
    # Profile
    "Address",
    "UserProfile",
)
