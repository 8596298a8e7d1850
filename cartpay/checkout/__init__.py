"""
Checkout — the coordinator tying quotes, vouchers, payments and orders together.

    from cartpay import checkout as C

    result = await coordinator.checkout(lines, C.CheckoutMethod.CASH, profile=profile)
"""

from __future__ import annotations

from cartpay.checkout._errors import (
    VOUCHER_REJECTED_MESSAGE,
    ORDER_FAILED_MESSAGE,
    QR_FAILED_MESSAGE,
    VERIFY_FAILED_MESSAGE,
    NO_QR_SESSION_MESSAGE,
    NO_INTENT_MESSAGE,
    IN_PROGRESS_MESSAGE,
    CheckoutErrorKind,
    CheckoutError,
)
from cartpay.checkout._types import (
    CheckoutMethod,
    OrderPlaced,
    WalletRedirect,
    QrChallenge,
    CheckoutOutcome,
    PendingQr,
)
from cartpay.checkout._settlement import SettlementStep, run_step, run_compensators, settle
from cartpay.checkout._coordinator import (
    CHECKOUT_KEY,
    CheckoutCoordinator,
    SettledCallback,
    shipping_context,
)

__all__ = (
    # Errors
    "VOUCHER_REJECTED_MESSAGE",
    "ORDER_FAILED_MESSAGE",
    "QR_FAILED_MESSAGE",
    "VERIFY_FAILED_MESSAGE",
    "NO_QR_SESSION_MESSAGE",
    "NO_INTENT_MESSAGE",
    "IN_PROGRESS_MESSAGE",
    "CheckoutErrorKind",
    "CheckoutError",
    # Outcomes
    "CheckoutMethod",
    "OrderPlaced",
    "WalletRedirect",
    "QrChallenge",
    "CheckoutOutcome",
    "PendingQr",
    # Settlement
    "SettlementStep",
    "run_step",
    "run_compensators",
    "settle",
    # Coordinator
    "CHECKOUT_KEY",
    "CheckoutCoordinator",
    "SettledCallback",
    "shipping_context",
)
