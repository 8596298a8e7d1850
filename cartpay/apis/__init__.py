"""
HTTP adapters for the storefront backend.

    from cartpay import apis

    client = apis.ApiClient.from_settings(settings, token_provider=session.token)
    coordinator = CheckoutCoordinator(
        delivery=apis.DeliveryApi(client),
        vouchers=apis.VoucherApi(client),
        invoices=apis.InvoiceApi(client),
        intents=apis.PaymentIntentApi(client),
        qr=apis.VietQrProvider.from_settings(settings),
        settings=settings,
    )
"""

from __future__ import annotations

from cartpay.apis._client import (
    NO_RESPONSE_MESSAGE,
    GENERIC_MESSAGE,
    TokenProvider,
    ApiError,
    error_message,
    Envelope,
    ApiClient,
)
from cartpay.apis._wire import UNEXPECTED_RESPONSE_MESSAGE
from cartpay.apis._delivery import DeliveryApi
from cartpay.apis._vouchers import VoucherApi
from cartpay.apis._invoices import INVOICE_MISSING_MESSAGE, InvoiceApi
from cartpay.apis._intents import PaymentIntentApi
from cartpay.apis._profile import ProfileApi
from cartpay.apis._qr import VIETQR_IMAGE_BASE, VietQrProvider

__all__ = (
    # Client
    "NO_RESPONSE_MESSAGE",
    "GENERIC_MESSAGE",
    "UNEXPECTED_RESPONSE_MESSAGE",
    "INVOICE_MISSING_MESSAGE",
    "TokenProvider",
    "ApiError",
    "error_message",
    "Envelope",
    "ApiClient",
    # Adapters
    "DeliveryApi",
    "VoucherApi",
    "InvoiceApi",
    "PaymentIntentApi",
    "ProfileApi",
    "VIETQR_IMAGE_BASE",
    "VietQrProvider",
)
