"""
InvoiceApi — orders as the backend stores them.

    invoices = InvoiceApi(client)
    invoice = await invoices.create(request)
    cancelled = await invoices.cancel(invoice.id)
    if cancelled.policy and cancelled.policy.warns:
        ...
"""

from __future__ import annotations

from typing import Any

from cartpay.apis._client import ApiClient, ApiError
from cartpay.apis._wire import WireInvoice, cancelled_invoice, parse
from cartpay.domain import CancelledInvoice, Invoice
from cartpay.ports import OrderRequest, ShippingContext

INVOICE_MISSING_MESSAGE = "Invoice not returned from server."


def shipping_body(shipping: ShippingContext) -> dict[str, Any]:
    return {
        "shippingFee": shipping.fee,
        "shippingQuotationId": shipping.quotation_id,
        "shippingStops": [{"stopId": ref} for ref in shipping.stop_refs],
    }


def order_body(request: OrderRequest) -> dict[str, Any]:
    body: dict[str, Any] = {
        "cartIds": list(request.line_ids),
        "paymentMethod": request.payment_method.value,
    }
    if request.voucher_id:
        body["voucherId"] = request.voucher_id
    if request.note:
        body["note"] = request.note
    if request.payment_ref:
        body["paymentRef"] = request.payment_ref
    body.update(shipping_body(request.shipping))
    return body


def _invoice(data: Any) -> WireInvoice:
    # Responses nest the invoice under data.invoice, or return it as data.
    raw = data.get("invoice", data) if isinstance(data, dict) else None
    if not raw:
        raise ApiError(INVOICE_MISSING_MESSAGE, payload=data)
    return parse(WireInvoice, raw)


class InvoiceApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def create(self, request: OrderRequest) -> Invoice:
        envelope = await self._client.post("/invoices", json=order_body(request))
        data = envelope.require()
        if not isinstance(data, dict) or not data.get("invoice"):
            raise ApiError(INVOICE_MISSING_MESSAGE, payload=data)
        return _invoice(data).to_domain()

    async def mark_paid(self, invoice_id: str) -> Invoice:
        envelope = await self._client.patch(f"/invoices/payment/{invoice_id}")
        return _invoice(envelope.require()).to_domain()

    async def cancel(self, invoice_id: str) -> CancelledInvoice:
        envelope = await self._client.patch(f"/invoices/cancel/{invoice_id}")
        data = envelope.require()
        policy = envelope.extra("cancelPolicy")
        if policy is None and isinstance(data, dict):
            policy = data.get("cancelPolicy")
        return cancelled_invoice(_invoice(data), policy)

    async def get(self, invoice_id: str) -> Invoice:
        envelope = await self._client.get(f"/invoices/{invoice_id}")
        return _invoice(envelope.require()).to_domain()


__all__ = ("INVOICE_MISSING_MESSAGE", "shipping_body", "order_body", "InvoiceApi")
