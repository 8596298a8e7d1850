"""
PaymentIntentApi — wallet payment intents.
"""

from __future__ import annotations

from cartpay.apis._client import ApiClient, ApiError, GENERIC_MESSAGE
from cartpay.apis._invoices import shipping_body
from cartpay.apis._wire import WireIntent, parse
from cartpay.domain import PaymentIntent
from cartpay.ports import IntentRequest


class PaymentIntentApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def create(self, request: IntentRequest) -> PaymentIntent:
        body = {
            "amount": request.amount,
            "description": request.description,
            "cartIds": list(request.line_ids),
            "note": request.note,
            **shipping_body(request.shipping),
        }
        if request.voucher_id:
            body["voucherId"] = request.voucher_id
        envelope = await self._client.post("/payment-intents/zalopay", json=body)
        return parse(WireIntent, envelope.require()).to_domain(amount=request.amount)

    async def get(self, intent_id: str) -> PaymentIntent:
        envelope = await self._client.get(f"/payment-intents/{intent_id}")
        return parse(WireIntent, envelope.require()).to_domain()

    async def cancel(self, intent_id: str) -> str:
        envelope = await self._client.post(f"/payment-intents/{intent_id}/cancel")
        data = envelope.require()
        cancelled = data.get("intentId") if isinstance(data, dict) else None
        if not cancelled:
            raise ApiError(envelope.message or GENERIC_MESSAGE, payload=data)
        return str(cancelled)


__all__ = ("PaymentIntentApi",)
