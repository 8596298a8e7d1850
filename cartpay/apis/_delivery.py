"""
DeliveryApi — delivery quotations through the backend proxy.
"""

from __future__ import annotations

import logging
from typing import Any

from cartpay.apis._client import ApiClient
from cartpay.apis._wire import WireQuotation, parse
from cartpay.domain import ShippingQuote, Stop
from cartpay.shipping import build_quote_request

logger = logging.getLogger(__name__)


def _unwrap(data: Any) -> Any:
    # The proxy sometimes forwards the provider body verbatim: {"data": {...}}.
    if isinstance(data, dict) and "quotationId" not in data and isinstance(data.get("data"), dict):
        return data["data"]
    return data


class DeliveryApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def create_quotation(self, pickup: Stop, dropoff: Stop, quantity: int) -> ShippingQuote:
        envelope = await self._client.post(
            "/lalamove/quotations",
            json=build_quote_request(pickup, dropoff, quantity),
        )
        quote = parse(WireQuotation, _unwrap(envelope.require())).to_domain()
        logger.debug("Quotation %s: %s m", quote.quotation_id, quote.distance_meters)
        return quote


__all__ = ("DeliveryApi",)
