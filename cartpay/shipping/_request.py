"""
Delivery quotation request body.
"""

from __future__ import annotations

from typing import Any

from cartpay.domain import Address, Stop

SERVICE_TYPE = "MOTORCYCLE"
LANGUAGE = "vi_VN"
ITEM_WEIGHT = "LESS_THAN_1KG"
ITEM_CATEGORIES = ("FOOD_DELIVERY",)


def dropoff_stop(address: Address) -> Stop:
    return Stop(
        stop_id=None,
        lat=str(address.latitude),
        lng=str(address.longitude),
        address=address.address_detail,
    )


def _stop_body(stop: Stop) -> dict[str, Any]:
    return {
        "coordinates": {"lat": stop.lat, "lng": stop.lng},
        "address": stop.address or "",
    }


def build_quote_request(pickup: Stop, dropoff: Stop, quantity: int) -> dict[str, Any]:
    """
    Body for POST /lalamove/quotations.

    Note: the provider wants strings for coordinates and quantity.
    """
    return {
        "data": {
            "serviceType": SERVICE_TYPE,
            "language": LANGUAGE,
            "stops": [_stop_body(pickup), _stop_body(dropoff)],
            "item": {
                "quantity": str(quantity),
                "weight": ITEM_WEIGHT,
                "categories": list(ITEM_CATEGORIES),
            },
        }
    }


__all__ = ("dropoff_stop", "build_quote_request")
