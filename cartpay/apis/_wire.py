"""
Wire models — backend JSON (camelCase, Mongo-style _id) ↔ domain types.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from cartpay.apis._client import ApiError
from cartpay.domain import (
    Address,
    CancelledInvoice,
    CancelPolicyResult,
    CancelWarning,
    IntentStatus,
    Invoice,
    InvoicePayment,
    InvoiceStatus,
    PaymentIntent,
    PaymentMethod,
    PaymentState,
    ShippingQuote,
    Stop,
    UserProfile,
    Voucher,
    VoucherType,
)

UNEXPECTED_RESPONSE_MESSAGE = "Unexpected response from server."


class Wire(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def parse[M: BaseModel](model: type[M], data: Any) -> M:
    """Validate a payload, turning schema drift into a user-safe ApiError."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ApiError(UNEXPECTED_RESPONSE_MESSAGE, payload=data) from exc


def _ref_id(value: Any) -> str | None:
    """A reference that may arrive populated ({"_id": ...}) or as a bare id."""
    if value is None:
        return None
    if isinstance(value, dict):
        ref = value.get("_id") or value.get("id")
        return str(ref) if ref else None
    return str(value)


# ═══════════════════════════════════════════════════════════════════════════════
# Delivery
# ═══════════════════════════════════════════════════════════════════════════════


class WireCoordinates(Wire):
    lat: str
    lng: str

    @field_validator("lat", "lng", mode="before")
    @classmethod
    def _as_text(cls, v: Any) -> str:
        return str(v)


class WireStop(Wire):
    stop_id: str | None = None
    coordinates: WireCoordinates | None = None
    address: str | None = None

    def to_domain(self) -> Stop:
        return Stop(
            stop_id=self.stop_id,
            lat=self.coordinates.lat if self.coordinates else "",
            lng=self.coordinates.lng if self.coordinates else "",
            address=self.address,
        )


class WireDistance(Wire):
    value: Any = None
    unit: str | None = None

    def meters(self) -> float | None:
        if self.value is None or isinstance(self.value, bool):
            return None
        try:
            amount = float(str(self.value).replace(",", ""))
        except ValueError:
            return None
        if (self.unit or "").upper() in ("KM", "KILOMETER", "KILOMETERS"):
            return amount * 1000
        return amount


class WireQuotation(Wire):
    quotation_id: str
    stops: list[WireStop] = Field(default_factory=list)
    price_breakdown: dict[str, Any] = Field(default_factory=dict)
    distance: WireDistance | None = None
    expires_at: datetime | None = None

    @field_validator("distance", mode="before")
    @classmethod
    def _bare_distance(cls, v: Any) -> Any:
        # Some markets send a bare number of meters.
        if v is None or isinstance(v, dict):
            return v
        return {"value": v, "unit": "m"}

    def to_domain(self) -> ShippingQuote:
        return ShippingQuote(
            quotation_id=self.quotation_id,
            stops=tuple(s.to_domain() for s in self.stops),
            price_breakdown=dict(self.price_breakdown),
            distance_meters=self.distance.meters() if self.distance else None,
            expires_at=self.expires_at,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Vouchers
# ═══════════════════════════════════════════════════════════════════════════════


class WireVoucher(Wire):
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    title: str = ""
    type: str = "fixed"
    discount_value: float = 0
    discount_max_value: int | None = None
    minimum_order_value: int | None = None
    max_order_value: int | None = None
    remaining_usage: int | None = None
    expiration_date: datetime | None = None
    is_for_loyal_customer: bool = False

    def to_domain(self) -> Voucher:
        return Voucher(
            id=self.id,
            type=VoucherType.parse(self.type),
            discount_value=self.discount_value,
            title=self.title,
            discount_cap=self.discount_max_value,
            min_order_value=self.minimum_order_value,
            max_order_value=self.max_order_value,
            remaining_usage=self.remaining_usage,
            expires_at=self.expiration_date,
            loyal_only=self.is_for_loyal_customer,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Payment intents
# ═══════════════════════════════════════════════════════════════════════════════


class WireIntent(Wire):
    intent_id: str = Field(validation_alias=AliasChoices("intentId", "_id", "id"))
    status: IntentStatus
    amount: int | None = None
    method: PaymentMethod = PaymentMethod.ZALOPAY
    app_trans_id: str | None = None
    provider_trans_id: str | None = None
    order_url: str | None = None
    deeplink: str | None = None
    invoice_id: str | None = None
    expires_at: datetime | None = None

    @field_validator("invoice_id", mode="before")
    @classmethod
    def _invoice_ref(cls, v: Any) -> str | None:
        return _ref_id(v)

    def to_domain(self, amount: int | None = None) -> PaymentIntent:
        return PaymentIntent(
            intent_id=self.intent_id,
            amount=self.amount if self.amount is not None else (amount or 0),
            status=self.status,
            method=self.method,
            app_trans_id=self.app_trans_id,
            provider_trans_id=self.provider_trans_id,
            order_url=self.order_url,
            deeplink=self.deeplink,
            invoice_id=self.invoice_id,
            expires_at=self.expires_at,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Invoices
# ═══════════════════════════════════════════════════════════════════════════════


class WirePayment(Wire):
    method: PaymentMethod
    status: PaymentState = PaymentState.PENDING
    reference: str | None = None


class WireInvoice(Wire):
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    total: int = 0
    payment: WirePayment
    shipping_fee: int = 0
    status: InvoiceStatus = InvoiceStatus.PENDING
    voucher_id: str | None = None

    @field_validator("voucher_id", mode="before")
    @classmethod
    def _voucher_ref(cls, v: Any) -> str | None:
        return _ref_id(v)

    def to_domain(self) -> Invoice:
        return Invoice(
            id=self.id,
            total=self.total,
            payment=InvoicePayment(
                method=self.payment.method,
                status=self.payment.status,
                reference=self.payment.reference,
            ),
            shipping_fee=self.shipping_fee,
            status=self.status,
            voucher_id=self.voucher_id,
        )


class WireCancelWarning(Wire):
    key: str
    count: int = 0
    limit: int = 0


class WireCancelPolicy(Wire):
    breached: bool = False
    breached_keys: list[str] = Field(default_factory=list)
    counts: dict[str, int] = Field(default_factory=dict)
    warns: list[WireCancelWarning] = Field(default_factory=list)

    def to_domain(self) -> CancelPolicyResult:
        return CancelPolicyResult(
            breached=self.breached,
            breached_keys=tuple(self.breached_keys),
            counts=dict(self.counts),
            warns=tuple(CancelWarning(w.key, w.count, w.limit) for w in self.warns),
        )


def cancelled_invoice(invoice: WireInvoice, policy: Any) -> CancelledInvoice:
    return CancelledInvoice(
        invoice=invoice.to_domain(),
        policy=parse(WireCancelPolicy, policy).to_domain() if policy else None,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Profile
# ═══════════════════════════════════════════════════════════════════════════════


class WireAddress(Wire):
    label: str = ""
    address_detail: str = ""
    latitude: float | None = None
    longitude: float | None = None
    is_default: bool = False


class WireProfile(Wire):
    phone_number: str | None = None
    addresses: list[WireAddress] = Field(default_factory=list)
    is_loyal_customer: bool = False

    def to_domain(self) -> UserProfile:
        # Addresses without coordinates cannot be quoted; skip them.
        addresses = tuple(
            Address(
                address_detail=a.address_detail,
                latitude=a.latitude,
                longitude=a.longitude,
                label=a.label,
                is_default=a.is_default,
            )
            for a in self.addresses
            if a.latitude is not None and a.longitude is not None
        )
        return UserProfile(
            phone_number=self.phone_number,
            addresses=addresses,
            is_loyal_customer=self.is_loyal_customer,
        )


__all__ = (
    "UNEXPECTED_RESPONSE_MESSAGE",
    "Wire",
    "parse",
    "WireStop",
    "WireQuotation",
    "WireVoucher",
    "WireIntent",
    "WireInvoice",
    "WireCancelPolicy",
    "cancelled_invoice",
    "WireProfile",
)
