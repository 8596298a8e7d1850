"""HTTP adapters over httpx.MockTransport."""
from __future__ import annotations

import json

import httpx
import pytest

from cartpay.apis import (
    INVOICE_MISSING_MESSAGE,
    NO_RESPONSE_MESSAGE,
    UNEXPECTED_RESPONSE_MESSAGE,
    ApiClient,
    ApiError,
    DeliveryApi,
    InvoiceApi,
    PaymentIntentApi,
    ProfileApi,
    VietQrProvider,
    VoucherApi,
    error_message,
)
from cartpay.config import CheckoutSettings
from cartpay.domain import IntentStatus, InvoiceStatus, PaymentMethod, VoucherType
from cartpay.ports import IntentRequest, OrderRequest, ShippingContext
from cartpay.shipping import dropoff_stop
from tests.conftest import HOME

BASE = "http://api.test/api"
SHIPPING = ShippingContext(fee=25_000, quotation_id="q-1", stop_refs=("s1", "s2"))


class Recorder:
    """Routes requests to canned responses and remembers what was sent."""

    def __init__(self, routes: dict[tuple[str, str], httpx.Response | Exception]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes[(request.method, request.url.path)]
        if isinstance(response, Exception):
            raise response
        return response

    def body(self, index: int = -1):
        return json.loads(self.requests[index].content)


def _client(recorder: Recorder, token: str | None = "tok") -> ApiClient:
    return ApiClient(BASE, token_provider=lambda: token, transport=httpx.MockTransport(recorder))


def ok(data, **extra) -> httpx.Response:
    return httpx.Response(200, json={"success": True, "data": data, **extra})


INVOICE = {
    "_id": "inv-1",
    "total": 145_000,
    "payment": {"method": "COD", "status": "pending"},
    "shippingFee": 25_000,
    "status": "pending",
    "voucherId": {"_id": "v1", "title": "10% off"},
}


class TestErrorMessage:
    def test_message_first(self):
        assert error_message({"message": "Voucher not found", "error": "Bad Request"}) == "Voucher not found"

    def test_error_field(self):
        assert error_message({"error": "Unauthorized"}) == "Unauthorized"

    def test_errors_joined(self):
        assert error_message({"errors": [{"msg": "phone required"}, {"message": "cart empty"}]}) == (
            "phone required, cart empty"
        )

    def test_plain_text(self):
        assert error_message("  Bad Gateway  ") == "Bad Gateway"

    def test_nothing(self):
        assert error_message({}) is None
        assert error_message(None) is None


class TestClient:
    async def test_bearer_token(self):
        rec = Recorder({("GET", "/api/vouchers"): ok([])})
        async with _client(rec) as client:
            await client.get("/vouchers")
        assert rec.requests[0].headers["Authorization"] == "Bearer tok"

    async def test_no_token_no_header(self):
        rec = Recorder({("GET", "/api/vouchers"): ok([])})
        async with _client(rec, token=None) as client:
            await client.get("/vouchers")
        assert "Authorization" not in rec.requests[0].headers

    async def test_server_message_is_raised(self):
        rec = Recorder({("GET", "/api/vouchers"): httpx.Response(400, json={"message": "Token expired"})})
        async with _client(rec) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get("/vouchers")
        assert str(exc_info.value) == "Token expired"
        assert exc_info.value.status_code == 400

    async def test_status_phrase_fallback(self):
        rec = Recorder({("GET", "/api/vouchers"): httpx.Response(503)})
        async with _client(rec) as client:
            with pytest.raises(ApiError, match="Service Unavailable"):
                await client.get("/vouchers")

    async def test_no_response(self):
        rec = Recorder({("GET", "/api/vouchers"): httpx.ConnectError("connection refused")})
        async with _client(rec) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get("/vouchers")
        assert exc_info.value.message == NO_RESPONSE_MESSAGE
        assert exc_info.value.status_code is None

    async def test_bare_payload_is_wrapped(self):
        rec = Recorder({("GET", "/api/ping"): httpx.Response(200, json=[1, 2])})
        async with _client(rec) as client:
            envelope = await client.get("/ping")
        assert envelope.success
        assert envelope.require() == [1, 2]

    async def test_unsuccessful_envelope(self):
        rec = Recorder({("GET", "/api/x"): httpx.Response(200, json={"success": False, "message": "Nope"})})
        async with _client(rec) as client:
            envelope = await client.get("/x")
        with pytest.raises(ApiError, match="Nope"):
            envelope.require()

    def test_from_settings(self):
        settings = CheckoutSettings(_env_file=None, api_base_url="https://shop.example/api/")
        client = ApiClient.from_settings(settings)
        assert str(client._http.base_url) == "https://shop.example/api/"


class TestDelivery:
    async def test_double_wrapped_quotation(self):
        quotation = {
            "quotationId": "q-9",
            "stops": [
                {"stopId": "s1", "coordinates": {"lat": "21.03", "lng": "105.74"}, "address": "Pickup"},
                {"stopId": "s2", "coordinates": {"lat": 21.02, "lng": 105.85}, "address": "Home"},
            ],
            "priceBreakdown": {"base": "18000", "total": "25000", "currency": "VND"},
            "distance": {"value": "3200", "unit": "m"},
            "expiresAt": "2026-05-01T12:05:00Z",
        }
        rec = Recorder({("POST", "/api/lalamove/quotations"): ok({"data": quotation})})
        api = DeliveryApi(_client(rec))

        quote = await api.create_quotation(CheckoutSettings(_env_file=None).pickup_stop, dropoff_stop(HOME), 2)

        assert quote.quotation_id == "q-9"
        assert quote.stop_refs == ("s1", "s2")
        assert quote.stops[1].lat == "21.02"
        assert quote.distance_meters == 3200
        assert quote.expires_at is not None
        assert rec.body()["data"]["item"]["quantity"] == "2"

    async def test_kilometers(self):
        quotation = {"quotationId": "q-1", "distance": {"value": "3.5", "unit": "KM"}}
        rec = Recorder({("POST", "/api/lalamove/quotations"): ok(quotation)})

        quote = await DeliveryApi(_client(rec)).create_quotation(
            CheckoutSettings(_env_file=None).pickup_stop, dropoff_stop(HOME), 1
        )

        assert quote.distance_meters == 3500

    async def test_schema_drift(self):
        rec = Recorder({("POST", "/api/lalamove/quotations"): ok({"stops": []})})
        with pytest.raises(ApiError, match=UNEXPECTED_RESPONSE_MESSAGE):
            await DeliveryApi(_client(rec)).create_quotation(
                CheckoutSettings(_env_file=None).pickup_stop, dropoff_stop(HOME), 1
            )


class TestVouchers:
    async def test_list(self):
        rec = Recorder(
            {
                ("GET", "/api/vouchers"): ok(
                    [
                        {
                            "_id": "v1",
                            "title": "20% off",
                            "type": "percentage",
                            "discountValue": 20,
                            "discountMaxValue": 50_000,
                            "expirationDate": "2026-12-31T00:00:00.000Z",
                            "isForLoyalCustomer": True,
                        },
                        {"_id": "v2", "type": "FreeShipping", "discountValue": 0},
                    ]
                )
            }
        )

        vouchers = await VoucherApi(_client(rec)).list_vouchers()

        assert [v.id for v in vouchers] == ["v1", "v2"]
        assert vouchers[0].type is VoucherType.PERCENTAGE
        assert vouchers[0].discount_cap == 50_000
        assert vouchers[0].loyal_only
        assert vouchers[1].is_free_shipping

    async def test_rejection_is_a_verdict(self):
        rec = Recorder(
            {("POST", "/api/vouchers/apply"): httpx.Response(200, json={"success": False, "message": "Minimum order not reached"})}
        )

        check = await VoucherApi(_client(rec)).validate("v1", 90_000)

        assert not check.success
        assert check.message == "Minimum order not reached"
        assert rec.body() == {"idVoucher": "v1", "totalOrderAmount": 90_000, "validateOnly": True}


class TestInvoices:
    async def test_create(self):
        rec = Recorder({("POST", "/api/invoices"): ok({"invoice": INVOICE})})
        request = OrderRequest(
            line_ids=("c1", "c2"),
            payment_method=PaymentMethod.COD,
            shipping=SHIPPING,
            voucher_id="v1",
        )

        invoice = await InvoiceApi(_client(rec)).create(request)

        assert invoice.id == "inv-1"
        assert invoice.voucher_id == "v1"
        assert invoice.payment.method is PaymentMethod.COD
        assert rec.body() == {
            "cartIds": ["c1", "c2"],
            "paymentMethod": "COD",
            "voucherId": "v1",
            "shippingFee": 25_000,
            "shippingQuotationId": "q-1",
            "shippingStops": [{"stopId": "s1"}, {"stopId": "s2"}],
        }

    async def test_create_without_invoice(self):
        rec = Recorder({("POST", "/api/invoices"): ok({})})
        request = OrderRequest(line_ids=("c1",), payment_method=PaymentMethod.COD, shipping=SHIPPING)
        with pytest.raises(ApiError, match=INVOICE_MISSING_MESSAGE):
            await InvoiceApi(_client(rec)).create(request)

    async def test_cancel_carries_policy(self):
        cancelled = {**INVOICE, "status": "canceled"}
        policy = {
            "breached": False,
            "breachedKeys": [],
            "counts": {"perDay": 2},
            "warns": [{"key": "perDay", "count": 2, "limit": 3}],
        }
        rec = Recorder({("PATCH", "/api/invoices/cancel/inv-1"): ok(cancelled, cancelPolicy=policy)})

        result = await InvoiceApi(_client(rec)).cancel("inv-1")

        assert result.invoice.status is InvoiceStatus.CANCELED
        assert result.policy.counts == {"perDay": 2}
        assert result.policy.warns[0].limit == 3

    async def test_cancel_without_policy(self):
        rec = Recorder({("PATCH", "/api/invoices/cancel/inv-1"): ok({"invoice": INVOICE})})
        result = await InvoiceApi(_client(rec)).cancel("inv-1")
        assert result.policy is None

    async def test_mark_paid(self):
        paid = {**INVOICE, "payment": {"method": "QRPay", "status": "paid", "reference": "vietqr_1"}}
        rec = Recorder({("PATCH", "/api/invoices/payment/inv-1"): ok(paid)})

        invoice = await InvoiceApi(_client(rec)).mark_paid("inv-1")

        assert invoice.is_paid


class TestIntents:
    async def test_create(self):
        rec = Recorder(
            {
                ("POST", "/api/payment-intents/zalopay"): ok(
                    {"intentId": "pi-1", "status": "requires_action", "orderUrl": "https://zalo/order"}
                )
            }
        )
        request = IntentRequest(amount=145_000, description="Single payment item", line_ids=("c1",), shipping=SHIPPING)

        intent = await PaymentIntentApi(_client(rec)).create(request)

        assert intent.intent_id == "pi-1"
        assert intent.amount == 145_000
        assert intent.order_url == "https://zalo/order"
        body = rec.body()
        assert body["cartIds"] == ["c1"]
        assert body["shippingQuotationId"] == "q-1"
        assert "voucherId" not in body

    async def test_get_with_populated_invoice(self):
        rec = Recorder(
            {
                ("GET", "/api/payment-intents/pi-1"): ok(
                    {"_id": "pi-1", "status": "succeeded", "amount": 145_000, "invoiceId": {"_id": "inv-7"}}
                )
            }
        )

        intent = await PaymentIntentApi(_client(rec)).get("pi-1")

        assert intent.status is IntentStatus.SUCCEEDED
        assert intent.invoice_id == "inv-7"
        assert intent.is_settled

    async def test_cancel(self):
        rec = Recorder({("POST", "/api/payment-intents/pi-1/cancel"): ok({"intentId": "pi-1"})})
        assert await PaymentIntentApi(_client(rec)).cancel("pi-1") == "pi-1"


async def test_profile():
    rec = Recorder(
        {
            ("GET", "/api/users/profile"): ok(
                {
                    "phoneNumber": "0912345678",
                    "isLoyalCustomer": True,
                    "addresses": [
                        {"label": "Work", "addressDetail": "1 Duy Tan", "latitude": 21.03, "longitude": 105.78},
                        {"label": "Home", "addressDetail": "12 Trang Tien", "latitude": 21.02, "longitude": 105.85, "isDefault": True},
                        {"label": "Draft", "addressDetail": "somewhere"},
                    ],
                }
            )
        }
    )

    profile = await ProfileApi(_client(rec)).get_profile()

    assert profile.has_phone
    assert profile.is_loyal_customer
    assert len(profile.addresses) == 2
    assert profile.default_address.label == "Home"


async def test_vietqr_url():
    settings = CheckoutSettings(_env_file=None)
    qr = VietQrProvider.from_settings(settings, clock=lambda: 1_700_000_000.5)

    session = await qr.create(145_000, "Order 42")

    assert session.session_id == "vietqr_1700000000500"
    assert session.qr_url == (
        "https://img.vietqr.io/image/970422-000000000-compact.png?amount=145000&addInfo=Order+42"
    )
    assert qr.image_url(1, "").endswith("addInfo=Payment")
    memo = "Đơn #7 & thanks"
    assert httpx.URL(qr.image_url(1, memo)).params["addInfo"] == memo
