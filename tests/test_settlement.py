"""QR settlement: create, mark paid, void on failure."""
from __future__ import annotations

from kungfu import Error, Ok

from cartpay.checkout import CheckoutErrorKind, run_compensators, settle
from cartpay.domain import PaymentMethod, PaymentState
from cartpay.ports import OrderRequest, ShippingContext

REQUEST = OrderRequest(
    line_ids=("c1", "c2"),
    payment_method=PaymentMethod.QR_PAY,
    shipping=ShippingContext(fee=25_000, quotation_id="q-1", stop_refs=("s1", "s2")),
    payment_ref="vietqr_1",
)


async def test_settled(invoices):
    result = await settle(invoices, REQUEST)

    invoice = result.unwrap()
    assert invoice.payment.status is PaymentState.PAID
    assert invoice.payment.reference == "vietqr_1"
    assert invoices.marked == [invoice.id]
    assert invoices.cancelled == []


async def test_create_failure_leaves_nothing(invoices):
    invoices.fail_create = RuntimeError("Cart is empty")

    result = await settle(invoices, REQUEST)

    match result:
        case Error(err):
            assert err.kind is CheckoutErrorKind.ORDER_FAILED
            assert err.invoice_id is None
        case Ok(_):
            raise AssertionError("expected failure")
    assert invoices.marked == []
    assert invoices.cancelled == []


async def test_mark_paid_failure_voids_order(invoices):
    invoices.fail_mark_paid = RuntimeError("Payment gateway timeout")

    result = await settle(invoices, REQUEST)

    match result:
        case Error(err):
            assert err.kind is CheckoutErrorKind.SETTLEMENT_FAILED
            assert err.invoice_id == "inv-1"
            assert err.rollback_complete is True
            assert err.message == "Payment gateway timeout"
        case Ok(_):
            raise AssertionError("expected failure")
    assert invoices.cancelled == ["inv-1"]
    assert len(invoices.created) == 1


async def test_lost_mark_paid_reply_keeps_paid_order(invoices):
    invoices.fail_mark_paid = TimeoutError("read timeout")
    invoices.lose_mark_paid_reply = True

    result = await settle(invoices, REQUEST)

    invoice = result.unwrap()
    assert invoice.id == "inv-1"
    assert invoice.payment.status is PaymentState.PAID
    assert invoices.cancelled == []
    assert len(invoices.created) == 1


async def test_failed_lookup_still_voids(invoices):
    invoices.fail_mark_paid = RuntimeError("Payment gateway timeout")

    async def unreachable(invoice_id):
        raise RuntimeError("network down")

    invoices.get = unreachable

    result = await settle(invoices, REQUEST)

    match result:
        case Error(err):
            assert err.kind is CheckoutErrorKind.SETTLEMENT_FAILED
            assert err.rollback_complete is True
        case Ok(_):
            raise AssertionError("expected failure")
    assert invoices.cancelled == ["inv-1"]


async def test_incomplete_rollback_is_reported(invoices):
    invoices.fail_mark_paid = RuntimeError("Payment gateway timeout")
    invoices.fail_cancel = RuntimeError("Cancel quota exceeded")

    result = await settle(invoices, REQUEST)

    match result:
        case Error(err):
            assert err.rollback_complete is False
            assert "inv-1" in err.message
        case Ok(_):
            raise AssertionError("expected failure")


async def test_compensators_run_in_reverse():
    order = []

    async def undo(value):
        order.append(value)
        if value == "b":
            raise RuntimeError("stuck")

    run, failed = await run_compensators([("a", undo), ("b", undo), ("c", undo)])

    assert order == ["c", "b", "a"]
    assert (run, failed) == (2, 1)
