"""
QR settlement — create the order, then mark it paid, as one logical step.

If marking paid fails after the order exists, the order is looked up by
id first: a payment the server did record (lost reply) settles normally.
Otherwise the order is voided (compensation) and the error carries its id.
Creation is never retried from the middle.

    result = await settle(invoices, request)

    match result:
        case Ok(invoice):
            ...
        case Error(e) if e.invoice_id:
            # order exists server-side; e.rollback_complete tells if it was voided
            ...
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from combinators import lift as L
from kungfu import Error, LazyCoroResult, Ok, Result

from cartpay._types import Compensator
from cartpay.checkout._errors import (
    ORDER_FAILED_MESSAGE,
    VERIFY_FAILED_MESSAGE,
    CheckoutError,
    CheckoutErrorKind,
)
from cartpay.domain import Invoice
from cartpay.ports import InvoiceService, OrderRequest

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Step — action + compensation
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SettlementStep[T]:
    """
    A single step: action + compensator.

    When the action succeeds its compensator is recorded.
    If a later step fails, recorded compensators run in reverse.
    """

    action: LazyCoroResult[T, CheckoutError]
    compensate: Compensator[T] | None = None


type RecordedCompensator[T] = tuple[T, Compensator[T]]


async def run_step[T](
    step: SettlementStep[T],
    compensators: list[RecordedCompensator[T]],
) -> Result[T, CheckoutError]:
    """Execute a step, recording its compensator on success."""
    result = await step.action
    match result:
        case Ok(value):
            if step.compensate is not None:
                compensators.append((value, step.compensate))
            return Ok(value)
        case Error(e):
            return Error(e)


async def run_compensators[T](compensators: list[RecordedCompensator[T]]) -> tuple[int, int]:
    """Run compensators in reverse. Returns (run, failed)."""
    comp_run = 0
    comp_failed = 0

    for value, comp in reversed(compensators):
        try:
            await comp(value)
            comp_run += 1
        except Exception:
            logger.exception("Compensation failed for %r", value)
            comp_failed += 1

    return comp_run, comp_failed


# ═══════════════════════════════════════════════════════════════════════════════
# settle()
# ═══════════════════════════════════════════════════════════════════════════════


def _failed(fallback: str) -> Callable[[Exception], CheckoutError]:
    def convert(exc: Exception) -> CheckoutError:
        return CheckoutError(CheckoutErrorKind.ORDER_FAILED, str(exc) or fallback)

    return convert


async def _recorded_paid(invoices: InvoiceService, invoice_id: str) -> Invoice | None:
    """The invoice if the server recorded its payment despite the failed call."""
    found = await L.catching_async(
        lambda: invoices.get(invoice_id),
        on_error=_failed(VERIFY_FAILED_MESSAGE),
    )
    match found:
        case Ok(invoice) if invoice.is_paid:
            return invoice
        case Ok(_):
            return None
        case Error(e):
            logger.warning("Lookup of invoice %s failed: %s", invoice_id, e.message)
            return None


async def settle(invoices: InvoiceService, request: OrderRequest) -> Result[Invoice, CheckoutError]:
    """Create + mark paid. If the second call fails and no payment was recorded, void the order."""

    async def void(invoice: Invoice) -> None:
        await invoices.cancel(invoice.id)
        logger.warning("Voided invoice %s after failed payment confirmation", invoice.id)

    compensators: list[RecordedCompensator[Invoice]] = []

    created = await run_step(
        SettlementStep(
            action=L.catching_async(
                lambda: invoices.create(request),
                on_error=_failed(ORDER_FAILED_MESSAGE),
            ),
            compensate=void,
        ),
        compensators,
    )
    match created:
        case Error(e):
            # Nothing exists server-side.
            return Error(e)
        case Ok(invoice):
            pass

    logger.info("Invoice %s created for QR payment %s", invoice.id, request.payment_ref)

    paid = await run_step(
        SettlementStep(
            action=L.catching_async(
                lambda: invoices.mark_paid(invoice.id),
                on_error=_failed(VERIFY_FAILED_MESSAGE),
            ),
        ),
        compensators,
    )
    match paid:
        case Ok(updated):
            return Ok(updated)
        case Error(e):
            recorded = await _recorded_paid(invoices, invoice.id)
            if recorded is not None:
                logger.info("Invoice %s was marked paid despite the failed reply", invoice.id)
                return Ok(recorded)

            comp_run, comp_failed = await run_compensators(compensators)
            rollback_complete = comp_failed == 0
            logger.warning(
                "Settlement of invoice %s failed: %d compensation(s) run, %d failed",
                invoice.id,
                comp_run,
                comp_failed,
            )
            message = e.message
            if not rollback_complete:
                message = f"{e.message} Order {invoice.id} was created; check your orders before paying again."
            return Error(
                CheckoutError(
                    kind=CheckoutErrorKind.SETTLEMENT_FAILED,
                    message=message,
                    invoice_id=invoice.id,
                    rollback_complete=rollback_complete,
                )
            )


__all__ = ("SettlementStep", "run_step", "run_compensators", "settle")
