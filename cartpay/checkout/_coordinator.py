"""
CheckoutCoordinator — one checkout session, from selected lines to an order.

    coordinator = CheckoutCoordinator(
        delivery=DeliveryApi(client),
        vouchers=VoucherApi(client),
        invoices=InvoiceApi(client),
        intents=PaymentIntentApi(client),
        qr=VietQrProvider.from_settings(settings),
        settings=settings,
    )

    await coordinator.refresh_shipping(lines, profile)

    match await coordinator.checkout(lines, CheckoutMethod.WALLET, profile=profile, voucher=voucher):
        case Ok(WalletRedirect(url=url)):
            open_url(url)
            coordinator.watch_wallet(scope, on_settled=show_completion)
        case Ok(QrChallenge(session=session)):
            show_qr(session.qr_url)          # then coordinator.confirm_qr_paid()
        case Ok(OrderPlaced(invoice=invoice)):
            show_completion(invoice)
        case Error(e) if not e.silent:
            show_error(e.message)

Attempt order:
    guard (one attempt at a time) → line snapshot →
    phone → purchasable lines → shipping ready → distance → voucher →
    cash | wallet | qr
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable

from combinators import fallback
from combinators import lift as L
from kungfu import Error, LazyCoroResult, Ok, Result

from cartpay.attempts import AttemptError, AttemptErrorKind, AttemptGuard
from cartpay.checkout._errors import (
    NO_INTENT_MESSAGE,
    NO_QR_SESSION_MESSAGE,
    ORDER_FAILED_MESSAGE,
    QR_FAILED_MESSAGE,
    VOUCHER_REJECTED_MESSAGE,
    CheckoutError,
    CheckoutErrorKind,
)
from cartpay.checkout._settlement import settle
from cartpay.checkout._types import (
    CheckoutMethod,
    CheckoutOutcome,
    OrderPlaced,
    PendingQr,
    QrChallenge,
    WalletRedirect,
)
from cartpay.config import CheckoutSettings
from cartpay.domain import (
    Address,
    CancelledInvoice,
    CartLine,
    IntentStatus,
    Invoice,
    PaymentMethod,
    ShippingQuote,
    UserProfile,
    Voucher,
)
from cartpay.eligibility import QUOTE_NOT_PREPARED_MESSAGE, Eligibility, EligibilityGate
from cartpay.payment import (
    PaymentError,
    PaymentErrorKind,
    PollOutcome,
    PaymentIntentOrchestrator,
    FocusScope,
    pick_redirect_target,
)
from cartpay.ports import (
    DeliveryQuotes,
    IntentRequest,
    InvoiceService,
    OrderRequest,
    PaymentIntentService,
    QrProvider,
    ShippingContext,
    VoucherCheck,
    VoucherService,
)
from cartpay.pricing import CheckoutTotals, price_checkout
from cartpay.shipping import (
    QuoteError,
    QuoteLookup,
    ShippingQuoteCache,
    ShippingState,
    dropoff_stop,
)

logger = logging.getLogger(__name__)

CHECKOUT_KEY = "checkout"

type SettledCallback = Callable[[Result[str, CheckoutError]], None]


def _order_failed(exc: Exception) -> CheckoutError:
    return CheckoutError(CheckoutErrorKind.ORDER_FAILED, str(exc) or ORDER_FAILED_MESSAGE)


def _voucher_rejected(exc: Exception) -> CheckoutError:
    return CheckoutError(CheckoutErrorKind.VOUCHER_REJECTED, str(exc) or VOUCHER_REJECTED_MESSAGE)


def _qr_failed(exc: Exception) -> CheckoutError:
    return CheckoutError(CheckoutErrorKind.QR_FAILED, str(exc) or QR_FAILED_MESSAGE)


def shipping_context(shipping: ShippingState, fee: int) -> Result[ShippingContext, CheckoutError]:
    """The quote reference an order or intent is created against."""
    quote = shipping.quote
    if quote is None:
        return Error(CheckoutError(CheckoutErrorKind.SHIPPING_NOT_READY, QUOTE_NOT_PREPARED_MESSAGE))
    return Ok(ShippingContext(fee=fee, quotation_id=quote.quotation_id, stop_refs=quote.stop_refs))


def _unwrap_attempt[T](
    result: Result[T, AttemptError[CheckoutError]],
) -> Result[T, CheckoutError]:
    match result:
        case Ok(value):
            return Ok(value)
        case Error(err) if err.kind is AttemptErrorKind.IN_PROGRESS:
            return Error(CheckoutError.in_progress())
        case Error(err) if err.original_error is not None:
            return Error(err.original_error)
        case Error(err):
            return Error(CheckoutError(CheckoutErrorKind.ORDER_FAILED, err.message))


class CheckoutCoordinator:
    """
    Owns every piece of mutable checkout state for one session:
    quote cache, in-flight attempt, wallet intent id, QR session.
    """

    def __init__(
        self,
        *,
        delivery: DeliveryQuotes,
        vouchers: VoucherService,
        invoices: InvoiceService,
        intents: PaymentIntentService,
        qr: QrProvider,
        settings: CheckoutSettings | None = None,
        quotes: ShippingQuoteCache | None = None,
        payments: PaymentIntentOrchestrator | None = None,
    ) -> None:
        self._settings = settings or CheckoutSettings()
        self._delivery = delivery
        self._vouchers = vouchers
        self._invoices = invoices
        self._qr = qr
        self._quotes = quotes or ShippingQuoteCache(
            max_size=self._settings.quote_cache_size,
            honor_expiry=self._settings.honor_quote_expiry,
        )
        self._gate = EligibilityGate(max_distance_m=self._settings.max_distance_m)
        self._payments = payments or PaymentIntentOrchestrator(
            intents,
            vouchers,
            interval_s=self._settings.poll_interval_s,
            max_attempts=self._settings.poll_max_attempts,
        )
        # Double tap → IN_PROGRESS; any finished attempt is forgotten.
        self._attempts = AttemptGuard()
        self._confirmations = AttemptGuard()
        self._intent_id: str | None = None
        self._pending_qr: PendingQr | None = None
        # A settled QR session replays its order instead of paying twice.
        self._settled_qr: dict[str, OrderPlaced] = {}

    # ═══════════════════════════════════════════════════════════════════════════
    # State
    # ═══════════════════════════════════════════════════════════════════════════

    @property
    def shipping(self) -> ShippingState:
        return self._quotes.state

    @property
    def quotes(self) -> ShippingQuoteCache:
        return self._quotes

    @property
    def payments(self) -> PaymentIntentOrchestrator:
        return self._payments

    @property
    def gate(self) -> EligibilityGate:
        return self._gate

    @property
    def in_progress(self) -> bool:
        return self._attempts.is_running(CHECKOUT_KEY)

    @property
    def intent_id(self) -> str | None:
        return self._intent_id

    @property
    def pending_qr(self) -> PendingQr | None:
        return self._pending_qr

    def evaluate(self, lines: Iterable[CartLine]) -> Eligibility:
        return self._gate.evaluate(lines, self.shipping.distance_meters)

    def price(self, lines: Iterable[CartLine], voucher: Voucher | None) -> CheckoutTotals:
        """Totals as the screen shows them right now."""
        return price_checkout(lines, voucher, self.shipping.fee)

    # ═══════════════════════════════════════════════════════════════════════════
    # Shipping
    # ═══════════════════════════════════════════════════════════════════════════

    async def refresh_shipping(
        self,
        lines: Iterable[CartLine],
        profile: UserProfile | None,
    ) -> Result[QuoteLookup, QuoteError]:
        """Resolve the quote for the default address and purchasable line count."""
        eligibility = self._gate.evaluate(lines, None)
        address = profile.default_address if profile else None
        return await self._quotes.resolve_for(address, eligibility.purchasable_count, self._quote)

    async def _quote(self, address: Address, quantity: int) -> ShippingQuote:
        return await self._delivery.create_quotation(
            self._settings.pickup_stop,
            dropoff_stop(address),
            quantity,
        )

    def lose_focus(self) -> None:
        """Screen blurred: stop in-flight quote requests."""
        self._quotes.cancel()

    # ═══════════════════════════════════════════════════════════════════════════
    # checkout()
    # ═══════════════════════════════════════════════════════════════════════════

    async def checkout(
        self,
        lines: Iterable[CartLine],
        method: CheckoutMethod,
        *,
        profile: UserProfile | None,
        voucher: Voucher | None = None,
    ) -> Result[CheckoutOutcome, CheckoutError]:
        """
        Run one checkout attempt.

        A second call while one is running returns IN_PROGRESS (silent)
        and makes no calls.
        """
        snapshot = tuple(lines)
        result = await self._attempts.run(
            CHECKOUT_KEY,
            lambda: self._attempt(snapshot, method, profile, voucher),
        )
        outcome = _unwrap_attempt(result)
        match outcome:
            case Error(err) if not err.silent:
                logger.info("Checkout (%s) stopped: %s", method.value, err.message)
            case _:
                pass
        return outcome

    async def _attempt(
        self,
        lines: tuple[CartLine, ...],
        method: CheckoutMethod,
        profile: UserProfile | None,
        voucher: Voucher | None,
    ) -> Result[CheckoutOutcome, CheckoutError]:
        shipping = self._quotes.state

        match self._gate.check(profile, lines, shipping, voucher):
            case Error(block):
                return Error(CheckoutError.from_block(block))
            case Ok(eligibility):
                pass

        totals = price_checkout(eligibility.purchasable, voucher, shipping.fee)

        if voucher is not None:
            match await self._revalidate(voucher, totals.subtotal):
                case Error(err):
                    return Error(err)
                case Ok(_):
                    pass

        match shipping_context(shipping, totals.shipping_fee):
            case Error(err):
                return Error(err)
            case Ok(context):
                pass
        line_ids = tuple(line.line_id for line in eligibility.purchasable)

        match method:
            case CheckoutMethod.CASH:
                return await self._pay_cash(line_ids, context, voucher, totals)
            case CheckoutMethod.WALLET:
                return await self._pay_wallet(line_ids, context, voucher, totals)
            case CheckoutMethod.QR:
                return await self._pay_qr(lines, profile, voucher, totals)

    def _validate(
        self, voucher: Voucher, amount: int, *, validate_only: bool
    ) -> LazyCoroResult[VoucherCheck, CheckoutError]:
        return L.catching_async(
            lambda: self._vouchers.validate(voucher.id, amount, validate_only=validate_only),
            on_error=_voucher_rejected,
        )

    async def _revalidate(self, voucher: Voucher, subtotal: int) -> Result[VoucherCheck, CheckoutError]:
        """Server check for the current subtotal. A failed dry run falls back to a full check."""
        checked = await fallback(
            self._validate(voucher, subtotal, validate_only=True),
            self._validate(voucher, subtotal, validate_only=False),
        )
        match checked:
            case Ok(check) if check.success:
                return Ok(check)
            case Ok(check):
                return Error(
                    CheckoutError(
                        CheckoutErrorKind.VOUCHER_REJECTED,
                        check.message or VOUCHER_REJECTED_MESSAGE,
                    )
                )
            case Error(err):
                return Error(err)

    # ───────────────────────────────────────────────────────────────────────────
    # cash
    # ───────────────────────────────────────────────────────────────────────────

    async def _pay_cash(
        self,
        line_ids: tuple[str, ...],
        context: ShippingContext,
        voucher: Voucher | None,
        totals: CheckoutTotals,
    ) -> Result[CheckoutOutcome, CheckoutError]:
        request = OrderRequest(
            line_ids=line_ids,
            payment_method=PaymentMethod.COD,
            shipping=context,
            voucher_id=voucher.id if voucher else None,
        )
        # Once dispatched, creation and its teardown finish even if the caller goes away.
        return await self._attempts.shield(CHECKOUT_KEY, self._place_cash(request, totals))

    async def _place_cash(
        self, request: OrderRequest, totals: CheckoutTotals
    ) -> Result[CheckoutOutcome, CheckoutError]:
        created = await L.catching_async(
            lambda: self._invoices.create(request),
            on_error=_order_failed,
        )
        match created:
            case Ok(invoice):
                logger.info("Cash order %s placed: total=%s", invoice.id, totals.total)
                await self._refresh_vouchers()
                self._teardown()
                return Ok(OrderPlaced(invoice=invoice, totals=totals))
            case Error(err):
                return Error(err)

    # ───────────────────────────────────────────────────────────────────────────
    # wallet
    # ───────────────────────────────────────────────────────────────────────────

    async def _pay_wallet(
        self,
        line_ids: tuple[str, ...],
        context: ShippingContext,
        voucher: Voucher | None,
        totals: CheckoutTotals,
    ) -> Result[CheckoutOutcome, CheckoutError]:
        request = IntentRequest(
            amount=totals.total,
            description=self._settings.payment_description,
            line_ids=line_ids,
            shipping=context,
            voucher_id=voucher.id if voucher else None,
        )
        created = await self._payments.create(request)
        match created:
            case Ok(intent):
                self._intent_id = intent.intent_id
                url = pick_redirect_target(intent) or ""
                return Ok(WalletRedirect(intent=intent, url=url, totals=totals))
            case Error(err) if err.kind is PaymentErrorKind.NO_REDIRECT:
                return Error(CheckoutError(CheckoutErrorKind.NO_REDIRECT, err.message))
            case Error(err):
                return Error(CheckoutError(CheckoutErrorKind.INTENT_FAILED, err.message))

    def watch_wallet(self, scope: FocusScope, on_settled: SettledCallback) -> asyncio.Future[None] | None:
        """
        Poll the current wallet intent while scope holds focus.

        on_settled gets the invoice id on success. The order was created
        server-side; nothing is created here.
        """
        intent_id = self._intent_id
        if intent_id is None:
            return None

        def handle(result: Result[PollOutcome, PaymentError]) -> None:
            match result:
                case Ok(outcome) if outcome.succeeded and outcome.invoice_id:
                    self._teardown()
                    on_settled(Ok(outcome.invoice_id))
                case Ok(outcome):
                    self._intent_id = None
                    kind = (
                        CheckoutErrorKind.PAYMENT_EXPIRED
                        if outcome.status is IntentStatus.EXPIRED
                        else CheckoutErrorKind.PAYMENT_CANCELED
                    )
                    on_settled(Error(CheckoutError(kind, outcome.message or "")))
                case Error(err):
                    on_settled(Error(CheckoutError(CheckoutErrorKind.STILL_PENDING, err.message)))

        return self._payments.watch(intent_id, scope, handle)

    async def cancel_wallet(self) -> Result[str, CheckoutError]:
        intent_id = self._intent_id
        if intent_id is None:
            return Error(CheckoutError(CheckoutErrorKind.NO_INTENT, NO_INTENT_MESSAGE))
        cancelled = await self._payments.cancel(intent_id)
        match cancelled:
            case Ok(cancelled_id):
                self._intent_id = None
                return Ok(cancelled_id)
            case Error(err):
                return Error(CheckoutError(CheckoutErrorKind.INTENT_FAILED, err.message))

    # ───────────────────────────────────────────────────────────────────────────
    # qr
    # ───────────────────────────────────────────────────────────────────────────

    async def _pay_qr(
        self,
        lines: tuple[CartLine, ...],
        profile: UserProfile | None,
        voucher: Voucher | None,
        totals: CheckoutTotals,
    ) -> Result[CheckoutOutcome, CheckoutError]:
        created = await L.catching_async(
            lambda: self._qr.create(totals.total, self._settings.payment_description),
            on_error=_qr_failed,
        )
        match created:
            case Ok(session):
                self._pending_qr = PendingQr(
                    session=session,
                    lines=lines,
                    profile=profile,
                    voucher=voucher,
                    totals=totals,
                )
                logger.info("QR session %s opened: amount=%s", session.session_id, totals.total)
                return Ok(QrChallenge(session=session, totals=totals))
            case Error(err):
                return Error(err)

    async def confirm_qr_paid(self) -> Result[OrderPlaced, CheckoutError]:
        """
        "I've paid": re-check, then create + mark paid as one step.

        Repeated confirmation of a settled session returns the same invoice.
        """
        pending = self._pending_qr
        if pending is None:
            return Error(CheckoutError(CheckoutErrorKind.NO_QR_SESSION, NO_QR_SESSION_MESSAGE))

        placed = self._settled_qr.get(pending.attempt_key)
        if placed is not None:
            logger.debug("QR session %s already settled", pending.session.session_id)
            return Ok(placed)

        result = await self._confirmations.run(
            pending.attempt_key,
            lambda: self._settle_qr(pending),
        )
        return _unwrap_attempt(result)

    async def _settle_qr(self, pending: PendingQr) -> Result[OrderPlaced, CheckoutError]:
        shipping = self._quotes.state

        match self._gate.check(pending.profile, pending.lines, shipping, pending.voucher):
            case Error(block):
                return Error(CheckoutError.from_block(block))
            case Ok(eligibility):
                pass

        totals = price_checkout(eligibility.purchasable, pending.voucher, shipping.fee)
        match shipping_context(shipping, totals.shipping_fee):
            case Error(err):
                return Error(err)
            case Ok(context):
                pass
        request = OrderRequest(
            line_ids=tuple(line.line_id for line in eligibility.purchasable),
            payment_method=PaymentMethod.QR_PAY,
            shipping=context,
            voucher_id=pending.voucher.id if pending.voucher else None,
            payment_ref=pending.session.session_id,
        )

        # Once dispatched, settlement and its bookkeeping finish even if the caller goes away.
        return await self._confirmations.shield(
            pending.attempt_key, self._finish_qr(pending, request, totals)
        )

    async def _finish_qr(
        self, pending: PendingQr, request: OrderRequest, totals: CheckoutTotals
    ) -> Result[OrderPlaced, CheckoutError]:
        settled = await settle(self._invoices, request)
        match settled:
            case Ok(invoice):
                logger.info("QR order %s settled", invoice.id)
                placed = OrderPlaced(invoice=invoice, totals=totals)
                self._settled_qr[pending.attempt_key] = placed
                await self._refresh_vouchers()
                self._teardown(keep_qr=True)
                return Ok(placed)
            case Error(err) if err.invoice_id is not None:
                # An order was created: this session must not create another.
                if self._pending_qr is pending:
                    self._pending_qr = None
                return Error(err)
            case Error(err):
                return Error(err)

    def dismiss_qr(self) -> bool:
        """Close the QR sheet. Refused while a confirmation is running."""
        pending = self._pending_qr
        if pending is None:
            return True
        if self._confirmations.is_running(pending.attempt_key):
            return False
        self._settled_qr.pop(pending.attempt_key, None)
        self._pending_qr = None
        return True

    # ═══════════════════════════════════════════════════════════════════════════
    # Orders
    # ═══════════════════════════════════════════════════════════════════════════

    async def lookup_order(self, invoice_id: str) -> Result[Invoice, CheckoutError]:
        return await L.catching_async(
            lambda: self._invoices.get(invoice_id),
            on_error=_order_failed,
        )

    async def cancel_order(self, invoice_id: str) -> Result[CancelledInvoice, CheckoutError]:
        """Cancel a placed order. The result carries the server's cancel-quota verdict."""
        return await L.catching_async(
            lambda: self._invoices.cancel(invoice_id),
            on_error=_order_failed,
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # Internals
    # ═══════════════════════════════════════════════════════════════════════════

    async def _refresh_vouchers(self) -> None:
        refreshed = await L.catching_async(self._vouchers.list_vouchers, on_error=_order_failed)
        match refreshed:
            case Error(err):
                logger.warning("Voucher refresh failed: %s", err.message)
            case Ok(_):
                pass

    def _teardown(self, *, keep_qr: bool = False) -> None:
        """Order placed: the quotes and payment state of this cart are done."""
        self._quotes.clear()
        self._intent_id = None
        if not keep_qr:
            self._pending_qr = None


__all__ = ("CHECKOUT_KEY", "CheckoutCoordinator", "SettledCallback", "shipping_context")
