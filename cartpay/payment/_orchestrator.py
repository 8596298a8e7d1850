"""
PaymentIntentOrchestrator — wallet payments from creation to a terminal status.

    orchestrator = PaymentIntentOrchestrator(intents, vouchers, interval_s=2.0, max_attempts=60)

    match await orchestrator.create(request):
        case Ok(intent):
            open_url(pick_redirect_target(intent))

    task = orchestrator.watch(intent.intent_id, scope, on_outcome=handle)
    ...
    scope.release()   # navigating away stops polling, no callback

Polling:
    - fixed interval, bounded attempts
    - a failed status fetch is "try again next tick", never terminal
    - succeeded (with invoice) → vouchers refreshed once → outcome
    - canceled / expired → outcome, no retry
    - budget exhausted → STILL_PENDING, local status untouched
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace

from combinators import RepeatPolicy, recover_with, repeat_until
from combinators import lift as L
from kungfu import Error, LazyCoroResult, Ok, Result

from cartpay.domain import IntentStatus, PaymentIntent
from cartpay.payment._redirect import pick_redirect_target
from cartpay.payment._scope import FocusScope
from cartpay.payment._types import (
    NO_REDIRECT_MESSAGE,
    STILL_PENDING_MESSAGE,
    PaymentError,
    PaymentErrorKind,
    PollOutcome,
)
from cartpay.ports import IntentRequest, PaymentIntentService, VoucherService

logger = logging.getLogger(__name__)

type OutcomeCallback = Callable[[Result[PollOutcome, PaymentError]], None]


def _provider_error(exc: Exception) -> PaymentError:
    return PaymentError(PaymentErrorKind.PROVIDER, str(exc) or "Payment provider error", exc)


class PaymentIntentOrchestrator:
    def __init__(
        self,
        intents: PaymentIntentService,
        vouchers: VoucherService,
        *,
        interval_s: float = 2.0,
        max_attempts: int = 60,
    ) -> None:
        self._intents = intents
        self._vouchers = vouchers
        self._policy = RepeatPolicy(max_rounds=max_attempts, delay_seconds=interval_s)
        self._known: dict[str, PaymentIntent] = {}
        # Bumped by cancel(); a fetch issued under an older epoch is discarded.
        self._epochs: dict[str, int] = {}

    def intent(self, intent_id: str) -> PaymentIntent | None:
        """Last known local view of an intent."""
        return self._known.get(intent_id)

    # ═══════════════════════════════════════════════════════════════════════════
    # create
    # ═══════════════════════════════════════════════════════════════════════════

    def create(self, request: IntentRequest) -> LazyCoroResult[PaymentIntent, PaymentError]:
        """Create an intent. No redirect target fails the attempt."""

        async def accept(intent: PaymentIntent) -> Result[PaymentIntent, PaymentError]:
            if pick_redirect_target(intent) is None:
                logger.warning("Intent %s came back without a redirect target", intent.intent_id)
                return Error(PaymentError(PaymentErrorKind.NO_REDIRECT, NO_REDIRECT_MESSAGE))
            self._known[intent.intent_id] = intent
            logger.info("Payment intent %s created: amount=%s", intent.intent_id, intent.amount)
            return Ok(intent)

        return L.catching_async(
            lambda: self._intents.create(request),
            on_error=_provider_error,
        ).then(accept)

    # ═══════════════════════════════════════════════════════════════════════════
    # poll
    # ═══════════════════════════════════════════════════════════════════════════

    def _observe(self, intent_id: str) -> LazyCoroResult[PaymentIntent | None, PaymentError]:
        """One poll tick. A failed fetch becomes None: nothing observed this tick."""

        async def fetch() -> PaymentIntent | None:
            epoch = self._epochs.get(intent_id, 0)
            intent = await self._intents.get(intent_id)
            if epoch != self._epochs.get(intent_id, 0):
                logger.debug("Intent %s reply predates a cancel, discarded", intent_id)
                return None
            self._known[intent_id] = intent
            logger.debug("Intent %s observed: %s", intent_id, intent.status.value)
            return intent

        def skip_tick(err: PaymentError) -> PaymentIntent | None:
            logger.warning("Status fetch for intent %s failed, retrying: %s", intent_id, err.message)
            return None

        return recover_with(
            L.catching_async(fetch, on_error=_provider_error),
            handler=skip_tick,
        )

    def poll(self, intent_id: str) -> LazyCoroResult[PollOutcome, PaymentError]:
        """Poll until settled or out of attempts."""

        async def run() -> Result[PollOutcome, PaymentError]:
            settled = await repeat_until(
                self._observe(intent_id),
                condition=lambda intent: intent is not None and intent.is_settled,
                policy=self._policy,
            )
            match settled:
                case Ok(intent) if intent is not None:
                    if intent.status is IntentStatus.SUCCEEDED:
                        await self._refresh_vouchers()
                        logger.info("Intent %s succeeded, invoice %s", intent_id, intent.invoice_id)
                    else:
                        logger.info("Intent %s ended: %s", intent_id, intent.status.value)
                    return Ok(PollOutcome(intent))
                case _:
                    logger.info(
                        "Intent %s still pending after %d attempts",
                        intent_id,
                        self._policy.max_rounds,
                    )
                    return Error(PaymentError(PaymentErrorKind.STILL_PENDING, STILL_PENDING_MESSAGE))

        return LazyCoroResult(run)

    def watch(
        self,
        intent_id: str,
        scope: FocusScope,
        on_outcome: OutcomeCallback,
    ) -> asyncio.Future[None]:
        """
        Poll in a task owned by scope. on_outcome fires at most once,
        and never after scope.release().
        """

        async def supervise() -> None:
            result = await self.poll(intent_id)
            if scope.active:
                on_outcome(result)

        return scope.spawn(supervise())

    async def _refresh_vouchers(self) -> None:
        refreshed = await L.catching_async(self._vouchers.list_vouchers, on_error=_provider_error)
        match refreshed:
            case Error(err):
                logger.warning("Voucher refresh after payment failed: %s", err.message)
            case Ok(_):
                pass

    # ═══════════════════════════════════════════════════════════════════════════
    # cancel
    # ═══════════════════════════════════════════════════════════════════════════

    def cancel(self, intent_id: str) -> LazyCoroResult[str, PaymentError]:
        """
        Best-effort cancel. On success the local status flips to CANCELED
        right away; the next provider observation overrides it. Status
        replies requested before the cancel landed are discarded.
        """

        async def mark(cancelled_id: str) -> Result[str, PaymentError]:
            self._epochs[intent_id] = self._epochs.get(intent_id, 0) + 1
            local = self._known.get(intent_id)
            if local is not None and not local.status.is_terminal:
                self._known[intent_id] = replace(local, status=IntentStatus.CANCELED)
            logger.info("Intent %s cancelled", intent_id)
            return Ok(cancelled_id or intent_id)

        return L.catching_async(
            lambda: self._intents.cancel(intent_id),
            on_error=_provider_error,
        ).then(mark)


__all__ = ("PaymentIntentOrchestrator", "OutcomeCallback")
