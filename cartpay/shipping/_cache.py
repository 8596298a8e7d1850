"""
ShippingQuoteCache — single-flight, instance-owned quote cache.

    cache = ShippingQuoteCache(max_size=32)

    result = await cache.resolve(key, lambda: delivery.create_quotation(pickup, dropoff, 2))

    match result:
        case Ok(lookup):
            print(lookup.fee, lookup.hit)
        case Error(e) if not e.silent:
            print(e.message)

Guarantees:
    - a cached key is served without a network call
    - at most one in-flight call per key; concurrent callers share it
    - failures are never cached
    - only the newest resolve updates the displayed ShippingState
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from combinators import lift as L
from kungfu import Error, LazyCoroResult, Ok, Result

from cartpay.domain import Address, ShippingQuote
from cartpay.shipping._fee import extract_fee
from cartpay.shipping._key import quote_key
from cartpay.shipping._types import (
    NO_FEE_MESSAGE,
    LocalTier,
    QuoteEntry,
    QuoteError,
    QuoteErrorKind,
    QuoteLookup,
    ShippingState,
)

logger = logging.getLogger(__name__)

type QuoteFetch = Callable[[], Awaitable[ShippingQuote]]
type QuoteFetchFor = Callable[[Address, int], Awaitable[ShippingQuote]]
type Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _provider_error(exc: Exception) -> QuoteError:
    return QuoteError(QuoteErrorKind.PROVIDER, str(exc) or NO_FEE_MESSAGE, exc)


_CANCELLED = QuoteError(QuoteErrorKind.CANCELLED, "Quote request cancelled")
_NO_KEY = QuoteError(QuoteErrorKind.NO_KEY, "Missing delivery address or items")


class ShippingQuoteCache:
    """
    Quote cache scoped to one checkout session.

    Note: not thread-safe. Everything runs on one event loop.
    """

    def __init__(
        self,
        *,
        max_size: int = 32,
        honor_expiry: bool = True,
        clock: Clock = _utcnow,
    ) -> None:
        self._tier = LocalTier[QuoteEntry](max_size)
        self._inflight: dict[str, asyncio.Task[Result[QuoteEntry, QuoteError]]] = {}
        self._honor_expiry = honor_expiry
        self._clock = clock
        self._generation = 0
        self._state = ShippingState()

    # ───────────────────────────────────────────────────────────────────────────
    # Inspection
    # ───────────────────────────────────────────────────────────────────────────

    @property
    def state(self) -> ShippingState:
        return self._state

    @property
    def inflight_keys(self) -> frozenset[str]:
        return frozenset(self._inflight)

    def peek(self, key: str) -> QuoteEntry | None:
        """Synchronous lookup. Expired quotes are evicted, not returned."""
        entry = self._tier.get(key)
        if entry is None:
            return None
        if self._honor_expiry and entry.quote.is_expired(self._clock()):
            logger.info("Shipping quote %s expired, evicting", entry.quote.quotation_id)
            self._tier.delete(key)
            return None
        return entry

    # ───────────────────────────────────────────────────────────────────────────
    # Resolve
    # ───────────────────────────────────────────────────────────────────────────

    def resolve(self, key: str, compute: QuoteFetch) -> LazyCoroResult[QuoteLookup, QuoteError]:
        """
        Cached quote for key, fetching it with compute on a miss.

        Note: lazy. Nothing happens until awaited.
        """

        async def run() -> Result[QuoteLookup, QuoteError]:
            self._generation += 1
            token = self._generation

            cached = self.peek(key)
            if cached is not None:
                self._publish(token, ShippingState(fee=cached.fee, quote=cached.quote))
                return Ok(QuoteLookup(entry=cached, hit=True, key=key))

            task = self._inflight.get(key)
            if task is None:
                task = self._start(key, compute)
            self._publish(token, _replace_calculating(self._state, True))

            try:
                result = await asyncio.shield(task)
            except asyncio.CancelledError:
                current = asyncio.current_task()
                if task.cancelled() and (current is None or current.cancelling() == 0):
                    return Error(_CANCELLED)
                raise

            match result:
                case Ok(entry):
                    self._publish(token, ShippingState(fee=entry.fee, quote=entry.quote))
                    return Ok(QuoteLookup(entry=entry, hit=False, key=key))
                case Error(err):
                    self._publish(token, self._failed_state(err))
                    return Error(err)

        return LazyCoroResult(run)

    def resolve_for(
        self,
        address: Address | None,
        line_count: int,
        fetch: QuoteFetchFor,
    ) -> LazyCoroResult[QuoteLookup, QuoteError]:
        """Resolve by address + purchasable line count. No key → no call."""
        key = quote_key(address, line_count)
        if key is None or address is None:
            return LazyCoroResult(_no_key)
        return self.resolve(key, lambda: fetch(address, line_count))

    # ───────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ───────────────────────────────────────────────────────────────────────────

    def cancel(self) -> int:
        """Cancel every in-flight request (focus lost). Returns how many."""
        tasks = list(self._inflight.values())
        for task in tasks:
            task.cancel()
        self._inflight.clear()
        self._generation += 1
        self._state = _replace_calculating(self._state, False)
        if tasks:
            logger.debug("Cancelled %d in-flight shipping quote(s)", len(tasks))
        return len(tasks)

    def clear(self) -> None:
        """Drop everything. Used on checkout teardown."""
        self.cancel()
        self._tier.clear()
        self._state = ShippingState()

    # ───────────────────────────────────────────────────────────────────────────
    # Internals
    # ───────────────────────────────────────────────────────────────────────────

    def _start(self, key: str, compute: QuoteFetch) -> asyncio.Task[Result[QuoteEntry, QuoteError]]:
        task = asyncio.ensure_future(self._fetch(key, compute))
        self._inflight[key] = task

        def _done(t: asyncio.Task[Result[QuoteEntry, QuoteError]]) -> None:
            if self._inflight.get(key) is t:
                del self._inflight[key]

        task.add_done_callback(_done)
        return task

    async def _fetch(self, key: str, compute: QuoteFetch) -> Result[QuoteEntry, QuoteError]:
        result = await L.catching_async(compute, on_error=_provider_error)
        match result:
            case Ok(quote):
                entry = QuoteEntry(fee=extract_fee(quote.price_breakdown), quote=quote)
                self._tier.set(key, entry)
                logger.info(
                    "Shipping quote %s resolved: fee=%s distance=%s",
                    quote.quotation_id,
                    entry.fee,
                    quote.distance_meters,
                )
                return Ok(entry)
            case Error(err):
                logger.warning("Shipping quote failed for %s: %s", key, err.message)
                return Error(err)

    def _failed_state(self, err: QuoteError) -> ShippingState:
        # Stale-but-present: a previously resolved quote stays on screen.
        if len(self._tier) > 0:
            return ShippingState(
                fee=self._state.fee,
                quote=self._state.quote,
                calculating=False,
                error=err.message,
            )
        return ShippingState(fee=0, quote=None, calculating=False, error=err.message)

    def _publish(self, token: int, state: ShippingState) -> None:
        if token != self._generation:
            logger.debug("Discarding shipping update from superseded request %d", token)
            return
        self._state = state


async def _no_key() -> Result[QuoteLookup, QuoteError]:
    return Error(_NO_KEY)


def _replace_calculating(state: ShippingState, calculating: bool) -> ShippingState:
    return ShippingState(
        fee=state.fee,
        quote=state.quote,
        calculating=calculating,
        error=None if calculating else state.error,
    )


__all__ = ("ShippingQuoteCache", "QuoteFetch", "QuoteFetchFor")
