"""feed.py

Reference price feed: live quotes when an endpoint answers, a bounded
random walk when it doesn't.

``PriceFeed`` is synchronous and owns the price state; one call to
``sample()`` is one tick. ``PriceSubscription`` drives it on a fixed
cadence inside an asyncio loop and can be cancelled at any time – once
``cancel()`` returns, no further sample reaches the callback.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable

from metaldeck.services.api import DEFAULT_TIMEOUT, fetch_quote
from metaldeck.services.model import FeedUnavailable, PriceSample, Quote
from metaldeck.services.pricing import PricingContext, get_context

logger = logging.getLogger(__name__)

# Slightly below 0.5 so the walk leans down instead of drifting up forever
DEFAULT_BIAS = 0.48
DEFAULT_INTERVAL = 3.0  # seconds

Fetcher = Callable[[str, float], "Quote | FeedUnavailable"]


class PriceFeed:
    """Produces one ``PriceSample`` per tick for the active pricing context."""

    def __init__(
        self,
        context: PricingContext | str | None = None,
        endpoint: str | None = None,
        *,
        rng: random.Random | None = None,
        bias: float = DEFAULT_BIAS,
        timeout: float = DEFAULT_TIMEOUT,
        fetcher: Fetcher = fetch_quote,
    ) -> None:
        self._context = context if isinstance(context, PricingContext) else get_context(context)
        self.endpoint = endpoint or ""
        self.bias = bias
        self.timeout = timeout
        self._rng = rng or random.Random()
        self._fetcher = fetcher
        self._price = self._context.base_price
        self._live = False
        self._latest: PriceSample | None = None

    @property
    def context(self) -> PricingContext:
        return self._context

    @property
    def latest(self) -> PriceSample | None:
        return self._latest

    # -- one tick -----------------------------------------------------------

    def fetch(self) -> Quote | FeedUnavailable:
        """Ask the quote endpoint for a price. Never raises."""
        if not self.endpoint:
            return FeedUnavailable(reason="no endpoint configured")
        try:
            return self._fetcher(self.endpoint, self.timeout)
        except Exception as exc:
            logger.warning("Quote fetcher raised %s", exc.__class__.__name__, exc_info=True)
            return FeedUnavailable(reason=f"fetcher raised {exc.__class__.__name__}")

    def advance(self, result: Quote | FeedUnavailable) -> PriceSample:
        """Turn a fetch result into the next sample."""
        if isinstance(result, Quote):
            if not self._live:
                logger.info("Price feed live from %s", self.endpoint)
            self._live = True
            self._price = result.price
            sample = PriceSample(
                reference_price=result.price,
                trend_delta=result.change,
                is_simulated=False,
                context=self._context.code,
            )
        else:
            if self._live or (self.endpoint and self._latest is None):
                logger.warning("Quote endpoint unavailable (%s) – simulating prices", result.reason)
            self._live = False
            sample = self._walk()
        self._latest = sample
        logger.debug("Tick %s %.4f (%+.4f)", sample.context, sample.reference_price, sample.trend_delta)
        return sample

    def sample(self) -> PriceSample:
        return self.advance(self.fetch())

    def _walk(self) -> PriceSample:
        delta = (self._rng.random() - self.bias) * self._context.volatility
        self._price = max(0.0, self._price + delta)
        return PriceSample(
            reference_price=self._price,
            trend_delta=delta,
            is_simulated=True,
            context=self._context.code,
        )

    # -- context ------------------------------------------------------------

    def switch_context(self, context: PricingContext | str) -> None:
        """Jump to *context*'s base price; earlier drift is discarded."""
        self._context = context if isinstance(context, PricingContext) else get_context(context)
        self._price = self._context.base_price
        self._latest = PriceSample(
            reference_price=self._price,
            trend_delta=0.0,
            is_simulated=True,
            context=self._context.code,
        )
        logger.info("Price feed switched to %s (base %.2f)", self._context.code, self._price)


class PriceSubscription:
    """Runs a ``PriceFeed`` every *interval* seconds on the running loop.

    ``start()`` ticks once straight away, then on the cadence.
    ``cancel()`` is idempotent; a tick whose fetch is still in flight when
    it is called is dropped rather than delivered.
    """

    def __init__(
        self,
        feed: PriceFeed,
        on_sample: Callable[[PriceSample], None],
        interval: float = DEFAULT_INTERVAL,
    ) -> None:
        self.feed = feed
        self.on_sample = on_sample
        self.interval = interval
        self._task: asyncio.Task | None = None
        self._generation = 0

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.active:
            return
        self._generation += 1
        self._task = asyncio.get_running_loop().create_task(self._run(self._generation))

    def cancel(self) -> None:
        self._generation += 1
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    def switch_context(self, context: PricingContext | str) -> None:
        """Stop, reset the feed to *context*, and resume if it was running."""
        was_active = self.active
        self.cancel()
        self.feed.switch_context(context)
        if was_active:
            self.start()

    async def _run(self, generation: int) -> None:
        while True:
            if self.feed.endpoint:
                # requests is blocking – keep it off the loop
                result = await asyncio.to_thread(self.feed.fetch)
            else:
                result = self.feed.fetch()
            if generation != self._generation:
                return
            sample = self.feed.advance(result)
            try:
                self.on_sample(sample)
            except Exception:
                logger.exception("Price sample callback failed")
            await asyncio.sleep(self.interval)
