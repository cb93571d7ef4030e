"""Tests for the price feed and its asyncio subscription."""

import asyncio
import time

import pytest

from metaldeck.services import FeedUnavailable, PriceFeed, PriceSubscription, Quote


class FixedRng:
    """Stands in for ``random.Random`` – always draws *value*."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


class TestWalk:
    def test_seeded_feed_is_simulated(self, feed):
        sample = feed.sample()
        assert sample.is_simulated
        assert sample.context == "TR"
        assert feed.latest is sample

    def test_step_size_and_bias(self):
        feed = PriceFeed("TR", rng=FixedRng(0.98))
        sample = feed.sample()
        assert sample.trend_delta == pytest.approx(2.5)
        assert sample.reference_price == pytest.approx(2252.5)

    def test_draw_at_bias_does_not_move(self):
        feed = PriceFeed("AE", rng=FixedRng(0.48))
        assert feed.sample().reference_price == pytest.approx(245.0)

    def test_price_never_goes_negative(self):
        feed = PriceFeed("AE", rng=FixedRng(0.0))
        prices = [feed.sample().reference_price for _ in range(1000)]
        assert min(prices) >= 0
        assert prices[-1] == 0

    def test_seeded_walk_stays_non_negative(self, feed):
        assert all(feed.sample().reference_price >= 0 for _ in range(5000))


class TestLiveQuotes:
    def test_quote_becomes_live_sample(self):
        feed = PriceFeed("TR", "https://quotes.example", fetcher=lambda url, timeout: Quote(price=2300, change=1.5))
        sample = feed.sample()
        assert not sample.is_simulated
        assert sample.reference_price == 2300
        assert sample.trend_delta == 1.5

    def test_outage_resumes_walk_from_last_live_price(self):
        results = [Quote(price=2300), FeedUnavailable(reason="request failed: Timeout")]
        feed = PriceFeed(
            "TR",
            "https://quotes.example",
            rng=FixedRng(0.48),
            fetcher=lambda url, timeout: results.pop(0),
        )
        feed.sample()
        sample = feed.sample()
        assert sample.is_simulated
        assert sample.reference_price == pytest.approx(2300)

    def test_fetcher_exception_falls_back_to_walk(self):
        def broken(url, timeout):
            raise RuntimeError("socket closed")

        feed = PriceFeed("TR", "https://quotes.example", fetcher=broken)
        result = feed.fetch()
        assert isinstance(result, FeedUnavailable)
        assert "RuntimeError" in result.reason
        assert feed.sample().is_simulated

    def test_no_endpoint_never_calls_fetcher(self):
        calls = []
        feed = PriceFeed("TR", fetcher=lambda url, timeout: calls.append(url))
        feed.sample()
        assert calls == []


class TestSwitchContext:
    def test_switch_resets_to_base_price(self):
        feed = PriceFeed("TR", rng=FixedRng(0.98))
        for _ in range(10):
            feed.sample()
        feed.switch_context("AE")
        assert feed.context.code == "AE"
        assert feed.latest.reference_price == 245.0
        assert feed.latest.trend_delta == 0.0
        assert feed.latest.context == "AE"

    def test_no_drift_carried_over(self):
        feed = PriceFeed("TR", rng=FixedRng(0.48))
        feed.switch_context("AE")
        feed.switch_context("TR")
        assert feed.sample().reference_price == pytest.approx(2250.0)


class TestSubscription:
    @pytest.mark.asyncio
    async def test_first_tick_is_immediate(self, feed):
        seen = []
        sub = PriceSubscription(feed, seen.append, interval=10)
        sub.start()
        await asyncio.sleep(0)
        assert len(seen) == 1
        sub.cancel()

    @pytest.mark.asyncio
    async def test_nothing_delivered_after_cancel(self, feed):
        seen = []
        sub = PriceSubscription(feed, seen.append, interval=0.01)
        sub.start()
        await asyncio.sleep(0.05)
        sub.cancel()
        delivered = len(seen)
        await asyncio.sleep(0.05)
        assert delivered >= 2
        assert len(seen) == delivered
        assert not sub.active

    @pytest.mark.asyncio
    async def test_cancel_is_idempotent(self, feed):
        sub = PriceSubscription(feed, lambda s: None, interval=0.01)
        sub.cancel()
        sub.start()
        sub.cancel()
        sub.cancel()
        assert not sub.active

    @pytest.mark.asyncio
    async def test_in_flight_fetch_is_dropped(self):
        def slow(url, timeout):
            time.sleep(0.05)
            return Quote(price=2300)

        seen = []
        feed = PriceFeed("TR", "https://quotes.example", fetcher=slow)
        sub = PriceSubscription(feed, seen.append, interval=0.01)
        sub.start()
        await asyncio.sleep(0.01)
        sub.cancel()
        await asyncio.sleep(0.1)
        assert seen == []

    @pytest.mark.asyncio
    async def test_switch_context_restarts(self, feed):
        seen = []
        sub = PriceSubscription(feed, seen.append, interval=0.01)
        sub.start()
        await asyncio.sleep(0.02)
        sub.switch_context("AE")
        assert sub.active
        await asyncio.sleep(0.02)
        sub.cancel()
        assert seen[-1].context == "AE"
        assert seen[-1].reference_price == pytest.approx(245.0, abs=5)

    @pytest.mark.asyncio
    async def test_switch_context_keeps_stopped_subscription_stopped(self, feed):
        sub = PriceSubscription(feed, lambda s: None)
        sub.switch_context("AE")
        assert not sub.active
        assert feed.context.code == "AE"

    @pytest.mark.asyncio
    async def test_callback_errors_do_not_stop_ticks(self, feed, caplog):
        calls = []

        def flaky(sample):
            calls.append(sample)
            raise KeyError("widget gone")

        sub = PriceSubscription(feed, flaky, interval=0.01)
        sub.start()
        await asyncio.sleep(0.05)
        sub.cancel()
        assert len(calls) >= 2
        assert "callback failed" in caplog.text
