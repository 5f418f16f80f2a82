"""Tests for currency conversion and the exchange rate cache."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest
import respx

from globalprice.core.config import Settings
from globalprice.core.currency import (
    FALLBACK_RATES,
    FREECURRENCY_BASE,
    RateCache,
    fetch_freecurrency_rates,
    to_reference,
)
from globalprice.schemas.rates import ExchangeRateSnapshot


class TestToReference:
    def test_divides_by_rate(self) -> None:
        assert to_reference(100, "USD", {"USD": 0.012}) == pytest.approx(100 / 0.012)

    def test_reference_currency_passes_through(self) -> None:
        assert to_reference(123.4, "INR", {"USD": 0.5}) == 123.4
        assert to_reference(50, "EUR", {}, reference_currency="EUR") == 50

    def test_non_positive_amount_is_zero(self) -> None:
        assert to_reference(0, "USD", {"USD": 0.012}) == 0
        assert to_reference(-5, "USD", {"USD": 0.012}) == 0

    def test_missing_or_zero_rate_uses_fallback_table(self) -> None:
        assert to_reference(100, "GBP", {}) == pytest.approx(100 / FALLBACK_RATES["GBP"])
        assert to_reference(100, "GBP", {"GBP": 0}) == pytest.approx(100 / FALLBACK_RATES["GBP"])
        assert to_reference(100, "GBP", None) == pytest.approx(100 / FALLBACK_RATES["GBP"])

    def test_unknown_currency_is_returned_unconverted(self) -> None:
        assert to_reference(50, "CHF", {}) == 50

    def test_accepts_snapshot(self) -> None:
        snapshot = ExchangeRateSnapshot(base="INR", rates={"JPY": 2.0}, fetched_at=0.0)
        assert to_reference(15000, "JPY", snapshot) == pytest.approx(7500)


class TestRateCache:
    @pytest.mark.asyncio
    async def test_first_call_fetches(self, clock) -> None:
        fetch = AsyncMock(return_value={"USD": 0.0119})
        cache = RateCache(fetch, clock=clock)

        snapshot = await cache.get_rates()

        assert fetch.await_count == 1
        assert snapshot.rates == {"USD": 0.0119}
        assert snapshot.fetched_at == clock.now
        assert snapshot.degraded is False

    @pytest.mark.asyncio
    async def test_within_ttl_serves_same_snapshot(self, clock) -> None:
        fetch = AsyncMock(return_value={"USD": 0.0119})
        cache = RateCache(fetch, clock=clock, ttl_seconds=3600)

        first = await cache.get_rates()
        clock.advance(3599)
        second = await cache.get_rates()

        assert second is first
        assert fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_expiry_triggers_refresh(self, clock) -> None:
        fetch = AsyncMock(side_effect=[{"USD": 0.0119}, {"USD": 0.0121}])
        cache = RateCache(fetch, clock=clock, ttl_seconds=3600)

        first = await cache.get_rates()
        clock.advance(3600)
        second = await cache.get_rates()

        assert fetch.await_count == 2
        assert second is not first
        assert second.rates == {"USD": 0.0121}
        # the old snapshot is untouched
        assert first.rates == {"USD": 0.0119}

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_refresh(self, clock) -> None:
        calls = 0
        release = asyncio.Event()

        async def slow_fetch():
            nonlocal calls
            calls += 1
            await release.wait()
            return {"USD": 0.012}

        cache = RateCache(slow_fetch, clock=clock)

        waiters = [asyncio.create_task(cache.get_rates()) for _ in range(25)]
        await asyncio.sleep(0)
        release.set()
        snapshots = await asyncio.gather(*waiters)

        assert calls == 1
        assert all(s is snapshots[0] for s in snapshots)

    @pytest.mark.asyncio
    async def test_concurrent_callers_after_expiry(self, clock) -> None:
        fetch = AsyncMock(return_value={"USD": 0.012})
        cache = RateCache(fetch, clock=clock, ttl_seconds=10)
        await cache.get_rates()
        clock.advance(11)

        await asyncio.gather(*(cache.get_rates() for _ in range(10)))

        assert fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_missing_credential_gives_degraded_fallback(self, clock) -> None:
        cache = RateCache(AsyncMock(return_value=None), clock=clock)

        snapshot = await cache.get_rates()

        assert snapshot.degraded is True
        assert snapshot.rates == FALLBACK_RATES

    @pytest.mark.asyncio
    async def test_fetch_error_gives_degraded_fallback(self, clock) -> None:
        cache = RateCache(AsyncMock(side_effect=ValueError("boom")), clock=clock)

        snapshot = await cache.get_rates()

        assert snapshot.degraded is True
        assert cache.snapshot is snapshot

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_refresh(self, clock) -> None:
        release = asyncio.Event()

        async def slow_fetch():
            await release.wait()
            return {"USD": 0.012}

        cache = RateCache(slow_fetch, clock=clock)
        impatient = asyncio.create_task(cache.get_rates())
        patient = asyncio.create_task(cache.get_rates())
        await asyncio.sleep(0)
        impatient.cancel()
        release.set()

        snapshot = await patient
        assert snapshot.rates == {"USD": 0.012}


class TestFetchFreeCurrencyRates:
    @pytest.mark.asyncio
    async def test_no_key_returns_none(self) -> None:
        settings = Settings(_env_file=None, FREE_CURRENCY_API_KEY="")
        assert await fetch_freecurrency_rates(settings) is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_reads_data_object(self) -> None:
        route = respx.get(url__startswith=FREECURRENCY_BASE).mock(
            return_value=httpx.Response(200, json={"data": {"USD": 0.0119, "eur": 0.0109, "XXX": "n/a"}})
        )
        settings = Settings(_env_file=None, FREE_CURRENCY_API_KEY="k123")

        rates = await fetch_freecurrency_rates(settings)

        assert rates == {"USD": 0.0119, "EUR": 0.0109}
        params = route.calls.last.request.url.params
        assert params["apikey"] == "k123"
        assert params["base_currency"] == "INR"

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_error_raises(self) -> None:
        respx.get(url__startswith=FREECURRENCY_BASE).mock(return_value=httpx.Response(500, text="down"))
        settings = Settings(_env_file=None, FREE_CURRENCY_API_KEY="k123")

        with pytest.raises(ValueError):
            await fetch_freecurrency_rates(settings)
