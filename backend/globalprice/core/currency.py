import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

import httpx

from globalprice.core.config import Settings
from globalprice.core.logger import get_logger
from globalprice.schemas.rates import ExchangeRateSnapshot

logger = get_logger(__name__)

FREECURRENCY_BASE = "https://api.freecurrencyapi.com/v1/latest"

REFERENCE_CURRENCY = "INR"

# 1 INR = X units of the currency (approximate, used when the live API is unavailable)
FALLBACK_RATES: Dict[str, float] = {
    "INR": 1.0,
    "USD": 0.012,
    "GBP": 0.0095,
    "EUR": 0.011,
    "AUD": 0.018,
    "CAD": 0.016,
    "JPY": 1.78,
    "SGD": 0.016,
    "AED": 0.044,
}

DEFAULT_TTL_SECONDS = 24 * 60 * 60

RateFetcher = Callable[[], Awaitable[Optional[Dict[str, float]]]]


def to_reference(
    amount: float,
    source_currency: str,
    rates: Union[ExchangeRateSnapshot, Mapping[str, float], None],
    reference_currency: str = REFERENCE_CURRENCY,
) -> float:
    """
    Converts `amount` of `source_currency` into the reference currency.

    Rates are "units of the currency per one reference unit", so
    USD -> INR is amount / rates["USD"]. A missing or zero rate falls back to
    FALLBACK_RATES; if that has nothing either the amount comes back unconverted.
    """
    if source_currency == reference_currency:
        return amount
    if amount <= 0:
        return 0.0

    table: Mapping[str, float]
    if isinstance(rates, ExchangeRateSnapshot):
        table = rates.rates
    else:
        table = rates or {}

    rate = table.get(source_currency)
    if not rate or rate <= 0:
        rate = FALLBACK_RATES.get(source_currency)

    if not rate:
        logger.warning("No exchange rate for %s, returning amount unconverted", source_currency)
        return amount

    return amount / rate


def fallback_snapshot(fetched_at: float, base: str = REFERENCE_CURRENCY) -> ExchangeRateSnapshot:
    return ExchangeRateSnapshot(base=base, rates=dict(FALLBACK_RATES), fetched_at=fetched_at, degraded=True)


class RateCache:
    """
    Holds one ExchangeRateSnapshot and refreshes it once it is `ttl_seconds` old.

    Concurrent callers that find the snapshot missing or stale all await the
    same refresh task, so N callers cost one upstream request. A fetcher that
    returns None (no credential) or raises produces a degraded snapshot from
    FALLBACK_RATES, which is cached like any other.
    """

    def __init__(
        self,
        fetch_rates: RateFetcher,
        *,
        clock: Callable[[], float] = time.time,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        base: str = REFERENCE_CURRENCY,
    ) -> None:
        self._fetch_rates = fetch_rates
        self._clock = clock
        self._ttl = ttl_seconds
        self._base = base
        self._snapshot: Optional[ExchangeRateSnapshot] = None
        self._inflight: Optional["asyncio.Future[ExchangeRateSnapshot]"] = None

    @property
    def snapshot(self) -> Optional[ExchangeRateSnapshot]:
        return self._snapshot

    def is_fresh(self, snapshot: Optional[ExchangeRateSnapshot] = None) -> bool:
        snapshot = snapshot or self._snapshot
        return snapshot is not None and self._clock() - snapshot.fetched_at < self._ttl

    async def get_rates(self) -> ExchangeRateSnapshot:
        snapshot = self._snapshot
        if snapshot is not None and self.is_fresh(snapshot):
            return snapshot

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh())
            self._inflight.add_done_callback(self._clear_inflight)

        # shield: one caller giving up must not cancel the refresh for the others
        return await asyncio.shield(self._inflight)

    def _clear_inflight(self, _task: "asyncio.Future[ExchangeRateSnapshot]") -> None:
        self._inflight = None

    async def _refresh(self) -> ExchangeRateSnapshot:
        try:
            rates = await self._fetch_rates()
        except Exception as e:
            logger.warning("Exchange rate fetch failed, using fallback rates: %s", e)
            rates = None

        now = self._clock()
        if rates:
            snapshot = ExchangeRateSnapshot(base=self._base, rates=dict(rates), fetched_at=now)
            logger.info("Exchange rates refreshed (%d currencies)", len(snapshot.rates))
        else:
            snapshot = fallback_snapshot(now, base=self._base)
            logger.warning("Serving fallback exchange rates")

        # single assignment: readers see the old snapshot or the new one, nothing in between
        self._snapshot = snapshot
        return snapshot


async def fetch_freecurrency_rates(
    settings: Settings,
    timeout: float = 10.0,
) -> Optional[Dict[str, float]]:
    """
    Calls freecurrencyapi.com `latest` with the reference currency as base.
    Returns None when FREE_CURRENCY_API_KEY is not set.
    """
    api_key = (settings.FREE_CURRENCY_API_KEY or "").strip()
    if not api_key:
        return None

    params: Dict[str, Any] = {
        "apikey": api_key,
        "base_currency": settings.REFERENCE_CURRENCY,
    }

    async with httpx.AsyncClient(timeout=timeout) as client:
        r = await client.get(FREECURRENCY_BASE, params=params)
        if r.status_code != 200:
            raise ValueError(f"Currency API request failed: {r.status_code}")
        data = r.json()

    rates = data.get("data") if isinstance(data, dict) else None
    if not isinstance(rates, dict):
        raise ValueError("Currency API returned no 'data' object")

    return {str(k).upper(): float(v) for k, v in rates.items() if isinstance(v, (int, float))}
