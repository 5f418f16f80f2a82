import asyncio
from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from globalprice.core.config import Settings
from globalprice.core.countries import COUNTRIES, CountryContext, get_country
from globalprice.core.currency import RateCache, fetch_freecurrency_rates, to_reference
from globalprice.core.gemini import GeminiOfferValidator
from globalprice.core.logger import get_logger
from globalprice.core.normalizers import (
    AMAZON,
    GOOGLE_SHOPPING,
    PRODUCT_SEARCH,
    Normalizer,
    normalize_amazon,
    normalize_google_shopping,
    normalize_product_search,
)
from globalprice.core.rapidapi import amazon_search, product_search
from globalprice.core.reconciler import reconcile, reconcile_offers
from globalprice.core.serpapi import shopping_search
from globalprice.core.validation import HeuristicOfferValidator, OfferValidator
from globalprice.schemas.offers import ComparisonResponse, CountryOffers, CountrySavings, Offer
from globalprice.schemas.rates import ExchangeRateSnapshot

logger = get_logger(__name__)

STRATEGY_FALLBACK = "fallback"
STRATEGY_ALL = "all"

ProviderFetch = Callable[..., Awaitable[List[Dict[str, Any]]]]


@dataclass(frozen=True)
class SearchProvider:
    """
    One upstream product search. `fetch(query, country, timeout=...)` returns
    the provider's raw items; `normalize` turns one of them into an Offer.
    """
    name: str
    label: str
    fetch: ProviderFetch
    normalize: Normalizer


def build_providers(settings: Settings) -> List[SearchProvider]:
    """Providers in priority order. Ones without a credential are left out."""
    providers: List[SearchProvider] = []

    serpapi_key = (settings.SERPAPI_API_KEY or "").strip()
    if serpapi_key:
        providers.append(
            SearchProvider(
                name=GOOGLE_SHOPPING,
                label="Google Shopping",
                fetch=partial(shopping_search, api_key=serpapi_key),
                normalize=normalize_google_shopping,
            )
        )

    rapidapi_key = (settings.RAPIDAPI_KEY or "").strip()
    if rapidapi_key:
        providers.append(
            SearchProvider(
                name=AMAZON,
                label="Amazon",
                fetch=partial(amazon_search, api_key=rapidapi_key),
                normalize=normalize_amazon,
            )
        )
        providers.append(
            SearchProvider(
                name=PRODUCT_SEARCH,
                label="Product Search",
                fetch=partial(product_search, api_key=rapidapi_key),
                normalize=normalize_product_search,
            )
        )

    if not providers:
        logger.warning("No product search provider configured; searches will return no offers")
    return providers


def build_validator(settings: Settings) -> Optional[OfferValidator]:
    mode = (settings.OFFER_VALIDATOR or "auto").strip().lower()
    if mode == "none":
        return None
    if mode == "heuristic":
        return HeuristicOfferValidator()

    api_key = (settings.GEMINI_API_KEY or "").strip()
    if not api_key:
        if mode == "gemini":
            logger.warning("OFFER_VALIDATOR=gemini but GEMINI_API_KEY is not set; validation disabled")
        return None
    return GeminiOfferValidator(api_key=api_key, model=settings.GEMINI_MODEL)


def build_rate_cache(settings: Settings) -> RateCache:
    return RateCache(
        partial(fetch_freecurrency_rates, settings),
        ttl_seconds=settings.RATE_CACHE_TTL_SECONDS,
        base=settings.REFERENCE_CURRENCY,
    )


class PriceComparisonService:
    """
    Searches one or many countries and returns ranked offers.

    strategy="fallback": query providers one at a time in priority order and
    stop at the first whose offers survive the filters.
    strategy="all": query every provider concurrently and merge.

    Every provider call has its own timeout; a provider that fails or times
    out contributes nothing and the search carries on.
    """

    def __init__(
        self,
        providers: Sequence[SearchProvider],
        rate_cache: RateCache,
        validator: Optional[OfferValidator] = None,
        *,
        strategy: str = STRATEGY_FALLBACK,
        provider_timeout: float = 10.0,
        max_offers: int = 10,
        reference_currency: str = "INR",
    ) -> None:
        if strategy not in (STRATEGY_FALLBACK, STRATEGY_ALL):
            raise ValueError(f"Unknown provider strategy: {strategy!r}")
        self.providers = list(providers)
        self.rate_cache = rate_cache
        self.validator = validator
        self.strategy = strategy
        self.provider_timeout = provider_timeout
        self.max_offers = max_offers
        self.reference_currency = reference_currency

    @classmethod
    def from_settings(cls, settings: Settings) -> "PriceComparisonService":
        return cls(
            build_providers(settings),
            build_rate_cache(settings),
            build_validator(settings),
            strategy=(settings.PROVIDER_STRATEGY or STRATEGY_FALLBACK).strip().lower(),
            provider_timeout=settings.PROVIDER_TIMEOUT_SECONDS,
            max_offers=settings.MAX_OFFERS,
            reference_currency=settings.REFERENCE_CURRENCY,
        )

    async def _collect(self, provider: SearchProvider, query: str, country: CountryContext) -> List[Offer]:
        try:
            raw_items = await asyncio.wait_for(
                provider.fetch(query, country, timeout=self.provider_timeout),
                timeout=self.provider_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("[%s] %s timed out after %.1fs", country.code, provider.label, self.provider_timeout)
            return []
        except Exception as e:
            logger.warning("[%s] %s failed: %s", country.code, provider.label, e)
            return []

        offers: List[Offer] = []
        for idx, item in enumerate(raw_items or []):
            if not isinstance(item, dict):
                continue
            try:
                offers.append(provider.normalize(item, country, idx))
            except Exception as e:
                logger.debug("[%s] %s: skipping malformed item %d: %s", country.code, provider.label, idx, e)

        logger.info("[%s] %s: %d raw results", country.code, provider.label, len(offers))
        return offers

    async def _fallback_results(self, query: str, country: CountryContext) -> Tuple[List[List[Offer]], List[str]]:
        for provider in self.providers:
            offers = await self._collect(provider, query, country)
            if reconcile_offers(country, [offers]):
                return [offers], [provider.label]
            logger.info("[%s] %s gave no usable offers, trying next provider", country.code, provider.label)
        return [], []

    async def _all_results(self, query: str, country: CountryContext) -> Tuple[List[List[Offer]], List[str]]:
        results = await asyncio.gather(*(self._collect(p, query, country) for p in self.providers))
        sources = [p.label for p, offers in zip(self.providers, results) if offers]
        return list(results), sources

    def _limit(self, num: Optional[int]) -> int:
        n = self.max_offers if num is None else num
        return max(1, min(int(n), 50))

    async def search_country(
        self,
        query: str,
        country_code: Optional[str],
        *,
        rates: Optional[ExchangeRateSnapshot] = None,
        num: Optional[int] = None,
    ) -> CountryOffers:
        query = (query or "").strip()
        if not query:
            raise ValueError("Query is required")

        country = get_country(country_code)
        logger.info("=== Search %r for %s (%s) ===", query, country.code.upper(), self.strategy)

        if self.strategy == STRATEGY_ALL:
            provider_results, sources = await self._all_results(query, country)
        else:
            provider_results, sources = await self._fallback_results(query, country)

        offers = await reconcile(query, country, provider_results, self.validator)
        offers = offers[: self._limit(num)]
        logger.info("[%s] Total valid offers: %d", country.code, len(offers))

        cheapest_price = offers[0].price_numeric if offers else None
        cheapest_reference = None
        if cheapest_price is not None:
            if rates is None:
                rates = await self.rate_cache.get_rates()
            cheapest_reference = to_reference(cheapest_price, country.currency, rates, self.reference_currency)

        return CountryOffers(
            country=country.code,
            country_name=country.name,
            currency=country.currency,
            offers=offers,
            sources_used=sources,
            cheapest_price=cheapest_price,
            cheapest_reference=cheapest_reference,
        )

    async def compare(
        self,
        query: str,
        country_codes: Optional[Sequence[str]] = None,
        *,
        num: Optional[int] = None,
    ) -> ComparisonResponse:
        """
        Searches every requested country concurrently against one rate
        snapshot and picks the cheapest country in the reference currency.
        """
        query = (query or "").strip()
        if not query:
            raise ValueError("Query is required")

        codes = list(country_codes) if country_codes is not None else list(COUNTRIES)
        rates = await self.rate_cache.get_rates()

        outcomes = await asyncio.gather(
            *(self.search_country(query, code, rates=rates, num=num) for code in codes),
            return_exceptions=True,
        )

        results: List[CountryOffers] = []
        for code, outcome in zip(codes, outcomes):
            if isinstance(outcome, BaseException):
                # one country's failure never sinks the others
                logger.warning("[%s] Search failed: %s", code, outcome)
                country = get_country(code)
                outcome = CountryOffers(
                    country=country.code, country_name=country.name, currency=country.currency, offers=[]
                )
            results.append(outcome)

        response = ComparisonResponse(
            query=query,
            reference_currency=self.reference_currency,
            rates_degraded=rates.degraded,
            rates_fetched_at=rates.fetched_at,
            results=results,
        )

        priced = [r for r in results if r.cheapest_reference is not None and r.cheapest_reference > 0]
        if not priced:
            return response

        cheapest = min(priced, key=lambda r: r.cheapest_reference or 0.0)
        most_expensive = max(priced, key=lambda r: r.cheapest_reference or 0.0)
        response.cheapest_country = cheapest.country
        response.most_expensive_country = most_expensive.country

        amount = (most_expensive.cheapest_reference or 0.0) - (cheapest.cheapest_reference or 0.0)
        if amount > 0:
            response.savings = CountrySavings(
                country=most_expensive.country,
                country_name=most_expensive.country_name,
                amount=round(amount, 2),
                percent=round(amount / (most_expensive.cheapest_reference or 1.0) * 100, 1),
            )
        return response
