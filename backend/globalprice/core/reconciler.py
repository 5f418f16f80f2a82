"""
Multi-source offer reconciliation.

reconcile() runs, in order: trust filter, minimum price, accessory keywords,
subscription prices, (store, price) dedupe, unpriced offers, ascending price
sort, and the optional external validation. Every stage is a plain function
so it can be exercised on its own.
"""
from typing import Dict, Iterable, List, Optional, Sequence

from globalprice.core.countries import CountryContext
from globalprice.core.keywords import ACCESSORY_KEYWORDS, SUBSCRIPTION_MARKERS
from globalprice.core.logger import get_logger
from globalprice.core.retailers import matches_retailer
from globalprice.core.validation import OfferValidator
from globalprice.schemas.offers import Offer
from globalprice.schemas.validation import ValidationItem, ValidationVerdict

logger = get_logger(__name__)


def is_trusted_offer(offer: Offer, country: CountryContext) -> bool:
    return matches_retailer(offer.store_name, country.retailers) or matches_retailer(offer.page_url, country.retailers)


def is_accessory(title: Optional[str]) -> bool:
    low = (title or "").lower()
    return any(kw in low for kw in ACCESSORY_KEYWORDS)


def is_subscription_price(price: Optional[str]) -> bool:
    low = (price or "").lower()
    return any(marker in low for marker in SUBSCRIPTION_MARKERS)


def filter_offers(offers: Iterable[Offer], country: CountryContext) -> List[Offer]:
    """
    Keeps offers from trusted stores, at or above the country's minimum
    price, without accessory titles or instalment prices.
    """
    kept: List[Offer] = []
    for o in offers:
        if not is_trusted_offer(o, country):
            logger.debug("[%s] Skipping untrusted: %s", country.code, o.store_name)
            continue
        if o.price_numeric < country.min_price:
            logger.debug(
                "[%s] Skipping low-price item (%s < %s): %s",
                country.code, o.price_numeric, country.min_price, (o.title or "")[:50],
            )
            continue
        if is_accessory(o.title):
            logger.debug("[%s] Skipping accessory: %s", country.code, (o.title or "")[:50])
            continue
        if is_subscription_price(o.price):
            logger.debug("[%s] Skipping subscription price: %s", country.code, o.price)
            continue
        kept.append(o)
    return kept


def _key_for_dedupe(o: Offer) -> str:
    return f"{o.store_name.strip().lower()}::{o.price}"


def dedupe_offers(offers: Iterable[Offer]) -> List[Offer]:
    """Same store and same display price -> keep the first one seen."""
    deduped: Dict[str, Offer] = {}
    for o in offers:
        deduped.setdefault(_key_for_dedupe(o), o)
    return list(deduped.values())


def drop_unpriced(offers: Iterable[Offer]) -> List[Offer]:
    return [o for o in offers if o.price_numeric > 0]


def rank_offers(offers: Iterable[Offer]) -> List[Offer]:
    # sorted() is stable: equal prices keep encounter order
    return sorted(offers, key=lambda o: o.price_numeric)


def apply_validation(offers: Sequence[Offer], verdicts: Dict[int, ValidationVerdict]) -> List[Offer]:
    """Drops only offers with an explicit invalid verdict."""
    kept: List[Offer] = []
    for idx, o in enumerate(offers):
        verdict = verdicts.get(idx)
        if verdict is not None and not verdict.is_valid:
            logger.info("Validator rejected: %r - %s", (o.title or "")[:50], verdict.reason)
            continue
        kept.append(o)
    return kept


async def validate_offers(query: str, offers: Sequence[Offer], validator: Optional[OfferValidator]) -> List[Offer]:
    if validator is None or not offers:
        return list(offers)

    items = [ValidationItem(title=o.title or "", price=o.price_numeric, currency=o.currency) for o in offers]
    try:
        verdicts = await validator.validate(query, items)
    except Exception as e:
        logger.warning("Offer validation failed, keeping all offers: %s", e)
        return list(offers)

    if not isinstance(verdicts, dict):
        return list(offers)
    return apply_validation(offers, verdicts)


def merge_offers(provider_results: Sequence[Sequence[Offer]]) -> List[Offer]:
    """Flattens result sets in provider priority order."""
    return [o for result in provider_results for o in result]


def reconcile_offers(country: CountryContext, provider_results: Sequence[Sequence[Offer]]) -> List[Offer]:
    """Every stage except external validation. Pure and deterministic."""
    offers = merge_offers(provider_results)
    offers = filter_offers(offers, country)
    offers = dedupe_offers(offers)
    offers = drop_unpriced(offers)
    return rank_offers(offers)


async def reconcile(
    query: str,
    country: CountryContext,
    provider_results: Sequence[Sequence[Offer]],
    validator: Optional[OfferValidator] = None,
) -> List[Offer]:
    """
    Merges normalized offers from providers (highest priority first) into one
    ranked list for `country`, cheapest first.
    """
    ranked = reconcile_offers(country, provider_results)
    if validator is None or not ranked:
        return ranked

    validated = await validate_offers(query, ranked, validator)
    logger.info("[%s] Validation: %d -> %d offers", country.code, len(ranked), len(validated))
    return validated
