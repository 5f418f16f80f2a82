"""
Provider item -> Offer.

One function per upstream shape, all with the signature
`normalize(item, country, index) -> Offer`. They translate field names and
fill defaults; filtering is left to the reconciler.
"""
from typing import Any, Callable, Dict, Optional

from globalprice.core.countries import CountryContext
from globalprice.core.prices import calculate_discount
from globalprice.schemas.offers import Offer

Normalizer = Callable[[Dict[str, Any], CountryContext, int], Offer]

GOOGLE_SHOPPING = "google_shopping"
AMAZON = "amazon"
PRODUCT_SEARCH = "product_search"


def _first_str(d: Dict[str, Any], *keys: str) -> Optional[str]:
    for k in keys:
        v = d.get(k)
        if isinstance(v, str) and v.strip():
            return v.strip()
    return None


def _count(v: Any) -> int:
    """Review counts arrive as 1234, "1234" or "1,234"."""
    if isinstance(v, bool):
        return 0
    if isinstance(v, (int, float)):
        return max(0, int(v))
    if isinstance(v, str):
        digits = "".join(ch for ch in v if ch.isdigit())
        return int(digits) if digits else 0
    return 0


def _rating(v: Any) -> Optional[str]:
    if v is None or v == "":
        return None
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return f"{v}/5"
    return str(v)


def _format_amount(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.2f}"


def normalize_google_shopping(item: Dict[str, Any], country: CountryContext, index: int) -> Offer:
    """
    SerpAPI `shopping_results` entry. `price` is already a display string
    ("$1,199.99"); when only `extracted_price` is present a display string
    is built from the country's currency symbol.
    """
    price = _first_str(item, "price")
    if price is None:
        extracted = item.get("extracted_price")
        if isinstance(extracted, (int, float)) and not isinstance(extracted, bool) and extracted > 0:
            price = f"{country.currency_symbol}{_format_amount(extracted)}"
        else:
            price = ""

    merchant = item.get("merchant") if isinstance(item.get("merchant"), dict) else {}
    store = _first_str(item, "source") or _first_str(merchant, "name") or "Online Store"
    old_price = _first_str(item, "old_price")

    native_id = item.get("product_id") or f"{country.code}-{item.get('position') or index}"

    return Offer(
        id=f"{GOOGLE_SHOPPING}-{native_id}",
        title=_first_str(item, "title"),
        page_url=_first_str(item, "link", "product_link") or "#",
        price=price,
        original_price=old_price,
        on_sale=bool(old_price),
        percent_off=calculate_discount(price, old_price) if old_price else None,
        shipping=_first_str(item, "delivery", "shipping") or "See website for shipping",
        returns_policy="See store policy",
        condition="NEW",
        store_name=store,
        store_rating=_rating(item.get("rating")),
        store_review_count=_count(item.get("reviews")),
        source_provider=GOOGLE_SHOPPING,
        currency=country.currency,
        thumbnail=_first_str(item, "thumbnail"),
    )


def normalize_amazon(item: Dict[str, Any], country: CountryContext, index: int) -> Offer:
    """Real-Time Amazon Data `data.products` entry."""
    price = _first_str(item, "product_price") or "Price unavailable"
    old_price = _first_str(item, "product_original_price")
    is_prime = bool(item.get("is_prime"))

    return Offer(
        id=f"{AMAZON}-{item.get('asin') or f'{country.code}-{index}'}",
        title=_first_str(item, "product_title"),
        page_url=_first_str(item, "product_url") or "#",
        price=price,
        original_price=old_price,
        on_sale=bool(old_price),
        percent_off=calculate_discount(price, old_price) if old_price else None,
        shipping="Prime FREE Delivery" if is_prime else "Standard Shipping",
        returns_policy="Amazon Easy Returns",
        condition="NEW",
        store_name=f"Amazon {country.amazon_country}",
        store_rating=_rating(item.get("product_star_rating")),
        store_review_count=_count(item.get("product_num_ratings")),
        source_provider=AMAZON,
        is_prime=is_prime,
        currency=country.currency,
        thumbnail=_first_str(item, "product_photo"),
    )


def normalize_product_search(item: Dict[str, Any], country: CountryContext, index: int) -> Offer:
    """
    Real-Time Product Search `data.products` entry. The purchasable part is
    nested under `offer`; the typical price range is the last resort.
    """
    offer = item.get("offer") if isinstance(item.get("offer"), dict) else {}

    price = _first_str(offer, "price")
    if price is None:
        price_range = item.get("typical_price_range") or []
        price = price_range[0] if price_range and isinstance(price_range[0], str) else "N/A"

    photos = item.get("product_photos") or []

    return Offer(
        id=f"{PRODUCT_SEARCH}-{item.get('product_id') or f'{country.code}-{index}'}",
        title=_first_str(item, "product_title"),
        page_url=_first_str(offer, "offer_page_url") or _first_str(item, "product_page_url") or "#",
        price=price,
        original_price=_first_str(offer, "original_price"),
        on_sale=bool(offer.get("on_sale")),
        percent_off=_first_str(offer, "percent_off"),
        shipping=_first_str(offer, "shipping") or "Check website",
        returns_policy=_first_str(offer, "returns") or "Check policy",
        condition=_first_str(offer, "product_condition") or "NEW",
        store_name=_first_str(offer, "store_name") or "Unknown Store",
        store_rating=_rating(offer.get("store_rating")),
        store_review_count=_count(offer.get("store_review_count")),
        source_provider=PRODUCT_SEARCH,
        currency=country.currency,
        thumbnail=photos[0] if photos and isinstance(photos[0], str) else None,
    )


NORMALIZERS: Dict[str, Normalizer] = {
    GOOGLE_SHOPPING: normalize_google_shopping,
    AMAZON: normalize_amazon,
    PRODUCT_SEARCH: normalize_product_search,
}
