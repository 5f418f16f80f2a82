from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from globalprice.core.retailers import TRUSTED_RETAILERS, TrustedRetailer

DEFAULT_COUNTRY = "us"


@dataclass(frozen=True)
class CountryContext:
    code: str
    name: str
    currency: str
    currency_symbol: str
    flag: str
    lat: float
    lng: float
    # Anything cheaper (local currency) is an accessory or a variant, not the product
    min_price: float
    # SerpAPI Google Shopping locale
    serpapi_gl: str
    serpapi_hl: str
    serpapi_location: Optional[str]
    # Real-Time Amazon Data marketplace
    amazon_country: str
    retailers: Tuple[TrustedRetailer, ...] = field(default=(), repr=False)


def _country(code: str, **kw) -> CountryContext:
    return CountryContext(code=code, retailers=TRUSTED_RETAILERS.get(code, ()), **kw)


COUNTRIES: Dict[str, CountryContext] = {
    c.code: c
    for c in (
        _country(
            "in", name="India", currency="INR", currency_symbol="₹", flag="🇮🇳",
            lat=20.5937, lng=78.9629, min_price=5000,
            serpapi_gl="in", serpapi_hl="en", serpapi_location="India", amazon_country="IN",
        ),
        _country(
            "us", name="United States", currency="USD", currency_symbol="$", flag="🇺🇸",
            lat=37.0902, lng=-95.7129, min_price=100,
            serpapi_gl="us", serpapi_hl="en", serpapi_location="United States", amazon_country="US",
        ),
        _country(
            "gb", name="United Kingdom", currency="GBP", currency_symbol="£", flag="🇬🇧",
            lat=55.3781, lng=-3.436, min_price=80,
            serpapi_gl="uk", serpapi_hl="en", serpapi_location="United Kingdom", amazon_country="UK",
        ),
        _country(
            "de", name="Germany", currency="EUR", currency_symbol="€", flag="🇩🇪",
            lat=51.1657, lng=10.4515, min_price=100,
            serpapi_gl="de", serpapi_hl="de", serpapi_location="Germany", amazon_country="DE",
        ),
        _country(
            "au", name="Australia", currency="AUD", currency_symbol="A$", flag="🇦🇺",
            lat=-25.2744, lng=133.7751, min_price=150,
            serpapi_gl="au", serpapi_hl="en", serpapi_location="Australia", amazon_country="AU",
        ),
        _country(
            "ca", name="Canada", currency="CAD", currency_symbol="C$", flag="🇨🇦",
            lat=56.1304, lng=-106.3468, min_price=150,
            serpapi_gl="ca", serpapi_hl="en", serpapi_location="Canada", amazon_country="CA",
        ),
        _country(
            "jp", name="Japan", currency="JPY", currency_symbol="¥", flag="🇯🇵",
            lat=36.2048, lng=138.2529, min_price=15000,
            serpapi_gl="jp", serpapi_hl="ja", serpapi_location="Japan", amazon_country="JP",
        ),
        _country(
            "sg", name="Singapore", currency="SGD", currency_symbol="S$", flag="🇸🇬",
            lat=1.3521, lng=103.8198, min_price=150,
            serpapi_gl="sg", serpapi_hl="en", serpapi_location="Singapore", amazon_country="SG",
        ),
        _country(
            "ae", name="UAE", currency="AED", currency_symbol="AED ", flag="🇦🇪",
            lat=23.4241, lng=53.8478, min_price=400,
            serpapi_gl="ae", serpapi_hl="en", serpapi_location="United Arab Emirates", amazon_country="AE",
        ),
        _country(
            "fr", name="France", currency="EUR", currency_symbol="€", flag="🇫🇷",
            lat=46.2276, lng=2.2137, min_price=100,
            serpapi_gl="fr", serpapi_hl="fr", serpapi_location="France", amazon_country="FR",
        ),
    )
}


def get_country(code: Optional[str]) -> CountryContext:
    """Unknown or missing codes fall back to the US marketplace."""
    return COUNTRIES.get((code or "").strip().lower(), COUNTRIES[DEFAULT_COUNTRY])


def parse_country_codes(raw: Optional[str]) -> List[str]:
    """
    "in, US,zz" -> ["in", "us"]. Empty input means every supported country.
    Unknown codes are dropped, order and first occurrence kept.
    """
    if not raw or not raw.strip():
        return list(COUNTRIES)

    out: List[str] = []
    for part in raw.split(","):
        code = part.strip().lower()
        if code in COUNTRIES and code not in out:
            out.append(code)
    return out
