from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import Optional, List

from globalprice.core.prices import parse_price


class Offer(BaseModel):
    """
    One purchasable listing, in the same shape whichever provider produced it.
    `price_numeric` is always derived from `price`; it cannot be set.
    """
    model_config = ConfigDict(frozen=True)

    id: str                                  # "<provider>-<native id>"
    title: Optional[str] = None
    page_url: str = "#"
    price: str = ""                          # e.g. "$1,199.99" or "1.199,00 €"
    original_price: Optional[str] = None
    on_sale: bool = False
    percent_off: Optional[str] = None
    shipping: str = "See website for shipping"
    returns_policy: str = "See store policy"
    condition: str = "NEW"
    store_name: str = "Online Store"
    store_rating: Optional[str] = None       # e.g. "4.6/5"
    store_review_count: int = Field(default=0, ge=0)
    source_provider: str
    is_prime: Optional[bool] = None
    currency: str = "USD"
    thumbnail: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def price_numeric(self) -> float:
        return parse_price(self.price)


class CountryOffers(BaseModel):
    country: str
    country_name: str
    currency: str
    offers: List[Offer]
    sources_used: List[str] = []
    cheapest_price: Optional[float] = None      # native currency
    cheapest_reference: Optional[float] = None  # reference currency


class CountrySavings(BaseModel):
    country: str
    country_name: str
    amount: float
    percent: float


class ComparisonResponse(BaseModel):
    query: str
    reference_currency: str
    rates_degraded: bool = False
    rates_fetched_at: Optional[float] = None
    results: List[CountryOffers]
    cheapest_country: Optional[str] = None
    most_expensive_country: Optional[str] = None
    savings: Optional[CountrySavings] = None
