from __future__ import annotations

from typing import Any, Callable, Dict, List

import pytest

from globalprice.core.countries import COUNTRIES, CountryContext
from globalprice.schemas.offers import Offer


class FakeClock:
    """Settable clock for the rate cache."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def us() -> CountryContext:
    return COUNTRIES["us"]


@pytest.fixture
def india() -> CountryContext:
    return COUNTRIES["in"]


@pytest.fixture
def make_offer() -> Callable[..., Offer]:
    counter = {"n": 0}

    def _make(store: str, price: str, title: str = "Samsung Galaxy S25 128GB", **kw: Any) -> Offer:
        counter["n"] += 1
        fields: Dict[str, Any] = {
            "id": f"test-{counter['n']}",
            "title": title,
            "page_url": f"https://shop.example/item/{counter['n']}",
            "price": price,
            "store_name": store,
            "source_provider": "test",
            "currency": "USD",
        }
        fields.update(kw)
        return Offer(**fields)

    return _make


def serp_item(source: str, price: str, title: str = "Samsung Galaxy S25 128GB", **kw: Any) -> Dict[str, Any]:
    item: Dict[str, Any] = {"title": title, "source": source, "price": price, "link": "https://shop.example/p"}
    item.update(kw)
    return item


@pytest.fixture
def serp_items() -> Callable[..., List[Dict[str, Any]]]:
    """[("Best Buy", "$799.99"), ...] -> SerpAPI shopping_results entries."""

    def _items(*pairs: tuple) -> List[Dict[str, Any]]:
        return [serp_item(*pair, product_id=f"p{i}") for i, pair in enumerate(pairs)]

    return _items
