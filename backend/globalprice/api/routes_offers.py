from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from globalprice.api.deps import get_service
from globalprice.core.countries import parse_country_codes
from globalprice.core.search import PriceComparisonService
from globalprice.schemas.offers import ComparisonResponse, CountryOffers

router = APIRouter(prefix="/v1", tags=["offers"])


def _require_query(q: Optional[str]) -> str:
    q = (q or "").strip()
    if not q:
        raise HTTPException(status_code=400, detail="Query is required")
    return q


@router.get("/offers", response_model=CountryOffers)
async def offers(
    q: Optional[str] = None,
    country: str = "us",
    num: Optional[int] = None,
    service: PriceComparisonService = Depends(get_service),
):
    """
    Trusted offers for one country, cheapest first.
    Unknown country codes search the US marketplace.
    """
    return await service.search_country(_require_query(q), country, num=num)


@router.get("/compare", response_model=ComparisonResponse)
async def compare(
    q: Optional[str] = None,
    countries: Optional[str] = None,
    num: Optional[int] = None,
    service: PriceComparisonService = Depends(get_service),
):
    """
    Offers for several countries (comma-separated codes, default all ten),
    with the cheapest country in the reference currency.
    """
    query = _require_query(q)
    codes = parse_country_codes(countries)
    if not codes:
        raise HTTPException(status_code=400, detail=f"No supported country in {countries!r}")
    return await service.compare(query, codes, num=num)
