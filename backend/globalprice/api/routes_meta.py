from fastapi import APIRouter, Depends

from globalprice.api.deps import get_service
from globalprice.core.countries import COUNTRIES
from globalprice.core.retailers import trusted_domains, trusted_retailer_names
from globalprice.core.search import PriceComparisonService
from globalprice.schemas.rates import ExchangeRateSnapshot

router = APIRouter(prefix="/v1", tags=["meta"])


@router.get("/countries")
def countries():
    return [
        {
            "code": c.code,
            "name": c.name,
            "currency": c.currency,
            "currency_symbol": c.currency_symbol,
            "flag": c.flag,
            "lat": c.lat,
            "lng": c.lng,
            "min_price": c.min_price,
            "trusted_retailers": trusted_retailer_names(c.code),
            "trusted_domains": trusted_domains(c.code),
        }
        for c in COUNTRIES.values()
    ]


@router.get("/rates", response_model=ExchangeRateSnapshot)
async def rates(service: PriceComparisonService = Depends(get_service)):
    return await service.rate_cache.get_rates()
