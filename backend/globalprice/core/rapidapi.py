from typing import Any, Dict, List, Optional

import httpx

from globalprice.core.config import settings
from globalprice.core.countries import CountryContext

AMAZON_HOST = "real-time-amazon-data.p.rapidapi.com"
PRODUCT_SEARCH_HOST = "real-time-product-search.p.rapidapi.com"


def _get_rapidapi_key(api_key: Optional[str] = None) -> str:
    key = (api_key or settings.RAPIDAPI_KEY or "").strip()
    if not key:
        raise ValueError("RAPIDAPI_KEY is not set")
    return key


async def _rapidapi_get(
    host: str,
    path: str,
    params: Dict[str, Any],
    *,
    api_key: Optional[str],
    timeout: float,
) -> Dict[str, Any]:
    headers = {
        "X-RapidAPI-Key": _get_rapidapi_key(api_key),
        "X-RapidAPI-Host": host,
    }
    async with httpx.AsyncClient(timeout=timeout) as client:
        r = await client.get(f"https://{host}{path}", params=params, headers=headers)
        if r.status_code != 200:
            raise ValueError(f"RapidAPI {host} request failed: {r.status_code}\nBODY:\n{r.text[:500]}")
        data = r.json()

    if not isinstance(data, dict):
        raise ValueError(f"RapidAPI {host} returned a non-object payload")
    return data


async def amazon_search(
    q: str,
    country: CountryContext,
    *,
    api_key: Optional[str] = None,
    timeout: float = 10.0,
) -> List[Dict[str, Any]]:
    """
    Real-Time Amazon Data search, new items only, in the country's marketplace.
    """
    data = await _rapidapi_get(
        AMAZON_HOST,
        "/search",
        {
            "query": q,
            "page": 1,
            "country": country.amazon_country,
            "sort_by": "RELEVANCE",
            "product_condition": "NEW",
        },
        api_key=api_key,
        timeout=timeout,
    )
    if data.get("status") not in (None, "OK"):
        raise ValueError(f"Amazon search error: {data.get('status')}")

    products = (data.get("data") or {}).get("products")
    return products if isinstance(products, list) else []


async def product_search(
    q: str,
    country: CountryContext,
    *,
    api_key: Optional[str] = None,
    timeout: float = 10.0,
    limit: int = 10,
) -> List[Dict[str, Any]]:
    """
    Real-Time Product Search (Google Shopping product graph), best match first.
    """
    data = await _rapidapi_get(
        PRODUCT_SEARCH_HOST,
        "/search-v2",
        {
            "q": q,
            "country": country.code,
            "language": "en",
            "limit": max(1, min(int(limit), 100)),
            "sort_by": "BEST_MATCH",
            "product_condition": "NEW",
        },
        api_key=api_key,
        timeout=timeout,
    )
    products = (data.get("data") or {}).get("products")
    return products if isinstance(products, list) else []
