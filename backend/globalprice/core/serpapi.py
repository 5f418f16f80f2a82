from typing import Any, Dict, List, Optional

import httpx

from globalprice.core.config import settings
from globalprice.core.countries import CountryContext

SERPAPI_BASE = "https://serpapi.com/search.json"


def _get_serpapi_key(api_key: Optional[str] = None) -> str:
    key = (api_key or settings.SERPAPI_API_KEY or "").strip()
    if not key:
        raise ValueError("SERPAPI_API_KEY is not set")
    return key


async def shopping_search(
    q: str,
    country: CountryContext,
    *,
    api_key: Optional[str] = None,
    timeout: float = 10.0,
) -> List[Dict[str, Any]]:
    """
    Calls SerpAPI Google Shopping for one country and returns `shopping_results`.

    Notes:
    - gl/hl/location come from the country (SerpAPI uses "uk", not "gb").
    - Raises ValueError on HTTP failure or an error payload; callers decide
      whether that is fatal.
    """
    params: Dict[str, Any] = {
        "engine": "google_shopping",
        "q": q,
        "api_key": _get_serpapi_key(api_key),
        "gl": country.serpapi_gl,
        "hl": country.serpapi_hl,
    }
    if country.serpapi_location:
        params["location"] = country.serpapi_location

    async with httpx.AsyncClient(timeout=timeout) as client:
        r = await client.get(SERPAPI_BASE, params=params)
        try:
            r.raise_for_status()
        except httpx.HTTPStatusError:
            raise ValueError(f"SerpAPI request failed: {r.status_code}\nBODY:\n{r.text[:500]}")

        data = r.json()

    # Engine errors come back as 200 with an "error" key
    if isinstance(data, dict) and data.get("error"):
        raise ValueError(f"SerpAPI error: {data.get('error')}")

    results = data.get("shopping_results") if isinstance(data, dict) else None
    return results if isinstance(results, list) else []
