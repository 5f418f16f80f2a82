from pydantic import BaseModel, ConfigDict
from typing import Dict


class ExchangeRateSnapshot(BaseModel):
    """
    Rates as "units of that currency per one unit of `base`".
    Replaced wholesale on refresh, never edited in place.
    """
    model_config = ConfigDict(frozen=True)

    base: str
    rates: Dict[str, float]
    fetched_at: float
    degraded: bool = False
