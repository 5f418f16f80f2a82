from pydantic import BaseModel


class ValidationItem(BaseModel):
    title: str
    price: float
    currency: str


class ValidationVerdict(BaseModel):
    is_valid: bool = True
    reason: str = ""
    confidence: float = 0.5
