import re
from typing import Dict, Protocol, Sequence

from globalprice.core.keywords import EXTENDED_ACCESSORY_KEYWORDS
from globalprice.schemas.validation import ValidationItem, ValidationVerdict


class OfferValidator(Protocol):
    """
    Optional last stage of the pipeline: decides which offers really are the
    searched product. Verdicts are keyed by position in `items`; a missing
    key means "keep". Implementations must not raise.
    """

    async def validate(self, query: str, items: Sequence[ValidationItem]) -> Dict[int, ValidationVerdict]:
        ...


class HeuristicOfferValidator:
    """
    Offline title check: at least half of the query's words appear in the
    title, and the title carries no accessory keyword.
    """

    async def validate(self, query: str, items: Sequence[ValidationItem]) -> Dict[int, ValidationVerdict]:
        return {idx: self.check(query, item.title) for idx, item in enumerate(items)}

    @staticmethod
    def check(query: str, title: str) -> ValidationVerdict:
        words = [w for w in re.split(r"\s+", query.lower().strip()) if w]
        low = (title or "").lower()

        if words:
            matched = sum(1 for w in words if len(w) > 2 and w in low)
            if matched / len(words) < 0.5:
                return ValidationVerdict(is_valid=False, reason="title does not match query", confidence=0.6)

        for kw in EXTENDED_ACCESSORY_KEYWORDS:
            if kw in low:
                return ValidationVerdict(is_valid=False, reason=f"accessory keyword '{kw}'", confidence=0.6)

        return ValidationVerdict(is_valid=True, reason="heuristic match", confidence=0.6)
