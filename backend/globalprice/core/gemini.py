import json
import re
from typing import Any, Dict, List, Optional, Sequence

import httpx

from globalprice.core.logger import get_logger
from globalprice.schemas.validation import ValidationItem, ValidationVerdict

logger = get_logger(__name__)

# Service endpoint for Gemini API (v1beta)
API_BASE = "https://generativelanguage.googleapis.com/v1beta"


def _redact_key(s: str) -> str:
    """
    Redact 'key=...' in URLs or text so we never leak API keys in logs.
    """
    if not s:
        return s
    return re.sub(r"(key=)([^&\s]+)", r"\1REDACTED", s)


def _verdict_schema() -> Dict[str, Any]:
    """
    JSON Schema for the model's answer, used by Gemini Structured Output.
    """
    return {
        "type": "array",
        "items": {
            "type": "object",
            "properties": {
                "idx": {"type": "integer"},
                "valid": {"type": "boolean"},
                "reason": {"type": "string"},
            },
            "required": ["idx", "valid"],
        },
    }


def _build_prompt(query: str, items: Sequence[ValidationItem]) -> str:
    product_list = "\n".join(
        f'{idx + 1}. "{item.title}" - {item.currency} {item.price}' for idx, item in enumerate(items)
    )
    return (
        "You are a product validation assistant. Given a search query and product listings, "
        "determine which products are ACTUALLY the searched product "
        "(not accessories, cases, or different items).\n\n"
        f'SEARCH QUERY: "{query}"\n\n'
        f"PRODUCTS:\n{product_list}\n\n"
        'Respond with ONLY a JSON array like [{"idx": 1, "valid": true, "reason": "exact match"}].\n\n'
        "Rules:\n"
        "- valid=true ONLY if it's the actual product being searched (not accessories, cases, chargers, etc.)\n"
        "- valid=false for screen protectors, cases, covers, cables, unrelated items\n"
        "- valid=false if the title clearly indicates a different product\n"
        "- valid=true for different storage variants (128GB, 256GB, etc.) of the same product\n"
        "- valid=true for different color variants\n"
        "- Be strict - when in doubt, mark as invalid\n"
    )


def _extract_json_array(text: str) -> List[Any]:
    """
    Robust JSON array extraction (handles fenced blocks, extra text, etc.).
    """
    # 1) Strict parse
    try:
        data = json.loads(text)
        if isinstance(data, list):
            return data
    except ValueError:
        pass

    # 2) Prefer fenced ```json ... ```
    fenced = re.search(r"```(?:json)?\s*(\[.*?\])\s*```", text, re.DOTALL | re.IGNORECASE)
    if fenced:
        return json.loads(fenced.group(1).strip())

    # 3) Greedy fallback
    m = re.search(r"\[.*\]", text, re.DOTALL)
    if not m:
        raise ValueError("No JSON array found in model output")
    data = json.loads(m.group(0))
    if not isinstance(data, list):
        raise ValueError("Model output is not a JSON array")
    return data


def _pick_model_from_list(models_payload: Dict[str, Any]) -> str:
    """
    Picks a model name (e.g. 'models/xxx') that supports generateContent.
    Preference:
      1) Flash models (contains 'flash')
      2) Any model that supports generateContent
    """
    models = models_payload.get("models", []) or []

    def supports_generate(m: Dict[str, Any]) -> bool:
        methods = m.get("supportedGenerationMethods") or []
        return any(str(x).lower() == "generatecontent" for x in methods)

    candidates = [m for m in models if supports_generate(m)]
    if not candidates:
        raise ValueError("No models found that support generateContent (ListModels returned none)")

    flash = [m for m in candidates if "flash" in (m.get("name", "").lower())]
    chosen = (flash[0] if flash else candidates[0]).get("name")
    if not chosen:
        raise ValueError("ListModels returned a model entry without a name")
    return chosen


def verdicts_from_answer(answer: List[Any], count: int) -> Dict[int, ValidationVerdict]:
    """
    [{"idx": 1, "valid": false, "reason": "..."}] -> {0: ValidationVerdict(is_valid=False, ...)}.
    `idx` is 1-based in the prompt. Entries that are out of range or not
    shaped like a verdict are ignored.
    """
    out: Dict[int, ValidationVerdict] = {}
    for entry in answer:
        if not isinstance(entry, dict):
            continue
        idx = entry.get("idx")
        valid = entry.get("valid")
        if not isinstance(idx, int) or isinstance(idx, bool) or not isinstance(valid, bool):
            continue
        if not 1 <= idx <= count:
            continue
        out[idx - 1] = ValidationVerdict(
            is_valid=valid,
            reason=str(entry.get("reason") or ""),
            confidence=0.9,
        )
    return out


class GeminiOfferValidator:
    """
    Sends every offer title of one search to Gemini in a single request and
    reads back per-offer verdicts.

    - Uses Structured Output (response_mime_type + response_json_schema)
    - Resolves a model via ListModels when GEMINI_MODEL is not configured
    - One attempt per search, no retries
    - Fail-open: any error returns no verdicts, which keeps every offer
    """

    def __init__(self, api_key: str, model: str = "", timeout: float = 20.0) -> None:
        self._api_key = api_key.strip()
        self._model = self._normalize_model(model)
        self._timeout = timeout

    @staticmethod
    def _normalize_model(name: str) -> str:
        name = (name or "").strip()
        if not name:
            return ""
        return name if name.startswith("models/") else f"models/{name}"

    async def _resolve_model_name(self, client: httpx.AsyncClient) -> str:
        if self._model:
            return self._model

        r = await client.get(f"{API_BASE}/models", params={"key": self._api_key})
        if r.status_code >= 400:
            raise ValueError(f"Gemini ListModels failed: {r.status_code}\nBODY:\n{_redact_key(r.text)[:2000]}")

        self._model = _pick_model_from_list(r.json())
        return self._model

    async def validate(self, query: str, items: Sequence[ValidationItem]) -> Dict[int, ValidationVerdict]:
        if not self._api_key or not items:
            return {}

        try:
            return await self._validate(query, items)
        except Exception as e:
            logger.warning("Gemini validation skipped: %s", _redact_key(str(e)))
            return {}

    async def _validate(self, query: str, items: Sequence[ValidationItem]) -> Dict[int, ValidationVerdict]:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": _build_prompt(query, items)}]}],
            "generationConfig": {
                "response_mime_type": "application/json",
                "response_json_schema": _verdict_schema(),
                "temperature": 0.1,
            },
        }

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            model_name = await self._resolve_model_name(client)
            url = f"{API_BASE}/{model_name}:generateContent"
            r = await client.post(url, params={"key": self._api_key}, json=payload)

            if r.status_code >= 400:
                safe_body = _redact_key(r.text)[:2000]
                raise ValueError(f"Gemini request failed: {r.status_code}\nBODY:\n{safe_body}")

            data = r.json()

        text: Optional[str]
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise ValueError(f"Unexpected Gemini response shape; raw={json.dumps(data)[:2000]}")

        return verdicts_from_answer(_extract_json_array(text or ""), len(items))
