"""Tests for the Gemini and heuristic offer validators."""

import json

import httpx
import pytest
import respx

from globalprice.core.gemini import (
    API_BASE,
    GeminiOfferValidator,
    _extract_json_array,
    _pick_model_from_list,
    _redact_key,
    verdicts_from_answer,
)
from globalprice.core.validation import HeuristicOfferValidator
from globalprice.schemas.validation import ValidationItem

GENERATE_URL = f"{API_BASE}/models/gemini-2.0-flash:generateContent"

ITEMS = [
    ValidationItem(title="Samsung Galaxy S25 128GB Navy", price=799.0, currency="USD"),
    ValidationItem(title="Galaxy S25 Silicone Case", price=29.0, currency="USD"),
    ValidationItem(title="Samsung Galaxy S25 256GB", price=859.0, currency="USD"),
]


def gemini_reply(text: str) -> httpx.Response:
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


class TestGeminiOfferValidator:
    @pytest.mark.asyncio
    @respx.mock
    async def test_reads_structured_verdicts(self) -> None:
        answer = [
            {"idx": 1, "valid": True, "reason": "exact match"},
            {"idx": 2, "valid": False, "reason": "case"},
            {"idx": 3, "valid": True, "reason": "storage variant"},
        ]
        route = respx.post(GENERATE_URL).mock(return_value=gemini_reply(json.dumps(answer)))
        validator = GeminiOfferValidator(api_key="g-key", model="gemini-2.0-flash")

        verdicts = await validator.validate("Samsung Galaxy S25", ITEMS)

        assert {i: v.is_valid for i, v in verdicts.items()} == {0: True, 1: False, 2: True}
        assert verdicts[1].reason == "case"
        assert route.call_count == 1

        request = route.calls.last.request
        assert request.url.params["key"] == "g-key"
        body = json.loads(request.content)
        assert body["generationConfig"]["response_mime_type"] == "application/json"
        prompt = body["contents"][0]["parts"][0]["text"]
        assert 'SEARCH QUERY: "Samsung Galaxy S25"' in prompt
        assert '2. "Galaxy S25 Silicone Case" - USD 29.0' in prompt

    @pytest.mark.asyncio
    @respx.mock
    async def test_server_error_fails_open(self) -> None:
        route = respx.post(GENERATE_URL).mock(return_value=httpx.Response(500, text="internal"))
        validator = GeminiOfferValidator(api_key="g-key", model="gemini-2.0-flash")

        assert await validator.validate("Samsung Galaxy S25", ITEMS) == {}
        # one attempt, no retries
        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_unreadable_answer_fails_open(self) -> None:
        respx.post(GENERATE_URL).mock(return_value=gemini_reply("I think they are all phones."))
        validator = GeminiOfferValidator(api_key="g-key", model="gemini-2.0-flash")

        assert await validator.validate("Samsung Galaxy S25", ITEMS) == {}

    @pytest.mark.asyncio
    @respx.mock
    async def test_unexpected_shape_fails_open(self) -> None:
        respx.post(GENERATE_URL).mock(return_value=httpx.Response(200, json={"promptFeedback": {}}))
        validator = GeminiOfferValidator(api_key="g-key", model="gemini-2.0-flash")

        assert await validator.validate("Samsung Galaxy S25", ITEMS) == {}

    @pytest.mark.asyncio
    async def test_no_key_or_no_items_makes_no_request(self) -> None:
        with respx.mock(assert_all_called=False) as mock:
            route = mock.post(GENERATE_URL).mock(return_value=gemini_reply("[]"))

            assert await GeminiOfferValidator(api_key="", model="gemini-2.0-flash").validate("q", ITEMS) == {}
            assert await GeminiOfferValidator(api_key="g-key", model="gemini-2.0-flash").validate("q", []) == {}
            assert route.call_count == 0

    @pytest.mark.asyncio
    @respx.mock
    async def test_model_resolved_from_list(self) -> None:
        models = respx.get(f"{API_BASE}/models").mock(
            return_value=httpx.Response(
                200,
                json={
                    "models": [
                        {"name": "models/embedding-001", "supportedGenerationMethods": ["embedContent"]},
                        {"name": "models/gemini-pro", "supportedGenerationMethods": ["generateContent"]},
                        {"name": "models/gemini-2.0-flash", "supportedGenerationMethods": ["generateContent"]},
                    ]
                },
            )
        )
        generate = respx.post(GENERATE_URL).mock(return_value=gemini_reply('[{"idx": 2, "valid": false}]'))
        validator = GeminiOfferValidator(api_key="g-key")

        first = await validator.validate("Samsung Galaxy S25", ITEMS)
        second = await validator.validate("Samsung Galaxy S25", ITEMS)

        assert first == second
        assert list(first) == [1]
        assert models.call_count == 1
        assert generate.call_count == 2


class TestAnswerParsing:
    def test_fenced_block(self) -> None:
        text = 'Here you go:\n```json\n[{"idx": 1, "valid": true}]\n```\nanything else?'
        assert _extract_json_array(text) == [{"idx": 1, "valid": True}]

    def test_array_inside_prose(self) -> None:
        assert _extract_json_array('Result: [{"idx": 1, "valid": false}] done') == [{"idx": 1, "valid": False}]

    def test_no_array(self) -> None:
        with pytest.raises(ValueError):
            _extract_json_array("no json here")

    def test_out_of_range_and_malformed_entries_are_ignored(self) -> None:
        answer = [
            {"idx": 0, "valid": False},
            {"idx": 4, "valid": False},
            {"idx": "2", "valid": False},
            {"idx": 2, "valid": "no"},
            {"idx": True, "valid": False},
            "junk",
            {"idx": 3, "valid": False, "reason": "different model"},
        ]

        verdicts = verdicts_from_answer(answer, 3)

        assert list(verdicts) == [2]
        assert verdicts[2].is_valid is False
        assert verdicts[2].confidence == pytest.approx(0.9)

    def test_pick_model_prefers_flash(self) -> None:
        payload = {
            "models": [
                {"name": "models/gemini-pro", "supportedGenerationMethods": ["generateContent"]},
                {"name": "models/gemini-1.5-flash", "supportedGenerationMethods": ["generateContent"]},
            ]
        }
        assert _pick_model_from_list(payload) == "models/gemini-1.5-flash"

    def test_pick_model_needs_generate_content(self) -> None:
        with pytest.raises(ValueError):
            _pick_model_from_list({"models": [{"name": "models/x", "supportedGenerationMethods": []}]})

    def test_key_is_redacted(self) -> None:
        assert _redact_key("GET /models?key=abc123&pageSize=5") == "GET /models?key=REDACTED&pageSize=5"


class TestHeuristicOfferValidator:
    @pytest.mark.asyncio
    async def test_verdicts_for_every_item(self) -> None:
        verdicts = await HeuristicOfferValidator().validate("Samsung Galaxy S25", ITEMS)

        assert {i: v.is_valid for i, v in verdicts.items()} == {0: True, 1: False, 2: True}
        assert verdicts[1].reason == "accessory keyword 'case'"

    def test_title_must_share_query_words(self) -> None:
        assert HeuristicOfferValidator.check("Sony WH-1000XM5 headphones", "Bose QuietComfort Ultra").is_valid is False

    def test_extended_keywords(self) -> None:
        assert HeuristicOfferValidator.check("iPhone 16", "iPhone 16 Tempered Glass").is_valid is False
        assert HeuristicOfferValidator.check("iPhone 16", "iPhone 16 ケース").is_valid is False

    def test_short_words_do_not_count(self) -> None:
        # "16" and "pro" -> only "pro" is long enough to count
        assert HeuristicOfferValidator.check("16 pro", "iPhone 16 Pro 256GB").is_valid is True
