import asyncio
import json

import httpx
import pytest

from jetrent.core.errors import ExtractionError
from jetrent.llm.client import ChatCompletionsClient
from jetrent.llm.extractor import KeywordExtractor, OpenAIExtractor, parse_extraction


def keyword(text):
    return asyncio.run(KeywordExtractor().extract(text))


def test_keyword_extracts_full_request():
    result = keyword("2 bedroom in Brooklyn under $2500")

    assert result.location == "Brooklyn"
    assert result.state == "NY"
    assert result.bedrooms == 2
    assert result.budget == 2500
    assert result.missing_fields == ()
    assert not result.is_greeting


def test_keyword_detects_plain_greeting():
    result = keyword("Hi there!")

    assert result.is_greeting
    assert not result.has_values()


def test_greeting_with_details_is_not_a_greeting():
    result = keyword("Hi, I need a studio in Chicago")

    assert not result.is_greeting
    assert result.bedrooms == 0
    assert result.location == "Chicago"
    assert result.state == "IL"


def test_bare_number_is_a_budget():
    result = keyword("3000")

    assert result.budget == 3000
    assert result.bedrooms is None
    assert set(result.missing_fields) == {"location", "state", "bedrooms"}


def test_k_suffix_budget_and_word_bedrooms():
    result = keyword("two bedrooms, up to 2.5k")

    assert result.bedrooms == 2
    assert result.budget == 2500


def test_explicit_state_and_zip():
    result = keyword("Something in Springfield, IL 62701 please")

    assert result.location == "Springfield"
    assert result.state == "IL"
    assert result.zipcode == "62701"


def test_uppercase_alias_only_matches_as_word():
    assert keyword("1br in LA for $2000").location == "Los Angeles"
    assert keyword("a large flat, budget 2000").location is None


def test_parse_extraction_drops_values_listed_as_missing():
    result = parse_extraction(
        {
            "location": "Boston",
            "state": "ma",
            "bedrooms": 1,
            "budget": 2000,
            "missingParameters": ["budget", "Number of Bedrooms"],
        }
    )

    assert result.state == "MA"
    assert result.bedrooms is None
    assert result.budget is None
    assert result.missing_fields == ("budget", "bedrooms")


def test_parse_extraction_greeting_has_no_values():
    result = parse_extraction({"isGreeting": True, "location": "Boston"})

    assert result.is_greeting
    assert result.location is None


def test_parse_extraction_coerces_strings():
    result = parse_extraction({"budget": "$2,750", "bedrooms": "3", "zipcode": 10001})

    assert result.budget == 2750
    assert result.bedrooms == 3
    assert result.zipcode == "10001"


def _extractor(handler):
    return OpenAIExtractor(ChatCompletionsClient("test-key", transport=httpx.MockTransport(handler)))


def test_openai_extractor_sends_json_mode_and_parses_reply():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        content = json.dumps({"location": "Chicago", "state": "IL", "missingParameters": ["bedrooms", "budget"]})
        return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

    result = asyncio.run(_extractor(handler).extract("Chicago please"))

    assert seen["body"]["response_format"] == {"type": "json_object"}
    assert seen["body"]["messages"][-1] == {"role": "user", "content": "Chicago please"}
    assert result.location == "Chicago"
    assert result.missing_fields == ("bedrooms", "budget")


def test_openai_extractor_invalid_json_raises():
    def handler(request):
        return httpx.Response(200, json={"choices": [{"message": {"content": "not json"}}]})

    with pytest.raises(ExtractionError):
        asyncio.run(_extractor(handler).extract("hello"))


def test_openai_extractor_http_error_raises():
    def handler(request):
        return httpx.Response(500, json={"error": "boom"})

    with pytest.raises(ExtractionError):
        asyncio.run(_extractor(handler).extract("hello"))


def test_openai_extractor_rejects_non_object_payload():
    def handler(request):
        return httpx.Response(200, json={"choices": [{"message": {"content": "[1, 2]"}}]})

    with pytest.raises(ExtractionError):
        asyncio.run(_extractor(handler).extract("hello"))


def test_overflowing_budget_is_left_unknown():
    result = keyword("my budget is $" + "9" * 400)

    assert result.budget is None
    assert "budget" in result.missing_fields


def test_parse_extraction_drops_non_finite_numbers():
    result = parse_extraction({"location": "Boston", "budget": "Infinity", "bedrooms": 10**400})

    assert result.location == "Boston"
    assert result.budget is None
    assert result.bedrooms is None


def test_thanks_is_not_a_greeting():
    for text in ("thanks!", "Thank you"):
        result = keyword(text)

        assert not result.is_greeting, text
        assert not result.has_values()


def test_greeting_with_a_request_is_not_a_greeting():
    for text in ("hey, search apartments", "Hi! show me listings", "hello, I need a place"):
        assert not keyword(text).is_greeting, text

    for text in ("hey", "Hello there!", "good morning.", "hi again"):
        assert keyword(text).is_greeting, text
