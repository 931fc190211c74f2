"""Search-parameter extraction from free-text user messages."""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Mapping

import httpx

from jetrent.core.errors import ExtractionError
from jetrent.memory.models import (
    REQUIRED_SLOTS,
    ExtractionResult,
    coerce_int,
    coerce_number,
    coerce_text,
)

from .client import ChatCompletionsClient

logger = logging.getLogger("jetrent.llm.extractor")

EXTRACTION_PROMPT = """Extract apartment search parameters from the user's message.

Return a JSON object with these keys:
- location: the city or neighborhood the user wants to live in
- state: two-letter US state abbreviation (e.g. NY, CA, IL)
- zipcode: five-digit ZIP code of the location
- bedrooms: number of bedrooms (0 for a studio)
- budget: maximum monthly rent in USD as a plain number
- missingParameters: array naming every parameter that was not found
  (options: "location", "state", "zipcode", "bedrooms", "budget")
- isGreeting: true when the message is only a greeting or small talk

Rules:
- If the message is only a greeting (hi, hello, hey) or small talk, set isGreeting
  to true and set no other parameters.
  A greeting followed by a request ("hey, search apartments") is not a greeting.
- Normalise common abbreviations (NYC = New York, LA = Los Angeles).
- Bedrooms: accept "2 bed", "2br", "two bedrooms"; "studio" means 0. Only set it
  when stated.
- Budget: accept "$2000", "2k", "2,000", "under 2000", "up to 2k". A message that
  is only a number such as "3k" or "2500" is a budget.
- State and zipcode may be inferred when the location makes them unambiguous
  (Brooklyn -> NY); everything else must be explicitly stated.
- Never invent values. Any parameter listed in missingParameters must be left out
  of the response entirely."""

FIELD_ALIASES = {
    "number of bedrooms": "bedrooms",
    "beds": "bedrooms",
    "zip": "zipcode",
    "zip code": "zipcode",
    "price": "budget",
    "city": "location",
}


class ParameterExtractor(ABC):
    """Turns one raw user message into an ``ExtractionResult``."""

    @abstractmethod
    async def extract(self, text: str) -> ExtractionResult:
        """Extract parameters; raise ``ExtractionError`` on failure."""

    def describe(self) -> str:
        return self.__doc__ or type(self).__name__


class OpenAIExtractor(ParameterExtractor):
    """Language-model extraction in JSON response mode."""

    def __init__(self, client: ChatCompletionsClient) -> None:
        self._client = client

    async def extract(self, text: str) -> ExtractionResult:
        messages = [
            {"role": "system", "content": EXTRACTION_PROMPT},
            {"role": "user", "content": text},
        ]
        try:
            content = await self._client.complete(messages, json_mode=True)
        except httpx.HTTPError as exc:
            logger.warning("Extraction call failed: %s", exc)
            raise ExtractionError("language model request failed") from exc

        try:
            data = json.loads(content or "{}")
        except json.JSONDecodeError as exc:
            raise ExtractionError("language model returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise ExtractionError("language model returned a non-object payload")

        result = parse_extraction(data)
        logger.debug("Extracted %s", result.to_dict())
        return result


def parse_extraction(data: Mapping[str, Any]) -> ExtractionResult:
    """Normalise the model's JSON into an ``ExtractionResult``.

    Values for fields named in ``missingParameters`` are dropped so a model that
    fills in defaults anyway cannot leak them into the conversation.
    """

    raw_missing = data.get("missingParameters")
    if not isinstance(raw_missing, (list, tuple)):
        raw_missing = []
    missing: list[str] = []
    for item in raw_missing:
        name = str(item).strip().lower()
        name = FIELD_ALIASES.get(name, name)
        if name not in missing:
            missing.append(name)

    is_greeting = data.get("isGreeting") is True
    if is_greeting:
        return ExtractionResult(missing_fields=tuple(missing), is_greeting=True)

    values: dict[str, Any] = {
        "location": coerce_text(data.get("location")),
        "state": _normalise_state(data.get("state")),
        "zipcode": coerce_text(data.get("zipcode")),
        "bedrooms": coerce_int(data.get("bedrooms")),
        "budget": coerce_number(data.get("budget")),
    }
    for name in missing:
        if name in values:
            values[name] = None

    return ExtractionResult(**values, missing_fields=tuple(missing))


def _normalise_state(value: Any) -> str | None:
    text = coerce_text(value)
    if text and len(text) == 2:
        return text.upper()
    return text


# Offline fallback

LOCATION_ALIASES: dict[str, tuple[str, str | None]] = {
    "nyc": ("New York", "NY"),
    "new york city": ("New York", "NY"),
    "new york": ("New York", "NY"),
    "manhattan": ("Manhattan", "NY"),
    "brooklyn": ("Brooklyn", "NY"),
    "queens": ("Queens", "NY"),
    "los angeles": ("Los Angeles", "CA"),
    "santa monica": ("Santa Monica", "CA"),
    "san francisco": ("San Francisco", "CA"),
    "chicago": ("Chicago", "IL"),
    "boston": ("Boston", "MA"),
    "seattle": ("Seattle", "WA"),
    "austin": ("Austin", "TX"),
    "jersey city": ("Jersey City", "NJ"),
    "hoboken": ("Hoboken", "NJ"),
}
# Matched case-sensitively so "la" inside ordinary words never counts.
UPPERCASE_ALIASES: dict[str, tuple[str, str | None]] = {
    "LA": ("Los Angeles", "CA"),
    "SF": ("San Francisco", "CA"),
    "NYC": ("New York", "NY"),
}

STATE_CODES = frozenset(
    "AL AK AZ AR CA CO CT DE FL GA HI ID IL IN IA KS KY LA ME MD MA MI MN MS MO MT NE NV NH "
    "NJ NM NY NC ND OH OK OR PA RI SC SD TN TX UT VT VA WA WV WI WY DC".split()
)
STATE_NAMES = {
    "california": "CA",
    "illinois": "IL",
    "massachusetts": "MA",
    "new jersey": "NJ",
    "texas": "TX",
    "washington": "WA",
    "florida": "FL",
}

# Uppercase words that are also state codes; only trusted after a comma.
AMBIGUOUS_CODES = frozenset({"OK", "IN", "ME", "OR", "HI", "OH"})

NUMBER_WORDS = {"one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6}

GREETING_PATTERN = re.compile(
    r"^\s*(?:hi|hello|hey|hiya|howdy|yo|good (?:morning|afternoon|evening))"
    r"(?:\s+(?:there|again|jetrent))?[\s!.,]*$",
    re.IGNORECASE,
)
BEDROOM_PATTERN = re.compile(
    r"\b(\d+|one|two|three|four|five|six)\s*-?\s*(?:bed(?:room)?s?|br|bd)\b", re.IGNORECASE
)
STUDIO_PATTERN = re.compile(r"\bstudios?\b", re.IGNORECASE)
BUDGET_PATTERNS = (
    re.compile(r"\$\s*(\d[\d,]*(?:\.\d+)?\s*k?)", re.IGNORECASE),
    re.compile(
        r"\b(?:budget|under|below|max(?:imum)?|up to|less than|at most)\b(?:\s+(?:of|is))?\s*\$?\s*(\d[\d,]*(?:\.\d+)?\s*k?)\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b(\d+(?:\.\d+)?\s*k)\b", re.IGNORECASE),
    re.compile(r"\b(\d[\d,]*)\s*(?:/\s*mo(?:nth)?|per month|a month|dollars|usd)\b", re.IGNORECASE),
)
BARE_BUDGET_PATTERN = re.compile(r"^\s*\$?\s*(\d[\d,]*(?:\.\d+)?\s*k?)\s*$", re.IGNORECASE)
ZIP_PATTERNS = (
    re.compile(r"\bzip(?:\s*code)?\D{0,3}(\d{5})\b", re.IGNORECASE),
    re.compile(r"\b[A-Z]{2}\s+(\d{5})\b"),
)
IN_PLACE_PATTERN = re.compile(r"\b(?:in|near|around)\s+([A-Z][a-zA-Z]+(?:\s+[A-Z][a-zA-Z]+)*)")
STATE_AFTER_COMMA_PATTERN = re.compile(r",\s*([A-Z]{2})\b")


class KeywordExtractor(ParameterExtractor):
    """Deterministic keyword extraction used when no language model is configured."""

    async def extract(self, text: str) -> ExtractionResult:
        values: dict[str, Any] = {
            "location": None,
            "state": None,
            "zipcode": None,
            "bedrooms": self._bedrooms(text),
            "budget": self._budget(text),
        }

        location, inferred_state = self._location(text)
        values["location"] = location
        values["state"] = self._state(text, location) or inferred_state
        values["zipcode"] = self._zipcode(text)

        has_values = any(value is not None for value in values.values())
        if not has_values and GREETING_PATTERN.match(text):
            return ExtractionResult(missing_fields=REQUIRED_SLOTS, is_greeting=True)

        missing = tuple(name for name in REQUIRED_SLOTS if values[name] is None)
        return ExtractionResult(**values, missing_fields=missing)

    @staticmethod
    def _location(text: str) -> tuple[str | None, str | None]:
        for alias, resolved in UPPERCASE_ALIASES.items():
            if re.search(rf"(?<![A-Za-z]){alias}(?![A-Za-z])", text):
                return resolved
        lowered = text.lower()
        for alias, resolved in LOCATION_ALIASES.items():
            if re.search(rf"(?<!\w){re.escape(alias)}(?!\w)", lowered):
                return resolved
        match = IN_PLACE_PATTERN.search(text)
        if match:
            candidate = match.group(1)
            words = candidate.split()
            # Trailing state codes belong to the state slot, not the place name.
            while words and words[-1] in STATE_CODES:
                words.pop()
            if words:
                return " ".join(words), None
        return None, None

    @staticmethod
    def _state(text: str, location: str | None) -> str | None:
        match = STATE_AFTER_COMMA_PATTERN.search(text)
        if match and match.group(1) in STATE_CODES:
            return match.group(1)
        for token in re.findall(r"\b[A-Z]{2}\b", text):
            if token in STATE_CODES and token not in UPPERCASE_ALIASES and token not in AMBIGUOUS_CODES:
                return token
        lowered = text.lower()
        for name, code in STATE_NAMES.items():
            if re.search(rf"\b{name}\b", lowered) and (location or "").lower() != name:
                return code
        return None

    @staticmethod
    def _zipcode(text: str) -> str | None:
        for pattern in ZIP_PATTERNS:
            match = pattern.search(text)
            if match:
                return match.group(1)
        return None

    @staticmethod
    def _bedrooms(text: str) -> int | None:
        match = BEDROOM_PATTERN.search(text)
        if match:
            raw = match.group(1).lower()
            return NUMBER_WORDS.get(raw) if raw in NUMBER_WORDS else coerce_int(raw)
        if STUDIO_PATTERN.search(text):
            return 0
        return None

    @staticmethod
    def _budget(text: str) -> float | None:
        bare = BARE_BUDGET_PATTERN.match(text)
        if bare:
            return coerce_number(bare.group(1).replace(" ", ""))
        for pattern in BUDGET_PATTERNS:
            match = pattern.search(text)
            if match:
                value = coerce_number(match.group(1).replace(" ", ""))
                if value is not None:
                    return value
        return None
