"""Deep links into Zillow's rental search.

The ``searchQueryState`` parameter is a compact JSON document whose key order
and spelling Zillow matches literally, so the output here is pinned by golden
tests.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any
from urllib.parse import quote

from jetrent.memory.models import is_finite

ZILLOW_BASE_URL = "https://www.zillow.com"
# Zillow's sale-price filter runs at roughly 203.66x the monthly payment.
PRICE_MULTIPLIER = 203.66

# Listing categories other than "for rent" are always switched off.
_EXCLUDED_CATEGORIES = ("fsba", "fsbo", "nc", "cmsn", "auc", "fore", "mf", "land", "manu", "sf", "tow")


def generate_zillow_url(
    location: str | None,
    state: str | None = None,
    zipcode: str | None = None,
    bedrooms: int | None = None,
    budget: float | None = None,
) -> str:
    """Build a Zillow rentals URL; returns ``""`` without a location.

    ``zipcode`` is accepted for call-site symmetry with the other slots but is
    not part of Zillow's rental path. A non-finite budget raises ``ValueError``.
    """

    if not location:
        return ""
    if budget is not None and not is_finite(budget):
        raise ValueError(f"budget must be a finite number, got {budget!r}")

    location_path = re.sub(r"\s+", "-", location.lower())
    search_term = location
    if state:
        location_path += f"-{state.lower()}"
        search_term += f", {state}"

    filter_state: dict[str, Any] = {"fr": {"value": True}}
    filter_state.update({key: {"value": False} for key in _EXCLUDED_CATEGORIES})

    if bedrooms is not None:
        filter_state["beds"] = {"min": _json_number(bedrooms), "max": None}

    if budget is not None:
        filter_state["mp"] = {"max": _json_number(budget), "min": 0}
        filter_state["price"] = {"max": _round_half_up(budget * PRICE_MULTIPLIER), "min": 0}

    search_query_state = {
        "usersSearchTerm": search_term,
        "isListVisible": True,
        "category": "SEMANTIC",
        "filterState": filter_state,
    }

    encoded = encode_uri_component(
        json.dumps(search_query_state, separators=(",", ":"), ensure_ascii=False)
    )
    return f"{ZILLOW_BASE_URL}/{location_path}/rentals/?searchQueryState={encoded}&category=SEMANTIC"


def encode_uri_component(value: str) -> str:
    """Percent-encode like ECMAScript's ``encodeURIComponent``."""

    return quote(value, safe="-_.!~*'()")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _json_number(value: float | int) -> float | int:
    # 2500.0 must serialise as 2500, as it would from JavaScript.
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
