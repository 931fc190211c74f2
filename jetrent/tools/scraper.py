"""Remote listing search through the property scrape API."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Union

import httpx
from pydantic import BaseModel, Field

from jetrent.memory.models import ListingResult, SearchSlots, coerce_int, coerce_text
from jetrent.tools.base import Tool, ToolContext, ToolResponse

ZILLOW_BASE_URL = "https://www.zillow.com"
WRAPPER_KEYS = ("data", "properties", "results")
DEFAULT_MAX_PRICE = 10000

_PRICE_PATTERN = re.compile(r"\d[\d,]*(?:\.\d+)?")


class ScraperParams(BaseModel):
    """Request body accepted by the scrape API."""

    isApartment: bool = True
    isCondo: bool = False
    isLotLand: bool = False
    isManufactured: bool = False
    isMultiFamily: bool = False
    isSingleFamily: bool = False
    isTownhouse: bool = False
    maxPrice: int | float = Field(default=DEFAULT_MAX_PRICE, ge=0)
    search: str
    status: str = "isForRent"


@dataclass(frozen=True, slots=True)
class BareList:
    items: list[Any]


@dataclass(frozen=True, slots=True)
class Wrapped:
    key: str
    items: list[Any]


@dataclass(frozen=True, slots=True)
class Unrecognized:
    reason: str


ScrapePayload = Union[BareList, Wrapped, Unrecognized]


def build_scraper_params(slots: SearchSlots) -> ScraperParams:
    """Translate search slots into the scrape API's filter flags.

    The search term is the location alone; the scrape API resolves the state itself.
    """

    # Zero or missing budget falls back to the default ceiling.
    max_price = slots.budget if slots.budget else DEFAULT_MAX_PRICE
    return ScraperParams(maxPrice=max_price, search=slots.location or "")


def classify_payload(payload: Any) -> ScrapePayload:
    """Resolve the response body into one of the supported wrapper shapes."""

    if isinstance(payload, list):
        return BareList(items=payload)
    if isinstance(payload, dict):
        for key in WRAPPER_KEYS:
            value = payload.get(key)
            if isinstance(value, list):
                return Wrapped(key=key, items=value)
        return Unrecognized(reason="response does not contain a listings array")
    return Unrecognized(reason=f"unexpected {type(payload).__name__} response")


def normalise_property(raw: dict[str, Any], index: int) -> ListingResult:
    """Map a scraped property record onto a ``ListingResult``."""

    listing_id = coerce_text(raw.get("plid")) or coerce_text(raw.get("zpid")) or f"remote-{index}"
    address = coerce_text(raw.get("address")) or "Address unavailable"
    price_text = coerce_text(raw.get("price")) or ""
    variable = raw.get("variableData") if isinstance(raw.get("variableData"), dict) else {}

    return ListingResult(
        id=listing_id,
        title=coerce_text(raw.get("buildingName")) or address,
        address=address,
        bedrooms=coerce_int(raw.get("minBeds")),
        rent=parse_price(price_text),
        price_text=price_text,
        description=coerce_text(variable.get("text")) or coerce_text(raw.get("statusText")) or "",
        external_url=listing_url(raw),
        image_url=coerce_text(raw.get("imgSrc")),
        source="remote",
    )


def parse_price(text: str) -> float | None:
    match = _PRICE_PATTERN.search(text or "")
    if not match:
        return None
    value = float(match.group(0).replace(",", ""))
    return int(value) if value.is_integer() else value


def listing_url(raw: dict[str, Any]) -> str | None:
    detail = coerce_text(raw.get("detailUrl"))
    if detail:
        if detail.startswith(("http://", "https://")):
            return detail
        return f"{ZILLOW_BASE_URL}{detail if detail.startswith('/') else '/' + detail}"
    zpid = coerce_text(raw.get("zpid"))
    if zpid:
        return f"{ZILLOW_BASE_URL}/homedetails/{zpid}_zpid/"
    return None


class ListingsScraperTool(Tool):
    """Fetch rental listings from the external scrape API (one request, no retry)."""

    name = "remote_listings"

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self._timeout = timeout
        self._transport = transport
        self._logger = logging.getLogger("jetrent.tools.scraper")

    async def run(self, context: ToolContext) -> ToolResponse:
        slots = context.slots
        if not slots.location:
            return _failure("A location is required to search.")

        params = build_scraper_params(slots)

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=params.model_dump())
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            self._logger.warning("Scrape API returned %s", exc.response.status_code)
            return _failure(f"The listings service returned an error (status {exc.response.status_code}).")
        except httpx.HTTPError as exc:
            self._logger.warning("Scrape API unreachable: %s", exc)
            return _failure("The listings service is unreachable right now.")
        except ValueError:
            self._logger.warning("Scrape API returned a non-JSON body")
            return _failure("Received invalid data format from the listings service.")

        shape = classify_payload(payload)
        if isinstance(shape, Unrecognized):
            self._logger.error("Unrecognised scrape API payload: %s", shape.reason)
            return _failure("Received invalid data format from the listings service.", reason=shape.reason)

        listings = [
            normalise_property(item, index)
            for index, item in enumerate(shape.items)
            if isinstance(item, dict)
        ]
        self._logger.info("Fetched %d properties for %s", len(listings), params.search)
        return ToolResponse(
            content=f"{len(listings)} listing(s) from the scrape API",
            listings=listings,
            data={"shape": type(shape).__name__, "key": getattr(shape, "key", None), "request": params.model_dump()},
        )


def _failure(message: str, **data: Any) -> ToolResponse:
    return ToolResponse(content=message, data=data, success=False, error=message)
