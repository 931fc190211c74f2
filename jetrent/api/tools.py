"""API routes for direct search and deep-link access."""

from __future__ import annotations

import math

from fastapi import APIRouter, HTTPException

from jetrent.memory.models import SearchSlots
from jetrent.tools.router import SearchDispatcher
from jetrent.tools.zillow_url import generate_zillow_url


def create_tools_router(dispatcher: SearchDispatcher) -> APIRouter:
    router = APIRouter(prefix="/tools", tags=["tools"])

    @router.get("/listings")
    async def listings_endpoint(
        location: str | None = None,
        state: str | None = None,
        zipcode: str | None = None,
        bedrooms: int | None = None,
        budget: float | None = None,
        source: str | None = None,
    ) -> dict:
        if not location:
            raise HTTPException(status_code=400, detail="location parameter is required")
        if source and not dispatcher.supports(source):
            raise HTTPException(
                status_code=400,
                detail=f"unknown source '{source}'; expected one of {', '.join(dispatcher.sources)}",
            )

        slots = SearchSlots(
            location=location,
            state=state,
            zipcode=zipcode,
            bedrooms=bedrooms,
            budget=_whole(budget),
        )
        result = await dispatcher.dispatch(slots, source=source)
        return result.to_dict() | {
            "search_url": generate_zillow_url(location, state, zipcode, bedrooms, slots.budget),
        }

    @router.get("/zillow-url")
    async def zillow_url_endpoint(
        location: str | None = None,
        state: str | None = None,
        zipcode: str | None = None,
        bedrooms: int | None = None,
        budget: float | None = None,
    ) -> dict:
        if not location:
            raise HTTPException(status_code=400, detail="location parameter is required")
        return {"url": generate_zillow_url(location, state, zipcode, bedrooms, _whole(budget))}

    return router


def _whole(value: float | None) -> float | int | None:
    if value is None:
        return None
    if not math.isfinite(value):
        raise HTTPException(status_code=400, detail="budget must be a finite number")
    if float(value).is_integer():
        return int(value)
    return value
