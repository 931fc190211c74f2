"""Static listing lookup over a fixed in-memory table."""

from __future__ import annotations

from jetrent.memory.models import ListingResult, SearchSlots
from jetrent.tools.base import Tool, ToolContext, ToolResponse


def _listing(
    id: str, title: str, address: str, bedrooms: int, rent: int, description: str, image_text: str
) -> ListingResult:
    return ListingResult(
        id=id,
        title=title,
        address=address,
        bedrooms=bedrooms,
        rent=rent,
        price_text=f"${rent:,}/month",
        description=description,
        image_url=f"https://placehold.co/600x400/png?text={image_text}",
        source="static",
    )


STATIC_LISTINGS: dict[str, tuple[ListingResult, ...]] = {
    "new york": (
        _listing("ny-1", "Modern Studio in Manhattan", "Manhattan, New York", 0, 2200,
                 "Cozy studio apartment in the heart of Manhattan with great views.", "Manhattan+Studio"),
        _listing("ny-2", "Spacious 1BR in Brooklyn", "Brooklyn, New York", 1, 2800,
                 "Renovated 1-bedroom apartment with hardwood floors in trendy Brooklyn neighborhood.", "Brooklyn+1BR"),
        _listing("ny-3", "Luxury 2BR in Upper East Side", "Upper East Side, New York", 2, 3500,
                 "Upscale 2-bedroom apartment with doorman and fitness center.", "Upper+East+Side+2BR"),
    ),
    "los angeles": (
        _listing("la-1", "Beachside Studio in Santa Monica", "Santa Monica, Los Angeles", 0, 1900,
                 "Bright studio just steps from the beach with ocean views.", "Santa+Monica+Studio"),
        _listing("la-2", "Modern 1BR in Downtown LA", "Downtown, Los Angeles", 1, 2300,
                 "Contemporary 1-bedroom loft in revitalized downtown area.", "Downtown+LA+1BR"),
        _listing("la-3", "Spacious 2BR in Hollywood Hills", "Hollywood Hills, Los Angeles", 2, 3200,
                 "Luxurious 2-bedroom home with amazing city views and pool access.", "Hollywood+Hills+2BR"),
    ),
    "chicago": (
        _listing("chi-1", "Loop Studio Apartment", "The Loop, Chicago", 0, 1600,
                 "Efficient studio in Chicago's business district with great amenities.", "Chicago+Loop+Studio"),
        _listing("chi-2", "1BR in Lincoln Park", "Lincoln Park, Chicago", 1, 1900,
                 "Charming 1-bedroom apartment in a historic building near the park.", "Lincoln+Park+1BR"),
        _listing("chi-3", "Luxury 2BR in River North", "River North, Chicago", 2, 2700,
                 "Upscale 2-bedroom apartment with city views and rooftop deck.", "River+North+2BR"),
    ),
    "boston": (
        _listing("bos-1", "Back Bay Studio", "Back Bay, Boston", 0, 1800,
                 "Cozy studio in historic brownstone building.", "Back+Bay+Studio"),
        _listing("bos-2", "1BR in Beacon Hill", "Beacon Hill, Boston", 1, 2400,
                 "Classic 1-bedroom apartment on gas-lit street.", "Beacon+Hill+1BR"),
        _listing("bos-3", "Modern 2BR in Seaport", "Seaport District, Boston", 2, 3100,
                 "New construction with 2 bedrooms and harbor views.", "Seaport+2BR"),
    ),
}


class StaticListingsTool(Tool):
    """Look up apartments in a fixed table, falling back leniently on unknown locations."""

    name = "static_listings"

    def __init__(self, table: dict[str, tuple[ListingResult, ...]] | None = None) -> None:
        self._table = table if table is not None else STATIC_LISTINGS

    async def run(self, context: ToolContext) -> ToolResponse:
        listings, bucket = self.search(context.slots)
        return ToolResponse(
            content=f"{len(listings)} listing(s) from the {bucket} table" if bucket else "No location given.",
            listings=listings,
            data={"bucket": bucket},
            success=bucket is not None,
            error=None if bucket is not None else "A location is required to search.",
        )

    def search(self, slots: SearchSlots) -> tuple[list[ListingResult], str | None]:
        """Return matching listings and the table key that served them."""

        if not slots.location or not self._table:
            return [], None

        bucket = self._resolve_bucket(slots.location)
        listings = list(self._table[bucket])

        if slots.bedrooms is not None:
            listings = [item for item in listings if item.bedrooms == slots.bedrooms]
        if slots.budget is not None:
            listings = [item for item in listings if item.rent is not None and item.rent <= slots.budget]

        return listings, bucket

    def _resolve_bucket(self, location: str) -> str:
        key = location.strip().lower()
        if key in self._table:
            return key
        for candidate in self._table:
            if candidate in key or key in candidate:
                return candidate
        # Unknown locations are served from the first bucket rather than reported empty.
        return next(iter(self._table))
