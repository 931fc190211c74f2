import asyncio

from jetrent.memory.models import SearchSlots
from jetrent.tools.base import Tool, ToolResponse
from jetrent.tools.listings import StaticListingsTool
from jetrent.tools.router import SearchDispatcher


def test_filters_by_bedrooms_and_budget():
    listings, bucket = StaticListingsTool().search(
        SearchSlots(location="New York", state="NY", bedrooms=1, budget=3000)
    )

    assert bucket == "new york"
    assert [listing.id for listing in listings] == ["ny-2"]


def test_budget_is_inclusive():
    listings, _ = StaticListingsTool().search(SearchSlots(location="Chicago", bedrooms=1, budget=1900))

    assert [listing.id for listing in listings] == ["chi-2"]


def test_substring_location_match():
    listings, bucket = StaticListingsTool().search(SearchSlots(location="Greater Boston Area"))

    assert bucket == "boston"
    assert len(listings) == 3


def test_unknown_location_falls_back_to_first_bucket():
    listings, bucket = StaticListingsTool().search(SearchSlots(location="nowhere-real-place"))

    assert bucket == "new york"
    assert [listing.id for listing in listings] == ["ny-1", "ny-2", "ny-3"]


def test_studio_filter_keeps_zero_bedrooms():
    listings, _ = StaticListingsTool().search(SearchSlots(location="Los Angeles", bedrooms=0))

    assert [listing.id for listing in listings] == ["la-1"]


def test_budget_too_low_returns_nothing():
    listings, bucket = StaticListingsTool().search(SearchSlots(location="Boston", bedrooms=2, budget=1000))

    assert bucket == "boston"
    assert listings == []


def test_dispatch_static_search():
    dispatcher = SearchDispatcher({"static": StaticListingsTool()})

    result = asyncio.run(dispatcher.dispatch(SearchSlots(location="Chicago", bedrooms=2, budget=3000)))

    assert result.ok
    assert result.source == "static"
    assert [listing.id for listing in result.listings] == ["chi-3"]


def test_dispatch_without_location_reports_error():
    dispatcher = SearchDispatcher({"static": StaticListingsTool()})

    result = asyncio.run(dispatcher.dispatch(SearchSlots(bedrooms=1)))

    assert not result.ok
    assert result.listings == ()
    assert result.error == "A location is required to search."


def test_dispatch_unknown_source_reports_error():
    dispatcher = SearchDispatcher({"static": StaticListingsTool()})

    result = asyncio.run(dispatcher.dispatch(SearchSlots(location="Boston"), source="mls"))

    assert result.error == "Unknown search source 'mls'."


class ExplodingTool(Tool):
    name = "exploding"

    async def run(self, context):
        raise RuntimeError("tool unavailable")


class FailingTool(Tool):
    name = "failing"

    async def run(self, context):
        return ToolResponse(content="down", success=False, error="The listings service is unreachable right now.")


def test_dispatch_folds_exceptions_into_error():
    dispatcher = SearchDispatcher({"static": ExplodingTool()})

    result = asyncio.run(dispatcher.dispatch(SearchSlots(location="Boston")))

    assert result.listings == ()
    assert result.error == "Search failed: tool unavailable"


def test_dispatch_passes_tool_failure_through():
    dispatcher = SearchDispatcher({"static": StaticListingsTool(), "remote": FailingTool()}, default_source="remote")

    result = asyncio.run(dispatcher.dispatch(SearchSlots(location="Boston")))

    assert result.source == "remote"
    assert result.error == "The listings service is unreachable right now."
    assert dispatcher.sources == ["static", "remote"]


def test_dispatcher_describes_each_source():
    dispatcher = SearchDispatcher({"static": StaticListingsTool(), "remote": FailingTool()})

    assert dispatcher.describe() == {
        "static": StaticListingsTool.__doc__,
        "remote": "failing",
    }


def test_static_listing_images_use_short_captions():
    listings, _ = StaticListingsTool().search(SearchSlots(location="New York"))

    assert listings[0].image_url == "https://placehold.co/600x400/png?text=Manhattan+Studio"
    assert listings[1].image_url == "https://placehold.co/600x400/png?text=Brooklyn+1BR"
