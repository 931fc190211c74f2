"""Tool package exports."""

from .base import DispatchResult, Tool, ToolContext, ToolResponse
from .listings import StaticListingsTool
from .router import SearchDispatcher
from .scraper import ListingsScraperTool
from .zillow_url import generate_zillow_url

__all__ = [
    "DispatchResult",
    "Tool",
    "ToolContext",
    "ToolResponse",
    "StaticListingsTool",
    "ListingsScraperTool",
    "SearchDispatcher",
    "generate_zillow_url",
]
