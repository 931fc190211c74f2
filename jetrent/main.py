"""FastAPI application entry point for the JetRent apartment-search assistant."""

import logging
import sqlite3
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from jetrent.api.bookmarks import create_bookmarks_router
from jetrent.api.tools import create_tools_router
from jetrent.core.config import get_settings
from jetrent.core.errors import ConversationBusyError, busy_conversation_handler, unhandled_exception_handler
from jetrent.core.logging import configure_logging, request_id_middleware
from jetrent.core.metrics import MetricsCollector
from jetrent.llm.client import ChatCompletionsClient
from jetrent.llm.extractor import KeywordExtractor, OpenAIExtractor, ParameterExtractor
from jetrent.llm.responder import ResponseGenerator
from jetrent.memory.bookmarks import BookmarkStore
from jetrent.memory.store import SQLiteStateStore
from jetrent.pipeline import ConversationService
from jetrent.planner.policy import RuleBasedPolicy
from jetrent.tools.listings import StaticListingsTool
from jetrent.tools.router import SearchDispatcher
from jetrent.tools.scraper import ListingsScraperTool

settings = get_settings()
logger = logging.getLogger("jetrent.app")

state_store = SQLiteStateStore(settings.sqlite_path)
bookmark_store = BookmarkStore(settings.sqlite_path)
metrics = MetricsCollector()

dispatcher = SearchDispatcher(
    {
        "static": StaticListingsTool(),
        "remote": ListingsScraperTool(settings.scraper_url, timeout=settings.scraper_timeout_seconds),
    },
    default_source=settings.search_backend,
)

extractor: ParameterExtractor
responder: ResponseGenerator | None = None
if settings.openai_enabled:
    llm_client = ChatCompletionsClient(
        settings.openai_api_key or "",
        model=settings.openai_model,
        base_url=settings.openai_base_url,
        timeout=settings.llm_timeout_seconds,
    )
    extractor = OpenAIExtractor(llm_client)
    if settings.llm_responses_enabled:
        responder = ResponseGenerator(llm_client)
else:
    extractor = KeywordExtractor()

policy = RuleBasedPolicy()

conversation_service = ConversationService(
    state_store,
    extractor,
    dispatcher,
    policy=policy,
    responder=responder,
    metrics=metrics,
)

app = FastAPI(title=settings.app_name, version="0.1.0", docs_url="/docs")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(request_id_middleware)

app.include_router(create_tools_router(dispatcher))
app.include_router(create_bookmarks_router(bookmark_store))


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Return basic service status for monitoring."""

    return {"status": "ok"}


@app.get("/ready", tags=["health"])
async def readiness_probe() -> dict[str, Any]:
    """Readiness endpoint that verifies the SQLite database is reachable."""

    db_ok = False
    db_error: str | None = None
    try:
        with sqlite3.connect(settings.sqlite_path) as conn:
            row = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name IN ('turns','slots','bookmarks')"
            ).fetchone()
            db_ok = row is not None
    except Exception as exc:  # noqa: BLE001
        db_error = str(exc)

    return {
        "status": "ok" if db_ok else "fail",
        "environment": settings.environment,
        "components": {
            "database": {
                "path": str(settings.sqlite_path),
                "ok": db_ok,
                **({"error": db_error} if db_error else {}),
            },
            "extractor": {"strategy": type(extractor).__name__, "description": extractor.describe()},
            "policy": {"description": policy.describe()},
            "search": {"default_source": dispatcher.default_source, "sources": dispatcher.describe()},
        },
    }


def get_conversation_service() -> ConversationService:
    """Dependency injector for the conversation service."""

    return conversation_service


@app.get("/conversations", tags=["conversations"])
async def list_conversations(service: ConversationService = Depends(get_conversation_service)) -> list[str]:
    """List known conversation identifiers (development helper)."""

    return list(service.store.iter_conversations())


@app.get("/conversations/{conversation_id}", tags=["conversations"])
async def get_conversation(
    conversation_id: str,
    service: ConversationService = Depends(get_conversation_service),
) -> dict[str, Any]:
    """Return the conversation log, slots and dialogue flags."""

    return service.snapshot(conversation_id).to_dict()


@app.delete("/conversations/{conversation_id}", tags=["conversations"])
async def reset_conversation(
    conversation_id: str,
    service: ConversationService = Depends(get_conversation_service),
) -> dict[str, str]:
    """Clear the conversation log and accumulated search slots."""

    service.reset(conversation_id)
    return {"conversation_id": conversation_id, "status": "reset"}


@app.post("/chat", tags=["chat"])
async def chat(message: dict, service: ConversationService = Depends(get_conversation_service)) -> dict:
    """Primary chat endpoint running one dialogue turn."""

    conversation_id = message.get("conversation_id")
    content = message.get("content")

    if not conversation_id or not isinstance(content, str) or not content.strip():
        raise HTTPException(status_code=400, detail="conversation_id and content are required")

    result = await service.handle_message(str(conversation_id), content.strip())
    return result.to_dict()


@app.on_event("startup")
async def startup_logging() -> None:
    level = configure_logging(settings.log_level)
    logger.info(
        "Logging configured at %s level for %s environment (extractor=%s, search=%s)",
        logging.getLevelName(level),
        settings.environment,
        type(extractor).__name__,
        dispatcher.default_source,
    )


app.add_exception_handler(ConversationBusyError, busy_conversation_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.get("/metrics", tags=["metrics"])
async def metrics_endpoint() -> dict:
    snapshot = metrics.snapshot()
    return {
        "total_turns": snapshot.total_turns,
        "dialogue_states": snapshot.dialogue_states,
        "intents": snapshot.intents,
        "searches": snapshot.searches,
        "search_failures": snapshot.search_failures,
    }
