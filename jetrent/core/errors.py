"""Exception types and handling utilities."""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("jetrent.errors")


class JetRentError(Exception):
    """Base class for errors raised by the assistant."""


class ExtractionError(JetRentError):
    """The language model call failed or returned something unparsable."""


class ConversationBusyError(JetRentError):
    """A turn is already being processed for this conversation."""

    def __init__(self, conversation_id: str) -> None:
        super().__init__(f"conversation {conversation_id} is busy")
        self.conversation_id = conversation_id


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    """Return a generic JSON error response while logging the exception."""

    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "Something unexpected happened. Please try again later.",
        },
    )


async def busy_conversation_handler(request: Request, exc: ConversationBusyError) -> JSONResponse:
    logger.info("Rejected duplicate submission for %s", exc.conversation_id)
    return JSONResponse(
        status_code=409,
        content={
            "error": "conversation_busy",
            "message": "Still working on your previous message. Please wait a moment.",
        },
    )
