"""Minimal async client for OpenAI-compatible chat completion endpoints."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

logger = logging.getLogger("jetrent.llm")

ChatMessage = dict[str, str]


class ChatCompletionsClient:
    """POSTs role/content messages and returns the first choice's text."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gpt-3.5-turbo",
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self._endpoint = f"{base_url.rstrip('/')}/chat/completions"
        self._timeout = timeout
        self._transport = transport

    async def complete(self, messages: Sequence[ChatMessage], *, json_mode: bool = False) -> str:
        """Return the reply text. Transport and HTTP errors propagate as ``httpx.HTTPError``."""

        payload: dict[str, Any] = {"model": self.model, "messages": list(messages)}
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(self._endpoint, headers=headers, json=payload)
            response.raise_for_status()
            data = response.json()

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices or not isinstance(choices, list):
            logger.warning("Chat completion returned no choices")
            return ""
        message = choices[0].get("message", {}) if isinstance(choices[0], dict) else {}
        content = message.get("content") if isinstance(message, dict) else None
        return (content or "").strip()
