"""Free-text assistant replies generated by the language model."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from jetrent.memory.models import ConversationTurn, Role

from .client import ChatCompletionsClient, ChatMessage

logger = logging.getLogger("jetrent.llm.responder")

APOLOGY = "I'm sorry, I couldn't generate a response."

ASSISTANT_PROMPT = """You are JetRent, a helpful apartment-finding assistant.

You need four pieces of information to run a search: the location, the state,
the number of bedrooms (or a studio) and the maximum monthly rent.

- If the user just greets you, greet them back and ask what kind of apartment
  they are looking for. Do not assume any preferences.
- When information is missing, ask for it in a friendly, conversational way.
- When you are given search results, present them clearly.

Be warm and concise. An occasional emoji is welcome. 🏙️ 🔑"""


class ResponseGenerator:
    """Phrases assistant replies from conversation history plus a guidance note."""

    def __init__(self, client: ChatCompletionsClient) -> None:
        self._client = client

    async def generate(self, history: Iterable[ConversationTurn], guidance: str) -> str:
        """Return reply text, or the apology string when the model says nothing.

        Transport errors propagate; callers decide whether to fall back.
        """

        messages = build_messages(history, guidance)
        content = await self._client.complete(messages)
        if not content:
            logger.warning("Response generation returned empty content")
            return APOLOGY
        return content


def build_messages(history: Iterable[ConversationTurn], guidance: str) -> Sequence[ChatMessage]:
    messages: list[ChatMessage] = [{"role": "system", "content": ASSISTANT_PROMPT}]
    for turn in history:
        role = "user" if turn.role is Role.USER else "assistant"
        messages.append({"role": role, "content": turn.text})
    messages.append({"role": "system", "content": guidance})
    return messages
