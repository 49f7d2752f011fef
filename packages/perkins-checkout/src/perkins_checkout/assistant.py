"""
Product recommendation assistant.

Conversation state lives in explicit ``AssistantSession`` objects owned by
an ``AssistantSessionRegistry``; a failure resets only the affected
conversation. Nothing here participates in order logic.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from openai import AsyncOpenAI

from perkins_checkout.models import Product
from perkins_checkout.pricing import PricingEngine

logger = logging.getLogger(__name__)

NOT_CONFIGURED_REPLY = "The assistant is under maintenance right now. Please try again later."
ERROR_REPLY = "Sorry, something went wrong on our side. Please ask again."
EMPTY_REPLY = "Sorry, I could not process that request."

SYSTEM_PROMPT_TEMPLATE = """You are a fragrance advisor for an online perfume store.

CATALOG (prices in local currency):
{catalog}

RULES:
1. Answer in at most two short sentences.
2. When recommending a fragrance, write its exact name in square brackets, e.g. [Ajwad].
3. Avoid long lists."""


@dataclass
class ChatMessage:
    role: str  # "user" or "assistant"
    text: str


class AssistantBackend(ABC):
    """Abstract chat completion backend."""

    @abstractmethod
    async def complete(self, system_prompt: str, messages: List[ChatMessage]) -> str:
        pass


class OpenAIAssistantBackend(AssistantBackend):
    """Chat completions through the OpenAI API."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", client: Optional[AsyncOpenAI] = None):
        self.model = model
        self._client = client or AsyncOpenAI(api_key=api_key)

    async def complete(self, system_prompt: str, messages: List[ChatMessage]) -> str:
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=[{"role": "system", "content": system_prompt}]
            + [{"role": m.role, "content": m.text} for m in messages],
            temperature=0.7,
        )
        return response.choices[0].message.content or ""


def build_catalog_context(
    products: Iterable[Product],
    exchange_rate: Decimal,
    pricing: Optional[PricingEngine] = None,
) -> str:
    pricing = pricing or PricingEngine()
    rows = []
    for p in products:
        price = pricing.format_local(p.price, exchange_rate)
        rows.append(f"- {p.name} ({p.gender}): approx {price}. Notes: {', '.join(p.scent_tags)}")
    return "\n".join(rows)


class AssistantSession:
    """One conversation with the assistant."""

    def __init__(self, conversation_id: str, backend: Optional[AssistantBackend]):
        self.conversation_id = conversation_id
        self._backend = backend
        self._system_prompt: Optional[str] = None
        self.messages: List[ChatMessage] = []

    def reset(self) -> None:
        self._system_prompt = None
        self.messages.clear()

    async def query(self, text: str, exchange_rate: Decimal, products: Iterable[Product]) -> str:
        if self._backend is None:
            logger.warning("Assistant backend not configured (missing API key)")
            return NOT_CONFIGURED_REPLY

        if self._system_prompt is None:
            # The catalog is priced once, at the rate in force when the conversation starts.
            self._system_prompt = SYSTEM_PROMPT_TEMPLATE.format(
                catalog=build_catalog_context(products, exchange_rate)
            )

        self.messages.append(ChatMessage("user", text))
        try:
            reply = await self._backend.complete(self._system_prompt, self.messages)
        except Exception as e:
            logger.error(f"Assistant query failed for {self.conversation_id}: {e}")
            self.reset()
            return ERROR_REPLY

        if not reply:
            return EMPTY_REPLY
        self.messages.append(ChatMessage("assistant", reply))
        return reply


class AssistantSessionRegistry:
    """Keeps one ``AssistantSession`` per conversation id."""

    def __init__(self, backend: Optional[AssistantBackend] = None):
        self._backend = backend
        self._sessions: Dict[str, AssistantSession] = {}

    @classmethod
    def from_api_key(cls, api_key: Optional[str], model: str = "gpt-4o-mini") -> "AssistantSessionRegistry":
        backend = OpenAIAssistantBackend(api_key=api_key, model=model) if api_key else None
        return cls(backend)

    def get(self, conversation_id: str) -> AssistantSession:
        session = self._sessions.get(conversation_id)
        if session is None:
            session = AssistantSession(conversation_id, self._backend)
            self._sessions[conversation_id] = session
        return session

    def drop(self, conversation_id: str) -> bool:
        return self._sessions.pop(conversation_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)
