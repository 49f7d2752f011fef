"""Tests for the per-conversation assistant sessions."""
from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest

from checkout_factories import make_product
from perkins_checkout.assistant import (
    EMPTY_REPLY,
    ERROR_REPLY,
    NOT_CONFIGURED_REPLY,
    AssistantBackend,
    AssistantSessionRegistry,
    ChatMessage,
    OpenAIAssistantBackend,
    build_catalog_context,
)
from perkins_checkout.cart import CartStore


def _backend(**kwargs) -> Mock:
    backend = Mock(spec=AssistantBackend)
    backend.complete = AsyncMock(**kwargs)
    return backend


class TestCatalogContext:
    def test_quotes_the_price_checkout_charges(self):
        product = make_product()
        context = build_catalog_context([product], Decimal("1200"))
        cart = CartStore()
        cart.add(product)
        assert cart.total(Decimal("1200")) == Decimal("21600")
        assert "Ajwad (Unisex): approx $ 21.600" in context
        assert "amber, vanilla" in context


class TestAssistantSession:
    """Tests for AssistantSession.query."""

    @pytest.mark.asyncio
    async def test_missing_backend_returns_maintenance_text(self):
        session = AssistantSessionRegistry(backend=None).get("conv-1")
        reply = await session.query("hola", Decimal("1200"), [make_product()])
        assert reply == NOT_CONFIGURED_REPLY
        assert session.messages == []

    @pytest.mark.asyncio
    async def test_keeps_conversation_history(self):
        backend = _backend(side_effect=["Try [Ajwad].", "It is sweet."])
        session = AssistantSessionRegistry(backend).get("conv-1")

        await session.query("something sweet?", Decimal("1200"), [make_product()])
        reply = await session.query("how sweet?", Decimal("1200"), [make_product()])

        assert reply == "It is sweet."
        assert [m.role for m in session.messages] == ["user", "assistant", "user", "assistant"]
        system_prompt = backend.complete.await_args.args[0]
        assert "$ 21.600" in system_prompt

    @pytest.mark.asyncio
    async def test_error_resets_only_that_conversation(self):
        backend = _backend(side_effect=["Hello!", "Hi!", RuntimeError("rate limited")])
        registry = AssistantSessionRegistry(backend)
        first = registry.get("conv-1")
        second = registry.get("conv-2")

        await first.query("hi", Decimal("1200"), [])
        await second.query("hi", Decimal("1200"), [])
        reply = await first.query("again", Decimal("1200"), [])

        assert reply == ERROR_REPLY
        assert first.messages == []
        assert len(second.messages) == 2

    @pytest.mark.asyncio
    async def test_empty_reply(self):
        session = AssistantSessionRegistry(_backend(return_value="")).get("conv-1")
        assert await session.query("?", Decimal("1200"), []) == EMPTY_REPLY


class TestAssistantSessionRegistry:
    def test_one_session_per_conversation(self):
        registry = AssistantSessionRegistry()
        assert registry.get("a") is registry.get("a")
        assert registry.get("a") is not registry.get("b")
        assert len(registry) == 2
        assert registry.drop("a")
        assert not registry.drop("a")

    def test_from_api_key_without_key(self):
        registry = AssistantSessionRegistry.from_api_key(None)
        assert registry.get("a")._backend is None


class TestOpenAIAssistantBackend:
    @pytest.mark.asyncio
    async def test_sends_system_prompt_and_history(self):
        client = Mock()
        client.chat.completions.create = AsyncMock(
            return_value=SimpleNamespace(
                choices=[SimpleNamespace(message=SimpleNamespace(content="Try [Ajwad]."))]
            )
        )
        backend = OpenAIAssistantBackend(api_key="sk-test", model="gpt-4o-mini", client=client)

        reply = await backend.complete("system", [ChatMessage("user", "hola")])

        assert reply == "Try [Ajwad]."
        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "hola"},
        ]
