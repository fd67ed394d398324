"""Tests for LLMProvider."""

from unittest.mock import AsyncMock, Mock, patch

import anthropic
import httpx
import pytest

from agent_core.llm import LLMProvider, create_llm_provider

CLIENT_PATH = "agent_core.llm.llm_provider.anthropic.AsyncAnthropic"


def _client(text: str = "HALAL") -> Mock:
    client = Mock()
    response = Mock()
    response.content = [Mock(text=text)]
    client.messages.create = AsyncMock(return_value=response)
    return client


class TestLLMProviderInit:
    """Tests for LLMProvider initialization."""

    def test_init_without_api_key(self, monkeypatch):
        """Test that a missing key is rejected."""
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        with patch(CLIENT_PATH):
            with pytest.raises(ValueError):
                LLMProvider()

    def test_model_from_env(self, monkeypatch):
        """Test that LLM_MODEL overrides the default model."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")
        monkeypatch.setenv("LLM_MODEL", "claude-test")

        with patch(CLIENT_PATH) as client_cls:
            provider = LLMProvider()

        assert provider.model == "claude-test"
        client_cls.assert_called_once_with(api_key="test_key")

    def test_create_llm_provider_optional(self, monkeypatch):
        """Test that no provider is built without a key."""
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        assert create_llm_provider() is None

        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")
        with patch(CLIENT_PATH):
            assert isinstance(create_llm_provider(), LLMProvider)


class TestLLMProviderComplete:
    """Tests for LLMProvider.complete()."""

    @pytest.mark.asyncio
    async def test_complete_sends_system_prompt(self, monkeypatch):
        """Test the request sent to the API."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")
        monkeypatch.delenv("LLM_MODEL", raising=False)
        client = _client("MASHBOOH\nSource unknown.")

        with patch(CLIENT_PATH, return_value=client):
            provider = LLMProvider()
            response = await provider.complete(
                messages=[{"role": "user", "content": "Ingredient: gelatin"}],
                system="Classify ingredients",
                max_tokens=200,
            )

        assert response == "MASHBOOH\nSource unknown."
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-3-5-sonnet-20241022"
        assert kwargs["max_tokens"] == 200
        assert kwargs["system"] == "Classify ingredients"

    @pytest.mark.asyncio
    async def test_complete_omits_empty_system(self, monkeypatch):
        """Test that no system prompt is sent when none is given."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")
        client = _client()

        with patch(CLIENT_PATH, return_value=client):
            await LLMProvider().complete(messages=[{"role": "user", "content": "Hi"}])

        kwargs = client.messages.create.call_args.kwargs
        assert "system" not in kwargs
        assert kwargs["max_tokens"] == 1024

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self, monkeypatch):
        """Test that SDK errors surface as RuntimeError."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")
        client = Mock()
        client.messages.create = AsyncMock(
            side_effect=anthropic.APIError(
                "overloaded",
                httpx.Request("POST", "https://api.anthropic.com/v1/messages"),
                body=None,
            )
        )

        with patch(CLIENT_PATH, return_value=client):
            provider = LLMProvider()
            with pytest.raises(RuntimeError, match="LLM API error"):
                await provider.complete(messages=[{"role": "user", "content": "Hi"}])
