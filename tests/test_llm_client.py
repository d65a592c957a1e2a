"""Tests for the single-provider LLM client."""

import json
from unittest.mock import MagicMock, patch

import pytest

from daynotes.config import Settings
from daynotes.suggestions.llm_client import LLMClient


def _make_settings(**overrides):
    values = {
        "suggestion_provider": "anthropic",
        "anthropic_api_key": "test-key",
        "openai_api_key": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _make_anthropic_response(text="response"):
    mock_response = MagicMock()
    mock_response.content = [MagicMock(text=text)]
    return mock_response


def _make_openai_response(content="response"):
    mock_response = MagicMock()
    mock_response.choices = [MagicMock(message=MagicMock(content=content))]
    return mock_response


class TestLLMClientAnthropicProvider:
    @patch("daynotes.suggestions.llm_client.Anthropic")
    def test_anthropic_success(self, mock_anthropic_cls):
        mock_client = MagicMock()
        mock_anthropic_cls.return_value = mock_client
        mock_client.messages.create.return_value = _make_anthropic_response("Anthropic response")

        client = LLMClient(_make_settings())
        result = client.chat("system prompt", "user prompt")

        assert result == "Anthropic response"
        mock_anthropic_cls.assert_called_once_with(api_key="test-key")
        kwargs = mock_client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-haiku-4-5"
        assert kwargs["system"] == "system prompt"
        assert kwargs["messages"] == [{"role": "user", "content": "user prompt"}]

    @patch("daynotes.suggestions.llm_client.Anthropic")
    @patch("daynotes.suggestions.llm_client.OpenAI")
    def test_failure_is_not_retried_elsewhere(self, mock_openai_cls, mock_anthropic_cls):
        mock_anthropic = MagicMock()
        mock_anthropic_cls.return_value = mock_anthropic
        mock_anthropic.messages.create.side_effect = Exception("Anthropic error")

        client = LLMClient(_make_settings())

        with pytest.raises(Exception, match="Anthropic error"):
            client.chat("system prompt", "user prompt")
        mock_anthropic.messages.create.assert_called_once()
        mock_openai_cls.assert_not_called()

    def test_missing_key_raises(self):
        client = LLMClient(_make_settings(anthropic_api_key=None))

        with pytest.raises(RuntimeError, match="Anthropic API key not configured"):
            client.chat("system prompt", "user prompt")

    def test_model_name(self):
        client = LLMClient(_make_settings(suggestion_model="claude-sonnet-4-5"))
        assert client.model_name == "claude-sonnet-4-5"


class TestLLMClientOpenAIProviders:
    @patch("daynotes.suggestions.llm_client.OpenAI")
    def test_openai_success(self, mock_openai_cls):
        mock_client = MagicMock()
        mock_openai_cls.return_value = mock_client
        mock_client.chat.completions.create.return_value = _make_openai_response("OpenAI says")

        client = LLMClient(_make_settings(suggestion_provider="openai", openai_api_key="sk-x"))
        result = client.chat("system prompt", "user prompt")

        assert result == "OpenAI says"
        mock_openai_cls.assert_called_once_with(api_key="sk-x")
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"][0] == {"role": "system", "content": "system prompt"}

    def test_openai_missing_key_raises(self):
        client = LLMClient(_make_settings(suggestion_provider="openai"))

        with pytest.raises(RuntimeError, match="OpenAI API key not configured"):
            client.chat("system prompt", "user prompt")

    @patch("daynotes.suggestions.llm_client.OpenAI")
    def test_ollama_uses_local_base_url(self, mock_openai_cls):
        mock_client = MagicMock()
        mock_openai_cls.return_value = mock_client
        mock_client.chat.completions.create.return_value = _make_openai_response("local")

        client = LLMClient(_make_settings(suggestion_provider="ollama", anthropic_api_key=None))
        result = client.chat("system prompt", "user prompt")

        assert result == "local"
        mock_openai_cls.assert_called_once_with(
            base_url="http://127.0.0.1:11434/v1", api_key="ollama"
        )
        assert client.model_name == "gpt-oss:20b"

    @patch("daynotes.suggestions.llm_client.OpenAI")
    def test_empty_content_becomes_empty_string(self, mock_openai_cls):
        mock_client = MagicMock()
        mock_openai_cls.return_value = mock_client
        mock_client.chat.completions.create.return_value = _make_openai_response(None)

        client = LLMClient(_make_settings(suggestion_provider="openai", openai_api_key="sk-x"))

        assert client.chat("s", "u") == ""


class TestChatJson:
    def _client_returning(self, raw: str) -> LLMClient:
        client = LLMClient(_make_settings())
        client.chat = MagicMock(return_value=raw)  # type: ignore[method-assign]
        return client

    def test_plain_json(self):
        client = self._client_returning('{"ideas": ["a", "b"]}')
        assert client.chat_json("s", "u") == {"ideas": ["a", "b"]}

    def test_strips_json_fence(self):
        client = self._client_returning('```json\n{"ideas": ["a"]}\n```')
        assert client.chat_json("s", "u") == {"ideas": ["a"]}

    def test_strips_bare_fence(self):
        client = self._client_returning('```\n{"ideas": []}\n```\n')
        assert client.chat_json("s", "u") == {"ideas": []}

    def test_invalid_json_raises(self):
        client = self._client_returning("Here are some ideas: pizza, tacos")
        with pytest.raises(json.JSONDecodeError):
            client.chat_json("s", "u")
