import base64
from unittest.mock import Mock, patch

import pytest
import requests

from postgen.processors.ai import create_image_clients, create_search_client, create_text_client
from postgen.processors.ai.anthropic import AnthropicClient
from postgen.processors.ai.gemini import GeminiImageClient
from postgen.processors.ai.perplexity import PerplexityClient
from postgen.processors.ai.retry import with_retries

AI_ENV = (
    "ANTHROPIC_API_KEY",
    "CLAUDE_API_KEY_1",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "OPENAI_API_KEY",
    "PERPLEXITY_API_KEY",
    "TEXT_BACKEND",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in AI_ENV:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def json_response(payload):
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


class TestFactory:
    def test_default_backend_is_anthropic(self, clean_env):
        clean_env.setenv("ANTHROPIC_API_KEY", "k")

        assert isinstance(create_text_client(), AnthropicClient)

    def test_unknown_backend(self, clean_env):
        with pytest.raises(ValueError):
            create_text_client(backend="gpt2")

    def test_missing_key_raises(self, clean_env):
        with pytest.raises(RuntimeError):
            create_text_client()

    def test_image_clients_follow_available_keys(self, clean_env):
        assert create_image_clients() == []

        clean_env.setenv("GEMINI_API_KEY", "g")
        clean_env.setenv("OPENAI_API_KEY", "o")

        assert [c.name for c in create_image_clients()] == ["gemini-image", "imagen", "openai"]

    def test_search_client_optional(self, clean_env):
        assert create_search_client() is None

        clean_env.setenv("PERPLEXITY_API_KEY", "p")

        assert isinstance(create_search_client(), PerplexityClient)


class TestAnthropicClient:
    @patch("postgen.processors.ai.anthropic.requests.post")
    def test_joins_text_blocks_and_selects_fast_model(self, mock_post, clean_env):
        clean_env.setenv("ANTHROPIC_API_KEY", "k")
        clean_env.setenv("ANTHROPIC_TOPIC_MODEL", "haiku-test")
        mock_post.return_value = json_response(
            {"content": [{"type": "text", "text": "Hallo "}, {"type": "tool_use"}, {"type": "text", "text": "Welt"}]}
        )

        text = AnthropicClient().generate("prompt", fast=True, max_tokens=100)

        assert text == "Hallo Welt"
        payload = mock_post.call_args.kwargs["json"]
        assert payload["model"] == "haiku-test"
        assert payload["max_tokens"] == 100


class TestGeminiImageClient:
    @patch("postgen.processors.ai.gemini.requests.post")
    def test_decodes_inline_image(self, mock_post, clean_env):
        clean_env.setenv("GEMINI_API_KEY", "g")
        data = base64.b64encode(b"IMAGE").decode()
        mock_post.return_value = json_response(
            {"candidates": [{"content": {"parts": [{"text": "ok"}, {"inlineData": {"data": data}}]}}]}
        )

        assert GeminiImageClient().generate("sail") == b"IMAGE"

    @patch("postgen.processors.ai.gemini.requests.post")
    def test_no_image_part_gives_none(self, mock_post, clean_env):
        clean_env.setenv("GEMINI_API_KEY", "g")
        mock_post.return_value = json_response({"candidates": [{"content": {"parts": [{"text": "nope"}]}}]})

        assert GeminiImageClient().generate("sail") is None


class TestPerplexityClient:
    @patch("postgen.processors.ai.perplexity.requests.post")
    def test_returns_text_and_citations(self, mock_post, clean_env):
        clean_env.setenv("PERPLEXITY_API_KEY", "p")
        mock_post.return_value = json_response(
            {"choices": [{"message": {"content": " {\"a\": 1} "}}], "citations": ["https://a.example", ""]}
        )

        response = PerplexityClient().search("frage")

        assert response.text == '{"a": 1}'
        assert response.citations == ["https://a.example"]


class TestWithRetries:
    @patch("postgen.processors.ai.retry.time.sleep")
    def test_retries_transient_errors(self, mock_sleep, monkeypatch):
        monkeypatch.delenv("AI_RETRIES", raising=False)
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise requests.ConnectionError("reset")
            return "ok"

        assert with_retries(flaky, retries=2) == "ok"
        assert mock_sleep.call_count == 2

    def test_other_errors_not_retried(self, monkeypatch):
        monkeypatch.delenv("AI_RETRIES", raising=False)
        calls = []

        def broken():
            calls.append(1)
            raise ValueError("bad")

        with pytest.raises(ValueError):
            with_retries(broken, retries=3)
        assert len(calls) == 1
