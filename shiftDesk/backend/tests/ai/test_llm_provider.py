"""
Tests for the Anthropic provider. httpx is mocked, nothing leaves the process.
"""
import httpx
import pytest
from unittest.mock import patch

from app.core.config import settings
from app.services.ai.llm_provider import AnthropicProvider, LLMFailure, get_llm_provider, is_configured
from app.services.errors import NotConfiguredError

REQUEST = httpx.Request("POST", AnthropicProvider.BASE_URL)


def api_response(status_code=200, **kwargs):
    return httpx.Response(status_code, request=REQUEST, **kwargs)


@pytest.fixture
def provider():
    return AnthropicProvider(model_name="claude-test", api_key="sk-test", timeout=5.0)


class TestAnthropicProvider:

    @patch("app.services.ai.llm_provider.httpx.post")
    def test_success(self, mock_post, provider):
        mock_post.return_value = api_response(json={
            "model": "claude-test-20250101",
            "stop_reason": "end_turn",
            "content": [{"type": "text", "text": '{"shifts": '}, {"type": "text", "text": "[]}"}],
        })

        result = provider.generate("system", "user", 1000)

        assert result.success is True
        assert result.raw_text == '{"shifts": []}'
        assert result.model_used == "claude-test-20250101"

        kwargs = mock_post.call_args.kwargs
        assert kwargs["headers"]["x-api-key"] == "sk-test"
        assert kwargs["headers"]["anthropic-version"] == "2023-06-01"
        assert kwargs["json"]["system"] == "system"
        assert kwargs["json"]["messages"] == [{"role": "user", "content": "user"}]
        assert kwargs["json"]["max_tokens"] == 1000
        assert kwargs["timeout"] == 5.0

    @patch("app.services.ai.llm_provider.httpx.post")
    def test_rate_limited(self, mock_post, provider):
        mock_post.return_value = api_response(429, text="slow down")
        result = provider.generate("system", "user", 1000)

        assert result.success is False
        assert result.failure_reason == LLMFailure.RATE_LIMITED

    @patch("app.services.ai.llm_provider.httpx.post")
    def test_server_error(self, mock_post, provider):
        mock_post.return_value = api_response(500, text="overloaded")
        result = provider.generate("system", "user", 1000)

        assert result.success is False
        assert result.failure_reason == LLMFailure.HTTP_ERROR
        assert "500" in result.error

    @patch("app.services.ai.llm_provider.httpx.post")
    def test_network_error(self, mock_post, provider):
        mock_post.side_effect = httpx.ConnectError("connection refused", request=REQUEST)
        result = provider.generate("system", "user", 1000)

        assert result.success is False
        assert result.failure_reason == LLMFailure.NETWORK

    @patch("app.services.ai.llm_provider.httpx.post")
    def test_unexpected_body(self, mock_post, provider):
        mock_post.return_value = api_response(json={"unexpected": True})
        result = provider.generate("system", "user", 1000)

        assert result.success is False
        assert result.failure_reason == LLMFailure.MALFORMED

    @patch("app.services.ai.llm_provider.httpx.post")
    def test_non_json_body(self, mock_post, provider):
        mock_post.return_value = api_response(text="<html>gateway</html>")
        result = provider.generate("system", "user", 1000)

        assert result.failure_reason == LLMFailure.MALFORMED

    def test_requires_api_key(self):
        with patch.object(settings, "ANTHROPIC_API_KEY", None):
            with pytest.raises(NotConfiguredError):
                AnthropicProvider()


class TestGetLlmProvider:

    def test_not_configured(self):
        with patch.object(settings, "ANTHROPIC_API_KEY", None):
            assert is_configured() is False
            with pytest.raises(NotConfiguredError):
                get_llm_provider()

    def test_configured(self):
        with patch.object(settings, "ANTHROPIC_API_KEY", "sk-test"):
            provider = get_llm_provider()
        assert isinstance(provider, AnthropicProvider)
        assert provider.provider_name() == f"anthropic/{settings.LLM_MODEL}"

    def test_unknown_provider(self):
        with patch.object(settings, "LLM_PROVIDER", "other"):
            with pytest.raises(ValueError):
                get_llm_provider()
