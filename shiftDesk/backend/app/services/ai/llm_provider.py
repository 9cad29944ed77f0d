"""
LLM provider abstraction layer.
Anthropic Messages API over REST (no SDK), behind an interface for adding other providers.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx

from app.core.config import settings
from app.services.errors import NotConfiguredError


logger = logging.getLogger(__name__)


class LLMFailure(str, Enum):
    NETWORK = "network"
    RATE_LIMITED = "rate_limited"
    MALFORMED = "malformed"
    HTTP_ERROR = "http_error"


@dataclass
class LLMResponse:
    """Standardised response from any LLM provider."""
    raw_text: str
    model_used: str
    success: bool
    error: Optional[str] = None
    failure_reason: Optional[LLMFailure] = None


class BaseLLMProvider(ABC):
    """Abstract base for LLM providers."""

    @abstractmethod
    def generate(self, system_prompt: str, user_prompt: str, max_tokens: int) -> LLMResponse:
        """Send prompt and return the raw completion text."""
        ...

    @abstractmethod
    def provider_name(self) -> str:
        ...


class AnthropicProvider(BaseLLMProvider):
    """Anthropic Claude provider using the Messages REST API."""

    BASE_URL = "https://api.anthropic.com/v1/messages"
    API_VERSION = "2023-06-01"

    def __init__(
        self,
        model_name: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.model_name = model_name or settings.LLM_MODEL
        self.api_key = api_key or settings.ANTHROPIC_API_KEY
        self.timeout = timeout or settings.LLM_TIMEOUT_SECONDS
        if not self.api_key:
            raise NotConfiguredError("ANTHROPIC_API_KEY not set")

    def provider_name(self) -> str:
        return f"anthropic/{self.model_name}"

    def _failure(self, reason: LLMFailure, error: str, raw_text: str = "") -> LLMResponse:
        return LLMResponse(
            raw_text=raw_text,
            model_used=self.provider_name(),
            success=False,
            error=error,
            failure_reason=reason,
        )

    def generate(self, system_prompt: str, user_prompt: str, max_tokens: int) -> LLMResponse:
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": self.API_VERSION,
            "content-type": "application/json",
        }
        payload = {
            "model": self.model_name,
            "max_tokens": max_tokens,
            "temperature": 0.1,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
        }

        try:
            response = httpx.post(self.BASE_URL, headers=headers, json=payload, timeout=self.timeout)
            response.raise_for_status()

            data = response.json()
            raw = "".join(
                block.get("text", "") for block in data["content"] if block.get("type") == "text"
            )
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.error(f"Anthropic API HTTP error: {status_code} - {e.response.text[:500]}")
            if status_code == 429:
                return self._failure(LLMFailure.RATE_LIMITED, "AI service is rate limited, try again shortly")
            return self._failure(LLMFailure.HTTP_ERROR, f"AI service error: {status_code}")
        except httpx.RequestError as e:
            logger.error(f"Anthropic API request failed: {e!r}")
            return self._failure(LLMFailure.NETWORK, "Could not reach AI service")
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Anthropic API returned an unexpected body: {e!r}")
            return self._failure(LLMFailure.MALFORMED, "AI service returned an unexpected response")

        if data.get("stop_reason") == "max_tokens":
            logger.warning(f"Anthropic response hit max_tokens ({max_tokens}), output may be truncated")
        logger.debug(f"Anthropic raw response: {raw}")

        return LLMResponse(
            raw_text=raw,
            model_used=data.get("model", self.provider_name()),
            success=True,
        )


def is_configured() -> bool:
    return bool(settings.ANTHROPIC_API_KEY)


def get_llm_provider() -> BaseLLMProvider:
    """
    Factory to get the configured LLM provider.
    Raises NotConfiguredError before any network call when credentials are missing.
    """
    provider_name = settings.LLM_PROVIDER

    if provider_name == "anthropic":
        if not is_configured():
            raise NotConfiguredError("AI scheduling is not configured: ANTHROPIC_API_KEY is missing")
        return AnthropicProvider()
    else:
        raise ValueError(f"Unknown LLM provider: {provider_name}")
