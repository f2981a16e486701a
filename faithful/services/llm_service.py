# faithful/services/llm_service.py
"""
LLM Provider Abstraction Layer

Unified interface for the generative text services used for verse
recommendations, answers and studies.

Provider Architecture:
    - Anthropic (Claude): primary, plain requests against /v1/messages
    - OpenAI: fallback, via the openai SDK

Every provider exposes generate(system_prompt, user_prompt, temperature,
max_tokens) -> raw text. Nothing validates the output; callers recover
structure themselves (see services.generation.salvage).

Usage:
    from faithful.services.llm_service import get_best_available_client

    llm = get_best_available_client()
    if llm:
        text = llm.generate(
            "You are a knowledgeable Bible scholar.",
            "What does the Bible say about patience?",
            temperature=0.7,
            max_tokens=1000,
        )
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from ..utils.http_retry import post_with_retry

load_dotenv()

logger = logging.getLogger(__name__)


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        **kwargs: Any,
    ) -> str:
        """
        Send a chat completion request and return the assistant's response text.

        Args:
            messages: List of message dicts with 'role' and 'content' keys.
            model: Model identifier (provider-specific). Uses default if None.
            **kwargs: Additional provider-specific parameters.

        Returns:
            The assistant's response content as a string.

        Raises:
            RuntimeError: carrying the provider's own error message
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True if this provider is properly configured."""
        pass

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> str:
        """Single-turn completion with a system prompt."""
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        return self.chat_completion(
            messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )


class OpenAIProvider(LLMProvider):
    """OpenAI API provider implementation."""

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")
        self._client = None

    def _get_client(self):
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI(api_key=self._api_key)
        return self._client

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        **kwargs: Any,
    ) -> str:
        if not self.is_configured():
            raise RuntimeError("OpenAI API key not configured")

        client = self._get_client()
        model = model or get_model_name()

        try:
            completion = client.chat.completions.create(
                model=model,
                messages=messages,
                **kwargs,
            )
        except Exception as e:
            raise RuntimeError(f"OpenAI API error: {e}") from e

        return completion.choices[0].message.content or ""


class AnthropicProvider(LLMProvider):
    """
    Anthropic (Claude) API provider implementation.

    Note: Anthropic API has a different format than OpenAI:
    - System prompt goes in top-level "system" parameter, not in messages
    - Messages array only contains user/assistant roles
    - Response content is a list of blocks, not a string
    """

    ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
    ANTHROPIC_VERSION = "2023-06-01"
    DEFAULT_MODEL = "claude-3-haiku-20240307"
    DEFAULT_TIMEOUT = 60  # seconds
    DEFAULT_MAX_TOKENS = 1000

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self._api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        self._model = model or os.getenv("CLAUDE_MODEL") or self.DEFAULT_MODEL

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        **kwargs: Any,
    ) -> str:
        """
        Send a chat completion request to Anthropic (Claude).

        Args:
            messages: List of message dicts with 'role' and 'content' keys.
                      System messages are extracted and sent separately.
            model: Model name (default: CLAUDE_MODEL).
            **kwargs: Additional parameters (temperature, max_tokens, timeout)

        Returns:
            The assistant's response content as a string.
        """
        if not self.is_configured():
            raise RuntimeError("Anthropic API key not configured (ANTHROPIC_API_KEY)")

        model = model or self._model

        # Anthropic requires the system prompt in a separate top-level parameter
        system_prompt = None
        filtered_messages = []

        for msg in messages:
            role = msg.get("role", "")
            content = msg.get("content", "")

            if role == "system":
                if system_prompt is None:
                    system_prompt = content
                else:
                    system_prompt = f"{system_prompt}\n\n{content}"
            elif role in ("user", "assistant"):
                filtered_messages.append({"role": role, "content": content})

        payload = {
            "model": model,
            "messages": filtered_messages,
            "max_tokens": kwargs.get("max_tokens", self.DEFAULT_MAX_TOKENS),
        }

        if system_prompt:
            payload["system"] = system_prompt

        for key in ("temperature", "top_p", "top_k", "stop_sequences"):
            if key in kwargs:
                payload[key] = kwargs[key]

        headers = {
            "x-api-key": self._api_key,
            "anthropic-version": self.ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }

        response = post_with_retry(
            self.ANTHROPIC_API_URL,
            json=payload,
            headers=headers,
            timeout=kwargs.get("timeout", self.DEFAULT_TIMEOUT),
        )
        data = response.json()

        # Content is a LIST of blocks
        content_blocks = data.get("content", [])
        if not content_blocks:
            raise RuntimeError("Anthropic returned no content in response")

        return "".join(
            block.get("text", "")
            for block in content_blocks
            if block.get("type") == "text"
        )


_openai_instance: Optional[OpenAIProvider] = None
_anthropic_instance: Optional[AnthropicProvider] = None


def get_anthropic_client() -> Optional[AnthropicProvider]:
    """
    Get the Anthropic (Claude) provider instance.

    Returns AnthropicProvider if configured, None otherwise.
    """
    global _anthropic_instance

    if _anthropic_instance is None:
        provider = AnthropicProvider()
        if provider.is_configured():
            _anthropic_instance = provider

    return _anthropic_instance


def get_llm_client() -> Optional[OpenAIProvider]:
    """
    Get the OpenAI provider instance.

    Returns OpenAI provider if configured, None otherwise.
    """
    global _openai_instance

    if _openai_instance is None:
        provider = OpenAIProvider()
        if provider.is_configured():
            _openai_instance = provider

    return _openai_instance


def get_model_name() -> str:
    """Configured OpenAI model name."""
    return os.getenv("OPENAI_MODEL", "gpt-4.1-mini")


def get_best_available_client() -> Optional[LLMProvider]:
    """
    Get the best available LLM client.

    Claude first, OpenAI as the fallback.

    Returns:
        The best available provider, or None if none configured.
    """
    claude = get_anthropic_client()
    if claude:
        return claude
    openai_client = get_llm_client()
    if openai_client:
        return openai_client
    logger.info("No generative provider configured")
    return None
