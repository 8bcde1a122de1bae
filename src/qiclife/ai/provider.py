"""AI provider abstraction.

``local`` answers nothing and lets the deterministic rules in
``qiclife.ai.engine`` produce every result; ``openai`` sends prompts through
the OpenAI SDK. Provider is selected via configuration.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

import structlog
from openai import AsyncOpenAI, OpenAIError

from qiclife.config import Settings, get_settings

logger = structlog.get_logger()


class AIProviderError(RuntimeError):
    """The provider failed or returned something unusable."""


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("```")[1]
        if text.startswith("json"):
            text = text[4:]
    return text.strip()


def parse_json(text: str | None) -> Any:  # noqa: ANN401
    if not text:
        msg = "Empty provider response"
        raise AIProviderError(msg)
    try:
        return json.loads(strip_code_fence(text))
    except json.JSONDecodeError as e:
        msg = f"Provider returned invalid JSON: {e}"
        raise AIProviderError(msg) from e


class BaseAIProvider(ABC):
    """Abstract base class for text-generation providers."""

    name: str = "base"

    @property
    def is_local(self) -> bool:
        return False

    @abstractmethod
    async def complete(self, prompt: str, *, max_tokens: int | None = None, temperature: float | None = None) -> str:
        """Return the model's text for ``prompt``. Raises AIProviderError on failure."""
        ...

    async def complete_json(
        self, prompt: str, *, max_tokens: int | None = None, temperature: float | None = None
    ) -> Any:  # noqa: ANN401
        return parse_json(await self.complete(prompt, max_tokens=max_tokens, temperature=temperature))


class LocalProvider(BaseAIProvider):
    """Offline provider. Callers use the deterministic engine instead."""

    name = "local"

    @property
    def is_local(self) -> bool:
        return True

    async def complete(self, prompt: str, *, max_tokens: int | None = None, temperature: float | None = None) -> str:
        msg = "Local provider does not generate text"
        raise AIProviderError(msg)


class OpenAIProvider(BaseAIProvider):
    """Chat completions via the OpenAI API."""

    name = "openai"

    def __init__(self, api_key: str, model: str, temperature: float, max_tokens: int) -> None:
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def complete(self, prompt: str, *, max_tokens: int | None = None, temperature: float | None = None) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature if temperature is None else temperature,
                max_tokens=max_tokens or self.max_tokens,
            )
        except OpenAIError as e:
            logger.warning("openai_request_failed", error=str(e), model=self.model)
            raise AIProviderError(str(e)) from e

        text = response.choices[0].message.content if response.choices else None
        if not text:
            msg = "Empty completion"
            raise AIProviderError(msg)
        return text.strip()


def build_provider(settings: Settings) -> BaseAIProvider:
    """Create the configured provider; ``openai`` without a key degrades to local."""
    provider = settings.ai_provider.lower()
    if provider == "openai":
        if settings.openai_api_key:
            return OpenAIProvider(
                api_key=settings.openai_api_key,
                model=settings.openai_model,
                temperature=settings.openai_temperature,
                max_tokens=settings.openai_max_tokens,
            )
        logger.warning("openai_key_missing", fallback="local")
    elif provider != "local":
        logger.warning("unknown_ai_provider", provider=provider, fallback="local")
    return LocalProvider()


_provider: BaseAIProvider | None = None


def get_ai_provider() -> BaseAIProvider:
    """Get the process-wide provider instance."""
    global _provider  # noqa: PLW0603
    if _provider is None:
        _provider = build_provider(get_settings())
    return _provider


def set_ai_provider(provider: BaseAIProvider | None) -> None:
    """Replace the provider (tests inject fakes here)."""
    global _provider  # noqa: PLW0603
    _provider = provider
