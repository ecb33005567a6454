from __future__ import annotations

import abc
import logging
from typing import Any, Iterable, Optional

import anthropic
import openai
from anthropic import Anthropic
from openai import OpenAI

from hookbuilder.config import Settings, require_configured
from hookbuilder.errors import ConfigurationError, ProtocolError, UpstreamError

logger = logging.getLogger(__name__)


class LLMClient(abc.ABC):
    """Abstract interface for the chat-completion providers."""

    @abc.abstractmethod
    def complete(self, prompt: str, **kwargs: Any) -> str:
        """Send ``prompt`` (plus an optional ``system`` kwarg) and return the reply text."""
        raise NotImplementedError


class StaticLLM(LLMClient):
    """Development stub that answers every prompt with the same text."""

    def __init__(self, response: str = "") -> None:
        self.response = response
        self.calls: list[dict[str, Any]] = []

    def complete(self, prompt: str, **kwargs: Any) -> str:
        self.calls.append({"prompt": prompt, **kwargs})
        return self.response


class OpenAILLM(LLMClient):
    """OpenAI chat-completions wrapper; one request per call, no retries."""

    def __init__(
        self,
        client: Any,
        model: str,
        api_key: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1500,
    ) -> None:
        self.client = client
        self.model = model
        self.api_key = api_key
        self.temperature = temperature
        self.max_tokens = max_tokens

    def complete(self, prompt: str, **kwargs: Any) -> str:
        if self.api_key is not None:
            require_configured(self.api_key, "OPENAI_API_KEY")
        system = kwargs.pop("system", None)
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        params: dict[str, Any] = {
            "model": kwargs.pop("model", None) or self.model,
            "messages": messages,
            "temperature": kwargs.pop("temperature", self.temperature),
            "max_tokens": kwargs.pop("max_tokens", self.max_tokens),
        }
        params.update(kwargs)

        try:
            response = self.client.chat.completions.create(**params)
        except openai.APIStatusError as exc:
            raise UpstreamError(exc.message, status=exc.status_code) from exc
        except openai.APIError as exc:
            raise UpstreamError(str(exc)) from exc

        choices = getattr(response, "choices", None)
        if not choices:
            raise ProtocolError("OpenAI response did not include any completion choices")
        first = choices[0]
        content = getattr(getattr(first, "message", None), "content", None)
        if content is None:
            raise ProtocolError("OpenAI completion did not include message content")
        if getattr(first, "finish_reason", None) == "length":
            logger.warning(
                "OpenAI response truncated by max_tokens; consider increasing limit (current=%s)",
                params["max_tokens"],
            )
        return content


class ClaudeLLM(LLMClient):
    """Anthropic Messages API wrapper used when ``LLM_PROVIDER=claude``."""

    def __init__(
        self,
        client: Any,
        model: str,
        api_key: Optional[str] = None,
        max_tokens: int = 1500,
        temperature: float = 0.7,
    ) -> None:
        self.client = client
        self.model = model
        self.api_key = api_key
        self.max_tokens = max_tokens
        self.temperature = temperature

    def complete(self, prompt: str, **kwargs: Any) -> str:
        if self.api_key is not None:
            require_configured(self.api_key, "ANTHROPIC_API_KEY")
        params: dict[str, Any] = {
            "model": kwargs.pop("model", None) or self.model,
            "max_tokens": kwargs.pop("max_tokens", self.max_tokens),
            "temperature": kwargs.pop("temperature", self.temperature),
            "messages": [{"role": "user", "content": [{"type": "text", "text": prompt}]}],
        }
        system = kwargs.pop("system", None)
        if system:
            params["system"] = system
        params.update(kwargs)

        try:
            response = self.client.messages.create(**params)
        except anthropic.APIStatusError as exc:
            raise UpstreamError(exc.message, status=exc.status_code) from exc
        except anthropic.APIError as exc:
            raise UpstreamError(str(exc)) from exc

        blocks = getattr(response, "content", None)
        if not blocks:
            raise ProtocolError("Claude response did not include any content blocks")
        if getattr(response, "stop_reason", None) == "max_tokens":
            logger.warning(
                "Claude response truncated by max_tokens; consider increasing limit (current=%s)",
                params["max_tokens"],
            )
        return _collect_text(blocks)


def _collect_text(blocks: Iterable[Any]) -> str:
    parts: list[str] = []
    for block in blocks:
        if getattr(block, "type", None) == "text":
            parts.append(getattr(block, "text", ""))
    return "".join(parts)


def build_llm(settings: Settings) -> LLMClient:
    """Construct the configured provider client.

    Keys are not checked here: a placeholder key fails on the first call.
    """
    provider = settings.llm_provider.lower()
    if provider == "openai":
        return OpenAILLM(
            client=OpenAI(api_key=settings.openai_api_key),
            model=settings.hook_model,
            api_key=settings.openai_api_key,
        )
    if provider == "claude":
        return ClaudeLLM(
            client=Anthropic(api_key=settings.anthropic_api_key),
            model=settings.hook_model,
            api_key=settings.anthropic_api_key,
        )
    raise ConfigurationError(f"Unsupported LLM_PROVIDER '{settings.llm_provider}'")
