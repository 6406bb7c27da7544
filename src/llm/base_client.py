# src/llm/base_client.py — v1
"""Abstract LLM client interface shared by all provider adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod

from feedforge.llm.models import LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified text-completion interface for all LLM providers."""

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Text completion.

        Args:
            messages: Conversation so far.
            system: Optional system prompt.
            max_tokens: Output token cap.
            temperature: Sampling temperature.
            json_mode: Ask the provider for a JSON-only answer where supported.
        """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (anthropic, openai, ollama)."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model the client is bound to."""
