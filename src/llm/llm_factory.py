# src/llm/llm_factory.py — v1
"""LLM factory — creates per-component LLM clients using config routing.

Resolves provider:model for each component via the cascade in
llm/config.py and instantiates the adapter through client_factory.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from feedforge.llm.client_factory import create_llm_client
from feedforge.llm.config import LLMAssignment, resolve_llm

if TYPE_CHECKING:
    from feedforge.config.settings import Settings
    from feedforge.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)


class LLMFactory:
    """Create and cache LLM clients per component.

    Clients are cached by (provider, model) key so components sharing
    the same assignment reuse a single client instance.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._clients: dict[str, BaseLLMClient] = {}

    def resolve(self, component: str, override: str | None = None) -> LLMAssignment:
        return resolve_llm(component, self._settings, override)

    def get_client(self, component: str, override: str | None = None) -> BaseLLMClient:
        """Get or create LLM client for a component.

        Args:
            component: Component name for routing resolution.
            override: Optional per-run "provider:model" string.
        """
        assignment = self.resolve(component, override)
        cache_key = assignment.key

        if cache_key not in self._clients:
            self._clients[cache_key] = create_llm_client(
                assignment.provider, assignment.model, self._settings,
            )
            logger.info(
                "Created LLM client for '%s': %s (source: %s)",
                component, cache_key, assignment.source,
            )
        else:
            logger.debug("Reusing cached LLM client for '%s': %s", component, cache_key)

        return self._clients[cache_key]

    def __call__(self, component: str, override: str | None = None) -> BaseLLMClient:
        return self.get_client(component, override)
