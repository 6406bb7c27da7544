# src/config/components.py — v1
"""LLM-backed components and the settings fields that route them.

Each component can be pinned to a provider:model pair with an
``LLM_<COMPONENT>`` env var; otherwise it uses the default provider.
"""

from __future__ import annotations

ANALYZER = "analyzer"
WRITER = "writer"

LLM_COMPONENTS: list[str] = [ANALYZER, WRITER]
