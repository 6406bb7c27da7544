# src/llm/config.py — v1
"""Per-component LLM routing with cascade resolution.

Resolution order:
  1. Per-run override ("provider:model" passed by the caller, e.g. --model)
  2. Per-component env var (LLM_ANALYZER=openai:gpt-4o)
  3. Default provider + model (LLM_DEFAULT_PROVIDER + LLM_DEFAULT_MODEL)
  4. Hardcoded fallback (anthropic:claude-sonnet-4-20250514)

A bare model name without a provider prefix (override or env var) keeps the
provider the next level down would have chosen.
"""

from __future__ import annotations

from dataclasses import dataclass

from feedforge.config.components import LLM_COMPONENTS
from feedforge.config.settings import Settings

_FALLBACK_PROVIDER = "anthropic"
_FALLBACK_MODEL = "claude-sonnet-4-20250514"


@dataclass(frozen=True)
class LLMAssignment:
    """Resolved LLM provider:model for a component."""

    provider: str
    model: str
    source: str  # "override", "component", "default", or "fallback"

    @property
    def key(self) -> str:
        """Return 'provider:model' string."""
        return f"{self.provider}:{self.model}"


def parse_assignment(value: str | None) -> tuple[str | None, str] | None:
    """Parse 'provider:model' (or a bare model name). Returns None if empty."""
    if not value or not value.strip():
        return None
    if ":" not in value:
        return (None, value.strip())
    provider, model = value.split(":", 1)
    if not model.strip():
        return None
    return (provider.strip().lower() or None, model.strip())


def _base_assignment(settings: Settings) -> LLMAssignment:
    if settings.llm_default_provider and settings.llm_default_model:
        return LLMAssignment(
            provider=settings.llm_default_provider.lower(),
            model=settings.llm_default_model,
            source="default",
        )
    return LLMAssignment(
        provider=_FALLBACK_PROVIDER,
        model=_FALLBACK_MODEL,
        source="fallback",
    )


def resolve_llm(
    component: str,
    settings: Settings,
    override: str | None = None,
) -> LLMAssignment:
    """Resolve LLM assignment for a component.

    Args:
        component: Component name ("analyzer" or "writer").
        settings: Application settings.
        override: Optional per-run "provider:model" (or bare model) string.

    Returns:
        Resolved LLMAssignment with provider, model, and resolution source.
    """
    base = _base_assignment(settings)

    per_component = _as_assignment(
        getattr(settings, f"llm_{component}", ""), base, "component",
    )
    if per_component is not None:
        base = per_component

    per_run = _as_assignment(override, base, "override")
    return per_run if per_run is not None else base


def resolve_all(settings: Settings) -> dict[str, LLMAssignment]:
    """Resolve LLM assignments for all known components."""
    return {comp: resolve_llm(comp, settings) for comp in LLM_COMPONENTS}


def _as_assignment(
    value: str | None, below: LLMAssignment, source: str,
) -> LLMAssignment | None:
    parsed = parse_assignment(value)
    if parsed is None:
        return None
    provider, model = parsed
    return LLMAssignment(provider=provider or below.provider, model=model, source=source)
