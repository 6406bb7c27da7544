# src/workflow/collaborators.py — v1
"""The set of collaborators an orchestrator drives."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from feedforge.config.loader import PipelineConfig
from feedforge.content.base_analyzer import BaseContentAnalyzer
from feedforge.content.base_image_generator import BaseImageGenerator
from feedforge.content.base_publisher import BaseArticlePublisher
from feedforge.content.base_writer import BaseArticleWriter
from feedforge.feeds.base_fetcher import BaseFeedFetcher
from feedforge.reporting.models import Report
from feedforge.storage.base_article_store import BaseArticleStore


@runtime_checkable
class ConfigSource(Protocol):
    async def load(self) -> PipelineConfig: ...


@runtime_checkable
class ReportSink(Protocol):
    async def persist_report(self, report: Report, rendered_html: str) -> None: ...


@dataclass
class Collaborators:
    """External capabilities, injected so tests can swap in stubs."""

    config_loader: ConfigSource
    fetcher: BaseFeedFetcher
    store: BaseArticleStore
    analyzer: BaseContentAnalyzer
    writer: BaseArticleWriter
    image_generator: BaseImageGenerator
    publisher: BaseArticlePublisher
    report_sink: ReportSink
