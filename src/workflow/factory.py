# src/workflow/factory.py — v1
"""Wire the default collaborators from Settings."""

from __future__ import annotations

import logging
from pathlib import Path

from feedforge.config.loader import ConfigLoader, FetchConfig
from feedforge.config.settings import Settings
from feedforge.content.analyzer import LLMContentAnalyzer
from feedforge.content.base_image_generator import BaseImageGenerator
from feedforge.content.formatter import MarkdownPublisher
from feedforge.content.image_generator import NullImageGenerator, OpenAIImageGenerator
from feedforge.content.writer import LLMArticleWriter
from feedforge.feeds.rss_fetcher import RSSFeedFetcher
from feedforge.llm.llm_factory import LLMFactory
from feedforge.storage.json_article_store import JsonArticleStore
from feedforge.storage.layout import reports_dir
from feedforge.storage.local_writer import LocalWriter
from feedforge.storage.report_store import ReportStore
from feedforge.tasks.registry import TaskRegistry
from feedforge.workflow.collaborators import Collaborators
from feedforge.workflow.orchestrator import WorkflowOrchestrator

logger = logging.getLogger(__name__)


def _image_generator(settings: Settings) -> BaseImageGenerator:
    if not settings.image_generation_enabled:
        return NullImageGenerator()
    return OpenAIImageGenerator(
        api_key=settings.openai_api_key,
        model=settings.image_model,
        size=settings.image_size,
        base_url=settings.openai_base_url or None,
    )


def build_collaborators(settings: Settings) -> Collaborators:
    """Default collaborators: RSS over httpx, JSON files on disk, routed LLMs."""
    data_dir = Path(settings.data_dir).expanduser()
    llm_factory = LLMFactory(settings)
    return Collaborators(
        config_loader=ConfigLoader(settings),
        fetcher=RSSFeedFetcher(
            FetchConfig(
                limit_per_source=settings.fetch_limit_per_source,
                concurrency=settings.fetch_concurrency,
                timeout_s=settings.fetch_timeout_s,
                max_retries=settings.fetch_max_retries,
                retry_delay_s=settings.fetch_retry_delay_s,
                user_agent=settings.fetch_user_agent,
            )
        ),
        store=JsonArticleStore(data_dir),
        analyzer=LLMContentAnalyzer(
            llm_factory,
            max_tokens=settings.llm_analysis_max_tokens,
            temperature=settings.llm_default_temperature,
        ),
        writer=LLMArticleWriter(
            llm_factory,
            max_tokens=settings.llm_writer_max_tokens,
            temperature=settings.llm_default_temperature,
            min_value_score=settings.min_value_score,
        ),
        image_generator=_image_generator(settings),
        publisher=MarkdownPublisher(
            posts_dir=Path(settings.posts_dir).expanduser(),
            categories=settings.article_categories_list,
            default_tags=settings.article_default_tags_list,
            articles_per_blog=settings.articles_per_blog,
        ),
        report_sink=ReportStore(LocalWriter(reports_dir(data_dir))),
    )


def build_orchestrator(
    settings: Settings, registry: TaskRegistry | None = None,
) -> WorkflowOrchestrator:
    """Orchestrator over the default collaborators."""
    logger.debug("Building orchestrator (data_dir=%s)", settings.data_dir)
    return WorkflowOrchestrator(
        build_collaborators(settings),
        registry=registry,
        task_retention_s=settings.task_retention_s,
    )
