# src/reporting/builder.py — v2
"""Report builder: one immutable Report per run, plus its HTML rendering.

The HTML is rendered from the Report value alone, so the two representations
always state the same counts, duration and article titles.
"""

from __future__ import annotations

import os
import platform
import sys
from datetime import datetime, timezone
from typing import Callable, Sequence

from jinja2 import BaseLoader, Environment

from feedforge.config.loader import PipelineConfig
from feedforge.core.models import StorageStats
from feedforge.reporting.models import (
    ArticleOutcome,
    ConfigSummary,
    IterationFailure,
    Report,
    SystemInfo,
)
from feedforge.version import __version__


def format_duration(ms: int) -> str:
    """Human-readable duration: ``1h 2m``, ``3m 4s`` or ``5s 120ms``."""
    ms = max(0, int(ms))
    seconds = ms // 1000
    minutes = seconds // 60
    hours = minutes // 60
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s {ms % 1000}ms"


def _system_info() -> SystemInfo:
    return SystemInfo(
        python_version=sys.version.split()[0],
        platform=platform.platform(),
        pid=os.getpid(),
        feedforge_version=__version__,
    )


class ReportBuilder:
    """Assemble and render run reports.

    Args:
        clock: Returns the current aware datetime; report ids and durations
            are derived from it.

    Report ids are the finish time in epoch milliseconds, bumped past the
    last id this builder issued so runs finishing together never share one.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._env = Environment(loader=BaseLoader(), autoescape=True)
        self._template = self._env.from_string(REPORT_TEMPLATE)
        self._last_id = 0

    def build(
        self,
        pipeline: str,
        outcomes: Sequence[ArticleOutcome | IterationFailure],
        config: PipelineConfig,
        started_at: datetime,
        stats: StorageStats,
        articles_fetched: int | None = None,
        success: bool = True,
    ) -> Report:
        """Build the report for a finished run.

        Args:
            pipeline: Pipeline type tag (full, fetch, analyze, ...).
            outcomes: Per-iteration outcomes in iteration order.
            config: Configuration the run used.
            started_at: When the run started.
            stats: Storage stats after the run.
            articles_fetched: Items fetched, for pipelines that fetch.
            success: Overall success flag.
        """
        finished = self._clock()
        duration_ms = max(0, int((finished - started_at).total_seconds() * 1000))
        articles = [o for o in outcomes if isinstance(o, ArticleOutcome)]
        failures = [o for o in outcomes if isinstance(o, IterationFailure)]

        return Report(
            report_id=self._next_report_id(finished),
            pipeline=pipeline,
            success=success,
            start_time=started_at,
            duration_ms=duration_ms,
            duration=format_duration(duration_ms),
            generated_count=len(articles),
            articles_fetched=articles_fetched,
            articles=articles,
            failures=failures,
            analysis_results=[a.analysis for a in articles if a.analysis is not None],
            stats=stats,
            config_summary=ConfigSummary(
                feed_count=len(config.feeds),
                articles_per_blog=config.strategy.articles_per_blog,
                word_count=config.strategy.word_count,
                output_style=config.output.style,
                ranking=config.ranking,
            ),
            system_info=_system_info(),
        )

    def _next_report_id(self, finished: datetime) -> str:
        report_id = max(int(finished.timestamp() * 1000), self._last_id + 1)
        self._last_id = report_id
        return str(report_id)

    def render_html(self, report: Report) -> str:
        """Render the human-readable report."""
        return self._template.render(report=report)


REPORT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>feedforge report {{ report.report_id }}</title>
  <style>
    body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
           max-width: 1100px; margin: 0 auto; padding: 2rem 1rem; color: #1a1a2e; }
    header { text-align: center; border-bottom: 1px solid #ddd; padding-bottom: 1rem; }
    .summary { display: grid; grid-template-columns: repeat(auto-fit, minmax(180px, 1fr));
               gap: 1rem; margin: 1.5rem 0; }
    .stat-card { background: #f8f9fa; padding: 1rem; border-radius: 8px; text-align: center; }
    .stat-card p { font-size: 1.6rem; margin: .3rem 0 0; }
    .article, .failure, .analysis-block { border: 1px solid #ddd; padding: 1rem 1.2rem;
                                          margin: .8rem 0; border-radius: 8px; }
    .article h3 { margin-top: 0; }
    .article .meta { font-size: .8rem; color: #888; }
    .failure { border-color: #e0a3a3; background: #fff6f6; }
    .analysis-block { border-style: dashed; }
    .muted { color: #777; }
  </style>
</head>
<body>
  <header>
    <h1>Run report: {{ report.pipeline }}</h1>
    <p>Started: {{ report.start_time.strftime("%Y-%m-%d %H:%M:%S %Z") }}</p>
    <p>Duration: {{ report.duration }}</p>
    <p>Status: {{ "success" if report.success else "no articles generated" }}</p>
  </header>

  <section class="summary">
    <div class="stat-card"><h3>Articles generated</h3><p>{{ report.generated_count }}</p></div>
    {% if report.articles_fetched is not none %}
    <div class="stat-card"><h3>Items fetched</h3><p>{{ report.articles_fetched }}</p></div>
    {% endif %}
    <div class="stat-card"><h3>Stored items</h3><p>{{ report.stats.total_articles }}</p></div>
    <div class="stat-card"><h3>Processed</h3><p>{{ report.stats.processed_articles }}</p></div>
    <div class="stat-card"><h3>Unprocessed</h3><p>{{ report.stats.unprocessed_articles }}</p></div>
    <div class="stat-card"><h3>Failed iterations</h3><p>{{ report.failures | length }}</p></div>
  </section>

  {% if report.articles %}
  <section>
    <h2>Generated articles</h2>
    {% for article in report.articles %}
    <div class="article">
      <h3>{{ article.title }}</h3>
      {% if article.description %}<p class="muted">{{ article.description }}</p>{% endif %}
      <p class="meta">
        Iteration {{ article.iteration }} &middot; {{ article.word_count }} chars
        &middot; {{ article.processed_items }} source items &middot; {{ article.path }}
        {% if article.image_filename %}&middot; cover: {{ article.image_filename }}{% endif %}
      </p>
      {% if article.topics %}<p class="meta">Topics: {{ article.topics | join(", ") }}</p>{% endif %}
    </div>
    {% endfor %}
  </section>
  {% else %}
  <p class="muted">No articles were generated in this run.</p>
  {% endif %}

  {% if report.failures %}
  <section>
    <h2>Failed iterations</h2>
    {% for failure in report.failures %}
    <div class="failure">
      <strong>Iteration {{ failure.iteration }}</strong> failed at {{ failure.stage }}
      ({{ failure.error_type }}): {{ failure.error }}
    </div>
    {% endfor %}
  </section>
  {% endif %}

  {% if report.analysis_results %}
  <section>
    <h2>Analysis digest</h2>
    {% for item in report.analysis_results %}
    <div class="analysis-block">
      <h3>{{ item.title }}</h3>
      {% if item.summary %}<p>{{ item.summary }}</p>{% endif %}
      {% if item.trends %}<p><strong>Trends:</strong> {{ item.trends | join(", ") }}</p>{% endif %}
      {% if item.best_practices %}<p><strong>Best practices:</strong> {{ item.best_practices | join(", ") }}</p>{% endif %}
      {% if item.anti_patterns %}<p><strong>Anti-patterns:</strong> {{ item.anti_patterns | join(", ") }}</p>{% endif %}
      {% if item.open_questions %}<p><strong>Open questions:</strong> {{ item.open_questions | join(", ") }}</p>{% endif %}
      {% if item.tooling %}<p><strong>Tooling:</strong> {{ item.tooling | join(", ") }}</p>{% endif %}
    </div>
    {% endfor %}
  </section>
  {% endif %}
</body>
</html>
"""
