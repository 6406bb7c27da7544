# src/main.py — v3
"""CLI entry point.

Usage:
    feedforge start     [--count N] [--style S] [--output-dir D] [--model P:M]
    feedforge fetch     [--feeds a,b]
    feedforge analyze   [--count N] [--items id1,id2] ...
    feedforge generate  [--count N] ...
    feedforge cleanup
    feedforge stats
    feedforge reports   [--limit N]
    feedforge config
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from feedforge.config.settings import Settings, load_settings
from feedforge.content.formatter import SUPPORTED_STYLES
from feedforge.logging.logger import setup_logging
from feedforge.version import __version__
from feedforge.workflow.models import PipelineOptions, PipelineType, WorkflowResult

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = load_settings()
    except Exception as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    setup_logging(
        level="DEBUG" if args.verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="feedforge",
        description=f"feedforge v{__version__}: RSS to long-form article generator",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    run_opts = argparse.ArgumentParser(add_help=False)
    run_opts.add_argument(
        "--count", type=int, default=1,
        help="Number of articles to generate (default: 1)",
    )
    run_opts.add_argument(
        "--style", choices=[s["name"] for s in SUPPORTED_STYLES], default=None,
        help="Output style: " + ", ".join(
            f"{s['name']} ({s['description']})" for s in SUPPORTED_STYLES
        ) + " (default: OUTPUT_STYLE)",
    )
    run_opts.add_argument(
        "--output-dir", type=Path, default=None,
        help="Directory for generated posts (default: POSTS_DIR)",
    )
    run_opts.add_argument(
        "--model", default=None,
        help="LLM override as provider:model (e.g. openai:gpt-4o)",
    )
    run_opts.add_argument(
        "--items", default=None,
        help="Comma-separated stored item ids to write about",
    )

    subparsers = parser.add_subparsers(dest="command")

    p_start = subparsers.add_parser(
        "start", parents=[run_opts], help="Fetch, store, analyze and generate",
    )
    p_start.set_defaults(func=_cmd_pipeline, pipeline=PipelineType.FULL)

    p_fetch = subparsers.add_parser("fetch", help="Fetch and store articles only")
    p_fetch.add_argument(
        "--feeds", default=None,
        help="Comma-separated feed names to fetch (default: all enabled)",
    )
    p_fetch.set_defaults(func=_cmd_pipeline, pipeline=PipelineType.FETCH)

    p_analyze = subparsers.add_parser(
        "analyze", parents=[run_opts], help="Generate from already stored articles",
    )
    p_analyze.set_defaults(func=_cmd_pipeline, pipeline=PipelineType.ANALYZE)

    p_generate = subparsers.add_parser(
        "generate", parents=[run_opts],
        help="Incremental run: generate only if unprocessed articles exist",
    )
    p_generate.set_defaults(func=_cmd_pipeline, pipeline=PipelineType.INCREMENTAL)

    p_cleanup = subparsers.add_parser("cleanup", help="Remove invalid stored files")
    p_cleanup.set_defaults(func=_cmd_cleanup)

    p_stats = subparsers.add_parser("stats", help="Show storage statistics")
    p_stats.set_defaults(func=_cmd_stats)

    p_reports = subparsers.add_parser("reports", help="List saved run reports")
    p_reports.add_argument(
        "--limit", type=int, default=10,
        help="Number of reports to show (default: 10)",
    )
    p_reports.set_defaults(func=_cmd_reports)

    p_config = subparsers.add_parser("config", help="Show effective configuration")
    p_config.set_defaults(func=_cmd_config)

    return parser


def _split(value: str | None) -> list[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def _options_from_args(args: argparse.Namespace) -> PipelineOptions:
    return PipelineOptions(
        count=max(1, getattr(args, "count", 1)),
        selected_items=_split(getattr(args, "items", None)),
        selected_feeds=_split(getattr(args, "feeds", None)),
        ai_model=getattr(args, "model", None),
        output_style=getattr(args, "style", None),
        output_dir=getattr(args, "output_dir", None),
    )


class _ConsoleProgress:
    """Prints progress triples as they arrive."""

    def report(self, percent: int, step: str, message: str = "") -> None:
        print(f"[{percent:3d}%] {step}: {message}")


async def _cmd_pipeline(args: argparse.Namespace, settings: Settings) -> int:
    """Run one tracked pipeline to completion."""
    from feedforge.workflow.factory import build_orchestrator

    orchestrator = build_orchestrator(settings)
    result = await orchestrator.run_pipeline(
        args.pipeline, _options_from_args(args), progress=_ConsoleProgress(),
    )
    _print_result_summary(result)
    return 0 if result.success else 1


async def _cmd_cleanup(args: argparse.Namespace, settings: Settings) -> int:
    from feedforge.workflow.factory import build_orchestrator

    result = await build_orchestrator(settings).run_cleanup()
    stats = result.data["stats"]
    print("\nCleanup complete:")
    print(f"  Invalid files removed: {result.data['removed_files']}")
    print(f"  Stored items:          {stats['total_articles']}")
    print(f"  Storage size:          {stats['storage_size_bytes'] / 1024:.1f} KB")
    return 0


async def _cmd_stats(args: argparse.Namespace, settings: Settings) -> int:
    """Display storage statistics."""
    from feedforge.storage.json_article_store import JsonArticleStore

    stats = await JsonArticleStore(Path(settings.data_dir).expanduser()).get_stats()
    print(f"\nStatistics for {settings.data_dir}:")
    print(f"  Stored items: {stats.total_articles}")
    print(f"  Processed:    {stats.processed_articles} ({stats.processed_ratio:.0%})")
    print(f"  Unprocessed:  {stats.unprocessed_articles}")
    print(f"  Size:         {stats.storage_size_bytes / 1024:.1f} KB")
    return 0


async def _cmd_reports(args: argparse.Namespace, settings: Settings) -> int:
    """List the most recent run reports."""
    from feedforge.storage.layout import reports_dir
    from feedforge.storage.local_writer import LocalWriter
    from feedforge.storage.report_store import ReportStore

    store = ReportStore(LocalWriter(reports_dir(Path(settings.data_dir).expanduser())))
    report_ids = (await store.list_report_ids())[: max(0, args.limit)]
    if not report_ids:
        print("No reports found.")
        return 0
    for report_id in report_ids:
        report = await store.load_report(report_id)
        if report is None:
            continue
        print(
            f"  {report.report_id}  {report.pipeline:<16} "
            f"{report.start_time:%Y-%m-%d %H:%M}  {report.generated_count} generated  "
            f"{len(report.failures)} failed  {report.duration}"
        )
    return 0


async def _cmd_config(args: argparse.Namespace, settings: Settings) -> int:
    """Print the effective configuration and LLM routing."""
    from feedforge.config.loader import ConfigLoader
    from feedforge.llm.config import resolve_all

    config = await ConfigLoader(settings).load()
    print("\nFeeds:")
    for feed in config.feeds:
        state = "on " if feed.enabled else "off"
        print(f"  [{state}] {feed.name:<30} {feed.url}")
    print("\nLLM routing:")
    for component, assignment in resolve_all(settings).items():
        print(f"  {component:<10} {assignment.key} ({assignment.source})")
    print("\nStrategy:")
    print(f"  Articles per post: {config.strategy.articles_per_blog}")
    print(f"  Target words:      {config.strategy.word_count}")
    r = config.ranking
    print(
        f"  Thresholds:        novelty>={r.min_novelty_score:g} impact>={r.min_impact_score:g} "
        f"value>={r.min_value_score:g} max_topics={r.max_topics}"
    )
    print("\nOutput:")
    print(f"  Style:  {config.output.style}")
    print(f"  Posts:  {config.output.posts_dir}")
    print(f"  Images: {config.output.images_dir}")
    return 0


def _print_result_summary(result: WorkflowResult) -> None:
    """Print a human-readable summary of a pipeline result."""
    status = "done" if result.success else "nothing done"
    print(f"\nPipeline {status}: {result.message}")
    report = result.report
    if report is None:
        return
    print(f"  Report:     {report.report_id}")
    print(f"  Duration:   {report.duration}")
    print(f"  Generated:  {report.generated_count}")
    for article in report.articles:
        print(f"    - {article.title} → {article.path}")
    if report.failures:
        print(f"  Failed:     {len(report.failures)}")
        for failure in report.failures:
            print(f"    - #{failure.iteration} at {failure.stage}: {failure.error}")


if __name__ == "__main__":
    sys.exit(main())
