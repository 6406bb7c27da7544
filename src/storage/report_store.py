# src/storage/report_store.py — v1
"""Persist run reports as ``report-<id>.json`` plus ``report-<id>.html``."""

from __future__ import annotations

import logging

from feedforge.reporting.models import Report
from feedforge.storage.base_output_writer import BaseOutputWriter
from feedforge.storage.layout import (
    report_html_name,
    report_id_from_name,
    report_json_name,
)

logger = logging.getLogger(__name__)


class ReportStore:
    """Report sink over an output writer rooted at the reports directory."""

    def __init__(self, writer: BaseOutputWriter) -> None:
        self._writer = writer

    async def persist_report(self, report: Report, rendered_html: str) -> None:
        """Write both representations. Errors propagate (fatal to the run)."""
        json_name = report_json_name(report.report_id)
        await self._writer.write(json_name, report.model_dump_json(indent=2))
        await self._writer.write(report_html_name(report.report_id), rendered_html)
        logger.info("Report saved: %s", json_name)

    async def list_report_ids(self) -> list[str]:
        """Report ids, newest first."""
        ids: list[str] = []
        for name in await self._writer.list_dir("."):
            report_id = report_id_from_name(name)
            if report_id is not None:
                ids.append(report_id)
        return sorted(ids, key=lambda r: (len(r), r), reverse=True)

    async def load_report(self, report_id: str) -> Report | None:
        name = report_json_name(report_id)
        if not await self._writer.exists(name):
            return None
        return Report.model_validate_json(await self._writer.read(name))
