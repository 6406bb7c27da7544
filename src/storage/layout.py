# src/storage/layout.py — v2
"""Data directory structure definition.

    {data_dir}/
        articles/raw/<key>.json     one fetched CandidateItem per file
        processed/processed.json    item id → {processed_at, topics}
        reports/report-<id>.json    structured run report
        reports/report-<id>.html    rendered run report
"""

from __future__ import annotations

import hashlib
from pathlib import Path

ARTICLES_DIR = "articles"
RAW_DIR = "raw"
PROCESSED_DIR = "processed"
REPORTS_DIR = "reports"

PROCESSED_INDEX = "processed.json"
REPORT_PREFIX = "report-"


def raw_articles_dir(data_dir: Path) -> Path:
    return data_dir / ARTICLES_DIR / RAW_DIR


def processed_dir(data_dir: Path) -> Path:
    return data_dir / PROCESSED_DIR


def processed_index_path(data_dir: Path) -> Path:
    return processed_dir(data_dir) / PROCESSED_INDEX


def reports_dir(data_dir: Path) -> Path:
    return data_dir / REPORTS_DIR


def article_key(item_id: str) -> str:
    """Stable file-safe key for an item id (ids are usually URLs)."""
    return hashlib.sha1(item_id.encode("utf-8")).hexdigest()[:20]  # noqa: S324


def article_path(data_dir: Path, item_id: str) -> Path:
    return raw_articles_dir(data_dir) / f"{article_key(item_id)}.json"


def report_json_name(report_id: str) -> str:
    return f"{REPORT_PREFIX}{report_id}.json"


def report_html_name(report_id: str) -> str:
    return f"{REPORT_PREFIX}{report_id}.html"


def report_id_from_name(name: str) -> str | None:
    """Inverse of report_json_name; None for other files."""
    if name.startswith(REPORT_PREFIX) and name.endswith(".json"):
        return name[len(REPORT_PREFIX):-len(".json")]
    return None


def ensure_data_directories(data_dir: Path) -> None:
    """Create all standard directories under the data root."""
    for dir_fn in (raw_articles_dir, processed_dir, reports_dir):
        dir_fn(data_dir).mkdir(parents=True, exist_ok=True)
