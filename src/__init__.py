# src/__init__.py — v1
"""feedforge: RSS feeds in, long-form articles out."""

from feedforge.version import __version__

__all__ = ["__version__"]
