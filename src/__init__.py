# src/__init__.py — v1
"""reelsearch: multi-provider AI analysis failover and ranked media search."""

from reelsearch.version import __version__

__all__ = ["__version__"]
