"""Fetchers for GitHub resources used during statistics collection."""

from . import pager, pull_requests, search, timeline

__all__ = [
    "pager",
    "pull_requests",
    "search",
    "timeline",
]
