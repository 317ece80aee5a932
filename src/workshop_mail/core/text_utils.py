"""Helpers for deriving plain text alternatives."""

from __future__ import annotations

import re

_TAG_PATTERN = re.compile(r"<[^>]*>")


def strip_html_tags(html: str) -> str:
    """Remove anything between ``<`` and ``>``; entities are left as-is."""
    return _TAG_PATTERN.sub("", html)


__all__ = ["strip_html_tags"]
