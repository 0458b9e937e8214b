"""
Small utility functions.
"""

from __future__ import annotations

import datetime as dt
import re


def slugify(title: str, max_len: int = 80) -> str:
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", title.strip()).strip("-").lower()
    return slug[:max_len].rstrip("-") or "meeting"


def clock_time(iso_ts: str) -> str:
    """HH:MM:SS in local time for an ISO timestamp, '' if unparseable."""
    try:
        parsed = dt.datetime.fromisoformat(iso_ts.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return ""
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.strftime("%H:%M:%S")


def human_size(num_bytes: int) -> str:
    return f"{num_bytes / 1024 / 1024:.1f} MB"
