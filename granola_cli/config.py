"""
Configuration constants for granola_cli.

Paths, API settings and defaults live here so the rest of the package
can stay free of platform checks.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

API_BASE = "https://api.granola.ai"
API_TIMEOUT_S = 30

DEFAULT_LIST_LIMIT = 20
SYNC_DOCUMENT_LIMIT = 50

CACHE_FILENAME = "cache-v3.json"
CONFIG_FILENAME = "supabase.json"

# Granola's application support directory per platform
APP_DIRS = {
    "darwin": Path.home() / "Library" / "Application Support" / "Granola",
    "linux": Path.home() / ".config" / "Granola",
    "win32": Path.home() / "AppData" / "Roaming" / "Granola",
}


def app_dir(platform: str | None = None) -> Path:
    return APP_DIRS.get(platform or sys.platform, APP_DIRS["darwin"])


def cache_path() -> Path:
    override = os.environ.get("GRANOLA_CACHE_PATH", "").strip()
    if override:
        return Path(override).expanduser()
    return app_dir() / CACHE_FILENAME


def config_path() -> Path:
    override = os.environ.get("GRANOLA_CONFIG_PATH", "").strip()
    if override:
        return Path(override).expanduser()
    return app_dir() / CONFIG_FILENAME


def api_base() -> str:
    return (os.environ.get("GRANOLA_API_BASE", "").strip() or API_BASE).rstrip("/")
