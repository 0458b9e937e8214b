"""
Debug diagnostics for cache reads and API calls.

Lines go to stderr as `[HH:MM:SS +elapsed] message` so they never mix with
command output, which may be JSON piped into another tool. Nothing is
printed unless DEBUG is switched on by --debug or GRANOLA_DEBUG.

A step can attach facts it learns while running (bytes read, documents
parsed, HTTP status) and they are reported on the completion line:

    [09:14:02 +  0.4s] Parsing cache-v3.json …
    [09:14:03 +  1.1s] Parsing cache-v3.json ✓ (0.71s; 18.2 MB, 412 documents)
"""

from __future__ import annotations

import datetime as dt
import os
import sys
import time
from contextlib import contextmanager
from typing import Iterator


def debug_from_env() -> bool:
    return os.environ.get("GRANOLA_DEBUG", "") not in ("", "0")


DEBUG: bool = debug_from_env()
START_TS: float = time.perf_counter()


def _now_str() -> str:
    return dt.datetime.now().strftime("%H:%M:%S")


def _elapsed() -> str:
    return f"{time.perf_counter() - START_TS:.1f}s"


def status(msg: str) -> None:
    if not DEBUG:
        return
    print(f"[{_now_str()} +{_elapsed():>6}] {msg}", file=sys.stderr, flush=True)


@contextmanager
def step(msg: str) -> Iterator[list[str]]:
    """
    Time a step. Yields a list the caller may append details to; they are
    joined onto the completion line. A step that raises is reported as
    failed with the exception type.
    """
    details: list[str] = []
    if not DEBUG:
        yield details
        return
    t0 = time.perf_counter()
    status(f"{msg} …")
    try:
        yield details
    except Exception as exc:
        status(f"{msg} ✗ {type(exc).__name__} ({time.perf_counter() - t0:.2f}s)")
        raise
    took = f"{time.perf_counter() - t0:.2f}s"
    status(f"{msg} ✓ ({'; '.join([took, ', '.join(details)]) if details else took})")
