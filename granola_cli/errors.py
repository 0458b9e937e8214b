"""
Exception types surfaced to the CLI.
"""

from __future__ import annotations

from pathlib import Path


class GranolaError(RuntimeError):
    """Base class for failures the CLI reports as a readable message."""


class CacheNotFoundError(GranolaError):
    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Granola cache not found at {path}. Is Granola installed?")


class TokenNotFoundError(GranolaError):
    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message)


class ApiError(GranolaError):
    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"API error {status_code}: {body or 'no response body'}")


class CacheParseError(GranolaError):
    def __init__(self, path: Path, detail: str):
        self.path = path
        super().__init__(f"Could not parse Granola cache at {path}: {detail}")
