"""
Authentication helpers.

The desktop app keeps its session in supabase.json. Newer builds store
WorkOS tokens, older ones Cognito tokens; both are JSON strings nested
inside the JSON file.
"""

from __future__ import annotations

import json
from pathlib import Path

from . import config
from .errors import TokenNotFoundError
from .timing import status

TOKEN_KEYS = ("workos_tokens", "cognito_tokens")


def load_config(path: Path | None = None) -> dict:
    path = path or config.config_path()
    if not path.exists():
        raise TokenNotFoundError(
            f"Granola config not found at {path}. Is Granola installed and logged in?",
            path=path,
        )
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise TokenNotFoundError(f"Granola config at {path} is not valid JSON ({exc})", path=path) from exc
    return data if isinstance(data, dict) else {}


def _decode(value) -> dict:
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            return {}
        return decoded if isinstance(decoded, dict) else {}
    return {}


def token_from_config(cfg: dict) -> str | None:
    for key in TOKEN_KEYS:
        token = _decode(cfg.get(key)).get("access_token")
        if isinstance(token, str) and token:
            status(f"Using access token from {key}")
            return token
    return None


def require_token(path: Path | None = None) -> str:
    token = token_from_config(load_config(path))
    if not token:
        raise TokenNotFoundError(
            "No valid access token found in Granola config. "
            "Try logging out and back in to Granola."
        )
    return token


def has_token(path: Path | None = None) -> bool:
    try:
        return token_from_config(load_config(path)) is not None
    except (TokenNotFoundError, OSError):
        return False


def user_info(cfg: dict) -> dict:
    """Signed-in user's profile as stored by the app (may be a JSON string)."""
    return _decode(cfg.get("user_info"))
