"""
Granola API client.

Contains:
- GranolaClient: thin requests wrapper over Granola's (undocumented) API.
  Every endpoint is a POST with a JSON body and a bearer token.
- iter_documents: cursor pagination over get-documents
- normalize_transcript: flattens the shapes get-document-transcript returns
"""

from __future__ import annotations

import json
from typing import Any, Iterator, Optional

import requests

from . import config
from .errors import ApiError, GranolaError
from .timing import status, step


def normalize_transcript(payload: Any) -> list[dict]:
    """
    The transcript endpoint returns a bare list of segments, but older
    responses wrap it as {"transcript": [...]} or come back as an object
    keyed by segment index.
    """
    if isinstance(payload, list):
        return [s for s in payload if isinstance(s, dict)]
    if not isinstance(payload, dict):
        return []
    if isinstance(payload.get("transcript"), list):
        return [s for s in payload["transcript"] if isinstance(s, dict)]
    values = list(payload.values())
    if values and isinstance(values[0], dict):
        return [v for v in values if isinstance(v, dict)]
    return []


class GranolaClient:
    def __init__(self, token: str | None = None, *, base_url: str | None = None, timeout: float = config.API_TIMEOUT_S):
        self.token = token
        self.base_url = (base_url or config.api_base()).rstrip("/")
        self.timeout = timeout

    def _request(self, path: str, body: Optional[dict] = None) -> Any:
        if not self.token:
            raise GranolaError("No API token set. Pass a token to GranolaClient.")

        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {self.token}", "Content-Type": "application/json"}

        with step(f"POST {path}") as info:
            try:
                r = requests.post(url, headers=headers, data=json.dumps(body or {}), timeout=self.timeout)
            except requests.RequestException as exc:
                raise GranolaError(f"Request to {url} failed: {exc}") from exc
            info.append(f"HTTP {r.status_code}")

        if not 200 <= r.status_code < 300:
            raise ApiError(r.status_code, (r.text or "").strip())

        # proxies and captive portals answer 200 with an HTML page
        try:
            return r.json()
        except ValueError as exc:
            snippet = (r.text or "").strip()[:200]
            raise ApiError(r.status_code, f"response is not JSON: {snippet or 'empty body'}") from exc

    def get_workspaces(self) -> dict:
        return self._request("/v1/get-workspaces", {})

    def get_documents(
        self,
        *,
        workspace_id: str | None = None,
        limit: int | None = None,
        cursor: str | None = None,
    ) -> dict:
        body = {"workspace_id": workspace_id, "limit": limit, "cursor": cursor}
        return self._request("/v2/get-documents", {k: v for k, v in body.items() if v is not None})

    def iter_documents(self, *, workspace_id: str | None = None, limit: int | None = None) -> Iterator[dict]:
        cursor = None
        while True:
            page = self.get_documents(workspace_id=workspace_id, limit=limit, cursor=cursor)
            docs = page.get("docs") if isinstance(page, dict) else None
            for doc in docs or []:
                yield doc
            cursor = page.get("next_cursor") if isinstance(page, dict) else None
            if not cursor:
                return
            status(f"Next page (cursor={cursor})")

    def get_document_metadata(self, document_id: str) -> dict:
        return self._request("/v1/get-document-metadata", {"document_id": document_id})

    def get_document_transcript(self, document_id: str) -> list[dict]:
        return normalize_transcript(
            self._request("/v1/get-document-transcript", {"document_id": document_id})
        )

    def get_people(self) -> Any:
        return self._request("/v1/get-people", {})

    def refresh_google_events(self) -> Any:
        return self._request("/v1/refresh-google-events", {})

    def get_subscriptions(self) -> Any:
        return self._request("/v1/get-subscriptions", {})

    def get_feature_flags(self) -> Any:
        return self._request("/v1/get-feature-flags", {})
