"""
Read-only access to Granola's local cache file.

The desktop app writes cache-v3.json, a JSON object whose `cache` member
is itself a JSON-encoded string holding {"state": {...}}. The state holds
documents keyed by id plus side tables (transcripts, people, folders,
workspaces, shared documents).

CacheStore keeps the last parsed snapshot together with the file's mtime
and only re-parses when the mtime moves. The file can be tens of MB, so
commands that touch it several times share one parse.
"""

from __future__ import annotations

import datetime as dt
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from . import auth
from . import config
from .errors import CacheNotFoundError, CacheParseError, TokenNotFoundError
from .timing import status, step
from .utils import human_size


@dataclass(frozen=True)
class CacheState:
    raw: dict = field(default_factory=dict)

    def _table(self, key: str) -> dict:
        value = self.raw.get(key)
        return value if isinstance(value, dict) else {}

    @property
    def documents(self) -> dict:
        return self._table("documents")

    @property
    def transcripts(self) -> dict:
        return self._table("transcripts")

    @property
    def people(self) -> dict:
        return self._table("people")

    @property
    def folder_metadata(self) -> dict:
        return self._table("documentListsMetadata")

    @property
    def folder_lists(self) -> dict:
        return self._table("documentLists")

    @property
    def shared_documents(self) -> dict:
        return self._table("sharedDocuments")

    @property
    def workspace_data(self) -> dict:
        return self._table("workspaceData")


def parse_cache_file(text: str) -> CacheState:
    data = json.loads(text)
    inner = data.get("cache") if isinstance(data, dict) else None
    if isinstance(inner, str):
        inner = json.loads(inner)
    state = inner.get("state") if isinstance(inner, dict) else None
    return CacheState(state if isinstance(state, dict) else {})


class CacheStore:
    """Snapshot of the cache file, re-read only when the file changes."""

    def __init__(self, path: Path | None = None):
        self.path = path or config.cache_path()
        self._state: Optional[CacheState] = None
        self._mtime: Optional[float] = None
        self._pinned = False

    @classmethod
    def from_state(cls, state: CacheState | dict, mtime: float = 0.0) -> "CacheStore":
        """A store that always serves `state` and never touches disk."""
        store = cls(Path("<memory>"))
        store._state = state if isinstance(state, CacheState) else CacheState(state)
        store._mtime = mtime
        store._pinned = True
        return store

    @property
    def mtime(self) -> Optional[float]:
        return self._mtime

    def exists(self) -> bool:
        return self.path.exists()

    def reload_if_stale(self) -> CacheState:
        if self._pinned:
            return self._state
        if not self.exists():
            raise CacheNotFoundError(self.path)

        mtime = self.path.stat().st_mtime
        if self._state is not None and mtime == self._mtime:
            return self._state

        with step(f"Parsing {self.path}") as info:
            try:
                raw = self.path.read_bytes()
                info.append(human_size(len(raw)))
                state = parse_cache_file(raw.decode("utf-8"))
            except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
                raise CacheParseError(self.path, str(exc)) from exc
            info.append(f"{len(state.documents)} documents")
        self._state = state
        self._mtime = mtime
        status(f"Loaded {len(state.documents)} documents, {len(state.transcripts)} transcripts")
        return state

    def load(self) -> CacheState:
        return self.reload_if_stale()


# Dates ----------------------------------------------------------------------


def parse_timestamp(value: Any) -> Optional[dt.datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        # no offset: the app wrote local wall-clock time
        parsed = parsed.astimezone()
    return parsed


def _epoch(value: Any) -> float:
    parsed = parse_timestamp(value)
    return parsed.timestamp() if parsed else 0.0


def by_updated_desc(docs: Iterable[dict]) -> list[dict]:
    return sorted(docs, key=lambda d: _epoch(d.get("updated_at")), reverse=True)


def meeting_start(doc: dict) -> Optional[str]:
    event = doc.get("google_calendar_event")
    start = event.get("start") if isinstance(event, dict) else None
    when = start.get("dateTime") if isinstance(start, dict) else None
    return when or doc.get("created_at")


def document_date(doc: dict) -> str:
    """ISO date (YYYY-MM-DD) of the meeting, or 'unknown'."""
    parsed = parse_timestamp(meeting_start(doc))
    return parsed.astimezone(dt.timezone.utc).date().isoformat() if parsed else "unknown"


def format_date(value: Any) -> str:
    parsed = parse_timestamp(value)
    if not parsed:
        return "unknown date"
    return parsed.astimezone().strftime("%a %d %b %Y")


def format_datetime(value: Any) -> str:
    parsed = parse_timestamp(value)
    if not parsed:
        return "unknown date"
    local = parsed.astimezone()
    return f"{local.strftime('%a %d %b %Y')} at {local.strftime('%H:%M %Z')}".rstrip()


# Documents ------------------------------------------------------------------


def list_documents(state: CacheState) -> list[dict]:
    docs = []
    for doc_id, doc in state.documents.items():
        if not isinstance(doc, dict):
            continue
        docs.append(doc if doc.get("id") else {**doc, "id": doc_id})
    return docs


def list_meetings(state: CacheState) -> list[dict]:
    return [d for d in list_documents(state) if d.get("type") == "meeting" and not d.get("was_trashed")]


def _lower(value: Any) -> str:
    return value.lower() if isinstance(value, str) else ""


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def find_document(query: str, state: CacheState) -> Optional[dict]:
    """
    Exact id match first; otherwise the most recently updated document
    whose title contains every query word longer than two characters.
    """
    docs = list_documents(state)
    for doc in docs:
        if doc.get("id") == query:
            return doc

    words = [w for w in query.lower().split() if len(w) > 2]
    matches = [d for d in docs if all(w in _lower(d.get("title")) for w in words)]
    matches = by_updated_desc(matches)
    return matches[0] if matches else None


def people_array(people: Any) -> list[dict]:
    """The `people` field as a flat list (it is stored as a list or a mapping)."""
    if isinstance(people, list):
        values = people
    elif isinstance(people, dict):
        values = list(people.values())
    else:
        return []
    return [p for p in values if isinstance(p, dict)]


def search_documents(query: str, state: CacheState) -> list[dict]:
    q = query.lower()

    def matches(doc: dict) -> bool:
        names = " ".join(_lower(p.get("name")) for p in people_array(doc.get("people")))
        return q in _lower(doc.get("title")) or q in _lower(doc.get("notes_plain")) or q in names

    return by_updated_desc(d for d in list_meetings(state) if matches(d))


def _any_named(entries: Any, q: str, name_key: str = "name") -> bool:
    if not isinstance(entries, list):
        return False
    return any(
        isinstance(e, dict) and (q in _lower(e.get(name_key)) or q in _lower(e.get("email")))
        for e in entries
    )


def get_documents_by_person(query: str, state: CacheState) -> list[dict]:
    q = query.lower()

    def surfaces(doc: dict) -> Iterable[Callable[[], bool]]:
        people = doc.get("people")
        event = doc.get("google_calendar_event")
        yield lambda: q in _lower(doc.get("title"))
        yield lambda: _any_named(people_array(people), q)
        yield lambda: isinstance(event, dict) and _any_named(event.get("attendees"), q, "displayName")
        if isinstance(people, dict):
            yield lambda: _any_named([people.get("creator")], q)
            yield lambda: _any_named(people.get("attendees"), q)

    return by_updated_desc(d for d in list_meetings(state) if any(check() for check in surfaces(d)))


def get_transcripts(state: CacheState) -> dict:
    return state.transcripts


def get_document_transcript(document_id: str, state: CacheState) -> Optional[list]:
    segments = state.transcripts.get(document_id)
    return segments if isinstance(segments, list) else None


# People ---------------------------------------------------------------------


def get_people(state: CacheState) -> list[dict]:
    return [p for p in state.people.values() if isinstance(p, dict) and p.get("name")]


def get_companies(state: CacheState) -> list[str]:
    return sorted({p["company_name"] for p in get_people(state) if _text(p.get("company_name"))})


def get_current_user(state: CacheState, config_file: Path | None = None) -> Optional[dict]:
    try:
        cfg = auth.load_config(config_file)
    except (TokenNotFoundError, OSError):
        return None
    info = auth.user_info(cfg)
    if not info.get("email"):
        return None

    meta = info.get("user_metadata") if isinstance(info.get("user_metadata"), dict) else {}
    profile = next((p for p in state.people.values() if isinstance(p, dict) and p.get("email") == info["email"]), {})
    return {
        "id": info.get("id"),
        "name": profile.get("name") or meta.get("name") or "Unknown",
        "email": info["email"],
        "company": profile.get("company_name") or meta.get("hd"),
        "title": profile.get("job_title"),
        "avatar": profile.get("avatar") or meta.get("picture"),
        "plan": profile.get("subscription_name"),
    }


# Folders, workspaces, sharing -----------------------------------------------


def get_folders(state: CacheState) -> list[dict]:
    lists = state.folder_lists
    folders = []
    for meta in state.folder_metadata.values():
        if not isinstance(meta, dict) or meta.get("deleted_at"):
            continue
        doc_ids = lists.get(meta.get("id"))
        folders.append({
            "id": meta.get("id"),
            "title": _text(meta.get("title")) or "(untitled)",
            "noteCount": len(doc_ids) if isinstance(doc_ids, list) else 0,
            "visibility": meta.get("visibility") or "private",
            "isShared": bool(meta.get("is_shared")),
        })
    return sorted(folders, key=lambda f: f["title"].lower())


def get_documents_by_folder(query: str, state: CacheState) -> list[dict]:
    q = query.lower()
    folder = next(
        (f for f in get_folders(state) if f["id"] == query or q in f["title"].lower()),
        None,
    )
    if folder is None:
        return []
    doc_ids = state.folder_lists.get(folder["id"])
    wanted = set(doc_ids) if isinstance(doc_ids, list) else set()
    return by_updated_desc(d for d in list_documents(state) if d["id"] in wanted)


def get_shared_documents(state: CacheState) -> list[dict]:
    docs = [d for d in state.shared_documents.values() if isinstance(d, dict) and d.get("id")]
    return by_updated_desc(docs)


def get_workspaces(state: CacheState) -> list[dict]:
    entries = state.workspace_data.get("workspaces")
    if not isinstance(entries, list):
        return []
    workspaces = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        ws = entry.get("workspace") if isinstance(entry.get("workspace"), dict) else {}
        workspaces.append({
            "id": ws.get("workspace_id") or "",
            "name": ws.get("display_name") or "(unnamed)",
            "slug": ws.get("slug") or "",
            "role": entry.get("role") or "member",
            "plan": entry.get("plan_type") or "free",
        })
    return workspaces


# Stats ----------------------------------------------------------------------


def get_cache_stats(store: CacheStore) -> dict:
    if not store.exists():
        return {
            "path": str(store.path),
            "exists": False,
            "size": 0,
            "totalMeetings": 0,
            "withNotes": 0,
            "withTranscripts": 0,
        }
    state = store.load()
    meetings = list_meetings(state)
    return {
        "path": str(store.path),
        "exists": True,
        "size": store.path.stat().st_size,
        "totalMeetings": len(meetings),
        "withNotes": sum(1 for m in meetings if m.get("notes_markdown") or m.get("notes_plain")),
        "withTranscripts": len(state.transcripts),
    }
