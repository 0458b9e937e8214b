# tests/conftest.py
import json

import pytest

from granola_cli import output


def write_cache(path, state, *, string_encoded: bool = True):
    """Write a cache-v3.json the way the desktop app does (state inside a JSON string)."""
    inner = {"state": state, "version": 3}
    payload = {"cache": json.dumps(inner) if string_encoded else inner}
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


@pytest.fixture
def sample_state():
    return {
        "documents": {
            "doc-sync": {
                "id": "doc-sync",
                "title": "Weekly Sync",
                "type": "meeting",
                "created_at": "2025-03-03T09:00:00Z",
                "updated_at": "2025-03-03T10:00:00Z",
                "notes_plain": "Discussed the roadmap",
                "notes_markdown": "- Discussed the roadmap",
                "summary": "Roadmap review",
                "people": {
                    "creator": {"name": "Alice Admin", "email": "alice@co.com"},
                    "attendees": [
                        {"name": "Bob Builder", "email": "bob@co.com"},
                        {
                            "name": "Eng",
                            "email": "eng@co.com",
                            "details": {"group": {"members": [{"name": "Sam"}, {"email": "sam@co.com"}]}},
                        },
                    ],
                },
                "google_calendar_event": {
                    "organizer": {"email": "Alice@Co.com"},
                    "start": {"dateTime": "2025-03-03T09:00:00Z"},
                    "attendees": [{"email": "carol@partner.io", "displayName": "Carol Partner"}],
                },
            },
            "doc-standup": {
                "id": "doc-standup",
                "title": "Weekly Standup",
                "type": "meeting",
                "created_at": "2025-03-04T09:00:00Z",
                "updated_at": "2025-03-04T10:00:00Z",
                "people": {"attendees": [{"name": "Dana Dev", "email": "dana@co.com"}]},
            },
            "doc-old-sync": {
                "id": "doc-old-sync",
                "title": "Weekly Sync (old)",
                "type": "meeting",
                "updated_at": "2024-01-01T10:00:00Z",
            },
            "doc-trashed": {
                "id": "doc-trashed",
                "title": "Trashed Weekly Sync",
                "type": "meeting",
                "was_trashed": True,
                "updated_at": "2025-05-01T10:00:00Z",
            },
            "doc-note": {
                "id": "doc-note",
                "title": "Scratch note",
                "type": "note",
                "updated_at": "2025-02-01T10:00:00Z",
            },
        },
        "transcripts": {"doc-sync": [{"text": "hello", "source": "microphone"}]},
        "people": {
            "p1": {"name": "Alice Admin", "email": "alice@co.com", "company_name": "Co", "job_title": "CTO"},
            "p2": {"name": "Carol Partner", "email": "carol@partner.io", "company_name": "Partner"},
            "p3": {"email": "nameless@co.com", "company_name": "Hidden"},
        },
        "documentListsMetadata": {
            "f1": {"id": "f1", "title": "Team", "is_shared": True},
            "f2": {"id": "f2", "title": "Archive", "deleted_at": "2025-01-01T00:00:00Z"},
            "f3": {"id": "f3", "title": "1:1s"},
        },
        "documentLists": {"f1": ["doc-sync", "doc-standup"], "f3": []},
        "sharedDocuments": {
            "s1": {"id": "s1", "title": "Shared plan", "updated_at": "2025-01-01T00:00:00Z"},
            "s2": {"title": "no id"},
        },
        "workspaceData": {
            "workspaces": [
                {"workspace": {"workspace_id": "w1", "display_name": "Co", "slug": "co"}, "role": "admin", "plan_type": "business"},
                {"workspace": {}},
            ]
        },
    }


@pytest.fixture
def cache_file(tmp_path, sample_state):
    return write_cache(tmp_path / "cache-v3.json", sample_state)


@pytest.fixture(autouse=True)
def _plain_output():
    """Reset output options so colour codes never leak between tests."""
    output.set_output_options(output.OutputOptions(no_color=True, no_emoji=True))
    yield
    output.set_output_options(output.OutputOptions())
