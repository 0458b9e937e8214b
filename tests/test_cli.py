# tests/test_cli.py
import json

import pytest

from conftest import write_cache
from granola_cli import cli
from granola_cli.api_client import GranolaClient


@pytest.fixture
def env(monkeypatch, cache_file, tmp_path):
    config_file = tmp_path / "supabase.json"
    config_file.write_text(json.dumps({"workos_tokens": json.dumps({"access_token": "tok"})}), encoding="utf-8")
    monkeypatch.setenv("GRANOLA_CACHE_PATH", str(cache_file))
    monkeypatch.setenv("GRANOLA_CONFIG_PATH", str(config_file))
    monkeypatch.setenv("NO_COLOR", "1")
    return tmp_path


def test_version(capsys):
    assert cli.main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == "granola 0.1.0"


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 0
    assert "usage: granola" in capsys.readouterr().out


def test_list_json_respects_count(env, capsys):
    assert cli.main(["list", "2", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert [d["id"] for d in data] == ["doc-standup", "doc-sync"]


def test_global_flags_before_subcommand(env, capsys):
    assert cli.main(["--json", "ls", "-n", "1"]) == 0
    assert len(json.loads(capsys.readouterr().out)) == 1


def test_show_json_includes_participants(env, capsys):
    assert cli.main(["show", "doc-sync", "--json", "--expand-groups"]) == 0
    data = json.loads(capsys.readouterr().out)
    participants = data["participants"]
    assert participants["organizer"] == {"name": "Alice Admin", "email": "Alice@Co.com", "isGroup": False}
    assert [a["name"] for a in participants["attendees"]] == ["Bob Builder", "Eng"]
    assert participants["expandedGroups"][0]["group"]["memberCount"] == 2


def test_show_text_by_title(env, capsys):
    assert cli.main(["show", "weekly", "standup", "--plain"]) == 0
    out = capsys.readouterr().out
    assert "# Weekly Standup" in out
    assert "Dana Dev <dana@co.com>" in out


def test_show_unknown_meeting_exits_1(env, capsys):
    assert cli.main(["show", "quarterly", "planning"]) == 1
    assert "No meeting found for: quarterly planning" in capsys.readouterr().err


def test_missing_cache_reports_path(monkeypatch, tmp_path, capsys):
    missing = tmp_path / "gone.json"
    monkeypatch.setenv("GRANOLA_CACHE_PATH", str(missing))
    assert cli.main(["list"]) == 1
    err = capsys.readouterr().err
    assert err.startswith("Error: Granola cache not found at")
    assert str(missing) in err


def test_search_and_person(env, capsys):
    assert cli.main(["s", "roadmap", "--json"]) == 0
    assert [d["id"] for d in json.loads(capsys.readouterr().out)] == ["doc-sync"]

    assert cli.main(["person", "carol", "--json"]) == 0
    assert [d["id"] for d in json.loads(capsys.readouterr().out)] == ["doc-sync"]


def test_export_writes_file(env, capsys):
    target = env / "out" / "sync.md"
    assert cli.main(["export", "doc-sync", str(target), "--plain"]) == 0
    assert target.read_text(encoding="utf-8").startswith("---\ntitle: \"Weekly Sync\"")
    assert f"Exported to: {target}" in capsys.readouterr().out


def test_folder_not_found(env, capsys):
    assert cli.main(["folder", "nothing"]) == 1
    assert "No folder found matching: nothing" in capsys.readouterr().err


def test_stats_and_check_json(env, capsys):
    assert cli.main(["stats", "--json"]) == 0
    assert json.loads(capsys.readouterr().out)["totalMeetings"] == 3

    assert cli.main(["check", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["token"] is True
    assert data["cache"]["exists"] is True


def test_workspaces_and_companies(env, capsys):
    assert cli.main(["ws", "--json"]) == 0
    assert json.loads(capsys.readouterr().out)[0]["slug"] == "co"

    assert cli.main(["companies", "--json"]) == 0
    assert json.loads(capsys.readouterr().out) == ["Co", "Partner"]


def test_transcript_fetches_from_api(env, monkeypatch, capsys):
    calls = []

    def fake_transcript(self, document_id):
        calls.append((self.token, document_id))
        return [{"text": "Hello there", "source": "microphone"}]

    monkeypatch.setattr(GranolaClient, "get_document_transcript", fake_transcript)

    assert cli.main(["t", "weekly", "sync", "--raw"]) == 0
    assert capsys.readouterr().out.strip() == "Hello there"
    # "weekly sync" also matches the trashed copy, which was updated most recently
    assert calls == [("tok", "doc-trashed")]


def test_transcript_empty_exits_1(env, monkeypatch, capsys):
    monkeypatch.setattr(GranolaClient, "get_document_transcript", lambda self, doc_id: [])
    assert cli.main(["transcript", "doc-sync", "--json"]) == 1
    assert "No transcript available for: Weekly Sync" in capsys.readouterr().err


def test_sync_json(env, monkeypatch, capsys):
    monkeypatch.setattr(GranolaClient, "refresh_google_events", lambda self: {})
    monkeypatch.setattr(GranolaClient, "get_documents", lambda self, **kw: {"docs": [{"id": "a"}] * kw["limit"]})

    assert cli.main(["sync", "--json"]) == 0
    assert json.loads(capsys.readouterr().out) == {"success": True, "documentsRefreshed": 50}


def test_export_with_non_string_title(env, monkeypatch, capsys):
    odd = env / "odd-cache.json"
    write_cache(odd, {"documents": {"odd": {"id": "odd", "type": "meeting", "title": 123, "summary": 7,
                                            "created_at": "2025-03-03T09:00:00Z"}}})
    monkeypatch.setenv("GRANOLA_CACHE_PATH", str(odd))
    monkeypatch.chdir(env)

    assert cli.main(["export", "odd", "--plain"]) == 0
    assert (env / "2025-03-03-meeting.md").read_text(encoding="utf-8").startswith('---\ntitle: "Untitled Meeting"')

    assert cli.main(["show", "odd", "--plain"]) == 0
    assert "# (untitled)" in capsys.readouterr().out


def test_undecodable_cache_exits_1(monkeypatch, tmp_path, capsys):
    bad = tmp_path / "cache-v3.json"
    bad.write_bytes(b'{"cache": "\xff\xfe"}')
    monkeypatch.setenv("GRANOLA_CACHE_PATH", str(bad))
    assert cli.main(["list"]) == 1
    assert capsys.readouterr().err.startswith("Error: Could not parse Granola cache at")
