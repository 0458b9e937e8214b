"""
CLI entrypoint for granola_cli.

Reads meetings from the Granola desktop app's local cache and, for the
transcript and sync commands, from the Granola API. Run as
`granola <command>` or `python -m granola_cli`.
"""
from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path

from . import __version__ as VERSION
from . import auth
from . import cache
from . import config
from . import io as io_mod
from . import output
from . import timing
from .api_client import GranolaClient
from .attendees import extract_participants
from .errors import GranolaError


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _not_found(query: str) -> int:
    print(f"No meeting found for: {query}", file=sys.stderr)
    return 1


def _print_doc_list(docs: list[dict], args, header: str) -> None:
    if args.json:
        _print_json([output.document_to_json(d) for d in docs])
        return
    print(header)
    for d in docs:
        print(output.format_meeting_list_item(d) + "\n")


# Meetings -------------------------------------------------------------------


def cmd_list(args, store: cache.CacheStore) -> int:
    limit = args.n or args.count or config.DEFAULT_LIST_LIMIT
    meetings = cache.by_updated_desc(cache.list_meetings(store.load()))[:limit]
    _print_doc_list(meetings, args, output.list_header("Recent Meetings", len(meetings)))
    return 0


def cmd_search(args, store: cache.CacheStore) -> int:
    query = " ".join(args.query)
    results = cache.search_documents(query, store.load())[: args.n]
    _print_doc_list(results, args, output.search_header(query, len(results)))
    return 0


def cmd_show(args, store: cache.CacheStore) -> int:
    query = " ".join(args.query)
    doc = cache.find_document(query, store.load())
    if doc is None:
        return _not_found(query)

    if args.json:
        participants = extract_participants(doc, expand_groups=args.expand_groups)
        _print_json(output.document_to_json(doc, participants))
        return 0

    print(output.format_meeting_detail(doc, attendees=not args.no_attendees, expand_groups=args.expand_groups))
    return 0


def cmd_transcript(args, store: cache.CacheStore) -> int:
    query = " ".join(args.query)
    doc = cache.find_document(query, store.load())
    if doc is None:
        return _not_found(query)

    client = GranolaClient(auth.require_token())
    if not (args.json or args.plain or args.raw):
        print(output.c("yellow", f"⚡ Fetching transcript for: {doc.get('title') or doc['id']}..."))

    segments = client.get_document_transcript(doc["id"])
    if not segments:
        print(f"No transcript available for: {doc.get('title') or doc['id']}", file=sys.stderr)
        print("This meeting may not have been recorded or transcribed.", file=sys.stderr)
        return 1

    if args.json:
        _print_json({"id": doc["id"], "title": doc.get("title"), "segments": segments})
        return 0

    print(output.format_transcript(
        doc,
        segments,
        diarize=not args.no_diarize,
        timestamps=not args.no_timestamps,
        attendees=not args.no_attendees,
        expand_groups=args.expand_groups,
        raw=args.raw,
    ))
    return 0


def cmd_export(args, store: cache.CacheStore) -> int:
    doc = cache.find_document(args.query, store.load())
    if doc is None:
        return _not_found(args.query)

    out_path = Path(args.path) if args.path else Path(io_mod.export_filename(doc))
    with timing.step(f"Exporting {doc['id']}") as info:
        written = io_mod.save_export(out_path, output.export_to_markdown(doc))
        info.append(f"{written.stat().st_size} bytes to {written}")
    print(f"{output.emoji('✅')}Exported to: {written}")
    return 0


# People, folders, sharing ---------------------------------------------------


def cmd_people(args, store: cache.CacheStore) -> int:
    people = sorted(cache.get_people(store.load()), key=lambda p: str(p.get("name")).lower())
    if args.json:
        _print_json([
            {
                "name": p.get("name"),
                "email": p.get("email"),
                "company": p.get("company_name") or None,
                "title": p.get("job_title") or None,
            }
            for p in people
        ])
        return 0

    print(f"\n{output.emoji('👥')}People ({len(people)})\n")
    for p in people:
        extra = f" ({p['company_name']})" if p.get("company_name") else ""
        print(f"  {p.get('name')}{extra}")
        if p.get("email"):
            print(f"    {p['email']}")
    print("")
    return 0


def cmd_companies(args, store: cache.CacheStore) -> int:
    companies = cache.get_companies(store.load())
    if args.json:
        _print_json(companies)
        return 0
    print(f"\n{output.emoji('🏢')}Companies ({len(companies)})\n")
    for name in companies:
        print(f"  {name}")
    print("")
    return 0


def cmd_person(args, store: cache.CacheStore) -> int:
    query = " ".join(args.query)
    docs = cache.get_documents_by_person(query, store.load())[: args.n]
    _print_doc_list(docs, args, output.list_header(f"Meetings with: {query}", len(docs)))
    return 0


def cmd_folders(args, store: cache.CacheStore) -> int:
    folders = cache.get_folders(store.load())
    if args.json:
        _print_json(folders)
        return 0
    print(f"\n{output.emoji('📁')}Folders ({len(folders)})\n")
    for f in folders:
        shared = " 🔗" if f["isShared"] and not (args.plain or args.no_emoji) else ""
        print(f"  {f['title']}{shared} ({f['noteCount']} notes)")
        print(f"    ID: {f['id']}")
    print("")
    return 0


def cmd_folder(args, store: cache.CacheStore) -> int:
    query = " ".join(args.query)
    docs = cache.get_documents_by_folder(query, store.load())
    if not docs:
        print(f"No folder found matching: {query}", file=sys.stderr)
        return 1
    _print_doc_list(docs, args, output.list_header(f"Folder: {query}", len(docs)))
    return 0


def cmd_shared(args, store: cache.CacheStore) -> int:
    docs = cache.get_shared_documents(store.load())
    if not docs and not args.json:
        print(f"\n{output.emoji('📤')}No shared documents found\n")
        return 0
    _print_doc_list(docs, args, output.list_header("Shared Documents", len(docs)))
    return 0


# Info -----------------------------------------------------------------------


def cmd_stats(args, store: cache.CacheStore) -> int:
    stats = cache.get_cache_stats(store)
    if args.json:
        _print_json(stats)
    else:
        print(output.format_stats(stats))
    return 0


def cmd_check(args, store: cache.CacheStore) -> int:
    token_ok = auth.has_token()
    stats = cache.get_cache_stats(store)
    if args.json:
        _print_json({"token": token_ok, "cache": stats})
        return 0

    ok, missing = output.emoji("✅"), output.emoji("❌")
    print(f"\n{output.emoji('🔍')}Credential Check\n")
    print(f"API Token:    {ok + 'Available' if token_ok else missing + 'Not found'}")
    print(f"Local Cache:  {ok + 'Found' if stats['exists'] else missing + 'Not found'}")
    if stats["exists"]:
        print(f"  Meetings:   {stats['totalMeetings']}")
        print(f"  With notes: {stats['withNotes']}")
    print("")
    return 0


def cmd_whoami(args, store: cache.CacheStore) -> int:
    state = store.load()
    user = cache.get_current_user(state)
    workspaces = cache.get_workspaces(state)
    if args.json:
        _print_json({"user": user, "workspaces": workspaces})
        return 0

    print(f"\n{output.emoji('🧑')}Logged in to Granola\n")
    if user:
        print(f"Name:      {user['name']}")
        print(f"Email:     {user['email']}")
        for label, key in (("Title", "title"), ("Company", "company"), ("Plan", "plan")):
            if user.get(key):
                print(f"{label + ':':<11}{user[key]}")
        print("")
    else:
        print("User info not available locally.\n")

    if workspaces:
        print(f"Workspaces: {len(workspaces)}")
        for ws in workspaces:
            extra = ", ".join(x for x in (ws["role"], ws["plan"]) if x)
            print(f"  - {ws['name']}" + (f" ({extra})" if extra else ""))
        print("")
    return 0


def cmd_workspaces(args, store: cache.CacheStore) -> int:
    workspaces = cache.get_workspaces(store.load())
    if args.json:
        _print_json(workspaces)
        return 0
    print(f"\n{output.emoji('🏠')}Workspaces ({len(workspaces)})\n")
    for ws in workspaces:
        print(f"  {ws['name']}")
        print(f"    Slug: {ws['slug']}")
        print(f"    Role: {ws['role']}")
        print(f"    Plan: {ws['plan']}")
        print(f"    ID:   {ws['id']}")
        print("")
    return 0


def cmd_sync(args, store: cache.CacheStore) -> int:
    client = GranolaClient(auth.require_token())
    quiet = args.json

    if not quiet:
        print(f"\n{output.emoji('🔄')}Syncing with Granola API...\n")
        print("  Refreshing calendar events...")
    client.refresh_google_events()
    if not quiet:
        print(f"  {output.emoji('✅')}Calendar synced")
        print("  Fetching recent documents...")
    page = client.get_documents(limit=config.SYNC_DOCUMENT_LIMIT)
    count = len(page.get("docs") or []) if isinstance(page, dict) else 0

    if quiet:
        _print_json({"success": True, "documentsRefreshed": count})
        return 0
    print(f"  {output.emoji('✅')}Fetched {count} documents")
    print(f"\n{output.emoji('📝')}Note: The Granola app syncs its local cache automatically.")
    print("   This command refreshes calendar events and fetches recent documents via the API.\n")
    return 0


# Parser ---------------------------------------------------------------------


def _common_flags() -> argparse.ArgumentParser:
    # SUPPRESS so flags given before or after the subcommand both stick
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--json", action="store_true", default=argparse.SUPPRESS, help="Output as JSON (for scripting)")
    common.add_argument("--plain", action="store_true", default=argparse.SUPPRESS, help="Stable output (no emoji, no color)")
    common.add_argument("--no-emoji", action="store_true", default=argparse.SUPPRESS, help="Disable emoji only")
    common.add_argument("--no-color", action="store_true", default=argparse.SUPPRESS, help="Disable ANSI colors (or set NO_COLOR=1)")
    common.add_argument("--debug", action="store_true", default=argparse.SUPPRESS, help="Timestamped diagnostics on stderr")
    return common


def build_parser() -> argparse.ArgumentParser:
    common = _common_flags()
    p = argparse.ArgumentParser(
        prog="granola",
        description="Fast access to your Granola meeting notes.",
        parents=[common],
    )
    p.add_argument("--version", action="store_true", help="Print version and exit")
    sub = p.add_subparsers(dest="command", metavar="<command>")

    def add(name: str, func, help_text: str, aliases=()):
        sp = sub.add_parser(name, aliases=list(aliases), parents=[common], help=help_text, description=help_text)
        sp.set_defaults(func=func)
        return sp

    sp = add("list", cmd_list, "List recent meetings", aliases=["ls"])
    sp.add_argument("count", nargs="?", type=int, help=f"Number of meetings (default: {config.DEFAULT_LIST_LIMIT})")
    sp.add_argument("-n", type=int, help="Alternative way to specify count")

    sp = add("search", cmd_search, "Search by title, notes, or attendee", aliases=["s"])
    sp.add_argument("query", nargs="+")
    sp.add_argument("-n", type=int, default=config.DEFAULT_LIST_LIMIT, help="Max results")

    sp = add("show", cmd_show, "Show meeting details and notes", aliases=["get"])
    sp.add_argument("query", nargs="+", help="Meeting ID or title")
    sp.add_argument("--no-attendees", action="store_true", help="Hide attendees")
    sp.add_argument("--expand-groups", action="store_true", help="Show group member directory (may not have attended)")

    sp = add("transcript", cmd_transcript, "Show meeting transcript (API call)", aliases=["t"])
    sp.add_argument("query", nargs="+", help="Meeting ID or title")
    sp.add_argument("--no-attendees", action="store_true", help="Hide attendees list at start")
    sp.add_argument("--expand-groups", action="store_true", help="Show group member directory (may not have attended)")
    sp.add_argument("--no-diarize", action="store_true", help="Hide You/Them speaker labels")
    sp.add_argument("--no-timestamps", action="store_true", help="Hide timestamps")
    sp.add_argument("--raw", action="store_true", help="Just output the text")

    sp = add("export", cmd_export, "Export meeting to a markdown file")
    sp.add_argument("query", help="Meeting ID or title")
    sp.add_argument("path", nargs="?", help="Output path (default: YYYY-MM-DD-title-slug.md)")

    add("people", cmd_people, "List all people from meetings")
    add("companies", cmd_companies, "List companies from meetings")
    sp = add("person", cmd_person, "List meetings with a specific person")
    sp.add_argument("query", nargs="+", help="Name or email")
    sp.add_argument("-n", type=int, default=config.DEFAULT_LIST_LIMIT, help="Max results")

    add("folders", cmd_folders, "List all folders")
    sp = add("folder", cmd_folder, "List notes in a folder")
    sp.add_argument("query", nargs="+", help="Folder name or ID")
    add("shared", cmd_shared, "List shared documents")

    add("stats", cmd_stats, "Show cache statistics")
    add("check", cmd_check, "Show credential and cache status")
    add("whoami", cmd_whoami, "Show your account details")
    add("workspaces", cmd_workspaces, "List your workspaces", aliases=["ws"])
    add("sync", cmd_sync, "Refresh data from the API")
    return p


def _apply_flag_defaults(args) -> None:
    for flag in ("json", "plain", "no_emoji", "no_color", "debug"):
        if not hasattr(args, flag):
            setattr(args, flag, False)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _apply_flag_defaults(args)

    if args.version:
        print(f"granola {VERSION}")
        return 0

    timing.DEBUG = bool(args.debug) or timing.debug_from_env()
    timing.START_TS = time.perf_counter()

    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    output.set_output_options(output.OutputOptions(
        json=args.json,
        plain=args.plain,
        no_emoji=args.no_emoji,
        no_color=args.no_color,
    ))

    store = cache.CacheStore()
    timing.status(f"Cache path: {store.path}")
    try:
        return args.func(args, store)
    except GranolaError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
