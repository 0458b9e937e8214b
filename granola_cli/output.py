"""
Terminal and file formatting for meetings, transcripts and listings.

Colours and emoji are on by default and switched off by --plain,
--no-color / NO_COLOR, or --no-emoji. JSON output never goes through here
except for document_to_json, which builds the dict the CLI dumps.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .attendees import (
    MeetingParticipants,
    extract_attendees,
    extract_participants,
    format_attendee,
    format_attendees,
    format_attendees_multiline,
)
from .cache import document_date, format_date, format_datetime, meeting_start
from .utils import clock_time, human_size

COLORS = {
    "reset": "\x1b[0m",
    "bold": "\x1b[1m",
    "dim": "\x1b[2m",
    "green": "\x1b[32m",
    "yellow": "\x1b[33m",
    "blue": "\x1b[34m",
    "cyan": "\x1b[36m",
    "gray": "\x1b[90m",
}

GROUP_SECTION_TITLE = "## Group Members (directory, may not have attended)"


@dataclass
class OutputOptions:
    json: bool = False
    plain: bool = False
    no_emoji: bool = False
    no_color: bool = False


OPTIONS = OutputOptions()


def set_output_options(opts: OutputOptions) -> None:
    global OPTIONS
    OPTIONS = opts


def c(color: str, text: str) -> str:
    if OPTIONS.no_color or OPTIONS.plain or os.environ.get("NO_COLOR"):
        return text
    return f"{COLORS[color]}{text}{COLORS['reset']}"


def emoji(e: str) -> str:
    if OPTIONS.no_emoji or OPTIONS.plain:
        return ""
    return f"{e} "


def _str(value) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def doc_title(doc: dict, fallback: str = "(untitled)") -> str:
    return _str(doc.get("title")) or fallback


def _notes(doc: dict) -> Optional[str]:
    return _str(doc.get("notes_markdown")) or _str(doc.get("notes_plain"))


def format_meeting_list_item(doc: dict) -> str:
    date = format_date(meeting_start(doc))
    icon = emoji("📝") if _notes(doc) else "   "
    return f"{icon}{c('dim', date.ljust(20))} {doc_title(doc)}\n   {c('gray', 'ID: ' + str(doc.get('id')))}"


def _participants_lines(p: MeetingParticipants, show_attendees: bool) -> list[str]:
    lines = []
    if p.organizer:
        lines.append(f"{c('dim', 'Organizer:')} {format_attendee(p.organizer, include_email=True)}")
    if show_attendees and p.attendees:
        lines.append(f"{c('dim', 'Attendees:')} {format_attendees(p.attendees, include_email=True)}")

    if show_attendees and p.expanded_groups:
        lines.append("")
        lines.append(c("cyan", GROUP_SECTION_TITLE))
        for eg in p.expanded_groups:
            lines.append(f"{format_attendee(eg.group, include_email=True)} ({eg.group.member_count} members)")
            lines.append(format_attendees_multiline(eg.members) if eg.members else "  - (no members found)")
            lines.append("")
    return lines


def format_meeting_detail(doc: dict, *, attendees: bool = True, expand_groups: bool = False) -> str:
    participants = extract_participants(doc, expand_groups=expand_groups)

    lines = ["", c("bold", f"# {doc_title(doc)}")]
    lines.append(f"{c('dim', 'Date:')} {format_datetime(meeting_start(doc))}")
    lines.extend(_participants_lines(participants, attendees))
    lines.append(f"{c('dim', 'ID:')} {doc.get('id')}")

    summary = _str(doc.get("summary"))
    if summary:
        lines += ["", c("cyan", "## Summary"), summary]

    notes = _notes(doc)
    if notes:
        lines += ["", c("cyan", "## Notes"), notes]
    else:
        lines += ["", c("dim", "*No notes recorded*")]
    return "\n".join(lines) + "\n"


def format_transcript(
    doc: dict,
    segments: list[dict],
    *,
    diarize: bool = True,
    timestamps: bool = True,
    attendees: bool = True,
    expand_groups: bool = False,
    raw: bool = False,
) -> str:
    if raw:
        return "\n\n".join(str(s.get("text") or "") for s in segments)

    lines = ["", f"{c('bold', '# ' + doc_title(doc))} — Transcript"]
    lines.append(f"{c('dim', 'Date:')} {format_datetime(meeting_start(doc))}")
    if attendees:
        lines.extend(_participants_lines(extract_participants(doc, expand_groups=expand_groups), True))
    lines.append(f"{c('dim', 'Segments:')} {len(segments)}")
    lines.append("")

    for seg in segments:
        header = []
        if diarize:
            # microphone = local speaker, system audio = everyone else
            if seg.get("source") == "microphone":
                header.append(c("green", "You"))
            else:
                header.append(c("cyan", "Them"))
        if timestamps and seg.get("start_timestamp"):
            header.append(c("dim", f"[{clock_time(seg['start_timestamp'])}]"))
        if header:
            lines.append(" ".join(header))
        lines.append(str(seg.get("text") or ""))
        lines.append("")
    return "\n".join(lines) + "\n"


def _yaml_str(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def export_to_markdown(doc: dict) -> str:
    title = doc_title(doc, "Untitled Meeting")
    attendees = extract_attendees(doc.get("people"))

    md = [
        "---",
        f"title: {_yaml_str(title)}",
        f"date: {document_date(doc)}",
        "type: meeting-notes",
        "source: granola",
        f"granola_id: {doc.get('id')}",
        f"attendees: [{', '.join(_yaml_str(a.name) for a in attendees)}]",
        "---",
        "",
        f"# {title}",
        "",
        f"**Date:** {format_date(meeting_start(doc))}",
    ]
    if attendees:
        md.append(f"**Attendees:** {format_attendees(attendees, include_email=True)}")
    md.append("")

    summary = _str(doc.get("summary"))
    if summary:
        md += ["## Summary", "", summary, ""]
    notes = _notes(doc)
    if notes:
        md += ["## Notes", "", notes]
    return "\n".join(md) + "\n"


def document_to_json(doc: dict, participants: Optional[MeetingParticipants] = None) -> dict:
    notes = _notes(doc)
    summary = _str(doc.get("summary"))
    out = {
        "id": doc.get("id"),
        "title": _str(doc.get("title")),
        "date": meeting_start(doc),
        "attendees": [a.to_dict() for a in extract_attendees(doc.get("people"))],
        "hasNotes": bool(notes),
        "hasSummary": bool(summary),
        "notes": notes,
        "summary": summary,
    }
    if participants is not None:
        out["participants"] = participants.to_dict()
    return out


def list_header(title: str, count: int) -> str:
    return f"\n{emoji('📅')}{c('bold', title)} ({count})\n"


def search_header(query: str, count: int) -> str:
    return f"\n{emoji('🔍')}{c('bold', 'Search:')} \"{query}\" ({count} results)\n"


def format_stats(stats: dict) -> str:
    return "\n".join([
        "",
        f"{emoji('📊')}{c('bold', 'Granola Stats')}",
        "",
        f"Total meetings:    {stats['totalMeetings']}",
        f"With notes:        {stats['withNotes']}",
        f"With transcripts:  {stats['withTranscripts']}",
        f"Cache location:    {stats['path']}",
        f"Cache size:        {human_size(stats['size'])}",
        "",
    ])
