"""
Attendee extraction from a document's `people` field.

The people structure is loosely typed. A record carries an optional
`creator` entry and an `attendees` list; each entry may be an individual
(name/email, sometimes only a nested details.person.name.fullName) or a
mailing-list style group whose details.group.members lists its directory.

Entries are classified once into IndividualEntry / GroupEntry and every
later step works on those. Nothing in here raises for malformed input:
entries that cannot be used are skipped.

Group members are a directory listing, not proof of attendance, so they
are never merged into the attendee list. They are only reported (on
request) in MeetingParticipants.expanded_groups.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Optional, Union

UNKNOWN_NAME = "(unknown)"
GROUP_NAME = "(group)"


@dataclass(frozen=True)
class ExtractedAttendee:
    name: str
    email: Optional[str] = None
    is_group: bool = False
    member_count: Optional[int] = None

    @property
    def key(self) -> str:
        return (self.email or self.name or "").lower()

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"name": self.name, "email": self.email, "isGroup": self.is_group}
        if self.is_group:
            d["memberCount"] = self.member_count
        return d


@dataclass(frozen=True)
class ExpandedGroup:
    group: ExtractedAttendee
    members: tuple[ExtractedAttendee, ...]

    def to_dict(self) -> dict:
        return {"group": self.group.to_dict(), "members": [m.to_dict() for m in self.members]}


@dataclass(frozen=True)
class MeetingParticipants:
    organizer: Optional[ExtractedAttendee]
    attendees: tuple[ExtractedAttendee, ...]
    expanded_groups: Optional[tuple[ExpandedGroup, ...]] = None

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "organizer": self.organizer.to_dict() if self.organizer else None,
            "attendees": [a.to_dict() for a in self.attendees],
        }
        if self.expanded_groups is not None:
            d["expandedGroups"] = [g.to_dict() for g in self.expanded_groups]
        return d


# Raw entry classification ---------------------------------------------------


@dataclass(frozen=True)
class IndividualEntry:
    name: Optional[str]
    email: Optional[str]


@dataclass(frozen=True)
class GroupEntry:
    name: Optional[str]
    email: Optional[str]
    members: tuple

    @property
    def member_count(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class Skipped:
    reason: str


Entry = Union[IndividualEntry, GroupEntry]


def _text(value: Any) -> Optional[str]:
    """Non-empty string or None."""
    if isinstance(value, str) and value:
        return value
    return None


def _dig(obj: Any, *keys: str) -> Any:
    for k in keys:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(k)
    return obj


def _local_part(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    return email.split("@", 1)[0] or None


def _group_members(entry: dict) -> Optional[list]:
    members = _dig(entry, "details", "group", "members")
    if isinstance(members, list) and members:
        return members
    return None


def _classify_individual(entry: dict) -> IndividualEntry:
    name = _text(entry.get("name")) or _text(_dig(entry, "details", "person", "name", "fullName"))
    return IndividualEntry(name=name, email=_text(entry.get("email")))


def classify_entry(entry: Any) -> Union[Entry, Skipped]:
    if not isinstance(entry, dict):
        return Skipped(f"entry is {type(entry).__name__}, not an object")
    members = _group_members(entry)
    if members is not None:
        return GroupEntry(
            name=_text(entry.get("name")),
            email=_text(entry.get("email")),
            members=tuple(members),
        )
    return _classify_individual(entry)


def to_attendee(entry: Union[Entry, Skipped]) -> Union[ExtractedAttendee, Skipped]:
    """Resolve a classified entry to an attendee, or say why it is unusable."""
    if isinstance(entry, Skipped):
        return entry
    if not entry.name and not entry.email:
        return Skipped("no name or email")
    if isinstance(entry, GroupEntry):
        return _group_attendee(entry)
    return ExtractedAttendee(
        name=entry.name or _local_part(entry.email) or UNKNOWN_NAME,
        email=entry.email,
    )


def _group_attendee(entry: GroupEntry) -> ExtractedAttendee:
    return ExtractedAttendee(
        name=entry.name or entry.email or GROUP_NAME,
        email=entry.email,
        is_group=True,
        member_count=entry.member_count,
    )


class _AttendeeList:
    """Insertion-ordered attendees, first occurrence of each key wins."""

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self.items: list[ExtractedAttendee] = []

    def add(self, result: Union[ExtractedAttendee, Skipped]) -> None:
        if isinstance(result, Skipped):
            return
        key = result.key
        if not key or key in self._seen:
            return
        self._seen.add(key)
        self.items.append(result)


def _raw_entries(raw_people: dict) -> Iterator[Any]:
    creator = raw_people.get("creator")
    if creator:
        yield creator
    attendees = raw_people.get("attendees")
    if isinstance(attendees, list):
        yield from attendees


# Public API -----------------------------------------------------------------


def extract_attendees(raw_people: Any) -> list[ExtractedAttendee]:
    """Creator followed by attendees, deduplicated by email (else name)."""
    if not isinstance(raw_people, dict):
        return []
    out = _AttendeeList()
    for entry in _raw_entries(raw_people):
        out.add(to_attendee(classify_entry(entry)))
    return out.items


def extract_group_members(members: Iterable[Any]) -> list[ExtractedAttendee]:
    """Individual members of one group, deduplicated within that group only."""
    out = _AttendeeList()
    for member in members:
        if not isinstance(member, dict):
            continue
        out.add(to_attendee(_classify_individual(member)))
    return out.items


def _expand_groups(raw_people: Any) -> tuple[ExpandedGroup, ...]:
    raw_attendees = raw_people.get("attendees") if isinstance(raw_people, dict) else None
    if not isinstance(raw_attendees, list):
        return ()
    groups = []
    for entry in raw_attendees:
        classified = classify_entry(entry)
        if not isinstance(classified, GroupEntry):
            continue
        groups.append(
            ExpandedGroup(
                group=_group_attendee(classified),
                members=tuple(extract_group_members(classified.members)),
            )
        )
    return tuple(groups)


def extract_participants(document: Any, expand_groups: bool = False) -> MeetingParticipants:
    """
    Organizer + attendees for a document.

    The organizer comes from the calendar event; its display name is
    borrowed from the attendee with the same email when there is one.
    """
    doc = document if isinstance(document, dict) else {}
    attendees = extract_attendees(doc.get("people"))

    organizer = None
    organizer_email = _text(_dig(doc, "google_calendar_event", "organizer", "email"))
    if organizer_email:
        wanted = organizer_email.lower()
        match = next((a for a in attendees if a.email and a.email.lower() == wanted), None)
        organizer = ExtractedAttendee(
            name=match.name if match else (_local_part(organizer_email) or UNKNOWN_NAME),
            email=organizer_email,
        )
        attendees = [a for a in attendees if not (a.email and a.email.lower() == wanted)]

    return MeetingParticipants(
        organizer=organizer,
        attendees=tuple(attendees),
        expanded_groups=_expand_groups(doc.get("people")) if expand_groups else None,
    )


def format_attendee(a: ExtractedAttendee, include_email: bool = False) -> str:
    if include_email and a.email:
        return f"{a.name} <{a.email}>"
    return a.name


def format_attendees(attendees: Iterable[ExtractedAttendee], include_email: bool = False) -> str:
    return ", ".join(format_attendee(a, include_email) for a in attendees)


def format_attendees_multiline(attendees: Iterable[ExtractedAttendee], include_email: bool = True) -> str:
    return "\n".join(f"  - {format_attendee(a, include_email)}" for a in attendees)
