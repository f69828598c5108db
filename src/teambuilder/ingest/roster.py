"""Helpers to load roster CSVs and emit canonical player records."""

from __future__ import annotations

import csv
import logging
import re
from dataclasses import dataclass, field
from io import StringIO
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel

from teambuilder.models import MAX_GROUP_SIZE, Gender, Player, PlayerGroup
from teambuilder.models.player import SKILL_MAX, SKILL_MIN


logger = logging.getLogger(__name__)

DEFAULT_SKILL = 5.0

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_LIST_SPLIT = re.compile(r"[,;]")
_TRUTHY = {"1", "true", "t", "yes", "y", "x", "handler"}
_NO_OVERRIDE = {"", "n/a", "na", "none", "-"}

# Header substrings checked in order; the first unclaimed header containing the token wins.
_HEADER_TOKENS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("exec_skill", ("exec",)),
    ("name", ("name",)),
    ("gender", ("gender", "sex")),
    ("skill", ("skill", "rating")),
    ("teammates", ("teammate",)),
    ("avoid", ("avoid",)),
    ("email", ("email",)),
    ("handler", ("handler",)),
    ("group", ("group",)),
)

DEFAULT_ROSTER_MAPPING: Dict[str, str] = {
    "name": "Name",
    "gender": "Gender",
    "skill": "Skill Rating",
    "exec_skill": "Exec Skill Rating",
    "teammates": "Teammate Requests",
    "avoid": "Avoid Requests",
    "email": "Email",
    "handler": "Handler",
    "group": "Group",
}


class RosterRow(BaseModel):
    row_number: int
    raw_name: str = ""
    raw_gender: Optional[str] = None
    raw_skill: Optional[str] = None
    raw_exec_skill: Optional[str] = None
    raw_teammates: Optional[str] = None
    raw_avoid: Optional[str] = None
    raw_email: Optional[str] = None
    raw_handler: Optional[str] = None
    raw_group: Optional[str] = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, str], mapping: Mapping[str, str], *, row_number: int) -> "RosterRow":
        def extract(key: str) -> Optional[str]:
            column = mapping.get(key)
            if not column:
                return None
            value = row.get(column)
            return value.strip() if value is not None else None

        return cls(
            row_number=row_number,
            raw_name=extract("name") or "",
            raw_gender=extract("gender"),
            raw_skill=extract("skill"),
            raw_exec_skill=extract("exec_skill"),
            raw_teammates=extract("teammates"),
            raw_avoid=extract("avoid"),
            raw_email=extract("email"),
            raw_handler=extract("handler"),
            raw_group=extract("group"),
        )

    def is_blank(self) -> bool:
        values = (
            self.raw_name,
            self.raw_gender,
            self.raw_skill,
            self.raw_exec_skill,
            self.raw_teammates,
            self.raw_avoid,
            self.raw_email,
            self.raw_handler,
            self.raw_group,
        )
        return not any(values)


@dataclass
class RosterReport:
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def error(self, message: str) -> None:
        logger.warning(message)
        self.errors.append(message)


def infer_roster_mapping(headers: Iterable[str]) -> Dict[str, str]:
    """Guess the column for each roster field from header substrings."""

    available = [header for header in headers if header and header.strip()]
    claimed: set[str] = set()
    mapping: Dict[str, str] = {}
    for key, tokens in _HEADER_TOKENS:
        for header in available:
            if header in claimed:
                continue
            lowered = header.strip().lower()
            if any(token in lowered for token in tokens):
                mapping[key] = header
                claimed.add(header)
                break
    return mapping


def _read_rows(reader: csv.DictReader, mapping: Optional[Mapping[str, str]]) -> List[RosterRow]:
    headers = reader.fieldnames or []
    mapping = mapping or infer_roster_mapping(headers)
    name_column = mapping.get("name")
    if not name_column or name_column not in headers:
        listed = ", ".join(header for header in headers if header) or "none"
        raise ValueError(f"Roster has no name column (headers: {listed})")
    rows: List[RosterRow] = []
    # Row 1 is the header.
    for offset, raw in enumerate(reader, start=2):
        row = RosterRow.from_mapping(raw, mapping, row_number=offset)
        if row.is_blank():
            continue
        rows.append(row)
    return rows


def parse_roster_csv(text: str, *, mapping: Optional[Mapping[str, str]] = None) -> List[RosterRow]:
    reader = csv.DictReader(StringIO(text.lstrip("\ufeff")))
    return _read_rows(reader, mapping)


def load_roster_csv(path: Path, *, mapping: Optional[Mapping[str, str]] = None) -> List[RosterRow]:
    with path.open(newline="", encoding="utf-8-sig") as f:
        return _read_rows(csv.DictReader(f), mapping)


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-") or "player"


def _parse_gender(raw: Optional[str], row: int, report: RosterReport) -> Gender:
    text = (raw or "").strip().upper()
    if text in {"M", "MALE"}:
        return "M"
    if text in {"F", "FEMALE"}:
        return "F"
    if text and text != "OTHER":
        report.warn(f"Row {row}: Unknown gender {raw!r}, defaulting to Other")
    return "Other"


def _parse_skill(raw: Optional[str], row: int, report: RosterReport) -> float:
    text = (raw or "").strip()
    if not text:
        return DEFAULT_SKILL
    try:
        value = float(text)
    except ValueError:
        report.warn(f"Row {row}: Invalid skill rating {text!r}, defaulting to {DEFAULT_SKILL:g}")
        return DEFAULT_SKILL
    if value < SKILL_MIN or value > SKILL_MAX:
        report.warn(f"Row {row}: Skill rating {value:g} outside 0-10, clamped")
    return value


def _parse_exec_skill(raw: Optional[str], row: int, report: RosterReport) -> Optional[float]:
    text = (raw or "").strip()
    if text.lower() in _NO_OVERRIDE:
        return None
    try:
        value = float(text)
    except ValueError:
        report.warn(f"Row {row}: Invalid exec skill rating {text!r}, ignoring override")
        return None
    if value < SKILL_MIN or value > SKILL_MAX:
        report.warn(f"Row {row}: Exec skill rating {value:g} outside 0-10, clamped")
    return value


def _parse_list(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [name.strip() for name in _LIST_SPLIT.split(raw) if name.strip()]


def _parse_email(raw: Optional[str], row: int, report: RosterReport) -> Optional[str]:
    text = (raw or "").strip()
    if not text:
        return None
    if not _EMAIL_PATTERN.match(text):
        report.warn(f"Row {row}: Invalid email format {text!r}")
        return None
    return text


def _parse_flag(raw: Optional[str]) -> bool:
    return (raw or "").strip().lower() in _TRUTHY


def rows_to_players(rows: Sequence[RosterRow]) -> Tuple[List[Player], List[PlayerGroup], RosterReport]:
    """Convert parsed rows to players plus any groups named in a group column.

    Rows without a name or repeating an earlier name are reported as errors
    and skipped; every other problem is a warning and the row is kept.
    """

    report = RosterReport()
    players: List[Player] = []
    seen: set[str] = set()
    group_members: Dict[str, List[str]] = {}
    group_labels: Dict[str, str] = {}
    group_ids: Dict[str, str] = {}

    for row in rows:
        name = row.raw_name.strip()
        if not name:
            report.error(f"Row {row.row_number}: Missing player name")
            continue
        key = name.lower()
        if key in seen:
            report.error(f"Row {row.row_number}: Duplicate player name {name!r}")
            continue
        seen.add(key)

        player_id = f"{_slug(name)}-{row.row_number}"
        label = (row.raw_group or "").strip()
        group_id: Optional[str] = None
        if label:
            group_key = label.lower()
            if group_key not in group_ids:
                base = f"group-{_slug(label)}"
                group_ids[group_key] = base if base not in group_ids.values() else f"{base}-{row.row_number}"
                group_labels[group_key] = label
            members = group_members.setdefault(group_key, [])
            if len(members) >= MAX_GROUP_SIZE:
                report.warn(
                    f"Row {row.row_number}: Group {label!r} already has {MAX_GROUP_SIZE} players; "
                    f"{name} left ungrouped"
                )
            else:
                members.append(player_id)
                group_id = group_ids[group_key]

        players.append(
            Player(
                player_id=player_id,
                name=name,
                gender=_parse_gender(row.raw_gender, row.row_number, report),
                skill_rating=_parse_skill(row.raw_skill, row.row_number, report),
                exec_skill_rating=_parse_exec_skill(row.raw_exec_skill, row.row_number, report),
                teammate_requests=_parse_list(row.raw_teammates),
                avoid_requests=_parse_list(row.raw_avoid),
                is_handler=_parse_flag(row.raw_handler),
                group_id=group_id,
                email=_parse_email(row.raw_email, row.row_number, report),
            )
        )

    for player in players:
        for kind, names in (("Teammate", player.teammate_requests), ("Avoid", player.avoid_requests)):
            for name in names:
                if name.lower() not in seen:
                    report.warn(f"Player {player.name!r}: {kind} request {name!r} not found in roster")

    groups = [
        PlayerGroup(group_id=group_ids[key], label=group_labels[key], player_ids=members)
        for key, members in group_members.items()
        if members
    ]
    if not players and not report.errors:
        report.error("No valid players found in roster")
    return players, groups, report


def load_players_from_csv(
    path: Path,
    *,
    mapping: Optional[Mapping[str, str]] = None,
) -> Tuple[List[Player], List[PlayerGroup], RosterReport]:
    return rows_to_players(load_roster_csv(path, mapping=mapping))
