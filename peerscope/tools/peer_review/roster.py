"""Reader for the roster / group-set CSV exported from Canvas."""

import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence

LOG = logging.getLogger(__name__)

FIXED_COLUMNS = ['Student', 'ID', 'SIS User ID', 'SIS Login ID', 'Integration ID', 'Section']


@dataclass
class RosterEntry:
    """One student and the group they belong to in every group set."""

    student_id: str
    student_name: str = ''
    section: str = ''
    groups: Dict[str, str] = field(default_factory=dict)


@dataclass
class Roster:
    """Parsed roster keyed by student id."""

    group_sets: List[str]
    members: Dict[str, RosterEntry]

    def group_assignment(self, group_set: str) -> Dict[str, str]:
        """Student id -> group name for one group set."""
        if group_set not in self.group_sets:
            raise KeyError(f"Unknown group set {group_set!r}; available: {self.group_sets}")
        return {sid: entry.groups.get(group_set, '') for sid, entry in self.members.items()}

    def groups(self, group_set: str) -> List[str]:
        """Sorted unique group names in one group set."""
        return sorted({g for g in self.group_assignment(group_set).values() if g})

    def group_of(self, student_id: str, group_set: str) -> str:
        entry = self.members.get(student_id)
        return entry.groups.get(group_set, '') if entry else ''


def parse_roster_rows(rows: Sequence[Dict[str, str]], headers: Sequence[str]) -> Roster:
    """Build a Roster from DictReader rows.

    Any header outside the fixed Canvas columns is a group set. Rows without
    an SIS User ID or ID are skipped.
    """
    headers = [(h or '').replace('\ufeff', '').strip() for h in headers]
    group_sets = [h for h in headers if h and h not in FIXED_COLUMNS]

    members: Dict[str, RosterEntry] = {}
    skipped = 0
    for row in rows:
        row = {(k or '').replace('\ufeff', '').strip(): (v or '').strip() for k, v in row.items()}
        student_id = row.get('SIS User ID') or row.get('ID') or ''
        if not student_id:
            skipped += 1
            continue
        members[student_id] = RosterEntry(
            student_id=student_id,
            student_name=row.get('Student', ''),
            section=row.get('Section', ''),
            groups={gs: row.get(gs, '') for gs in group_sets},
        )

    LOG.info(f"Roster loaded: {len(members)} students, group sets: {group_sets}")
    if skipped:
        LOG.debug(f"Skipped {skipped} roster rows without a student id")
    return Roster(group_sets=group_sets, members=members)


def parse_roster_text(text: str) -> Roster:
    """Parse a roster CSV held in memory."""
    reader = csv.DictReader(io.StringIO(text.lstrip('\ufeff')))
    rows = list(reader)
    return parse_roster_rows(rows, reader.fieldnames or [])


def read_roster(csv_path: Path) -> Roster:
    """Read a roster CSV from disk."""
    with open(csv_path, 'r', encoding='utf-8-sig', newline='') as f:
        reader = csv.DictReader(f)
        rows = list(reader)
        return parse_roster_rows(rows, reader.fieldnames or [])
