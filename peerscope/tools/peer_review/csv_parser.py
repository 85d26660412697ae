"""Parser for Canvas peer-review CSV exports."""

import csv
import io
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .models import Review
from .rubric import CANVAS_PEER_REVIEW_V1, ColumnSchema

LOG = logging.getLogger(__name__)

POSITIONAL = 'positional'
HEADER = 'header'
COLUMN_STRATEGIES = (POSITIONAL, HEADER)


class NoDataError(ValueError):
    """Raised when an export has no data rows."""


@dataclass
class ColumnMapping:
    """Column index per role, resolved once per file."""

    indices: Dict[str, int]
    strategy: str
    schema_version: str
    fallback_roles: List[str] = field(default_factory=list)

    def describe(self) -> str:
        if self.fallback_roles:
            return f"{self.strategy} (positional fallback for {', '.join(self.fallback_roles)})"
        return self.strategy


@dataclass
class ParsedReviews:
    """Reviews parsed from one export plus the layout that was used."""

    reviews: List[Review]
    mapping: ColumnMapping
    skipped_rows: int = 0


def clean_header(header: Optional[str]) -> str:
    """Strip BOM characters and whitespace from a header cell."""
    if not header:
        return ''
    return header.replace('\ufeff', '').strip()


def _normalize(header: str) -> str:
    return ' '.join(clean_header(header).lower().split())


def resolve_columns(header: Sequence[str], strategy: str = POSITIONAL,
                    schema: ColumnSchema = CANVAS_PEER_REVIEW_V1) -> ColumnMapping:
    """Resolve the column index of every role in the schema.

    Args:
        header: Header row of the export
        strategy: 'positional' or 'header'
        schema: Column schema to resolve

    Returns:
        ColumnMapping describing where each role lives
    """
    if strategy not in COLUMN_STRATEGIES:
        raise ValueError(f"Unknown column strategy: {strategy!r} (expected one of {COLUMN_STRATEGIES})")

    indices = {role: schema.positional_index(role) for role in schema.roles}
    mapping = ColumnMapping(indices=indices, strategy=strategy, schema_version=schema.version)

    if len(header) < len(schema.roles):
        LOG.warning(f"Header has {len(header)} columns, expected {len(schema.roles)}; "
                    "missing columns are read as empty")

    if strategy == HEADER:
        normalized = [_normalize(h) for h in header]
        # criterion columns are positional and never available to leading roles
        claimed = {schema.positional_index(key) for key in schema.criteria_keys}
        for role in schema.leading_roles:
            found = None
            for hint in schema.header_hints.get(role, ()):
                for i, name in enumerate(normalized):
                    if i not in claimed and hint in name:
                        found = i
                        break
                if found is not None:
                    break
            if found is None:
                mapping.fallback_roles.append(role)
            else:
                indices[role] = found
                claimed.add(found)

    LOG.info(f"Column mapping resolved using {mapping.describe()} strategy")
    return mapping


def parse_grade(value: Optional[str]) -> Optional[float]:
    """Parse a grade cell; blank or unreadable cells mean "not graded"."""
    if value is None:
        return None
    text = str(value).strip()
    if text == '':
        return None
    try:
        grade = float(text)
    except ValueError:
        LOG.debug(f"Unparseable grade {text!r} treated as not graded")
        return None
    if not math.isfinite(grade):
        LOG.debug(f"Non-finite grade {text!r} treated as not graded")
        return None
    return grade


def split_identity(value: Optional[str]) -> Tuple[str, str]:
    """Split "681510314 ARREERAT WISETMUEN" into (id, full name)."""
    if not value:
        return '', ''
    parts = value.strip().split(None, 1)
    if not parts:
        return '', ''
    if len(parts) == 1:
        return parts[0], ''
    return parts[0], parts[1]


def _cell(row: Sequence[str], index: int) -> str:
    if index < len(row) and row[index] is not None:
        return row[index]
    return ''


def parse_row(row: Sequence[str], mapping: ColumnMapping, index: int,
              schema: ColumnSchema = CANVAS_PEER_REVIEW_V1) -> Optional[Review]:
    """Turn one data row into a Review, or None for rows without a student."""
    cols = mapping.indices
    student_name = _cell(row, cols['student_name']).strip()
    if not student_name:
        return None

    grader_name = _cell(row, cols['review_assigned']).strip()
    student_id, student_full_name = split_identity(student_name)
    grader_id, grader_full_name = split_identity(grader_name)

    comments = {key: _cell(row, cols[key]).strip() for key in schema.criteria_keys}

    return Review(
        id=f"review_{index}",
        student_name=student_name,
        student_id=student_id,
        student_full_name=student_full_name,
        grader_name=grader_name,
        grader_id=grader_id,
        grader_full_name=grader_full_name,
        grade_given=parse_grade(_cell(row, cols['review_completed'])),
        grade_average=parse_grade(_cell(row, cols['grade_average'])),
        submission_comments=_cell(row, cols['submission_comments']).strip(),
        comments=comments,
    )


def _is_blank(row: Sequence[str]) -> bool:
    return all(not (cell or '').strip() for cell in row)


def parse_rows(header: Sequence[str], rows: Sequence[Sequence[str]],
               strategy: str = POSITIONAL,
               schema: ColumnSchema = CANVAS_PEER_REVIEW_V1) -> ParsedReviews:
    """Parse data rows that follow a header row.

    Raises:
        NoDataError: If there are no non-blank data rows
    """
    data_rows = [row for row in rows if not _is_blank(row)]
    if not header or not data_rows:
        raise NoDataError("No data rows found in peer-review CSV")

    mapping = resolve_columns([clean_header(h) for h in header], strategy, schema)

    reviews = []
    skipped = 0
    for index, row in enumerate(data_rows):
        review = parse_row(row, mapping, index, schema)
        if review is None:
            skipped += 1
            continue
        reviews.append(review)

    LOG.info(f"Parsed {len(reviews)} reviews from {len(data_rows)} rows ({skipped} without a student skipped)")
    return ParsedReviews(reviews=reviews, mapping=mapping, skipped_rows=skipped)


def parse_csv_text(text: str, strategy: str = POSITIONAL,
                   schema: ColumnSchema = CANVAS_PEER_REVIEW_V1) -> ParsedReviews:
    """Parse an export held in memory."""
    if text.startswith('\ufeff'):
        text = text[1:]
    rows = list(csv.reader(io.StringIO(text)))
    if not rows:
        raise NoDataError("No data rows found in peer-review CSV")
    return parse_rows(rows[0], rows[1:], strategy, schema)


def read_reviews(csv_path: Path, strategy: str = POSITIONAL,
                 schema: ColumnSchema = CANVAS_PEER_REVIEW_V1) -> ParsedReviews:
    """Read and parse a peer-review export from disk."""
    LOG.info(f"Reading peer-review export {csv_path}")
    with open(csv_path, 'r', encoding='utf-8-sig', newline='') as f:
        rows = list(csv.reader(f))
    if not rows:
        raise NoDataError(f"No data rows found in {csv_path}")
    return parse_rows(rows[0], rows[1:], strategy, schema)
