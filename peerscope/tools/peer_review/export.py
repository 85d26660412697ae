"""CSV and YAML writers for analysis results."""

import csv
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

import yaml

from .models import BonusScore, Flag, Grader, PenaltyScore, RescoreDiffEntry, Student

LOG = logging.getLogger(__name__)

# Excel needs the BOM to open Thai names correctly
CSV_ENCODING = 'utf-8-sig'

STUDENT_COLUMNS = [
    'Student', 'Student ID', 'Full Name', 'Graders Assigned', 'Graders Completed',
    'Average', 'Min', 'Max', 'SD', 'Grades', 'Reliable', 'Reliability Issues', 'Flags',
]

GRADER_COLUMNS = [
    'Grader', 'Grader ID', 'Full Name', 'Scheme', 'Assigned', 'Completed',
    'Base/Earned', 'Bonus', 'Penalty', 'Net Score', 'Full Score', 'Flags',
]

DIFF_COLUMNS = [
    'Grader', 'Grader ID', 'Full Name', 'Old Penalty', 'New Penalty',
    'Old Net Score', 'New Net Score', 'Diff',
]


def _fmt_number(value) -> str:
    if value is None:
        return ''
    return f"{value:g}"


def _fmt_flags(flags: Iterable[Flag]) -> str:
    return '; '.join(f"[{f.severity}] {f.type}: {f.message}" for f in flags)


def _student_row(student: Student) -> List[Any]:
    ws = student.work_score
    return [
        student.student_name,
        student.student_id,
        student.full_name,
        student.graders_assigned,
        student.graders_completed,
        f"{ws.average:.2f}" if ws.grader_count else '',
        _fmt_number(ws.min),
        _fmt_number(ws.max),
        f"{ws.std_dev:.2f}" if ws.grader_count else '',
        ', '.join(_fmt_number(g) for g in ws.grades),
        'yes' if ws.is_reliable else 'no',
        '; '.join(ws.reliability_issues),
        _fmt_flags(student.flags),
    ]


def _grader_row(grader: Grader) -> List[Any]:
    score = grader.peer_review_score
    base = bonus = penalty = ''
    if isinstance(score, BonusScore):
        base, bonus = score.base_score, score.bonus
    elif isinstance(score, PenaltyScore):
        base, penalty = _fmt_number(score.earned_score), f"{score.penalty:.2f}"
    return [
        grader.grader_name,
        grader.grader_id,
        grader.full_name,
        score.scheme if score else '',
        grader.assigned_reviews,
        grader.completed_reviews,
        base,
        bonus,
        penalty,
        _fmt_number(score.net_score) if score else '',
        _fmt_number(score.full_score) if score else '',
        _fmt_flags(grader.flags),
    ]


def write_student_scores(students: Mapping[str, Student], output_path: Path) -> Path:
    """Write one row per student with their work score and flags."""
    with open(output_path, 'w', encoding=CSV_ENCODING, newline='') as f:
        writer = csv.writer(f)
        writer.writerow(STUDENT_COLUMNS)
        for name in sorted(students):
            writer.writerow(_student_row(students[name]))
    LOG.info(f"Wrote {len(students)} student scores to {output_path}")
    return output_path


def write_grader_scores(graders: Mapping[str, Grader], output_path: Path) -> Path:
    """Write one row per grader with their peer-review score and flags."""
    with open(output_path, 'w', encoding=CSV_ENCODING, newline='') as f:
        writer = csv.writer(f)
        writer.writerow(GRADER_COLUMNS)
        for name in sorted(graders):
            writer.writerow(_grader_row(graders[name]))
    LOG.info(f"Wrote {len(graders)} grader scores to {output_path}")
    return output_path


def write_rescore_diff(diff: Iterable[RescoreDiffEntry], output_path: Path) -> Path:
    """Write the graders whose score changed during re-scoring."""
    entries = list(diff)
    with open(output_path, 'w', encoding=CSV_ENCODING, newline='') as f:
        writer = csv.writer(f)
        writer.writerow(DIFF_COLUMNS)
        for entry in entries:
            writer.writerow([
                entry.grader_name,
                entry.grader_id,
                entry.full_name,
                f"{entry.old_penalty:.2f}",
                f"{entry.new_penalty:.2f}",
                _fmt_number(entry.old_net_score),
                _fmt_number(entry.new_net_score),
                f"{entry.diff:+g}",
            ])
    LOG.info(f"Wrote {len(entries)} re-scoring changes to {output_path}")
    return output_path


def write_summary(summary: Dict[str, Any], output_path: Path) -> Path:
    """Dump the analysis summary as YAML."""
    with open(output_path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(summary, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
    LOG.info(f"Wrote summary to {output_path}")
    return output_path
