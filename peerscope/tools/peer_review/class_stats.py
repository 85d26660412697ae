"""Class-wide and per-group summaries of scored entities."""

import logging
import math
import statistics
from typing import Dict, Iterable, List, Mapping, Optional

from .models import ClassStatistics, Grader, GroupStatistics, Student
from .scoring import round_half_up
from .settings import ScoringSettings

LOG = logging.getLogger(__name__)

# Lower bound (percent of the rubric maximum) for each letter band
GRADE_BANDS = [
    ('A', 90),
    ('B+', 80),
    ('B', 70),
    ('C+', 60),
    ('C', 50),
    ('D+', 40),
    ('D', 30),
    ('F', 0),
]


def grade_level(percentage: float) -> str:
    """Letter band for a percentage score."""
    for letter, lower in GRADE_BANDS:
        if percentage >= lower:
            return letter
    return 'F'


def nearest_rank(sorted_values: List[float], percentile: float) -> float:
    """Nearest-rank percentile of an already sorted list."""
    index = math.ceil(percentile / 100 * len(sorted_values)) - 1
    return sorted_values[max(0, index)]


def class_statistics(students: Mapping[str, Student],
                     settings: Optional[ScoringSettings] = None) -> Optional[ClassStatistics]:
    """Summarize work-score averages of every student with a graded review.

    Scores are expressed as a percentage of the rubric maximum.

    Returns:
        ClassStatistics, or None when nobody has been graded yet
    """
    settings = settings or ScoringSettings()
    percentages = [
        s.work_score.average / settings.rubric_max * 100
        for s in students.values()
        if s.work_score.grader_count > 0
    ]
    if not percentages:
        return None

    ordered = sorted(percentages)
    distribution = {letter: 0 for letter, _ in GRADE_BANDS}
    for pct in percentages:
        distribution[grade_level(pct)] += 1

    return ClassStatistics(
        total_students=len(percentages),
        mean=round_half_up(statistics.fmean(percentages), 2),
        median=round_half_up(nearest_rank(ordered, 50), 2),
        std_dev=round_half_up(statistics.pstdev(percentages), 2),
        min=round_half_up(ordered[0], 2),
        max=round_half_up(ordered[-1], 2),
        grade_distribution=distribution,
    )


def _mean(values: List[float]) -> float:
    return round_half_up(statistics.fmean(values), 2) if values else 0.0


def group_statistics(students: Mapping[str, Student],
                     graders: Mapping[str, Grader],
                     assignment: Mapping[str, str],
                     allowed_groups: Optional[Iterable[str]] = None) -> Dict[str, GroupStatistics]:
    """Partition scored entities by group and summarize each group.

    Args:
        students: Scored students
        graders: Scored graders
        assignment: Student id -> group name (e.g. from a roster group set)
        allowed_groups: Restrict the output to these groups (e.g. a TA's groups)

    Returns:
        Group name -> GroupStatistics, in sorted group order
    """
    groups = sorted({g for g in assignment.values() if g})
    if allowed_groups is not None:
        allowed = set(allowed_groups)
        groups = [g for g in groups if g in allowed]

    result = {g: GroupStatistics(group=g) for g in groups}
    work_scores: Dict[str, List[float]] = {g: [] for g in groups}
    pr_scores: Dict[str, List[float]] = {g: [] for g in groups}

    for group in assignment.values():
        if group in result:
            result[group].count += 1

    for student in students.values():
        group = assignment.get(student.student_id)
        if group not in result:
            continue
        stats = result[group]
        stats.student_count += 1
        if student.work_score.grader_count > 0:
            work_scores[group].append(student.work_score.average)
        if student.flags:
            stats.flagged_count += 1

    for grader in graders.values():
        group = assignment.get(grader.grader_id)
        if group not in result:
            continue
        stats = result[group]
        stats.grader_count += 1
        if grader.peer_review_score is not None:
            pr_scores[group].append(grader.peer_review_score.net_score)
        if grader.flags:
            stats.flagged_count += 1

    for group, stats in result.items():
        stats.avg_work_score = _mean(work_scores[group])
        stats.avg_pr_score = _mean(pr_scores[group])

    LOG.debug(f"Group statistics computed for {len(result)} groups")
    return result
