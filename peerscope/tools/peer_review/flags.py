"""Advisory flags and anomaly scans over scored entities."""

import logging
import re
from typing import Iterable, List, Mapping, Optional, Sequence, TypeVar, Union

from .models import Flag, Grader, Inconsistency, Student, WorkScore
from .settings import ScoringSettings

LOG = logging.getLogger(__name__)

ALERT = 'alert'
WARNING = 'warning'
INFO = 'info'
SEVERITY_ORDER = {ALERT: 0, WARNING: 1, INFO: 2}

# Deficiency and praise vocabulary for the grade/comment consistency scan.
# English terms match on word boundaries, Thai terms as substrings.
NEGATIVE_TERMS = [
    'not', 'missing', 'needs improvement', 'need improvement', 'lack', 'lacks',
    'lacking', 'incomplete', 'unclear', 'should improve', 'poor',
    'ไม่', 'ขาด', 'ควรปรับปรุง', 'ไม่มี', 'ไม่ชัด', 'ไม่ครบ',
]
POSITIVE_TERMS = [
    'excellent', 'great', 'perfect', 'very good', 'well done', 'outstanding',
    'complete', 'clear',
    'ดีมาก', 'ยอดเยี่ยม', 'สมบูรณ์', 'ครบถ้วน', 'ชัดเจน', 'สุดยอด',
]


def _fmt(value: float) -> str:
    return f"{value:g}"


def student_flags(student: Student, settings: Optional[ScoringSettings] = None) -> List[Flag]:
    """Evaluate the student rules against an already scored student."""
    settings = settings or ScoringSettings()
    ws = student.work_score
    flags = []
    if ws.grades:
        flags.extend(_grade_flags(ws, settings))

    if ws.grader_count < settings.min_graders:
        flags.append(Flag(
            type='insufficient_graders',
            message=f"Only {ws.grader_count} completed review(s)",
            severity=INFO,
        ))
    return flags


def _grade_flags(ws: WorkScore, settings: ScoringSettings) -> List[Flag]:
    flags = []
    over = [g for g in ws.grades if g > settings.rubric_max]
    if over:
        flags.append(Flag(
            type='score_over_max',
            message=f"Grades above {_fmt(settings.rubric_max)}: {', '.join(_fmt(g) for g in over)}",
            severity=ALERT,
        ))
    under = [g for g in ws.grades if g < settings.rubric_min]
    if under:
        flags.append(Flag(
            type='score_under_min',
            message=f"Grades below {_fmt(settings.rubric_min)}: {', '.join(_fmt(g) for g in under)}",
            severity=ALERT,
        ))
    if ws.std_dev >= settings.high_variance_std_dev:
        flags.append(Flag(
            type='high_variance',
            message=f"Graders disagree strongly (SD={ws.std_dev:.2f})",
            severity=WARNING,
        ))
    if ws.max - ws.min >= settings.extreme_range:
        flags.append(Flag(
            type='extreme_range',
            message=f"Grades span a wide range: {_fmt(ws.min)}-{_fmt(ws.max)}",
            severity=WARNING,
        ))
    if ws.average < settings.low_score_average:
        flags.append(Flag(
            type='low_score',
            message=f"Low average: {ws.average:.2f}/{_fmt(settings.rubric_max)}",
            severity=ALERT,
        ))
    return flags


def grader_flags(grader: Grader, scheme_name: str,
                 settings: Optional[ScoringSettings] = None) -> List[Flag]:
    """Evaluate the grader rules; the completeness warning applies to the bonus scheme only."""
    settings = settings or ScoringSettings()
    flags = []
    assigned = grader.assigned_reviews
    reviewed = len(grader.details)
    complete = sum(1 for d in grader.details if d.is_complete)
    reviewed_all = assigned > 0 and reviewed == assigned

    if assigned > 0 and grader.completed_reviews == 0:
        flags.append(Flag(
            type='no_review_done',
            message=f"Assigned {assigned} review(s) but completed none",
            severity=ALERT,
        ))
    if scheme_name == 'bonus' and reviewed_all and complete < reviewed:
        flags.append(Flag(
            type='incomplete_comments',
            message=(f"Reviewed everything but comments are incomplete "
                     f"({complete}/{reviewed} complete, {reviewed - complete} short) - bonus forfeited"),
            severity=WARNING,
        ))
    if assigned > 0 and reviewed < assigned:
        flags.append(Flag(
            type='incomplete_review',
            message=f"Reviewed {reviewed}/{assigned} assigned submissions",
            severity=WARNING,
        ))
    if assigned > 0 and assigned != settings.expected_assignments:
        flags.append(Flag(
            type='unusual_assignment',
            message=f"Assigned {assigned} review(s) instead of {settings.expected_assignments}",
            severity=INFO,
        ))
    over = [d for d in grader.details if d.grade_given is not None and d.grade_given > settings.rubric_max]
    if over:
        pairs = ', '.join(f"{d.student_reviewed}: {_fmt(d.grade_given)}" for d in over)
        flags.append(Flag(
            type='gave_score_over_max',
            message=f"Gave grades above {_fmt(settings.rubric_max)}: {pairs}",
            severity=ALERT,
        ))
    return flags


def flag_entities(students: Mapping[str, Student], graders: Mapping[str, Grader],
                  scheme_name: str, settings: Optional[ScoringSettings] = None) -> None:
    """Replace the flags of every entity; a failing rule never stops the pass."""
    settings = settings or ScoringSettings()
    for student in students.values():
        try:
            student.flags = student_flags(student, settings)
        except Exception as e:  # pylint: disable=broad-except
            LOG.error(f"Flag evaluation failed for student {student.student_name}: {e}")
            student.flags = []

    for grader in graders.values():
        try:
            grader.flags = grader_flags(grader, scheme_name, settings)
        except Exception as e:  # pylint: disable=broad-except
            LOG.error(f"Flag evaluation failed for grader {grader.grader_name}: {e}")
            grader.flags = []

    flagged = sum(1 for s in students.values() if s.flags) + sum(1 for g in graders.values() if g.flags)
    LOG.info(f"Flagged {flagged} entities")


Entity = TypeVar('Entity', Student, Grader)


def _most_severe(entity: Union[Student, Grader]) -> int:
    return min((SEVERITY_ORDER.get(f.severity, len(SEVERITY_ORDER)) for f in entity.flags),
               default=len(SEVERITY_ORDER))


def _flagged(entities: Iterable[Entity]) -> List[Entity]:
    return sorted((e for e in entities if e.flags), key=_most_severe)


def flagged_students(students: Mapping[str, Student]) -> List[Student]:
    """Students with at least one flag, most severe first."""
    return _flagged(students.values())


def flagged_graders(graders: Mapping[str, Grader]) -> List[Grader]:
    """Graders with at least one flag, most severe first."""
    return _flagged(graders.values())


def _term_pattern(term: str) -> re.Pattern:
    if term.isascii():
        return re.compile(r'\b' + re.escape(term) + r'\b', re.IGNORECASE)
    return re.compile(re.escape(term))


_NEGATIVE_PATTERNS = [(t, _term_pattern(t)) for t in NEGATIVE_TERMS]
_POSITIVE_PATTERNS = [(t, _term_pattern(t)) for t in POSITIVE_TERMS]


def _matches(text: str, patterns: Sequence) -> List[str]:
    return [term for term, pattern in patterns if pattern.search(text)]


def detect_inconsistencies(graders: Mapping[str, Grader],
                           settings: Optional[ScoringSettings] = None) -> List[Inconsistency]:
    """Find grades whose comments read the other way.

    A lexical heuristic for admins; results are not stored and never
    change any score.
    """
    settings = settings or ScoringSettings()
    found = []

    for grader in graders.values():
        for detail in grader.details:
            if detail.grade_given is None:
                continue
            text = ' '.join(c for c in detail.comments.values() if c).strip()
            if not text:
                continue

            negatives = _matches(text, _NEGATIVE_PATTERNS)
            if (detail.grade_given >= settings.inconsistency_high_grade and negatives
                    and len(text) > settings.inconsistency_min_length):
                found.append(Inconsistency(
                    kind='high_grade_negative_comments',
                    grader_name=grader.grader_name,
                    grader_id=grader.grader_id,
                    review_id=detail.review_id,
                    student_reviewed=detail.student_reviewed,
                    grade_given=detail.grade_given,
                    matched_terms=negatives,
                    message=(f"Gave {_fmt(detail.grade_given)} but comments mention: "
                             f"{', '.join(negatives)}"),
                ))
                continue

            if detail.grade_given <= settings.inconsistency_low_grade and not negatives:
                positives = _matches(text, _POSITIVE_PATTERNS)
                if positives:
                    found.append(Inconsistency(
                        kind='low_grade_positive_comments',
                        grader_name=grader.grader_name,
                        grader_id=grader.grader_id,
                        review_id=detail.review_id,
                        student_reviewed=detail.student_reviewed,
                        grade_given=detail.grade_given,
                        matched_terms=positives,
                        message=(f"Gave {_fmt(detail.grade_given)} but comments praise: "
                                 f"{', '.join(positives)}"),
                    ))

    LOG.debug(f"Inconsistency scan found {len(found)} reviews")
    return found
