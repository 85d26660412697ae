"""Work-score and peer-review score computation."""

import logging
import math
import statistics
from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .models import BonusScore, Grader, PeerReviewScore, PenaltyScore, ReviewDetail, Student, WorkScore
from .settings import ScoringSettings

LOG = logging.getLogger(__name__)


def round_half_up(value: float, places: int = 2) -> float:
    """Round like a spreadsheet does (0.125 -> 0.13), not banker's rounding."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def compute_work_score(grades: Iterable[Optional[float]],
                       settings: Optional[ScoringSettings] = None) -> WorkScore:
    """Summarize the grades a submission received.

    Out-of-range grades are kept in the statistics; they make the score
    unreliable and are flagged separately.
    """
    settings = settings or ScoringSettings()
    values: List[float] = [g for g in grades if g is not None and math.isfinite(g)]
    if not values:
        return WorkScore(reliability_issues=['no completed reviews'])

    avg = statistics.fmean(values)
    low = min(values)
    high = max(values)
    std_dev = round_half_up(statistics.pstdev(values), 2)

    issues = []
    if len(values) < settings.min_graders:
        issues.append(f'fewer than {settings.min_graders} graders')
    if std_dev >= settings.max_std_dev:
        issues.append(f'high SD ({std_dev:.2f})')
    if low < settings.rubric_min:
        issues.append(f'grade below {settings.rubric_min:g} ({low:g})')
    if high > settings.rubric_max:
        issues.append(f'grade above {settings.rubric_max:g} ({high:g})')

    return WorkScore(
        average=round_half_up(avg, 2),
        min=low,
        max=high,
        range=high - low,
        std_dev=std_dev,
        grades=values,
        grader_count=len(values),
        is_reliable=not issues,
        reliability_issues=issues,
    )


class ScoringScheme(ABC):
    """Strategy that turns a grader's completed reviews into a score."""

    name: str = ''

    def __init__(self, settings: Optional[ScoringSettings] = None):
        self.settings = settings or ScoringSettings()

    @abstractmethod
    def score(self, grader: Grader, details: Sequence[ReviewDetail]) -> PeerReviewScore:
        """Score one grader from the details of their completed reviews."""


class PenaltyScheme(ScoringScheme):
    """Scheme A: one point per completed review, minus a flat penalty for
    each review that lacks a quality comment on every criterion."""

    name = 'penalty'

    def score(self, grader: Grader, details: Sequence[ReviewDetail]) -> PenaltyScore:
        earned = len(details)
        penalized = sum(1 for d in details if not d.has_all_quality)
        penalty = round_half_up(penalized * self.settings.penalty_per_review, 2)
        net = max(0.0, round_half_up(earned - penalty, 1))
        return PenaltyScore(
            full_score=grader.assigned_reviews,
            earned_score=earned,
            penalty=penalty,
            net_score=net,
            details=list(details),
        )


class BonusScheme(ScoringScheme):
    """Scheme B: one point per completed review, plus one bonus point when
    every assigned review was done and every one of them is complete."""

    name = 'bonus'

    def score(self, grader: Grader, details: Sequence[ReviewDetail]) -> BonusScore:
        reviewed_count = len(details)
        complete_count = sum(1 for d in details if d.is_complete)
        reviewed_all = grader.assigned_reviews > 0 and reviewed_count == grader.assigned_reviews
        all_complete = complete_count == reviewed_count
        bonus = 1 if reviewed_all and all_complete else 0
        return BonusScore(
            base_score=reviewed_count,
            bonus=bonus,
            net_score=reviewed_count + bonus,
            full_score=grader.assigned_reviews + 1 if grader.assigned_reviews > 0 else 0,
            reviewed_count=reviewed_count,
            complete_count=complete_count,
            details=list(details),
        )


SCHEMES = {
    PenaltyScheme.name: PenaltyScheme,
    BonusScheme.name: BonusScheme,
}


def get_scheme(name: str, settings: Optional[ScoringSettings] = None) -> ScoringScheme:
    """Look up a scoring scheme by name."""
    try:
        scheme_cls = SCHEMES[name]
    except KeyError:
        raise ValueError(f"Unknown scoring scheme: {name!r} (expected one of {sorted(SCHEMES)})")
    return scheme_cls(settings)


def score_entities(students: Mapping[str, Student],
                   graders: Mapping[str, Grader],
                   scheme: ScoringScheme,
                   settings: Optional[ScoringSettings] = None) -> None:
    """Fill in work scores and peer-review scores in place."""
    settings = settings or scheme.settings
    for student in students.values():
        student.work_score = compute_work_score(student.grades_received, settings)

    for grader in graders.values():
        grader.peer_review_score = scheme.score(grader, grader.details)

    LOG.info(f"Scored {len(students)} students and {len(graders)} graders with the {scheme.name} scheme")


def scheme_summary(graders: Mapping[str, Grader]) -> Dict[str, float]:
    """Average net and full score across graders, for reports."""
    scores = [g.peer_review_score for g in graders.values() if g.peer_review_score is not None]
    if not scores:
        return {'graders': 0, 'average_net_score': 0.0, 'average_full_score': 0.0}
    return {
        'graders': len(scores),
        'average_net_score': round_half_up(statistics.fmean(s.net_score for s in scores), 2),
        'average_full_score': round_half_up(statistics.fmean(s.full_score for s in scores), 2),
    }
