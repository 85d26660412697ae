"""Re-score graders after admins approve or reject comment keywords."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .aggregator import build_detail
from .comment_quality import KeywordVerdicts, analyze_comments
from .flags import flag_entities
from .models import Grader, PenaltyScore, RescoreDiffEntry, Review, RubricCriterion
from .rubric import DEFAULT_CRITERIA
from .scoring import PenaltyScheme, round_half_up
from .settings import ScoringSettings

LOG = logging.getLogger(__name__)


@dataclass
class RescoreResult:
    """Fresh grader map plus the graders whose score moved."""

    graders: Dict[str, Grader]
    diff: List[RescoreDiffEntry] = field(default_factory=list)


def _snapshot(grader: Grader, scheme: PenaltyScheme) -> PenaltyScore:
    """Scheme A view of the grader before re-scoring."""
    if isinstance(grader.peer_review_score, PenaltyScore):
        return grader.peer_review_score
    return scheme.score(grader, grader.details)


def rescore_graders(reviews: Iterable[Review],
                    graders: Mapping[str, Grader],
                    verdicts: KeywordVerdicts,
                    settings: Optional[ScoringSettings] = None,
                    criteria: Sequence[RubricCriterion] = DEFAULT_CRITERIA) -> RescoreResult:
    """Recompute every grader's Scheme A score with keyword overrides active.

    Classification restarts from the source reviews rather than the stored
    verdicts, so the result depends only on the reviews and the keyword
    lists. Neither the reviews nor the input graders are modified.

    Args:
        reviews: Parsed reviews from the export
        graders: Graders from a previous scoring pass
        verdicts: Approved and rejected keywords
        settings: Scoring thresholds
        criteria: Rubric criteria, in column order

    Returns:
        RescoreResult with re-scored copies and a diff report
    """
    settings = settings or ScoringSettings()
    scheme = PenaltyScheme(settings)
    by_id = {review.id: review for review in reviews}

    rescored: Dict[str, Grader] = {}
    diff: List[RescoreDiffEntry] = []

    for name, grader in graders.items():
        before = _snapshot(grader, scheme)
        updated = grader.model_copy(deep=True)

        details = []
        for detail in updated.details:
            review = by_id.get(detail.review_id)
            if review is None:
                LOG.debug(f"Review {detail.review_id} for {name} no longer exists, skipping")
                continue
            if not review.is_completed:
                continue
            analysis = analyze_comments(review.comments, criteria, verdicts, settings.min_quality_length)
            details.append(build_detail(review, analysis, settings))

        updated.details = details
        updated.completed_reviews = len(details)
        updated.keywords = list(dict.fromkeys(k for d in details for k in d.keywords))
        updated.peer_review_score = scheme.score(updated, details)
        rescored[name] = updated

        after = updated.peer_review_score
        if after.penalty != before.penalty or after.net_score != before.net_score:
            diff.append(RescoreDiffEntry(
                grader_name=name,
                grader_id=grader.grader_id,
                full_name=grader.full_name,
                old_penalty=before.penalty,
                new_penalty=after.penalty,
                old_net_score=before.net_score,
                new_net_score=after.net_score,
                diff=round_half_up(after.net_score - before.net_score, 1),
            ))

    flag_entities({}, rescored, scheme.name, settings)

    LOG.info(f"Re-scored {len(rescored)} graders with {len(verdicts.approved)} approved and "
             f"{len(verdicts.rejected)} rejected keywords; {len(diff)} changed")
    return RescoreResult(graders=rescored, diff=diff)
