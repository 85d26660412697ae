"""Fold parsed reviews into per-student and per-grader entities."""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence

from .comment_quality import KeywordVerdicts, analyze_comments
from .models import CommentAnalysis, Grader, Review, ReviewDetail, ReviewStats, RubricCriterion, Student
from .rubric import DEFAULT_CRITERIA
from .settings import ScoringSettings

LOG = logging.getLogger(__name__)


@dataclass
class Aggregation:
    """Entity maps and counts built from one list of reviews."""

    students: Dict[str, Student]
    graders: Dict[str, Grader]
    stats: ReviewStats


def build_detail(review: Review, analysis: CommentAnalysis,
                 settings: ScoringSettings) -> ReviewDetail:
    """Describe a completed review from its grader's point of view."""
    missing = analysis.missing_comments
    return ReviewDetail(
        review_id=review.id,
        student_reviewed=review.student_name,
        student_id=review.student_id,
        grade_given=review.grade_given,
        valid_comment_count=analysis.has_comment_count,
        missing_comments=missing,
        is_complete=missing <= settings.max_missing_comments,
        quality_count=analysis.quality_count,
        has_all_quality=analysis.has_all_quality,
        total_criteria=analysis.total_criteria,
        keywords=analysis.keywords,
        comments=dict(review.comments),
    )


def aggregate_reviews(reviews: Iterable[Review],
                      settings: Optional[ScoringSettings] = None,
                      verdicts: Optional[KeywordVerdicts] = None,
                      criteria: Sequence[RubricCriterion] = DEFAULT_CRITERIA) -> Aggregation:
    """Accumulate reviews into Student and Grader maps in a single pass.

    Students are keyed by the reviewee display name, graders by the reviewer
    display name. The two key sets are independent: a grader does not need a
    submission of their own in the same export.

    Args:
        reviews: Parsed reviews in file order
        settings: Scoring thresholds (defaults when None)
        verdicts: Keyword overrides for comment quality
        criteria: Rubric criteria, in column order

    Returns:
        Aggregation with students, graders and dataset stats
    """
    settings = settings or ScoringSettings()
    students: Dict[str, Student] = {}
    graders: Dict[str, Grader] = {}
    stats = ReviewStats()

    for review in reviews:
        analysis = analyze_comments(review.comments, criteria, verdicts, settings.min_quality_length)

        stats.total_reviews += 1
        if review.is_completed:
            stats.completed_reviews += 1
            if analysis.quality_count < analysis.total_criteria:
                stats.reviews_with_penalty += 1
        else:
            stats.incomplete_reviews += 1
        if analysis.has_all_quality:
            stats.reviews_with_quality_comments += 1

        student = students.get(review.student_name)
        if student is None:
            student = Student(
                student_name=review.student_name,
                student_id=review.student_id,
                full_name=review.student_full_name,
            )
            students[review.student_name] = student

        student.graders_assigned += 1
        student.reviews_received.append(review.id)
        if review.is_completed:
            student.graders_completed += 1
            student.grades_received.append(review.grade_given)

        if not review.grader_name:
            continue

        grader = graders.get(review.grader_name)
        if grader is None:
            grader = Grader(
                grader_name=review.grader_name,
                grader_id=review.grader_id,
                full_name=review.grader_full_name,
            )
            graders[review.grader_name] = grader

        grader.assigned_reviews += 1
        grader.reviews_made.append(review.id)
        if review.is_completed:
            grader.completed_reviews += 1
            detail = build_detail(review, analysis, settings)
            grader.details.append(detail)
            for keyword in detail.keywords:
                if keyword not in grader.keywords:
                    grader.keywords.append(keyword)

    stats.total_students = len(students)
    stats.total_graders = len(graders)

    LOG.info(f"Aggregated {stats.total_reviews} reviews into {stats.total_students} students "
             f"and {stats.total_graders} graders")
    return Aggregation(students=students, graders=graders, stats=stats)
