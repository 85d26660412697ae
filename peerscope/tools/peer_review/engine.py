"""Entry points that run the whole peer-review pipeline."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .aggregator import aggregate_reviews
from .class_stats import class_statistics
from .comment_quality import KeywordVerdicts, keywords_for_verification
from .csv_parser import ColumnMapping, parse_csv_text, read_reviews
from .flags import detect_inconsistencies, flag_entities, flagged_graders, flagged_students
from .models import Grader, Inconsistency, KeywordEntry, Review, ReviewStats, Student
from .rescoring import RescoreResult, rescore_graders
from .scoring import PenaltyScheme, ScoringScheme, get_scheme, scheme_summary, score_entities
from .settings import ScoringSettings

LOG = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Everything one analysis pass produces."""

    reviews: List[Review]
    students: Dict[str, Student]
    graders: Dict[str, Grader]
    stats: ReviewStats
    scheme: str
    mapping: Optional[ColumnMapping] = None
    settings: ScoringSettings = field(default_factory=ScoringSettings)
    verdicts: KeywordVerdicts = field(default_factory=KeywordVerdicts)

    def flagged_students(self) -> List[Student]:
        return flagged_students(self.students)

    def flagged_graders(self) -> List[Grader]:
        return flagged_graders(self.graders)

    def inconsistencies(self) -> List[Inconsistency]:
        return detect_inconsistencies(self.graders, self.settings)

    def keyword_index(self) -> List[KeywordEntry]:
        return keywords_for_verification(self.graders, self.verdicts)

    def to_summary_dict(self) -> Dict[str, Any]:
        """Plain-data summary suitable for yaml.safe_dump."""
        class_stats = class_statistics(self.students, self.settings)
        return {
            'scheme': self.scheme,
            'column_strategy': self.mapping.describe() if self.mapping else None,
            'schema_version': self.mapping.schema_version if self.mapping else None,
            'stats': self.stats.model_dump(),
            'peer_review': scheme_summary(self.graders),
            'class_statistics': class_stats.model_dump() if class_stats else None,
            'flagged_students': [
                {'student_name': s.student_name, 'flags': [f.model_dump() for f in s.flags]}
                for s in self.flagged_students()
            ],
            'flagged_graders': [
                {'grader_name': g.grader_name, 'flags': [f.model_dump() for f in g.flags]}
                for g in self.flagged_graders()
            ],
            'inconsistencies': [i.model_dump() for i in self.inconsistencies()],
        }


def _resolve_scheme(scheme: Union[str, ScoringScheme, None],
                    settings: ScoringSettings) -> ScoringScheme:
    if isinstance(scheme, ScoringScheme):
        return scheme
    return get_scheme(scheme or settings.scheme, settings)


def analyze_reviews(reviews: Iterable[Review],
                    settings: Optional[ScoringSettings] = None,
                    scheme: Union[str, ScoringScheme, None] = None,
                    mapping: Optional[ColumnMapping] = None,
                    verdicts: Optional[KeywordVerdicts] = None) -> AnalysisResult:
    """Aggregate, score and flag already parsed reviews.

    Args:
        reviews: Parsed reviews in file order
        settings: Scoring thresholds (defaults when None)
        scheme: Scheme name or instance; settings.scheme when None
        mapping: Column mapping the reviews were parsed with, for reporting
        verdicts: Keyword overrides applied during classification

    Returns:
        AnalysisResult
    """
    settings = settings or ScoringSettings()
    verdicts = verdicts or KeywordVerdicts()
    reviews = list(reviews)
    scoring = _resolve_scheme(scheme, settings)

    aggregation = aggregate_reviews(reviews, settings, verdicts)
    score_entities(aggregation.students, aggregation.graders, scoring, settings)
    flag_entities(aggregation.students, aggregation.graders, scoring.name, settings)

    return AnalysisResult(
        reviews=reviews,
        students=aggregation.students,
        graders=aggregation.graders,
        stats=aggregation.stats,
        scheme=scoring.name,
        mapping=mapping,
        settings=settings,
        verdicts=verdicts,
    )


def analyze_csv(source: Union[Path, str],
                settings: Optional[ScoringSettings] = None,
                scheme: Union[str, ScoringScheme, None] = None,
                strategy: Optional[str] = None,
                verdicts: Optional[KeywordVerdicts] = None) -> AnalysisResult:
    """Parse and analyze a peer-review export.

    A Path is read from disk; a str is treated as the CSV text itself.
    """
    settings = settings or ScoringSettings()
    strategy = strategy or settings.column_strategy
    if isinstance(source, Path):
        parsed = read_reviews(source, strategy)
    else:
        parsed = parse_csv_text(source, strategy)
    return analyze_reviews(parsed.reviews, settings, scheme, parsed.mapping, verdicts)


def recalculate(result: AnalysisResult,
                approved: Optional[Iterable[str]] = None,
                rejected: Optional[Iterable[str]] = None) -> RescoreResult:
    """Re-score the graders of a previous analysis with curated keywords.

    The re-scored graders replace ``result.graders`` and the verdicts are
    kept on the result, so a repeated call with the same lists reports no
    changes and later exports see the curated scores.
    """
    verdicts = KeywordVerdicts.from_lists(approved, rejected)
    rescore = rescore_graders(result.reviews, result.graders, verdicts, result.settings)
    result.graders = rescore.graders
    result.verdicts = verdicts
    result.scheme = PenaltyScheme.name
    return rescore
