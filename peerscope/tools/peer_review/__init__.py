"""Peer-review scoring and anomaly detection for Canvas exports."""

from .comment_quality import KeywordVerdicts, classify_comment
from .csv_parser import NoDataError, read_reviews
from .engine import AnalysisResult, analyze_csv, analyze_reviews, recalculate
from .rescoring import RescoreResult, rescore_graders
from .settings import ScoringSettings

__all__ = [
    'AnalysisResult',
    'KeywordVerdicts',
    'NoDataError',
    'RescoreResult',
    'ScoringSettings',
    'analyze_csv',
    'analyze_reviews',
    'classify_comment',
    'read_reviews',
    'recalculate',
    'rescore_graders',
]
