"""Scoring settings loaded from the ``peer_review`` config section."""

import logging
from typing import Optional

from pydantic import BaseModel, Field

from peerscope.libs.config_loader import ConfigType

LOG = logging.getLogger(__name__)


class ScoringSettings(BaseModel):
    """Thresholds and knobs for the scoring engine.

    Defaults match config/default.yaml so the engine works without any
    configuration file.
    """
    scheme: str = Field(default="bonus", description="Peer-review scheme name")
    rubric_max: float = 12
    rubric_min: float = 0
    expected_assignments: int = 3
    column_strategy: str = "positional"
    min_graders: int = 2
    max_std_dev: float = 3
    high_variance_std_dev: float = 3
    extreme_range: float = 6
    low_score_average: float = 6
    penalty_per_review: float = 0.2
    max_missing_comments: int = 3
    min_quality_length: Optional[int] = None
    inconsistency_high_grade: float = 11
    inconsistency_low_grade: float = 6
    inconsistency_min_length: int = 20

    @classmethod
    def from_config(cls, config: Optional[ConfigType]) -> "ScoringSettings":
        """Build settings from a merged config dict (missing keys keep defaults)."""
        section = (config or {}).get('peer_review') or {}
        reliability = section.get('reliability') or {}
        flags = section.get('flags') or {}
        penalty = section.get('penalty') or {}
        completeness = section.get('completeness') or {}
        comments = section.get('comments') or {}
        inconsistency = section.get('inconsistency') or {}

        values = {
            'scheme': section.get('scheme'),
            'rubric_max': section.get('rubric_max'),
            'rubric_min': section.get('rubric_min'),
            'expected_assignments': section.get('expected_assignments'),
            'column_strategy': section.get('column_strategy'),
            'min_graders': reliability.get('min_graders'),
            'max_std_dev': reliability.get('max_std_dev'),
            'high_variance_std_dev': flags.get('high_variance_std_dev'),
            'extreme_range': flags.get('extreme_range'),
            'low_score_average': flags.get('low_score_average'),
            'penalty_per_review': penalty.get('per_review'),
            'max_missing_comments': completeness.get('max_missing_comments'),
            'min_quality_length': comments.get('min_quality_length'),
            'inconsistency_high_grade': inconsistency.get('high_grade'),
            'inconsistency_low_grade': inconsistency.get('low_grade'),
            'inconsistency_min_length': inconsistency.get('min_comment_length'),
        }
        settings = cls(**{k: v for k, v in values.items() if v is not None})
        LOG.debug(f"Scoring settings: {settings.model_dump()}")
        return settings
