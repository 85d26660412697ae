"""Pydantic models for peer-review scoring."""

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field


class RubricCriterion(BaseModel):
    """One criterion of the peer-review rubric."""
    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Stable key used in Review.comments")
    name: str = Field(description="Human-readable criterion name")
    description: str = Field(description="What the reviewer checks")
    max_points: float = Field(description="Maximum points for this criterion")


class Review(BaseModel):
    """One row of the Canvas peer-review export."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Row-derived identifier, e.g. 'review_0'")
    student_name: str = Field(description="Submission owner as displayed in the export")
    student_id: str = ""
    student_full_name: str = ""
    grader_name: str = Field(default="", description="Assigned reviewer as displayed in the export")
    grader_id: str = ""
    grader_full_name: str = ""
    grade_given: Optional[float] = Field(default=None, description="Grade given; None when not reviewed")
    grade_average: Optional[float] = Field(default=None, description="Canvas grade average (informational)")
    submission_comments: str = ""
    comments: Dict[str, str] = Field(default_factory=dict, description="Criterion key -> comment text")

    @computed_field
    @property
    def is_completed(self) -> bool:
        return self.grade_given is not None


class CommentQuality(BaseModel):
    """Classifier verdict for a single comment."""
    has_comment: bool
    is_quality: bool
    reason: Optional[str] = None


class CommentAnalysis(BaseModel):
    """Classifier verdicts for all criteria of one review."""
    criteria: Dict[str, CommentQuality] = Field(default_factory=dict)
    has_comment_count: int = 0
    quality_count: int = 0
    total_criteria: int = 0
    keywords: List[str] = Field(default_factory=list)

    @property
    def missing_comments(self) -> int:
        return self.total_criteria - self.has_comment_count

    @property
    def has_all_quality(self) -> bool:
        return self.total_criteria > 0 and self.quality_count == self.total_criteria


class ReviewDetail(BaseModel):
    """A completed review as seen from the grader's side."""
    review_id: str
    student_reviewed: str = Field(description="Display name of the reviewee")
    student_id: str = ""
    grade_given: Optional[float] = None
    valid_comment_count: int = 0
    missing_comments: int = 0
    is_complete: bool = Field(default=False, description="Few enough criteria lack a comment")
    quality_count: int = 0
    has_all_quality: bool = Field(default=False, description="Every criterion has a quality comment")
    total_criteria: int = 0
    keywords: List[str] = Field(default_factory=list)
    comments: Dict[str, str] = Field(default_factory=dict)


class Flag(BaseModel):
    """Advisory warning attached to a student or grader."""
    type: str
    message: str
    severity: str = Field(description="One of: alert, warning, info")


class WorkScore(BaseModel):
    """Peer-assessed quality of a student's submission."""
    average: float = 0.0
    min: Optional[float] = None
    max: Optional[float] = None
    range: float = 0.0
    std_dev: float = 0.0
    grades: List[float] = Field(default_factory=list)
    grader_count: int = 0
    is_reliable: bool = False
    reliability_issues: List[str] = Field(default_factory=list)


class PeerReviewScore(BaseModel):
    """Fields shared by every peer-review scoring scheme."""
    scheme: str
    full_score: float = 0
    net_score: float = 0
    details: List[ReviewDetail] = Field(default_factory=list)


class PenaltyScore(PeerReviewScore):
    """Scheme A: one point per completed review minus quality penalties."""
    scheme: str = "penalty"
    earned_score: float = 0
    penalty: float = 0


class BonusScore(PeerReviewScore):
    """Scheme B: one point per completed review plus a completion bonus."""
    scheme: str = "bonus"
    base_score: int = 0
    bonus: int = 0
    reviewed_count: int = 0
    complete_count: int = 0


class Student(BaseModel):
    """Submission owner, keyed by display name."""
    student_name: str
    student_id: str = ""
    full_name: str = ""
    graders_assigned: int = 0
    graders_completed: int = 0
    grades_received: List[float] = Field(default_factory=list)
    reviews_received: List[str] = Field(default_factory=list)
    work_score: WorkScore = Field(default_factory=WorkScore)
    flags: List[Flag] = Field(default_factory=list)


class Grader(BaseModel):
    """Reviewer, keyed by display name."""
    grader_name: str
    grader_id: str = ""
    full_name: str = ""
    assigned_reviews: int = 0
    completed_reviews: int = 0
    reviews_made: List[str] = Field(default_factory=list)
    details: List[ReviewDetail] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    peer_review_score: Optional[Union[BonusScore, PenaltyScore]] = None
    flags: List[Flag] = Field(default_factory=list)


class ReviewStats(BaseModel):
    """Dataset-level counts for one parsed export."""
    total_reviews: int = 0
    total_students: int = 0
    total_graders: int = 0
    completed_reviews: int = 0
    incomplete_reviews: int = 0
    reviews_with_quality_comments: int = 0
    reviews_with_penalty: int = 0


class KeywordEntry(BaseModel):
    """Row of the admin-facing keyword frequency index."""
    keyword: str
    count: int = 0
    graders: List[str] = Field(default_factory=list)
    verified: Optional[bool] = None


class Inconsistency(BaseModel):
    """Grade that disagrees with the tone of its comments."""
    kind: str
    grader_name: str
    grader_id: str = ""
    review_id: str
    student_reviewed: str
    grade_given: float
    matched_terms: List[str] = Field(default_factory=list)
    message: str


class RescoreDiffEntry(BaseModel):
    """Grader whose Scheme A score moved during keyword re-scoring."""
    grader_name: str
    grader_id: str = ""
    full_name: str = ""
    old_penalty: float
    new_penalty: float
    old_net_score: float
    new_net_score: float
    diff: float


class ClassStatistics(BaseModel):
    """Summary of work-score averages across the class (percent of rubric max)."""
    total_students: int
    mean: float
    median: float
    std_dev: float
    min: float
    max: float
    grade_distribution: Dict[str, int]


class GroupStatistics(BaseModel):
    """Per-group summary used to compare sections or TA groups."""
    group: str
    count: int = 0
    student_count: int = 0
    grader_count: int = 0
    avg_work_score: float = 0.0
    avg_pr_score: float = 0.0
    flagged_count: int = 0
