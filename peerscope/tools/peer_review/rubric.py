"""Rubric criteria and the column layout of the Canvas peer-review export."""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .models import RubricCriterion

# Order matters: columns 5..13 of the export follow exactly this order.
DEFAULT_CRITERIA: List[RubricCriterion] = [
    RubricCriterion(key='file_access', name='1. File access',
                    description='Link is in OneDrive and opens', max_points=2),
    RubricCriterion(key='creator_info', name='2. Creator info',
                    description='Full name and faculty are shown', max_points=1),
    RubricCriterion(key='duration', name='3. Clip length',
                    description='No longer than 5 minutes', max_points=1),
    RubricCriterion(key='appearance', name='5. Appearance',
                    description='Creator appears in the clip', max_points=1),
    RubricCriterion(key='demo', name='6. Demonstration',
                    description='Includes a screen capture', max_points=1),
    RubricCriterion(key='benefits', name='7. Benefits',
                    description='Benefits are stated clearly', max_points=1),
    RubricCriterion(key='weaknesses', name='10. Weaknesses',
                    description='At least two weaknesses are named', max_points=2),
    RubricCriterion(key='similar_tools', name='11. Similar tools',
                    description='Gives examples of other tools', max_points=2),
    RubricCriterion(key='quality', name='8. Audio/video quality',
                    description='Picture and sound are clear', max_points=1),
]

CRITERIA_KEYS: Tuple[str, ...] = tuple(c.key for c in DEFAULT_CRITERIA)

RUBRIC_TOTAL = sum(c.max_points for c in DEFAULT_CRITERIA)


@dataclass(frozen=True)
class ColumnSchema:
    """Ordered roles of the export columns.

    Leading roles may be located by header text; criterion roles are always
    positional because Canvas labels them inconsistently ("Column1", "_1", ...).
    """

    version: str
    leading_roles: Tuple[str, ...]
    criteria_keys: Tuple[str, ...]
    header_hints: Dict[str, Tuple[str, ...]] = field(default_factory=dict)

    @property
    def roles(self) -> Tuple[str, ...]:
        return self.leading_roles + self.criteria_keys

    def positional_index(self, role: str) -> int:
        return self.roles.index(role)


CANVAS_PEER_REVIEW_V1 = ColumnSchema(
    version='canvas-peer-review-v1',
    leading_roles=(
        'student_name',
        'review_assigned',
        'review_completed',
        'grade_average',
        'submission_comments',
    ),
    criteria_keys=CRITERIA_KEYS,
    header_hints={
        'student_name': ('student name', 'student'),
        'review_assigned': ('review assigned', 'assigned'),
        'review_completed': ('review completed', 'completed'),
        'grade_average': ('grade average', 'average'),
        'submission_comments': ('submission comments', 'submission comment'),
    },
)
