"""Comment quality classification and keyword extraction."""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .models import CommentAnalysis, CommentQuality, Grader, KeywordEntry, RubricCriterion

LOG = logging.getLogger(__name__)

DASH_ONLY = re.compile(r'^-+$')

# Comments that carry no reviewing content on their own
LOW_QUALITY_PATTERNS = [
    re.compile(r'^[\W_]+$'),  # punctuation or symbols only
    re.compile(r'^n/a$', re.IGNORECASE),
    re.compile(r'^none$', re.IGNORECASE),
    re.compile(r'^ok(ay)?$', re.IGNORECASE),
    re.compile(r'^good$', re.IGNORECASE),
    re.compile(r'^yes$', re.IGNORECASE),
    re.compile(r'^no$', re.IGNORECASE),
    re.compile(r'^ไม่มี$'),
    re.compile(r'^ไม่$'),
    re.compile(r'^ดี$'),
    re.compile(r'^ได้$'),
    re.compile(r'^ครับ$'),
    re.compile(r'^ค่ะ$'),
    re.compile(r'^ผ่าน$'),
    re.compile(r'^ใช่$'),
    re.compile(r'^โอเค$'),
    re.compile(r'^เยี่ยม$'),
    re.compile(r'^สุดยอด$'),
]

STOPWORDS = {
    'ที่', 'และ', 'ของ', 'ใน', 'มี', 'ได้', 'ไม่', 'เป็น', 'จะ', 'ก็', 'แต่', 'หรือ',
    'ว่า', 'ให้', 'นี้', 'กับ', 'จาก', 'แล้ว', 'ซึ่ง', 'อยู่', 'คือ', 'ไป', 'มา',
    'กัน', 'ถ้า', 'เพราะ', 'ครับ', 'ค่ะ', 'นะ', 'จ้า',
    'the', 'and', 'for', 'with', 'this', 'that', 'are', 'was', 'but', 'not',
}

KEYWORD_SPLIT = re.compile(r'[\s,.\-/\\]+')
MIN_KEYWORD_LENGTH = 3
MAX_KEYWORDS = 5


@dataclass(frozen=True)
class KeywordVerdicts:
    """Admin-curated keyword lists that override comment quality."""

    approved: tuple = ()
    rejected: tuple = ()

    @classmethod
    def from_lists(cls, approved: Optional[Iterable[str]] = None,
                   rejected: Optional[Iterable[str]] = None) -> "KeywordVerdicts":
        return cls(
            approved=tuple(k.strip() for k in (approved or []) if k and k.strip()),
            rejected=tuple(k.strip() for k in (rejected or []) if k and k.strip()),
        )

    def is_approved(self, comment: str) -> bool:
        lowered = comment.lower()
        return any(k.lower() in lowered for k in self.approved)

    def is_rejected(self, comment: str) -> bool:
        lowered = comment.lower()
        return any(k.lower() == lowered for k in self.rejected)

    def verdict_for(self, keyword: str) -> Optional[bool]:
        lowered = keyword.lower()
        if any(k.lower() == lowered for k in self.approved):
            return True
        if any(k.lower() == lowered for k in self.rejected):
            return False
        return None


NO_VERDICTS = KeywordVerdicts()


def classify_comment(comment: Optional[str],
                     verdicts: Optional[KeywordVerdicts] = None,
                     min_length: Optional[int] = None) -> CommentQuality:
    """Decide whether a criterion comment exists and whether it says anything.

    Args:
        comment: Raw comment text
        verdicts: Approved/rejected keyword overrides
        min_length: When set, shorter comments are low quality

    Returns:
        CommentQuality verdict
    """
    if not comment or not isinstance(comment, str) or not comment.strip():
        return CommentQuality(has_comment=False, is_quality=False, reason='no comment')

    trimmed = comment.strip()
    if DASH_ONLY.match(trimmed):
        return CommentQuality(has_comment=False, is_quality=False,
                              reason='dash only, counted as no comment')

    verdicts = verdicts or NO_VERDICTS
    if verdicts.is_approved(trimmed):
        return CommentQuality(has_comment=True, is_quality=True, reason='approved keyword')
    if verdicts.is_rejected(trimmed):
        return CommentQuality(has_comment=True, is_quality=False, reason='rejected keyword')

    for pattern in LOW_QUALITY_PATTERNS:
        if pattern.match(trimmed):
            return CommentQuality(has_comment=True, is_quality=False, reason='low-content comment')

    if min_length is not None and len(trimmed) < min_length:
        return CommentQuality(has_comment=True, is_quality=False,
                              reason=f'shorter than {min_length} characters')

    return CommentQuality(has_comment=True, is_quality=True)


def extract_keywords(comment: Optional[str]) -> List[str]:
    """Pull up to five salient tokens out of a comment."""
    if not comment or not isinstance(comment, str):
        return []
    trimmed = comment.strip()
    if len(trimmed) < MIN_KEYWORD_LENGTH:
        return []

    words = [w for w in KEYWORD_SPLIT.split(trimmed) if len(w) >= MIN_KEYWORD_LENGTH]
    keywords = [w for w in words if w.lower() not in STOPWORDS]
    return keywords[:MAX_KEYWORDS]


def analyze_comments(comments: Mapping[str, str],
                     criteria: Sequence[RubricCriterion],
                     verdicts: Optional[KeywordVerdicts] = None,
                     min_length: Optional[int] = None) -> CommentAnalysis:
    """Classify every criterion comment of one review."""
    analysis = CommentAnalysis(total_criteria=len(criteria))
    seen = set()

    for criterion in criteria:
        comment = comments.get(criterion.key, '')
        quality = classify_comment(comment, verdicts, min_length)
        analysis.criteria[criterion.key] = quality

        if quality.has_comment:
            analysis.has_comment_count += 1
        if quality.is_quality:
            analysis.quality_count += 1

        for keyword in extract_keywords(comment):
            if keyword not in seen:
                seen.add(keyword)
                analysis.keywords.append(keyword)

    return analysis


def keywords_for_verification(graders: Mapping[str, Grader],
                              verdicts: Optional[KeywordVerdicts] = None) -> List[KeywordEntry]:
    """Build the keyword frequency index admins use to curate verdicts.

    Counts one occurrence per completed review that mentions a keyword.
    """
    verdicts = verdicts or NO_VERDICTS
    index: Dict[str, KeywordEntry] = {}

    for grader in graders.values():
        for detail in grader.details:
            for keyword in detail.keywords:
                entry = index.get(keyword)
                if entry is None:
                    entry = KeywordEntry(keyword=keyword, verified=verdicts.verdict_for(keyword))
                    index[keyword] = entry
                entry.count += 1
                if grader.grader_name not in entry.graders:
                    entry.graders.append(grader.grader_name)

    LOG.debug(f"Keyword index built with {len(index)} keywords")
    return sorted(index.values(), key=lambda e: e.count, reverse=True)
