"""Tests for folding reviews into students and graders."""

from peerscope.tools.peer_review.aggregator import aggregate_reviews
from peerscope.tools.peer_review.comment_quality import KeywordVerdicts
from peerscope.tools.peer_review.settings import ScoringSettings

ALICE = '6501 Alice Chan'
BOB = '6502 Bob Lee'
CAROL = '6503 Carol Wong'


def test_counts_and_keys(review):
    """Test dataset stats and the student/grader maps."""
    reviews = [
        review(0, ALICE, BOB, 10),
        review(1, ALICE, CAROL, None),
        review(2, BOB, ALICE, 0),
        review(3, BOB, '', None),
    ]

    result = aggregate_reviews(reviews)

    assert result.stats.total_reviews == 4
    assert result.stats.completed_reviews == 2
    assert result.stats.incomplete_reviews == 2
    assert result.stats.total_students == 2
    assert result.stats.total_graders == 3
    assert set(result.graders) == {BOB, CAROL, ALICE}

    alice = result.students[ALICE]
    assert alice.student_id == '6501'
    assert alice.full_name == 'Alice Chan'
    assert alice.graders_assigned == 2
    assert alice.graders_completed == 1
    assert alice.grades_received == [10]
    assert alice.reviews_received == ['review_0', 'review_1']

    # a zero grade is a completed review
    assert result.students[BOB].grades_received == [0]
    assert result.students[BOB].graders_assigned == 2

    carol = result.graders[CAROL]
    assert carol.assigned_reviews == 1
    assert carol.completed_reviews == 0
    assert carol.details == []


def test_grader_without_submission(review):
    """Test that graders need no submission of their own."""
    result = aggregate_reviews([review(0, ALICE, CAROL, 9)])
    assert CAROL in result.graders
    assert CAROL not in result.students


def test_detail_completeness(review, good_comments):
    """Test is_complete against the missing-comment threshold."""
    three_missing = ['-', '', '-'] + good_comments[3:]
    four_missing = ['-', '', '-', ''] + good_comments[4:]
    reviews = [
        review(0, ALICE, BOB, 10, three_missing),
        review(1, CAROL, BOB, 10, four_missing),
    ]

    details = aggregate_reviews(reviews).graders[BOB].details

    assert details[0].missing_comments == 3
    assert details[0].is_complete
    assert details[1].missing_comments == 4
    assert not details[1].is_complete
    assert details[0].student_reviewed == ALICE
    assert details[0].total_criteria == 9


def test_quality_stats(review, good_comments):
    """Test the penalty and quality-comment counters."""
    one_low = ['ok'] + good_comments[1:]
    reviews = [
        review(0, ALICE, BOB, 10),
        review(1, BOB, ALICE, 11, one_low),
        review(2, CAROL, ALICE, None, one_low),
    ]

    stats = aggregate_reviews(reviews).stats

    assert stats.reviews_with_quality_comments == 1
    assert stats.reviews_with_penalty == 1


def test_verdicts_change_quality(review, good_comments):
    """Test that approved keywords turn low comments into quality ones."""
    one_low = ['ok'] + good_comments[1:]
    reviews = [review(0, ALICE, BOB, 10, one_low)]
    verdicts = KeywordVerdicts.from_lists(approved=['ok'])

    before = aggregate_reviews(reviews).graders[BOB].details[0]
    after = aggregate_reviews(reviews, verdicts=verdicts).graders[BOB].details[0]

    assert not before.has_all_quality
    assert after.has_all_quality


def test_grader_keywords_unique(review):
    """Test that grader keywords accumulate without duplicates."""
    comments = ['clear screen demo'] * 9
    reviews = [
        review(0, ALICE, BOB, 10, comments),
        review(1, CAROL, BOB, 10, comments),
    ]
    assert aggregate_reviews(reviews).graders[BOB].keywords == ['clear', 'screen', 'demo']


def test_custom_completeness_threshold(review, good_comments):
    """Test that max_missing_comments comes from settings."""
    one_missing = ['-'] + good_comments[1:]
    settings = ScoringSettings(max_missing_comments=0)
    detail = aggregate_reviews([review(0, ALICE, BOB, 10, one_missing)], settings).graders[BOB].details[0]
    assert not detail.is_complete
