"""Tests for the Canvas peer-review CSV parser."""

import pytest

from peerscope.tools.peer_review.csv_parser import (
    HEADER,
    POSITIONAL,
    NoDataError,
    clean_header,
    parse_csv_text,
    parse_grade,
    read_reviews,
    resolve_columns,
    split_identity,
)


class TestParseGrade:
    """Grade cell parsing."""

    def test_zero_is_a_grade(self):
        assert parse_grade('0') == 0.0
        assert parse_grade('0') is not None

    def test_blank_means_not_graded(self):
        assert parse_grade('') is None
        assert parse_grade('   ') is None
        assert parse_grade(None) is None

    def test_unparseable_means_not_graded(self):
        assert parse_grade('abc') is None
        assert parse_grade('nan') is None
        assert parse_grade('inf') is None

    def test_decimal_grade(self):
        assert parse_grade(' 10.5 ') == 10.5


def test_split_identity():
    """Test splitting the leading id token from the display name."""
    assert split_identity('681510314 ARREERAT WISETMUEN') == ('681510314', 'ARREERAT WISETMUEN')
    assert split_identity('681510314') == ('681510314', '')
    assert split_identity('') == ('', '')
    assert split_identity(None) == ('', '')


def test_clean_header_strips_bom():
    """Test BOM and whitespace removal from header cells."""
    assert clean_header('\ufeffStudent Name ') == 'Student Name'
    assert clean_header(None) == ''


def test_positional_parse(csv_text, sample_rows):
    """Test the default positional layout."""
    parsed = parse_csv_text(csv_text(sample_rows))

    assert parsed.mapping.strategy == POSITIONAL
    assert len(parsed.reviews) == 9
    first = parsed.reviews[0]
    assert first.id == 'review_0'
    assert first.student_name == '6501 Alice Chan'
    assert first.student_id == '6501'
    assert first.student_full_name == 'Alice Chan'
    assert first.grader_id == '6502'
    assert first.grade_given == 10.0
    assert first.is_completed
    assert first.comments['file_access'] == 'เปิดลิงก์ใน OneDrive ได้ปกติ'
    assert first.comments['quality'] == 'ภาพและเสียงคมชัด'
    assert not parsed.reviews[2].is_completed


def test_parse_is_deterministic(csv_text, sample_rows):
    """Parsing the same text twice gives identical reviews."""
    text = csv_text(sample_rows)
    assert parse_csv_text(text).reviews == parse_csv_text(text).reviews


def test_zero_grade_row_is_completed(csv_text, row):
    """Test that a grade of 0 counts as a completed review."""
    parsed = parse_csv_text(csv_text([row('6501 Alice Chan', '6502 Bob Lee', 0)]))
    assert parsed.reviews[0].grade_given == 0.0
    assert parsed.reviews[0].is_completed


def test_header_only_rejected(csv_text):
    """Test that an export without data rows raises NoDataError."""
    with pytest.raises(NoDataError, match="No data rows"):
        parse_csv_text(csv_text([]))


def test_empty_text_rejected():
    """Test that empty input raises NoDataError."""
    with pytest.raises(NoDataError):
        parse_csv_text('')


def test_blank_and_studentless_rows(csv_text, row):
    """Blank rows are dropped; rows without a student are skipped."""
    rows = [
        row('6501 Alice Chan', '6502 Bob Lee', 10),
        [''] * 14,
        row('', '6502 Bob Lee', 10),
    ]
    parsed = parse_csv_text(csv_text(rows))
    assert len(parsed.reviews) == 1
    assert parsed.skipped_rows == 1


def test_short_row_reads_missing_cells_as_empty(csv_text):
    """Test that truncated rows produce empty comments."""
    parsed = parse_csv_text(csv_text([['6501 Alice Chan', '6502 Bob Lee', '9']]))
    review = parsed.reviews[0]
    assert review.grade_given == 9.0
    assert all(c == '' for c in review.comments.values())


def test_bom_prefixed_text(csv_text, sample_rows):
    """Test that a leading BOM does not break the header."""
    parsed = parse_csv_text('\ufeff' + csv_text(sample_rows))
    assert parsed.reviews[0].student_name == '6501 Alice Chan'


def test_header_strategy_follows_renamed_columns(csv_text, good_comments):
    """Test that the header strategy locates reordered leading columns."""
    header = ['Review Assigned', 'Student Name', 'Review Completed', 'Grade Average',
              'Submission Comments'] + [f'_{i}' for i in range(9)]
    rows = [['6502 Bob Lee', '6501 Alice Chan', '10', '', ''] + good_comments]

    parsed = parse_csv_text(csv_text(rows, header=header), strategy=HEADER)

    review = parsed.reviews[0]
    assert review.student_name == '6501 Alice Chan'
    assert review.grader_name == '6502 Bob Lee'
    assert parsed.mapping.fallback_roles == []


def test_header_strategy_falls_back_per_role():
    """Test positional fallback for roles whose header is unrecognised."""
    header = ['Student Name', 'Review Assigned', 'Review Completed', 'Grade Average', 'Notes'] + ['x'] * 9
    mapping = resolve_columns(header, HEADER)
    assert mapping.fallback_roles == ['submission_comments']
    assert mapping.indices['submission_comments'] == 4
    assert 'fallback' in mapping.describe()


def test_header_strategy_ignores_criterion_headers():
    """Test that a criterion column is never taken by a leading role."""
    header = (['Student Name', 'Review Assigned', 'Review Completed', 'Grade Average', 'Notes']
              + ['Submission Comments'] + ['x'] * 8)
    mapping = resolve_columns(header, HEADER)
    assert mapping.indices['submission_comments'] == 4
    assert mapping.fallback_roles == ['submission_comments']


def test_unknown_strategy():
    """Test that an unknown column strategy raises ValueError."""
    with pytest.raises(ValueError, match="Unknown column strategy"):
        resolve_columns(['a'], 'magic')


def test_read_reviews_from_file(tmp_path, csv_text, sample_rows):
    """Test reading a UTF-8-BOM file as Excel saves it."""
    path = tmp_path / 'peer_reviews.csv'
    path.write_text(csv_text(sample_rows), encoding='utf-8-sig')

    parsed = read_reviews(path)
    assert len(parsed.reviews) == 9
    assert parsed.reviews[0].student_name == '6501 Alice Chan'


def test_read_reviews_empty_file(tmp_path):
    """Test that an empty file raises NoDataError."""
    path = tmp_path / 'empty.csv'
    path.write_text('', encoding='utf-8')
    with pytest.raises(NoDataError):
        read_reviews(path)
