"""Shared fixtures for peer-review tests."""

import csv
import io

import pytest

from peerscope.tools.peer_review.models import Review
from peerscope.tools.peer_review.rubric import CRITERIA_KEYS

HEADER = [
    'Student Name', 'Review Assigned', 'Review Completed', 'Grade Average', 'Submission Comments',
    'Column1', 'Column2', 'Column3', 'Column4', 'Column5', 'Column6', 'Column7', 'Column8', 'Column9',
]

GOOD_COMMENTS = [
    'เปิดลิงก์ใน OneDrive ได้ปกติ',
    'มีชื่อและคณะครบ',
    'ความยาวประมาณ 4 นาที',
    'ผู้จัดทำปรากฏตัวในคลิป',
    'มีการบันทึกหน้าจอสาธิต',
    'อธิบายประโยชน์ชัดเจน',
    'บอกข้อเสียสองข้อ',
    'ยกตัวอย่าง Canva และ Figma',
    'ภาพและเสียงคมชัด',
]


def make_row(student, grader, grade, comments=None, average=''):
    """One export row; grade None leaves the completed cell blank."""
    comments = GOOD_COMMENTS if comments is None else comments
    return [student, grader, '' if grade is None else str(grade), average, ''] + list(comments)


def to_csv_text(rows, header=HEADER):
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def make_review(index, student, grader, grade, comments=None):
    """Build a Review directly, bypassing the CSV layer."""
    comments = GOOD_COMMENTS if comments is None else comments
    student_id, _, student_full = student.partition(' ')
    grader_id, _, grader_full = grader.partition(' ')
    return Review(
        id=f"review_{index}",
        student_name=student,
        student_id=student_id,
        student_full_name=student_full,
        grader_name=grader,
        grader_id=grader_id,
        grader_full_name=grader_full,
        grade_given=grade,
        comments=dict(zip(CRITERIA_KEYS, comments)),
    )


@pytest.fixture
def row():
    return make_row


@pytest.fixture
def csv_text():
    return to_csv_text


@pytest.fixture
def review():
    return make_review


@pytest.fixture
def good_comments():
    return list(GOOD_COMMENTS)


@pytest.fixture
def sample_rows():
    """Three students reviewing each other in a ring, plus one absentee."""
    alice = '6501 Alice Chan'
    bob = '6502 Bob Lee'
    carol = '6503 Carol Wong'
    dave = '6504 Dave Kim'
    return [
        make_row(alice, bob, 10),
        make_row(alice, carol, 11),
        make_row(alice, dave, None),
        make_row(bob, alice, 9),
        make_row(bob, carol, 8),
        make_row(bob, dave, None),
        make_row(carol, alice, 12),
        make_row(carol, bob, 11),
        make_row(carol, dave, None),
    ]
