import itertools
from datetime import datetime

import pytest

from dataset import Dataset, Mark, Student, Subject


PRIMARY_SHEET = """\
ABCID
ROLLNO
STUDENTNAME
DSC-401(TH)_ESE
DSC-401(TH)_CIA
DSC-401(TH)_TOT
DSC-401(TH) LETTER GRADE
DSC-401(TH) CREDIT POINT
BCAMDC-2(PR)_CIA
MDC2(PR)_TOT
MDC2(PR) LETTER GRADE
MDC2(PR) CREDIT POINT
GRAND TOTAL
TOTAL CREDIT
TOTAL CREDIT POINT
SGPA
REMARKS
F.M.: 100 100 200 10 100 100 10 300 8 80 10
1 2023-0101 1234 5678 9012 3456 ASHA RANI 52 20 72 B+ 7.0 18 55 B 6.0 127 8 52 6.5 Q
2 2023-0102 2234 5678 9012 3457 VIKRAM SINGH AB 15 - AB 0.0 16 41 C 5.0 41 4 20 2.5 NQ
3 2023-0103
4 2023-0104 3234 5678 9012 3458 MEERA 88 24 112 A+ 10.0 22 70 A 9.0 182 8 76 9.5 Q
"""

# Fewer than ten lines and no full-marks marker: only the simplified parser accepts it
SIMPLIFIED_SHEET = """\
DSC-401(TH)_ESE
DSC-401(TH)_CIA
DSC-401(TH)_TOT
DSC-401(TH) LETTER GRADE
DSC-401(TH) CREDIT POINT
MDC2(PR)_TOT
MDC2(PR) LETTER GRADE
1 2024-1001 1111 2222 3333 4444 JOHN DOE 50 28 78 B+ 8.0 41 C 119 6 44 7.3 Q
2 2024-1002 1111 2222 3333 4445 JANE ROE 40 25 65 B 7.0 - AB 65 6 28 4.7 NQ
"""

SINGLE_ROW_SHEET = """\
STUDENTID
ROLLNO
STUDENTNAME
DSC-401(TH)_ESE
DSC-401(TH)_TOT
DSC-401(TH) LETTER GRADE
DSC-401(TH) CREDIT POINT
GRAND TOTAL
TOTAL CREDIT
TOTAL CREDIT POINT
SGPA
REMARKS
F.M.: 100 100 10 100 4 40 10
1 2024-1001 9999 1 2 3 4 JOHN DOE 35 78 B+ 4.0 78 4 16 8.0 Q
"""


@pytest.fixture
def primary_sheet():
    return PRIMARY_SHEET


@pytest.fixture
def simplified_sheet():
    return SIMPLIFIED_SHEET


@pytest.fixture
def single_row_sheet():
    return SINGLE_ROW_SHEET


@pytest.fixture
def id_factory():
    """Deterministic ids: id-1, id-2, ..."""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def subjects():
    return (
        Subject(id='sub-1', code='DSC-401(TH)', full_name='DSC-401 (Theory)',
                total_column='DSC-401(TH)_TOT', order_index=0),
        Subject(id='sub-2', code='MDC2(PR)', full_name='MDC2 (Practical)',
                total_column='MDC2(PR)_TOT', order_index=1),
    )


@pytest.fixture
def make_student(subjects):
    """Build a Student with one mark per subject from (total, grade) pairs."""
    counter = itertools.count(1)

    def _make(name, sgpa=0.0, remarks='Q', grand_total=0.0, roll_no=None, abc_id='', marks=()):
        number = next(counter)
        student_marks = tuple(
            Mark(subject_id=subject.id, subject_code=subject.code, total_marks=total, letter_grade=grade)
            for subject, (total, grade) in zip(subjects, marks)
        )
        return Student(
            id=f"stu-{number}",
            abc_id=abc_id,
            roll_no=roll_no if roll_no is not None else f"2024-{number:04d}",
            name=name,
            grand_total=grand_total,
            sgpa=sgpa,
            remarks=remarks,
            marks=student_marks,
        )

    return _make


@pytest.fixture
def make_dataset(subjects):
    def _make(students, name='Test Dataset'):
        return Dataset(
            id='ds-1',
            name=name,
            created_at=datetime(2024, 5, 1, 10, 30, 15, 123456),
            subjects=subjects,
            students=tuple(students),
        )

    return _make
