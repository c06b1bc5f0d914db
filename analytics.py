"""
=============================================================================
Result Analytics
=============================================================================

Statistics over a parsed Dataset: pass/fail counts, SGPA extremes and
distribution, per-subject statistics, pairwise student comparison, search,
sorting and rankings.

Every function is pure and recomputes from its inputs.
=============================================================================
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from config import (
    DEFAULT_TOP_PERFORMERS, NOT_QUALIFIED, PASS_MARK, QUALIFIED_TOKEN, SGPA_RANGES, SUBJECT_TOPPERS_LIMIT,
)
from dataset import (
    ComparisonResult, Dataset, DatasetAnalytics, OverallComparison, ScoreComparison, SgpaBucket,
    SgpaExtreme, Student, Subject, SubjectComparison, SubjectStats,
)

logger = logging.getLogger(__name__)

TIE = 'Tie'


# =============================================================================
# PASS / FAIL
# =============================================================================

def is_passed(student: Student) -> bool:
    return student.remarks == QUALIFIED_TOKEN or QUALIFIED_TOKEN in student.remarks


def is_failed(student: Student) -> bool:
    """
    NQ, or any remarks without a "Q".

    Not the complement of is_passed(): "NQ" counts as both passed and failed.
    """
    return student.remarks == NOT_QUALIFIED or QUALIFIED_TOKEN not in student.remarks


# =============================================================================
# DATASET ANALYTICS
# =============================================================================

def _subject_totals(students: Sequence[Student], subject_code: str) -> List[Tuple[float, Optional[str]]]:
    """(total marks, letter grade) of every student with a non-null total."""
    values = []
    for student in students:
        mark = student.mark_for(subject_code)
        if mark is not None and mark.total_marks is not None:
            values.append((mark.total_marks, mark.letter_grade))
    return values


def calculate_subject_stats(students: Sequence[Student], subject: Subject) -> SubjectStats:
    """Highest/lowest/average, pass rate and grade histogram of one subject."""
    values = _subject_totals(students, subject.code)
    marks = [total for total, _ in values]

    grade_distribution: Dict[str, int] = {}
    for _, grade in values:
        if grade:
            grade_distribution[grade] = grade_distribution.get(grade, 0) + 1

    if marks:
        passing = [m for m in marks if m >= PASS_MARK]
        highest = max(marks)
        lowest = min(marks)
        average = sum(marks) / len(marks)
        pass_rate = len(passing) / len(marks) * 100
    else:
        highest = lowest = average = pass_rate = 0.0

    return SubjectStats(
        subject_code=subject.code,
        subject_name=subject.full_name,
        highest=highest,
        lowest=lowest,
        average=average,
        pass_rate=pass_rate,
        grade_distribution=grade_distribution,
    )


def sgpa_distribution(students: Sequence[Student]) -> Tuple[SgpaBucket, ...]:
    """
    Count students per fixed SGPA range. Ranges are inclusive on both ends,
    so values between them (e.g. 4.95 or 8.95) fall in no bucket.
    """
    return tuple(
        SgpaBucket(
            range=label,
            min=low,
            max=high,
            count=sum(1 for s in students if low <= s.sgpa <= high),
        )
        for label, low, high in SGPA_RANGES
    )


def calculate_dataset_analytics(dataset: Dataset) -> DatasetAnalytics:
    """
    Compute the aggregate analytics of a dataset.

    Args:
        dataset: Parsed dataset

    Returns:
        DatasetAnalytics (pass rate is 0 for an empty dataset)
    """
    students = dataset.students

    passed = sum(1 for s in students if is_passed(s))
    failed = sum(1 for s in students if is_failed(s))

    by_sgpa = sorted(students, key=lambda s: s.sgpa, reverse=True)
    highest = by_sgpa[0] if by_sgpa else None
    lowest = by_sgpa[-1] if by_sgpa else None

    positive_sgpas = [s.sgpa for s in students if s.sgpa > 0]
    average_sgpa = sum(positive_sgpas) / len(positive_sgpas) if positive_sgpas else 0.0

    analytics = DatasetAnalytics(
        total_students=len(students),
        passed_students=passed,
        failed_students=failed,
        pass_rate=(passed / len(students) * 100) if students else 0.0,
        highest_sgpa=SgpaExtreme(student=highest, sgpa=highest.sgpa if highest else 0.0),
        lowest_sgpa=SgpaExtreme(student=lowest, sgpa=lowest.sgpa if lowest else 0.0),
        average_sgpa=average_sgpa,
        subject_stats=tuple(calculate_subject_stats(students, subject) for subject in dataset.subjects),
        sgpa_distribution=sgpa_distribution(students),
    )

    logger.debug(
        f"Analytics for {dataset.name}: {passed} passed, {failed} failed, "
        f"average SGPA {average_sgpa:.2f}"
    )
    return analytics


# =============================================================================
# COMPARISON
# =============================================================================

def _score_winner(student1: Student, student2: Student, score1: float, score2: float) -> str:
    if score1 > score2:
        return student1.name
    if score1 < score2:
        return student2.name
    return TIE


def compare_students(student1: Student, student2: Student, subjects: Sequence[Subject]) -> ComparisonResult:
    """
    Compare two students subject by subject and overall.

    Differences are student1 - student2 and only defined when both have
    marks for the subject.
    """
    comparisons = []
    for subject in subjects:
        mark1 = student1.mark_for(subject.code)
        mark2 = student2.mark_for(subject.code)
        marks1 = mark1.total_marks if mark1 else None
        marks2 = mark2.total_marks if mark2 else None

        difference = None
        winner = None
        if marks1 is not None and marks2 is not None:
            difference = marks1 - marks2
            winner = 'student1' if difference > 0 else 'student2' if difference < 0 else 'tie'

        comparisons.append(SubjectComparison(
            subject_code=subject.code,
            subject_name=subject.full_name,
            student1_marks=marks1,
            student2_marks=marks2,
            difference=difference,
            winner=winner,
        ))

    overall = OverallComparison(
        grand_total=ScoreComparison(
            student1=student1.grand_total,
            student2=student2.grand_total,
            winner=_score_winner(student1, student2, student1.grand_total, student2.grand_total),
        ),
        sgpa=ScoreComparison(
            student1=student1.sgpa,
            student2=student2.sgpa,
            winner=_score_winner(student1, student2, student1.sgpa, student2.sgpa),
        ),
    )

    return ComparisonResult(
        student1=student1,
        student2=student2,
        subject_comparisons=tuple(comparisons),
        overall_comparison=overall,
    )


# =============================================================================
# SEARCH, SORTING AND RANKING
# =============================================================================

def search_students(students: Sequence[Student], query: str) -> List[Student]:
    """Case-insensitive substring search on name, roll number and ABC id."""
    needle = query.lower().strip()
    if not needle:
        return list(students)

    return [
        s for s in students
        if needle in s.name.lower() or needle in s.roll_no.lower() or needle in s.abc_id.lower()
    ]


SORT_KEYS: Dict[str, Tuple[Callable[[Student], object], bool]] = {
    'sgpa-desc': (lambda s: s.sgpa, True),
    'sgpa-asc': (lambda s: s.sgpa, False),
    'name-asc': (lambda s: s.name.casefold(), False),
    'name-desc': (lambda s: s.name.casefold(), True),
    'total-desc': (lambda s: s.grand_total, True),
    'total-asc': (lambda s: s.grand_total, False),
}


def sort_students(students: Sequence[Student], sort_by: str = 'sgpa-desc') -> List[Student]:
    """Stable sort by one of SORT_KEYS; raises ValueError for anything else."""
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Unknown sort key '{sort_by}'. Choose from: {', '.join(SORT_KEYS)}")
    key, reverse = SORT_KEYS[sort_by]
    return sorted(students, key=key, reverse=reverse)


def get_top_performers(students: Sequence[Student], count: int = DEFAULT_TOP_PERFORMERS) -> List[Student]:
    return sort_students(students, 'sgpa-desc')[:count]


def get_subject_toppers(students: Sequence[Student], subject_code: str,
                        limit: int = SUBJECT_TOPPERS_LIMIT) -> List[Student]:
    """Students with a mark in the subject, best total first."""
    with_marks = []
    for student in students:
        mark = student.mark_for(subject_code)
        if mark is not None and mark.total_marks is not None:
            with_marks.append((mark.total_marks, student))

    with_marks.sort(key=lambda pair: pair[0], reverse=True)
    return [student for _, student in with_marks[:limit]]


def student_rank(students: Sequence[Student], student_id: str) -> Optional[int]:
    """1-based position by descending SGPA, or None if the student is absent."""
    for position, student in enumerate(sort_students(students, 'sgpa-desc'), start=1):
        if student.id == student_id:
            return position
    return None
