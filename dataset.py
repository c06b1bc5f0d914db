"""
=============================================================================
Result Dataset Records
=============================================================================

In-memory records produced by the parser and the analytics engine.

Records:
- Subject / SubjectComponent: papers discovered in the header
- Mark / MarkComponent: one student's result in one subject
- Student: one parsed data row
- Dataset: the complete parse result, immutable once assembled
- ParseResult: success flag, dataset and diagnostics
- SubjectStats, SgpaBucket, DatasetAnalytics: aggregate analytics
- SubjectComparison, ComparisonResult: pairwise comparison
=============================================================================
"""

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from config import DEFAULT_REMARKS

ComponentValue = Union[float, str, None]


def new_id() -> str:
    """Random identifier for parsed entities. Not suitable for anything secret."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class SubjectComponent:
    """Sub-mark column of a subject (ESE, CIA, SubTotal)."""
    key: str      # header name, e.g. "BCACC-103(TH)_ESE"
    label: str    # short label, e.g. "ESE"


@dataclass(frozen=True)
class Subject:
    id: str
    code: str
    full_name: str
    total_column: str
    order_index: int
    components: Tuple[SubjectComponent, ...] = ()


@dataclass(frozen=True)
class MarkComponent:
    key: str
    label: str
    value: ComponentValue = None


@dataclass(frozen=True)
class Mark:
    """One student's result in one subject. Missing values are None."""
    subject_id: str
    subject_code: str
    total_marks: Optional[float] = None
    letter_grade: Optional[str] = None
    credit_point: Optional[float] = None
    components: Tuple[MarkComponent, ...] = ()

    def _component_value(self, label: str) -> Optional[float]:
        for component in self.components:
            if component.label == label:
                return component.value if isinstance(component.value, float) else None
        return None

    @property
    def ese(self) -> Optional[float]:
        """End-semester exam marks, when the sheet has an ESE column."""
        return self._component_value('ESE')

    @property
    def cia(self) -> Optional[float]:
        """Internal assessment marks, when the sheet has a CIA column."""
        return self._component_value('CIA')


@dataclass(frozen=True)
class Student:
    id: str
    abc_id: str
    roll_no: str
    name: str
    grand_total: float = 0.0
    total_credit: float = 0.0
    total_credit_point: float = 0.0
    sgpa: float = 0.0
    remarks: str = DEFAULT_REMARKS
    marks: Tuple[Mark, ...] = ()

    def mark_for(self, subject_code: str) -> Optional[Mark]:
        for mark in self.marks:
            if mark.subject_code == subject_code:
                return mark
        return None


@dataclass(frozen=True)
class Dataset:
    """
    A parsed result sheet.

    Created once per successful parse and never mutated afterwards.
    Every student carries exactly one Mark per subject, in subject order.
    """
    id: str
    name: str
    created_at: datetime
    subjects: Tuple[Subject, ...]
    students: Tuple[Student, ...]
    raw_text: Optional[str] = None

    @property
    def total_students(self) -> int:
        return len(self.students)

    @property
    def total_subjects(self) -> int:
        return len(self.subjects)

    def get_student(self, student_id: str) -> Optional[Student]:
        for student in self.students:
            if student.id == student_id:
                return student
        return None

    def find_by_roll_no(self, roll_no: str) -> Optional[Student]:
        for student in self.students:
            if student.roll_no == roll_no:
                return student
        return None

    def to_dict(self, include_raw_text: bool = False) -> Dict[str, Any]:
        data = asdict(self)
        data['created_at'] = self.created_at.isoformat()
        data['total_students'] = self.total_students
        data['total_subjects'] = self.total_subjects
        if not include_raw_text:
            data.pop('raw_text', None)
        return data


@dataclass
class ParseResult:
    """Outcome of one parser run."""
    success: bool
    dataset: Optional[Dataset] = None
    errors: List[str] = field(default_factory=list)
    rows_parsed: int = 0
    rows_skipped: int = 0
    strategy: Optional[str] = None


# =============================================================================
# ANALYTICS
# =============================================================================

@dataclass(frozen=True)
class SubjectStats:
    subject_code: str
    subject_name: str
    highest: float
    lowest: float
    average: float
    pass_rate: float
    grade_distribution: Dict[str, int]


@dataclass(frozen=True)
class SgpaBucket:
    range: str
    min: float
    max: float
    count: int


@dataclass(frozen=True)
class SgpaExtreme:
    student: Optional[Student]
    sgpa: float


@dataclass(frozen=True)
class DatasetAnalytics:
    total_students: int
    passed_students: int
    failed_students: int
    pass_rate: float
    highest_sgpa: SgpaExtreme
    lowest_sgpa: SgpaExtreme
    average_sgpa: float
    subject_stats: Tuple[SubjectStats, ...]
    sgpa_distribution: Tuple[SgpaBucket, ...]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SubjectComparison:
    subject_code: str
    subject_name: str
    student1_marks: Optional[float]
    student2_marks: Optional[float]
    difference: Optional[float]
    winner: Optional[str]          # 'student1', 'student2', 'tie' or None


@dataclass(frozen=True)
class ScoreComparison:
    student1: float
    student2: float
    winner: str                    # a student's name or 'Tie'


@dataclass(frozen=True)
class OverallComparison:
    grand_total: ScoreComparison
    sgpa: ScoreComparison


@dataclass(frozen=True)
class ComparisonResult:
    student1: Student
    student2: Student
    subject_comparisons: Tuple[SubjectComparison, ...]
    overall_comparison: OverallComparison
