"""
=============================================================================
Result Sheet Header Analyzer
=============================================================================

Works out the column layout of a pasted result sheet. Every header line is
one column name; the data block starts after the header.

Discovery runs as a sequence of independent passes:
1. Data-start detection (full-marks marker, or shape of the first data row)
2. Subject discovery from <CODE>_TOT columns (+ LETTER GRADE / CREDIT POINT)
3. Component discovery (<CODE>(TH)_ESE, _CIA, _SUBTOT) matched to subjects
4. *_SUBJECT name columns for IDM/MDC/VAC/AEC papers
5. Fixed identity and summary columns (roll no, name, SGPA, remarks, ...)

Each pass takes the header list and returns a new immutable structure.
Column indices of -1 mean "not present in this sheet".
=============================================================================
"""

import logging
import re
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from config import (
    ABC_ID_HEADERS, FULL_MARKS_LABEL, FULL_MARKS_PREFIX, GRAND_TOTAL_HEADERS, MIN_DATA_ROW_TOKENS,
    REMARKS_HEADERS, ROLL_NO_HEADERS, SGPA_HEADERS, STUDENT_ID_HEADERS, STUDENT_INFO_HEADERS,
    STUDENT_NAME_HEADERS, SUMMARY_CODE_EXCLUSIONS, TOTAL_CREDIT_HEADERS, TOTAL_CREDIT_POINT_HEADERS,
)
from subject_codes import (
    codes_match, extract_component_subject_code, extract_subject_code_from_tot,
    get_component_label, get_subject_name_prefix, is_component_header,
)
from tokenizer import INTEGER_RE, ABC_GROUP_RE, is_name_stop, is_roll_no, tokenize

logger = logging.getLogger(__name__)

DATA_ROW_SHAPE_RE = re.compile(r'^\d+\s+(\d{4}-\d+|\d{10,})')


@dataclass(frozen=True)
class ComponentColumn:
    key: str
    label: str
    header_index: int


@dataclass(frozen=True)
class SubjectInfo:
    """Column positions of one subject inside the header list."""
    code: str
    tot_header: str
    grade_header: str
    credit_header: str
    tot_index: int
    grade_index: int
    credit_index: int
    components: Tuple[ComponentColumn, ...] = ()


@dataclass(frozen=True)
class HeaderLayout:
    headers: Tuple[str, ...]
    subjects: Tuple[SubjectInfo, ...]
    subject_name_columns: Mapping[str, int]
    student_id_index: int = -1
    abc_id_index: int = -1
    roll_no_index: int = -1
    name_index: int = -1
    grand_total_index: int = -1
    total_credit_index: int = -1
    total_credit_point_index: int = -1
    sgpa_index: int = -1
    remarks_index: int = -1


# =============================================================================
# DATA-START DETECTION
# =============================================================================

def is_full_marks_marker(line: str) -> bool:
    line = line.strip()
    return line.startswith(FULL_MARKS_PREFIX) or line.upper() == FULL_MARKS_LABEL


def detect_marker_data_start(lines: Sequence[str]) -> Tuple[List[str], int]:
    """
    Header lines run until the full-marks marker. The first later line that
    starts with a number and has more than 10 tokens is the first data row.

    Without a marker every line is a header and the data start stays 0.

    Returns:
        Tuple of (header lines, index of first data line)
    """
    headers = []
    data_start_index = 0
    found_marker = False

    for i, raw_line in enumerate(lines):
        line = raw_line.strip()
        if not line:
            continue

        if is_full_marks_marker(line):
            found_marker = True
            continue

        tokens = tokenize(line)
        if found_marker and len(tokens) > MIN_DATA_ROW_TOKENS and INTEGER_RE.match(tokens[0]):
            data_start_index = i
            break

        if not found_marker:
            headers.append(line)

    if not found_marker:
        logger.warning("No full-marks marker found - treating every line as header, data start 0")

    return headers, data_start_index


def detect_row_shape_data_start(lines: Sequence[str]) -> Tuple[List[str], int]:
    """
    Header lines run until the first line shaped like a data row: a serial
    number followed by a roll number or a long numeric id.
    """
    headers = []
    data_start_index = 0

    for i, raw_line in enumerate(lines):
        line = raw_line.strip()
        if not line or is_full_marks_marker(line):
            continue

        if DATA_ROW_SHAPE_RE.match(line):
            data_start_index = i
            break

        headers.append(line)

    return headers, data_start_index


DATA_START_DETECTORS = {
    'full_marks_marker': detect_marker_data_start,
    'row_shape': detect_row_shape_data_start,
}


# =============================================================================
# SUBJECT DISCOVERY
# =============================================================================

def _find_exact(headers: Sequence[str], label: str) -> int:
    label = label.upper()
    for index, header in enumerate(headers):
        if header.upper() == label:
            return index
    return -1


def find_subject_columns(headers: Sequence[str]) -> Tuple[SubjectInfo, ...]:
    """One SubjectInfo per <CODE>_TOT column, in header order."""
    subjects: Dict[str, SubjectInfo] = {}

    for index, header in enumerate(headers):
        code = extract_subject_code_from_tot(header)
        if not code:
            continue

        # GRAND_TOT / FULL_TOT are summary columns, not papers
        if any(skip in code for skip in SUMMARY_CODE_EXCLUSIONS):
            continue

        grade_header = f"{code} LETTER GRADE"
        credit_header = f"{code} CREDIT POINT"
        subjects[code] = SubjectInfo(
            code=code,
            tot_header=header,
            grade_header=grade_header,
            credit_header=credit_header,
            tot_index=index,
            grade_index=_find_exact(headers, grade_header),
            credit_index=_find_exact(headers, credit_header),
        )

    return tuple(subjects.values())


def attach_components(headers: Sequence[str], subjects: Sequence[SubjectInfo]) -> Tuple[SubjectInfo, ...]:
    """
    Assign every component column to the first subject whose code matches
    the component's embedded code, ordered by column position.
    """
    found: Dict[str, List[ComponentColumn]] = {subject.code: [] for subject in subjects}

    for index, header in enumerate(headers):
        if not is_component_header(header):
            continue

        component_code = extract_component_subject_code(header)
        if not component_code:
            continue

        for subject in subjects:
            if codes_match(component_code, subject.code):
                found[subject.code].append(
                    ComponentColumn(key=header, label=get_component_label(header), header_index=index)
                )
                break
        else:
            logger.debug(f"Component column {header} has no matching subject")

    return tuple(
        replace(subject, components=tuple(sorted(found[subject.code], key=lambda c: c.header_index)))
        for subject in subjects
    )


def find_subject_name_columns(headers: Sequence[str]) -> Dict[str, int]:
    """Category prefix -> header index of its *_SUBJECT column."""
    columns = {}
    for index, header in enumerate(headers):
        prefix = get_subject_name_prefix(header)
        if prefix:
            columns[prefix] = index
    return columns


# =============================================================================
# FIXED COLUMNS
# =============================================================================

def find_column_index(headers: Sequence[str], labels: Iterable[str]) -> int:
    """Index of the first header equal (case-insensitive) to any label, else -1."""
    wanted = {label.upper() for label in labels}
    for index, header in enumerate(headers):
        if header.upper() in wanted:
            return index
    return -1


def find_name_column(headers: Sequence[str]) -> int:
    for index, header in enumerate(headers):
        upper = header.upper()
        if STUDENT_NAME_HEADERS[0] in upper or upper in STUDENT_NAME_HEADERS:
            return index
    return -1


def analyze_headers(headers: Sequence[str]) -> HeaderLayout:
    """Run every discovery pass over the header lines."""
    subjects = attach_components(headers, find_subject_columns(headers))

    layout = HeaderLayout(
        headers=tuple(headers),
        subjects=subjects,
        subject_name_columns=MappingProxyType(find_subject_name_columns(headers)),
        student_id_index=find_column_index(headers, STUDENT_ID_HEADERS),
        abc_id_index=find_column_index(headers, ABC_ID_HEADERS),
        roll_no_index=find_column_index(headers, ROLL_NO_HEADERS),
        name_index=find_name_column(headers),
        grand_total_index=find_column_index(headers, GRAND_TOTAL_HEADERS),
        total_credit_index=find_column_index(headers, TOTAL_CREDIT_HEADERS),
        total_credit_point_index=find_column_index(headers, TOTAL_CREDIT_POINT_HEADERS),
        sgpa_index=find_column_index(headers, SGPA_HEADERS),
        remarks_index=find_column_index(headers, REMARKS_HEADERS),
    )

    logger.debug(
        f"Header layout: {len(layout.headers)} headers, {len(subjects)} subjects, "
        f"{sum(len(s.components) for s in subjects)} components, "
        f"name columns {dict(layout.subject_name_columns)}"
    )
    return layout


# =============================================================================
# HEADER -> DATA TOKEN POSITIONS
# =============================================================================

def build_header_token_map(headers: Sequence[str], skip_indices: Iterable[int] = ()) -> Dict[int, int]:
    """
    Map header index -> token position inside the marks part of a data row.

    Identity columns (id, ABC id, roll no, name) are read before the marks
    part starts, so they get no position. Columns in *skip_indices* are
    left out as well.
    """
    skip = set(skip_indices)
    mapping = {}
    position = 0
    for index, header in enumerate(headers):
        if header.lower() in STUDENT_INFO_HEADERS or index in skip:
            continue
        mapping[index] = position
        position += 1
    return mapping


def locate_marks_start(tokens: Sequence[str]) -> int:
    """
    Best-effort position of the first marks token in a data row: skip the
    serial number, roll numbers and 4-5 digit id groups, then the name.
    Returns 0 when no name is found.
    """
    found_name = False
    for i in range(1, len(tokens)):
        token = tokens[i]
        if is_roll_no(token) or ABC_GROUP_RE.match(token):
            continue
        if not is_name_stop(token):
            found_name = True
            continue
        if found_name:
            return i
    return 0


def infer_subject_names(first_row_tokens: Sequence[str], layout: HeaderLayout) -> Dict[str, str]:
    """
    Read the free-text subject names (e.g. "PHILOSOPHY") of the *_SUBJECT
    columns from one sample data row. The result is shared by all students.
    """
    if not layout.subject_name_columns or not first_row_tokens:
        return {}

    positions = build_header_token_map(layout.headers)
    marks_tokens = first_row_tokens[locate_marks_start(first_row_tokens):]

    names = {}
    for prefix, header_index in layout.subject_name_columns.items():
        position = positions.get(header_index)
        if position is None or position >= len(marks_tokens):
            continue
        value = marks_tokens[position]
        if value and not is_name_stop(value):
            names[prefix] = value
    return names


def unread_subject_name_columns(layout: HeaderLayout, subject_names: Mapping[str, str]) -> Tuple[int, ...]:
    """
    Header indices of the *_SUBJECT columns whose value was not found in the
    marks part of the sample row. Columns that were read keep their slot in
    the token map; the others are left out of it.
    """
    return tuple(
        index for prefix, index in layout.subject_name_columns.items()
        if prefix not in subject_names
    )
