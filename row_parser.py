"""
=============================================================================
Result Sheet Row Parser
=============================================================================

Turns one whitespace-tokenized data line into a Student record.

A data row reads, left to right:
    serial  [roll no | student id]  [ABC id groups]  [roll no]  NAME ...  marks ...  summary

Position-based parsing is used instead of one big regex so that each
heuristic can be tested on its own:
- decode_identity / decode_identity_fixed: roll number, ABC id, student id
- extract_name: greedy name tokens
- read_total / read_grade / read_credit / read_component: value typing
- recover_summary_fields / recover_summary_fields_tail: grand total,
  credits, SGPA and remarks from the end of the row

Two row decoders combine these: HEADER_ALIGNED (primary format) and
FIXED_SHAPE (simplified format).
=============================================================================
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

from config import (
    ABSENT, DEFAULT_REMARKS, MAX_ABC_ID_FRAGMENTS, MAX_SUMMARY_NUMBERS, MIN_PRIMARY_ROW_TOKENS,
    MIN_SIMPLIFIED_ROW_TOKENS, MISSING, SIMPLIFIED_SUMMARY_WINDOW,
)
from dataset import Mark, MarkComponent, Student, Subject, new_id
from header_analyzer import HeaderLayout, SubjectInfo
from tokenizer import (
    ABC_GROUP_RE, FOUR_DIGIT_RE, LONG_ID_RE, SIMPLE_REMARKS_RE, is_grade, is_name_stop, is_numeric,
    is_remarks, is_roll_no, is_short_fragment, parse_number,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityPrefix:
    """Identity fields at the start of a row and where the name begins."""
    roll_no: str
    abc_id: str
    next_index: int


@dataclass(frozen=True)
class SummaryFields:
    grand_total: float = 0.0
    total_credit: float = 0.0
    total_credit_point: float = 0.0
    sgpa: float = 0.0
    remarks: str = DEFAULT_REMARKS


# =============================================================================
# IDENTITY PREFIX
# =============================================================================

def _take_fragments(tokens: Sequence[str], index: int,
                    accept: Callable[[str], bool]) -> Tuple[List[str], int]:
    parts = []
    while len(parts) < MAX_ABC_ID_FRAGMENTS and index < len(tokens) and accept(tokens[index]):
        parts.append(tokens[index])
        index += 1
    return parts, index


def _absorb_overflow(tokens: Sequence[str], index: int, parts: List[str],
                     accept: Callable[[str], bool]) -> Tuple[List[str], int]:
    """
    Extra id groups beyond the fragment window belong to the ABC id when
    they sit directly in front of the name; otherwise leave them alone.
    """
    end = index
    while end < len(tokens) and accept(tokens[end]):
        end += 1
    if end > index and end < len(tokens) and not is_name_stop(tokens[end]):
        return parts + list(tokens[index:end]), end
    return parts, index


def decode_identity(tokens: Sequence[str]) -> IdentityPrefix:
    """
    Decode the identity prefix of a primary-format row.

    Sheets put the roll number either right after the serial number or
    after the block of numeric id groups:
        1 2024-1001 1234 5678 9012 3456 NAME ...    (roll number first)
        1 5501 1234 5678 9012 2024-1001 NAME ...    (student id first)
    """
    index = 1

    if index < len(tokens) and is_roll_no(tokens[index]):
        roll_no = tokens[index]
        parts, index = _take_fragments(tokens, index + 1, is_short_fragment)
        parts, index = _absorb_overflow(tokens, index, parts, is_short_fragment)
        return IdentityPrefix(roll_no=roll_no, abc_id=' '.join(parts), next_index=index)

    student_id = tokens[index] if index < len(tokens) else ''
    index += 1

    abc_id = ''
    if index < len(tokens) and (LONG_ID_RE.match(tokens[index]) or FOUR_DIGIT_RE.match(tokens[index])):
        parts, index = _take_fragments(tokens, index, is_short_fragment)
        parts, index = _absorb_overflow(tokens, index, parts, is_short_fragment)
        abc_id = ' '.join(parts) or student_id

    roll_no = ''
    if index < len(tokens) and is_roll_no(tokens[index]):
        roll_no = tokens[index]
        index += 1

    return IdentityPrefix(roll_no=roll_no, abc_id=abc_id, next_index=index)


def decode_identity_fixed(tokens: Sequence[str]) -> IdentityPrefix:
    """
    Decode the identity prefix of a simplified-format row: roll number (or
    an id that is skipped), up to four 4-5 digit ABC groups, then a roll
    number if none was seen yet.
    """
    roll_no = tokens[1] if len(tokens) > 1 and is_roll_no(tokens[1]) else ''

    parts, index = _take_fragments(tokens, 2, ABC_GROUP_RE.match)
    parts, index = _absorb_overflow(tokens, index, parts, ABC_GROUP_RE.match)

    if not roll_no and index < len(tokens) and is_roll_no(tokens[index]):
        roll_no = tokens[index]
        index += 1

    return IdentityPrefix(roll_no=roll_no, abc_id=' '.join(parts), next_index=index)


def extract_name(tokens: Sequence[str], start: int) -> Tuple[str, int]:
    """
    Consume name tokens from *start* until a number, grade, "AB" or "-".

    Returns:
        Tuple of (name, index of first token after the name); the name is
        '' when nothing could be consumed.
    """
    index = start
    parts = []
    while index < len(tokens) and not is_name_stop(tokens[index]):
        parts.append(tokens[index])
        index += 1
    return ' '.join(parts), index


# =============================================================================
# VALUE TYPING
# =============================================================================

def read_total(token: Optional[str]) -> Optional[float]:
    """Total marks; "-", "AB" and anything non-numeric become None."""
    if token is None or token in (MISSING, ABSENT):
        return None
    return parse_number(token)


def read_grade(token: Optional[str]) -> Optional[str]:
    if token is not None and (is_grade(token) or token == ABSENT):
        return token
    return None


def read_credit(token: Optional[str]) -> Optional[float]:
    if token is None or token == MISSING:
        return None
    return parse_number(token)


def read_component(token: Optional[str], keep_text: bool = True):
    """
    Component values keep "-" and "AB" as literal strings, parse numbers,
    and pass other text through unchanged when *keep_text* is set.
    """
    if token is None:
        return None
    if token in (MISSING, ABSENT):
        return token
    value = parse_number(token)
    if value is not None:
        return value
    return token if keep_text else None


def _token_at(marks_tokens: Sequence[str], token_map: Mapping[int, int], header_index: int) -> Optional[str]:
    if header_index < 0:
        return None
    position = token_map.get(header_index)
    if position is None or position >= len(marks_tokens):
        return None
    return marks_tokens[position]


def read_subject_mark(info: SubjectInfo, subject: Subject, marks_tokens: Sequence[str],
                      token_map: Mapping[int, int], keep_text_components: bool = True) -> Mark:
    """Look up one subject's values in the marks part of a row."""
    components = tuple(
        MarkComponent(
            key=column.key,
            label=column.label,
            value=read_component(_token_at(marks_tokens, token_map, column.header_index), keep_text_components),
        )
        for column in info.components
    )

    return Mark(
        subject_id=subject.id,
        subject_code=subject.code,
        total_marks=read_total(_token_at(marks_tokens, token_map, info.tot_index)),
        letter_grade=read_grade(_token_at(marks_tokens, token_map, info.grade_index)),
        credit_point=read_credit(_token_at(marks_tokens, token_map, info.credit_index)),
        components=components,
    )


# =============================================================================
# SUMMARY FIELDS
# =============================================================================

def recover_summary_fields(marks_tokens: Sequence[str]) -> SummaryFields:
    """
    Scan the row backwards collecting up to five trailing numbers and the
    last remarks token.

    The last four numbers are grand total, total credit, total credit point
    and SGPA. With fewer than four only SGPA is set. Remarks default to "Q".
    """
    numbers: List[float] = []
    remarks = ''

    for token in reversed(marks_tokens):
        if len(numbers) >= MAX_SUMMARY_NUMBERS:
            break
        if is_numeric(token):
            value = parse_number(token)
            if value is not None:
                numbers.insert(0, value)
        elif not remarks and is_remarks(token):
            remarks = token

    remarks = remarks or DEFAULT_REMARKS
    if len(numbers) >= 4:
        grand_total, total_credit, total_credit_point, sgpa = numbers[-4:]
        return SummaryFields(grand_total, total_credit, total_credit_point, sgpa, remarks)
    if numbers:
        return SummaryFields(sgpa=numbers[-1], remarks=remarks)
    return SummaryFields(remarks=remarks)


def recover_summary_fields_tail(marks_tokens: Sequence[str]) -> SummaryFields:
    """
    Read summary fields from the last six tokens only. All numbers stay 0
    unless at least four numeric tokens are present there.
    """
    numbers: List[float] = []
    remarks = DEFAULT_REMARKS

    for token in marks_tokens[-SIMPLIFIED_SUMMARY_WINDOW:]:
        if is_numeric(token):
            value = parse_number(token)
            if value is not None:
                numbers.append(value)
        elif SIMPLE_REMARKS_RE.match(token):
            remarks = token

    if len(numbers) >= 4:
        grand_total, total_credit, total_credit_point, sgpa = numbers[-4:]
        return SummaryFields(grand_total, total_credit, total_credit_point, sgpa, remarks)
    return SummaryFields(remarks=remarks)


# =============================================================================
# ROW DECODERS
# =============================================================================

@dataclass(frozen=True)
class RowDecoder:
    """The row-shape assumptions of one input format."""
    name: str
    min_tokens: int
    decode_identity: Callable[[Sequence[str]], IdentityPrefix]
    recover_summary: Callable[[Sequence[str]], SummaryFields]
    keep_text_components: bool


HEADER_ALIGNED = RowDecoder(
    name='header_aligned',
    min_tokens=MIN_PRIMARY_ROW_TOKENS,
    decode_identity=decode_identity,
    recover_summary=recover_summary_fields,
    keep_text_components=True,
)

FIXED_SHAPE = RowDecoder(
    name='fixed_shape',
    min_tokens=MIN_SIMPLIFIED_ROW_TOKENS,
    decode_identity=decode_identity_fixed,
    recover_summary=recover_summary_fields_tail,
    keep_text_components=False,
)


def parse_student_row(tokens: Sequence[str], layout: HeaderLayout, subjects: Sequence[Subject],
                      token_map: Mapping[int, int], decoder: RowDecoder = HEADER_ALIGNED,
                      id_factory: Callable[[], str] = new_id) -> Optional[Student]:
    """
    Parse one data row.

    Args:
        tokens: Whitespace tokens of the line, starting with the serial number
        layout: Header layout from analyze_headers()
        subjects: Finalized subjects, aligned with layout.subjects
        token_map: Header index -> position in the marks part of the row
        decoder: Row-shape rules to apply
        id_factory: Produces the new student's id

    Returns:
        Student, or None if the row is too short or has no name
    """
    if len(tokens) < decoder.min_tokens:
        logger.debug(f"Row has {len(tokens)} tokens, need {decoder.min_tokens}")
        return None

    identity = decoder.decode_identity(tokens)
    name, marks_start = extract_name(tokens, identity.next_index)
    if not name:
        logger.debug(f"No name found after identity prefix: {' '.join(tokens[:identity.next_index + 1])}")
        return None

    marks_tokens = tokens[marks_start:]
    marks = tuple(
        read_subject_mark(info, subject, marks_tokens, token_map, decoder.keep_text_components)
        for info, subject in zip(layout.subjects, subjects)
    )
    summary = decoder.recover_summary(marks_tokens)

    return Student(
        id=id_factory(),
        abc_id=identity.abc_id,
        roll_no=identity.roll_no,
        name=name,
        grand_total=summary.grand_total,
        total_credit=summary.total_credit,
        total_credit_point=summary.total_credit_point,
        sgpa=summary.sgpa,
        remarks=summary.remarks,
        marks=marks,
    )
