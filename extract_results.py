"""
=============================================================================
Result Sheet Extractor
=============================================================================

Converts a copy-pasted, whitespace-delimited result sheet into a Dataset of
subjects, students and marks.

Two input formats are supported by one pipeline:
- PRIMARY: multi-line header terminated by a full-marks marker ("F.M.:" or
  "FULL MARKS"); rows are decoded by header position
- SIMPLIFIED: single header block, data starts at the first line shaped
  like "<serial> <roll no | long id> ..."; rows are decoded by fixed shape

parse_with_fallback() tries PRIMARY first and falls back to SIMPLIFIED when
the primary run fails or decodes no rows.

Usage:
    from extract_results import parse_with_fallback
    result = parse_with_fallback(open('sheet.txt').read(), 'BCA Sem 4')
    if result.success:
        print(result.dataset.total_students)
=============================================================================
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from config import MAX_REPORTED_ROW_ERRORS, MIN_INPUT_LINES
from dataset import Dataset, ParseResult, Subject, SubjectComponent, new_id
from header_analyzer import (
    DATA_START_DETECTORS, HeaderLayout, analyze_headers, build_header_token_map, infer_subject_names,
    unread_subject_name_columns,
)
from row_parser import FIXED_SHAPE, HEADER_ALIGNED, RowDecoder, parse_student_row
from subject_codes import generate_display_name, get_subject_prefix
from tokenizer import INTEGER_RE, split_lines, tokenize

logger = logging.getLogger(__name__)

TOO_SHORT_ERROR = 'Input text is too short. Please paste the complete result data.'
NO_SUBJECTS_ERROR = 'Could not detect any subject columns. Make sure the data contains *_TOT columns.'
NO_ROWS_ERROR = 'No student records could be parsed. Please check the format.'


@dataclass(frozen=True)
class ParseStrategy:
    """How to find the data block and how to read its rows."""
    name: str
    data_start: str                 # key of header_analyzer.DATA_START_DETECTORS
    row_decoder: RowDecoder
    min_lines: int
    default_name_prefix: str


PRIMARY = ParseStrategy(
    name='primary',
    data_start='full_marks_marker',
    row_decoder=HEADER_ALIGNED,
    min_lines=MIN_INPUT_LINES,
    default_name_prefix='Result',
)

SIMPLIFIED = ParseStrategy(
    name='simplified',
    data_start='row_shape',
    row_decoder=FIXED_SHAPE,
    min_lines=0,
    default_name_prefix='Result Analysis',
)

STRATEGIES: Dict[str, ParseStrategy] = {strategy.name: strategy for strategy in (PRIMARY, SIMPLIFIED)}


class ResultSheetParser:
    """
    Parser for pasted result sheets.

    Key Features:
    - Header-driven subject discovery (no fixed schema)
    - Component columns matched to subjects despite code spelling differences
    - Row-level failures are counted and reported, never fatal
    - Never raises for malformed input; returns a failed ParseResult instead
    """

    def __init__(self, strategy: ParseStrategy = PRIMARY, id_factory: Optional[Callable[[], str]] = None):
        """
        Initialize the parser.

        Args:
            strategy: PRIMARY or SIMPLIFIED (or any custom ParseStrategy)
            id_factory: Produces ids for the dataset, subjects and students
        """
        self.strategy = strategy
        self.id_factory = id_factory or new_id
        self.logger = logging.getLogger(__name__)

    def _failure(self, message: str, rows_skipped: int = 0) -> ParseResult:
        return ParseResult(
            success=False,
            errors=[message],
            rows_parsed=0,
            rows_skipped=rows_skipped,
            strategy=self.strategy.name,
        )

    def build_subjects(self, layout: HeaderLayout, subject_names: Dict[str, str]) -> List[Subject]:
        """Finalize discovered subjects with ids and display names."""
        subjects = []
        for index, info in enumerate(layout.subjects):
            prefix = get_subject_prefix(info.code)
            subject_name = subject_names.get(prefix) if prefix else None
            subjects.append(Subject(
                id=self.id_factory(),
                code=info.code,
                full_name=generate_display_name(info.code, subject_name),
                total_column=info.tot_header,
                order_index=index,
                components=tuple(SubjectComponent(key=c.key, label=c.label) for c in info.components),
            ))
        return subjects

    def parse(self, raw_text: str, dataset_name: Optional[str] = None) -> ParseResult:
        """
        Parse raw result text.

        Args:
            raw_text: Pasted result sheet
            dataset_name: Display name; defaults to a date-stamped name

        Returns:
            ParseResult with the dataset on success
        """
        lines = split_lines(raw_text)
        self.logger.info(f"Parsing {len(lines)} non-empty lines with the {self.strategy.name} strategy")

        if len(lines) < self.strategy.min_lines:
            self.logger.warning(f"Input too short: {len(lines)} lines, need {self.strategy.min_lines}")
            return self._failure(TOO_SHORT_ERROR)

        try:
            return self._parse_lines(raw_text, lines, dataset_name)
        except Exception as e:
            self.logger.exception(f"Unexpected error while parsing: {e}")
            return self._failure(f"Parse error: {e}")

    def _parse_lines(self, raw_text: str, lines: Sequence[str], dataset_name: Optional[str]) -> ParseResult:
        detect_data_start = DATA_START_DETECTORS[self.strategy.data_start]
        headers, data_start_index = detect_data_start(lines)
        layout = analyze_headers(headers)

        if not layout.subjects:
            self.logger.warning(f"No subject columns among {len(headers)} header lines")
            return self._failure(NO_SUBJECTS_ERROR)

        self.logger.info(f"Found {len(layout.subjects)} subjects, data starts at line {data_start_index + 1}")

        first_row = tokenize(lines[data_start_index]) if data_start_index < len(lines) else []
        subject_names = infer_subject_names(first_row, layout)
        if subject_names:
            self.logger.info(f"Subject names from *_SUBJECT columns: {subject_names}")

        token_map = build_header_token_map(layout.headers, unread_subject_name_columns(layout, subject_names))

        subjects = self.build_subjects(layout, subject_names)

        students = []
        errors = []
        rows_skipped = 0

        for i in range(data_start_index, len(lines)):
            tokens = tokenize(lines[i])
            if not tokens or not INTEGER_RE.match(tokens[0]):
                continue

            student = parse_student_row(
                tokens, layout, subjects, token_map,
                decoder=self.strategy.row_decoder,
                id_factory=self.id_factory,
            )

            if student:
                students.append(student)
                self.logger.debug(f"  ✓ {student.roll_no or '-'}: {student.name} (SGPA: {student.sgpa})")
            else:
                rows_skipped += 1
                self.logger.warning(f"  ✗ Could not parse row {i + 1}")
                if rows_skipped <= MAX_REPORTED_ROW_ERRORS:
                    errors.append(f"Could not parse row {i + 1}")

        if not students:
            self.logger.error(f"No student records parsed ({rows_skipped} rows skipped)")
            return self._failure(NO_ROWS_ERROR, rows_skipped=rows_skipped)

        created_at = datetime.now()
        name = dataset_name or f"{self.strategy.default_name_prefix} - {created_at.strftime('%d/%m/%Y')}"

        dataset = Dataset(
            id=self.id_factory(),
            name=name,
            created_at=created_at,
            subjects=tuple(subjects),
            students=tuple(students),
            raw_text=raw_text,
        )

        self.logger.info(f"Parsed {len(students)} students, skipped {rows_skipped} rows")

        return ParseResult(
            success=True,
            dataset=dataset,
            errors=errors,
            rows_parsed=len(students),
            rows_skipped=rows_skipped,
            strategy=self.strategy.name,
        )


def parse_result_text(raw_text: str, dataset_name: Optional[str] = None,
                      id_factory: Optional[Callable[[], str]] = None) -> ParseResult:
    """Parse with the primary (full-marks marker) strategy."""
    return ResultSheetParser(PRIMARY, id_factory).parse(raw_text, dataset_name)


def parse_simplified_format(raw_text: str, dataset_name: Optional[str] = None,
                            id_factory: Optional[Callable[[], str]] = None) -> ParseResult:
    """Parse with the simplified (row shape) strategy."""
    return ResultSheetParser(SIMPLIFIED, id_factory).parse(raw_text, dataset_name)


def needs_fallback(result: ParseResult) -> bool:
    """True when the primary result should be retried with the simplified parser."""
    return not result.success or (result.rows_parsed == 0 and result.rows_skipped > 0)


def parse_with_fallback(raw_text: str, dataset_name: Optional[str] = None,
                        id_factory: Optional[Callable[[], str]] = None) -> ParseResult:
    """
    Try the primary parser, then the simplified one if needed.

    Returns:
        The simplified result when the fallback ran, otherwise the primary one
    """
    result = parse_result_text(raw_text, dataset_name, id_factory)
    if needs_fallback(result):
        logger.info(f"Primary parse unusable ({'; '.join(result.errors)}), trying simplified format")
        result = parse_simplified_format(raw_text, dataset_name, id_factory)
    return result
