"""
Integration Tests for the Result Sheet Extractor

Runs whole pasted sheets through both strategies and the fallback rule.
"""

from unittest import mock

import pytest

import extract_results
from dataset import ParseResult
from extract_results import (
    NO_ROWS_ERROR, NO_SUBJECTS_ERROR, PRIMARY, SIMPLIFIED, TOO_SHORT_ERROR, ResultSheetParser,
    needs_fallback, parse_result_text, parse_simplified_format, parse_with_fallback,
)


NAMED_SUBJECT_SHEET = """\
ROLLNO
STUDENTNAME
DSC-401(TH)_TOT
DSC-401(TH) LETTER GRADE
IDM-4_SUBJECT
IDM4(TH)_TOT
IDM4(TH) LETTER GRADE
GRAND TOTAL
TOTAL CREDIT
TOTAL CREDIT POINT
SGPA
REMARKS
F.M.: 100 10 100 200 8 80 10
1 2024-1001 1111 2222 3333 4444 ASHA RANI 72 B+ ECONOMICS 60 B 132 8 60 7.5 Q
2 2024-1002 1111 2222 3333 4445 RAVI KUMAR 81 A ECONOMICS 45 C 126 8 58 7.2 Q
"""


class TestPrimaryParser:
    """Tests for the full-marks-marker strategy."""

    def test_parse_when_single_row_sheet_then_one_student(self, single_row_sheet):
        result = parse_result_text(single_row_sheet)

        assert result.success is True
        assert result.strategy == "primary"
        assert result.rows_parsed == 1
        (student,) = result.dataset.students
        assert student.name == "JOHN DOE"
        assert student.sgpa == 8.0
        assert student.remarks == "Q"
        (mark,) = student.marks
        assert mark.subject_code == "DSC-401(TH)"
        assert mark.total_marks == 78
        assert mark.letter_grade == "B+"

    def test_parse_when_primary_sheet_then_subjects_discovered(self, primary_sheet):
        dataset = parse_result_text(primary_sheet).dataset

        assert [s.code for s in dataset.subjects] == ["DSC-401(TH)", "MDC2(PR)"]
        assert [s.full_name for s in dataset.subjects] == ["DSC-401 (Theory)", "MDC2 (Practical)"]
        assert [s.order_index for s in dataset.subjects] == [0, 1]
        assert [c.label for c in dataset.subjects[0].components] == ["ESE", "CIA"]

    def test_parse_when_primary_sheet_then_students_decoded(self, primary_sheet):
        result = parse_result_text(primary_sheet)
        asha, vikram, meera = result.dataset.students

        assert asha.abc_id == "1234 5678 9012 3456"
        assert asha.roll_no == "2023-0101"
        assert asha.name == "ASHA RANI"
        assert (asha.grand_total, asha.total_credit, asha.total_credit_point, asha.sgpa) == (127, 8, 52, 6.5)
        dsc, mdc = asha.marks
        assert (dsc.ese, dsc.cia, dsc.total_marks, dsc.letter_grade, dsc.credit_point) == (52, 20, 72, "B+", 7.0)
        assert (mdc.cia, mdc.total_marks, mdc.letter_grade, mdc.credit_point) == (18, 55, "B", 6.0)

        assert vikram.remarks == "NQ"
        assert vikram.marks[0].total_marks is None
        assert vikram.marks[0].letter_grade == "AB"
        assert vikram.marks[0].components[0].value == "AB"

        assert meera.name == "MEERA"
        assert meera.sgpa == 9.5

    def test_parse_when_short_row_then_skipped_and_reported(self, primary_sheet):
        result = parse_result_text(primary_sheet)

        assert result.rows_parsed == 3
        assert result.rows_skipped == 1
        assert result.errors == ["Could not parse row 21"]

    def test_parse_when_success_then_marks_aligned_with_subjects(self, primary_sheet):
        dataset = parse_result_text(primary_sheet).dataset

        for student in dataset.students:
            assert len(student.marks) == len(dataset.subjects)
            for mark, subject in zip(student.marks, dataset.subjects):
                assert mark.subject_code == subject.code
                assert mark.subject_id == subject.id

    def test_parse_when_name_given_then_used(self, primary_sheet):
        assert parse_result_text(primary_sheet, "BCA Sem 4").dataset.name == "BCA Sem 4"

    def test_parse_when_no_name_then_date_stamped(self, primary_sheet):
        name = parse_result_text(primary_sheet).dataset.name
        assert name.startswith("Result - ")

    def test_parse_when_id_factory_given_then_deterministic_ids(self, primary_sheet, id_factory):
        dataset = parse_result_text(primary_sheet, id_factory=id_factory).dataset

        assert [s.id for s in dataset.subjects] == ["id-1", "id-2"]
        assert [s.id for s in dataset.students] == ["id-3", "id-4", "id-5"]
        assert dataset.id == "id-6"

    def test_parse_when_raw_text_then_kept_on_dataset(self, primary_sheet):
        assert parse_result_text(primary_sheet).dataset.raw_text == primary_sheet

    def test_parse_when_subject_name_column_then_name_and_following_marks_kept(self):
        dataset = parse_result_text(NAMED_SUBJECT_SHEET).dataset

        assert [s.full_name for s in dataset.subjects] == ["DSC-401 (Theory)", "ECONOMICS – IDM4 (Theory)"]
        asha, ravi = dataset.students
        assert [(m.subject_code, m.total_marks, m.letter_grade) for m in asha.marks] == [
            ("DSC-401(TH)", 72.0, "B+"), ("IDM4(TH)", 60.0, "B"),
        ]
        assert (ravi.marks[1].total_marks, ravi.marks[1].letter_grade) == (45.0, "C")
        assert (asha.grand_total, asha.sgpa) == (132, 7.5)


class TestFatalFailures:
    """Tests for structural failures."""

    def test_parse_when_fewer_than_ten_lines_then_too_short(self, simplified_sheet):
        result = parse_result_text(simplified_sheet)

        assert result.success is False
        assert result.dataset is None
        assert result.errors == [TOO_SHORT_ERROR]

    def test_parse_when_empty_text_then_too_short(self):
        assert parse_result_text("").errors == [TOO_SHORT_ERROR]

    def test_parse_when_no_tot_columns_then_no_subjects(self):
        text = "\n".join(["ROLLNO", "STUDENTNAME", "SGPA", "REMARKS"] * 3)
        result = parse_result_text(text)

        assert result.success is False
        assert result.errors == [NO_SUBJECTS_ERROR]

    def test_parse_when_every_row_fails_then_no_rows_error(self, single_row_sheet):
        text = single_row_sheet.replace("JOHN DOE", "") + "2 2024-1002 1 2\n"
        result = parse_result_text(text)

        assert result.success is False
        assert result.errors == [NO_ROWS_ERROR]
        assert result.rows_skipped == 2

    def test_parse_when_unexpected_exception_then_parse_error_result(self, primary_sheet):
        with mock.patch.object(extract_results, "analyze_headers", side_effect=RuntimeError("boom")):
            result = parse_result_text(primary_sheet)

        assert result.success is False
        assert result.errors == ["Parse error: boom"]

    def test_parse_when_many_rows_fail_then_five_messages(self, single_row_sheet):
        bad_rows = "".join(f"{n} 2024-10{n:02d} X\n" for n in range(2, 10))
        result = parse_result_text(single_row_sheet + bad_rows)

        assert result.success is True
        assert result.rows_skipped == 8
        assert len(result.errors) == 5


class TestSimplifiedParserAndFallback:
    """Tests for the row-shape strategy and parse_with_fallback()."""

    def test_simplified_when_sheet_then_students_decoded(self, simplified_sheet):
        result = parse_simplified_format(simplified_sheet)

        assert result.success is True
        assert result.strategy == "simplified"
        john, jane = result.dataset.students
        assert john.abc_id == "1111 2222 3333 4444"
        assert (john.grand_total, john.total_credit, john.total_credit_point, john.sgpa) == (119, 6, 44, 7.3)
        assert john.marks[0].total_marks == 78
        assert john.marks[1].letter_grade == "C"
        assert jane.marks[1].total_marks is None
        assert jane.marks[1].letter_grade == "AB"
        assert jane.remarks == "NQ"

    def test_simplified_when_no_name_then_analysis_prefix(self, simplified_sheet):
        assert parse_simplified_format(simplified_sheet).dataset.name.startswith("Result Analysis - ")

    def test_fallback_when_primary_rejects_then_simplified_succeeds(self, simplified_sheet):
        result = parse_with_fallback(simplified_sheet, "Sem 4")

        assert result.success is True
        assert result.strategy == "simplified"
        assert result.dataset.name == "Sem 4"
        assert result.rows_parsed == 2

    def test_fallback_when_primary_succeeds_then_primary_result(self, primary_sheet):
        assert parse_with_fallback(primary_sheet).strategy == "primary"

    def test_fallback_when_both_fail_then_simplified_errors(self):
        result = parse_with_fallback("nothing useful here")

        assert result.success is False
        assert result.strategy == "simplified"
        assert result.errors == [NO_SUBJECTS_ERROR]

    @pytest.mark.parametrize("result,expected", [
        (ParseResult(success=False), True),
        (ParseResult(success=True, rows_parsed=0, rows_skipped=1), True),
        (ParseResult(success=True, rows_parsed=0, rows_skipped=0), False),
        (ParseResult(success=True, rows_parsed=3, rows_skipped=2), False),
    ])
    def test_needs_fallback_when_result_given_then_rule_applied(self, result, expected):
        assert needs_fallback(result) is expected

    def test_parser_when_strategy_given_then_reported(self, primary_sheet):
        assert ResultSheetParser(PRIMARY).parse(primary_sheet).strategy == PRIMARY.name
        assert ResultSheetParser(SIMPLIFIED).parse("").strategy == SIMPLIFIED.name
