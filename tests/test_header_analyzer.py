"""
Unit Tests for the Header Analyzer

Tests data-start detection, subject/component discovery, fixed columns and
the header-to-token mapping.
"""

from header_analyzer import (
    analyze_headers, build_header_token_map, detect_marker_data_start, detect_row_shape_data_start,
    find_subject_columns, find_subject_name_columns, infer_subject_names, is_full_marks_marker,
    locate_marks_start, unread_subject_name_columns,
)
from tokenizer import split_lines


NAMED_SUBJECT_HEADERS = [
    "ROLLNO",
    "STUDENTNAME",
    "DSC-401(TH)_TOT",
    "DSC-401(TH) LETTER GRADE",
    "IDM-4_SUBJECT",
    "IDM4(TH)_TOT",
    "IDM4(TH) LETTER GRADE",
]


class TestDataStartDetection:
    """Tests for the two data-start detectors."""

    def test_is_full_marks_marker_when_prefix_or_label_then_true(self):
        assert is_full_marks_marker("F.M.: 100 100 200") is True
        assert is_full_marks_marker("full marks") is True
        assert is_full_marks_marker("FULL MARKS 100") is False

    def test_marker_detection_when_marker_present_then_headers_before_marker(self, primary_sheet):
        """Headers stop at the marker; data starts at the first long numeric row."""
        headers, start = detect_marker_data_start(split_lines(primary_sheet))
        assert len(headers) == 17
        assert headers[0] == "ABCID"
        assert headers[-1] == "REMARKS"
        assert start == 18

    def test_marker_detection_when_no_marker_then_all_headers_and_start_zero(self):
        lines = ["CC1(TH)_TOT", "SGPA", "1 2024-1001 A B C D E F G H I J K"]
        headers, start = detect_marker_data_start(lines)
        assert headers == lines
        assert start == 0

    def test_marker_detection_when_no_long_row_after_marker_then_start_zero(self):
        headers, start = detect_marker_data_start(["CC1(TH)_TOT", "F.M.: 100", "1 2 3"])
        assert headers == ["CC1(TH)_TOT"]
        assert start == 0

    def test_row_shape_detection_when_roll_no_row_then_start_at_row(self, simplified_sheet):
        headers, start = detect_row_shape_data_start(split_lines(simplified_sheet))
        assert len(headers) == 7
        assert start == 7

    def test_row_shape_detection_when_long_id_row_then_start_at_row(self):
        lines = ["CC1(TH)_TOT", "F.M.: 100", "5 123456789012 NAME 40"]
        headers, start = detect_row_shape_data_start(lines)
        assert headers == ["CC1(TH)_TOT"]
        assert start == 2


class TestAnalyzeHeaders:
    """Tests for subject, component and fixed column discovery."""

    def test_analyze_when_primary_headers_then_subjects_in_order(self, primary_sheet):
        headers, _ = detect_marker_data_start(split_lines(primary_sheet))
        layout = analyze_headers(headers)

        assert [s.code for s in layout.subjects] == ["DSC-401(TH)", "MDC2(PR)"]
        dsc, mdc = layout.subjects
        assert dsc.tot_index == 5
        assert dsc.grade_index == 6
        assert dsc.credit_index == 7
        assert mdc.tot_index == 9

    def test_analyze_when_component_spelling_differs_then_attached(self, primary_sheet):
        """BCAMDC-2(PR)_CIA belongs to MDC2(PR)."""
        headers, _ = detect_marker_data_start(split_lines(primary_sheet))
        dsc, mdc = analyze_headers(headers).subjects

        assert [c.label for c in dsc.components] == ["ESE", "CIA"]
        assert [c.key for c in mdc.components] == ["BCAMDC-2(PR)_CIA"]

    def test_analyze_when_primary_headers_then_fixed_columns_found(self, primary_sheet):
        headers, _ = detect_marker_data_start(split_lines(primary_sheet))
        layout = analyze_headers(headers)

        assert layout.abc_id_index == 0
        assert layout.roll_no_index == 1
        assert layout.name_index == 2
        assert layout.grand_total_index == 12
        assert layout.total_credit_index == 13
        assert layout.total_credit_point_index == 14
        assert layout.sgpa_index == 15
        assert layout.remarks_index == 16
        assert layout.student_id_index == -1

    def test_find_subjects_when_grand_tot_then_excluded(self):
        subjects = find_subject_columns(["GRAND_TOT", "CC1(TH)_TOT", "FULL_TOT"])
        assert [s.code for s in subjects] == ["CC1(TH)"]

    def test_find_subjects_when_grade_column_missing_then_index_minus_one(self):
        (subject,) = find_subject_columns(["CC1(TH)_TOT"])
        assert subject.grade_index == -1
        assert subject.credit_index == -1

    def test_find_subject_name_columns_when_present_then_prefix_mapped(self):
        assert find_subject_name_columns(NAMED_SUBJECT_HEADERS) == {"IDM": 4}


class TestHeaderTokenMap:
    """Tests for build_header_token_map() and subject name inference."""

    def test_token_map_when_identity_headers_then_skipped(self):
        headers = ["ABCID", "ROLLNO", "STUDENTNAME", "CC1(TH)_TOT", "SGPA"]
        assert build_header_token_map(headers) == {3: 0, 4: 1}

    def test_token_map_when_skip_indices_then_left_out(self):
        assert build_header_token_map(NAMED_SUBJECT_HEADERS, [4]) == {2: 0, 3: 1, 5: 2, 6: 3}

    def test_locate_marks_start_when_roll_and_abc_groups_then_first_mark(self):
        tokens = "1 2023-0101 1234 5678 9012 3456 ASHA RANI 52 20 72".split()
        assert locate_marks_start(tokens) == 8

    def test_locate_marks_start_when_no_name_then_zero(self):
        assert locate_marks_start("1 2023-0101 52 20".split()) == 0

    def test_infer_names_when_text_in_subject_column_then_read(self):
        layout = analyze_headers(NAMED_SUBJECT_HEADERS)
        tokens = "1 2024-1001 ASHA 72 B+ ECONOMICS 60 B".split()
        assert infer_subject_names(tokens, layout) == {"IDM": "ECONOMICS"}

    def test_infer_names_when_number_in_subject_column_then_ignored(self):
        layout = analyze_headers(NAMED_SUBJECT_HEADERS)
        tokens = "1 2024-1001 ASHA 72 B+ 55 60 B".split()
        assert infer_subject_names(tokens, layout) == {}

    def test_unread_columns_when_name_found_then_column_kept_in_map(self):
        layout = analyze_headers(NAMED_SUBJECT_HEADERS)
        assert unread_subject_name_columns(layout, {"IDM": "ECONOMICS"}) == ()

    def test_unread_columns_when_name_missing_then_column_skipped(self):
        layout = analyze_headers(NAMED_SUBJECT_HEADERS)
        assert unread_subject_name_columns(layout, {}) == (4,)
