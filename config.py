"""
Configuration for the Result Sheet Analyzer

Thresholds and vocabularies used by the parser and the analytics engine.
To tune a heuristic, edit the values below.
"""

# =============================================================================
# INPUT THRESHOLDS
# =============================================================================

MIN_INPUT_LINES = 10              # Primary parser rejects shorter pastes
MIN_DATA_ROW_TOKENS = 10          # First data row must have MORE than this many tokens
MIN_PRIMARY_ROW_TOKENS = 15       # Header-aligned rows shorter than this are skipped
MIN_SIMPLIFIED_ROW_TOKENS = 20    # Fixed-shape rows shorter than this are skipped
MAX_ABC_ID_FRAGMENTS = 4          # ABC ids are split into at most 4 short groups
MAX_ABC_FRAGMENT_DIGITS = 5
MAX_SUMMARY_NUMBERS = 5           # Trailing numbers scanned for summary fields
SIMPLIFIED_SUMMARY_WINDOW = 6     # Trailing tokens read by the fixed-shape decoder
MAX_REPORTED_ROW_ERRORS = 5

# =============================================================================
# HEADER VOCABULARY
# =============================================================================

FULL_MARKS_PREFIX = "F.M.:"
FULL_MARKS_LABEL = "FULL MARKS"
SUMMARY_CODE_EXCLUSIONS = ("GRAND", "FULL")

STUDENT_ID_HEADERS = ("STUDENTID", "STUDENT ID")
ABC_ID_HEADERS = ("ABCID", "ABC ID")
ROLL_NO_HEADERS = ("ROLLNO", "ROLL NO")
STUDENT_NAME_HEADERS = ("STUDENTNAME", "STUDENT NAME")
GRAND_TOTAL_HEADERS = ("GRAND TOTAL",)
TOTAL_CREDIT_HEADERS = ("TOTAL CREDIT",)
TOTAL_CREDIT_POINT_HEADERS = ("TOTAL CREDIT POINT",)
SGPA_HEADERS = ("SGPA",)
REMARKS_HEADERS = ("REMARKS",)

# Identity columns are consumed positionally before the marks block starts
STUDENT_INFO_HEADERS = frozenset(
    h.lower() for h in STUDENT_ID_HEADERS + ABC_ID_HEADERS + ROLL_NO_HEADERS + STUDENT_NAME_HEADERS
)

# =============================================================================
# SUBJECT CODES
# =============================================================================

INSTITUTION_PREFIX = "BCA"
CATEGORY_CODES = ("CC", "SEC", "VAC", "AEC", "DSC", "IDM", "MDC", "GE")
NAMED_CATEGORIES = ("IDM", "MDC", "VAC", "AEC")   # Subject name lives in a *_SUBJECT column

TYPE_LABELS = {
    "TH": "Theory",
    "PR/TU": "Practical",
    "PR": "Practical",
    "TU": "Tutorial",
}

COMPONENT_LABELS = {
    "ESE": "ESE",
    "CIA": "CIA",
    "SUBTOT": "SubTotal",
}

# =============================================================================
# RESULTS
# =============================================================================

DEFAULT_REMARKS = "Q"
QUALIFIED_TOKEN = "Q"
NOT_QUALIFIED = "NQ"
ABSENT = "AB"
MISSING = "-"

PASS_MARK = 40
SUBJECT_TOPPERS_LIMIT = 5
DEFAULT_TOP_PERFORMERS = 5

# (label, min, max) - inclusive on both ends; values between ranges are not counted
SGPA_RANGES = [
    ("9.0 - 10.0", 9.0, 10.0),
    ("8.0 - 8.9", 8.0, 8.9),
    ("7.0 - 7.9", 7.0, 7.9),
    ("6.0 - 6.9", 6.0, 6.9),
    ("5.0 - 5.9", 5.0, 5.9),
    ("< 5.0", 0.0, 4.9),
]

# =============================================================================
# STORAGE AND LOGGING
# =============================================================================

DEFAULT_DB_PATH = "result_datasets.db"
DEFAULT_OUTPUT_DIR = "analysis_output"
LOG_FILE_NAME = "analysis_log.txt"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
