"""
=============================================================================
Line and Token Helpers
=============================================================================

Splits pasted result text into non-empty lines and whitespace tokens, and
classifies individual tokens (numbers, grades, roll numbers, remarks).

All functions are pure; nothing here keeps state between calls.
=============================================================================
"""

import re
from typing import List, Optional

from config import ABSENT, MAX_ABC_FRAGMENT_DIGITS, MISSING

NUMERIC_RE = re.compile(r'^[\d.]+$')
INTEGER_RE = re.compile(r'^\d+$')
GRADE_RE = re.compile(r'^[A-F][+-]?$')
ROLL_NO_RE = re.compile(r'^\d{4}-\d+$')
LONG_ID_RE = re.compile(r'^\d{10,}$')
FOUR_DIGIT_RE = re.compile(r'^\d{4}$')
ABC_GROUP_RE = re.compile(r'^\d{4,5}$')
REMARKS_RE = re.compile(r'^[#Q]+$|^Q$|^NQ$|^##?#?Q$')
SIMPLE_REMARKS_RE = re.compile(r'^[#Q]+$|^Q$|^NQ$')


def split_lines(raw_text: str) -> List[str]:
    """Return the stripped, non-empty lines of *raw_text* in order."""
    if not raw_text:
        return []
    return [line.strip() for line in raw_text.splitlines() if line.strip()]


def tokenize(line: str) -> List[str]:
    return line.split()


def is_numeric(token: str) -> bool:
    """Digits and dots only, e.g. "78", "8.0", "4.50"."""
    return bool(NUMERIC_RE.match(token))


def parse_number(token: Optional[str]) -> Optional[float]:
    """
    Parse a purely numeric token as float.

    Returns None for dashes, "AB", text, or digit/dot soup such as "1.2.3".
    """
    if token is None or not is_numeric(token):
        return None
    try:
        return float(token)
    except ValueError:
        return None


def is_grade(token: str) -> bool:
    return bool(GRADE_RE.match(token))


def is_roll_no(token: str) -> bool:
    return bool(ROLL_NO_RE.match(token))


def is_short_fragment(token: str) -> bool:
    """An ABC-id group: purely digits, at most five of them."""
    return bool(INTEGER_RE.match(token)) and len(token) <= MAX_ABC_FRAGMENT_DIGITS


def is_name_stop(token: str) -> bool:
    """True when *token* ends a student name (number, grade, absent or dash)."""
    return is_numeric(token) or is_grade(token) or token == ABSENT or token == MISSING


def is_remarks(token: str) -> bool:
    return bool(REMARKS_RE.match(token))
