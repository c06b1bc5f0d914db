"""
=============================================================================
Subject Code Normalization and Matching
=============================================================================

Result sheets spell the same paper differently in different columns, e.g.
the total column says "CC103(TH)_TOT" while the component column says
"BCACC-103(TH)_ESE". The helpers here canonicalize codes, decide whether
two spellings denote the same subject, and build display names.

Examples:
    normalize_subject_code("BCACC-103")           -> "CC103"
    codes_match("BCACC-103(TH)", "CC103(TH)")     -> True
    generate_display_name("DSC-401(TH)")          -> "DSC-401 (Theory)"
    generate_display_name("IDM4(TH)", "ECONOMICS") -> "ECONOMICS – IDM4 (Theory)"
=============================================================================
"""

import re
from typing import Optional

from config import CATEGORY_CODES, COMPONENT_LABELS, INSTITUTION_PREFIX, NAMED_CATEGORIES, TYPE_LABELS

_TYPES = r'(TH|PR/TU|PR|TU)'

TYPE_SUFFIX_RE = re.compile(r'\(' + _TYPES + r'\)', re.IGNORECASE)
TRAILING_TYPE_SUFFIX_RE = re.compile(r'\(' + _TYPES + r'\)$', re.IGNORECASE)
INSTITUTION_PREFIX_RE = re.compile(r'^(?:' + INSTITUTION_PREFIX + r'-?)+', re.IGNORECASE)
CATEGORY_CODE_RE = re.compile(r'^(' + '|'.join(CATEGORY_CODES) + r')-?(\d+)', re.IGNORECASE)
NAMED_CATEGORY_RE = re.compile(r'^(' + '|'.join(NAMED_CATEGORIES) + r')-?\d*', re.IGNORECASE)

TOT_HEADER_RE = re.compile(r'^(.+?)_TOT$', re.IGNORECASE)
COMPONENT_HEADER_RE = re.compile(r'\(' + _TYPES + r'\)_(ESE|CIA|SUBTOT)$', re.IGNORECASE)
COMPONENT_CODE_RE = re.compile(r'^(.+?)_(ESE|CIA|SUBTOT)$', re.IGNORECASE)
SUBJECT_NAME_HEADER_RE = re.compile(r'^(' + '|'.join(NAMED_CATEGORIES) + r')[-_]?\d*_SUBJECT$', re.IGNORECASE)


def normalize_subject_code(code: str) -> str:
    """
    Canonicalize a raw subject code.

    Strips the institutional prefix, joins a category abbreviation to its
    number ("CC-103" -> "CC103") and upper-cases the result. Applying it to
    an already normalized code returns the code unchanged.
    """
    normalized = INSTITUTION_PREFIX_RE.sub('', code.strip()).strip()
    normalized = CATEGORY_CODE_RE.sub(r'\1\2', normalized)
    return normalized.upper()


def _loose_key(code: str) -> str:
    return normalize_subject_code(code).replace('-', '')


def codes_match(code1: str, code2: str) -> bool:
    """
    Decide whether two raw codes denote the same subject.

    Rules are tried from strict to loose and the first success wins:
      1. identical strings
      2. identical after dropping every type suffix, normalizing and removing hyphens
      3. identical after dropping only a trailing type suffix, then normalizing
    """
    if code1 == code2:
        return True

    if _loose_key(TYPE_SUFFIX_RE.sub('', code1)) == _loose_key(TYPE_SUFFIX_RE.sub('', code2)):
        return True

    base1 = TRAILING_TYPE_SUFFIX_RE.sub('', code1)
    base2 = TRAILING_TYPE_SUFFIX_RE.sub('', code2)
    return _loose_key(base1) == _loose_key(base2)


def extract_subject_code_from_tot(header: str) -> Optional[str]:
    """"DSC-401(TH)_TOT" -> "DSC-401(TH)"; None for any other header."""
    match = TOT_HEADER_RE.match(header)
    if match:
        return match.group(1).upper()
    return None


def is_component_header(header: str) -> bool:
    return bool(COMPONENT_HEADER_RE.search(header))


def extract_component_subject_code(header: str) -> Optional[str]:
    """"BCACC-103(TH)_ESE" -> "BCACC-103(TH)"."""
    match = COMPONENT_CODE_RE.match(header)
    if match:
        return match.group(1).upper()
    return None


def get_component_label(header: str) -> str:
    """Short label for a component column: "ESE", "CIA" or "SubTotal"."""
    match = COMPONENT_CODE_RE.match(header)
    if match:
        return COMPONENT_LABELS[match.group(2).upper()]
    return header


def get_subject_name_prefix(header: str) -> Optional[str]:
    """Category prefix of a *_SUBJECT column, e.g. "IDM-4_SUBJECT" -> "IDM"."""
    match = SUBJECT_NAME_HEADER_RE.match(header)
    if match:
        return match.group(1).upper()
    return None


def get_subject_prefix(code: str) -> str:
    """Category prefix whose name comes from a *_SUBJECT column, or ''."""
    match = NAMED_CATEGORY_RE.match(code)
    if match:
        return match.group(1).upper()
    return ''


def get_type_label(code: str) -> Optional[str]:
    match = TRAILING_TYPE_SUFFIX_RE.search(code)
    if match:
        return TYPE_LABELS[match.group(1).upper()]
    return None


def get_base_code(code: str) -> str:
    """"DSC-401(TH)" -> "DSC-401"."""
    return TRAILING_TYPE_SUFFIX_RE.sub('', code).strip()


def generate_display_name(code: str, subject_name: Optional[str] = None) -> str:
    type_label = get_type_label(code)
    base_code = get_base_code(code)

    if subject_name:
        if type_label:
            return f"{subject_name} – {base_code} ({type_label})"
        return f"{subject_name} – {base_code}"

    if type_label:
        return f"{base_code} ({type_label})"

    return code
