"""Validation helpers for Streamlit forms."""

from __future__ import annotations

import re
from typing import List, Tuple


_COURSE_CODE_RE = re.compile(r"^[A-Z]{2,5}-\d{2,4}[A-Z]?$")


def require_non_empty(value: str, field: str) -> Tuple[bool, str]:
    if not value or not value.strip():
        return False, f"{field} cannot be empty"
    return True, ""


def validate_course_code(value: str, field: str = "Course code") -> Tuple[bool, str]:
    ok, msg = require_non_empty(value, field)
    if not ok:
        return ok, msg
    if not _COURSE_CODE_RE.match(value.strip().upper()):
        return False, f"{field} '{value.strip()}' must look like DEPT-NUMBER (e.g., CSCI-350)"
    return True, ""


def parse_course_codes(text: str) -> List[str]:
    """'csci-350, math-225,,CSCI-350' -> ['CSCI-350', 'MATH-225'].

    Splits on commas, trims, upper-cases and drops blanks and repeats.
    """

    out: List[str] = []
    for part in str(text or "").split(","):
        code = part.strip().upper()
        if code and code not in out:
            out.append(code)
    return out


def validate_course_codes(text: str) -> Tuple[List[str], List[str]]:
    """Return (valid codes, error messages)."""

    codes = parse_course_codes(text)
    if not codes:
        return [], ["Please enter at least one course code"]

    valid: List[str] = []
    errors: List[str] = []
    for code in codes:
        ok, msg = validate_course_code(code)
        if ok:
            valid.append(code)
        else:
            errors.append(msg)
    return valid, errors


def validate_positive_int(value: int, field: str, min_value: int = 1, max_value: int | None = None) -> Tuple[bool, str]:
    if value is None:
        return False, f"{field} is required"
    if value < min_value:
        return False, f"{field} must be >= {min_value}"
    if max_value is not None and value > max_value:
        return False, f"{field} must be <= {max_value}"
    return True, ""
