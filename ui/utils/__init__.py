"""UI utilities (validators, schedule serialization)."""

from .validators import parse_course_codes, validate_course_code, validate_course_codes

__all__ = ["parse_course_codes", "validate_course_code", "validate_course_codes"]
