"""Explicit payload validation run before the core sees a request.

Each validator takes a plain dict and returns a list of violations
(`{'field': ..., 'error': ...}`), empty when the payload is valid. All
violations are collected; validation does not stop at the first one.
"""

from typing import List, Optional

STUDENT_RULES = {
    'name': (True, 1, 50),
    'surname': (True, 1, 50),
    'school_number': (True, 5, 50),
    'student_class': (False, 1, 200),
}

COURSE_RULES = {
    'name': (True, 1, 50),
}


def _check_text(field: str, value, required: bool, min_len: int, max_len: int) -> Optional[str]:
    if value is None:
        return f'{field} is required' if required else None
    if not isinstance(value, str):
        return f'{field} must be a string'
    text = value.strip()
    if not text:
        return f'{field} is required' if required else None
    if not (min_len <= len(text) <= max_len):
        return f'{field} must be between {min_len} and {max_len} characters'
    return None


def _validate(payload, rules: dict) -> List[dict]:
    if not isinstance(payload, dict):
        return [{'field': None, 'error': 'payload must be an object'}]
    violations = []
    for field, (required, min_len, max_len) in rules.items():
        error = _check_text(field, payload.get(field), required, min_len, max_len)
        if error:
            violations.append({'field': field, 'error': error})
    return violations


def validate_student(payload: dict) -> List[dict]:
    """Validate a student create/update payload."""
    return _validate(payload, STUDENT_RULES)


def validate_course(payload: dict) -> List[dict]:
    """Validate a course create/update payload."""
    return _validate(payload, COURSE_RULES)


def normalize(payload: dict) -> dict:
    """Strip surrounding whitespace from string values; blank optionals become None."""
    out = {}
    for key, value in payload.items():
        if isinstance(value, str):
            value = value.strip() or None
        out[key] = value
    return out
