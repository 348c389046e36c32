"""Domain errors raised by services and mapped to HTTP responses by `main`.

Every error is a per-request, recoverable outcome. Services raise them at
the point of detection; nothing in the core retries or swallows them.
"""

from enum import Enum

RESOURCE_NOT_FOUND_MESSAGE = "Resource with id: {} not found!"
NOT_FOUND_MESSAGE = "Resource with {} not found!"
RESOURCE_MAX_COUNT = "You have reached the maximum number of {} registrations!"
DUPLICATE_NAME = "There is already a record with the name {}."
DUPLICATE_SCHOOL_NUMBER = "There is already a record with the school number {}."
DUPLICATE_ENROLLMENT = "Student {} is already enrolled in course {}."


class EntityKind(str, Enum):
    STUDENT = "student"
    COURSE = "course"

    def __str__(self):
        return self.value


class ConflictReason(str, Enum):
    DUPLICATE_UNIQUE_FIELD = "duplicate_unique_field"
    DUPLICATE_ENROLLMENT = "duplicate_enrollment"
    CAPACITY_EXCEEDED = "capacity_exceeded"


class RegistrarError(Exception):
    """Base class for all domain errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(RegistrarError):
    """A requested entity (or association) does not resolve.

    `identifier` is usually an id; for empty associations it is a short
    description such as ``"for student 3"``.
    """

    def __init__(self, kind: EntityKind, identifier):
        if isinstance(identifier, int):
            message = RESOURCE_NOT_FOUND_MESSAGE.format(identifier)
        else:
            message = NOT_FOUND_MESSAGE.format(kind)
        super().__init__(message)
        self.kind = kind
        self.identifier = identifier


class ConflictError(RegistrarError):
    """An operation would violate a uniqueness or enrollment invariant."""
    reason: ConflictReason


class DuplicateFieldError(ConflictError):
    reason = ConflictReason.DUPLICATE_UNIQUE_FIELD

    def __init__(self, kind: EntityKind, field: str, value: str):
        template = DUPLICATE_SCHOOL_NUMBER if field == "school_number" else DUPLICATE_NAME
        super().__init__(template.format(value))
        self.kind = kind
        self.field = field
        self.value = value


class DuplicateEnrollmentError(ConflictError):
    reason = ConflictReason.DUPLICATE_ENROLLMENT

    def __init__(self, student_id: int, course_id: int):
        super().__init__(DUPLICATE_ENROLLMENT.format(student_id, course_id))
        self.student_id = student_id
        self.course_id = course_id


class CapacityExceededError(ConflictError):
    """A capacity limit was hit.

    `which` names the registrations that ran out: ``COURSE`` when the
    student already holds the maximum number of courses, ``STUDENT`` when
    the course already holds the maximum number of students.
    """
    reason = ConflictReason.CAPACITY_EXCEEDED

    def __init__(self, which: EntityKind, limit: int):
        super().__init__(RESOURCE_MAX_COUNT.format(which))
        self.which = which
        self.limit = limit
