"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable. Request schemas only fix
field types; length and presence rules live in `registrar.validation`
so every violation can be reported at once.
"""

from pydantic import BaseModel
from typing import List, Optional


class StudentIn(BaseModel):
    """Payload for creating or updating a student."""
    name: Optional[str] = None
    surname: Optional[str] = None
    school_number: Optional[str] = None
    student_class: Optional[str] = None


class CourseIn(BaseModel):
    """Payload for creating or updating a course."""
    name: Optional[str] = None


class StudentOut(BaseModel):
    id: int
    name: str
    surname: str
    school_number: str
    student_class: Optional[str] = None


class CourseOut(BaseModel):
    id: int
    name: str


class StudentAndCoursesOut(BaseModel):
    """A student together with the comma-joined names of its courses."""
    id: int
    name: str
    surname: str
    school_number: str
    courses: str


class DefaultResponse(BaseModel):
    """Acknowledgement returned by mutating endpoints."""
    success: bool
    message: str


class Violation(BaseModel):
    field: Optional[str] = None
    error: str


class ApiError(BaseModel):
    """Error body returned for domain and validation failures."""
    status: int
    message: str
    request_uri: str
    timestamp: str
    violations: List[Violation] = []
