"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the registrar backend.
Controllers are intentionally thin: they validate payloads, delegate to
services, and map results to response schemas. Domain errors raised by
the services are converted to JSON error bodies by the exception
handlers registered below.

Endpoints implemented:
- GET /students, /students/{id}
- GET /students/student-and-courses
- GET /students/students-without-courses
- GET /students/course-all-students/{course_id}
- POST /students, PUT /students/{id}, DELETE /students/{id}
- GET /courses, /courses/{id}
- GET /courses/courses-without-students
- GET /courses/students-all-courses/{student_id}
- POST /courses, PUT /courses/{id}, DELETE /courses/{id}
- POST /courses/enroll
- GET /health
"""

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session
from datetime import datetime, timezone
from typing import List, Optional
import json
import logging
import time
import uuid
from .database import create_db_and_tables, get_session
from . import mappers, services
from .config import settings
from .errors import ConflictError, NotFoundError, RegistrarError
from .schemas import (
    CourseIn,
    CourseOut,
    DefaultResponse,
    StudentAndCoursesOut,
    StudentIn,
    StudentOut,
)
from .validation import normalize, validate_course, validate_student

CREATED_SUCCESS_RESPONSE_MESSAGE = "Created successfully"
UPDATED_SUCCESS_RESPONSE_MESSAGE = "Updated successfully"
DELETED_SUCCESS_RESPONSE_MESSAGE = "Deleted successfully"

app = FastAPI(title="Registrar API")
logger = logging.getLogger("registrar.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


class PayloadInvalid(Exception):
    """Raised by controllers when explicit validation reports violations."""

    def __init__(self, violations: List[dict]):
        super().__init__("request validation failed")
        self.violations = violations


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    logger.info(
        "request_done %s",
        json.dumps(
            {
                "request_id": req_id,
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            },
            ensure_ascii=True,
        ),
    )
    return response


def _error_body(request: Request, status: int, message: str, violations: Optional[List[dict]] = None) -> dict:
    return {
        "status": status,
        "message": message,
        "request_uri": request.url.path,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "violations": violations or [],
    }


@app.exception_handler(RegistrarError)
async def registrar_error_handler(request: Request, exc: RegistrarError):
    if isinstance(exc, NotFoundError):
        status = 404
    elif isinstance(exc, ConflictError):
        status = 409
    else:
        status = 400
    logger.info("request_rejected %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status, content=_error_body(request, status, exc.message))


@app.exception_handler(PayloadInvalid)
async def payload_invalid_handler(request: Request, exc: PayloadInvalid):
    return JSONResponse(status_code=422, content=_error_body(request, 422, str(exc), exc.violations))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    violations = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        # loc is (source, field, ...); a bare ("body",) means the whole payload
        field = str(loc[-1]) if len(loc) > 1 else None
        violations.append({"field": field, "error": err.get("msg", "invalid value")})
    return JSONResponse(status_code=422, content=_error_body(request, 422, "request validation failed", violations))


def _validated(payload, validator) -> dict:
    """Run `validator` over the payload and return it normalized, or raise."""
    data = payload.model_dump()
    violations = validator(data)
    if violations:
        raise PayloadInvalid(violations)
    return normalize(data)


# --- students -------------------------------------------------------------

@app.get('/students', response_model=List[StudentOut])
def list_students(db: Session = Depends(get_session)):
    """List every student in insertion order."""
    return mappers.students_out(services.QueryService(db).list_students())


@app.get('/students/student-and-courses', response_model=List[StudentAndCoursesOut])
def list_students_and_courses(db: Session = Depends(get_session)):
    """List every student with a comma-separated string of its course names."""
    rows = services.QueryService(db).list_students_with_course_summary()
    return [mappers.student_and_courses_out(student, names) for student, names in rows]


@app.get('/students/students-without-courses', response_model=List[StudentOut])
def students_without_courses(db: Session = Depends(get_session)):
    """List students that are not enrolled in any course."""
    return mappers.students_out(services.QueryService(db).find_students_with_no_courses())


@app.get('/students/course-all-students/{course_id}', response_model=List[StudentOut])
def students_for_course(course_id: int, db: Session = Depends(get_session)):
    """List the students enrolled in `course_id`.

    Responds 404 when the course does not exist or has no students.
    """
    return mappers.students_out(services.QueryService(db).find_students_for_course(course_id))


@app.get('/students/{student_id}', response_model=StudentOut)
def get_student(student_id: int, db: Session = Depends(get_session)):
    return mappers.student_out(services.StudentService(db).get(student_id))


@app.post('/students', response_model=DefaultResponse, status_code=201)
def create_student(payload: StudentIn, db: Session = Depends(get_session)):
    """Create a student. The school number must not be in use."""
    data = _validated(payload, validate_student)
    services.StudentService(db).create(**data)
    return DefaultResponse(success=True, message=CREATED_SUCCESS_RESPONSE_MESSAGE)


@app.put('/students/{student_id}', response_model=DefaultResponse)
def update_student(student_id: int, payload: StudentIn, db: Session = Depends(get_session)):
    data = _validated(payload, validate_student)
    services.StudentService(db).update(student_id, **data)
    return DefaultResponse(success=True, message=UPDATED_SUCCESS_RESPONSE_MESSAGE)


@app.delete('/students/{student_id}', response_model=DefaultResponse)
def delete_student(student_id: int, db: Session = Depends(get_session)):
    """Delete a student; its enrollments are removed with it."""
    services.StudentService(db).delete(student_id)
    return DefaultResponse(success=True, message=DELETED_SUCCESS_RESPONSE_MESSAGE)


# --- courses --------------------------------------------------------------

@app.get('/courses', response_model=List[CourseOut])
def list_courses(db: Session = Depends(get_session)):
    return mappers.courses_out(services.QueryService(db).list_courses())


@app.get('/courses/courses-without-students', response_model=List[CourseOut])
def courses_without_students(db: Session = Depends(get_session)):
    """List courses nobody is enrolled in."""
    return mappers.courses_out(services.QueryService(db).find_courses_with_no_students())


@app.get('/courses/students-all-courses/{student_id}', response_model=List[CourseOut])
def courses_for_student(student_id: int, db: Session = Depends(get_session)):
    """List the courses of `student_id`.

    Responds 404 when the student does not exist or has no courses.
    """
    return mappers.courses_out(services.QueryService(db).find_courses_for_student(student_id))


@app.post('/courses/enroll', response_model=DefaultResponse, status_code=201)
def enroll(student_id: int, course_id: int, db: Session = Depends(get_session)):
    """Enroll a student in a course.

    Responds 404 for unknown ids and 409 for duplicate enrollments or
    when either side is at capacity.
    """
    services.EnrollmentService(db).enroll(student_id, course_id)
    return DefaultResponse(success=True, message=CREATED_SUCCESS_RESPONSE_MESSAGE)


@app.get('/courses/{course_id}', response_model=CourseOut)
def get_course(course_id: int, db: Session = Depends(get_session)):
    return mappers.course_out(services.CourseService(db).get(course_id))


@app.post('/courses', response_model=DefaultResponse, status_code=201)
def create_course(payload: CourseIn, db: Session = Depends(get_session)):
    """Create a course. Course names are unique."""
    data = _validated(payload, validate_course)
    services.CourseService(db).create(**data)
    return DefaultResponse(success=True, message=CREATED_SUCCESS_RESPONSE_MESSAGE)


@app.put('/courses/{course_id}', response_model=DefaultResponse)
def update_course(course_id: int, payload: CourseIn, db: Session = Depends(get_session)):
    data = _validated(payload, validate_course)
    services.CourseService(db).update(course_id, **data)
    return DefaultResponse(success=True, message=UPDATED_SUCCESS_RESPONSE_MESSAGE)


@app.delete('/courses/{course_id}', response_model=DefaultResponse)
def delete_course(course_id: int, db: Session = Depends(get_session)):
    services.CourseService(db).delete(course_id)
    return DefaultResponse(success=True, message=DELETED_SUCCESS_RESPONSE_MESSAGE)


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
