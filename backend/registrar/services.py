"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories
and enforce the domain invariants. Services raise the errors defined in
`registrar.errors` at the point of detection and leave transport mapping
to the controllers.

- `StudentService` / `CourseService`: create, update, delete and lookup.
- `EnrollmentService`: the single place allowed to associate a student
  with a course.
- `QueryService`: read-only views derived from the enrollment data.
"""

import logging
from typing import List, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session
from . import models, repositories
from .config import settings
from .errors import (
    CapacityExceededError,
    DuplicateEnrollmentError,
    DuplicateFieldError,
    EntityKind,
    NotFoundError,
)
from .utils.locks import KeyedLocks

logger = logging.getLogger("registrar.services")

COURSE_SUMMARY_SEPARATOR = ", "

enrollment_locks = KeyedLocks()


def _by_id(items):
    return sorted(items, key=lambda item: item.id)


class StudentService:
    """Create, update, delete and look up students."""
    def __init__(self, session: Session):
        self.session = session
        self.student_repo = repositories.StudentRepository(session)
        self.enrollment_repo = repositories.EnrollmentRepository(session)

    def get(self, student_id: int) -> models.Student:
        """Return the student with `student_id` or raise `NotFoundError`."""
        student = self.student_repo.get(student_id)
        if student is None:
            raise NotFoundError(EntityKind.STUDENT, student_id)
        return student

    def create(self, name: str, surname: str, school_number: str, student_class: Optional[str] = None) -> models.Student:
        """Create a student after checking that `school_number` is free."""
        logger.info("Creating a new student with school number %s", school_number)
        if self.student_repo.exists_by_school_number(school_number):
            raise DuplicateFieldError(EntityKind.STUDENT, "school_number", school_number)
        student = models.Student(name=name, surname=surname, school_number=school_number, student_class=student_class)
        return self._save(student)

    def update(self, student_id: int, name: str, surname: str, school_number: str, student_class: Optional[str] = None) -> models.Student:
        """Overwrite every mutable field of an existing student."""
        logger.info("Updating student with ID: %s", student_id)
        student = self.get(student_id)
        if self.student_repo.exists_by_school_number(school_number, exclude_id=student_id):
            raise DuplicateFieldError(EntityKind.STUDENT, "school_number", school_number)
        student.name = name
        student.surname = surname
        student.school_number = school_number
        student.student_class = student_class
        return self._save(student)

    def delete(self, student_id: int) -> None:
        """Delete a student and clear its enrollments in the same transaction."""
        logger.info("Deleting student with ID: %s", student_id)
        student = self.get(student_id)
        with enrollment_locks.hold((EntityKind.STUDENT.value, student_id)):
            try:
                self.enrollment_repo.delete_for_student(student_id)
                self.student_repo.delete(student)
            except Exception:
                self.session.rollback()
                raise

    def _save(self, student: models.Student) -> models.Student:
        try:
            return self.student_repo.save(student)
        except IntegrityError as exc:
            # a concurrent request took the school number between check and write
            self.session.rollback()
            raise DuplicateFieldError(EntityKind.STUDENT, "school_number", student.school_number) from exc


class CourseService:
    """Create, update, delete and look up courses."""
    def __init__(self, session: Session):
        self.session = session
        self.course_repo = repositories.CourseRepository(session)
        self.enrollment_repo = repositories.EnrollmentRepository(session)

    def get(self, course_id: int) -> models.Course:
        """Return the course with `course_id` or raise `NotFoundError`."""
        course = self.course_repo.get(course_id)
        if course is None:
            raise NotFoundError(EntityKind.COURSE, course_id)
        return course

    def create(self, name: str) -> models.Course:
        """Create a course after checking that `name` is free."""
        logger.info("Creating a new course: %s", name)
        if self.course_repo.exists_by_name(name):
            raise DuplicateFieldError(EntityKind.COURSE, "name", name)
        return self._save(models.Course(name=name))

    def update(self, course_id: int, name: str) -> models.Course:
        """Rename an existing course."""
        logger.info("Updating course with ID: %s", course_id)
        course = self.get(course_id)
        if self.course_repo.exists_by_name(name, exclude_id=course_id):
            raise DuplicateFieldError(EntityKind.COURSE, "name", name)
        course.name = name
        return self._save(course)

    def delete(self, course_id: int) -> None:
        """Delete a course and clear its enrollments in the same transaction."""
        logger.info("Deleting course with ID: %s", course_id)
        course = self.get(course_id)
        with enrollment_locks.hold((EntityKind.COURSE.value, course_id)):
            try:
                self.enrollment_repo.delete_for_course(course_id)
                self.course_repo.delete(course)
            except Exception:
                self.session.rollback()
                raise

    def _save(self, course: models.Course) -> models.Course:
        try:
            return self.course_repo.save(course)
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicateFieldError(EntityKind.COURSE, "name", course.name) from exc


class EnrollmentService:
    """Associate students with courses while enforcing the capacity limits.

    Limits default to the configured `MAX_COURSES_PER_STUDENT` and
    `MAX_STUDENTS_PER_COURSE` values.
    """
    def __init__(self, session: Session, max_courses_per_student: Optional[int] = None, max_students_per_course: Optional[int] = None):
        self.session = session
        self.student_repo = repositories.StudentRepository(session)
        self.course_repo = repositories.CourseRepository(session)
        self.enrollment_repo = repositories.EnrollmentRepository(session)
        if max_courses_per_student is None:
            max_courses_per_student = settings.MAX_COURSES_PER_STUDENT
        if max_students_per_course is None:
            max_students_per_course = settings.MAX_STUDENTS_PER_COURSE
        self.max_courses_per_student = max_courses_per_student
        self.max_students_per_course = max_students_per_course

    def enroll(self, student_id: int, course_id: int) -> models.Enrollment:
        """Enroll `student_id` in `course_id`.

        Checks run in a fixed order and the first failure wins:
        student exists, course exists, pair not already linked, student
        below its course limit, course below its student limit. The link
        row is committed once, so both member sets change together or not
        at all.
        """
        logger.info("Enrolling student %s to course %s", student_id, course_id)
        keys = ((EntityKind.STUDENT.value, student_id), (EntityKind.COURSE.value, course_id))
        with enrollment_locks.hold(*keys):
            student = self.student_repo.get(student_id)
            if student is None:
                raise NotFoundError(EntityKind.STUDENT, student_id)
            course = self.course_repo.get(course_id)
            if course is None:
                raise NotFoundError(EntityKind.COURSE, course_id)
            # reload member sets so rows committed by other sessions are counted
            self.session.expire(student)
            self.session.expire(course)

            if any(c.id == course_id for c in student.courses):
                raise DuplicateEnrollmentError(student_id, course_id)
            if len(student.courses) >= self.max_courses_per_student:
                raise CapacityExceededError(EntityKind.COURSE, self.max_courses_per_student)
            if len(course.students) >= self.max_students_per_course:
                raise CapacityExceededError(EntityKind.STUDENT, self.max_students_per_course)

            link = self.enrollment_repo.add(student_id, course_id)
            try:
                self.session.commit()
            except IntegrityError as exc:
                self.session.rollback()
                # a foreign key failure means one side was deleted meanwhile
                if self.student_repo.get(student_id) is None:
                    raise NotFoundError(EntityKind.STUDENT, student_id) from exc
                if self.course_repo.get(course_id) is None:
                    raise NotFoundError(EntityKind.COURSE, course_id) from exc
                raise DuplicateEnrollmentError(student_id, course_id) from exc
            except Exception:
                self.session.rollback()
                raise
            self.session.refresh(link)
        logger.info("Student %s enrolled to course %s", student_id, course_id)
        return link


class QueryService:
    """Read-only views over students, courses and their enrollments."""
    def __init__(self, session: Session):
        self.session = session
        self.student_repo = repositories.StudentRepository(session)
        self.course_repo = repositories.CourseRepository(session)

    def list_students(self) -> List[models.Student]:
        return self.student_repo.list_all()

    def list_courses(self) -> List[models.Course]:
        return self.course_repo.list_all()

    def find_courses_with_no_students(self) -> List[models.Course]:
        return self.course_repo.list_without_students()

    def find_students_with_no_courses(self) -> List[models.Student]:
        return self.student_repo.list_without_courses()

    def find_courses_for_student(self, student_id: int) -> List[models.Course]:
        """Return the courses of a student.

        An existing student without courses is reported as `NotFoundError`
        rather than an empty list.
        """
        logger.info("Fetching courses for student ID: %s", student_id)
        student = self.student_repo.get(student_id)
        if student is None:
            raise NotFoundError(EntityKind.STUDENT, student_id)
        if not student.courses:
            raise NotFoundError(EntityKind.COURSE, f"for student {student_id}")
        return _by_id(student.courses)

    def find_students_for_course(self, course_id: int) -> List[models.Student]:
        """Return the students of a course; an empty course raises `NotFoundError`."""
        logger.info("Fetching students for course ID: %s", course_id)
        course = self.course_repo.get(course_id)
        if course is None:
            raise NotFoundError(EntityKind.COURSE, course_id)
        if not course.students:
            raise NotFoundError(EntityKind.STUDENT, f"for course {course_id}")
        return _by_id(course.students)

    def list_students_with_course_summary(self) -> List[Tuple[models.Student, str]]:
        """Pair every student with the comma-joined names of its courses.

        Students without courses get an empty string.
        """
        out = []
        for student in self.student_repo.list_all():
            names = COURSE_SUMMARY_SEPARATOR.join(c.name for c in _by_id(student.courses))
            out.append((student, names))
        return out
