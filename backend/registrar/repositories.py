"""Repository classes encapsulating database operations.

Each repository is small and focused on a single table (students,
courses, enrollments). Repositories return SQLModel objects with their
relationship collections already loaded. `save`/`delete` commit; the
`add`/`delete_for_*` helpers on `EnrollmentRepository` do not commit,
so callers can commit them together with related writes.
"""

import logging
from typing import List, Optional
from sqlmodel import Session, select
from . import models

logger = logging.getLogger("registrar.repositories")


class StudentRepository:
    """CRUD operations for `Student` objects."""
    def __init__(self, session: Session):
        self.session = session

    def get(self, student_id: int) -> Optional[models.Student]:
        """Get a `Student` by primary key or `None` if not found."""
        return self.session.get(models.Student, student_id)

    def list_all(self) -> List[models.Student]:
        """Return all students in insertion (id) order."""
        stmt = select(models.Student).order_by(models.Student.id)
        return self.session.exec(stmt).all()

    def save(self, student: models.Student) -> models.Student:
        """Persist a new or modified student and return the managed instance."""
        self.session.add(student)
        self.session.commit()
        self.session.refresh(student)
        return student

    def delete(self, student: models.Student) -> None:
        """Delete `student` together with its staged enrollment removals."""
        self.session.delete(student)
        self.session.commit()

    def exists_by_school_number(self, school_number: str, exclude_id: Optional[int] = None) -> bool:
        """Return True if another student already holds `school_number`."""
        stmt = select(models.Student.id).where(models.Student.school_number == school_number)
        if exclude_id is not None:
            stmt = stmt.where(models.Student.id != exclude_id)
        return self.session.exec(stmt).first() is not None

    def get_by_school_number(self, school_number: str) -> Optional[models.Student]:
        stmt = select(models.Student).where(models.Student.school_number == school_number)
        return self.session.exec(stmt).first()

    def list_without_courses(self) -> List[models.Student]:
        """Return students that have no enrollment rows."""
        enrolled = select(models.Enrollment.student_id)
        stmt = select(models.Student).where(models.Student.id.not_in(enrolled)).order_by(models.Student.id)
        return self.session.exec(stmt).all()


class CourseRepository:
    """CRUD operations for `Course` objects."""
    def __init__(self, session: Session):
        self.session = session

    def get(self, course_id: int) -> Optional[models.Course]:
        """Get a `Course` by primary key or `None` if not found."""
        return self.session.get(models.Course, course_id)

    def list_all(self) -> List[models.Course]:
        """Return all courses in insertion (id) order."""
        stmt = select(models.Course).order_by(models.Course.id)
        return self.session.exec(stmt).all()

    def save(self, course: models.Course) -> models.Course:
        """Persist a new or modified course and return the managed instance."""
        self.session.add(course)
        self.session.commit()
        self.session.refresh(course)
        return course

    def delete(self, course: models.Course) -> None:
        """Delete `course` together with its staged enrollment removals."""
        self.session.delete(course)
        self.session.commit()

    def exists_by_name(self, name: str, exclude_id: Optional[int] = None) -> bool:
        """Return True if another course already uses `name`."""
        stmt = select(models.Course.id).where(models.Course.name == name)
        if exclude_id is not None:
            stmt = stmt.where(models.Course.id != exclude_id)
        return self.session.exec(stmt).first() is not None

    def get_by_name(self, name: str) -> Optional[models.Course]:
        stmt = select(models.Course).where(models.Course.name == name)
        return self.session.exec(stmt).first()

    def list_without_students(self) -> List[models.Course]:
        """Return courses that have no enrollment rows."""
        enrolled = select(models.Enrollment.course_id)
        stmt = select(models.Course).where(models.Course.id.not_in(enrolled)).order_by(models.Course.id)
        return self.session.exec(stmt).all()


class EnrollmentRepository:
    """Staging helpers for `Enrollment` link rows."""
    def __init__(self, session: Session):
        self.session = session

    def add(self, student_id: int, course_id: int) -> models.Enrollment:
        """Stage a new link row; the caller commits."""
        link = models.Enrollment(student_id=student_id, course_id=course_id)
        self.session.add(link)
        return link

    def delete_for_student(self, student_id: int) -> int:
        """Remove every enrollment held by `student_id` (flushed, not committed)."""
        stmt = select(models.Enrollment).where(models.Enrollment.student_id == student_id)
        return self._delete_all(stmt)

    def delete_for_course(self, course_id: int) -> int:
        """Remove every enrollment of `course_id` (flushed, not committed)."""
        stmt = select(models.Enrollment).where(models.Enrollment.course_id == course_id)
        return self._delete_all(stmt)

    def _delete_all(self, stmt) -> int:
        links = self.session.exec(stmt).all()
        for link in links:
            self.session.delete(link)
        # link rows must be gone before the parent row is deleted
        self.session.flush()
        if links:
            logger.debug("Removed %d enrollment rows", len(links))
        return len(links)
