"""SQLModel data models.

This module defines the application's database tables using SQLModel.
`Student` and `Course` are related many-to-many through the `Enrollment`
link table. Each link row represents both directions of the association,
so the two member sets can never disagree.

The `Student.courses` and `Course.students` collections are read-only
views over the link table and are loaded eagerly; new associations are
written only by `EnrollmentService`.
"""

from typing import Optional
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime, timezone
from typing import List


class Enrollment(SQLModel, table=True):
    """A single (student, course) association.

    The composite primary key rejects duplicate pairs at the storage level.
    """
    student_id: int = Field(foreign_key='student.id', primary_key=True)
    course_id: int = Field(foreign_key='course.id', primary_key=True)
    enrolled_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Student(SQLModel, table=True):
    """A student record.

    Fields:
    - `school_number`: unique across students
    - `student_class`: optional class label (e.g. "10-B")
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=50)
    surname: str = Field(max_length=50)
    school_number: str = Field(index=True, nullable=False, unique=True, max_length=50)
    student_class: Optional[str] = Field(default=None, max_length=200)
    courses: List['Course'] = Relationship(
        link_model=Enrollment,
        sa_relationship_kwargs={'viewonly': True, 'lazy': 'selectin'},
    )


class Course(SQLModel, table=True):
    """A course students can enroll in. `name` is unique across courses."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, nullable=False, unique=True, max_length=50)
    students: List[Student] = Relationship(
        link_model=Enrollment,
        sa_relationship_kwargs={'viewonly': True, 'lazy': 'selectin'},
    )
