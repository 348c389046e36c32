"""Pure mapping functions between SQLModel rows and API schemas."""

from typing import Iterable, List
from . import models
from .schemas import CourseOut, StudentAndCoursesOut, StudentOut


def student_out(student: models.Student) -> StudentOut:
    return StudentOut(
        id=student.id,
        name=student.name,
        surname=student.surname,
        school_number=student.school_number,
        student_class=student.student_class,
    )


def course_out(course: models.Course) -> CourseOut:
    return CourseOut(id=course.id, name=course.name)


def students_out(students: Iterable[models.Student]) -> List[StudentOut]:
    return [student_out(s) for s in students]


def courses_out(courses: Iterable[models.Course]) -> List[CourseOut]:
    return [course_out(c) for c in courses]


def student_and_courses_out(student: models.Student, course_names: str) -> StudentAndCoursesOut:
    return StudentAndCoursesOut(
        id=student.id,
        name=student.name,
        surname=student.surname,
        school_number=student.school_number,
        courses=course_names,
    )
