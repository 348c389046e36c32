"""CLI script to load courses, students and enrollments from a JSON roster.

Usage: python scripts/import_roster.py [--dry-run] roster.json

The roster file looks like::

    {
      "courses": [{"name": "Physics"}],
      "students": [{"name": "Ada", "surname": "Lovelace", "school_number": "S-1001"}],
      "enrollments": [{"school_number": "S-1001", "course": "Physics"}]
    }

Every record goes through the same validation and services as the HTTP
API. Failing records are reported and skipped; the run continues.
"""
import sys
import argparse
import json
import pathlib
# Ensure `backend/` is on sys.path so `registrar` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from registrar.database import engine, create_db_and_tables
from registrar import repositories, services
from registrar.errors import RegistrarError
from registrar.validation import normalize, validate_course, validate_student


def import_roster(session: Session, roster: dict, dry_run: bool = False) -> dict:
    """Import `roster` using `session` and return a summary.

    The summary counts created courses, students and enrollments and lists
    per-item `errors` as `{'section', 'index', 'error'}` dicts. With
    `dry_run` only validation runs and nothing is written.
    """
    summary = {'courses': 0, 'students': 0, 'enrollments': 0, 'errors': []}

    def fail(section, idx, error):
        summary['errors'].append({'section': section, 'index': idx, 'error': error})

    course_svc = services.CourseService(session)
    student_svc = services.StudentService(session)
    enroll_svc = services.EnrollmentService(session)

    for idx, item in enumerate(roster.get('courses', [])):
        violations = validate_course(item)
        if violations:
            fail('courses', idx, '; '.join(v['error'] for v in violations))
            continue
        if dry_run:
            continue
        try:
            course_svc.create(**normalize({'name': item['name']}))
            summary['courses'] += 1
        except RegistrarError as e:
            fail('courses', idx, e.message)

    for idx, item in enumerate(roster.get('students', [])):
        violations = validate_student(item)
        if violations:
            fail('students', idx, '; '.join(v['error'] for v in violations))
            continue
        if dry_run:
            continue
        fields = {k: item.get(k) for k in ('name', 'surname', 'school_number', 'student_class')}
        try:
            student_svc.create(**normalize(fields))
            summary['students'] += 1
        except RegistrarError as e:
            fail('students', idx, e.message)

    if dry_run:
        return summary

    student_repo = repositories.StudentRepository(session)
    course_repo = repositories.CourseRepository(session)
    for idx, item in enumerate(roster.get('enrollments', [])):
        if not isinstance(item, dict):
            fail('enrollments', idx, 'enrollment must be an object')
            continue
        student = student_repo.get_by_school_number(str(item.get('school_number', '')).strip())
        course = course_repo.get_by_name(str(item.get('course', '')).strip())
        if student is None or course is None:
            fail('enrollments', idx, 'unknown student or course')
            continue
        try:
            enroll_svc.enroll(student.id, course.id)
            summary['enrollments'] += 1
        except RegistrarError as e:
            fail('enrollments', idx, e.message)
    return summary


def main(path: pathlib.Path, dry_run: bool = False) -> int:
    """Read the roster at `path`, import it and print a short report."""
    if not path.exists():
        print(f'Roster file not found at {path}')
        return 1
    try:
        roster = json.loads(path.read_text(encoding='utf-8'))
    except json.JSONDecodeError as e:
        print(f'Invalid roster JSON: {e}')
        return 1
    if not isinstance(roster, dict):
        print('Roster must be a JSON object')
        return 1
    create_db_and_tables()
    with Session(engine) as session:
        summary = import_roster(session, roster, dry_run=dry_run)
    for err in summary['errors']:
        print(f"{err['section']}[{err['index']}]: {err['error']}")
    print(f"Created {summary['courses']} courses, {summary['students']} students, "
          f"{summary['enrollments']} enrollments ({len(summary['errors'])} errors)")
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('roster', type=pathlib.Path, help='Path to the roster JSON file')
    parser.add_argument('--dry-run', action='store_true', help='Validate only, write nothing')
    args = parser.parse_args()
    sys.exit(main(args.roster, dry_run=args.dry_run))
