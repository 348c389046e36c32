import threading
import time

from sqlmodel import select

from registrar import models
from registrar.utils.locks import KeyedLocks
from import_roster import import_roster, main


def test_keyed_locks_serialize_same_key():
    locks = KeyedLocks()
    active = []
    overlaps = []

    def work():
        with locks.hold(('student', 1), ('course', 2)):
            active.append(1)
            if len(active) > 1:
                overlaps.append(True)
            time.sleep(0.01)
            active.pop()

    threads = [threading.Thread(target=work) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert overlaps == []
    assert len(locks) == 0


def test_keyed_locks_release_on_error():
    locks = KeyedLocks()
    try:
        with locks.hold(('course', 1)):
            raise ValueError('boom')
    except ValueError:
        pass
    acquired = threading.Event()

    def grab():
        with locks.hold(('course', 1)):
            acquired.set()

    t = threading.Thread(target=grab)
    t.start()
    t.join(timeout=1)
    assert acquired.is_set()


def test_keyed_locks_drop_keys_after_release():
    locks = KeyedLocks()
    for student_id in range(100):
        with locks.hold(('student', student_id), ('course', 1)):
            assert len(locks) == 2
    assert len(locks) == 0


ROSTER = {
    'courses': [{'name': 'Physics'}, {'name': 'Art'}, {'name': 'Physics'}, {'name': ''}],
    'students': [
        {'name': 'Ada', 'surname': 'Lovelace', 'school_number': 'S-1001'},
        {'name': 'Alan', 'surname': 'Turing', 'school_number': 'S-1002', 'student_class': '11-A'},
        {'name': 'Bad', 'surname': 'Number', 'school_number': '1'},
    ],
    'enrollments': [
        {'school_number': 'S-1001', 'course': 'Physics'},
        {'school_number': 'S-1001', 'course': 'Physics'},
        {'school_number': 'S-9999', 'course': 'Art'},
    ],
}


def test_import_roster(session):
    summary = import_roster(session, ROSTER)
    assert (summary['courses'], summary['students'], summary['enrollments']) == (2, 2, 1)
    errors = {(e['section'], e['index']) for e in summary['errors']}
    assert errors == {('courses', 2), ('courses', 3), ('students', 2), ('enrollments', 1), ('enrollments', 2)}
    physics = session.exec(select(models.Course).where(models.Course.name == 'Physics')).one()
    assert [s.school_number for s in physics.students] == ['S-1001']


def test_import_roster_dry_run_writes_nothing(session):
    summary = import_roster(session, ROSTER, dry_run=True)
    assert (summary['courses'], summary['students'], summary['enrollments']) == (0, 0, 0)
    assert len(summary['errors']) == 2
    assert session.get(models.Course, 1) is None


def test_import_roster_skips_non_object_enrollment(session):
    roster = {
        'courses': [{'name': 'Physics'}],
        'students': [{'name': 'Ada', 'surname': 'Lovelace', 'school_number': 'S-1001'}],
        'enrollments': ['S-1001', {'school_number': 'S-1001', 'course': 'Physics'}],
    }
    summary = import_roster(session, roster)
    assert summary['enrollments'] == 1
    assert summary['errors'] == [{'section': 'enrollments', 'index': 0, 'error': 'enrollment must be an object'}]
    physics = session.exec(select(models.Course).where(models.Course.name == 'Physics')).one()
    assert [s.school_number for s in physics.students] == ['S-1001']


def test_main_rejects_non_object_roster(tmp_path, capsys):
    path = tmp_path / 'roster.json'
    path.write_text('[]', encoding='utf-8')
    assert main(path) == 1
    assert 'Roster must be a JSON object' in capsys.readouterr().out
