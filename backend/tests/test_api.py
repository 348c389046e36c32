def _student(client, school_number, name='Ada', surname='Lovelace', student_class=None):
    payload = {'name': name, 'surname': surname, 'school_number': school_number, 'student_class': student_class}
    r = client.post('/students', json=payload)
    assert r.status_code == 201, r.text
    return next(s['id'] for s in client.get('/students').json() if s['school_number'] == school_number)


def _course(client, name):
    r = client.post('/courses', json={'name': name})
    assert r.status_code == 201, r.text
    return next(c['id'] for c in client.get('/courses').json() if c['name'] == name)


def test_health(client):
    r = client.get('/health')
    assert r.status_code == 200
    assert r.json() == {'status': 'ok'}
    assert r.headers['X-Request-ID']


def test_request_id_is_echoed(client):
    r = client.get('/health', headers={'X-Request-ID': 'abc123'})
    assert r.headers['X-Request-ID'] == 'abc123'


def test_student_crud_flow(client):
    r = client.post('/students', json={'name': 'Ada', 'surname': 'Lovelace', 'school_number': 'S-1001'})
    assert r.status_code == 201
    assert r.json() == {'success': True, 'message': 'Created successfully'}
    sid = client.get('/students').json()[0]['id']

    r = client.get(f'/students/{sid}')
    assert r.json() == {'id': sid, 'name': 'Ada', 'surname': 'Lovelace', 'school_number': 'S-1001', 'student_class': None}

    r = client.put(f'/students/{sid}', json={'name': 'Ada', 'surname': 'King', 'school_number': 'S-1001', 'student_class': '10-B'})
    assert r.status_code == 200
    assert r.json()['message'] == 'Updated successfully'
    assert client.get(f'/students/{sid}').json()['surname'] == 'King'

    r = client.delete(f'/students/{sid}')
    assert r.status_code == 200
    assert r.json()['message'] == 'Deleted successfully'
    assert client.get(f'/students/{sid}').status_code == 404


def test_duplicate_school_number_is_conflict(client):
    _student(client, 'S-1001')
    r = client.post('/students', json={'name': 'Bob', 'surname': 'Smith', 'school_number': 'S-1001'})
    assert r.status_code == 409
    body = r.json()
    assert body['status'] == 409
    assert body['message'] == 'There is already a record with the school number S-1001.'
    assert body['request_uri'] == '/students'


def test_validation_violations_are_422(client):
    r = client.post('/students', json={'name': '', 'surname': 'Lovelace', 'school_number': '12'})
    assert r.status_code == 422
    fields = [v['field'] for v in r.json()['violations']]
    assert fields == ['name', 'school_number']
    assert client.get('/students').json() == []


def test_unknown_ids_are_404(client):
    r = client.get('/courses/999')
    assert r.status_code == 404
    assert r.json()['message'] == 'Resource with id: 999 not found!'
    assert client.put('/courses/999', json={'name': 'X'}).status_code == 404
    assert client.delete('/students/999').status_code == 404


def test_enroll_and_queries(client):
    ada = _student(client, 'S-1001')
    alan = _student(client, 'S-1002', name='Alan', surname='Turing')
    physics = _course(client, 'Physics')
    art = _course(client, 'Art')

    r = client.post('/courses/enroll', params={'student_id': ada, 'course_id': physics})
    assert r.status_code == 201
    assert r.json()['success'] is True

    assert [c['id'] for c in client.get(f'/courses/students-all-courses/{ada}').json()] == [physics]
    assert [s['id'] for s in client.get(f'/students/course-all-students/{physics}').json()] == [ada]
    assert [c['id'] for c in client.get('/courses/courses-without-students').json()] == [art]
    assert [s['id'] for s in client.get('/students/students-without-courses').json()] == [alan]

    summary = {row['id']: row['courses'] for row in client.get('/students/student-and-courses').json()}
    assert summary == {ada: 'Physics', alan: ''}

    # empty associations are reported as not found
    assert client.get(f'/courses/students-all-courses/{alan}').status_code == 404
    assert client.get(f'/students/course-all-students/{art}').status_code == 404


def test_enroll_errors(client):
    ada = _student(client, 'S-1001')
    physics = _course(client, 'Physics')
    client.post('/courses/enroll', params={'student_id': ada, 'course_id': physics})

    dup = client.post('/courses/enroll', params={'student_id': ada, 'course_id': physics})
    assert dup.status_code == 409

    missing = client.post('/courses/enroll', params={'student_id': 999, 'course_id': physics})
    assert missing.status_code == 404
    assert missing.json()['message'] == 'Resource with id: 999 not found!'

    for i in range(4):
        cid = _course(client, f'Course {i}')
        assert client.post('/courses/enroll', params={'student_id': ada, 'course_id': cid}).status_code == 201
    extra = _course(client, 'One Too Many')
    full = client.post('/courses/enroll', params={'student_id': ada, 'course_id': extra})
    assert full.status_code == 409
    assert full.json()['message'] == 'You have reached the maximum number of course registrations!'


def test_course_rename_conflict(client):
    _course(client, 'Physics')
    chem = _course(client, 'Chemistry')
    r = client.put(f'/courses/{chem}', json={'name': 'Physics'})
    assert r.status_code == 409
    assert client.get(f'/courses/{chem}').json()['name'] == 'Chemistry'


def test_wrong_field_type_uses_error_body(client):
    r = client.post('/courses', json={'name': 42})
    assert r.status_code == 422
    body = r.json()
    assert body['status'] == 422
    assert body['request_uri'] == '/courses'
    assert body['timestamp']
    assert [v['field'] for v in body['violations']] == ['name']
    assert client.get('/courses').json() == []


def test_enroll_missing_query_parameter_uses_error_body(client):
    r = client.post('/courses/enroll', params={'student_id': 1})
    assert r.status_code == 422
    body = r.json()
    assert body['request_uri'] == '/courses/enroll'
    assert [v['field'] for v in body['violations']] == ['course_id']
