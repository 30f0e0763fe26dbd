from datetime import date, timedelta

from app import refresh_semester_statuses
from models import db, Batch, Semester, SemesterStatus, Student, StudentStatus, Program


def batch_payload(program_id, **overrides):
    payload = {
        'name': 'Spring 2025', 'code': 'bscs-25', 'programId': program_id,
        'startDate': '2025-02-01', 'endDate': '2029-01-31', 'maxStudents': 40,
    }
    payload.update(overrides)
    return payload


def add_unbatched_student(campus, make_user, index):
    user = make_user(f'new{index}@campus.test', 'student')
    student = Student(user_id=user.id, roll_number=f'BSCS-25-00{index}', department_id=campus.department.id,
                      program_id=campus.program.id, status=StudentStatus.ACTIVE)
    db.session.add(student)
    db.session.commit()
    return student


def test_create_batch(admin_client, campus):
    response = admin_client.post('/api/batches', json=batch_payload(campus.program.id))

    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['code'] == 'BSCS-25'
    assert data['status'] == 'upcoming'
    assert data['studentCount'] == 0


def test_batch_dates_validated(admin_client, campus):
    response = admin_client.post('/api/batches', json=batch_payload(campus.program.id, endDate='2024-01-01'))
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Start date must be before end date'

    response = admin_client.post('/api/batches', json=batch_payload(campus.program.id, startDate='01/02/2025'))
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Invalid date format'


def test_batch_code_unique(admin_client, campus):
    response = admin_client.post('/api/batches', json=batch_payload(campus.program.id, code='bscs-24'))

    assert response.status_code == 400
    assert response.get_json()['error'] == 'Batch code already exists'


def test_assign_students_to_batch(admin_client, campus, make_user):
    batch = Batch(name='Spring 2025', code='BSCS-25', program_id=campus.program.id, start_date=date(2025, 2, 1),
                  end_date=date(2029, 1, 31), max_students=2)
    db.session.add(batch)
    db.session.commit()
    students = [add_unbatched_student(campus, make_user, i) for i in range(1, 4)]

    unassigned = admin_client.get('/api/batches/unassigned-students').get_json()['data']
    assert [s['rollNumber'] for s in unassigned] == ['BSCS-25-001', 'BSCS-25-002', 'BSCS-25-003']

    response = admin_client.post(f'/api/batches/{batch.id}/students',
                                 json={'studentIds': [s.id for s in students]})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Batch is full'

    response = admin_client.post(f'/api/batches/{batch.id}/students',
                                 json={'studentIds': [students[0].id, students[1].id]})
    assert response.status_code == 200
    body = response.get_json()
    assert body['assigned'] == 2
    assert body['data']['studentCount'] == 2

    response = admin_client.delete(f'/api/batches/{batch.id}/students?studentId={students[0].id}')
    assert response.status_code == 200
    assert students[0].batch_id is None


def test_assign_student_from_other_program_refused(admin_client, campus, make_user):
    other = Program(name='BS Mathematics', code='BSM', duration=4, department_id=campus.department.id)
    db.session.add(other)
    db.session.commit()
    student = add_unbatched_student(campus, make_user, 1)
    student.program_id = other.id
    db.session.commit()

    response = admin_client.post(f'/api/batches/{campus.batch.id}/students', json={'studentId': student.id})

    assert response.status_code == 400
    assert response.get_json()['error'] == "Student BSCS-25-001 does not belong to this batch's program"


def test_delete_batch_with_students_refused(admin_client, campus):
    response = admin_client.delete(f'/api/batches/{campus.batch.id}')

    assert response.status_code == 400
    assert response.get_json()['error'] == 'Cannot delete batch with assigned students'


def test_batch_capacity_cannot_drop_below_enrolment(admin_client, campus):
    response = admin_client.put(f'/api/batches/{campus.batch.id}', json={'maxStudents': 1})

    assert response.status_code == 400
    assert response.get_json()['error'] == 'maxStudents cannot be less than the number of assigned students'


def test_list_batches_by_program(client, campus, login_as):
    login_as(campus.teacher)

    response = client.get(f'/api/batches?programId={campus.program.id}')

    assert [b['code'] for b in response.get_json()['data']] == ['BSCS-24']


def test_create_semester_derives_status(admin_client):
    """Test a new semester's status comes from its dates"""
    today = date.today()
    response = admin_client.post('/api/semesters', json={
        'name': 'Current', 'startDate': (today - timedelta(days=10)).isoformat(),
        'endDate': (today + timedelta(days=60)).isoformat()
    })
    assert response.status_code == 201
    assert response.get_json()['data']['status'] == 'active'

    response = admin_client.post('/api/semesters', json={
        'name': 'Past', 'startDate': '2020-02-01', 'endDate': '2020-06-30'
    })
    assert response.get_json()['data']['status'] == 'completed'


def test_semester_date_range_validated(admin_client):
    response = admin_client.post('/api/semesters', json={
        'name': 'Backwards', 'startDate': '2025-06-30', 'endDate': '2025-02-01'
    })

    assert response.status_code == 400
    assert response.get_json()['error'] == 'Start date must be before end date'


def test_refresh_semester_statuses(app):
    db.session.add_all([
        Semester(name='Spring', start_date=date(2025, 2, 1), end_date=date(2025, 6, 30),
                 status=SemesterStatus.INACTIVE),
        Semester(name='Fall', start_date=date(2025, 9, 1), end_date=date(2026, 1, 15),
                 status=SemesterStatus.INACTIVE),
    ])
    db.session.commit()

    assert refresh_semester_statuses(date(2025, 3, 1)) == 1
    assert Semester.query.filter_by(name='Spring').one().status == SemesterStatus.ACTIVE
    assert refresh_semester_statuses(date(2025, 3, 1)) == 0


def test_refresh_semesters_endpoint(admin_client):
    db.session.add(Semester(name='Old', start_date=date(2020, 2, 1), end_date=date(2020, 6, 30),
                            status=SemesterStatus.ACTIVE))
    db.session.commit()

    response = admin_client.post('/api/semesters/refresh-statuses')

    assert response.status_code == 200
    assert response.get_json()['data'] == {'updated': 1}
    assert Semester.query.one().status == SemesterStatus.COMPLETED


def test_refresh_semesters_command(app):
    db.session.add(Semester(name='Spring', start_date=date(2025, 2, 1), end_date=date(2025, 6, 30),
                            status=SemesterStatus.INACTIVE))
    db.session.commit()

    result = app.test_cli_runner().invoke(args=['refresh-semesters', '--date', '2025-07-15'])

    assert result.exit_code == 0
    assert '1 semester statuses updated' in result.output
    assert Semester.query.one().status == SemesterStatus.COMPLETED


def test_delete_semester_with_sections_refused(admin_client, campus):
    response = admin_client.delete(f'/api/semesters/{campus.semester.id}')

    assert response.status_code == 400
    assert response.get_json()['error'] == 'Cannot delete semester with associated sections'
