from datetime import date

from models import (db, Notification, RoleName, AttendanceStatus, Attendance, Session as ClassSession,
                    SystemConfig, AuditLog, AuditAction)
from reports import attendance_tally, department_overview


def test_attendance_tally_counts_late_as_attended():
    tally = attendance_tally([AttendanceStatus.PRESENT, AttendanceStatus.LATE, 'absent', 'excused'])

    assert tally['present'] == 1
    assert tally['late'] == 1
    assert tally['absent'] == 1
    assert tally['excused'] == 1
    assert tally['total'] == 4
    assert tally['percentage'] == 50.0


def test_attendance_tally_empty():
    tally = attendance_tally([])

    assert tally['total'] == 0
    assert tally['percentage'] == 0.0


def test_admin_overview(admin_client, campus):
    admin_client.post('/api/departments', json={'name': 'Physics', 'code': 'PHY'})

    response = admin_client.get('/api/admin/overview')

    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['users'] == 4
    assert data['students'] == 2
    assert data['faculty'] == 1
    assert data['departments'] == 2
    assert data['sections'] == 1
    assert data['recentActivity'][0]['entity'] == 'department'
    assert data['recentActivity'][0]['user']['email'] == 'admin@campus.test'


def test_child_admin_sees_overview_but_teacher_does_not(client, campus, make_user, login_as):
    login_as(make_user('child@campus.test', RoleName.CHILD_ADMIN))
    assert client.get('/api/admin/overview').status_code == 200

    login_as(campus.teacher)
    assert client.get('/api/admin/overview').status_code == 403


def test_admin_analytics(admin_client, campus):
    class_session = ClassSession(section_id=campus.section.id, date=date(2024, 10, 7), topic='Stacks')
    db.session.add(class_session)
    db.session.flush()
    for enrollment, status in zip(campus.enrollments, (AttendanceStatus.PRESENT, AttendanceStatus.ABSENT)):
        db.session.add(Attendance(session_id=class_session.id, student_section_id=enrollment.id, status=status))
    db.session.commit()

    response = admin_client.get('/api/admin/analytics')

    data = response.get_json()['data']
    assert data['studentsPerDepartment'] == [
        {'departmentId': campus.department.id, 'code': 'CS', 'name': 'Computer Science', 'students': 2}
    ]
    assert data['attendanceRate'] == 50.0
    assert data['averageResultPercentage'] == 0.0


def test_send_notification_to_role(admin_client, client, campus, login_as):
    """Test a role broadcast reaches every active user holding it"""
    response = admin_client.post('/api/notifications', json={
        'title': 'Exam week', 'message': 'Midterms start Monday', 'role': 'student', 'email': True
    })

    assert response.status_code == 201
    assert response.get_json()['data'] == {'sent': 2, 'emailed': 0}
    assert Notification.query.count() == 2

    login_as(campus.students[0].user)
    body = client.get('/api/notifications').get_json()
    assert [n['title'] for n in body['data']] == ['Exam week']
    assert body['unreadCount'] == 1


def test_send_notification_to_users(admin_client, campus):
    response = admin_client.post('/api/notifications', json={
        'title': 'Timetable', 'message': 'Room changed', 'type': 'warning', 'userIds': [campus.teacher.id]
    })

    assert response.get_json()['data']['sent'] == 1
    notification = Notification.query.one()
    assert notification.user_id == campus.teacher.id
    assert notification.type.value == 'warning'


def test_send_notification_requires_recipients(admin_client, app):
    response = admin_client.post('/api/notifications', json={'title': 'Hello', 'message': 'World'})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Provide userIds or role'

    response = admin_client.post('/api/notifications', json={'title': 'Hello', 'message': 'World',
                                                              'role': 'janitor'})
    assert response.get_json()['error'] == 'Unknown role: janitor'


def test_students_cannot_send_notifications(client, campus, login_as):
    login_as(campus.students[0].user)

    response = client.post('/api/notifications', json={'title': 'Hi', 'message': 'All', 'role': 'student'})
    assert response.status_code == 403


def test_mark_notifications_read(client, campus, login_as):
    me, other = campus.students
    for title in ('One', 'Two'):
        db.session.add(Notification(user_id=me.user_id, title=title, message='...'))
    foreign = Notification(user_id=other.user_id, title='Private', message='...')
    db.session.add(foreign)
    db.session.commit()
    login_as(me.user)

    first = client.get('/api/notifications').get_json()['data'][-1]
    response = client.post(f'/api/notifications/{first["id"]}/read')
    assert response.get_json()['data']['isRead'] is True
    assert client.get('/api/notifications').get_json()['unreadCount'] == 1

    response = client.post(f'/api/notifications/{foreign.id}/read')
    assert response.status_code == 404

    response = client.post('/api/notifications/read-all')
    assert response.get_json()['data'] == {'updated': 1}
    assert client.get('/api/notifications?unread=1').get_json()['data'] == []


def test_settings_defaults_and_update(admin_client):
    data = admin_client.get('/api/settings').get_json()['data']
    assert data['attainment_threshold']['isDefault'] is True
    assert float(data['attainment_threshold']['value']) == 60.0

    response = admin_client.put('/api/settings', json={'settings': {'attainment_threshold': 70,
                                                                    'institution_name': 'Campus U'}})
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['attainment_threshold']['isDefault'] is False
    assert data['institution_name']['value'] == 'Campus U'
    assert SystemConfig.get_float(SystemConfig.ATTAINMENT_THRESHOLD) == 70.0


def test_settings_validation(admin_client):
    response = admin_client.put('/api/settings', json={'k': 'v'})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Unknown setting: k'

    response = admin_client.put('/api/settings', json={'pass_percentage': 150})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'pass_percentage must be at most 100'
    assert SystemConfig.query.count() == 0


def test_teacher_cannot_read_settings(client, campus, login_as):
    login_as(campus.teacher)

    assert client.get('/api/settings').status_code == 403


def test_audit_logs_paginated_and_filtered(admin_client, admin):
    for code in ('PHY', 'CHEM', 'BIO'):
        admin_client.post('/api/departments', json={'name': code.title(), 'code': code})
    AuditLog.log_action(AuditAction.LOGIN, 'user', admin.id, user_id=admin.id)
    db.session.commit()

    body = admin_client.get('/api/audit-logs?limit=2').get_json()
    assert body['pagination'] == {'total': 4, 'page': 1, 'limit': 2, 'totalPages': 2}

    body = admin_client.get('/api/audit-logs?action=create&entity=department').get_json()
    assert body['pagination']['total'] == 3
    assert {log['details']['code'] for log in body['data']} == {'PHY', 'CHEM', 'BIO'}


def test_department_overview_skips_deleted_sections(admin_client, campus):
    class_session = ClassSession(section_id=campus.section.id, date=date(2024, 10, 7), topic='Queues')
    db.session.add(class_session)
    db.session.flush()
    db.session.add(Attendance(session_id=class_session.id, student_section_id=campus.enrollments[0].id,
                              status=AttendanceStatus.PRESENT))
    db.session.commit()
    assert department_overview(campus.department)['attendanceRate'] == 100.0

    admin_client.delete(f'/api/sections/{campus.section.id}')

    overview = department_overview(campus.department)
    assert overview['sections'] == 0
    assert overview['attendanceRate'] == 0.0
