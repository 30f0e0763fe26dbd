import os

# Must be set before the app module is imported: the engine is bound at import time
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['SESSION_COOKIE_SECURE'] = 'false'
os.environ.pop('MAIL_SERVER', None)

from datetime import date
from types import SimpleNamespace

import pytest

from app import app as flask_app
from models import (db, User, Role, RoleName, Department, Program, Batch, Semester, Course, Faculty,
                    Student, Section, StudentSection, BatchStatus)

PASSWORD = 'Password123'


@pytest.fixture
def app():
    flask_app.config.update(TESTING=True, DEFAULT_PASSWORD='Campus@123')
    with flask_app.app_context():
        db.create_all()
        Role.ensure_defaults()
        db.session.commit()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make_user(email, *role_names, password=PASSWORD, first_name='Test', last_name='User'):
        user = User(email=email, first_name=first_name, last_name=last_name)
        user.set_password(password)
        for name in role_names:
            user.add_role(Role.get_by_name(name))
        db.session.add(user)
        db.session.commit()
        return user
    return _make_user


@pytest.fixture
def login_as(client):
    def _login_as(user, role=None):
        with client.session_transaction() as sess:
            sess['user_id'] = user.id
            sess['role'] = role or user.role_names[0]
        return client
    return _login_as


@pytest.fixture
def admin(make_user):
    return make_user('admin@campus.test', RoleName.SUPER_ADMIN, first_name='Ada', last_name='Admin')


@pytest.fixture
def admin_client(client, admin, login_as):
    return login_as(admin)


@pytest.fixture
def campus(app, make_user):
    """A department with one program, batch, semester, course, teacher, section and two enrolled students."""
    department = Department(name='Computer Science', code='CS')
    db.session.add(department)
    db.session.flush()

    program = Program(name='BS Computer Science', code='BSCS', duration=4, department_id=department.id)
    db.session.add(program)
    db.session.flush()

    batch = Batch(name='Fall 2024', code='BSCS-24', program_id=program.id, start_date=date(2024, 9, 1),
                  end_date=date(2028, 6, 30), max_students=50, status=BatchStatus.ACTIVE)
    semester = Semester(name='Fall 2024', start_date=date(2024, 9, 1), end_date=date(2025, 1, 15))
    course = Course(name='Data Structures', code='CS201', credit_hours=3, department_id=department.id)
    db.session.add_all([batch, semester, course])
    db.session.flush()
    program.courses.append(course)

    teacher_user = make_user('teacher@campus.test', RoleName.TEACHER, first_name='Tom', last_name='Teacher')
    faculty = Faculty(user_id=teacher_user.id, department_id=department.id, designation='Lecturer')
    db.session.add(faculty)
    db.session.flush()

    section = Section(name='A', course_id=course.id, faculty_id=faculty.id, batch_id=batch.id,
                      semester_id=semester.id, max_students=30)
    db.session.add(section)
    db.session.flush()

    students = []
    enrollments = []
    for index, (first, last) in enumerate((('Sara', 'Ali'), ('Omar', 'Khan')), start=1):
        user = make_user(f'student{index}@campus.test', RoleName.STUDENT, first_name=first, last_name=last)
        student = Student(user_id=user.id, roll_number=f'BSCS-24-00{index}', department_id=department.id,
                          program_id=program.id, batch_id=batch.id)
        db.session.add(student)
        db.session.flush()
        enrollment = StudentSection(student_id=student.id, section_id=section.id)
        db.session.add(enrollment)
        students.append(student)
        enrollments.append(enrollment)
    db.session.commit()

    return SimpleNamespace(department=department, program=program, batch=batch, semester=semester,
                           course=course, faculty=faculty, teacher=teacher_user, section=section,
                           students=students, enrollments=enrollments)
