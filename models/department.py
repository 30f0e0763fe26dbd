"""
Department, Program, Batch and Semester models.
"""

import enum
from datetime import date
from . import db
from .base import TimestampMixin, enum_column, isoformat


class RecordStatus(enum.Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'


class BatchStatus(enum.Enum):
    UPCOMING = 'upcoming'
    ACTIVE = 'active'
    COMPLETED = 'completed'


class SemesterStatus(enum.Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    COMPLETED = 'completed'


program_courses = db.Table(
    'program_courses',
    db.Column('program_id', db.Integer, db.ForeignKey('programs.id', ondelete='CASCADE'), primary_key=True),
    db.Column('course_id', db.Integer, db.ForeignKey('courses.id', ondelete='CASCADE'), primary_key=True)
)


class Department(db.Model, TimestampMixin):
    __tablename__ = 'departments'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    code = db.Column(db.String(20), unique=True, nullable=False)
    description = db.Column(db.Text)
    status = enum_column(RecordStatus, 'department_status', default=RecordStatus.ACTIVE)
    admin_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))

    # Relationships
    admin = db.relationship('User', backref=db.backref('administered_departments', lazy='dynamic'))
    programs = db.relationship('Program', backref='department', lazy='dynamic')
    courses = db.relationship('Course', backref='department', lazy='dynamic')
    faculty = db.relationship('Faculty', backref='department', lazy='dynamic')
    students = db.relationship('Student', backref='department', lazy='dynamic')

    @classmethod
    def get_or_create(cls, code, name=None):
        """Get existing department or create new one."""
        dept = cls.query.filter_by(code=code).first()
        if dept is None:
            dept = cls(code=code, name=name or code)
            db.session.add(dept)
        return dept

    def has_dependents(self):
        return any(rel.count() > 0 for rel in (self.programs, self.courses, self.faculty, self.students))

    def to_dict(self, with_counts=False):
        data = {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'description': self.description,
            'status': self.status.value if self.status else None,
            'admin': self.admin.to_summary() if self.admin else None,
            'createdAt': isoformat(self.created_at),
        }
        if with_counts:
            data['counts'] = {
                'programs': self.programs.count(),
                'courses': self.courses.count(),
                'faculty': self.faculty.count(),
                'students': self.students.count(),
            }
        return data

    def __repr__(self):
        return f'<Department {self.code}: {self.name}>'


class Program(db.Model, TimestampMixin):
    __tablename__ = 'programs'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    code = db.Column(db.String(20), unique=True, nullable=False)
    description = db.Column(db.Text)
    duration = db.Column(db.Integer, nullable=False)  # years
    status = enum_column(RecordStatus, 'program_status', default=RecordStatus.ACTIVE)
    department_id = db.Column(db.Integer, db.ForeignKey('departments.id', ondelete='RESTRICT'), nullable=False)

    # Relationships
    students = db.relationship('Student', backref='program', lazy='dynamic')
    batches = db.relationship('Batch', backref='program', lazy='dynamic')
    plos = db.relationship('PLO', backref='program', lazy='dynamic', cascade='all, delete-orphan')
    courses = db.relationship('Course', secondary=program_courses, back_populates='programs', lazy='selectin')

    def to_dict(self, with_counts=False):
        data = {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'description': self.description,
            'duration': self.duration,
            'status': self.status.value if self.status else None,
            'departmentId': self.department_id,
            'department': {'id': self.department.id, 'name': self.department.name} if self.department else None,
        }
        if with_counts:
            data['counts'] = {
                'students': self.students.count(),
                'batches': self.batches.count(),
                'courses': len(self.courses),
                'plos': self.plos.count(),
            }
        return data

    def __repr__(self):
        return f'<Program {self.code}: {self.name}>'


class Batch(db.Model, TimestampMixin):
    __tablename__ = 'batches'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    code = db.Column(db.String(30), unique=True, nullable=False)
    program_id = db.Column(db.Integer, db.ForeignKey('programs.id', ondelete='RESTRICT'), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    max_students = db.Column(db.Integer, nullable=False)
    description = db.Column(db.Text)
    status = enum_column(BatchStatus, 'batch_status', default=BatchStatus.UPCOMING)

    # Relationships
    students = db.relationship('Student', backref='batch', lazy='dynamic')
    sections = db.relationship('Section', backref='batch', lazy='dynamic')

    def is_full(self):
        return self.students.count() >= self.max_students

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'programId': self.program_id,
            'program': {'id': self.program.id, 'name': self.program.name, 'code': self.program.code}
            if self.program else None,
            'startDate': isoformat(self.start_date),
            'endDate': isoformat(self.end_date),
            'maxStudents': self.max_students,
            'description': self.description,
            'status': self.status.value if self.status else None,
            'studentCount': self.students.count(),
        }

    def __repr__(self):
        return f'<Batch {self.code}>'


class Semester(db.Model, TimestampMixin):
    __tablename__ = 'semesters'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    status = enum_column(SemesterStatus, 'semester_status', default=SemesterStatus.INACTIVE)
    description = db.Column(db.Text)

    sections = db.relationship('Section', backref='semester', lazy='dynamic')

    @staticmethod
    def status_for(start_date, end_date, today=None):
        """Status implied by the calendar: completed after the end, active inside the window."""
        today = today or date.today()
        if today > end_date:
            return SemesterStatus.COMPLETED
        if start_date <= today <= end_date:
            return SemesterStatus.ACTIVE
        return SemesterStatus.INACTIVE

    def refresh_status(self, today=None):
        """Update status from the dates; returns True when it changed."""
        new_status = self.status_for(self.start_date, self.end_date, today)
        if new_status != self.status:
            self.status = new_status
            return True
        return False

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'startDate': isoformat(self.start_date),
            'endDate': isoformat(self.end_date),
            'status': self.status.value if self.status else None,
            'description': self.description,
            'sectionCount': self.sections.count(),
        }

    def __repr__(self):
        return f'<Semester {self.name}>'
