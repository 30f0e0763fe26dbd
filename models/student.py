"""
Student and Faculty models.
"""

import enum
from . import db
from .base import TimestampMixin, enum_column, isoformat


class StudentStatus(enum.Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    GRADUATED = 'graduated'
    DROPPED = 'dropped'


class FacultyStatus(enum.Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'


class Student(db.Model, TimestampMixin):
    __tablename__ = 'students'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False)
    roll_number = db.Column(db.String(50), unique=True, nullable=False)
    status = enum_column(StudentStatus, 'student_status', default=StudentStatus.ACTIVE)
    department_id = db.Column(db.Integer, db.ForeignKey('departments.id', ondelete='SET NULL'))
    program_id = db.Column(db.Integer, db.ForeignKey('programs.id', ondelete='SET NULL'))
    batch_id = db.Column(db.Integer, db.ForeignKey('batches.id', ondelete='SET NULL'))

    # Relationships
    user = db.relationship('User', back_populates='student', lazy='joined')
    student_sections = db.relationship('StudentSection', backref='student', lazy='dynamic',
                                       cascade='all, delete-orphan')
    results = db.relationship('StudentAssessmentResult', backref='student', lazy='dynamic',
                              cascade='all, delete-orphan')

    @property
    def name(self):
        return self.user.full_name if self.user else self.roll_number

    def active_sections(self):
        from .course import StudentSection, StudentSectionStatus
        return self.student_sections.filter(StudentSection.status == StudentSectionStatus.ACTIVE).all()

    def to_dict(self):
        return {
            'id': self.id,
            'rollNumber': self.roll_number,
            'status': self.status.value if self.status else None,
            'user': self.user.to_summary() if self.user else None,
            'department': {'id': self.department.id, 'name': self.department.name} if self.department else None,
            'program': {'id': self.program.id, 'name': self.program.name} if self.program else None,
            'batch': {'id': self.batch.id, 'name': self.batch.name} if self.batch else None,
            'currentSections': self.student_sections.count(),
            'createdAt': isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<Student {self.roll_number}>'


class Faculty(db.Model, TimestampMixin):
    __tablename__ = 'faculty'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False)
    department_id = db.Column(db.Integer, db.ForeignKey('departments.id', ondelete='SET NULL'))
    designation = db.Column(db.String(100), nullable=False)
    status = enum_column(FacultyStatus, 'faculty_status', default=FacultyStatus.ACTIVE)

    # Relationships
    user = db.relationship('User', back_populates='faculty', lazy='joined')
    sections = db.relationship('Section', backref='faculty', lazy='dynamic')
    courses = db.relationship('Course', secondary='course_faculty', back_populates='faculty', lazy='selectin')

    @property
    def name(self):
        return self.user.full_name if self.user else str(self.id)

    def to_dict(self):
        return {
            'id': self.id,
            'designation': self.designation,
            'status': self.status.value if self.status else None,
            'user': self.user.to_summary() if self.user else None,
            'department': {'id': self.department.id, 'name': self.department.name} if self.department else None,
            'courses': [{'id': c.id, 'code': c.code, 'name': c.name} for c in self.courses],
            'sectionCount': self.sections.count(),
        }

    def __repr__(self):
        return f'<Faculty {self.user_id} ({self.designation})>'
