"""
Course, Section, enrolment and timetable models.
"""

import enum
from . import db
from .base import TimestampMixin, enum_column
from .department import RecordStatus, program_courses


class SectionStatus(enum.Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    SUSPENDED = 'suspended'
    DELETED = 'deleted'


class StudentSectionStatus(enum.Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    DROPPED = 'dropped'


class DayOfWeek(enum.Enum):
    MONDAY = 'monday'
    TUESDAY = 'tuesday'
    WEDNESDAY = 'wednesday'
    THURSDAY = 'thursday'
    FRIDAY = 'friday'
    SATURDAY = 'saturday'
    SUNDAY = 'sunday'


course_faculty = db.Table(
    'course_faculty',
    db.Column('course_id', db.Integer, db.ForeignKey('courses.id', ondelete='CASCADE'), primary_key=True),
    db.Column('faculty_id', db.Integer, db.ForeignKey('faculty.id', ondelete='CASCADE'), primary_key=True)
)


class Course(db.Model, TimestampMixin):
    __tablename__ = 'courses'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    code = db.Column(db.String(20), unique=True, nullable=False)
    description = db.Column(db.Text)
    credit_hours = db.Column(db.Integer, nullable=False)
    status = enum_column(RecordStatus, 'course_status', default=RecordStatus.ACTIVE)
    department_id = db.Column(db.Integer, db.ForeignKey('departments.id', ondelete='RESTRICT'), nullable=False)

    # Relationships
    programs = db.relationship('Program', secondary=program_courses, back_populates='courses', lazy='selectin')
    faculty = db.relationship('Faculty', secondary=course_faculty, back_populates='courses', lazy='selectin')
    sections = db.relationship('Section', backref='course', lazy='dynamic')
    clos = db.relationship('CLO', backref='course', lazy='dynamic', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'description': self.description,
            'creditHours': self.credit_hours,
            'status': self.status.value if self.status else None,
            'departmentId': self.department_id,
            'department': {'id': self.department.id, 'name': self.department.name} if self.department else None,
            'programs': [{'id': p.id, 'name': p.name, 'code': p.code} for p in self.programs],
            'faculty': [{'id': f.id, 'name': f.name} for f in self.faculty],
            'cloCount': self.clos.count(),
        }

    def __repr__(self):
        return f'<Course {self.code}: {self.name}>'


class Section(db.Model, TimestampMixin):
    __tablename__ = 'sections'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id', ondelete='RESTRICT'), nullable=False)
    faculty_id = db.Column(db.Integer, db.ForeignKey('faculty.id', ondelete='SET NULL'))
    batch_id = db.Column(db.Integer, db.ForeignKey('batches.id', ondelete='SET NULL'))
    semester_id = db.Column(db.Integer, db.ForeignKey('semesters.id', ondelete='SET NULL'))
    max_students = db.Column(db.Integer, nullable=False)
    status = enum_column(SectionStatus, 'section_status', default=SectionStatus.ACTIVE)

    # Relationships
    student_sections = db.relationship('StudentSection', backref='section', lazy='dynamic',
                                       cascade='all, delete-orphan')
    sessions = db.relationship('Session', backref='section', lazy='dynamic',
                               cascade='all, delete-orphan')
    timetable_slots = db.relationship('TimeTableSlot', backref='section', lazy='dynamic',
                                      cascade='all, delete-orphan')
    assessments = db.relationship('Assessment', backref='section', lazy='dynamic',
                                  cascade='all, delete-orphan')

    def active_enrollments(self):
        return self.student_sections.filter(StudentSection.status == StudentSectionStatus.ACTIVE)

    def enrolled_count(self):
        return self.active_enrollments().count()

    def is_full(self):
        return self.enrolled_count() >= self.max_students

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'status': self.status.value if self.status else None,
            'maxStudents': self.max_students,
            'currentStudents': self.enrolled_count(),
            'course': {'id': self.course.id, 'code': self.course.code, 'name': self.course.name}
            if self.course else None,
            'faculty': {'id': self.faculty.id, 'name': self.faculty.name} if self.faculty else None,
            'batch': {'id': self.batch.id, 'name': self.batch.name} if self.batch else None,
            'semester': {'id': self.semester.id, 'name': self.semester.name} if self.semester else None,
        }

    def __repr__(self):
        return f'<Section {self.name} course={self.course_id}>'


class StudentSection(db.Model, TimestampMixin):
    __tablename__ = 'student_sections'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id', ondelete='CASCADE'), nullable=False)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id', ondelete='CASCADE'), nullable=False)
    status = enum_column(StudentSectionStatus, 'student_section_status', default=StudentSectionStatus.ACTIVE)

    attendances = db.relationship('Attendance', backref='student_section', lazy='dynamic',
                                  cascade='all, delete-orphan')

    __table_args__ = (
        db.UniqueConstraint('student_id', 'section_id', name='uq_student_section'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'studentId': self.student_id,
            'sectionId': self.section_id,
            'status': self.status.value if self.status else None,
            'rollNumber': self.student.roll_number if self.student else None,
            'name': self.student.name if self.student else None,
        }

    def __repr__(self):
        return f'<StudentSection student={self.student_id} section={self.section_id}>'


class TimeTableSlot(db.Model, TimestampMixin):
    __tablename__ = 'timetable_slots'

    id = db.Column(db.Integer, primary_key=True)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id', ondelete='CASCADE'), nullable=False)
    day_of_week = enum_column(DayOfWeek, 'day_of_week')
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    room = db.Column(db.String(50))
    is_active = db.Column(db.Boolean, default=True)

    def overlaps(self, day, start, end):
        return self.day_of_week == day and self.start_time < end and start < self.end_time

    def to_dict(self):
        return {
            'id': self.id,
            'sectionId': self.section_id,
            'dayOfWeek': self.day_of_week.value,
            'startTime': self.start_time.strftime('%H:%M'),
            'endTime': self.end_time.strftime('%H:%M'),
            'room': self.room,
            'isActive': self.is_active,
        }

    def __repr__(self):
        return f'<TimeTableSlot section={self.section_id} {self.day_of_week.value} {self.start_time}>'

