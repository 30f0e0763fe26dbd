"""
Class session and attendance models.
"""

import enum
from . import db
from .base import TimestampMixin, enum_column, isoformat


class SessionStatus(enum.Enum):
    SCHEDULED = 'scheduled'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class AttendanceStatus(enum.Enum):
    PRESENT = 'present'
    ABSENT = 'absent'
    LATE = 'late'
    EXCUSED = 'excused'


class Session(db.Model, TimestampMixin):
    """A single scheduled meeting of a section."""
    __tablename__ = 'class_sessions'

    id = db.Column(db.Integer, primary_key=True)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id', ondelete='CASCADE'), nullable=False)
    date = db.Column(db.Date, nullable=False)
    start_time = db.Column(db.Time)
    end_time = db.Column(db.Time)
    topic = db.Column(db.String(255), nullable=False)
    remarks = db.Column(db.Text)
    status = enum_column(SessionStatus, 'session_status', default=SessionStatus.SCHEDULED)

    attendances = db.relationship('Attendance', backref='session', lazy='dynamic',
                                  cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'sectionId': self.section_id,
            'date': isoformat(self.date),
            'startTime': self.start_time.strftime('%H:%M') if self.start_time else None,
            'endTime': self.end_time.strftime('%H:%M') if self.end_time else None,
            'topic': self.topic,
            'remarks': self.remarks,
            'status': self.status.value if self.status else None,
            'attendanceCount': self.attendances.count(),
        }

    def __repr__(self):
        return f'<Session section={self.section_id} {self.date}>'


class Attendance(db.Model, TimestampMixin):
    __tablename__ = 'attendances'

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('class_sessions.id', ondelete='CASCADE'), nullable=False)
    student_section_id = db.Column(db.Integer, db.ForeignKey('student_sections.id', ondelete='CASCADE'),
                                   nullable=False)
    status = enum_column(AttendanceStatus, 'attendance_status', default=AttendanceStatus.ABSENT)
    remarks = db.Column(db.Text)
    marked_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))

    marker = db.relationship('User', foreign_keys=[marked_by])

    __table_args__ = (
        db.UniqueConstraint('session_id', 'student_section_id', name='uq_attendance_session_enrollment'),
    )

    def to_dict(self):
        student = self.student_section.student if self.student_section else None
        return {
            'id': self.id,
            'sessionId': self.session_id,
            'studentSectionId': self.student_section_id,
            'status': self.status.value,
            'remarks': self.remarks,
            'student': {'id': student.id, 'rollNumber': student.roll_number, 'name': student.name}
            if student else None,
            'markedBy': self.marked_by,
        }

    def __repr__(self):
        return f'<Attendance session={self.session_id} enrollment={self.student_section_id} {self.status.value}>'
