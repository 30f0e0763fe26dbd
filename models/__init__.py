"""
SQLAlchemy ORM Models for the Campus Portal

Usage:
    from models import db, User, Student, Department, Section, Attendance

    # Initialize with Flask app
    db.init_app(app)
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# Import all models to make them available from the package
from .user import User, Role, UserRole, Permission, OTP, PasswordResetToken, UserStatus, RoleName
from .department import Department, Program, Batch, Semester, RecordStatus, BatchStatus, SemesterStatus
from .student import Student, Faculty, StudentStatus, FacultyStatus
from .course import Course, Section, StudentSection, TimeTableSlot, SectionStatus, StudentSectionStatus, DayOfWeek
from .attendance import Session, Attendance, SessionStatus, AttendanceStatus
from .outcomes import (CLO, PLO, CLOPLOMapping, Assessment, AssessmentItem, StudentAssessmentResult,
                       StudentAssessmentItemResult, CLOAttainment, AssessmentType, AssessmentStatus,
                       ResultStatus)
from .audit import AuditLog, AuditAction, Notification, NotificationType, SystemConfig

__all__ = [
    'db',
    # User
    'User', 'Role', 'UserRole', 'Permission', 'OTP', 'PasswordResetToken', 'UserStatus', 'RoleName',
    # Department
    'Department', 'Program', 'Batch', 'Semester', 'RecordStatus', 'BatchStatus', 'SemesterStatus',
    # Student
    'Student', 'Faculty', 'StudentStatus', 'FacultyStatus',
    # Course
    'Course', 'Section', 'StudentSection', 'TimeTableSlot', 'SectionStatus', 'StudentSectionStatus', 'DayOfWeek',
    # Attendance
    'Session', 'Attendance', 'SessionStatus', 'AttendanceStatus',
    # Outcomes
    'CLO', 'PLO', 'CLOPLOMapping', 'Assessment', 'AssessmentItem', 'StudentAssessmentResult',
    'StudentAssessmentItemResult', 'CLOAttainment', 'AssessmentType', 'AssessmentStatus', 'ResultStatus',
    # Audit
    'AuditLog', 'AuditAction', 'Notification', 'NotificationType', 'SystemConfig',
]
