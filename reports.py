"""
Attendance tallies and dashboard statistics.
"""

from sqlalchemy import func

from models import (db, User, Student, Faculty, Department, Program, Course, Section, Batch, Semester,
                    StudentSection, Session, Attendance, AttendanceStatus, StudentAssessmentResult,
                    SemesterStatus, UserStatus, SectionStatus)


def attendance_tally(statuses):
    """Count statuses and compute the attendance percentage (present and late count as attended)."""
    tally = {status.value: 0 for status in AttendanceStatus}
    for status in statuses:
        tally[status.value if isinstance(status, AttendanceStatus) else status] += 1
    total = sum(tally.values())
    attended = tally['present'] + tally['late']
    tally['total'] = total
    tally['percentage'] = round(attended / total * 100, 2) if total else 0.0
    return tally


def section_attendance_report(section):
    """Per-enrolment tally for every student enrolled in the section."""
    report = []
    enrollments = section.student_sections.join(Student).order_by(Student.roll_number).all()
    for enrollment in enrollments:
        statuses = [a.status for a in enrollment.attendances]
        report.append({
            'studentSectionId': enrollment.id,
            'studentId': enrollment.student_id,
            'rollNumber': enrollment.student.roll_number,
            'name': enrollment.student.name,
            **attendance_tally(statuses),
        })
    return report


def student_attendance_summary(student):
    summary = []
    for enrollment in student.student_sections:
        section = enrollment.section
        statuses = [a.status for a in enrollment.attendances]
        summary.append({
            'sectionId': section.id,
            'sectionName': section.name,
            'course': {'id': section.course.id, 'code': section.course.code, 'name': section.course.name},
            **attendance_tally(statuses),
        })
    return {
        'sections': summary,
        'overall': attendance_tally(
            a.status for e in student.student_sections for a in e.attendances
        ),
    }


def overall_attendance_rate(query=None):
    if query is None:
        query = db.session.query(Attendance.status)
    return attendance_tally(row[0] for row in query.all())['percentage']


def average_result_percentage(query=None):
    if query is None:
        query = db.session.query(func.avg(StudentAssessmentResult.percentage))
    value = query.scalar()
    return round(float(value), 2) if value is not None else 0.0


def admin_overview():
    return {
        'users': User.query.count(),
        'activeUsers': User.query.filter_by(status=UserStatus.ACTIVE).count(),
        'students': Student.query.count(),
        'faculty': Faculty.query.count(),
        'departments': Department.query.count(),
        'programs': Program.query.count(),
        'courses': Course.query.count(),
        'batches': Batch.query.count(),
        'sections': Section.query.filter(Section.status != SectionStatus.DELETED).count(),
        'activeSemesters': Semester.query.filter_by(status=SemesterStatus.ACTIVE).count(),
        'sessions': Session.query.count(),
    }


def admin_analytics():
    per_department = db.session.query(
        Department.id, Department.code, Department.name, func.count(Student.id)
    ).outerjoin(Student, Student.department_id == Department.id).group_by(
        Department.id, Department.code, Department.name
    ).order_by(Department.code).all()

    return {
        'studentsPerDepartment': [
            {'departmentId': dept_id, 'code': code, 'name': name, 'students': count}
            for dept_id, code, name, count in per_department
        ],
        'attendanceRate': overall_attendance_rate(),
        'averageResultPercentage': average_result_percentage(),
    }


def department_overview(department):
    section_ids = db.select(Section.id).join(Course).where(
        Course.department_id == department.id, Section.status != SectionStatus.DELETED
    )
    attendance_query = db.session.query(Attendance.status).join(
        StudentSection, StudentSection.id == Attendance.student_section_id
    ).filter(StudentSection.section_id.in_(section_ids))
    result_query = db.session.query(func.avg(StudentAssessmentResult.percentage)).join(
        Student, Student.id == StudentAssessmentResult.student_id
    ).filter(Student.department_id == department.id)

    return {
        'department': department.to_dict(),
        'programs': department.programs.count(),
        'courses': department.courses.count(),
        'faculty': department.faculty.count(),
        'students': department.students.count(),
        'sections': Section.query.join(Course).filter(
            Course.department_id == department.id, Section.status != SectionStatus.DELETED
        ).count(),
        'attendanceRate': overall_attendance_rate(attendance_query),
        'averageResultPercentage': average_result_percentage(result_query),
    }
