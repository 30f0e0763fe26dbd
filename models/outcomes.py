"""
Learning outcome (CLO/PLO), assessment and result models.
"""

import enum
import re
from . import db
from .base import TimestampMixin, enum_column, isoformat, utcnow
from .department import RecordStatus


CLO_CODE_PATTERN = re.compile(r'^CLO\d+$')


class AssessmentType(enum.Enum):
    QUIZ = 'quiz'
    ASSIGNMENT = 'assignment'
    MIDTERM = 'midterm'
    FINAL = 'final'
    PROJECT = 'project'
    LAB = 'lab'


class AssessmentStatus(enum.Enum):
    DRAFT = 'draft'
    PUBLISHED = 'published'
    COMPLETED = 'completed'


class ResultStatus(enum.Enum):
    PENDING = 'pending'
    PUBLISHED = 'published'


class CLO(db.Model, TimestampMixin):
    __tablename__ = 'clos'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(20), nullable=False)
    description = db.Column(db.Text, nullable=False)
    bloom_level = db.Column(db.String(50))
    status = enum_column(RecordStatus, 'clo_status', default=RecordStatus.ACTIVE)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False)

    plo_mappings = db.relationship('CLOPLOMapping', backref='clo', lazy='dynamic',
                                   cascade='all, delete-orphan')
    assessment_items = db.relationship('AssessmentItem', backref='clo', lazy='dynamic')
    attainments = db.relationship('CLOAttainment', backref='clo', lazy='dynamic',
                                  cascade='all, delete-orphan')

    __table_args__ = (
        db.UniqueConstraint('course_id', 'code', name='uq_clo_course_code'),
    )

    @staticmethod
    def valid_code(code):
        return bool(code) and CLO_CODE_PATTERN.match(code) is not None

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'description': self.description,
            'bloomLevel': self.bloom_level,
            'status': self.status.value if self.status else None,
            'courseId': self.course_id,
            'course': {'id': self.course.id, 'code': self.course.code, 'name': self.course.name}
            if self.course else None,
        }

    def __repr__(self):
        return f'<CLO {self.code} course={self.course_id}>'


class PLO(db.Model, TimestampMixin):
    __tablename__ = 'plos'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(20), nullable=False)
    description = db.Column(db.Text, nullable=False)
    bloom_level = db.Column(db.String(50))
    status = enum_column(RecordStatus, 'plo_status', default=RecordStatus.ACTIVE)
    program_id = db.Column(db.Integer, db.ForeignKey('programs.id', ondelete='CASCADE'), nullable=False)

    clo_mappings = db.relationship('CLOPLOMapping', backref='plo', lazy='dynamic',
                                   cascade='all, delete-orphan')

    __table_args__ = (
        db.UniqueConstraint('program_id', 'code', name='uq_plo_program_code'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'description': self.description,
            'bloomLevel': self.bloom_level,
            'status': self.status.value if self.status else None,
            'programId': self.program_id,
            'mappingCount': self.clo_mappings.count(),
        }

    def __repr__(self):
        return f'<PLO {self.code} program={self.program_id}>'


class CLOPLOMapping(db.Model, TimestampMixin):
    __tablename__ = 'clo_plo_mappings'

    id = db.Column(db.Integer, primary_key=True)
    clo_id = db.Column(db.Integer, db.ForeignKey('clos.id', ondelete='CASCADE'), nullable=False)
    plo_id = db.Column(db.Integer, db.ForeignKey('plos.id', ondelete='CASCADE'), nullable=False)
    weight = db.Column(db.Float, nullable=False, default=1.0)

    __table_args__ = (
        db.UniqueConstraint('clo_id', 'plo_id', name='uq_clo_plo_mapping'),
        db.CheckConstraint('weight >= 0 AND weight <= 1', name='ck_mapping_weight_range'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'weight': self.weight,
            'clo': self.clo.to_dict() if self.clo else None,
            'plo': {
                'id': self.plo.id,
                'code': self.plo.code,
                'description': self.plo.description,
                'program': {'id': self.plo.program.id, 'name': self.plo.program.name},
            } if self.plo else None,
            'createdAt': isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<CLOPLOMapping clo={self.clo_id} plo={self.plo_id} w={self.weight}>'


class Assessment(db.Model, TimestampMixin):
    __tablename__ = 'assessments'

    id = db.Column(db.Integer, primary_key=True)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id', ondelete='CASCADE'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    type = enum_column(AssessmentType, 'assessment_type', default=AssessmentType.QUIZ)
    total_marks = db.Column(db.Float, nullable=False)
    weightage = db.Column(db.Float, default=0)
    due_date = db.Column(db.Date)
    status = enum_column(AssessmentStatus, 'assessment_status', default=AssessmentStatus.DRAFT)

    items = db.relationship('AssessmentItem', backref='assessment', lazy='selectin',
                            cascade='all, delete-orphan', order_by='AssessmentItem.question_no')
    results = db.relationship('StudentAssessmentResult', backref='assessment', lazy='dynamic',
                              cascade='all, delete-orphan')

    def allocated_marks(self, exclude_item_id=None):
        return sum(item.marks for item in self.items if item.id != exclude_item_id)

    def to_dict(self, with_items=False):
        data = {
            'id': self.id,
            'sectionId': self.section_id,
            'title': self.title,
            'type': self.type.value if self.type else None,
            'totalMarks': self.total_marks,
            'weightage': self.weightage,
            'dueDate': isoformat(self.due_date),
            'status': self.status.value if self.status else None,
            'itemCount': len(self.items),
            'resultCount': self.results.count(),
        }
        if with_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data

    def __repr__(self):
        return f'<Assessment {self.title} section={self.section_id}>'


class AssessmentItem(db.Model, TimestampMixin):
    __tablename__ = 'assessment_items'

    id = db.Column(db.Integer, primary_key=True)
    assessment_id = db.Column(db.Integer, db.ForeignKey('assessments.id', ondelete='CASCADE'), nullable=False)
    question_no = db.Column(db.String(20), nullable=False)
    description = db.Column(db.Text)
    marks = db.Column(db.Float, nullable=False)
    clo_id = db.Column(db.Integer, db.ForeignKey('clos.id', ondelete='RESTRICT'), nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'assessmentId': self.assessment_id,
            'questionNo': self.question_no,
            'description': self.description,
            'marks': self.marks,
            'cloId': self.clo_id,
            'clo': {'id': self.clo.id, 'code': self.clo.code} if self.clo else None,
        }

    def __repr__(self):
        return f'<AssessmentItem Q{self.question_no} assessment={self.assessment_id}>'


class StudentAssessmentResult(db.Model, TimestampMixin):
    __tablename__ = 'student_assessment_results'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id', ondelete='CASCADE'), nullable=False)
    assessment_id = db.Column(db.Integer, db.ForeignKey('assessments.id', ondelete='CASCADE'), nullable=False)
    total_marks = db.Column(db.Float, nullable=False)
    obtained_marks = db.Column(db.Float, nullable=False)
    percentage = db.Column(db.Float, nullable=False)
    status = enum_column(ResultStatus, 'result_status', default=ResultStatus.PENDING)
    remarks = db.Column(db.Text)

    item_results = db.relationship('StudentAssessmentItemResult', backref='result', lazy='selectin',
                                   cascade='all, delete-orphan')

    __table_args__ = (
        db.UniqueConstraint('student_id', 'assessment_id', name='uq_result_student_assessment'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'studentId': self.student_id,
            'assessmentId': self.assessment_id,
            'student': {'id': self.student.id, 'rollNumber': self.student.roll_number, 'name': self.student.name}
            if self.student else None,
            'totalMarks': self.total_marks,
            'obtainedMarks': self.obtained_marks,
            'percentage': round(self.percentage, 2),
            'status': self.status.value if self.status else None,
            'remarks': self.remarks,
            'items': [item.to_dict() for item in self.item_results],
        }

    def __repr__(self):
        return f'<StudentAssessmentResult student={self.student_id} assessment={self.assessment_id}>'


class StudentAssessmentItemResult(db.Model, TimestampMixin):
    __tablename__ = 'student_assessment_item_results'

    id = db.Column(db.Integer, primary_key=True)
    result_id = db.Column(db.Integer, db.ForeignKey('student_assessment_results.id', ondelete='CASCADE'),
                          nullable=False)
    assessment_item_id = db.Column(db.Integer, db.ForeignKey('assessment_items.id', ondelete='CASCADE'),
                                   nullable=False)
    obtained_marks = db.Column(db.Float, nullable=False)
    total_marks = db.Column(db.Float, nullable=False)

    assessment_item = db.relationship('AssessmentItem')

    def to_dict(self):
        return {
            'itemId': self.assessment_item_id,
            'obtainedMarks': self.obtained_marks,
            'totalMarks': self.total_marks,
        }


class CLOAttainment(db.Model):
    __tablename__ = 'clo_attainments'

    id = db.Column(db.Integer, primary_key=True)
    clo_id = db.Column(db.Integer, db.ForeignKey('clos.id', ondelete='CASCADE'), nullable=False)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id', ondelete='CASCADE'), nullable=False)
    total_students = db.Column(db.Integer, nullable=False, default=0)
    students_achieved = db.Column(db.Integer, nullable=False, default=0)
    threshold = db.Column(db.Float, nullable=False)
    attainment_percent = db.Column(db.Float, nullable=False, default=0)
    calculated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    section = db.relationship('Section', backref=db.backref('clo_attainments', lazy='dynamic',
                                                             cascade='all, delete-orphan'))

    __table_args__ = (
        db.UniqueConstraint('clo_id', 'section_id', name='uq_clo_attainment_section'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'cloId': self.clo_id,
            'cloCode': self.clo.code if self.clo else None,
            'sectionId': self.section_id,
            'totalStudents': self.total_students,
            'studentsAchieved': self.students_achieved,
            'threshold': self.threshold,
            'attainmentPercent': round(self.attainment_percent, 2),
            'isAttained': self.attainment_percent >= self.threshold,
            'calculatedAt': isoformat(self.calculated_at),
        }

    def __repr__(self):
        return f'<CLOAttainment clo={self.clo_id} section={self.section_id} {self.attainment_percent:.1f}%>'
