"""
Result analytics and CLO/PLO attainment calculations.

The pure functions at the top take plain numbers so they can be tested without
a database; the functions below them load rows and persist CLOAttainment.
"""

from collections import defaultdict

from models import (db, CLO, PLO, CLOAttainment, CLOPLOMapping, AssessmentItem, Assessment,
                    StudentAssessmentItemResult, StudentAssessmentResult, Section, SectionStatus,
                    RecordStatus)
from models.base import utcnow


DEFAULT_THRESHOLD = 60.0
PASS_PERCENTAGE = 50.0

# Lower bound of each grade band, highest first.
GRADE_BANDS = [
    ('A+', 95), ('A', 90), ('A-', 85), ('B+', 80), ('B', 75), ('B-', 70),
    ('C+', 65), ('C', 60), ('C-', 55), ('D+', 50), ('D', 45), ('F', 0),
]


def grade_for(percentage):
    for grade, minimum in GRADE_BANDS:
        if percentage >= minimum:
            return grade
    return 'F'


def percentage(obtained, total):
    if not total:
        return 0.0
    return obtained / total * 100


def result_statistics(results, pass_percentage=PASS_PERCENTAGE):
    """
    Summarise (obtained_marks, percentage) pairs for one assessment.

    Returns count, mark average/high/low, average percentage, pass count and
    rate, and the grade distribution (every band present, zero counts included).
    """
    results = list(results)
    count = len(results)
    distribution = {grade: 0 for grade, _ in GRADE_BANDS}
    if count == 0:
        return {
            'totalStudents': 0,
            'averageMarks': 0.0,
            'highestMarks': 0.0,
            'lowestMarks': 0.0,
            'averagePercentage': 0.0,
            'passCount': 0,
            'passRate': 0.0,
            'gradeDistribution': [{'grade': g, 'count': 0, 'percentage': 0.0} for g in distribution],
        }

    marks = [obtained for obtained, _ in results]
    percentages = [pct for _, pct in results]
    for pct in percentages:
        distribution[grade_for(pct)] += 1
    pass_count = sum(1 for pct in percentages if pct >= pass_percentage)

    return {
        'totalStudents': count,
        'averageMarks': round(sum(marks) / count, 2),
        'highestMarks': max(marks),
        'lowestMarks': min(marks),
        'averagePercentage': round(sum(percentages) / count, 2),
        'passCount': pass_count,
        'passRate': round(pass_count / count * 100, 2),
        'gradeDistribution': [
            {'grade': grade, 'count': n, 'percentage': round(n / count * 100, 2)}
            for grade, n in distribution.items()
        ],
    }


def student_clo_percentages(item_marks):
    """
    item_marks: iterable of (student_id, obtained, maximum) for the items of one CLO.
    Returns {student_id: percentage over all of that student's marked items}.
    """
    obtained = defaultdict(float)
    maximum = defaultdict(float)
    for student_id, got, out_of in item_marks:
        obtained[student_id] += got
        maximum[student_id] += out_of
    return {sid: percentage(obtained[sid], maximum[sid]) for sid in obtained}


def clo_attainment(student_percentages, threshold=DEFAULT_THRESHOLD):
    """Return (total_students, students_achieved, attainment_percent)."""
    total = len(student_percentages)
    achieved = sum(1 for pct in student_percentages.values() if pct >= threshold)
    return total, achieved, percentage(achieved, total)


def weighted_plo_attainment(contributions):
    """Weighted mean of (clo_attainment_percent, weight) pairs; 0 when the weights sum to 0."""
    total_weight = sum(weight for _, weight in contributions)
    if total_weight <= 0:
        return 0.0
    return sum(value * weight for value, weight in contributions) / total_weight


# ---------------------------------------------------------------------------
# Database-backed calculations
# ---------------------------------------------------------------------------

def section_item_marks(section_id):
    """{clo_id: [(student_id, obtained, maximum), ...]} for every marked item in the section."""
    rows = db.session.query(
        AssessmentItem.clo_id,
        StudentAssessmentResult.student_id,
        StudentAssessmentItemResult.obtained_marks,
        StudentAssessmentItemResult.total_marks,
    ).join(
        StudentAssessmentItemResult, StudentAssessmentItemResult.assessment_item_id == AssessmentItem.id
    ).join(
        StudentAssessmentResult, StudentAssessmentResult.id == StudentAssessmentItemResult.result_id
    ).join(
        Assessment, Assessment.id == AssessmentItem.assessment_id
    ).filter(Assessment.section_id == section_id).all()

    marks = defaultdict(list)
    for clo_id, student_id, obtained, maximum in rows:
        marks[clo_id].append((student_id, obtained, maximum))
    return marks


def calculate_section_clo_attainments(section, threshold=DEFAULT_THRESHOLD):
    """Compute and upsert CLOAttainment rows for every CLO of the section's course."""
    marks = section_item_marks(section.id)
    attainments = []
    for clo in section.course.clos.order_by(CLO.code):
        total, achieved, percent = clo_attainment(student_clo_percentages(marks.get(clo.id, [])), threshold)
        row = CLOAttainment.query.filter_by(clo_id=clo.id, section_id=section.id).first()
        if row is None:
            row = CLOAttainment(clo_id=clo.id, section_id=section.id)
            db.session.add(row)
        row.total_students = total
        row.students_achieved = achieved
        row.threshold = threshold
        row.attainment_percent = percent
        row.calculated_at = utcnow()
        attainments.append(row)
    return attainments


def plo_attainments(program_id, semester_id):
    """
    Attainment of each active PLO of a program for one semester.

    A CLO's contribution is its attainment averaged over the semester's sections
    that have one; CLOs with no calculated attainment are left out.
    """
    clo_values = defaultdict(list)
    rows = db.session.query(CLOAttainment.clo_id, CLOAttainment.attainment_percent).join(
        Section, Section.id == CLOAttainment.section_id
    ).filter(Section.semester_id == semester_id, Section.status != SectionStatus.DELETED).all()
    for clo_id, value in rows:
        clo_values[clo_id].append(value)
    clo_average = {clo_id: sum(values) / len(values) for clo_id, values in clo_values.items()}

    results = []
    plos = PLO.query.filter_by(program_id=program_id, status=RecordStatus.ACTIVE).order_by(PLO.code).all()
    for plo in plos:
        contributions = []
        clos = []
        for mapping in plo.clo_mappings.order_by(CLOPLOMapping.id):
            if mapping.clo_id not in clo_average:
                continue
            contributions.append((clo_average[mapping.clo_id], mapping.weight))
            clos.append({
                'cloId': mapping.clo_id,
                'cloCode': mapping.clo.code,
                'courseCode': mapping.clo.course.code,
                'attainment': round(clo_average[mapping.clo_id], 2),
                'weight': mapping.weight,
            })
        results.append({
            'ploId': plo.id,
            'ploCode': plo.code,
            'description': plo.description,
            'attainment': round(weighted_plo_attainment(contributions), 2),
            'contributingClos': clos,
        })
    return results
