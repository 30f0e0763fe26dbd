"""
Spreadsheet import of user accounts and export of student lists (CSV / Excel via pandas).
"""

import io
import zipfile

import pandas as pd

from models import db, User, Role, RoleName, Student, Faculty, Department


ALLOWED_EXTENSIONS = ('.csv', '.xlsx', '.xls')
REQUIRED_COLUMNS = ('email', 'role')
DEFAULT_DESIGNATION = 'Lecturer'

EXPORT_MIMETYPES = {
    'csv': 'text/csv',
    'xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
}


class ImportFormatError(ValueError):
    """The uploaded file cannot be read as a user sheet."""


def read_sheet(file_storage):
    """Read an uploaded .csv/.xlsx/.xls file into a DataFrame with normalised column names."""
    filename = (file_storage.filename or '').lower()
    if not filename.endswith(ALLOWED_EXTENSIONS):
        raise ImportFormatError('Unsupported file format. Use .xlsx, .xls, or .csv')

    try:
        if filename.endswith('.csv'):
            df = pd.read_csv(file_storage, dtype=str)
        else:
            df = pd.read_excel(file_storage, dtype=str)
    except (pd.errors.EmptyDataError, pd.errors.ParserError, ValueError, zipfile.BadZipFile) as e:
        raise ImportFormatError(f'Could not read {file_storage.filename}: {e}') from e

    df.columns = [str(c).strip().lower().replace(' ', '_') for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ImportFormatError(f'Missing required columns: {", ".join(missing)}')
    return df


def _cell(row, column):
    value = row.get(column)
    if value is None or pd.isna(value):
        return None
    value = str(value).strip()
    return value or None


def import_users(df, default_password):
    """
    Create one account per row. Rows whose email already exists are skipped;
    invalid rows are reported and do not stop the import. The caller commits.

    Returns {'imported': n, 'skipped': n, 'errors': [{'row': n, 'error': msg}]}.
    """
    roles = {role.name: role for role in Role.query.all()}
    seen_emails = set()
    seen_rolls = set()
    imported = 0
    skipped = 0
    errors = []

    for index, row in df.iterrows():
        row_no = index + 2  # header is row 1
        email = (_cell(row, 'email') or '').lower()
        role_name = (_cell(row, 'role') or '').lower()

        if not email or '@' not in email:
            errors.append({'row': row_no, 'error': 'Invalid email'})
            continue
        if role_name not in roles:
            errors.append({'row': row_no, 'error': f'Unknown role: {role_name or "(empty)"}'})
            continue
        if email in seen_emails or User.query.filter_by(email=email).first():
            skipped += 1
            continue

        department = None
        department_code = _cell(row, 'department_code')
        if department_code:
            department = Department.query.filter_by(code=department_code.upper()).first()
            if department is None:
                errors.append({'row': row_no, 'error': f'Unknown department: {department_code}'})
                continue

        roll_number = _cell(row, 'roll_number')
        if role_name == RoleName.STUDENT:
            if not roll_number:
                errors.append({'row': row_no, 'error': 'roll_number is required for students'})
                continue
            if roll_number in seen_rolls or Student.query.filter_by(roll_number=roll_number).first():
                errors.append({'row': row_no, 'error': f'Roll number already exists: {roll_number}'})
                continue

        user = User(
            email=email,
            first_name=_cell(row, 'first_name'),
            last_name=_cell(row, 'last_name'),
        )
        user.set_password(default_password)
        user.add_role(roles[role_name])
        db.session.add(user)

        if role_name == RoleName.STUDENT:
            db.session.add(Student(user=user, roll_number=roll_number, department=department))
            seen_rolls.add(roll_number)
        elif role_name == RoleName.TEACHER:
            db.session.add(Faculty(
                user=user,
                department=department,
                designation=_cell(row, 'designation') or DEFAULT_DESIGNATION
            ))

        seen_emails.add(email)
        imported += 1

    db.session.flush()
    return {'imported': imported, 'skipped': skipped, 'errors': errors}


def students_frame(students):
    rows = []
    for s in students:
        rows.append({
            'RollNumber': s.roll_number,
            'FirstName': s.user.first_name or '',
            'LastName': s.user.last_name or '',
            'Email': s.user.email,
            'Department': s.department.code if s.department else '',
            'Program': s.program.code if s.program else '',
            'Batch': s.batch.code if s.batch else '',
            'Status': s.status.value,
        })
    return pd.DataFrame(rows, columns=['RollNumber', 'FirstName', 'LastName', 'Email',
                                       'Department', 'Program', 'Batch', 'Status'])


def export_frame(df, fmt, sheet_name='Students'):
    """Serialise a DataFrame as csv or xlsx. Returns (bytes, mimetype)."""
    if fmt == 'csv':
        return df.to_csv(index=False).encode('utf-8'), EXPORT_MIMETYPES['csv']

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine='openpyxl') as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    output.seek(0)
    return output.getvalue(), EXPORT_MIMETYPES['xlsx']
