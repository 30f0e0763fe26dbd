"""
Session authentication, role/permission decorators, one-time codes and password reset tokens.
"""

import secrets
import smtplib
from datetime import timedelta
from functools import wraps
from io import BytesIO

import pyotp
import qrcode
import qrcode.image.svg
from flask import current_app, session

from api_utils import ApiError
from mailer import send_otp_email, send_password_reset_email
from models import db, User, OTP, PasswordResetToken, RoleName, SystemConfig
from models.base import utcnow


USER_TYPES = ('student', 'teacher', 'admin')

DASHBOARD_PATHS = {
    RoleName.STUDENT: '/student/dashboard',
    RoleName.TEACHER: '/faculty/dashboard',
    RoleName.SUPER_ADMIN: '/admin/dashboard',
    RoleName.SUB_ADMIN: '/admin/dashboard',
    RoleName.DEPARTMENT_ADMIN: '/department/dashboard',
    RoleName.CHILD_ADMIN: '/sub-admin/dashboard',
}


def current_user():
    """User for the logged-in session, or None."""
    user_id = session.get('user_id')
    if user_id is None:
        return None
    user = db.session.get(User, user_id)
    if user is None or not user.is_active_account():
        return None
    return user


def _authenticated_user():
    user = current_user()
    if user is None:
        raise ApiError('Unauthorized', 401)
    return user


# Decorator for login required
def require_login(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        _authenticated_user()
        return f(*args, **kwargs)
    return decorated_function


def require_role(*roles):
    """Allow users holding any of `roles`; super_admin is always allowed."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = _authenticated_user()
            if not user.has_role(RoleName.SUPER_ADMIN, *roles):
                raise ApiError('Insufficient permissions', 403)
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def require_permission(resource, action):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = _authenticated_user()
            if not user.can(resource, action):
                raise ApiError('Insufficient permissions', 403)
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def resolve_role(user, user_type):
    """Role the user signs in as for a login `userType`, or None if they lack it."""
    if user_type == 'admin':
        return user.primary_admin_role()
    if user.has_role(user_type):
        return user_type
    return None


def dashboard_path(role):
    return DASHBOARD_PATHS.get(role, '/login')


def login_payload(user, role):
    data = {
        'id': user.id,
        'email': user.email,
        'firstName': user.first_name,
        'lastName': user.last_name,
        'role': role,
    }
    if role == RoleName.STUDENT and user.student:
        data.update({
            'rollNumber': user.student.roll_number,
            'departmentId': user.student.department_id,
            'programId': user.student.program_id,
            'batchId': user.student.batch_id,
        })
    elif role == RoleName.TEACHER and user.faculty:
        data.update({
            'facultyId': user.faculty.id,
            'departmentId': user.faculty.department_id,
            'designation': user.faculty.designation,
        })
    return data


def start_session(user, role):
    session.clear()
    session.permanent = True
    session['user_id'] = user.id
    session['role'] = role


def otp_expiry_minutes():
    return SystemConfig.get_int(SystemConfig.OTP_EXPIRY_MINUTES,
                                current_app.config['OTP_EXPIRY_MINUTES'])


def issue_otp(email, user_type):
    """Create a fresh one-time code for this login and email it. Returns the OTP row."""
    OTP.invalidate(email, user_type)
    minutes = otp_expiry_minutes()
    otp = OTP(
        email=email,
        user_type=user_type,
        secret=pyotp.random_base32(),
        expires_at=utcnow() + timedelta(minutes=minutes)
    )
    db.session.add(otp)
    db.session.commit()

    code = pyotp.HOTP(otp.secret).at(0)
    try:
        send_otp_email(email, code, minutes)
    except (smtplib.SMTPException, OSError) as e:
        current_app.logger.error('[Auth] Could not deliver OTP to %s: %s', email, e)
        raise ApiError('Failed to send verification code', 502)
    return otp


def verify_otp(user, user_type, code):
    """
    Consume the pending one-time code of a password login. Admins with an
    authenticator may answer it with a TOTP code instead of the emailed one.
    """
    otp = OTP.get_valid(user.email, user_type)
    if otp is None:
        return False
    if pyotp.HOTP(otp.secret).verify(code, 0) or (
            user_type == 'admin' and user.totp_secret and pyotp.TOTP(user.totp_secret).verify(code)):
        otp.is_used = True
        return True
    return False


def totp_enrollment(user, issuer):
    """Ensure the user has an authenticator secret; return its URI and an SVG QR code."""
    if not user.totp_secret:
        user.totp_secret = pyotp.random_base32()
    totp_uri = pyotp.TOTP(user.totp_secret).provisioning_uri(name=user.email, issuer_name=issuer)
    img = qrcode.make(totp_uri, image_factory=qrcode.image.svg.SvgImage)
    buffer = BytesIO()
    img.save(buffer)
    return totp_uri, buffer.getvalue().decode('utf-8')


def create_reset_token(user):
    token = PasswordResetToken(
        user_id=user.id,
        token=secrets.token_urlsafe(32),
        expires_at=utcnow() + timedelta(hours=1)
    )
    db.session.add(token)
    db.session.commit()

    reset_link = f"{current_app.config['APP_BASE_URL'].rstrip('/')}/reset-password?token={token.token}"
    try:
        send_password_reset_email(user.email, reset_link)
    except (smtplib.SMTPException, OSError) as e:
        current_app.logger.error('[Auth] Could not deliver reset link to %s: %s', user.email, e)
    return token


def find_reset_token(token_value):
    if not token_value:
        return None
    token = PasswordResetToken.query.filter_by(token=token_value).first()
    if token is None or not token.is_valid():
        return None
    return token
