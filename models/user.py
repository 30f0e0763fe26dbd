"""
User, Role, Permission and credential models for authentication and authorization.
"""

import enum
from datetime import timedelta
from werkzeug.security import generate_password_hash, check_password_hash
from . import db
from .base import TimestampMixin, enum_column, isoformat, utcnow


class UserStatus(enum.Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    SUSPENDED = 'suspended'


class RoleName:
    SUPER_ADMIN = 'super_admin'
    SUB_ADMIN = 'sub_admin'
    DEPARTMENT_ADMIN = 'department_admin'
    CHILD_ADMIN = 'child_admin'
    TEACHER = 'teacher'
    STUDENT = 'student'

    ADMINS = (SUPER_ADMIN, SUB_ADMIN, DEPARTMENT_ADMIN, CHILD_ADMIN)
    ALL = ADMINS + (TEACHER, STUDENT)


ROLE_DESCRIPTIONS = {
    RoleName.SUPER_ADMIN: 'Super Administrator with full access',
    RoleName.SUB_ADMIN: 'Sub Administrator with restricted access',
    RoleName.DEPARTMENT_ADMIN: 'Department Administrator',
    RoleName.CHILD_ADMIN: 'Sub-Department Administrator',
    RoleName.TEACHER: 'Faculty Member',
    RoleName.STUDENT: 'Student',
}

# (resource, action) pairs granted to each role out of the box.
# super_admin bypasses permission checks entirely.
DEFAULT_PERMISSIONS = {
    RoleName.SUB_ADMIN: [
        ('users', 'manage'), ('users', 'import'), ('attendance', 'mark'),
        ('results', 'enter'), ('outcomes', 'manage'), ('notifications', 'send'),
    ],
    RoleName.DEPARTMENT_ADMIN: [
        ('users', 'import'), ('attendance', 'mark'), ('results', 'enter'),
        ('outcomes', 'manage'), ('notifications', 'send'),
    ],
    RoleName.CHILD_ADMIN: [
        ('attendance', 'mark'), ('results', 'enter'),
    ],
    RoleName.TEACHER: [
        ('attendance', 'mark'), ('results', 'enter'), ('outcomes', 'manage'),
    ],
    RoleName.STUDENT: [],
}


class Role(db.Model, TimestampMixin):
    __tablename__ = 'roles'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)
    description = db.Column(db.String(255))

    permissions = db.relationship('Permission', backref='role', lazy='dynamic',
                                  cascade='all, delete-orphan')

    @classmethod
    def get_by_name(cls, name):
        return cls.query.filter_by(name=name).first()

    @classmethod
    def ensure_defaults(cls):
        """Create the built-in roles and their default permissions if missing."""
        created = 0
        for name in RoleName.ALL:
            role = cls.get_by_name(name)
            if role is None:
                role = cls(name=name, description=ROLE_DESCRIPTIONS[name])
                db.session.add(role)
                db.session.flush()
                for resource, action in DEFAULT_PERMISSIONS.get(name, []):
                    db.session.add(Permission(role_id=role.id, resource=resource,
                                              action=action, allowed=True))
                created += 1
        return created

    def to_dict(self, with_permissions=False):
        data = {
            'id': self.id,
            'name': self.name,
            'description': self.description,
        }
        if with_permissions:
            data['permissions'] = [p.to_dict() for p in self.permissions.order_by(Permission.resource)]
        return data

    def __repr__(self):
        return f'<Role {self.name}>'


class Permission(db.Model, TimestampMixin):
    __tablename__ = 'permissions'

    id = db.Column(db.Integer, primary_key=True)
    role_id = db.Column(db.Integer, db.ForeignKey('roles.id', ondelete='CASCADE'), nullable=False)
    resource = db.Column(db.String(100), nullable=False)
    action = db.Column(db.String(50), nullable=False)
    allowed = db.Column(db.Boolean, default=True, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('role_id', 'resource', 'action', name='uq_permission_role_resource_action'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'resource': self.resource,
            'action': self.action,
            'allowed': self.allowed,
        }

    def __repr__(self):
        return f'<Permission {self.resource}:{self.action} role={self.role_id}>'


class UserRole(db.Model, TimestampMixin):
    __tablename__ = 'user_roles'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    role_id = db.Column(db.Integer, db.ForeignKey('roles.id', ondelete='CASCADE'), nullable=False)

    role = db.relationship('Role', lazy='joined')

    __table_args__ = (
        db.UniqueConstraint('user_id', 'role_id', name='uq_user_role'),
    )

    def __repr__(self):
        return f'<UserRole user={self.user_id} role={self.role_id}>'


class User(db.Model, TimestampMixin):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(100), unique=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))
    phone_number = db.Column(db.String(30))
    profile_image = db.Column(db.String(500))
    status = enum_column(UserStatus, 'user_status', default=UserStatus.ACTIVE)
    email_verified = db.Column(db.Boolean, default=False)
    totp_secret = db.Column(db.String(100))
    last_login = db.Column(db.DateTime)
    failed_login_attempts = db.Column(db.Integer, default=0)
    locked_until = db.Column(db.DateTime)

    # Relationships
    user_roles = db.relationship('UserRole', backref='user', lazy='selectin',
                                 cascade='all, delete-orphan')
    student = db.relationship('Student', back_populates='user', uselist=False)
    faculty = db.relationship('Faculty', back_populates='user', uselist=False)
    notifications = db.relationship('Notification', backref='user', lazy='dynamic',
                                    cascade='all, delete-orphan')

    @property
    def full_name(self):
        return f"{self.first_name or ''} {self.last_name or ''}".strip() or self.email

    @property
    def role_names(self):
        return [ur.role.name for ur in self.user_roles]

    def has_role(self, *names):
        return any(name in names for name in self.role_names)

    def primary_admin_role(self):
        """Highest-ranked admin role held by the user, or None."""
        for name in RoleName.ADMINS:
            if self.has_role(name):
                return name
        return None

    def add_role(self, role):
        if role.name not in self.role_names:
            self.user_roles.append(UserRole(role=role))

    def set_roles(self, roles):
        """Replace the role set, keeping rows for roles that stay."""
        wanted = {role.name: role for role in roles}
        for user_role in list(self.user_roles):
            if user_role.role.name not in wanted:
                self.user_roles.remove(user_role)
        for role in wanted.values():
            self.add_role(role)

    def can(self, resource, action):
        """Check the permission matrix of every role the user holds."""
        if self.has_role(RoleName.SUPER_ADMIN):
            return True
        role_ids = [ur.role_id for ur in self.user_roles]
        if not role_ids:
            return False
        return Permission.query.filter(
            Permission.role_id.in_(role_ids),
            Permission.resource == resource,
            Permission.action == action,
            Permission.allowed.is_(True)
        ).first() is not None

    def set_password(self, password):
        """Hash and set the user's password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Verify the password against the hash."""
        return check_password_hash(self.password_hash, password)

    def is_active_account(self):
        return self.status == UserStatus.ACTIVE

    def is_locked(self):
        """Check if account is currently locked."""
        if self.locked_until is None:
            return False
        return utcnow() < self.locked_until

    def record_failed_login(self, max_attempts=5, lockout_minutes=30):
        """Record a failed login attempt, potentially locking the account."""
        self.failed_login_attempts = (self.failed_login_attempts or 0) + 1
        if self.failed_login_attempts >= max_attempts:
            self.locked_until = utcnow() + timedelta(minutes=lockout_minutes)

    def record_successful_login(self):
        """Record successful login, resetting failed attempts."""
        self.failed_login_attempts = 0
        self.locked_until = None
        self.last_login = utcnow()

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'phoneNumber': self.phone_number,
            'status': self.status.value if self.status else None,
            'emailVerified': bool(self.email_verified),
            'roles': self.role_names,
            'lastLogin': isoformat(self.last_login),
            'createdAt': isoformat(self.created_at),
        }

    def to_summary(self):
        return {
            'id': self.id,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'email': self.email,
        }

    def __repr__(self):
        return f'<User {self.email}>'


class OTP(db.Model, TimestampMixin):
    """One-time login code. The code itself is derived from `secret` (HOTP counter 0)."""
    __tablename__ = 'otp'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False)
    user_type = db.Column(db.String(20), nullable=False)
    secret = db.Column(db.String(64), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    is_used = db.Column(db.Boolean, default=False, nullable=False)

    __table_args__ = (
        db.Index('ix_otp_email_user_type', 'email', 'user_type'),
    )

    @classmethod
    def get_valid(cls, email, user_type):
        """Latest unused, unexpired code for this login."""
        return cls.query.filter(
            cls.email == email,
            cls.user_type == user_type,
            cls.is_used.is_(False),
            cls.expires_at > utcnow()
        ).order_by(cls.id.desc()).first()

    @classmethod
    def invalidate(cls, email, user_type):
        cls.query.filter_by(email=email, user_type=user_type, is_used=False).update(
            {'is_used': True}, synchronize_session=False
        )

    def __repr__(self):
        return f'<OTP {self.email} ({self.user_type})>'


class PasswordResetToken(db.Model, TimestampMixin):
    __tablename__ = 'password_reset_tokens'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    token = db.Column(db.String(128), unique=True, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    used = db.Column(db.Boolean, default=False, nullable=False)

    user = db.relationship('User', backref=db.backref('reset_tokens', cascade='all, delete-orphan'))

    def is_valid(self):
        return not self.used and self.expires_at > utcnow()

    def __repr__(self):
        return f'<PasswordResetToken user={self.user_id}>'
