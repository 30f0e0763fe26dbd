"""
Audit Log, Notification and System Configuration models.
"""

import enum
from . import db
from .base import TimestampMixin, enum_column, isoformat, utcnow


class AuditAction(enum.Enum):
    CREATE = 'create'
    UPDATE = 'update'
    DELETE = 'delete'
    LOGIN = 'login'
    LOGOUT = 'logout'


class NotificationType(enum.Enum):
    INFO = 'info'
    WARNING = 'warning'
    ERROR = 'error'
    SUCCESS = 'success'


class AuditLog(db.Model):
    __tablename__ = 'audit_logs'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
    action = enum_column(AuditAction, 'audit_action')
    entity = db.Column(db.String(100), nullable=False)
    entity_id = db.Column(db.Integer)
    details = db.Column(db.JSON)
    ip_address = db.Column(db.String(45))  # Supports IPv6
    created_at = db.Column(db.DateTime, default=utcnow)

    # Relationship
    user = db.relationship('User', foreign_keys=[user_id])

    @classmethod
    def log_action(cls, action, entity, entity_id=None, details=None, user_id=None, ip_address=None):
        """Record an action; the caller owns the commit."""
        log = cls(
            user_id=user_id,
            action=action,
            entity=entity,
            entity_id=entity_id,
            details=details,
            ip_address=ip_address
        )
        db.session.add(log)
        return log

    @classmethod
    def get_recent(cls, limit=100, action_filter=None, entity_filter=None):
        """Get recent audit logs with optional filters."""
        query = cls.query.order_by(cls.created_at.desc(), cls.id.desc())

        if action_filter:
            query = query.filter(cls.action == action_filter)
        if entity_filter:
            query = query.filter(cls.entity == entity_filter)

        return query.limit(limit).all()

    def to_dict(self):
        return {
            'id': self.id,
            'action': self.action.value,
            'entity': self.entity,
            'entityId': self.entity_id,
            'details': self.details,
            'user': self.user.to_summary() if self.user else None,
            'ipAddress': self.ip_address,
            'createdAt': isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<AuditLog {self.action.value} on {self.entity} by {self.user_id}>'


class Notification(db.Model, TimestampMixin):
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    type = enum_column(NotificationType, 'notification_type', default=NotificationType.INFO)
    is_read = db.Column(db.Boolean, default=False, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'message': self.message,
            'type': self.type.value if self.type else None,
            'isRead': self.is_read,
            'createdAt': isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<Notification user={self.user_id} {self.title!r}>'


class SystemConfig(db.Model):
    __tablename__ = 'system_config'

    key = db.Column(db.String(100), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    description = db.Column(db.Text)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    updated_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))

    # Relationship
    updater = db.relationship('User', foreign_keys=[updated_by])

    @classmethod
    def get(cls, key, default=None):
        """Get a configuration value."""
        config = db.session.get(cls, key)
        return config.value if config else default

    @classmethod
    def get_int(cls, key, default=0):
        """Get an integer configuration value."""
        value = cls.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    @classmethod
    def get_float(cls, key, default=0.0):
        value = cls.get(key)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            return default

    @classmethod
    def set(cls, key, value, description=None, user_id=None):
        """Set a configuration value."""
        config = db.session.get(cls, key)
        if config:
            config.value = str(value)
            if description:
                config.description = description
            config.updated_by = user_id
        else:
            config = cls(
                key=key,
                value=str(value),
                description=description,
                updated_by=user_id
            )
            db.session.add(config)
        return config

    def to_dict(self):
        return {
            'key': self.key,
            'value': self.value,
            'description': self.description,
            'updatedAt': isoformat(self.updated_at),
        }

    # Common configuration keys
    ATTAINMENT_THRESHOLD = 'attainment_threshold'
    PASS_PERCENTAGE = 'pass_percentage'
    OTP_EXPIRY_MINUTES = 'otp_expiry_minutes'
    MAX_LOGIN_ATTEMPTS = 'max_login_attempts'
    LOCKOUT_DURATION_MINUTES = 'lockout_duration_minutes'
    INSTITUTION_NAME = 'institution_name'

    EDITABLE_KEYS = (
        ATTAINMENT_THRESHOLD, PASS_PERCENTAGE, OTP_EXPIRY_MINUTES,
        MAX_LOGIN_ATTEMPTS, LOCKOUT_DURATION_MINUTES, INSTITUTION_NAME,
    )

    def __repr__(self):
        return f'<SystemConfig {self.key}={self.value}>'
