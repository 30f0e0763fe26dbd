"""
Request parsing, validation and response helpers shared by the JSON routes.
"""

import math
from datetime import datetime
from flask import jsonify, request
from models import db


class ApiError(Exception):
    """Raised from a route to return {'success': False, 'error': message} with a status code."""

    def __init__(self, message, status_code=400, details=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details

    def to_response(self):
        payload = {'success': False, 'error': self.message}
        if self.details is not None:
            payload['details'] = self.details
        return jsonify(payload), self.status_code


def success(data=None, status=200, **extra):
    payload = {'success': True}
    if data is not None:
        payload['data'] = data
    payload.update(extra)
    return jsonify(payload), status


def json_body():
    """The request's JSON object, or an ApiError when the body is not a JSON object."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ApiError('Request body must be a JSON object')
    return data


def require_fields(data, *fields):
    missing = [f for f in fields if data.get(f) is None or (isinstance(data.get(f), str) and not data[f].strip())]
    if missing:
        raise ApiError('Missing required fields', details={'fields': missing})


def text_field(data, field):
    """Stripped string value of a JSON field; non-string values are a 400."""
    value = data.get(field)
    if not isinstance(value, str):
        raise ApiError(f'{field} must be a string')
    return value.strip()


def get_or_404(model, object_id, label=None):
    obj = db.session.get(model, object_id) if object_id is not None else None
    if obj is None:
        raise ApiError(f'{label or model.__name__} not found', 404)
    return obj


def parse_int(value, field, minimum=None, maximum=None, required=True):
    if value is None or value == '':
        if required:
            raise ApiError(f'{field} is required')
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ApiError(f'{field} must be a valid number')
    if minimum is not None and number < minimum:
        raise ApiError(f'{field} must be at least {minimum}')
    if maximum is not None and number > maximum:
        raise ApiError(f'{field} must be at most {maximum}')
    return number


def parse_float(value, field, minimum=None, maximum=None):
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ApiError(f'{field} must be a number')
    if minimum is not None and number < minimum:
        raise ApiError(f'{field} must be at least {minimum}')
    if maximum is not None and number > maximum:
        raise ApiError(f'{field} must be at most {maximum}')
    return number


def parse_date(value, field):
    """Parse YYYY-MM-DD (a trailing time part, as sent by date pickers, is ignored)."""
    if not value:
        raise ApiError(f'{field} is required')
    try:
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except ValueError:
        raise ApiError('Invalid date format')


def parse_time(value, field, required=False):
    if not value:
        if required:
            raise ApiError(f'{field} is required')
        return None
    try:
        return datetime.strptime(str(value)[:5], '%H:%M').time()
    except ValueError:
        raise ApiError(f'Invalid {field} format')


def parse_enum(enum_cls, value, field, default=None):
    if value is None or value == '':
        if default is not None:
            return default
        raise ApiError(f'{field} is required')
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        allowed = ', '.join(e.value for e in enum_cls)
        raise ApiError(f'Invalid {field}. Allowed values: {allowed}')


def clean_str(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def arg_int(name, default=None):
    return request.args.get(name, default, type=int)


def paginate(query, serializer=None):
    """Paginate a query from ?page=&limit= and return (items, pagination)."""
    page = max(arg_int('page', 1) or 1, 1)
    limit = min(max(arg_int('limit', 10) or 10, 1), 100)
    result = query.paginate(page=page, per_page=limit, error_out=False)
    items = [serializer(obj) if serializer else obj.to_dict() for obj in result.items]
    pagination = {
        'total': result.total,
        'page': page,
        'limit': limit,
        'totalPages': math.ceil(result.total / limit) if result.total else 0,
    }
    return items, pagination
