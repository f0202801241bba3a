from functools import wraps
from flask import jsonify, current_app
from flask_login import current_user
from sportclub.models import UserRole, parse_enum


def _role_allowed(user, roles):
    if user.role in roles:
        return True
    # Super admin satisfies any admin requirement
    return UserRole.ADMIN in roles and user.is_super_admin


def role_required(*roles):
    """Restrict a route to authenticated users holding one of the given roles"""
    allowed = [parse_enum(UserRole, role) for role in roles]

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return current_app.login_manager.unauthorized()
            if not _role_allowed(current_user, allowed):
                current_app.logger.warning(
                    f"User {current_user.id} ({current_user.role.value}) denied access, requires {[r.value for r in allowed]}"
                )
                return jsonify({'error': 'Insufficient permissions'}), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def admin_required(f):
    return role_required(UserRole.ADMIN)(f)


def super_admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return current_app.login_manager.unauthorized()
        if not current_user.is_super_admin:
            return jsonify({'error': 'Insufficient permissions'}), 403
        return f(*args, **kwargs)
    return decorated_function
