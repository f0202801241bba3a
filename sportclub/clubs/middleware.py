from functools import wraps
from flask import g, jsonify, request, current_app
from flask_login import current_user


def resolve_club_id():
    """
    Work out the club a request operates on.
    Order: club in the token, then the X-Club-Id header for a super admin
    without a club, then the club stored on the user row.
    """
    claims = g.get('token_claims') or {}
    club_id = claims.get('club_id')
    if club_id:
        return int(club_id)

    header_club = request.headers.get('X-Club-Id')
    if header_club and current_user.is_super_admin:
        try:
            return int(header_club)
        except ValueError:
            current_app.logger.warning(f"Ignoring malformed X-Club-Id header: {header_club!r}")

    return current_user.club_id


def verify_club_access(require_club=True):
    """Authenticate the request and expose the effective club as g.club_id"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return current_app.login_manager.unauthorized()

            g.club_id = resolve_club_id()

            if require_club and not g.club_id:
                return jsonify({'error': 'No club associated with this user'}), 400

            return f(*args, **kwargs)
        return decorated_function
    return decorator
