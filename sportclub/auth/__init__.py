import time
from authlib.jose import jwt, JoseError
from flask import current_app, g, jsonify, request


def issue_token(user):
    """
    Sign a bearer token for a user.
    The platform super admin gets no club in the token so that it can
    pick one per request with the X-Club-Id header.
    """
    now = int(time.time())
    club_id = None if user.is_super_admin else user.club_id
    payload = {
        'id': user.id,
        'role': user.role.value,
        'club_id': club_id,
        'iat': now,
        'exp': now + current_app.config['JWT_EXPIRY_DAYS'] * 24 * 3600,
    }
    token = jwt.encode({'alg': 'HS256'}, payload, current_app.config['JWT_SECRET'])
    return token.decode('utf-8') if isinstance(token, bytes) else token


def decode_token(token):
    """Decode and validate a bearer token, raising JoseError when it is invalid or expired"""
    claims = jwt.decode(token, current_app.config['JWT_SECRET'])
    claims.validate(now=int(time.time()), leeway=0)
    if 'id' not in claims:
        raise JoseError('missing_claim', 'Token has no subject')
    return claims


def bearer_token():
    header = request.headers.get('Authorization', '')
    parts = header.split(' ', 1)
    if len(parts) != 2 or parts[0].lower() != 'bearer' or not parts[1].strip():
        return None
    return parts[1].strip()


def load_user_from_request(req):
    """Flask-Login request loader resolving current_user from the Authorization header"""
    from sportclub.models import User
    from sportclub.extensions import db

    token = bearer_token()
    if not token:
        return None

    try:
        claims = decode_token(token)
    except (JoseError, ValueError) as e:
        current_app.logger.info(f"Rejected bearer token: {e}")
        g.token_error = True
        return None

    user = db.session.get(User, int(claims['id']))
    if not user:
        g.token_error = True
        return None

    g.token_claims = dict(claims)
    return user


def unauthorized_response():
    if g.get('token_error'):
        return jsonify({'error': 'Invalid token'}), 403
    return jsonify({'error': 'Authentication required'}), 401
