from flask import Blueprint, request, jsonify, current_app
from sportclub.models import User, Coach, UserRole, parse_enum
from sportclub import db
from sportclub.auth import issue_token
from sportclub.utils.email import send_verification_email
import traceback

auth_routes = Blueprint('auth', __name__, url_prefix='/api/auth')

# Roles a visitor may pick when signing up on their own
SELF_SERVICE_ROLES = [UserRole.SPORTIF, UserRole.COACH]
MIN_PASSWORD_LENGTH = 6


@auth_routes.route('/register', methods=['POST'])
def register():
    try:
        data = request.get_json(silent=True) or {}
        email = (data.get('email') or '').strip()
        password = data.get('password') or ''
        name = (data.get('name') or '').strip()

        if not email or not password or not name:
            return jsonify({'error': 'Email, password and name are required'}), 400
        if len(password) < MIN_PASSWORD_LENGTH:
            return jsonify({'error': f'Password must be at least {MIN_PASSWORD_LENGTH} characters'}), 400

        try:
            role = parse_enum(UserRole, data.get('role') or UserRole.SPORTIF.value)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        if role not in SELF_SERVICE_ROLES:
            return jsonify({'error': 'This role cannot be chosen at registration'}), 400

        if User.find_by_email(email):
            return jsonify({'error': 'User already exists'}), 400

        user = User(email=email, name=name, role=role, email_verified=False)
        user.set_password(password)
        token = user.new_verification_token()

        # Create specific profile based on role
        if role == UserRole.COACH:
            user.coach_profile = Coach()

        db.session.add(user)
        db.session.commit()
        current_app.logger.info(f"Registered user {user.id} ({role.value})")

        success, detail = send_verification_email(email, name, token)
        if not success:
            current_app.logger.warning(f"Verification email to {email} failed: {detail}")

        return jsonify({
            'message': 'Account created. Check your email to activate your account.',
            'userId': user.id
        }), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error registering user: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@auth_routes.route('/login', methods=['POST'])
def login():
    try:
        data = request.get_json(silent=True) or {}
        user = User.find_by_email(data.get('email'))
        if not user or not user.check_password(data.get('password') or ''):
            return jsonify({'error': 'Invalid credentials'}), 400

        if not user.email_verified:
            return jsonify({
                'error': 'Please confirm your email address before logging in.',
                'emailNotVerified': True
            }), 403

        is_super_admin = user.is_super_admin
        effective_club_id = None if is_super_admin else user.club_id

        return jsonify({
            'token': issue_token(user),
            'user': {
                'id': user.id,
                'name': user.name,
                'email': user.email,
                'role': user.role.value,
                'clubId': effective_club_id,
                'club': user.club.to_summary() if user.club else None,
                'isSuperAdmin': is_super_admin,
            }
        })

    except Exception as e:
        current_app.logger.error(f"Error during login: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@auth_routes.route('/verify-email', methods=['GET'])
def verify_email():
    try:
        token = request.args.get('token')
        if not token:
            return jsonify({'error': 'Invalid token'}), 400

        user = User.query.filter_by(email_verify_token=token).first()
        if not user:
            return jsonify({'error': 'Invalid or expired verification link'}), 400

        user.email_verified = True
        user.email_verify_token = None
        db.session.commit()
        current_app.logger.info(f"Email verified for user {user.id}")

        return jsonify({'message': 'Email confirmed. You can now log in.'})

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error verifying email: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@auth_routes.route('/resend-verification', methods=['POST'])
def resend_verification():
    try:
        data = request.get_json(silent=True) or {}
        email = (data.get('email') or '').strip()
        if not email:
            return jsonify({'error': 'Email is required'}), 400

        user = User.find_by_email(email)
        if not user:
            return jsonify({'error': 'No account found with this email'}), 400
        if user.email_verified:
            return jsonify({'error': 'Email already verified'}), 400

        token = user.new_verification_token()
        db.session.commit()

        success, detail = send_verification_email(user.email, user.name, token)
        if not success:
            current_app.logger.error(f"Resending verification to {email} failed: {detail}")
            return jsonify({'error': 'Error sending the email'}), 500

        return jsonify({'message': 'Verification email sent again.'})

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error resending verification: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500
