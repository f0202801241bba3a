from flask import Blueprint, request, jsonify, current_app, g
from flask_login import login_required, current_user
from sportclub.models import User, Coach, UserRole, parse_enum
from sportclub import db
from sportclub.utils.auth import admin_required
from sportclub.clubs.middleware import verify_club_access
from sportclub.clubs.scope import club_user
from sportclub.services import roster_service
from sportclub.services.cleanup_service import delete_user_account
import traceback

user_routes = Blueprint('users', __name__, url_prefix='/api/users')

MIN_PASSWORD_LENGTH = 6


def _parse_role(value, default=UserRole.SPORTIF):
    role = parse_enum(UserRole, value) if value else default
    if role == UserRole.SUPER_ADMIN and not current_user.is_super_admin:
        raise ValueError('Only a super admin can grant the super_admin role')
    return role


@user_routes.route('', methods=['GET'])
@login_required
@admin_required
@verify_club_access()
def get_users():
    try:
        users = User.query.filter_by(club_id=g.club_id).order_by(User.name).all()
        return jsonify([user.to_dict() for user in users])

    except Exception as e:
        current_app.logger.error(f"Error fetching users: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@user_routes.route('/export', methods=['GET'])
@login_required
@admin_required
@verify_club_access()
def export_users():
    try:
        return roster_service.export_users(g.club_id)

    except Exception as e:
        current_app.logger.error(f"Error exporting users: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@user_routes.route('/import', methods=['POST'])
@login_required
@admin_required
@verify_club_access()
def import_users():
    try:
        df = roster_service.read_csv_upload(request.files.get('file'), current_app.config['UPLOAD_MAX_BYTES'])
        created, errors = roster_service.import_users(df, g.club_id)
        current_app.logger.info(f"Imported {created} users into club {g.club_id} ({len(errors)} rejected rows)")
        return jsonify({'created': created, 'errors': errors})

    except ValueError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error importing users: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@user_routes.route('/<int:user_id>', methods=['GET'])
@login_required
@admin_required
@verify_club_access()
def get_user(user_id):
    try:
        user = club_user(user_id)
        if not user:
            return jsonify({'error': 'User not found'}), 404

        result = user.to_dict()
        result['coachProfile'] = user.coach_profile.to_dict() if user.coach_profile else None
        result['sportifProfile'] = user.sportif_profile.to_dict() if user.sportif_profile else None
        return jsonify(result)

    except Exception as e:
        current_app.logger.error(f"Error fetching user {user_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@user_routes.route('', methods=['POST'])
@login_required
@admin_required
@verify_club_access()
def create_user():
    """Create a club account; accounts made by an admin skip email verification"""
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
            role = _parse_role(data.get('role'))
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        if User.find_by_email(email):
            return jsonify({'error': 'User already exists'}), 400

        user = User(email=email, name=name, role=role, club_id=g.club_id, email_verified=True)
        user.set_password(password)
        if role == UserRole.COACH:
            user.coach_profile = Coach()

        db.session.add(user)
        db.session.commit()
        current_app.logger.info(f"User {user.id} ({role.value}) created in club {g.club_id} by {current_user.id}")

        return jsonify({'message': 'User created', 'userId': user.id}), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating user: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@user_routes.route('/<int:user_id>', methods=['PUT'])
@login_required
@admin_required
@verify_club_access()
def update_user(user_id):
    try:
        user = club_user(user_id)
        if not user:
            return jsonify({'error': 'User not found'}), 404

        data = request.get_json(silent=True) or {}

        if data.get('email'):
            email = data['email'].strip()
            if email.lower() != user.email.lower():
                if User.find_by_email(email):
                    return jsonify({'error': 'Email already in use'}), 400
                user.email = email

        if data.get('name'):
            user.name = data['name'].strip()

        if data.get('role'):
            try:
                role = _parse_role(data['role'])
            except ValueError as e:
                return jsonify({'error': str(e)}), 400
            if role == UserRole.COACH and not user.coach_profile:
                user.coach_profile = Coach()
            user.role = role

        db.session.commit()
        return jsonify(user.to_dict())

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating user {user_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@user_routes.route('/<int:user_id>', methods=['DELETE'])
@login_required
@admin_required
@verify_club_access()
def delete_user(user_id):
    try:
        user = club_user(user_id)
        if not user:
            return jsonify({'error': 'User not found'}), 404
        if user.id == current_user.id:
            return jsonify({'error': 'You cannot delete your own account'}), 400

        delete_user_account(user)
        db.session.commit()
        current_app.logger.info(f"User {user_id} deleted by {current_user.id}")

        return jsonify({'message': 'User deleted'})

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting user {user_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500
