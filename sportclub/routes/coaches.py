from flask import Blueprint, request, jsonify, current_app, g
from flask_login import login_required, current_user
from sportclub.models import User, Coach, Category, UserRole
from sportclub import db
from sportclub.utils.auth import admin_required, role_required
from sportclub.clubs.middleware import verify_club_access
from sportclub.clubs.scope import club_coach, club_coaches
from sportclub.services import roster_service
from sportclub.services.cleanup_service import delete_user_account
import traceback

coach_routes = Blueprint('coaches', __name__, url_prefix='/api/coaches')

MIN_PASSWORD_LENGTH = 6


@coach_routes.route('', methods=['GET'])
@login_required
@verify_club_access()
def get_coaches():
    try:
        coaches = club_coaches().order_by(User.name).all()
        return jsonify([coach.to_dict() for coach in coaches])

    except Exception as e:
        current_app.logger.error(f"Error fetching coaches: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@coach_routes.route('/me', methods=['GET'])
@login_required
@role_required('coach', 'admin')
@verify_club_access()
def get_my_profile():
    """Caller's coach profile; an admin without one previews the club's first coach"""
    try:
        coach = current_user.coach_profile
        if not coach and current_user.is_admin:
            coach = club_coaches().order_by(Coach.id).first()
        if not coach:
            return jsonify({'error': 'Coach profile not found'}), 404

        return jsonify(coach.to_dict(include_counts=True))

    except Exception as e:
        current_app.logger.error(f"Error fetching own coach profile: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@coach_routes.route('/export', methods=['GET'])
@login_required
@admin_required
@verify_club_access()
def export_coaches():
    try:
        return roster_service.export_coaches(g.club_id)

    except Exception as e:
        current_app.logger.error(f"Error exporting coaches: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@coach_routes.route('/import', methods=['POST'])
@login_required
@admin_required
@verify_club_access()
def import_coaches():
    try:
        df = roster_service.read_csv_upload(request.files.get('file'), current_app.config['UPLOAD_MAX_BYTES'])
        created, errors = roster_service.import_coaches(df, g.club_id)
        current_app.logger.info(f"Imported {created} coaches into club {g.club_id} ({len(errors)} rejected rows)")
        return jsonify({'created': created, 'errors': errors})

    except ValueError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error importing coaches: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@coach_routes.route('/<int:coach_id>', methods=['GET'])
@login_required
@verify_club_access()
def get_coach(coach_id):
    try:
        coach = club_coach(coach_id)
        if not coach:
            return jsonify({'error': 'Coach not found'}), 404
        return jsonify(coach.to_dict(include_counts=True))

    except Exception as e:
        current_app.logger.error(f"Error fetching coach {coach_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@coach_routes.route('', methods=['POST'])
@login_required
@admin_required
@verify_club_access()
def create_coach():
    try:
        data = request.get_json(silent=True) or {}
        name = (data.get('name') or '').strip()
        email = (data.get('email') or '').strip()
        password = data.get('password') or ''

        if not name or not email or not password:
            return jsonify({'error': 'Name, email and password are required'}), 400
        if len(password) < MIN_PASSWORD_LENGTH:
            return jsonify({'error': f'Password must be at least {MIN_PASSWORD_LENGTH} characters'}), 400
        if User.find_by_email(email):
            return jsonify({'error': 'A user with this email already exists'}), 400

        user = User(name=name, email=email, role=UserRole.COACH, club_id=g.club_id, email_verified=True)
        user.set_password(password)

        coach = Coach()
        for key, attr in Coach.PROFILE_FIELDS.items():
            if key in data:
                setattr(coach, attr, data[key])
        user.coach_profile = coach

        db.session.add(user)
        db.session.commit()
        current_app.logger.info(f"Coach {coach.id} created in club {g.club_id}")

        return jsonify(coach.to_dict()), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating coach: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@coach_routes.route('/<int:coach_id>', methods=['PUT'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def update_coach(coach_id):
    try:
        coach = club_coach(coach_id)
        if not coach:
            return jsonify({'error': 'Coach not found'}), 404

        # A coach may only edit their own profile
        if not current_user.is_admin and coach.user_id != current_user.id:
            return jsonify({'error': 'Not allowed to update this profile'}), 403

        data = request.get_json(silent=True) or {}
        for key, attr in Coach.PROFILE_FIELDS.items():
            if key in data:
                setattr(coach, attr, data[key])
        if data.get('name'):
            coach.user.name = data['name'].strip()

        db.session.commit()
        return jsonify(coach.to_dict())

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating coach {coach_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@coach_routes.route('/<int:coach_id>/categories', methods=['PUT'])
@login_required
@admin_required
@verify_club_access()
def update_coach_categories(coach_id):
    """Replace the set of categories a coach is assigned to"""
    try:
        coach = club_coach(coach_id)
        if not coach:
            return jsonify({'error': 'Coach not found'}), 404

        data = request.get_json(silent=True) or {}
        category_ids = data.get('categoryIds')
        if not isinstance(category_ids, list):
            return jsonify({'error': 'categoryIds must be a list'}), 400

        try:
            wanted = {int(cid) for cid in category_ids}
        except (TypeError, ValueError):
            return jsonify({'error': 'categoryIds must contain ids'}), 400

        categories = Category.query.filter(
            Category.id.in_(wanted), Category.club_id == g.club_id
        ).all() if wanted else []
        if len(categories) != len(wanted):
            return jsonify({'error': 'Some categories do not belong to this club'}), 400

        coach.categories = categories
        db.session.commit()
        return jsonify(coach.to_dict())

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating categories of coach {coach_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@coach_routes.route('/<int:coach_id>', methods=['DELETE'])
@login_required
@admin_required
@verify_club_access()
def delete_coach(coach_id):
    """Delete a coach profile together with its login account"""
    try:
        coach = club_coach(coach_id)
        if not coach:
            return jsonify({'error': 'Coach not found'}), 404
        if coach.user_id == current_user.id:
            return jsonify({'error': 'You cannot delete your own account'}), 400

        delete_user_account(coach.user)
        db.session.commit()
        current_app.logger.info(f"Coach {coach_id} deleted by {current_user.id}")

        return jsonify({'message': 'Coach deleted'})

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting coach {coach_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500
