from flask import Blueprint, request, jsonify, current_app, g
from flask_login import login_required, current_user
from sqlalchemy import func
from sportclub.models import Club, User, Category, UserRole
from sportclub import db
from sportclub.utils.auth import admin_required, super_admin_required
from sportclub.utils.email import send_verification_email
from sportclub.clubs.middleware import verify_club_access, resolve_club_id
import traceback

club_routes = Blueprint('clubs', __name__, url_prefix='/api/club')

MIN_PASSWORD_LENGTH = 6
SEARCH_LIMIT = 10


def default_club_settings():
    name = current_app.config['DEFAULT_CLUB_NAME']
    return {'id': None, 'clubName': name, 'name': name, 'logoUrl': None}


@club_routes.route('', methods=['GET'])
@club_routes.route('/', methods=['GET'])
def get_club_settings():
    """Settings of the caller's club; anonymous callers get the platform placeholder"""
    try:
        if not current_user.is_authenticated:
            return jsonify(default_club_settings())

        club_id = resolve_club_id()
        club = db.session.get(Club, club_id) if club_id else None
        if not club:
            return jsonify(default_club_settings())

        return jsonify(club.to_dict())

    except Exception as e:
        current_app.logger.error(f"Error fetching club settings: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@club_routes.route('/all', methods=['GET'])
@login_required
@super_admin_required
def get_all_clubs():
    try:
        user_counts = dict(
            db.session.query(User.club_id, func.count(User.id)).group_by(User.club_id).all()
        )
        category_counts = dict(
            db.session.query(Category.club_id, func.count(Category.id)).group_by(Category.club_id).all()
        )

        results = []
        for club in Club.query.order_by(Club.name).all():
            club_data = club.to_dict()
            club_data['_count'] = {
                'users': user_counts.get(club.id, 0),
                'categories': category_counts.get(club.id, 0),
            }
            results.append(club_data)

        return jsonify(results)

    except Exception as e:
        current_app.logger.error(f"Error fetching clubs: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@club_routes.route('/all-with-users', methods=['GET'])
@login_required
@super_admin_required
def get_all_clubs_with_users():
    try:
        results = []
        for club in Club.query.order_by(Club.name).all():
            club_data = club.to_dict()
            club_data['users'] = [user.to_dict() for user in club.users.order_by(User.name).all()]
            results.append(club_data)

        return jsonify(results)

    except Exception as e:
        current_app.logger.error(f"Error fetching clubs with users: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@club_routes.route('/search', methods=['GET'])
def search_clubs():
    """Public club lookup by name, used on the login page"""
    try:
        name = (request.args.get('name') or '').strip()
        if not name:
            return jsonify({'error': 'Name is required'}), 400

        clubs = Club.query.filter(
            Club.name.ilike(f'%{name}%')
        ).order_by(Club.name).limit(SEARCH_LIMIT).all()

        return jsonify([club.to_summary() for club in clubs])

    except Exception as e:
        current_app.logger.error(f"Error searching clubs: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@club_routes.route('/register', methods=['POST'])
def register_club():
    """Create a club together with its first (unverified) admin"""
    try:
        data = request.get_json(silent=True) or {}
        club_name = (data.get('clubName') or '').strip()
        admin_name = (data.get('adminName') or '').strip()
        admin_email = (data.get('adminEmail') or '').strip()
        admin_password = data.get('adminPassword') or ''

        if not club_name or not admin_name or not admin_email or not admin_password:
            return jsonify({'error': 'All fields are required'}), 400
        if len(admin_password) < MIN_PASSWORD_LENGTH:
            return jsonify({'error': f'Password too short (min {MIN_PASSWORD_LENGTH} characters)'}), 400
        if User.find_by_email(admin_email):
            return jsonify({'error': 'An account with this email already exists'}), 400

        club = Club(name=club_name)
        db.session.add(club)
        db.session.flush()

        admin = User(
            name=admin_name,
            email=admin_email,
            role=UserRole.ADMIN,
            club_id=club.id,
            email_verified=False
        )
        admin.set_password(admin_password)
        token = admin.new_verification_token()
        db.session.add(admin)
        db.session.commit()

        current_app.logger.info(f"Club registered: {club.name} (ID: {club.id}) with admin {admin.id}")

        success, detail = send_verification_email(admin_email, admin_name, token)
        if not success:
            current_app.logger.warning(f"Verification email to {admin_email} failed: {detail}")

        return jsonify({
            'message': 'Club created. Check your email to activate your account.',
            'clubId': club.id,
            'userId': admin.id
        }), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error registering club: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@club_routes.route('', methods=['PUT'])
@club_routes.route('/', methods=['PUT'])
@login_required
@admin_required
@verify_club_access()
def update_club_settings():
    try:
        club = db.session.get(Club, g.club_id)
        if not club:
            return jsonify({'error': 'Club not found'}), 404

        data = request.get_json(silent=True) or {}
        if 'clubName' in data:
            name = (data.get('clubName') or '').strip()
            if not name:
                return jsonify({'error': 'Club name cannot be empty'}), 400
            club.name = name

        for key, attr in Club.SETTINGS_FIELDS.items():
            if key in data:
                setattr(club, attr, data[key])

        db.session.commit()
        current_app.logger.info(f"Club {club.id} settings updated by user {current_user.id}")
        return jsonify(club.to_dict())

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating club settings: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500
