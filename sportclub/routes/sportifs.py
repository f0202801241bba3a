from flask import Blueprint, request, jsonify, current_app, g
from flask_login import login_required, current_user
from sportclub.models import Sportif, Category, Attendance, Training, UserRole
from sportclub import db
from sportclub.utils.auth import role_required
from sportclub.utils.dates import parse_date
from sportclub.clubs.middleware import verify_club_access
from sportclub.clubs.scope import club_sportif, club_category, club_user, own_sportif_profile
from sportclub.services import roster_service
import traceback

sportif_routes = Blueprint('sportifs', __name__, url_prefix='/api/sportifs')

RECENT_ATTENDANCE_LIMIT = 20


def sportif_detail(sportif, attendance_limit=None):
    """Sportif with annotations, evaluations and attendances, most recent first"""
    attendances = Attendance.query.join(Training).filter(
        Attendance.sportif_id == sportif.id
    ).order_by(Training.date.desc())
    if attendance_limit:
        attendances = attendances.limit(attendance_limit)

    result = sportif.to_dict()
    result['team'] = {'id': sportif.team.id, 'name': sportif.team.name} if sportif.team else None
    result['annotations'] = [a.to_dict() for a in sportif.annotations]
    result['evaluations'] = [e.to_dict(include_sportif=False) for e in sportif.evaluations]
    result['attendances'] = [a.to_dict(include_training=True) for a in attendances.all()]
    return result


def _apply_fields(sportif, data):
    """
    Copy the editable fields of a request body onto a sportif.

    Raises:
        ValueError: on an empty name or a malformed birth date / measurement
    """
    for key, attr in (('firstName', 'first_name'), ('lastName', 'last_name')):
        if key in data:
            value = (data.get(key) or '').strip()
            if not value:
                raise ValueError(f'{key} cannot be empty')
            setattr(sportif, attr, value)

    if 'birthDate' in data:
        sportif.birth_date = parse_date(data['birthDate'])

    for key in ('height', 'weight'):
        if key in data:
            value = data.get(key)
            try:
                setattr(sportif, key, float(value) if value not in (None, '') else None)
            except (TypeError, ValueError):
                raise ValueError(f'{key} must be a number')

    if 'position' in data:
        sportif.position = data.get('position') or None
    if 'photoUrl' in data:
        sportif.photo_url = data.get('photoUrl') or None


def _linkable_user_id(user_id, sportif=None):
    """Validate the account a sportif profile is linked to; returns the id or raises ValueError"""
    if user_id in (None, ''):
        return None
    user = club_user(user_id)
    if not user:
        raise ValueError('User not found in this club')
    linked = user.sportif_profile
    if linked and (sportif is None or linked.id != sportif.id):
        raise ValueError('This user is already linked to a sportif')
    return user.id


@sportif_routes.route('', methods=['GET'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def get_sportifs():
    try:
        query = Sportif.query.join(Category).filter(Category.club_id == g.club_id)

        category_id = request.args.get('categoryId', type=int)
        if category_id:
            query = query.filter(Sportif.category_id == category_id)

        sportifs = query.order_by(Sportif.last_name, Sportif.first_name).all()
        return jsonify([sportif.to_dict() for sportif in sportifs])

    except Exception as e:
        current_app.logger.error(f"Error fetching sportifs: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@sportif_routes.route('/me', methods=['GET'])
@login_required
@role_required('sportif', 'admin')
@verify_club_access()
def get_my_profile():
    try:
        sportif = own_sportif_profile()
        if not sportif:
            return jsonify({'error': 'Sportif profile not found'}), 404

        return jsonify(sportif_detail(sportif, attendance_limit=RECENT_ATTENDANCE_LIMIT))

    except Exception as e:
        current_app.logger.error(f"Error fetching own sportif profile: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@sportif_routes.route('/me/photo', methods=['PUT'])
@login_required
@role_required('sportif')
@verify_club_access()
def update_my_photo():
    try:
        sportif = current_user.sportif_profile
        if not sportif:
            return jsonify({'error': 'Sportif profile not found'}), 404

        data = request.get_json(silent=True) or {}
        if 'photoUrl' not in data:
            return jsonify({'error': 'photoUrl is required'}), 400

        sportif.photo_url = data.get('photoUrl') or None
        db.session.commit()
        return jsonify(sportif.to_dict())

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating sportif photo: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@sportif_routes.route('/export', methods=['GET'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def export_sportifs():
    try:
        return roster_service.export_sportifs(g.club_id, request.args.get('categoryId', type=int))

    except Exception as e:
        current_app.logger.error(f"Error exporting sportifs: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@sportif_routes.route('/import', methods=['POST'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def import_sportifs():
    try:
        df = roster_service.read_csv_upload(request.files.get('file'), current_app.config['UPLOAD_MAX_BYTES'])
        created, errors = roster_service.import_sportifs(df, g.club_id)
        current_app.logger.info(f"Imported {created} sportifs into club {g.club_id} ({len(errors)} rejected rows)")
        return jsonify({'created': created, 'errors': errors})

    except ValueError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error importing sportifs: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@sportif_routes.route('/<int:sportif_id>', methods=['GET'])
@login_required
@role_required('admin', 'coach', 'sportif')
@verify_club_access()
def get_sportif(sportif_id):
    try:
        sportif = club_sportif(sportif_id)
        if not sportif:
            return jsonify({'error': 'Sportif not found'}), 404

        # Sportifs only see their own file
        if current_user.role == UserRole.SPORTIF and sportif.user_id != current_user.id:
            return jsonify({'error': 'Insufficient permissions'}), 403

        return jsonify(sportif_detail(sportif))

    except Exception as e:
        current_app.logger.error(f"Error fetching sportif {sportif_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@sportif_routes.route('', methods=['POST'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def create_sportif():
    try:
        data = request.get_json(silent=True) or {}

        missing = [key for key in ('firstName', 'lastName', 'birthDate', 'categoryId') if not data.get(key)]
        if missing:
            return jsonify({'error': f"Missing required fields: {', '.join(missing)}"}), 400

        category = club_category(data['categoryId'])
        if not category:
            return jsonify({'error': 'Invalid category'}), 400

        sportif = Sportif(category_id=category.id)
        try:
            _apply_fields(sportif, data)
            sportif.user_id = _linkable_user_id(data.get('userId'))
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        db.session.add(sportif)
        db.session.commit()
        current_app.logger.info(f"Sportif {sportif.id} created in category {category.id}")

        return jsonify(sportif.to_dict()), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating sportif: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@sportif_routes.route('/<int:sportif_id>', methods=['PUT'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def update_sportif(sportif_id):
    try:
        sportif = club_sportif(sportif_id)
        if not sportif:
            return jsonify({'error': 'Sportif not found'}), 404

        data = request.get_json(silent=True) or {}
        try:
            _apply_fields(sportif, data)
            if 'userId' in data:
                sportif.user_id = _linkable_user_id(data.get('userId'), sportif)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        if data.get('categoryId') and int(data['categoryId']) != sportif.category_id:
            category = club_category(data['categoryId'])
            if not category:
                return jsonify({'error': 'Invalid category'}), 400
            sportif.category_id = category.id
            # Teams belong to a category
            sportif.team_id = None

        db.session.commit()
        return jsonify(sportif.to_dict())

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating sportif {sportif_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@sportif_routes.route('/<int:sportif_id>', methods=['DELETE'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def delete_sportif(sportif_id):
    try:
        sportif = club_sportif(sportif_id)
        if not sportif:
            return jsonify({'error': 'Sportif not found'}), 404

        db.session.delete(sportif)
        db.session.commit()
        current_app.logger.info(f"Sportif {sportif_id} deleted by {current_user.id}")

        return jsonify({'message': 'Sportif deleted'})

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting sportif {sportif_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500
