from flask import Blueprint, request, jsonify, current_app, g
from flask_login import login_required, current_user
from sportclub.models import Annotation, AnnotationType, Sportif, Category, UserRole, parse_enum
from sportclub import db
from sportclub.utils.auth import role_required
from sportclub.clubs.middleware import verify_club_access
from sportclub.clubs.scope import club_sportif
import traceback

annotation_routes = Blueprint('annotations', __name__, url_prefix='/api/annotations')


@annotation_routes.route('', methods=['GET'])
@login_required
@verify_club_access()
def get_annotations():
    try:
        query = Annotation.query.join(Sportif).join(Category).filter(Category.club_id == g.club_id)

        sportif_id = request.args.get('sportifId', type=int)
        coach_id = request.args.get('coachId', type=int)

        if current_user.role == UserRole.SPORTIF:
            profile = current_user.sportif_profile
            sportif_id = profile.id if profile else -1

        if sportif_id:
            query = query.filter(Annotation.sportif_id == sportif_id)
        if coach_id:
            query = query.filter(Annotation.coach_id == coach_id)

        annotations = query.order_by(Annotation.created_at.desc()).all()
        return jsonify([annotation.to_dict() for annotation in annotations])

    except Exception as e:
        current_app.logger.error(f"Error fetching annotations: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@annotation_routes.route('', methods=['POST'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def create_annotation():
    try:
        coach = current_user.coach_profile
        if not coach:
            return jsonify({'error': 'A coach profile is required to write annotations'}), 400

        data = request.get_json(silent=True) or {}
        content = (data.get('content') or '').strip()
        if not content or not data.get('type') or not data.get('sportifId'):
            return jsonify({'error': 'content, type and sportifId are required'}), 400

        try:
            annotation_type = parse_enum(AnnotationType, data['type'])
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        sportif = club_sportif(data['sportifId'])
        if not sportif:
            return jsonify({'error': 'Sportif not found'}), 404

        annotation = Annotation(content=content, type=annotation_type, coach_id=coach.id, sportif_id=sportif.id)
        db.session.add(annotation)
        db.session.commit()

        return jsonify(annotation.to_dict()), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating annotation: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@annotation_routes.route('/<int:annotation_id>', methods=['DELETE'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def delete_annotation(annotation_id):
    try:
        annotation = Annotation.query.join(Sportif).join(Category).filter(
            Annotation.id == annotation_id, Category.club_id == g.club_id
        ).first()
        if not annotation:
            return jsonify({'error': 'Annotation not found'}), 404

        coach = current_user.coach_profile
        if not current_user.is_admin and (not coach or annotation.coach_id != coach.id):
            return jsonify({'error': 'You can only delete your own annotations'}), 403

        db.session.delete(annotation)
        db.session.commit()
        return jsonify({'message': 'Annotation deleted'})

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting annotation {annotation_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500
