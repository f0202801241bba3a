from flask import Blueprint, request, jsonify, current_app, g
from flask_login import login_required, current_user
from sportclub.models import Evaluation, EvaluationType, Sportif, Category, UserRole, parse_enum
from sportclub import db
from sportclub.utils.auth import role_required
from sportclub.utils.dates import parse_datetime
from sportclub.clubs.middleware import verify_club_access
from sportclub.clubs.scope import club_sportif
import traceback

evaluation_routes = Blueprint('evaluations', __name__, url_prefix='/api/evaluations')


def validate_ratings(ratings):
    """
    Check a skill -> score mapping.

    Raises:
        ValueError: if ratings is not an object of numeric scores
    """
    if not isinstance(ratings, dict):
        raise ValueError('ratings must be an object mapping skills to scores')
    for skill, score in ratings.items():
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise ValueError(f"Rating for '{skill}' must be a number")
    return ratings


def _club_evaluation(evaluation_id):
    return Evaluation.query.join(Sportif).join(Category).filter(
        Evaluation.id == evaluation_id, Category.club_id == g.club_id
    ).first()


@evaluation_routes.route('', methods=['GET'])
@login_required
@verify_club_access()
def get_evaluations():
    try:
        query = Evaluation.query.join(Sportif).join(Category).filter(Category.club_id == g.club_id)

        sportif_id = request.args.get('sportifId', type=int)
        if current_user.role == UserRole.SPORTIF:
            profile = current_user.sportif_profile
            sportif_id = profile.id if profile else -1
        if sportif_id:
            query = query.filter(Evaluation.sportif_id == sportif_id)

        if request.args.get('type'):
            try:
                query = query.filter(Evaluation.type == parse_enum(EvaluationType, request.args['type']))
            except ValueError as e:
                return jsonify({'error': str(e)}), 400

        evaluations = query.order_by(Evaluation.date.desc()).all()
        return jsonify([evaluation.to_dict() for evaluation in evaluations])

    except Exception as e:
        current_app.logger.error(f"Error fetching evaluations: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@evaluation_routes.route('/<int:evaluation_id>', methods=['GET'])
@login_required
@verify_club_access()
def get_evaluation(evaluation_id):
    try:
        evaluation = _club_evaluation(evaluation_id)
        if not evaluation:
            return jsonify({'error': 'Evaluation not found'}), 404
        if current_user.role == UserRole.SPORTIF and evaluation.sportif.user_id != current_user.id:
            return jsonify({'error': 'Insufficient permissions'}), 403
        return jsonify(evaluation.to_dict())

    except Exception as e:
        current_app.logger.error(f"Error fetching evaluation {evaluation_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@evaluation_routes.route('', methods=['POST'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def create_evaluation():
    try:
        coach = current_user.coach_profile
        if not coach:
            return jsonify({'error': 'A coach profile is required to evaluate sportifs'}), 400

        data = request.get_json(silent=True) or {}
        if not data.get('sportifId') or not data.get('type') or data.get('ratings') is None:
            return jsonify({'error': 'sportifId, type and ratings are required'}), 400

        try:
            evaluation_type = parse_enum(EvaluationType, data['type'])
            ratings = validate_ratings(data['ratings'])
            date = parse_datetime(data['date']) if data.get('date') else None
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        sportif = club_sportif(data['sportifId'])
        if not sportif:
            return jsonify({'error': 'Sportif not found'}), 404

        evaluation = Evaluation(
            type=evaluation_type,
            ratings=ratings,
            comment=data.get('comment') or None,
            sportif_id=sportif.id,
            coach_id=coach.id
        )
        if date:
            evaluation.date = date

        db.session.add(evaluation)
        db.session.commit()

        return jsonify(evaluation.to_dict()), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating evaluation: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@evaluation_routes.route('/<int:evaluation_id>', methods=['PUT'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def update_evaluation(evaluation_id):
    try:
        evaluation = _club_evaluation(evaluation_id)
        if not evaluation:
            return jsonify({'error': 'Evaluation not found'}), 404

        data = request.get_json(silent=True) or {}
        if 'ratings' in data:
            try:
                # Reassign so the JSON column is flagged dirty
                evaluation.ratings = dict(validate_ratings(data['ratings']))
            except ValueError as e:
                return jsonify({'error': str(e)}), 400
        if 'comment' in data:
            evaluation.comment = data.get('comment') or None

        db.session.commit()
        return jsonify(evaluation.to_dict())

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating evaluation {evaluation_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@evaluation_routes.route('/<int:evaluation_id>', methods=['DELETE'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def delete_evaluation(evaluation_id):
    try:
        evaluation = _club_evaluation(evaluation_id)
        if not evaluation:
            return jsonify({'error': 'Evaluation not found'}), 404

        db.session.delete(evaluation)
        db.session.commit()
        return jsonify({'message': 'Evaluation deleted'})

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting evaluation {evaluation_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500
