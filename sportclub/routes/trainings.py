from datetime import datetime, timedelta
from flask import Blueprint, request, jsonify, current_app, g
from flask_login import login_required, current_user
from sportclub.models import Training, Category, UserRole
from sportclub import db
from sportclub.utils.auth import role_required
from sportclub.utils.dates import parse_date
from sportclub.clubs.middleware import verify_club_access
from sportclub.clubs.scope import club_training, club_category, acting_coach, own_sportif_profile
from sportclub.services.training_service import (
    register_category_attendances, apply_training_fields, upsert_attendances
)
import traceback

training_routes = Blueprint('trainings', __name__, url_prefix='/api/trainings')


@training_routes.route('', methods=['GET'])
@login_required
@role_required('admin', 'coach', 'sportif')
@verify_club_access()
def get_trainings():
    """
    List club trainings, newest first.

    Query params: categoryId, coachId, fromDate, toDate (inclusive days).
    A sportif only sees the trainings of their own category.
    """
    try:
        query = Training.query.join(Category, Training.category_id == Category.id).filter(
            Category.club_id == g.club_id
        )

        category_id = request.args.get('categoryId', type=int)
        coach_id = request.args.get('coachId', type=int)
        try:
            from_date = parse_date(request.args['fromDate']) if request.args.get('fromDate') else None
            to_date = parse_date(request.args['toDate']) if request.args.get('toDate') else None
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        if current_user.role == UserRole.SPORTIF:
            sportif = own_sportif_profile()
            if not sportif:
                return jsonify([])
            category_id = sportif.category_id

        if category_id:
            query = query.filter(Training.category_id == category_id)
        if coach_id:
            query = query.filter(Training.coach_id == coach_id)
        if from_date:
            query = query.filter(Training.date >= datetime.combine(from_date, datetime.min.time()))
        if to_date:
            query = query.filter(Training.date < datetime.combine(to_date + timedelta(days=1), datetime.min.time()))

        trainings = query.order_by(Training.date.desc()).all()
        return jsonify([training.to_dict() for training in trainings])

    except Exception as e:
        current_app.logger.error(f"Error fetching trainings: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@training_routes.route('/<int:training_id>', methods=['GET'])
@login_required
@verify_club_access()
def get_training(training_id):
    try:
        training = club_training(training_id)
        if not training:
            return jsonify({'error': 'Training not found'}), 404
        if current_user.role == UserRole.SPORTIF:
            sportif = own_sportif_profile()
            if not sportif or sportif.category_id != training.category_id:
                return jsonify({'error': 'Training not found'}), 404
        return jsonify(training.to_dict(include_attendances=True))

    except Exception as e:
        current_app.logger.error(f"Error fetching training {training_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@training_routes.route('', methods=['POST'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def create_training():
    try:
        data = request.get_json(silent=True) or {}

        missing = [key for key in ('date', 'duration', 'type', 'categoryId') if not data.get(key)]
        if missing:
            return jsonify({'error': f"Missing required fields: {', '.join(missing)}"}), 400

        category = club_category(data['categoryId'])
        if not category:
            return jsonify({'error': 'Invalid category'}), 400

        coach = acting_coach(data.get('coachId'))
        if not coach:
            return jsonify({'error': 'No coach available to run this training'}), 400

        training = Training(category_id=category.id, coach_id=coach.id)
        try:
            apply_training_fields(training, data)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        db.session.add(training)
        registered = register_category_attendances(training)
        db.session.commit()
        current_app.logger.info(
            f"Training {training.id} ({training.type.value}) created for category {category.id}, {registered} sportifs registered"
        )

        return jsonify(training.to_dict(include_attendances=True)), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating training: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@training_routes.route('/<int:training_id>', methods=['PUT'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def update_training(training_id):
    try:
        training = club_training(training_id)
        if not training:
            return jsonify({'error': 'Training not found'}), 404

        data = request.get_json(silent=True) or {}
        try:
            apply_training_fields(training, data)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        if data.get('categoryId'):
            category = club_category(data['categoryId'])
            if not category:
                return jsonify({'error': 'Invalid category'}), 400
            training.category_id = category.id

        db.session.commit()
        return jsonify(training.to_dict(include_attendances=True))

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating training {training_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@training_routes.route('/<int:training_id>', methods=['DELETE'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def delete_training(training_id):
    try:
        training = club_training(training_id)
        if not training:
            return jsonify({'error': 'Training not found'}), 404

        # Attendances go with the training
        db.session.delete(training)
        db.session.commit()

        return jsonify({'message': 'Training deleted'})

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting training {training_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@training_routes.route('/<int:training_id>/attendance', methods=['PUT'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def update_attendance(training_id):
    try:
        training = club_training(training_id)
        if not training:
            return jsonify({'error': 'Training not found'}), 404

        data = request.get_json(silent=True) or {}
        try:
            upsert_attendances(training, data.get('attendances'))
        except ValueError as e:
            db.session.rollback()
            return jsonify({'error': str(e)}), 400

        db.session.commit()
        return jsonify(training.to_dict(include_attendances=True))

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating attendance of training {training_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500
