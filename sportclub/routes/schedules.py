from flask import Blueprint, request, jsonify, current_app, g
from flask_login import login_required
from sportclub.models import TrainingSchedule, Category, local_now
from sportclub import db
from sportclub.utils.auth import role_required
from sportclub.utils.dates import parse_date, parse_hhmm
from sportclub.clubs.middleware import verify_club_access
from sportclub.clubs.scope import club_schedule, club_category, acting_coach
from sportclub.services import schedule_service
from sportclub.services.training_service import register_category_attendances
import traceback

schedule_routes = Blueprint('schedules', __name__, url_prefix='/api/schedules')


def _apply_slot_fields(slot, data):
    """
    Validate and copy dayOfWeek, startTime, duration and location onto a slot.

    Raises:
        ValueError: on a day outside 1..7, a malformed time or a non-positive duration
    """
    if 'dayOfWeek' in data:
        try:
            day = int(data['dayOfWeek'])
        except (TypeError, ValueError):
            raise ValueError('dayOfWeek must be a number between 1 and 7')
        if day < 1 or day > 7:
            raise ValueError('dayOfWeek must be between 1 (Monday) and 7 (Sunday)')
        slot.day_of_week = day

    if 'startTime' in data:
        slot.start_time = parse_hhmm(data['startTime']).strftime('%H:%M')

    if 'duration' in data:
        try:
            duration = int(data['duration'])
        except (TypeError, ValueError):
            raise ValueError('duration must be a number of minutes')
        if duration <= 0:
            raise ValueError('duration must be positive')
        slot.duration = duration

    if 'location' in data:
        slot.location = data.get('location') or None


def _week_arg(name, default):
    value = request.args.get(name)
    if value in (None, ''):
        return default
    try:
        weeks = int(value)
    except ValueError:
        raise ValueError(f'{name} must be a whole number of weeks')
    if weeks < 0:
        raise ValueError(f'{name} cannot be negative')
    return weeks


@schedule_routes.route('', methods=['GET'])
@login_required
@verify_club_access()
def get_schedules():
    try:
        slots = TrainingSchedule.query.join(Category).filter(
            Category.club_id == g.club_id
        ).order_by(Category.name, TrainingSchedule.day_of_week, TrainingSchedule.start_time).all()
        return jsonify([slot.to_dict() for slot in slots])

    except Exception as e:
        current_app.logger.error(f"Error fetching schedules: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@schedule_routes.route('/category/<int:category_id>', methods=['GET'])
@login_required
@verify_club_access()
def get_category_schedules(category_id):
    try:
        category = club_category(category_id)
        if not category:
            return jsonify({'error': 'Category not found'}), 404

        slots = category.schedules.order_by(TrainingSchedule.day_of_week, TrainingSchedule.start_time).all()
        return jsonify([slot.to_dict() for slot in slots])

    except Exception as e:
        current_app.logger.error(f"Error fetching schedules of category {category_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@schedule_routes.route('', methods=['POST'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def create_schedule():
    try:
        data = request.get_json(silent=True) or {}

        missing = [key for key in ('categoryId', 'dayOfWeek', 'startTime', 'duration') if data.get(key) in (None, '')]
        if missing:
            return jsonify({'error': f"Missing required fields: {', '.join(missing)}"}), 400

        category = club_category(data['categoryId'])
        if not category:
            return jsonify({'error': 'Invalid category'}), 400

        slot = TrainingSchedule(category_id=category.id)
        try:
            _apply_slot_fields(slot, data)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        db.session.add(slot)
        db.session.commit()

        return jsonify(slot.to_dict()), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating schedule: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@schedule_routes.route('/<int:schedule_id>', methods=['PUT'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def update_schedule(schedule_id):
    try:
        slot = club_schedule(schedule_id)
        if not slot:
            return jsonify({'error': 'Schedule not found'}), 404

        data = request.get_json(silent=True) or {}
        try:
            _apply_slot_fields(slot, data)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        db.session.commit()
        return jsonify(slot.to_dict())

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating schedule {schedule_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@schedule_routes.route('/<int:schedule_id>', methods=['DELETE'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def delete_schedule(schedule_id):
    try:
        slot = club_schedule(schedule_id)
        if not slot:
            return jsonify({'error': 'Schedule not found'}), 404

        db.session.delete(slot)
        db.session.commit()
        return jsonify({'message': 'Schedule deleted'})

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting schedule {schedule_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@schedule_routes.route('/category/<int:category_id>/occurrences', methods=['GET'])
@login_required
@verify_club_access()
def get_occurrences(category_id):
    """Dated occurrences of the category's weekly slots around today"""
    try:
        category = club_category(category_id)
        if not category:
            return jsonify({'error': 'Category not found'}), 404

        try:
            weeks_past = _week_arg('weeksPast', schedule_service.DEFAULT_WEEKS_PAST)
            weeks_ahead = _week_arg('weeksAhead', schedule_service.DEFAULT_WEEKS_AHEAD)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        today = local_now().date()
        occurrences = schedule_service.category_occurrences(category, today, weeks_past, weeks_ahead)
        return jsonify(occurrences)

    except Exception as e:
        current_app.logger.error(f"Error computing occurrences of category {category_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@schedule_routes.route('/category/<int:category_id>/occurrences', methods=['POST'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def create_occurrence_training(category_id):
    """Turn one occurrence of a weekly slot into a training"""
    try:
        category = club_category(category_id)
        if not category:
            return jsonify({'error': 'Category not found'}), 404

        data = request.get_json(silent=True) or {}
        if not data.get('scheduleId') or not data.get('date'):
            return jsonify({'error': 'scheduleId and date are required'}), 400

        slot = club_schedule(data['scheduleId'])
        if not slot or slot.category_id != category.id:
            return jsonify({'error': 'Schedule not found in this category'}), 404

        try:
            day = parse_date(data['date'])
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        if schedule_service.training_on_day(category.id, day):
            return jsonify({'error': 'A training already exists on this day'}), 409

        coach = acting_coach(data.get('coachId'))
        training = schedule_service.materialise_occurrence(slot, day, coach)
        register_category_attendances(training)
        db.session.commit()
        current_app.logger.info(f"Training {training.id} created from schedule {slot.id} on {day.isoformat()}")

        return jsonify(training.to_dict(include_attendances=True)), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating training from schedule in category {category_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500
