from flask import Blueprint, request, jsonify, current_app, g
from flask_login import login_required
from sportclub.models import Stage, StageParticipant, StagePayment, StageStatus, parse_enum
from sportclub import db
from sportclub.utils.auth import admin_required
from sportclub.utils.dates import parse_date, parse_hhmm
from sportclub.clubs.middleware import verify_club_access
from sportclub.clubs.scope import club_stage, club_sportif
from sportclub.services import payment_service
import traceback

stage_routes = Blueprint('stages', __name__, url_prefix='/api/stages')


def _apply_stage_fields(stage, data):
    """
    Copy stage fields from a request body.

    Raises:
        ValueError: on malformed dates, times, price, capacity or status
    """
    if 'name' in data:
        name = (data.get('name') or '').strip()
        if not name:
            raise ValueError('name cannot be empty')
        stage.name = name
    if 'startDate' in data:
        stage.start_date = parse_date(data['startDate'])
    if 'endDate' in data:
        stage.end_date = parse_date(data['endDate'])
    for key, attr in (('startTime', 'start_time'), ('endTime', 'end_time')):
        if key in data:
            setattr(stage, attr, parse_hhmm(data[key]).strftime('%H:%M'))
    if 'price' in data:
        try:
            stage.price = float(data['price'])
        except (TypeError, ValueError):
            raise ValueError('price must be a number')
        if stage.price < 0:
            raise ValueError('price cannot be negative')
    if 'maxSpots' in data:
        value = data.get('maxSpots')
        try:
            stage.max_spots = int(value) if value not in (None, '') else None
        except (TypeError, ValueError):
            raise ValueError('maxSpots must be a whole number')
    if 'status' in data:
        stage.status = parse_enum(StageStatus, data['status'])
    for key in ('description', 'location', 'notes'):
        if key in data:
            setattr(stage, key, data.get(key) or None)

    if stage.start_date and stage.end_date and stage.end_date < stage.start_date:
        raise ValueError('endDate cannot be before startDate')


def _stage_participant(stage, participant_id):
    return StageParticipant.query.filter_by(id=participant_id, stage_id=stage.id).first()


@stage_routes.route('', methods=['GET'])
@login_required
@admin_required
@verify_club_access()
def get_stages():
    try:
        stages = Stage.query.filter_by(club_id=g.club_id).order_by(Stage.start_date.desc()).all()
        return jsonify([stage.to_dict() for stage in stages])

    except Exception as e:
        current_app.logger.error(f"Error fetching stages: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@stage_routes.route('/<int:stage_id>', methods=['GET'])
@login_required
@admin_required
@verify_club_access()
def get_stage(stage_id):
    try:
        stage = club_stage(stage_id)
        if not stage:
            return jsonify({'error': 'Stage not found'}), 404
        return jsonify(stage.to_dict(include_participants=True))

    except Exception as e:
        current_app.logger.error(f"Error fetching stage {stage_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@stage_routes.route('', methods=['POST'])
@login_required
@admin_required
@verify_club_access()
def create_stage():
    try:
        data = request.get_json(silent=True) or {}

        required = ('name', 'startDate', 'endDate', 'startTime', 'endTime', 'price')
        missing = [key for key in required if data.get(key) in (None, '')]
        if missing:
            return jsonify({'error': f"Missing required fields: {', '.join(missing)}"}), 400

        stage = Stage(club_id=g.club_id, status=StageStatus.OPEN)
        try:
            _apply_stage_fields(stage, data)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        db.session.add(stage)
        db.session.commit()
        current_app.logger.info(f"Stage {stage.id} '{stage.name}' created in club {g.club_id}")

        return jsonify(stage.to_dict()), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating stage: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@stage_routes.route('/<int:stage_id>', methods=['PUT'])
@login_required
@admin_required
@verify_club_access()
def update_stage(stage_id):
    try:
        stage = club_stage(stage_id)
        if not stage:
            return jsonify({'error': 'Stage not found'}), 404

        data = request.get_json(silent=True) or {}
        try:
            _apply_stage_fields(stage, data)
        except ValueError as e:
            db.session.rollback()
            return jsonify({'error': str(e)}), 400

        db.session.commit()
        return jsonify(stage.to_dict())

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating stage {stage_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@stage_routes.route('/<int:stage_id>', methods=['DELETE'])
@login_required
@admin_required
@verify_club_access()
def delete_stage(stage_id):
    try:
        stage = club_stage(stage_id)
        if not stage:
            return jsonify({'error': 'Stage not found'}), 404

        db.session.delete(stage)
        db.session.commit()
        return jsonify({'message': 'Stage deleted'})

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting stage {stage_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@stage_routes.route('/<int:stage_id>/participants', methods=['POST'])
@login_required
@admin_required
@verify_club_access()
def add_participant(stage_id):
    """
    Register a sportif on a stage.

    Optional installmentCount, totalAmount and firstDueDate build the
    payment schedule in the same request.
    """
    try:
        stage = club_stage(stage_id)
        if not stage:
            return jsonify({'error': 'Stage not found'}), 404

        data = request.get_json(silent=True) or {}
        if not data.get('sportifId'):
            return jsonify({'error': 'sportifId is required'}), 400

        sportif = club_sportif(data['sportifId'])
        if not sportif:
            return jsonify({'error': 'Sportif not found'}), 404

        if StageParticipant.query.filter_by(stage_id=stage.id, sportif_id=sportif.id).first():
            return jsonify({'error': 'Sportif is already registered on this stage'}), 409
        if stage.is_full:
            return jsonify({'error': 'No spots left on this stage'}), 409

        participant = StageParticipant(stage_id=stage.id, sportif_id=sportif.id)
        db.session.add(participant)

        if any(data.get(key) not in (None, '') for key in ('installmentCount', 'totalAmount', 'firstDueDate')):
            try:
                count, total, first_due = payment_service.parse_installment_request(data)
                payment_service.create_stage_payments(participant, count, total, first_due)
            except ValueError as e:
                db.session.rollback()
                return jsonify({'error': str(e)}), 400

        db.session.commit()
        current_app.logger.info(f"Sportif {sportif.id} registered on stage {stage.id}")

        return jsonify(participant.to_dict()), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error adding participant to stage {stage_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@stage_routes.route('/<int:stage_id>/participants/<int:participant_id>', methods=['DELETE'])
@login_required
@admin_required
@verify_club_access()
def remove_participant(stage_id, participant_id):
    try:
        stage = club_stage(stage_id)
        participant = _stage_participant(stage, participant_id) if stage else None
        if not participant:
            return jsonify({'error': 'Participant not found'}), 404

        db.session.delete(participant)
        db.session.commit()
        return jsonify({'message': 'Participant removed'})

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error removing participant {participant_id} from stage {stage_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@stage_routes.route('/<int:stage_id>/participants/<int:participant_id>/payments/<int:payment_id>', methods=['PUT'])
@login_required
@admin_required
@verify_club_access()
def update_participant_payment(stage_id, participant_id, payment_id):
    try:
        stage = club_stage(stage_id)
        participant = _stage_participant(stage, participant_id) if stage else None
        payment = StagePayment.query.filter_by(
            id=payment_id, participant_id=participant.id
        ).first() if participant else None
        if not payment:
            return jsonify({'error': 'Payment not found'}), 404

        data = request.get_json(silent=True) or {}
        try:
            payment_service.apply_payment_update(payment, data)
        except ValueError as e:
            db.session.rollback()
            return jsonify({'error': str(e)}), 400

        db.session.commit()
        return jsonify(payment.to_dict())

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating payment {payment_id} of stage {stage_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500
