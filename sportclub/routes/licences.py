from datetime import timedelta
from flask import Blueprint, request, jsonify, current_app, g
from flask_login import login_required
from sportclub.models import (
    Licence, LicencePayment, LicenceStatus, Sportif, Category, local_now, parse_enum
)
from sportclub import db
from sportclub.utils.auth import admin_required
from sportclub.utils.dates import parse_date
from sportclub.clubs.middleware import verify_club_access
from sportclub.clubs.scope import club_licence, club_sportif
from sportclub.services import payment_service
import traceback

licence_routes = Blueprint('licences', __name__, url_prefix='/api/licences')

EXPIRY_WARNING_DAYS = 30


def _club_licences():
    return Licence.query.join(Sportif).join(Category).filter(Category.club_id == g.club_id)


def _apply_licence_fields(licence, data):
    """
    Copy licence fields from a request body.

    Raises:
        ValueError: on a malformed date, status or amount, or an expiry before the start
    """
    for key in ('number', 'type'):
        if key in data:
            value = (data.get(key) or '').strip()
            if not value:
                raise ValueError(f'{key} cannot be empty')
            setattr(licence, key, value)
    if 'status' in data:
        licence.status = parse_enum(LicenceStatus, data['status'])
    if 'startDate' in data:
        licence.start_date = parse_date(data['startDate'])
    if 'expiryDate' in data:
        licence.expiry_date = parse_date(data['expiryDate'])
    for key in ('federation', 'notes'):
        if key in data:
            setattr(licence, key, data.get(key) or None)
    if 'totalAmount' in data:
        try:
            licence.total_amount = float(data['totalAmount']) if data['totalAmount'] not in (None, '') else None
        except (TypeError, ValueError):
            raise ValueError('totalAmount must be a number')

    if licence.start_date and licence.expiry_date and licence.expiry_date < licence.start_date:
        raise ValueError('expiryDate cannot be before startDate')


def _licence_payment(licence, payment_id):
    return LicencePayment.query.filter_by(id=payment_id, licence_id=licence.id).first()


@licence_routes.route('', methods=['GET'])
@login_required
@admin_required
@verify_club_access()
def get_licences():
    try:
        query = _club_licences()

        sportif_id = request.args.get('sportifId', type=int)
        category_id = request.args.get('categoryId', type=int)
        if sportif_id:
            query = query.filter(Licence.sportif_id == sportif_id)
        if category_id:
            query = query.filter(Sportif.category_id == category_id)
        if request.args.get('status'):
            try:
                query = query.filter(Licence.status == parse_enum(LicenceStatus, request.args['status']))
            except ValueError as e:
                return jsonify({'error': str(e)}), 400

        licences = query.order_by(Licence.expiry_date.asc()).all()
        return jsonify([licence.to_dict() for licence in licences])

    except Exception as e:
        current_app.logger.error(f"Error fetching licences: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@licence_routes.route('/stats', methods=['GET'])
@login_required
@admin_required
@verify_club_access()
def get_licence_stats():
    try:
        today = local_now().date()
        horizon = today + timedelta(days=EXPIRY_WARNING_DAYS)

        def by_status(status):
            return _club_licences().filter(Licence.status == status).count()

        expiring_soon = _club_licences().filter(
            Licence.status == LicenceStatus.ACTIVE,
            Licence.expiry_date >= today,
            Licence.expiry_date <= horizon
        ).count()

        return jsonify({
            'total': _club_licences().count(),
            'active': by_status(LicenceStatus.ACTIVE),
            'expired': by_status(LicenceStatus.EXPIRED),
            'suspended': by_status(LicenceStatus.SUSPENDED),
            'expiringSoon': expiring_soon,
        })

    except Exception as e:
        current_app.logger.error(f"Error computing licence stats: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@licence_routes.route('/<int:licence_id>', methods=['GET'])
@login_required
@admin_required
@verify_club_access()
def get_licence(licence_id):
    try:
        licence = club_licence(licence_id)
        if not licence:
            return jsonify({'error': 'Licence not found'}), 404

        result = licence.to_dict()
        result['payments'] = [payment.to_dict() for payment in licence.payments]
        return jsonify(result)

    except Exception as e:
        current_app.logger.error(f"Error fetching licence {licence_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@licence_routes.route('', methods=['POST'])
@login_required
@admin_required
@verify_club_access()
def create_licence():
    try:
        data = request.get_json(silent=True) or {}

        missing = [key for key in ('sportifId', 'number', 'type', 'startDate', 'expiryDate') if not data.get(key)]
        if missing:
            return jsonify({'error': f"Missing required fields: {', '.join(missing)}"}), 400

        sportif = club_sportif(data['sportifId'])
        if not sportif:
            return jsonify({'error': 'Sportif not found'}), 404

        licence = Licence(sportif_id=sportif.id, status=LicenceStatus.ACTIVE)
        try:
            _apply_licence_fields(licence, data)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        db.session.add(licence)
        db.session.commit()
        current_app.logger.info(f"Licence {licence.number} created for sportif {sportif.id}")

        return jsonify(licence.to_dict()), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating licence: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@licence_routes.route('/<int:licence_id>', methods=['PUT'])
@login_required
@admin_required
@verify_club_access()
def update_licence(licence_id):
    try:
        licence = club_licence(licence_id)
        if not licence:
            return jsonify({'error': 'Licence not found'}), 404

        data = request.get_json(silent=True) or {}
        try:
            _apply_licence_fields(licence, data)
        except ValueError as e:
            db.session.rollback()
            return jsonify({'error': str(e)}), 400

        db.session.commit()
        return jsonify(licence.to_dict())

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating licence {licence_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@licence_routes.route('/<int:licence_id>', methods=['DELETE'])
@login_required
@admin_required
@verify_club_access()
def delete_licence(licence_id):
    try:
        licence = club_licence(licence_id)
        if not licence:
            return jsonify({'error': 'Licence not found'}), 404

        db.session.delete(licence)
        db.session.commit()
        return jsonify({'message': 'Licence deleted'})

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting licence {licence_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@licence_routes.route('/<int:licence_id>/payments', methods=['GET'])
@login_required
@admin_required
@verify_club_access()
def get_licence_payments(licence_id):
    try:
        licence = club_licence(licence_id)
        if not licence:
            return jsonify({'error': 'Licence not found'}), 404
        return jsonify([payment.to_dict() for payment in licence.payments])

    except Exception as e:
        current_app.logger.error(f"Error fetching payments of licence {licence_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@licence_routes.route('/<int:licence_id>/payments/generate', methods=['POST'])
@login_required
@admin_required
@verify_club_access()
def generate_licence_payments(licence_id):
    """Replace the pending installments with an equal monthly schedule"""
    try:
        licence = club_licence(licence_id)
        if not licence:
            return jsonify({'error': 'Licence not found'}), 404

        data = request.get_json(silent=True) or {}
        try:
            count, total, first_due = payment_service.parse_installment_request(data)
            payments = payment_service.regenerate_licence_payments(licence, count, total, first_due)
        except ValueError as e:
            db.session.rollback()
            return jsonify({'error': str(e)}), 400

        db.session.commit()
        current_app.logger.info(f"Generated {count} installments for licence {licence.id}")

        return jsonify([payment.to_dict() for payment in payments]), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error generating payments of licence {licence_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@licence_routes.route('/<int:licence_id>/payments', methods=['POST'])
@login_required
@admin_required
@verify_club_access()
def create_licence_payment(licence_id):
    try:
        licence = club_licence(licence_id)
        if not licence:
            return jsonify({'error': 'Licence not found'}), 404

        data = request.get_json(silent=True) or {}
        try:
            payment = payment_service.new_manual_payment(LicencePayment, licence.payments, data)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        licence.payments.append(payment)
        db.session.commit()

        return jsonify(payment.to_dict()), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error adding payment to licence {licence_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@licence_routes.route('/<int:licence_id>/payments/<int:payment_id>', methods=['PUT'])
@login_required
@admin_required
@verify_club_access()
def update_licence_payment(licence_id, payment_id):
    try:
        licence = club_licence(licence_id)
        payment = _licence_payment(licence, payment_id) if licence else None
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
        current_app.logger.error(f"Error updating payment {payment_id} of licence {licence_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@licence_routes.route('/<int:licence_id>/payments/<int:payment_id>', methods=['DELETE'])
@login_required
@admin_required
@verify_club_access()
def delete_licence_payment(licence_id, payment_id):
    try:
        licence = club_licence(licence_id)
        payment = _licence_payment(licence, payment_id) if licence else None
        if not payment:
            return jsonify({'error': 'Payment not found'}), 404

        db.session.delete(payment)
        db.session.commit()
        return jsonify({'message': 'Payment deleted'})

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting payment {payment_id} of licence {licence_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500
