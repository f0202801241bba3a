from flask import Blueprint, request, jsonify, current_app, g
from flask_login import login_required, current_user
from sportclub.models import ClubAnnouncement
from sportclub import db
from sportclub.utils.auth import admin_required
from sportclub.clubs.middleware import verify_club_access
import traceback

announcement_routes = Blueprint('announcements', __name__, url_prefix='/api/announcements')

LATEST_LIMIT = 10


@announcement_routes.route('', methods=['GET'])
@login_required
@verify_club_access()
def get_announcements():
    try:
        announcements = ClubAnnouncement.query.filter_by(club_id=g.club_id).order_by(
            ClubAnnouncement.created_at.desc(), ClubAnnouncement.id.desc()
        ).limit(LATEST_LIMIT).all()
        return jsonify([announcement.to_dict() for announcement in announcements])

    except Exception as e:
        current_app.logger.error(f"Error fetching announcements: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@announcement_routes.route('', methods=['POST'])
@login_required
@admin_required
@verify_club_access()
def create_announcement():
    try:
        data = request.get_json(silent=True) or {}
        title = (data.get('title') or '').strip()
        content = (data.get('content') or '').strip()
        if not title or not content:
            return jsonify({'error': 'Title and content are required'}), 400

        announcement = ClubAnnouncement(title=title, content=content, club_id=g.club_id, author_id=current_user.id)
        db.session.add(announcement)
        db.session.commit()
        current_app.logger.info(f"Announcement {announcement.id} published in club {g.club_id}")

        return jsonify(announcement.to_dict()), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating announcement: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@announcement_routes.route('/<int:announcement_id>', methods=['DELETE'])
@login_required
@admin_required
@verify_club_access()
def delete_announcement(announcement_id):
    try:
        announcement = ClubAnnouncement.query.filter_by(id=announcement_id, club_id=g.club_id).first()
        if not announcement:
            return jsonify({'error': 'Announcement not found'}), 404

        db.session.delete(announcement)
        db.session.commit()
        return jsonify({'message': 'Announcement deleted'})

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting announcement {announcement_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500
