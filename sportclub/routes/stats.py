from flask import Blueprint, jsonify, current_app, g
from flask_login import login_required
from sportclub.utils.auth import role_required, super_admin_required
from sportclub.clubs.middleware import verify_club_access
from sportclub.clubs.scope import coach_category_ids, own_sportif_profile
from sportclub.services import stats_service
import traceback

stats_routes = Blueprint('stats', __name__, url_prefix='/api/stats')


@stats_routes.route('/all-clubs', methods=['GET'])
@login_required
@super_admin_required
def get_all_clubs_stats():
    try:
        return jsonify(stats_service.all_clubs_stats())

    except Exception as e:
        current_app.logger.error(f"Error computing platform stats: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@stats_routes.route('/global', methods=['GET'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def get_global_stats():
    """Dashboard figures; a coach only sees their own categories"""
    try:
        scope = stats_service.StatsScope(g.club_id, coach_category_ids())
        return jsonify(stats_service.global_stats(scope))

    except Exception as e:
        current_app.logger.error(f"Error computing global stats: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@stats_routes.route('/categories', methods=['GET'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def get_category_stats():
    try:
        return jsonify(stats_service.category_stats(g.club_id))

    except Exception as e:
        current_app.logger.error(f"Error computing category stats: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@stats_routes.route('/sportif', methods=['GET'])
@login_required
@role_required('sportif', 'admin')
@verify_club_access()
def get_sportif_stats():
    try:
        sportif = own_sportif_profile()
        if not sportif:
            return jsonify({'error': 'Sportif profile not found'}), 404
        return jsonify(stats_service.sportif_stats(sportif))

    except Exception as e:
        current_app.logger.error(f"Error computing sportif stats: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500
