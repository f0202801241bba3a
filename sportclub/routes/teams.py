from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required
from sportclub.models import Team
from sportclub import db
from sportclub.utils.auth import role_required
from sportclub.clubs.middleware import verify_club_access
from sportclub.clubs.scope import club_category, club_team, club_sportif
from sportclub.services.cleanup_service import delete_team as remove_team
import traceback

team_routes = Blueprint('teams', __name__, url_prefix='/api/teams')


@team_routes.route('/category/<int:category_id>', methods=['GET'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def get_category_teams(category_id):
    try:
        category = club_category(category_id)
        if not category:
            return jsonify({'error': 'Category not found'}), 404

        teams = category.teams.order_by(Team.name).all()
        return jsonify([team.to_dict() for team in teams])

    except Exception as e:
        current_app.logger.error(f"Error fetching teams of category {category_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@team_routes.route('/category/<int:category_id>', methods=['POST'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def create_team(category_id):
    try:
        category = club_category(category_id)
        if not category:
            return jsonify({'error': 'Category not found'}), 404

        data = request.get_json(silent=True) or {}
        name = (data.get('name') or '').strip()
        if not name:
            return jsonify({'error': 'Team name is required'}), 400

        if Team.query.filter_by(category_id=category.id, name=name).first():
            return jsonify({'error': 'A team with this name already exists in this category'}), 409

        team = Team(name=name, category_id=category.id)
        db.session.add(team)
        db.session.commit()

        return jsonify(team.to_dict()), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating team in category {category_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@team_routes.route('/<int:team_id>', methods=['DELETE'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def delete_team(team_id):
    try:
        team = club_team(team_id)
        if not team:
            return jsonify({'error': 'Team not found'}), 404

        remove_team(team)
        db.session.commit()
        return jsonify({'message': 'Team deleted'})

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting team {team_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@team_routes.route('/sportif/<int:sportif_id>', methods=['PUT'])
@login_required
@role_required('admin', 'coach')
@verify_club_access()
def assign_sportif_team(sportif_id):
    """Move a sportif into a team of its category, or out of any team with teamId null"""
    try:
        sportif = club_sportif(sportif_id)
        if not sportif:
            return jsonify({'error': 'Sportif not found'}), 404

        data = request.get_json(silent=True) or {}
        team_id = data.get('teamId')

        if team_id in (None, ''):
            sportif.team_id = None
        else:
            team = club_team(team_id)
            if not team or team.category_id != sportif.category_id:
                return jsonify({'error': "Team does not belong to the sportif's category"}), 400
            sportif.team_id = team.id

        db.session.commit()
        return jsonify(sportif.to_dict())

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error assigning team of sportif {sportif_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500
