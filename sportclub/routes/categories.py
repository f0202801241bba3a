from flask import Blueprint, request, jsonify, current_app, g
from flask_login import login_required
from sportclub.models import Category
from sportclub import db
from sportclub.utils.auth import admin_required
from sportclub.clubs.middleware import verify_club_access
from sportclub.clubs.scope import club_category
from sportclub.services.cleanup_service import delete_category as remove_category
import traceback

category_routes = Blueprint('categories', __name__, url_prefix='/api/categories')


def _name_taken(name, exclude_id=None):
    query = Category.query.filter(Category.club_id == g.club_id, db.func.lower(Category.name) == name.lower())
    if exclude_id:
        query = query.filter(Category.id != exclude_id)
    return query.first() is not None


@category_routes.route('', methods=['GET'])
@login_required
@verify_club_access()
def get_categories():
    try:
        categories = Category.query.filter_by(club_id=g.club_id).order_by(Category.name).all()
        return jsonify([category.to_dict(include_counts=True) for category in categories])

    except Exception as e:
        current_app.logger.error(f"Error fetching categories: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@category_routes.route('', methods=['POST'])
@login_required
@admin_required
@verify_club_access()
def create_category():
    try:
        data = request.get_json(silent=True) or {}
        name = (data.get('name') or '').strip()
        if not name:
            return jsonify({'error': 'Name is required'}), 400
        if _name_taken(name):
            return jsonify({'error': 'This category already exists'}), 400

        category = Category(name=name, club_id=g.club_id)
        if data.get('color'):
            category.color = data['color']

        db.session.add(category)
        db.session.commit()
        return jsonify(category.to_dict(include_counts=True)), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating category: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@category_routes.route('/<int:category_id>', methods=['PUT'])
@login_required
@admin_required
@verify_club_access()
def update_category(category_id):
    try:
        category = club_category(category_id)
        if not category:
            return jsonify({'error': 'Category not found'}), 404

        data = request.get_json(silent=True) or {}
        if 'name' in data:
            name = (data.get('name') or '').strip()
            if not name:
                return jsonify({'error': 'Name cannot be empty'}), 400
            if _name_taken(name, exclude_id=category.id):
                return jsonify({'error': 'This category already exists'}), 400
            category.name = name
        if data.get('color'):
            category.color = data['color']

        db.session.commit()
        return jsonify(category.to_dict(include_counts=True))

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating category {category_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@category_routes.route('/<int:category_id>', methods=['DELETE'])
@login_required
@admin_required
@verify_club_access()
def delete_category(category_id):
    try:
        category = club_category(category_id)
        if not category:
            return jsonify({'error': 'Category not found'}), 404

        try:
            remove_category(category)
        except ValueError as e:
            return jsonify({'error': str(e)}), 409

        db.session.commit()
        return jsonify({'message': 'Category deleted'})

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting category {category_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500
