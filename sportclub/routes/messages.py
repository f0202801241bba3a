from flask import Blueprint, request, jsonify, current_app, g
from flask_login import login_required, current_user
from sqlalchemy import or_, and_, func
from sportclub.models import Message, User, Coach, Category, Team, Sportif, UserRole
from sportclub import db
from sportclub.clubs.middleware import verify_club_access
from sportclub.clubs.scope import club_user, club_category, club_team, club_coaches, coach_category_ids
import traceback

message_routes = Blueprint('messages', __name__, url_prefix='/api/messages')


def _contact(user):
    return {'id': user.id, 'name': user.name, 'role': user.role.value, 'email': user.email}


def _sportif_contact(sportif):
    result = sportif.to_dict()
    result['user'] = _contact(sportif.user)
    result['team'] = {'id': sportif.team.id, 'name': sportif.team.name} if sportif.team else None
    return result


def _club_admins(exclude_id=None):
    query = User.query.filter(User.club_id == g.club_id, User.role == UserRole.ADMIN)
    if exclude_id:
        query = query.filter(User.id != exclude_id)
    return query.order_by(User.name).all()


def sportif_contacts(sportif):
    """Coaches of the sportif's category, teammates with an account, club admins"""
    if not sportif:
        return {'coaches': [], 'admins': [], 'sportifs': [], 'categories': [], 'teams': []}

    coaches = club_coaches().filter(Coach.categories.any(Category.id == sportif.category_id)).all()

    mates = Sportif.query.filter(Sportif.user_id.isnot(None), Sportif.id != sportif.id)
    if sportif.team_id:
        mates = mates.filter(Sportif.team_id == sportif.team_id)
    else:
        mates = mates.filter(Sportif.category_id == sportif.category_id)

    teams = [sportif.team.to_dict(include_members=False)] if sportif.team else []

    return {
        'coaches': [coach.to_dict() for coach in coaches],
        'admins': [_contact(user) for user in _club_admins()],
        'sportifs': [_sportif_contact(s) for s in mates.order_by(Sportif.last_name).all()],
        'categories': [sportif.category.to_summary()],
        'teams': teams,
    }


def staff_contacts():
    """Club coaches, other admins, and the sportifs and teams of the caller's categories"""
    category_ids = coach_category_ids()
    if category_ids is None:
        # Admins reach every category of the club
        category_ids = [c.id for c in Category.query.filter_by(club_id=g.club_id)]

    coaches = club_coaches().filter(Coach.user_id != current_user.id).all()

    sportifs, categories, teams = [], [], []
    if category_ids:
        sportifs = Sportif.query.filter(
            Sportif.category_id.in_(category_ids), Sportif.user_id.isnot(None)
        ).order_by(Sportif.last_name).all()
        categories = Category.query.filter(Category.id.in_(category_ids)).order_by(Category.name).all()
        teams = Team.query.filter(Team.category_id.in_(category_ids)).order_by(Team.category_id, Team.name).all()

    return {
        'coaches': [coach.to_dict() for coach in coaches],
        'admins': [_contact(user) for user in _club_admins(exclude_id=current_user.id)],
        'sportifs': [_sportif_contact(s) for s in sportifs],
        'categories': [c.to_summary() for c in categories],
        'teams': [
            dict(team.to_dict(include_members=False), category=team.category.to_summary())
            for team in teams
        ],
    }


@message_routes.route('/contacts', methods=['GET'])
@login_required
@verify_club_access()
def get_contacts():
    try:
        if current_user.role == UserRole.SPORTIF:
            profile = current_user.sportif_profile
            return jsonify(sportif_contacts(profile))
        return jsonify(staff_contacts())

    except Exception as e:
        current_app.logger.error(f"Error fetching contacts: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@message_routes.route('/unread-count', methods=['GET'])
@login_required
def get_unread_count():
    try:
        count = Message.query.filter_by(receiver_id=current_user.id, is_read=False).count()
        return jsonify({'count': count})

    except Exception as e:
        current_app.logger.error(f"Error counting unread messages: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@message_routes.route('/unread-per-sender', methods=['GET'])
@login_required
def get_unread_per_sender():
    """Unread direct messages keyed by sender id"""
    try:
        rows = db.session.query(Message.sender_id, func.count(Message.id)).filter(
            Message.receiver_id == current_user.id, Message.is_read.is_(False)
        ).group_by(Message.sender_id).all()
        return jsonify({str(sender_id): count for sender_id, count in rows})

    except Exception as e:
        current_app.logger.error(f"Error counting unread messages per sender: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@message_routes.route('', methods=['POST'])
@login_required
@verify_club_access()
def send_message():
    try:
        data = request.get_json(silent=True) or {}
        content = (data.get('content') or '').strip()
        if not data.get('receiverId') or not content:
            return jsonify({'error': 'receiverId and content are required'}), 400

        receiver = club_user(data['receiverId'])
        if not receiver:
            return jsonify({'error': 'Receiver not found'}), 404

        message = Message(content=content, sender_id=current_user.id, receiver_id=receiver.id)
        db.session.add(message)
        db.session.commit()

        return jsonify(message.to_dict()), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error sending message: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@message_routes.route('/category/<int:category_id>', methods=['POST'])
@login_required
@verify_club_access()
def send_category_message(category_id):
    try:
        category = club_category(category_id)
        if not category:
            return jsonify({'error': 'Category not found'}), 404

        data = request.get_json(silent=True) or {}
        content = (data.get('content') or '').strip()
        if not content:
            return jsonify({'error': 'Content is required'}), 400

        message = Message(content=content, sender_id=current_user.id, category_id=category.id)
        db.session.add(message)
        db.session.commit()

        return jsonify(message.to_dict()), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error broadcasting to category {category_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@message_routes.route('/category/<int:category_id>', methods=['GET'])
@login_required
@verify_club_access()
def get_category_messages(category_id):
    try:
        category = club_category(category_id)
        if not category:
            return jsonify({'error': 'Category not found'}), 404

        messages = category.messages.order_by(Message.created_at.asc()).all()
        return jsonify([message.to_dict() for message in messages])

    except Exception as e:
        current_app.logger.error(f"Error fetching messages of category {category_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@message_routes.route('/team/<int:team_id>', methods=['POST'])
@login_required
@verify_club_access()
def send_team_message(team_id):
    try:
        team = club_team(team_id)
        if not team:
            return jsonify({'error': 'Team not found'}), 404

        data = request.get_json(silent=True) or {}
        content = (data.get('content') or '').strip()
        if not content:
            return jsonify({'error': 'Content is required'}), 400

        message = Message(content=content, sender_id=current_user.id, team_id=team.id)
        db.session.add(message)
        db.session.commit()

        return jsonify(message.to_dict()), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error broadcasting to team {team_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@message_routes.route('/team/<int:team_id>', methods=['GET'])
@login_required
@verify_club_access()
def get_team_messages(team_id):
    try:
        team = club_team(team_id)
        if not team:
            return jsonify({'error': 'Team not found'}), 404

        messages = team.messages.order_by(Message.created_at.asc()).all()
        return jsonify([message.to_dict() for message in messages])

    except Exception as e:
        current_app.logger.error(f"Error fetching messages of team {team_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@message_routes.route('/conversations', methods=['GET'])
@login_required
@verify_club_access()
def get_conversations():
    """Latest direct message per club contact with its unread count, newest first"""
    try:
        me = current_user.id
        club_user_ids = db.select(User.id).where(User.club_id == g.club_id)

        messages = Message.query.filter(or_(
            and_(Message.sender_id == me, Message.receiver_id.in_(club_user_ids)),
            and_(Message.receiver_id == me, Message.sender_id.in_(club_user_ids))
        )).order_by(Message.created_at.desc(), Message.id.desc()).all()

        conversations = {}
        for message in messages:
            contact = message.receiver if message.sender_id == me else message.sender
            if contact and contact.id not in conversations:
                conversations[contact.id] = {'contact': contact.to_summary(), 'lastMessage': message.to_dict()}

        unread = dict(
            db.session.query(Message.sender_id, func.count(Message.id)).filter(
                Message.receiver_id == me, Message.is_read.is_(False)
            ).group_by(Message.sender_id).all()
        )
        result = []
        for contact_id, conversation in conversations.items():
            conversation['unreadCount'] = unread.get(contact_id, 0)
            result.append(conversation)

        return jsonify(result)

    except Exception as e:
        current_app.logger.error(f"Error fetching conversations: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500


@message_routes.route('/<int:user_id>', methods=['GET'])
@login_required
@verify_club_access()
def get_conversation(user_id):
    """Direct messages with one club user, oldest first; marks their messages as read"""
    try:
        other = club_user(user_id)
        if not other:
            return jsonify({'error': 'User not found'}), 404

        me = current_user.id
        Message.query.filter_by(sender_id=other.id, receiver_id=me, is_read=False).update(
            {'is_read': True}, synchronize_session=False
        )
        db.session.commit()

        messages = Message.query.filter(or_(
            and_(Message.sender_id == me, Message.receiver_id == other.id),
            and_(Message.sender_id == other.id, Message.receiver_id == me)
        )).order_by(Message.created_at.asc(), Message.id.asc()).all()

        return jsonify([message.to_dict() for message in messages])

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error fetching conversation with user {user_id}: {str(e)}")
        current_app.logger.error(traceback.format_exc())
        return jsonify({'error': 'Server error'}), 500
