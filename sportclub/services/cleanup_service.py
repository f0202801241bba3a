from sqlalchemy import or_
from sportclub.extensions import db
from sportclub.models import (
    Sportif, Training, TrainingSchedule, Message, ClubAnnouncement
)


def delete_user_account(user):
    """Remove a user with the records only it owns; a linked sportif profile is kept unlinked"""
    Message.query.filter(
        or_(Message.sender_id == user.id, Message.receiver_id == user.id)
    ).delete(synchronize_session=False)
    ClubAnnouncement.query.filter_by(author_id=user.id).delete(synchronize_session=False)

    if user.coach_profile:
        # Trainings outlive the coach who ran them
        Training.query.filter_by(coach_id=user.coach_profile.id).update(
            {'coach_id': None}, synchronize_session=False
        )

    if user.sportif_profile:
        user.sportif_profile.user_id = None

    db.session.delete(user)


def delete_team(team):
    Sportif.query.filter_by(team_id=team.id).update({'team_id': None}, synchronize_session=False)
    Message.query.filter_by(team_id=team.id).delete(synchronize_session=False)
    db.session.delete(team)


def delete_category(category):
    """
    Delete an empty category with its teams, weekly slots and broadcasts.

    Raises:
        ValueError: if sportifs or trainings still reference the category
    """
    if category.sportifs.count() or category.trainings.count():
        raise ValueError('Category still has sportifs or trainings')

    for team in category.teams.all():
        delete_team(team)
    TrainingSchedule.query.filter_by(category_id=category.id).delete(synchronize_session=False)
    Message.query.filter_by(category_id=category.id).delete(synchronize_session=False)
    db.session.delete(category)
