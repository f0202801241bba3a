from flask import g
from flask_login import current_user
from sportclub.models import (
    User, Coach, Category, Team, Sportif, Training, TrainingSchedule,
    Licence, Stage, UserRole
)


# Lookups restricted to the club resolved by verify_club_access.
# Anything belonging to another club is reported as missing.

def _as_id(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def club_user(user_id):
    user_id = _as_id(user_id)
    return User.query.filter_by(id=user_id, club_id=g.club_id).first()


def club_category(category_id):
    category_id = _as_id(category_id)
    return Category.query.filter_by(id=category_id, club_id=g.club_id).first()


def club_team(team_id):
    team_id = _as_id(team_id)
    return Team.query.join(Category).filter(Team.id == team_id, Category.club_id == g.club_id).first()


def club_sportif(sportif_id):
    sportif_id = _as_id(sportif_id)
    return Sportif.query.join(Category).filter(
        Sportif.id == sportif_id, Category.club_id == g.club_id
    ).first()


def club_coach(coach_id):
    coach_id = _as_id(coach_id)
    return Coach.query.join(User).filter(Coach.id == coach_id, User.club_id == g.club_id).first()


def club_coaches():
    return Coach.query.join(User).filter(User.club_id == g.club_id)


def club_training(training_id):
    return Training.query.join(Category, Training.category_id == Category.id).filter(
        Training.id == training_id, Category.club_id == g.club_id
    ).first()


def club_schedule(schedule_id):
    schedule_id = _as_id(schedule_id)
    return TrainingSchedule.query.join(Category).filter(
        TrainingSchedule.id == schedule_id, Category.club_id == g.club_id
    ).first()


def club_licence(licence_id):
    return Licence.query.join(Sportif).join(Category).filter(
        Licence.id == licence_id, Category.club_id == g.club_id
    ).first()


def club_stage(stage_id):
    return Stage.query.filter_by(id=stage_id, club_id=g.club_id).first()


def own_sportif_profile():
    """Sportif profile of the caller; an admin previews the first sportif of the club"""
    sportif = current_user.sportif_profile
    if sportif and sportif.club_id == g.club_id:
        return sportif
    if current_user.is_admin:
        return Sportif.query.join(Category).filter(
            Category.club_id == g.club_id
        ).order_by(Sportif.id).first()
    return None


def acting_coach(requested_coach_id=None):
    """
    Coach profile to attribute authored records to.
    The caller's own profile first; an admin without one may name a club
    coach, otherwise the first coach of the club is used.
    """
    if current_user.coach_profile:
        return current_user.coach_profile
    if current_user.role == UserRole.COACH:
        return None
    if current_user.is_admin:
        if requested_coach_id:
            return club_coach(requested_coach_id)
        return club_coaches().order_by(Coach.id).first()
    return None


def coach_category_ids():
    """Category ids a coach is assigned to, or None for unrestricted callers"""
    if current_user.role != UserRole.COACH:
        return None
    coach = current_user.coach_profile
    return [c.id for c in coach.categories] if coach else []
