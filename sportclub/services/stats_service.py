from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy import func
from sportclub.extensions import db
from sportclub.models import (
    Club, User, Coach, Category, Sportif, Training, Attendance, Evaluation,
    EventType, local_now
)
from sportclub.utils.dates import add_months

MONTH_LABELS = ['janv.', 'févr.', 'mars', 'avr.', 'mai', 'juin',
                'juil.', 'août', 'sept.', 'oct.', 'nov.', 'déc.']


def attendance_rate(present, total):
    """Percentage of present entries as an int, 0 when there is nothing to count"""
    if not total:
        return 0
    rate = (Decimal(present) * 100 / Decimal(total)).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    return int(rate)


class StatsScope:
    """Restricts stats queries to a club, optionally to a subset of its categories"""

    def __init__(self, club_id, category_ids=None):
        self.club_id = club_id
        self.category_ids = category_ids

    def categories(self):
        query = Category.query.filter(Category.club_id == self.club_id)
        if self.category_ids is not None:
            query = query.filter(Category.id.in_(self.category_ids or [-1]))
        return query

    def trainings(self):
        query = Training.query.join(Category, Training.category_id == Category.id).filter(
            Category.club_id == self.club_id
        )
        if self.category_ids is not None:
            query = query.filter(Training.category_id.in_(self.category_ids or [-1]))
        return query

    def sportifs(self):
        query = Sportif.query.join(Category, Sportif.category_id == Category.id).filter(
            Category.club_id == self.club_id
        )
        if self.category_ids is not None:
            query = query.filter(Sportif.category_id.in_(self.category_ids or [-1]))
        return query

    def coaches(self):
        return Coach.query.join(User, Coach.user_id == User.id).filter(User.club_id == self.club_id)


def activity_trend(trainings_query, now, months=6):
    """Training counts per calendar month for the last `months` months, oldest first"""
    first_month = add_months(now.date().replace(day=1), -(months - 1))
    buckets = []
    for i in range(months):
        month_start = add_months(first_month, i)
        buckets.append({
            'month': month_start.strftime('%Y-%m'),
            'name': MONTH_LABELS[month_start.month - 1],
            'count': 0,
        })
    index = {bucket['month']: bucket for bucket in buckets}

    dates = trainings_query.filter(
        Training.date >= datetime.combine(first_month, datetime.min.time())
    ).with_entities(Training.date).all()
    for (when,) in dates:
        bucket = index.get(when.strftime('%Y-%m'))
        if bucket:
            bucket['count'] += 1
    return buckets


def global_stats(scope, now=None):
    now = now or local_now()
    thirty_days_ago = now - timedelta(days=30)

    upcoming = scope.trainings().filter(Training.date >= now).order_by(Training.date.asc()).all()
    recent = scope.trainings().filter(Training.date < now).order_by(Training.date.desc()).limit(5).all()
    recent_matches = scope.trainings().filter(
        Training.type.in_(EventType.competitive()),
        Training.date < now,
        Training.result.isnot(None)
    ).order_by(Training.date.desc()).limit(5).all()

    recent_ids = [row.id for row in scope.trainings().filter(Training.date >= thirty_days_ago).with_entities(Training.id)]
    total = Attendance.query.filter(Attendance.training_id.in_(recent_ids)).count()
    present = Attendance.query.filter(
        Attendance.training_id.in_(recent_ids), Attendance.present.is_(True)
    ).count()

    return {
        'counts': {
            'sportifs': scope.sportifs().count(),
            'coaches': scope.coaches().count(),
            'trainings': len(upcoming),
            'categories': scope.categories().count(),
        },
        'attendanceRate': attendance_rate(present, total),
        'recentTrainings': [t.to_dict() for t in recent],
        'nextTrainings': [t.to_dict() for t in upcoming],
        'recentMatches': [t.to_dict() for t in recent_matches],
        'activityData': activity_trend(scope.trainings(), now),
    }


def category_stats(club_id):
    sportif_counts = dict(
        db.session.query(Sportif.category_id, func.count(Sportif.id))
        .group_by(Sportif.category_id).all()
    )
    training_counts = dict(
        db.session.query(Training.category_id, func.count(Training.id))
        .group_by(Training.category_id).all()
    )
    categories = Category.query.filter_by(club_id=club_id).order_by(Category.name).all()
    return [
        {
            'id': category.id,
            'name': category.name,
            'color': category.color,
            'sportifs': sportif_counts.get(category.id, 0),
            'trainings': training_counts.get(category.id, 0),
        }
        for category in categories
    ]


def sportif_stats(sportif, now=None):
    now = now or local_now()
    thirty_days_ago = now - timedelta(days=30)

    past = Attendance.query.join(Training).filter(
        Attendance.sportif_id == sportif.id,
        Training.date < now
    ).all()
    present = [a for a in past if a.present]
    recent = [a for a in past if a.training.date >= thirty_days_ago]

    next_trainings = Training.query.filter(
        Training.category_id == sportif.category_id,
        Training.date >= now
    ).order_by(Training.date.asc()).limit(3).all()

    recent_evaluations = Evaluation.query.filter_by(sportif_id=sportif.id).order_by(
        Evaluation.date.desc()
    ).limit(3).all()

    match_participations = Attendance.query.join(Training).filter(
        Attendance.sportif_id == sportif.id,
        Attendance.present.is_(True),
        Training.type.in_(EventType.competitive())
    ).count()

    return {
        'attendance': {
            'global': attendance_rate(len(present), len(past)),
            'recent': attendance_rate(sum(1 for a in recent if a.present), len(recent)),
            'totalSessions': len(past),
            'presentSessions': len(present),
        },
        'nextTrainings': [t.to_dict() for t in next_trainings],
        'recentEvaluations': [e.to_dict(include_sportif=False) for e in recent_evaluations],
        'matchParticipations': match_participations,
        'sportif': sportif.to_dict(),
    }


def all_clubs_stats(now=None):
    now = now or local_now()
    result = []
    for club in Club.query.order_by(Club.name).all():
        scope = StatsScope(club.id)
        next_trainings = scope.trainings().filter(Training.date >= now).order_by(
            Training.date.asc()
        ).limit(3).all()
        result.append({
            'club': club.to_summary(),
            'counts': {
                'sportifs': scope.sportifs().count(),
                'coaches': scope.coaches().count(),
                'categories': scope.categories().count(),
                'upcomingTrainings': len(next_trainings),
            },
            'nextTrainings': [t.to_dict() for t in next_trainings],
        })
    return result
