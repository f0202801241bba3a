from datetime import datetime, timedelta
from sportclub.extensions import db
from sportclub.models import Training, TrainingSchedule, EventType
from sportclub.utils.dates import parse_hhmm

DEFAULT_WEEKS_PAST = 4
DEFAULT_WEEKS_AHEAD = 6


def schedule_occurrences(slots, today, weeks_past=DEFAULT_WEEKS_PAST, weeks_ahead=DEFAULT_WEEKS_AHEAD):
    """
    Expand weekly slots into dated occurrences.

    Every day in [today - weeks_past*7, today + weeks_ahead*7) whose ISO
    weekday matches a slot yields one occurrence at the slot's start time.

    Args:
        slots: objects with day_of_week (1=Monday ... 7=Sunday) and start_time ('HH:MM')
        today: reference date
        weeks_past / weeks_ahead: window size in weeks

    Returns:
        list of (datetime, slot) sorted by datetime
    """
    if weeks_past < 0 or weeks_ahead < 0:
        raise ValueError("Week counts cannot be negative")

    if isinstance(today, datetime):
        today = today.date()
    start = today - timedelta(days=weeks_past * 7)
    span = (weeks_past + weeks_ahead) * 7

    result = []
    for slot in slots:
        start_time = parse_hhmm(slot.start_time)
        for offset in range(span):
            day = start + timedelta(days=offset)
            if day.isoweekday() == slot.day_of_week:
                result.append((datetime.combine(day, start_time), slot))

    return sorted(result, key=lambda occurrence: occurrence[0])


def trainings_by_day(category_id, start, end):
    """Map calendar day -> training id for a category within [start, end)"""
    trainings = Training.query.filter(
        Training.category_id == category_id,
        Training.date >= start,
        Training.date < end
    ).order_by(Training.date).all()

    by_day = {}
    for training in trainings:
        by_day.setdefault(training.date.date(), training.id)
    return by_day


def category_occurrences(category, today, weeks_past, weeks_ahead):
    slots = category.schedules.order_by(TrainingSchedule.day_of_week, TrainingSchedule.start_time).all()
    occurrences = schedule_occurrences(slots, today, weeks_past, weeks_ahead)

    start = datetime.combine(today - timedelta(days=weeks_past * 7), datetime.min.time())
    end = datetime.combine(today + timedelta(days=weeks_ahead * 7), datetime.min.time())
    existing = trainings_by_day(category.id, start, end)

    return [
        {
            'date': when.isoformat(),
            'scheduleId': slot.id,
            'dayOfWeek': slot.day_of_week,
            'dayName': slot.day_name,
            'startTime': slot.start_time,
            'duration': slot.duration,
            'location': slot.location,
            'trainingId': existing.get(when.date()),
        }
        for when, slot in occurrences
    ]


def training_on_day(category_id, day):
    start = datetime.combine(day, datetime.min.time())
    return Training.query.filter(
        Training.category_id == category_id,
        Training.date >= start,
        Training.date < start + timedelta(days=1)
    ).first()


def materialise_occurrence(slot, day, coach):
    """Build the training for one occurrence of a slot on a given day"""
    training = Training(
        date=datetime.combine(day, parse_hhmm(slot.start_time)),
        duration=slot.duration,
        type=EventType.TRAINING,
        location=slot.location,
        category_id=slot.category_id,
        coach_id=coach.id if coach else None
    )
    db.session.add(training)
    return training
