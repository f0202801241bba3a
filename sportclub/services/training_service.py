from sportclub.extensions import db
from sportclub.models import Training, Attendance, Sportif, EventType, parse_enum
from sportclub.utils.dates import parse_datetime

EDITABLE_TEXT_FIELDS = ('objectives', 'report', 'location', 'opponent', 'result')


def register_category_attendances(training):
    """Add an absent attendance row for every sportif of the training's category"""
    known = {a.sportif_id for a in training.attendances}
    sportif_ids = [row.id for row in Sportif.query.filter_by(
        category_id=training.category_id
    ).with_entities(Sportif.id)]
    for sportif_id in sportif_ids:
        if sportif_id not in known:
            training.attendances.append(Attendance(sportif_id=sportif_id, present=False))
    return len(sportif_ids)


def apply_training_fields(training, data):
    """
    Copy date, duration, type and free-text fields of a request body onto a training.

    Raises:
        ValueError: on a malformed date, a non-positive duration or an unknown type
    """
    if 'date' in data:
        training.date = parse_datetime(data['date'])
    if 'duration' in data:
        try:
            duration = int(data['duration'])
        except (TypeError, ValueError):
            raise ValueError('duration must be a number of minutes')
        if duration <= 0:
            raise ValueError('duration must be positive')
        training.duration = duration
    if 'type' in data:
        training.type = parse_enum(EventType, data['type'])
    for field in EDITABLE_TEXT_FIELDS:
        if field in data:
            setattr(training, field, data[field] or None)
    return training


def upsert_attendances(training, entries):
    """
    Record presence for a training.

    Each entry updates the row named by `id`, otherwise the row of
    (training, sportifId), creating it when missing.

    Raises:
        ValueError: on a malformed entry or a sportif outside the training's category
    """
    if not isinstance(entries, list):
        raise ValueError('attendances must be a list')

    by_id = {a.id: a for a in training.attendances}
    by_sportif = {a.sportif_id: a for a in training.attendances}
    allowed = {row.id for row in Sportif.query.filter_by(
        category_id=training.category_id
    ).with_entities(Sportif.id)}

    updated = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError('Each attendance must be an object')

        attendance = by_id.get(entry.get('id')) if entry.get('id') else None
        if attendance is None:
            try:
                sportif_id = int(entry.get('sportifId'))
            except (TypeError, ValueError):
                raise ValueError('sportifId is required for each attendance')
            attendance = by_sportif.get(sportif_id)
            if attendance is None:
                if sportif_id not in allowed:
                    raise ValueError(f'Sportif {sportif_id} is not in this category')
                attendance = Attendance(sportif_id=sportif_id)
                training.attendances.append(attendance)
                by_sportif[sportif_id] = attendance

        attendance.present = bool(entry.get('present', False))
        attendance.reason = entry.get('reason') or None
        updated.append(attendance)

    db.session.flush()
    return updated
