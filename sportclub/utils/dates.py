import calendar
from datetime import datetime, date, time


def parse_date(value):
    """
    Parse an API date ('YYYY-MM-DD' or a full ISO timestamp) into a date.

    Raises:
        ValueError: if the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        raise ValueError(f"Invalid date: {value!r}")
    text_value = value.strip()
    if len(text_value) == 10:
        return datetime.strptime(text_value, '%Y-%m-%d').date()
    return parse_datetime(text_value).date()


def parse_datetime(value):
    """Parse an ISO timestamp into a naive datetime (club wall-clock time)"""
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime.combine(value, time())
    if not value or not isinstance(value, str):
        raise ValueError(f"Invalid datetime: {value!r}")
    text_value = value.strip()
    if text_value.endswith('Z'):
        text_value = text_value[:-1] + '+00:00'
    parsed = datetime.fromisoformat(text_value)
    if parsed.tzinfo is not None:
        from sportclub.models.base import club_timezone
        parsed = parsed.astimezone(club_timezone).replace(tzinfo=None)
    return parsed


def parse_hhmm(value):
    """Parse a 'HH:MM' string into a time"""
    if not isinstance(value, str):
        raise ValueError("Time must be a string in HH:MM format")
    try:
        parsed = datetime.strptime(value.strip(), '%H:%M')
    except ValueError:
        raise ValueError(f"Invalid time '{value}'. Expected HH:MM")
    return parsed.time()


def add_months(start, months):
    """Shift a date by whole calendar months, clamping the day to the month's end"""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)
