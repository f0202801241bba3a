import os
import pytz
from enum import Enum
from datetime import datetime

# Timezone definition
club_timezone = pytz.timezone(os.environ.get('CLUB_TIMEZONE', 'Europe/Paris'))


def local_now():
    """Current wall-clock time in the club timezone, as a naive datetime."""
    return datetime.now(club_timezone).replace(tzinfo=None)


# Enum definitions
class UserRole(Enum):
    ADMIN = 'admin'
    COACH = 'coach'
    SPORTIF = 'sportif'
    SUPER_ADMIN = 'super_admin'


class EventType(Enum):
    TRAINING = 'Entraînement'
    MATCH = 'Match'
    TOURNAMENT = 'Tournoi'

    @classmethod
    def competitive(cls):
        return [cls.MATCH, cls.TOURNAMENT]


class DayOfWeek(Enum):
    MONDAY = 'Monday'
    TUESDAY = 'Tuesday'
    WEDNESDAY = 'Wednesday'
    THURSDAY = 'Thursday'
    FRIDAY = 'Friday'
    SATURDAY = 'Saturday'
    SUNDAY = 'Sunday'

    @classmethod
    def from_iso(cls, iso_day):
        """Map an ISO weekday (1=Monday ... 7=Sunday) to a DayOfWeek"""
        return list(cls)[iso_day - 1]


class AnnotationType(Enum):
    TECHNIQUE = 'TECHNIQUE'
    POINT_FORT = 'POINT_FORT'
    POINT_FAIBLE = 'POINT_FAIBLE'
    RECOMMANDATION = 'RECOMMANDATION'


class EvaluationType(Enum):
    TECHNIQUE = 'TECHNIQUE'
    PHYSIQUE = 'PHYSIQUE'
    TACTIQUE = 'TACTIQUE'
    MENTAL = 'MENTAL'


class LicenceStatus(Enum):
    ACTIVE = 'ACTIVE'
    EXPIRED = 'EXPIRED'
    SUSPENDED = 'SUSPENDED'
    PENDING = 'PENDING'


class PaymentStatus(Enum):
    PENDING = 'PENDING'
    PAID = 'PAID'
    LATE = 'LATE'
    CANCELLED = 'CANCELLED'


class StageStatus(Enum):
    OPEN = 'OPEN'
    FULL = 'FULL'
    CLOSED = 'CLOSED'
    CANCELLED = 'CANCELLED'


def parse_enum(enum_cls, value):
    """
    Resolve an enum member from API input.
    Accepts enum instances, values (e.g. 'Match') or names (e.g. 'MATCH').

    Raises:
        ValueError: if the value matches no member
    """
    if isinstance(value, enum_cls):
        return value
    if value is None:
        raise ValueError(f"Missing {enum_cls.__name__} value")

    text_value = str(value).strip()
    for member in enum_cls:
        if member.value.lower() == text_value.lower():
            return member
    try:
        return enum_cls[text_value.upper()]
    except KeyError:
        valid = ', '.join(m.value for m in enum_cls)
        raise ValueError(f"Invalid value '{value}'. Must be one of: {valid}")
