# Import all models to make them available when importing from models

# Base enums and constants
from sportclub.models.base import (
    UserRole, EventType, DayOfWeek, AnnotationType, EvaluationType,
    LicenceStatus, PaymentStatus, StageStatus, club_timezone, local_now, parse_enum
)

# Core models
from sportclub.models.core import (
    Club, User, Coach, Category, Team, Sportif, coach_categories
)

# Training models
from sportclub.models.training import (
    Training, Attendance, TrainingSchedule
)

# Tracking models
from sportclub.models.tracking import (
    Annotation, Evaluation
)

# Payment models
from sportclub.models.payments import (
    Licence, LicencePayment, Stage, StageParticipant, StagePayment, payment_summary
)

# Communication models
from sportclub.models.communication import (
    Message, ClubAnnouncement
)
