from sqlalchemy import text, Index, Boolean
from sportclub.extensions import db
from sportclub.models.base import EventType, DayOfWeek


class Training(db.Model):
    """A dated session or match/tournament event for one category"""
    __tablename__ = 'training'

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.DateTime, nullable=False)
    duration = db.Column(db.Integer, nullable=False)  # minutes
    type = db.Column(db.Enum(EventType, name='eventtype'), nullable=False, default=EventType.TRAINING)
    objectives = db.Column(db.Text)
    report = db.Column(db.Text)
    location = db.Column(db.String(255))
    opponent = db.Column(db.String(100))
    result = db.Column(db.String(50))
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=False)
    coach_id = db.Column(db.Integer, db.ForeignKey('coach.id', ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))
    updated_at = db.Column(db.DateTime(timezone=True), onupdate=text('CURRENT_TIMESTAMP'))

    # Relationships
    category = db.relationship('Category', back_populates='trainings')
    coach = db.relationship('Coach', back_populates='trainings')
    attendances = db.relationship('Attendance', back_populates='training', cascade='all, delete-orphan')

    # Indexes for performance
    __table_args__ = (
        Index('idx_training_category_date', category_id, date),
        Index('idx_training_coach', coach_id),
    )

    @property
    def is_competitive(self):
        return self.type in EventType.competitive()

    @property
    def attendance_rate(self):
        """Share of present sportifs in percent, 0 when nobody is registered"""
        from sportclub.services.stats_service import attendance_rate
        present = sum(1 for a in self.attendances if a.present)
        return attendance_rate(present, len(self.attendances))

    def to_dict(self, include_attendances=False):
        result = {
            'id': self.id,
            'date': self.date.isoformat() if self.date else None,
            'duration': self.duration,
            'type': self.type.value,
            'objectives': self.objectives,
            'report': self.report,
            'location': self.location,
            'opponent': self.opponent,
            'result': self.result,
            'categoryId': self.category_id,
            'coachId': self.coach_id,
            'category': self.category.to_summary() if self.category else None,
            'coach': {
                'id': self.coach.id,
                'user': {'name': self.coach.name},
            } if self.coach else None,
            '_count': {'attendances': len(self.attendances)},
        }
        if include_attendances:
            result['attendances'] = [
                attendance.to_dict(include_sportif=True) for attendance in self.attendances
            ]
            result['attendanceRate'] = self.attendance_rate
        return result

    def __repr__(self):
        return f'<Training id={self.id} date={self.date} type={self.type.value}>'


class Attendance(db.Model):
    __tablename__ = 'attendance'

    id = db.Column(db.Integer, primary_key=True)
    training_id = db.Column(db.Integer, db.ForeignKey('training.id'), nullable=False)
    sportif_id = db.Column(db.Integer, db.ForeignKey('sportif.id'), nullable=False)
    present = db.Column(Boolean, default=False, nullable=False)
    reason = db.Column(db.String(255))
    updated_at = db.Column(db.DateTime(timezone=True), onupdate=text('CURRENT_TIMESTAMP'))

    # Relationships
    training = db.relationship('Training', back_populates='attendances')
    sportif = db.relationship('Sportif', back_populates='attendances')

    __table_args__ = (
        Index('idx_attendance_sportif', sportif_id),
        # One entry per sportif per training
        Index('idx_attendance_unique', training_id, sportif_id, unique=True),
    )

    def to_dict(self, include_sportif=False, include_training=False):
        result = {
            'id': self.id,
            'trainingId': self.training_id,
            'sportifId': self.sportif_id,
            'present': self.present,
            'reason': self.reason,
        }
        if include_sportif and self.sportif:
            result['sportif'] = {
                'id': self.sportif.id,
                'firstName': self.sportif.first_name,
                'lastName': self.sportif.last_name,
                'photoUrl': self.sportif.photo_url,
            }
        if include_training and self.training:
            result['training'] = {
                'id': self.training.id,
                'date': self.training.date.isoformat(),
                'type': self.training.type.value,
                'duration': self.training.duration,
                'location': self.training.location,
            }
        return result


class TrainingSchedule(db.Model):
    """Weekly recurring slot of a category"""
    __tablename__ = 'training_schedule'

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=False)
    day_of_week = db.Column(db.Integer, nullable=False)  # 1=Monday ... 7=Sunday
    start_time = db.Column(db.String(5), nullable=False)  # HH:MM
    duration = db.Column(db.Integer, nullable=False)
    location = db.Column(db.String(255))
    created_at = db.Column(db.DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))

    category = db.relationship('Category', back_populates='schedules')

    __table_args__ = (
        Index('idx_schedule_category_day', category_id, day_of_week),
        db.CheckConstraint('day_of_week BETWEEN 1 AND 7', name='check_schedule_day_of_week'),
    )

    @property
    def day_name(self):
        return DayOfWeek.from_iso(self.day_of_week).value

    def to_dict(self):
        return {
            'id': self.id,
            'categoryId': self.category_id,
            'dayOfWeek': self.day_of_week,
            'dayName': self.day_name,
            'startTime': self.start_time,
            'duration': self.duration,
            'location': self.location,
            'category': self.category.to_summary() if self.category else None,
        }

    def __repr__(self):
        return f'<TrainingSchedule {self.day_name} {self.start_time} category_id={self.category_id}>'
