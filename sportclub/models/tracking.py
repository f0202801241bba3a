from datetime import datetime, timezone
from sqlalchemy import text, Index
from sportclub.extensions import db
from sportclub.models.base import AnnotationType, EvaluationType


def _coach_summary(coach):
    if not coach:
        return None
    return {'id': coach.id, 'user': {'name': coach.name}}


class Annotation(db.Model):
    """Free-text coach note about a sportif"""
    __tablename__ = 'annotation'

    id = db.Column(db.Integer, primary_key=True)
    content = db.Column(db.Text, nullable=False)
    type = db.Column(db.Enum(AnnotationType, name='annotationtype'), nullable=False)
    coach_id = db.Column(db.Integer, db.ForeignKey('coach.id'), nullable=False)
    sportif_id = db.Column(db.Integer, db.ForeignKey('sportif.id'), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False,
                           default=lambda: datetime.now(timezone.utc))

    coach = db.relationship('Coach', backref=db.backref('annotations', cascade='all, delete-orphan'))
    sportif = db.relationship('Sportif', back_populates='annotations')

    __table_args__ = (
        Index('idx_annotation_sportif', sportif_id),
        Index('idx_annotation_coach', coach_id),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'content': self.content,
            'type': self.type.value,
            'coachId': self.coach_id,
            'sportifId': self.sportif_id,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'coach': _coach_summary(self.coach),
            'sportif': {
                'firstName': self.sportif.first_name,
                'lastName': self.sportif.last_name,
            } if self.sportif else None,
        }


class Evaluation(db.Model):
    """Skill ratings given by a coach, stored as a JSON mapping skill -> score"""
    __tablename__ = 'evaluation'

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False,
                     default=lambda: datetime.now(timezone.utc))
    type = db.Column(db.Enum(EvaluationType, name='evaluationtype'), nullable=False)
    ratings = db.Column(db.JSON, nullable=False, default=dict)
    comment = db.Column(db.Text)
    sportif_id = db.Column(db.Integer, db.ForeignKey('sportif.id'), nullable=False)
    coach_id = db.Column(db.Integer, db.ForeignKey('coach.id'), nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), onupdate=text('CURRENT_TIMESTAMP'))

    coach = db.relationship('Coach', backref=db.backref('evaluations', cascade='all, delete-orphan'))
    sportif = db.relationship('Sportif', back_populates='evaluations')

    __table_args__ = (
        Index('idx_evaluation_sportif_date', sportif_id, date),
    )

    @property
    def average(self):
        """Mean of the numeric ratings, rounded to one decimal"""
        scores = [value for value in (self.ratings or {}).values()
                  if isinstance(value, (int, float)) and not isinstance(value, bool)]
        if not scores:
            return None
        return round(sum(scores) / len(scores), 1)

    def to_dict(self, include_sportif=True):
        result = {
            'id': self.id,
            'date': self.date.isoformat() if self.date else None,
            'type': self.type.value,
            'ratings': self.ratings or {},
            'average': self.average,
            'comment': self.comment,
            'sportifId': self.sportif_id,
            'coachId': self.coach_id,
            'coach': _coach_summary(self.coach),
        }
        if include_sportif and self.sportif:
            result['sportif'] = {
                'id': self.sportif.id,
                'firstName': self.sportif.first_name,
                'lastName': self.sportif.last_name,
            }
        return result
