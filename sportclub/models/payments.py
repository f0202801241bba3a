from sqlalchemy import text, Index
from sportclub.extensions import db
from sportclub.models.base import LicenceStatus, PaymentStatus, StageStatus


def _iso(value):
    return value.isoformat() if value else None


class InstallmentMixin:
    """Columns shared by licence and stage installments"""
    installment = db.Column(db.Integer, nullable=False)  # 1-based
    amount = db.Column(db.Float, nullable=False)
    due_date = db.Column(db.Date, nullable=False)
    paid_date = db.Column(db.Date)
    status = db.Column(db.Enum(PaymentStatus, name='paymentstatus'), nullable=False, default=PaymentStatus.PENDING)
    method = db.Column(db.String(50))  # e.g. 'Chèque', 'Virement', 'Espèces'
    reference = db.Column(db.String(100))
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))
    updated_at = db.Column(db.DateTime(timezone=True), onupdate=text('CURRENT_TIMESTAMP'))

    PAYMENT_FIELDS = ('method', 'reference', 'notes')

    @property
    def is_paid(self):
        return self.status == PaymentStatus.PAID

    def payment_dict(self):
        return {
            'id': self.id,
            'installment': self.installment,
            'amount': self.amount,
            'dueDate': _iso(self.due_date),
            'paidDate': _iso(self.paid_date),
            'status': self.status.value,
            'method': self.method,
            'reference': self.reference,
            'notes': self.notes,
        }


def payment_summary(payments, total_amount=None):
    """Paid and remaining amounts over a set of installments"""
    active = [p for p in payments if p.status != PaymentStatus.CANCELLED]
    paid = round(sum(p.amount for p in active if p.is_paid), 2)
    expected = total_amount if total_amount is not None else sum(p.amount for p in active)
    return {
        'total': round(expected or 0, 2),
        'paid': paid,
        'remaining': round(max((expected or 0) - paid, 0), 2),
        'installments': len(active),
    }


class Licence(db.Model):
    """Federation licence held by a sportif"""
    __tablename__ = 'licence'

    id = db.Column(db.Integer, primary_key=True)
    sportif_id = db.Column(db.Integer, db.ForeignKey('sportif.id'), nullable=False)
    number = db.Column(db.String(50), nullable=False)
    type = db.Column(db.String(50), nullable=False)
    status = db.Column(db.Enum(LicenceStatus, name='licencestatus'), nullable=False, default=LicenceStatus.ACTIVE)
    start_date = db.Column(db.Date, nullable=False)
    expiry_date = db.Column(db.Date, nullable=False)
    federation = db.Column(db.String(100))
    notes = db.Column(db.Text)
    total_amount = db.Column(db.Float)
    created_at = db.Column(db.DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))
    updated_at = db.Column(db.DateTime(timezone=True), onupdate=text('CURRENT_TIMESTAMP'))

    sportif = db.relationship('Sportif', back_populates='licences')
    payments = db.relationship('LicencePayment', back_populates='licence', cascade='all, delete-orphan',
                               order_by='LicencePayment.installment')

    __table_args__ = (
        Index('idx_licence_sportif', sportif_id),
        Index('idx_licence_status_expiry', status, expiry_date),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'sportifId': self.sportif_id,
            'number': self.number,
            'type': self.type,
            'status': self.status.value,
            'startDate': _iso(self.start_date),
            'expiryDate': _iso(self.expiry_date),
            'federation': self.federation,
            'notes': self.notes,
            'totalAmount': self.total_amount,
            'sportif': self.sportif.to_summary() if self.sportif else None,
            'paymentSummary': payment_summary(self.payments, self.total_amount),
        }

    def __repr__(self):
        return f'<Licence {self.number} ({self.status.value})>'


class LicencePayment(InstallmentMixin, db.Model):
    __tablename__ = 'licence_payment'

    id = db.Column(db.Integer, primary_key=True)
    licence_id = db.Column(db.Integer, db.ForeignKey('licence.id'), nullable=False)

    licence = db.relationship('Licence', back_populates='payments')

    __table_args__ = (
        Index('idx_licence_payment_licence', 'licence_id', 'installment'),
    )

    def to_dict(self):
        result = self.payment_dict()
        result['licenceId'] = self.licence_id
        return result


class Stage(db.Model):
    """Paid multi-day camp organised by a club"""
    __tablename__ = 'stage'

    id = db.Column(db.Integer, primary_key=True)
    club_id = db.Column(db.Integer, db.ForeignKey('club.id'), nullable=False)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    start_time = db.Column(db.String(5), nullable=False)  # HH:MM
    end_time = db.Column(db.String(5), nullable=False)
    location = db.Column(db.String(255))
    price = db.Column(db.Float, nullable=False)
    max_spots = db.Column(db.Integer)
    status = db.Column(db.Enum(StageStatus, name='stagestatus'), nullable=False, default=StageStatus.OPEN)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))
    updated_at = db.Column(db.DateTime(timezone=True), onupdate=text('CURRENT_TIMESTAMP'))

    club = db.relationship('Club', backref=db.backref('stages', lazy='dynamic'))
    participants = db.relationship('StageParticipant', back_populates='stage', cascade='all, delete-orphan')

    __table_args__ = (
        Index('idx_stage_club_start', club_id, start_date),
    )

    @property
    def is_full(self):
        return self.max_spots is not None and len(self.participants) >= self.max_spots

    def to_dict(self, include_participants=False):
        result = {
            'id': self.id,
            'clubId': self.club_id,
            'name': self.name,
            'description': self.description,
            'startDate': _iso(self.start_date),
            'endDate': _iso(self.end_date),
            'startTime': self.start_time,
            'endTime': self.end_time,
            'location': self.location,
            'price': self.price,
            'maxSpots': self.max_spots,
            'status': self.status.value,
            'notes': self.notes,
            '_count': {'participants': len(self.participants)},
        }
        if include_participants:
            result['participants'] = [p.to_dict() for p in self.participants]
        return result

    def __repr__(self):
        return f'<Stage {self.name}>'


class StageParticipant(db.Model):
    __tablename__ = 'stage_participant'

    id = db.Column(db.Integer, primary_key=True)
    stage_id = db.Column(db.Integer, db.ForeignKey('stage.id'), nullable=False)
    sportif_id = db.Column(db.Integer, db.ForeignKey('sportif.id'), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))

    stage = db.relationship('Stage', back_populates='participants')
    sportif = db.relationship('Sportif', back_populates='stage_participations')
    payments = db.relationship('StagePayment', back_populates='participant', cascade='all, delete-orphan',
                               order_by='StagePayment.installment')

    __table_args__ = (
        # A sportif registers once per stage
        db.UniqueConstraint('stage_id', 'sportif_id', name='unique_stage_participant'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'stageId': self.stage_id,
            'sportifId': self.sportif_id,
            'sportif': self.sportif.to_summary() if self.sportif else None,
            'payments': [payment.to_dict() for payment in self.payments],
            'paymentSummary': payment_summary(self.payments),
        }


class StagePayment(InstallmentMixin, db.Model):
    __tablename__ = 'stage_payment'

    id = db.Column(db.Integer, primary_key=True)
    participant_id = db.Column(db.Integer, db.ForeignKey('stage_participant.id'), nullable=False)

    participant = db.relationship('StageParticipant', back_populates='payments')

    __table_args__ = (
        Index('idx_stage_payment_participant', 'participant_id', 'installment'),
    )

    def to_dict(self):
        result = self.payment_dict()
        result['participantId'] = self.participant_id
        return result
