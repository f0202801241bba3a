import secrets
from flask import current_app
from flask_login import UserMixin
from sqlalchemy import Index, text, func
from werkzeug.security import generate_password_hash, check_password_hash
from sportclub.extensions import db
from sportclub.models.base import UserRole


coach_categories = db.Table(
    'coach_categories',
    db.Column('coach_id', db.Integer, db.ForeignKey('coach.id', ondelete='CASCADE'), primary_key=True),
    db.Column('category_id', db.Integer, db.ForeignKey('category.id', ondelete='CASCADE'), primary_key=True)
)


class Club(db.Model):
    __tablename__ = 'club'
    __table_args__ = (
        Index('idx_club_name', 'name'),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    logo_url = db.Column(db.Text)
    address = db.Column(db.String(255))
    city = db.Column(db.String(100))
    email = db.Column(db.String(120))
    phone = db.Column(db.String(30))
    website = db.Column(db.String(255))

    # Social links
    facebook = db.Column(db.String(255))
    instagram = db.Column(db.String(255))
    twitter = db.Column(db.String(255))
    youtube = db.Column(db.String(255))
    tiktok = db.Column(db.String(255))
    linkedin = db.Column(db.String(255))

    created_at = db.Column(db.DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))
    updated_at = db.Column(db.DateTime(timezone=True), onupdate=func.now())

    # Relationships
    users = db.relationship('User', back_populates='club', lazy='dynamic')
    categories = db.relationship('Category', back_populates='club', lazy='dynamic')

    SETTINGS_FIELDS = {
        'logoUrl': 'logo_url',
        'address': 'address',
        'city': 'city',
        'email': 'email',
        'phone': 'phone',
        'website': 'website',
        'facebook': 'facebook',
        'instagram': 'instagram',
        'twitter': 'twitter',
        'youtube': 'youtube',
        'tiktok': 'tiktok',
        'linkedin': 'linkedin',
    }

    def to_dict(self):
        result = {
            'id': self.id,
            'name': self.name,
            'clubName': self.name,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
        for key, attr in self.SETTINGS_FIELDS.items():
            result[key] = getattr(self, attr)
        return result

    def to_summary(self):
        return {'id': self.id, 'name': self.name, 'logoUrl': self.logo_url}

    def __repr__(self):
        return f'<Club {self.name}>'


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    __table_args__ = (
        Index('idx_user_email_lower', text('lower(email)'), unique=True),
        Index('idx_user_club', 'club_id'),
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.Enum(UserRole, name='userrole'), nullable=False, default=UserRole.SPORTIF)
    email_verified = db.Column(db.Boolean, default=False, nullable=False)
    email_verify_token = db.Column(db.String(64), unique=True)
    club_id = db.Column(db.Integer, db.ForeignKey('club.id'), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))
    updated_at = db.Column(db.DateTime(timezone=True), onupdate=func.now())

    # Relationships
    club = db.relationship('Club', back_populates='users')
    coach_profile = db.relationship('Coach', back_populates='user', uselist=False,
                                    cascade='all, delete-orphan')
    sportif_profile = db.relationship('Sportif', back_populates='user', uselist=False)

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN or self.is_super_admin

    @property
    def is_super_admin(self):
        if self.role == UserRole.SUPER_ADMIN:
            return True
        # The platform owner account is super admin whatever its stored role
        owner_email = current_app.config.get('SUPER_ADMIN_EMAIL')
        return bool(owner_email) and (self.email or '').lower() == owner_email.lower()

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def new_verification_token(self):
        self.email_verify_token = secrets.token_hex(32)
        return self.email_verify_token

    @classmethod
    def find_by_email(cls, email):
        if not email:
            return None
        return cls.query.filter(func.lower(cls.email) == email.strip().lower()).first()

    def to_summary(self):
        return {'id': self.id, 'name': self.name, 'role': self.role.value}

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role.value,
            'clubId': self.club_id,
            'emailVerified': self.email_verified,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<User {self.email} ({self.role.value})>'


class Coach(db.Model):
    __tablename__ = 'coach'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, unique=True)
    phone = db.Column(db.String(30))
    address = db.Column(db.String(255))
    qualifications = db.Column(db.Text)
    experience = db.Column(db.Text)
    bio = db.Column(db.Text)
    specialties = db.Column(db.String(255))
    photo_url = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))
    updated_at = db.Column(db.DateTime(timezone=True), onupdate=func.now())

    # Relationships
    user = db.relationship('User', back_populates='coach_profile')
    categories = db.relationship('Category', secondary=coach_categories, back_populates='coaches',
                                 order_by='Category.name')
    trainings = db.relationship('Training', back_populates='coach', lazy='dynamic')

    PROFILE_FIELDS = {
        'phone': 'phone',
        'address': 'address',
        'qualifications': 'qualifications',
        'experience': 'experience',
        'bio': 'bio',
        'specialties': 'specialties',
        'photoUrl': 'photo_url',
    }

    @property
    def club_id(self):
        return self.user.club_id if self.user else None

    @property
    def name(self):
        return self.user.name if self.user else None

    def to_dict(self, include_counts=False):
        result = {
            'id': self.id,
            'userId': self.user_id,
            'user': {
                'id': self.user.id,
                'name': self.user.name,
                'email': self.user.email,
                'role': self.user.role.value,
            } if self.user else None,
            'categories': [category.to_summary() for category in self.categories],
        }
        for key, attr in self.PROFILE_FIELDS.items():
            result[key] = getattr(self, attr)
        if include_counts:
            result['_count'] = {'trainings': self.trainings.count()}
        return result

    def __repr__(self):
        return f'<Coach user_id={self.user_id}>'


class Category(db.Model):
    __tablename__ = 'category'
    __table_args__ = (
        db.UniqueConstraint('club_id', 'name', name='unique_club_category_name'),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False)
    color = db.Column(db.String(20), default='#3b82f6')
    club_id = db.Column(db.Integer, db.ForeignKey('club.id'), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))

    # Relationships
    club = db.relationship('Club', back_populates='categories')
    coaches = db.relationship('Coach', secondary=coach_categories, back_populates='categories')
    sportifs = db.relationship('Sportif', back_populates='category', lazy='dynamic')
    teams = db.relationship('Team', back_populates='category', lazy='dynamic')
    trainings = db.relationship('Training', back_populates='category', lazy='dynamic')
    schedules = db.relationship('TrainingSchedule', back_populates='category', lazy='dynamic')

    def to_summary(self):
        return {'id': self.id, 'name': self.name, 'color': self.color}

    def to_dict(self, include_counts=False):
        result = {
            'id': self.id,
            'name': self.name,
            'color': self.color,
            'clubId': self.club_id,
        }
        if include_counts:
            result['_count'] = {
                'sportifs': self.sportifs.count(),
                'coaches': len(self.coaches),
            }
        return result

    def __repr__(self):
        return f'<Category {self.name} club_id={self.club_id}>'


class Team(db.Model):
    __tablename__ = 'team'
    __table_args__ = (
        db.UniqueConstraint('category_id', 'name', name='unique_category_team_name'),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))

    # Relationships
    category = db.relationship('Category', back_populates='teams')
    sportifs = db.relationship('Sportif', back_populates='team', order_by='Sportif.last_name')

    def to_dict(self, include_members=True):
        result = {
            'id': self.id,
            'name': self.name,
            'categoryId': self.category_id,
        }
        if include_members:
            result['sportifs'] = [
                {
                    'id': s.id,
                    'firstName': s.first_name,
                    'lastName': s.last_name,
                    'position': s.position,
                    'teamId': s.team_id,
                }
                for s in self.sportifs
            ]
        return result


class Sportif(db.Model):
    __tablename__ = 'sportif'
    __table_args__ = (
        Index('idx_sportif_category', 'category_id'),
        Index('idx_sportif_team', 'team_id'),
    )

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    birth_date = db.Column(db.Date, nullable=False)
    height = db.Column(db.Float)
    weight = db.Column(db.Float)
    position = db.Column(db.String(50))
    photo_url = db.Column(db.Text)
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=False)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='SET NULL'), nullable=True, unique=True)
    created_at = db.Column(db.DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))
    updated_at = db.Column(db.DateTime(timezone=True), onupdate=func.now())

    # Relationships
    category = db.relationship('Category', back_populates='sportifs')
    team = db.relationship('Team', back_populates='sportifs')
    user = db.relationship('User', back_populates='sportif_profile')
    attendances = db.relationship('Attendance', back_populates='sportif', cascade='all, delete-orphan')
    annotations = db.relationship('Annotation', back_populates='sportif', cascade='all, delete-orphan',
                                  order_by='Annotation.created_at.desc()')
    evaluations = db.relationship('Evaluation', back_populates='sportif', cascade='all, delete-orphan',
                                  order_by='Evaluation.date.desc()')
    licences = db.relationship('Licence', back_populates='sportif', cascade='all, delete-orphan')
    stage_participations = db.relationship('StageParticipant', back_populates='sportif',
                                           cascade='all, delete-orphan')

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def club_id(self):
        return self.category.club_id if self.category else None

    def to_summary(self):
        return {
            'id': self.id,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'photoUrl': self.photo_url,
            'category': self.category.to_summary() if self.category else None,
        }

    def to_dict(self):
        return {
            'id': self.id,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'birthDate': self.birth_date.isoformat() if self.birth_date else None,
            'height': self.height,
            'weight': self.weight,
            'position': self.position,
            'photoUrl': self.photo_url,
            'categoryId': self.category_id,
            'teamId': self.team_id,
            'userId': self.user_id,
            'category': self.category.to_summary() if self.category else None,
            'user': {'email': self.user.email, 'name': self.user.name} if self.user else None,
        }

    def __repr__(self):
        return f'<Sportif {self.full_name}>'
