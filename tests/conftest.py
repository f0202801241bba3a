"""
Pytest configuration and fixtures for the sportclub API tests.

Requests are made without an outer app context so that every call gets a
fresh `g` (Flask-Login caches the current user there). Builders therefore
return ids, not ORM instances.
"""
from datetime import date
from types import SimpleNamespace

import pytest

from config import TestingConfig
from sportclub import create_app, db
from sportclub.auth import issue_token
from sportclub.models import Club, User, Coach, Category, Team, Sportif, UserRole


class Builder:
    """Creates rows in their own app context and hands back primary keys"""

    def __init__(self, app):
        self.app = app
        self._counter = 0

    def _email(self, prefix):
        self._counter += 1
        return f"{prefix}{self._counter}@sportclub.test"

    def club(self, name='Linas'):
        with self.app.app_context():
            club = Club(name=name)
            db.session.add(club)
            db.session.commit()
            return club.id

    def user(self, club_id, role=UserRole.ADMIN, email=None, name='Test User',
             password='secret123', verified=True):
        with self.app.app_context():
            user = User(
                email=email or self._email(role.value),
                name=name,
                role=role,
                club_id=club_id,
                email_verified=verified
            )
            user.set_password(password)
            if role == UserRole.COACH:
                user.coach_profile = Coach()
            db.session.add(user)
            db.session.commit()
            return user.id

    def coach(self, club_id, name='Coach', category_ids=()):
        """Returns (user_id, coach_id)"""
        with self.app.app_context():
            user = User(email=self._email('coach'), name=name, role=UserRole.COACH,
                        club_id=club_id, email_verified=True)
            user.set_password('secret123')
            coach = Coach(bio='Coach')
            coach.categories = [db.session.get(Category, cid) for cid in category_ids]
            user.coach_profile = coach
            db.session.add(user)
            db.session.commit()
            return user.id, coach.id

    def category(self, club_id, name):
        with self.app.app_context():
            category = Category(name=name, club_id=club_id)
            db.session.add(category)
            db.session.commit()
            return category.id

    def team(self, category_id, name):
        with self.app.app_context():
            team = Team(name=name, category_id=category_id)
            db.session.add(team)
            db.session.commit()
            return team.id

    def sportif(self, category_id, first_name='Léo', last_name='Martin', user_id=None, team_id=None,
                birth_date=date(2011, 5, 4)):
        with self.app.app_context():
            sportif = Sportif(first_name=first_name, last_name=last_name, birth_date=birth_date,
                              category_id=category_id, user_id=user_id, team_id=team_id)
            db.session.add(sportif)
            db.session.commit()
            return sportif.id

    def token(self, user_id):
        with self.app.test_request_context():
            return issue_token(db.session.get(User, user_id))


def auth(token, **extra):
    headers = {'Authorization': f'Bearer {token}'}
    headers.update(extra)
    return headers


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def build(app):
    return Builder(app)


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Capture verification emails instead of calling SES"""
    outbox = []

    def fake_send(to_email, name, token):
        outbox.append({'to': to_email, 'name': name, 'token': token})
        return True, 'test-message-id'

    monkeypatch.setattr('sportclub.routes.auth.send_verification_email', fake_send)
    monkeypatch.setattr('sportclub.routes.clubs.send_verification_email', fake_send)
    return outbox


@pytest.fixture
def club(build):
    """
    Club "Linas" with an admin, a coach assigned to U14, a sportif with an
    account in U14, and a second club holding its own admin and category.
    """
    club_id = build.club('Linas')
    u14 = build.category(club_id, 'U14')
    u12 = build.category(club_id, 'U12')

    admin_id = build.user(club_id, UserRole.ADMIN, name='Dirigeant')
    coach_user_id, coach_id = build.coach(club_id, name='Coach U14', category_ids=[u14])
    sportif_user_id = build.user(club_id, UserRole.SPORTIF, name='Léo Martin')
    sportif_id = build.sportif(u14, 'Léo', 'Martin', user_id=sportif_user_id)

    other_club_id = build.club('Montlhéry')
    other_category = build.category(other_club_id, 'U14')
    other_admin_id = build.user(other_club_id, UserRole.ADMIN, name='Other Admin')
    other_sportif_id = build.sportif(other_category, 'Hugo', 'Petit')

    return SimpleNamespace(
        id=club_id,
        u14=u14,
        u12=u12,
        admin_id=admin_id,
        coach_user_id=coach_user_id,
        coach_id=coach_id,
        sportif_user_id=sportif_user_id,
        sportif_id=sportif_id,
        admin=auth(build.token(admin_id)),
        coach=auth(build.token(coach_user_id)),
        sportif=auth(build.token(sportif_user_id)),
        other_id=other_club_id,
        other_category=other_category,
        other_admin_id=other_admin_id,
        other_sportif_id=other_sportif_id,
        other_admin=auth(build.token(other_admin_id)),
    )
