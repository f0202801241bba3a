"""
Registration, email verification, login and bearer token handling
"""
import time

from authlib.jose import jwt

from conftest import auth
from sportclub import db
from sportclub.models import User, UserRole


class TestRegister:

    def test_register_creates_unverified_sportif(self, app, client, sent_emails):
        response = client.post('/api/auth/register', json={
            'email': 'lea@sportclub.test', 'password': 'secret123', 'name': 'Léa'
        })
        assert response.status_code == 201
        user_id = response.get_json()['userId']

        with app.app_context():
            user = db.session.get(User, user_id)
            assert user.role == UserRole.SPORTIF
            assert user.email_verified is False
            assert len(user.email_verify_token) == 64
        assert sent_emails[0]['to'] == 'lea@sportclub.test'

    def test_register_coach_creates_profile(self, app, client):
        response = client.post('/api/auth/register', json={
            'email': 'coach@sportclub.test', 'password': 'secret123', 'name': 'Coach', 'role': 'coach'
        })
        assert response.status_code == 201
        with app.app_context():
            assert db.session.get(User, response.get_json()['userId']).coach_profile is not None

    def test_duplicate_email_is_case_insensitive(self, client, build):
        build.user(None, UserRole.SPORTIF, email='taken@sportclub.test')
        response = client.post('/api/auth/register', json={
            'email': 'Taken@SportClub.test', 'password': 'secret123', 'name': 'Other'
        })
        assert response.status_code == 400

    def test_admin_role_cannot_be_self_assigned(self, client):
        response = client.post('/api/auth/register', json={
            'email': 'boss@sportclub.test', 'password': 'secret123', 'name': 'Boss', 'role': 'admin'
        })
        assert response.status_code == 400

    def test_email_failure_does_not_abort(self, client, monkeypatch):
        monkeypatch.setattr('sportclub.routes.auth.send_verification_email',
                            lambda *args: (False, 'SES unavailable'))
        response = client.post('/api/auth/register', json={
            'email': 'lea@sportclub.test', 'password': 'secret123', 'name': 'Léa'
        })
        assert response.status_code == 201


class TestLogin:

    def test_login_returns_token_and_user(self, client, build):
        club_id = build.club('Linas')
        build.user(club_id, UserRole.ADMIN, email='admin@sportclub.test', name='Dirigeant')

        response = client.post('/api/auth/login', json={'email': 'admin@sportclub.test', 'password': 'secret123'})
        assert response.status_code == 200
        body = response.get_json()
        assert body['token']
        assert body['user']['role'] == 'admin'
        assert body['user']['clubId'] == club_id
        assert body['user']['club']['name'] == 'Linas'
        assert body['user']['isSuperAdmin'] is False

    def test_wrong_password(self, client, build):
        build.user(None, UserRole.SPORTIF, email='lea@sportclub.test')
        response = client.post('/api/auth/login', json={'email': 'lea@sportclub.test', 'password': 'nope'})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Invalid credentials'

    def test_unknown_email(self, client):
        response = client.post('/api/auth/login', json={'email': 'ghost@sportclub.test', 'password': 'x'})
        assert response.status_code == 400

    def test_unverified_email_is_refused(self, client, build):
        build.user(None, UserRole.SPORTIF, email='lea@sportclub.test', verified=False)
        response = client.post('/api/auth/login', json={'email': 'lea@sportclub.test', 'password': 'secret123'})
        assert response.status_code == 403
        assert response.get_json()['emailNotVerified'] is True

    def test_owner_email_logs_in_as_super_admin_without_club(self, client, build):
        club_id = build.club()
        build.user(club_id, UserRole.ADMIN, email='owner@sportclub.test')
        response = client.post('/api/auth/login', json={'email': 'owner@sportclub.test', 'password': 'secret123'})
        body = response.get_json()
        assert body['user']['isSuperAdmin'] is True
        assert body['user']['clubId'] is None


class TestEmailVerification:

    def test_verify_then_login(self, client, sent_emails):
        client.post('/api/auth/register', json={
            'email': 'lea@sportclub.test', 'password': 'secret123', 'name': 'Léa'
        })
        token = sent_emails[0]['token']

        assert client.get(f'/api/auth/verify-email?token={token}').status_code == 200
        # Token is single use
        assert client.get(f'/api/auth/verify-email?token={token}').status_code == 400

        response = client.post('/api/auth/login', json={'email': 'lea@sportclub.test', 'password': 'secret123'})
        assert response.status_code == 200

    def test_missing_token(self, client):
        assert client.get('/api/auth/verify-email').status_code == 400

    def test_resend_issues_new_token(self, client, build, sent_emails):
        build.user(None, UserRole.SPORTIF, email='lea@sportclub.test', verified=False)
        response = client.post('/api/auth/resend-verification', json={'email': 'lea@sportclub.test'})
        assert response.status_code == 200
        assert len(sent_emails) == 1

    def test_resend_for_verified_account(self, client, build):
        build.user(None, UserRole.SPORTIF, email='lea@sportclub.test')
        response = client.post('/api/auth/resend-verification', json={'email': 'lea@sportclub.test'})
        assert response.status_code == 400

    def test_resend_send_failure_is_an_error(self, client, build, monkeypatch):
        build.user(None, UserRole.SPORTIF, email='lea@sportclub.test', verified=False)
        monkeypatch.setattr('sportclub.routes.auth.send_verification_email',
                            lambda *args: (False, 'SES unavailable'))
        response = client.post('/api/auth/resend-verification', json={'email': 'lea@sportclub.test'})
        assert response.status_code == 500

    def test_resend_requires_email(self, client):
        assert client.post('/api/auth/resend-verification', json={}).status_code == 400


class TestBearerTokens:

    def test_missing_token_is_401(self, client):
        response = client.get('/api/categories')
        assert response.status_code == 401

    def test_garbage_token_is_403(self, client):
        response = client.get('/api/categories', headers=auth('not-a-token'))
        assert response.status_code == 403
        assert response.get_json() == {'error': 'Invalid token'}

    def test_expired_token_is_403(self, app, client, build):
        user_id = build.user(build.club())
        now = int(time.time())
        expired = jwt.encode({'alg': 'HS256'}, {'id': user_id, 'role': 'admin', 'iat': now - 100, 'exp': now - 10},
                             app.config['JWT_SECRET']).decode('utf-8')
        assert client.get('/api/categories', headers=auth(expired)).status_code == 403

    def test_token_signed_with_other_secret_is_403(self, client, build):
        user_id = build.user(build.club())
        now = int(time.time())
        forged = jwt.encode({'alg': 'HS256'}, {'id': user_id, 'iat': now, 'exp': now + 60},
                            'someone-else').decode('utf-8')
        assert client.get('/api/categories', headers=auth(forged)).status_code == 403

    def test_token_claims(self, app, build):
        from sportclub.auth import issue_token, decode_token
        club_id = build.club()
        user_id = build.user(club_id, UserRole.COACH)
        with app.test_request_context():
            claims = decode_token(issue_token(db.session.get(User, user_id)))
        assert claims['id'] == user_id
        assert claims['role'] == 'coach'
        assert claims['club_id'] == club_id
        assert claims['exp'] - claims['iat'] == 7 * 24 * 3600

    def test_health_is_public(self, client):
        assert client.get('/api/health').get_json() == {'status': 'healthy'}


class TestRoles:

    def test_sportif_cannot_list_users(self, client, club):
        response = client.get('/api/users', headers=club.sportif)
        assert response.status_code == 403
        assert response.get_json() == {'error': 'Insufficient permissions'}

    def test_coach_cannot_create_category(self, client, club):
        response = client.post('/api/categories', json={'name': 'U8'}, headers=club.coach)
        assert response.status_code == 403
