"""
Club settings, public club lookup and club self-registration
"""
from conftest import auth
from sportclub.models import UserRole


class TestClubSettings:

    def test_anonymous_gets_placeholder(self, client):
        body = client.get('/api/club').get_json()
        assert body == {'id': None, 'clubName': 'G1Club', 'name': 'G1Club', 'logoUrl': None}

    def test_member_gets_own_club(self, client, club):
        body = client.get('/api/club', headers=club.coach).get_json()
        assert body['id'] == club.id
        assert body['clubName'] == 'Linas'

    def test_admin_updates_settings(self, client, club):
        response = client.put('/api/club', json={
            'clubName': 'AS Linas', 'city': 'Linas', 'instagram': 'https://instagram.com/aslinas'
        }, headers=club.admin)
        assert response.status_code == 200
        body = response.get_json()
        assert body['name'] == 'AS Linas'
        assert body['instagram'] == 'https://instagram.com/aslinas'

        assert client.get('/api/club', headers=club.sportif).get_json()['city'] == 'Linas'

    def test_empty_name_rejected(self, client, club):
        response = client.put('/api/club', json={'clubName': '  '}, headers=club.admin)
        assert response.status_code == 400

    def test_coach_cannot_update(self, client, club):
        assert client.put('/api/club', json={'city': 'Paris'}, headers=club.coach).status_code == 403

    def test_update_only_touches_own_club(self, client, club):
        client.put('/api/club', json={'city': 'Montlhéry'}, headers=club.other_admin)
        assert client.get('/api/club', headers=club.admin).get_json()['city'] is None


class TestClubSearch:

    def test_search_by_name_fragment(self, client, club):
        body = client.get('/api/club/search?name=lin').get_json()
        assert [c['name'] for c in body] == ['Linas']

    def test_search_requires_name(self, client):
        assert client.get('/api/club/search').status_code == 400


class TestClubRegistration:

    def test_register_club_with_unverified_admin(self, client, sent_emails):
        response = client.post('/api/club/register', json={
            'clubName': 'US Arpajon', 'adminName': 'Marie', 'adminEmail': 'marie@arpajon.test',
            'adminPassword': 'secret123'
        })
        assert response.status_code == 201
        assert sent_emails[0]['to'] == 'marie@arpajon.test'

        login = client.post('/api/auth/login', json={'email': 'marie@arpajon.test', 'password': 'secret123'})
        assert login.status_code == 403

        client.get(f"/api/auth/verify-email?token={sent_emails[0]['token']}")
        login = client.post('/api/auth/login', json={'email': 'marie@arpajon.test', 'password': 'secret123'})
        user = login.get_json()['user']
        assert user['role'] == 'admin'
        assert user['clubId'] == response.get_json()['clubId']

    def test_missing_fields(self, client):
        response = client.post('/api/club/register', json={'clubName': 'US Arpajon'})
        assert response.status_code == 400

    def test_short_password(self, client):
        response = client.post('/api/club/register', json={
            'clubName': 'US Arpajon', 'adminName': 'Marie', 'adminEmail': 'marie@arpajon.test',
            'adminPassword': '123'
        })
        assert response.status_code == 400

    def test_existing_email(self, client, build):
        build.user(None, UserRole.SPORTIF, email='marie@arpajon.test')
        response = client.post('/api/club/register', json={
            'clubName': 'US Arpajon', 'adminName': 'Marie', 'adminEmail': 'marie@arpajon.test',
            'adminPassword': 'secret123'
        })
        assert response.status_code == 400


class TestSuperAdmin:

    def super_admin(self, build, club_id=None):
        return auth(build.token(build.user(club_id, UserRole.SUPER_ADMIN)))

    def test_lists_every_club_with_counts(self, client, build, club):
        response = client.get('/api/club/all', headers=self.super_admin(build))
        assert response.status_code == 200
        clubs = {c['name']: c for c in response.get_json()}
        assert clubs['Linas']['_count'] == {'users': 3, 'categories': 2}
        assert clubs['Montlhéry']['_count'] == {'users': 1, 'categories': 1}

    def test_club_admin_cannot_list_clubs(self, client, club):
        assert client.get('/api/club/all', headers=club.admin).status_code == 403

    def test_clubs_with_users(self, client, build, club):
        body = client.get('/api/club/all-with-users', headers=self.super_admin(build)).get_json()
        linas = next(c for c in body if c['name'] == 'Linas')
        assert sorted(u['role'] for u in linas['users']) == ['admin', 'coach', 'sportif']

    def test_club_header_selects_club(self, client, build, club):
        headers = self.super_admin(build)
        headers['X-Club-Id'] = str(club.other_id)
        body = client.get('/api/categories', headers=headers).get_json()
        assert [c['id'] for c in body] == [club.other_category]

    def test_without_club_header_has_no_club(self, client, build, club):
        response = client.get('/api/categories', headers=self.super_admin(build))
        assert response.status_code == 400

    def test_header_ignored_for_club_admin(self, client, club):
        headers = dict(club.admin, **{'X-Club-Id': str(club.other_id)})
        body = client.get('/api/categories', headers=headers).get_json()
        assert sorted(c['id'] for c in body) == sorted([club.u14, club.u12])
