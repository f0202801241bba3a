"""
Coach annotations, skill evaluations and dashboard statistics
"""
from datetime import datetime, timedelta

from conftest import auth
from sportclub import db
from sportclub.models import Training, Attendance, EventType, UserRole, local_now


class TestAnnotations:

    def annotate(self, client, club, sportif_id=None, headers=None, **fields):
        body = {'content': 'Bon placement défensif', 'type': 'POINT_FORT', 'sportifId': sportif_id or club.sportif_id}
        body.update(fields)
        return client.post('/api/annotations', json=body, headers=headers or club.coach)

    def test_create_and_list(self, client, club):
        response = self.annotate(client, club)
        assert response.status_code == 201
        body = response.get_json()
        assert body['coachId'] == club.coach_id
        assert body['coach']['user']['name'] == 'Coach U14'

        listed = client.get(f'/api/annotations?sportifId={club.sportif_id}', headers=club.admin).get_json()
        assert [a['id'] for a in listed] == [body['id']]

    def test_validation(self, client, club):
        assert self.annotate(client, club, content='  ').status_code == 400
        assert self.annotate(client, club, type='HUMEUR').status_code == 400
        assert self.annotate(client, club, sportif_id=club.other_sportif_id).status_code == 404

    def test_admin_without_coach_profile(self, client, club):
        assert self.annotate(client, club, headers=club.admin).status_code == 400

    def test_sportif_only_sees_own(self, client, club, build):
        other = build.sportif(club.u14, 'Emma', 'Bernard')
        self.annotate(client, club)
        self.annotate(client, club, sportif_id=other)

        listed = client.get(f'/api/annotations?sportifId={other}', headers=club.sportif).get_json()
        assert [a['sportifId'] for a in listed] == [club.sportif_id]

    def test_only_author_coach_deletes(self, client, club, build):
        annotation_id = self.annotate(client, club).get_json()['id']
        other_user, _ = build.coach(club.id, name='Autre', category_ids=[club.u14])
        other_coach = auth(build.token(other_user))

        assert client.delete(f'/api/annotations/{annotation_id}', headers=other_coach).status_code == 403
        assert client.delete(f'/api/annotations/{annotation_id}', headers=club.admin).status_code == 200
        assert client.get('/api/annotations', headers=club.admin).get_json() == []

    def test_other_club_cannot_delete(self, client, club):
        annotation_id = self.annotate(client, club).get_json()['id']
        assert client.delete(f'/api/annotations/{annotation_id}', headers=club.other_admin).status_code == 404


class TestEvaluations:

    def evaluate(self, client, club, **fields):
        body = {
            'sportifId': club.sportif_id, 'type': 'TECHNIQUE',
            'ratings': {'passes': 4, 'dribble': 3, 'frappe': 4}, 'comment': 'En progrès'
        }
        body.update(fields)
        return client.post('/api/evaluations', json=body, headers=club.coach)

    def test_create_with_average(self, client, club):
        response = self.evaluate(client, club, date='2025-05-20T10:00:00')
        assert response.status_code == 201
        body = response.get_json()
        assert body['average'] == 3.7
        assert body['date'].startswith('2025-05-20T10:00:00')

    def test_ratings_must_be_numbers(self, client, club):
        assert self.evaluate(client, club, ratings={'passes': 'bien'}).status_code == 400
        assert self.evaluate(client, club, ratings={'passes': True}).status_code == 400
        assert self.evaluate(client, club, ratings=[4, 3]).status_code == 400

    def test_missing_fields(self, client, club):
        response = client.post('/api/evaluations', json={'sportifId': club.sportif_id}, headers=club.coach)
        assert response.status_code == 400

    def test_update_replaces_ratings(self, client, club):
        evaluation_id = self.evaluate(client, club).get_json()['id']
        response = client.put(f'/api/evaluations/{evaluation_id}', json={'ratings': {'passes': 5}},
                              headers=club.coach)
        assert response.get_json()['ratings'] == {'passes': 5}
        assert client.get(f'/api/evaluations/{evaluation_id}', headers=club.admin).get_json()['average'] == 5

    def test_filter_by_type_newest_first(self, client, club):
        self.evaluate(client, club, date='2025-01-10T10:00:00')
        self.evaluate(client, club, date='2025-03-10T10:00:00')
        self.evaluate(client, club, type='MENTAL')

        technique = client.get('/api/evaluations?type=TECHNIQUE', headers=club.admin).get_json()
        assert [e['date'][:10] for e in technique] == ['2025-03-10', '2025-01-10']
        assert client.get('/api/evaluations?type=VITESSE', headers=club.admin).status_code == 400

    def test_sportif_access(self, client, club, build):
        other = build.sportif(club.u14, 'Emma', 'Bernard')
        own_id = self.evaluate(client, club).get_json()['id']
        other_id = self.evaluate(client, club, sportifId=other).get_json()['id']

        assert [e['id'] for e in client.get('/api/evaluations', headers=club.sportif).get_json()] == [own_id]
        assert client.get(f'/api/evaluations/{own_id}', headers=club.sportif).status_code == 200
        assert client.get(f'/api/evaluations/{other_id}', headers=club.sportif).status_code == 403

    def test_delete(self, client, club):
        evaluation_id = self.evaluate(client, club).get_json()['id']
        assert client.delete(f'/api/evaluations/{evaluation_id}', headers=club.coach).status_code == 200
        assert client.get(f'/api/evaluations/{evaluation_id}', headers=club.coach).status_code == 404


class TestStats:

    def add_training(self, app, category_id, when, present=None, type=EventType.TRAINING, result=None):
        """Training with one attendance row per (sportif_id, present) pair"""
        with app.app_context():
            training = Training(date=when, duration=90, type=type, category_id=category_id, result=result)
            for sportif_id, is_present in (present or []):
                training.attendances.append(Attendance(sportif_id=sportif_id, present=is_present))
            db.session.add(training)
            db.session.commit()
            return training.id

    def test_global_stats_for_admin(self, app, client, club, build):
        now = local_now()
        emma = build.sportif(club.u12, 'Emma', 'Bernard')
        self.add_training(app, club.u14, now - timedelta(days=3), present=[(club.sportif_id, True)])
        self.add_training(app, club.u12, now - timedelta(days=2), present=[(emma, False)])
        self.add_training(app, club.u14, now - timedelta(days=1), type=EventType.MATCH, result='2-1',
                          present=[(club.sportif_id, True)])
        self.add_training(app, club.u14, now + timedelta(days=2))

        body = client.get('/api/stats/global', headers=club.admin).get_json()
        assert body['counts'] == {'sportifs': 2, 'coaches': 1, 'trainings': 1, 'categories': 2}
        assert body['attendanceRate'] == 67
        assert len(body['recentTrainings']) == 3
        assert [m['result'] for m in body['recentMatches']] == ['2-1']
        assert len(body['activityData']) == 6
        assert body['activityData'][-1]['count'] >= 1

    def test_coach_scope_is_own_categories(self, app, client, club, build):
        now = local_now()
        build.sportif(club.u12, 'Emma', 'Bernard')
        self.add_training(app, club.u12, now + timedelta(days=1))

        body = client.get('/api/stats/global', headers=club.coach).get_json()
        assert body['counts']['sportifs'] == 1
        assert body['counts']['categories'] == 1
        assert body['counts']['trainings'] == 0

    def test_coach_without_categories(self, client, club, build):
        user_id, _ = build.coach(club.id, name='Sans catégorie')
        body = client.get('/api/stats/global', headers=auth(build.token(user_id))).get_json()
        assert body['counts']['sportifs'] == 0
        assert body['attendanceRate'] == 0

    def test_category_stats(self, app, client, club):
        self.add_training(app, club.u14, datetime(2025, 5, 5, 18))
        body = client.get('/api/stats/categories', headers=club.coach).get_json()
        assert [(c['name'], c['sportifs'], c['trainings']) for c in body] == [('U12', 0, 0), ('U14', 1, 1)]

    def test_sportif_stats(self, app, client, club):
        now = local_now()
        self.add_training(app, club.u14, now - timedelta(days=60), present=[(club.sportif_id, True)])
        self.add_training(app, club.u14, now - timedelta(days=10), present=[(club.sportif_id, False)])
        self.add_training(app, club.u14, now - timedelta(days=5), type=EventType.TOURNAMENT,
                          present=[(club.sportif_id, True)])
        self.add_training(app, club.u14, now + timedelta(days=3))

        body = client.get('/api/stats/sportif', headers=club.sportif).get_json()
        assert body['attendance'] == {'global': 67, 'recent': 50, 'totalSessions': 3, 'presentSessions': 2}
        assert body['matchParticipations'] == 1
        assert len(body['nextTrainings']) == 1
        assert body['sportif']['id'] == club.sportif_id

    def test_sportif_stats_without_profile(self, client, club, build):
        user_id = build.user(club.id, UserRole.SPORTIF)
        assert client.get('/api/stats/sportif', headers=auth(build.token(user_id))).status_code == 404

    def test_all_clubs_requires_super_admin(self, client, club, build):
        assert client.get('/api/stats/all-clubs', headers=club.admin).status_code == 403

        owner = auth(build.token(build.user(None, UserRole.SUPER_ADMIN)))
        body = client.get('/api/stats/all-clubs', headers=owner).get_json()
        assert [entry['club']['name'] for entry in body] == ['Linas', 'Montlhéry']
        assert body[1]['counts']['sportifs'] == 1
