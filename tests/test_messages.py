"""
Direct messages, category/team broadcasts, contacts and club announcements
"""
from conftest import auth
from sportclub.models import UserRole


def send(client, headers, receiver_id, content='Bonjour'):
    return client.post('/api/messages', json={'receiverId': receiver_id, 'content': content}, headers=headers)


class TestDirectMessages:

    def test_send_and_read_conversation(self, client, club):
        assert send(client, club.coach, club.sportif_user_id, 'Entraînement avancé à 18h').status_code == 201
        send(client, club.sportif, club.coach_user_id, 'Bien reçu')
        send(client, club.coach, club.sportif_user_id, 'Pense à ta gourde')

        assert client.get('/api/messages/unread-count', headers=club.sportif).get_json() == {'count': 2}
        assert client.get('/api/messages/unread-per-sender', headers=club.sportif).get_json() == {
            str(club.coach_user_id): 2
        }

        thread = client.get(f'/api/messages/{club.coach_user_id}', headers=club.sportif).get_json()
        assert [m['content'] for m in thread] == ['Entraînement avancé à 18h', 'Bien reçu', 'Pense à ta gourde']
        assert client.get('/api/messages/unread-count', headers=club.sportif).get_json() == {'count': 0}

    def test_reading_does_not_mark_own_messages(self, client, club):
        send(client, club.coach, club.sportif_user_id)
        client.get(f'/api/messages/{club.sportif_user_id}', headers=club.coach)
        assert client.get('/api/messages/unread-count', headers=club.sportif).get_json() == {'count': 1}

    def test_validation(self, client, club):
        assert send(client, club.coach, club.sportif_user_id, '   ').status_code == 400
        assert client.post('/api/messages', json={'content': 'x'}, headers=club.coach).status_code == 400

    def test_receiver_must_be_in_club(self, client, club):
        assert send(client, club.admin, club.other_admin_id).status_code == 404
        assert client.get(f'/api/messages/{club.other_admin_id}', headers=club.admin).status_code == 404

    def test_conversations_latest_first(self, client, club):
        send(client, club.sportif, club.coach_user_id, 'Question')
        send(client, club.admin, club.coach_user_id, 'Réunion vendredi')
        send(client, club.coach, club.admin_id, 'Ok pour vendredi')

        conversations = client.get('/api/messages/conversations', headers=club.coach).get_json()
        assert [c['contact']['id'] for c in conversations] == [club.admin_id, club.sportif_user_id]
        assert conversations[0]['lastMessage']['content'] == 'Ok pour vendredi'
        assert conversations[0]['unreadCount'] == 1
        assert conversations[1]['unreadCount'] == 1


class TestBroadcasts:

    def test_category_broadcast(self, client, club):
        response = client.post(f'/api/messages/category/{club.u14}', json={'content': 'Match annulé'},
                               headers=club.coach)
        assert response.status_code == 201
        assert response.get_json()['receiverId'] is None
        client.post(f'/api/messages/category/{club.u14}', json={'content': 'Match reporté'}, headers=club.admin)

        messages = client.get(f'/api/messages/category/{club.u14}', headers=club.sportif).get_json()
        assert [m['content'] for m in messages] == ['Match annulé', 'Match reporté']
        assert messages[0]['category']['name'] == 'U14'

    def test_team_broadcast(self, client, club, build):
        team = build.team(club.u14, 'U14 A')
        response = client.post(f'/api/messages/team/{team}', json={'content': 'Maillots jaunes'}, headers=club.coach)
        assert response.get_json()['team']['categoryId'] == club.u14
        assert len(client.get(f'/api/messages/team/{team}', headers=club.coach).get_json()) == 1

    def test_broadcast_needs_content(self, client, club):
        response = client.post(f'/api/messages/category/{club.u14}', json={}, headers=club.coach)
        assert response.status_code == 400

    def test_foreign_targets(self, client, club, build):
        other_team = build.team(club.other_category, 'Équipe B')
        assert client.post(f'/api/messages/category/{club.other_category}', json={'content': 'x'},
                           headers=club.coach).status_code == 404
        assert client.get(f'/api/messages/team/{other_team}', headers=club.coach).status_code == 404


class TestContacts:

    def test_sportif_contacts(self, client, club, build):
        mate_user = build.user(club.id, name='Emma Bernard', role=UserRole.SPORTIF)
        build.sportif(club.u14, 'Emma', 'Bernard', user_id=mate_user)
        build.sportif(club.u14, 'Sans', 'Compte')

        body = client.get('/api/messages/contacts', headers=club.sportif).get_json()
        assert [c['id'] for c in body['coaches']] == [club.coach_id]
        assert [a['id'] for a in body['admins']] == [club.admin_id]
        assert [s['user']['id'] for s in body['sportifs']] == [mate_user]
        assert [c['id'] for c in body['categories']] == [club.u14]

    def test_sportif_without_profile(self, client, club, build):
        user_id = build.user(club.id, UserRole.SPORTIF)
        body = client.get('/api/messages/contacts', headers=auth(build.token(user_id))).get_json()
        assert body == {'coaches': [], 'admins': [], 'sportifs': [], 'categories': [], 'teams': []}

    def test_coach_contacts_limited_to_own_categories(self, client, club, build):
        build.team(club.u14, 'U14 A')
        body = client.get('/api/messages/contacts', headers=club.coach).get_json()
        assert body['coaches'] == []
        assert [a['id'] for a in body['admins']] == [club.admin_id]
        assert [s['id'] for s in body['sportifs']] == [club.sportif_id]
        assert [c['id'] for c in body['categories']] == [club.u14]
        assert [t['name'] for t in body['teams']] == ['U14 A']

    def test_admin_reaches_every_category(self, client, club):
        body = client.get('/api/messages/contacts', headers=club.admin).get_json()
        assert sorted(c['id'] for c in body['categories']) == sorted([club.u12, club.u14])
        assert body['admins'] == []
        assert [c['id'] for c in body['coaches']] == [club.coach_id]


class TestAnnouncements:

    def test_publish_and_list(self, client, club):
        response = client.post('/api/announcements', json={'title': ' Assemblée générale ', 'content': 'Le 12 juin'},
                               headers=club.admin)
        assert response.status_code == 201
        assert response.get_json()['title'] == 'Assemblée générale'
        assert response.get_json()['author']['id'] == club.admin_id

        listed = client.get('/api/announcements', headers=club.sportif).get_json()
        assert [a['title'] for a in listed] == ['Assemblée générale']
        assert client.get('/api/announcements', headers=club.other_admin).get_json() == []

    def test_only_latest_ten(self, client, club):
        for i in range(12):
            client.post('/api/announcements', json={'title': f'Info {i}', 'content': 'x'}, headers=club.admin)
        listed = client.get('/api/announcements', headers=club.coach).get_json()
        assert len(listed) == 10
        assert listed[0]['title'] == 'Info 11'

    def test_admin_only_publish(self, client, club):
        response = client.post('/api/announcements', json={'title': 'x', 'content': 'y'}, headers=club.coach)
        assert response.status_code == 403

    def test_title_and_content_required(self, client, club):
        response = client.post('/api/announcements', json={'title': '  ', 'content': 'y'}, headers=club.admin)
        assert response.status_code == 400

    def test_delete(self, client, club):
        announcement_id = client.post('/api/announcements', json={'title': 'x', 'content': 'y'},
                                      headers=club.admin).get_json()['id']
        assert client.delete(f'/api/announcements/{announcement_id}', headers=club.other_admin).status_code == 404
        assert client.delete(f'/api/announcements/{announcement_id}', headers=club.admin).status_code == 200
