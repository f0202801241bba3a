"""
Licences, stages and their installment payments
"""
from datetime import timedelta

from sportclub.models import local_now


def new_licence(client, club, **fields):
    body = {
        'sportifId': club.sportif_id, 'number': 'FFF-2025-001', 'type': 'Joueur',
        'startDate': '2025-09-01', 'expiryDate': '2026-06-30', 'federation': 'FFF'
    }
    body.update(fields)
    return client.post('/api/licences', json=body, headers=club.admin)


def new_stage(client, club, **fields):
    body = {
        'name': 'Stage de Toussaint', 'startDate': '2025-10-20', 'endDate': '2025-10-24',
        'startTime': '9:00', 'endTime': '17:00', 'price': 120, 'maxSpots': 2
    }
    body.update(fields)
    return client.post('/api/stages', json=body, headers=club.admin)


class TestLicences:

    def test_create_defaults_to_active(self, client, club):
        response = new_licence(client, club)
        assert response.status_code == 201
        body = response.get_json()
        assert body['status'] == 'ACTIVE'
        assert body['sportif']['firstName'] == 'Léo'
        assert body['paymentSummary'] == {'total': 0, 'paid': 0, 'remaining': 0, 'installments': 0}

    def test_validation(self, client, club):
        assert new_licence(client, club, number='').status_code == 400
        assert new_licence(client, club, expiryDate='2025-08-01').status_code == 400
        assert new_licence(client, club, status='REVOKED').status_code == 400
        assert new_licence(client, club, sportifId=club.other_sportif_id).status_code == 404

    def test_admin_only(self, client, club):
        assert client.get('/api/licences', headers=club.coach).status_code == 403

    def test_list_filters_ordered_by_expiry(self, client, club, build):
        emma = build.sportif(club.u12, 'Emma', 'Bernard')
        new_licence(client, club, expiryDate='2026-06-30')
        new_licence(client, club, sportifId=emma, number='FFF-2', expiryDate='2026-01-31', status='SUSPENDED')

        body = client.get('/api/licences', headers=club.admin).get_json()
        assert [l['expiryDate'] for l in body] == ['2026-01-31', '2026-06-30']

        u12 = client.get(f'/api/licences?categoryId={club.u12}', headers=club.admin).get_json()
        assert [l['sportifId'] for l in u12] == [emma]
        suspended = client.get('/api/licences?status=SUSPENDED', headers=club.admin).get_json()
        assert len(suspended) == 1
        assert client.get('/api/licences', headers=club.other_admin).get_json() == []

    def test_stats(self, client, club):
        today = local_now().date()
        new_licence(client, club, startDate=(today - timedelta(days=300)).isoformat(),
                    expiryDate=(today + timedelta(days=10)).isoformat())
        new_licence(client, club, startDate=(today - timedelta(days=300)).isoformat(),
                    expiryDate=(today + timedelta(days=90)).isoformat())
        new_licence(client, club, status='EXPIRED', startDate='2023-09-01', expiryDate='2024-06-30')

        body = client.get('/api/licences/stats', headers=club.admin).get_json()
        assert body == {'total': 3, 'active': 2, 'expired': 1, 'suspended': 0, 'expiringSoon': 1}

    def test_update_and_delete(self, client, club):
        licence_id = new_licence(client, club).get_json()['id']
        response = client.put(f'/api/licences/{licence_id}', json={'status': 'SUSPENDED', 'notes': 'Certificat'},
                              headers=club.admin)
        assert response.get_json()['status'] == 'SUSPENDED'
        assert client.put(f'/api/licences/{licence_id}', json={'expiryDate': '2024-01-01'},
                          headers=club.admin).status_code == 400

        assert client.delete(f'/api/licences/{licence_id}', headers=club.admin).status_code == 200
        assert client.get(f'/api/licences/{licence_id}', headers=club.admin).status_code == 404


class TestLicencePayments:

    def test_generate_schedule(self, client, club):
        licence_id = new_licence(client, club).get_json()['id']
        response = client.post(f'/api/licences/{licence_id}/payments/generate', json={
            'installmentCount': 3, 'totalAmount': 180, 'firstDueDate': '2025-09-30'
        }, headers=club.admin)
        assert response.status_code == 201
        assert [(p['installment'], p['amount'], p['dueDate']) for p in response.get_json()] == [
            (1, 60.0, '2025-09-30'), (2, 60.0, '2025-10-30'), (3, 60.0, '2025-11-30')
        ]

        licence = client.get(f'/api/licences/{licence_id}', headers=club.admin).get_json()
        assert licence['totalAmount'] == 180
        assert licence['paymentSummary']['remaining'] == 180
        assert len(licence['payments']) == 3

    def test_regenerate_keeps_paid_installments(self, client, club):
        licence_id = new_licence(client, club).get_json()['id']
        first = client.post(f'/api/licences/{licence_id}/payments/generate', json={
            'installmentCount': 2, 'totalAmount': 100, 'firstDueDate': '2025-09-01'
        }, headers=club.admin).get_json()
        client.put(f"/api/licences/{licence_id}/payments/{first[0]['id']}", json={'status': 'PAID'},
                   headers=club.admin)

        client.post(f'/api/licences/{licence_id}/payments/generate', json={
            'installmentCount': 4, 'totalAmount': 100, 'firstDueDate': '2025-10-01'
        }, headers=club.admin)

        payments = client.get(f'/api/licences/{licence_id}/payments', headers=club.admin).get_json()
        assert len(payments) == 5
        assert sum(1 for p in payments if p['status'] == 'PAID') == 1

    def test_generate_rejects_bad_count(self, client, club):
        licence_id = new_licence(client, club).get_json()['id']
        for count in (0, 13):
            response = client.post(f'/api/licences/{licence_id}/payments/generate', json={
                'installmentCount': count, 'totalAmount': 100, 'firstDueDate': '2025-09-01'
            }, headers=club.admin)
            assert response.status_code == 400
        response = client.post(f'/api/licences/{licence_id}/payments/generate', json={'installmentCount': 2},
                               headers=club.admin)
        assert response.status_code == 400

    def test_manual_payment_takes_next_number(self, client, club):
        licence_id = new_licence(client, club).get_json()['id']
        client.post(f'/api/licences/{licence_id}/payments/generate', json={
            'installmentCount': 2, 'totalAmount': 100, 'firstDueDate': '2025-09-01'
        }, headers=club.admin)

        response = client.post(f'/api/licences/{licence_id}/payments', json={
            'amount': 15, 'dueDate': '2025-12-01', 'method': 'Chèque'
        }, headers=club.admin)
        assert response.status_code == 201
        body = response.get_json()
        assert body['installment'] == 3
        assert body['status'] == 'PENDING'
        assert body['method'] == 'Chèque'

        assert client.post(f'/api/licences/{licence_id}/payments', json={'amount': 15},
                           headers=club.admin).status_code == 400

    def test_mark_paid_sets_paid_date(self, client, club):
        licence_id = new_licence(client, club).get_json()['id']
        payment = client.post(f'/api/licences/{licence_id}/payments', json={
            'amount': 50, 'dueDate': '2025-09-01'
        }, headers=club.admin).get_json()

        response = client.put(f"/api/licences/{licence_id}/payments/{payment['id']}",
                              json={'status': 'PAID', 'reference': 'VIR-42'}, headers=club.admin)
        body = response.get_json()
        assert body['paidDate'] == local_now().date().isoformat()
        assert body['reference'] == 'VIR-42'

        assert client.put(f"/api/licences/{licence_id}/payments/{payment['id']}",
                          json={'status': 'REFUNDED'}, headers=club.admin).status_code == 400

    def test_delete_payment(self, client, club):
        licence_id = new_licence(client, club).get_json()['id']
        payment = client.post(f'/api/licences/{licence_id}/payments', json={
            'amount': 50, 'dueDate': '2025-09-01'
        }, headers=club.admin).get_json()

        assert client.delete(f"/api/licences/{licence_id}/payments/{payment['id']}",
                             headers=club.admin).status_code == 200
        assert client.delete(f"/api/licences/{licence_id}/payments/{payment['id']}",
                             headers=club.admin).status_code == 404


class TestStages:

    def test_create_stage(self, client, club):
        response = new_stage(client, club)
        assert response.status_code == 201
        body = response.get_json()
        assert body['status'] == 'OPEN'
        assert body['startTime'] == '09:00'
        assert body['_count'] == {'participants': 0}

    def test_validation(self, client, club):
        assert new_stage(client, club, endDate='2025-10-19').status_code == 400
        assert new_stage(client, club, price=-1).status_code == 400
        assert new_stage(client, club, endTime='17h').status_code == 400
        assert new_stage(client, club, name=None).status_code == 400

    def test_list_newest_first_per_club(self, client, club):
        new_stage(client, club, name='Été', startDate='2025-07-07', endDate='2025-07-11')
        new_stage(client, club)
        body = client.get('/api/stages', headers=club.admin).get_json()
        assert [s['name'] for s in body] == ['Stage de Toussaint', 'Été']
        assert client.get('/api/stages', headers=club.other_admin).get_json() == []

    def test_update_and_delete(self, client, club):
        stage_id = new_stage(client, club).get_json()['id']
        response = client.put(f'/api/stages/{stage_id}', json={'status': 'CLOSED', 'location': 'Gymnase'},
                              headers=club.admin)
        assert response.get_json()['status'] == 'CLOSED'
        assert client.delete(f'/api/stages/{stage_id}', headers=club.admin).status_code == 200
        assert client.get(f'/api/stages/{stage_id}', headers=club.admin).status_code == 404


class TestStageParticipants:

    def test_register_with_installments(self, client, club):
        stage_id = new_stage(client, club).get_json()['id']
        response = client.post(f'/api/stages/{stage_id}/participants', json={
            'sportifId': club.sportif_id, 'installmentCount': 2, 'totalAmount': 120, 'firstDueDate': '2025-10-01'
        }, headers=club.admin)
        assert response.status_code == 201
        body = response.get_json()
        assert [p['dueDate'] for p in body['payments']] == ['2025-10-01', '2025-11-01']
        assert body['paymentSummary'] == {'total': 120, 'paid': 0, 'remaining': 120, 'installments': 2}

        stage = client.get(f'/api/stages/{stage_id}', headers=club.admin).get_json()
        assert [p['sportifId'] for p in stage['participants']] == [club.sportif_id]

    def test_duplicate_registration(self, client, club):
        stage_id = new_stage(client, club).get_json()['id']
        client.post(f'/api/stages/{stage_id}/participants', json={'sportifId': club.sportif_id}, headers=club.admin)
        response = client.post(f'/api/stages/{stage_id}/participants', json={'sportifId': club.sportif_id},
                               headers=club.admin)
        assert response.status_code == 409

    def test_stage_capacity(self, client, club, build):
        stage_id = new_stage(client, club, maxSpots=1).get_json()['id']
        emma = build.sportif(club.u12, 'Emma', 'Bernard')
        client.post(f'/api/stages/{stage_id}/participants', json={'sportifId': club.sportif_id}, headers=club.admin)
        response = client.post(f'/api/stages/{stage_id}/participants', json={'sportifId': emma}, headers=club.admin)
        assert response.status_code == 409

    def test_incomplete_installments_rejected(self, client, club):
        stage_id = new_stage(client, club).get_json()['id']
        response = client.post(f'/api/stages/{stage_id}/participants', json={
            'sportifId': club.sportif_id, 'installmentCount': 2
        }, headers=club.admin)
        assert response.status_code == 400
        stage = client.get(f'/api/stages/{stage_id}', headers=club.admin).get_json()
        assert stage['participants'] == []

    def test_foreign_sportif(self, client, club):
        stage_id = new_stage(client, club).get_json()['id']
        response = client.post(f'/api/stages/{stage_id}/participants', json={'sportifId': club.other_sportif_id},
                               headers=club.admin)
        assert response.status_code == 404

    def test_pay_and_remove(self, client, club):
        stage_id = new_stage(client, club).get_json()['id']
        participant = client.post(f'/api/stages/{stage_id}/participants', json={
            'sportifId': club.sportif_id, 'installmentCount': 1, 'totalAmount': 120, 'firstDueDate': '2025-10-01'
        }, headers=club.admin).get_json()
        payment_id = participant['payments'][0]['id']

        response = client.put(f"/api/stages/{stage_id}/participants/{participant['id']}/payments/{payment_id}",
                              json={'status': 'PAID', 'paidDate': '2025-09-28', 'method': 'Espèces'},
                              headers=club.admin)
        assert response.get_json()['paidDate'] == '2025-09-28'

        stage = client.get(f'/api/stages/{stage_id}', headers=club.admin).get_json()
        assert stage['participants'][0]['paymentSummary']['remaining'] == 0

        assert client.delete(f"/api/stages/{stage_id}/participants/{participant['id']}",
                             headers=club.admin).status_code == 200
        assert client.get(f'/api/stages/{stage_id}', headers=club.admin).get_json()['_count'] == {'participants': 0}
