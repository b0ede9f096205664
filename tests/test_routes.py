import pytest
from datetime import date, timedelta
from app.database import drop_db
from app.main import create_app
from app.utils.security import generate_token

BOOKING_DAY = (date.today() + timedelta(days=5)).isoformat()

COURT = {
    'name': 'Paddle Court 1',
    'company_id': 'company-1',
    'match_duration': 90,
    'price_per_hour': 15
}


def auth_header(user_id, role='player', **claims):
    token = generate_token({'user_id': user_id, 'role': role, **claims})
    return {'Authorization': f'Bearer {token}'}


PLAYER = auth_header('player-1', email='player1@example.com')
OTHER_PLAYER = auth_header('player-2')
MANAGER = auth_header('manager-1', role='manager', company_id='company-1')
OTHER_MANAGER = auth_header('manager-2', role='manager', company_id='company-2')
UNASSIGNED_MANAGER = auth_header('manager-3', role='manager')
ADMIN = auth_header('admin-1', role='admin')


@pytest.fixture
def client():
    """Create test client on a fresh database"""
    app = create_app('testing')
    yield app.test_client()
    drop_db()


def reserve(client, start_time='10:00', headers=PLAYER, **extra):
    body = {'court_id': 'court-1', 'date': BOOKING_DAY, 'start_time': start_time}
    body.update(extra)
    return client.post('/api/reservations/', json=body, headers=headers)


class TestAuth:
    """Test bearer token handling"""

    def test_missing_token(self, client):
        response = client.get(f'/api/courts/court-1/availability?date={BOOKING_DAY}')
        assert response.status_code == 401

    def test_invalid_token(self, client):
        response = client.get('/api/reservations/', headers={'Authorization': 'Bearer nope'})
        assert response.status_code == 401

    def test_health(self, client):
        assert client.get('/health').get_json() == {'status': 'ok'}


class TestCalendarRoutes:
    """Test calendar configuration endpoints"""

    def test_unconfigured_court(self, client):
        response = client.get(f'/api/courts/court-1/availability?date={BOOKING_DAY}', headers=PLAYER)
        assert response.status_code == 404
        assert response.get_json()['rule'] == 'calendar_not_found'

    def test_availability_requires_date(self, client):
        response = client.get('/api/courts/court-1/availability', headers=PLAYER)
        assert response.status_code == 400
        assert response.get_json()['rule'] == 'missing_field'

    def test_manager_creates_and_updates_calendar(self, client):
        response = client.post('/api/courts/court-1/calendar', json=COURT, headers=MANAGER)
        assert response.status_code == 201
        assert response.get_json()['company_id'] == 'company-1'

        response = client.put('/api/courts/court-1/calendar', json={'match_duration': 60}, headers=MANAGER)
        assert response.status_code == 200
        assert response.get_json()['calendar']['match_duration'] == 60

    def test_player_cannot_update_calendar(self, client):
        client.post('/api/courts/court-1/calendar', json=COURT, headers=MANAGER)
        response = client.put('/api/courts/court-1/calendar', json={'match_duration': 60}, headers=PLAYER)
        assert response.status_code == 403

    def test_other_company_cannot_update_calendar(self, client):
        client.post('/api/courts/court-1/calendar', json=COURT, headers=MANAGER)
        response = client.put('/api/courts/court-1/calendar', json={'match_duration': 60}, headers=OTHER_MANAGER)
        assert response.status_code == 403

    def test_invalid_update(self, client):
        client.post('/api/courts/court-1/calendar', json=COURT, headers=MANAGER)
        response = client.put('/api/courts/court-1/calendar', json={'match_duration': -10}, headers=MANAGER)
        assert response.status_code == 400
        assert response.get_json()['rule'] == 'invalid_match_duration'

    def test_block_and_unblock_date(self, client):
        client.post('/api/courts/court-1/calendar', json=COURT, headers=MANAGER)

        response = client.post('/api/courts/court-1/calendar/blocked-dates',
                               json={'date': BOOKING_DAY, 'reason': 'Maintenance'}, headers=MANAGER)
        assert response.status_code == 201

        response = reserve(client)
        assert response.status_code == 400
        assert response.get_json()['rule'] == 'date_blocked'

        response = client.delete(f'/api/courts/court-1/calendar/blocked-dates/{BOOKING_DAY}', headers=MANAGER)
        assert response.status_code == 200
        assert reserve(client).status_code == 201


class TestCourtOwnership:
    """Test who may create and manage a court calendar"""

    def test_booking_cannot_create_calendar(self, client):
        response = reserve(client, court={'company_id': 'evil-co', 'price_per_hour': 0})
        assert response.status_code == 404
        assert response.get_json()['rule'] == 'calendar_not_found'

        response = client.post('/api/courts/court-1/calendar', json=COURT, headers=MANAGER)
        assert response.status_code == 201
        assert response.get_json()['company_id'] == 'company-1'
        assert response.get_json()['pricing']['base_price_per_hour'] == 15

        response = client.put('/api/courts/court-1/calendar', json={'match_duration': 60}, headers=MANAGER)
        assert response.status_code == 200

    def test_manager_registers_court_for_own_company(self, client):
        response = client.post('/api/courts/court-1/calendar', json={'name': 'Court 1'}, headers=MANAGER)
        assert response.status_code == 201
        assert response.get_json()['company_id'] == 'company-1'

    def test_manager_cannot_register_court_for_other_company(self, client):
        response = client.post('/api/courts/court-1/calendar', json=COURT, headers=OTHER_MANAGER)
        assert response.status_code == 403

    def test_calendar_requires_company(self, client):
        response = client.post('/api/courts/court-1/calendar', json={'name': 'Court 1'}, headers=UNASSIGNED_MANAGER)
        assert response.status_code == 400
        assert response.get_json()['rule'] == 'missing_field'

        response = client.post('/api/courts/court-1/calendar', json={'name': 'Court 1'}, headers=ADMIN)
        assert response.status_code == 400

    def test_manager_without_company_manages_nothing(self, client):
        client.post('/api/courts/court-1/calendar', json=COURT, headers=MANAGER)

        response = client.put('/api/courts/court-1/calendar',
                              json={'pricing': {'base_price_per_hour': 999}}, headers=UNASSIGNED_MANAGER)
        assert response.status_code == 403

        response = client.put('/api/courts/court-1/calendar',
                              json={'pricing': {'base_price_per_hour': 20}}, headers=ADMIN)
        assert response.status_code == 200


class TestReservationRoutes:
    """Test reservation endpoints"""

    @pytest.fixture(autouse=True)
    def registered_court(self, client):
        client.post('/api/courts/court-1/calendar', json=COURT, headers=MANAGER)

    def test_create_reservation(self, client):
        response = reserve(client, notes='Friendly match')
        assert response.status_code == 201

        reservation = response.get_json()['reservation']
        assert reservation['status'] == 'confirmed'
        assert reservation['end_time'] == '11:30'
        assert reservation['price'] == 22.5
        assert reservation['subject_id'] == 'player-1'
        assert reservation['subject_details']['email'] == 'player1@example.com'

        availability = client.get(f'/api/courts/court-1/availability?date={BOOKING_DAY}', headers=PLAYER)
        slots = {s['start_time']: s for s in availability.get_json()['slots']}
        assert slots['09:30']['is_available'] is False
        assert slots['11:00']['is_available'] is False
        assert slots['12:30']['is_available'] is True

    def test_missing_field(self, client):
        response = client.post('/api/reservations/', json={'court_id': 'court-1'}, headers=PLAYER)
        assert response.status_code == 400
        assert response.get_json()['rule'] == 'missing_field'

    def test_caller_cannot_choose_duration(self, client):
        response = reserve(client, end_time='12:00')
        assert response.status_code == 400
        assert response.get_json()['rule'] == 'duration_not_adjustable'

    def test_conflict(self, client):
        assert reserve(client).status_code == 201

        response = reserve(client, start_time='11:00', headers=OTHER_PLAYER)
        assert response.status_code == 409
        assert response.get_json()['rule'] == 'slot_taken'

    def test_rule_violation(self, client):
        response = reserve(client, start_time='21:00')
        assert response.status_code == 400
        assert response.get_json()['rule'] == 'outside_working_hours'

    def test_team_booking_requires_team(self, client):
        response = reserve(client, booking_type='team')
        assert response.status_code == 400

        response = reserve(client, booking_type='team', team_id='team-9', team_size=5)
        assert response.status_code == 201
        assert response.get_json()['reservation']['subject_id'] == 'team-9'

    def test_get_and_list_own_reservations(self, client):
        reservation_id = reserve(client).get_json()['reservation']['id']

        assert client.get(f'/api/reservations/{reservation_id}', headers=PLAYER).status_code == 200
        assert client.get(f'/api/reservations/{reservation_id}', headers=OTHER_PLAYER).status_code == 404
        assert client.get(f'/api/reservations/{reservation_id}', headers=MANAGER).status_code == 200

        listed = client.get('/api/reservations/', headers=PLAYER).get_json()
        assert listed['total'] == 1

    def test_cancel(self, client):
        reservation_id = reserve(client).get_json()['reservation']['id']

        response = client.post(f'/api/reservations/{reservation_id}/cancel',
                               json={'reason': 'Injury'}, headers=OTHER_PLAYER)
        assert response.status_code == 404

        response = client.post(f'/api/reservations/{reservation_id}/cancel',
                               json={'reason': 'Injury'}, headers=PLAYER)
        assert response.status_code == 200
        assert response.get_json()['reservation']['status'] == 'cancelled'

        response = client.post(f'/api/reservations/{reservation_id}/cancel', headers=PLAYER)
        assert response.status_code == 409

    def test_status_update_is_operator_only(self, client):
        reservation_id = reserve(client).get_json()['reservation']['id']

        response = client.put(f'/api/reservations/{reservation_id}/status',
                              json={'status': 'completed'}, headers=PLAYER)
        assert response.status_code == 403

        response = client.put(f'/api/reservations/{reservation_id}/status',
                              json={'status': 'completed'}, headers=OTHER_MANAGER)
        assert response.status_code == 403

        response = client.put(f'/api/reservations/{reservation_id}/status',
                              json={'status': 'completed'}, headers=MANAGER)
        assert response.status_code == 200
        assert response.get_json()['reservation']['status'] == 'completed'

    def test_court_reservations(self, client):
        reserve(client)

        assert client.get('/api/reservations/court/court-1', headers=PLAYER).status_code == 403
        response = client.get('/api/reservations/court/court-1', headers=MANAGER)
        assert response.status_code == 200
        assert response.get_json()['total'] == 1

    def test_players_cannot_list_other_players_reservations(self, client):
        reserve(client)

        response = client.get('/api/reservations/?subject_id=player-1', headers=OTHER_PLAYER)
        assert response.status_code == 200
        assert response.get_json()['total'] == 0
        assert response.get_json()['reservations'] == []

    def test_captain_lists_team_reservations_they_booked(self, client):
        reserve(client, booking_type='team', team_id='team-9')
        reserve(client, start_time='12:30', booking_type='team', team_id='team-9', headers=OTHER_PLAYER)

        response = client.get('/api/reservations/?subject_id=team-9', headers=PLAYER)
        reservations = response.get_json()['reservations']
        assert [r['booked_by'] for r in reservations] == ['player-1']

    def test_operators_list_subject_reservations_for_their_company(self, client):
        reserve(client)

        assert client.get('/api/reservations/?subject_id=player-1', headers=MANAGER).get_json()['total'] == 1
        assert client.get('/api/reservations/?subject_id=player-1', headers=OTHER_MANAGER).get_json()['total'] == 0
        assert client.get('/api/reservations/?subject_id=player-1', headers=ADMIN).get_json()['total'] == 1
        assert client.get('/api/reservations/?subject_id=player-1',
                          headers=UNASSIGNED_MANAGER).status_code == 403
