"""
Tests for the reservation wizard HTTP endpoints.
"""

from datetime import date, timedelta

import pytest

from models.reservation import create_reservation
from models.work import get_all_works


EVENT_DATE = (date.today() + timedelta(days=10)).isoformat()

STEP2 = {
    'date': EVENT_DATE,
    'postcode': '2000',
    'customer_name': 'Demo Customer',
    'customer_email': 'customer@decorrental.local',
    'customer_phone': '0412345678',
}


def walk_to_review(client):
    """Fill in steps 1-3 for a new reservation."""
    client.get('/reserve/start')
    response = client.post('/reserve/step1', json={
        'selections': {'backdrop': 'roundArch', 'theme': 'pastel'},
        'message': 'Happy 30th',
    })
    assert response.status_code == 200, response.get_json()
    response = client.post('/reserve/step2', json=STEP2)
    assert response.status_code == 200, response.get_json()
    response = client.post('/reserve/step3', json={'add_ons': ['ledUplights']})
    assert response.status_code == 200, response.get_json()
    return response


def book_for(app, user_id, reservation_date=EVENT_DATE, add_ons=None, **kwargs):
    add_ons = add_ons or []
    with app.app_context():
        return create_reservation(
            items=[{'key': 'roundArch', 'quantity': 1, 'priceAtBooking': 100}],
            optional_items=[{'key': 'neonSign', 'quantity': 1, 'priceAtBooking': 55}],
            total_price=205 + sum(line['priceAtBooking'] for line in add_ons),
            user_id=user_id,
            reservation_date=reservation_date,
            postcode='2000',
            extra={'deliveryFee': 50, 'addOns': add_ons},
            **kwargs
        )


class TestWizardFlow:
    """New reservation from start to confirmation."""

    def test_start_returns_step1(self, client):
        response = client.get('/reserve/start')
        data = response.get_json()

        assert response.status_code == 200
        assert data['success'] is True
        assert data['data']['current_step'] == 1
        assert data['data']['work_id'] == 0
        assert 'idempotency_key' not in data['data']

    def test_start_from_work_preselects_items(self, app, client):
        with app.app_context():
            work = next(w for w in get_all_works() if w['title'] == 'Pastel Birthday')

        response = client.get(f'/reserve/start?work_id={work["id"]}')
        data = response.get_json()['data']

        assert response.status_code == 200
        assert data['work_id'] == work['id']
        assert data['step1']['backdrop']['key'] == 'roundArch'
        assert data['step1']['theme']['key'] == 'pastel'
        assert [i['key'] for i in data['step1']['decorations']] == ['neonSign']
        assert data['running_total'] == 190.0

    def test_start_from_work_with_add_on(self, app, client):
        with app.app_context():
            work = next(w for w in get_all_works() if w['title'] == 'Golden Gala')

        data = client.get(f'/reserve/start?work_id={work["id"]}').get_json()['data']

        assert [a['key'] for a in data['step3']['add_ons']] == ['ledUplights']

    def test_start_from_unknown_work(self, client):
        client.get('/reserve/start')

        response = client.get('/reserve/start?work_id=9999')

        assert response.status_code == 404
        assert response.get_json()['code'] == 'work_not_found'
        assert client.get('/reserve/state').get_json()['data']['work_id'] == 0

    def test_full_flow(self, app, authenticated_client, customer_id):
        response = walk_to_review(authenticated_client)
        assert response.get_json()['data']['running_total'] == 260.0

        summary = authenticated_client.get('/reserve/summary').get_json()['data']
        assert summary['price']['total'] == 260.0
        assert summary['price']['delivery_fee'] == 50.0

        response = authenticated_client.post('/reserve/confirm')
        data = response.get_json()

        assert response.status_code == 201
        assert data['data']['current_step'] == 5
        reservation = data['data']['reservation']
        assert reservation['status'] == 'PENDING'
        assert reservation['totalPrice'] == 260.0
        assert reservation['userId'] == customer_id
        assert reservation['reservationDate'] == EVENT_DATE
        assert [i['key'] for i in reservation['items']] == ['roundArch', 'pastel']
        assert reservation['extra']['deliveryFee'] == 50.0
        assert reservation['extra']['addOns'][0]['key'] == 'ledUplights'
        assert reservation['notes'] == 'Happy 30th'

        # The finished wizard is discarded
        state = authenticated_client.get('/reserve/state').get_json()['data']
        assert state['current_step'] == 1
        assert state['step1'] == {'message': ''}

    def test_confirm_requires_sign_in(self, client):
        walk_to_review(client)

        response = client.post('/reserve/confirm')

        assert response.status_code == 302
        assert '/login' in response.headers['Location']

    def test_confirm_after_sign_in_keeps_wizard(self, client):
        walk_to_review(client)
        client.post('/reserve/confirm')

        client.post('/login', data={'username': 'customer', 'password': 'customer123'})
        response = client.post('/reserve/confirm')

        assert response.status_code == 201

    def test_confirm_without_wizard(self, authenticated_client):
        response = authenticated_client.post('/reserve/confirm')

        assert response.status_code == 400
        assert response.get_json()['code'] == 'invalid_step'

    def test_date_full_at_submission(self, app, authenticated_client):
        walk_to_review(authenticated_client)
        for _ in range(6):
            book_for(app, None)

        response = authenticated_client.post('/reserve/confirm')

        assert response.status_code == 409
        assert response.get_json()['code'] == 'date_no_longer_available'
        state = authenticated_client.get('/reserve/state').get_json()['data']
        assert state['current_step'] == 4
        assert state['step2']['date'] == EVENT_DATE


class TestStepValidation:
    """Step endpoints rejecting input."""

    def test_step1_requires_backdrop(self, client):
        client.get('/reserve/start')

        response = client.post('/reserve/step1', json={'selections': {'theme': 'pastel'}})
        data = response.get_json()

        assert response.status_code == 422
        assert 'backdrop' in data['errors']

    def test_select_toggles_item(self, client):
        client.get('/reserve/start')

        first = client.post('/reserve/step1/select', json={'slot': 'backdrop', 'key': 'roundArch'})
        second = client.post('/reserve/step1/select', json={'slot': 'backdrop', 'key': 'roundArch'})

        assert first.get_json()['data']['step1']['backdrop']['key'] == 'roundArch'
        assert second.get_json()['data']['step1']['backdrop'] is None

    def test_select_unknown_item(self, client):
        response = client.post('/reserve/step1/select', json={'slot': 'backdrop', 'key': 'nope'})

        assert response.status_code == 404

    def test_step2_errors(self, client):
        client.get('/reserve/start')

        response = client.post('/reserve/step2', json=dict(STEP2, postcode='2300', date=''))
        data = response.get_json()

        assert response.status_code == 422
        assert set(data['errors']) == {'postcode', 'date'}

    def test_jump(self, client):
        client.get('/reserve/start')

        assert client.post('/reserve/jump', json={'step': 3}).status_code == 200
        assert client.get('/reserve/state').get_json()['data']['current_step'] == 3

    def test_jump_to_confirmation_refused(self, client):
        client.get('/reserve/start')

        response = client.post('/reserve/jump', json={'step': 5})

        assert response.status_code == 400
        assert response.get_json()['code'] == 'invalid_step'

    def test_reset(self, client):
        walk_to_review(client)

        client.post('/reserve/reset')

        assert client.get('/reserve/state').get_json()['data']['current_step'] == 1


class TestExistingReservationRoutes:
    """Continuing a stored reservation."""

    def test_owned_reservation(self, app, authenticated_client, customer_id):
        reservation = book_for(app, customer_id)

        response = authenticated_client.get(f'/reserve/start?id={reservation["id"]}')
        data = response.get_json()['data']

        assert response.status_code == 200
        assert data['current_step'] == 2
        assert data['existing_reservation']['id'] == reservation['id']

    def test_update_keeps_booked_prices(self, app, authenticated_client, customer_id):
        reservation = book_for(app, customer_id)
        authenticated_client.get(f'/reserve/start?id={reservation["id"]}')
        authenticated_client.post('/reserve/step2', json=STEP2)
        authenticated_client.post('/reserve/step3', json={'add_ons': ['cakeStand']})

        response = authenticated_client.post('/reserve/confirm')
        data = response.get_json()['data']

        assert response.status_code == 200
        assert data['created'] is False
        assert data['reservation']['id'] == reservation['id']
        assert data['reservation']['items'] == [
            {'key': 'roundArch', 'quantity': 1, 'priceAtBooking': 100}
        ]
        # 100 + 55 booked, 40 add-on, 50 delivery
        assert data['reservation']['totalPrice'] == 245.0

    def test_skipping_add_ons_step_keeps_booked_add_ons(self, app, authenticated_client, customer_id):
        booked_add_on = {'key': 'ledUplights', 'quantity': 1, 'priceAtBooking': 80}
        reservation = book_for(app, customer_id, add_ons=[booked_add_on])
        authenticated_client.get(f'/reserve/start?id={reservation["id"]}')
        authenticated_client.post('/reserve/step2', json=STEP2)
        authenticated_client.post('/reserve/jump', json={'step': 4})

        response = authenticated_client.post('/reserve/confirm')
        data = response.get_json()['data']

        assert response.status_code == 200
        assert data['reservation']['extra']['addOns'] == [booked_add_on]
        assert data['reservation']['extra']['deliveryFee'] == 50
        assert data['reservation']['totalPrice'] == reservation['total_price'] == 285

    def test_start_shows_booked_add_ons(self, app, authenticated_client, customer_id):
        reservation = book_for(app, customer_id, add_ons=[
            {'key': 'ledUplights', 'quantity': 1, 'priceAtBooking': 80}
        ])

        data = authenticated_client.get(f'/reserve/start?id={reservation["id"]}').get_json()['data']

        assert [a['key'] for a in data['step3']['add_ons']] == ['ledUplights']
        assert data['step2']['delivery_fee'] == 50

    def test_step1_locked(self, app, authenticated_client, customer_id):
        reservation = book_for(app, customer_id)
        authenticated_client.get(f'/reserve/start?id={reservation["id"]}')

        response = authenticated_client.post('/reserve/step1', json={
            'selections': {'backdrop': 'meshWall'}
        })

        assert response.status_code == 422
        assert 'step1' in response.get_json()['errors']

    def test_foreign_reservation_redirects_to_fresh_start(self, app, authenticated_client, admin_id):
        reservation = book_for(app, admin_id)

        response = authenticated_client.get(f'/reserve/start?id={reservation["id"]}')

        assert response.status_code == 302
        assert response.headers['Location'].endswith('/reserve/start')

    def test_missing_reservation_redirects(self, authenticated_client):
        response = authenticated_client.get('/reserve/start?id=9999')

        assert response.status_code == 302

    def test_my_reservations(self, app, authenticated_client, customer_id, admin_id):
        book_for(app, customer_id)
        book_for(app, admin_id)

        response = authenticated_client.get('/reserve/mine')
        reservations = response.get_json()['data']['reservations']

        assert len(reservations) == 1
        assert reservations[0]['userId'] == customer_id


class TestLookupEndpoints:
    """Slots, delivery fee, availability and add-ons."""

    def test_slots(self, client):
        slots = client.get('/reserve/slots').get_json()['data']['slots']

        assert [s['slot_name'] for s in slots] == ['backdrop', 'decorations', 'theme']
        assert slots[0]['is_required'] is True
        assert slots[1]['selection_mode'] == 'multi'
        assert 'roundArch' in [i['key'] for i in slots[0]['items']]

    @pytest.mark.parametrize('postcode,status', [
        ('20', 'not_ready'),
        ('2000', 'ok'),
    ])
    def test_delivery_fee_success(self, client, postcode, status):
        response = client.get(f'/reserve/delivery-fee?postcode={postcode}')

        assert response.status_code == 200
        assert response.get_json()['data']['status'] == status

    def test_delivery_fee_for_warehouse_postcode(self, client):
        data = client.get('/reserve/delivery-fee?postcode=2000').get_json()['data']

        assert data['fee'] == 50.0
        assert data['locality'] == 'Sydney'

    @pytest.mark.parametrize('postcode,code', [
        ('2300', 'out_of_service_area'),
        ('9999', 'postcode_not_found'),
        ('20a0', 'validation_error'),
    ])
    def test_delivery_fee_errors(self, client, postcode, code):
        response = client.get(f'/reserve/delivery-fee?postcode={postcode}')

        assert response.status_code == 422
        assert response.get_json()['code'] == code

    def test_availability(self, app, client):
        for _ in range(3):
            book_for(app, None)

        data = client.get('/reserve/availability').get_json()['data']

        assert data['counts'] == {EVENT_DATE: 3}
        assert data['tiers'] == {EVENT_DATE: 'busy'}

    def test_add_ons(self, client):
        items = client.get('/reserve/add-ons').get_json()['data']['items']

        assert {'ledUplights', 'photoBooth', 'cakeStand', 'extraBalloons'} == {
            i['key'] for i in items
        }


class TestCatalogApi:
    """Catalog read endpoints."""

    def test_health(self, client):
        data = client.get('/api/health').get_json()['data']

        assert data['status'] == 'ok'
        assert data['app'] == 'DecorRental'

    def test_items_search(self, client):
        items = client.get('/api/items?q=arch').get_json()['data']['items']

        assert {'roundArch', 'panelArch'} <= {i['key'] for i in items}

    def test_item_by_key(self, client):
        item = client.get('/api/items/roundArch').get_json()['data']['item']

        assert item['base_price'] == 120
        assert item['category_name'] == 'Backdrop'

    def test_unknown_item(self, client):
        assert client.get('/api/items/nothing').status_code == 404

    def test_categories(self, client):
        names = [c['name'] for c in client.get('/api/categories').get_json()['data']['categories']]

        assert names == ['Add-ons', 'Backdrop', 'Decoration', 'Theme']
