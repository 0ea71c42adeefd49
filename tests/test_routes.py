import io

import pytest
from PIL import Image

from mandi import mail
from mandi.models.equipment import RequestStatus
from mandi.models.user import ApiLog

OWNER = 'owner@kisan.app'


@pytest.fixture
def owner(login_as):
    return login_as(OWNER, 'Ramesh')


@pytest.fixture
def tractor(owner):
    response = owner.post('/equipment', json={
        'name': 'Mahindra 575 Tractor', 'offer_type': 'Rent', 'price': 1500, 'location': 'Nashik',
    })
    assert response.status_code == 201, response.get_json()
    return response.get_json()['listing']


def book(client, listing_id, **dates):
    return client.post(f"/equipment/{listing_id}/book", json=dates)


# --- Autenticação ---
def test_register_then_login(app):
    client = app.test_client()

    response = client.post('/register', json={
        'display_name': 'Anil', 'email': 'Anil@Kisan.app', 'password': 'long-enough-1'})
    assert response.status_code == 201
    assert response.get_json()['user']['email'] == 'anil@kisan.app'

    duplicate = client.post('/register', json={
        'display_name': 'Anil', 'email': 'anil@kisan.app', 'password': 'long-enough-1'})
    assert duplicate.status_code == 409

    assert client.post('/login', json={'email': 'anil@kisan.app', 'password': 'wrong'}).status_code == 401
    assert client.post('/login', json={'email': 'anil@kisan.app', 'password': 'long-enough-1'}).status_code == 200


def test_register_rejects_short_password(app):
    response = app.test_client().post('/register', json={
        'display_name': 'Anil', 'email': 'anil@kisan.app', 'password': 'short'})

    assert response.status_code == 400
    assert 'password' in response.get_json()['errors']


def test_protected_routes_answer_401_json(app, tractor):
    response = book(app.test_client(), tractor['id'])

    assert response.status_code == 401
    assert response.get_json()['error'] == 'login_required'


# --- Fluxo completo ---
def test_full_booking_flow(app, owner, tractor, login_as):
    anil = login_as('a@kisan.app', 'Anil')
    bharti = login_as('b@kisan.app', 'Bharti')

    r_anil = book(anil, tractor['id']).get_json()['request']
    r_bharti = book(bharti, tractor['id']).get_json()['request']
    assert r_anil['status'] == RequestStatus.PENDING
    assert r_anil['listing_name'] == 'Mahindra 575 Tractor'

    received = owner.get('/bookings').get_json()
    assert received['pending_count'] == 2

    with mail.record_messages() as outbox:
        response = owner.post(f"/bookings/{r_anil['id']}/accept")
    body = response.get_json()
    assert response.status_code == 200
    assert body['listing_status'] == 'Rented'
    assert body['swept'] == [r_bharti['id']]
    assert [msg.recipients for msg in outbox] == [['a@kisan.app']]

    sent = bharti.get('/bookings').get_json()['sent']
    assert sent[0]['status'] == RequestStatus.ITEM_UNAVAILABLE
    assert sent[0]['chat_open'] is False

    chat = anil.get(f"/bookings/{r_anil['id']}/chat").get_json()
    assert chat == {'request_id': r_anil['id'], 'eligible': True, 'with': 'Ramesh'}
    assert bharti.get(f"/bookings/{r_bharti['id']}/chat").get_json()['eligible'] is False

    market = anil.get('/equipment').get_json()['market']
    assert market[0]['status'] == 'Rented'


def test_second_accept_is_refused(owner, tractor, login_as):
    r_a = book(login_as('a@kisan.app'), tractor['id']).get_json()['request']
    r_b = book(login_as('b@kisan.app'), tractor['id']).get_json()['request']

    assert owner.post(f"/bookings/{r_a['id']}/accept").status_code == 200
    response = owner.post(f"/bookings/{r_b['id']}/accept")

    assert response.status_code == 409
    assert response.get_json()['error'] == 'stale_request'


def test_cannot_book_own_or_locked_listing(owner, tractor, login_as):
    response = book(owner, tractor['id'])
    assert response.status_code == 403
    assert response.get_json()['error'] == 'invalid_actor'

    r_a = book(login_as('a@kisan.app'), tractor['id']).get_json()['request']
    owner.post(f"/bookings/{r_a['id']}/accept")

    late = book(login_as('late@kisan.app'), tractor['id'])
    assert late.status_code == 409
    assert late.get_json()['error'] == 'listing_unavailable'


def test_booking_with_reversed_dates_is_refused(tractor, login_as):
    response = book(login_as('a@kisan.app'), tractor['id'], start_date='2099-05-10', end_date='2099-05-01')

    assert response.status_code == 400
    assert response.get_json()['error'] == 'invalid_booking_dates'


def test_only_owner_can_accept(owner, tractor, login_as):
    anil = login_as('a@kisan.app')
    r_a = book(anil, tractor['id']).get_json()['request']

    assert anil.post(f"/bookings/{r_a['id']}/accept").status_code == 403
    assert owner.post('/bookings/999/accept').status_code == 404


def test_reject_notifies_once(owner, tractor, login_as):
    r_a = book(login_as('a@kisan.app'), tractor['id']).get_json()['request']

    with mail.record_messages() as outbox:
        first = owner.post(f"/bookings/{r_a['id']}/reject")
        again = owner.post(f"/bookings/{r_a['id']}/reject")

    assert first.get_json()['request']['status'] == RequestStatus.REJECTED
    assert again.status_code == 200
    assert len(outbox) == 1


# --- Chat e avaliações ---
def test_negotiation_and_review(app, owner, tractor, login_as):
    anil = login_as('a@kisan.app', 'Anil')
    r_a = book(anil, tractor['id']).get_json()['request']

    closed = anil.post(f"/bookings/{r_a['id']}/messages", json={'text': 'Hello'})
    assert closed.status_code == 403
    assert closed.get_json()['error'] == 'chat_unavailable'

    owner.post(f"/bookings/{r_a['id']}/accept")
    assert anil.post(f"/bookings/{r_a['id']}/messages", json={'text': 'When can I pick it up?'}).status_code == 201
    assert owner.post(f"/bookings/{r_a['id']}/messages", json={'text': 'Tomorrow, 7am.'}).status_code == 201
    assert anil.post(f"/bookings/{r_a['id']}/messages", json={'text': '  '}).status_code == 400

    messages = owner.get(f"/bookings/{r_a['id']}/messages").get_json()['messages']
    assert [m['text'] for m in messages] == ['When can I pick it up?', 'Tomorrow, 7am.']

    outsider = login_as('nosy@kisan.app')
    assert outsider.get(f"/bookings/{r_a['id']}/messages").status_code == 403

    assert anil.post(f"/bookings/{r_a['id']}/review", json={'rating': 9}).status_code == 400
    assert anil.post(f"/bookings/{r_a['id']}/review", json={'rating': 5, 'comment': 'Great'}).status_code == 201
    assert anil.post(f"/bookings/{r_a['id']}/review", json={'rating': 1}).status_code == 409

    rating = app.test_client().get(f'/owners/{OWNER}/rating').get_json()
    assert rating['rating'] == {'avg': 5.0, 'count': 1}
    assert anil.get('/bookings').get_json()['sent'][0]['reviewed'] is True


# --- Anúncios ---
def test_listing_with_photo_is_thumbnailed(app, owner, tmp_path):
    app.config['UPLOAD_FOLDER'] = str(tmp_path)
    buffer = io.BytesIO()
    Image.new('RGB', (1600, 1200), 'green').save(buffer, 'PNG')
    buffer.seek(0)

    response = owner.post('/equipment', data={
        'name': 'Seed Drill', 'offer_type': 'Sale', 'price': '23000',
        'image': (buffer, 'drill.png'),
    }, content_type='multipart/form-data')

    assert response.status_code == 201, response.get_json()
    image_url = response.get_json()['listing']['image_url']
    saved = tmp_path / image_url.rsplit('/', 1)[-1]
    with Image.open(saved) as img:
        assert max(img.size) <= 800


def test_invalid_listing_form(owner):
    response = owner.post('/equipment', json={'name': '', 'offer_type': 'Rent', 'price': 10})

    assert response.status_code == 400
    assert response.get_json()['error'] == 'invalid_listing'


def test_market_hides_own_listings_and_searches(owner, tractor, login_as):
    owner.post('/equipment', json={'name': 'Knapsack Sprayer', 'offer_type': 'Rent', 'price': 200})

    mine = owner.get('/equipment').get_json()
    assert mine['market'] == []
    assert len(mine['mine']) == 2

    found = login_as('a@kisan.app').get('/equipment?q=sprayer').get_json()['market']
    assert [item['name'] for item in found] == ['Knapsack Sprayer']


def test_owner_deletes_listing(owner, tractor, login_as):
    assert login_as('a@kisan.app').delete(f"/equipment/{tractor['id']}").status_code == 403
    assert owner.delete(f"/equipment/{tractor['id']}").status_code == 200
    assert owner.delete(f"/equipment/{tractor['id']}").status_code == 404


# --- Admin ---
def test_admin_area_requires_admin(tractor, login_as):
    farmer = login_as('a@kisan.app')

    assert farmer.get('/admin/logs').status_code == 403
    assert farmer.delete(f"/admin/equipment/{tractor['id']}").status_code == 403


def test_admin_moderates_and_reads_audit_log(app, owner, tractor, login_as):
    admin = login_as('admin@kisan.app', 'Admin', is_admin=True)
    r_a = book(login_as('a@kisan.app'), tractor['id']).get_json()['request']
    owner.post(f"/bookings/{r_a['id']}/accept")

    assert admin.get('/admin/requests?status=Approved').get_json()['requests'][0]['id'] == r_a['id']
    reconcile = admin.post(f"/admin/equipment/{tractor['id']}/reconcile").get_json()
    assert reconcile == {'success': True, 'swept': [], 'failed': []}

    logs = admin.get('/admin/logs').get_json()
    events = {log['event_type'] for log in logs['logs']}
    assert {'Post Listing', 'Booking Request', 'Accept Request', 'Admin Reconcile'} <= events

    assert admin.delete(f"/admin/equipment/{tractor['id']}").status_code == 200
    assert admin.get('/admin/equipment').get_json()['listings'] == []


def test_failed_actions_are_audited(app, owner, tractor):
    book(owner, tractor['id'])

    with app.app_context():
        failure = ApiLog.query.filter_by(event_type='Booking Request', status='FAILURE').one()
        assert failure.actor == OWNER
        assert 'invalid_actor' in failure.details
