# tests/conftest.py

import pytest

from config import TestConfig
from mandi import create_app, db
from mandi.models.user import User
from mandi.services.booking_service import BookingCoordinator
from mandi.services.listing_service import ListingService
from mandi.services.store import MemoryStore, SQLAlchemyStore

PASSWORD = 'secret-pass-123'


@pytest.fixture
def app():
    # Sem app context empilhado durante os testes HTTP: o Flask-Login guarda
    # o usuário em `g`, que seria compartilhado entre clientes diferentes.
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture(params=['memory', 'sqlalchemy'])
def store(request):
    """O mesmo teste roda contra as duas implementações do DocumentStore."""
    if request.param == 'memory':
        yield MemoryStore()
    else:
        request.getfixturevalue('app_ctx')
        yield SQLAlchemyStore(db.session)


@pytest.fixture
def coordinator(store):
    return BookingCoordinator(store)


@pytest.fixture
def listings(store):
    return ListingService(store)


@pytest.fixture
def make_listing(listings):
    def _make_listing(owner='owner@kisan.app', name='Mahindra 575 Tractor', offer_type='Rent', **fields):
        fields.setdefault('price', 1500)
        fields.setdefault('location', 'Nashik')
        return listings.create(owner, 'Owner', dict(fields, name=name, offer_type=offer_type))
    return _make_listing


# --- Clientes HTTP ---
@pytest.fixture
def make_user(app):
    def _make_user(email, name='Farmer', is_admin=False):
        with app.app_context():
            user = User(email=email, display_name=name, is_admin=is_admin)
            user.set_password(PASSWORD)
            db.session.add(user)
            db.session.commit()
            return user.id
    return _make_user


@pytest.fixture
def login_as(app, make_user):
    """Cria o usuário e devolve um test client já autenticado como ele."""
    def _login_as(email, name='Farmer', is_admin=False):
        make_user(email, name, is_admin=is_admin)
        client = app.test_client()
        response = client.post('/login', json={'email': email, 'password': PASSWORD})
        assert response.status_code == 200, response.get_json()
        return client
    return _login_as
