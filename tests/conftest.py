import pytest

from thesis_portal import create_app
from thesis_portal.config import TestConfig
from thesis_portal.extensions import db
from thesis_portal.models import AccountStatus, Role
from thesis_portal.services.accounts import create_system_user


@pytest.fixture()
def app():
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        app.extensions['records_views'].close_all()
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def make_account(app):
    def _make(email, role=Role.READER.value, status=AccountStatus.ACTIVE.value, name=None, password='testpass'):
        account, _ = create_system_user(
            name or email.split('@')[0].title(),
            email,
            role,
            status,
            actor_role=Role.ADMIN,
            hash_method=app.config['PASSWORD_HASH_METHOD'],
            password=password,
        )
        return account
    return _make


@pytest.fixture()
def login(client):
    def _login(email, password='testpass'):
        return client.post('/auth/login', data={'email': email, 'password': password}, follow_redirects=True)
    return _login


@pytest.fixture()
def admin_client(client, make_account, login):
    make_account('boss@example.com', role=Role.ADMIN.value)
    login('boss@example.com')
    return client


@pytest.fixture()
def reader_client(client, make_account, login):
    make_account('reader@example.com')
    login('reader@example.com')
    return client
