import pytest

from app import create_app
from storage import RecordStore


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        RecordStore().init()
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    resp = client.post('/auth/login', json={'username': 'admin', 'password': '0000'})
    assert resp.status_code == 200
    return client


@pytest.fixture
def teacher_client(client):
    resp = client.post('/auth/login', json={'username': 'teacher1', 'password': '123'})
    assert resp.status_code == 200
    return client


def read(app, key):
    with app.app_context():
        return RecordStore().get(key)


def write(app, key, entities):
    with app.app_context():
        RecordStore().set(key, entities)
