import os
import sys
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from models import db
from billing.version import API_PREFIX


@pytest.fixture(scope='session')
def app_instance():
    os.environ.setdefault('APP_ENV', 'testing')
    from billing import create_app
    from billing.config import TestingConfig
    app = create_app(TestingConfig)
    app.config.update(
        TESTING=True,
        SQLALCHEMY_DATABASE_URI='sqlite:///:memory:',
        SQLALCHEMY_TRACK_MODIFICATIONS=False
    )
    return app


@pytest.fixture(scope='function')
def app(app_instance):
    with app_instance.app_context():
        db.drop_all()
        db.create_all()
        app_instance.extensions["item_cache"].invalidate()
        yield app_instance
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    return app.test_client()


@pytest.fixture()
def auth_headers(client):
    r = client.post(f"{API_PREFIX}/auth/login", json={"username": "admin", "password": "s3cret"})
    assert r.status_code == 200
    token = r.get_json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def new_item(client, auth_headers):
    """Create an item through the API and return its JSON."""

    def _create(**overrides):
        payload = {
            "name": "Bolt",
            "arabic_name": "مسمار",
            "buying_price": 0.5,
            "selling_price": 0.8,
        }
        payload.update(overrides)
        r = client.post(f"{API_PREFIX}/items", json=payload, headers=auth_headers)
        assert r.status_code == 201, r.get_json()
        return r.get_json()["data"]

    return _create
