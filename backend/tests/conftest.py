"""
Pytest fixtures for WalkWallet backend tests.

Provides test database setup, walker accounts, auth helpers and test client.
"""

from decimal import Decimal

import pytest
from walkwallet import create_app
from walkwallet.extensions import db
from walkwallet.models import User
from walkwallet.models.ledger import TX_BONUS
from walkwallet.services.auth_service import create_user
from walkwallet.services.ledger_service import lock_user, credit


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def set_config(app, monkeypatch):
    """Override app.config keys for one test; restored afterwards."""
    def _set(**values):
        for key, value in values.items():
            monkeypatch.setitem(app.config, key, value)
    return _set


@pytest.fixture(scope='function')
def user(db_session):
    """A walker with a zero balance."""
    return create_user(
        email="walker@example.com",
        password=PASSWORD,
        first_name="Asha",
        last_name="Rao",
    )


@pytest.fixture(scope='function')
def other_user(db_session):
    """A second walker, for ownership checks."""
    return create_user(email="other@example.com", password=PASSWORD)


@pytest.fixture(scope='function')
def headers(client, user):
    return auth_headers(get_auth_token(client, user.email, PASSWORD))


@pytest.fixture(scope='function')
def other_headers(client, other_user):
    return auth_headers(get_auth_token(client, other_user.email, PASSWORD))


def get_auth_token(client, email: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def _fund(user_id: str, amount) -> None:
    user = lock_user(user_id)
    credit(user, Decimal(str(amount)), tx_type=TX_BONUS, description="Test funding")
    db.session.commit()


def _reload_user(user_id: str) -> User:
    db.session.expire_all()
    return db.session.get(User, user_id)


@pytest.fixture(scope='function')
def fund(db_session):
    """Give a user coins through the ledger so balance and history agree."""
    return _fund


@pytest.fixture(scope='function')
def reload_user(db_session):
    """Fresh copy of a user row (requests commit in their own session)."""
    return _reload_user
