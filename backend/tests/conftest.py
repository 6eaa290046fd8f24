"""
Pytest fixtures for the stockroom backend tests.

Provides test database setup, owner fixtures, and test client.
"""

import pytest
from stockroom import create_app
from stockroom.extensions import db
from stockroom.services import session_service, stock_service, category_service
from stockroom.services.auth_service import create_user

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'BCRYPT_ROUNDS': 4,
    'LOG_LEVEL': 'WARNING',
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

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
def user(db_session):
    """Owner of the inventory under test."""
    return create_user(
        full_name="Alice Example",
        email="alice@example.com",
        username="alice",
        password="Password123!",
    )


@pytest.fixture(scope='function')
def other_user(db_session):
    """A second owner whose data must stay invisible to `user`."""
    return create_user(
        full_name="Bob Other",
        email="bob@example.com",
        username="bob",
        password="Password123!",
    )


@pytest.fixture(scope='function')
def token(user):
    _, plaintext = session_service.create_session(user_id=user.id)
    return plaintext


@pytest.fixture(scope='function')
def headers(token):
    return auth_headers(token)


@pytest.fixture(scope='function')
def category(user):
    return category_service.create_category(user_id=user.id, name="Shirts")


@pytest.fixture(scope='function')
def product(user, category):
    """10 in stock, reorder threshold 5, priced 12.50."""
    return stock_service.create_product(
        user_id=user.id,
        name="Linen Shirt",
        category_id=category["id"],
        current_stock=10,
        price_cents=1250,
        minimum_stock=5,
    )


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
