"""
Pytest configuration and fixtures.
Ensures tests use an isolated test database, not the production database.
"""

import os
import pytest
import tempfile

# Set test database path BEFORE importing app
# This ensures all tests use an isolated database
TEST_DB_PATH = os.path.join(tempfile.gettempdir(), 'decor_rental_test.db')
os.environ['DATABASE_PATH'] = TEST_DB_PATH


@pytest.fixture(scope='session', autouse=True)
def setup_test_environment():
    """Set up test environment before any tests run."""
    # Ensure test database path is set
    os.environ['DATABASE_PATH'] = TEST_DB_PATH
    os.environ['FLASK_ENV'] = 'test'

    yield

    # Cleanup: remove test database after all tests
    for path in (TEST_DB_PATH, TEST_DB_PATH + '-wal', TEST_DB_PATH + '-shm'):
        if os.path.exists(path):
            try:
                os.remove(path)
            except PermissionError:
                pass  # Windows may have file locked


@pytest.fixture
def app():
    """Create test application with a freshly seeded database."""
    from app import create_app
    from database import init_db

    # Ensure test database path
    os.environ['DATABASE_PATH'] = TEST_DB_PATH

    app = create_app('test')
    app.config['TESTING'] = True
    app.config['WTF_CSRF_ENABLED'] = False
    app.config['DATABASE_PATH'] = TEST_DB_PATH

    with app.app_context():
        init_db()

    yield app


@pytest.fixture
def app_ctx(app):
    """Application context for calling models and services directly."""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


def _login(client, username, password):
    response = client.post('/login', data={
        'username': username,
        'password': password
    })
    assert response.status_code == 200
    return client


@pytest.fixture
def authenticated_client(app, client):
    """Test client signed in as the demo customer."""
    return _login(client, 'customer', 'customer123')


@pytest.fixture
def admin_client(app):
    """Separate test client signed in as admin."""
    return _login(app.test_client(), 'admin', 'admin123')


@pytest.fixture
def customer_id(app):
    from models.user import get_user_by_username

    with app.app_context():
        return get_user_by_username('customer')['id']


@pytest.fixture
def admin_id(app):
    from models.user import get_user_by_username

    with app.app_context():
        return get_user_by_username('admin')['id']
