import pytest
from app import create_app, db
from app.models import User
from app.services.access_control import OwnerStatus


@pytest.fixture
def app(tmp_path, monkeypatch):
    """Create and configure a test app."""
    # Ensure the app factory picks up the in-memory SQLite DB for tests
    monkeypatch.setenv('DATABASE_URL', 'sqlite:///:memory:')
    monkeypatch.setenv('RATELIMIT_ENABLED', 'false')
    monkeypatch.setenv('WTF_CSRF_ENABLED', 'false')
    monkeypatch.setenv('AUDIT_LOG_DIR', str(tmp_path / 'logs'))
    monkeypatch.setenv('UPLOAD_FOLDER', str(tmp_path / 'uploads'))
    monkeypatch.setenv('PAYSTACK_SECRET_KEY', 'sk_test_secret')
    monkeypatch.setenv('PAYSTACK_PUBLIC_KEY', 'pk_test_public')
    monkeypatch.setenv('GEMINI_API_KEY', 'test-gemini-key')
    app = create_app()
    app.config['TESTING'] = True

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


def make_user(email, status=OwnerStatus.FREE, password='password123'):
    user = User(email=email, status=status.value)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def owner(app):
    """A regular account that owns memorials."""
    return make_user('owner@test.com')


@pytest.fixture
def other_user(app):
    return make_user('other@test.com')


@pytest.fixture
def admin_user(app):
    return make_user('admin@test.com', status=OwnerStatus.ADMIN)


@pytest.fixture
def login(client):
    """Log a user in through the real login form."""
    def _login(user, password='password123'):
        return client.post('/auth/login', data={'email': user.email, 'password': password})
    return _login


@pytest.fixture
def make_memorial(app):
    """Create a memorial through the repository, then adjust plan/visibility directly."""
    from app.services.memorial_repository import MemorialRepository

    def _make(owner, name='Jane Doe', plan=None, plan_expiry_date=None, visibility=None, **content):
        data = {'deceased_name': name}
        data.update(content)
        memorial = MemorialRepository().create(owner, data)
        if plan is not None:
            memorial.plan = plan
            memorial.plan_expiry_date = plan_expiry_date
        if visibility is not None:
            memorial.visibility = visibility
        db.session.commit()
        return memorial
    return _make
