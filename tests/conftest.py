import os
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path so 'app', 'config', and 'tracktide' import correctly
_TESTS_DIR = os.path.dirname(__file__)
_ROOT_DIR = os.path.abspath(os.path.join(_TESTS_DIR, os.pardir))
if _ROOT_DIR not in sys.path:
    sys.path.insert(0, _ROOT_DIR)

from tests.support import factories as test_factories
from tests.support import stubs as test_stubs

_CLIENT_ENV = (
    "TRACKTIDE_API_URL",
    "TRACKTIDE_SESSION_FILE",
    "TRACKTIDE_SESSION_POLL_SECONDS",
    "TRACKTIDE_AUTO_ADVANCE_DELAY",
    "TRACKTIDE_HISTORY_REFRESH_SECONDS",
    "TRACKTIDE_REQUEST_TIMEOUT",
    "TRACKTIDE_DEFAULT_VOLUME",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path_factory):
    """Ensure a clean env for tests with per-test sqlite files."""
    db_dir = tmp_path_factory.mktemp("db")
    db_path = Path(db_dir) / "test.sqlite"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path.as_posix()}")
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    for name in _CLIENT_ENV:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def catalog_stub():
    return test_stubs.CatalogStub()


@pytest.fixture
def app(catalog_stub):
    import app as app_module
    from tracktide.database.db_manager import db

    application = app_module.create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "SQLALCHEMY_DATABASE_URI": os.environ["DATABASE_URL"],
        },
        catalog=catalog_stub,
    )
    yield application
    with application.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def app_context(app):
    with app.app_context():
        yield app


@pytest.fixture
def db_session(app_context):
    from tracktide.database.db_manager import db

    test_factories.set_session(db.session)
    try:
        yield db.session
    finally:
        try:
            db.session.rollback()
        except Exception:
            pass
        db.session.remove()
        test_factories.reset_session()


@pytest.fixture
def factories(db_session):
    yield test_factories


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def signup(client):
    """Register a user through the API and return (user, auth headers)."""

    def _signup(email="listener@example.com", password="secret123", name="Listener"):
        resp = client.post(
            "/api/auth/signup",
            json={"name": name, "email": email, "password": password},
        )
        assert resp.status_code == 201, resp.get_json()
        data = resp.get_json()
        return data["user"], {"Authorization": f"Bearer {data['token']}"}

    return _signup


@pytest.fixture
def auth_headers(signup):
    return signup()[1]


@pytest.fixture
def song_payload():
    return test_stubs.song_payload()


@pytest.fixture
def http(client):
    """A requests.Session whose calls are served by the Flask test client."""
    return test_stubs.flask_http_session(client)


@pytest.fixture
def client_session():
    from tracktide.client.session import MemorySessionStorage, SessionContext

    return SessionContext(MemorySessionStorage())


@pytest.fixture
def api(http, client_session):
    from tracktide.client.api import ApiClient

    return ApiClient(test_stubs.TEST_BASE_URL, client_session, http=http)


@pytest.fixture
def sent_requests(http):
    """Requests that actually reached the backend through the client transport."""
    return http.get_adapter(test_stubs.TEST_BASE_URL).requests
