# conftest.py

import os

import pytest
import requests
from werkzeug.security import generate_password_hash

# Set testing environment BEFORE importing app so app.py picks TestingConfig
os.environ["FLASK_ENV"] = "testing"

from app import app as flask_app  # noqa: E402
from salon_admin.importer import IMPORTER_EXTENSION_KEY, init_importer  # noqa: E402
from salon_admin.importer.client import SalonApiClient  # noqa: E402
from salon_admin.importer.store import WizardSessionStore  # noqa: E402
from salon_admin.models import AdminLog, User, db  # noqa: E402

SALON_API_BASE_URL = "http://salon-api.test"


class FakeResponse:
    def __init__(self, *, status_code=200, json_data=None, content=b"", headers=None, invalid_json=False):
        self.status_code = status_code
        self._json_data = json_data
        self.content = content
        self.text = content.decode("utf-8", errors="replace") if content else ""
        self.headers = headers or {}
        self.ok = status_code < 400
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json or self._json_data is None:
            raise requests.JSONDecodeError("Expecting value", self.text or "", 0)
        return self._json_data


class FakeSalonSession:
    """
    Stand-in for ``requests.Session`` serving queued replies per endpoint.

    Endpoints are ``"template"``, ``"validate"`` and ``"import"``; a queued
    exception is raised instead of returning a response.
    """

    def __init__(self):
        self.calls = []
        self._queues = {"template": [], "validate": [], "import": []}

    @staticmethod
    def endpoint_for(url):
        if url.endswith("/import/template"):
            return "template"
        if url.endswith("/import/validate"):
            return "validate"
        if url.endswith("/import"):
            return "import"
        raise AssertionError(f"Unexpected salon API URL: {url}")

    def queue(self, endpoint, reply):
        self._queues[endpoint].append(reply)

    def calls_to(self, endpoint):
        return [call for call in self.calls if call["endpoint"] == endpoint]

    def request(self, method, url, headers=None, timeout=None, files=None, data=None, **kwargs):
        endpoint = self.endpoint_for(url)
        call = {
            "endpoint": endpoint,
            "method": method,
            "url": url,
            "headers": dict(headers or {}),
            "timeout": timeout,
            "data": dict(data or {}),
        }
        if files:
            filename, handle, content_type = files["file"]
            call["filename"] = filename
            call["file_content"] = handle.read()
            call["file_content_type"] = content_type
        self.calls.append(call)

        if not self._queues[endpoint]:
            raise AssertionError(f"No reply queued for salon API endpoint '{endpoint}'")
        reply = self._queues[endpoint].pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


def _duplicate_payload(index, confidence="high"):
    return {
        "csvRow": {
            "rowNumber": index + 2,
            "customer_name": f"Customer {index}",
            "customer_email": f"customer{index}@example.com",
            "pet_name": f"Pet {index}",
            "service_name": "Full Groom",
            "date": "2026-11-02",
            "time": "10:00",
        },
        "existingAppointment": {
            "id": f"a1b2c3d4-0000-4000-8000-00000000000{index}",
            "customer_name": f"Customer {index}",
            "pet_name": f"Pet {index}",
            "service_name": "Full Groom",
            "date": "2026-11-02",
            "time": "10:00",
            "status": "confirmed",
        },
        "matchConfidence": confidence,
    }


def build_validation_payload(*, total=10, valid=10, invalid=None, duplicates=0, errors=None, preview_count=None):
    invalid = total - valid if invalid is None else invalid
    preview_count = valid if preview_count is None else preview_count
    duplicate_list = [_duplicate_payload(i, "high" if i % 2 == 0 else "medium") for i in range(duplicates)]
    return {
        "total_rows": total,
        "valid_rows": valid,
        "invalid_rows": invalid,
        "duplicates_found": duplicates,
        "duplicates": duplicate_list,
        "preview": [
            {
                "rowNumber": i + 2,
                "customer_name": f"Customer {i}",
                "pet_name": f"Pet {i}",
                "service_name": "Bath",
                "date": "2026-11-03",
                "time": "09:30",
                "isValid": True,
            }
            for i in range(preview_count)
        ],
        "errors": errors or [],
    }


def build_import_payload(*, total=10, created=10, failed=0, skipped=0, errors=None, **extra):
    payload = {
        "total_rows": total,
        "valid_rows": created + failed,
        "invalid_rows": 0,
        "duplicates_found": skipped,
        "created_count": created,
        "failed_count": failed,
        "skipped_count": skipped,
        "customers_created": 0,
        "pets_created": 0,
        "inactive_profiles_created": 0,
        "errors": errors or [],
    }
    payload.update(extra)
    return payload


@pytest.fixture(scope="function")
def app():
    """
    Configure the shared Flask app for one test.

    TestingConfig uses in-memory SQLite, which Flask-SQLAlchemy serves from a
    single static connection, so dropping and recreating the tables gives each
    test a clean database.
    """
    flask_app.config.update(
        {
            "TESTING": True,
            "WTF_CSRF_ENABLED": False,
            "SECRET_KEY": "salon-admin-testing-secret",
            "MONITORING_ENABLED": False,
            "ENABLE_FILE_LOGGING": False,
            "ENABLE_CONSOLE_LOGGING": False,
            "LOG_LEVEL": "DEBUG",
            "IMPORTER_ENABLED": True,
            "SALON_API_BASE_URL": SALON_API_BASE_URL,
            "SALON_API_TOKEN": None,
        }
    )
    flask_app.jinja_env.cache = {}

    from salon_admin.utils.logging_config import setup_logging

    setup_logging(flask_app)

    with flask_app.app_context():
        db.drop_all()
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def app_context(app):
    """Every test runs inside an app context"""
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    """Flask test client"""
    return app.test_client()


@pytest.fixture
def admin_user():
    """Salon owner with admin rights (not yet persisted)"""
    return User(
        username="admin",
        email="owner@salon.example",
        password_hash=generate_password_hash("adminpass123"),
        first_name="Sam",
        last_name="Owner",
        is_admin=True,
        is_active=True,
    )


@pytest.fixture
def staff_user():
    """Groomer account without admin rights"""
    return User(
        username="groomer",
        email="groomer@salon.example",
        password_hash=generate_password_hash("groomerpass123"),
        first_name="Gina",
        last_name="Groomer",
        is_admin=False,
        is_active=True,
    )


@pytest.fixture
def logged_in_admin(client, admin_user, app):
    """Signed-in admin client, as a (client, user) pair"""
    db.session.add(admin_user)
    db.session.commit()

    client.post("/login", data={"username": "admin", "password": "adminpass123"})

    yield client, admin_user


@pytest.fixture
def fake_salon_api():
    """Fake requests session standing in for the salon backend"""
    return FakeSalonSession()


@pytest.fixture
def importer_app(app, tmp_path, fake_salon_api):
    """App with a fresh wizard store and a salon API client on the fake session"""
    app.config.update(
        {
            "IMPORTER_ENABLED": True,
            "IMPORTER_UPLOAD_DIR": str(tmp_path / "uploads"),
            "IMPORT_MAX_UPLOAD_MB": 5,
        }
    )
    init_importer(app)
    state = app.extensions[IMPORTER_EXTENSION_KEY]
    state["store"] = WizardSessionStore()
    state["client"] = SalonApiClient.from_config(app.config, session=fake_salon_api)
    yield app
    state["store"] = WizardSessionStore()


@pytest.fixture
def validation_payload():
    return build_validation_payload


@pytest.fixture
def import_payload():
    return build_import_payload


@pytest.fixture
def json_response():
    """Factory for fake JSON responses"""

    def _factory(payload, status_code=200):
        return FakeResponse(status_code=status_code, json_data=payload)

    return _factory


@pytest.fixture
def raw_response():
    """Factory for fake non-JSON responses"""

    def _factory(status_code=200, content=b"", headers=None):
        return FakeResponse(status_code=status_code, content=content, headers=headers, invalid_json=True)

    return _factory


@pytest.fixture
def admin_logs():
    """Return a callable listing AdminLog actions in insertion order"""

    def _actions():
        return [entry.action for entry in AdminLog.query.order_by(AdminLog.id).all()]

    return _actions
