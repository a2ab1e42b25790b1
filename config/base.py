# config/base.py
import os
import warnings
from datetime import timedelta

FLASK_ENV = os.environ.get("FLASK_ENV", "development")

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_SQLITE_ENGINE_OPTIONS = {"connect_args": {"check_same_thread": False, "timeout": 5}}
_DEV_SECRET_KEY = "salon-admin-dev-only-secret"
_KEY_HINT = 'python -c "import secrets; print(secrets.token_hex(32))"'


def _coerce_bool(value, default=False):
    """Read an on/off style environment value, returning ``default`` when unrecognised."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    flag = str(value).strip().lower()
    if flag in {"1", "true", "yes", "on"}:
        return True
    if flag in {"0", "false", "no", "off"}:
        return False
    return default


def _coerce_int(value, default, *, minimum=0):
    """
    Read a whole number from the environment.

    Blank, non-numeric and below-``minimum`` values all yield ``default`` so a
    typo in ``.env`` never takes the importer down.
    """
    text = "" if value is None else str(value).strip()
    if not text:
        return default
    try:
        number = int(text)
    except ValueError:
        return default
    return number if number >= minimum else default


def _resolve_secret_key(flask_env):
    """Pick the signing key for sessions and CSRF tokens."""
    key = os.environ.get("SECRET_KEY")
    if key:
        return key
    if flask_env == "production":
        raise ValueError(f"SECRET_KEY must be set when FLASK_ENV=production. Generate one with: {_KEY_HINT}")
    if flask_env == "testing":
        return "salon-admin-testing-secret"
    warnings.warn(
        "SECRET_KEY is unset; falling back to a fixed development key. Never deploy with it.",
        UserWarning,
    )
    return _DEV_SECRET_KEY


def _development_database_uri():
    instance_dir = os.path.join(_PROJECT_ROOT, "instance")
    os.makedirs(instance_dir, exist_ok=True)
    # sqlite:/// followed by an absolute path, forward slashes on every platform
    db_file = os.path.join(instance_dir, "salon_admin_dev.db").replace("\\", "/")
    return f"sqlite:///{db_file}"


def _production_database_uri():
    uri = os.environ.get("DATABASE_URL")
    # Heroku-style URLs use the scheme SQLAlchemy 1.4+ no longer accepts
    if uri and uri.startswith("postgres://"):
        uri = "postgresql://" + uri[len("postgres://") :]
    return uri


class Config:
    SECRET_KEY = _resolve_secret_key(FLASK_ENV)

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SQLALCHEMY_ECHO = False

    # Salon backend REST API
    SALON_API_BASE_URL = os.environ.get("SALON_API_BASE_URL", "http://localhost:3000")
    SALON_API_TOKEN = os.environ.get("SALON_API_TOKEN")
    # 0 disables the timeout and waits on the backend indefinitely
    SALON_API_TIMEOUT_SECONDS = _coerce_int(os.environ.get("SALON_API_TIMEOUT_SECONDS"), 120)

    # CSV import wizard
    IMPORTER_ENABLED = _coerce_bool(os.environ.get("IMPORTER_ENABLED"), default=True)
    IMPORTER_UPLOAD_DIR = os.environ.get("IMPORTER_UPLOAD_DIR")
    IMPORT_RESOURCE = os.environ.get("IMPORT_RESOURCE", "appointments").strip().strip("/") or "appointments"
    IMPORT_MAX_UPLOAD_MB = _coerce_int(os.environ.get("IMPORT_MAX_UPLOAD_MB"), 5, minimum=1)
    IMPORT_SEND_NOTIFICATIONS = _coerce_bool(os.environ.get("IMPORT_SEND_NOTIFICATIONS"), default=False)
    IMPORT_PROGRESS_INTERVAL_MS = _coerce_int(os.environ.get("IMPORT_PROGRESS_INTERVAL_MS"), 500, minimum=1)
    IMPORT_PROGRESS_STEP = _coerce_int(os.environ.get("IMPORT_PROGRESS_STEP"), 10, minimum=1)
    IMPORT_PROGRESS_CAP = min(99, _coerce_int(os.environ.get("IMPORT_PROGRESS_CAP"), 90, minimum=1))
    IMPORT_SUMMARY_DELAY_MS = _coerce_int(os.environ.get("IMPORT_SUMMARY_DELAY_MS"), 1000)
    IMPORT_SESSION_TTL_MINUTES = _coerce_int(os.environ.get("IMPORT_SESSION_TTL_MINUTES"), 60, minimum=1)
    IMPORT_RETURN_URL = os.environ.get("IMPORT_RETURN_URL", "/admin/appointments")

    # Login cookie
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = False

    WTF_CSRF_ENABLED = True


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL") or _development_database_uri()
    if SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
        SQLALCHEMY_ENGINE_OPTIONS = _SQLITE_ENGINE_OPTIONS


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = _SQLITE_ENGINE_OPTIONS
    SALON_API_BASE_URL = "http://salon-api.test"
    WTF_CSRF_ENABLED = False


class ProductionConfig(Config):
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = _production_database_uri()
    SESSION_COOKIE_SECURE = True
