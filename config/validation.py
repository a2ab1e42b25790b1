# config/validation.py

"""
Startup checks for the environment a production deployment runs with.

Development and testing run on built-in defaults, so only ``production``
is checked.
"""

import os
import sys
from typing import List, Tuple
from urllib.parse import urlparse

PLACEHOLDER_SECRET_KEYS = frozenset({"your-secret-key", "your_secret_key"})


def _check_secret_key(errors: List[str]) -> None:
    secret_key = os.environ.get("SECRET_KEY", "")
    if not secret_key or secret_key in PLACEHOLDER_SECRET_KEYS:
        errors.append(
            "SECRET_KEY is required in production and must not be the default value. "
            'Generate a secure key: python -c "import secrets; print(secrets.token_hex(32))"'
        )


def _check_database_url(errors: List[str]) -> None:
    if not os.environ.get("DATABASE_URL"):
        errors.append("DATABASE_URL is required in production. Point it at the admin PostgreSQL database.")


def _check_salon_api(errors: List[str]) -> None:
    base_url = os.environ.get("SALON_API_BASE_URL", "")
    if not base_url:
        errors.append("SALON_API_BASE_URL is required in production.")
    else:
        parsed = urlparse(base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append("SALON_API_BASE_URL must be an absolute http(s) URL.")

    raw_timeout = (os.environ.get("SALON_API_TIMEOUT_SECONDS") or "").strip()
    if not raw_timeout:
        return
    try:
        timeout = int(raw_timeout)
    except ValueError:
        errors.append("SALON_API_TIMEOUT_SECONDS must be an integer.")
        return
    if timeout < 0:
        errors.append("SALON_API_TIMEOUT_SECONDS must be zero or a positive integer.")


def validate_environment(flask_env: str = None) -> Tuple[bool, List[str]]:
    """
    Collect every configuration problem for ``flask_env``.

    Args:
        flask_env: development, production or testing. Defaults to ``FLASK_ENV``.

    Returns:
        ``(is_valid, errors)``; errors are human-readable lines.
    """
    flask_env = flask_env or os.environ.get("FLASK_ENV", "development")
    if flask_env != "production":
        return True, []

    errors: List[str] = []
    _check_secret_key(errors)
    _check_database_url(errors)
    _check_salon_api(errors)
    return not errors, errors


def validate_and_exit(flask_env: str = None) -> None:
    """Print the problems found by :func:`validate_environment` and stop the process."""
    is_valid, errors = validate_environment(flask_env)
    if is_valid:
        return

    banner = "-" * 72
    lines = [banner, "Salon admin cannot start: fix the environment settings below.", banner]
    lines.extend(f"  * {error}" for error in errors)
    lines.append(banner)
    print("\n".join(lines), file=sys.stderr)
    sys.exit(1)
