# app.py

import logging
import os

from dotenv import load_dotenv
from flask import Flask, Response, render_template
from flask_login import LoginManager
from flask_wtf import CSRFProtect
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import event

# .env has to be loaded before config reads os.environ
load_dotenv()

from config import CONFIG_BY_ENV, FLASK_ENV  # noqa: E402
from config.validation import validate_and_exit  # noqa: E402
from salon_admin.importer import init_importer  # noqa: E402
from salon_admin.models import User, db  # noqa: E402
from salon_admin.routes import init_routes  # noqa: E402
from salon_admin.utils.logging_config import setup_logging  # noqa: E402

logger = logging.getLogger(__name__)

validate_and_exit(FLASK_ENV)

app = Flask(__name__)
for config_object in CONFIG_BY_ENV.get(FLASK_ENV, CONFIG_BY_ENV["development"]):
    app.config.from_object(config_object)

db.init_app(app)
csrf = CSRFProtect(app)

login_manager = LoginManager(app)
login_manager.login_view = "login"
login_manager.login_message_category = "info"
app.extensions["login_manager"] = login_manager

setup_logging(app)


def _sqlite_pragma_hook(*, foreign_keys: bool):
    """Build a ``connect`` listener that tunes each new SQLite connection."""

    def _on_connect(dbapi_connection, connection_record):  # pragma: no cover - driver callback
        cursor = dbapi_connection.cursor()
        pragmas = ["journal_mode=WAL", "busy_timeout=5000"]
        if foreign_keys:
            pragmas.append("foreign_keys=ON")
        try:
            for pragma in pragmas:
                cursor.execute(f"PRAGMA {pragma}")
        except Exception as exc:
            logger.warning("Could not apply SQLite pragmas: %s", exc)
        finally:
            cursor.close()

    return _on_connect


with app.app_context():
    engine = db.engine
    if engine.url.drivername.startswith("sqlite") and not getattr(engine, "_salon_pragmas", False):
        event.listen(engine, "connect", _sqlite_pragma_hook(foreign_keys=not app.testing))
        engine._salon_pragmas = True  # type: ignore[attr-defined]
    # Tests build and drop their own schema
    if not app.testing:
        db.create_all()


@login_manager.user_loader
def load_user(user_id):
    try:
        return db.session.get(User, int(user_id))
    except (TypeError, ValueError):
        return None


init_routes(app)
init_importer(app)


if app.config.get("MONITORING_ENABLED", False):

    @app.route(app.config.get("METRICS_ENDPOINT", "/metrics"))
    def metrics():
        return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)


@app.errorhandler(404)
def not_found_error(error):
    return render_template("errors/404.html"), 404


@app.errorhandler(500)
def internal_error(error):
    db.session.rollback()
    return render_template("errors/500.html"), 500


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
