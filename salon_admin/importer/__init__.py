"""
Appointment CSV import wizard.

``init_importer`` mounts the wizard blueprint when ``IMPORTER_ENABLED`` is on
and keeps the objects every request shares (session store, salon API client,
upload directory) under ``app.extensions['importer']``.
"""

from __future__ import annotations

from flask import Flask, current_app

from .client import SalonApiClient
from .controller import ImportController, ImportOutcome, ProgressSnapshot, progress_options_from_config
from .store import WizardSessionStore
from .upload import max_upload_bytes, resolve_upload_directory

IMPORTER_EXTENSION_KEY = "importer"
WIZARD_MENU_ITEM = {"label": "Import Appointments", "endpoint": "admin_importer.wizard"}

__all__ = [
    "IMPORTER_EXTENSION_KEY",
    "ImportController",
    "ImportOutcome",
    "ProgressSnapshot",
    "get_import_controller",
    "init_importer",
    "is_importer_enabled",
]


def is_importer_enabled(app: Flask | None = None) -> bool:
    """Return True when the import wizard feature flag is on."""
    return bool((app or current_app).config.get("IMPORTER_ENABLED", False))


def _importer_state(app: Flask) -> dict:
    if IMPORTER_EXTENSION_KEY not in app.extensions:
        app.extensions[IMPORTER_EXTENSION_KEY] = {
            "enabled": False,
            "store": None,
            "client": None,
            "upload_dir": None,
            "menu_items": (),
        }
        # Registered once; reads the flag per request so tests can toggle it
        app.context_processor(_navigation_context)
    return app.extensions[IMPORTER_EXTENSION_KEY]


def _navigation_context():
    if not is_importer_enabled():
        return {"importer_enabled": False, "importer_menu_items": ()}
    state = current_app.extensions.get(IMPORTER_EXTENSION_KEY, {})
    return {"importer_enabled": True, "importer_menu_items": state.get("menu_items", ())}


def init_importer(app: Flask) -> None:
    """
    Wire the import wizard into ``app``.

    The session store survives repeated calls (only its TTL is refreshed);
    the API client and upload directory are rebuilt from the current config.
    """
    from salon_admin.routes.admin_importer import admin_importer_blueprint

    state = _importer_state(app)
    state["enabled"] = is_importer_enabled(app)
    if not state["enabled"]:
        state["menu_items"] = ()
        app.logger.info("Import wizard disabled by IMPORTER_ENABLED; blueprint not registered.")
        return

    ttl_seconds = int(app.config.get("IMPORT_SESSION_TTL_MINUTES", 60)) * 60
    if state["store"] is None:
        state["store"] = WizardSessionStore(ttl_seconds=ttl_seconds)
    else:
        state["store"].ttl_seconds = ttl_seconds
    state["client"] = SalonApiClient.from_config(app.config, logger=app.logger)
    state["upload_dir"] = resolve_upload_directory(app.config.get("IMPORTER_UPLOAD_DIR"), app.instance_path)
    state["menu_items"] = (WIZARD_MENU_ITEM,)

    if admin_importer_blueprint.name not in app.blueprints:
        if getattr(app, "_got_first_request", False):
            app.logger.warning("Import wizard routes not mounted: the app is already serving requests.")
        else:
            app.register_blueprint(admin_importer_blueprint)

    app.logger.info(
        "Import wizard enabled against %s",
        state["client"].import_url,
        extra={"import_resource": state["client"].resource},
    )


def get_import_controller(user_id: int, app: Flask | None = None) -> ImportController:
    """Build a controller bound to ``user_id``'s wizard session."""
    app = app or current_app._get_current_object()
    state = _importer_state(app)
    if state["store"] is None:
        raise RuntimeError("Import wizard is not initialised; call init_importer(app) first.")
    return ImportController(
        store=state["store"],
        user_id=user_id,
        client=state["client"],
        upload_dir=state["upload_dir"],
        max_bytes=max_upload_bytes(app.config.get("IMPORT_MAX_UPLOAD_MB")),
        send_notifications=bool(app.config.get("IMPORT_SEND_NOTIFICATIONS", False)),
        progress_options=progress_options_from_config(app.config),
    )
