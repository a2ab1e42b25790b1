"""
Admin-facing routes for the appointment CSV import wizard.

Each POST maps to one controller action and redirects back to the wizard page,
which renders whatever stage the session is in. The import submission and
progress endpoints also speak JSON for the polling script on the importing
stage.
"""

from __future__ import annotations

import io
import json
from http import HTTPStatus

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    jsonify,
    make_response,
    redirect,
    render_template,
    request,
    send_file,
    url_for,
)
from flask_login import current_user

from salon_admin.forms import DuplicateStrategyForm, ImportUploadForm, WizardActionForm
from salon_admin.importer import IMPORTER_EXTENSION_KEY, get_import_controller, is_importer_enabled
from salon_admin.importer.client import TEMPLATE_FILENAME
from salon_admin.importer.errors import SalonApiError
from salon_admin.importer.records import ImportResult
from salon_admin.importer.reports import (
    IMPORT_REPORT_FILENAME,
    VALIDATION_REPORT_FILENAME,
    import_errors_csv,
    validation_errors_csv,
)
from salon_admin.importer.session import IllegalTransition, ImportStage
from salon_admin.importer.upload import format_file_size
from salon_admin.models import AdminLog
from salon_admin.utils.permissions import admin_required

admin_importer_blueprint = Blueprint("admin_importer", __name__, url_prefix="/admin/appointments/import")

TEMPLATE_DOWNLOAD_ERROR = "Failed to download template. Please try again."
SUMMARY_ERROR_LIMIT = 10


def _wants_json() -> bool:
    best = request.accept_mimetypes.best_match(["application/json", "text/html"])
    return request.is_json or best == "application/json"


def _controller():
    return get_import_controller(current_user.id)


def _wizard_redirect():
    return redirect(url_for("admin_importer.wizard"))


def _log_admin_action(action: str, details: dict) -> None:
    AdminLog.log_action(
        admin_user_id=current_user.id,
        action=action,
        details=json.dumps(details),
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )


def _csv_download(content: str, filename: str):
    response = make_response(content)
    response.headers["Content-Type"] = "text/csv; charset=utf-8"
    response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


@admin_importer_blueprint.before_request
def _importer_guard():
    if not is_importer_enabled(current_app):
        abort(HTTPStatus.NOT_FOUND)
    store = current_app.extensions.get(IMPORTER_EXTENSION_KEY, {}).get("store")
    if store is not None:
        store.expire_idle()


@admin_importer_blueprint.errorhandler(IllegalTransition)
def _illegal_transition(exc: IllegalTransition):
    current_app.logger.info(
        "Rejected import wizard action",
        extra={"stage": exc.stage.value, "wizard_event": exc.event.value, "reason": exc.reason},
    )
    message = exc.reason or "That action is not available at this step of the import."
    if _wants_json():
        return jsonify({"error": message, "stage": exc.stage.value}), HTTPStatus.CONFLICT
    flash(message, "warning")
    return _wizard_redirect()


# Wizard page ---------------------------------------------------------------------


@admin_importer_blueprint.get("/")
@admin_required
def wizard():
    controller = _controller()
    session = controller.session
    import_result = session.import_result
    return render_template(
        "admin/importer/wizard.html",
        wizard=session,
        stage=session.stage,
        stages=list(ImportStage),
        review=controller.duplicate_review(),
        upload_form=ImportUploadForm(),
        strategy_form=DuplicateStrategyForm(duplicate_strategy=session.duplicate_strategy.value),
        action_form=WizardActionForm(),
        max_upload_mb=current_app.config.get("IMPORT_MAX_UPLOAD_MB", 5),
        selected_file_size=format_file_size(session.selected_file.size) if session.selected_file else None,
        summary_errors=import_result.errors[:SUMMARY_ERROR_LIMIT] if import_result else (),
        progress_interval_ms=current_app.config.get("IMPORT_PROGRESS_INTERVAL_MS", 500),
        summary_delay_ms=current_app.config.get("IMPORT_SUMMARY_DELAY_MS", 1000),
        return_url=current_app.config.get("IMPORT_RETURN_URL", "/"),
    )


@admin_importer_blueprint.get("/template")
@admin_required
def download_template():
    try:
        template = _controller().client.download_template()
    except SalonApiError as exc:
        current_app.logger.warning(f"Import template download failed: {exc.message}")
        flash(TEMPLATE_DOWNLOAD_ERROR, "danger")
        return _wizard_redirect()

    return send_file(
        io.BytesIO(template.content),
        mimetype=template.content_type,
        as_attachment=True,
        download_name=TEMPLATE_FILENAME,
    )


# Upload stage --------------------------------------------------------------------


@admin_importer_blueprint.post("/file")
@admin_required
def select_file():
    files = [item for item in request.files.getlist("file") if item and item.filename]
    # A rejection is kept on the session and shown by the wizard page
    _controller().select_file(files[0] if files else None, file_count=len(files))
    return _wizard_redirect()


@admin_importer_blueprint.post("/file/clear")
@admin_required
def clear_file():
    _controller().clear_file()
    return _wizard_redirect()


@admin_importer_blueprint.post("/validate")
@admin_required
def validate_file():
    controller = _controller()
    stage = controller.validate()
    session = controller.session
    if stage in (ImportStage.REVIEW, ImportStage.DUPLICATES):
        result = session.validation_result
        _log_admin_action(
            "APPOINTMENT_IMPORT_VALIDATED",
            {
                "filename": session.selected_file.filename,
                "total_rows": result.total_rows,
                "valid_rows": result.valid_rows,
                "invalid_rows": result.invalid_rows,
                "duplicates_found": result.duplicates_found,
            },
        )
    return _wizard_redirect()


# Review and duplicate stages -------------------------------------------------------


@admin_importer_blueprint.post("/review/continue")
@admin_required
def continue_from_review():
    _controller().continue_from_review()
    return _wizard_redirect()


@admin_importer_blueprint.post("/duplicates/next")
@admin_required
def next_duplicate():
    _controller().next_duplicate()
    return _wizard_redirect()


@admin_importer_blueprint.post("/duplicates/previous")
@admin_required
def previous_duplicate():
    _controller().previous_duplicate()
    return _wizard_redirect()


@admin_importer_blueprint.post("/duplicates/strategy")
@admin_required
def choose_strategy():
    form = DuplicateStrategyForm()
    try:
        _controller().choose_strategy(form.duplicate_strategy.data)
    except IllegalTransition:
        raise
    except ValueError as exc:
        flash(str(exc), "danger")
    return _wizard_redirect()


@admin_importer_blueprint.post("/back")
@admin_required
def back():
    _controller().back()
    return _wizard_redirect()


# Import stage --------------------------------------------------------------------


@admin_importer_blueprint.post("/import/run")
@admin_required
def run_import():
    controller = _controller()
    outcome = controller.run_import()
    snapshot = controller.progress_snapshot().as_dict()
    wants_json = _wants_json()

    if not outcome.started:
        if wants_json:
            return (
                jsonify({"error": "Import already submitted.", "progress": snapshot}),
                HTTPStatus.CONFLICT,
            )
        return _wizard_redirect()

    if outcome.error is not None:
        session = controller.session
        _log_admin_action(
            "APPOINTMENT_IMPORT_FAILED",
            {
                "filename": session.selected_file.filename if session.selected_file else None,
                "duplicate_strategy": session.duplicate_strategy.value,
                "error": outcome.error,
            },
        )
        if wants_json:
            return (
                jsonify(
                    {
                        "ok": False,
                        "error": outcome.error,
                        "progress": snapshot,
                        "redirect_url": url_for("admin_importer.wizard"),
                    }
                ),
                HTTPStatus.BAD_GATEWAY,
            )
        return _wizard_redirect()

    if wants_json:
        return jsonify(
            {
                "ok": True,
                "result": outcome.result.as_dict(),
                "progress": snapshot,
                "redirect_url": url_for("admin_importer.wizard"),
                "summary_delay_ms": current_app.config.get("IMPORT_SUMMARY_DELAY_MS", 1000),
            }
        )
    return _wizard_redirect()


@admin_importer_blueprint.get("/import/progress")
@admin_required
def import_progress():
    return jsonify(_controller().progress_snapshot().as_dict())


# Error reports -------------------------------------------------------------------


@admin_importer_blueprint.get("/errors/validation.csv")
@admin_required
def validation_errors_report():
    result = _controller().session.validation_result
    if result is None or not result.errors:
        flash("There are no validation errors to download.", "info")
        return _wizard_redirect()
    return _csv_download(validation_errors_csv(result.errors), VALIDATION_REPORT_FILENAME)


@admin_importer_blueprint.get("/errors/import.csv")
@admin_required
def import_errors_report():
    result = _controller().session.import_result
    if result is None or not result.errors:
        flash("There are no import errors to download.", "info")
        return _wizard_redirect()
    return _csv_download(import_errors_csv(result.errors), IMPORT_REPORT_FILENAME)


# Summary and exit ----------------------------------------------------------------


def _on_import_success(result: ImportResult) -> None:
    _log_admin_action("APPOINTMENT_IMPORT_COMPLETED", result.as_dict())
    flash(
        f"Imported {result.created_count} of {result.total_rows} appointments. "
        "Refresh the appointment list to see the new entries.",
        "success",
    )


@admin_importer_blueprint.post("/finish")
@admin_required
def finish():
    _controller().finish(on_success=_on_import_success)
    return redirect(current_app.config.get("IMPORT_RETURN_URL", "/"))


@admin_importer_blueprint.post("/close")
@admin_required
def close():
    _controller().close()
    return redirect(current_app.config.get("IMPORT_RETURN_URL", "/"))
