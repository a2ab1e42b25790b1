from __future__ import annotations

from pathlib import Path

import pytest

from salon_admin.importer.records import ImportResult, ValidationResult
from salon_admin.importer.session import (
    IllegalTransition,
    ImportSession,
    ImportStage,
    SelectedFile,
    WizardEvent,
    next_stage,
)


def _session(stage, *, with_file=True, validation=None, import_result=None):
    return ImportSession(
        user_id=1,
        stage=stage,
        selected_file=SelectedFile(Path("/tmp/upload.csv"), "appointments.csv", 120, "text/csv") if with_file else None,
        validation_result=validation,
        import_result=import_result,
    )


@pytest.fixture
def validation(validation_payload):
    def _build(**kwargs):
        return ValidationResult.from_payload(validation_payload(**kwargs))

    return _build


def test_validate_requires_selected_file():
    session = _session(ImportStage.UPLOAD, with_file=False)
    with pytest.raises(IllegalTransition) as excinfo:
        next_stage(session, WizardEvent.VALIDATE)
    assert excinfo.value.reason == "Select a CSV file first."


def test_validate_moves_upload_to_validating():
    assert next_stage(_session(ImportStage.UPLOAD), WizardEvent.VALIDATE) is ImportStage.VALIDATING


def test_validation_without_duplicates_goes_to_review(validation):
    session = _session(ImportStage.VALIDATING, validation=validation(duplicates=0))
    assert next_stage(session, WizardEvent.VALIDATION_PASSED) is ImportStage.REVIEW


def test_validation_with_duplicates_goes_to_duplicates(validation):
    session = _session(ImportStage.VALIDATING, validation=validation(total=5, valid=5, duplicates=2))
    assert next_stage(session, WizardEvent.VALIDATION_PASSED) is ImportStage.DUPLICATES


def test_validation_passed_needs_a_result():
    with pytest.raises(IllegalTransition):
        next_stage(_session(ImportStage.VALIDATING), WizardEvent.VALIDATION_PASSED)


def test_validation_failure_returns_to_upload():
    assert next_stage(_session(ImportStage.VALIDATING), WizardEvent.VALIDATION_FAILED) is ImportStage.UPLOAD


def test_continue_requires_valid_rows(validation):
    session = _session(ImportStage.REVIEW, validation=validation(total=3, valid=0))
    with pytest.raises(IllegalTransition) as excinfo:
        next_stage(session, WizardEvent.CONTINUE)
    assert "no valid rows" in str(excinfo.value)


def test_continue_from_review_enters_importing(validation):
    session = _session(ImportStage.REVIEW, validation=validation(total=3, valid=2))
    assert next_stage(session, WizardEvent.CONTINUE) is ImportStage.IMPORTING


def test_choose_strategy_enters_importing_only_from_duplicates(validation):
    session = _session(ImportStage.DUPLICATES, validation=validation(duplicates=1))
    assert next_stage(session, WizardEvent.CHOOSE_STRATEGY) is ImportStage.IMPORTING

    with pytest.raises(IllegalTransition):
        next_stage(_session(ImportStage.REVIEW), WizardEvent.CHOOSE_STRATEGY)


@pytest.mark.parametrize("stage", [ImportStage.REVIEW, ImportStage.DUPLICATES])
def test_back_edge_returns_to_upload(stage):
    assert next_stage(_session(stage), WizardEvent.BACK) is ImportStage.UPLOAD


@pytest.mark.parametrize(
    "stage",
    [ImportStage.UPLOAD, ImportStage.VALIDATING, ImportStage.IMPORTING, ImportStage.SUMMARY],
)
def test_back_is_illegal_elsewhere(stage):
    with pytest.raises(IllegalTransition):
        next_stage(_session(stage), WizardEvent.BACK)


def test_import_success_requires_result(import_payload):
    with pytest.raises(IllegalTransition):
        next_stage(_session(ImportStage.IMPORTING), WizardEvent.IMPORT_SUCCEEDED)

    result = ImportResult.from_payload(import_payload())
    session = _session(ImportStage.IMPORTING, import_result=result)
    assert next_stage(session, WizardEvent.IMPORT_SUCCEEDED) is ImportStage.SUMMARY


def test_import_failure_returns_to_upload():
    assert next_stage(_session(ImportStage.IMPORTING), WizardEvent.IMPORT_FAILED) is ImportStage.UPLOAD


def test_finish_only_from_summary():
    assert next_stage(_session(ImportStage.SUMMARY), WizardEvent.FINISH) is ImportStage.UPLOAD
    with pytest.raises(IllegalTransition):
        next_stage(_session(ImportStage.IMPORTING), WizardEvent.FINISH)


@pytest.mark.parametrize("stage", [ImportStage.VALIDATING, ImportStage.IMPORTING])
def test_close_blocked_while_busy(stage):
    session = _session(stage)
    assert session.can_close is False
    with pytest.raises(IllegalTransition):
        next_stage(session, WizardEvent.CLOSE)


def test_summary_is_unreachable_from_review(validation):
    session = _session(ImportStage.REVIEW, validation=validation())
    with pytest.raises(IllegalTransition) as excinfo:
        next_stage(session, WizardEvent.IMPORT_SUCCEEDED)
    assert excinfo.value.stage is ImportStage.REVIEW
    assert excinfo.value.event is WizardEvent.IMPORT_SUCCEEDED


def test_file_selection_only_on_upload_stage():
    assert next_stage(_session(ImportStage.UPLOAD), WizardEvent.SELECT_FILE) is ImportStage.UPLOAD
    with pytest.raises(IllegalTransition):
        next_stage(_session(ImportStage.REVIEW), WizardEvent.SELECT_FILE)


def test_stage_titles_follow_wizard_headings():
    assert ImportStage.UPLOAD.title == "Upload CSV File"
    assert ImportStage.DUPLICATES.title == "Resolve Duplicates"
    assert ImportStage.SUMMARY.title == "Import Complete"
