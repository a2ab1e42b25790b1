"""
Import wizard session state and its transition table.

``next_stage`` is a pure function of the session and an event so transition
legality can be exercised without any request or template in play. The
controller is the only caller that assigns the result back to the session.
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from pathlib import Path

from .duplicates import DuplicateStrategy
from .progress import SyntheticProgress
from .records import ImportResult, ValidationResult


class ImportStage(str, enum.Enum):
    UPLOAD = "upload"
    VALIDATING = "validating"
    REVIEW = "review"
    DUPLICATES = "duplicates"
    IMPORTING = "importing"
    SUMMARY = "summary"

    @property
    def title(self) -> str:
        return STAGE_TITLES[self]

    @property
    def is_busy(self) -> bool:
        return self in (ImportStage.VALIDATING, ImportStage.IMPORTING)


STAGE_TITLES = {
    ImportStage.UPLOAD: "Upload CSV File",
    ImportStage.VALIDATING: "Validating...",
    ImportStage.REVIEW: "Review Validation Results",
    ImportStage.DUPLICATES: "Resolve Duplicates",
    ImportStage.IMPORTING: "Importing Appointments",
    ImportStage.SUMMARY: "Import Complete",
}


class WizardEvent(str, enum.Enum):
    SELECT_FILE = "select_file"
    CLEAR_FILE = "clear_file"
    VALIDATE = "validate"
    VALIDATION_PASSED = "validation_passed"
    VALIDATION_FAILED = "validation_failed"
    CONTINUE = "continue"
    NAVIGATE = "navigate"
    CHOOSE_STRATEGY = "choose_strategy"
    BACK = "back"
    IMPORT_SUCCEEDED = "import_succeeded"
    IMPORT_FAILED = "import_failed"
    FINISH = "finish"
    CLOSE = "close"


class ErrorSource(str, enum.Enum):
    UPLOAD = "upload"
    VALIDATION = "validation"
    IMPORT = "import"


class IllegalTransition(ValueError):
    """Raised when an event is not allowed from the session's current stage."""

    def __init__(self, stage: ImportStage, event: WizardEvent, reason: str | None = None) -> None:
        message = f"Cannot apply '{event.value}' while in '{stage.value}'."
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)
        self.stage = stage
        self.event = event
        self.reason = reason


@dataclass(frozen=True)
class SelectedFile:
    """An accepted upload persisted on disk until the wizard lets go of it."""

    path: Path
    filename: str
    size: int
    content_type: str | None = None


@dataclass
class ImportSession:
    """Everything one wizard run knows; owned by a single admin user."""

    user_id: int | None = None
    stage: ImportStage = ImportStage.UPLOAD
    selected_file: SelectedFile | None = None
    validation_result: ValidationResult | None = None
    duplicate_strategy: DuplicateStrategy = DuplicateStrategy.SKIP
    duplicate_index: int = 0
    import_result: ImportResult | None = None
    error: str | None = None
    error_source: ErrorSource | None = None
    submission_in_flight: bool = False
    progress: SyntheticProgress | None = None
    touched_at: float = field(default_factory=time.monotonic)

    @property
    def can_close(self) -> bool:
        return not self.stage.is_busy

    def touch(self, now: float | None = None) -> None:
        self.touched_at = time.monotonic() if now is None else now

    def clear_error(self) -> None:
        self.error = None
        self.error_source = None

    def fail(self, message: str, source: ErrorSource) -> None:
        self.error = message
        self.error_source = source


_BACK_SOURCES = (ImportStage.REVIEW, ImportStage.DUPLICATES)


def next_stage(session: ImportSession, event: WizardEvent) -> ImportStage:
    """
    Return the stage ``event`` leads to from ``session.stage``.

    Raises ``IllegalTransition`` when the pair is not in the table or when the
    destination's prerequisite data is missing.
    """

    stage = session.stage

    if event in (WizardEvent.SELECT_FILE, WizardEvent.CLEAR_FILE):
        if stage is not ImportStage.UPLOAD:
            raise IllegalTransition(stage, event)
        return ImportStage.UPLOAD

    if event is WizardEvent.VALIDATE:
        if stage is not ImportStage.UPLOAD:
            raise IllegalTransition(stage, event)
        if session.selected_file is None:
            raise IllegalTransition(stage, event, "Select a CSV file first.")
        return ImportStage.VALIDATING

    if event is WizardEvent.VALIDATION_PASSED:
        if stage is not ImportStage.VALIDATING:
            raise IllegalTransition(stage, event)
        result = session.validation_result
        if result is None:
            raise IllegalTransition(stage, event, "No validation result recorded.")
        if result.has_duplicates:
            if not result.duplicates:
                raise IllegalTransition(stage, event, "Duplicate review needs at least one match.")
            return ImportStage.DUPLICATES
        return ImportStage.REVIEW

    if event is WizardEvent.VALIDATION_FAILED:
        if stage is not ImportStage.VALIDATING:
            raise IllegalTransition(stage, event)
        return ImportStage.UPLOAD

    if event is WizardEvent.CONTINUE:
        if stage is not ImportStage.REVIEW:
            raise IllegalTransition(stage, event)
        result = session.validation_result
        if result is None or not result.can_continue:
            raise IllegalTransition(stage, event, "There are no valid rows to import.")
        if session.selected_file is None:
            raise IllegalTransition(stage, event, "The selected file is no longer available.")
        return ImportStage.IMPORTING

    if event is WizardEvent.NAVIGATE:
        if stage is not ImportStage.DUPLICATES:
            raise IllegalTransition(stage, event)
        return ImportStage.DUPLICATES

    if event is WizardEvent.CHOOSE_STRATEGY:
        if stage is not ImportStage.DUPLICATES:
            raise IllegalTransition(stage, event)
        if session.selected_file is None:
            raise IllegalTransition(stage, event, "The selected file is no longer available.")
        return ImportStage.IMPORTING

    if event is WizardEvent.BACK:
        if stage not in _BACK_SOURCES:
            raise IllegalTransition(stage, event)
        return ImportStage.UPLOAD

    if event is WizardEvent.IMPORT_SUCCEEDED:
        if stage is not ImportStage.IMPORTING:
            raise IllegalTransition(stage, event)
        if session.import_result is None:
            raise IllegalTransition(stage, event, "No import result recorded.")
        return ImportStage.SUMMARY

    if event is WizardEvent.IMPORT_FAILED:
        if stage is not ImportStage.IMPORTING:
            raise IllegalTransition(stage, event)
        return ImportStage.UPLOAD

    if event is WizardEvent.FINISH:
        if stage is not ImportStage.SUMMARY:
            raise IllegalTransition(stage, event)
        return ImportStage.UPLOAD

    if event is WizardEvent.CLOSE:
        if stage.is_busy:
            raise IllegalTransition(stage, event, "Wait for the current step to finish.")
        return ImportStage.UPLOAD

    raise IllegalTransition(stage, event)  # pragma: no cover - exhaustive above
