"""
Import wizard controller.

Every stage action goes through ``ImportController``; it is the only code that
assigns ``ImportSession.stage``. Mutations happen under the session lock held
by ``WizardSessionStore`` while calls to the salon API run outside it, so a
slow backend never blocks progress polling for the same admin.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping

from werkzeug.datastructures import FileStorage

from .client import IMPORT_FALLBACK, VALIDATION_FALLBACK, SalonApiClient
from .duplicates import DuplicateReview, DuplicateStrategy
from .errors import SalonApiError
from .metrics import record_import, record_rejection, record_validation
from .progress import DEFAULT_CAP, DEFAULT_INITIAL, ProgressStatus, SyntheticProgress
from .records import ImportResult
from .session import ErrorSource, ImportSession, ImportStage, SelectedFile, WizardEvent, next_stage
from .store import WizardSessionStore
from .upload import (
    DEFAULT_MAX_UPLOAD_MB,
    UploadRejection,
    cleanup_upload,
    inspect_upload,
    measure_upload,
    persist_upload,
)

SESSION_ENDED = "The import wizard was closed before the salon backend replied."


@dataclass(frozen=True)
class ImportOutcome:
    """What a call to ``run_import`` did; ``started`` is False for a repeat call."""

    started: bool
    result: ImportResult | None = None
    error: str | None = None


@dataclass(frozen=True)
class ProgressSnapshot:
    stage: ImportStage
    percent: int
    status: ProgressStatus
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage.value,
            "percent": self.percent,
            "status": self.status,
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "error": self.error,
        }


def progress_options_from_config(config: Mapping[str, Any]) -> dict[str, Any]:
    cap = int(config.get("IMPORT_PROGRESS_CAP", DEFAULT_CAP))
    return {
        "interval": int(config.get("IMPORT_PROGRESS_INTERVAL_MS", 500)) / 1000.0,
        "step": int(config.get("IMPORT_PROGRESS_STEP", 10)),
        "initial": min(DEFAULT_INITIAL, cap),
        "cap": cap,
    }


class ImportController:
    """Drives one admin's wizard session through its stages."""

    def __init__(
        self,
        *,
        store: WizardSessionStore,
        user_id: int,
        client: SalonApiClient,
        upload_dir: Path,
        max_bytes: int = DEFAULT_MAX_UPLOAD_MB * 1024 * 1024,
        send_notifications: bool = False,
        progress_options: Mapping[str, Any] | None = None,
        clock: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.user_id = user_id
        self.client = client
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes
        self.send_notifications = send_notifications
        self.progress_options = dict(progress_options or {})
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

    # Read helpers ---------------------------------------------------------------

    @property
    def session(self) -> ImportSession:
        return self.store.get_or_create(self.user_id)

    def duplicate_review(self) -> DuplicateReview | None:
        session = self.session
        result = session.validation_result
        if session.stage is not ImportStage.DUPLICATES or result is None:
            return None
        return DuplicateReview(result.duplicates, session.duplicate_index)

    def progress_snapshot(self, now: float | None = None) -> ProgressSnapshot:
        with self.store.locked(self.user_id) as session:
            now = self.clock() if now is None else now
            progress = session.progress
            if progress is not None:
                percent = progress.value_at(now)
                status = progress.status_at(now)
            elif session.stage is ImportStage.SUMMARY:
                percent, status = 100, "complete"
            else:
                percent, status = 0, "preparing"

            result = session.import_result
            error = session.error if session.error_source is ErrorSource.IMPORT else None
            return ProgressSnapshot(
                stage=session.stage,
                percent=percent,
                status=status,
                processed=result.total_rows if result else 0,
                succeeded=result.created_count if result else 0,
                failed=result.failed_count if result else 0,
                error=error,
            )

    # Upload stage ---------------------------------------------------------------

    def select_file(self, file_storage: FileStorage | None, *, file_count: int = 1) -> UploadRejection | None:
        """
        Accept or reject a candidate upload.

        An accepted file replaces any previous selection and keeps the wizard in
        the upload stage; validation starts only from ``validate``.
        """

        filename = Path(file_storage.filename).name if file_storage and file_storage.filename else None
        size = measure_upload(file_storage) if filename else None
        content_type = file_storage.mimetype if file_storage is not None else None
        rejection = inspect_upload(
            filename,
            size=size,
            content_type=content_type,
            max_bytes=self.max_bytes,
            file_count=file_count,
        )

        with self.store.locked(self.user_id) as session:
            session.stage = next_stage(session, WizardEvent.SELECT_FILE)
            if rejection is not None:
                session.fail(rejection.message, ErrorSource.UPLOAD)
                record_rejection(rejection.reason.value)
                self.logger.info(
                    "Import upload rejected",
                    extra={"user_id": self.user_id, "reason": rejection.reason.value, "import_filename": filename},
                )
                return rejection

            stored_path = persist_upload(file_storage, self.upload_dir)
            previous = session.selected_file
            session.selected_file = SelectedFile(
                path=stored_path,
                filename=filename,
                size=size,
                content_type=content_type,
            )
            session.validation_result = None
            session.import_result = None
            session.duplicate_index = 0
            session.clear_error()
            if previous is not None:
                cleanup_upload(previous.path)
            self.logger.debug(
                "Import upload accepted",
                extra={"user_id": self.user_id, "import_filename": filename, "size_bytes": size},
            )
        return None

    def clear_file(self) -> None:
        with self.store.locked(self.user_id) as session:
            session.stage = next_stage(session, WizardEvent.CLEAR_FILE)
            if session.selected_file is not None:
                cleanup_upload(session.selected_file.path)
            session.selected_file = None
            session.validation_result = None
            session.clear_error()

    def validate(self) -> ImportStage:
        """Send the selected file to the salon API and route on the verdict."""

        with self.store.locked(self.user_id) as session:
            session.stage = next_stage(session, WizardEvent.VALIDATE)
            session.clear_error()
            session.validation_result = None
            session.import_result = None
            session.duplicate_index = 0
            selected = session.selected_file
            dispatched = session

        result = None
        error: str | None = None
        try:
            result = self.client.validate_file(selected.path, selected.filename)
        except SalonApiError as exc:
            error = exc.message
        except Exception:
            self.logger.exception("Unexpected error validating import file", extra={"user_id": self.user_id})
            error = VALIDATION_FALLBACK

        with self.store.locked(self.user_id) as session:
            if session is not dispatched:
                self._log_session_ended("validation", selected)
                return session.stage
            if error is not None:
                session.stage = next_stage(session, WizardEvent.VALIDATION_FAILED)
                if session.selected_file is not None:
                    cleanup_upload(session.selected_file.path)
                session.selected_file = None
                session.validation_result = None
                session.fail(error, ErrorSource.VALIDATION)
                record_validation("failure")
                self.logger.warning(
                    f"Import validation failed: {error}",
                    extra={"user_id": self.user_id, "import_filename": selected.filename},
                )
                return session.stage

            session.validation_result = result
            session.stage = next_stage(session, WizardEvent.VALIDATION_PASSED)
            record_validation("success")
            return session.stage

    # Review and duplicate stages ----------------------------------------------------

    def continue_from_review(self) -> ImportStage:
        with self.store.locked(self.user_id) as session:
            session.stage = next_stage(session, WizardEvent.CONTINUE)
            self._prepare_import(session)
            return session.stage

    def next_duplicate(self) -> DuplicateReview:
        return self._navigate(forward=True)

    def previous_duplicate(self) -> DuplicateReview:
        return self._navigate(forward=False)

    def _navigate(self, *, forward: bool) -> DuplicateReview:
        with self.store.locked(self.user_id) as session:
            session.stage = next_stage(session, WizardEvent.NAVIGATE)
            review = DuplicateReview(session.validation_result.duplicates, session.duplicate_index)
            if forward:
                review.next()
            else:
                review.previous()
            session.duplicate_index = review.index
            return review

    def choose_strategy(self, strategy: DuplicateStrategy | str) -> ImportStage:
        strategy = DuplicateStrategy.coerce(strategy)
        with self.store.locked(self.user_id) as session:
            session.stage = next_stage(session, WizardEvent.CHOOSE_STRATEGY)
            session.duplicate_strategy = strategy
            self._prepare_import(session)
            return session.stage

    def back(self) -> ImportStage:
        with self.store.locked(self.user_id) as session:
            session.stage = next_stage(session, WizardEvent.BACK)
            session.validation_result = None
            session.duplicate_index = 0
            session.clear_error()
            return session.stage

    @staticmethod
    def _prepare_import(session: ImportSession) -> None:
        session.import_result = None
        session.submission_in_flight = False
        session.progress = None
        session.clear_error()

    def _log_session_ended(self, call: str, selected: SelectedFile, *, backend_error: str | None = None) -> None:
        # The session was reset or discarded mid-call; the reply belongs to nobody
        self.logger.warning(
            f"Salon API {call} reply dropped: wizard session ended while the call was in flight",
            extra={
                "user_id": self.user_id,
                "import_filename": selected.filename,
                "backend_error": backend_error,
            },
        )

    # Import stage -----------------------------------------------------------------

    def begin_import(self) -> bool:
        """
        Claim the single submission allowed for this entry into ``importing``.

        Returns False when the submission is already in flight or has finished.
        """

        with self.store.locked(self.user_id) as session:
            if (
                session.stage is not ImportStage.IMPORTING
                or session.submission_in_flight
                or session.import_result is not None
            ):
                return False
            session.submission_in_flight = True
            session.progress = SyntheticProgress.start(clock=self.clock, **self.progress_options)
            return True

    def run_import(self) -> ImportOutcome:
        if not self.begin_import():
            return ImportOutcome(started=False)

        with self.store.locked(self.user_id) as session:
            selected = session.selected_file
            strategy = session.duplicate_strategy
            dispatched = session

        started_at = self.clock()
        result = None
        error: str | None = None
        try:
            result = self.client.submit_import(
                selected.path,
                selected.filename,
                strategy,
                send_notifications=self.send_notifications,
            )
        except SalonApiError as exc:
            error = exc.message
        except Exception:
            self.logger.exception("Unexpected error submitting import", extra={"user_id": self.user_id})
            error = IMPORT_FALLBACK
        duration = max(0.0, self.clock() - started_at)

        with self.store.locked(self.user_id) as session:
            if session is not dispatched:
                self._log_session_ended("import", selected, backend_error=error)
                return ImportOutcome(started=True, result=result, error=SESSION_ENDED)
            session.submission_in_flight = False
            if error is not None:
                session.stage = next_stage(session, WizardEvent.IMPORT_FAILED)
                session.progress = None
                session.validation_result = None
                session.duplicate_index = 0
                session.fail(error, ErrorSource.IMPORT)
                record_import(outcome="failure", strategy=strategy.value, duration_seconds=duration)
                self.logger.warning(
                    f"Import failed: {error}",
                    extra={"user_id": self.user_id, "duplicate_strategy": strategy.value},
                )
                return ImportOutcome(started=True, error=error)

            session.import_result = result
            session.progress.complete()
            session.stage = next_stage(session, WizardEvent.IMPORT_SUCCEEDED)
            record_import(
                outcome="success",
                strategy=strategy.value,
                duration_seconds=duration,
                created=result.created_count,
                failed=result.failed_count,
                skipped=result.skipped_count,
            )
            return ImportOutcome(started=True, result=result)

    # Summary and exit -------------------------------------------------------------

    def finish(self, on_success: Callable[[ImportResult], Any] | None = None) -> ImportResult:
        """Reset the wizard after the summary and hand the result to ``on_success``."""

        with self.store.locked(self.user_id) as session:
            next_stage(session, WizardEvent.FINISH)
            result = session.import_result
            self.store.reset(self.user_id)

        if on_success is not None:
            on_success(result)
        return result

    def close(self) -> ImportSession:
        with self.store.locked(self.user_id) as session:
            next_stage(session, WizardEvent.CLOSE)
            return self.store.reset(self.user_id)
