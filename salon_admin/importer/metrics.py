"""Prometheus metrics helpers for the import wizard."""

from __future__ import annotations

from typing import Literal

from prometheus_client import Counter, Histogram

_validation_counter = Counter(
    "salon_import_validations_total",
    "CSV import validation calls by outcome.",
    ["outcome"],
)
_import_counter = Counter(
    "salon_import_runs_total",
    "CSV import submissions by outcome and duplicate strategy.",
    ["outcome", "strategy"],
)
_import_rows_counter = Counter(
    "salon_import_rows_total",
    "Rows reported by the salon API for completed imports, by result.",
    ["result"],
)
_rejection_counter = Counter(
    "salon_import_file_rejections_total",
    "Uploads rejected before reaching the salon API, by reason.",
    ["reason"],
)
_import_duration = Histogram(
    "salon_import_duration_seconds",
    "Duration of the salon API import call in seconds.",
    buckets=(0.5, 1, 2, 5, 10, 30, 60, 120, 300),
)


def record_validation(outcome: Literal["success", "failure"]) -> None:
    """Increment the validation counter."""

    _validation_counter.labels(outcome=outcome).inc()


def record_import(
    *,
    outcome: Literal["success", "failure"],
    strategy: str,
    duration_seconds: float,
    created: int = 0,
    failed: int = 0,
    skipped: int = 0,
) -> None:
    """Capture metrics for one import submission."""

    _import_counter.labels(outcome=outcome, strategy=strategy).inc()
    _import_duration.observe(duration_seconds)
    if outcome == "success":
        _import_rows_counter.labels(result="created").inc(created)
        _import_rows_counter.labels(result="failed").inc(failed)
        _import_rows_counter.labels(result="skipped").inc(skipped)


def record_rejection(reason: str) -> None:
    _rejection_counter.labels(reason=reason).inc()
