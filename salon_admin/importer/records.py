"""
Typed views over the salon API's CSV import payloads.

The backend owns parsing, validation and duplicate detection; these records
only give the wizard a validated, immutable shape to render and route on.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from .errors import MalformedResponseError

IDENTIFYING_FIELDS: tuple[str, ...] = ("customer_name", "pet_name", "service_name", "date", "time")
PREVIEW_LIMIT = 10


class MatchConfidence(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"

    @property
    def label(self) -> str:
        return self.value.title()


def _coerce_count(payload: Mapping[str, Any], key: str, *, default: int | None = 0) -> int:
    value = payload.get(key, default)
    if value is None:
        raise MalformedResponseError(f"Missing '{key}' in import response.")
    if isinstance(value, bool):
        raise MalformedResponseError(f"'{key}' must be a non-negative integer.")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise MalformedResponseError(f"'{key}' must be a non-negative integer.") from exc
    if number < 0:
        raise MalformedResponseError(f"'{key}' must be a non-negative integer.")
    return number


def _coerce_list(payload: Mapping[str, Any], key: str) -> Sequence[Any]:
    value = payload.get(key)
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise MalformedResponseError(f"'{key}' must be a list.")
    return value


def _require_mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise MalformedResponseError(f"{what} must be an object.")
    return value


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _row_number(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class RowIssue:
    """One validation or import problem reported by the backend."""

    field: str
    message: str
    row_number: int | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "RowIssue":
        data = _require_mapping(payload, "Row error")
        return cls(
            field=_text(data.get("field")) or "general",
            message=_text(data.get("message")),
            row_number=_row_number(data.get("rowNumber", data.get("row"))),
        )


@dataclass(frozen=True)
class IncomingRow:
    """A CSV row as echoed back by the backend."""

    row_number: int
    fields: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "IncomingRow":
        data = _require_mapping(payload, "CSV row")
        row_number = _row_number(data.get("rowNumber"))
        if row_number is None:
            raise MalformedResponseError("CSV row is missing 'rowNumber'.")
        fields = {
            str(key): _text(value)
            for key, value in data.items()
            if key not in ("rowNumber", "isValid", "errors", "warnings") and not isinstance(value, (dict, list))
        }
        return cls(row_number=row_number, fields=fields)

    def get(self, name: str) -> str:
        return self.fields.get(name, "")

    @property
    def identifying_fields(self) -> dict[str, str]:
        return {name: self.get(name) for name in IDENTIFYING_FIELDS}


@dataclass(frozen=True)
class ExistingRecord:
    """The stored appointment an incoming row collides with."""

    id: str
    status: str
    fields: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "ExistingRecord":
        data = _require_mapping(payload, "Existing record")
        record_id = _text(data.get("id"))
        if not record_id:
            raise MalformedResponseError("Existing record is missing 'id'.")
        fields = {name: _text(data.get(name)) for name in IDENTIFYING_FIELDS}
        return cls(id=record_id, status=_text(data.get("status")), fields=fields)

    @property
    def short_id(self) -> str:
        return self.id[:8]

    def get(self, name: str) -> str:
        return self.fields.get(name, "")


@dataclass(frozen=True)
class DuplicateMatch:
    existing: ExistingRecord
    incoming: IncomingRow
    confidence: MatchConfidence

    @classmethod
    def from_payload(cls, payload: Any) -> "DuplicateMatch":
        data = _require_mapping(payload, "Duplicate match")
        existing_raw = data.get("existingAppointment", data.get("existingRecord"))
        incoming_raw = data.get("csvRow", data.get("incomingRow"))
        confidence_raw = _text(data.get("matchConfidence")).lower()
        try:
            confidence = MatchConfidence(confidence_raw)
        except ValueError as exc:
            raise MalformedResponseError(f"Unknown match confidence '{confidence_raw}'.") from exc
        return cls(
            existing=ExistingRecord.from_payload(existing_raw),
            incoming=IncomingRow.from_payload(incoming_raw),
            confidence=confidence,
        )


@dataclass(frozen=True)
class ValidationResult:
    """Server verdict on an uploaded file; immutable once produced."""

    total_rows: int
    valid_rows: int
    invalid_rows: int
    duplicates_found: int
    duplicates: tuple[DuplicateMatch, ...] = ()
    preview: tuple[IncomingRow, ...] = ()
    errors: tuple[RowIssue, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> "ValidationResult":
        data = _require_mapping(payload, "Validation response")
        duplicates = tuple(DuplicateMatch.from_payload(item) for item in _coerce_list(data, "duplicates"))
        duplicates_found = _coerce_count(data, "duplicates_found", default=len(duplicates))
        if duplicates_found > 0 and not duplicates:
            raise MalformedResponseError("Validation response reports duplicates but lists none.")
        total_rows = _coerce_count(data, "total_rows")
        valid_rows = _coerce_count(data, "valid_rows")
        invalid_rows = _coerce_count(data, "invalid_rows", default=max(total_rows - valid_rows, 0))
        return cls(
            total_rows=total_rows,
            valid_rows=valid_rows,
            invalid_rows=invalid_rows,
            duplicates_found=duplicates_found,
            duplicates=duplicates,
            preview=tuple(IncomingRow.from_payload(item) for item in _coerce_list(data, "preview")),
            errors=tuple(RowIssue.from_payload(item) for item in _coerce_list(data, "errors")),
        )

    @property
    def has_duplicates(self) -> bool:
        return self.duplicates_found > 0

    @property
    def can_continue(self) -> bool:
        return self.valid_rows > 0

    @property
    def preview_rows(self) -> tuple[IncomingRow, ...]:
        return self.preview[:PREVIEW_LIMIT]


@dataclass(frozen=True)
class ImportResult:
    """Outcome of the batch import call; terminal for the wizard run."""

    total_rows: int
    created_count: int
    failed_count: int
    skipped_count: int = 0
    customers_created: int = 0
    pets_created: int = 0
    inactive_profiles_created: int = 0
    valid_rows: int = 0
    invalid_rows: int = 0
    duplicates_found: int = 0
    errors: tuple[RowIssue, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> "ImportResult":
        data = _require_mapping(payload, "Import response")
        result = cls(
            total_rows=_coerce_count(data, "total_rows", default=None),
            created_count=_coerce_count(data, "created_count", default=None),
            failed_count=_coerce_count(data, "failed_count", default=None),
            skipped_count=_coerce_count(data, "skipped_count"),
            customers_created=_coerce_count(data, "customers_created"),
            pets_created=_coerce_count(data, "pets_created"),
            inactive_profiles_created=_coerce_count(data, "inactive_profiles_created"),
            valid_rows=_coerce_count(data, "valid_rows"),
            invalid_rows=_coerce_count(data, "invalid_rows"),
            duplicates_found=_coerce_count(data, "duplicates_found"),
            errors=tuple(RowIssue.from_payload(item) for item in _coerce_list(data, "errors")),
        )
        if result.created_count + result.failed_count > result.total_rows:
            raise MalformedResponseError(
                "Import response tallies exceed the number of rows processed "
                f"({result.created_count} created + {result.failed_count} failed > {result.total_rows})."
            )
        return result

    @property
    def has_errors(self) -> bool:
        return self.failed_count > 0

    @property
    def not_imported_count(self) -> int:
        return self.failed_count + self.skipped_count

    def as_dict(self) -> dict[str, int]:
        return {
            "total_rows": self.total_rows,
            "created_count": self.created_count,
            "failed_count": self.failed_count,
            "skipped_count": self.skipped_count,
            "customers_created": self.customers_created,
            "pets_created": self.pets_created,
            "inactive_profiles_created": self.inactive_profiles_created,
        }
