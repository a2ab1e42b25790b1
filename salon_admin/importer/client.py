"""
HTTP client for the salon API's appointment CSV import endpoints.

The backend owns parsing, validation, duplicate detection and persistence; this
client only moves the uploaded file across and turns responses into records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import requests

from .duplicates import DuplicateStrategy
from .errors import MalformedResponseError, SalonApiError
from .records import ImportResult, ValidationResult

DEFAULT_RESOURCE = "appointments"
DEFAULT_TIMEOUT_SECONDS = 120.0
TEMPLATE_FILENAME = "appointment-import-template.csv"

VALIDATION_FALLBACK = "Validation failed"
IMPORT_FALLBACK = "Import failed"
TEMPLATE_FALLBACK = "Failed to download template"
TIMEOUT_MESSAGE = "The salon API did not respond in time."
UNREACHABLE_MESSAGE = "Could not reach the salon API."


@dataclass(frozen=True)
class TemplateFile:
    content: bytes
    filename: str = TEMPLATE_FILENAME
    content_type: str = "text/csv"


class SalonApiClient:
    """Thin wrapper over the three import endpoints."""

    def __init__(
        self,
        *,
        base_url: str,
        token: str | None = None,
        resource: str = DEFAULT_RESOURCE,
        timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.resource = (resource or DEFAULT_RESOURCE).strip("/")
        # requests treats None as "wait forever"
        self.timeout = timeout if timeout else None
        self.session = session or requests.Session()
        self.logger = logger or logging.getLogger(__name__)
        self._headers: dict[str, str] = {"Accept": "application/json"}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_config(cls, config: Mapping[str, Any], **kwargs) -> "SalonApiClient":
        return cls(
            base_url=config.get("SALON_API_BASE_URL", ""),
            token=config.get("SALON_API_TOKEN") or None,
            resource=config.get("IMPORT_RESOURCE") or DEFAULT_RESOURCE,
            timeout=config.get("SALON_API_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
            **kwargs,
        )

    # Public API -----------------------------------------------------------------

    @property
    def import_url(self) -> str:
        return f"{self.base_url}/api/admin/{self.resource}/import"

    def download_template(self) -> TemplateFile:
        response = self._send("GET", f"{self.import_url}/template", fallback=TEMPLATE_FALLBACK)
        content_type = response.headers.get("Content-Type", "text/csv").split(";", 1)[0].strip()
        return TemplateFile(content=response.content, content_type=content_type or "text/csv")

    def validate_file(self, path: Path, filename: str) -> ValidationResult:
        with open(path, "rb") as handle:
            response = self._send(
                "POST",
                f"{self.import_url}/validate",
                fallback=VALIDATION_FALLBACK,
                files={"file": (filename, handle, "text/csv")},
            )
        result = ValidationResult.from_payload(self._json(response))
        self.logger.info(
            "Import file validated",
            extra={
                "import_filename": filename,
                "total_rows": result.total_rows,
                "valid_rows": result.valid_rows,
                "duplicates_found": result.duplicates_found,
            },
        )
        return result

    def submit_import(
        self,
        path: Path,
        filename: str,
        strategy: DuplicateStrategy,
        send_notifications: bool = False,
    ) -> ImportResult:
        strategy = DuplicateStrategy.coerce(strategy)
        with open(path, "rb") as handle:
            response = self._send(
                "POST",
                self.import_url,
                fallback=IMPORT_FALLBACK,
                files={"file": (filename, handle, "text/csv")},
                data={
                    "duplicate_strategy": strategy.value,
                    "send_notifications": "true" if send_notifications else "false",
                },
            )
        result = ImportResult.from_payload(self._json(response))
        self.logger.info(
            "Import batch submitted",
            extra={
                "import_filename": filename,
                "duplicate_strategy": strategy.value,
                **result.as_dict(),
            },
        )
        return result

    # Internal helpers -----------------------------------------------------------

    def _send(self, method: str, url: str, *, fallback: str, **kwargs) -> requests.Response:
        try:
            response = self.session.request(method, url, headers=self._headers, timeout=self.timeout, **kwargs)
        except requests.Timeout as exc:
            self.logger.warning("Salon API request timed out", extra={"url": url, "timeout": self.timeout})
            raise SalonApiError(TIMEOUT_MESSAGE) from exc
        except requests.RequestException as exc:
            self.logger.error("Salon API request failed", extra={"url": url, "error": str(exc)})
            raise SalonApiError(UNREACHABLE_MESSAGE) from exc

        if not response.ok:
            message = self._error_message(response, fallback)
            self.logger.error(
                f"Salon API returned an error: {message}",
                extra={"url": url, "status_code": response.status_code},
            )
            raise SalonApiError(message, status_code=response.status_code)
        return response

    @staticmethod
    def _error_message(response: requests.Response, fallback: str) -> str:
        try:
            payload = response.json()
        except ValueError:
            return fallback
        if isinstance(payload, Mapping):
            message = payload.get("error")
            if isinstance(message, str) and message.strip():
                return message.strip()
        return fallback

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError("The salon API returned an unreadable response.") from exc
