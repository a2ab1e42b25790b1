"""
Upload acceptance rules and on-disk handling for wizard CSV files.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable
from uuid import uuid4

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_SUBDIR = "import_uploads"
CSV_EXTENSIONS: tuple[str, ...] = ("csv",)
# Browsers report CSV inconsistently; Excel on Windows sends the ms-excel type.
CSV_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "text/csv",
        "application/vnd.ms-excel",
        "text/plain",
        "application/octet-stream",
    }
)
DEFAULT_MAX_UPLOAD_MB = 5


class RejectionReason(str, enum.Enum):
    MISSING = "missing"
    MULTIPLE = "multiple"
    INVALID_TYPE = "invalid_type"
    TOO_LARGE = "too_large"


@dataclass(frozen=True)
class UploadRejection:
    reason: RejectionReason
    message: str


def max_upload_bytes(max_upload_mb: int | None) -> int:
    try:
        return int(max_upload_mb) * 1024 * 1024
    except (TypeError, ValueError):
        return DEFAULT_MAX_UPLOAD_MB * 1024 * 1024


def allowed_file(filename: str, allowed_extensions: Iterable[str] = CSV_EXTENSIONS) -> bool:
    """
    Validate the uploaded filename extension against the allowed set.
    """

    if not filename or "." not in filename:
        return False
    extension = filename.rsplit(".", 1)[1].lower()
    return extension in {ext.lower() for ext in allowed_extensions}


def _base_content_type(content_type: str | None) -> str | None:
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower() or None


def inspect_upload(
    filename: str | None,
    *,
    size: int | None,
    content_type: str | None = None,
    max_bytes: int,
    file_count: int = 1,
) -> UploadRejection | None:
    """
    Decide whether an upload may enter the wizard.

    Returns ``None`` for an acceptable file, otherwise the first rejection in
    the order: multiple, missing, type, size.
    """

    if file_count > 1:
        return UploadRejection(RejectionReason.MULTIPLE, "Only one file can be imported at a time.")
    if file_count < 1 or not filename:
        return UploadRejection(RejectionReason.MISSING, "No file uploaded.")

    base_type = _base_content_type(content_type)
    if not allowed_file(filename) or (base_type is not None and base_type not in CSV_CONTENT_TYPES):
        return UploadRejection(RejectionReason.INVALID_TYPE, "Only CSV files are accepted")

    if size is not None and size > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        return UploadRejection(RejectionReason.TOO_LARGE, f"File size exceeds {limit_mb}MB limit")
    return None


def measure_upload(file_storage: FileStorage) -> int:
    """
    Return the byte size of an upload, preferring the part header and falling
    back to seeking the stream.
    """

    content_length = getattr(file_storage, "content_length", None)
    if content_length:
        return int(content_length)

    stream = file_storage.stream
    position = stream.tell()
    stream.seek(0, 2)  # move to end
    size_bytes = stream.tell()
    stream.seek(position)
    return size_bytes


def resolve_upload_directory(configured_path: str | None, instance_path: str) -> Path:
    """
    Determine and create (if necessary) the wizard upload directory.
    """

    if not configured_path:
        upload_dir = Path(instance_path) / DEFAULT_UPLOAD_SUBDIR
    else:
        candidate = Path(configured_path)
        upload_dir = candidate if candidate.is_absolute() else Path(instance_path) / candidate
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def persist_upload(file_storage: FileStorage, upload_dir: Path) -> Path:
    """
    Persist the uploaded file under ``upload_dir`` using a UUID-based name and
    return the fully-qualified path.
    """

    original_name = secure_filename(file_storage.filename or "")
    extension = Path(original_name).suffix.lower() if original_name else ""
    if not extension:
        extension = ".csv"

    target_path = upload_dir / f"{uuid4().hex}{extension}"
    file_storage.save(target_path)
    logger.debug("Import upload persisted to %s", target_path)
    return target_path


def cleanup_upload(path: Path | None) -> None:
    """
    Remove a stored upload, logging but ignoring filesystem errors.
    """

    if path is None:
        return
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Failed to remove import upload %s: %s", path, exc)


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"
