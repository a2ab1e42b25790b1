"""CSV downloads of the row issues reported by the salon API."""

from __future__ import annotations

import csv
import io
from typing import Iterable

from .records import RowIssue

VALIDATION_REPORT_FILENAME = "validation-errors.csv"
IMPORT_REPORT_FILENAME = "import-errors.csv"


def _render(header: list[str], rows: Iterable[list[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def validation_errors_csv(issues: Iterable[RowIssue]) -> str:
    return _render(
        ["Row", "Field", "Error"],
        (
            [str(issue.row_number) if issue.row_number is not None else "N/A", issue.field, issue.message]
            for issue in issues
        ),
    )


def import_errors_csv(issues: Iterable[RowIssue]) -> str:
    return _render(["Field", "Error"], ([issue.field, issue.message] for issue in issues))
