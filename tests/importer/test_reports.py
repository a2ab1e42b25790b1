from __future__ import annotations

from salon_admin.importer.records import RowIssue
from salon_admin.importer.reports import import_errors_csv, validation_errors_csv


def test_validation_report_lists_row_field_and_error():
    issues = [
        RowIssue(field="date", message="Invalid date format", row_number=4),
        RowIssue(field="general", message='File has "quoted", commas'),
    ]

    assert validation_errors_csv(issues) == (
        "Row,Field,Error\n" "4,date,Invalid date format\n" 'N/A,general,"File has ""quoted"", commas"\n'
    )


def test_import_report_omits_row_numbers():
    issues = [RowIssue(field="pet_name", message="Pet not found", row_number=7)]
    assert import_errors_csv(issues) == "Field,Error\npet_name,Pet not found\n"


def test_empty_reports_have_only_a_header():
    assert validation_errors_csv([]) == "Row,Field,Error\n"
    assert import_errors_csv([]) == "Field,Error\n"
