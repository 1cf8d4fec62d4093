"""Spreadsheet exceptions."""

from __future__ import annotations

from gcp_utils.google.exceptions import GcpError


class SheetsError(GcpError):
    """Raised when a Sheets API read or write fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class ShapeError(GcpError):
    """Raised when a row does not fit the header it is read against."""


class DuplicateHeaderError(ShapeError):
    """Raised when the header row names the same column twice."""

    def __init__(self, column: str):
        self.column = column
        super().__init__(f"Duplicate column '{column}' in header row")


class UnknownColumnError(GcpError):
    """Raised when a record names a column the sheet does not have."""

    def __init__(self, column: str, sheet_name: str | None = None):
        self.column = column
        self.sheet_name = sheet_name
        where = f" in sheet {sheet_name}" if sheet_name else ""
        super().__init__(f"Column '{column}' not found{where}")


class ParseError(GcpError):
    """Raised when a cell cannot be converted to the expected type."""
