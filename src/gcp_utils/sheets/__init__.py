"""Google Sheets as a minimal record store.

Read and write sheets through the Sheets v4 values API, and treat a sheet
whose first row is a header as a table of records with integer ids.

Usage:
    from gcp_utils.google import GoogleServiceAccount
    from gcp_utils.sheets import RecordStore, SheetsClient

    auth = GoogleServiceAccount.from_file("key.json", scopes=["sheets"])
    store = RecordStore(SheetsClient.from_service_account(auth))

    # Find a record
    row = store.get_by_filter(spreadsheet_id, "users", {"name": "alice"})

    # Insert if absent, returning the row id either way
    user_id = store.get_or_create(
        spreadsheet_id, "users", {"name": "bob"}, {"name": "bob", "status": "new"}
    )

Sharing:
    The spreadsheet must be shared with the service account email.
"""

from __future__ import annotations

from gcp_utils.sheets.client import SheetsClient
from gcp_utils.sheets.exceptions import (
    DuplicateHeaderError,
    ParseError,
    ShapeError,
    SheetsError,
    UnknownColumnError,
)
from gcp_utils.sheets.store import RecordStore

__all__ = [
    "SheetsClient",
    "RecordStore",
    "SheetsError",
    "ShapeError",
    "DuplicateHeaderError",
    "UnknownColumnError",
    "ParseError",
]
