"""Tests for the raw Sheets values client."""

from unittest.mock import MagicMock

import google.auth.exceptions
import httplib2
import pytest
from googleapiclient.errors import HttpError

from gcp_utils.google import CredentialError
from gcp_utils.sheets import SheetsClient, SheetsError
from gcp_utils.sheets.client import a1_range

SPREADSHEET = "spreadsheet-1"


def _failing_service(error):
    """Service whose every request raises ``error``."""
    service = MagicMock()
    values = service.spreadsheets.return_value.values.return_value
    for method in (values.get, values.append, values.update):
        method.return_value.execute.side_effect = error
    return service


class TestSheetsClient:
    """Test reads and writes against the fake service."""

    def test_a1_range(self):
        """Should join sheet name and cell range with '!'."""
        assert a1_range("Sheet1", "A:Z") == "Sheet1!A:Z"
        assert a1_range("users", "1:1") == "users!1:1"

    def test_get(self, sheets_service):
        """Should return rows for the composed range."""
        client = SheetsClient(sheets_service)
        assert client.get(SPREADSHEET, "users", "1:1") == [["id", "name", "status"]]
        assert sheets_service.calls == [("get", "users!1:1")]

    def test_get_empty(self, make_sheets_service):
        """Should return an empty list when the range has no data."""
        client = SheetsClient(make_sheets_service({"empty": []}))
        assert client.get(SPREADSHEET, "empty", "A:Z") == []

    def test_append(self, sheets_service, users_grid):
        """Should append after the last row and return the updated range."""
        client = SheetsClient(sheets_service)
        assert client.append(SPREADSHEET, "users", ["2", "bob"]) == "users!A3:B3"
        assert users_grid["users"][-1] == ["2", "bob"]

    def test_append_uses_raw_insert_rows(self):
        """Should append raw values, inserting rows."""
        service = MagicMock()
        values = service.spreadsheets.return_value.values.return_value
        values.append.return_value.execute.return_value = {"updates": {"updatedRange": "s!A2:B2"}}

        SheetsClient(service).append(SPREADSHEET, "s", [1, "x"])

        values.append.assert_called_once_with(
            spreadsheetId=SPREADSHEET,
            range="s",
            valueInputOption="RAW",
            insertDataOption="INSERT_ROWS",
            body={"values": [[1, "x"]]},
        )

    def test_update(self, sheets_service, users_grid):
        """Should overwrite the given range."""
        client = SheetsClient(sheets_service)
        assert client.update(SPREADSHEET, "users", "C2", ["inactive"]) == 1
        assert users_grid["users"][1] == ["1", "alice", "inactive"]

    def test_close(self, sheets_service):
        """Should close the underlying service."""
        SheetsClient(sheets_service).close()
        assert sheets_service.closed is True


class TestSheetsClientErrors:
    """Test error translation."""

    @pytest.fixture
    def http_error(self):
        return HttpError(httplib2.Response({"status": "403"}), b"forbidden")

    def test_get_http_error(self, http_error):
        """Should raise SheetsError with sheet and range context."""
        client = SheetsClient(_failing_service(http_error))
        with pytest.raises(SheetsError, match="range A:C in sheet users") as excinfo:
            client.get(SPREADSHEET, "users", "A:C")
        assert excinfo.value.status_code == 403
        assert excinfo.value.__cause__ is http_error

    def test_append_http_error(self, http_error):
        """Should raise SheetsError naming the sheet."""
        client = SheetsClient(_failing_service(http_error))
        with pytest.raises(SheetsError, match="append data into sheet users"):
            client.append(SPREADSHEET, "users", ["x"])

    def test_update_http_error(self, http_error):
        """Should raise SheetsError naming sheet and range."""
        client = SheetsClient(_failing_service(http_error))
        with pytest.raises(SheetsError, match="sheet users range A2"):
            client.update(SPREADSHEET, "users", "A2", ["x"])

    def test_auth_error(self):
        """Should raise CredentialError when the token cannot be refreshed."""
        client = SheetsClient(_failing_service(google.auth.exceptions.RefreshError("expired")))
        with pytest.raises(CredentialError, match="expired"):
            client.get(SPREADSHEET, "users", "A:C")

    def test_transport_error(self):
        """Should raise SheetsError on connection failures."""
        client = SheetsClient(_failing_service(ConnectionResetError("reset")))
        with pytest.raises(SheetsError, match="reset"):
            client.get(SPREADSHEET, "users", "A:C")
