"""Google Sheets API client implementation."""

from __future__ import annotations

import logging
from typing import Any

import google.auth.exceptions
from googleapiclient.errors import HttpError

from gcp_utils.google import CredentialError, GoogleServiceAccount
from gcp_utils.sheets.exceptions import SheetsError
from gcp_utils.sheets.rows import CellValue

logger = logging.getLogger(__name__)


def a1_range(sheet_name: str, cell_range: str) -> str:
    """Compose an A1 range for a sheet (e.g., "Sheet1!A:Z")."""
    return f"{sheet_name}!{cell_range}"


class SheetsClient:
    """Google Sheets values API client.

    Thin wrapper around ``spreadsheets().values()`` that returns plain lists
    and raises typed errors annotated with the sheet and range involved.

    Usage:
        client = SheetsClient.from_service_account(auth)

        # Read values
        rows = client.get(spreadsheet_id, "Sheet1", "A:C")

        # Append a row after the last used row
        client.append(spreadsheet_id, "Sheet1", ["3", "carol", "new"])

        # Overwrite a range
        client.update(spreadsheet_id, "Sheet1", "A2:C2", ["1", "alice", "done"])
    """

    def __init__(self, service: Any) -> None:
        """Initialize Sheets client.

        Args:
            service: Sheets v4 API service (from ``googleapiclient.discovery.build``).
        """
        self._service = service

    @classmethod
    def from_service_account(cls, auth: GoogleServiceAccount) -> SheetsClient:
        """Build the Sheets v4 service from service account credentials."""
        logger.info(f"Initializing Sheets client for {auth.email}")
        return cls(auth.build_service("sheets", "v4"))

    @property
    def service(self) -> Any:
        return self._service

    def close(self) -> None:
        """Close the underlying HTTP connection."""
        self._service.close()

    def _execute(self, request: Any, context: str) -> dict:
        """Execute an API request, converting failures to typed errors."""
        try:
            return request.execute()
        except HttpError as e:
            raise SheetsError(f"{context}: {e}", status_code=e.resp.status) from e
        except google.auth.exceptions.GoogleAuthError as e:
            raise CredentialError(f"{context}: {e}") from e
        except OSError as e:
            raise SheetsError(f"{context}: {e}") from e

    # =========================================================================
    # Reading Data
    # =========================================================================

    def get(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        cell_range: str,
        value_render_option: str = "FORMATTED_VALUE",
    ) -> list[list[CellValue]]:
        """Read values from a range of a sheet.

        Args:
            spreadsheet_id: Spreadsheet ID.
            sheet_name: Name of the sheet.
            cell_range: A1 range within the sheet (e.g., "A:Z", "1:1").
            value_render_option: How to render values ("FORMATTED_VALUE", "UNFORMATTED_VALUE", "FORMULA").

        Returns:
            2D list of cell values; empty if the range holds no data.

        Raises:
            SheetsError: If the read fails.
        """
        result = self._execute(
            self._service.spreadsheets()
            .values()
            .get(
                spreadsheetId=spreadsheet_id,
                range=a1_range(sheet_name, cell_range),
                valueRenderOption=value_render_option,
            ),
            f"Unable to get data from range {cell_range} in sheet {sheet_name}",
        )
        values = result.get("values", [])
        if not values:
            logger.debug(f"No data found in range {cell_range} on sheet {sheet_name}")
        return values

    # =========================================================================
    # Writing Data
    # =========================================================================

    def append(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        row: list[CellValue],
        value_input_option: str = "RAW",
    ) -> str:
        """Append a row after the last used row of a sheet.

        Args:
            spreadsheet_id: Spreadsheet ID.
            sheet_name: Name of the sheet.
            row: Cell values in column order.
            value_input_option: How to interpret input ("RAW" or "USER_ENTERED").

        Returns:
            A1 range the row was written to (e.g., "Sheet1!A5:C5").

        Raises:
            SheetsError: If the append fails.
        """
        result = self._execute(
            self._service.spreadsheets()
            .values()
            .append(
                spreadsheetId=spreadsheet_id,
                range=sheet_name,
                valueInputOption=value_input_option,
                insertDataOption="INSERT_ROWS",
                body={"values": [row]},
            ),
            f"Unable to append data into sheet {sheet_name}",
        )
        updated_range = result.get("updates", {}).get("updatedRange", "")
        logger.info(f"Appended row to {updated_range or sheet_name}")
        return updated_range

    def update(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        cell_range: str,
        row: list[CellValue],
        value_input_option: str = "RAW",
    ) -> int:
        """Overwrite a range of a sheet with a single row of values.

        Args:
            spreadsheet_id: Spreadsheet ID.
            sheet_name: Name of the sheet.
            cell_range: A1 range within the sheet (e.g., "A2:C2").
            row: Cell values in column order.
            value_input_option: How to interpret input.

        Returns:
            Number of cells updated.

        Raises:
            SheetsError: If the update fails.
        """
        result = self._execute(
            self._service.spreadsheets()
            .values()
            .update(
                spreadsheetId=spreadsheet_id,
                range=a1_range(sheet_name, cell_range),
                valueInputOption=value_input_option,
                body={"values": [row]},
            ),
            f"Unable to update data into sheet {sheet_name} range {cell_range}",
        )
        return result.get("updatedCells", 0)
