"""Spreadsheet-as-database record store.

A sheet is treated as a table: row 1 holds column names, every data row
holds one record, and the first column holds an integer id assigned on
insert.

Nothing here is transactional. Every operation reads the sheet fresh and
the read-then-append spans in ``append_with_unique_id`` and
``get_or_create`` are not atomic: two writers appending to the same sheet
at once can both allocate the same id. Use a single writer per sheet.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from gcp_utils.sheets.client import SheetsClient
from gcp_utils.sheets.exceptions import ParseError, ShapeError, UnknownColumnError
from gcp_utils.sheets.rows import (
    CellValue,
    Record,
    Row,
    as_int,
    as_string,
    column_index_to_letter,
    find_header_index,
    merge_header_and_row,
    next_id,
    normalize_header,
    order_values_by_header,
    pad_row,
)

logger = logging.getLogger(__name__)

HEADER_RANGE = "1:1"
ID_RANGE = "A:A"


class RecordStore:
    """Record operations over a sheet whose first row is a header.

    Usage:
        store = RecordStore(SheetsClient.from_service_account(auth))

        # Look up a record
        user = store.get_by_filter(spreadsheet_id, "users", {"name": "alice"})

        # Insert with the next id
        new_id = store.append_with_unique_id(spreadsheet_id, "users", {"name": "bob"})

        # Insert only if absent
        user_id = store.get_or_create(
            spreadsheet_id, "users", {"name": "bob"}, {"name": "bob", "status": "new"}
        )
    """

    def __init__(self, client: SheetsClient) -> None:
        self._client = client

    @property
    def client(self) -> SheetsClient:
        return self._client

    # =========================================================================
    # Reading
    # =========================================================================

    def read_header(self, spreadsheet_id: str, sheet_name: str) -> list[str]:
        """Read the column names from row 1.

        Raises:
            ShapeError: If the sheet has no header row or a column has no name.
            DuplicateHeaderError: If a column name appears twice.
        """
        rows = self._client.get(spreadsheet_id, sheet_name, HEADER_RANGE)
        header = normalize_header(rows[0]) if rows else []
        if not header:
            raise ShapeError(f"Sheet {sheet_name} has no header row")
        return header

    def _read_table(self, spreadsheet_id: str, sheet_name: str) -> tuple[list[str], list[Row]]:
        """Read the used range and split it into header and data rows."""
        width = len(self.read_header(spreadsheet_id, sheet_name))
        cell_range = f"A:{column_index_to_letter(width - 1)}"

        rows = self._client.get(spreadsheet_id, sheet_name, cell_range)
        if not rows:
            raise ShapeError(f"Sheet {sheet_name} has no header row")

        # Header and data come from the same read
        header = normalize_header(rows[0])
        return header, [pad_row(row, len(header)) for row in rows[1:]]

    def read_records(self, spreadsheet_id: str, sheet_name: str) -> list[Record]:
        """Read every data row of a sheet as a record.

        Args:
            spreadsheet_id: Spreadsheet ID.
            sheet_name: Name of the sheet.

        Returns:
            Records in sheet order; empty if the sheet only has a header.
        """
        header, rows = self._read_table(spreadsheet_id, sheet_name)
        return [merge_header_and_row(header, row) for row in rows]

    def get_by_filter(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        filters: Mapping[str, str],
    ) -> Record | None:
        """Find the first record whose columns equal every filter value.

        Cells are compared by their trimmed string form against the filter
        values. Rows are scanned top to bottom.

        Args:
            spreadsheet_id: Spreadsheet ID.
            sheet_name: Name of the sheet.
            filters: Column name -> expected value.

        Returns:
            The first matching record, or None if no row matches or a filter
            column does not exist.
        """
        header, rows = self._read_table(spreadsheet_id, sheet_name)

        indexes: dict[int, str] = {}
        for column, value in filters.items():
            index = find_header_index(header, column)
            if index == -1:
                logger.debug(f"Filter column '{column}' not in sheet {sheet_name}")
                return None
            indexes[index] = str(value)

        for row in rows:
            if all(as_string(row[i]).strip() == value for i, value in indexes.items()):
                return merge_header_and_row(header, row)

        logger.debug(f"No row in sheet {sheet_name} matches filters {dict(filters)}")
        return None

    # =========================================================================
    # Writing
    # =========================================================================

    def _order(self, header: list[str], sheet_name: str, record: Mapping[str, CellValue]) -> Row:
        try:
            return order_values_by_header(header, record)
        except UnknownColumnError as e:
            raise UnknownColumnError(e.column, sheet_name) from e

    def append(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        record: Mapping[str, CellValue],
    ) -> str:
        """Append a record as a new row, without assigning an id.

        The row goes after the last used row, as decided by the Sheets API.

        Returns:
            A1 range the row was written to.

        Raises:
            UnknownColumnError: If the record names a column the sheet lacks.
        """
        header = self.read_header(spreadsheet_id, sheet_name)
        return self._client.append(spreadsheet_id, sheet_name, self._order(header, sheet_name, record))

    def append_with_unique_id(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        record: Mapping[str, CellValue],
    ) -> int:
        """Append a record with the next id in the first column.

        The id is one more than the id in the last row of column A. Any id
        value already in ``record`` is replaced. The caller's mapping is not
        modified.

        Returns:
            The id assigned to the new row.

        Raises:
            ParseError: If the last row's id is not an integer.
            UnknownColumnError: If the record names a column the sheet lacks.
        """
        header = self.read_header(spreadsheet_id, sheet_name)
        id_column = header[0]

        ids = self._client.get(spreadsheet_id, sheet_name, ID_RANGE)
        new_id = next_id(ids)

        values = dict(record)
        values[id_column] = new_id
        self._client.append(spreadsheet_id, sheet_name, self._order(header, sheet_name, values))

        logger.info(f"Appended row with {id_column}={new_id} to sheet {sheet_name}")
        return new_id

    def get_or_create(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        filters: Mapping[str, str],
        record: Mapping[str, CellValue],
    ) -> int:
        """Return the id of the first record matching ``filters``, appending ``record`` if none does.

        Repeated calls with the same filters return the same id as long as
        nobody else writes to the sheet in between. If the append fails the
        error is raised and nothing is rolled back.

        Returns:
            Id of the existing or newly appended row.

        Raises:
            ParseError: If the matching row's id is not an integer.
        """
        found = self.get_by_filter(spreadsheet_id, sheet_name, filters)
        if found is None:
            return self.append_with_unique_id(spreadsheet_id, sheet_name, record)

        id_column, value = next(iter(found.items()))
        try:
            return as_int(value)
        except ParseError as e:
            raise ParseError(
                f"Unable to parse {id_column} {value!r} in sheet {sheet_name}: {e}"
            ) from e
