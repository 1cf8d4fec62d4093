"""Row codec for treating a sheet as a table.

Row 1 of a sheet is the header row. Data rows are converted to records
(header name -> cell value) and back, and new rows get an integer id
one greater than the id in the last row's first column.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence

from gcp_utils.sheets.exceptions import (
    DuplicateHeaderError,
    ParseError,
    ShapeError,
    UnknownColumnError,
)

# A cell as returned by or written to the Sheets API; None is an empty cell
CellValue = str | int | float | bool | None
Row = list[CellValue]
Record = dict[str, CellValue]

EMPTY = ""

_INT_RE = re.compile(r"^[+-]?\d+$")


def as_string(value: CellValue) -> str:
    """Get the string form of a cell as the Sheets UI would display it."""
    if value is None:
        return EMPTY
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def as_int(value: CellValue) -> int:
    """Convert a cell to an integer.

    Accepts ints, integral floats and base-10 integer strings.

    Raises:
        ParseError: If the cell does not hold an integer.
    """
    if isinstance(value, bool) or value is None:
        raise ParseError(f"Cannot parse {value!r} as an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ParseError(f"Cannot parse {value!r} as an integer")

    text = str(value).strip()
    if not _INT_RE.match(text):
        raise ParseError(f"Cannot parse {value!r} as an integer")
    return int(text)


def normalize_header(row: Sequence[CellValue]) -> list[str]:
    """Derive column names from a header row.

    Names are trimmed of surrounding whitespace. Every column up to the
    last named one must have a name, so records map back to rows cell
    for cell.

    Raises:
        ShapeError: If a column name is blank.
        DuplicateHeaderError: If a name appears twice.
    """
    header = [as_string(cell).strip() for cell in row]
    while header and not header[-1]:
        header.pop()

    seen: set[str] = set()
    for i, name in enumerate(header):
        if not name:
            raise ShapeError(f"Header column {column_index_to_letter(i)} has no name")
        if name in seen:
            raise DuplicateHeaderError(name)
        seen.add(name)
    return header


def find_header_index(header: Sequence[str], name: str) -> int:
    """Find the index of a column name, or -1 if absent."""
    for i, column in enumerate(header):
        if column.strip() == name:
            return i
    return -1


def column_index_to_letter(index: int) -> str:
    """Convert a 0-based column index to its A1 letter (0 -> A, 26 -> AA)."""
    if index < 0:
        raise ValueError(f"Column index must be >= 0, got {index}")

    result = ""
    while index >= 0:
        result = chr(index % 26 + ord("A")) + result
        index = index // 26 - 1
    return result


def pad_row(row: Sequence[CellValue], width: int) -> Row:
    """Pad a row with empty cells up to the header width.

    The Sheets API drops trailing empty cells, so rows read back are
    often shorter than the header.

    Raises:
        ShapeError: If the row is wider than the header.
    """
    if len(row) > width:
        raise ShapeError(f"Row has {len(row)} cells but header has {width} columns")
    return list(row) + [EMPTY] * (width - len(row))


def merge_header_and_row(header: Sequence[str], row: Sequence[CellValue]) -> Record:
    """Zip header names with row cells.

    Raises:
        ShapeError: If header and row lengths differ.
    """
    if len(header) != len(row):
        raise ShapeError(
            f"Length of header ({len(header)}) and row ({len(row)}) must be the same"
        )
    return dict(zip(header, row))


def order_values_by_header(header: Sequence[str], record: Mapping[str, CellValue]) -> Row:
    """Lay out a record as a row in header order.

    Columns missing from the record become empty cells. The row ends at the
    last column the record supplies; later columns are not padded.

    Raises:
        UnknownColumnError: If the record has a key that is not a header column.
    """
    positions = {name: i for i, name in enumerate(header)}

    placed: dict[int, CellValue] = {}
    for column, value in record.items():
        index = positions.get(column)
        if index is None:
            raise UnknownColumnError(column)
        placed[index] = value

    if not placed:
        return []

    row: Row = [EMPTY] * (max(placed) + 1)
    for index, value in placed.items():
        row[index] = value
    return row


def next_id(rows: Sequence[Sequence[CellValue]]) -> int:
    """Compute the id for a new row from the rows of the id column.

    The first row is the header. The last row's first cell is trusted to
    hold the highest id; rows are not scanned for a true maximum.

    Raises:
        ParseError: If the last row's first cell is not an integer.
    """
    if len(rows) <= 1:
        return 1

    last = rows[-1]
    if not last:
        raise ParseError(f"Unable to parse the last id from empty row {len(rows)}")
    try:
        return as_int(last[0]) + 1
    except ParseError as e:
        raise ParseError(f"Unable to parse the last id from row {list(last)}: {e}") from e
