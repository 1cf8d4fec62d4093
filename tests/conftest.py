"""Shared fixtures: service account keys and an in-memory Sheets service."""

import json
import re

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa


@pytest.fixture(scope="session")
def private_key_pem():
    """Generate an RSA private key in PEM format."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def key_info(private_key_pem):
    """Create a service account key."""
    return {
        "type": "service_account",
        "project_id": "test-project",
        "private_key_id": "abc123",
        "private_key": private_key_pem,
        "client_email": "robot@test-project.iam.gserviceaccount.com",
        "client_id": "1234567890",
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
        "auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
        "client_x509_cert_url": "https://www.googleapis.com/robot/v1/metadata/x509/robot",
        "universe_domain": "googleapis.com",
    }


@pytest.fixture
def key_file(tmp_path, key_info):
    """Write the service account key to a file."""
    key_path = tmp_path / "service_account_key.json"
    with open(key_path, "w") as f:
        json.dump(key_info, f)
    return key_path


def _column_index(letters):
    index = 0
    for ch in letters:
        index = index * 26 + (ord(ch) - ord("A") + 1)
    return index - 1


def _letter(index):
    result = ""
    while index >= 0:
        result = chr(index % 26 + ord("A")) + result
        index = index // 26 - 1
    return result


def _formatted(value):
    if value is None:
        return ""
    if value is True:
        return "TRUE"
    if value is False:
        return "FALSE"
    return str(value)


def _trim(rows):
    """Drop trailing empty cells and rows, as the Sheets API does."""
    trimmed = []
    for row in rows:
        row = [_formatted(v) for v in row]
        while row and row[-1] == "":
            row.pop()
        trimmed.append(row)
    while trimmed and not trimmed[-1]:
        trimmed.pop()
    return trimmed


class FakeRequest:
    def __init__(self, fn):
        self._fn = fn

    def execute(self):
        return self._fn()


class FakeValues:
    """In-memory stand-in for ``service.spreadsheets().values()``."""

    def __init__(self, grids):
        self.grids = grids
        self.calls = []

    def get(self, spreadsheetId, range, valueRenderOption="FORMATTED_VALUE"):
        self.calls.append(("get", range))
        return FakeRequest(lambda: self._get(range))

    def _get(self, a1):
        sheet, _, cells = a1.partition("!")
        grid = self.grids[sheet]
        start, _, end = cells.partition(":")

        if start.isdigit():
            rows = [list(r) for r in grid[int(start) - 1 : int(end)]]
        else:
            last = _column_index(end)
            rows = [list(r[: last + 1]) for r in grid]

        values = _trim(rows)
        result = {"range": a1, "majorDimension": "ROWS"}
        if values:
            result["values"] = values
        return result

    def append(self, spreadsheetId, range, valueInputOption, insertDataOption, body):
        self.calls.append(("append", range, body["values"]))

        def run():
            grid = self.grids[range]
            for row in body["values"]:
                grid.append(list(row))
            n = len(grid)
            width = max(len(row) for row in body["values"])
            return {
                "updates": {
                    "updatedRange": f"{range}!A{n}:{_letter(width - 1)}{n}",
                    "updatedRows": len(body["values"]),
                }
            }

        return FakeRequest(run)

    def update(self, spreadsheetId, range, valueInputOption, body):
        self.calls.append(("update", range, body["values"]))

        def run():
            sheet, _, cells = range.partition("!")
            match = re.match(r"([A-Z]+)(\d+)", cells)
            col, row_number = _column_index(match.group(1)), int(match.group(2))
            grid = self.grids[sheet]
            count = 0
            for r, values in enumerate(body["values"]):
                while len(grid) < row_number + r:
                    grid.append([])
                target = grid[row_number + r - 1]
                for c, value in enumerate(values):
                    while len(target) <= col + c:
                        target.append("")
                    target[col + c] = value
                    count += 1
            return {"updatedCells": count}

        return FakeRequest(run)


class FakeSheetsService:
    """Minimal Sheets v4 service backed by lists of rows per sheet."""

    def __init__(self, grids):
        self._values = FakeValues(grids)
        self.closed = False

    def spreadsheets(self):
        return self

    def values(self):
        return self._values

    @property
    def calls(self):
        return self._values.calls

    def close(self):
        self.closed = True


@pytest.fixture
def users_grid():
    """A users sheet with one record."""
    return {
        "users": [
            ["id", "name", "status"],
            ["1", "alice", "active"],
        ]
    }


@pytest.fixture
def sheets_service(users_grid):
    return FakeSheetsService(users_grid)


@pytest.fixture
def make_sheets_service():
    """Factory for fake Sheets services over custom grids."""
    return FakeSheetsService
