"""Direct Google Sheets remote, for collections kept without the Apps Script endpoint."""

from __future__ import annotations

import logging
import time

import gspread
import requests
from gspread.exceptions import APIError, GSpreadException
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials

from diecast.errors import SyncError
from diecast.models import CAR_COLUMNS, WIRE_KEYS, record_to_wire

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]

# sheet header row uses the same keys as the Apps Script payloads
SHEET_HEADERS = [WIRE_KEYS[c] for c in CAR_COLUMNS]

SHEET_ERRORS = (GSpreadException, GoogleAuthError, requests.RequestException)


def get_gspread_client(sa_info: dict):
    creds = Credentials.from_service_account_info(sa_info, scopes=SCOPES)
    return gspread.authorize(creds)


def open_worksheet(client, spreadsheet_id: str, ws_name: str):
    sh = client.open_by_key(spreadsheet_id)
    try:
        return sh.worksheet(ws_name)
    except gspread.WorksheetNotFound:
        return sh.add_worksheet(title=ws_name, rows=1000, cols=len(SHEET_HEADERS))


def a1_col_letter(n: int) -> str:
    letters = ""
    while n:
        n, r = divmod(n - 1, 26)
        letters = chr(65 + r) + letters
    return letters


def _gs_write_retry(fn, *args, **kwargs):
    max_tries = 6
    base_sleep = 0.8
    for attempt in range(1, max_tries + 1):
        try:
            return fn(*args, **kwargs)
        except APIError as e:
            msg = str(e)
            if "429" in msg or "Quota exceeded" in msg:
                time.sleep(base_sleep * (2 ** (attempt - 1)))
                continue
            raise
    raise SyncError("Google Sheets API quota exceeded (retries exhausted).")


def ensure_headers(ws, headers: list[str]) -> list[str]:
    """
    If sheet is empty, write header row.
    If header exists but missing columns, extend it (append missing at end).
    """
    existing = ws.row_values(1)
    if not existing:
        _gs_write_retry(ws.append_row, headers)
        return headers
    missing = [h for h in headers if h not in existing]
    if missing:
        new_headers = existing + missing
        _gs_write_retry(ws.update, range_name="1:1", values=[new_headers])
        return new_headers
    return existing


class SheetsRemote:
    def __init__(self, worksheet):
        self.ws = worksheet
        self._headers = None

    @classmethod
    def from_settings(cls, settings, sa_info: dict) -> "SheetsRemote":
        try:
            client = get_gspread_client(sa_info)
            ws = open_worksheet(client, settings.spreadsheet_id, settings.collection_worksheet)
        except SHEET_ERRORS + (ValueError,) as e:
            raise SyncError(f"Failed to open Google Sheet: {e}") from e
        return cls(ws)

    def headers(self) -> list[str]:
        if self._headers is None:
            self._headers = ensure_headers(self.ws, SHEET_HEADERS)
        return self._headers

    def _row_number(self, car_id: str):
        id_col = self.headers().index("id") + 1
        for idx, val in enumerate(self.ws.col_values(id_col)[1:], start=2):
            if str(val) == str(car_id):
                return idx
        return None

    def fetch_all(self) -> list[dict]:
        try:
            self.headers()
            return self.ws.get_all_records()
        except SHEET_ERRORS as e:
            raise SyncError(f"Could not read sheet: {e}") from e

    def upsert(self, record: dict) -> None:
        wire = record_to_wire(record)
        # cells cap out at 50k characters; photos only go through the Apps Script
        wire.pop("fotoBase64", None)
        try:
            headers = self.headers()
            values = [wire.get(h, "") for h in headers]
            rownum = self._row_number(wire["id"])
            if rownum is None:
                _gs_write_retry(self.ws.append_row, values, value_input_option="RAW")
            else:
                rng = f"A{rownum}:{a1_col_letter(len(headers))}{rownum}"
                _gs_write_retry(self.ws.update, range_name=rng, values=[values], value_input_option="RAW")
        except SHEET_ERRORS as e:
            raise SyncError(f"Could not write {wire['id']}: {e}") from e

    def delete(self, car_id: str) -> None:
        try:
            rownum = self._row_number(car_id)
            if rownum is None:
                logger.info("Delete of %s skipped: not in sheet", car_id)
                return
            _gs_write_retry(self.ws.delete_rows, rownum)
        except SHEET_ERRORS as e:
            raise SyncError(f"Could not delete {car_id}: {e}") from e
