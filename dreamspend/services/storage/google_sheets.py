"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a snapshot backend because:
1. The user can look at (and back up) their game from any device
2. No database setup required
3. Built-in history via the sheet's version history

Layout of the snapshot worksheet:
- Row 1: header cells  ["saved_at", <iso timestamp>, "chunks", <n>]
- Rows 2..n+1, column A: the snapshot JSON split into chunks

TRADEOFFS:
- A cell holds at most 50,000 characters, hence the chunking
- Clearing and rewriting is not atomic (saves are best-effort anyway)
- Saves are not retried; a failed write raises StorageError once
"""

from datetime import datetime, timezone
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from dreamspend.config import GoogleSheetsSettings, get_settings
from dreamspend.models.game import GameSnapshot
from dreamspend.services.storage.interface import (
    ConnectionError,
    SnapshotStorageInterface,
    StorageError,
)

# Stay well below the 50,000 character cell limit
CHUNK_SIZE = 40_000

HEADER_COLUMNS = 4


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_snapshot_sheet(self) -> gspread.Worksheet:
        """Get or create the snapshot worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.snapshot_sheet_name)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=self._settings.snapshot_sheet_name,
                rows=100,
                cols=HEADER_COLUMNS,
            )
        return sheet


def split_chunks(payload: str, size: int = CHUNK_SIZE) -> list[str]:
    return [payload[i:i + size] for i in range(0, len(payload), size)] or [""]


class GoogleSheetsSnapshotStorage(SnapshotStorageInterface):
    """
    Google Sheets implementation of snapshot storage.

    The whole game lives in one worksheet (see module docstring).
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._logger = structlog.get_logger("dreamspend.storage")

    def load(self) -> Optional[GameSnapshot]:
        try:
            sheet = self._client.get_snapshot_sheet()
            column = sheet.col_values(1)
        except StorageError as e:
            self._logger.warning("snapshot_sheet_unavailable", error=str(e))
            return None
        except Exception as e:
            self._logger.warning("snapshot_sheet_read_failed", error=str(e))
            return None

        payload = "".join(column[1:])
        if not payload:
            return None

        try:
            return GameSnapshot.from_json(payload)
        except ValidationError as e:
            self._logger.warning("snapshot_decode_failed", error_count=e.error_count())
            return None

    def save(self, snapshot: GameSnapshot) -> None:
        """Rewrite the snapshot worksheet."""
        chunks = split_chunks(snapshot.to_json())
        saved_at = datetime.now(timezone.utc).isoformat()
        try:
            sheet = self._client.get_snapshot_sheet()
            if sheet.row_count < len(chunks) + 1:
                sheet.add_rows(len(chunks) + 1 - sheet.row_count)
            sheet.clear()
            sheet.update(
                range_name=f"A1:D{len(chunks) + 1}",
                values=[["saved_at", saved_at, "chunks", str(len(chunks))]]
                + [[chunk, "", "", ""] for chunk in chunks],
                value_input_option="RAW",
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save snapshot: {e}")
