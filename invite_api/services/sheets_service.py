"""
Sheets service — guest list lookup and RSVP write-back.

Guest sheet columns: A English name, B Arabic name, C family group,
D confirmation, E table number, F date, G time. ``rowIndex`` is 0-based and
excludes the header row, so sheet row = rowIndex + 2.
"""

import csv
import logging
import re
from datetime import datetime
from urllib.parse import quote

import httpx

from invite_api.config import Settings
from invite_api.exceptions import StorageApiError
from invite_api.schemas.guest import GuestRecord

logger = logging.getLogger(__name__)

ARABIC_CHARS = re.compile(r"[\u0600-\u06FF]")

ATTENDING_TEXT = "Yes, Attending"
DECLINED_TEXT = "Regretfully Decline"


def search_language(query: str) -> str:
    return "ar" if ARABIC_CHARS.search(query or "") else "en"


def _cell(row: list[str], index: int) -> str:
    return row[index].strip().strip('"').strip() if index < len(row) else ""


def parse_guest_csv(text: str) -> list[GuestRecord]:
    """Parse the sheet's CSV export, skipping the header and nameless rows."""
    lines = [line for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n") if line.strip()]
    guests = []
    for position, row in enumerate(csv.reader(lines[1:])):
        english_name = _cell(row, 0)
        if not english_name:
            continue
        guests.append(GuestRecord(
            english_name=english_name,
            arabic_name=_cell(row, 1) or None,
            row_index=position,
            family_group=_cell(row, 2) or None,
            table_number=_cell(row, 4) or None,
        ))
    return guests


def filter_guests(guests: list[GuestRecord], query: str) -> list[GuestRecord]:
    """
    Case-insensitive substring match on either name, widened to every member
    of each matched family group. An empty query returns everyone.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return list(guests)

    matches = [
        g for g in guests
        if needle in g.english_name.lower() or (g.arabic_name and needle in g.arabic_name.lower())
    ]
    families = {g.family_group for g in matches if g.family_group}
    related = [g for g in guests if g.family_group in families]

    # Keyed by row so namesakes both survive
    combined: dict[int, GuestRecord] = {}
    for guest in matches + related:
        combined[guest.row_index] = guest
    logger.info(
        "Guest search matched %d guests plus %d family members",
        len(matches), len(combined) - len(matches),
    )
    return list(combined.values())


def rsvp_ranges(row_indexes: list[int], attending: bool, now: datetime, sheet: str = "Sheet1") -> list[dict]:
    """Cell updates for confirmation (D), date (F) and time (G); E is left alone."""
    confirmation = ATTENDING_TEXT if attending else DECLINED_TEXT
    date = now.strftime("%m/%d/%Y")
    time = now.strftime("%H:%M")
    updates = []
    for row_index in row_indexes:
        row = row_index + 2
        updates.append({"range": f"{sheet}!D{row}", "values": [[confirmation]]})
        updates.append({"range": f"{sheet}!F{row}", "values": [[date]]})
        updates.append({"range": f"{sheet}!G{row}", "values": [[time]]})
    return updates


class SheetsService:
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.STORAGE_TIMEOUT_SECONDS, transport=self._transport)

    async def fetch_guests(self, sheet_id: str) -> list[GuestRecord]:
        """Read the guest list from the sheet's public CSV export."""
        url = f"{self.settings.SHEETS_EXPORT_URL}/{sheet_id}/export"
        try:
            async with self._client() as client:
                response = await client.get(url, params={"format": "csv", "gid": "0"}, follow_redirects=True)
        except httpx.HTTPError as e:
            raise StorageApiError(f"Failed to fetch sheet: {type(e).__name__}") from e

        if not response.is_success:
            logger.error("Failed to fetch sheet (HTTP %d)", response.status_code)
            raise StorageApiError(
                f"Failed to fetch sheet: {response.reason_phrase or response.status_code}",
                upstream_status=response.status_code,
                response_body=response.text,
            )

        guests = parse_guest_csv(response.text)
        logger.info("Found %d guests in sheet", len(guests))
        return guests

    async def read_range(self, token: str, sheet_id: str, cell_range: str) -> list[list[str]]:
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.settings.SHEETS_URL}/{sheet_id}/values/{quote(cell_range, safe='')}",
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as e:
            raise StorageApiError(f"Failed to read sheet: {type(e).__name__}") from e

        if not response.is_success:
            raise StorageApiError(
                f"Failed to read sheet ({response.status_code})",
                upstream_status=response.status_code,
                response_body=response.text,
            )
        return response.json().get("values") or []

    async def write_ranges(self, token: str, sheet_id: str, updates: list[dict]) -> None:
        """
        Write cell ranges with USER_ENTERED semantics.

        A single range goes through ``values/{range}`` (PUT); several go
        through one ``values:batchUpdate`` call.

        Raises:
            StorageApiError: on a transport failure or any non-2xx response.
        """
        headers = {"Authorization": f"Bearer {token}"}
        base = f"{self.settings.SHEETS_URL}/{sheet_id}"
        try:
            async with self._client() as client:
                if len(updates) == 1:
                    update = updates[0]
                    response = await client.put(
                        f"{base}/values/{quote(update['range'], safe='')}",
                        params={"valueInputOption": "USER_ENTERED"},
                        json={"range": update["range"], "majorDimension": "ROWS", "values": update["values"]},
                        headers=headers,
                    )
                else:
                    response = await client.post(
                        f"{base}/values:batchUpdate",
                        json={
                            "valueInputOption": "USER_ENTERED",
                            "data": [{**u, "majorDimension": "ROWS"} for u in updates],
                        },
                        headers=headers,
                    )
        except httpx.HTTPError as e:
            raise StorageApiError(f"Failed to save RSVP to Google Sheets: {type(e).__name__}") from e

        if not response.is_success:
            logger.error("Google Sheets API error (HTTP %d): %s", response.status_code, response.text[:500])
            raise StorageApiError(
                "Failed to save RSVP to Google Sheets",
                upstream_status=response.status_code,
                response_body=response.text,
            )
        logger.info("Wrote %d ranges to sheet", len(updates))

    async def save_rsvp(
        self,
        token: str,
        sheet_id: str,
        row_indexes: list[int],
        attending: bool,
        now: datetime | None = None,
    ) -> datetime:
        now = now or datetime.now()
        await self.write_ranges(token, sheet_id, rsvp_ranges(row_indexes, attending, now, self.settings.RSVP_SHEET_NAME))
        return now
