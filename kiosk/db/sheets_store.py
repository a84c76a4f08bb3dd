"""
Metrics kept in a Google Sheets tab, one row per day.

Layout of the tab (row 1 is the header)::

    day | qr_scans | redirects | game_wins | total_plays

Every increment is a read-modify-write over the network: read the tab, find
or append the day's row, write the incremented cell back. Increments from
this process run one at a time. Failures and malformed replies are logged
and the increment is dropped; nothing is retried.
"""

import asyncio
import logging
import re
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx

from config.settings import SHEETS_ACCESS_TOKEN, SHEETS_SPREADSHEET_ID, SHEETS_TAB, SHEETS_TIMEOUT
from kiosk.db.base_store import BaseMetricsStore, check_counter
from kiosk.models import COUNTER_FIELDS, MetricsDay
from kiosk.services.domain.day_clock import DayClock

logger = logging.getLogger(__name__)

SHEETS_API = "https://sheets.googleapis.com/v4/spreadsheets"
HEADER = ["day", *COUNTER_FIELDS]
COLUMNS = {name: chr(ord("B") + i) for i, name in enumerate(COUNTER_FIELDS)}
LAST_COLUMN = chr(ord("A") + len(HEADER) - 1)

UPDATED_ROW = re.compile(r"![A-Z]+(\d+)(?::[A-Z]+(\d+))?$")


class MalformedSheetError(ValueError):
    pass


class SheetsMetricsStore(BaseMetricsStore):

    name = "sheets"

    def __init__(
        self,
        spreadsheet_id: str | None = SHEETS_SPREADSHEET_ID,
        access_token: str | None = SHEETS_ACCESS_TOKEN,
        tab: str = SHEETS_TAB,
        timeout: float = SHEETS_TIMEOUT,
        clock: DayClock | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):

        super().__init__(clock)
        self.tab = tab
        self.base_url = f"{SHEETS_API}/{spreadsheet_id}/values"
        self.client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Authorization": f"Bearer {access_token}"},
            transport=transport,
        )
        # one read-modify-write at a time, or overlapping scans overwrite each other
        self._write_lock = asyncio.Lock()

    def _range_url(self, a1: str, suffix: str = "") -> str:
        return f"{self.base_url}/{quote(f'{self.tab}!{a1}', safe='')}{suffix}"

    async def _read_rows(self) -> List[list]:

        response = await self.client.get(self._range_url(f"A:{LAST_COLUMN}"))
        response.raise_for_status()

        payload = response.json()
        if not isinstance(payload, dict):
            raise MalformedSheetError(f"expected a JSON object, got {type(payload).__name__}")

        values = payload.get("values", [])
        if not isinstance(values, list) or not all(isinstance(row, list) for row in values):
            raise MalformedSheetError("values is not a list of rows")

        return values

    @staticmethod
    def _data_rows(values: List[list]) -> List[Tuple[int, list]]:

        """Pair each data row with its 1-based sheet row number, skipping the header."""

        rows = []
        for index, row in enumerate(values, start=1):
            if index == 1 and row and str(row[0]).strip().lower() == "day":
                continue
            if row and str(row[0]).strip():
                rows.append((index, row))

        return rows

    @staticmethod
    def _cell_int(row: list, column_index: int) -> int:

        if column_index >= len(row) or str(row[column_index]).strip() == "":
            return 0

        try:
            value = int(str(row[column_index]).strip())
        except ValueError:
            raise MalformedSheetError(f"non-integer counter {row[column_index]!r} in row {row!r}")

        if value < 0:
            raise MalformedSheetError(f"negative counter in row {row!r}")

        return value

    async def _append_day(self, day: str, with_header: bool) -> int:

        values = [[day] + [0] * len(COUNTER_FIELDS)]
        if with_header:
            values.insert(0, HEADER)

        response = await self.client.post(
            self._range_url(f"A:{LAST_COLUMN}", ":append"),
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
            json={"values": values},
        )
        response.raise_for_status()

        payload = response.json()
        updates = payload.get("updates") if isinstance(payload, dict) else None
        if not isinstance(updates, dict):
            raise MalformedSheetError("append reply has no updates object")

        updated_range = str(updates.get("updatedRange", ""))
        match = UPDATED_ROW.search(updated_range)
        if not match:
            raise MalformedSheetError(f"append returned no usable range: {updated_range!r}")

        return int(match.group(2) or match.group(1))

    async def _find_day(self, day: str) -> Tuple[Optional[int], Optional[list], bool]:

        values = await self._read_rows()

        for row_number, row in self._data_rows(values):
            if str(row[0]).strip() == day:
                return row_number, row, False

        return None, None, not values

    async def bump(self, counter: str, now: datetime):

        check_counter(counter)
        day = self.clock.day_key(now)

        async with self._write_lock:
            try:
                await self._increment(counter, day)

            except (httpx.HTTPError, ValueError, KeyError) as e:
                logger.warning(f"Sheets increment of {counter} for {day} failed: {e}")

    async def _increment(self, counter: str, day: str):

        row_number, row, sheet_empty = await self._find_day(day)

        if row_number is None:
            row_number = await self._append_day(day, with_header=sheet_empty)
            current = 0
        else:
            current = self._cell_int(row, COUNTER_FIELDS.index(counter) + 1)

        response = await self.client.put(
            self._range_url(f"{COLUMNS[counter]}{row_number}"),
            params={"valueInputOption": "RAW"},
            json={"values": [[current + 1]]},
        )
        response.raise_for_status()

    async def get_metrics(self) -> Dict[str, MetricsDay]:

        try:
            values = await self._read_rows()

        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Sheets metrics read failed: {e}")
            return {}

        metrics = {}
        for _, row in self._data_rows(values):

            day = str(row[0]).strip()
            if day in metrics:
                continue

            try:
                counters = {name: self._cell_int(row, i + 1) for i, name in enumerate(COUNTER_FIELDS)}
            except MalformedSheetError as e:
                logger.warning(f"Skipping sheet row for {day}: {e}")
                continue

            metrics[day] = MetricsDay(day=day, **counters)

        return metrics

    async def close(self):
        await self.client.aclose()
