import asyncio
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict

from config.settings import METRICS_FILE
from kiosk.db.base_store import BaseMetricsStore, check_counter
from kiosk.models import COUNTER_FIELDS, MetricsDay
from kiosk.services.domain.day_clock import DayClock

logger = logging.getLogger(__name__)

class FileMetricsStore(BaseMetricsStore):

    """
    Whole metrics mapping kept in memory and snapshotted to a JSON file.

    Counters are incremented synchronously before the first suspension point,
    so concurrent handlers can never lose an increment. Snapshot writes run in
    a worker thread behind a single lock and always write the newest state.
    Not safe for several processes sharing one file.
    """

    name = "file"

    def __init__(self, path: str | Path = METRICS_FILE, clock: DayClock | None = None):

        super().__init__(clock)
        self.path = Path(path)
        self.metrics = self._load()
        self._version = 0
        self._saved_version = 0
        self._save_lock = asyncio.Lock()

    def _empty(self) -> dict:
        return {"tz": self.clock.tz_name, "days": {}}

    def _load(self) -> dict:

        if not self.path.exists():
            return self._empty()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))

        except (OSError, ValueError):
            logger.exception(f"Could not read metrics snapshot {self.path}, starting empty")
            return self._empty()

        days = data.get("days") if isinstance(data, dict) else None
        if not isinstance(days, dict):
            logger.warning(f"Metrics snapshot {self.path} has no days mapping, starting empty")
            return self._empty()

        if data.get("tz") not in (None, self.clock.tz_name):
            logger.warning(f"Metrics snapshot was written for {data.get('tz')}, now bucketing in {self.clock.tz_name}")

        clean = {}
        for day, counters in days.items():
            try:
                row = {name: int(counters.get(name, 0)) for name in COUNTER_FIELDS}
            except (AttributeError, TypeError, ValueError):
                row = None

            if row is None or min(row.values()) < 0:
                logger.warning(f"Skipping malformed metrics row for {day!r}")
                continue

            clean[day] = row

        logger.info(f"Loaded {len(clean)} metrics days from {self.path}")
        return {"tz": self.clock.tz_name, "days": clean}

    def _write(self, payload: str):

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(payload, encoding="utf-8")
        os.replace(tmp, self.path)

    async def save(self):

        async with self._save_lock:

            if self._saved_version == self._version:
                return

            version = self._version
            payload = json.dumps(self.metrics, indent=2)

            try:
                await asyncio.to_thread(self._write, payload)
                self._saved_version = version

            except OSError:
                logger.exception(f"Failed to write metrics snapshot {self.path}")

    async def bump(self, counter: str, now: datetime):

        check_counter(counter)
        day = self.clock.day_key(now)

        row = self.metrics["days"].setdefault(day, {name: 0 for name in COUNTER_FIELDS})
        row[counter] = row.get(counter, 0) + 1
        self._version += 1

        await self.save()

    async def get_metrics(self) -> Dict[str, MetricsDay]:

        return {
            day: MetricsDay(day=day, **counters)
            for day, counters in self.metrics["days"].items()
        }
