from datetime import datetime
from typing import Dict, List

from kiosk.models import COUNTER_FIELDS, MetricsDay
from kiosk.services.domain.day_clock import DayClock, get_clock

class BaseMetricsStore:

    """
    Shared surface of every metrics backend.

    Backends implement ``bump(counter, now)`` and ``get_metrics()``; the named
    bump helpers and the sorted row projection are derived from those two.
    Neither method may raise for storage failures.
    """

    name = "base"

    def __init__(self, clock: DayClock | None = None):
        self.clock = clock or get_clock()

    async def bump(self, counter: str, now: datetime):
        raise NotImplementedError

    async def get_metrics(self) -> Dict[str, MetricsDay]:
        raise NotImplementedError

    async def bump_scan(self, now: datetime):
        await self.bump("qr_scans", now)

    async def bump_redirect(self, now: datetime):
        await self.bump("redirects", now)

    async def bump_win(self, now: datetime):
        await self.bump("game_wins", now)

    async def bump_play(self, now: datetime):
        await self.bump("total_plays", now)

    async def get_metrics_rows(self) -> List[MetricsDay]:

        metrics = await self.get_metrics()
        return [metrics[day] for day in sorted(metrics)]

    async def close(self):
        pass


def check_counter(counter: str) -> str:

    if counter not in COUNTER_FIELDS:
        raise ValueError(f"Unknown metrics counter: {counter}")

    return counter
