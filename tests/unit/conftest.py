from datetime import datetime, timezone
from typing import Dict

import pytest

from kiosk.db.base_store import BaseMetricsStore, check_counter
from kiosk.models import COUNTER_FIELDS, MetricsDay
from kiosk.services.domain.day_clock import DayClock

# 10:00 Monday 2025-03-10 in Brisbane
T0 = datetime(2025, 3, 10, 0, 0, tzinfo=timezone.utc)


class MemoryStore(BaseMetricsStore):

    name = "memory"

    def __init__(self, clock=None):
        super().__init__(clock or DayClock("Australia/Brisbane"))
        self.days: Dict[str, Dict[str, int]] = {}
        self.calls = []

    async def bump(self, counter: str, now: datetime):
        check_counter(counter)
        self.calls.append(counter)
        row = self.days.setdefault(self.clock.day_key(now), {name: 0 for name in COUNTER_FIELDS})
        row[counter] += 1

    async def get_metrics(self) -> Dict[str, MetricsDay]:
        return {day: MetricsDay(day=day, **counters) for day, counters in self.days.items()}


class BrokenStore(BaseMetricsStore):

    name = "broken"

    def __init__(self, clock=None):
        super().__init__(clock or DayClock("Australia/Brisbane"))

    async def bump(self, counter: str, now: datetime):
        raise RuntimeError("backend down")

    async def get_metrics(self) -> Dict[str, MetricsDay]:
        raise RuntimeError("backend down")


@pytest.fixture()
def clock():
    return DayClock("Australia/Brisbane")
