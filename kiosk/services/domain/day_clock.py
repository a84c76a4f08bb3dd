"""
Calendar-day bucketing in the kiosk's fixed civil timezone.

Every metrics row and every weekday rotation decision is evaluated here,
so a scan just after local midnight always lands in the new day regardless
of the server's own timezone.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from config.settings import KIOSK_TZ

WEEKDAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DayClock:

    def __init__(self, tz_name: str = KIOSK_TZ):
        self.tz_name = tz_name
        self.tz = ZoneInfo(tz_name)

    def local(self, now: datetime) -> datetime:

        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        return now.astimezone(self.tz)

    def day_key(self, now: datetime) -> str:
        return self.local(now).strftime("%Y-%m-%d")

    def weekday(self, now: datetime) -> str:
        return WEEKDAY_NAMES[self.local(now).weekday()]


_clock = None

def get_clock() -> DayClock:

    global _clock
    if _clock is None:
        _clock = DayClock()

    return _clock
