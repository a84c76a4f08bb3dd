import logging
import math
from datetime import datetime, timedelta
from typing import Dict

from config.settings import SCAN_COOLDOWN_MINUTES
from kiosk.models import CooldownDecision

logger = logging.getLogger(__name__)

class CooldownGate:

    """Per-client last-seen tracker enforcing a minimum interval between scans."""

    def __init__(self, cooldown_minutes: float = SCAN_COOLDOWN_MINUTES):
        self.cooldown = timedelta(minutes=cooldown_minutes)
        self.last_scans: Dict[str, datetime] = {}

    def evaluate(self, client_key: str, now: datetime) -> CooldownDecision:

        last_scan = self.last_scans.get(client_key)

        if last_scan is None:
            return CooldownDecision(allowed=True)

        elapsed = now - last_scan
        if elapsed >= self.cooldown:
            return CooldownDecision(allowed=True)

        remaining = self.cooldown - elapsed
        # rounded up so a denied client never sees 0
        remaining_seconds = math.ceil(remaining.total_seconds())
        return CooldownDecision(allowed=False, remaining_seconds=max(1, remaining_seconds))

    def record(self, client_key: str, now: datetime):

        self.last_scans[client_key] = now
        self.evict(now)

    def evict(self, now: datetime) -> int:

        cutoff = now - 2 * self.cooldown
        stale = [key for key, ts in self.last_scans.items() if ts < cutoff]

        for key in stale:
            del self.last_scans[key]

        if stale:
            logger.debug(f"Evicted {len(stale)} stale cooldown entries")

        return len(stale)

    def __len__(self) -> int:
        return len(self.last_scans)

    def __contains__(self, client_key: str) -> bool:
        return client_key in self.last_scans
