import logging
from datetime import datetime
from typing import Dict

from kiosk.db.base_store import BaseMetricsStore, check_counter
from kiosk.models import MetricsDay

logger = logging.getLogger(__name__)

# counters the kiosk itself produces; game results only exist in the primary
LOCAL_COUNTERS = ("qr_scans", "redirects")

class HybridMetricsStore(BaseMetricsStore):

    """
    Remote or relational primary with the local file store as a fallback.

    Writes: scan/redirect counters go to the local store (when mirroring is on)
    and to the primary; win/play counters go to the primary only.
    Reads: the primary wins unless it fails or has no days at all, in which
    case the local snapshot is returned. The two stores are never reconciled.
    """

    name = "hybrid"

    def __init__(self, primary: BaseMetricsStore, local: BaseMetricsStore, mirror_local: bool = True):

        super().__init__(primary.clock)
        self.primary = primary
        self.local = local
        self.mirror_local = mirror_local

    async def bump(self, counter: str, now: datetime):

        check_counter(counter)

        if self.mirror_local and counter in LOCAL_COUNTERS:
            try:
                await self.local.bump(counter, now)
            except Exception:
                logger.exception(f"Local fallback increment of {counter} failed")

        try:
            await self.primary.bump(counter, now)
        except Exception:
            logger.exception(f"Primary ({self.primary.name}) increment of {counter} failed")

    async def get_metrics(self) -> Dict[str, MetricsDay]:

        try:
            metrics = await self.primary.get_metrics()
        except Exception:
            logger.exception(f"Primary ({self.primary.name}) metrics read failed")
            metrics = {}

        if metrics:
            return metrics

        logger.info(f"Primary ({self.primary.name}) returned no days, reading local fallback")

        try:
            return await self.local.get_metrics()
        except Exception:
            logger.exception("Local fallback metrics read failed")
            return {}

    async def close(self):

        await self.primary.close()
        await self.local.close()
