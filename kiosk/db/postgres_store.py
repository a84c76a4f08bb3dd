import asyncio
import logging
from datetime import datetime
from typing import Dict

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from kiosk.db.base_store import BaseMetricsStore, check_counter
from kiosk.db.connection import get_engine
from kiosk.models import MetricsDay
from kiosk.services.domain.day_clock import DayClock

logger = logging.getLogger(__name__)

CREATE_TABLE = text("""
    CREATE TABLE IF NOT EXISTS kiosk_metrics (
        day DATE PRIMARY KEY,
        qr_scans INTEGER NOT NULL DEFAULT 0 CHECK (qr_scans >= 0),
        redirects INTEGER NOT NULL DEFAULT 0 CHECK (redirects >= 0),
        game_wins INTEGER NOT NULL DEFAULT 0 CHECK (game_wins >= 0),
        total_plays INTEGER NOT NULL DEFAULT 0 CHECK (total_plays >= 0)
    )
""")

SELECT_ROWS = text("""
    SELECT day, qr_scans, redirects, game_wins, total_plays
    FROM kiosk_metrics
    ORDER BY day
""")


def increment_query(counter: str):

    # counter is whitelisted by check_counter, never user input
    return text(f"""
        INSERT INTO kiosk_metrics (day, {counter})
        VALUES (:day, 1)
        ON CONFLICT (day) DO UPDATE
        SET {counter} = kiosk_metrics.{counter} + 1
    """)


class PostgresMetricsStore(BaseMetricsStore):

    """One row per day; increments are a single atomic upsert."""

    name = "postgres"

    def __init__(self, engine: Engine | None = None, clock: DayClock | None = None):

        super().__init__(clock)
        self.engine = engine or get_engine()
        self._schema_ready = False

    def _ensure_schema(self):

        if self._schema_ready:
            return

        with self.engine.begin() as conn:
            conn.execute(CREATE_TABLE)

        self._schema_ready = True

    def _increment(self, counter: str, day: str):

        self._ensure_schema()

        with self.engine.begin() as conn:
            conn.execute(increment_query(counter), {"day": day})

    def _select(self) -> Dict[str, MetricsDay]:

        self._ensure_schema()

        with self.engine.begin() as conn:
            result = conn.execute(SELECT_ROWS)

            metrics = {}
            for row in result:
                data = dict(row._mapping)
                day = str(data.pop("day"))
                metrics[day] = MetricsDay(day=day, **{k: int(v or 0) for k, v in data.items()})

            return metrics

    async def bump(self, counter: str, now: datetime):

        check_counter(counter)
        day = self.clock.day_key(now)

        try:
            await asyncio.to_thread(self._increment, counter, day)

        except SQLAlchemyError as e:
            logger.warning(f"Postgres increment of {counter} for {day} failed: {e}")

    async def get_metrics(self) -> Dict[str, MetricsDay]:

        try:
            return await asyncio.to_thread(self._select)

        except SQLAlchemyError as e:
            logger.warning(f"Postgres metrics read failed: {e}")
            return {}

    async def close(self):
        await asyncio.to_thread(self.engine.dispose)
