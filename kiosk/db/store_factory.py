import logging

from config.settings import (
    HYBRID_MIRROR_LOCAL,
    HYBRID_PRIMARY,
    METRICS_BACKEND,
    METRICS_FILE,
    SHEETS_ACCESS_TOKEN,
    SHEETS_SPREADSHEET_ID,
)
from kiosk.db.base_store import BaseMetricsStore
from kiosk.db.file_store import FileMetricsStore
from kiosk.db.hybrid_store import HybridMetricsStore
from kiosk.services.domain.day_clock import DayClock, get_clock

logger = logging.getLogger(__name__)

BACKENDS = ("file", "sheets", "postgres", "hybrid")


class KioskConfigError(ValueError):
    pass


def _primary_store(backend: str, clock: DayClock) -> BaseMetricsStore:

    if backend == "sheets":

        if not (SHEETS_SPREADSHEET_ID and SHEETS_ACCESS_TOKEN):
            raise KioskConfigError("sheets backend needs SHEETS_SPREADSHEET_ID and SHEETS_ACCESS_TOKEN")

        from kiosk.db.sheets_store import SheetsMetricsStore
        return SheetsMetricsStore(clock=clock)

    if backend == "postgres":
        from kiosk.db.postgres_store import PostgresMetricsStore
        return PostgresMetricsStore(clock=clock)

    raise KioskConfigError(f"{backend!r} cannot be used as a primary metrics store")


def build_store(backend: str = METRICS_BACKEND, clock: DayClock | None = None) -> BaseMetricsStore:

    clock = clock or get_clock()

    if backend not in BACKENDS:
        raise KioskConfigError(f"METRICS_BACKEND must be one of {', '.join(BACKENDS)}, got {backend!r}")

    if backend == "file":
        store = FileMetricsStore(METRICS_FILE, clock=clock)

    elif backend == "hybrid":
        store = HybridMetricsStore(
            primary=_primary_store(HYBRID_PRIMARY, clock),
            local=FileMetricsStore(METRICS_FILE, clock=clock),
            mirror_local=HYBRID_MIRROR_LOCAL,
        )

    else:
        store = _primary_store(backend, clock)

    logger.info(f"Metrics backend: {store.name}")
    return store

_store = None

def get_store() -> BaseMetricsStore:

    global _store
    if _store is None:
        _store = build_store()

    return _store
