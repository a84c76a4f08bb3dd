import asyncio
import json

import httpx

from conftest import T0
from kiosk.db.sheets_store import HEADER, SheetsMetricsStore


class FakeSheet:

    """In-memory stand-in for the Sheets values API."""

    def __init__(self, values=None):
        self.values = values if values is not None else []
        self.fail = False
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:

        self.requests.append(request)

        if self.fail:
            return httpx.Response(503, json={"error": "unavailable"})

        assert request.headers["Authorization"] == "Bearer token-123"
        a1 = request.url.path.split("/values/", 1)[1]

        if request.method == "GET":
            return httpx.Response(200, json={"values": self.values})

        body = json.loads(request.content)

        if request.method == "POST" and a1.endswith(":append"):
            start = len(self.values) + 1
            self.values.extend(body["values"])
            return httpx.Response(200, json={"updates": {"updatedRange": f"metrics!A{start}:E{len(self.values)}"}})

        if request.method == "PUT":
            cell = a1.split("!", 1)[1]
            column, row_number = ord(cell[0]) - ord("A"), int(cell[1:])
            row = self.values[row_number - 1]
            row.extend([""] * (column + 1 - len(row)))
            row[column] = str(body["values"][0][0])
            return httpx.Response(200, json={})

        return httpx.Response(400)


def make_store(sheet: FakeSheet, clock) -> SheetsMetricsStore:
    return SheetsMetricsStore(
        spreadsheet_id="sheet-id",
        access_token="token-123",
        tab="metrics",
        clock=clock,
        transport=httpx.MockTransport(sheet.handler),
    )


def test_first_bump_writes_header_and_row(clock):
    sheet = FakeSheet()
    store = make_store(sheet, clock)

    asyncio.run(store.bump_scan(T0))

    assert sheet.values[0] == HEADER
    assert sheet.values[1] == ["2025-03-10", "1", 0, 0, 0]


def test_increments_existing_row(clock):
    sheet = FakeSheet([HEADER, ["2025-03-09", "5", "4", "1", "2"], ["2025-03-10", "2", "2", "0", "0"]])
    store = make_store(sheet, clock)

    async def run():
        await store.bump_redirect(T0)
        await store.bump_win(T0)
        return await store.get_metrics()

    metrics = asyncio.run(run())

    assert metrics["2025-03-10"].counters() == {"qr_scans": 2, "redirects": 3, "game_wins": 1, "total_plays": 0}
    assert metrics["2025-03-09"].qr_scans == 5


def test_appends_new_day_below_existing_rows(clock):
    sheet = FakeSheet([HEADER, ["2025-03-09", "5", "4", "1", "2"]])
    store = make_store(sheet, clock)

    asyncio.run(store.bump_play(T0))

    assert len(sheet.values) == 3
    assert sheet.values[2][0] == "2025-03-10"
    assert sheet.values[2][4] == "1"


def test_rows_sorted_and_short_rows_padded(clock):
    sheet = FakeSheet([HEADER, ["2025-03-11", "1"], ["2025-03-09", "3", "3"]])
    store = make_store(sheet, clock)

    rows = asyncio.run(store.get_metrics_rows())

    assert [r.day for r in rows] == ["2025-03-09", "2025-03-11"]
    assert rows[1].counters() == {"qr_scans": 1, "redirects": 0, "game_wins": 0, "total_plays": 0}


def test_remote_failure_is_a_no_op(clock):
    sheet = FakeSheet([HEADER, ["2025-03-10", "2", "2", "0", "0"]])
    sheet.fail = True
    store = make_store(sheet, clock)

    asyncio.run(store.bump_scan(T0))

    assert asyncio.run(store.get_metrics()) == {}
    sheet.fail = False
    assert asyncio.run(store.get_metrics())["2025-03-10"].qr_scans == 2


def test_malformed_counter_skips_increment(clock):
    sheet = FakeSheet([HEADER, ["2025-03-10", "lots", "2", "0", "0"]])
    store = make_store(sheet, clock)

    asyncio.run(store.bump_scan(T0))

    assert sheet.values[1][1] == "lots"
    assert not any(r.method == "PUT" for r in sheet.requests)
    assert asyncio.run(store.get_metrics()) == {}


def test_overlapping_bumps_are_all_counted(clock):
    sheet = FakeSheet()

    async def slow_handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.01)
        return sheet.handler(request)

    store = SheetsMetricsStore(
        spreadsheet_id="sheet-id",
        access_token="token-123",
        tab="metrics",
        clock=clock,
        transport=httpx.MockTransport(slow_handler),
    )

    async def run():
        await asyncio.gather(*(store.bump_scan(T0) for _ in range(5)))
        return await store.get_metrics()

    metrics = asyncio.run(run())

    assert metrics["2025-03-10"].qr_scans == 5
    assert len(sheet.values) == 2


def non_object_store(clock) -> SheetsMetricsStore:
    return SheetsMetricsStore(
        spreadsheet_id="sheet-id",
        access_token="token-123",
        tab="metrics",
        clock=clock,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[1, 2])),
    )


def test_non_object_reply_is_ignored(clock):
    store = non_object_store(clock)

    asyncio.run(store.bump_scan(T0))

    assert asyncio.run(store.get_metrics()) == {}


def test_values_that_are_not_rows_are_ignored(clock):
    store = make_store(FakeSheet(["2025-03-10", "1"]), clock)

    asyncio.run(store.bump_scan(T0))

    assert asyncio.run(store.get_metrics_rows()) == []


def test_malformed_append_reply_skips_increment(clock):
    sheet = FakeSheet()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(200, json=["not", "an", "object"])
        return sheet.handler(request)

    store = SheetsMetricsStore(
        spreadsheet_id="sheet-id",
        access_token="token-123",
        tab="metrics",
        clock=clock,
        transport=httpx.MockTransport(handler),
    )

    asyncio.run(store.bump_scan(T0))

    assert not any(r.method == "PUT" for r in sheet.requests)


def test_scan_still_redirects_when_sheet_reply_is_malformed(clock):
    from fastapi.testclient import TestClient

    from kiosk.api.main import create_app
    from kiosk.services.domain.ad_selector import AdSelector, AdSelectorConfig
    from kiosk.services.domain.cooldown_gate import CooldownGate

    app = create_app(
        store=non_object_store(clock),
        gate=CooldownGate(cooldown_minutes=15),
        selector=AdSelector(AdSelectorConfig(), clock=clock),
        clock=lambda: T0,
        game_url="https://game.example/play",
        admin_key=None,
    )
    client = TestClient(app)

    assert client.get("/kiosk/scan", follow_redirects=False).status_code == 302
    stats = client.get("/kiosk/stats.json")
    assert stats.status_code == 200
    assert stats.json()["days"] == {}
