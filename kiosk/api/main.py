import csv
import hmac
import io
import logging
from datetime import datetime
from typing import Callable

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from config.settings import ADMIN_KEY, GAME_URL, TRUST_PROXY
from kiosk.api.pages import cooldown_page, poster_page, stats_page
from kiosk.db.base_store import BaseMetricsStore
from kiosk.db.store_factory import get_store
from kiosk.models import COUNTER_FIELDS, AdSelectionInfo
from kiosk.services.domain.ad_selector import AdSelector, get_selector
from kiosk.services.domain.cooldown_gate import CooldownGate
from kiosk.services.domain.day_clock import utcnow
from kiosk.services.domain.redirect_builder import build_target, pack_label
from kiosk.services.external.qr_service import QRService, get_qr_service

logger = logging.getLogger(__name__)

NO_CACHE = {"Cache-Control": "no-store, no-cache, must-revalidate, max-age=0"}
UNAUTHORIZED = "Unauthorized. Append ?key=YOUR_ADMIN_KEY to the URL."


def client_key(request: Request, trust_proxy: bool = TRUST_PROXY) -> str:

    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    return request.client.host if request.client else "unknown"


def create_app(
    store: BaseMetricsStore | None = None,
    gate: CooldownGate | None = None,
    selector: AdSelector | None = None,
    qr_service: QRService | None = None,
    clock: Callable[[], datetime] = utcnow,
    game_url: str = GAME_URL,
    admin_key: str | None = ADMIN_KEY,
    trust_proxy: bool = TRUST_PROXY,
) -> FastAPI:

    if store is None:
        store = get_store()
    if gate is None:
        gate = CooldownGate()
    if selector is None:
        selector = get_selector()
    if qr_service is None:
        qr_service = get_qr_service()

    app = FastAPI(title="Flashka Kiosk")
    app.state.store = store
    app.state.gate = gate
    app.state.selector = selector

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def require_admin(key: str | None = Query(default=None)):

        if not admin_key:
            return

        if not hmac.compare_digest((key or "").encode(), admin_key.encode()):
            raise HTTPException(status_code=401, detail=UNAUTHORIZED)

    @app.on_event("shutdown")
    async def shutdown():
        await store.close()

    @app.get("/health")
    async def health():
        return {"status": "ok", "backend": store.name}

    @app.get("/")
    async def root():
        return RedirectResponse("/kiosk", status_code=302)

    @app.get("/kiosk", response_class=HTMLResponse)
    async def poster():
        return HTMLResponse(poster_page())

    @app.get("/kiosk/qr.png")
    async def qr_png(request: Request):

        scan_url = f"{str(request.base_url).rstrip('/')}/kiosk/scan"

        try:
            png = qr_service.png(scan_url)

        except Exception as e:
            logger.exception("QR generation failed")
            raise HTTPException(status_code=500, detail="QR generation failed") from e

        return Response(
            content=png,
            media_type="image/png",
            headers={"Content-Disposition": 'inline; filename="kiosk-qr.png"'},
        )

    @app.get("/kiosk/scan")
    async def scan(request: Request, ad: str | None = None):

        now = clock()
        key = client_key(request, trust_proxy)

        decision = gate.evaluate(key, now)

        if not decision.allowed:
            logger.info(f"[scan] IP={key} in cooldown, {decision.remaining_minutes} min left")
            return HTMLResponse(cooldown_page(decision.remaining_minutes), headers=NO_CACHE)

        # no await between evaluate and record
        gate.record(key, now)

        await store.bump_scan(now)
        await store.bump_redirect(now)

        ad_id = selector.select(ad, now)
        target = build_target(game_url, ad_id)

        logger.info(f"[scan] IP={key} mode={selector.config.mode} -> ad={ad_id}; redirect={target}")
        return RedirectResponse(target, status_code=302, headers=NO_CACHE)

    @app.post("/kiosk/game/play")
    async def game_play():
        await store.bump_play(clock())
        return {"status": "ok"}

    @app.post("/kiosk/game/win")
    async def game_win():
        await store.bump_win(clock())
        return {"status": "ok"}

    @app.get("/kiosk/stats", response_class=HTMLResponse, dependencies=[Depends(require_admin)])
    async def stats_html():
        rows = await store.get_metrics_rows()
        return HTMLResponse(stats_page(rows))

    @app.get("/kiosk/stats.json", dependencies=[Depends(require_admin)])
    async def stats_json():

        metrics = await store.get_metrics()

        return {
            "tz": store.clock.tz_name,
            "days": {day: metrics[day].counters() for day in sorted(metrics)},
        }

    @app.get("/kiosk/stats.csv", dependencies=[Depends(require_admin)])
    async def stats_csv():

        rows = await store.get_metrics_rows()

        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(["day", *COUNTER_FIELDS])
        for row in rows:
            writer.writerow([row.day, *row.counters().values()])

        return Response(
            content=buf.getvalue(),
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="kiosk-stats.csv"'},
        )

    @app.get("/kiosk/debug/ad", response_model=AdSelectionInfo, dependencies=[Depends(require_admin)])
    async def debug_ad(ad: str | None = None):

        now = clock()
        ad_id = selector.select(ad, now)

        return AdSelectionInfo(
            mode=selector.config.mode,
            override=ad,
            ad=ad_id,
            pack=pack_label(ad_id),
            weekday=selector.clock.weekday(now),
            target=build_target(game_url, ad_id),
        )

    return app
