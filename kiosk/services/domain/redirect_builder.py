import time
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

PACK_PREFIX = "ad"


def pack_label(ad_id: str) -> str:
    return f"{PACK_PREFIX}{ad_id}"


def build_target(base_game_url: str, ad_id: str, now_ms: int | None = None) -> str:

    """
    Return ``base_game_url`` with ``ad``, ``pack`` and ``t`` query parameters set.

    Existing query parameters are preserved; the three kiosk ones replace any
    previous values. ``t`` is the cache-busting timestamp in milliseconds.
    """

    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000

    parts = urlsplit(base_game_url)
    path = parts.path or "/"

    overrides = {"ad": str(ad_id), "pack": pack_label(ad_id), "t": str(now_ms)}
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in overrides]
    query.extend(overrides.items())

    return urlunsplit((parts.scheme, parts.netloc, path, urlencode(query), parts.fragment))
