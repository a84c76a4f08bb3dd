from urllib.parse import parse_qs, urlsplit

from kiosk.services.domain.redirect_builder import build_target, pack_label


def test_sets_ad_pack_and_cache_buster():
    target = build_target("https://flashka16.onrender.com", "3", now_ms=1700000000000)

    parts = urlsplit(target)
    query = parse_qs(parts.query)

    assert parts.scheme == "https"
    assert parts.netloc == "flashka16.onrender.com"
    assert parts.path == "/"
    assert query == {"ad": ["3"], "pack": ["ad3"], "t": ["1700000000000"]}


def test_keeps_existing_params_and_replaces_kiosk_ones():
    target = build_target("https://game.example/play?lang=en&ad=9#top", "5", now_ms=42)

    parts = urlsplit(target)
    query = parse_qs(parts.query)

    assert parts.path == "/play"
    assert parts.fragment == "top"
    assert query == {"lang": ["en"], "ad": ["5"], "pack": ["ad5"], "t": ["42"]}


def test_cache_buster_defaults_to_current_time():
    first = int(parse_qs(urlsplit(build_target("https://game.example", "1")).query)["t"][0])
    second = int(parse_qs(urlsplit(build_target("https://game.example", "1")).query)["t"][0])

    assert first > 1_600_000_000_000
    assert second >= first


def test_pack_label():
    assert pack_label("7") == "ad7"
