"""Minimal HTML for the poster shell, the cooldown page and the stats table."""

from html import escape
from typing import List

from kiosk.models import COUNTER_FIELDS, MetricsDay

STATS_HEADINGS = ("Date", "Scans", "Redirects", "Game wins", "Plays")


def poster_page(qr_src: str = "/kiosk/qr.png") -> str:
    return f"""<!doctype html>
<html lang="en"><head>
<meta charset="utf-8"/><meta name="viewport" content="width=device-width,initial-scale=1"/>
<title>Flashka - Scan to Play</title>
</head><body style="margin:0;display:flex;align-items:center;justify-content:center;min-height:100vh;font-family:Arial,sans-serif">
  <div style="text-align:center">
    <h1>Scan to play Flashka</h1>
    <img src="{escape(qr_src)}" alt="Scan this QR code to play" width="320" height="320"/>
  </div>
</body></html>"""


def cooldown_page(remaining_minutes: int) -> str:

    unit = "minute" if remaining_minutes == 1 else "minutes"

    return f"""<!doctype html>
<html lang="en"><head>
<meta charset="utf-8"/><meta name="viewport" content="width=device-width,initial-scale=1"/>
<title>Flashka - Please Wait</title>
</head><body style="margin:0;display:flex;align-items:center;justify-content:center;min-height:100vh;font-family:Arial,sans-serif">
  <div style="text-align:center">
    <h1>Thanks for Playing!</h1>
    <p>You can play Flashka again in:</p>
    <p><strong>{remaining_minutes} {unit}</strong></p>
    <p>Enjoy your coffee!</p>
  </div>
</body></html>"""


def stats_page(rows: List[MetricsDay]) -> str:

    if rows:
        body = "".join(
            "<tr><td>{}</td>{}</tr>".format(
                escape(row.day),
                "".join(f'<td style="text-align:right">{getattr(row, name)}</td>' for name in COUNTER_FIELDS),
            )
            for row in rows
        )
    else:
        body = f'<tr><td colspan="{len(STATS_HEADINGS)}" style="text-align:center;color:#777">No data yet</td></tr>'

    headings = "".join(f"<th>{h}</th>" for h in STATS_HEADINGS)

    return f"""<!doctype html><html><head><title>Kiosk Stats</title></head><body>
  <h1>Flashka – Kiosk Stats</h1>
  <table border="1" cellpadding="5"><tr>{headings}</tr>{body}</table>
  </body></html>"""
