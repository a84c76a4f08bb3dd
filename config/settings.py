import os
import re
from dotenv import load_dotenv

load_dotenv(override=True)


def env_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


PORT = env_int("PORT", 3030)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

GAME_URL = os.getenv("GAME_URL", "https://flashka16.onrender.com")
ADMIN_KEY = os.getenv("ADMIN_KEY") or None
TRUST_PROXY = env_bool("TRUST_PROXY", True)

KIOSK_TZ = os.getenv("KIOSK_TZ", "Australia/Brisbane")

SCAN_COOLDOWN_MINUTES = max(0, env_int("SCAN_COOLDOWN_MINUTES", 15))

# ── Ad packs ─────────────────────────────────────────────────────────────────
AD_MIN = env_int("AD_MIN", 1)
AD_MAX = env_int("AD_MAX", 8)
DEFAULT_AD = "3"

AD_MODE = os.getenv("AD_MODE", "forced").strip().lower()
if AD_MODE not in ("forced", "rotation"):
    AD_MODE = "forced"

FORCE_AD_RAW = os.getenv("FORCE_AD", "").strip()
FORCE_AD = FORCE_AD_RAW if re.fullmatch(r"\d", FORCE_AD_RAW) and AD_MIN <= int(FORCE_AD_RAW) <= AD_MAX else DEFAULT_AD

AD_ROTATION = os.getenv("AD_ROTATION", "mon:1,tue:2,wed:3,thu:4,fri:5,sat:6,sun:7")

# ── Metrics storage ──────────────────────────────────────────────────────────
METRICS_BACKEND = os.getenv("METRICS_BACKEND", "file").strip().lower()
HYBRID_PRIMARY = os.getenv("HYBRID_PRIMARY", "postgres").strip().lower()
HYBRID_MIRROR_LOCAL = env_bool("HYBRID_MIRROR_LOCAL", True)

METRICS_FILE = os.getenv("METRICS_FILE", os.path.join("data", "metrics.json"))

POSTGRES_USER = os.getenv("POSTGRES_KIOSK_USER", "kiosk_user")
POSTGRES_PASSWORD = os.getenv("POSTGRES_KIOSK_PASSWORD", "kiosk_pass")
POSTGRES_DB = os.getenv("POSTGRES_KIOSK_DB", "kiosk")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "localhost")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}",
)

SHEETS_SPREADSHEET_ID = os.getenv("SHEETS_SPREADSHEET_ID")
SHEETS_ACCESS_TOKEN = os.getenv("SHEETS_ACCESS_TOKEN")
SHEETS_TAB = os.getenv("SHEETS_TAB", "metrics")
SHEETS_TIMEOUT = env_int("SHEETS_TIMEOUT", 10)
