"""
Ad pack selection.

Two modes:
- forced:   one configured pack for every scan
- rotation: pack chosen by the weekday of the scan in the kiosk timezone

In both modes a valid ``?ad=N`` override on the request wins. Anything that
is not a single digit inside the configured range is ignored.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from config.settings import AD_MAX, AD_MIN, AD_MODE, AD_ROTATION, DEFAULT_AD, FORCE_AD
from kiosk.services.domain.day_clock import WEEKDAY_NAMES, DayClock, get_clock

logger = logging.getLogger(__name__)

AD_PATTERN = re.compile(r"\d")


def is_valid_ad(value: Optional[str], ad_min: int = AD_MIN, ad_max: int = AD_MAX) -> bool:

    if value is None:
        return False

    value = value.strip()
    return bool(AD_PATTERN.fullmatch(value)) and ad_min <= int(value) <= ad_max


def parse_rotation(raw: str, default: str, ad_min: int = AD_MIN, ad_max: int = AD_MAX) -> Dict[str, str]:

    """Parse ``mon:1,tue:2,...`` into a table covering all seven weekdays."""

    table = {day: default for day in WEEKDAY_NAMES}

    for part in (raw or "").split(","):

        day, _, ad = part.partition(":")
        day = day.strip().lower()[:3]
        ad = ad.strip()

        if day not in table:
            if part.strip():
                logger.warning(f"Ignoring rotation entry with unknown weekday: {part!r}")
            continue

        if not is_valid_ad(ad, ad_min, ad_max):
            logger.warning(f"Ignoring rotation entry with invalid ad id: {part!r}")
            continue

        table[day] = ad

    return table


@dataclass(frozen=True)
class AdSelectorConfig:

    mode: str = "forced"
    forced: str = DEFAULT_AD
    rotation: Dict[str, str] = field(default_factory=dict)
    ad_min: int = AD_MIN
    ad_max: int = AD_MAX


class AdSelector:

    def __init__(self, config: AdSelectorConfig, clock: DayClock | None = None):
        self.config = config
        self.clock = clock or get_clock()

    @property
    def default_ad(self) -> str:

        if is_valid_ad(self.config.forced, self.config.ad_min, self.config.ad_max):
            return self.config.forced.strip()

        return DEFAULT_AD

    def is_valid(self, value: Optional[str]) -> bool:
        return is_valid_ad(value, self.config.ad_min, self.config.ad_max)

    def select(self, override: Optional[str], now: datetime) -> str:

        if self.is_valid(override):
            return override.strip()

        if self.config.mode == "rotation":
            ad = self.config.rotation.get(self.clock.weekday(now))
            if self.is_valid(ad):
                return ad

        return self.default_ad


def config_from_settings() -> AdSelectorConfig:
    return AdSelectorConfig(
        mode=AD_MODE,
        forced=FORCE_AD,
        rotation=parse_rotation(AD_ROTATION, FORCE_AD),
        ad_min=AD_MIN,
        ad_max=AD_MAX,
    )

_selector = None

def get_selector() -> AdSelector:

    global _selector
    if _selector is None:
        _selector = AdSelector(config_from_settings())

    return _selector
