"""Pydantic models for the daily metrics schema."""

from pydantic import BaseModel, Field
from typing import Dict, Tuple

COUNTER_FIELDS: Tuple[str, ...] = ("qr_scans", "redirects", "game_wins", "total_plays")

class MetricsDay(BaseModel):

    day: str
    qr_scans: int = Field(default=0, ge=0)
    redirects: int = Field(default=0, ge=0)
    game_wins: int = Field(default=0, ge=0)
    total_plays: int = Field(default=0, ge=0)

    def counters(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in COUNTER_FIELDS}
