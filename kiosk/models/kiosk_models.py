"""Value types passed between the scan pipeline components."""

from dataclasses import dataclass
from pydantic import BaseModel


@dataclass(frozen=True)
class CooldownDecision:

    allowed: bool
    remaining_seconds: int = 0

    @property
    def remaining_minutes(self) -> int:
        # ceiling to whole minutes, the only rounding shown to visitors
        return -(-self.remaining_seconds // 60)


class AdSelectionInfo(BaseModel):

    """Inspection payload for the debug endpoint."""
    mode: str
    override: str | None
    ad: str
    pack: str
    weekday: str
    target: str
