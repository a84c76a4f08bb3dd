"""Models shared by the kiosk components."""

from kiosk.models.metrics_models import COUNTER_FIELDS, MetricsDay
from kiosk.models.kiosk_models import AdSelectionInfo, CooldownDecision

__all__ = ["COUNTER_FIELDS", "MetricsDay", "AdSelectionInfo", "CooldownDecision"]
