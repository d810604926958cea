from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...schedules.model import EffectiveWindow
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Scanned after the grace period."""

    def decide(self, *, now: datetime, window: EffectiveWindow, grace_minutes: int) -> StatusDecision:
        note = None
        if window.source == "override" and window.override_type is not None:
            note = f"Late against {window.override_type.value} window"
        return StatusDecision(status=AttendanceStatus.LATE, note=note)
