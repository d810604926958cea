from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..schedules.model import EffectiveWindow
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_scan(self, *, now: datetime, window: EffectiveWindow, grace_minutes: int) -> AttendanceStrategy:
        if window.start_time is None:
            return PresentStrategy()

        start = datetime.combine(window.on_date, window.start_time)
        if now.replace(tzinfo=None) <= start + timedelta(minutes=grace_minutes):
            return PresentStrategy()
        return LateStrategy()
