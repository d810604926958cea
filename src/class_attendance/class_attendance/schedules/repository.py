from __future__ import annotations

from datetime import date, time
from typing import Optional, Protocol, Sequence

from ..core.enums import OverrideStatus, OverrideType
from ..overrides.state import OverrideState
from .model import Schedule, ScheduleOverride


class ScheduleRepository(Protocol):
    def get_schedule(self, schedule_id: int) -> Optional[Schedule]:
        raise NotImplementedError

    # Overrides
    def get_override(self, override_id: int) -> Optional[ScheduleOverride]:
        raise NotImplementedError

    def find_override(self, *, schedule_id: int, override_date: date) -> Optional[ScheduleOverride]:
        raise NotImplementedError

    def find_approved_override(self, *, schedule_id: int, override_date: date) -> Optional[ScheduleOverride]:
        raise NotImplementedError

    def insert_override(
        self,
        *,
        schedule_id: int,
        override_date: date,
        override_type: OverrideType,
        new_start_time: Optional[time],
        new_end_time: Optional[time],
        reason: Optional[str],
        state: OverrideState,
    ) -> int:
        """Insert an override in the given (normally Pending) state.

        Raises ConcurrencyConflictError if one already exists for the
        (schedule_id, override_date) pair.
        """

        raise NotImplementedError

    def resubmit_override(
        self,
        *,
        override_id: int,
        expected_version: int,
        override_type: OverrideType,
        new_start_time: Optional[time],
        new_end_time: Optional[time],
        reason: Optional[str],
        state: OverrideState,
    ) -> bool:
        """Replace the proposal fields and review state in place.

        Returns False if the row's version no longer matches.
        """

        raise NotImplementedError

    def update_override_state(
        self,
        *,
        override_id: int,
        expected_version: int,
        state: OverrideState,
    ) -> bool:
        """Compare-and-set the review state. Returns False on version mismatch."""

        raise NotImplementedError

    def list_overrides(
        self,
        *,
        status: Optional[OverrideStatus] = None,
        teacher_user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[ScheduleOverride]:
        raise NotImplementedError
