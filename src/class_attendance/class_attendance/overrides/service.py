from __future__ import annotations

import logging
from datetime import date, time
from typing import Optional, Sequence

from ..audit.service import AuditService
from ..auth.capabilities import Principal
from ..common.validators import require_time_order
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import OverrideStatus, OverrideType
from ..core.exceptions import ConcurrencyConflictError, NotFoundError, ValidationError
from ..schedules.model import EffectiveWindow, Schedule, ScheduleOverride
from ..schedules.repository import ScheduleRepository
from .state import Decided, Submitted, transition

logger = logging.getLogger(__name__)


class OverrideService:
    """Propose / decide workflow for one-day schedule overrides."""

    def __init__(self, schedules: ScheduleRepository, audit: AuditService):
        self._schedules = schedules
        self._audit = audit

    @staticmethod
    def _parse_type(value) -> OverrideType:
        try:
            return OverrideType(value)
        except ValueError:
            raise ValidationError("Override type must be one of: cancel, half-day, time-change")

    def get_schedule(self, schedule_id: int) -> Schedule:
        schedule = self._schedules.get_schedule(int(schedule_id))
        if not schedule:
            raise NotFoundError("Schedule not found")
        return schedule

    def propose(
        self,
        actor: Principal,
        *,
        schedule_id: int,
        override_date: date,
        override_type,
        new_start_time: Optional[time] = None,
        new_end_time: Optional[time] = None,
        reason: Optional[str] = None,
    ) -> ScheduleOverride:
        schedule = self.get_schedule(schedule_id)
        otype = self._parse_type(override_type)

        if otype.requires_window:
            require_time_order(new_start_time, new_end_time, "New time window")
        else:
            new_start_time = None
            new_end_time = None
        reason = (reason or "").strip() or None

        existing = self._schedules.find_override(schedule_id=schedule.schedule_id, override_date=override_date)
        if existing is None:
            try:
                override_id = self._schedules.insert_override(
                    schedule_id=schedule.schedule_id,
                    override_date=override_date,
                    override_type=otype,
                    new_start_time=new_start_time,
                    new_end_time=new_end_time,
                    reason=reason,
                    state=transition(None, Submitted()),
                )
                saved = self._load(override_id)
            except ConcurrencyConflictError:
                # Lost the insert race for this day; update the winner's row instead.
                existing = self._schedules.find_override(schedule_id=schedule.schedule_id, override_date=override_date)
                if existing is None:
                    raise

        if existing is not None:
            # Resubmission supersedes any earlier decision and its admin notes.
            ok = self._schedules.resubmit_override(
                override_id=existing.override_id,
                expected_version=existing.version,
                override_type=otype,
                new_start_time=new_start_time,
                new_end_time=new_end_time,
                reason=reason,
                state=transition(existing.state, Submitted()),
            )
            if not ok:
                raise ConcurrencyConflictError("Override was modified concurrently, please retry")
            saved = self._load(existing.override_id)

        logger.info(
            "Override %s proposed for schedule %s on %s (%s)",
            saved.override_id,
            saved.schedule_id,
            saved.override_date,
            saved.override_type.value,
        )
        self._audit.record(
            actor,
            action="schedule.override",
            entity="Schedule",
            entity_id=schedule.schedule_id,
            metadata={"overrideId": saved.override_id, "date": override_date.isoformat(), "type": otype.value},
        )
        return saved

    def decide(
        self,
        actor: Principal,
        *,
        override_id: int,
        status,
        admin_notes: Optional[str] = None,
    ) -> ScheduleOverride:
        try:
            status = OverrideStatus(status)
        except ValueError:
            raise ValidationError("Decision must be APPROVED or REJECTED")

        current = self._schedules.get_override(int(override_id))
        if not current:
            raise NotFoundError("Schedule override not found")

        notes = (admin_notes or "").strip() or None
        new_state = transition(current.state, Decided(status=status, notes=notes))

        ok = self._schedules.update_override_state(
            override_id=current.override_id,
            expected_version=current.version,
            state=new_state,
        )
        if not ok:
            raise ConcurrencyConflictError("Override was modified concurrently, please reload")

        saved = self._load(current.override_id)
        logger.info("Override %s %s by user %s", saved.override_id, saved.status.value, actor.user_id)
        self._audit.record(
            actor,
            action="schedule.override.decide",
            entity="ScheduleOverride",
            entity_id=saved.override_id,
            metadata={"status": saved.status.value, "scheduleId": saved.schedule_id},
        )
        return saved

    def resolve_effective(self, schedule_id: int, on_date: date) -> EffectiveWindow:
        """Window governing ``on_date``. Only APPROVED overrides apply."""
        schedule = self.get_schedule(schedule_id)

        override = self._schedules.find_approved_override(schedule_id=schedule.schedule_id, override_date=on_date)
        if override is None or override.status != OverrideStatus.APPROVED:
            return EffectiveWindow(
                schedule_id=schedule.schedule_id,
                on_date=on_date,
                source="schedule",
                override_type=None,
                start_time=schedule.start_time,
                end_time=schedule.end_time,
            )

        if override.override_type == OverrideType.CANCEL:
            return EffectiveWindow(
                schedule_id=schedule.schedule_id,
                on_date=on_date,
                source="override",
                override_type=OverrideType.CANCEL,
                start_time=None,
                end_time=None,
            )

        return EffectiveWindow(
            schedule_id=schedule.schedule_id,
            on_date=on_date,
            source="override",
            override_type=override.override_type,
            start_time=override.new_start_time,
            end_time=override.new_end_time,
        )

    def list_for_teacher(self, teacher_user_id: int, *, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[ScheduleOverride]:
        return self._schedules.list_overrides(teacher_user_id=int(teacher_user_id), limit=limit)

    def list_all(self, *, status: Optional[OverrideStatus] = None, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[ScheduleOverride]:
        return self._schedules.list_overrides(status=status, limit=limit)

    def _load(self, override_id: int) -> ScheduleOverride:
        saved = self._schedules.get_override(int(override_id))
        if not saved:
            raise NotFoundError("Schedule override not found")
        return saved
