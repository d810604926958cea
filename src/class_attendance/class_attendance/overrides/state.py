"""Review state machine for schedule overrides.

States::

    (new) --Submitted--> Pending
    Pending --Decided(APPROVED)--> Approved(notes)
    Pending --Decided(REJECTED)--> Rejected(notes)
    Approved / Rejected --Submitted--> Pending   (teacher resubmits; notes cleared)

Anything else is rejected with ValidationError.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from ..core.enums import OverrideStatus
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Pending:
    @property
    def status(self) -> OverrideStatus:
        return OverrideStatus.PENDING

    @property
    def admin_notes(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class Approved:
    notes: Optional[str] = None

    @property
    def status(self) -> OverrideStatus:
        return OverrideStatus.APPROVED

    @property
    def admin_notes(self) -> Optional[str]:
        return self.notes


@dataclass(frozen=True)
class Rejected:
    notes: Optional[str] = None

    @property
    def status(self) -> OverrideStatus:
        return OverrideStatus.REJECTED

    @property
    def admin_notes(self) -> Optional[str]:
        return self.notes


OverrideState = Union[Pending, Approved, Rejected]


@dataclass(frozen=True)
class Submitted:
    """Teacher created or resubmitted the proposal."""


@dataclass(frozen=True)
class Decided:
    status: OverrideStatus
    notes: Optional[str] = None


OverrideEvent = Union[Submitted, Decided]


def transition(state: Optional[OverrideState], event: OverrideEvent) -> OverrideState:
    if isinstance(event, Submitted):
        return Pending()

    if isinstance(event, Decided):
        if state is None:
            raise ValidationError("Override does not exist yet")
        if not isinstance(state, Pending):
            raise ValidationError("Override has already been decided")
        if event.status == OverrideStatus.APPROVED:
            return Approved(notes=event.notes)
        if event.status == OverrideStatus.REJECTED:
            return Rejected(notes=event.notes)
        raise ValidationError("Decision must be APPROVED or REJECTED")

    raise ValidationError(f"Unsupported override event: {event!r}")


def state_from_row(status, admin_notes: Optional[str] = None) -> OverrideState:
    """Rebuild the variant from the persisted ``status`` / ``admin_notes`` columns."""
    status = OverrideStatus(status)
    if status == OverrideStatus.APPROVED:
        return Approved(notes=admin_notes)
    if status == OverrideStatus.REJECTED:
        return Rejected(notes=admin_notes)
    return Pending()
