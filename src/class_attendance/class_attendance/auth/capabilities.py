from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..core.enums import Role
from ..core.exceptions import AuthorizationError

if TYPE_CHECKING:
    from ..schedules.model import Schedule


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, as handed over by the session layer."""

    user_id: int
    role: Role
    full_name: Optional[str] = None


@dataclass(frozen=True)
class CapabilitySet:
    """What a principal may do, computed once per request.

    Controllers evaluate this before calling into the services, so the
    services themselves never look at role strings.
    """

    principal: Principal
    can_activate_term: bool
    can_decide_override: bool
    can_issue_own_token: bool
    can_scan_attendance: bool
    can_review_own_overrides: bool
    can_issue_for_students: bool
    can_revoke_tokens: bool
    can_view_audit_log: bool

    @classmethod
    def for_principal(cls, principal: Principal) -> "CapabilitySet":
        role = principal.role
        return cls(
            principal=principal,
            can_activate_term=role == Role.ADMIN,
            can_decide_override=role == Role.ADMIN,
            can_issue_own_token=role == Role.STUDENT,
            can_scan_attendance=role == Role.TEACHER,
            can_review_own_overrides=role == Role.TEACHER,
            can_issue_for_students=role in (Role.ADMIN, Role.TEACHER),
            can_revoke_tokens=role == Role.ADMIN,
            can_view_audit_log=role == Role.ADMIN,
        )

    def can_propose_override(self, schedule: "Schedule") -> bool:
        return (
            self.principal.role == Role.TEACHER
            and int(schedule.teacher_user_id) == int(self.principal.user_id)
        )

    def can_record_scan(self, schedule: "Schedule") -> bool:
        return self.can_scan_attendance and int(schedule.teacher_user_id) == int(self.principal.user_id)


def require(allowed: bool, message: str = "You do not have permission for this action") -> None:
    if not allowed:
        raise AuthorizationError(message)
