from datetime import time

from src.class_attendance.class_attendance.auth.capabilities import CapabilitySet
from src.class_attendance.class_attendance.schedules.model import Schedule


def _schedule(teacher_user_id: int) -> Schedule:
    return Schedule(
        schedule_id=1,
        subject_id=1,
        teacher_user_id=teacher_user_id,
        section_id=None,
        day_of_week=1,
        start_time=time(8, 0),
        end_time=time(10, 0),
        room=None,
        academic_year_id=1,
        semester_id=1,
    )


def test_admin_capabilities(admin):
    caps = CapabilitySet.for_principal(admin)

    assert caps.can_activate_term and caps.can_decide_override and caps.can_revoke_tokens
    assert not caps.can_issue_own_token
    assert not caps.can_propose_override(_schedule(admin.user_id))


def test_teacher_only_proposes_for_own_schedule(teacher, other_teacher):
    caps = CapabilitySet.for_principal(teacher)

    assert caps.can_propose_override(_schedule(teacher.user_id))
    assert not caps.can_propose_override(_schedule(other_teacher.user_id))
    assert caps.can_record_scan(_schedule(teacher.user_id))
    assert not caps.can_record_scan(_schedule(other_teacher.user_id))
    assert not caps.can_activate_term


def test_student_capabilities(student):
    caps = CapabilitySet.for_principal(student)

    assert caps.can_issue_own_token
    assert not (caps.can_scan_attendance or caps.can_decide_override or caps.can_issue_for_students)
