from __future__ import annotations

from datetime import date

import pytest

from src.class_attendance.class_attendance.core.exceptions import (
    InvalidRelationError,
    NoActiveTermError,
    NotFoundError,
    ValidationError,
)
from src.class_attendance.class_attendance.terms.model import ActiveTerm


def _two_years(terms_repo):
    y1 = terms_repo.create_year(name="2024-2025", start_date=date(2024, 8, 1), end_date=date(2025, 7, 31))
    y2 = terms_repo.create_year(name="2025-2026", start_date=date(2025, 8, 1), end_date=date(2026, 7, 31))
    s1 = terms_repo.create_semester(academic_year_id=y1, name="First Semester")
    s2 = terms_repo.create_semester(academic_year_id=y2, name="First Semester")
    return y1, y2, s1, s2


def test_active_term_is_empty_before_first_activation(container):
    assert container.term_service.get_active_term() == ActiveTerm()
    with pytest.raises(NoActiveTermError):
        container.term_service.require_active_term()


def test_activate_term_leaves_exactly_one_active_pair(container, terms_repo, audit_repo, admin):
    y1, y2, s1, s2 = _two_years(terms_repo)

    container.term_service.activate_term(admin, academic_year_id=y1, semester_id=s1)
    term = container.term_service.activate_term(admin, academic_year_id=y2, semester_id=s2)

    assert term == ActiveTerm(academic_year_id=y2, semester_id=s2)
    assert [y.academic_year_id for y in terms_repo.years.values() if y.is_active] == [y2]
    assert [s.semester_id for s in terms_repo.semesters.values() if s.is_active] == [s2]
    assert audit_repo.actions() == ["term.activate", "term.activate"]
    assert audit_repo.entries[-1].metadata == {"academicYearId": y2, "semesterId": s2}


def test_activate_term_is_idempotent(container, terms_repo, admin):
    y1, _, s1, _ = _two_years(terms_repo)

    first = container.term_service.activate_term(admin, academic_year_id=y1, semester_id=s1)
    second = container.term_service.activate_term(admin, academic_year_id=y1, semester_id=s1)

    assert first == second
    assert sum(1 for y in terms_repo.years.values() if y.is_active) == 1


def test_activate_term_rejects_semester_of_another_year(container, terms_repo, admin):
    y1, _, _, s2 = _two_years(terms_repo)

    with pytest.raises(InvalidRelationError):
        container.term_service.activate_term(admin, academic_year_id=y1, semester_id=s2)
    assert container.term_service.get_active_term() == ActiveTerm()


def test_activate_year_switch_moves_the_flag(container, terms_repo, admin):
    y1, y2, _, _ = _two_years(terms_repo)

    container.term_service.activate_year(admin, academic_year_id=y1)
    assert terms_repo.years[y1].is_active and not terms_repo.years[y2].is_active

    container.term_service.activate_year(admin, academic_year_id=y2)
    assert terms_repo.years[y2].is_active and not terms_repo.years[y1].is_active
    assert container.term_service.get_active_term().academic_year_id == y2


def test_mismatched_activation_leaves_current_term(container, terms_repo, admin):
    y1, _, s1, s2 = _two_years(terms_repo)
    container.term_service.activate_term(admin, academic_year_id=y1, semester_id=s1)

    with pytest.raises(InvalidRelationError):
        container.term_service.activate_term(admin, academic_year_id=y1, semester_id=s2)

    assert container.term_service.get_active_term() == ActiveTerm(academic_year_id=y1, semester_id=s1)
    assert [y.academic_year_id for y in terms_repo.years.values() if y.is_active] == [y1]
    assert [s.semester_id for s in terms_repo.semesters.values() if s.is_active] == [s1]


def test_activate_term_unknown_ids(container, terms_repo, admin):
    y1, _, s1, _ = _two_years(terms_repo)

    with pytest.raises(NotFoundError):
        container.term_service.activate_term(admin, academic_year_id=999, semester_id=s1)
    with pytest.raises(NotFoundError):
        container.term_service.activate_term(admin, academic_year_id=y1, semester_id=999)


def test_activate_year_keeps_semester_of_same_year(container, terms_repo, admin):
    y1, _, s1, _ = _two_years(terms_repo)
    container.term_service.activate_term(admin, academic_year_id=y1, semester_id=s1)

    term = container.term_service.activate_year(admin, academic_year_id=y1)

    assert term == ActiveTerm(academic_year_id=y1, semester_id=s1)


def test_activate_year_clears_semester_of_other_year(container, terms_repo, audit_repo, admin):
    y1, y2, s1, _ = _two_years(terms_repo)
    container.term_service.activate_term(admin, academic_year_id=y1, semester_id=s1)

    term = container.term_service.activate_year(admin, academic_year_id=y2)

    assert term == ActiveTerm(academic_year_id=y2, semester_id=None)
    assert not any(s.is_active for s in terms_repo.semesters.values())
    assert audit_repo.actions()[-1] == "year.activate"


def test_activate_semester_activates_its_year(container, terms_repo, admin):
    _, y2, _, s2 = _two_years(terms_repo)

    term = container.term_service.activate_semester(admin, semester_id=s2)

    assert term == ActiveTerm(academic_year_id=y2, semester_id=s2)


def test_activation_survives_audit_failure(container, terms_repo, audit_repo, admin):
    y1, _, s1, _ = _two_years(terms_repo)
    audit_repo.fail = True

    term = container.term_service.activate_term(admin, academic_year_id=y1, semester_id=s1)

    assert term.is_complete
    assert container.term_service.require_active_term() == term


def test_create_academic_year_validates(container, admin):
    svc = container.term_service
    svc.create_academic_year(admin, name="2025-2026", start_date=date(2025, 8, 1), end_date=date(2026, 7, 31))

    with pytest.raises(ValidationError):
        svc.create_academic_year(admin, name="2025-2026", start_date=date(2025, 8, 1), end_date=date(2026, 7, 31))
    with pytest.raises(ValidationError):
        svc.create_academic_year(admin, name="2027", start_date=date(2027, 8, 1), end_date=date(2027, 8, 1))
    with pytest.raises(ValidationError):
        svc.create_academic_year(admin, name="  ", start_date=date(2027, 8, 1), end_date=date(2028, 8, 1))


def test_create_semester_unique_within_year(container, audit_repo, admin):
    svc = container.term_service
    year = svc.create_academic_year(admin, name="2025-2026", start_date=date(2025, 8, 1), end_date=date(2026, 7, 31))

    sem = svc.create_semester(admin, academic_year_id=year.academic_year_id, name="Summer")

    assert sem.academic_year_id == year.academic_year_id
    with pytest.raises(ValidationError):
        svc.create_semester(admin, academic_year_id=year.academic_year_id, name="Summer")
    with pytest.raises(NotFoundError):
        svc.create_semester(admin, academic_year_id=999, name="Summer")
    assert audit_repo.actions() == ["year.create", "semester.create"]
