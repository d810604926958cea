from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from ..audit.service import AuditService
from ..auth.capabilities import Principal
from ..common.validators import require_non_empty
from ..core.exceptions import InvalidRelationError, NoActiveTermError, NotFoundError, ValidationError
from .model import AcademicYear, ActiveTerm, Semester
from .repository import TermRepository

logger = logging.getLogger(__name__)


class TermService:
    """Owns the active-term pointer.

    Nothing else writes the settings row or the ``is_active`` flags; every
    activation is one store transaction.
    """

    def __init__(self, terms: TermRepository, audit: AuditService):
        self._terms = terms
        self._audit = audit

    # -------- Reads --------
    def get_active_term(self) -> ActiveTerm:
        return self._terms.get_active_term()

    def require_active_term(self) -> ActiveTerm:
        term = self._terms.get_active_term()
        if not term.is_complete:
            raise NoActiveTermError("No active academic year and semester")
        return term

    def list_academic_years(self) -> Sequence[AcademicYear]:
        return self._terms.list_years()

    def list_semesters(self, academic_year_id: int) -> Sequence[Semester]:
        if not self._terms.get_year(int(academic_year_id)):
            raise NotFoundError("Academic year not found")
        return self._terms.list_semesters(int(academic_year_id))

    # -------- Creation --------
    def create_academic_year(self, actor: Principal, *, name: str, start_date: date, end_date: date) -> AcademicYear:
        name = require_non_empty(name, "Name")
        if start_date >= end_date:
            raise ValidationError("Start date must be before end date")
        if self._terms.get_year_by_name(name):
            raise ValidationError("Academic year name already exists")

        year_id = self._terms.create_year(name=name, start_date=start_date, end_date=end_date)
        self._audit.record(
            actor,
            action="year.create",
            entity="AcademicYear",
            entity_id=year_id,
            metadata={"name": name},
        )
        return AcademicYear(academic_year_id=year_id, name=name, start_date=start_date, end_date=end_date)

    def create_semester(self, actor: Principal, *, academic_year_id: int, name: str) -> Semester:
        name = require_non_empty(name, "Name")
        if not self._terms.get_year(int(academic_year_id)):
            raise NotFoundError("Academic year not found")
        if self._terms.find_semester(academic_year_id=int(academic_year_id), name=name):
            raise ValidationError("Semester name already exists in this academic year")

        semester_id = self._terms.create_semester(academic_year_id=int(academic_year_id), name=name)
        self._audit.record(
            actor,
            action="semester.create",
            entity="Semester",
            entity_id=semester_id,
            metadata={"academicYearId": int(academic_year_id), "name": name},
        )
        return Semester(semester_id=semester_id, academic_year_id=int(academic_year_id), name=name)

    # -------- Activation --------
    def activate_year(self, actor: Principal, *, academic_year_id: int) -> ActiveTerm:
        """Activate a year. An active semester of a different year is deactivated."""
        if not self._terms.get_year(int(academic_year_id)):
            raise NotFoundError("Academic year not found")

        term = self._terms.activate_year(int(academic_year_id))
        logger.info("Academic year %s activated by user %s", term.academic_year_id, actor.user_id)
        self._audit.record(
            actor,
            action="year.activate",
            entity="Setting",
            entity_id="singleton",
            metadata={"academicYearId": term.academic_year_id, "semesterId": term.semester_id},
        )
        return term

    def activate_term(self, actor: Principal, *, academic_year_id: int, semester_id: int) -> ActiveTerm:
        if not self._terms.get_year(int(academic_year_id)):
            raise NotFoundError("Academic year not found")
        semester = self._terms.get_semester(int(semester_id))
        if not semester:
            raise NotFoundError("Semester not found")
        if semester.academic_year_id != int(academic_year_id):
            raise InvalidRelationError("Semester does not belong to this academic year")

        term = self._terms.activate_term(int(academic_year_id), int(semester_id))
        logger.info(
            "Term activated by user %s: academic_year=%s semester=%s",
            actor.user_id,
            term.academic_year_id,
            term.semester_id,
        )
        self._audit.record(
            actor,
            action="term.activate",
            entity="Setting",
            entity_id="singleton",
            metadata={"academicYearId": term.academic_year_id, "semesterId": term.semester_id},
        )
        return term

    def activate_semester(self, actor: Principal, *, semester_id: int) -> ActiveTerm:
        """Activate a semester together with the year it belongs to."""
        semester = self._terms.get_semester(int(semester_id))
        if not semester:
            raise NotFoundError("Semester not found")
        return self.activate_term(actor, academic_year_id=semester.academic_year_id, semester_id=semester.semester_id)
