from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AcademicYear, ActiveTerm, Semester


class TermRepository(Protocol):
    # Academic years
    def get_year(self, academic_year_id: int) -> Optional[AcademicYear]:
        raise NotImplementedError

    def get_year_by_name(self, name: str) -> Optional[AcademicYear]:
        raise NotImplementedError

    def list_years(self) -> Sequence[AcademicYear]:
        raise NotImplementedError

    def create_year(self, *, name: str, start_date: date, end_date: date) -> int:
        raise NotImplementedError

    # Semesters
    def get_semester(self, semester_id: int) -> Optional[Semester]:
        raise NotImplementedError

    def find_semester(self, *, academic_year_id: int, name: str) -> Optional[Semester]:
        raise NotImplementedError

    def list_semesters(self, academic_year_id: int) -> Sequence[Semester]:
        raise NotImplementedError

    def create_semester(self, *, academic_year_id: int, name: str) -> int:
        raise NotImplementedError

    # Active term pointer
    def get_active_term(self) -> ActiveTerm:
        """Return the pointer, or an empty ``ActiveTerm`` before first activation."""

        raise NotImplementedError

    def activate_year(self, academic_year_id: int) -> ActiveTerm:
        """Atomically make ``academic_year_id`` the only active year.

        Semester activation is left alone, except that an active semester
        belonging to another year is deactivated and the semester pointer
        cleared in the same transaction, so the pointer never names a
        semester outside the active year.
        Raises NotFoundError if the year vanished. Returns the new pointer.
        """

        raise NotImplementedError

    def activate_term(self, academic_year_id: int, semester_id: int) -> ActiveTerm:
        """Atomically make the pair the only active year and semester.

        Raises NotFoundError / InvalidRelationError (transaction rolled back).
        """

        raise NotImplementedError
