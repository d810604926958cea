from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class AcademicYear:
    academic_year_id: int
    name: str
    start_date: date
    end_date: date
    is_active: bool = False


@dataclass(frozen=True)
class Semester:
    semester_id: int
    academic_year_id: int
    name: str
    is_active: bool = False


@dataclass(frozen=True)
class ActiveTerm:
    """The singleton settings row: the term every other subsystem scopes to."""

    academic_year_id: Optional[int] = None
    semester_id: Optional[int] = None

    @property
    def is_complete(self) -> bool:
        return self.academic_year_id is not None and self.semester_id is not None

    def matches(self, academic_year_id: int, semester_id: int) -> bool:
        return (
            self.is_complete
            and int(self.academic_year_id) == int(academic_year_id)
            and int(self.semester_id) == int(semester_id)
        )
