from __future__ import annotations

from typing import Optional, Protocol

from .model import TokenLogEntry


class TokenLogRepository(Protocol):
    def insert(self, entry: TokenLogEntry) -> None:
        """Persist a new entry.

        Raises ConcurrencyConflictError if the uuid already exists; never
        overwrites.
        """

        raise NotImplementedError

    def find_live(
        self,
        *,
        uuid: str,
        student_id: str,
        academic_year_id: int,
        semester_id: int,
    ) -> Optional[TokenLogEntry]:
        """Matching entry that has not been revoked, if any."""

        raise NotImplementedError

    def revoke(self, uuid: str) -> bool:
        raise NotImplementedError
