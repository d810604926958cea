from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Optional

from ..common.datetime_utils import Clock, SystemClock, isoformat_utc
from ..common.validators import require_non_empty
from ..core.exceptions import InactiveTermError, InvalidSignatureError, TokenNotFoundError
from ..terms.service import TermService
from .model import AttendanceToken, TokenLogEntry
from .repository import TokenLogRepository
from .signing import HmacSigner

logger = logging.getLogger(__name__)


class TokenService:
    """Issues and verifies signed attendance tokens.

    Every issued token has exactly one replay-log row keyed by its uuid.
    Verification is read-only; consuming a token is an explicit ``revoke``.
    """

    def __init__(
        self,
        tokens: TokenLogRepository,
        terms: TermService,
        signer: HmacSigner,
        *,
        clock: Optional[Clock] = None,
        uuid_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self._tokens = tokens
        self._terms = terms
        self._signer = signer
        self._clock = clock or SystemClock()
        self._uuid_factory = uuid_factory

    def issue(self, student_id: str) -> AttendanceToken:
        student_id = require_non_empty(str(student_id or ""), "Student")
        term = self._terms.require_active_term()
        issued_at = self._clock.now()

        fields = {
            "student_id": student_id,
            "uuid": self._uuid_factory(),
            "academic_year_id": str(term.academic_year_id),
            "semester_id": str(term.semester_id),
            "issued_at": isoformat_utc(issued_at),
        }
        token = AttendanceToken(sig=self._signer.sign(fields), **fields)

        # Raises on a duplicate uuid; an existing log row is never replaced.
        self._tokens.insert(
            TokenLogEntry(
                uuid=token.uuid,
                student_id=student_id,
                academic_year_id=int(term.academic_year_id),
                semester_id=int(term.semester_id),
                issued_at=issued_at,
            )
        )
        logger.info("Issued attendance token %s for student %s", token.uuid, student_id)
        return token

    def verify(self, payload: Any) -> AttendanceToken:
        token = AttendanceToken.from_wire(payload)

        if not self._signer.verify(token.signed_fields(), token.sig):
            raise InvalidSignatureError(f"Signature mismatch for token {token.uuid}")

        term = self._terms.get_active_term()
        if not (
            term.is_complete
            and str(term.academic_year_id) == token.academic_year_id
            and str(term.semester_id) == token.semester_id
        ):
            raise InactiveTermError(
                f"Token {token.uuid} bound to {token.academic_year_id}/{token.semester_id}, "
                f"active is {term.academic_year_id}/{term.semester_id}"
            )

        entry = self._tokens.find_live(
            uuid=token.uuid,
            student_id=token.student_id,
            academic_year_id=int(term.academic_year_id),
            semester_id=int(term.semester_id),
        )
        if entry is None:
            raise TokenNotFoundError(f"No live log entry for token {token.uuid}")
        return token

    def revoke(self, token_uuid: str) -> bool:
        revoked = self._tokens.revoke(str(token_uuid))
        if revoked:
            logger.info("Revoked attendance token %s", token_uuid)
        return revoked
