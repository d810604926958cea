from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.constants import TOKEN_WIRE_FIELDS
from ..core.exceptions import MalformedPayloadError

SIGNED_FIELDS = TOKEN_WIRE_FIELDS[:-1]


def _wire_str(payload: Mapping[str, Any], key: str) -> str:
    # Values are taken byte-for-byte as issued; nothing is coerced or trimmed.
    value = payload.get(key)
    if not isinstance(value, str) or not value or value != value.strip():
        raise MalformedPayloadError(f"Missing or malformed field: {key}")
    return value


@dataclass(frozen=True)
class AttendanceToken:
    """Signed attendance credential.

    Field names are the wire contract read back by the verify endpoint.
    """

    student_id: str
    uuid: str
    academic_year_id: str
    semester_id: str
    issued_at: str
    sig: str

    def signed_fields(self) -> dict[str, str]:
        return {k: getattr(self, k) for k in SIGNED_FIELDS}

    def to_wire(self) -> dict[str, str]:
        return {k: getattr(self, k) for k in TOKEN_WIRE_FIELDS}

    @classmethod
    def from_wire(cls, payload: Any) -> "AttendanceToken":
        if not isinstance(payload, Mapping):
            raise MalformedPayloadError("Payload must be an object")
        return cls(**{k: _wire_str(payload, k) for k in TOKEN_WIRE_FIELDS})


@dataclass(frozen=True)
class TokenLogEntry:
    """Replay-log row: the only persisted trace of an issued token."""

    uuid: str
    student_id: str
    academic_year_id: int
    semester_id: int
    issued_at: datetime
    is_revoked: bool = False
    revoked_at: Optional[datetime] = None
