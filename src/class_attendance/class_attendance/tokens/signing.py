from __future__ import annotations

import hashlib
import hmac
import json
from typing import Mapping, Union

from .model import SIGNED_FIELDS


def canonical_message(fields: Mapping[str, str]) -> bytes:
    """Unambiguous byte form of the signed fields, in wire order."""
    return json.dumps([str(fields[k]) for k in SIGNED_FIELDS], separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class HmacSigner:
    """HMAC-SHA256 over ``canonical_message``, hex encoded."""

    def __init__(self, secret: Union[str, bytes]):
        if not secret:
            raise ValueError("Signing secret must not be empty")
        self._key = secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)

    def sign(self, fields: Mapping[str, str]) -> str:
        return hmac.new(self._key, canonical_message(fields), hashlib.sha256).hexdigest()

    def verify(self, fields: Mapping[str, str], sig: str) -> bool:
        expected = self.sign(fields)
        return hmac.compare_digest(expected.encode("ascii"), str(sig).encode("utf-8"))
