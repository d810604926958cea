from __future__ import annotations

import io
import json

import qrcode

from .model import AttendanceToken


def encode_token(token: AttendanceToken) -> str:
    """Compact JSON carried inside the QR image."""
    return json.dumps(token.to_wire(), separators=(",", ":"))


def render_png(token: AttendanceToken) -> bytes:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(encode_token(token))
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
