"""QR payload codec and image rendering.

The payload scanned at the door is ``CLUBHUB1|<event_id>|<student_id>|<token>``.
``encode_payload`` and ``decode_payload`` are the only places that know this
format; issuance and scanning both go through them.
"""
import io
import logging
import re
import secrets
import uuid
from typing import NamedTuple

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from clubhub.config import settings
from clubhub.errors import MalformedQrError, UpstreamError

logger = logging.getLogger(__name__)

PAYLOAD_PREFIX = "CLUBHUB1"
SEPARATOR = "|"
TOKEN_BYTES = 16  # 128 bits
_TOKEN_RE = re.compile(r"^[0-9a-f]{%d}$" % (TOKEN_BYTES * 2))


class QrPayload(NamedTuple):
    event_id: str
    student_id: str
    token: str


def generate_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def encode_payload(event_id: str, student_id: str, token: str) -> str:
    return SEPARATOR.join([PAYLOAD_PREFIX, str(event_id), str(student_id), token])


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def decode_payload(raw: str) -> QrPayload:
    """Parse a scanned payload; raises MalformedQrError unless it is well-formed."""
    if not isinstance(raw, str):
        raise MalformedQrError("Invalid QR code format")
    parts = raw.strip().split(SEPARATOR)
    if len(parts) != 4 or parts[0] != PAYLOAD_PREFIX:
        raise MalformedQrError("Invalid QR code format")
    _, event_id, student_id, token = parts
    if not (_is_uuid(event_id) and _is_uuid(student_id) and _TOKEN_RE.match(token)):
        raise MalformedQrError("Invalid QR code format")
    return QrPayload(event_id=event_id, student_id=student_id, token=token)


def render_png(payload: str) -> bytes:
    """Render ``payload`` to PNG bytes."""
    try:
        qr = qrcode.QRCode(
            version=None,
            error_correction=ERROR_CORRECT_M,
            box_size=settings.QR_BOX_SIZE,
            border=4,
        )
        qr.add_data(payload)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")
        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
    except Exception:
        logger.exception("QR rendering failed")
        raise UpstreamError("QR code could not be generated")
    return buffer.getvalue()


def issue_qr(event_id: str, student_id: str, blob_store) -> tuple[str, str]:
    """Generate a fresh token, render its QR and upload it.

    Returns ``(token, qr_url)``. Nothing is persisted here, so a failure
    leaves no registration behind.
    """
    token = generate_token()
    png = render_png(encode_payload(event_id, student_id, token))
    url = blob_store.put(png, "image/png", prefix="qr")
    return token, url
