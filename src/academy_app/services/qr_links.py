from __future__ import annotations

import io
import re
from urllib.parse import quote, urlencode

import qrcode

from academy_app.models import Session

CHECK_IN_PATH = "/attend/"
QR_SERVICE_ENDPOINT = "https://api.qrserver.com/v1/create-qr-code/"


def build_check_in_url(origin: str, token: str) -> str:
    """Public link a visitor opens to check in: ``<origin>/attend/<token>``."""

    return f"{origin.rstrip('/')}{CHECK_IN_PATH}{quote(token, safe='')}"


def render_qr_png(data: str) -> bytes:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def qr_service_url(data: str, size: int = 100) -> str:
    """Image URL of the external QR service, for places that cannot embed bytes."""

    return f"{QR_SERVICE_ENDPOINT}?{urlencode({'size': f'{size}x{size}', 'data': data})}"


def qr_download_filename(session: Session) -> str:
    title = re.sub(r'[<>:"/\\|?*]', "_", session.title).strip() or "session"
    return f"qr-{title}.png"
