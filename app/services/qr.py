"""QR rendering for share links."""

from __future__ import annotations

import base64
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from app.core.config import get_settings


def render_qr_png(link: str) -> bytes:
    settings = get_settings()
    qr = qrcode.QRCode(
        error_correction=ERROR_CORRECT_M,
        box_size=settings.qr_box_size,
        border=settings.qr_border,
    )
    qr.add_data(link)
    qr.make(fit=True)
    image = qr.make_image(fill_color=settings.qr_fill_color, back_color=settings.qr_back_color)

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def qr_data_uri(link: str) -> str:
    encoded = base64.b64encode(render_qr_png(link)).decode("ascii")
    return f"data:image/png;base64,{encoded}"
