"""QR codes pointing at public memorial pages (for printed plaques and cards)."""

import base64
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M


def memorial_qr_png(url: str, box_size: int = 10, border: int = 4) -> bytes:
    """Render ``url`` as a PNG QR code."""
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=box_size, border=border)
    qr.add_data(url)
    qr.make(fit=True)
    img = qr.make_image(fill_color='black', back_color='white')
    buf = io.BytesIO()
    img.save(buf, format='PNG')
    return buf.getvalue()


def memorial_qr_data_uri(url: str, box_size: int = 6) -> str:
    png = memorial_qr_png(url, box_size=box_size)
    return 'data:image/png;base64,' + base64.b64encode(png).decode('ascii')
