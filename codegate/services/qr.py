import io
from urllib.parse import urlencode

import qrcode


def redeem_url(base_url: str, code: str) -> str:
    return f"{base_url.rstrip('/')}/?{urlencode({'code': code})}"


def make_qr_bytes(url: str) -> bytes:
    """Return QR PNG bytes for the provided URL."""
    img = qrcode.make(url)
    buf = io.BytesIO()
    img.save(buf, format='PNG')
    return buf.getvalue()
