import base64
import hashlib
import hmac


# Session cookie value: "<sid>.<hmac>"
def sign_session_id(session_id: str, secret: str) -> str:
    sig = hmac.new(secret.encode(), session_id.encode(), hashlib.sha256).digest()
    return f"{session_id}.{base64.urlsafe_b64encode(sig).rstrip(b'=').decode()}"


def unsign_session_id(value: str, secret: str) -> str | None:
    """Return the session id from a signed cookie value, or None if it was tampered with."""
    if not value or '.' not in value:
        return None
    session_id, _, _ = value.rpartition('.')
    if not session_id:
        return None
    if not hmac.compare_digest(sign_session_id(session_id, secret).encode(), value.encode()):
        return None
    return session_id
