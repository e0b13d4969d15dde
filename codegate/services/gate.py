"""Per-browser session gate.

Access to protected files depends only on the session's redeemed flag;
no code value is ever accepted as a credential here.
"""
import enum
import logging

from flask import current_app, request

from ..errors import SessionStoreUnavailable
from .sessions import Session
from .tokens import sign_session_id, unsign_session_id

log = logging.getLogger(__name__)


class Access(enum.Enum):
    ALLOWED = 'allowed'
    DENIED = 'denied'


def authorize(session: Session | None) -> Access:
    return Access.ALLOWED if session is not None and session.redeemed_flag else Access.DENIED


def _sessions():
    return current_app.extensions['codegate'].sessions


def current_session() -> Session:
    """Session bound to this request's cookie, or a fresh unsaved one."""
    session = None
    cookie = request.cookies.get(current_app.config['SESSION_COOKIE_NAME'])
    session_id = unsign_session_id(cookie, current_app.config['SECRET_KEY']) if cookie else None
    if session_id:
        session = _sessions().load(session_id)
    return session or Session.new()


def persist_session(session: Session, response):
    """Store `session` and attach its signed cookie to `response`."""
    cfg = current_app.config
    try:
        _sessions().save(session)
    except SessionStoreUnavailable:
        # the code is already consumed at this point
        log.error('session not saved, code %s was consumed without unlocking', session.bound_code)
        raise
    response.set_cookie(
        cfg['SESSION_COOKIE_NAME'],
        sign_session_id(session.session_id, cfg['SECRET_KEY']),
        max_age=cfg['SESSION_TTL_SECONDS'],
        httponly=True,
        samesite='Lax',
        secure=cfg['SESSION_COOKIE_SECURE'],
    )
    return response
