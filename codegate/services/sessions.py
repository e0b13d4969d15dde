import json
import logging
import secrets
import threading
import time
from dataclasses import dataclass

import redis

from ..errors import SessionStoreUnavailable

log = logging.getLogger(__name__)


@dataclass
class Session:
    session_id: str
    redeemed_flag: bool = False
    bound_code: str | None = None

    @classmethod
    def new(cls) -> 'Session':
        return cls(session_id=secrets.token_urlsafe(32))

    def mark_redeemed(self, code: str):
        self.redeemed_flag = True
        self.bound_code = code

    def to_json(self) -> str:
        return json.dumps({'session_id': self.session_id, 'redeemed': self.redeemed_flag, 'code': self.bound_code})

    @classmethod
    def from_json(cls, raw: str) -> 'Session':
        data = json.loads(raw)
        return cls(session_id=data['session_id'], redeemed_flag=bool(data.get('redeemed')), bound_code=data.get('code'))


def _key(session_id: str) -> str:
    return f"sess:{session_id}"


class MemorySessionStore:
    """Process-local sessions; lost on restart."""

    def __init__(self, ttl: int):
        self.ttl = ttl
        self._data = {}
        self._exp = {}
        self._lock = threading.Lock()

    def _cleanup(self):
        now = time.time()
        expired = [k for k, ts in self._exp.items() if ts <= now]
        for k in expired:
            self._data.pop(k, None)
            self._exp.pop(k, None)

    def load(self, session_id: str) -> Session | None:
        with self._lock:
            self._cleanup()
            raw = self._data.get(_key(session_id))
        return Session.from_json(raw) if raw else None

    def save(self, session: Session):
        with self._lock:
            self._cleanup()
            self._data[_key(session.session_id)] = session.to_json()
            self._exp[_key(session.session_id)] = time.time() + self.ttl

    def close(self):
        with self._lock:
            self._data.clear()
            self._exp.clear()


class RedisSessionStore:
    def __init__(self, client, ttl: int):
        self.client = client
        self.ttl = ttl

    def load(self, session_id: str) -> Session | None:
        try:
            raw = self.client.get(_key(session_id))
        except redis.RedisError as e:
            raise SessionStoreUnavailable('load') from e
        return Session.from_json(raw) if raw else None

    def save(self, session: Session):
        try:
            self.client.setex(_key(session.session_id), self.ttl, session.to_json())
        except redis.RedisError as e:
            raise SessionStoreUnavailable('save') from e

    def close(self):
        self.client.close()


def open_session_store(backend: str, url: str | None, ttl: int, workers: int = 1):
    """Open the configured store, falling back to memory if Redis can't be reached.

    Memory sessions are private to one process, so they are refused when
    more than one worker process serves the app.
    """
    if backend == 'redis' and url:
        try:
            client = redis.from_url(url, decode_responses=True)
            # Test connection once; fallback to memory on failure
            client.ping()
            return RedisSessionStore(client, ttl)
        except redis.RedisError as e:
            if workers > 1:
                log.error('redis unavailable (%s) and %d workers configured, refusing memory sessions', e, workers)
                raise SessionStoreUnavailable('redis unreachable with multiple workers') from e
            log.warning('redis unavailable (%s), sessions kept in memory', e)
    elif workers > 1:
        log.error('memory sessions need a single worker, %d configured', workers)
        raise SessionStoreUnavailable('memory sessions with multiple workers')
    return MemorySessionStore(ttl)
