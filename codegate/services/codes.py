import re
import secrets

from ..models import Code

# uppercase letters + digits, without 0/O and 1/I
ALPHABET = '23456789ABCDEFGHJKMNPQRSTUVWXYZ'
_DISALLOWED = re.compile(r'[^A-Z0-9\-]')


def normalize(raw) -> str:
    """Uppercase, trim and drop anything outside A-Z, 0-9 and '-'. Non-strings normalize to ''."""
    if not isinstance(raw, str):
        return ''
    return _DISALLOWED.sub('', raw.upper().strip())


def clamp_count(count: int, maximum: int) -> int:
    return max(0, min(int(count), maximum))


class CodeGenerator:
    def __init__(self, length: int = 10, max_count: int = 10000):
        self.length = length
        self.max_count = max_count

    def random_value(self) -> str:
        return ''.join(secrets.choice(ALPHABET) for _ in range(self.length))

    def generate(self, count: int, prefix: str = '', batch: str | None = None) -> list[Code]:
        """Return `count` unsaved codes (clamped to max_count), each `prefix` + random part.

        Duplicates within the returned list are dropped; collisions with stored
        codes are left to the store's insert-if-absent.
        """
        prefix = normalize(prefix)
        n = clamp_count(count, self.max_count)
        seen = set()
        out = []
        for _ in range(n):
            value = prefix + self.random_value()
            if value in seen:
                continue
            seen.add(value)
            out.append(Code(code=value, batch=batch, redeemed=False))
        return out
