import enum
import logging
from dataclasses import dataclass

from ..errors import StoreUnavailable
from .codes import normalize
from .sessions import Session
from .store import CodeStore, RedeemStatus

log = logging.getLogger(__name__)


class Outcome(enum.Enum):
    UNLOCKED = 'unlocked'
    INVALID_FORMAT = 'invalid_format'
    NOT_FOUND = 'not_found'
    ALREADY_REDEEMED = 'already_redeemed'
    STORE_UNAVAILABLE = 'store_unavailable'


@dataclass(frozen=True)
class RedeemOutcome:
    outcome: Outcome
    code: str = ''

    @property
    def unlocked(self) -> bool:
        return self.outcome is Outcome.UNLOCKED


_BY_STATUS = {
    RedeemStatus.NOT_FOUND: Outcome.NOT_FOUND,
    RedeemStatus.ALREADY_REDEEMED: Outcome.ALREADY_REDEEMED,
}


class RedemptionEngine:
    def __init__(self, store: CodeStore):
        self.store = store

    def redeem(self, raw_input, session: Session) -> RedeemOutcome:
        """Consume the code in `raw_input` and unlock `session` on success.

        The session is only touched when the store reports the transition
        happened; every other outcome leaves it as it was.
        """
        code = normalize(raw_input)
        if not code:
            return RedeemOutcome(Outcome.INVALID_FORMAT)
        try:
            status = self.store.try_redeem(code)
        except StoreUnavailable:
            return RedeemOutcome(Outcome.STORE_UNAVAILABLE, code)
        if status is not RedeemStatus.SUCCESS:
            log.info('redeem refused: %s', status.value)
            return RedeemOutcome(_BY_STATUS[status], code)
        session.mark_redeemed(code)
        log.info('code %s redeemed', code)
        return RedeemOutcome(Outcome.UNLOCKED, code)
