"""Durable code store backed by the SQLAlchemy session.

`try_redeem` is a single conditional UPDATE; the database serializes
concurrent writers on the same row, so at most one caller sees a row
affected. Nothing here takes an application-level lock.
"""
import enum
import logging
from datetime import datetime, timezone

from sqlalchemy import func, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import StoreUnavailable
from ..models import Code

log = logging.getLogger(__name__)

# rows per INSERT; keeps SQLite under its bound-parameter limit
_CHUNK = 200


class RedeemStatus(enum.Enum):
    SUCCESS = 'success'
    ALREADY_REDEEMED = 'already_redeemed'
    NOT_FOUND = 'not_found'


class CodeStore:
    def __init__(self, db):
        self.db = db

    @property
    def session(self):
        return self.db.session

    def _fail(self, op: str, exc: Exception):
        self.session.rollback()
        log.exception('code store %s failed', op)
        raise StoreUnavailable(op) from exc

    def _insert_ignore(self, rows: list[dict]) -> int:
        dialect = self.session.get_bind().dialect.name
        if dialect == 'sqlite':
            stmt = sqlite.insert(Code).values(rows).on_conflict_do_nothing(index_elements=['code'])
        elif dialect == 'postgresql':
            stmt = postgresql.insert(Code).values(rows).on_conflict_do_nothing(index_elements=['code'])
        else:
            inserted = 0
            for row in rows:
                try:
                    with self.session.begin_nested():
                        self.session.execute(insert(Code).values(**row))
                    inserted += 1
                except IntegrityError:
                    continue
            return inserted
        return self.session.execute(stmt).rowcount or 0

    def insert_if_absent(self, code: str, batch: str | None) -> bool:
        """Add `code` unredeemed unless it exists. Returns True if a row was added."""
        return self.insert_many([Code(code=code, batch=batch)]) == 1

    def insert_many(self, codes) -> int:
        rows = [{'code': c.code, 'batch': c.batch, 'redeemed': False, 'redeemed_at': None} for c in codes]
        inserted = 0
        try:
            for i in range(0, len(rows), _CHUNK):
                inserted += self._insert_ignore(rows[i:i + _CHUNK])
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail('insert', e)
        return inserted

    def get(self, code: str) -> Code | None:
        try:
            return self.session.get(Code, code)
        except SQLAlchemyError as e:
            self._fail('get', e)

    def try_redeem(self, code: str) -> RedeemStatus:
        stmt = (
            update(Code)
            .where(Code.code == code, Code.redeemed.is_(False))
            .values(redeemed=True, redeemed_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        try:
            affected = self.session.execute(stmt).rowcount
            self.session.commit()
            if affected == 1:
                return RedeemStatus.SUCCESS
            exists = self.session.execute(select(Code.code).where(Code.code == code)).first()
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail('redeem', e)
        return RedeemStatus.ALREADY_REDEEMED if exists else RedeemStatus.NOT_FOUND

    def count_total(self) -> int:
        try:
            return self.session.execute(select(func.count()).select_from(Code)).scalar_one()
        except SQLAlchemyError as e:
            self._fail('count', e)

    def count_redeemed(self) -> int:
        try:
            return self.session.execute(
                select(func.count()).select_from(Code).where(Code.redeemed.is_(True))
            ).scalar_one()
        except SQLAlchemyError as e:
            self._fail('count', e)

    def list_by_batch(self, batch: str) -> list[Code]:
        try:
            return list(self.session.scalars(select(Code).where(Code.batch == batch).order_by(Code.code)))
        except SQLAlchemyError as e:
            self._fail('list', e)

    def list_all(self) -> list[Code]:
        try:
            return list(self.session.scalars(select(Code).order_by(Code.redeemed, Code.code)))
        except SQLAlchemyError as e:
            self._fail('list', e)
