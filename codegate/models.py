from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import false

db = SQLAlchemy()

MAX_CODE_LENGTH = 64


class Code(db.Model):
    __tablename__ = 'codes'

    code = db.Column(db.String(MAX_CODE_LENGTH), primary_key=True)
    redeemed = db.Column(db.Boolean, nullable=False, default=False, server_default=false())
    # set together with `redeemed`; NULL while unredeemed
    redeemed_at = db.Column(db.DateTime(timezone=True))
    batch = db.Column(db.String(64), index=True)

    def as_row(self) -> dict:
        return {
            'code': self.code,
            'batch': self.batch or '',
            'redeemed': int(bool(self.redeemed)),
            'redeemed_at': self.redeemed_at.isoformat() if self.redeemed_at else '',
        }

    def __repr__(self):
        return f'<Code {self.code} redeemed={self.redeemed}>'
