import enum
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow():
    # Naive UTC; SQLite drops tzinfo on the way back out.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class EntryKind(str, enum.Enum):
    INCOME = 'income'
    EXPENSE = 'expense'


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    is_verified = db.Column(db.Boolean, nullable=False, default=False)

    otp = db.Column(db.String(6))
    otp_expires = db.Column(db.DateTime)
    reset_otp = db.Column(db.String(6))
    reset_otp_expires = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'is_verified': self.is_verified,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }

    def __repr__(self):
        return f'<User {self.id} {self.email}>'


class Entry(db.Model):
    __tablename__ = 'entries'
    __table_args__ = (
        db.CheckConstraint('amount > 0', name='ck_entries_amount_positive'),
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    kind = db.Column(
        db.Enum(EntryKind, name='entry_kind', values_callable=lambda kinds: [k.value for k in kinds]),
        nullable=False,
    )
    amount = db.Column(db.Float, nullable=False)
    category = db.Column(db.String(50), nullable=False)
    date = db.Column(db.Date, nullable=False, index=True)
    note = db.Column(db.Text)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'kind': self.kind.value,
            'amount': self.amount,
            'category': self.category,
            'date': self.date.isoformat(),
            'note': self.note,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }

    def __repr__(self):
        return f'<Entry {self.id} {self.kind.value} {self.amount}>'
