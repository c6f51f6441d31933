"""Ownership-scoped storage for income and expense entries."""
from collections import defaultdict
from dataclasses import dataclass

from sqlalchemy import case, func

from .errors import NotFound, ValidationError
from .models import Entry, EntryKind


@dataclass(frozen=True)
class LedgerSummary:
    total_income: float = 0.0
    total_expenses: float = 0.0
    count: int = 0

    @property
    def balance(self):
        return self.total_income - self.total_expenses

    def to_dict(self):
        return {
            'totalIncome': self.total_income,
            'totalExpenses': self.total_expenses,
            'balance': self.balance,
            'count': self.count,
        }


class LedgerStore:
    """CRUD over entries, every query filtered to a single owner."""

    def __init__(self, db, categories=None, page_size=100):
        self.db = db
        self.categories = list(categories or [])
        self.page_size = page_size

    def _owned(self, owner):
        return Entry.query.filter(Entry.owner_id == owner.id)

    def _check_category(self, category):
        if not self.categories:
            return category
        for allowed in self.categories:
            if allowed.lower() == category.lower():
                return allowed
        raise ValidationError(
            f'Invalid category: {category}',
            errors=[{'field': 'category', 'message': f"must be one of: {', '.join(self.categories)}"}],
        )

    def list(self, owner, kind=None, category=None, start=None, end=None, limit=None, offset=0):
        query = self._owned(owner)
        if kind is not None:
            query = query.filter(Entry.kind == EntryKind(kind))
        if category:
            query = query.filter(func.lower(Entry.category) == category.lower())
        if start is not None:
            query = query.filter(Entry.date >= start)
        if end is not None:
            query = query.filter(Entry.date <= end)

        limit = min(limit or self.page_size, self.page_size)
        return (
            query.order_by(Entry.date.desc(), Entry.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def get(self, owner, entry_id):
        # Someone else's entry and a missing one look the same to the caller.
        entry = self._owned(owner).filter(Entry.id == entry_id).first()
        if entry is None:
            raise NotFound('Transaction not found')
        return entry

    def create(self, owner, kind, amount, category, date, note=None):
        entry = Entry(
            owner_id=owner.id,
            kind=EntryKind(kind),
            amount=float(amount),
            category=self._check_category(category),
            date=date,
            note=note or None,
        )
        self.db.session.add(entry)
        self.db.session.commit()
        return entry

    def update(self, owner, entry_id, **changes):
        entry = self.get(owner, entry_id)
        if 'category' in changes:
            changes['category'] = self._check_category(changes['category'])
        if 'kind' in changes:
            changes['kind'] = EntryKind(changes['kind'])
        if 'amount' in changes:
            changes['amount'] = float(changes['amount'])
        if 'note' in changes:
            changes['note'] = changes['note'] or None

        for field, value in changes.items():
            setattr(entry, field, value)
        self.db.session.commit()
        return entry

    def delete(self, owner, entry_id):
        entry = self.get(owner, entry_id)
        snapshot = entry.to_dict()
        self.db.session.delete(entry)
        self.db.session.commit()
        return snapshot

    # ──────────────── Summaries ────────────────

    def summarize(self, owner):
        """Totals over all of the owner's entries, not just one page."""
        income, expenses, count = (
            self.db.session.query(
                func.coalesce(func.sum(case((Entry.kind == EntryKind.INCOME, Entry.amount), else_=0.0)), 0.0),
                func.coalesce(func.sum(case((Entry.kind == EntryKind.EXPENSE, Entry.amount), else_=0.0)), 0.0),
                func.count(Entry.id),
            )
            .filter(Entry.owner_id == owner.id)
            .one()
        )
        return LedgerSummary(total_income=float(income), total_expenses=float(expenses), count=count)

    def category_breakdown(self, owner, kind=EntryKind.EXPENSE):
        # Grouped the way list() filters: 'food' and 'Food' are one category.
        rows = (
            self.db.session.query(func.min(Entry.category), func.sum(Entry.amount))
            .filter(Entry.owner_id == owner.id, Entry.kind == EntryKind(kind))
            .group_by(func.lower(Entry.category))
            .all()
        )
        total = sum(amount for _, amount in rows)
        breakdown = [
            {
                'category': category,
                'amount': float(amount),
                'percentage': round(amount / total * 100, 1) if total else 0.0,
            }
            for category, amount in rows
        ]
        breakdown.sort(key=lambda row: row['amount'], reverse=True)
        return breakdown

    def monthly(self, owner, months=12):
        """Income, expenses and balance per calendar month, oldest first."""
        rows = (
            self.db.session.query(Entry.date, Entry.kind, Entry.amount)
            .filter(Entry.owner_id == owner.id)
            .all()
        )
        totals = defaultdict(lambda: {'income': 0.0, 'expenses': 0.0})
        for day, kind, amount in rows:
            bucket = totals[day.strftime('%Y-%m')]
            bucket['income' if kind == EntryKind.INCOME else 'expenses'] += amount

        series = [
            {
                'month': month,
                'income': bucket['income'],
                'expenses': bucket['expenses'],
                'balance': bucket['income'] - bucket['expenses'],
            }
            for month, bucket in sorted(totals.items())
        ]
        return series[-months:]
