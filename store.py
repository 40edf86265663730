"""
Resource stores.

Each store wraps one ORM model and turns create / list / get / update /
delete into single statements scoped by owner. Commits go through
``commit`` so a failed write is rolled back, logged, and surfaced as
``StoreError`` for the app to answer with a 500.
"""

import calendar
import logging
from datetime import date, datetime, timedelta

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import (
    Account, Budget, CreditCard, GoldAsset, GoldPrice, Investment, Pocket,
    Transaction,
)

logger = logging.getLogger("finance-api.store")


class StoreError(Exception):
    def __init__(self, action: str, label: str):
        self.action = action
        self.label = label
        super().__init__(f"Failed to {action} {label}")


def commit(db: Session, action: str, label: str):
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("%s %s failed", action, label)
        raise StoreError(action, label)


def month_bounds(year: int, month: int):
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


class OwnedStore:
    def __init__(self, model, label: str):
        self.model = model
        self.label = label

    def create(self, db: Session, owner_id, **fields):
        row = self.model(user_id=owner_id, **fields)
        db.add(row)
        commit(db, "create", self.label)
        db.refresh(row)
        return row

    def list_by_owner(self, db: Session, owner_id, *criteria, limit=None):
        q = db.query(self.model).filter(self.model.user_id == owner_id, *criteria)
        q = q.order_by(self.model.created_at.desc(), self.model.id.desc())
        if limit:
            q = q.limit(limit)
        return q.all()

    def get(self, db: Session, row_id):
        return db.get(self.model, row_id)

    def update(self, db: Session, row, **fields):
        for key, value in fields.items():
            setattr(row, key, value)
        row.updated_at = datetime.utcnow()
        commit(db, "update", self.label)
        db.refresh(row)
        return row

    def delete(self, db: Session, row):
        db.delete(row)
        commit(db, "delete", self.label)


class PocketStore(OwnedStore):
    def allocated(self, db: Session, account_id) -> float:
        total = db.query(func.sum(Pocket.percentage_allocation)).filter(
            Pocket.account_id == account_id
        ).scalar()
        return total or 0.0


class TransactionStore(OwnedStore):
    def summary(self, db: Session, owner_id, start=None, end=None):
        criteria = [Transaction.user_id == owner_id]
        if start:
            criteria.append(Transaction.transaction_date >= start)
        if end:
            criteria.append(Transaction.transaction_date <= end)

        total = func.sum(Transaction.amount).label("total")
        rows = (
            db.query(Transaction.category, Transaction.type, total, func.count(Transaction.id))
            .filter(*criteria)
            .group_by(Transaction.category, Transaction.type)
            .order_by(total.desc())
            .all()
        )

        income = sum(r[2] for r in rows if r[1] == "income")
        expense = sum(r[2] for r in rows if r[1] == "expense")
        return {
            "start_date": start,
            "end_date": end,
            "total_income": income,
            "total_expense": expense,
            "balance": income - expense,
            "transaction_count": sum(r[3] for r in rows),
            "by_category": [
                {"category": r[0], "type": r[1], "total": r[2]} for r in rows
            ],
        }


class BudgetStore(OwnedStore):
    def in_month(self, db: Session, owner_id, year: int, month: int):
        first, last = month_bounds(year, month)
        return self.list_by_owner(
            db, owner_id, Budget.start_date >= first, Budget.start_date <= last
        )

    def copy_month(self, db: Session, owner_id, from_year, from_month, to_year, to_month):
        """Copy a month's budgets into another month.

        Categories already budgeted in the target month are skipped, so
        running the copy twice inserts nothing the second time. All rows
        are written in one commit.
        """
        source = self.in_month(db, owner_id, from_year, from_month)
        existing = {b.category for b in self.in_month(db, owner_id, to_year, to_month)}
        start, end = month_bounds(to_year, to_month)

        created, skipped = [], 0
        for budget in reversed(source):
            if budget.category in existing:
                skipped += 1
                continue
            row = Budget(
                user_id=owner_id,
                category=budget.category,
                amount=budget.amount,
                period=budget.period,
                start_date=start,
                end_date=end,
            )
            db.add(row)
            created.append(row)
            existing.add(budget.category)

        if created:
            commit(db, "copy", self.label)
            for row in created:
                db.refresh(row)
        return created, skipped


class GoldPriceStore:
    label = "gold price"

    def latest(self, db: Session):
        return db.query(GoldPrice).order_by(GoldPrice.price_date.desc()).first()

    def history(self, db: Session, days: int, today=None):
        # the last `days` calendar days, today included
        since = (today or date.today()) - timedelta(days=days - 1)
        return (
            db.query(GoldPrice)
            .filter(GoldPrice.price_date >= since)
            .order_by(GoldPrice.price_date.asc())
            .all()
        )

    def upsert_today(self, db: Session, price_per_gram: float, today=None):
        today = today or date.today()
        row = db.query(GoldPrice).filter(GoldPrice.price_date == today).first()
        if row:
            row.price_per_gram = price_per_gram
            row.updated_at = datetime.utcnow()
        else:
            row = GoldPrice(price_date=today, price_per_gram=price_per_gram)
            db.add(row)
        commit(db, "update", self.label)
        db.refresh(row)
        return row


accounts = OwnedStore(Account, "account")
pockets = PocketStore(Pocket, "pocket")
transactions = TransactionStore(Transaction, "transaction")
budgets = BudgetStore(Budget, "budget")
credit_cards = OwnedStore(CreditCard, "credit card")
investments = OwnedStore(Investment, "investment")
gold_assets = OwnedStore(GoldAsset, "gold asset")
gold_prices = GoldPriceStore()
