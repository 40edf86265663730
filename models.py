import uuid
from datetime import datetime

from sqlalchemy import (
    Column, Date, DateTime, Float, ForeignKey, Integer, String, Uuid
)
from sqlalchemy.orm import relationship

from database import Base


class TimestampMixin:
    created_at = Column(DateTime, default=datetime.utcnow, index=True, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


# -------------------------------
# USER MODEL (AUTH)
# -------------------------------

class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)


# -------------------------------
# ACCOUNTS & POCKETS
# -------------------------------

class Account(TimestampMixin, Base):
    __tablename__ = "accounts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), index=True, nullable=False)

    name = Column(String, nullable=False)
    type = Column(String, nullable=False)        # bank | wallet | investment | credit_card
    balance = Column(Float, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="IDR")

    # deleting an account removes what hangs off it in the same flush
    pockets = relationship(
        "Pocket", back_populates="account", cascade="all, delete-orphan"
    )
    transactions = relationship(
        "Transaction", back_populates="account", cascade="all, delete-orphan"
    )


class Pocket(TimestampMixin, Base):
    __tablename__ = "pockets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), index=True, nullable=False)
    account_id = Column(Uuid, ForeignKey("accounts.id"), index=True, nullable=False)

    name = Column(String, nullable=False)
    balance = Column(Float, nullable=False, default=0)
    percentage_allocation = Column(Float, nullable=False, default=0)

    account = relationship("Account", back_populates="pockets")


# -------------------------------
# TRANSACTION MODEL
# -------------------------------

class Transaction(TimestampMixin, Base):
    __tablename__ = "transactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), index=True, nullable=False)
    account_id = Column(Uuid, ForeignKey("accounts.id"), index=True, nullable=False)

    type = Column(String, nullable=False)        # income | expense
    amount = Column(Float, nullable=False)
    category = Column(String, nullable=False)
    description = Column(String, nullable=True)
    transaction_date = Column(Date, nullable=False)

    account = relationship("Account", back_populates="transactions")


# -------------------------------
# BUDGET MODEL
# -------------------------------

class Budget(TimestampMixin, Base):
    __tablename__ = "budgets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), index=True, nullable=False)

    category = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    period = Column(String, nullable=False)      # label, usually "monthly"
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)


# -------------------------------
# CREDIT CARDS
# -------------------------------

class CreditCard(TimestampMixin, Base):
    __tablename__ = "credit_cards"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), index=True, nullable=False)

    card_name = Column(String, nullable=False)
    last_four_digits = Column(String(4), nullable=False)
    credit_limit = Column(Float, nullable=False)
    current_balance = Column(Float, nullable=False, default=0)
    billing_date = Column(Integer, nullable=False)       # day of month
    payment_due_date = Column(Integer, nullable=False)   # day of month


# -------------------------------
# INVESTMENTS & GOLD
# -------------------------------

class Investment(TimestampMixin, Base):
    __tablename__ = "investments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), index=True, nullable=False)

    investment_type = Column(String, nullable=False)
    name = Column(String, nullable=False)
    purchase_value = Column(Float, nullable=False)
    current_value = Column(Float, nullable=False)
    quantity = Column(Float, nullable=False)
    purchase_date = Column(Date, nullable=False)


class GoldAsset(TimestampMixin, Base):
    __tablename__ = "gold_assets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), index=True, nullable=False)

    name = Column(String, nullable=False)
    gold_type = Column(String, nullable=False)   # antam, ubs, jewelry, ...
    weight_gram = Column(Float, nullable=False)
    purchase_price_per_gram = Column(Float, nullable=False)
    purchase_date = Column(Date, nullable=False)
    storage_location = Column(String, nullable=True)
    notes = Column(String, nullable=True)


class GoldPrice(TimestampMixin, Base):
    """Global reference price, one row per day."""

    __tablename__ = "gold_prices"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    price_date = Column(Date, unique=True, index=True, nullable=False)
    price_per_gram = Column(Float, nullable=False)
