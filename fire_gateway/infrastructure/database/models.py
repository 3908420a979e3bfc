"""SQLAlchemy ORM models for the records the engine reads"""

import uuid
from sqlalchemy import Column, String, Boolean, Date, DateTime, Integer, Numeric, ForeignKey, Text, JSON
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


class Flow(Base):
    """Money movement (income, expense, transfer) owned by a user or family"""

    __tablename__ = "flows"

    id = Column(String(36), primary_key=True, default=_uuid)
    belong_id = Column(Text, nullable=False, index=True)
    type = Column(Text, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    currency = Column(String(10), nullable=False, default="USD")
    date = Column(Date, nullable=False, index=True)
    category = Column(Text, nullable=True)
    from_asset_id = Column(String(36), ForeignKey("assets.id", ondelete="SET NULL"), nullable=True)
    needs_review = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Asset(Base):
    """Holding; for stock/etf the balance is a share count"""

    __tablename__ = "assets"

    id = Column(String(36), primary_key=True, default=_uuid)
    belong_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    type = Column(Text, nullable=False)
    ticker = Column(Text, nullable=True)
    balance = Column(Numeric(18, 6), nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="USD")
    custom_growth_rate = Column(Numeric(8, 6), nullable=True)
    growth_rates = Column(JSON, nullable=True)  # {"5y": 0.12, "10y": 0.08}
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Debt(Base):
    """Interest-bearing debt; interest_rate is annual (0.065 = 6.5%)"""

    __tablename__ = "debts"

    id = Column(String(36), primary_key=True, default=_uuid)
    belong_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    debt_type = Column(Text, nullable=False, default="other")
    currency = Column(String(10), nullable=False, default="USD")
    principal = Column(Numeric(14, 2), nullable=False)
    interest_rate = Column(Numeric(6, 4), nullable=True)
    term_months = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=True)
    current_balance = Column(Numeric(14, 2), nullable=False, default=0)
    monthly_payment = Column(Numeric(12, 2), nullable=True)
    status = Column(Text, nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class LinkedLedger(Base):
    """Expense ledger whose entries count towards the scope's living expenses"""

    __tablename__ = "fire_linked_ledgers"

    id = Column(String(36), primary_key=True, default=_uuid)
    belong_id = Column(Text, nullable=False, index=True)
    ledger_id = Column(String(36), nullable=False, index=True)


class LedgerExpense(Base):
    """Expense row from a shared ledger"""

    __tablename__ = "ledger_expenses"

    id = Column(String(36), primary_key=True, default=_uuid)
    ledger_id = Column(String(36), nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    currency = Column(String(10), nullable=False, default="USD")
    date = Column(Date, nullable=False, index=True)
    category = Column(Text, nullable=True)
    needs_review = Column(Boolean, nullable=False, default=False)


class UserPreferences(Base):
    __tablename__ = "user_preferences"

    user_id = Column(Text, primary_key=True)
    preferred_currency = Column(String(10), nullable=False, default="USD")
