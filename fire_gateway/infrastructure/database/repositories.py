"""Read-only data access for the projection engine"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from fire_gateway.domain import models as domain
from fire_gateway.infrastructure.database.models import (
    Asset,
    Debt,
    Flow,
    LedgerExpense,
    LinkedLedger,
    UserPreferences,
)

DEFAULT_CURRENCY = "USD"


def _decimal(value) -> Optional[Decimal]:
    return None if value is None else Decimal(str(value))


def _debt_to_domain(row: Debt) -> domain.Debt:
    return domain.Debt(
        id=row.id,
        name=row.name,
        debt_type=row.debt_type,
        principal=_decimal(row.principal),
        current_balance=_decimal(row.current_balance) or Decimal("0"),
        currency=row.currency or DEFAULT_CURRENCY,
        interest_rate=_decimal(row.interest_rate) or Decimal("0"),
        monthly_payment=_decimal(row.monthly_payment),
        term_months=row.term_months,
        start_date=row.start_date,
    )


class FinanceRepository:
    """Repository over flows, debts, assets, linked ledgers and preferences"""

    def __init__(self, db: Session):
        self.db = db

    def load_events(self, belong_id: str, start: date, end: date | None = None) -> List[domain.MoneyEvent]:
        """Income and expense flows in the date range"""
        query = (
            self.db.query(Flow)
            .filter(Flow.belong_id == belong_id)
            .filter(Flow.type.in_(["income", "expense"]))
            .filter(Flow.date >= start)
        )
        if end is not None:
            query = query.filter(Flow.date <= end)

        return [
            domain.MoneyEvent(
                type=row.type,
                amount=_decimal(row.amount),
                currency=row.currency or DEFAULT_CURRENCY,
                date=row.date,
                category=row.category,
                source_asset_id=row.from_asset_id,
                needs_review=bool(row.needs_review),
            )
            for row in query.order_by(Flow.date).all()
        ]

    def load_linked_expenses(self, belong_id: str, start: date, end: date | None = None) -> List[domain.LinkedExpense]:
        """Expenses from every ledger linked to the scope"""
        ledger_ids = [
            ledger_id
            for (ledger_id,) in self.db.query(LinkedLedger.ledger_id).filter(LinkedLedger.belong_id == belong_id).all()
        ]
        if not ledger_ids:
            return []

        query = (
            self.db.query(LedgerExpense)
            .filter(LedgerExpense.ledger_id.in_(ledger_ids))
            .filter(LedgerExpense.date >= start)
        )
        if end is not None:
            query = query.filter(LedgerExpense.date <= end)

        return [
            domain.LinkedExpense(
                amount=_decimal(row.amount),
                currency=row.currency or DEFAULT_CURRENCY,
                date=row.date,
                category=row.category,
                needs_review=bool(row.needs_review),
            )
            for row in query.order_by(LedgerExpense.date).all()
        ]

    def load_debts(self, belong_id: str) -> List[domain.Debt]:
        """Debts with an outstanding balance"""
        rows = (
            self.db.query(Debt)
            .filter(Debt.belong_id == belong_id)
            .filter(Debt.current_balance > 0)
            .order_by(Debt.name)
            .all()
        )
        return [_debt_to_domain(row) for row in rows]

    def get_debt(self, belong_id: str, debt_id: str) -> Optional[domain.Debt]:
        row = (
            self.db.query(Debt)
            .filter(Debt.belong_id == belong_id)
            .filter(Debt.id == debt_id)
            .first()
        )
        return _debt_to_domain(row) if row else None

    def load_assets(self, belong_id: str) -> List[domain.Asset]:
        rows = self.db.query(Asset).filter(Asset.belong_id == belong_id).order_by(Asset.name).all()
        return [
            domain.Asset(
                id=row.id,
                name=row.name,
                type=row.type,
                balance=_decimal(row.balance) or Decimal("0"),
                currency=row.currency or DEFAULT_CURRENCY,
                ticker=row.ticker,
                custom_growth_rate=_decimal(row.custom_growth_rate),
                growth_rates={
                    period: _decimal(value) for period, value in (row.growth_rates or {}).items()
                    if period in ("5y", "10y")
                } or None,
            )
            for row in rows
        ]

    def get_preferences(self, user_id: str) -> dict:
        """User settings, USD when the user has none stored"""
        prefs = self.db.query(UserPreferences).filter(UserPreferences.user_id == user_id).first()
        return {"preferred_currency": prefs.preferred_currency if prefs else DEFAULT_CURRENCY}
