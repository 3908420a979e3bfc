"""Pydantic schemas for API responses"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from fire_gateway.domain import models


def _money(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)


class DataQualitySchema(BaseModel):
    """Confidence shown next to an estimated figure"""

    confidence: str
    months_of_data: int
    warning: Optional[str] = None

    @classmethod
    def from_domain(cls, quality: Optional[models.DataQuality]) -> Optional["DataQualitySchema"]:
        if quality is None:
            return None
        return cls(confidence=quality.confidence, months_of_data=quality.months_of_data, warning=quality.warning)


class PassiveIncomeBreakdownSchema(BaseModel):
    dividends: Optional[float] = None
    rental: Optional[float] = None
    interest: Optional[float] = None
    other: Optional[float] = None


class PassiveIncomeSchema(BaseModel):
    monthly: Optional[float] = None
    annual: Optional[float] = None
    breakdown: PassiveIncomeBreakdownSchema
    data_quality: DataQualitySchema


class ExpensesSchema(BaseModel):
    living: Optional[float] = None
    debt_payments: Optional[float] = None
    total: Optional[float] = None
    monthly: Optional[float] = None
    data_quality: DataQualitySchema


class DebtBreakdownSchema(BaseModel):
    id: str
    name: str
    type: str
    balance: Optional[float] = None
    interest_rate: float
    monthly_payment: Optional[float] = None


class DebtsSchema(BaseModel):
    total: Optional[float] = None
    monthly_payments: Optional[float] = None
    breakdown: List[DebtBreakdownSchema]


class MonthlyHistorySchema(BaseModel):
    month: str
    income: float
    expenses: float


class PendingReviewSchema(BaseModel):
    count: int
    has_passive_income: bool
    has_expenses: bool


class FinancialStatsResponse(BaseModel):
    """Response for GET /v1/stats"""

    passive_income: PassiveIncomeSchema
    expenses: ExpensesSchema
    debts: DebtsSchema
    net_worth: Optional[float] = None
    currency: str
    monthly_history: List[MonthlyHistorySchema]
    pending_review: PendingReviewSchema
    unavailable_currencies: List[str]

    @classmethod
    def from_domain(cls, stats: models.FinancialStats) -> "FinancialStatsResponse":
        passive = stats.passive_income
        breakdown = passive.breakdown
        return cls(
            passive_income=PassiveIncomeSchema(
                monthly=_money(passive.monthly),
                annual=_money(passive.annual),
                breakdown=PassiveIncomeBreakdownSchema(
                    dividends=_money(breakdown.dividends),
                    rental=_money(breakdown.rental),
                    interest=_money(breakdown.interest),
                    other=_money(breakdown.other),
                ),
                data_quality=DataQualitySchema.from_domain(passive.data_quality),
            ),
            expenses=ExpensesSchema(
                living=_money(stats.expenses.living),
                debt_payments=_money(stats.expenses.debt_payments),
                total=_money(stats.expenses.total),
                monthly=_money(stats.expenses.monthly),
                data_quality=DataQualitySchema.from_domain(stats.expenses.data_quality),
            ),
            debts=DebtsSchema(
                total=_money(stats.debts.total),
                monthly_payments=_money(stats.debts.monthly_payments),
                breakdown=[
                    DebtBreakdownSchema(
                        id=item.id,
                        name=item.name,
                        type=item.type,
                        balance=_money(item.balance),
                        interest_rate=float(item.interest_rate),
                        monthly_payment=_money(item.monthly_payment),
                    )
                    for item in stats.debts.breakdown
                ],
            ),
            net_worth=_money(stats.net_worth),
            currency=stats.currency.upper(),
            monthly_history=[
                MonthlyHistorySchema(month=h.month, income=float(h.income), expenses=float(h.expenses))
                for h in stats.monthly_history
            ],
            pending_review=PendingReviewSchema(
                count=stats.pending_review.count,
                has_passive_income=stats.pending_review.has_passive_income,
                has_expenses=stats.pending_review.has_expenses,
            ),
            unavailable_currencies=[code.upper() for code in stats.unavailable_currencies],
        )


class CacheInvalidationResponse(BaseModel):
    """Response for DELETE /v1/stats/cache"""

    cleared: bool


class RunwayPointSchema(BaseModel):
    year: int
    net_worth: float
    expenses: float
    income: float
    gap: float


class RunwayResponse(BaseModel):
    """Response for GET /v1/runway"""

    runway_years: Optional[int] = None
    status: str
    message: str
    weighted_growth_rate: float
    currency: str
    projection: List[RunwayPointSchema]
    income_quality: Optional[DataQualitySchema] = None
    expense_quality: Optional[DataQualitySchema] = None

    @classmethod
    def from_domain(cls, runway: models.RunwayProjection) -> "RunwayResponse":
        return cls(
            runway_years=runway.runway_years,
            status=runway.status,
            message=runway.message,
            weighted_growth_rate=round(float(runway.weighted_growth_rate), 6),
            currency=runway.currency.upper(),
            projection=[
                RunwayPointSchema(
                    year=p.year,
                    net_worth=float(p.net_worth),
                    expenses=float(p.expenses),
                    income=float(p.income),
                    gap=float(p.gap),
                )
                for p in runway.points
            ],
            income_quality=DataQualitySchema.from_domain(runway.income_quality),
            expense_quality=DataQualitySchema.from_domain(runway.expense_quality),
        )


class TimeToFreedomSchema(BaseModel):
    years: Optional[float] = None
    status: str
    confidence: str
    data_months: int
    monthly_trend: Optional[float] = None
    direction: str


class FlowFreedomResponse(BaseModel):
    """Response for GET /v1/flow-freedom"""

    flow_freedom: float
    flow_freedom_pct: float
    flow_freedom_debt_free: float
    flow_freedom_debt_free_pct: float
    debt_payoff_year: Optional[int] = None
    time_to_freedom: TimeToFreedomSchema
    passive_income_annual: float
    expenses_annual: float
    living_expenses_annual: float
    currency: str
    income_quality: Optional[DataQualitySchema] = None
    expense_quality: Optional[DataQualitySchema] = None

    @classmethod
    def from_domain(cls, result: models.FlowFreedomResult) -> "FlowFreedomResponse":
        ttf = result.time_to_freedom
        return cls(
            flow_freedom=float(result.flow_freedom),
            flow_freedom_pct=round(float(result.flow_freedom) * 100, 1),
            flow_freedom_debt_free=float(result.flow_freedom_debt_free),
            flow_freedom_debt_free_pct=round(float(result.flow_freedom_debt_free) * 100, 1),
            debt_payoff_year=result.debt_payoff_year,
            time_to_freedom=TimeToFreedomSchema(
                years=_money(ttf.years),
                status=ttf.status,
                confidence=ttf.confidence,
                data_months=ttf.data_months,
                monthly_trend=_money(ttf.monthly_trend),
                direction=ttf.direction,
            ),
            passive_income_annual=float(result.passive_income_annual),
            expenses_annual=float(result.expenses_annual),
            living_expenses_annual=float(result.living_expenses_annual),
            currency=result.currency.upper(),
            income_quality=DataQualitySchema.from_domain(result.income_quality),
            expense_quality=DataQualitySchema.from_domain(result.expense_quality),
        )


class AmortizationEntrySchema(BaseModel):
    """Single month in a repayment schedule"""

    month: int
    date: date
    payment: float
    interest: float
    principal: float
    balance: float


class AmortizationResponse(BaseModel):
    """Response for GET /v1/debts/{debt_id}/schedule"""

    debt_id: str
    months_remaining: int
    payoff_date: Optional[date] = None
    monthly_payment: float
    total_interest: float
    total_paid: float
    schedule: List[AmortizationEntrySchema]

    @classmethod
    def from_domain(cls, debt_id: str, result: models.AmortizationSchedule) -> "AmortizationResponse":
        return cls(
            debt_id=debt_id,
            months_remaining=result.months_remaining,
            payoff_date=result.payoff_date,
            monthly_payment=float(result.monthly_payment),
            total_interest=float(result.total_interest),
            total_paid=float(result.total_paid),
            schedule=[
                AmortizationEntrySchema(
                    month=e.month,
                    date=e.date,
                    payment=float(e.payment),
                    interest=float(e.interest),
                    principal=float(e.principal),
                    balance=float(e.balance),
                )
                for e in result.schedule
            ],
        )
