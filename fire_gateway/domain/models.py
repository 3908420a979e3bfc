"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional


@dataclass(frozen=True)
class MoneyEntry:
    """Single amount in its original currency, the unit of conversion"""

    amount: Decimal
    currency: str


@dataclass(frozen=True)
class ConversionResult:
    """Converted amount and the from/to rate that produced it"""

    converted: Decimal
    effective_rate: Decimal


@dataclass(frozen=True)
class MonthlyDataPoint:
    """One currency-normalized total per calendar month"""

    month: str  # YYYY-MM
    total: Decimal


@dataclass(frozen=True)
class DateRange:
    oldest: str
    newest: str


@dataclass(frozen=True)
class DataQuality:
    """Confidence metadata shown next to every estimated figure"""

    confidence: str  # very_low | low | medium | good | high
    months_of_data: int
    warning: Optional[str]


@dataclass(frozen=True)
class DataWindowResult:
    """Annualized estimate from a rolling window of monthly totals"""

    monthly_average: Decimal
    annualized: Decimal
    total: Decimal
    months_of_data: int
    confidence: str
    warning: Optional[str]
    date_range: Optional[DateRange]
    points: tuple = ()  # MonthlyDataPoints inside the window, newest first

    @property
    def data_quality(self) -> DataQuality:
        return DataQuality(
            confidence=self.confidence,
            months_of_data=self.months_of_data,
            warning=self.warning,
        )


@dataclass(frozen=True)
class RateSnapshot:
    """Exchange rates as returned by the rate source: 1 USD = rate units"""

    date: str
    rates: Dict[str, Decimal]


@dataclass(frozen=True)
class RateCacheEntry:
    rates: Dict[str, Decimal]
    date: str  # YYYY-MM-DD (UTC) the entry was fetched for


@dataclass(frozen=True)
class OwnershipScope:
    """Already-authorized owner of the aggregated records (user or family)"""

    user_id: str
    belong_id: str

    @property
    def cache_key(self) -> str:
        return f"belong:{self.belong_id}"


@dataclass
class MoneyEvent:
    """Raw money movement from the ledger"""

    type: str  # "income", "expense", "transfer" or "other"
    amount: Decimal
    currency: str
    date: date
    category: Optional[str] = None
    source_asset_id: Optional[str] = None
    needs_review: bool = False


@dataclass
class LinkedExpense:
    """Expense recorded in an external ledger linked to the scope"""

    amount: Decimal
    currency: str
    date: date
    category: Optional[str] = None
    needs_review: bool = False


@dataclass
class Debt:
    """Interest-bearing debt; interest_rate is an annual decimal fraction"""

    id: str
    name: str
    principal: Decimal
    current_balance: Decimal
    currency: str
    interest_rate: Decimal = Decimal("0")
    monthly_payment: Optional[Decimal] = None
    debt_type: str = "other"
    term_months: Optional[int] = None
    start_date: Optional[date] = None


@dataclass
class Asset:
    """Holding used for net worth and growth; stock/etf balance is a share count"""

    id: str
    name: str
    type: str
    balance: Decimal
    currency: str
    ticker: Optional[str] = None
    custom_growth_rate: Optional[Decimal] = None
    growth_rates: Optional[Dict[str, Optional[Decimal]]] = None  # {"5y": ..., "10y": ...}


@dataclass
class ValuedAsset:
    """Asset valued in the preferred currency with its resolved growth rate"""

    asset: Asset
    value: Optional[Decimal]  # None when price or rate is unavailable
    growth_rate: Decimal


@dataclass
class SecurityPrice:
    price: Decimal
    currency: str


@dataclass
class PassiveIncomeBreakdown:
    """Monthly averages per passive income kind"""

    dividends: Optional[Decimal]
    rental: Optional[Decimal]
    interest: Optional[Decimal]
    other: Optional[Decimal]


@dataclass
class PassiveIncomeStats:
    monthly: Optional[Decimal]
    annual: Optional[Decimal]
    breakdown: PassiveIncomeBreakdown
    data_quality: DataQuality


@dataclass
class ExpenseStats:
    living: Optional[Decimal]  # Annual, without debt service
    debt_payments: Optional[Decimal]  # Annual
    total: Optional[Decimal]  # Annual, living + debt
    monthly: Optional[Decimal]  # Monthly total
    data_quality: DataQuality


@dataclass
class DebtBreakdownItem:
    id: str
    name: str
    type: str
    balance: Optional[Decimal]
    interest_rate: Decimal
    monthly_payment: Optional[Decimal]


@dataclass
class DebtStats:
    total: Optional[Decimal]
    monthly_payments: Optional[Decimal]
    breakdown: List[DebtBreakdownItem]


@dataclass
class MonthlyHistoryItem:
    month: str
    income: Decimal
    expenses: Decimal


@dataclass
class PendingReview:
    """Entries left out of statistics because they have not been reviewed yet"""

    count: int = 0
    has_passive_income: bool = False
    has_expenses: bool = False


@dataclass
class FinancialStats:
    """Currency-normalized snapshot of income, expenses and debts"""

    passive_income: PassiveIncomeStats
    expenses: ExpenseStats
    debts: DebtStats
    net_worth: Optional[Decimal]  # 0 from the aggregator, merged by the caller
    currency: str
    monthly_history: List[MonthlyHistoryItem]
    pending_review: PendingReview = field(default_factory=PendingReview)
    unavailable_currencies: List[str] = field(default_factory=list)
    income_window: Optional[DataWindowResult] = None


@dataclass
class AmortizationEntry:
    """Single month in a repayment schedule"""

    month: int
    date: date
    payment: Decimal
    interest: Decimal
    principal: Decimal
    balance: Decimal


@dataclass
class AmortizationSchedule:
    months_remaining: int
    payoff_date: Optional[date]
    monthly_payment: Decimal
    total_interest: Decimal
    total_paid: Decimal
    schedule: List[AmortizationEntry]


@dataclass
class RunwayPoint:
    year: int
    net_worth: Decimal
    expenses: Decimal
    income: Decimal
    gap: Decimal


@dataclass
class RunwayProjection:
    """Year-by-year net worth until depletion or the horizon cap"""

    points: List[RunwayPoint]
    runway_years: Optional[int]  # None when runway exceeds the horizon
    status: str  # "depleted" or "exceeds_horizon"
    message: str
    weighted_growth_rate: Decimal
    currency: str = "usd"
    income_quality: Optional[DataQuality] = None
    expense_quality: Optional[DataQuality] = None


@dataclass
class TimeToFreedom:
    years: Optional[Decimal]
    status: str  # "reached", "projected", "no_trend" or "insufficient_data"
    confidence: str
    data_months: int
    monthly_trend: Optional[Decimal]  # Fitted change in monthly passive income per month
    direction: str  # up | down | stable


@dataclass
class FlowFreedomResult:
    flow_freedom: Decimal  # 0.477 = 47.7%
    flow_freedom_debt_free: Decimal
    debt_payoff_year: Optional[int]
    time_to_freedom: TimeToFreedom
    passive_income_annual: Decimal
    expenses_annual: Decimal
    living_expenses_annual: Decimal
    currency: str = "usd"
    income_quality: Optional[DataQuality] = None
    expense_quality: Optional[DataQuality] = None
