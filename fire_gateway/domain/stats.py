"""Financial stats aggregation - classify money movements and build one consistent snapshot"""

import logging
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Set

from fire_gateway.domain.currency import (
    convert_all,
    currencies_of,
    normalize_code,
    round_money,
)
from fire_gateway.domain.data_window import (
    MAX_WINDOW_MONTHS,
    estimate,
    get_confidence,
    get_warning,
    group_by_month,
    to_monthly_points,
)
from fire_gateway.domain.exceptions import RateUnavailableError
from fire_gateway.domain.models import (
    DataWindowResult,
    Debt,
    DebtBreakdownItem,
    DebtStats,
    ExpenseStats,
    FinancialStats,
    LinkedExpense,
    MoneyEntry,
    MoneyEvent,
    MonthlyHistoryItem,
    PassiveIncomeBreakdown,
    PassiveIncomeStats,
    PendingReview,
    DataQuality,
)
from fire_gateway.utils.date_utils import month_key

logger = logging.getLogger(__name__)

PASSIVE_INCOME_CATEGORIES = {"dividend", "rental", "interest"}
EXCLUDED_CATEGORIES = {"adjustment"}
HISTORY_MONTHS = 12


def is_passive_income(event: MoneyEvent) -> bool:
    """Income is passive when it comes from an asset or a passive category"""
    return event.type == "income" and (
        event.source_asset_id is not None or (event.category or "") in PASSIVE_INCOME_CATEGORIES
    )


def passive_bucket(event: MoneyEvent) -> str:
    if event.category == "dividend":
        return "dividends"
    elif event.category == "rental":
        return "rental"
    elif event.category == "interest":
        return "interest"
    return "other"


class _FigureGuard:
    """Runs a conversion, degrading the figure to None when a rate is missing"""

    def __init__(self):
        self.unavailable: Set[str] = set()

    def __call__(self, compute: Callable[[], Decimal]) -> Optional[Decimal]:
        try:
            return compute()
        except RateUnavailableError as e:
            self.unavailable.add(e.currency)
            return None


def _entry(amount, currency) -> MoneyEntry:
    return MoneyEntry(amount=Decimal(amount), currency=normalize_code(currency))


def _monthly_window(
    by_month: Dict[str, List[MoneyEntry]],
    target: str,
    rates: Dict[str, Decimal],
    guard: _FigureGuard,
) -> tuple[Optional[DataWindowResult], Dict[str, Decimal]]:
    """Normalize each month's entries and estimate; the whole series fails together"""
    month_totals = {}
    for month, entries in by_month.items():
        total = guard(lambda entries=entries: convert_all(entries, target, rates))
        if total is None:
            return None, {}
        month_totals[month] = total
    return estimate(to_monthly_points(month_totals)), month_totals


def _quality(window: Optional[DataWindowResult], by_month: Dict[str, list]) -> DataQuality:
    """Window quality, or quality from the month count when conversion failed"""
    if window is not None:
        return window.data_quality
    months = min(len(by_month), MAX_WINDOW_MONTHS)
    return DataQuality(confidence=get_confidence(months), months_of_data=months, warning=get_warning(months))


def required_currencies(
    events: Iterable[MoneyEvent],
    debts: Iterable[Debt],
    linked_expenses: Iterable[LinkedExpense],
    preferred_currency: str,
) -> Set[str]:
    """Every currency a compute call will touch, so rates are resolved once"""
    entries = [_entry(0, e.currency) for e in events]
    entries += [_entry(0, d.currency) for d in debts]
    entries += [_entry(0, x.currency) for x in linked_expenses]
    return currencies_of(entries, preferred_currency)


def build_financial_stats(
    events: List[MoneyEvent],
    debts: List[Debt],
    linked_expenses: List[LinkedExpense],
    preferred_currency: str,
    rates: Dict[str, Decimal],
) -> FinancialStats:
    """
    Build the FinancialStats snapshot from raw records and one rate snapshot.

    Rules:
    - Passive income: income events linked to an asset or in a passive category
    - Expenses: expense events plus linked ledger expenses, merged by month
    - Adjustments and unreviewed entries never enter the statistics
    - Income and expenses get independent data windows and confidence
    - Figures whose currency cannot be resolved are None, never 1:1
    """
    target = normalize_code(preferred_currency)
    guard = _FigureGuard()
    pending = PendingReview()

    passive_events: List[tuple[str, str, MoneyEntry]] = []  # (month, bucket, entry)
    expense_rows: List[tuple[object, MoneyEntry]] = []

    for event in events:
        if (event.category or "") in EXCLUDED_CATEGORIES:
            continue

        if event.type == "income":
            if not is_passive_income(event):
                continue
            if event.needs_review:
                pending.count += 1
                pending.has_passive_income = True
                continue
            entry = _entry(event.amount, event.currency)
            passive_events.append((month_key(event.date), passive_bucket(event), entry))
        elif event.type == "expense":
            if event.needs_review:
                pending.count += 1
                pending.has_expenses = True
                continue
            expense_rows.append((event.date, _entry(event.amount, event.currency)))

    for expense in linked_expenses:
        if (expense.category or "") in EXCLUDED_CATEGORIES:
            continue
        if expense.needs_review:
            pending.count += 1
            pending.has_expenses = True
            continue
        expense_rows.append((expense.date, _entry(expense.amount, expense.currency)))

    passive_by_month = group_by_month(passive_events, lambda p: p[0], lambda p: p[2])
    expenses_by_month = group_by_month(expense_rows, lambda r: r[0], lambda r: r[1])

    income_window, income_by_month = _monthly_window(passive_by_month, target, rates, guard)
    expense_window, expenses_by_month_total = _monthly_window(expenses_by_month, target, rates, guard)

    # Breakdown is averaged over the months inside the income window so it reconciles
    breakdown = PassiveIncomeBreakdown(dividends=None, rental=None, interest=None, other=None)
    if income_window is not None:
        window_months = {p.month for p in income_window.points}
        divisor = max(income_window.months_of_data, 1)
        bucket_values = {}
        for bucket in ("dividends", "rental", "interest", "other"):
            bucket_entries = [e for month, b, e in passive_events if b == bucket and month in window_months]
            bucket_total = guard(lambda entries=bucket_entries: convert_all(entries, target, rates))
            bucket_values[bucket] = round_money(bucket_total / divisor) if bucket_total is not None else None
        breakdown = PassiveIncomeBreakdown(**bucket_values)

    # Debts
    active_debts = [d for d in debts if Decimal(d.current_balance or 0) > 0]
    debt_breakdown: List[DebtBreakdownItem] = []
    balance_total: Optional[Decimal] = Decimal("0")
    for debt in active_debts:
        balance = guard(lambda d=debt: convert_all([_entry(d.current_balance, d.currency)], target, rates))
        if balance is None:
            balance_total = None
        elif balance_total is not None:
            balance_total += balance

        monthly_payment = Decimal(debt.monthly_payment or 0)
        if monthly_payment > 0:
            payment = guard(lambda d=debt, p=monthly_payment: convert_all([_entry(p, d.currency)], target, rates))
            debt_breakdown.append(
                DebtBreakdownItem(
                    id=debt.id,
                    name=debt.name,
                    type=debt.debt_type,
                    balance=round_money(balance),
                    interest_rate=Decimal(debt.interest_rate or 0),
                    monthly_payment=round_money(payment),
                )
            )

    payment_entries = [
        _entry(Decimal(d.monthly_payment) * 12, d.currency)
        for d in active_debts
        if Decimal(d.monthly_payment or 0) > 0
    ]
    annual_debt_payments = guard(lambda: convert_all(payment_entries, target, rates))

    passive_annual = income_window.annualized if income_window else None
    passive_monthly = income_window.monthly_average if income_window else None
    living_annual = expense_window.annualized if expense_window else None
    living_monthly = expense_window.monthly_average if expense_window else None

    total_annual = None
    total_monthly = None
    if living_annual is not None and annual_debt_payments is not None:
        total_annual = living_annual + annual_debt_payments
        total_monthly = living_monthly + annual_debt_payments / 12

    all_months = sorted(set(income_by_month) | set(expenses_by_month_total))[-HISTORY_MONTHS:]
    monthly_history = [
        MonthlyHistoryItem(
            month=month,
            income=round_money(income_by_month.get(month, Decimal("0"))),
            expenses=round_money(expenses_by_month_total.get(month, Decimal("0"))),
        )
        for month in all_months
    ]

    if guard.unavailable:
        logger.warning(
            "Exchange rates unavailable, figures degraded",
            extra={"currencies": sorted(guard.unavailable), "target_currency": target},
        )

    return FinancialStats(
        passive_income=PassiveIncomeStats(
            monthly=round_money(passive_monthly),
            annual=round_money(passive_annual),
            breakdown=breakdown,
            data_quality=_quality(income_window, passive_by_month),
        ),
        expenses=ExpenseStats(
            living=round_money(living_annual),
            debt_payments=round_money(annual_debt_payments),
            total=round_money(total_annual),
            monthly=round_money(total_monthly),
            data_quality=_quality(expense_window, expenses_by_month),
        ),
        debts=DebtStats(
            total=round_money(balance_total),
            monthly_payments=round_money(annual_debt_payments / 12) if annual_debt_payments is not None else None,
            breakdown=debt_breakdown,
        ),
        net_worth=Decimal("0"),  # Merged by the caller from asset valuations
        currency=target,
        monthly_history=monthly_history,
        pending_review=pending,
        unavailable_currencies=sorted(guard.unavailable),
        income_window=income_window,
    )


class FinancialStatsAggregator:
    """Resolves one rate snapshot per call and builds the stats snapshot"""

    def __init__(self, rate_cache):
        self.rate_cache = rate_cache

    async def compute(
        self,
        events: List[MoneyEvent],
        debts: List[Debt],
        linked_expenses: List[LinkedExpense],
        preferred_currency: str,
    ) -> FinancialStats:
        codes = required_currencies(events, debts, linked_expenses, preferred_currency)
        rates = await self.rate_cache.get_rates(codes)
        return build_financial_stats(events, debts, linked_expenses, preferred_currency, rates)
