"""Unit tests for financial stats aggregation"""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

from fire_gateway.domain.models import Debt, LinkedExpense, MoneyEvent
from fire_gateway.domain.stats import (
    FinancialStatsAggregator,
    build_financial_stats,
    is_passive_income,
    passive_bucket,
    required_currencies,
)

RATES = {"usd": Decimal("1"), "eur": Decimal("0.9")}


def _income(amount, day, category=None, currency="USD", source_asset_id=None, needs_review=False):
    return MoneyEvent(
        type="income",
        amount=Decimal(amount),
        currency=currency,
        date=day,
        category=category,
        source_asset_id=source_asset_id,
        needs_review=needs_review,
    )


def _expense(amount, day, category="groceries", currency="USD", needs_review=False):
    return MoneyEvent(
        type="expense",
        amount=Decimal(amount),
        currency=currency,
        date=day,
        category=category,
        needs_review=needs_review,
    )


def _two_month_history():
    jan, feb = date(2025, 1, 10), date(2025, 2, 10)
    events = [
        _income("100", jan, "dividend"),
        _income("270", jan, "rental", currency="EUR"),
        _income("50", jan, source_asset_id="asset_1"),
        _income("5000", jan, "salary"),
        _income("100", feb, "dividend"),
        _income("20", feb, "interest"),
        _expense("1000", jan),
        _expense("800", feb),
        MoneyEvent(type="transfer", amount=Decimal("999"), currency="USD", date=feb),
    ]
    linked = [LinkedExpense(amount=Decimal("200"), currency="USD", date=date(2025, 2, 20))]
    debts = [
        Debt(id="d1", name="Loan", principal=Decimal("8000"), current_balance=Decimal("5000"),
             currency="USD", interest_rate=Decimal("0.04"), monthly_payment=Decimal("200"))
    ]
    return events, debts, linked


def test_passive_classification():
    day = date(2025, 1, 1)
    assert is_passive_income(_income("1", day, "dividend"))
    assert is_passive_income(_income("1", day, "salary", source_asset_id="asset_1"))
    assert not is_passive_income(_income("1", day, "salary"))
    assert not is_passive_income(_expense("1", day, "dividend"))
    assert passive_bucket(_income("1", day, "rental")) == "rental"
    assert passive_bucket(_income("1", day, source_asset_id="a")) == "other"


def test_passive_income_and_breakdown():
    events, debts, linked = _two_month_history()

    stats = build_financial_stats(events, debts, linked, "USD", RATES)

    # Jan 100 + 300 + 50, Feb 100 + 20
    assert stats.passive_income.monthly == Decimal("285.00")
    assert stats.passive_income.annual == Decimal("3420.00")
    breakdown = stats.passive_income.breakdown
    assert breakdown.dividends == Decimal("100.00")
    assert breakdown.rental == Decimal("150.00")
    assert breakdown.interest == Decimal("10.00")
    assert breakdown.other == Decimal("25.00")
    assert breakdown.dividends + breakdown.rental + breakdown.interest + breakdown.other == stats.passive_income.monthly
    assert stats.passive_income.data_quality.confidence == "low"


def test_expenses_merge_linked_ledger_and_debt_payments():
    events, debts, linked = _two_month_history()

    stats = build_financial_stats(events, debts, linked, "USD", RATES)

    assert stats.expenses.living == Decimal("12000.00")
    assert stats.expenses.debt_payments == Decimal("2400.00")
    assert stats.expenses.total == Decimal("14400.00")
    assert stats.expenses.monthly == Decimal("1200.00")
    assert stats.debts.total == Decimal("5000.00")
    assert stats.debts.monthly_payments == Decimal("200.00")
    assert stats.debts.breakdown[0].id == "d1"
    assert [(h.month, h.income, h.expenses) for h in stats.monthly_history] == [
        ("2025-01", Decimal("450.00"), Decimal("1000.00")),
        ("2025-02", Decimal("120.00"), Decimal("1000.00")),
    ]


def test_adjustments_and_unreviewed_entries_are_excluded():
    day = date(2025, 3, 1)
    events = [
        _income("100", day, "dividend"),
        _income("900", day, "adjustment", source_asset_id="asset_1"),
        _income("400", day, "dividend", needs_review=True),
        _expense("500", day),
        _expense("50", day, "adjustment"),
        _expense("70", day, needs_review=True),
    ]
    linked = [LinkedExpense(amount=Decimal("30"), currency="USD", date=day, needs_review=True)]

    stats = build_financial_stats(events, [], linked, "USD", RATES)

    assert stats.passive_income.monthly == Decimal("100.00")
    assert stats.expenses.living == Decimal("6000.00")
    assert stats.pending_review.count == 3
    assert stats.pending_review.has_passive_income is True
    assert stats.pending_review.has_expenses is True


def test_income_and_expense_confidence_are_independent():
    events = [_income("10", date(2025, m, 1), "interest") for m in range(1, 7)]
    events.append(_expense("100", date(2025, 6, 1)))

    stats = build_financial_stats(events, [], [], "USD", RATES)

    assert stats.passive_income.data_quality.confidence == "good"
    assert stats.expenses.data_quality.confidence == "very_low"
    assert stats.expenses.data_quality.warning == "Based on 1 month only - may vary significantly"


def test_unavailable_currency_degrades_only_affected_figures():
    events, _, linked = _two_month_history()
    debts = [Debt(id="d2", name="Foreign loan", principal=Decimal("1000"), current_balance=Decimal("1000"),
                  currency="XYZ", monthly_payment=Decimal("100"))]

    stats = build_financial_stats(events, debts, linked, "USD", RATES)

    assert stats.passive_income.annual == Decimal("3420.00")
    assert stats.expenses.living == Decimal("12000.00")
    assert stats.expenses.debt_payments is None
    assert stats.expenses.total is None
    assert stats.debts.total is None
    assert stats.debts.breakdown[0].balance is None
    assert stats.unavailable_currencies == ["xyz"]


def test_unconvertible_income_keeps_month_count_quality():
    events = [_income("10", date(2025, m, 1), "dividend", currency="XYZ") for m in range(1, 4)]

    stats = build_financial_stats(events, [], [], "USD", RATES)

    assert stats.passive_income.annual is None
    assert stats.passive_income.breakdown.dividends is None
    assert stats.passive_income.data_quality.months_of_data == 3
    assert stats.passive_income.data_quality.confidence == "medium"


def test_preferred_currency_conversion():
    events = [_income("100", date(2025, 1, 1), "dividend")]

    stats = build_financial_stats(events, [], [], "EUR", RATES)

    assert stats.currency == "eur"
    assert stats.passive_income.monthly == Decimal("90.00")


def test_paid_off_debts_are_ignored():
    debts = [Debt(id="d3", name="Done", principal=Decimal("100"), current_balance=Decimal("0"),
                  currency="USD", monthly_payment=Decimal("50"))]

    stats = build_financial_stats([], debts, [], "USD", RATES)

    assert stats.debts.total == Decimal("0.00")
    assert stats.debts.breakdown == []
    assert stats.expenses.debt_payments == Decimal("0.00")


def test_required_currencies():
    events, debts, linked = _two_month_history()
    assert required_currencies(events, debts, linked, "GBP") == {"usd", "eur", "gbp"}


async def test_aggregator_resolves_rates_once():
    events, debts, linked = _two_month_history()
    rate_cache = AsyncMock()
    rate_cache.get_rates.return_value = RATES

    stats = await FinancialStatsAggregator(rate_cache).compute(events, debts, linked, "USD")

    assert stats.passive_income.monthly == Decimal("285.00")
    rate_cache.get_rates.assert_awaited_once_with({"usd", "eur"})
