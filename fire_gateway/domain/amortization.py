"""Debt amortization schedules"""

import math
from datetime import date
from decimal import Decimal
from typing import List, Optional

from fire_gateway.domain.currency import round_money
from fire_gateway.domain.exceptions import NonAmortizingDebtError, PayoffBeyondHorizonError
from fire_gateway.domain.models import AmortizationEntry, AmortizationSchedule
from fire_gateway.utils.date_utils import add_months, utc_today

# 100 years; longer payoffs are treated as never paying off
MAX_SCHEDULE_MONTHS = 1200


def schedule(
    principal_balance: Decimal,
    annual_rate: Decimal,
    monthly_payment: Decimal,
    start_date: date | None = None,
) -> AmortizationSchedule:
    """
    Build the month-by-month repayment schedule for a debt.

    Each period:
    - interest = balance * annual_rate / 12
    - principal = min(payment - interest, balance)
    - balance -= principal

    The running balance is kept unrounded; entries are rounded to cents.

    Raises:
        NonAmortizingDebtError: If the payment does not exceed first-period interest
        PayoffBeyondHorizonError: If payoff takes more than MAX_SCHEDULE_MONTHS

    Example:
        $280,000 at 6% paying $1,800
        → month 1: interest $1,400.00, principal $400.00, balance $279,600.00
    """
    balance = Decimal(principal_balance)
    payment = Decimal(monthly_payment)
    monthly_rate = Decimal(annual_rate) / 12

    if start_date is None:
        start_date = utc_today()

    if balance <= 0:
        return AmortizationSchedule(
            months_remaining=0,
            payoff_date=start_date,
            monthly_payment=round_money(payment),
            total_interest=Decimal("0.00"),
            total_paid=Decimal("0.00"),
            schedule=[],
        )

    first_interest = balance * monthly_rate
    if payment <= first_interest:
        raise NonAmortizingDebtError(payment, round_money(first_interest))
    if monthly_rate == 0 and math.ceil(balance / payment) > MAX_SCHEDULE_MONTHS:
        raise PayoffBeyondHorizonError(MAX_SCHEDULE_MONTHS)

    entries: List[AmortizationEntry] = []
    total_interest = Decimal("0")
    total_paid = Decimal("0")
    month = 0

    while balance > 0:
        if month >= MAX_SCHEDULE_MONTHS:
            raise PayoffBeyondHorizonError(MAX_SCHEDULE_MONTHS)
        month += 1
        interest = balance * monthly_rate
        principal_paid = min(payment - interest, balance)
        balance -= principal_paid

        total_interest += interest
        total_paid += interest + principal_paid

        entries.append(
            AmortizationEntry(
                month=month,
                date=add_months(start_date, month),
                payment=round_money(interest + principal_paid),
                interest=round_money(interest),
                principal=round_money(principal_paid),
                balance=round_money(balance),
            )
        )

    return AmortizationSchedule(
        months_remaining=month,
        payoff_date=entries[-1].date,
        monthly_payment=round_money(payment),
        total_interest=round_money(total_interest),
        total_paid=round_money(total_paid),
        schedule=entries,
    )


def months_to_payoff(
    principal_balance: Decimal,
    annual_rate: Decimal,
    monthly_payment: Decimal,
) -> Optional[int]:
    """Months until the balance reaches zero, None for non-amortizing debts"""
    try:
        return schedule(principal_balance, annual_rate, monthly_payment).months_remaining
    except NonAmortizingDebtError:
        return None


def monthly_payment_for_term(principal: Decimal, annual_rate: Decimal, term_months: int) -> Decimal:
    """
    Standard annuity payment that retires the principal in term_months.

    payment = P * r * (1 + r)^n / ((1 + r)^n - 1), or P / n with no interest
    """
    if term_months <= 0:
        raise ValueError("term_months must be positive")

    principal = Decimal(principal)
    monthly_rate = Decimal(annual_rate) / 12
    if monthly_rate == 0:
        return principal / term_months

    growth = (1 + monthly_rate) ** term_months
    return principal * monthly_rate * growth / (growth - 1)


def payoff_year(months_remaining: int, today: date | None = None) -> int:
    """Calendar year in which a debt with months_remaining is paid off"""
    today = today or utc_today()
    return today.year + math.ceil(months_remaining / 12)
