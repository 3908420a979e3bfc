"""Flow Freedom - passive income coverage of expenses, today and debt-free"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from fire_gateway.domain.data_window import get_confidence
from fire_gateway.domain.models import DataWindowResult, TimeToFreedom
from fire_gateway.utils.date_utils import months_between

RATIO_PLACES = Decimal("0.001")
YEAR_PLACES = Decimal("0.1")

# Relative monthly trend beyond which the series counts as moving
DIRECTION_THRESHOLD = Decimal("0.01")


def flow_freedom_ratio(passive_income_annual: Decimal, annual_expenses: Decimal) -> Decimal:
    """passive / expenses rounded to 3 places; 0 when there are no expenses"""
    if annual_expenses is None or annual_expenses <= 0:
        return Decimal("0.000")
    ratio = Decimal(passive_income_annual) / Decimal(annual_expenses)
    return ratio.quantize(RATIO_PLACES, rounding=ROUND_HALF_UP)


def linear_trend(window: DataWindowResult) -> tuple[Optional[Decimal], Optional[Decimal]]:
    """
    Least-squares slope of the monthly series and the fitted value at the newest month.

    Months are placed on a real calendar axis so gaps in the history count.
    Returns (None, None) when fewer than two distinct months exist.
    """
    if window.date_range is None or len(window.points) < 2:
        return None, None

    oldest = window.date_range.oldest
    xs = [Decimal(months_between(oldest, p.month)) for p in window.points]
    ys = [Decimal(p.total) for p in window.points]
    n = Decimal(len(xs))
    mean_x = sum(xs) / n
    mean_y = sum(ys) / n

    spread = sum((x - mean_x) ** 2 for x in xs)
    if spread == 0:
        return None, None

    slope = sum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys)) / spread
    newest_x = Decimal(months_between(oldest, window.date_range.newest))
    fitted_newest = mean_y + slope * (newest_x - mean_x)
    return slope, fitted_newest


def _direction(slope: Optional[Decimal], mean_monthly: Decimal) -> str:
    if slope is None:
        return "stable"
    relative = slope / mean_monthly if mean_monthly > 0 else slope
    if relative > DIRECTION_THRESHOLD:
        return "up"
    if relative < -DIRECTION_THRESHOLD:
        return "down"
    return "stable"


def time_to_freedom(
    income_window: DataWindowResult,
    target_annual_expenses: Decimal,
    min_months: int = 6,
) -> TimeToFreedom:
    """
    Years until the passive income trend covers target expenses.

    The trend is a straight line through the windowed monthly series,
    extrapolated from the newest month until it reaches target / 12.
    A flat or falling trend has no finite answer and says so.
    """
    months = income_window.months_of_data
    confidence = get_confidence(months)
    slope, fitted_newest = linear_trend(income_window)
    direction = _direction(slope, income_window.monthly_average)
    monthly_trend = slope.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP) if slope is not None else None

    def result(years, status):
        return TimeToFreedom(
            years=years,
            status=status,
            confidence=confidence,
            data_months=months,
            monthly_trend=monthly_trend,
            direction=direction,
        )

    if months > 0 and income_window.annualized >= target_annual_expenses:
        return result(Decimal("0.0"), "reached")

    if months < min_months:
        return result(None, "insufficient_data")

    if slope is None or slope <= 0:
        return result(None, "no_trend")

    months_needed = (Decimal(target_annual_expenses) / 12 - fitted_newest) / slope
    years = max(months_needed, Decimal("0")) / 12
    return result(years.quantize(YEAR_PLACES, rounding=ROUND_HALF_UP), "projected")
