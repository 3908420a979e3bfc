"""Data-window estimation - annualized figures with an explicit confidence level"""

from collections import defaultdict
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

from fire_gateway.domain.models import DataWindowResult, DateRange, MonthlyDataPoint
from fire_gateway.utils.date_utils import month_key

T = TypeVar("T")

# Rolling window: only the most recent N months are used
MAX_WINDOW_MONTHS = 12

# Confidence thresholds (months of data). Policy constants, tune here.
MIN_MONTHS_FOR_LOW = 2
MIN_MONTHS_FOR_MEDIUM = 3
MIN_MONTHS_FOR_GOOD = 6
MIN_MONTHS_FOR_HIGH = 12

WARNING_NO_DATA = "No data available"
WARNING_ONE_MONTH = "Based on 1 month only - may vary significantly"
WARNING_TWO_MONTHS = "Based on 2 months of data"
WARNING_UNDER_SIX = "Less than 6 months of data"
WARNING_PARTIAL_YEAR = "Partial year - may miss seasonal patterns"


def get_confidence(months: int) -> str:
    """
    Map months of data to a confidence level.

    - 1 month: very_low (single data point, high variance)
    - 2 months: low (could be outliers)
    - 3-5 months: medium
    - 6-11 months: good (may miss seasonality)
    - 12+ months: high (full year)
    """
    if months < MIN_MONTHS_FOR_LOW:
        return "very_low"
    elif months < MIN_MONTHS_FOR_MEDIUM:
        return "low"
    elif months < MIN_MONTHS_FOR_GOOD:
        return "medium"
    elif months < MIN_MONTHS_FOR_HIGH:
        return "good"
    else:
        return "high"


def get_warning(months: int) -> Optional[str]:
    """User-facing caveat for a month count, None at full confidence"""
    if months == 0:
        return WARNING_NO_DATA
    if months == 1:
        return WARNING_ONE_MONTH
    if months == 2:
        return WARNING_TWO_MONTHS
    if months < 6:
        return WARNING_UNDER_SIX
    if months < 12:
        return WARNING_PARTIAL_YEAR
    return None


def estimate(points: Iterable[MonthlyDataPoint]) -> DataWindowResult:
    """
    Turn monthly totals into an annualized estimate.

    Points are sorted newest first and capped at MAX_WINDOW_MONTHS; older
    history is discarded rather than averaged in. Values are not rounded.

    Example:
        [2025-01: 4500, 2024-12: 5200, 2024-11: 4800]
        → monthly_average 4833.33..., annualized 58000, confidence "medium"
    """
    ordered = sorted(points, key=lambda p: p.month, reverse=True)
    if not ordered:
        zero = Decimal("0")
        return DataWindowResult(
            monthly_average=zero,
            annualized=zero,
            total=zero,
            months_of_data=0,
            confidence=get_confidence(0),
            warning=WARNING_NO_DATA,
            date_range=None,
        )

    windowed = ordered[:MAX_WINDOW_MONTHS]
    months = len(windowed)
    total = sum((Decimal(p.total) for p in windowed), Decimal("0"))
    monthly_average = total / months

    return DataWindowResult(
        monthly_average=monthly_average,
        annualized=monthly_average * 12,
        total=total,
        months_of_data=months,
        confidence=get_confidence(months),
        warning=get_warning(months),
        date_range=DateRange(oldest=windowed[-1].month, newest=windowed[0].month),
        points=tuple(windowed),
    )


def group_by_month(
    entries: Iterable[T],
    get_date: Callable[[T], object],
    get_value: Callable[[T], object],
) -> Dict[str, List[object]]:
    """Bucket entries under their YYYY-MM key"""
    by_month: Dict[str, List[object]] = defaultdict(list)
    for entry in entries:
        by_month[month_key(get_date(entry))].append(get_value(entry))
    return dict(by_month)


def to_monthly_points(month_totals: Dict[str, Decimal]) -> List[MonthlyDataPoint]:
    return [MonthlyDataPoint(month=month, total=total) for month, total in month_totals.items()]
