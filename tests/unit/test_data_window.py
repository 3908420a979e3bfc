"""Unit tests for data-window estimation"""

from decimal import Decimal

import pytest

from fire_gateway.domain.data_window import (
    estimate,
    get_confidence,
    get_warning,
    group_by_month,
    to_monthly_points,
)
from fire_gateway.domain.currency import round_money
from fire_gateway.domain.models import MonthlyDataPoint


def _points(count, start_year=2024, value="100"):
    points = []
    for i in range(count):
        year = start_year + i // 12
        month = i % 12 + 1
        points.append(MonthlyDataPoint(month=f"{year:04d}-{month:02d}", total=Decimal(value)))
    return points


def test_estimate_empty():
    result = estimate([])
    assert result.months_of_data == 0
    assert result.confidence == "very_low"
    assert result.annualized == 0
    assert result.warning == "No data available"
    assert result.date_range is None


def test_estimate_example_three_months():
    result = estimate(
        [
            MonthlyDataPoint("2025-01", Decimal("4500")),
            MonthlyDataPoint("2024-12", Decimal("5200")),
            MonthlyDataPoint("2024-11", Decimal("4800")),
        ]
    )
    assert result.total == Decimal("14500")
    assert round_money(result.annualized) == Decimal("58000.00")
    assert result.confidence == "medium"
    assert result.date_range.oldest == "2024-11"
    assert result.date_range.newest == "2025-01"


def test_estimate_keeps_twelve_most_recent_months():
    points = _points(12) + [MonthlyDataPoint("2023-12", Decimal("99999"))]

    result = estimate(points)

    assert result.months_of_data == 12
    assert result.total == Decimal("1200")
    assert result.date_range.oldest == "2024-01"
    assert result.date_range.newest == "2024-12"
    assert result.points[0].month == "2024-12"


def test_estimate_unsorted_input():
    result = estimate(list(reversed(_points(3))))
    assert result.date_range.newest == "2024-03"


@pytest.mark.parametrize(
    "months,confidence",
    [(0, "very_low"), (1, "very_low"), (2, "low"), (3, "medium"), (5, "medium"),
     (6, "good"), (11, "good"), (12, "high"), (24, "high")],
)
def test_confidence_thresholds(months, confidence):
    assert get_confidence(months) == confidence


def test_warnings():
    assert get_warning(1) == "Based on 1 month only - may vary significantly"
    assert get_warning(2) == "Based on 2 months of data"
    assert get_warning(4) == "Less than 6 months of data"
    assert get_warning(8) == "Partial year - may miss seasonal patterns"
    assert get_warning(12) is None


def test_data_quality_mirrors_result():
    quality = estimate(_points(2)).data_quality
    assert quality.confidence == "low"
    assert quality.months_of_data == 2
    assert quality.warning == "Based on 2 months of data"


def test_group_by_month_and_points():
    rows = [("2024-03-02", Decimal("5")), ("2024-03-30", Decimal("7")), ("2024-04-01", Decimal("1"))]

    grouped = group_by_month(rows, lambda r: r[0], lambda r: r[1])
    assert grouped == {"2024-03": [Decimal("5"), Decimal("7")], "2024-04": [Decimal("1")]}

    points = to_monthly_points({month: sum(values) for month, values in grouped.items()})
    assert MonthlyDataPoint("2024-03", Decimal("12")) in points
