"""Runway simulation - year-by-year net worth under drawdown and growth"""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

from fire_gateway.domain.currency import round_money
from fire_gateway.domain.models import Asset, RunwayPoint, RunwayProjection, ValuedAsset

MAX_YEARS = 100

# Long-run nominal growth assumptions by asset type. Market-traded types
# (stock, etf, crypto) have no default and use their fetched history instead.
TYPE_DEFAULT_GROWTH_RATES = {
    "cash": Decimal("0"),
    "checking": Decimal("0"),
    "savings": Decimal("0.02"),
    "bond": Decimal("0.03"),
    "real_estate": Decimal("0.03"),
    "retirement": Decimal("0.05"),
}


@dataclass
class RunwayDebt:
    """Debt service carried by the simulation until the schedule pays it off"""

    annual_payment: Decimal
    months_remaining: Optional[int]  # None: never pays off

    @property
    def final_year(self) -> Optional[int]:
        """Simulation year during which the balance reaches zero"""
        if self.months_remaining is None:
            return None
        return max(math.ceil(self.months_remaining / 12) - 1, 0)


def resolve_growth_rate(
    asset: Asset,
    fetched_rate: Optional[Decimal] = None,
    fallback: Decimal = Decimal("0"),
) -> Decimal:
    """
    Growth rate for an asset.

    Resolution order: custom rate → type default → stored historical rate
    (10y, then 5y) → freshly fetched historical rate → fallback.
    """
    if asset.custom_growth_rate is not None:
        return Decimal(asset.custom_growth_rate)

    default = TYPE_DEFAULT_GROWTH_RATES.get(asset.type)
    if default is not None:
        return default

    stored = asset.growth_rates or {}
    for period in ("10y", "5y"):
        if stored.get(period) is not None:
            return Decimal(str(stored[period]))

    if fetched_rate is not None:
        return Decimal(fetched_rate)

    return Decimal(fallback)


def weighted_growth_rate(assets: Iterable[ValuedAsset]) -> Decimal:
    """Value-weighted mean growth rate over assets with a positive value"""
    weighted = Decimal("0")
    total_value = Decimal("0")
    for valued in assets:
        if valued.value is None or valued.value <= 0:
            continue
        weighted += valued.value * valued.growth_rate
        total_value += valued.value
    if total_value == 0:
        return Decimal("0")
    return weighted / total_value


def simulate_runway(
    net_worth: Decimal,
    living_expenses: Decimal,
    passive_income: Decimal,
    assets: List[ValuedAsset],
    debts: List[RunwayDebt],
    max_years: int = MAX_YEARS,
    currency: str = "usd",
) -> RunwayProjection:
    """
    Project net worth year by year.

    Each year:
    1. gap = max(0, expenses - income)
    2. net worth and asset base are drawn down by the gap
    3. both grow by the asset-weighted growth rate
    4. debts paid off during the year drop out of expenses from next year
    5. income scales with the remaining asset base
    6. the year is recorded with the expenses and income that produced its gap

    Stops the first year net worth reaches zero (clamped) or at the horizon.
    """
    growth_rate = weighted_growth_rate(assets)
    initial_asset_base = sum(
        (a.value for a in assets if a.value is not None and a.value > 0), Decimal("0")
    )

    net_worth = Decimal(net_worth)
    asset_base = initial_asset_base
    income = Decimal(passive_income)
    remaining_debts = list(debts)
    expenses = Decimal(living_expenses) + sum((d.annual_payment for d in remaining_debts), Decimal("0"))

    points: List[RunwayPoint] = []
    for year in range(max_years):
        gap = max(Decimal("0"), expenses - income)

        net_worth -= gap
        net_worth *= 1 + growth_rate
        asset_base = max(Decimal("0"), asset_base - gap) * (1 + growth_rate)

        if net_worth <= 0:
            points.append(
                RunwayPoint(
                    year=year,
                    net_worth=Decimal("0.00"),
                    expenses=round_money(expenses),
                    income=round_money(income),
                    gap=round_money(gap),
                )
            )
            return RunwayProjection(
                points=points,
                runway_years=year,
                status="depleted",
                message=f"Net worth is depleted in year {year}",
                weighted_growth_rate=growth_rate,
                currency=currency,
            )

        points.append(
            RunwayPoint(
                year=year,
                net_worth=round_money(net_worth),
                expenses=round_money(expenses),
                income=round_money(income),
                gap=round_money(gap),
            )
        )

        paid_off = [d for d in remaining_debts if d.final_year is not None and d.final_year <= year]
        if paid_off:
            remaining_debts = [d for d in remaining_debts if d not in paid_off]
            expenses -= sum((d.annual_payment for d in paid_off), Decimal("0"))

        if initial_asset_base > 0:
            income = Decimal(passive_income) * asset_base / initial_asset_base

    return RunwayProjection(
        points=points,
        runway_years=None,
        status="exceeds_horizon",
        message=f"Runway exceeds {max_years} years",
        weighted_growth_rate=growth_rate,
        currency=currency,
    )
