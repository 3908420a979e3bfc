"""Projection service - composes stats, valuation, amortization and simulation per scope"""

import dataclasses
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from fire_gateway.config import Settings, settings as default_settings
from fire_gateway.domain import amortization
from fire_gateway.domain.currency import convert, normalize_code, round_money
from fire_gateway.domain.data_window import estimate
from fire_gateway.domain.exceptions import DebtNotFoundError, NonAmortizingDebtError, RateUnavailableError
from fire_gateway.domain.flow_freedom import flow_freedom_ratio, time_to_freedom
from fire_gateway.domain.models import (
    AmortizationSchedule,
    Asset,
    Debt,
    FinancialStats,
    FlowFreedomResult,
    OwnershipScope,
    RunwayProjection,
    ValuedAsset,
)
from fire_gateway.domain.runway import TYPE_DEFAULT_GROWTH_RATES, RunwayDebt, resolve_growth_rate, simulate_runway
from fire_gateway.domain.stats import FinancialStatsAggregator
from fire_gateway.infrastructure.observability.metrics import (
    non_amortizing_debt_counter,
    record_runway,
    record_stats_confidence,
)
from fire_gateway.utils.date_utils import rolling_window_start, utc_today

logger = logging.getLogger(__name__)

MARKET_PRICED_TYPES = {"stock", "etf"}


def with_effective_payment(debt: Debt) -> Debt:
    """Fill a missing monthly payment from the loan term when one is known"""
    if debt.monthly_payment is not None or not debt.term_months:
        return debt
    payment = amortization.monthly_payment_for_term(debt.principal, debt.interest_rate, debt.term_months)
    return dataclasses.replace(debt, monthly_payment=payment)


class ProjectionService:
    """
    Entry point used by the HTTP layer.

    Collaborators are injected: a finance repository (persistence), the
    shared rate and stats caches, and a market data client.
    """

    def __init__(
        self,
        repository,
        rate_cache,
        stats_cache,
        market_client,
        config: Settings | None = None,
        today: date | None = None,
    ):
        self.repository = repository
        self.rate_cache = rate_cache
        self.stats_cache = stats_cache
        self.market_client = market_client
        self.config = config or default_settings
        self.today = today or utc_today()
        self.aggregator = FinancialStatsAggregator(rate_cache)

    # Stats

    def _preferred_currency(self, scope: OwnershipScope) -> str:
        preferences = self.repository.get_preferences(scope.user_id)
        return normalize_code(preferences.get("preferred_currency") or "USD")

    async def _compute_stats(self, scope: OwnershipScope, preferred_currency: str) -> FinancialStats:
        start = rolling_window_start(self.today)

        events = self.repository.load_events(scope.belong_id, start)
        linked_expenses = self.repository.load_linked_expenses(scope.belong_id, start)
        debts = [with_effective_payment(d) for d in self.repository.load_debts(scope.belong_id)]

        stats = await self.aggregator.compute(events, debts, linked_expenses, preferred_currency)
        record_stats_confidence(
            stats.passive_income.data_quality.confidence,
            stats.expenses.data_quality.confidence,
        )
        return stats

    async def _cached_stats(self, scope: OwnershipScope, force_refresh: bool = False) -> FinancialStats:
        # Family members share records but may prefer different currencies
        preferred_currency = self._preferred_currency(scope)
        return await self.stats_cache.get_or_compute(
            self.stats_cache.key_for(scope.cache_key, preferred_currency),
            lambda: self._compute_stats(scope, preferred_currency),
            force_refresh=force_refresh,
        )

    async def get_financial_stats(self, scope: OwnershipScope, force_refresh: bool = False) -> FinancialStats:
        """Cached stats snapshot with net worth merged from current asset valuations"""
        stats = await self._cached_stats(scope, force_refresh)
        valued = await self.value_assets(self.repository.load_assets(scope.belong_id), stats.currency)
        return dataclasses.replace(stats, net_worth=self.net_worth(valued, stats))

    def invalidate_stats_cache(self, scope: OwnershipScope) -> bool:
        return self.stats_cache.invalidate(scope.cache_key)

    # Assets

    async def value_assets(self, assets: List[Asset], preferred_currency: str) -> List[ValuedAsset]:
        """
        Value every asset in the preferred currency and resolve its growth rate.

        Stock/ETF balances are share counts priced from market data; an asset
        without a price or exchange rate gets value None rather than a guess.
        """
        target = normalize_code(preferred_currency)
        priced = {}
        for asset in assets:
            if asset.type in MARKET_PRICED_TYPES and asset.ticker:
                priced[asset.id] = await self.market_client.fetch_security_price(asset.ticker)

        currencies = {target} | {normalize_code(a.currency) for a in assets}
        currencies |= {normalize_code(p.currency) for p in priced.values() if p is not None}
        rates = await self.rate_cache.get_rates(currencies)

        valued = []
        for asset in assets:
            if asset.id in priced:
                price = priced[asset.id]
                raw_value, raw_currency = (asset.balance * price.price, price.currency) if price else (None, None)
                if price is None:
                    logger.warning("No market price, asset left unvalued", extra={"ticker": asset.ticker})
            else:
                raw_value, raw_currency = asset.balance, asset.currency

            value = None
            if raw_value is not None:
                conversion = convert(raw_value, raw_currency, target, rates)
                if conversion is None:
                    logger.warning(
                        "No exchange rate, asset left unvalued",
                        extra={"asset_id": asset.id, "currency": raw_currency},
                    )
                else:
                    value = conversion.converted

            valued.append(
                ValuedAsset(asset=asset, value=value, growth_rate=await self._growth_rate(asset))
            )
        return valued

    async def _growth_rate(self, asset: Asset) -> Decimal:
        fetched = None
        needs_fetch = (
            asset.custom_growth_rate is None
            and asset.type not in TYPE_DEFAULT_GROWTH_RATES
            and not any(v is not None for v in (asset.growth_rates or {}).values())
            and asset.ticker
        )
        if needs_fetch:
            fetched = await self.market_client.fetch_historical_growth(
                asset.ticker, self.config.growth_rate_lookback_years
            )
        return resolve_growth_rate(asset, fetched, Decimal(str(self.config.fallback_growth_rate)))

    @staticmethod
    def net_worth(valued: List[ValuedAsset], stats: FinancialStats) -> Optional[Decimal]:
        """Assets minus debts; None when a figure could not be normalized"""
        if stats.debts.total is None:
            return None
        total_assets = sum((v.value for v in valued if v.value is not None), Decimal("0"))
        return round_money(total_assets - stats.debts.total)

    # Debts

    def get_debt_schedule(self, debt: Debt) -> AmortizationSchedule:
        """
        Amortization schedule from the current balance.

        Raises:
            NonAmortizingDebtError: If the payment never covers the interest
        """
        debt = with_effective_payment(debt)
        try:
            return amortization.schedule(
                debt.current_balance,
                debt.interest_rate,
                debt.monthly_payment or Decimal("0"),
                start_date=self.today,
            )
        except NonAmortizingDebtError:
            non_amortizing_debt_counter.inc()
            raise

    def get_debt_schedule_by_id(self, scope: OwnershipScope, debt_id: str) -> AmortizationSchedule:
        debt = self.repository.get_debt(scope.belong_id, debt_id)
        if debt is None:
            raise DebtNotFoundError(f"Debt {debt_id} not found")
        return self.get_debt_schedule(debt)

    def _months_to_payoff(self, debt: Debt) -> Optional[int]:
        try:
            return self.get_debt_schedule(debt).months_remaining
        except NonAmortizingDebtError:
            logger.warning("Debt never amortizes", extra={"debt_id": debt.id})
            return None

    def _paying_debts(self, scope: OwnershipScope) -> List[Debt]:
        debts = [with_effective_payment(d) for d in self.repository.load_debts(scope.belong_id)]
        return [d for d in debts if (d.monthly_payment or 0) > 0]

    # Projections

    @staticmethod
    def _require(stats: FinancialStats, *figures: Optional[Decimal]) -> None:
        if any(figure is None for figure in figures):
            missing = stats.unavailable_currencies[0] if stats.unavailable_currencies else stats.currency
            raise RateUnavailableError(missing)

    async def get_runway(self, scope: OwnershipScope) -> RunwayProjection:
        """
        Year-by-year net worth projection.

        Raises:
            RateUnavailableError: If income, expenses or debts cannot be normalized
        """
        stats = await self._cached_stats(scope)
        self._require(stats, stats.passive_income.annual, stats.expenses.living, stats.debts.total)

        valued = await self.value_assets(self.repository.load_assets(scope.belong_id), stats.currency)
        net_worth = self.net_worth(valued, stats)

        debts = self._paying_debts(scope)
        rates = await self.rate_cache.get_rates({stats.currency} | {normalize_code(d.currency) for d in debts})
        runway_debts = []
        for debt in debts:
            payment = convert(debt.monthly_payment * 12, debt.currency, stats.currency, rates)
            if payment is None:
                raise RateUnavailableError(debt.currency)
            runway_debts.append(
                RunwayDebt(annual_payment=payment.converted, months_remaining=self._months_to_payoff(debt))
            )

        projection = simulate_runway(
            net_worth=net_worth,
            living_expenses=stats.expenses.living,
            passive_income=stats.passive_income.annual,
            assets=valued,
            debts=runway_debts,
            max_years=self.config.runway_max_years,
            currency=stats.currency,
        )
        projection.income_quality = stats.passive_income.data_quality
        projection.expense_quality = stats.expenses.data_quality

        record_runway(projection.status, projection.runway_years)
        return projection

    async def get_flow_freedom(self, scope: OwnershipScope) -> FlowFreedomResult:
        """
        Flow Freedom today and once debt-free, plus time to 100%.

        The debt-free figure simply drops debt service from expenses; it is
        a separate snapshot, not a point on a timeline.
        """
        stats = await self._cached_stats(scope)
        passive = stats.passive_income.annual
        total = stats.expenses.total
        living = stats.expenses.living
        self._require(stats, passive, total, living)

        payoff_months = [self._months_to_payoff(d) for d in self._paying_debts(scope)]
        debt_payoff_year = None
        if payoff_months and all(m is not None for m in payoff_months):
            debt_payoff_year = amortization.payoff_year(max(payoff_months), self.today)

        income_window = stats.income_window or estimate([])
        return FlowFreedomResult(
            flow_freedom=flow_freedom_ratio(passive, total),
            flow_freedom_debt_free=flow_freedom_ratio(passive, living),
            debt_payoff_year=debt_payoff_year,
            time_to_freedom=time_to_freedom(income_window, total, self.config.time_to_freedom_min_months),
            passive_income_annual=passive,
            expenses_annual=total,
            living_expenses_annual=living,
            currency=stats.currency,
            income_quality=stats.passive_income.data_quality,
            expense_quality=stats.expenses.data_quality,
        )
