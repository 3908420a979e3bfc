"""Market data HTTP client for security prices and historical growth"""

import time
import logging
from decimal import Decimal
from typing import Dict, Optional, Tuple

import httpx

from fire_gateway.config import settings
from fire_gateway.domain.models import SecurityPrice
from fire_gateway.infrastructure.observability.metrics import market_fetch_failures_counter

logger = logging.getLogger(__name__)

SECONDS_PER_YEAR = 365 * 24 * 60 * 60


class MarketDataClient:
    """Client for the chart endpoint of the market data source"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        price_ttl_seconds: float | None = None,
    ):
        self.base_url = base_url or settings.market_data_base_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.price_ttl_seconds = price_ttl_seconds or settings.price_cache_ttl_seconds
        self._price_cache: Dict[str, Tuple[SecurityPrice, float]] = {}

    async def _chart(self, ticker: str, period_seconds: int, interval: str) -> Optional[dict]:
        now = int(time.time())
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/v8/finance/chart/{ticker}",
                    params={"period1": now - period_seconds, "period2": now, "interval": interval},
                    headers={"User-Agent": "Mozilla/5.0"},
                )
                response.raise_for_status()
                data = response.json()
            except (httpx.HTTPStatusError, httpx.RequestError, ValueError) as e:
                market_fetch_failures_counter.inc()
                logger.warning(f"Market data unavailable for {ticker}: {e}")
                return None

        chart = data.get("chart") if isinstance(data, dict) else None
        results = chart.get("result") if isinstance(chart, dict) and not chart.get("error") else None
        if not isinstance(results, list) or not results or not isinstance(results[0], dict):
            market_fetch_failures_counter.inc()
            logger.warning(f"Unexpected market data payload for {ticker}")
            return None
        return results[0]

    async def fetch_security_price(self, ticker: str) -> Optional[SecurityPrice]:
        """Latest price and its currency, None when unavailable. Cached briefly."""
        cached = self._price_cache.get(ticker)
        if cached and time.monotonic() - cached[1] < self.price_ttl_seconds:
            return cached[0]

        result = await self._chart(ticker, 86_400, "1d")
        if result is None:
            return None

        meta = result.get("meta") or {}
        if meta.get("regularMarketPrice") is None:
            return None

        price = SecurityPrice(
            price=Decimal(str(meta["regularMarketPrice"])),
            currency=(meta.get("currency") or "USD").lower(),
        )
        self._price_cache[ticker] = (price, time.monotonic())
        return price

    async def fetch_historical_growth(self, ticker: str, years: int) -> Optional[Decimal]:
        """
        Annualized growth (CAGR) over the lookback period.

        CAGR = (last / first) ^ (1 / years_elapsed) - 1, requires at least a year of history
        """
        result = await self._chart(ticker, years * SECONDS_PER_YEAR, "1mo")
        if result is None:
            return None

        try:
            timestamps = result["timestamp"]
            closes = result["indicators"]["quote"][0]["close"]
        except (KeyError, IndexError, TypeError):
            return None

        series = [(ts, close) for ts, close in zip(timestamps, closes) if close is not None and close > 0]
        if len(series) < 2:
            return None

        (first_ts, first_close), (last_ts, last_close) = series[0], series[-1]
        elapsed_years = (last_ts - first_ts) / SECONDS_PER_YEAR
        if elapsed_years < 1:
            return None

        growth = (last_close / first_close) ** (1 / elapsed_years) - 1
        return Decimal(str(round(growth, 6)))
