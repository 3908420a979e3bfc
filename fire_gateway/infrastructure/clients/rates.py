"""Exchange-rate HTTP client with fallback source and exponential backoff"""

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from typing import List

import httpx

from fire_gateway.config import settings
from fire_gateway.domain.exceptions import UpstreamFetchError
from fire_gateway.domain.models import RateSnapshot
from fire_gateway.infrastructure.observability.metrics import rate_fetch_latency_histogram

logger = logging.getLogger(__name__)


class ExchangeRateClient:
    """Client for the daily USD-based exchange rate feed"""

    def __init__(
        self,
        urls: List[str] | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
    ):
        self.urls = urls or [settings.rates_primary_url, settings.rates_fallback_url]
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = max_retries or settings.rate_fetch_max_retries
        self.backoff_base = settings.rate_fetch_backoff_base if backoff_base is None else backoff_base

    async def fetch_current_rates(self) -> RateSnapshot:
        """
        Fetch today's rates, where 1 USD = rate units of each currency.

        Retry strategy:
        - Each attempt tries the primary URL, then the fallback URL
        - Exponential backoff between attempts: base, 2*base, 4*base, ...

        Raises:
            UpstreamFetchError: When every attempt against every source fails
        """
        attempt = 0
        last_error: Exception | None = None
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while attempt < self.max_retries:
                for url in self.urls:
                    try:
                        with rate_fetch_latency_histogram.time():
                            response = await client.get(url)
                            response.raise_for_status()
                        return self._parse(response.json())

                    except (httpx.HTTPStatusError, httpx.RequestError, UpstreamFetchError, ValueError) as e:
                        last_error = e
                        logger.warning(f"Exchange rate source failed: {e}", extra={"url": url, "attempt": attempt})

                attempt += 1
                if attempt < self.max_retries:
                    await asyncio.sleep(self.backoff_base * (2 ** (attempt - 1)))

        raise UpstreamFetchError(f"Exchange rate sources unavailable: {last_error}")

    @staticmethod
    def _parse(data: dict) -> RateSnapshot:
        """Parse {"date": "YYYY-MM-DD", "usd": {"eur": 0.92, ...}}"""
        try:
            raw_rates = data["usd"]
            rates = {
                code.lower(): Decimal(str(value))
                for code, value in raw_rates.items()
                if value is not None and Decimal(str(value)) > 0
            }
            return RateSnapshot(date=str(data["date"]), rates=rates)
        except (KeyError, TypeError, AttributeError, InvalidOperation) as e:
            raise UpstreamFetchError(f"Invalid exchange rate data: {e}") from e
