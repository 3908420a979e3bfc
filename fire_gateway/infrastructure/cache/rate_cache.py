"""Daily exchange-rate cache with single-flight refresh"""

import logging
from decimal import Decimal
from typing import Awaitable, Callable, Dict, Iterable, Optional

from fire_gateway.domain.currency import USD, normalize_code
from fire_gateway.domain.exceptions import UpstreamFetchError
from fire_gateway.domain.models import RateCacheEntry, RateSnapshot
from fire_gateway.infrastructure.cache.single_flight import SingleFlight
from fire_gateway.infrastructure.observability.metrics import record_rate_cache_lookup, rate_fetch_counter
from fire_gateway.utils.date_utils import utc_date_key

logger = logging.getLogger(__name__)


class RateCache:
    """
    Process-wide map of currency code → USD-relative rate, refreshed once per UTC day.

    Requirements:
    - A cache miss triggers exactly one upstream fetch, however many callers miss at once
    - A failed refresh never raises: stale rates if any, otherwise an empty map
    - USD is implicitly 1 and is never looked up
    """

    def __init__(
        self,
        fetch_rates: Callable[[], Awaitable[RateSnapshot]],
        clock: Callable[[], str] = utc_date_key,
    ):
        self._fetch_rates = fetch_rates
        self._clock = clock
        self._entry: Optional[RateCacheEntry] = None
        self._flights = SingleFlight()

    @property
    def entry(self) -> Optional[RateCacheEntry]:
        return self._entry

    def clear(self) -> None:
        self._entry = None

    async def get_rates(self, codes: Iterable[str]) -> Dict[str, Decimal]:
        """Rates for the requested codes; unknown codes are simply absent"""
        wanted = {normalize_code(code) for code in codes}
        if not wanted:
            return {}

        all_rates = await self._current_rates()
        rates = {code: all_rates[code] for code in wanted if code in all_rates}
        if USD in wanted:
            rates[USD] = Decimal("1")
        return rates

    async def _current_rates(self) -> Dict[str, Decimal]:
        today = self._clock()
        if self._entry is not None and self._entry.date == today:
            record_rate_cache_lookup("hit")
            return self._entry.rates

        rates, shared = await self._flights.do(today, lambda: self._refresh(today))
        record_rate_cache_lookup("shared" if shared else "miss")
        return rates

    def _stale_rates(self) -> Dict[str, Decimal]:
        # Stale entry is served but not promoted, so the next call retries
        return self._entry.rates if self._entry is not None else {}

    async def _refresh(self, today: str) -> Dict[str, Decimal]:
        stale_date = self._entry.date if self._entry else None
        try:
            snapshot = await self._fetch_rates()
            rates = {normalize_code(code): Decimal(str(rate)) for code, rate in snapshot.rates.items()}
        except UpstreamFetchError as e:
            rate_fetch_counter.labels(outcome="failure").inc()
            logger.warning(
                f"Exchange rate refresh failed: {e}",
                extra={"cache_date": today, "stale_date": stale_date},
            )
            return self._stale_rates()
        except Exception:
            rate_fetch_counter.labels(outcome="failure").inc()
            logger.exception(
                "Unexpected error refreshing exchange rates",
                extra={"cache_date": today, "stale_date": stale_date},
            )
            return self._stale_rates()

        self._entry = RateCacheEntry(rates=rates, date=today)
        rate_fetch_counter.labels(outcome="success").inc()
        logger.info(
            "Exchange rates refreshed",
            extra={"cache_date": today, "source_date": snapshot.date, "currency_count": len(rates)},
        )
        return rates
