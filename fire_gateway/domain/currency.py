"""Currency normalization through USD-relative exchange rates"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, Optional, Set

from fire_gateway.domain.models import ConversionResult, MoneyEntry
from fire_gateway.domain.exceptions import RateUnavailableError

USD = "usd"
ONE = Decimal("1")
CENTS = Decimal("0.01")


def normalize_code(code: str | None) -> str:
    """Lower-case currency code, USD when missing"""
    return (code or USD).strip().lower()


def round_money(value: Optional[Decimal]) -> Optional[Decimal]:
    """Round to cents. Only applied at presentation boundaries."""
    if value is None:
        return None
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def _rate_for(code: str, rates: Dict[str, Decimal]) -> Optional[Decimal]:
    if code == USD:
        return ONE
    return rates.get(code)


def convert(
    amount: Decimal,
    from_currency: str,
    to_currency: str,
    rates: Dict[str, Decimal],
) -> Optional[ConversionResult]:
    """
    Convert an amount between currencies.

    Rates are stored as 1 USD = rate[code] units of code, so the conversion
    pivots through USD. Returns None when either rate is missing; callers
    must treat that as a failure, never as a 1:1 rate.
    """
    from_code = normalize_code(from_currency)
    to_code = normalize_code(to_currency)

    if from_code == to_code:
        return ConversionResult(converted=Decimal(amount), effective_rate=ONE)

    from_rate = _rate_for(from_code, rates)
    to_rate = _rate_for(to_code, rates)
    if from_rate is None or to_rate is None:
        return None

    amount_in_usd = amount if from_code == USD else amount / from_rate
    converted = amount_in_usd if to_code == USD else amount_in_usd * to_rate

    return ConversionResult(converted=converted, effective_rate=from_rate / to_rate)


def currencies_of(entries: Iterable[MoneyEntry], target: str) -> Set[str]:
    """Union of entry currencies plus the target, lower-cased"""
    codes = {normalize_code(target)}
    codes.update(normalize_code(entry.currency) for entry in entries)
    return codes


def convert_all(entries: Iterable[MoneyEntry], target: str, rates: Dict[str, Decimal]) -> Decimal:
    """
    Sum entries converted into the target currency.

    Raises:
        RateUnavailableError: If any entry's currency cannot be converted
    """
    total = Decimal("0")
    for entry in entries:
        result = convert(entry.amount, entry.currency, target, rates)
        if result is None:
            missing = entry.currency if _rate_for(normalize_code(entry.currency), rates) is None else target
            raise RateUnavailableError(normalize_code(missing))
        total += result.converted
    return total


class CurrencyNormalizer:
    """Resolves rates through the rate cache once per batch, then converts"""

    def __init__(self, rate_cache):
        self.rate_cache = rate_cache

    async def rates_for(self, codes: Iterable[str]) -> Dict[str, Decimal]:
        return await self.rate_cache.get_rates({normalize_code(code) for code in codes})

    async def convert(self, amount: Decimal, from_currency: str, to_currency: str) -> Optional[ConversionResult]:
        rates = await self.rates_for([from_currency, to_currency])
        return convert(amount, from_currency, to_currency, rates)

    async def convert_all(self, entries: Iterable[MoneyEntry], target: str) -> Decimal:
        entries = list(entries)
        rates = await self.rates_for(currencies_of(entries, target))
        return convert_all(entries, target, rates)
