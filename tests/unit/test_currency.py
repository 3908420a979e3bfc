"""Unit tests for currency normalization"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from fire_gateway.domain.currency import (
    CurrencyNormalizer,
    convert,
    convert_all,
    currencies_of,
    round_money,
)
from fire_gateway.domain.exceptions import RateUnavailableError
from fire_gateway.domain.models import MoneyEntry

RATES = {"eur": Decimal("0.9"), "gbp": Decimal("0.8"), "jpy": Decimal("150")}


def test_same_currency_is_identity():
    result = convert(Decimal("12.34"), "EUR", "eur", {})
    assert result.converted == Decimal("12.34")
    assert result.effective_rate == 1


def test_convert_to_usd():
    result = convert(Decimal("90"), "eur", "usd", RATES)
    assert result.converted == Decimal("100")
    assert result.effective_rate == Decimal("0.9")


def test_convert_from_usd():
    assert convert(Decimal("100"), "USD", "JPY", RATES).converted == Decimal("15000")


def test_convert_cross_rate_pivots_through_usd():
    result = convert(Decimal("90"), "eur", "gbp", RATES)
    assert result.converted == Decimal("80")


def test_missing_rate_is_none_not_one_to_one():
    assert convert(Decimal("10"), "xyz", "usd", RATES) is None
    assert convert(Decimal("10"), "usd", "xyz", RATES) is None


@pytest.mark.parametrize("pair", [("eur", "gbp"), ("usd", "jpy"), ("jpy", "eur")])
def test_round_trip(pair):
    a, b = pair
    amount = Decimal("1234.56")
    there = convert(amount, a, b, RATES).converted
    back = convert(there, b, a, RATES).converted
    assert abs(back - amount) < Decimal("0.0001")


def test_convert_all_sums_entries():
    entries = [MoneyEntry(Decimal("90"), "eur"), MoneyEntry(Decimal("10"), "usd")]
    assert convert_all(entries, "usd", RATES) == Decimal("110")


def test_convert_all_names_missing_currency():
    entries = [MoneyEntry(Decimal("10"), "usd"), MoneyEntry(Decimal("10"), "XYZ")]
    with pytest.raises(RateUnavailableError) as exc_info:
        convert_all(entries, "usd", RATES)
    assert exc_info.value.currency == "xyz"


def test_convert_all_names_missing_target():
    with pytest.raises(RateUnavailableError) as exc_info:
        convert_all([MoneyEntry(Decimal("10"), "usd")], "chf", RATES)
    assert exc_info.value.currency == "chf"


def test_currencies_of_includes_target():
    entries = [MoneyEntry(Decimal("1"), "EUR"), MoneyEntry(Decimal("1"), "usd")]
    assert currencies_of(entries, "GBP") == {"eur", "usd", "gbp"}


def test_round_money_half_up():
    assert round_money(Decimal("2.345")) == Decimal("2.35")
    assert round_money(None) is None


async def test_normalizer_resolves_rates_once():
    rate_cache = AsyncMock()
    rate_cache.get_rates.return_value = {"usd": Decimal("1"), "eur": Decimal("0.9")}
    normalizer = CurrencyNormalizer(rate_cache)

    total = await normalizer.convert_all(
        [MoneyEntry(Decimal("90"), "eur"), MoneyEntry(Decimal("45"), "eur")], "usd"
    )

    assert total == Decimal("150")
    rate_cache.get_rates.assert_awaited_once_with({"eur", "usd"})
