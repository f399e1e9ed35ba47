from decimal import Decimal

import pytest

from suite_money.domain.monetary.currency import Currency
from suite_money.domain.monetary.default_registry import with_registry
from suite_money.domain.monetary.errors import (
    CurrencyMismatchError,
    CurrencyNotFoundError,
    InexactDivisionError,
    RoundingRequiredError,
)
from suite_money.domain.monetary.money import Money, add, divide, multiply, subtract
from suite_money.domain.monetary.rounding import RoundingMode
from suite_money.domain.monetary.scale_context import with_rescale_each, with_rescaling, with_rounding
from tests.helpers.helper_registry import EUR, JPY, PLN, USD, XAU, create_test_registry

# Constants
EUR_3 = EUR.with_scale(3)


# region Construction


def test_amount_is_set_to_currency_scale():
    testee = Money("10", EUR)
    assert str(testee.amount) == "10.00"
    assert testee.scale == 2
    assert testee.currency is EUR
    assert str(Money(5, JPY).amount) == "5"


def test_construction_requires_rounding_when_digits_are_dropped():
    with pytest.raises(RoundingRequiredError):
        Money("10.005", EUR)

    assert str(Money("10.005", EUR, RoundingMode.HALF_EVEN).amount) == "10.00"
    assert str(Money("10.015", EUR, "HALF_EVEN").amount) == "10.02"
    with with_rounding(RoundingMode.HALF_UP):
        assert str(Money("10.005", EUR).amount) == "10.01"


def test_auto_scaled_currency_keeps_amount_scale():
    testee = Money("1.23456", XAU)
    assert str(testee.amount) == "1.23456"
    assert testee.scale == 5
    assert testee.currency.is_auto_scaled


def test_invalid_value_is_rejected():
    with pytest.raises(ValueError):
        Money("ten", EUR)
    with pytest.raises(ValueError):
        Money(None, EUR)


def test_currency_is_resolved_through_current_registry():
    with with_registry(create_test_registry()):
        assert Money("1", "EUR").currency is EUR
        assert Money("1", 985).currency is PLN
        assert Money.of("crypto/ETH", "0.5").currency.id == "crypto/ETH"
        with pytest.raises(CurrencyNotFoundError):
            Money("1", "ABC")


def test_money_keeps_currency_snapshot():
    registry = create_test_registry()
    with with_registry(registry):
        testee = Money("1", "EUR")
    with with_registry(registry.unregister("EUR")):
        assert testee.currency is EUR
        assert str(testee + testee) == "2.00 EUR"


def test_alternative_constructors():
    assert Money.zero(EUR) == Money("0.00", EUR)
    assert str(Money.of_minor(EUR, 1234).amount) == "12.34"
    assert Money.of_minor(EUR, -5).minor_units == -5
    with pytest.raises(ValueError):
        Money.of_minor(XAU, 1)


def test_from_str_accepts_both_orders():
    with with_registry(create_test_registry()):
        assert Money.from_str("1000.50 USD") == Money("1000.50", USD)
        assert Money.from_str("USD 1000.50") == Money("1000.50", USD)
        assert Money.from_str("1.005 EUR", RoundingMode.HALF_UP) == Money("1.01", EUR)
        with pytest.raises(ValueError):
            Money.from_str("1000.50")
        with pytest.raises(ValueError):
            Money.from_str("USD EUR")


# endregion

# region Comparison


def test_equality_is_numeric_within_currency():
    assert Money("1.50", EUR) == Money("1.5", EUR)
    assert Money("1.5", XAU) == Money("1.50", XAU)
    assert hash(Money("1.5", XAU)) == hash(Money("1.50", XAU))
    assert Money("1.00", EUR) != Money("1.00", USD)
    assert Money("1.00", EUR) != Decimal("1.00")


def test_ordering_requires_same_currency():
    assert Money("1.00", EUR) < Money("2.00", EUR)
    assert Money("2.00", EUR) >= Money("2", EUR)
    assert Money("1.00", EUR).compare(Money("0.50", EUR)) == 1

    with pytest.raises(CurrencyMismatchError):
        _ = Money("1.00", EUR) < Money("2.00", USD)
    with pytest.raises(CurrencyMismatchError):
        Money("1.00", EUR).compare(Money("1.00", USD))


def test_sign_predicates():
    assert Money("0", EUR).is_zero()
    assert Money("0.01", EUR).is_positive()
    assert Money("-0.01", EUR).is_negative()
    assert Money("1", EUR).same_currency(Money("2", EUR.with_scale(4)))


# endregion

# region Addition and subtraction


def test_add_and_subtract():
    assert Money("1.10", EUR) + Money("2.20", EUR) == Money("3.30", EUR)
    assert Money("1.10", EUR) - Money("2.20", EUR) == Money("-1.10", EUR)
    assert add(Money("1", EUR), Money("2", EUR), Money("3", EUR)) == Money("6", EUR)
    assert subtract(Money("10", EUR), Money("2", EUR), Money("3", EUR)) == Money("5", EUR)
    assert subtract(Money("10", EUR)) == Money("-10", EUR)


def test_add_rejects_currency_mismatch():
    with pytest.raises(CurrencyMismatchError) as exc_info:
        Money("1.00", EUR) + Money("1.00", USD)
    assert exc_info.value.operation == "Money.add"

    with pytest.raises(TypeError):
        Money("1.00", EUR) + 1
    with pytest.raises(TypeError):
        add()


def test_add_widens_scale():
    testee = Money("1.50", EUR) + Money("0.125", EUR_3)
    assert str(testee.amount) == "1.625"
    assert testee.currency.scale == 3
    assert testee.currency == EUR


def test_negation_and_abs():
    assert -Money("1.50", EUR) == Money("-1.50", EUR)
    assert abs(Money("-1.50", EUR)) == Money("1.50", EUR)
    assert +Money("1.50", EUR) == Money("1.50", EUR)


# endregion

# region Multiplication


def test_multiply_by_number():
    assert Money("10.00", EUR) * 3 == Money("30.00", EUR)
    assert 3 * Money("10.00", EUR) == Money("30.00", EUR)
    assert str((Money("10.00", EUR) * Decimal("0.5")).amount) == "5.00"


def test_multiply_requires_rounding_when_digits_are_dropped():
    with pytest.raises(RoundingRequiredError):
        Money("10.01", EUR) * "1.5"
    with with_rounding(RoundingMode.HALF_UP):
        assert Money("10.01", EUR) * "1.5" == Money("15.02", EUR)


def test_multiply_rejects_two_moneys():
    with pytest.raises(TypeError):
        multiply(Money("1", EUR), Money("1", EUR))
    with pytest.raises(TypeError):
        Money("1", EUR) * Money("1", EUR)
    with pytest.raises(TypeError):
        multiply()


def test_multiply_without_money_returns_exact_decimal():
    assert multiply("1.5", 2, "0.25") == Decimal("0.75")


def test_multiply_chain_rounds_once_by_default():
    with with_rounding(RoundingMode.HALF_UP):
        assert multiply(Money("1.00", EUR), "1.005", "1.005") == Money("1.01", EUR)


def test_multiply_chain_rounds_each_step_when_enabled():
    with with_rescaling(RoundingMode.HALF_UP):
        assert multiply(Money("1.00", EUR), "1.005", "1.005") == Money("1.02", EUR)


def test_multiply_auto_scaled_keeps_exact_product():
    testee = Money("1.5", XAU) * "1.25"
    assert str(testee.amount) == "1.875"


# endregion

# region Division


def test_division_needs_rounding_mode():
    with pytest.raises(InexactDivisionError):
        divide(Money("100", PLN), 3)
    with pytest.raises(RoundingRequiredError):
        Money("100", PLN) / 3

    with with_rounding(RoundingMode.HALF_UP):
        assert divide(Money("100", PLN), 3) == Money("33.33", PLN)


def test_exact_division():
    assert Money("100", PLN) / 4 == Money("25.00", PLN)
    assert str((Money("100", PLN) / 4).amount) == "25.00"


def test_money_divided_by_money_gives_decimal():
    testee = Money("10.00", EUR) / Money("4.00", EUR)
    assert isinstance(testee, Decimal)
    assert testee == Decimal("2.5")

    with pytest.raises(InexactDivisionError):
        Money("10.00", EUR) / Money("3.00", EUR)
    with with_rounding(RoundingMode.HALF_UP):
        assert Money("10.00", EUR) / Money("3.00", EUR) == Decimal("3.33")

    with pytest.raises(CurrencyMismatchError):
        Money("10.00", EUR) / Money("3.00", USD)


def test_number_divided_by_money_is_rejected():
    with pytest.raises(TypeError):
        3 / Money("1.00", EUR)
    with pytest.raises(TypeError):
        divide(3, Money("1.00", EUR))


def test_division_by_zero():
    with pytest.raises(ZeroDivisionError):
        Money("1.00", EUR) / 0
    with pytest.raises(ZeroDivisionError):
        Money("1.00", EUR) / Money("0.00", EUR)


def test_auto_scaled_division_is_exact_when_terminating():
    assert str((Money("1", XAU) / 8).amount) == "0.125"
    with pytest.raises(InexactDivisionError):
        Money("1.00", XAU) / 3
    with with_rounding(RoundingMode.HALF_UP):
        assert str((Money("1.00", XAU) / 3).amount) == "0.33"


def test_division_chain_rounding_points():
    with with_rounding(RoundingMode.HALF_UP):
        assert divide(Money("1.00", EUR), 3, "0.5") == Money("0.67", EUR)
        with with_rescale_each():
            assert divide(Money("1.00", EUR), 3, "0.5") == Money("0.66", EUR)


def test_divide_numbers():
    assert divide(1, 8) == Decimal("0.125")
    with with_rounding(RoundingMode.DOWN):
        assert divide("2.0", 3) == Decimal("0.6")


# endregion

# region Scale


def test_rescale():
    testee = Money("1.00", EUR).rescale(4)
    assert str(testee.amount) == "1.0000"
    assert testee.currency.scale == 4

    # The widened snapshot is the new nominal scale
    assert testee.rescale() == testee
    assert str(testee.rescale(2).amount) == "1.00"
    assert testee.rescale(2).currency.scale == 2
    assert Money("1.5", XAU).rescale() == Money("1.5", XAU)
    assert str(Money("1.25", EUR).rescale(1, RoundingMode.HALF_EVEN).amount) == "1.2"
    with pytest.raises(RoundingRequiredError):
        Money("1.25", EUR).rescale(1)


def test_round_keeps_scale():
    assert str(Money("10.55", EUR).round(1, RoundingMode.HALF_UP).amount) == "10.60"
    assert str(Money("10.1234", XAU).round(2, RoundingMode.HALF_UP).amount) == "10.1200"
    assert str(Money("10.55", EUR).round(4).amount) == "10.55"


def test_round_to_interval():
    assert str(Money("1.23", EUR).round_to("0.05", RoundingMode.HALF_UP).amount) == "1.25"
    assert str(Money("1.22", EUR).round_to("0.05", RoundingMode.HALF_UP).amount) == "1.20"
    assert str(Money("17", JPY).round_to(5, RoundingMode.FLOOR).amount) == "15"
    with pytest.raises(RoundingRequiredError):
        Money("1.23", EUR).round_to("0.05")
    with with_rounding(RoundingMode.DOWN):
        assert Money("1.24", EUR).round_to("0.05") == Money("1.20", EUR)


def test_minor_units():
    assert Money("12.34", EUR).minor_units == 1234
    assert Money("1.5", XAU).minor_units == 15


# endregion


def test_str_and_repr():
    assert str(Money("1000.5", USD)) == "1000.50 USD"
    assert repr(Money("1000.5", USD)) == "Money(1000.50, USD)"


def test_compare_rejects_non_money():
    with pytest.raises(TypeError):
        Money("1.00", EUR).compare(5)


# region Major and minor parts


def test_major_and_minor_parts():
    assert Money("12.34", EUR).major == Decimal("12")
    assert Money("12.34", EUR).minor == 34
    assert Money("-12.34", EUR).major == Decimal("-12")
    assert Money("-12.34", EUR).minor == -34
    assert Money("12.05", EUR).minor == 5
    assert Money("7", JPY).minor == 0
    assert Money("1.5", XAU).minor == 5


def test_of_major_drops_fractional_part():
    assert Money.of_major(EUR, 12) == Money("12.00", EUR)
    assert str(Money.of_major(EUR, "12.34", RoundingMode.DOWN).amount) == "12.00"
    assert str(Money.of_major(EUR, "12.5", "HALF_UP").amount) == "13.00"
    with pytest.raises(RoundingRequiredError):
        Money.of_major(EUR, "12.34")


# endregion

# region Strip and cast


def test_strip_drops_trailing_zeros():
    testee = Money("1.50", EUR).strip()
    assert str(testee.amount) == "1.5"
    assert testee.currency.scale == 1
    assert testee == Money("1.50", EUR)

    assert str(Money("100.00", EUR).strip().amount) == "100"
    assert str(Money("0.00", EUR).strip().amount) == "0"
    assert str(Money("2.5000", XAU).strip().amount) == "2.5"
    assert Money("2.5000", XAU).strip().currency is XAU


def test_cast_moves_amount_to_other_currency():
    testee = Money("12.34", EUR).cast(USD)
    assert testee == Money("12.34", USD)
    assert testee.currency is USD

    with pytest.raises(RoundingRequiredError):
        Money("12.34", EUR).cast(JPY)
    assert str(Money("12.34", EUR).cast(JPY, RoundingMode.HALF_UP).amount) == "12"
    assert str(Money("12", JPY).cast(EUR).amount) == "12.00"
    assert str(Money("1.23456", XAU).cast(EUR, "DOWN").amount) == "1.23"


def test_cast_resolves_currency_through_current_registry():
    with with_registry(create_test_registry()):
        assert Money("1.00", EUR).cast("PLN").currency is PLN
        with pytest.raises(CurrencyNotFoundError):
            Money("1.00", EUR).cast("ABC")


# endregion
