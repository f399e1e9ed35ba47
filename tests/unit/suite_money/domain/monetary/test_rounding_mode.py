import decimal

import pytest

from suite_money.domain.monetary.rounding import RoundingMode


def test_parse_accepts_names_in_any_spelling():
    assert RoundingMode.parse("HALF_EVEN") is RoundingMode.HALF_EVEN
    assert RoundingMode.parse("half-even") is RoundingMode.HALF_EVEN
    assert RoundingMode.parse(" half_up ") is RoundingMode.HALF_UP
    assert RoundingMode.parse(decimal.ROUND_FLOOR) is RoundingMode.FLOOR
    assert RoundingMode.parse(RoundingMode.UNNECESSARY) is RoundingMode.UNNECESSARY


def test_parse_rejects_unknown_values():
    with pytest.raises(ValueError):
        RoundingMode.parse("HALF_AWAY")
    with pytest.raises(TypeError):
        RoundingMode.parse(3)


def test_decimal_rounding_mapping_is_bidirectional():
    for mode in RoundingMode:
        if mode is RoundingMode.UNNECESSARY:
            assert mode.decimal_rounding is None
            continue
        assert RoundingMode.from_decimal_rounding(mode.decimal_rounding) is mode

    assert RoundingMode.HALF_EVEN.decimal_rounding == decimal.ROUND_HALF_EVEN


def test_from_decimal_rounding_rejects_unsupported_constant():
    with pytest.raises(ValueError):
        RoundingMode.from_decimal_rounding(decimal.ROUND_05UP)
