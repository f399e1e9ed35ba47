from __future__ import annotations

import decimal
from decimal import Decimal
from fractions import Fraction
from typing import TypeAlias

from suite_money.domain.monetary.errors import InexactDivisionError, RoundingRequiredError
from suite_money.domain.monetary.rounding import RoundingMode

# Use where optimal type is `Decimal`, but other types are also acceptable (and will be converted to `Decimal`)
DecimalLike: TypeAlias = Decimal | int | str | float

# Context wide enough that add, subtract and multiply never round
_EXACT_CONTEXT = decimal.Context(
    prec=decimal.MAX_PREC,
    Emax=decimal.MAX_EMAX,
    Emin=decimal.MIN_EMIN,
    traps=[decimal.InvalidOperation, decimal.DivisionByZero, decimal.Overflow],
)


def as_decimal(value: DecimalLike) -> Decimal:
    """Converts input to a finite `Decimal` with non-negative scale.

    Floats are converted via string to avoid binary precision noise. Values with a
    positive exponent (e.g. `Decimal("1E+2")`) are normalized to scale 0.

    Args:
        value: Input value as `DecimalLike`.

    Returns:
        Value converted to `Decimal`.

    Raises:
        TypeError: If $value is a bool or of an unsupported type.
        ValueError: If $value cannot be parsed or is not finite.
    """
    # Raise: bool is an int subclass, but never a meaningful amount
    if isinstance(value, bool) or not isinstance(value, (Decimal, int, str, float)):
        raise TypeError(f"Cannot call `as_decimal` because $value ({value!r}) is not Decimal, int, str or float")

    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except decimal.InvalidOperation as e:
            raise ValueError(f"Cannot call `as_decimal` because $value ('{value}') is not a decimal number") from e

    # Raise: NaN and infinities have no scale
    if not result.is_finite():
        raise ValueError(f"Cannot call `as_decimal` because $value ({value}) is not finite")

    if result.as_tuple().exponent > 0:
        result = result.quantize(Decimal(1), context=_EXACT_CONTEXT)
    return result


def scale_of(value: Decimal) -> int:
    """Number of fractional digits in $value's representation."""
    return -value.as_tuple().exponent


def strip_zeros(value: Decimal) -> Decimal:
    """Return $value without trailing fractional zeros; `strip_zeros(Decimal("1.500"))` gives 1.5."""
    result = value.normalize(context=_EXACT_CONTEXT)
    if scale_of(result) < 0:
        result = result.quantize(Decimal(1), context=_EXACT_CONTEXT)
    return result


def same_representation(a: Decimal, b: Decimal) -> bool:
    """True when $a and $b are numerically equal and have the same scale."""
    return a == b and scale_of(a) == scale_of(b)


def add(a: Decimal, b: Decimal) -> Decimal:
    """Exact sum; the result keeps the larger of the two scales."""
    return _EXACT_CONTEXT.add(a, b)


def subtract(a: Decimal, b: Decimal) -> Decimal:
    """Exact difference; the result keeps the larger of the two scales."""
    return _EXACT_CONTEXT.subtract(a, b)


def multiply(a: Decimal, b: Decimal) -> Decimal:
    """Exact product; the result scale is the sum of both scales."""
    return _EXACT_CONTEXT.multiply(a, b)


def compare(a: Decimal, b: Decimal) -> int:
    """Return -1, 0 or 1 as $a is less than, equal to or greater than $b."""
    return (a > b) - (a < b)


def from_units(units: int, scale: int) -> Decimal:
    """Build a Decimal from an integer count of smallest units at $scale.

    `from_units(1234, 2)` gives `Decimal("12.34")`.
    """
    digits = tuple(int(digit) for digit in str(abs(units)))
    return Decimal((1 if units < 0 else 0, digits, -scale))


def to_units(value: Decimal, scale: int) -> int:
    """Integer count of smallest units of $value at $scale.

    Raises:
        RoundingRequiredError: If $value has more fractional digits than $scale.
    """
    fraction = Fraction(value) * 10**scale
    # Raise: digits below $scale would be lost
    if fraction.denominator != 1:
        raise RoundingRequiredError(
            f"Cannot call `to_units` because $value ({value}) has more than {scale} fractional digits",
            operation="to_units",
            value=value,
            scale=scale,
        )
    return fraction.numerator


def round_quotient(numerator: int, denominator: int, rounding: RoundingMode) -> int:
    """Round the exact quotient $numerator / $denominator to an integer.

    Args:
        numerator: Dividend.
        denominator: Divisor, must not be zero.
        rounding: Rounding mode applied when the quotient is not an integer.

    Returns:
        Rounded integer quotient.

    Raises:
        ZeroDivisionError: If $denominator is zero.
        RoundingRequiredError: If the quotient is not an integer and $rounding is UNNECESSARY.
    """
    if denominator == 0:
        raise ZeroDivisionError(f"Cannot call `round_quotient` because $denominator is zero (numerator = {numerator})")
    if denominator < 0:
        numerator, denominator = -numerator, -denominator

    floor, remainder = divmod(numerator, denominator)
    if remainder == 0:
        return floor

    ceiling = floor + 1
    negative = numerator < 0
    toward_zero = ceiling if negative else floor
    away_from_zero = floor if negative else ceiling

    if rounding is RoundingMode.FLOOR:
        return floor
    if rounding is RoundingMode.CEILING:
        return ceiling
    if rounding is RoundingMode.DOWN:
        return toward_zero
    if rounding is RoundingMode.UP:
        return away_from_zero

    if rounding is RoundingMode.UNNECESSARY:
        raise RoundingRequiredError(
            f"Cannot call `round_quotient` because {numerator}/{denominator} is not an integer and $rounding is UNNECESSARY",
            operation="round_quotient",
            numerator=numerator,
            denominator=denominator,
        )

    # Half modes: compare the remainder against half of the divisor
    doubled = 2 * remainder
    if doubled < denominator:
        return floor
    if doubled > denominator:
        return ceiling
    if rounding is RoundingMode.HALF_UP:
        return away_from_zero
    if rounding is RoundingMode.HALF_DOWN:
        return toward_zero
    return floor if floor % 2 == 0 else ceiling


def round_fraction(value: Fraction, scale: int, rounding: RoundingMode = RoundingMode.UNNECESSARY) -> Decimal:
    """Round an exact rational $value to a Decimal with exactly $scale fractional digits.

    Raises:
        RoundingRequiredError: If digits would be lost and $rounding is UNNECESSARY.
    """
    scaled = value * 10**scale
    units = round_quotient(scaled.numerator, scaled.denominator, rounding)
    return from_units(units, scale)


def terminating_scale(value: Fraction) -> int | None:
    """Smallest scale at which $value is exactly representable, or None if it never is.

    A reduced fraction terminates iff its denominator has no prime factors other
    than 2 and 5; the required scale is the larger of the two exponents.
    """
    denominator = value.denominator
    twos = 0
    while denominator % 2 == 0:
        denominator //= 2
        twos += 1
    fives = 0
    while denominator % 5 == 0:
        denominator //= 5
        fives += 1
    if denominator != 1:
        return None
    return max(twos, fives)


def set_scale(value: Decimal, scale: int, rounding: RoundingMode = RoundingMode.UNNECESSARY) -> Decimal:
    """Return $value represented with exactly $scale fractional digits.

    Increasing the scale is always exact. Reducing it rounds with $rounding; the
    default UNNECESSARY fails when non-zero digits would be dropped.

    Args:
        value: Value to rescale.
        scale: Target number of fractional digits, must be >= 0.
        rounding: Rounding mode used when digits are dropped.

    Returns:
        Rescaled value.

    Raises:
        ValueError: If $scale is negative.
        RoundingRequiredError: If rounding is needed and $rounding is UNNECESSARY.
    """
    # Raise: negative scales are not representable as fractional digits
    if scale < 0:
        raise ValueError(f"Cannot call `set_scale` because $scale ({scale}) is negative")

    if scale >= scale_of(value):
        return value.quantize(Decimal((0, (1,), -scale)), context=_EXACT_CONTEXT)

    try:
        return round_fraction(Fraction(value), scale, rounding)
    except RoundingRequiredError as e:
        raise RoundingRequiredError(
            f"Cannot call `set_scale` because $value ({value}) needs rounding to reach scale {scale} and $rounding is UNNECESSARY",
            operation="set_scale",
            value=value,
            scale=scale,
        ) from e


def divide(a: Decimal, b: Decimal, scale: int | None = None, rounding: RoundingMode = RoundingMode.UNNECESSARY) -> Decimal:
    """Divide $a by $b.

    With $scale given, the quotient is rounded to that scale. Without it, a
    terminating quotient is returned exactly (with at least the scale of $a) and a
    non-terminating one is rounded to the scale of $a.

    Args:
        a: Dividend.
        b: Divisor.
        scale: Optional target scale of the quotient.
        rounding: Rounding mode used when the quotient has to be cut.

    Returns:
        Quotient.

    Raises:
        ZeroDivisionError: If $b is zero.
        InexactDivisionError: If rounding is needed and $rounding is UNNECESSARY.
    """
    # Raise: division by zero
    if b == 0:
        raise ZeroDivisionError(f"Cannot call `divide` because $b is zero ($a = {a})")

    quotient = Fraction(a) / Fraction(b)
    if scale is None:
        exact_scale = terminating_scale(quotient)
        if exact_scale is not None:
            return round_fraction(quotient, max(exact_scale, scale_of(a)))
        scale = max(scale_of(a), 0)

    try:
        return round_fraction(quotient, scale, rounding)
    except RoundingRequiredError as e:
        raise InexactDivisionError(
            f"Cannot call `divide` because {a} / {b} does not terminate at scale {scale} and $rounding is UNNECESSARY",
            operation="divide",
            a=a,
            b=b,
            scale=scale,
        ) from e


def round_to_interval(value: Decimal, interval: Decimal, rounding: RoundingMode = RoundingMode.UNNECESSARY) -> Decimal:
    """Round $value to a multiple of $interval, keeping the larger of both scales.

    `round_to_interval(Decimal("1.23"), Decimal("0.05"), RoundingMode.HALF_UP)` gives
    `Decimal("1.25")`.

    Raises:
        ValueError: If $interval is not positive.
        RoundingRequiredError: If $value is not a multiple of $interval and $rounding is UNNECESSARY.
    """
    # Raise: interval must be positive
    if interval <= 0:
        raise ValueError(f"Cannot call `round_to_interval` because $interval ({interval}) is not positive")

    steps = Fraction(value) / Fraction(interval)
    count = round_quotient(steps.numerator, steps.denominator, rounding)
    return set_scale(multiply(interval, Decimal(count)), max(scale_of(value), scale_of(interval)))
