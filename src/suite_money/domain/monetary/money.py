from __future__ import annotations

from decimal import Decimal
from fractions import Fraction
from typing import TYPE_CHECKING

from suite_money.domain.monetary.currency import Currency
from suite_money.domain.monetary.errors import CurrencyMismatchError, InexactDivisionError, RoundingRequiredError
from suite_money.domain.monetary.resolution import CurrencyLike, resolve
from suite_money.domain.monetary.rounding import RoundingMode
from suite_money.domain.monetary.scale_context import current_context, resolve_rounding
from suite_money.utils import decimal_tools
from suite_money.utils.decimal_tools import DecimalLike, as_decimal, scale_of

if TYPE_CHECKING:
    from collections.abc import Sequence


class Money:
    """Immutable amount of a currency.

    Holds a snapshot of the Currency (not a registry reference) and a Decimal
    amount. Arithmetic between two Money values requires equal currency ids.

    The currency scale is the nominal scale: the constructor rescales the amount
    to it, except for auto-scaled currencies, whose amounts keep their own scale.
    When arithmetic widens the scale (e.g. 1.5 EUR + 0.125 EUR), the carried
    currency snapshot is widened with it.
    """

    __slots__ = ("_currency", "_amount")

    def __init__(self, value: DecimalLike, currency: CurrencyLike, rounding: RoundingMode | str | None = None) -> None:
        """Initialize Money.

        Args:
            value: Amount as Decimal, int, str or float (floats go through `str`).
            currency: Currency, or anything `resolve` accepts ("EUR", 978, "crypto/ETH", ...).
            rounding: Rounding mode used when $value has more digits than the
                currency scale. Falls back to the active context, then UNNECESSARY.

        Raises:
            ValueError: If $value is not a finite decimal number.
            CurrencyNotFoundError: If $currency cannot be resolved.
            RoundingRequiredError: If $value must be rounded and no rounding mode
                is resolvable.
        """
        # Raise: $value must be convertible to Decimal
        try:
            amount = as_decimal(value)
        except (ValueError, TypeError) as e:
            raise ValueError(f"Cannot init `Money` because $value ({value!r}) cannot be converted to Decimal") from e

        currency = currency if isinstance(currency, Currency) else resolve(currency)
        if not currency.is_auto_scaled:
            amount = decimal_tools.set_scale(amount, currency.scale, resolve_rounding(rounding))
        self._currency = currency
        self._amount = amount

    @classmethod
    def _create(cls, currency: Currency, amount: Decimal) -> Money:
        """Build Money without rescaling; a scale other than the nominal one widens the currency snapshot."""
        if not currency.is_auto_scaled and scale_of(amount) != currency.scale:
            currency = currency.with_scale(scale_of(amount))
        result = cls.__new__(cls)
        result._currency = currency
        result._amount = amount
        return result

    # region Construction

    @classmethod
    def of(cls, currency: CurrencyLike, value: DecimalLike, rounding: RoundingMode | str | None = None) -> Money:
        """Same as `Money(value, currency, rounding)`, with the currency first."""
        return cls(value, currency, rounding)

    @classmethod
    def zero(cls, currency: CurrencyLike) -> Money:
        return cls(0, currency)

    @classmethod
    def of_minor(cls, currency: CurrencyLike, units: int) -> Money:
        """Money from an integer count of smallest units ("cents") of a fixed-scale currency.

        Raises:
            ValueError: If the currency is auto-scaled and has no smallest unit.
        """
        currency = currency if isinstance(currency, Currency) else resolve(currency)
        # Raise: auto-scaled currencies have no fixed smallest unit
        if currency.is_auto_scaled:
            raise ValueError(f"Cannot call `Money.of_minor` because currency '{currency.id}' is auto-scaled")
        return cls._create(currency, decimal_tools.from_units(units, currency.scale))

    @classmethod
    def of_major(cls, currency: CurrencyLike, value: DecimalLike, rounding: RoundingMode | str | None = None) -> Money:
        """Money holding only whole major units: `Money.of_major("EUR", "12.34", "DOWN")` gives 12.00 EUR.

        Raises:
            RoundingRequiredError: If $value has a fractional part and no rounding
                mode is resolvable.
        """
        major = decimal_tools.set_scale(as_decimal(value), 0, resolve_rounding(rounding))
        return cls(major, currency)

    @classmethod
    def from_str(cls, value_str: str, rounding: RoundingMode | str | None = None) -> Money:
        """Parse Money from a string like '1000.50 USD' or 'USD 1000.50'.

        Raises:
            ValueError: If the string does not hold exactly an amount and a currency.
        """
        parts = value_str.split()
        # Raise: exactly two parts are expected
        if len(parts) != 2:
            raise ValueError(f"Value string with $value_str = '{value_str}' must be in format 'value currency' or 'currency value'")

        first, second = parts
        try:
            amount, code = as_decimal(first), second
        except ValueError:
            try:
                amount, code = as_decimal(second), first
            except ValueError as e:
                raise ValueError(f"Value string with $value_str = '{value_str}' holds no decimal amount") from e
        return cls(amount, code, rounding)

    # endregion

    # region Properties

    @property
    def amount(self) -> Decimal:
        return self._amount

    @property
    def currency(self) -> Currency:
        return self._currency

    @property
    def scale(self) -> int:
        """Scale of the amount (which can differ from the nominal scale of auto-scaled currencies)."""
        return scale_of(self._amount)

    @property
    def minor_units(self) -> int:
        """Amount as an integer count of smallest units at the amount's scale."""
        return decimal_tools.to_units(self._amount, self.scale)

    @property
    def major(self) -> Decimal:
        """Whole part of the amount, truncated toward zero (12.34 gives 12, -12.34 gives -12)."""
        return decimal_tools.set_scale(self._amount, 0, RoundingMode.DOWN)

    @property
    def minor(self) -> int:
        """Fractional part of the amount in smallest units (12.34 gives 34, -12.34 gives -34)."""
        return self.minor_units - decimal_tools.to_units(self.major, self.scale)

    def is_zero(self) -> bool:
        return self._amount == 0

    def is_positive(self) -> bool:
        return self._amount > 0

    def is_negative(self) -> bool:
        return self._amount < 0

    def same_currency(self, other: Money) -> bool:
        return isinstance(other, Money) and self._currency.id == other._currency.id

    # endregion

    # region Scale

    def rescale(self, scale: int | None = None, rounding: RoundingMode | str | None = None) -> Money:
        """Return Money with the amount at $scale; the currency snapshot follows.

        Without $scale the amount goes back to the nominal scale of the currency
        (a no-op for auto-scaled currencies).

        Raises:
            RoundingRequiredError: If digits are dropped and no rounding mode is resolvable.
        """
        if scale is None:
            if self._currency.is_auto_scaled:
                return self
            scale = self._currency.scale
        amount = decimal_tools.set_scale(self._amount, scale, resolve_rounding(rounding))
        currency = self._currency if self._currency.is_auto_scaled else self._currency.with_scale(scale)
        return Money._create(currency, amount)

    def round(self, scale: int, rounding: RoundingMode | str | None = None) -> Money:
        """Round the amount to $scale digits but keep the current scale.

        `Money("10.1234", "crypto/XYZ").round(2, "HALF_UP")` gives 10.1200.
        """
        rounded = decimal_tools.set_scale(self._amount, min(scale, self.scale), resolve_rounding(rounding))
        return Money._create(self._currency, decimal_tools.set_scale(rounded, self.scale))

    def round_to(self, interval: DecimalLike, rounding: RoundingMode | str | None = None) -> Money:
        """Round the amount to the nearest multiple of $interval (e.g. 0.05), keeping the scale.

        Raises:
            ValueError: If $interval is not positive.
            RoundingRequiredError: If the amount is not already a multiple and no
                rounding mode is resolvable.
        """
        step = as_decimal(interval)
        amount = decimal_tools.round_to_interval(self._amount, step, resolve_rounding(rounding))
        if scale_of(amount) > self.scale:
            # Trailing zeros below the current scale are dropped
            narrowed = decimal_tools.set_scale(amount, self.scale, RoundingMode.DOWN)
            if narrowed == amount:
                amount = narrowed
        return Money._create(self._currency, amount)

    def strip(self) -> Money:
        """Drop trailing zeros of the amount; the currency snapshot narrows with it.

        `Money("1.50", "EUR").strip()` gives 1.5 EUR, which still equals 1.50 EUR.
        """
        return Money._create(self._currency, decimal_tools.strip_zeros(self._amount))

    def cast(self, currency: CurrencyLike, rounding: RoundingMode | str | None = None) -> Money:
        """Same amount in another currency, rescaled to that currency's nominal scale.

        No exchange rate is applied; multiply by a rate first when converting value.

        Raises:
            CurrencyNotFoundError: If $currency cannot be resolved.
            RoundingRequiredError: If digits are dropped and no rounding mode is resolvable.
        """
        return Money(self._amount, currency, rounding)

    # endregion

    # region Allocation

    def allocate(self, ratios: Sequence[DecimalLike]) -> list[Money]:
        """Split into parts proportional to $ratios; see `allocation.allocate`."""
        from suite_money.domain.monetary.allocation import allocate

        return allocate(self, ratios)

    def distribute(self, parts: int) -> list[Money]:
        """Split into $parts equal parts; see `allocation.distribute`."""
        from suite_money.domain.monetary.allocation import distribute

        return distribute(self, parts)

    # endregion

    # region Comparison

    def _check_same_currency(self, other: Money, operation: str) -> None:
        """Raise CurrencyMismatchError when $other has a different currency id."""
        if self._currency.id != other._currency.id:
            raise CurrencyMismatchError(
                f"Cannot call `Money.{operation}` because currencies differ ($self.currency.id = '{self._currency.id}', $other.currency.id = '{other._currency.id}')",
                operation=f"Money.{operation}",
                left=self,
                right=other,
            )

    def __eq__(self, other: object) -> bool:
        """Numeric equality within one currency; different currencies are never equal."""
        if not isinstance(other, Money):
            return False
        return self._currency.id == other._currency.id and self._amount == other._amount

    def __hash__(self) -> int:
        return hash((self._currency.id, self._amount))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other, "__lt__")
        return self._amount < other._amount

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other, "__le__")
        return self._amount <= other._amount

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other, "__gt__")
        return self._amount > other._amount

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other, "__ge__")
        return self._amount >= other._amount

    def compare(self, other: Money) -> int:
        """Return -1, 0 or 1; raises CurrencyMismatchError across currencies."""
        # Raise: only Money can be compared
        if not isinstance(other, Money):
            raise TypeError(f"Cannot call `Money.compare` because $other ({other!r}) is not Money")
        self._check_same_currency(other, "compare")
        return decimal_tools.compare(self._amount, other._amount)

    # endregion

    # region Arithmetic operators

    def __add__(self, other: object) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return add(self, other)

    def __sub__(self, other: object) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return subtract(self, other)

    def __mul__(self, other: object) -> Money:
        if isinstance(other, Money) or not _is_number(other):
            return NotImplemented
        return multiply(self, other)

    def __rmul__(self, other: object) -> Money:
        if not _is_number(other):
            return NotImplemented
        return multiply(other, self)

    def __truediv__(self, other: object) -> Money | Decimal:
        if not isinstance(other, Money) and not _is_number(other):
            return NotImplemented
        return divide(self, other)

    def __neg__(self) -> Money:
        return Money._create(self._currency, -self._amount)

    def __pos__(self) -> Money:
        return self

    def __abs__(self) -> Money:
        return Money._create(self._currency, abs(self._amount))

    # endregion

    def __str__(self) -> str:
        """Return string like '1000.50 USD'."""
        return f"{self._amount} {self._currency.id}"

    def __repr__(self) -> str:
        """Return string like 'Money(1000.50, USD)'."""
        return f"{self.__class__.__name__}({self._amount}, {self._currency.id})"


# region Chained arithmetic

def add(*moneys: Money) -> Money:
    """Sum Money values of one currency; the result has the widest operand scale.

    Raises:
        TypeError: If no operand is given or an operand is not Money.
        CurrencyMismatchError: If the currency ids differ.
    """
    _require_moneys(moneys, "add")
    result = moneys[0]
    for other in moneys[1:]:
        result._check_same_currency(other, "add")
        result = Money._create(_wider(result, other), decimal_tools.add(result.amount, other.amount))
    return result


def subtract(first: Money, *rest: Money) -> Money:
    """Subtract $rest from $first; a single operand is negated.

    Raises:
        TypeError: If an operand is not Money.
        CurrencyMismatchError: If the currency ids differ.
    """
    _require_moneys((first, *rest), "subtract")
    if not rest:
        return -first
    result = first
    for other in rest:
        result._check_same_currency(other, "subtract")
        result = Money._create(_wider(result, other), decimal_tools.subtract(result.amount, other.amount))
    return result


def multiply(*operands: Money | DecimalLike) -> Money | Decimal:
    """Multiply a chain of operands, at most one of which is Money.

    The Money operand sets the target scale. By default the product is rescaled
    once at the end; in rescale-each-step mode after every step. Auto-scaled
    currencies keep the exact product. Without Money the exact Decimal product is
    returned.

    Raises:
        TypeError: If no operand is given or two operands are Money.
        RoundingRequiredError: If rescaling drops digits and no rounding mode is resolvable.
    """
    # Raise: nothing to multiply
    if not operands:
        raise TypeError("Cannot call `multiply` because no operands were given")

    context = current_context()
    rounding = resolve_rounding()
    money: Money | None = None
    product = Decimal(1)
    for operand in operands:
        if isinstance(operand, Money):
            # Raise: Money * Money has no meaning
            if money is not None:
                raise TypeError(f"Cannot call `multiply` because more than one operand is Money ({money!r}, {operand!r})")
            money = operand
            product = decimal_tools.multiply(product, operand.amount)
        else:
            product = decimal_tools.multiply(product, _as_number(operand, "multiply"))
        if money is not None and context.rescale_each and not money.currency.is_auto_scaled:
            product = decimal_tools.set_scale(product, money.scale, rounding)

    if money is None:
        return product
    if not money.currency.is_auto_scaled:
        product = decimal_tools.set_scale(product, money.scale, rounding)
    return Money._create(money.currency, product)


def divide(first: Money | DecimalLike, *rest: Money | DecimalLike) -> Money | Decimal:
    """Divide $first by every operand of $rest in turn.

    * Money / number gives Money at the scale of $first.
    * Money / Money (same currency) gives a plain Decimal; later divisors must be numbers.
    * number / number gives a Decimal.

    Non-terminating quotients are rounded with the resolved rounding mode (the
    context's, else UNNECESSARY, which fails). Decimal results and auto-scaled
    currencies stay exact when the quotient terminates. By default rounding
    happens once at the end; in rescale-each-step mode after every step.

    Raises:
        TypeError: If nothing is divided, or a number is divided by Money.
        CurrencyMismatchError: If two Money operands differ in currency.
        ZeroDivisionError: If a divisor is zero.
        InexactDivisionError: If rounding is needed and no rounding mode is resolvable.
    """
    # Raise: nothing to divide by
    if not rest:
        raise TypeError("Cannot call `divide` because no divisor was given")

    context = current_context()
    rounding = resolve_rounding()
    money = first if isinstance(first, Money) else None
    dividend = first.amount if isinstance(first, Money) else _as_number(first, "divide")
    scale = scale_of(dividend)
    keeps_money = money is not None
    quotient = Fraction(dividend)

    for divisor in rest:
        if isinstance(divisor, Money):
            # Raise: number / Money has no meaning
            if not keeps_money:
                raise TypeError(f"Cannot call `divide` because a number cannot be divided by Money ({divisor!r})")
            money._check_same_currency(divisor, "divide")
            value = divisor.amount
            keeps_money = False
        else:
            value = _as_number(divisor, "divide")
        # Raise: division by zero
        if value == 0:
            raise ZeroDivisionError(f"Cannot call `divide` because divisor {divisor!r} is zero (dividend {first!r})")
        quotient /= Fraction(value)
        if context.rescale_each:
            quotient = Fraction(_settle(quotient, scale, rounding, _exact_min_scale(money, keeps_money, scale), first, divisor))

    amount = _settle(quotient, scale, rounding, _exact_min_scale(money, keeps_money, scale), first, rest)
    if keeps_money:
        return Money._create(money.currency, amount)
    return amount


def _exact_min_scale(money: Money | None, keeps_money: bool, scale: int) -> int | None:
    """Smallest scale of an exact (terminating) quotient, or None when the result is always rounded to $scale."""
    if not keeps_money:
        return 0
    return scale if money.currency.is_auto_scaled else None


def _settle(quotient: Fraction, scale: int, rounding: RoundingMode, exact_min_scale: int | None, dividend: object, divisor: object) -> Decimal:
    if exact_min_scale is not None:
        exact_scale = decimal_tools.terminating_scale(quotient)
        if exact_scale is not None:
            return decimal_tools.round_fraction(quotient, max(exact_scale, exact_min_scale))
    try:
        return decimal_tools.round_fraction(quotient, scale, rounding)
    except RoundingRequiredError as e:
        raise InexactDivisionError(
            f"Cannot call `divide` because {dividend} / {divisor} does not terminate at scale {scale} and no rounding mode is set",
            operation="divide",
            dividend=dividend,
            divisor=divisor,
        ) from e


def _wider(left: Money, right: Money) -> Currency:
    """Currency snapshot of $left, widened to the larger scale of both operands."""
    if left.currency.is_auto_scaled:
        return left.currency
    return left.currency.with_scale(max(left.scale, right.scale))


def _require_moneys(moneys: tuple[object, ...], function: str) -> None:
    # Raise: at least one Money operand is needed
    if not moneys:
        raise TypeError(f"Cannot call `{function}` because no operands were given")
    for money in moneys:
        # Raise: only Money operands are accepted
        if not isinstance(money, Money):
            raise TypeError(f"Cannot call `{function}` because operand {money!r} is not Money")


def _is_number(value: object) -> bool:
    return isinstance(value, (Decimal, int, float, str)) and not isinstance(value, bool)


def _as_number(value: object, function: str) -> Decimal:
    # Raise: operands other than Money must be numbers
    if not _is_number(value):
        raise TypeError(f"Cannot call `{function}` because operand {value!r} is not a number")
    return as_decimal(value)


# endregion
