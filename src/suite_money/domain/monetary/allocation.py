from __future__ import annotations

from collections.abc import Sequence
from fractions import Fraction

from suite_money.domain.monetary.errors import InvalidAllocationError
from suite_money.domain.monetary.money import Money
from suite_money.utils import decimal_tools
from suite_money.utils.decimal_tools import DecimalLike, as_decimal


def allocate(money: Money, ratios: Sequence[DecimalLike]) -> list[Money]:
    """Split $money into parts proportional to $ratios without losing a single unit.

    Each part gets its exact share truncated toward zero to the smallest unit.
    The units left over are then handed out one at a time, starting at index 0,
    so earlier parts receive them first. The parts always sum to $money exactly.

    The smallest unit follows the larger of the nominal currency scale and the
    amount's own scale (just the amount's scale for auto-scaled currencies).

    Args:
        money: Amount to split; may be negative (every part then keeps the sign).
        ratios: Non-empty ratios with a positive sum. Zero and negative entries
            are allowed.

    Returns:
        One Money per ratio, in the order of $ratios.

    Raises:
        InvalidAllocationError: If $ratios is empty, holds a non-number or does
            not sum to a positive value.

    Example:
        allocate(Money("100.00", "EUR"), [1, 1, 1]) gives 33.34, 33.33 and 33.33 EUR.
    """
    weights = _validate_ratios(ratios)
    total = sum(weights, Fraction(0))

    currency = money.currency
    scale = money.scale if currency.is_auto_scaled else max(currency.scale, money.scale)
    units = decimal_tools.to_units(decimal_tools.set_scale(money.amount, scale), scale)

    # int() truncates toward zero, for negative amounts too
    shares = [int(units * weight / total) for weight in weights]

    remainder = units - sum(shares)
    step = 1 if remainder > 0 else -1
    index = 0
    while remainder != 0:
        shares[index % len(shares)] += step
        remainder -= step
        index += 1

    return [Money._create(currency, decimal_tools.from_units(share, scale)) for share in shares]


def distribute(money: Money, parts: int) -> list[Money]:
    """Split $money into $parts equal parts; leftover units go to the first parts.

    Raises:
        InvalidAllocationError: If $parts is not an integer >= 1.
    """
    # Raise: at least one part is needed
    if isinstance(parts, bool) or not isinstance(parts, int) or parts < 1:
        raise InvalidAllocationError(
            f"Cannot call `distribute` because $parts ({parts!r}) is not an integer >= 1",
            operation="distribute",
            money=money,
            parts=parts,
        )
    return allocate(money, [1] * parts)


def _validate_ratios(ratios: Sequence[DecimalLike]) -> list[Fraction]:
    # Raise: nothing to allocate to
    if not ratios:
        raise InvalidAllocationError("Cannot call `allocate` because $ratios is empty", operation="allocate", ratios=ratios)

    weights = []
    for ratio in ratios:
        try:
            weights.append(Fraction(as_decimal(ratio)))
        except (TypeError, ValueError) as e:
            raise InvalidAllocationError(
                f"Cannot call `allocate` because ratio {ratio!r} in $ratios is not a number",
                operation="allocate",
                ratios=ratios,
            ) from e

    # Raise: shares are only defined for a positive total
    if sum(weights, Fraction(0)) <= 0:
        raise InvalidAllocationError(
            f"Cannot call `allocate` because $ratios ({list(ratios)}) does not sum to a positive number",
            operation="allocate",
            ratios=ratios,
        )
    return weights
