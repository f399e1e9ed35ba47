from __future__ import annotations

import decimal
from enum import Enum

from bidict import bidict


class RoundingMode(Enum):
    """Rounding modes used when a decimal value has to lose digits.

    All modes except UNNECESSARY have a direct counterpart among the `decimal`
    module's ROUND_* constants. UNNECESSARY asserts that the result is exact and
    fails otherwise.
    """

    UP = "UP"
    DOWN = "DOWN"
    CEILING = "CEILING"
    FLOOR = "FLOOR"
    HALF_UP = "HALF_UP"
    HALF_DOWN = "HALF_DOWN"
    HALF_EVEN = "HALF_EVEN"
    UNNECESSARY = "UNNECESSARY"

    @property
    def decimal_rounding(self) -> str | None:
        """Matching `decimal` ROUND_* constant, or None for UNNECESSARY."""
        return _DECIMAL_ROUNDING_BY_MODE.get(self)

    @classmethod
    def from_decimal_rounding(cls, value: str) -> RoundingMode:
        """Map a `decimal` ROUND_* constant back to a RoundingMode.

        Raises:
            ValueError: If $value is not a supported `decimal` rounding constant.
        """
        # Raise: ROUND_05UP and unknown strings have no counterpart
        if value not in _DECIMAL_ROUNDING_BY_MODE.inverse:
            raise ValueError(f"Cannot call `RoundingMode.from_decimal_rounding` because $value ('{value}') is not a supported decimal rounding constant")
        return _DECIMAL_ROUNDING_BY_MODE.inverse[value]

    @classmethod
    def parse(cls, value: RoundingMode | str) -> RoundingMode:
        """Parse a RoundingMode from a member, a name or a `decimal` constant.

        Names are case-insensitive, may use dashes instead of underscores and may
        carry the `ROUND_` prefix, so "half-even", "HALF_EVEN" and
        `decimal.ROUND_HALF_EVEN` all give `RoundingMode.HALF_EVEN`.

        Args:
            value: Value to parse.

        Returns:
            Parsed RoundingMode.

        Raises:
            TypeError: If $value is neither RoundingMode nor str.
            ValueError: If $value names no rounding mode.
        """
        if isinstance(value, RoundingMode):
            return value

        # Raise: only strings can be parsed
        if not isinstance(value, str):
            raise TypeError(f"Cannot call `RoundingMode.parse` because $value ({value!r}) is not RoundingMode or str")

        name = value.strip().upper().replace("-", "_")
        if name.startswith("ROUND_"):
            name = name[len("ROUND_") :]

        # Raise: unknown mode name
        if name not in cls.__members__:
            raise ValueError(f"Cannot call `RoundingMode.parse` because $value ('{value}') names no rounding mode")
        return cls[name]


_DECIMAL_ROUNDING_BY_MODE: bidict[RoundingMode, str] = bidict(
    {
        RoundingMode.UP: decimal.ROUND_UP,
        RoundingMode.DOWN: decimal.ROUND_DOWN,
        RoundingMode.CEILING: decimal.ROUND_CEILING,
        RoundingMode.FLOOR: decimal.ROUND_FLOOR,
        RoundingMode.HALF_UP: decimal.ROUND_HALF_UP,
        RoundingMode.HALF_DOWN: decimal.ROUND_HALF_DOWN,
        RoundingMode.HALF_EVEN: decimal.ROUND_HALF_EVEN,
    },
)
