from __future__ import annotations

from typing import Any


class MonetaryError(Exception):
    """Base class for all errors raised by the monetary domain.

    Every error carries the name of the failing $operation and the offending
    $operands, so callers can inspect what went wrong without parsing the message.

    Attributes:
        operation (str | None): Name of the operation that failed (e.g. "Money.__add__").
        operands (dict[str, Any]): Offending operands keyed by parameter name.
    """

    def __init__(self, message: str, operation: str | None = None, **operands: Any) -> None:
        super().__init__(message)
        self.operation = operation
        self.operands = operands


class CurrencyNotFoundError(MonetaryError, LookupError):
    """Resolution failed for a given identifier, code, numeric code or country."""


class CurrencyMismatchError(MonetaryError, ValueError):
    """Arithmetic or ordering was attempted across different currency identities."""


class InvalidCurrencySpecError(MonetaryError, ValueError):
    """A Currency was constructed with malformed id, scale, numeric code or weight."""


class RoundingRequiredError(MonetaryError, ArithmeticError):
    """A scale reduction needed a rounding mode and none was resolvable."""


class InexactDivisionError(RoundingRequiredError):
    """A division does not terminate and no rounding mode was resolvable."""


class InvalidHierarchySpecError(MonetaryError, ValueError):
    """A hierarchy edge is cyclic or malformed."""


class InvalidAllocationError(MonetaryError, ValueError):
    """Allocation ratios are empty, non-numeric or do not sum to a positive number."""


class MergeConflictError(MonetaryError):
    """A registry merge hit an identity rename it cannot resolve deterministically."""
