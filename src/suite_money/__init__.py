__version__ = "0.1.0"

from suite_money.domain.monetary.allocation import allocate, distribute
from suite_money.domain.monetary.currency import AUTO_SCALED, Currency
from suite_money.domain.monetary.default_registry import current, get_default, run_with_registry, set_default, update_default, with_registry
from suite_money.domain.monetary.errors import (
    CurrencyMismatchError,
    CurrencyNotFoundError,
    InexactDivisionError,
    InvalidAllocationError,
    InvalidCurrencySpecError,
    InvalidHierarchySpecError,
    MergeConflictError,
    MonetaryError,
    RoundingRequiredError,
)
from suite_money.domain.monetary.hierarchy import CurrencyHierarchies, Hierarchy
from suite_money.domain.monetary.merge import merge_registry
from suite_money.domain.monetary.money import Money
from suite_money.domain.monetary.registry import Registry
from suite_money.domain.monetary.resolution import ByCode, ByCountry, ById, ByNumeric, Direct, of_country, of_domain, of_kind, of_trait, resolve
from suite_money.domain.monetary.rounding import RoundingMode
from suite_money.domain.monetary.scale_context import run_with_rescale_each, run_with_rounding, with_rescale_each, with_rescaling, with_rounding

__all__ = [
    "AUTO_SCALED",
    "ByCode",
    "ByCountry",
    "ById",
    "ByNumeric",
    "Currency",
    "CurrencyHierarchies",
    "CurrencyMismatchError",
    "CurrencyNotFoundError",
    "Direct",
    "Hierarchy",
    "InexactDivisionError",
    "InvalidAllocationError",
    "InvalidCurrencySpecError",
    "InvalidHierarchySpecError",
    "MergeConflictError",
    "MonetaryError",
    "Money",
    "Registry",
    "RoundingMode",
    "RoundingRequiredError",
    "allocate",
    "current",
    "distribute",
    "get_default",
    "merge_registry",
    "of_country",
    "of_domain",
    "of_kind",
    "of_trait",
    "resolve",
    "run_with_registry",
    "run_with_rescale_each",
    "run_with_rounding",
    "set_default",
    "update_default",
    "with_registry",
    "with_rescale_each",
    "with_rescaling",
    "with_rounding",
]
