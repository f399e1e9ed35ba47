from __future__ import annotations

from enum import Enum
from typing import Any, Final

from suite_money.domain.monetary.errors import InvalidCurrencySpecError


class AutoScaled(Enum):
    """Sentinel type for currencies whose precision comes from the amount itself."""

    AUTO = "AUTO"

    def __repr__(self) -> str:
        return "AUTO_SCALED"


AUTO_SCALED: Final = AutoScaled.AUTO

ISO_DOMAIN: Final = "ISO-4217"
LEGACY_DOMAIN: Final = "ISO-4217-LEGACY"
LEGACY_NAMESPACE: Final = LEGACY_DOMAIN.lower()
# Ids in this namespace are normalized to their bare code
_ISO_NAMESPACE: Final = ISO_DOMAIN.lower()


class Currency:
    """Immutable descriptor of a monetary unit.

    The `id` is the only identity key: two currencies with equal ids are the same
    currency, possibly in different versions. Use `identical` to compare all fields.

    Attributes:
        id (str): Identifier, optionally namespaced (e.g. "EUR", "crypto/ETH").
        numeric (int | None): ISO numeric code, or None when there is none.
        scale (int | AutoScaled): Nominal number of fractional digits, or AUTO_SCALED.
        kind (str | None): Kind tag (e.g. "iso/fiat", "crypto/stable").
        domain (str): Domain tag (e.g. "ISO-4217", "CRYPTO").
        weight (int): Priority used when several currencies compete for one code.
    """

    __slots__ = ("_id", "_numeric", "_scale", "_kind", "_domain", "_weight", "_weight_is_explicit")

    def __init__(
        self,
        id: str,
        numeric: int | None = None,
        scale: int | AutoScaled | None = AUTO_SCALED,
        kind: str | None = None,
        domain: str | None = None,
        weight: int | None = None,
    ) -> None:
        """Initialize a Currency.

        Args:
            id: Identifier. Surrounding whitespace is stripped and the "ISO-4217/"
                namespace is dropped.
            numeric: Numeric code >= 0, or None. Zero means "no numeric code".
            scale: Number of fractional digits >= 0. None, -1 and AUTO_SCALED
                all mean auto-scaled.
            kind: Optional kind tag.
            domain: Domain tag. Derived from the namespace of $id when omitted
                ("crypto/ETH" -> "CRYPTO"), or "ISO-4217" for bare ids.
            weight: Integer weight. When omitted the weight is 0 and implicit.

        Raises:
            InvalidCurrencySpecError: If any field is malformed.
        """
        self._id = normalize_id(id)
        self._numeric = _validate_numeric(numeric, self._id)
        self._scale = _validate_scale(scale, self._id)
        self._kind = _validate_tag(kind, "kind", self._id)
        self._domain = _validate_tag(domain, "domain", self._id, upper=True) or _domain_from_id(self._id)
        self._weight = _validate_weight(weight, self._id)
        self._weight_is_explicit = weight is not None

    # region Properties

    @property
    def id(self) -> str:
        return self._id

    @property
    def code(self) -> str:
        """The id without its namespace ("crypto/ETH" -> "ETH")."""
        return self._id.rpartition("/")[2]

    @property
    def namespace(self) -> str | None:
        """The namespace part of the id, or None for bare ids."""
        namespace, separator, _ = self._id.rpartition("/")
        return namespace if separator else None

    @property
    def numeric(self) -> int | None:
        return self._numeric

    @property
    def scale(self) -> int | AutoScaled:
        return self._scale

    @property
    def is_auto_scaled(self) -> bool:
        return self._scale is AUTO_SCALED

    @property
    def kind(self) -> str | None:
        return self._kind

    @property
    def domain(self) -> str:
        return self._domain

    @property
    def weight(self) -> int:
        return self._weight

    @property
    def weight_is_explicit(self) -> bool:
        """True when the weight was deliberately set (including to 0)."""
        return self._weight_is_explicit

    # endregion

    # region Copy-on-write

    def with_id(self, id: str, domain: str | None = None) -> Currency:
        """Copy with a new id; the domain is kept unless $domain is given."""
        return self._replace(id=id, domain=domain if domain is not None else self._domain)

    def with_numeric(self, numeric: int | None) -> Currency:
        return self._replace(numeric=numeric)

    def with_scale(self, scale: int | AutoScaled | None) -> Currency:
        return self._replace(scale=scale)

    def with_kind(self, kind: str | None) -> Currency:
        return self._replace(kind=kind)

    def with_domain(self, domain: str) -> Currency:
        return self._replace(domain=domain)

    def with_weight(self, weight: int, explicit: bool = True) -> Currency:
        """Copy with $weight; pass `explicit=False` to record it as a defaulted weight."""
        result = self._replace(weight=weight)
        result._weight_is_explicit = explicit
        return result

    def _replace(self, **changes: Any) -> Currency:
        fields = {
            "id": self._id,
            "numeric": self._numeric,
            "scale": self._scale,
            "kind": self._kind,
            "domain": self._domain,
            "weight": self._weight,
        }
        fields.update(changes)
        result = Currency(**fields)
        if "weight" not in changes:
            result._weight_is_explicit = self._weight_is_explicit
        return result

    # endregion

    def identical(self, other: Currency) -> bool:
        """True when all fields (not just the id) are equal."""
        if not isinstance(other, Currency):
            return False
        return (
            self._id == other._id
            and self._numeric == other._numeric
            and self._scale == other._scale
            and self._kind == other._kind
            and self._domain == other._domain
            and self._weight == other._weight
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping of all fields; AUTO_SCALED is exported as -1."""
        return {
            "id": self._id,
            "numeric": self._numeric,
            "scale": -1 if self.is_auto_scaled else self._scale,
            "kind": self._kind,
            "domain": self._domain,
            "weight": self._weight,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Currency):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        return self._id

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(id={self._id!r}, numeric={self._numeric!r}, scale={self._scale!r}, "
            f"kind={self._kind!r}, domain={self._domain!r}, weight={self._weight!r})"
        )


# region Validation


def normalize_id(id: str) -> str:
    """Strip and validate $id; the "ISO-4217/" namespace is dropped."""
    # Raise: id must be a string
    if not isinstance(id, str):
        raise InvalidCurrencySpecError(f"Cannot init `Currency` because $id ({id!r}) is not a string", operation="Currency.__init__", id=id)

    result = id.strip()
    namespace, separator, code = result.rpartition("/")

    # Raise: id must be a non-empty token, with at most one namespace separator
    if not result or any(char.isspace() for char in result) or result.count("/") > 1 or not code or (separator and not namespace):
        raise InvalidCurrencySpecError(
            f"Cannot init `Currency` because $id ('{id}') is not a valid identifier (non-empty, no whitespace, at most one '/')",
            operation="Currency.__init__",
            id=id,
        )

    if separator and namespace.lower() == _ISO_NAMESPACE:
        return code
    return result


def _domain_from_id(id: str) -> str:
    namespace, separator, _ = id.rpartition("/")
    return namespace.upper() if separator else ISO_DOMAIN


def _validate_numeric(numeric: int | None, id: str) -> int | None:
    if numeric is None:
        return None
    # Raise: numeric code must be a non-negative int
    if isinstance(numeric, bool) or not isinstance(numeric, int) or numeric < 0:
        raise InvalidCurrencySpecError(
            f"Cannot init `Currency` '{id}' because $numeric ({numeric!r}) is not a non-negative integer",
            operation="Currency.__init__",
            id=id,
            numeric=numeric,
        )
    return numeric or None


def _validate_scale(scale: int | AutoScaled | None, id: str) -> int | AutoScaled:
    if scale is None or scale is AUTO_SCALED or scale == -1:
        return AUTO_SCALED
    # Raise: scale must be a non-negative int
    if isinstance(scale, bool) or not isinstance(scale, int) or scale < 0:
        raise InvalidCurrencySpecError(
            f"Cannot init `Currency` '{id}' because $scale ({scale!r}) is neither a non-negative integer nor AUTO_SCALED",
            operation="Currency.__init__",
            id=id,
            scale=scale,
        )
    return scale


def _validate_tag(value: str | None, name: str, id: str, upper: bool = False) -> str | None:
    if value is None:
        return None
    # Raise: tags are non-empty strings without whitespace
    if not isinstance(value, str) or not value.strip() or any(char.isspace() for char in value.strip()):
        raise InvalidCurrencySpecError(
            f"Cannot init `Currency` '{id}' because ${name} ({value!r}) is not a valid tag",
            operation="Currency.__init__",
            id=id,
            **{name: value},
        )
    result = value.strip()
    return result.upper() if upper else result


def _validate_weight(weight: int | None, id: str) -> int:
    if weight is None:
        return 0
    # Raise: weight must be an int
    if isinstance(weight, bool) or not isinstance(weight, int):
        raise InvalidCurrencySpecError(
            f"Cannot init `Currency` '{id}' because $weight ({weight!r}) is not an integer",
            operation="Currency.__init__",
            id=id,
            weight=weight,
        )
    return weight


# endregion
