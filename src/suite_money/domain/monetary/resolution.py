from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeAlias

from suite_money.domain.monetary import default_registry
from suite_money.domain.monetary.currency import ISO_DOMAIN, LEGACY_DOMAIN, Currency, normalize_id
from suite_money.domain.monetary.errors import CurrencyNotFoundError
from suite_money.domain.monetary.registry import Registry

if TYPE_CHECKING:
    from suite_money.domain.monetary.money import Money

DEFAULT_LOCALE = "*"


# region References


@dataclass(frozen=True)
class ById:
    """Exact identifier, e.g. "EUR" or "crypto/ETH"."""

    id: str


@dataclass(frozen=True)
class ByCode:
    """Code without namespace; every currency sharing it is a candidate."""

    code: str


@dataclass(frozen=True)
class ByNumeric:
    """ISO numeric code, e.g. 978."""

    numeric: int


@dataclass(frozen=True)
class ByCountry:
    """Country code, e.g. "PL"."""

    country: str


@dataclass(frozen=True)
class Direct:
    """An already resolved Currency; used as is."""

    currency: Currency


CurrencyRef: TypeAlias = ById | ByCode | ByNumeric | ByCountry | Direct

# Anything `to_ref` understands
CurrencyLike: TypeAlias = "CurrencyRef | Currency | Money | str | int"

_REF_TYPES = (ById, ByCode, ByNumeric, ByCountry, Direct)


def to_ref(value: CurrencyLike) -> CurrencyRef:
    """Turn a loose currency designation into a CurrencyRef.

    * Currency and Money give Direct.
    * Namespaced strings ("crypto/ETH") give ById, bare strings ("EUR") give ByCode.
    * Integers give ByNumeric.

    Raises:
        TypeError: If $value has none of the supported types.
    """
    from suite_money.domain.monetary.money import Money

    if isinstance(value, _REF_TYPES):
        return value
    if isinstance(value, Currency):
        return Direct(value)
    if isinstance(value, Money):
        return Direct(value.currency)
    if isinstance(value, str):
        currency_id = normalize_id(value)
        return ById(currency_id) if "/" in currency_id else ByCode(currency_id)
    if isinstance(value, int) and not isinstance(value, bool):
        return ByNumeric(value)

    # Raise: unsupported designation
    raise TypeError(f"Cannot call `to_ref` because $value ({value!r}) is not a currency reference, Currency, Money, str or int")


# endregion

# region Resolution


def resolve_all(value: CurrencyLike, registry: Registry | None = None) -> list[Currency]:
    """All currencies matching $value, best candidate first.

    Candidates are ordered by descending weight; equal weights keep the
    registration order of $registry.
    """
    ref = to_ref(value)
    registry = registry if registry is not None else default_registry.current()

    if isinstance(ref, Direct):
        return [ref.currency]
    if isinstance(ref, ById):
        ids: tuple[str, ...] = (ref.id,) if ref.id in registry else ()
    elif isinstance(ref, ByCode):
        ids = registry.ids_by_code(ref.code)
    elif isinstance(ref, ByNumeric):
        ids = registry.ids_by_numeric(ref.numeric)
    else:
        found = registry.countries.get(ref.country.strip().upper())
        ids = (found,) if found is not None else ()

    # sorted() is stable, so registration order breaks ties
    ranked = sorted(ids, key=lambda currency_id: -registry.weight_of(currency_id))
    return [registry.currencies[currency_id] for currency_id in ranked]


def resolve(value: CurrencyLike, registry: Registry | None = None) -> Currency:
    """Resolve $value to a single Currency.

    Args:
        value: CurrencyRef or anything `to_ref` accepts.
        registry: Registry to search. Defaults to the current one (override or default).

    Returns:
        The highest-weighted matching Currency.

    Raises:
        CurrencyNotFoundError: If nothing matches.
    """
    candidates = resolve_all(value, registry)
    # Raise: nothing matched
    if not candidates:
        raise CurrencyNotFoundError(
            f"Cannot call `resolve` because no currency matches $value ({value!r})",
            operation="resolve",
            value=value,
        )
    return candidates[0]


def try_resolve(value: CurrencyLike, registry: Registry | None = None) -> Currency | None:
    """Like `resolve`, but returns None when nothing matches."""
    candidates = resolve_all(value, registry)
    return candidates[0] if candidates else None


def is_defined(value: CurrencyLike, registry: Registry | None = None) -> bool:
    """True when $value designates a currency registered in $registry."""
    registry = registry if registry is not None else default_registry.current()
    ref = to_ref(value)
    if isinstance(ref, Direct):
        return ref.currency.id in registry
    return bool(resolve_all(ref, registry))


def of_country(country: str, registry: Registry | None = None) -> Currency:
    """Currency used in $country."""
    return resolve(ByCountry(country), registry)


# endregion

# region Listing


def all_currencies(registry: Registry | None = None) -> tuple[Currency, ...]:
    """Every registered currency in registration order."""
    registry = registry if registry is not None else default_registry.current()
    return tuple(registry)


def of_domain(domain: str, registry: Registry | None = None) -> tuple[Currency, ...]:
    """Currencies whose domain is $domain or derives from it."""
    registry = registry if registry is not None else default_registry.current()
    domains = registry.hierarchies.domain
    return tuple(currency for currency in registry if domains.isa(currency.domain, domain.upper()))


def of_kind(kind: str, registry: Registry | None = None) -> tuple[Currency, ...]:
    """Currencies whose kind is $kind or derives from it."""
    registry = registry if registry is not None else default_registry.current()
    kinds = registry.hierarchies.kind
    return tuple(currency for currency in registry if kinds.isa(currency.kind, kind))


def of_trait(trait: str, registry: Registry | None = None) -> tuple[Currency, ...]:
    """Currencies having $trait or a trait that derives from it."""
    registry = registry if registry is not None else default_registry.current()
    return tuple(currency for currency in registry if _has_trait(registry, currency, trait))


# endregion

# region Associations


def countries_of(value: CurrencyLike, registry: Registry | None = None) -> frozenset[str]:
    registry = registry if registry is not None else default_registry.current()
    return registry.countries_of(resolve(value, registry).id)


def traits_of(value: CurrencyLike, registry: Registry | None = None) -> frozenset[str]:
    registry = registry if registry is not None else default_registry.current()
    return registry.traits_of(resolve(value, registry).id)


def weight_of(value: CurrencyLike, registry: Registry | None = None) -> int:
    """Registered weight of the currency, or its own weight when it is not registered."""
    registry = registry if registry is not None else default_registry.current()
    currency = resolve(value, registry)
    return registry.weight_of(currency.id) if currency.id in registry else currency.weight


def localized_properties(value: CurrencyLike, locale: str = DEFAULT_LOCALE, registry: Registry | None = None) -> dict[str, Any]:
    """Localized properties of a currency for $locale.

    Properties of the default locale "*" are overridden by the language ("pl")
    and then by the exact locale ("pl_PL"). "pl-PL" is read as "pl_PL".
    """
    registry = registry if registry is not None else default_registry.current()
    locales = registry.localized_of(resolve(value, registry).id)

    normalized = locale.replace("-", "_")
    language = normalized.split("_", 1)[0]
    result: dict[str, Any] = {}
    for key in dict.fromkeys((DEFAULT_LOCALE, language, normalized)):
        result.update(locales.get(key, {}))
    return result


def name_of(value: CurrencyLike, locale: str = DEFAULT_LOCALE, registry: Registry | None = None) -> str:
    """Localized name, falling back to the currency code."""
    registry = registry if registry is not None else default_registry.current()
    return localized_properties(value, locale, registry).get("name", resolve(value, registry).code)


def symbol_of(value: CurrencyLike, locale: str = DEFAULT_LOCALE, registry: Registry | None = None) -> str:
    """Localized symbol, falling back to the currency code."""
    registry = registry if registry is not None else default_registry.current()
    return localized_properties(value, locale, registry).get("symbol", resolve(value, registry).code)


# endregion

# region Predicates


def is_kind(value: CurrencyLike, kind: str, registry: Registry | None = None) -> bool:
    registry = registry if registry is not None else default_registry.current()
    return registry.hierarchies.kind.isa(resolve(value, registry).kind, kind)


def is_domain(value: CurrencyLike, domain: str, registry: Registry | None = None) -> bool:
    registry = registry if registry is not None else default_registry.current()
    return registry.hierarchies.domain.isa(resolve(value, registry).domain, domain.upper())


def has_trait(value: CurrencyLike, trait: str, registry: Registry | None = None) -> bool:
    """True when the currency has $trait or a trait deriving from it."""
    registry = registry if registry is not None else default_registry.current()
    return _has_trait(registry, resolve(value, registry), trait)


def is_iso(value: CurrencyLike, registry: Registry | None = None) -> bool:
    """ISO 4217 currency, current or legacy."""
    return is_domain(value, ISO_DOMAIN, registry)


def is_iso_strict(value: CurrencyLike, registry: Registry | None = None) -> bool:
    """Current ISO 4217 currency (domain exactly ISO-4217)."""
    registry = registry if registry is not None else default_registry.current()
    return resolve(value, registry).domain == ISO_DOMAIN


def is_iso_legacy(value: CurrencyLike, registry: Registry | None = None) -> bool:
    return is_domain(value, LEGACY_DOMAIN, registry)


def is_crypto(value: CurrencyLike, registry: Registry | None = None) -> bool:
    return is_domain(value, "CRYPTO", registry)


def is_fiat(value: CurrencyLike, registry: Registry | None = None) -> bool:
    return is_kind(value, "fiat", registry)


def is_funds(value: CurrencyLike, registry: Registry | None = None) -> bool:
    return is_kind(value, "funds", registry)


def is_commodity(value: CurrencyLike, registry: Registry | None = None) -> bool:
    return is_kind(value, "commodity", registry)


def is_stable(value: CurrencyLike, registry: Registry | None = None) -> bool:
    """Stablecoin or any other currency whose kind derives from "stable"."""
    return is_kind(value, "stable", registry)


def is_decentralized(value: CurrencyLike, registry: Registry | None = None) -> bool:
    return has_trait(value, "control/decentralized", registry)


def _has_trait(registry: Registry, currency: Currency, trait: str) -> bool:
    traits = registry.hierarchies.traits
    return any(traits.isa(tag, trait) for tag in registry.traits_of(currency.id))


# endregion
