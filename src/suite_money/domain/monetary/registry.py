from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from suite_money.domain.monetary.currency import Currency
from suite_money.domain.monetary.errors import CurrencyNotFoundError
from suite_money.domain.monetary.hierarchy import CurrencyHierarchies

logger = logging.getLogger(__name__)

_EMPTY: frozenset[str] = frozenset()
_NO_LOCALIZED: Mapping[str, Mapping[str, Any]] = MappingProxyType({})


class Registry:
    """Immutable snapshot of known currencies and everything attached to them.

    Tables:
        currencies: id -> Currency. Iteration order is the registration order,
            which breaks ties between equally weighted candidates.
        countries: country code -> currency id.
        weights: id -> weight, only for explicitly weighted currencies.
        traits: id -> set of trait tags.
        localized: id -> locale -> property -> value.
        hierarchies: kind, domain and trait hierarchies (plus extra named ones).
        ext: opaque extension mapping.

    Every method that "changes" the registry returns a new Registry and leaves
    this one untouched. Currencies replaced by `register` keep their original
    registration position.
    """

    __slots__ = (
        "_currencies",
        "_countries",
        "_weights",
        "_traits",
        "_localized",
        "_hierarchies",
        "_ext",
        "_version",
        "_ids_by_code",
        "_ids_by_numeric",
        "_countries_by_id",
    )

    def __init__(
        self,
        currencies: Mapping[str, Currency] | Iterable[Currency] | None = None,
        countries: Mapping[str, str] | None = None,
        weights: Mapping[str, int] | None = None,
        traits: Mapping[str, Iterable[str]] | None = None,
        localized: Mapping[str, Mapping[str, Mapping[str, Any]]] | None = None,
        hierarchies: CurrencyHierarchies | None = None,
        ext: Mapping[str, Any] | None = None,
        version: str | None = None,
    ) -> None:
        """Initialize a Registry from plain tables. All tables are copied.

        Args:
            currencies: Currencies in registration order, as a sequence or as an
                id -> Currency mapping.
            countries: Country code -> currency id.
            weights: Currency id -> explicit weight. Overrides the weight carried
                by the Currency itself.
            traits: Currency id -> trait tags.
            localized: Currency id -> locale -> properties.
            hierarchies: Classification hierarchies. Empty ones when omitted.
            ext: Extension mapping.
            version: Optional version label of the data set.

        Raises:
            TypeError: If a table holds values of the wrong type.
            ValueError: If a table refers to an unknown currency id or a mapping key
                differs from the id of its Currency.
        """
        table: dict[str, Currency] = {}
        items = currencies.items() if isinstance(currencies, Mapping) else ((None, c) for c in currencies or ())
        for key, currency in items:
            # Raise: only Currency values can be registered
            if not isinstance(currency, Currency):
                raise TypeError(f"Cannot init `Registry` because $currencies holds {currency!r}, which is not a Currency")
            # Raise: mapping keys must match currency ids
            if key is not None and key != currency.id:
                raise ValueError(f"Cannot init `Registry` because $currencies key '{key}' differs from currency id '{currency.id}'")
            table[currency.id] = currency

        weight_table = {currency_id: currency.weight for currency_id, currency in table.items() if currency.weight_is_explicit}
        for currency_id, weight in (weights or {}).items():
            _require_known(table, currency_id, "weights")
            table[currency_id] = table[currency_id].with_weight(weight)
            weight_table[currency_id] = table[currency_id].weight

        country_table: dict[str, str] = {}
        for country, currency_id in (countries or {}).items():
            _require_known(table, currency_id, "countries")
            country_table[_normalize_country(country)] = currency_id

        trait_table: dict[str, frozenset[str]] = {}
        for currency_id, tags in (traits or {}).items():
            _require_known(table, currency_id, "traits")
            if tags:
                trait_table[currency_id] = _as_tag_set(tags)

        localized_table: dict[str, Mapping[str, Mapping[str, Any]]] = {}
        for currency_id, locales in (localized or {}).items():
            _require_known(table, currency_id, "localized")
            if locales:
                localized_table[currency_id] = _freeze_localized(locales)

        # Raise: hierarchies must be a CurrencyHierarchies bundle
        if hierarchies is not None and not isinstance(hierarchies, CurrencyHierarchies):
            raise TypeError(f"Cannot init `Registry` because $hierarchies ({hierarchies!r}) is not CurrencyHierarchies")

        self._assign(
            table,
            country_table,
            weight_table,
            trait_table,
            localized_table,
            hierarchies or CurrencyHierarchies(),
            dict(ext or {}),
            version,
        )

    def _assign(
        self,
        currencies: dict[str, Currency],
        countries: dict[str, str],
        weights: dict[str, int],
        traits: dict[str, frozenset[str]],
        localized: dict[str, Mapping[str, Mapping[str, Any]]],
        hierarchies: CurrencyHierarchies,
        ext: dict[str, Any],
        version: str | None,
    ) -> None:
        self._currencies = MappingProxyType(currencies)
        self._countries = MappingProxyType(countries)
        self._weights = MappingProxyType(weights)
        self._traits = MappingProxyType(traits)
        self._localized = MappingProxyType(localized)
        self._hierarchies = hierarchies
        self._ext = MappingProxyType(ext)
        self._version = version

        ids_by_code: dict[str, list[str]] = {}
        ids_by_numeric: dict[int, list[str]] = {}
        for currency in currencies.values():
            ids_by_code.setdefault(currency.code, []).append(currency.id)
            if currency.numeric is not None:
                ids_by_numeric.setdefault(currency.numeric, []).append(currency.id)
        countries_by_id: dict[str, set[str]] = {}
        for country, currency_id in countries.items():
            countries_by_id.setdefault(currency_id, set()).add(country)

        self._ids_by_code = {code: tuple(ids) for code, ids in ids_by_code.items()}
        self._ids_by_numeric = {numeric: tuple(ids) for numeric, ids in ids_by_numeric.items()}
        self._countries_by_id = {currency_id: frozenset(found) for currency_id, found in countries_by_id.items()}

    def _evolve(self, **changes: Any) -> Registry:
        tables = {
            "currencies": dict(self._currencies),
            "countries": dict(self._countries),
            "weights": dict(self._weights),
            "traits": dict(self._traits),
            "localized": dict(self._localized),
            "hierarchies": self._hierarchies,
            "ext": dict(self._ext),
            "version": self._version,
        }
        tables.update(changes)
        result = Registry.__new__(Registry)
        result._assign(**tables)
        return result

    # region Tables

    @property
    def currencies(self) -> Mapping[str, Currency]:
        return self._currencies

    @property
    def countries(self) -> Mapping[str, str]:
        return self._countries

    @property
    def weights(self) -> Mapping[str, int]:
        """Explicit weights only."""
        return self._weights

    @property
    def traits(self) -> Mapping[str, frozenset[str]]:
        return self._traits

    @property
    def localized(self) -> Mapping[str, Mapping[str, Mapping[str, Any]]]:
        return self._localized

    @property
    def hierarchies(self) -> CurrencyHierarchies:
        return self._hierarchies

    @property
    def ext(self) -> Mapping[str, Any]:
        return self._ext

    @property
    def version(self) -> str | None:
        return self._version

    # endregion

    # region Lookups

    def get(self, currency_id: str, default: Currency | None = None) -> Currency | None:
        return self._currencies.get(currency_id, default)

    def currency(self, currency_id: str) -> Currency:
        """Return the currency registered under $currency_id.

        Raises:
            CurrencyNotFoundError: If no such currency is registered.
        """
        try:
            return self._currencies[currency_id]
        except KeyError:
            raise CurrencyNotFoundError(
                f"Cannot call `Registry.currency` because no currency with $currency_id '{currency_id}' is registered",
                operation="Registry.currency",
                currency_id=currency_id,
            ) from None

    def ids_by_code(self, code: str) -> tuple[str, ...]:
        """Ids of all currencies whose code (id without namespace) is $code, in registration order."""
        return self._ids_by_code.get(code, ())

    def ids_by_numeric(self, numeric: int) -> tuple[str, ...]:
        """Ids of all currencies with numeric code $numeric, in registration order."""
        return self._ids_by_numeric.get(numeric, ())

    def position_of(self, currency_id: str) -> int:
        """Registration position of $currency_id (0 for the first registered one)."""
        for position, known_id in enumerate(self._currencies):
            if known_id == currency_id:
                return position
        raise CurrencyNotFoundError(
            f"Cannot call `Registry.position_of` because no currency with $currency_id '{currency_id}' is registered",
            operation="Registry.position_of",
            currency_id=currency_id,
        )

    def weight_of(self, currency_id: str) -> int:
        """Effective weight: the explicit table entry, else the currency's own weight."""
        if currency_id in self._weights:
            return self._weights[currency_id]
        return self.currency(currency_id).weight

    def has_explicit_weight(self, currency_id: str) -> bool:
        return currency_id in self._weights

    def countries_of(self, currency_id: str) -> frozenset[str]:
        return self._countries_by_id.get(currency_id, _EMPTY)

    def traits_of(self, currency_id: str) -> frozenset[str]:
        return self._traits.get(currency_id, _EMPTY)

    def localized_of(self, currency_id: str) -> Mapping[str, Mapping[str, Any]]:
        return self._localized.get(currency_id, _NO_LOCALIZED)

    # endregion

    # region Registration

    def register(
        self,
        currency: Currency,
        countries: Iterable[str] | None = None,
        localized: Mapping[str, Mapping[str, Any]] | None = None,
        traits: Iterable[str] | None = None,
    ) -> Registry:
        """Return a registry with $currency added, or replacing the one with the same id.

        A replaced currency keeps its registration position. Associations passed
        here replace the existing ones; associations left as None are kept.

        Args:
            currency: Currency to register.
            countries: Country codes that use $currency. A country previously
                assigned to another currency moves to this one.
            localized: Locale -> properties for $currency.
            traits: Trait tags of $currency.

        Returns:
            New Registry.
        """
        # Raise: only Currency values can be registered
        if not isinstance(currency, Currency):
            raise TypeError(f"Cannot call `Registry.register` because $currency ({currency!r}) is not a Currency")

        currency_id = currency.id
        currencies = dict(self._currencies)
        weights = dict(self._weights)
        currencies[currency_id] = currency
        if currency.weight_is_explicit:
            weights[currency_id] = currency.weight
        else:
            weights.pop(currency_id, None)

        changes: dict[str, Any] = {"currencies": currencies, "weights": weights}
        if countries is not None:
            changes["countries"] = self._countries_with(currency_id, countries, replace=True)
        if localized is not None:
            table = dict(self._localized)
            if localized:
                table[currency_id] = _freeze_localized(localized)
            else:
                table.pop(currency_id, None)
            changes["localized"] = table
        if traits is not None:
            changes["traits"] = self._traits_with(currency_id, _as_tag_set(traits))

        action = "Replaced" if currency_id in self._currencies else "Registered"
        logger.debug(f"{action} currency '{currency_id}' in Registry")
        return self._evolve(**changes)

    def unregister(self, currency_id: str | Currency) -> Registry:
        """Return a registry without the currency and all its countries, weight, traits and localized data.

        Raises:
            CurrencyNotFoundError: If the currency is not registered.
        """
        currency_id = _id_of(currency_id)
        # Raise: only registered currencies can be removed
        if currency_id not in self._currencies:
            raise CurrencyNotFoundError(
                f"Cannot call `Registry.unregister` because no currency with $currency_id '{currency_id}' is registered",
                operation="Registry.unregister",
                currency_id=currency_id,
            )

        currencies = dict(self._currencies)
        del currencies[currency_id]
        weights = {key: value for key, value in self._weights.items() if key != currency_id}
        traits = {key: value for key, value in self._traits.items() if key != currency_id}
        localized = {key: value for key, value in self._localized.items() if key != currency_id}
        countries = {country: key for country, key in self._countries.items() if key != currency_id}

        logger.debug(f"Unregistered currency '{currency_id}' from Registry")
        return self._evolve(currencies=currencies, weights=weights, traits=traits, localized=localized, countries=countries)

    def rename(self, old_id: str, new_id: str, domain: str | None = None) -> Registry:
        """Return a registry where currency $old_id is known as $new_id.

        The currency keeps its registration position, and its countries, weight,
        traits and localized data move with it.

        Raises:
            CurrencyNotFoundError: If $old_id is not registered.
            ValueError: If $new_id is already taken by another currency.
        """
        currency = self.currency(old_id)
        renamed = currency.with_id(new_id, domain=domain)
        if renamed.id == old_id:
            return self._evolve(currencies={**self._currencies, old_id: renamed})
        # Raise: renaming onto an existing currency would silently drop it
        if renamed.id in self._currencies:
            raise ValueError(f"Cannot call `Registry.rename` because $new_id '{renamed.id}' is already registered")

        currencies = {(renamed.id if key == old_id else key): (renamed if key == old_id else value) for key, value in self._currencies.items()}

        def move(table: Mapping[str, Any]) -> dict[str, Any]:
            return {(renamed.id if key == old_id else key): value for key, value in table.items()}

        countries = {country: (renamed.id if key == old_id else key) for country, key in self._countries.items()}

        logger.debug(f"Renamed currency '{old_id}' to '{renamed.id}' in Registry")
        return self._evolve(
            currencies=currencies,
            weights=move(self._weights),
            traits=move(self._traits),
            localized=move(self._localized),
            countries=countries,
        )

    # endregion

    # region Associations

    def add_countries(self, currency_id: str | Currency, countries: Iterable[str]) -> Registry:
        """Assign $countries to the currency; countries move away from their previous currency."""
        currency_id = self._known_id(currency_id, "add_countries")
        return self._evolve(countries=self._countries_with(currency_id, countries, replace=False))

    def remove_countries(self, countries: Iterable[str]) -> Registry:
        """Drop the given country codes from the country table."""
        removed = {_normalize_country(country) for country in countries}
        return self._evolve(countries={country: key for country, key in self._countries.items() if country not in removed})

    def set_weight(self, currency_id: str | Currency, weight: int) -> Registry:
        """Give the currency an explicit $weight (0 included)."""
        currency_id = self._known_id(currency_id, "set_weight")
        currency = self._currencies[currency_id].with_weight(weight)
        return self._evolve(
            currencies={**self._currencies, currency_id: currency},
            weights={**self._weights, currency_id: currency.weight},
        )

    def clear_weight(self, currency_id: str | Currency) -> Registry:
        """Drop the explicit weight; the currency falls back to an implicit 0."""
        currency_id = self._known_id(currency_id, "clear_weight")
        currency = self._currencies[currency_id].with_weight(0, explicit=False)
        weights = {key: value for key, value in self._weights.items() if key != currency_id}
        return self._evolve(currencies={**self._currencies, currency_id: currency}, weights=weights)

    def add_traits(self, currency_id: str | Currency, traits: Iterable[str]) -> Registry:
        currency_id = self._known_id(currency_id, "add_traits")
        return self._evolve(traits=self._traits_with(currency_id, self.traits_of(currency_id) | _as_tag_set(traits)))

    def set_traits(self, currency_id: str | Currency, traits: Iterable[str]) -> Registry:
        currency_id = self._known_id(currency_id, "set_traits")
        return self._evolve(traits=self._traits_with(currency_id, _as_tag_set(traits)))

    def remove_traits(self, currency_id: str | Currency, traits: Iterable[str]) -> Registry:
        currency_id = self._known_id(currency_id, "remove_traits")
        return self._evolve(traits=self._traits_with(currency_id, self.traits_of(currency_id) - _as_tag_set(traits)))

    def set_localized(self, currency_id: str | Currency, locale: str, properties: Mapping[str, Any]) -> Registry:
        """Replace the properties of one $locale (e.g. "pl", "en_US" or "*" for the default)."""
        currency_id = self._known_id(currency_id, "set_localized")
        locales = dict(self.localized_of(currency_id))
        locales[locale] = properties
        return self._evolve(localized={**self._localized, currency_id: _freeze_localized(locales)})

    # endregion

    # region Hierarchies and metadata

    def derive(self, hierarchy: str, child: str, parent: str) -> Registry:
        """Add the edge $child -> $parent to the named $hierarchy ("kind", "domain", "traits", ...)."""
        return self._evolve(hierarchies=self._hierarchies.derive(hierarchy, child, parent))

    def with_hierarchies(self, hierarchies: CurrencyHierarchies) -> Registry:
        return self._evolve(hierarchies=hierarchies)

    def with_ext(self, ext: Mapping[str, Any]) -> Registry:
        """Merge $ext into the extension mapping, $ext winning on conflicts."""
        return self._evolve(ext={**self._ext, **ext})

    def with_version(self, version: str | None) -> Registry:
        return self._evolve(version=version)

    # endregion

    # region Export

    def to_dict(self) -> dict[str, Any]:
        """Export every table as plain dicts and lists, in registration order."""
        currencies = {}
        for currency_id, currency in self._currencies.items():
            data = currency.to_dict()
            del data["id"]
            currencies[currency_id] = data
        return {
            "version": self._version,
            "currencies": currencies,
            "countries": dict(self._countries),
            "weights": dict(self._weights),
            "traits": {currency_id: sorted(tags) for currency_id, tags in self._traits.items()},
            "localized": {currency_id: {locale: dict(props) for locale, props in locales.items()} for currency_id, locales in self._localized.items()},
            "hierarchies": self._hierarchies.to_dict(),
            "ext": dict(self._ext),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Registry:
        """Build a Registry from the plain mapping produced by `to_dict`.

        Currency entries may omit any field. A "weight" inside a currency entry is
        kept as an implicit weight; explicit weights come from the "weights" table.
        """
        currencies = []
        for currency_id, fields in (data.get("currencies") or {}).items():
            fields = dict(fields or {})
            currency = Currency(
                currency_id,
                numeric=fields.get("numeric"),
                scale=fields.get("scale"),
                kind=fields.get("kind"),
                domain=fields.get("domain"),
            )
            if fields.get("weight"):
                currency = currency.with_weight(fields["weight"], explicit=False)
            currencies.append(currency)
        return cls(
            currencies=currencies,
            countries=data.get("countries"),
            weights=data.get("weights"),
            traits=data.get("traits"),
            localized=data.get("localized"),
            hierarchies=CurrencyHierarchies.from_dict(data.get("hierarchies") or {}),
            ext=data.get("ext"),
            version=data.get("version"),
        )

    # endregion

    # region Helpers

    def _known_id(self, currency_id: str | Currency, method: str) -> str:
        currency_id = _id_of(currency_id)
        # Raise: associations need a registered currency
        if currency_id not in self._currencies:
            raise CurrencyNotFoundError(
                f"Cannot call `Registry.{method}` because no currency with $currency_id '{currency_id}' is registered",
                operation=f"Registry.{method}",
                currency_id=currency_id,
            )
        return currency_id

    def _countries_with(self, currency_id: str, countries: Iterable[str], replace: bool) -> dict[str, str]:
        table = {country: key for country, key in self._countries.items() if not (replace and key == currency_id)}
        for country in countries:
            table[_normalize_country(country)] = currency_id
        return table

    def _traits_with(self, currency_id: str, tags: frozenset[str]) -> dict[str, frozenset[str]]:
        table = dict(self._traits)
        if tags:
            table[currency_id] = tags
        else:
            table.pop(currency_id, None)
        return table

    # endregion

    def __len__(self) -> int:
        return len(self._currencies)

    def __iter__(self) -> Iterator[Currency]:
        return iter(self._currencies.values())

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Currency):
            return item.id in self._currencies
        return item in self._currencies

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Registry):
            return False
        return (
            list(self._currencies) == list(other._currencies)
            and all(currency.identical(other._currencies[key]) for key, currency in self._currencies.items())
            and self._countries == other._countries
            and self._weights == other._weights
            and self._traits == other._traits
            and _thaw_localized(self._localized) == _thaw_localized(other._localized)
            and self._hierarchies == other._hierarchies
            and self._ext == other._ext
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(currencies={len(self._currencies)}, countries={len(self._countries)}, version={self._version!r})"


def _id_of(value: str | Currency) -> str:
    return value.id if isinstance(value, Currency) else value


def _require_known(table: Mapping[str, Currency], currency_id: str, name: str) -> None:
    # Raise: table entries must refer to registered currencies
    if currency_id not in table:
        raise ValueError(f"Cannot init `Registry` because ${name} refers to unknown currency id '{currency_id}'")


def _normalize_country(country: str) -> str:
    # Raise: country codes are non-empty strings
    if not isinstance(country, str) or not country.strip():
        raise ValueError(f"Country code must be a non-empty string, but provided value is: {country!r}")
    return country.strip().upper()


def _as_tag_set(tags: Iterable[str]) -> frozenset[str]:
    # Raise: a single string would be split into characters
    if isinstance(tags, str):
        raise TypeError(f"Traits must be an iterable of tags, not a single string ('{tags}')")
    result = frozenset(tags)
    for tag in result:
        # Raise: tags are non-empty strings
        if not isinstance(tag, str) or not tag.strip():
            raise ValueError(f"Trait tag must be a non-empty string, but provided value is: {tag!r}")
    return result


def _freeze_localized(locales: Mapping[str, Mapping[str, Any]]) -> Mapping[str, Mapping[str, Any]]:
    return MappingProxyType({str(locale): MappingProxyType(dict(props)) for locale, props in locales.items()})


def _thaw_localized(table: Mapping[str, Mapping[str, Mapping[str, Any]]]) -> dict[str, dict[str, dict[str, Any]]]:
    return {key: {locale: dict(props) for locale, props in locales.items()} for key, locales in table.items()}

