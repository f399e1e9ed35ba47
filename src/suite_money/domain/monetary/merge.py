from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Final

from suite_money.domain.monetary.currency import ISO_DOMAIN, LEGACY_DOMAIN, LEGACY_NAMESPACE, Currency
from suite_money.domain.monetary.errors import MergeConflictError
from suite_money.domain.monetary.hierarchy import Hierarchy
from suite_money.domain.monetary.registry import Registry

logger = logging.getLogger(__name__)

# Weight given to legacy currencies that carry no weight of their own; below the
# default 0 so that canonical currencies win lookups by code or numeric code
DEFAULT_LEGACY_WEIGHT: Final = -1_000_000

# Sentinels for $preserve_fields that keep destination associations instead of unioning them
PRESERVE_COUNTRIES: Final = "::countries"
PRESERVE_LOCALIZED: Final = "::localized"

CURRENCY_FIELDS: Final = frozenset({"numeric", "scale", "kind", "domain", "weight"})
PRESERVABLE_FIELDS: Final = CURRENCY_FIELDS | {PRESERVE_COUNTRIES, PRESERVE_LOCALIZED}

_WITH_FIELD = {
    "numeric": Currency.with_numeric,
    "scale": Currency.with_scale,
    "kind": Currency.with_kind,
    "domain": Currency.with_domain,
}


def merge_registry(
    dst: Registry,
    src: Registry,
    verbose: bool = False,
    preserve_fields: Iterable[str] | None = None,
    iso_like: bool = False,
) -> Registry:
    """Merge currencies and their associations from $src into $dst.

    Currencies of $src are processed in registration order:

    * With $iso_like, ISO-like identities are normalized: regular ISO currencies
      to their bare code, legacy ones to the `iso-4217-legacy/` namespace. A
      non-legacy bare entry of $dst that collides with an incoming legacy
      currency is renamed into the legacy namespace, keeping its countries,
      localized data, traits and weight.
    * An existing entry takes the $src fields except those in $preserve_fields
      (domain is never preserved for ISO-like entries). Countries and traits
      are unioned; localized data is merged per locale with $src winning.
      PRESERVE_COUNTRIES and PRESERVE_LOCALIZED keep the $dst associations.
    * Weights: an explicit $src weight wins, then an explicit $dst weight (a
      non-zero weight counts as explicit). Legacy currencies left without
      weight get DEFAULT_LEGACY_WEIGHT.

    Hierarchies are unioned edge by edge and extension maps are merged with
    $src winning on conflicts.

    Args:
        dst: Registry to merge into.
        src: Registry to take currencies from.
        verbose: Log every added and updated currency at INFO level. Never
            changes the result.
        preserve_fields: Currency fields (and sentinels) kept from $dst.
        iso_like: Normalize ISO-like identities as described above.

    Returns:
        New merged Registry. Neither $dst nor $src is modified.

    Raises:
        ValueError: If $preserve_fields names an unknown field.
        MergeConflictError: If a bare entry cannot be moved to the legacy
            namespace because that identity is already taken.
        InvalidHierarchySpecError: If the union of both hierarchies is cyclic.
    """
    preserve = _validate_preserve_fields(preserve_fields)

    hierarchies = dst.hierarchies.merge(src.hierarchies)
    domains = hierarchies.domain
    result = dst.with_hierarchies(hierarchies)
    added = updated = 0
    written: set[str] = set()

    for currency in src:
        source_id = currency.id
        incoming = _normalize_identity(currency, domains) if iso_like else currency
        # Only a bare entry coming from $dst is renamed, never one written by this merge
        if iso_like and _is_legacy(incoming.domain, domains) and incoming.code not in written:
            result = _move_bare_entry_to_legacy(result, incoming, domains)

        target_id = incoming.id
        written.add(target_id)
        existing = result.get(target_id)
        src_weight = _explicit_weight(src, currency)

        if existing is None:
            merged = _with_resolved_weight(incoming, [src_weight], domains)
            result = result.register(
                merged,
                countries=src.countries_of(source_id),
                localized=src.localized_of(source_id),
                traits=src.traits_of(source_id),
            )
            added += 1
            if verbose:
                logger.info(f"New currency: {target_id}")
            continue

        merged = incoming
        for name in sorted(preserve & set(_WITH_FIELD)):
            # Domain of ISO-like entries always comes from the source
            if name == "domain" and _is_iso_like(incoming.domain, domains):
                continue
            merged = _WITH_FIELD[name](merged, getattr(existing, name))

        dst_weight = _explicit_weight(result, existing)
        candidates = [dst_weight] if "weight" in preserve else [src_weight, dst_weight]
        merged = _with_resolved_weight(merged, candidates, domains)

        countries = result.countries_of(target_id)
        if PRESERVE_COUNTRIES not in preserve:
            countries = countries | src.countries_of(source_id)
        localized = result.localized_of(target_id)
        if PRESERVE_LOCALIZED not in preserve:
            localized = _merge_localized(localized, src.localized_of(source_id))
        traits = result.traits_of(target_id) | src.traits_of(source_id)

        unchanged = (
            merged.identical(existing)
            and merged.weight_is_explicit == existing.weight_is_explicit
            and countries == result.countries_of(target_id)
            and _plain(localized) == _plain(result.localized_of(target_id))
            and traits == result.traits_of(target_id)
        )
        if unchanged:
            continue

        result = result.register(merged, countries=countries, localized=localized, traits=traits)
        updated += 1
        if verbose:
            logger.info(f"Updated currency: {target_id}")

    result = result.with_ext(src.ext)
    if src.version is not None:
        result = result.with_version(src.version)

    logger.debug(f"Merged Registry of {len(src)} currencies: added={added}, updated={updated}, total={len(result)}")
    return result


# region Identity


def _is_iso_like(domain: str, domains: Hierarchy) -> bool:
    return domain == ISO_DOMAIN or domain.startswith(ISO_DOMAIN + "-") or domains.is_ancestor(domain, ISO_DOMAIN)


def _is_legacy(domain: str, domains: Hierarchy) -> bool:
    return domains.isa(domain, LEGACY_DOMAIN)


def _normalize_identity(currency: Currency, domains: Hierarchy) -> Currency:
    if not _is_iso_like(currency.domain, domains):
        return currency
    if _is_legacy(currency.domain, domains):
        target_id = f"{LEGACY_NAMESPACE}/{currency.code}"
    else:
        target_id = currency.code
    return currency if target_id == currency.id else currency.with_id(target_id)


def _move_bare_entry_to_legacy(registry: Registry, incoming: Currency, domains: Hierarchy) -> Registry:
    bare = registry.get(incoming.code)
    if bare is None or _is_legacy(bare.domain, domains) or not _is_iso_like(bare.domain, domains):
        return registry

    # Raise: both the bare and the legacy identity are taken
    if incoming.id in registry:
        raise MergeConflictError(
            f"Cannot call `merge_registry` because both '{bare.id}' and '{incoming.id}' exist in $dst, so the legacy rename of '{bare.id}' is ambiguous",
            operation="merge_registry",
            bare_id=bare.id,
            legacy_id=incoming.id,
        )

    logger.debug(f"Moving currency '{bare.id}' to legacy identity '{incoming.id}'")
    return registry.rename(bare.id, incoming.id, domain=incoming.domain)


# endregion

# region Weights


def _explicit_weight(registry: Registry, currency: Currency) -> tuple[int, bool] | None:
    """(weight, recorded in the weight table) when $currency has an explicit weight, else None."""
    if registry.has_explicit_weight(currency.id):
        return registry.weights[currency.id], True
    if currency.weight != 0:
        return currency.weight, False
    return None


def _with_resolved_weight(currency: Currency, candidates: list[tuple[int, bool] | None], domains: Hierarchy) -> Currency:
    for candidate in candidates:
        if candidate is not None:
            weight, explicit = candidate
            return currency.with_weight(weight, explicit=explicit)
    if _is_legacy(currency.domain, domains):
        return currency.with_weight(DEFAULT_LEGACY_WEIGHT, explicit=False)
    return currency.with_weight(0, explicit=False)


# endregion


def _merge_localized(dst: Mapping[str, Mapping[str, Any]], src: Mapping[str, Mapping[str, Any]]) -> dict[str, dict[str, Any]]:
    result = _plain(dst)
    for locale, properties in src.items():
        result[locale] = {**result.get(locale, {}), **properties}
    return result


def _plain(localized: Mapping[str, Mapping[str, Any]]) -> dict[str, dict[str, Any]]:
    return {locale: dict(properties) for locale, properties in localized.items()}


def _validate_preserve_fields(preserve_fields: Iterable[str] | None) -> frozenset[str]:
    # Raise: a single string would be read as a set of characters
    if isinstance(preserve_fields, str):
        raise TypeError(f"Cannot call `merge_registry` because $preserve_fields ('{preserve_fields}') must be an iterable of field names, not a string")
    result = frozenset(preserve_fields or ())
    unknown = result - PRESERVABLE_FIELDS
    # Raise: unknown field names
    if unknown:
        raise ValueError(f"Cannot call `merge_registry` because $preserve_fields contains unknown fields {sorted(unknown)}; allowed: {sorted(PRESERVABLE_FIELDS)}")
    return result
