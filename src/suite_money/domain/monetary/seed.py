from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

from suite_money.config import Settings
from suite_money.domain.monetary.currency import LEGACY_DOMAIN, LEGACY_NAMESPACE, Currency
from suite_money.domain.monetary.merge import merge_registry
from suite_money.domain.monetary.registry import Registry

logger = logging.getLogger(__name__)

DIST_PATH = Path(__file__).resolve().parents[2] / "data" / "registry.json"

_LEGACY_COMMENT = re.compile(r"^\s*old\b", re.IGNORECASE)
_FUNDS_COMMENT = re.compile(r"funds\s*code", re.IGNORECASE)


def load_config(path: str | Path) -> dict[str, Any]:
    """Read a registry data file (JSON) into plain dicts.

    Raises:
        FileNotFoundError: If $path does not exist.
        ValueError: If the file is not a JSON object.
    """
    path = Path(path)
    with path.open(encoding="utf-8") as file:
        data = json.load(file)

    # Raise: top level must be an object of tables
    if not isinstance(data, dict):
        raise ValueError(f"Cannot call `load_config` because file '{path}' does not hold a JSON object")
    return data


def registry_from_config(data: Mapping[str, Any]) -> Registry:
    """Build a Registry from the plain tables of a data file.

    The layout is the one produced by `Registry.to_dict`: "currencies",
    "countries", "weights", "traits", "localized", "hierarchies", "ext" and
    "version", all optional.
    """
    return Registry.from_dict(data)


@lru_cache(maxsize=1)
def dist_registry() -> Registry:
    """Registry built from the data set shipped with the package.

    The data is merged into an empty Registry with ISO-like normalization, so
    legacy currencies get their default weight.
    """
    registry = merge_registry(Registry(), registry_from_config(load_config(DIST_PATH)), iso_like=True)
    logger.info(f"Loaded {len(registry)} currencies from packaged data (version {registry.version})")
    return registry


def load_registry(
    path: str | Path | None = None,
    keep_dist: bool = True,
    verbose: bool = False,
    preserve_fields: Iterable[str] | None = None,
    iso_like: bool = False,
) -> Registry:
    """Load a Registry from the packaged data and an optional user data file.

    Args:
        path: Optional user data file. Without it, the packaged data is returned.
        keep_dist: Merge the user data over the packaged data (True) or use the
            user data alone (False).
        verbose: Passed to `merge_registry`.
        preserve_fields: Passed to `merge_registry`.
        iso_like: Passed to `merge_registry`.

    Returns:
        Loaded Registry.
    """
    if path is None:
        return dist_registry()

    user = registry_from_config(load_config(path))
    base = dist_registry() if keep_dist else Registry()
    registry = merge_registry(base, user, verbose=verbose, preserve_fields=preserve_fields, iso_like=iso_like)
    logger.info(f"Loaded {len(user)} currencies from '{path}' (keep_dist={keep_dist}), {len(registry)} in total")
    return registry


def registry_from_settings(settings: Settings) -> Registry:
    """Build the initial default Registry described by $settings."""
    if not settings.initialize_registry:
        return Registry()

    path = settings.registry_path
    if path is not None and not path.exists():
        logger.warning(f"Registry data file '{path}' does not exist, using packaged data only")
        path = None

    return load_registry(
        path,
        keep_dist=settings.keep_dist,
        verbose=settings.merge_verbose,
        preserve_fields=settings.merge_preserve_fields,
        iso_like=settings.merge_iso_like,
    )


def currency_from_row(code: str, numeric: int | str | None, scale: int | str | None, comment: str | None = None) -> Currency:
    """Turn one ISO table row (code, numeric code, minor unit, comment) into a Currency.

    A comment starting with "Old" (e.g. "Old, now EUR") marks a retired code,
    which lands in the legacy namespace and domain. "FundsCode" marks a funds
    currency. An empty or negative scale means auto-scaled.
    """
    numeric_value = int(numeric) if numeric not in (None, "") else None
    scale_value = int(scale) if scale not in (None, "") else None
    if scale_value is not None and scale_value < 0:
        scale_value = None
    comment = comment or ""

    if _LEGACY_COMMENT.search(comment):
        return Currency(f"{LEGACY_NAMESPACE}/{code}", numeric_value, scale_value, "iso/fiat", LEGACY_DOMAIN)
    kind = "iso/funds" if _FUNDS_COMMENT.search(comment) else "iso/fiat"
    return Currency(code, numeric_value, scale_value, kind)
