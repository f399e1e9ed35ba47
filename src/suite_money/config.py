from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "SUITE_MONEY_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    """Process-level settings used to build the default Registry.

    Attributes:
        registry_path: Optional path of a user registry data file (JSON).
        keep_dist: When True, the user file is merged over the packaged data set;
            when False, the user file replaces it.
        initialize_registry: When False, the default Registry starts empty.
        merge_verbose: Log added and updated currencies while merging.
        merge_iso_like: Normalize ISO-like identities while merging.
        merge_preserve_fields: Fields kept from the packaged data while merging.
    """

    registry_path: Path | None = None
    keep_dist: bool = True
    initialize_registry: bool = True
    merge_verbose: bool = False
    merge_iso_like: bool = False
    merge_preserve_fields: tuple[str, ...] = field(default_factory=tuple)


def load_settings(environ: Mapping[str, str] | None = None, dotenv: bool = True) -> Settings:
    """Read Settings from environment variables prefixed with `SUITE_MONEY_`.

    Args:
        environ: Variables to read. Defaults to `os.environ`.
        dotenv: When True and $environ is None, a `.env` file is loaded into the
            environment first (existing variables win).

    Returns:
        Parsed Settings.

    Raises:
        ValueError: If a boolean variable holds an unrecognized value.
    """
    if environ is None:
        if dotenv:
            load_dotenv()
        environ = os.environ

    def get(name: str) -> str | None:
        return environ.get(ENV_PREFIX + name)

    path = get("REGISTRY_PATH")
    preserve = get("MERGE_PRESERVE_FIELDS") or ""
    return Settings(
        registry_path=Path(path).expanduser() if path and path.strip() else None,
        keep_dist=_parse_bool("KEEP_DIST", get("KEEP_DIST"), default=True),
        initialize_registry=_parse_bool("INITIALIZE_REGISTRY", get("INITIALIZE_REGISTRY"), default=True),
        merge_verbose=_parse_bool("MERGE_VERBOSE", get("MERGE_VERBOSE"), default=False),
        merge_iso_like=_parse_bool("MERGE_ISO_LIKE", get("MERGE_ISO_LIKE"), default=False),
        merge_preserve_fields=tuple(item.strip() for item in preserve.split(",") if item.strip()),
    )


def _parse_bool(name: str, value: str | None, default: bool) -> bool:
    if value is None or not value.strip():
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"${ENV_PREFIX}{name} must be one of {sorted(_TRUE_VALUES | _FALSE_VALUES)}, but provided value is: '{value}'")
