"""Process-wide default Registry and the task-local Registry override.

The default is a single reference that is swapped atomically; readers take
the current snapshot without locking. `update_default` serializes
read-modify-write cycles so concurrent updates are never lost.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from threading import RLock
from typing import Any, TypeVar

from suite_money.config import load_settings
from suite_money.domain.monetary.registry import Registry
from suite_money.domain.monetary.seed import registry_from_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Reentrant so that `update_default` callbacks may read the default
_lock = RLock()
_default: Registry | None = None
_override: ContextVar[Registry | None] = ContextVar("suite_money_registry_override", default=None)


def get_default() -> Registry:
    """Return the process-wide default Registry, building it from settings on first use."""
    global _default
    registry = _default
    if registry is None:
        with _lock:
            if _default is None:
                _default = registry_from_settings(load_settings())
                logger.debug(f"Initialized default {_default!r}")
            registry = _default
    return registry


def set_default(registry: Registry) -> Registry | None:
    """Replace the process-wide default Registry and return the previous one (or None)."""
    global _default
    _require_registry(registry, "set_default")
    with _lock:
        previous, _default = _default, registry
    logger.debug(f"Replaced default Registry with {registry!r}")
    return previous


def update_default(fn: Callable[..., Registry], *args: Any, **kwargs: Any) -> Registry:
    """Atomically replace the default with `fn(default, *args, **kwargs)` and return the new value.

    Example:
        update_default(Registry.register, Currency("crypto/XYZ", scale=8))
    """
    global _default
    with _lock:
        current_default = get_default()
        registry = fn(current_default, *args, **kwargs)
        _require_registry(registry, "update_default")
        _default = registry
    logger.debug(f"Updated default Registry to {registry!r}")
    return registry


def reset_default() -> None:
    """Forget the default Registry; the next read builds it again from settings.

    Primarily intended for testing.
    """
    global _default
    with _lock:
        _default = None


def current() -> Registry:
    """Return the Registry override bound for this task, else the default."""
    registry = _override.get()
    return registry if registry is not None else get_default()


@contextmanager
def with_registry(registry: Registry) -> Iterator[Registry]:
    """Bind $registry as the override for the dynamic extent of the block."""
    _require_registry(registry, "with_registry")
    token = _override.set(registry)
    try:
        yield registry
    finally:
        _override.reset(token)


def run_with_registry(registry: Registry, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Call $fn with $registry bound as the override and return its result."""
    with with_registry(registry):
        return fn(*args, **kwargs)


def _require_registry(registry: Any, function: str) -> None:
    # Raise: only Registry values can become the default or the override
    if not isinstance(registry, Registry):
        raise TypeError(f"Cannot call `{function}` because $registry ({registry!r}) is not a Registry")
