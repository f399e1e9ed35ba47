from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, replace
from typing import Any, TypeVar

from suite_money.domain.monetary.rounding import RoundingMode


T = TypeVar("T")


@dataclass(frozen=True)
class ScaleContext:
    """Rounding configuration active for the dynamic extent of a call chain.

    Attributes:
        rounding_mode: Rounding mode used when an operation must drop digits and no
            explicit mode was passed. None means no mode is active.
        rescale_each: When True, chained multiply/divide rescale after every
            pairwise step instead of once at the end.
    """

    rounding_mode: RoundingMode | None = None
    rescale_each: bool = False


# Task-local; every thread and asyncio task sees its own value
_scale_context: ContextVar[ScaleContext] = ContextVar("suite_money_scale_context", default=ScaleContext())


def current_context() -> ScaleContext:
    """Return the innermost active ScaleContext."""
    return _scale_context.get()


def resolve_rounding(explicit: RoundingMode | str | None = None) -> RoundingMode:
    """Pick the rounding mode for an operation that has to drop digits.

    Fallback order: $explicit argument, then the innermost active context, then
    UNNECESSARY (which fails if rounding is actually required).
    """
    if explicit is not None:
        return RoundingMode.parse(explicit)
    mode = _scale_context.get().rounding_mode
    return mode if mode is not None else RoundingMode.UNNECESSARY


@contextmanager
def scale_context(**changes: Any) -> Iterator[ScaleContext]:
    """Establish a ScaleContext derived from the current one with $changes applied.

    The previous context is restored on exit, including when the block raises.
    """
    if "rounding_mode" in changes and changes["rounding_mode"] is not None:
        changes["rounding_mode"] = RoundingMode.parse(changes["rounding_mode"])
    context = replace(_scale_context.get(), **changes)
    token = _scale_context.set(context)
    try:
        yield context
    finally:
        _scale_context.reset(token)


@contextmanager
def with_rounding(mode: RoundingMode | str | None) -> Iterator[ScaleContext]:
    """Use $mode as the rounding mode inside the block."""
    with scale_context(rounding_mode=mode) as context:
        yield context


@contextmanager
def with_rescale_each(flag: bool = True) -> Iterator[ScaleContext]:
    """Turn rescale-each-step on (or off) inside the block."""
    with scale_context(rescale_each=bool(flag)) as context:
        yield context


@contextmanager
def with_rescaling(mode: RoundingMode | str | None) -> Iterator[ScaleContext]:
    """Use $mode and rescale after every step inside the block."""
    with scale_context(rounding_mode=mode, rescale_each=True) as context:
        yield context


def run_with_rounding(mode: RoundingMode | str | None, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Call $fn with $mode as the active rounding mode and return its result."""
    with with_rounding(mode):
        return fn(*args, **kwargs)


def run_with_rescale_each(flag: bool, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Call $fn with rescale-each-step set to $flag and return its result."""
    with with_rescale_each(flag):
        return fn(*args, **kwargs)
