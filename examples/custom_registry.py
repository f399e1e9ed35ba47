from __future__ import annotations

import logging

from suite_money import Currency, Money, Registry, get_default, merge_registry, resolve, with_registry
from suite_money.domain.monetary.resolution import is_stable, name_of


logger = logging.getLogger(__name__)


def run() -> None:
    # Registry with one custom stablecoin and its localized name
    custom = Registry(
        [Currency("crypto/XUSD", scale=6, kind="crypto/stable", weight=10)],
        traits={"crypto/XUSD": ["stable/coin", "peg/usd"]},
        localized={"crypto/XUSD": {"en": {"name": "Example Dollar"}}},
    )

    # Merge it over the default registry, reporting every added and updated currency
    registry = merge_registry(get_default(), custom, verbose=True)

    # Bind the merged registry only for this block; other threads keep the default
    with with_registry(registry):
        currency = resolve("XUSD")
        logger.info(f"Resolved {currency!r}, stable: {is_stable(currency)}, name: {name_of(currency, 'en')}")
        logger.info(f"Payment: {Money('12.5', 'XUSD')}")

    logger.info(f"Outside the block 'XUSD' is defined: {'crypto/XUSD' in get_default()}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
