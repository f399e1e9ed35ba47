from __future__ import annotations

import logging

from suite_money import Money, RoundingMode, with_rescaling, with_rounding
from suite_money.domain.monetary.money import multiply


logger = logging.getLogger(__name__)


def run() -> None:
    # Amounts are exact; EUR has 2 fractional digits
    net = Money("1999.99", "EUR")

    # Tax needs a rounding mode, because 1999.99 * 0.23 has 4 fractional digits
    with with_rounding(RoundingMode.HALF_EVEN):
        vat = net * "0.23"
    gross = net + vat
    logger.info(f"Net {net}, VAT {vat}, gross {gross}")

    # Split gross among 3 payers; leftover cents go to the first payers
    for index, part in enumerate(gross.allocate([1, 1, 1]), start=1):
        logger.info(f"Payer {index}: {part}")

    # Monthly interest: round once at the end, or after every step
    with with_rounding(RoundingMode.HALF_UP):
        once = multiply(gross, "1.005", "1.005", "1.005")
    with with_rescaling(RoundingMode.HALF_UP):
        each_step = multiply(gross, "1.005", "1.005", "1.005")
    logger.info(f"Interest rounded once: {once}, rounded each step: {each_step}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
