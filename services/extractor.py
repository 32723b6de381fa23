"""Price extraction from parsed upstream pages."""

from __future__ import annotations

import logging
import math
import re
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Iterable, List

from bs4 import BeautifulSoup, Tag

from models.prices import PriceReading
from services.errors import NotFoundError, ParseError

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")
# Enough digits to hold any finite float to the cent.
_ROUNDING_PRECISION = 400
_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def round_price(value: float) -> float:
    """Round to whole cents, halves away from zero."""
    with localcontext() as context:
        context.prec = _ROUNDING_PRECISION
        return float(Decimal(repr(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def parse_price(text: str) -> PriceReading:
    """Parse a currency cell such as ``$3.499`` into a rounded reading.

    The first character is assumed to be the currency symbol and is dropped
    without being checked.
    """
    number = text.strip()[1:]
    if not _NUMBER.fullmatch(number):
        raise ParseError(f"failed to convert text to price: {text!r}")
    value = float(number)
    if not math.isfinite(value):
        raise ParseError(f"failed to convert text to price: {text!r}")
    return PriceReading(raw_text=text, value=round_price(value))


class PriceExtractor:
    """Finds price cells for a locator and reduces them to the lowest price."""

    def find_cells(self, document: BeautifulSoup, locator: str) -> List[Tag]:
        cells = document.select(locator)
        if not cells:
            raise NotFoundError(locator)
        return list(cells)

    def read_prices(self, cells: Iterable[Tag], locator: str) -> List[PriceReading]:
        """Parse every cell; any unparsable cell fails the whole locator."""
        readings: List[PriceReading] = []
        failures: List[ParseError] = []
        for cell in cells:
            text = cell.get_text(strip=True)
            try:
                readings.append(parse_price(text))
            except ParseError as exc:
                logger.error(
                    "failed to convert text to price",
                    extra={"locator": locator, "cell_text": repr(text)},
                )
                failures.append(exc)

        if failures:
            raise ParseError(
                f"{len(failures)} unparsable price cell(s) for selector {locator}: "
                f"{failures[0]}"
            ) from failures[0]
        return readings

    def extract_minimum_price(self, document: BeautifulSoup, locator: str) -> float:
        cells = self.find_cells(document, locator)
        readings = self.read_prices(cells, locator)
        return min(reading.value for reading in readings)


def extract_minimum_price(document: BeautifulSoup, locator: str) -> float:
    """Return the lowest price among the cells matched by ``locator``."""
    return PriceExtractor().extract_minimum_price(document, locator)
