"""Domain models for the tracked heating-oil price series."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

CASH_LOCATOR = "table.paywithcash tr:nth-child(3) td:last-child"
CREDIT_LOCATOR = "table.paybycredit tr:nth-child(3) td:last-child"


@dataclass(frozen=True, slots=True)
class PriceSeries:
    """A named price tracked from one table on the upstream page."""

    name: str
    locator: str
    metric_name: str
    description: str = ""


@dataclass(slots=True)
class PriceReading:
    """A single price parsed from one table cell."""

    raw_text: str
    value: float


CASH_SERIES = PriceSeries(
    name="cash",
    locator=CASH_LOCATOR,
    metric_name="oil_lowest_price_cash",
    description="The lowest cash price per gallon available in USD",
)

CREDIT_SERIES = PriceSeries(
    name="credit",
    locator=CREDIT_LOCATOR,
    metric_name="oil_lowest_price_credit",
    description="The lowest credit price per gallon available in USD",
)

SINGLE_SERIES = PriceSeries(
    name="cash",
    locator=CASH_LOCATOR,
    metric_name="oil_lowest_price",
    description="The lowest price per gallon available in USD",
)


def series_for_mode(mode: str) -> Tuple[PriceSeries, ...]:
    """Return the statically configured series for a series mode."""
    if mode == "split":
        return (CASH_SERIES, CREDIT_SERIES)
    if mode == "single":
        return (SINGLE_SERIES,)
    raise ValueError(f"Unknown series mode {mode!r}; expected 'split' or 'single'.")
