from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from advisor.core.catalog.catalog_schema import PriceBar
from advisor.core.errors import InsufficientDataError

Verdict = Literal["Buy", "Sell", "Hold"]

BUY_THRESHOLD_PCT = 0.5
SELL_THRESHOLD_PCT = -0.5

RATIONALES: dict[str, str] = {
    "Buy": "The closing price has risen steadily in the latest session.",
    "Sell": "The closing price declined sharply in the latest session.",
    "Hold": "Price has barely changed in the most recent session.",
}


@dataclass(frozen=True)
class Recommendation:
    verdict: Verdict
    rationale: str
    last_price: float
    previous_price: float
    percent_change: float


def recommend(price_bars: Sequence[PriceBar]) -> Recommendation:
    """Buy/Sell/Hold from the change between the last two closes."""
    if len(price_bars) < 2:
        raise InsufficientDataError("Not enough price data")

    last = float(price_bars[-1].close)
    previous = float(price_bars[-2].close)
    if previous == 0:
        raise InsufficientDataError("Not enough price data")

    pct = (last - previous) / previous * 100
    verdict = classify_change(pct)
    return Recommendation(
        verdict=verdict,
        rationale=RATIONALES[verdict],
        last_price=last,
        previous_price=previous,
        percent_change=pct,
    )


def classify_change(percent_change: float) -> Verdict:
    if percent_change > BUY_THRESHOLD_PCT:
        return "Buy"
    if percent_change < SELL_THRESHOLD_PCT:
        return "Sell"
    return "Hold"
