"""Final reduction of accumulated sums into per-market results."""

from __future__ import annotations

import math
from typing import List, TYPE_CHECKING

from tradeFeed.struct.MarketResult import MarketResult

if TYPE_CHECKING:
    from aggregator.MarketAccumulator import AccumulatorSnapshot
    from aggregator.MarketTable import MarketTable


def _divide(numerator: float, denominator: float) -> float:
    """IEEE-754 division: 0/0 is NaN and x/0 is a signed infinity."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)
    return numerator / denominator


def reduce_snapshot(market: int, snap: AccumulatorSnapshot) -> MarketResult:
    """Derive the output metrics of a single market."""
    return MarketResult(
        market=market,
        total_volume=snap.total_volume,
        mean_volume=_divide(snap.total_volume, snap.trade_count),
        mean_price=_divide(snap.total_price, snap.trade_count),
        percentage_buy=_divide(100.0 * snap.buy_count, snap.trade_count),
        vwap=_divide(snap.price_volume_sum, snap.total_volume),
    )


def reduce(table: MarketTable) -> List[MarketResult]:
    """Return one result per market in ``table``, in discovery order.

    Markets with no trades or zero volume are reported with NaN or infinite
    derived fields rather than being dropped.
    """
    return [reduce_snapshot(market, snap) for market, snap in table.snapshot().items()]
