from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MarketResult:
    """Summary of every trade seen for one market.

    Parameters:
        market: Market id.
        total_volume: Sum of trade volumes.
        mean_volume: Average volume per trade.
        mean_price: Average (unweighted) trade price.
        percentage_buy: Share of buy trades on a 0-100 scale.
        vwap: Volume-weighted average price.

    Derived fields may be NaN or infinite for a market with no trades or
    zero total volume.
    """

    market: int
    total_volume: float
    mean_volume: float
    mean_price: float
    percentage_buy: float
    vwap: float

    def to_dict(self) -> dict:
        """Serialize to a plain dictionary in output field order."""
        return {
            "market": self.market,
            "total_volume": self.total_volume,
            "mean_volume": self.mean_volume,
            "mean_price": self.mean_price,
            "percentage_buy": self.percentage_buy,
            "vwap": self.vwap,
        }
