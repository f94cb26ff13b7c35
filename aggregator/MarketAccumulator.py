from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tradeFeed.struct.Trade import Trade


@dataclass(frozen=True)
class AccumulatorSnapshot:
    """Consistent copy of one accumulator's running sums."""

    trade_count: int = 0
    buy_count: int = 0
    total_volume: float = 0.0
    total_price: float = 0.0
    price_volume_sum: float = 0.0


class MarketAccumulator:
    """Running sums for a single market.

    The sums are only changed through ``apply()``, which holds the
    accumulator's own lock for the whole update so concurrent trades for
    the same market never interleave.
    """

    def __init__(self, market: int) -> None:
        self._market = market
        self._lock: threading.Lock = threading.Lock()
        self._trade_count: int = 0
        self._buy_count: int = 0
        self._total_volume: float = 0.0
        self._total_price: float = 0.0
        self._price_volume_sum: float = 0.0

    @property
    def market(self) -> int:
        return self._market

    def apply(self, trade: Trade) -> None:
        """Fold one trade into the running sums."""
        with self._lock:
            self._trade_count += 1
            self._total_volume += trade.volume
            self._total_price += trade.price
            self._price_volume_sum += trade.price * trade.volume
            if trade.is_buy:
                self._buy_count += 1

    def snapshot(self) -> AccumulatorSnapshot:
        """Return the current sums, read under the lock."""
        with self._lock:
            return AccumulatorSnapshot(
                trade_count=self._trade_count,
                buy_count=self._buy_count,
                total_volume=self._total_volume,
                total_price=self._total_price,
                price_volume_sum=self._price_volume_sum,
            )

    def __repr__(self) -> str:
        return f"MarketAccumulator(market={self._market!r}, trades={self._trade_count})"
