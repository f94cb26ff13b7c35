from __future__ import annotations

import logging
import threading
from typing import Dict, List, TYPE_CHECKING

from aggregator.MarketAccumulator import AccumulatorSnapshot, MarketAccumulator
from aggregator.MarketData import MarketData
from aggregator.Reducer import reduce

if TYPE_CHECKING:
    from tradeFeed.struct.MarketResult import MarketResult
    from tradeFeed.struct.Trade import Trade

logger = logging.getLogger("aggregator.table")


class MarketTable(MarketData["Trade", List["MarketResult"]]):
    """Concurrent map from market id to its accumulator.

    Lookups of known markets take no lock. Creating a market takes the table
    lock and re-checks, so concurrent first sightings of one id always end
    up sharing a single accumulator.

    Unlike the tick buffers, ``export()`` does not clear anything: it freezes
    the table and reduces it, and the table accepts no further trades.
    """

    def __init__(self) -> None:
        self._markets: Dict[int, MarketAccumulator] = {}
        self._lock: threading.Lock = threading.Lock()
        self._frozen: bool = False

    def resolve(self, market: int) -> MarketAccumulator:
        """Return the accumulator for ``market``, creating it on first use."""
        acc = self._markets.get(market)
        if acc is not None:
            return acc

        with self._lock:
            if self._frozen:
                raise RuntimeError("market table is frozen")
            acc = self._markets.get(market)
            if acc is None:
                acc = MarketAccumulator(market)
                self._markets[market] = acc
                logger.debug("New market %d", market)
        return acc

    def record(self, data: Trade) -> None:
        """Apply one trade to its market's accumulator."""
        self.resolve(data.market).apply(data)

    def freeze(self) -> None:
        """Reject creation of new markets from now on."""
        with self._lock:
            self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def export(self) -> List[MarketResult]:
        """Freeze the table and return one result per market."""
        self.freeze()
        return reduce(self)

    def snapshot(self) -> Dict[int, AccumulatorSnapshot]:
        """Return a consistent copy of every market's sums, in discovery order."""
        with self._lock:
            items = list(self._markets.items())
        return {market: acc.snapshot() for market, acc in items}

    def __len__(self) -> int:
        return len(self._markets)

    def __contains__(self, market: object) -> bool:
        return market in self._markets
