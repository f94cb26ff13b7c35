from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, BinaryIO, List

if TYPE_CHECKING:
    from aggregator.MarketData import MarketData
    from aggregator.RunStats import RunStats
    from publisher.Publisher import Publisher
    from tradeFeed.struct.MarketResult import MarketResult


class AggregationManager(ABC):
    """Interface for orchestrating an input stream, market data, and publishers."""

    @abstractmethod
    def create(
        self,
        publishers: List[Publisher],
        market_data: MarketData,
        stats: RunStats,
    ) -> None:
        """Wire up publishers, market data, and run statistics. Call before run()."""
        ...

    @abstractmethod
    def run(self, source: BinaryIO) -> List[MarketResult]:
        """Consume ``source`` until it ends, then reduce and publish."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """Ask a running ``run()`` to stop reading input."""
        ...
