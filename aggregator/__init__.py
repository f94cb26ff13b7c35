from .MarketAccumulator import AccumulatorSnapshot, MarketAccumulator
from .MarketData import MarketData
from .MarketTable import MarketTable
from .Reducer import reduce
from .RunStats import RunStats

__all__ = [
    "AccumulatorSnapshot",
    "MarketAccumulator",
    "MarketData",
    "MarketTable",
    "RunStats",
    "reduce",
]
