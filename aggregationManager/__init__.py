from .AggregationManager import AggregationManager
from .AggregatorConfig import AggregatorConfig
from .impl.StreamAggregationManager import DriverState, PublishError, StreamAggregationManager

__all__ = [
    "AggregationManager",
    "AggregatorConfig",
    "DriverState",
    "PublishError",
    "StreamAggregationManager",
]
