from .StreamAggregationManager import StreamAggregationManager

__all__ = ["StreamAggregationManager"]
