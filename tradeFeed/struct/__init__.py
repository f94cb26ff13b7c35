from .MarketResult import MarketResult
from .Trade import Trade

__all__ = ["MarketResult", "Trade"]
