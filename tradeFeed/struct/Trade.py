from dataclasses import dataclass


@dataclass(frozen=True)
class Trade:
    """A single decoded trade.

    Parameters:
        market: Integer id of the market the trade belongs to.
        price: Trade price.
        volume: Trade quantity.
        is_buy: True when the aggressor was the buyer.
    """

    market: int
    price: float
    volume: float
    is_buy: bool

    @classmethod
    def from_dict(cls, data: dict) -> "Trade":
        """Build a Trade from an already-validated dictionary."""
        return cls(
            market=int(data["market"]),
            price=float(data["price"]),
            volume=float(data["volume"]),
            is_buy=bool(data["is_buy"]),
        )
