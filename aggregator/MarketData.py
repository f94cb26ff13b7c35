from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")


class MarketData(ABC, Generic[T, E]):
    """Store that folds incoming items into per-market state.

    Type Parameters:
        T: The item accepted by record(), e.g. a decoded trade.
        E: The summary returned by export().
    """

    @abstractmethod
    def record(self, data: T) -> None:
        """Fold one item into the store. Safe to call from several threads."""
        ...

    @abstractmethod
    def freeze(self) -> None:
        """Stop accepting new markets ahead of export()."""
        ...

    @abstractmethod
    def export(self) -> E:
        """Summarize everything recorded so far."""
        ...
