from abc import ABC, abstractmethod


class Publisher(ABC):
    """Abstract base class for publishing aggregation output."""

    @abstractmethod
    def publish(self, key: str, data: bytes) -> None:
        """Publish raw bytes under the given key/path."""
        ...

    @abstractmethod
    def publish_json(self, key: str, obj) -> None:
        """Serialize ``obj`` as JSON and publish it."""
        ...
