from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Iterable

class AbstractSketch(ABC):
    """Base class for all distinct-count sketch types."""

    @abstractmethod
    def add(self, item: Any) -> None:
        """Add one stream element to the sketch."""
        pass

    def add_batch(self, items: Iterable[Any]) -> None:
        """Add multiple elements to the sketch, in order.

        Args:
            items: Iterable of elements to add to the sketch
        """
        for item in items:
            self.add(item)

    @abstractmethod
    def estimate_cardinality(self) -> int:
        """Estimate the number of distinct elements added so far.

        Returns:
            Non-negative integer estimate
        """
        pass
