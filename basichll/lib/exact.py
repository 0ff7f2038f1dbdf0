from __future__ import annotations
from typing import Any, Set
from basichll.lib.abstractsketch import AbstractSketch

class ExactCounter(AbstractSketch):
    """Exact distinct counter backed by a set.

    Shares the sketch interface with HyperLogLog so it can stand in as the
    ground truth when checking an estimate.
    """

    def __init__(self):
        """Initialize exact counter."""
        super().__init__()
        self.elements: Set[Any] = set()

    def insert(self, element: Any) -> bool:
        """Add an element; True if it was not seen before."""
        if element in self.elements:
            return False
        self.elements.add(element)
        return True

    def count(self) -> float:
        """Return exact cardinality."""
        return float(len(self.elements))

    def merge(self, other: 'ExactCounter') -> 'ExactCounter':
        """Return a new counter holding the union of both."""
        if not isinstance(other, ExactCounter):
            raise TypeError("Can only merge with another ExactCounter")
        merged = ExactCounter()
        merged.elements = self.elements | other.elements
        return merged

    def __add__(self, other: Any) -> 'ExactCounter':
        if not isinstance(other, ExactCounter):
            return NotImplemented
        return self.merge(other)
