from __future__ import annotations
from abc import ABC, abstractmethod
import struct
from typing import Any, Iterable
import xxhash # type: ignore

class AbstractSketch(ABC):
    """Base class for distinct-count sketches."""

    @abstractmethod
    def insert(self, element: Any) -> bool:
        """Add an element to the sketch.

        Returns:
            True if the sketch state changed
        """
        pass

    @abstractmethod
    def count(self) -> float:
        """Estimate the number of distinct elements seen."""
        pass

    @abstractmethod
    def merge(self, other: 'AbstractSketch') -> 'AbstractSketch':
        """Return a new sketch covering the union of both inputs."""
        pass

    def add_string(self, s: str) -> None:
        """Add a string to the sketch."""
        self.insert(s)

    def add_int(self, value: int) -> None:
        """Add an integer to the sketch."""
        self.insert(value)

    def add_batch(self, elements: Iterable[Any]) -> None:
        """Add multiple elements to the sketch.

        Args:
            elements: Iterable of elements to add to the sketch
        """
        for element in elements:
            self.insert(element)

    def estimate_cardinality(self) -> float:
        """Alias of count()."""
        return self.count()

    # Hash functions - static methods for use by all sketch implementations
    @staticmethod
    def _hash_str(s: bytes, seed: int = 0) -> int:
        """Hash raw bytes using xxhash.

        Args:
            s: Bytes to hash
            seed: Seed for hashing

        Returns:
            64-bit hash value as integer
        """
        hasher = xxhash.xxh64(seed=seed)
        hasher.update(s)
        return hasher.intdigest()

    @staticmethod
    def _int_bytes(x: int) -> bytes:
        if -(1 << 63) <= x < (1 << 63):
            return x.to_bytes(8, byteorder='little', signed=True)
        return x.to_bytes((x.bit_length() + 8) // 8, byteorder='little', signed=True)

    @staticmethod
    def element_bytes(element: Any) -> bytes:
        """Stable byte encoding of an element.

        Supported types are str (UTF-8), bytes-like objects, int (including
        bool), float (IEEE-754 double; whole numbers use the int encoding so
        that 1.0 hashes like 1) and tuples of supported types.

        Raises:
            TypeError: If the element has no stable encoding
        """
        if isinstance(element, str):
            return element.encode('utf-8')
        if isinstance(element, (bytes, bytearray, memoryview)):
            return bytes(element)
        if isinstance(element, int):
            return AbstractSketch._int_bytes(element)
        if isinstance(element, float):
            # whole-number floats hash like the equal int, as in Python's own hash
            if element.is_integer():
                return AbstractSketch._int_bytes(int(element))
            return struct.pack('<d', element)
        if isinstance(element, tuple):
            parts = [AbstractSketch.element_bytes(item) for item in element]
            # length-prefix each part so ("ab", "c") and ("a", "bc") differ
            return b''.join(len(part).to_bytes(4, byteorder='little') + part for part in parts)
        raise TypeError(
            f"No stable byte encoding for {type(element).__name__}; "
            "pass a hash_function to the sketch instead")

    @staticmethod
    def hash64(element: Any, seed: int = 0) -> int:
        """Default 64-bit hash of an element: xxHash64 over element_bytes()."""
        return AbstractSketch._hash_str(AbstractSketch.element_bytes(element), seed=seed)
