from __future__ import annotations
import math
import warnings
from functools import reduce
from typing import Any, Callable, Iterable, Optional, Union
import numpy as np # type: ignore
from basichll.lib.abstractsketch import AbstractSketch

HASH_BITS = 64
_HASH_MASK = (1 << HASH_BITS) - 1
TWO_TO_32 = float(1 << 32)

# error rate that lands on exactly 128 registers
REGISTER_BUDGET_128_ERROR = 0.09192

HashFunction = Callable[[Any], int]


class InvalidConfiguration(ValueError):
    """Raised when an estimator cannot be built from the given parameters."""


class IncompatibleConfiguration(ValueError):
    """Raised when merging estimators with different (alpha, b, m)."""


def get_alpha(m: int) -> float:
    """Bias correction constant for m registers."""
    if m == 16:
        return 0.673
    elif m == 32:
        return 0.697
    elif m == 64:
        return 0.709
    else:
        return 0.7213 / (1.0 + 1.079 / m)


def leftmost_one_bit(w: int, width: int) -> int:
    """1-based position of the first set bit of a width-bit word, counted
    from the most significant side.

    An all-zero word has no set bit and maps to width + 1, the maximal rank.
    """
    if w == 0:
        return width + 1
    return width - w.bit_length() + 1


class HyperLogLog(AbstractSketch):
    """HyperLogLog distinct-count estimator.

    The register count is derived from a target relative standard error as
    m = floor((1.04 / error)^2) and the index width as b = floor(log2(m)).
    m is allocated as is, even when it is not a power of two; only the first
    2^b registers are addressed by the hash.

    Estimators are not thread safe. To count from several producers give each
    one its own estimator and merge the results afterwards; merge is
    commutative and associative, so the order does not matter.
    """

    is_identity = False

    def __init__(self,
                 error: float,
                 hash_function: Optional[HashFunction] = None,
                 debug: bool = False):
        """Initialize a HyperLogLog estimator.

        Args:
            error: Target relative standard error, strictly between 0 and 1
            hash_function: Callable mapping an element to a 64-bit integer.
                           Defaults to xxHash64 (seed 0) over a stable byte
                           encoding of the element.
            debug: Whether to print debug information

        Raises:
            InvalidConfiguration: If error is not in (0, 1)
        """
        super().__init__()

        if not 0.0 < error < 1.0:
            raise InvalidConfiguration(f"error must be in (0, 1), got {error}")

        ratio = 1.04 / error
        num_registers = int(math.floor(ratio * ratio))

        if num_registers < 16:
            warnings.warn(f"error={error} gives only {num_registers} registers; "
                          "bias correction assumes at least 16", RuntimeWarning)

        self.error = error
        self._num_registers = num_registers
        self._precision = num_registers.bit_length() - 1
        self._alpha = get_alpha(num_registers)
        self._registers = np.zeros(num_registers, dtype=np.uint8)
        self.hash_function = hash_function
        self.debug = debug

        if self.debug:
            print(f"DEBUG: error={error} -> {self}")

    @classmethod
    def with_register_budget_128(cls, hash_function: Optional[HashFunction] = None,
                                 debug: bool = False) -> 'HyperLogLog':
        """Estimator with 128 registers (error 0.09192)."""
        return cls(REGISTER_BUDGET_128_ERROR, hash_function=hash_function, debug=debug)

    @staticmethod
    def identity() -> 'IdentityHyperLogLog':
        """The neutral element for merge."""
        return IdentityHyperLogLog()

    @property
    def alpha(self) -> float:
        return self._alpha

    @property
    def precision(self) -> int:
        return self._precision

    @property
    def num_registers(self) -> int:
        return self._num_registers

    def registers(self) -> np.ndarray:
        """Read-only snapshot of the register array."""
        snapshot = self._registers.copy()
        snapshot.setflags(write=False)
        return snapshot

    def hash_element(self, element: Any) -> int:
        """64-bit hash of an element under this estimator's hash function."""
        if self.hash_function is None:
            return self.hash64(element)
        return int(self.hash_function(element)) & _HASH_MASK

    def insert(self, element: Any) -> bool:
        """Add an element.

        The top b bits of the hash select the register, the remaining
        64 - b bits give the rank.

        Returns:
            True if a register increased
        """
        hash_val = self.hash_element(element)
        width = HASH_BITS - self._precision
        idx = hash_val >> width
        rank = leftmost_one_bit(hash_val & ((1 << width) - 1), width)
        if rank > self._registers[idx]:
            self._registers[idx] = rank
            return True
        return False

    def raw_estimate(self) -> float:
        """Harmonic-mean estimate alpha * m^2 / sum(2^-M[i]), uncorrected."""
        m = float(self._num_registers)
        register_harmonics = np.exp2(-self._registers.astype(np.float64))
        return float(self._alpha * m * m / np.sum(register_harmonics))

    def empty_registers(self) -> int:
        """Number of registers still at zero."""
        return int(np.count_nonzero(self._registers == 0))

    def range_correction(self, estimate: float) -> float:
        """Apply the small, medium or large range correction to a raw estimate."""
        m = float(self._num_registers)

        # Small range: linear counting while empty registers remain
        if estimate <= 2.5 * m:
            v = self.empty_registers()
            if v == 0:
                return estimate
            return m * math.log(m / v)

        # Medium range: no correction
        if estimate <= TWO_TO_32 / 30.0:
            return estimate

        # Large range: 32-bit hash space saturation (natural log)
        # TODO: calibrate the log base against a known large-cardinality data set
        log_arg = 1.0 - estimate / TWO_TO_32
        if log_arg <= 0.0:
            return estimate
        return -TWO_TO_32 * math.log(log_arg)

    def count(self) -> float:
        """Estimate the number of distinct elements inserted."""
        raw = self.raw_estimate()
        corrected = self.range_correction(raw)
        if self.debug:
            print(f"DEBUG: raw={raw:.2f}, empty={self.empty_registers()}, count={corrected:.2f}")
        return corrected

    def same_configuration(self, other: 'HyperLogLog') -> bool:
        """True if (alpha, b, m) match. The hash function is not compared."""
        return (self._alpha == other.alpha
                and self._precision == other.precision
                and self._num_registers == other.num_registers)

    def copy(self) -> 'HyperLogLog':
        clone = HyperLogLog.__new__(HyperLogLog)
        clone.__dict__.update(self.__dict__)
        clone._registers = self._registers.copy()
        return clone

    def merge(self, other: 'Estimator') -> 'Estimator':
        """Return a new estimator for the union of both streams.

        Raises:
            IncompatibleConfiguration: If the configurations differ
        """
        return merge(self, other)

    def __add__(self, other: Any) -> 'Estimator':
        if not isinstance(other, (HyperLogLog, IdentityHyperLogLog)):
            return NotImplemented
        return merge(self, other)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, (HyperLogLog, IdentityHyperLogLog)):
            return NotImplemented
        if other.is_identity:
            return False
        return (self.same_configuration(other)
                and np.array_equal(self._registers, other._registers))

    # Mutable, so not hashable
    __hash__ = None  # type: ignore

    def __repr__(self) -> str:
        return f"HyperLogLog(alpha={self._alpha}, b={self._precision}, m={self._num_registers})"

    def __str__(self) -> str:
        return f"α: {self._alpha}, b: {self._precision}, m: {self._num_registers}"


class IdentityHyperLogLog(AbstractSketch):
    """Zero-configuration estimator that is neutral under merge.

    It merges with an estimator of any configuration and carries no
    registers, so nothing can be inserted into it.
    """

    is_identity = True
    alpha = 0.0
    precision = 0
    num_registers = 0

    def insert(self, element: Any) -> bool:
        raise InvalidConfiguration("Cannot insert into the identity estimator; "
                                   "construct one with an error rate instead")

    def count(self) -> float:
        return 0.0

    def registers(self) -> np.ndarray:
        snapshot = np.zeros(0, dtype=np.uint8)
        snapshot.setflags(write=False)
        return snapshot

    def copy(self) -> 'IdentityHyperLogLog':
        return IdentityHyperLogLog()

    def merge(self, other: 'Estimator') -> 'Estimator':
        return merge(self, other)

    def __add__(self, other: Any) -> 'Estimator':
        if not isinstance(other, (HyperLogLog, IdentityHyperLogLog)):
            return NotImplemented
        return merge(self, other)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, (HyperLogLog, IdentityHyperLogLog)):
            return NotImplemented
        return other.is_identity

    __hash__ = None  # type: ignore

    def __repr__(self) -> str:
        return "IdentityHyperLogLog(alpha=0.0, b=0, m=0)"

    def __str__(self) -> str:
        return "α: 0, b: 0, m: 0"


Estimator = Union[HyperLogLog, IdentityHyperLogLog]


def merge(a: Estimator, b: Estimator) -> Estimator:
    """Combine two estimators by taking the element-wise register maximum.

    The result equals an estimator that saw both streams. The identity on
    either side returns a copy of the other side without any configuration
    check. Neither operand is modified.

    Args:
        a: First estimator
        b: Second estimator

    Returns:
        New estimator for the union

    Raises:
        TypeError: If either operand is not an estimator
        IncompatibleConfiguration: If a and b have different (alpha, b, m)
            or different hash functions
    """
    for operand in (a, b):
        if not isinstance(operand, (HyperLogLog, IdentityHyperLogLog)):
            raise TypeError(f"Can only merge HyperLogLog estimators, got {type(operand).__name__}")

    if a.is_identity:
        return b.copy()
    if b.is_identity:
        return a.copy()

    if not a.same_configuration(b):
        raise IncompatibleConfiguration(
            f"Cannot merge estimators with different configurations ({a!r} vs {b!r})")
    if a.hash_function is not b.hash_function:
        raise IncompatibleConfiguration("Cannot merge estimators built with different hash functions")

    merged = a.copy()
    np.maximum(a._registers, b._registers, out=merged._registers)
    return merged


def merge_all(estimators: Iterable[Estimator]) -> Estimator:
    """Merge any number of estimators; an empty iterable gives the identity."""
    return reduce(merge, estimators, HyperLogLog.identity())
