# Empty file to mark directory as Python package

from .abstractsketch import AbstractSketch
from .hyperloglog import (
    HyperLogLog,
    IdentityHyperLogLog,
    InvalidConfiguration,
    IncompatibleConfiguration,
    merge,
    merge_all,
)
from .exact import ExactCounter
from .utils import read_lines

__all__ = [
    'AbstractSketch',
    'HyperLogLog',
    'IdentityHyperLogLog',
    'InvalidConfiguration',
    'IncompatibleConfiguration',
    'merge',
    'merge_all',
    'ExactCounter',
    'read_lines'
]
