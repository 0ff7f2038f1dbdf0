"""
basichll - HyperLogLog distinct-count estimation
"""

from basichll.lib.hyperloglog import (
    HyperLogLog,
    IdentityHyperLogLog,
    InvalidConfiguration,
    IncompatibleConfiguration,
    merge,
    merge_all,
)
from basichll.lib.exact import ExactCounter

__version__ = '0.1.0'

__all__ = [
    'HyperLogLog',
    'IdentityHyperLogLog',
    'InvalidConfiguration',
    'IncompatibleConfiguration',
    'merge',
    'merge_all',
    'ExactCounter'
]
