"""
distbloom - Deterministic bloom filters that independent nodes build identically
"""

from .admin import setup_store
from .bloom_filter import DistBloomFilter, from_bit_indices
from .exceptions import (
    DistBloomError,
    IncompatibleFilterError,
    IndexOutOfRangeError,
    InvalidParameterError,
    LengthMismatchError,
)
from .hashing import combine, element_hashes, joint_seed, seed_hashes, to_index
from .params import estimate_parameters
from .store import FilterStore

__version__ = "0.1.0"
__all__ = ["DistBloomFilter",
            "FilterStore",
            "setup_store",
            "from_bit_indices",
            "estimate_parameters",
            "seed_hashes",
            "element_hashes",
            "to_index",
            "combine",
            "joint_seed",
            "DistBloomError",
            "InvalidParameterError",
            "LengthMismatchError",
            "IndexOutOfRangeError",
            "IncompatibleFilterError"]
