"""
DistBloomFilter - A bloom filter that independent parties can build identically

Two participants that share a seed and the same (m, k) set exactly the same
bits for the same elements, without talking to each other. That makes the
sparse bit-index export (get_bit_indices) enough to compare or merge filters
built on different nodes.
"""

import logging
import threading
from typing import Iterable, List, Optional

from .exceptions import (
    IncompatibleFilterError,
    IndexOutOfRangeError,
    InvalidParameterError,
)
from .hashing import BytesLike, _to_bytes, element_hashes, hashes_modulo, seed_hashes
from .params import estimate_parameters, false_positive_rate

logger = logging.getLogger(__name__)


class DistBloomFilter:
    """
    A deterministic, seed-derived bloom filter.

    Args:
        seed: Shared seed all cooperating nodes agree on
        expected_count: Expected number of elements
        fp_rate: Target false positive rate (0 < fp_rate < 1)

    Example:
        >>> dbf = DistBloomFilter(b"seed", expected_count=10, fp_rate=0.5)
        >>> dbf.add("something")
        True
        >>> dbf.might_contain("something")
        True
        >>> dbf.get_bit_indices()
        [11, 14]
    """

    def __init__(self, seed: BytesLike, expected_count: int, fp_rate: float):
        """
        Initialize the filter.

        Args:
            seed: Shared seed the base hashes are derived from
            expected_count: Expected number of elements
            fp_rate: Target false positive rate
        """
        m, k = estimate_parameters(expected_count, fp_rate)
        self._init_state(seed, m, k)
        logger.debug(
            "DistBloomFilter created: m=%d, k=%d, expected_count=%d, fp_rate=%.4f",
            m, k, expected_count, fp_rate,
        )

    @classmethod
    def from_parameters(cls, seed: BytesLike, m: int, k: int) -> 'DistBloomFilter':
        """
        Create a filter with an explicit bit-array size and hash count.

        Used to rebuild a filter from a stored snapshot, where (m, k) were
        already agreed on.
        """
        for name, value in (('m', m), ('k', k)):
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidParameterError(f"{name} must be a positive integer, got {value!r}")

        dbf = cls.__new__(cls)
        dbf._init_state(seed, m, k)
        return dbf

    def _init_state(self, seed: BytesLike, m: int, k: int):
        self.seed = _to_bytes(seed)
        self.m = m
        self.k = k
        self.base_hashes = tuple(seed_hashes(self.seed, k))

        # m bits, bit i lives at byte i // 8
        self.bits = bytearray((m + 7) // 8)

        # add() calls that set at least one new bit; after union() this is an
        # upper bound, since elements both filters saw are counted twice
        self.count = 0
        self._lock = threading.Lock()

    def _set_bit(self, index: int) -> bool:
        """Set a bit, returning True if it was previously clear."""
        if not 0 <= index < self.m:
            raise IndexOutOfRangeError(f"bit index {index} outside [0, {self.m})")
        mask = 1 << (index % 8)
        byte = self.bits[index // 8]
        if byte & mask:
            return False
        self.bits[index // 8] = byte | mask
        return True

    def _test_bit(self, index: int) -> bool:
        if not 0 <= index < self.m:
            raise IndexOutOfRangeError(f"bit index {index} outside [0, {self.m})")
        return bool(self.bits[index // 8] & (1 << (index % 8)))

    def get_element_indices(self, element: BytesLike) -> List[int]:
        """
        Compute the k bit positions for an element.

        Indices come back in hash-function order and may repeat when two
        hash functions land on the same bit.
        """
        return hashes_modulo(self.m, element_hashes(element, self.base_hashes))

    def add(self, element: BytesLike) -> bool:
        """
        Add an element to the filter.

        Adding the same element again leaves the bits unchanged.

        Args:
            element: Element to add (bytes or string)

        Returns:
            True if at least one bit was newly set, False otherwise

        Example:
            >>> dbf = DistBloomFilter("2", expected_count=11, fp_rate=0.2)
            >>> dbf.add("message")
            True
            >>> dbf.add("message")
            False
        """
        indices = self.get_element_indices(element)
        with self._lock:
            changed = False
            for index in indices:
                if self._set_bit(index):
                    changed = True
            if changed:
                self.count += 1
            return changed

    def might_contain(self, element: BytesLike) -> bool:
        """
        Check if an element might be in the filter.

        Returns:
            True if the element might be in the set (could be false positive)
            False if the element is definitely not in the set
        """
        indices = self.get_element_indices(element)
        with self._lock:
            return all(self._test_bit(index) for index in indices)

    def get_bit_indices(self) -> List[int]:
        """Ascending list of the positions of all set bits."""
        with self._lock:
            indices = []
            for byte_index, byte in enumerate(self.bits):
                if not byte:
                    continue
                base = byte_index * 8
                for offset in range(8):
                    if byte & (1 << offset):
                        indices.append(base + offset)
            return indices

    def merge_bit_indices(self, indices: Iterable[int]) -> int:
        """
        OR a sparse bit-index export from a peer filter into this one.

        The peer must have been built with the same seed, m and k for the
        result to mean anything.

        Returns:
            Number of bits that were newly set
        """
        indices = list(indices)
        for index in indices:
            if isinstance(index, bool) or not isinstance(index, int):
                raise IndexOutOfRangeError(f"bit index {index!r} is not an integer")
            if not 0 <= index < self.m:
                raise IndexOutOfRangeError(f"bit index {index} outside [0, {self.m})")

        with self._lock:
            newly_set = sum(1 for index in indices if self._set_bit(index))

        logger.debug("Merged %d indices into filter, %d new bits", len(indices), newly_set)
        return newly_set

    def is_compatible(self, other: 'DistBloomFilter') -> bool:
        """True if both filters share seed, m and k."""
        return (self.seed == other.seed and
                self.m == other.m and
                self.k == other.k)

    def bit_count(self) -> int:
        """Number of bits currently set."""
        with self._lock:
            return sum(bin(byte).count('1') for byte in self.bits)

    def estimated_false_positive_rate(self) -> float:
        """
        Estimate current false positive rate.

        Uses the fraction of bits currently set, (set_bits / m) ^ k, so it
        stays accurate after union or merge_bit_indices, where count is only
        an upper bound on the number of distinct elements.
        """
        return (self.bit_count() / self.m) ** self.k

    def stats(self) -> dict:
        """
        Get filter statistics.

        Returns:
            Dictionary with size, hash count, element count, set bits, fill
            ratio, the fill-based false positive estimate and the theoretical
            rate for count elements (pessimistic once count is an upper bound).
        """
        set_bits = self.bit_count()
        return {
            'm': self.m,
            'k': self.k,
            'count': self.count,
            'set_bits': set_bits,
            'fill_ratio': set_bits / self.m,
            'estimated_fpr': self.estimated_false_positive_rate(),
            'theoretical_fpr': false_positive_rate(self.m, self.k, self.count),
        }

    def copy(self) -> 'DistBloomFilter':
        """Create a copy of the filter."""
        new_filter = DistBloomFilter.from_parameters(self.seed, self.m, self.k)
        with self._lock:
            new_filter.bits = bytearray(self.bits)
            new_filter.count = self.count
        return new_filter

    def union(self, other: 'DistBloomFilter') -> 'DistBloomFilter':
        """
        Create union of two distributed bloom filters.

        Both filters must share seed, m and k; the result contains every
        element either filter contains. Its count is the sum of both counts,
        an upper bound when the filters saw some of the same elements.
        """
        if not self.is_compatible(other):
            raise IncompatibleFilterError(
                f"cannot union filters with (m={self.m}, k={self.k}) and "
                f"(m={other.m}, k={other.k}) or different seeds"
            )

        result = self.copy()
        with other._lock:
            other_bits = bytes(other.bits)
            other_count = other.count
        with result._lock:
            result.bits = bytearray(a | b for a, b in zip(result.bits, other_bits))
            result.count += other_count
        return result

    def __contains__(self, element: BytesLike) -> bool:
        """Support 'in' operator."""
        return self.might_contain(element)

    def __len__(self) -> int:
        """Return number of elements added to the filter."""
        return self.count

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DistBloomFilter):
            return NotImplemented
        return self.is_compatible(other) and self.get_bit_indices() == other.get_bit_indices()

    __hash__ = None

    def __repr__(self) -> str:
        """String representation of the filter."""
        stats = self.stats()
        return (f"DistBloomFilter(m={stats['m']}, k={stats['k']}, "
                f"count={stats['count']}, "
                f"fill_ratio={stats['fill_ratio']:.3f})")


def from_bit_indices(seed: BytesLike, m: int, k: int,
                     indices: Iterable[int],
                     count: Optional[int] = None) -> DistBloomFilter:
    """Rebuild a filter from a sparse bit-index snapshot."""
    dbf = DistBloomFilter.from_parameters(seed, m, k)
    dbf.merge_bit_indices(indices)
    if count is not None:
        dbf.count = count
    return dbf
