"""
Deterministic hash derivation for distributed bloom filters.

Every participant that shares a seed derives the same k base hashes, and
from them the same k bit positions for any element. Nothing here keeps
state, so all functions are safe to call from multiple threads.
"""

import hashlib
from typing import List, Sequence, Union

from .exceptions import DistBloomError, InvalidParameterError, LengthMismatchError

DIGEST_SIZE = hashlib.sha256().digest_size

BytesLike = Union[bytes, bytearray, memoryview, str]


def _to_bytes(data: BytesLike) -> bytes:
    """Normalize input to bytes (str is UTF-8 encoded)."""
    if isinstance(data, str):
        return data.encode('utf-8')
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"expected bytes or str, got {type(data).__name__}")


def _encode_index(i: int) -> bytes:
    return i.to_bytes(4, byteorder='big')


def digest(data: BytesLike) -> bytes:
    """SHA-256 digest of data."""
    return hashlib.sha256(_to_bytes(data)).digest()


def seed_hashes(seed: BytesLike, k: int) -> List[bytes]:
    """
    Derive the k base hashes of a filter from its seed.

    Base hash i is SHA-256(seed || uint32_be(i)).

    Args:
        seed: Shared seed
        k: Number of hash functions

    Returns:
        List of k distinct 32-byte digests, in hash-function order
    """
    if isinstance(k, bool) or not isinstance(k, int) or k <= 0:
        raise InvalidParameterError(f"k must be a positive integer, got {k!r}")

    seed = _to_bytes(seed)
    hashes = [hashlib.sha256(seed + _encode_index(i)).digest() for i in range(k)]

    if len(set(hashes)) != k:
        raise DistBloomError("seed hashes are not pairwise distinct")
    return hashes


def combine(a: bytes, b: bytes) -> bytes:
    """
    Byte-wise XOR of two equal-length digests.

    Commutative, associative and self-inverse: combine(a, a) is all zeros.

    Example:
        >>> combine(b"\\x0f\\xf0", b"\\xff\\xff")
        b'\\xf0\\x0f'
    """
    if len(a) != len(b):
        raise LengthMismatchError(
            f"cannot combine digests of length {len(a)} and {len(b)}"
        )
    return bytes(x ^ y for x, y in zip(a, b))


def joint_seed(*contributions: BytesLike) -> bytes:
    """
    Derive a shared seed from independently generated contributions.

    Each contribution is hashed and the digests are combined, so the
    result does not depend on the order the contributions arrive in.
    """
    if not contributions:
        raise InvalidParameterError("joint_seed needs at least one contribution")

    result = bytes(DIGEST_SIZE)
    for contribution in contributions:
        result = combine(result, digest(contribution))
    return result


def element_hashes(element: BytesLike, base_hashes: Sequence[bytes]) -> List[bytes]:
    """
    Derive the k element-specific digests for an element.

    new_i = base_hashes[i] XOR SHA-256(SHA-256(element) || uint32_be(i))

    Args:
        element: Element to hash
        base_hashes: The filter's base hashes (see seed_hashes)

    Returns:
        List of k distinct digests, each different from its base hash
    """
    element_digest = digest(element)
    hashes = []
    for i, base in enumerate(base_hashes):
        mixed = hashlib.sha256(element_digest + _encode_index(i)).digest()
        new_hash = combine(base, mixed)
        if new_hash == base:
            raise DistBloomError(f"element hash {i} equals its base hash")
        hashes.append(new_hash)

    if len(set(hashes)) != len(hashes):
        raise DistBloomError("element hashes are not pairwise distinct")
    return hashes


def to_index(digest: bytes, m: int) -> int:
    """Reduce a digest, read as a big-endian integer, modulo m."""
    if m <= 0:
        raise InvalidParameterError(f"m must be positive, got {m!r}")
    return int.from_bytes(digest, byteorder='big') % m


def hashes_modulo(m: int, digests: Sequence[bytes]) -> List[int]:
    """Map each digest to a bit index in [0, m), preserving order."""
    return [to_index(d, m) for d in digests]
