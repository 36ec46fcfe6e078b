"""
Tests for seed hashes, element hashes, the combiner and index mapping
"""

import hashlib
import random

import pytest

from distbloom import (
    DistBloomError,
    InvalidParameterError,
    LengthMismatchError,
    combine,
    element_hashes,
    joint_seed,
    seed_hashes,
    to_index,
)
from distbloom.hashing import DIGEST_SIZE, hashes_modulo

ZERO = bytes(DIGEST_SIZE)


def random_digest(rng):
    return bytes(rng.getrandbits(8) for _ in range(DIGEST_SIZE))


# ============================================================================
# Seed Hash Generator
# ============================================================================

def test_seed_hashes_count_and_uniqueness():
    hashes = seed_hashes(b"2", 10)
    assert len(hashes) == 10
    assert len(set(hashes)) == 10
    assert all(len(h) == DIGEST_SIZE for h in hashes)


@pytest.mark.parametrize("seed", [b"", b"2", b"3", b"seed", "unicode-é", bytes(range(256))])
@pytest.mark.parametrize("k", [1, 2, 7, 32])
def test_seed_hashes_deterministic(seed, k):
    first = seed_hashes(seed, k)
    second = seed_hashes(seed, k)
    assert first == second
    assert len(set(first)) == k


def test_seed_hashes_construction():
    hashes = seed_hashes(b"seed", 2)
    assert hashes[0] == hashlib.sha256(b"seed\x00\x00\x00\x00").digest()
    assert hashes[1] == hashlib.sha256(b"seed\x00\x00\x00\x01").digest()


def test_seed_hashes_str_and_bytes_agree():
    assert seed_hashes("seed", 4) == seed_hashes(b"seed", 4)


def test_seed_hashes_differ_between_seeds():
    assert set(seed_hashes(b"a", 5)).isdisjoint(seed_hashes(b"b", 5))


@pytest.mark.parametrize("k", [0, -1, True])
def test_seed_hashes_rejects_invalid_k(k):
    with pytest.raises(InvalidParameterError):
        seed_hashes(b"seed", k)


def test_seed_hashes_rejects_non_bytes_seed():
    with pytest.raises(TypeError):
        seed_hashes(12345, 3)


# ============================================================================
# Seed Combiner
# ============================================================================

def test_combine_differs_in_last_byte():
    a = b"12345678901234567890123456789012"
    b = b"12345678901234567890123456789011"
    c = b"12345678901234567890123456789013"
    assert combine(a, b) == bytes(31) + b"\x03"
    assert combine(a, c) == bytes(31) + b"\x01"


def test_combine_algebra():
    rng = random.Random(1234)
    for _ in range(50):
        a, b, c = random_digest(rng), random_digest(rng), random_digest(rng)
        assert combine(a, b) == combine(b, a)
        assert combine(a, a) == ZERO
        assert combine(combine(a, b), b) == a
        assert combine(combine(a, b), c) == combine(a, combine(b, c))
        assert combine(a, ZERO) == a


def test_combine_length_mismatch():
    with pytest.raises(LengthMismatchError):
        combine(b"\x00" * 32, b"\x00" * 31)


def test_joint_seed_is_order_independent():
    assert joint_seed(b"alice", b"bob") == joint_seed(b"bob", b"alice")
    assert joint_seed(b"alice", b"bob", b"carol") == joint_seed(b"carol", b"alice", b"bob")


def test_joint_seed_matches_combined_digests():
    expected = combine(hashlib.sha256(b"alice").digest(), hashlib.sha256(b"bob").digest())
    assert joint_seed(b"alice", b"bob") == expected


def test_joint_seed_requires_contribution():
    with pytest.raises(InvalidParameterError):
        joint_seed()


# ============================================================================
# Element Hasher
# ============================================================================

def test_element_hashes_change_and_stay_unique():
    base = seed_hashes(b"2", 10)
    hashes = element_hashes(b"message", base)

    assert len(hashes) == 10
    assert len(set(hashes)) == 10
    for old, new in zip(base, hashes):
        assert old != new
    assert set(hashes).isdisjoint(base)


def test_element_hashes_do_not_modify_base():
    base = seed_hashes(b"3", 10)
    snapshot = list(base)
    element_hashes(b"message", base)
    assert base == snapshot


def test_element_hashes_deterministic():
    base = seed_hashes(b"seed", 8)
    for element in (b"", b"a", "something", b"something else", bytes(1000)):
        assert element_hashes(element, base) == element_hashes(element, base)


def test_element_hashes_depend_on_element():
    base = seed_hashes(b"seed", 4)
    assert element_hashes(b"a", base) != element_hashes(b"b", base)


def test_element_hashes_construction():
    base = seed_hashes(b"seed", 1)
    element_digest = hashlib.sha256(b"something").digest()
    mixed = hashlib.sha256(element_digest + b"\x00\x00\x00\x00").digest()
    assert element_hashes(b"something", base) == [combine(base[0], mixed)]


def test_element_hashes_distinct_for_identical_bases():
    base = [ZERO, ZERO, ZERO]
    assert len(set(element_hashes(b"x", base))) == 3


def test_element_hashes_detect_unchanged_base(monkeypatch):
    import distbloom.hashing as hashing

    monkeypatch.setattr(hashing, "combine", lambda a, b: a)
    with pytest.raises(DistBloomError):
        hashing.element_hashes(b"x", seed_hashes(b"seed", 2))


# ============================================================================
# Index Mapper
# ============================================================================

def test_to_index_uses_full_digest():
    digest = b"\x01" + bytes(31)
    assert to_index(digest, 1000) == (1 << 248) % 1000


def test_to_index_range():
    rng = random.Random(99)
    for _ in range(200):
        d = random_digest(rng)
        m = rng.randint(1, 10 ** 6)
        assert 0 <= to_index(d, m) < m


def test_to_index_m_of_one():
    assert to_index(b"\xff" * 32, 1) == 0


@pytest.mark.parametrize("m", [0, -3])
def test_to_index_rejects_non_positive_m(m):
    with pytest.raises(InvalidParameterError):
        to_index(ZERO, m)


def test_hashes_modulo_preserves_order():
    base = seed_hashes(b"2", 10)
    digests = element_hashes(b"message", base)
    indices = hashes_modulo(100, digests)

    assert len(indices) == 10
    assert indices == [to_index(d, 100) for d in digests]
    assert all(i < 100 for i in indices)


def test_memoryview_input_matches_bytes():
    assert seed_hashes(memoryview(b"seed"), 3) == seed_hashes(b"seed", 3)
    base = seed_hashes(b"seed", 3)
    assert element_hashes(memoryview(b"something"), base) == element_hashes(b"something", base)
