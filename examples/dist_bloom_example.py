#!/usr/bin/env python3
"""
DistBloomFilter Usage Example

Shows two nodes building the same filter independently from a shared seed,
comparing their sparse exports and merging them.
"""
from distbloom import DistBloomFilter, joint_seed
import random
import string
import time


def generate_random_string(length=10):
    """Generate a random string for testing."""
    return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))


def basic_usage_example():
    """Demonstrate basic DistBloomFilter operations."""
    print("=== Basic DistBloomFilter Usage ===")

    dbf = DistBloomFilter(b"seed", expected_count=10, fp_rate=0.5)
    print(f"m={dbf.m}, k={dbf.k}")

    for item in ["something", "something else"]:
        print(f"Indices for '{item}': {dbf.get_element_indices(item)}")
        dbf.add(item)

    print(f"Set bits: {dbf.get_bit_indices()}")
    print(f"'something' in filter: {'something' in dbf}")
    print(f"Filter stats: {dbf.stats()}")
    print()


def independent_nodes_example():
    """Two nodes that never talk still produce identical filters."""
    print("=== Independent Nodes ===")

    # Each side keeps its own contribution; only the digests are exchanged
    seed = joint_seed(b"node-a-secret", b"node-b-secret")
    print(f"Joint seed: {seed.hex()}")

    node_a = DistBloomFilter(seed, expected_count=1000, fp_rate=0.01)
    node_b = DistBloomFilter(seed, expected_count=1000, fp_rate=0.01)

    shared = [f"user_{i}" for i in range(100)]
    for item in shared:
        node_a.add(item)
    for item in reversed(shared):
        node_b.add(item)

    print(f"Same bits on both nodes: {node_a.get_bit_indices() == node_b.get_bit_indices()}")

    only_b = [f"admin_{i}" for i in range(20)]
    for item in only_b:
        node_b.add(item)

    newly_set = node_a.merge_bit_indices(node_b.get_bit_indices())
    print(f"Merged node B into node A, {newly_set} new bits")
    print(f"Node A now contains 'admin_0': {'admin_0' in node_a}")
    print()


def false_positive_demonstration():
    """Compare measured false positives with the configured target."""
    print("=== False Positive Demonstration ===")

    dbf = DistBloomFilter(b"fp-demo", expected_count=5000, fp_rate=0.01)
    for i in range(5000):
        dbf.add(f"item_{i}")

    unknown_items = [f"unknown_{i}" for i in range(10000)]
    start_time = time.time()
    false_positives = sum(1 for item in unknown_items if item in dbf)
    lookup_time = time.time() - start_time

    print(f"Performed {len(unknown_items):,} lookups in {lookup_time:.3f} seconds")
    print(f"Actual false positive rate: {false_positives / len(unknown_items):.6f}")
    print(f"Estimated false positive rate: {dbf.estimated_false_positive_rate():.6f}")
    print()


def main():
    """Run all examples."""
    print("DistBloomFilter Examples\n")
    print("=" * 50)

    basic_usage_example()
    independent_nodes_example()
    false_positive_demonstration()

    print("=" * 50)
    print("Examples completed!")


if __name__ == "__main__":
    main()
