"""
Parameter estimation for bloom filters
"""

import math
from typing import Tuple

from .exceptions import InvalidParameterError

LN2 = math.log(2)


def estimate_parameters(n: int, p: float) -> Tuple[int, int]:
    """
    Estimate bit-array size and hash-function count.

    Uses the usual sizing formulas:
        m = ceil(-n * ln(p) / ln(2)^2)
        k = ceil((m / n) * ln(2))

    Args:
        n: Expected number of elements (must be positive)
        p: Target false positive rate, strictly between 0 and 1

    Returns:
        Tuple of (m, k)

    Example:
        >>> estimate_parameters(100, 0.1)
        (480, 4)
    """
    if isinstance(n, bool) or not isinstance(n, int) or n <= 0:
        raise InvalidParameterError(f"expected count must be a positive integer, got {n!r}")
    if not 0.0 < p < 1.0:
        raise InvalidParameterError(f"false positive rate must be in (0, 1), got {p!r}")

    m = max(1, math.ceil(-n * math.log(p) / (LN2 * LN2)))
    k = max(1, math.ceil((m / n) * LN2))
    return m, k


def false_positive_rate(m: int, k: int, n: int) -> float:
    """Theoretical false positive rate (1 - e^(-kn/m))^k after n insertions."""
    if n <= 0:
        return 0.0
    return (1.0 - math.exp(-k * n / m)) ** k
