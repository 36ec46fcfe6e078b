"""
Exceptions raised by distbloom
"""


class DistBloomError(Exception):
    """Base class for all distbloom errors."""


class InvalidParameterError(DistBloomError, ValueError):
    """Filter parameters (n, p, m or k) outside their valid range."""


class LengthMismatchError(DistBloomError, ValueError):
    """Two digests of different length were combined."""


class IndexOutOfRangeError(DistBloomError, IndexError):
    """A bit index fell outside [0, m)."""


class IncompatibleFilterError(DistBloomError, ValueError):
    """Filters built from different seeds or parameters were merged."""
