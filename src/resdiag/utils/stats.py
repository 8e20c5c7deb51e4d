"""Provide small statistical utilities without SciPy.

These helpers implement the normal-distribution tail probabilities needed
by the runs test. They intentionally avoid SciPy to keep dependencies
minimal.
"""

from __future__ import annotations
from math import erfc, sqrt


def norm_cdf(z: float) -> float:
    """Return ``P(Z <= z)`` for ``Z ~ N(0,1)``.

    Args:
        z: Standard-normal quantile.

    Returns:
        Lower-tail probability, or NaN if ``z`` is NaN.

    Notes:
        This function uses the complementary error function from the standard
        library to avoid SciPy. ``erfc`` keeps precision in the far tails.

    Examples:
        >>> round(norm_cdf(0.0), 6)
        0.5
        >>> round(norm_cdf(1.959964), 4)
        0.975
    """
    z = float(z)
    if z != z:
        return float("nan")
    return 0.5 * erfc(-z / sqrt(2.0))


def norm_sf(z: float) -> float:
    """Return ``P(Z >= z)`` for ``Z ~ N(0,1)``.

    Examples:
        >>> round(norm_sf(1.644854), 4)
        0.05
    """
    z = float(z)
    if z != z:
        return float("nan")
    return 0.5 * erfc(z / sqrt(2.0))
