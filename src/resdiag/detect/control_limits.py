"""Estimate 3-sigma process-control limits for residual series.

The spread of a residual series is estimated from the average moving range
of consecutive values, a robust individuals-chart estimator. Moving ranges
at or above ``D4 * mean`` are treated as special-cause variation and
removed before the final estimate (Nelson, 1982), and the average range is
unbiased with ``d2`` for subgroups of two (Montgomery, eq. 6.33).

See Also:
    resdiag.detect.runs_test.runs_sig3: Combines limits with the runs test.
    resdiag.pipeline.runs_points: Per-point band classification per group.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

D4_N2 = 3.267
"""Upper moving-range control-chart constant for subgroups of two."""

D2_N2 = 1.128
"""Range-to-sigma unbiasing constant for subgroups of two."""


def moving_ranges(x: np.ndarray, center: float = 0.0) -> np.ndarray:
    """Return absolute first differences of ``x - center``.

    Non-finite entries are dropped before differencing, so a missing value
    does not break the series into two.

    Examples:
        >>> moving_ranges(np.array([0.1, -0.1, np.nan, 0.2])).round(3)
        array([0.2, 0.3])
    """
    y = np.asarray(x, dtype=float)
    y = y[np.isfinite(y)] - float(center)
    if y.size < 2:
        return np.zeros(0, dtype=float)
    return np.abs(np.diff(y))


def sigma3_limits(x: np.ndarray, center: float = 0.0) -> tuple[float, float]:
    """Compute lower and upper 3-sigma control limits around ``center``.

    Steps:
        1. Moving ranges of the centered, finite values.
        2. Average moving range ``amr``.
        3. Drop ranges ``>= 3.267 * amr`` and recompute ``amr``.
        4. ``sigma = amr / 1.128`` and limits ``center -/+ 3 * sigma``.

    Args:
        x (numpy.ndarray): Residual values; time ordering is assumed.
        center (float): Center line of the band.

    Returns:
        tuple[float, float]: ``(lower, upper)``.

    Notes:
        If no moving range survives trimming (constant or too-short series)
        the spread is taken as zero and both limits equal ``center``.

    Examples:
        >>> lo, hi = sigma3_limits(np.array([0.1, -0.1] * 4))
        >>> round(hi, 3)
        0.532
    """
    mr = moving_ranges(x, center)
    if mr.size == 0:
        return float(center), float(center)

    amr = float(np.mean(mr))
    kept = mr[mr < D4_N2 * amr]
    amr = float(np.mean(kept)) if kept.size else 0.0

    stdev = amr / D2_N2
    return float(center - 3.0 * stdev), float(center + 3.0 * stdev)


def flag_extreme(x: np.ndarray, limits: tuple[float, float]) -> np.ndarray:
    """Return True where a value falls strictly outside ``limits``.

    Missing values are never extreme.

    Examples:
        >>> flag_extreme(np.array([-1.0, 0.0, 1.0, np.nan]), (-0.5, 0.5))
        array([ True, False,  True, False])
    """
    y = np.asarray(x, dtype=float)
    lo, hi = limits
    out = np.zeros(y.shape, dtype=bool)
    good = np.isfinite(y)
    out[good] = (y[good] < lo) | (y[good] > hi)
    return out


def annotate_control_limits(
    df: pd.DataFrame,
    limits: tuple[float, float],
    *,
    resid_col: str = "resid",
    prefix: str = "sigma3",
) -> pd.DataFrame:
    """Attach control limits and an ``extreme`` flag to each row.

    Adds columns: <prefix>_lo, <prefix>_hi, extreme
    """
    out = df.copy()
    lo, hi = limits
    out[f"{prefix}_lo"] = float(lo)
    out[f"{prefix}_hi"] = float(hi)
    if resid_col not in out.columns:
        out["extreme"] = False
        return out
    y = pd.to_numeric(out[resid_col], errors="coerce").to_numpy(dtype=float)
    out["extreme"] = flag_extreme(y, limits)
    return out
