"""Run residual runs tests and 3-sigma limits per group.

The primary entry point is :func:`run_runs_test`, which performs the
standard residual diagnostic for one observation category:

1. Normalize model-output columns and compute log residuals.
2. Resolve the group selection.
3. For each group, in first-seen order, check admissibility (more than
   ``min_obs`` residuals and a time span greater than ``min_span``).
4. Compute the runs-test p-value and 3-sigma limits for admissible groups.
5. Classify each group as Passed, Failed or Excluded.

Per-group work is a pure function of that group's rows, so the loop is a
plain map followed by an ordered collect; output order never depends on
evaluation order.

:func:`runs_points` returns the per-observation view used for plotting:
every residual annotated with its group's limits and an ``extreme`` flag.

See Also:
    resdiag.io.residuals.compute_log_residuals: Residual definition.
    resdiag.detect.runs_test.runs_sig3: Per-series statistics.
    resdiag.detect.control_limits.annotate_control_limits: Point flags.
"""

from __future__ import annotations
from collections.abc import Sequence

import numpy as np
import pandas as pd

from resdiag.config import RunsConfig
from resdiag.detect.control_limits import annotate_control_limits
from resdiag.detect.runs_test import Sig3RunsResult, runs_sig3
from resdiag.io.residuals import compute_log_residuals, group_order, select_groups
from resdiag.utils.logging import info, warn

RUNS_COLUMNS = ["group", "runs_p", "test", "sigma3_lo", "sigma3_hi", "type"]
"""Column order of the runs-test summary table."""


def is_admissible(sub: pd.DataFrame, cfg: RunsConfig, *, time_col: str = "time") -> bool:
    """Return True if a group has enough residuals over a long enough span."""
    if len(sub) <= cfg.min_obs:
        return False
    t = pd.to_numeric(sub[time_col], errors="coerce").to_numpy(dtype=float)
    t = t[np.isfinite(t)]
    if t.size == 0:
        return False
    return float(t.max() - t.min()) > cfg.min_span


def _prepare(
    df: pd.DataFrame,
    cfg: RunsConfig,
    groups: Sequence | None,
) -> tuple[pd.DataFrame, list]:
    resid = compute_log_residuals(df, data_type=cfg.data_type, dropna=False).reset_index(drop=True)
    if "time" not in resid.columns:
        raise ValueError("Table needs a time or year column")
    selected = select_groups(group_order(resid), groups)
    resid = resid.loc[resid["group"].isin(selected)]
    resid = resid.loc[np.isfinite(resid["resid"].to_numpy(dtype=float))]
    resid = resid.sort_values("time", kind="stable")
    return resid, selected


def _diagnose_group(sub: pd.DataFrame, cfg: RunsConfig) -> Sig3RunsResult | None:
    if not is_admissible(sub, cfg):
        return None
    return runs_sig3(
        sub["resid"].to_numpy(dtype=float),
        kind=cfg.kind,
        mixing=cfg.mixing,
        fallback_p=cfg.fallback_p,
        digits=cfg.digits,
    )


def _classify(res: Sig3RunsResult | None, alpha: float) -> str:
    if res is None:
        return "Excluded"
    return "Failed" if res.p_value < alpha else "Passed"


def run_runs_test(
    df: pd.DataFrame,
    *,
    cfg: RunsConfig = RunsConfig(),
    groups: Sequence | None = None,
    verbose: bool = True,
) -> pd.DataFrame:
    """Compute runs-test p-values and 3-sigma limits for every group.

    Args:
        df (pandas.DataFrame): Model-output table with a group column, time,
            and either observed/expected values or precomputed residuals.
            Source column names such as ``Fleet_name``, ``Yr``, ``Obs`` and
            ``Exp`` are accepted.
        cfg (RunsConfig): Test configuration.
        groups (Sequence | None): Optional subset of groups, given as 0-based
            positions in first-seen order or as names.
        verbose (bool): If True, log progress and a note for each excluded
            group.

    Returns:
        pandas.DataFrame: One row per group with columns ``group``,
        ``runs_p``, ``test``, ``sigma3_lo``, ``sigma3_hi`` and ``type``.
        Excluded groups carry NaN in the numeric columns.

    Raises:
        ValueError: If the group selection is out of range or names an
            unknown group.

    Notes:
        ``test`` is ``Failed`` when ``runs_p < cfg.alpha`` (the residual signs
        are not random) and ``Passed`` otherwise. With the default
        ``mixing="less"`` only too few runs (positive autocorrelation) count
        as evidence against randomness.

    Examples:
        >>> import pandas as pd
        >>> df = pd.DataFrame({
        ...     "group": ["S1"] * 8,
        ...     "time": range(2000, 2008),
        ...     "resid": [0.1, -0.1] * 4,
        ... })
        >>> run_runs_test(df, cfg=RunsConfig(mixing="two.sided"), verbose=False)["test"].tolist()
        ['Failed']
    """
    if verbose:
        info(f"Computing residual runs tests for {cfg.data_type.label} ({cfg.mixing.value})")

    resid, selected = _prepare(df, cfg, groups)
    by_group = dict(tuple(resid.groupby("group", sort=False)))
    empty = resid.iloc[0:0]
    results = map(lambda g: _diagnose_group(by_group.get(g, empty), cfg), selected)

    rows = []
    for group, res in zip(selected, results):
        if res is None:
            if verbose:
                warn(f"{group}: excluded (needs > {cfg.min_obs} residuals spanning > {cfg.min_span:g} time units)")
            rows.append({"group": group, "runs_p": np.nan, "test": "Excluded",
                         "sigma3_lo": np.nan, "sigma3_hi": np.nan})
            continue
        rows.append({
            "group": group,
            "runs_p": res.p_value,
            "test": _classify(res, cfg.alpha),
            "sigma3_lo": res.lower,
            "sigma3_hi": res.upper,
        })

    table = pd.DataFrame(rows, columns=RUNS_COLUMNS[:-1])
    table["runs_p"] = table["runs_p"].astype(float)
    table["sigma3_lo"] = table["sigma3_lo"].astype(float)
    table["sigma3_hi"] = table["sigma3_hi"].astype(float)
    table["type"] = cfg.data_type.value
    return table[RUNS_COLUMNS]


def runs_points(
    df: pd.DataFrame,
    *,
    cfg: RunsConfig = RunsConfig(),
    groups: Sequence | None = None,
) -> pd.DataFrame:
    """Return every residual annotated with its group's 3-sigma band.

    Only admissible groups are included. Each row gains ``sigma3_lo``,
    ``sigma3_hi``, ``runs_p``, ``test`` and a boolean ``extreme`` that is
    True when the residual lies outside the band.

    Examples:
        >>> import pandas as pd
        >>> df = pd.DataFrame({"group": ["A"] * 6, "time": range(6),
        ...                    "resid": [0.1, -0.1, 0.1, -0.1, 0.1, 2.0]})
        >>> runs_points(df)["extreme"].tolist()
        [False, False, False, False, False, True]
    """
    resid, selected = _prepare(df, cfg, groups)
    out = []
    for _, sub in resid.groupby("group", sort=False):
        res = _diagnose_group(sub, cfg)
        if res is None:
            continue
        ann = annotate_control_limits(sub, (res.lower, res.upper), resid_col="resid")
        ann["runs_p"] = res.p_value
        ann["test"] = _classify(res, cfg.alpha)
        out.append(ann)

    if not out:
        cols = list(resid.columns) + ["sigma3_lo", "sigma3_hi", "extreme", "runs_p", "test"]
        return pd.DataFrame(columns=cols)

    order = {g: i for i, g in enumerate(selected)}
    pts = pd.concat(out, axis=0)
    pts["_order"] = pts["group"].map(order)
    pts = pts.sort_values(["_order", "time"], kind="stable").drop(columns="_order")
    return pts.reset_index(drop=True)
