"""Score hindcast prediction skill with the mean absolute scaled error.

A hindcast peel is a refit of the model with the most recent observations
withheld. Each peel predicts the withheld observations; the log-scale
prediction residuals are compared to those of a naive persistence forecast
that carries the peel's last in-sample observation forward.

``MASE < 1`` means the model predicts the withheld data better than the
naive forecast. Because a nearly flat observation series makes the naive
error tiny and the ratio unstable, ``MASE_adj`` divides by
``max(MAE_base, mae_base_adj)`` instead.

See Also:
    resdiag.config.MaseConfig: Scoring options.
"""

from __future__ import annotations
from collections.abc import Sequence

import numpy as np
import pandas as pd

from resdiag.config import MaseConfig
from resdiag.io.residuals import group_order, normalize_columns, select_groups
from resdiag.utils.logging import info, warn

MASE_COLUMNS = ["group", "season", "mase", "mae_pr", "mae_base", "mase_adj", "n_eval"]
"""Column order of the MASE summary table."""

RESIDUAL_COLUMNS = ["group", "season", "peel", "time", "pred_resid", "naive_resid"]
"""Column order of the per-point hindcast residual table."""

_HINDCAST_ALIASES = {
    "pred": ("pred", "predicted", "exp", "Exp"),
    "peel": ("peel", "endyr", "end_year", "Peel"),
}


def mase_from_errors(
    pred_resid: np.ndarray,
    naive_resid: np.ndarray,
    *,
    mae_base_adj: float = 0.1,
) -> dict[str, float]:
    """Compute MASE statistics from prediction and naive residuals.

    Args:
        pred_resid (numpy.ndarray): Log-scale prediction residuals.
        naive_resid (numpy.ndarray): Log-scale naive-forecast residuals.
        mae_base_adj (float): Floor for the naive MAE in ``mase_adj``.

    Returns:
        dict[str, float]: ``mase``, ``mae_pr``, ``mae_base``, ``mase_adj``
        and ``n_eval`` (count of finite prediction residuals).

    Notes:
        ``mase`` is ``inf`` when the naive MAE is exactly zero; all
        statistics are NaN when there is nothing to evaluate.

    Examples:
        >>> out = mase_from_errors(np.array([0.08, -0.08]), np.array([0.05, 0.05]))
        >>> round(out["mase"], 3), round(out["mase_adj"], 3)
        (1.6, 0.8)
    """
    pr = np.asarray(pred_resid, dtype=float)
    pr = pr[np.isfinite(pr)]
    nv = np.asarray(naive_resid, dtype=float)
    nv = nv[np.isfinite(nv)]

    n_eval = int(pr.size)
    if n_eval == 0 or nv.size == 0:
        return {"mase": np.nan, "mae_pr": float(np.mean(np.abs(pr))) if n_eval else np.nan,
                "mae_base": np.nan, "mase_adj": np.nan, "n_eval": n_eval}

    mae_pr = float(np.mean(np.abs(pr)))
    mae_base = float(np.mean(np.abs(nv)))
    mase = mae_pr / mae_base if mae_base > 0 else np.inf
    floor = max(mae_base, float(mae_base_adj))
    mase_adj = mae_pr / floor if floor > 0 else np.inf
    return {"mase": mase, "mae_pr": mae_pr, "mae_base": mae_base, "mase_adj": mase_adj, "n_eval": n_eval}


def _normalize_hindcasts(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    for tidy, aliases in _HINDCAST_ALIASES.items():
        if tidy in out.columns:
            continue
        for alias in aliases:
            if alias in out.columns:
                out = out.rename(columns={alias: tidy})
                break
    out = normalize_columns(out)
    missing = [c for c in ("peel", "time", "pred") if c not in out.columns]
    if missing:
        raise ValueError(f"Hindcast table is missing columns: {missing}")
    return out


def _positive(values: pd.Series) -> np.ndarray:
    v = pd.to_numeric(values, errors="coerce").to_numpy(dtype=float)
    return np.where(np.isfinite(v) & (v > 0), v, np.nan)


def _peel_residuals(
    obs: pd.DataFrame,
    hc: pd.DataFrame,
    peel: float,
    horizon: float,
) -> pd.DataFrame:
    """Prediction and naive residuals for the withheld points of one peel."""
    t_obs = obs["time"].to_numpy(dtype=float)
    y_obs = obs["obs"].to_numpy(dtype=float)

    in_sample = t_obs <= peel
    anchor = np.log(y_obs[in_sample][-1]) if np.any(in_sample) else np.nan

    h = hc.loc[(hc["peel"] == peel) & (hc["time"] > peel) & (hc["time"] <= peel + horizon)]
    h = h.loc[np.isfinite(h["pred"].to_numpy(dtype=float))]
    lookup = dict(zip(t_obs, y_obs))
    rows = []
    for t, pred in zip(h["time"].to_numpy(dtype=float), h["pred"].to_numpy(dtype=float)):
        y = lookup.get(t)
        if y is None:
            continue
        rows.append({
            "peel": peel,
            "time": t,
            "pred_resid": float(np.log(y) - np.log(pred)),
            "naive_resid": float(np.log(y) - anchor),
        })
    return pd.DataFrame(rows, columns=["peel", "time", "pred_resid", "naive_resid"])


def score_mase(
    obs: pd.DataFrame,
    hindcasts: pd.DataFrame,
    *,
    cfg: MaseConfig = MaseConfig(),
    groups: Sequence | None = None,
    return_residuals: bool = False,
    verbose: bool = True,
) -> pd.DataFrame | tuple[pd.DataFrame, pd.DataFrame]:
    """Compute MASE for each group (and season) across hindcast peels.

    For each peel with terminal time ``p``, every withheld time ``t`` with
    ``p < t <= p + cfg.horizon`` that has both a positive observation and a
    positive prediction contributes:

    - ``pred_resid = log(obs[t]) - log(pred[t])``
    - ``naive_resid = log(obs[t]) - log(obs[s])`` where ``s`` is the last
      observation time ``<= p`` (the persistence forecast).

    Args:
        obs (pandas.DataFrame): Reference observations with group, time and
            ``obs`` columns (``Fleet_name``/``Yr``/``Obs`` also accepted) and
            an optional season column.
        hindcasts (pandas.DataFrame): Peel predictions with group, ``peel``
            (terminal time of the truncated fit), time and ``pred`` columns.
        cfg (MaseConfig): Scoring options.
        groups (Sequence | None): Optional subset of groups, as 0-based
            positions in first-seen order of ``obs`` or names.
        return_residuals (bool): If True, also return the per-point residual
            table.
        verbose (bool): If True, log progress and warnings.

    Returns:
        pandas.DataFrame | tuple[pandas.DataFrame, pandas.DataFrame]: The
        summary table with columns ``group``, ``season``, ``mase``,
        ``mae_pr``, ``mae_base``, ``mase_adj`` and ``n_eval``; with
        ``return_residuals`` also the residual table.

    Raises:
        ValueError: If required columns are missing or the group selection
            is invalid. Also raised when ``cfg.season`` is set but
            ``obs`` has no season column.

    Notes:
        Hindcasts without a season column are matched to every season of
        ``obs`` on time alone.
    """
    o = normalize_columns(obs)
    if "obs" not in o.columns or "time" not in o.columns:
        raise ValueError("Observation table needs group, time and obs columns")
    hc = _normalize_hindcasts(hindcasts)
    selected = select_groups(group_order(o), groups)

    o["obs"] = _positive(o["obs"])
    o["time"] = pd.to_numeric(o["time"], errors="coerce")
    o = o.loc[np.isfinite(o["obs"].to_numpy(dtype=float))].copy()
    hc["pred"] = _positive(hc["pred"])
    hc["time"] = pd.to_numeric(hc["time"], errors="coerce")
    hc["peel"] = pd.to_numeric(hc["peel"], errors="coerce")

    has_season = "season" in o.columns
    hc_has_season = "season" in hc.columns
    if cfg.season is not None:
        if not has_season:
            raise ValueError(f"Season {cfg.season!r} requested but the observation table has no season column")
        o = o.loc[o["season"] == cfg.season]
        if hc_has_season:
            hc = hc.loc[hc["season"] == cfg.season]
    if not has_season:
        o["season"] = None

    peels = sorted(set(hc["peel"].dropna().tolist()))
    if cfg.peels is not None:
        peels = [p for p in peels if p in set(cfg.peels)]
    if verbose:
        info(f"Scoring MASE for {len(selected)} groups over {len(peels)} peels")

    rows = []
    resid_tables = []
    for group in selected:
        og = o.loc[o["group"] == group]
        hg = hc.loc[hc["group"] == group]
        seasons = list(pd.unique(og["season"])) if has_season else [None]
        for season in seasons:
            os_ = og if season is None else og.loc[og["season"] == season]
            # unseasoned hindcasts are matched to each season on time alone
            hs = hg.loc[hg["season"] == season] if has_season and hc_has_season else hg
            os_ = os_.sort_values("time", kind="stable")

            parts = [_peel_residuals(os_, hs, p, float(cfg.horizon)) for p in peels]
            parts = [p for p in parts if not p.empty]
            res = pd.concat(parts, ignore_index=True) if parts else pd.DataFrame(
                columns=["peel", "time", "pred_resid", "naive_resid"]
            )
            if res.empty and verbose:
                warn(f"{group}: no observations in the hindcast evaluation period")

            stats = mase_from_errors(
                res["pred_resid"].to_numpy(dtype=float),
                res["naive_resid"].to_numpy(dtype=float),
                mae_base_adj=cfg.mae_base_adj,
            )
            rows.append({"group": group, "season": season, **stats})
            res.insert(0, "season", season)
            res.insert(0, "group", group)
            resid_tables.append(res)

    table = pd.DataFrame(rows, columns=MASE_COLUMNS)
    table["n_eval"] = table["n_eval"].astype(int)
    if not return_residuals:
        return table
    resid_table = (
        pd.concat(resid_tables, ignore_index=True)[RESIDUAL_COLUMNS]
        if resid_tables else pd.DataFrame(columns=RESIDUAL_COLUMNS)
    )
    return table, resid_table
