"""Build tidy per-group residual tables from model-output tables.

Model output arrives as a table with one row per observation: a group
(fleet or survey) name, the observation time, and the observed and expected
values. This module normalizes the column names, computes log residuals and
resolves group selections. Rows whose residual is undefined are dropped
rather than kept as NaN.

See Also:
    resdiag.pipeline.run_runs_test: Consumes the tidy residual table.
"""

from __future__ import annotations
from collections.abc import Sequence
from pathlib import Path

import numpy as np
import pandas as pd

from resdiag.config import DataType

COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "group": ("group", "Fleet_name", "fleet_name", "Name", "name", "Index", "index"),
    "year": ("year", "Yr", "yr", "Year"),
    "time": ("time", "Time"),
    "obs": ("obs", "Obs", "observed"),
    "exp": ("exp", "Exp", "expected"),
    "like": ("like", "Like"),
    "season": ("season", "Seas", "seas", "Season"),
    "resid": ("resid", "residuals", "residual"),
}
"""Accepted source names for each tidy column, in order of preference."""


def load_table(path: str | Path) -> pd.DataFrame:
    """Read a CSV observation table.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(str(path))
    return pd.read_csv(path)


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename known model-output columns to the tidy names.

    The first alias found for each tidy column wins. When no time column
    exists the year is used as time, and vice versa.

    Args:
        df (pandas.DataFrame): Model-output table.

    Returns:
        pandas.DataFrame: Copy with tidy column names.

    Raises:
        ValueError: If no group column can be found.

    Examples:
        >>> out = normalize_columns(pd.DataFrame({"Name": ["S1"], "Yr": [2000], "Obs": [1.0], "Exp": [1.0]}))
        >>> sorted(out.columns)
        ['exp', 'group', 'obs', 'time', 'year']
    """
    out = df.copy()
    renames: dict[str, str] = {}
    for tidy, aliases in COLUMN_ALIASES.items():
        if tidy in out.columns:
            continue
        for alias in aliases:
            if alias in out.columns and alias not in renames:
                renames[alias] = tidy
                break
    out = out.rename(columns=renames)

    if "group" not in out.columns:
        raise ValueError("No group column found (expected one of: " + ", ".join(COLUMN_ALIASES["group"]) + ")")
    if "time" not in out.columns and "year" in out.columns:
        out["time"] = out["year"]
    if "year" not in out.columns and "time" in out.columns:
        out["year"] = np.floor(pd.to_numeric(out["time"], errors="coerce"))
    return out


def compute_log_residuals(
    df: pd.DataFrame,
    *,
    data_type: DataType | str = DataType.CPUE,
    dropna: bool = True,
) -> pd.DataFrame:
    """Add ``resid = log(obs) - log(exp)`` and drop undefined rows.

    A residual is defined only where both ``obs`` and ``exp`` are present
    and positive. For index (``cpue``) data it is also undefined where a
    ``like`` column exists and is missing, i.e. the point was not fitted.
    If the table already carries a ``resid`` column and no ``obs``/``exp``,
    it is used as is.

    Args:
        df (pandas.DataFrame): Table with tidy column names.
        data_type (DataType | str): Observation category.
        dropna (bool): If True, drop rows with an undefined residual.

    Returns:
        pandas.DataFrame: Copy with a ``resid`` column.

    Raises:
        ValueError: If neither ``obs``/``exp`` nor ``resid`` are present.

    Examples:
        >>> df = pd.DataFrame({"group": ["A", "A"], "time": [1, 2], "obs": [1.0, None], "exp": [1.0, 2.0]})
        >>> compute_log_residuals(df)["resid"].tolist()
        [0.0]
    """
    out = normalize_columns(df)
    data_type = DataType.parse(data_type)

    if "obs" in out.columns and "exp" in out.columns:
        obs = pd.to_numeric(out["obs"], errors="coerce").to_numpy(dtype=float)
        exp = pd.to_numeric(out["exp"], errors="coerce").to_numpy(dtype=float)
        good = np.isfinite(obs) & np.isfinite(exp) & (obs > 0) & (exp > 0)
        if data_type is DataType.CPUE and "like" in out.columns:
            good &= out["like"].notna().to_numpy()
        resid = np.full(len(out), np.nan)
        resid[good] = np.log(obs[good]) - np.log(exp[good])
        out["resid"] = resid
    elif "resid" in out.columns:
        out["resid"] = pd.to_numeric(out["resid"], errors="coerce")
    else:
        raise ValueError("Table needs obs/exp columns or a resid column")

    if dropna:
        out = out.loc[np.isfinite(out["resid"].to_numpy(dtype=float))]
    return out


def group_order(df: pd.DataFrame, group_col: str = "group") -> list:
    """Return group names in first-seen order."""
    return list(pd.unique(df[group_col]))


def select_groups(
    groups: Sequence,
    selection: Sequence | None,
) -> list:
    """Resolve a group selection against the available groups.

    Args:
        groups (Sequence): Available groups in first-seen order.
        selection (Sequence | None): None for all groups, or a sequence of
            0-based integer positions into ``groups`` or group names. An
            integer is always a position, even when the groups themselves
            are integers; any other value is matched as a name.

    Returns:
        list: Selected group names, in the order of ``groups``.

    Raises:
        ValueError: If a position is out of range or a name is unknown.

    Examples:
        >>> select_groups(["A", "B", "C"], [2, 0])
        ['A', 'C']
        >>> select_groups([10, 20, 30], [1])
        [20]
    """
    groups = list(groups)
    if selection is None:
        return groups

    chosen = set()
    bad = []
    for item in selection:
        if isinstance(item, (int, np.integer)) and not isinstance(item, bool):
            if 0 <= int(item) < len(groups):
                chosen.add(groups[int(item)])
            else:
                bad.append(item)
        elif item in groups:
            chosen.add(item)
        else:
            bad.append(item)
    if bad:
        raise ValueError(
            f"One or more group selections exceed the {len(groups)} available groups: {bad}"
        )
    return [g for g in groups if g in chosen]
