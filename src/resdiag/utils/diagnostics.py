"""Provide diagnostics helpers for result tables.

Summaries are printed in a human-readable form. Plotting is intentionally
kept out of this module to keep dependencies minimal; plotting code can
consume :func:`resdiag.pipeline.runs_points` directly.

See Also:
    resdiag.utils.logging: Logging helpers used for summaries.
    resdiag.pipeline.run_runs_test: Produces the runs-test table.
    resdiag.hindcast.mase.score_mase: Produces the MASE table.
"""

from __future__ import annotations
import numpy as np
import pandas as pd
from resdiag.config import DataType
from resdiag.utils.logging import info, warn


def summarize_runs(table: pd.DataFrame) -> dict[str, int]:
    """Log a compact summary of a runs-test table.

    Args:
        table (pandas.DataFrame): Output of
            :func:`resdiag.pipeline.run_runs_test`.

    Returns:
        dict[str, int]: Counts of ``Passed``, ``Failed`` and ``Excluded``
        groups.

    Examples:
        >>> import pandas as pd
        >>> summarize_runs(pd.DataFrame({"test": ["Passed", "Excluded"]}))["Passed"]
        1
    """
    counts = {k: int((table.get("test", pd.Series(dtype=object)) == k).sum())
              for k in ("Passed", "Failed", "Excluded")}
    if "type" in table.columns and len(table):
        label = DataType.parse(table["type"].iloc[0]).label
        info(f"Residual runs test stats by {label}:")
    info(f"Groups: {len(table)} (passed {counts['Passed']}, failed {counts['Failed']}, excluded {counts['Excluded']})")
    if len(table):
        info(table.to_string(index=False))
    if counts["Failed"]:
        failed = table.loc[table["test"] == "Failed", "group"].astype(str).tolist()
        warn(f"Non-random residuals for: {', '.join(failed)}")
    return counts


def summarize_mase(table: pd.DataFrame) -> None:
    """Log a MASE table and flag groups scoring worse than the naive forecast.

    Notes:
        ``mase_adj`` is used for the flag so that nearly flat series are not
        reported as skill-less.
    """
    if table.empty:
        warn("No MASE scores to summarize.")
        return
    info("Hindcast MASE by group:")
    info(table.to_string(index=False))
    adj = pd.to_numeric(table["mase_adj"], errors="coerce").to_numpy(dtype=float)
    worse = table.loc[np.isfinite(adj) & (adj > 1.0), "group"].astype(str).tolist()
    if worse:
        warn(f"No prediction skill beyond the naive forecast (MASE_adj > 1): {', '.join(worse)}")
