"""Provide residual diagnostics for fitted time-series models.

resdiag implements the residual checks routinely reported for
stock-assessment fits, but applies to any model that produces one residual
series per observation group (fleet, survey, data series).

Key capabilities include:
    - Log residuals from observed/expected tables, per group.
    - 3-sigma control limits from trimmed average moving ranges.
    - Runs tests for non-random residual sign patterns.
    - Per-group Passed/Failed/Excluded summary tables.
    - Hindcast prediction skill via the mean absolute scaled error (MASE).

Most users should start with :func:`resdiag.pipeline.run_runs_test`,
:func:`resdiag.hindcast.mase.score_mase` or the CLI entry point in
:mod:`resdiag.cli`.

See Also:
    resdiag.pipeline.run_runs_test: Per-group runs tests.
    resdiag.hindcast.mase.score_mase: Hindcast MASE scores.
    resdiag.cli.main: CLI entry point for batch or scripted runs.
"""

__all__ = []
