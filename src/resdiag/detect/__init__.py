"""Provide the statistical checks applied to residual series.

This subpackage groups the per-series routines used by
:func:`resdiag.pipeline.run_runs_test`.

See Also:
    resdiag.pipeline.run_runs_test: Pipeline entry point that calls these.
    resdiag.detect.control_limits: 3-sigma limits from moving ranges.
    resdiag.detect.runs_test: Runs test for sign patterns.
"""

from resdiag.detect.control_limits import annotate_control_limits, flag_extreme, sigma3_limits
from resdiag.detect.runs_test import RunsOutcome, RunsTestResult, runs_sig3, runs_test

__all__ = [
    "annotate_control_limits",
    "flag_extreme",
    "sigma3_limits",
    "RunsOutcome",
    "RunsTestResult",
    "runs_sig3",
    "runs_test",
]
