"""Provide utility helpers for residual diagnostics.

Modules include logging helpers, result summaries, run-settings export and
small statistical routines that are reused across the package.

See Also:
    resdiag.pipeline.run_runs_test: Pipeline entry point using these helpers.
    resdiag.utils.stats: Statistical helpers.
    resdiag.utils.diagnostics: Summary utilities for result tables.
"""
