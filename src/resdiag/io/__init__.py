"""Provide IO helpers for residual diagnostics.

See Also:
    resdiag.io.residuals: Column normalization, log residuals and group
        selection.
"""
