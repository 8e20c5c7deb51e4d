"""Provide hindcast prediction-skill scoring.

See Also:
    resdiag.hindcast.mase.score_mase: MASE per group across peels.
"""

from resdiag.hindcast.mase import mase_from_errors, score_mase

__all__ = ["mase_from_errors", "score_mase"]
