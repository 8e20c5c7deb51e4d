"""Define configuration objects for residual diagnostics.

This module centralizes the tuning knobs used by the runs-test aggregator
and the hindcast MASE scorer. Defaults follow the conventions used for
stock-assessment residual diagnostics and are safe for annual index data.
Prefer constructing explicit config objects rather than scattering literals
across modules.

All configuration classes are frozen dataclasses, making them hashable and
safe to share across runs. Free-form option strings are validated into
enumerations when a config object is constructed.

See Also:
    resdiag.pipeline.run_runs_test: Consumes :class:`RunsConfig`.
    resdiag.hindcast.mase.score_mase: Consumes :class:`MaseConfig`.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class Mixing(str, Enum):
    """Alternative hypothesis for the runs test.

    ``less`` tests for too few runs (positive autocorrelation), ``greater``
    for too many runs (alternation), ``two.sided`` for either.

    Examples:
        >>> Mixing.parse("two.sided").alternative
        'two.sided'
    """
    LESS = "less"
    GREATER = "greater"
    TWO_SIDED = "two.sided"

    @classmethod
    def parse(cls, value: "Mixing | str") -> "Mixing":
        """Return the enum member for ``value`` or raise ``ValueError``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(f"mixing must be one of {choices}; got {value!r}") from None

    @property
    def alternative(self) -> str:
        """Name of the runs-test tail used for this mixing mode."""
        return _ALTERNATIVES[self]


_ALTERNATIVES = {
    Mixing.LESS: "left.sided",
    Mixing.GREATER: "right.sided",
    Mixing.TWO_SIDED: "two.sided",
}


class DataType(str, Enum):
    """Observation category whose residuals are diagnosed."""
    CPUE = "cpue"
    LEN = "len"
    AGE = "age"
    SIZE = "size"
    CON = "con"

    @classmethod
    def parse(cls, value: "DataType | str") -> "DataType":
        """Return the enum member for ``value`` or raise ``ValueError``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(f"data_type must be one of {choices}; got {value!r}") from None

    @property
    def label(self) -> str:
        """Human-readable label used in log messages."""
        return _DATA_LABELS[self]


_DATA_LABELS = {
    DataType.CPUE: "Index",
    DataType.LEN: "Mean length",
    DataType.AGE: "Mean age",
    DataType.SIZE: "Mean size",
    DataType.CON: "Conditional age-at-length",
}


class ResidualKind(str, Enum):
    """What the input values are: model residuals or raw observations."""
    RESID = "resid"
    OBSERVATIONS = "observations"

    @classmethod
    def parse(cls, value: "ResidualKind | str") -> "ResidualKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            raise ValueError(f"kind must be 'resid' or 'observations'; got {value!r}") from None


@dataclass(frozen=True)
class RunsConfig:
    """Configure per-group runs tests and 3-sigma limits.

    Attributes:
        mixing (Mixing | str): Alternative hypothesis, one of ``less``,
            ``greater`` or ``two.sided``.
        data_type (DataType | str): Observation category tag copied to the
            output ``type`` column.
        kind (ResidualKind | str): ``resid`` centers on 0, ``observations``
            centers on the series mean.
        min_obs (int): A group needs strictly more residuals than this.
        min_span (float): A group needs a time span strictly greater than
            this.
        alpha (float): P-values below this classify a group as ``Failed``.
        fallback_p (float): P-value reported when the test is degenerate.
        digits (int): Decimal places kept in the reported p-value.

    Notes:
        String options are converted to their enumerations on construction,
        so invalid values fail immediately.

    Examples:
        >>> RunsConfig(mixing="two.sided").mixing
        <Mixing.TWO_SIDED: 'two.sided'>
    """
    mixing: Mixing = Mixing.LESS
    data_type: DataType = DataType.CPUE
    kind: ResidualKind = ResidualKind.RESID
    min_obs: int = 3
    min_span: float = 3.0
    alpha: float = 0.05
    fallback_p: float = 0.001
    digits: int = 3

    def __post_init__(self) -> None:
        object.__setattr__(self, "mixing", Mixing.parse(self.mixing))
        object.__setattr__(self, "data_type", DataType.parse(self.data_type))
        object.__setattr__(self, "kind", ResidualKind.parse(self.kind))
        if not 0.0 < self.alpha < 1.0:
            raise ValueError(f"alpha must lie in (0, 1); got {self.alpha}")
        if not 0.0 < self.fallback_p <= 1.0:
            raise ValueError(f"fallback_p must lie in (0, 1]; got {self.fallback_p}")
        if self.min_obs < 1:
            raise ValueError(f"min_obs must be >= 1; got {self.min_obs}")


@dataclass(frozen=True)
class MaseConfig:
    """Configure hindcast MASE scoring.

    Attributes:
        mae_base_adj (float): Floor applied to the naive-baseline MAE when
            computing ``MASE_adj``.
        horizon (int): Number of time steps after each peel's terminal time
            that are scored (1 = one-step-ahead).
        peels (tuple[float, ...] | None): Optional subset of peel terminal
            times to score; None scores every peel present.
        season (object | None): Optional single season to score; None scores
            every season separately when a season column is present.

    Examples:
        >>> MaseConfig(mae_base_adj=0.2).mae_base_adj
        0.2
    """
    mae_base_adj: float = 0.1
    horizon: int = 1
    peels: tuple[float, ...] | None = None
    season: object | None = None

    def __post_init__(self) -> None:
        if self.mae_base_adj < 0:
            raise ValueError(f"mae_base_adj must be >= 0; got {self.mae_base_adj}")
        if self.horizon < 1:
            raise ValueError(f"horizon must be >= 1; got {self.horizon}")
        if self.peels is not None:
            object.__setattr__(self, "peels", tuple(self.peels))
