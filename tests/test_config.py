import pytest

from resdiag.config import DataType, Mixing, ResidualKind, RunsConfig


def test_mixing_has_three_variants():
    assert [m.value for m in Mixing] == ["less", "greater", "two.sided"]
    assert Mixing.parse("less").alternative == "left.sided"
    assert Mixing.parse("greater").alternative == "right.sided"
    assert Mixing.parse(Mixing.TWO_SIDED).alternative == "two.sided"


def test_runs_config_parses_strings():
    cfg = RunsConfig(mixing="two.sided", data_type="con", kind="observations")
    assert cfg.mixing is Mixing.TWO_SIDED
    assert cfg.data_type is DataType.CON
    assert cfg.kind is ResidualKind.OBSERVATIONS
    assert cfg.data_type.label == "Conditional age-at-length"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"mixing": "left"},
        {"data_type": "weight"},
        {"kind": "raw"},
        {"alpha": 1.5},
        {"fallback_p": 0.0},
        {"min_obs": 0},
    ],
)
def test_runs_config_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        RunsConfig(**kwargs)
