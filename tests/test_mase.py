import numpy as np
import pandas as pd
import pytest

from resdiag.config import MaseConfig
from resdiag.hindcast.mase import MASE_COLUMNS, RESIDUAL_COLUMNS, mase_from_errors, score_mase


def _flat_index(group: str = "Survey") -> tuple[pd.DataFrame, pd.DataFrame]:
    """Log index rising 0.05 per year; every peel over-predicts by 0.08 in log space."""
    years = np.arange(2001, 2007)
    levels = 0.05 * (years - 2001)
    obs = pd.DataFrame({"group": group, "time": years, "obs": np.exp(levels)})
    rows = []
    for peel in (2003, 2004, 2005):
        for yr, lv in zip(years, levels):
            if yr <= peel:
                pred = np.exp(lv)  # in-sample fit, never scored
            else:
                pred = np.exp(lv + 0.08)
            rows.append({"group": group, "peel": peel, "time": yr, "pred": pred})
    return obs, pd.DataFrame(rows)


def test_mase_from_errors_flat_baseline():
    out = mase_from_errors(np.array([0.08, -0.08, 0.08]), np.array([0.05, -0.05, 0.05]))
    assert out["mae_pr"] == pytest.approx(0.08)
    assert out["mae_base"] == pytest.approx(0.05)
    assert out["mase"] == pytest.approx(1.6)
    assert out["mase_adj"] == pytest.approx(0.8)
    assert out["n_eval"] == 3


def test_adjustment_only_applies_below_floor():
    rng = np.random.default_rng(11)
    for _ in range(50):
        pr = rng.normal(scale=0.2, size=6)
        nv = rng.normal(scale=rng.uniform(0.01, 0.4), size=6)
        out = mase_from_errors(pr, nv, mae_base_adj=0.1)
        if out["mae_base"] >= 0.1:
            assert out["mase_adj"] == pytest.approx(out["mase"])
        else:
            assert out["mase_adj"] < out["mase"]
            assert out["mase_adj"] == pytest.approx(out["mae_pr"] / 0.1)


def test_mase_from_errors_degenerate_inputs():
    out = mase_from_errors(np.array([]), np.array([]))
    assert out["n_eval"] == 0
    assert np.isnan(out["mase"])
    out = mase_from_errors(np.array([0.1]), np.array([0.0]))
    assert np.isinf(out["mase"])
    assert out["mase_adj"] == pytest.approx(1.0)


def test_score_mase_end_to_end():
    obs, hc = _flat_index()
    out = score_mase(obs, hc, verbose=False)
    assert list(out.columns) == MASE_COLUMNS
    row = out.iloc[0]
    assert row["group"] == "Survey"
    assert row["n_eval"] == 3
    assert row["mae_pr"] == pytest.approx(0.08)
    assert row["mae_base"] == pytest.approx(0.05)
    assert row["mase"] == pytest.approx(1.6)
    assert row["mase_adj"] == pytest.approx(0.8)


def test_score_mase_floor_is_configurable():
    obs, hc = _flat_index()
    out = score_mase(obs, hc, cfg=MaseConfig(mae_base_adj=0.0), verbose=False)
    assert out["mase_adj"].iloc[0] == pytest.approx(out["mase"].iloc[0])


def test_score_mase_residual_table():
    obs, hc = _flat_index()
    out, resid = score_mase(obs, hc, return_residuals=True, verbose=False)
    assert list(resid.columns) == RESIDUAL_COLUMNS
    assert resid["time"].tolist() == [2004.0, 2005.0, 2006.0]
    assert resid["peel"].tolist() == [2003.0, 2004.0, 2005.0]
    assert np.allclose(resid["pred_resid"], -0.08)
    assert np.allclose(resid["naive_resid"], 0.05)


def test_longer_horizon_scores_more_points():
    obs, hc = _flat_index()
    _, resid = score_mase(obs, hc, cfg=MaseConfig(horizon=2), return_residuals=True, verbose=False)
    # peels 2003 and 2004 reach two years ahead, 2005 only one
    assert len(resid) == 5
    two_ahead = resid.loc[resid["time"] - resid["peel"] == 2]
    assert np.allclose(two_ahead["naive_resid"], 0.10)


def test_peel_subset():
    obs, hc = _flat_index()
    out = score_mase(obs, hc, cfg=MaseConfig(peels=(2004,)), verbose=False)
    assert out["n_eval"].iloc[0] == 1


def test_groups_and_missing_evaluation_data():
    obs_a, hc_a = _flat_index("A")
    obs_b, _ = _flat_index("B")
    obs = pd.concat([obs_b, obs_a], ignore_index=True)
    out = score_mase(obs, hc_a, verbose=False)
    assert out["group"].tolist() == ["B", "A"]
    b = out.set_index("group").loc["B"]
    assert b["n_eval"] == 0
    assert np.isnan(b["mase"])

    out = score_mase(obs, hc_a, groups=[1], verbose=False)
    assert out["group"].tolist() == ["A"]
    with pytest.raises(ValueError):
        score_mase(obs, hc_a, groups=[3], verbose=False)


def test_seasons_scored_separately():
    obs1, hc1 = _flat_index()
    obs2, hc2 = _flat_index()
    obs1["season"], hc1["season"] = 1, 1
    obs2["season"], hc2["season"] = 2, 2
    obs2["obs"] = obs2["obs"] ** 2  # log-scale steps of 0.10
    obs = pd.concat([obs1, obs2], ignore_index=True)
    hc = pd.concat([hc1, hc2], ignore_index=True)

    out = score_mase(obs, hc, verbose=False)
    assert out["season"].tolist() == [1, 2]
    assert out["mae_base"].tolist() == pytest.approx([0.05, 0.10])

    only = score_mase(obs, hc, cfg=MaseConfig(season=2), verbose=False)
    assert only["season"].tolist() == [2]


def test_model_output_column_names():
    obs, hc = _flat_index()
    obs = obs.rename(columns={"group": "Fleet_name", "time": "Yr", "obs": "Obs"})
    hc = hc.rename(columns={"group": "Fleet_name", "time": "Yr", "pred": "Exp"})
    out = score_mase(obs, hc, verbose=False)
    assert out["mase"].iloc[0] == pytest.approx(1.6)


def test_hindcast_columns_required():
    obs, hc = _flat_index()
    with pytest.raises(ValueError):
        score_mase(obs, hc.drop(columns="peel"), verbose=False)


def test_config_validation():
    with pytest.raises(ValueError):
        MaseConfig(mae_base_adj=-1.0)
    with pytest.raises(ValueError):
        MaseConfig(horizon=0)


@pytest.fixture
def copy_on_write():
    if int(pd.__version__.split(".")[0]) >= 3:
        yield  # always on
        return
    with pd.option_context("mode.copy_on_write", True):
        yield


def test_score_mase_under_copy_on_write_leaves_inputs_alone(copy_on_write):
    obs, hc = _flat_index()
    obs = pd.concat([obs, pd.DataFrame({"group": ["Other"], "time": [2001], "obs": [-1.0]})],
                    ignore_index=True)
    hc.loc[0, "pred"] = np.nan
    obs_before, hc_before = obs.copy(), hc.copy()

    out = score_mase(obs, hc, verbose=False)
    assert out.set_index("group").loc["Survey", "mase"] == pytest.approx(1.6)
    pd.testing.assert_frame_equal(obs, obs_before)
    pd.testing.assert_frame_equal(hc, hc_before)


def test_unseasoned_hindcasts_match_seasonal_observations():
    obs, hc = _flat_index()
    obs["season"] = 1
    out = score_mase(obs, hc, verbose=False)
    assert out["season"].tolist() == [1]
    assert out["n_eval"].iloc[0] == 3
    assert out["mase"].iloc[0] == pytest.approx(1.6)

    only = score_mase(obs, hc, cfg=MaseConfig(season=1), verbose=False)
    assert only["n_eval"].iloc[0] == 3


def test_season_filter_needs_season_column():
    obs, hc = _flat_index()
    hc["season"] = 1
    with pytest.raises(ValueError, match="season"):
        score_mase(obs, hc, cfg=MaseConfig(season=1), verbose=False)
