import logging

import numpy as np
import pandas as pd

from resdiag.utils.diagnostics import summarize_mase, summarize_runs
from resdiag.utils.logging import configure_logging
from resdiag.utils.settings import write_run_settings_toml
from resdiag.config import MaseConfig, RunsConfig


def test_summarize_runs_counts(caplog):
    table = pd.DataFrame(
        {
            "group": ["A", "B", "C"],
            "runs_p": [0.3, 0.001, np.nan],
            "test": ["Passed", "Failed", "Excluded"],
            "sigma3_lo": [-0.5, -0.4, np.nan],
            "sigma3_hi": [0.5, 0.4, np.nan],
            "type": ["len"] * 3,
        }
    )
    with caplog.at_level(logging.INFO, logger="resdiag"):
        counts = summarize_runs(table)
    assert counts == {"Passed": 1, "Failed": 1, "Excluded": 1}
    assert "Mean length" in caplog.text
    assert "Non-random residuals for: B" in caplog.text


def test_summarize_mase_flags_groups_without_skill(caplog):
    table = pd.DataFrame({"group": ["A", "B"], "season": [None, None], "mase": [0.5, 3.0],
                          "mae_pr": [0.1, 0.3], "mae_base": [0.2, 0.1],
                          "mase_adj": [0.5, 3.0], "n_eval": [4, 4]})
    with caplog.at_level(logging.INFO, logger="resdiag"):
        summarize_mase(table)
    assert "MASE_adj > 1): B" in caplog.text

    with caplog.at_level(logging.WARNING, logger="resdiag"):
        summarize_mase(table.iloc[0:0])
    assert "No MASE scores" in caplog.text


def test_write_run_settings_toml(tmp_path):
    path = tmp_path / "settings.toml"
    write_run_settings_toml(
        path,
        command="mase",
        inputs={"obs": "obs.csv", "groups": None},
        runs_cfg=RunsConfig(mixing="greater", data_type="age"),
        mase_cfg=MaseConfig(peels=(2003.0, 2004.0)),
    )
    text = path.read_text(encoding="utf-8")
    assert "[run]" in text
    assert 'command = "mase"' in text
    assert "groups" not in text
    assert "[runs_cfg]" in text
    assert 'mixing = "greater"' in text
    assert 'data_type = "age"' in text
    assert "mae_base_adj = 0.1" in text
    assert "peels = [2003.0, 2004.0]" in text


def test_configure_logging_only_once(monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    level = root.level
    try:
        configure_logging(level="DEBUG")
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG

        configure_logging(level="ERROR")
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(level)
