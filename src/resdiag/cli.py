"""Provide a command-line interface for residual diagnostics.

This module wires CLI flags to :func:`resdiag.pipeline.run_runs_test` and
:func:`resdiag.hindcast.mase.score_mase`. The CLI is intentionally minimal
and suitable for scripting or batch workflows where CSV tables go in and a
CSV summary comes out.

Examples:
    Runs tests on an index table:

    >>> # doctest: +SKIP
    >>> # resdiag runs --input cpue.csv --out runs.csv --mixing two.sided

    Hindcast MASE scores printed to the terminal:

    >>> # doctest: +SKIP
    >>> # resdiag mase --obs cpue.csv --hindcasts peels.csv --stdout

See Also:
    resdiag.pipeline.run_runs_test: Python API for the runs test.
    resdiag.hindcast.mase.score_mase: Python API for MASE.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from resdiag.config import DataType, MaseConfig, Mixing, RunsConfig
from resdiag.hindcast.mase import score_mase
from resdiag.io.residuals import load_table
from resdiag.pipeline import run_runs_test, runs_points
from resdiag.utils.diagnostics import summarize_mase, summarize_runs
from resdiag.utils.logging import configure_logging
from resdiag.utils.settings import write_run_settings_toml


def _parse_csv_list(val: str | None) -> tuple[str, ...] | None:
    """Parse a comma-separated list into a tuple.

    Args:
        val (str | None): Input string or None.

    Returns:
        tuple[str, ...] | None: Parsed values, or None if ``val`` is None.
    """
    if val is None:
        return None
    parts = [p.strip() for p in val.split(",") if p.strip()]
    return tuple(parts)


def _parse_groups(val: str | None) -> list | None:
    """Parse ``--groups``: integers are positions, anything else is a name."""
    parts = _parse_csv_list(val)
    if parts is None:
        return None
    return [int(p) if p.lstrip("-").isdigit() else p for p in parts]


def _add_common(p: argparse.ArgumentParser) -> None:
    dest = p.add_mutually_exclusive_group(required=True)
    dest.add_argument("--out", default=None, help="Output CSV path.")
    dest.add_argument("--stdout", action="store_true", help="Write the result table to stdout as CSV.")
    p.add_argument(
        "--groups",
        default=None,
        help="Comma-separated groups to evaluate, as 0-based positions or names (default: all).",
    )
    p.add_argument("--settings-out", default=None, help="Optional TOML path to write run settings.")
    p.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ERROR).")
    p.add_argument("--log-format", default="%(message)s", help="Logging format string.")
    p.add_argument("--quiet", action="store_true", help="Do not log progress or summaries.")


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        argparse.ArgumentParser: Parser with ``runs`` and ``mase``
        subcommands.
    """
    p = argparse.ArgumentParser(
        prog="resdiag",
        description="Residual diagnostics: runs tests, 3-sigma limits and hindcast MASE",
    )
    sub = p.add_subparsers(dest="command", required=True)

    r = sub.add_parser("runs", help="Runs test and 3-sigma limits per group.")
    r.add_argument("--input", required=True, help="CSV table with group, time and obs/exp or resid columns.")
    r.add_argument(
        "--mixing",
        choices=[m.value for m in Mixing],
        default=Mixing.LESS.value,
        help="Alternative hypothesis (default: less, positive autocorrelation only).",
    )
    r.add_argument(
        "--quants",
        choices=[d.value for d in DataType],
        default=DataType.CPUE.value,
        help="Observation category of the input (default: cpue).",
    )
    r.add_argument(
        "--kind",
        choices=["resid", "observations"],
        default="resid",
        help="Center on 0 (resid) or on the series mean (observations).",
    )
    r.add_argument("--points-out", default=None, help="Optional CSV path for per-point band flags.")
    _add_common(r)

    m = sub.add_parser("mase", help="Hindcast MASE per group.")
    m.add_argument("--obs", required=True, help="CSV table of reference observations.")
    m.add_argument("--hindcasts", required=True, help="CSV table of peel predictions.")
    m.add_argument(
        "--mae-base-adj",
        type=float,
        default=0.1,
        help="Floor for the naive MAE in MASE_adj (default: 0.1).",
    )
    m.add_argument("--horizon", type=int, default=1, help="Time steps scored after each peel (default: 1).")
    m.add_argument("--peels", default=None, help="Comma-separated peel terminal times to score (default: all).")
    m.add_argument("--season", default=None, help="Only score this season.")
    m.add_argument("--residuals-out", default=None, help="Optional CSV path for per-point hindcast residuals.")
    _add_common(m)

    return p


def _season_value(val: str | None):
    if val is None:
        return None
    try:
        return float(val) if "." in val else int(val)
    except ValueError:
        return val


def _write(df, args) -> None:
    if args.stdout:
        df.to_csv(sys.stdout, index=False)
    else:
        df.to_csv(args.out, index=False)


def _run_runs(args) -> None:
    cfg = RunsConfig(mixing=args.mixing, data_type=args.quants, kind=args.kind)
    groups = _parse_groups(args.groups)
    df = load_table(args.input)
    table = run_runs_test(df, cfg=cfg, groups=groups, verbose=not args.quiet)
    _write(table, args)
    if args.points_out:
        runs_points(df, cfg=cfg, groups=groups).to_csv(args.points_out, index=False)
    if not args.quiet:
        summarize_runs(table)
    if args.settings_out:
        write_run_settings_toml(
            args.settings_out,
            command="runs",
            inputs={"input": str(Path(args.input)), "groups": list(args.groups.split(",")) if args.groups else None},
            runs_cfg=cfg,
        )


def _run_mase(args) -> None:
    peels = _parse_csv_list(args.peels)
    cfg = MaseConfig(
        mae_base_adj=args.mae_base_adj,
        horizon=args.horizon,
        peels=tuple(float(p) for p in peels) if peels else None,
        season=_season_value(args.season),
    )
    groups = _parse_groups(args.groups)
    obs = load_table(args.obs)
    hindcasts = load_table(args.hindcasts)
    table, resid = score_mase(obs, hindcasts, cfg=cfg, groups=groups, return_residuals=True, verbose=not args.quiet)
    _write(table, args)
    if args.residuals_out:
        resid.to_csv(args.residuals_out, index=False)
    if not args.quiet:
        summarize_mase(table)
    if args.settings_out:
        write_run_settings_toml(
            args.settings_out,
            command="mase",
            inputs={"obs": str(Path(args.obs)), "hindcasts": str(Path(args.hindcasts))},
            mase_cfg=cfg,
        )


def main(argv: list[str] | None = None) -> None:
    """Run residual diagnostics from command-line arguments.

    Raises:
        FileNotFoundError: If an input CSV is missing.
        ValueError: If the group selection is out of range.
        SystemExit: If the arguments are invalid, e.g. both ``--out`` and
            ``--stdout`` are given.
    """
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level, fmt=args.log_format)
    if args.command == "runs":
        _run_runs(args)
    else:
        _run_mase(args)


if __name__ == "__main__":
    main()
