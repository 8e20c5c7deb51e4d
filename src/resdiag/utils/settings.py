"""Write resdiag run settings to a TOML file."""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any


def _clean_value(val: Any) -> Any:
    if isinstance(val, Enum):
        return val.value
    if isinstance(val, tuple):
        return [_clean_value(v) for v in val]
    return val


def _clean_mapping(mapping: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, val in mapping.items():
        if val is None:
            continue
        out[key] = _clean_value(val)
    return out


def _toml_escape(s: str) -> str:
    return s.replace("\\", "\\\\").replace('"', '\\"')


def _toml_value(val: Any) -> str:
    if isinstance(val, bool):
        return "true" if val else "false"
    if isinstance(val, int):
        return str(val)
    if isinstance(val, float):
        return repr(float(val))
    if isinstance(val, str):
        return f'"{_toml_escape(val)}"'
    if isinstance(val, (list, tuple)):
        inner = ", ".join(_toml_value(v) for v in val)
        return f"[{inner}]"
    return f'"{_toml_escape(str(val))}"'


def _write_section(fp, name: str, mapping: dict[str, Any]) -> None:
    if not mapping:
        return
    fp.write(f"[{name}]\n")
    for key, val in mapping.items():
        fp.write(f"{key} = {_toml_value(val)}\n")
    fp.write("\n")


def _as_dict(obj: Any) -> dict[str, Any]:
    if is_dataclass(obj):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    raise TypeError(f"Unsupported settings type: {type(obj)}")


def write_run_settings_toml(
    path: str | Path,
    *,
    command: str,
    inputs: dict[str, Any],
    runs_cfg: Any = None,
    mase_cfg: Any = None,
) -> None:
    """Write run settings to a TOML file (overwrites existing file).

    Args:
        path (str | Path): Destination file.
        command (str): Subcommand that was run (``runs`` or ``mase``).
        inputs (dict[str, Any]): Input paths and selections.
        runs_cfg: Optional :class:`resdiag.config.RunsConfig`.
        mase_cfg: Optional :class:`resdiag.config.MaseConfig`.
    """
    out_path = Path(path)
    settings = {
        "run": {
            "command": str(command),
            "timestamp_utc": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            **inputs,
        },
    }
    if runs_cfg is not None:
        settings["runs_cfg"] = _as_dict(runs_cfg)
    if mase_cfg is not None:
        settings["mase_cfg"] = _as_dict(mase_cfg)

    with open(out_path, "w", encoding="utf-8") as fp:
        for section, mapping in settings.items():
            _write_section(fp, section, _clean_mapping(mapping))
