from __future__ import annotations

from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import tomllib

from flux_lsp.schema import ServerSettings

DEFAULT_CONFIG_NAME = "flux-lsp.toml"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def _section(data: TomlTable, name: str) -> TomlTable:
    section = data.get(name, {})
    return section if isinstance(section, dict) else {}


def server_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    return _section(load_config(root=root, config_path=config_path), "server")


def diagnostics_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    return _section(load_config(root=root, config_path=config_path), "diagnostics")


def _normalize_name_list(value: TomlValue) -> list[str]:
    items: list[str] = []
    if value is None:
        return items
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple, set)):
        for item in value:
            if isinstance(item, str):
                items.extend([part.strip() for part in item.split(",") if part.strip()])
    return [item for item in items if item]


def _as_bool(value: TomlValue) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return False


def _as_float(value: TomlValue, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    merged = dict(defaults)
    for key, value in payload.items():
        if value is None:
            continue
        merged[key] = value
    return merged


def settings_from_sections(server: TomlTable, diagnostics: TomlTable) -> ServerSettings:
    baseline = ServerSettings()
    values: dict[str, object] = {
        "multi_file": _as_bool(server.get("multi_file", baseline.multi_file)),
        "disable_folding": _as_bool(
            server.get("disable_folding", baseline.disable_folding)
        ),
        "store_lock_timeout": _as_float(
            server.get("store_lock_timeout"), baseline.store_lock_timeout
        ),
        "experimental_diagnostics": _as_bool(
            diagnostics.get("experimental", baseline.experimental_diagnostics)
        ),
        "contrib_diagnostics": _as_bool(
            diagnostics.get("contrib", baseline.contrib_diagnostics)
        ),
    }
    frontend = server.get("frontend")
    if isinstance(frontend, str) and frontend.strip():
        values["frontend"] = frontend.strip()
    log_level = server.get("log_level")
    if isinstance(log_level, str) and log_level.strip():
        values["log_level"] = log_level.strip().upper()
    if "reserved_identifiers" in diagnostics:
        values["reserved_identifiers"] = _normalize_name_list(
            diagnostics.get("reserved_identifiers")
        )
    return ServerSettings(**values)


def load_settings(
    root: Path | None = None,
    config_path: Path | None = None,
    overrides: TomlTable | None = None,
) -> ServerSettings:
    """Read ``flux-lsp.toml`` and layer explicit (CLI) values on top.

    ``overrides`` uses the ``[server]`` key names; ``None`` values mean
    "not given" and keep the configured default.
    """
    data = load_config(root=root, config_path=config_path)
    server = _section(data, "server")
    if overrides:
        server = merge_payload(overrides, server)
    return settings_from_sections(server, _section(data, "diagnostics"))
