"""Persistent collector settings schema and load/save helpers."""

from __future__ import annotations

import json
import logging
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


CONFIG_VERSION = 2
APP_DIR_NAME = "hwscope"

logger = logging.getLogger("hwscope")


@dataclass
class CollectorConfig:
    settle_ms: int = 200
    tool_timeout_s: float = 5.0
    allow_elevation: bool = True
    elevation_timeout_s: float = 60.0
    parallel_sources: bool = True
    max_workers: int = 6


@dataclass
class OutputConfig:
    indent: int = 2
    sort_keys: bool = False


@dataclass
class DiagnosticsConfig:
    keep_log_files: int = 7
    include_snapshot: bool = True


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    collector: CollectorConfig = field(default_factory=CollectorConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


def app_root() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / APP_DIR_NAME
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME
    return Path.home() / ".config" / APP_DIR_NAME


def config_path() -> Path:
    return app_root() / "config.json"


def _merge(dataclass_type, raw: Any):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _clamp(value: Any, low: float, high: float, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = default
    return max(low, min(high, number))


def _normalize_collector(cfg: AppConfig) -> None:
    c = cfg.collector
    c.settle_ms = int(_clamp(c.settle_ms, 50, 2000, 200))
    c.tool_timeout_s = _clamp(c.tool_timeout_s, 0.5, 60.0, 5.0)
    c.elevation_timeout_s = _clamp(c.elevation_timeout_s, 5.0, 300.0, 60.0)
    c.max_workers = int(_clamp(c.max_workers, 1, 16, 6))
    c.allow_elevation = bool(c.allow_elevation)
    c.parallel_sources = bool(c.parallel_sources)


def _normalize_output(cfg: AppConfig) -> None:
    cfg.output.indent = int(_clamp(cfg.output.indent, 0, 8, 2))
    cfg.output.sort_keys = bool(cfg.output.sort_keys)


def _normalize_diagnostics(cfg: AppConfig) -> None:
    cfg.diagnostics.keep_log_files = int(_clamp(cfg.diagnostics.keep_log_files, 2, 90, 7))
    cfg.diagnostics.include_snapshot = bool(cfg.diagnostics.include_snapshot)


def _migrate(raw: dict[str, Any]) -> dict[str, Any]:
    try:
        version = int(raw.get("config_version", 1))
    except (TypeError, ValueError):
        version = 1
    data = dict(raw)

    if version < 2:
        # v2 adds the output section and moves the settle delay to milliseconds.
        data.setdefault("output", {})
        collector = dict(data.get("collector", {}) or {})
        if "settle_s" in collector and "settle_ms" not in collector:
            collector["settle_ms"] = round(_clamp(collector.pop("settle_s"), 0.05, 2.0, 0.2) * 1000)
        data["collector"] = collector
        data["config_version"] = 2

    return data


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config %s: %s", path, exc, extra={"event": "config_unreadable"})
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()

    data = _migrate(raw)
    cfg = AppConfig(
        config_version=CONFIG_VERSION,
        collector=_merge(CollectorConfig, data.get("collector", {})),
        output=_merge(OutputConfig, data.get("output", {})),
        diagnostics=_merge(DiagnosticsConfig, data.get("diagnostics", {})),
    )

    _normalize_collector(cfg)
    _normalize_output(cfg)
    _normalize_diagnostics(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
