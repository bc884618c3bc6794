"""Diagnostics export helpers for local support bundles."""

from __future__ import annotations

import json
import platform
import re
import shutil
import tempfile
import zipfile
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import psutil

from hwscope_telemetry import ElevationPolicy, select_source, source_name
from hwscope_telemetry.nvml import nvml_available

from .config import AppConfig, config_path
from .logging_setup import log_dir


PROBED_TOOLS = ("lspci", "lsusb", "aplay", "dmidecode", "pkexec", "powershell")

_SECRET_RE = re.compile(r"(token|secret|password|apikey|api_key|auth)", re.IGNORECASE)
# Hardware identifiers that tie a bundle to one machine.
_IDENTIFIER_RE = re.compile(r"^(mac|macs|serial|serialNum|serial_num)$")
REDACTED = "***REDACTED***"


def _jsonable(value: Any) -> Any:
    if is_dataclass(value):
        return asdict(value)
    if isinstance(value, Path):
        return str(value)
    return value


def redact(value: Any, identifiers: bool = False) -> Any:
    if isinstance(value, dict):
        out: dict[str, Any] = {}
        for k, v in value.items():
            if _SECRET_RE.search(k) or (identifiers and _IDENTIFIER_RE.match(k)):
                out[k] = REDACTED
            else:
                out[k] = redact(v, identifiers)
        return out
    if isinstance(value, list):
        return [redact(v, identifiers) for v in value]
    return value


def _sensors_exposed() -> bool:
    sensors = getattr(psutil, "sensors_temperatures", None)
    if sensors is None:
        return False
    try:
        return bool(sensors())
    except (OSError, RuntimeError, psutil.Error):
        return False


def build_doctor_payload(cfg: AppConfig) -> dict[str, Any]:
    elevation = ElevationPolicy(enabled=cfg.collector.allow_elevation)
    return {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "platform": platform.platform(),
        "python": platform.python_version(),
        "source": source_name(select_source()),
        "tools": {name: shutil.which(name) is not None for name in PROBED_TOOLS},
        "sensors": _sensors_exposed(),
        "nvml": nvml_available(),
        "elevation": {"enabled": cfg.collector.allow_elevation, "active": elevation.active},
        "config": redact(asdict(cfg)),
    }


class DiagnosticsExporter:
    def __init__(self, app_name: str = "hwscope") -> None:
        self.app_name = app_name

    def bundle(
        self,
        cfg: AppConfig,
        doctor_payload: dict[str, Any],
        snapshot: dict[str, Any] | None = None,
        output_dir: Path | None = None,
    ) -> Path:
        output_base = output_dir or Path(tempfile.gettempdir())
        output_base.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        zip_path = output_base / f"{self.app_name}-diagnostics-{stamp}.zip"

        logs = sorted(log_dir().glob("*.log*"))

        with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            manifest = {
                "app": self.app_name,
                "created_utc": datetime.now(timezone.utc).isoformat(),
                "host": platform.platform(),
                "python": platform.python_version(),
                "config_path": str(config_path()),
                "log_dir": str(log_dir()),
                "has_snapshot": snapshot is not None,
            }
            zf.writestr("manifest.json", json.dumps(manifest, indent=2, sort_keys=True))
            zf.writestr("doctor.json", json.dumps(redact(doctor_payload), indent=2, sort_keys=True, default=_jsonable))
            zf.writestr("config.redacted.json", json.dumps(redact(asdict(cfg)), indent=2, sort_keys=True))
            if snapshot is not None:
                zf.writestr(
                    "snapshot.json",
                    json.dumps(redact(snapshot, identifiers=True), indent=2, sort_keys=True, default=_jsonable),
                )

            # fault.log already matches the *.log* glob.
            for item in logs:
                zf.write(item, arcname=f"logs/{item.name}")

        return zip_path
