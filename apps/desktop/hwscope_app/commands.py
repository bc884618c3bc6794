"""Host-facing commands: the only place collector failures become errors."""

from __future__ import annotations

import logging
from typing import Any, Callable

from hwscope_core.config import AppConfig, load_config
from hwscope_telemetry import ElevationPolicy, MetricsSampler, SnapshotAssembler, ToolRunner, select_source

logger = logging.getLogger("hwscope")


class CommandError(RuntimeError):
    """Opaque failure message handed back to the host."""


def build_assembler(config: AppConfig | None = None) -> SnapshotAssembler:
    cfg = config or load_config()
    c = cfg.collector
    runner = ToolRunner(timeout_s=c.tool_timeout_s)
    elevation = ElevationPolicy(enabled=c.allow_elevation, timeout_s=c.elevation_timeout_s)
    return SnapshotAssembler(
        sampler=MetricsSampler(settle_s=c.settle_ms / 1000.0),
        source=select_source(runner=runner, elevation=elevation),
        parallel=c.parallel_sources,
        max_workers=c.max_workers,
    )


def _invoke(name: str, collect: Callable[[], Any]) -> dict[str, Any]:
    try:
        return collect().to_payload()
    except Exception as exc:
        logger.critical("%s failed", name, exc_info=True, extra={"event": "command_failed", "command": name})
        raise CommandError(f"{name} failed: {exc}") from exc


def get_hardware_info(config: AppConfig | None = None) -> dict[str, Any]:
    return _invoke("get_hardware_info", build_assembler(config).collect_full)


def get_hardware_live(config: AppConfig | None = None) -> dict[str, Any]:
    return _invoke("get_hardware_live", build_assembler(config).collect_live)
