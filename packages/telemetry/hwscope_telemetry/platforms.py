"""Static mapping from the build target to its hardware source."""

from __future__ import annotations

import sys

from .linux import LinuxSource
from .process import ElevationPolicy, ToolRunner
from .sources import HardwareSource
from .windows import WindowsSource


def select_source(
    target: str | None = None,
    runner: ToolRunner | None = None,
    elevation: ElevationPolicy | None = None,
) -> HardwareSource:
    target = target or sys.platform
    if target.startswith("linux"):
        return LinuxSource(runner=runner, elevation=elevation)
    if target == "win32":
        return WindowsSource(runner=runner)
    return HardwareSource()


def source_name(source: HardwareSource) -> str:
    return getattr(source, "name", type(source).__name__)
