"""Hardware inventory and live telemetry collection."""

from .assembler import SnapshotAssembler, collect_full, collect_live
from .context import HostContext
from .models import FullSnapshot, LiveSnapshot, to_payload
from .platforms import select_source, source_name
from .process import ElevationPolicy, ToolRunner
from .sampler import MetricsSampler
from .sources import HardwareSource

__all__ = [
    "ElevationPolicy",
    "FullSnapshot",
    "HardwareSource",
    "HostContext",
    "LiveSnapshot",
    "MetricsSampler",
    "SnapshotAssembler",
    "ToolRunner",
    "collect_full",
    "collect_live",
    "select_source",
    "source_name",
    "to_payload",
]
