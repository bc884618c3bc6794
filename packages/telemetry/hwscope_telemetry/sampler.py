"""psutil-backed CPU, memory, sensor, storage and network sampling."""

from __future__ import annotations

import logging
import socket
import time
from dataclasses import dataclass
from typing import Callable, Iterable

import cpuinfo
import psutil

from .models import (
    BlockDeviceFacts,
    CpuCurrentSpeed,
    CpuTemperature,
    CurrentLoad,
    DiskLayoutEntry,
    FilesystemEntry,
    MemoryInfo,
    MemorySlot,
    NetworkInfo,
    NetworkInterface,
    StorageInfo,
)
from .sources import HardwareSource
from .units import finite, mean, percent, saturating_sub

logger = logging.getLogger("hwscope.telemetry")

DEFAULT_SETTLE_S = 0.2

MAIN_SENSOR_KEYWORDS = ("package", "tctl")
CORE_SENSOR_KEYWORDS = ("core", "cpu")


@dataclass(frozen=True)
class CpuStaticFacts:
    brand: str = ""
    vendor: str = ""
    physical_cores: int = 0
    cores: int = 0
    speed: float = 0.0
    speed_max: float = 0.0


@dataclass(frozen=True)
class MemoryCounters:
    total: int = 0
    used: int = 0
    available: int = 0
    active: int = 0
    swaptotal: int = 0
    swapused: int = 0

    def to_info(self, layout: tuple[MemorySlot, ...] = ()) -> MemoryInfo:
        return MemoryInfo.from_counters(
            total=self.total,
            used=self.used,
            available=self.available,
            active=self.active,
            swaptotal=self.swaptotal,
            swapused=self.swapused,
            layout=layout,
        )


@dataclass(frozen=True)
class MetricsSample:
    static: CpuStaticFacts
    speed: CpuCurrentSpeed
    load: CurrentLoad
    memory: MemoryCounters


@dataclass(frozen=True)
class TemperatureReading:
    chip: str
    label: str
    current: float | None


def _core_frequencies() -> list[float]:
    try:
        freqs = psutil.cpu_freq(percpu=True)
    except (AttributeError, NotImplementedError, OSError, psutil.Error) as exc:
        logger.debug("cpu frequency unavailable: %s", exc, extra={"event": "cpu_freq_unavailable"})
        return []
    return [float(f.current) for f in (freqs or []) if finite(f.current)]


def _cpu_identity() -> tuple[str, str]:
    # py-cpuinfo tries several backends and can fail in odd ways on exotic hosts.
    try:
        info = cpuinfo.get_cpu_info()
    except Exception as exc:
        logger.debug("cpu identity unavailable: %s", exc, extra={"event": "cpu_identity_unavailable"})
        return "", ""
    return str(info.get("brand_raw", "")).strip(), str(info.get("vendor_id_raw", "")).strip()


def _busy_and_total(times) -> tuple[float, float]:
    total = sum(times)
    # Linux folds guest time into user and nice already.
    total -= getattr(times, "guest", 0) + getattr(times, "guest_nice", 0)
    idle = times.idle + getattr(times, "iowait", 0)
    return total - idle, total


def core_busy_percent(before, after) -> float:
    """Busy share of one core between two ``cpu_times`` reads, 0-100."""
    busy_before, total_before = _busy_and_total(before)
    busy_after, total_after = _busy_and_total(after)
    elapsed = total_after - total_before
    if elapsed <= 0:
        return 0.0
    return min(max((busy_after - busy_before) / elapsed * 100.0, 0.0), 100.0)


def read_memory_counters() -> MemoryCounters:
    vm = psutil.virtual_memory()
    try:
        swap = psutil.swap_memory()
        swaptotal, swapused = int(swap.total), int(swap.used)
    except (OSError, RuntimeError, psutil.Error) as exc:
        logger.debug("swap counters unavailable: %s", exc, extra={"event": "swap_unavailable"})
        swaptotal = swapused = 0
    return MemoryCounters(
        total=int(vm.total),
        used=int(vm.used),
        available=int(vm.available),
        active=int(getattr(vm, "active", vm.used)),
        swaptotal=swaptotal,
        swapused=swapused,
    )


class MetricsSampler:
    """Two-read CPU sampler.

    Utilization is the per-core delta between two ``cpu_times`` reads taken
    ``settle_s`` apart. Both reads stay local to the call, so concurrent
    callers do not share a baseline.
    """

    def __init__(self, settle_s: float = DEFAULT_SETTLE_S, sleep: Callable[[float], None] = time.sleep) -> None:
        self.settle_s = settle_s
        self.sleep = sleep

    def sample_cpu_and_memory(self, identity: bool = False) -> MetricsSample:
        before = psutil.cpu_times(percpu=True)
        self.sleep(self.settle_s)
        after = psutil.cpu_times(percpu=True)
        usage = [core_busy_percent(b, a) for b, a in zip(before, after)]
        freqs = _core_frequencies()

        cores = psutil.cpu_count(logical=True) or len(usage)
        physical = min(psutil.cpu_count(logical=False) or 0, cores)
        fastest = max(freqs) if freqs else 0.0

        brand, vendor = _cpu_identity() if identity else ("", "")
        static = CpuStaticFacts(
            brand=brand,
            vendor=vendor,
            physical_cores=physical,
            cores=cores,
            speed=mean(freqs),
            speed_max=fastest,
        )
        speed = CpuCurrentSpeed(avg=mean(freqs), min=min(freqs) if freqs else 0.0, max=fastest)
        return MetricsSample(
            static=static,
            speed=speed,
            load=CurrentLoad(current_load=mean(usage)),
            memory=read_memory_counters(),
        )


def aggregate_temperatures(readings: Iterable[TemperatureReading]) -> CpuTemperature:
    main: float | None = None
    fallback: float | None = None
    hottest: float | None = None

    for reading in readings:
        if not finite(reading.current):
            continue
        text = f"{reading.chip} {reading.label}".lower()
        is_main = any(k in text for k in MAIN_SENSOR_KEYWORDS)
        if not is_main and not any(k in text for k in CORE_SENSOR_KEYWORDS):
            continue
        value = float(reading.current)
        if is_main and main is None:
            main = value
        if fallback is None:
            fallback = value
        hottest = value if hottest is None else max(hottest, value)

    if hottest is None:
        return CpuTemperature()
    return CpuTemperature(main=main if main is not None else fallback, max=hottest)


def read_temperatures() -> CpuTemperature:
    sensors = getattr(psutil, "sensors_temperatures", None)
    if sensors is None:
        return CpuTemperature()
    try:
        data = sensors() or {}
    except (OSError, RuntimeError, psutil.Error) as exc:
        logger.debug("thermal sensors unavailable: %s", exc, extra={"event": "sensors_unavailable"})
        return CpuTemperature()
    return aggregate_temperatures(
        TemperatureReading(chip=chip, label=entry.label or "", current=entry.current)
        for chip, entries in data.items()
        for entry in entries
    )


def read_storage(source: HardwareSource) -> StorageInfo:
    filesystems: list[FilesystemEntry] = []
    layout: dict[str, DiskLayoutEntry] = {}

    for part in psutil.disk_partitions(all=False):
        try:
            usage = psutil.disk_usage(part.mountpoint)
            size, used = int(usage.total), saturating_sub(usage.total, usage.free)
        except (OSError, psutil.Error) as exc:
            logger.debug("usage unreadable for %s: %s", part.mountpoint, exc, extra={"event": "mount_unreadable"})
            size = used = 0

        filesystems.append(
            FilesystemEntry(mount=part.mountpoint, type=part.fstype, used=used, size=size, use=percent(used, size))
        )
        if part.device in layout:
            continue
        facts = source.block_device(part.device) or BlockDeviceFacts()
        layout[part.device] = DiskLayoutEntry(
            name=part.device,
            type=facts.kind,
            size=facts.size or size,
            interface_type=facts.interface_type,
        )

    return StorageInfo(disk_layout=tuple(layout.values()), filesystems=tuple(filesystems))


def read_network() -> NetworkInfo:
    interfaces = []
    for name, addrs in psutil.net_if_addrs().items():
        ip4 = ip6 = mac = ""
        for addr in addrs:
            if addr.family == socket.AF_INET and not ip4:
                ip4 = addr.address
            elif addr.family == socket.AF_INET6 and not ip6:
                ip6 = addr.address.split("%", 1)[0]
            elif addr.family == psutil.AF_LINK and not mac:
                mac = addr.address
        interfaces.append(NetworkInterface(iface=name, ip4=ip4, ip6=ip6, mac=mac))
    return NetworkInfo(interfaces=tuple(interfaces))


def interface_names() -> list[str]:
    return list(psutil.net_if_addrs())
