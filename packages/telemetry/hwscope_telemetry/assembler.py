"""Merge sampler and source results into full and live snapshots."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from .context import HostContext
from .models import (
    AudioInfo,
    BaseboardInfo,
    BiosInfo,
    CpuCache,
    CpuInfo,
    FullSnapshot,
    GraphicsInfo,
    LiveSnapshot,
    OpticalInfo,
    OsInfo,
    PeripheralInfo,
    StaticData,
    UuidInfo,
    VersionsInfo,
)
from .platforms import select_source, source_name
from .sampler import MetricsSampler, interface_names, read_network, read_storage, read_temperatures
from .sources import HardwareSource

logger = logging.getLogger("hwscope.telemetry")

# Value used when a source has nothing for its domain.
DOMAIN_DEFAULTS: dict[str, Any] = {
    "cache_sizes": (0, 0),
    "cpu_ids": ("", "", ""),
    "gpus": (),
    "memory_layout": (),
    "baseboard": BaseboardInfo(),
    "bios": BiosInfo(),
    "macs": (),
    "audio": (),
    "usb_devices": (),
    "optical": (),
    "uefi": False,
}


def _or_default(domain: str, value: Any, default: Any = None) -> Any:
    if value is not None:
        return value
    logger.debug("no data for %s", domain, extra={"event": "source_degraded", "domain": domain})
    return DOMAIN_DEFAULTS[domain] if default is None else default


class SnapshotAssembler:
    """Builds snapshots from a sampler, a hardware source and a host context."""

    def __init__(
        self,
        sampler: MetricsSampler | None = None,
        source: HardwareSource | None = None,
        context_factory: Callable[[], HostContext] = HostContext.capture,
        parallel: bool = True,
        max_workers: int = 6,
    ) -> None:
        self.sampler = sampler or MetricsSampler()
        self.source = source if source is not None else select_source()
        self.context_factory = context_factory
        self.parallel = parallel
        self.max_workers = max(1, max_workers)

    def _source_tasks(self) -> dict[str, Callable[[], Any]]:
        src = self.source
        return {
            "cache_sizes": src.cache_sizes,
            "cpu_ids": src.cpu_ids,
            "gpus": src.gpus,
            "memory_layout": src.memory_layout,
            "baseboard": src.baseboard,
            "bios": src.bios,
            "macs": lambda: src.macs(interface_names()),
            "audio": src.audio,
            "usb_devices": src.usb_devices,
            "optical": src.optical,
            "uefi": src.uefi,
            "os_identity": src.os_identity,
            "storage": lambda: read_storage(src),
            "network": read_network,
            "temperature": read_temperatures,
        }

    def _gather(self, tasks: dict[str, Callable[[], Any]]) -> tuple[Any, dict[str, Any]]:
        """Take the CPU sample, then run the source tasks; returns (sample, results)."""
        # Tool spawns must stay out of the utilization window.
        sample = self.sampler.sample_cpu_and_memory(identity=True)
        if not self.parallel:
            return sample, {name: task() for name, task in tasks.items()}

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="hwscope-source") as pool:
            futures = {name: pool.submit(task) for name, task in tasks.items()}
            results = {name: future.result() for name, future in futures.items()}
        return sample, results

    def collect_full(self) -> FullSnapshot:
        started = time.perf_counter()
        sample, results = self._gather(self._source_tasks())
        context = self.context_factory()

        l2, l3 = _or_default("cache_sizes", results["cache_sizes"])
        family, model, stepping = _or_default("cpu_ids", results["cpu_ids"])
        distro, release = _or_default("os_identity", results["os_identity"], ("", context.os_release))
        static = sample.static

        snapshot = FullSnapshot(
            static_data=StaticData(
                baseboard=_or_default("baseboard", results["baseboard"]),
                bios=_or_default("bios", results["bios"]),
                os=OsInfo(
                    platform=context.platform,
                    distro=distro,
                    release=release or context.os_release,
                    hostname=context.hostname,
                    kernel=context.kernel,
                    arch=context.arch,
                    fqdn=context.fqdn,
                    uefi=_or_default("uefi", results["uefi"]),
                ),
                uuid=UuidInfo(macs=_or_default("macs", results["macs"])),
                versions=VersionsInfo(node="", python=context.python_version),
            ),
            cpu=CpuInfo(
                brand=static.brand,
                vendor=static.vendor,
                family=family,
                model=model,
                stepping=stepping,
                physical_cores=static.physical_cores,
                cores=static.cores,
                speed=static.speed,
                speed_max=static.speed_max,
                cache=CpuCache(l2=l2, l3=l3),
            ),
            cpu_current_speed=sample.speed,
            current_load=sample.load,
            cpu_temperature=results["temperature"],
            graphics=GraphicsInfo(controllers=_or_default("gpus", results["gpus"])),
            network=results["network"],
            storage=results["storage"],
            memory=sample.memory.to_info(layout=_or_default("memory_layout", results["memory_layout"])),
            audio=AudioInfo(devices=_or_default("audio", results["audio"])),
            peripherals=PeripheralInfo(usb_devices=_or_default("usb_devices", results["usb_devices"])),
            optical=OpticalInfo(devices=_or_default("optical", results["optical"])),
            runtime=context.runtime(),
        )
        logger.debug(
            "full snapshot collected",
            extra={
                "event": "snapshot_full",
                "source": source_name(self.source),
                "elapsed_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return snapshot

    def collect_live(self) -> LiveSnapshot:
        started = time.perf_counter()
        sample = self.sampler.sample_cpu_and_memory(identity=False)
        context = self.context_factory()
        snapshot = LiveSnapshot(
            cpu_current_speed=sample.speed,
            current_load=sample.load,
            cpu_temperature=read_temperatures(),
            memory=sample.memory.to_info(),
            runtime=context.runtime(),
        )
        logger.debug(
            "live snapshot collected",
            extra={"event": "snapshot_live", "elapsed_ms": round((time.perf_counter() - started) * 1000, 1)},
        )
        return snapshot


def collect_full(**kwargs: Any) -> FullSnapshot:
    return SnapshotAssembler(**kwargs).collect_full()


def collect_live(**kwargs: Any) -> LiveSnapshot:
    return SnapshotAssembler(**kwargs).collect_live()
