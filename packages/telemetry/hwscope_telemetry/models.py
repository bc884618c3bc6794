"""Typed snapshot models with UI payload serialization."""

from __future__ import annotations

from dataclasses import dataclass, fields, is_dataclass
from typing import Any

from .units import saturating_sub


@dataclass(frozen=True)
class CpuCache:
    l2: int = 0
    l3: int = 0


@dataclass(frozen=True)
class CpuInfo:
    brand: str = ""
    vendor: str = ""
    family: str = ""
    model: str = ""
    stepping: str = ""
    physical_cores: int = 0
    cores: int = 0
    speed: float = 0.0
    speed_max: float = 0.0
    cache: CpuCache = CpuCache()


@dataclass(frozen=True)
class CpuCurrentSpeed:
    avg: float = 0.0
    min: float = 0.0
    max: float = 0.0


@dataclass(frozen=True)
class CurrentLoad:
    current_load: float = 0.0


@dataclass(frozen=True)
class CpuTemperature:
    main: float = 0.0
    max: float = 0.0


@dataclass(frozen=True)
class MemorySlot:
    slot: int = 0
    size: int = 0
    clock_speed: int = 0
    type: str = ""
    form_factor: str = ""
    manufacturer: str = ""
    part_num: str = ""
    serial_num: str = ""


@dataclass(frozen=True)
class MemoryInfo:
    total: int = 0
    used: int = 0
    available: int = 0
    active: int = 0
    swaptotal: int = 0
    swapused: int = 0
    swapfree: int = 0
    layout: tuple[MemorySlot, ...] = ()

    @classmethod
    def from_counters(
        cls,
        total: int,
        used: int,
        available: int,
        active: int,
        swaptotal: int,
        swapused: int,
        layout: tuple[MemorySlot, ...] = (),
    ) -> MemoryInfo:
        return cls(
            total=total,
            used=used,
            available=available,
            active=active,
            swaptotal=swaptotal,
            swapused=swapused,
            swapfree=saturating_sub(swaptotal, swapused),
            layout=tuple(layout),
        )


@dataclass(frozen=True)
class GpuController:
    model: str = ""
    vendor: str = ""
    vram: int = 0
    bus: str = ""


@dataclass(frozen=True)
class GraphicsInfo:
    controllers: tuple[GpuController, ...] = ()


@dataclass(frozen=True)
class DiskLayoutEntry:
    name: str = ""
    type: str = ""
    size: int = 0
    interface_type: str = ""


@dataclass(frozen=True)
class FilesystemEntry:
    mount: str = ""
    type: str = ""
    used: int = 0
    size: int = 0
    use: float = 0.0


@dataclass(frozen=True)
class StorageInfo:
    disk_layout: tuple[DiskLayoutEntry, ...] = ()
    filesystems: tuple[FilesystemEntry, ...] = ()


@dataclass(frozen=True)
class NetworkInterface:
    iface: str = ""
    ip4: str = ""
    ip6: str = ""
    mac: str = ""


@dataclass(frozen=True)
class NetworkInfo:
    interfaces: tuple[NetworkInterface, ...] = ()


@dataclass(frozen=True)
class AudioDevice:
    name: str = ""
    manufacturer: str = ""
    status: str = ""


@dataclass(frozen=True)
class AudioInfo:
    devices: tuple[AudioDevice, ...] = ()


@dataclass(frozen=True)
class UsbDevice:
    name: str = ""
    vendor: str = ""
    vendor_id: str = ""
    product_id: str = ""
    bus: str = ""
    device: str = ""


@dataclass(frozen=True)
class PeripheralInfo:
    usb_devices: tuple[UsbDevice, ...] = ()


@dataclass(frozen=True)
class OpticalDevice:
    name: str = ""
    model: str = ""
    vendor: str = ""


@dataclass(frozen=True)
class OpticalInfo:
    devices: tuple[OpticalDevice, ...] = ()


@dataclass(frozen=True)
class BaseboardInfo:
    manufacturer: str = ""
    model: str = ""
    version: str = ""
    serial: str = ""


@dataclass(frozen=True)
class BiosInfo:
    vendor: str = ""
    version: str = ""
    release_date: str = ""


@dataclass(frozen=True)
class OsInfo:
    platform: str = ""
    distro: str = ""
    release: str = ""
    hostname: str = ""
    kernel: str = ""
    arch: str = ""
    fqdn: str = ""
    uefi: bool = False


@dataclass(frozen=True)
class UuidInfo:
    macs: tuple[str, ...] = ()


@dataclass(frozen=True)
class VersionsInfo:
    node: str = ""
    python: str = ""


@dataclass(frozen=True)
class StaticData:
    baseboard: BaseboardInfo = BaseboardInfo()
    bios: BiosInfo = BiosInfo()
    os: OsInfo = OsInfo()
    uuid: UuidInfo = UuidInfo()
    versions: VersionsInfo = VersionsInfo()


@dataclass(frozen=True)
class RuntimeInfo:
    uptime: int = 0
    current: int = 0


@dataclass(frozen=True)
class BlockDeviceFacts:
    """Physical properties of the block device behind a mount point."""

    kind: str = ""
    interface_type: str = ""
    size: int = 0


@dataclass(frozen=True)
class FullSnapshot:
    static_data: StaticData = StaticData()
    cpu: CpuInfo = CpuInfo()
    cpu_current_speed: CpuCurrentSpeed = CpuCurrentSpeed()
    current_load: CurrentLoad = CurrentLoad()
    cpu_temperature: CpuTemperature = CpuTemperature()
    graphics: GraphicsInfo = GraphicsInfo()
    network: NetworkInfo = NetworkInfo()
    storage: StorageInfo = StorageInfo()
    memory: MemoryInfo = MemoryInfo()
    audio: AudioInfo = AudioInfo()
    peripherals: PeripheralInfo = PeripheralInfo()
    optical: OpticalInfo = OpticalInfo()
    runtime: RuntimeInfo = RuntimeInfo()

    def to_payload(self) -> dict[str, Any]:
        return to_payload(self)


@dataclass(frozen=True)
class LiveSnapshot:
    cpu_current_speed: CpuCurrentSpeed = CpuCurrentSpeed()
    current_load: CurrentLoad = CurrentLoad()
    cpu_temperature: CpuTemperature = CpuTemperature()
    memory: MemoryInfo = MemoryInfo()
    runtime: RuntimeInfo = RuntimeInfo()

    def to_payload(self) -> dict[str, Any]:
        return to_payload(self)


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_payload(value: Any) -> Any:
    """Convert a model tree into the camelCase JSON shape the UI consumes."""
    if is_dataclass(value) and not isinstance(value, type):
        out: dict[str, Any] = {}
        for f in fields(value):
            out[camel_case(f.name)] = to_payload(getattr(value, f.name))
        return out
    if isinstance(value, (list, tuple)):
        return [to_payload(v) for v in value]
    return value
