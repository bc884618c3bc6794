"""Linux hardware source: sysfs, procfs and the usual command-line tools."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Iterable

from . import nvml
from .models import (
    AudioDevice,
    BaseboardInfo,
    BiosInfo,
    BlockDeviceFacts,
    GpuController,
    MemorySlot,
    OpticalDevice,
    UsbDevice,
)
from .parsers import (
    UNKNOWN,
    parse_aplay_cards,
    parse_cdrom_info,
    parse_cpuinfo_ids,
    parse_dmidecode_memory,
    parse_lspci_gpus,
    parse_lsusb,
    parse_os_release,
)
from .process import ElevationPolicy, ToolRunner
from .sources import HardwareSource
from .units import is_null_mac, parse_cache_size

CACHE_INDEXES = range(10)
SECTOR_SIZE = 512

_ROTATIONAL_KIND = {"1": "HDD", "0": "SSD"}
_INTERFACE_PREFIXES = (
    ("nvme", "NVMe"),
    ("mmcblk", "MMC"),
    ("sd", "SATA/SCSI"),
    ("vd", "VirtIO"),
)


def interface_for_device(name: str) -> str:
    for prefix, interface in _INTERFACE_PREFIXES:
        if name.startswith(prefix):
            return interface
    return ""


class LinuxSource(HardwareSource):
    name = "linux"

    def __init__(
        self,
        runner: ToolRunner | None = None,
        elevation: ElevationPolicy | None = None,
        root: str | Path = "/",
    ) -> None:
        self.runner = runner or ToolRunner()
        self.elevation = elevation or ElevationPolicy()
        self.root = Path(root)

    def _read(self, relative: str) -> str | None:
        try:
            return (self.root / relative).read_text(encoding="utf-8", errors="replace")
        except OSError:
            return None

    def _read_field(self, relative: str) -> str:
        value = self._read(relative)
        return value.strip() if value is not None else ""

    def cache_sizes(self) -> tuple[int, int] | None:
        l2 = l3 = 0
        found = False
        for index in CACHE_INDEXES:
            base = f"sys/devices/system/cpu/cpu0/cache/index{index}"
            level = self._read_field(f"{base}/level")
            size = self._read_field(f"{base}/size")
            if not level or not size:
                continue
            found = True
            if level == "2":
                l2 = parse_cache_size(size)
            elif level == "3":
                l3 = parse_cache_size(size)
        return (l2, l3) if found else None

    def cpu_ids(self) -> tuple[str, str, str] | None:
        text = self._read("proc/cpuinfo")
        if text is None:
            return None
        return parse_cpuinfo_ids(text)

    def gpus(self) -> tuple[GpuController, ...] | None:
        output = self.runner.run(["lspci"])
        if output is None:
            return None
        controllers = parse_lspci_gpus(output)
        if any(c.vendor == "NVIDIA" for c in controllers):
            controllers = self._with_nvml_vram(controllers)
        return controllers

    def _with_nvml_vram(self, controllers: tuple[GpuController, ...]) -> tuple[GpuController, ...]:
        vram = nvml.read_vram_by_bus()
        if not vram:
            return controllers
        return tuple(
            replace(c, vram=vram.get(nvml.normalize_bus_id(c.bus), c.vram)) for c in controllers
        )

    def memory_layout(self) -> tuple[MemorySlot, ...] | None:
        output = self.elevation.run(self.runner, ["dmidecode", "-t", "17"])
        if output is None:
            return None
        return parse_dmidecode_memory(output)

    def baseboard(self) -> BaseboardInfo | None:
        board = BaseboardInfo(
            manufacturer=self._read_field("sys/class/dmi/id/board_vendor"),
            model=self._read_field("sys/class/dmi/id/board_name"),
            version=self._read_field("sys/class/dmi/id/board_version"),
            serial=self._read_field("sys/class/dmi/id/board_serial"),
        )
        return None if board == BaseboardInfo() else board

    def bios(self) -> BiosInfo | None:
        info = BiosInfo(
            vendor=self._read_field("sys/class/dmi/id/bios_vendor"),
            version=self._read_field("sys/class/dmi/id/bios_version"),
            release_date=self._read_field("sys/class/dmi/id/bios_date"),
        )
        return None if info == BiosInfo() else info

    def macs(self, interface_names: Iterable[str]) -> tuple[str, ...] | None:
        macs = []
        for name in interface_names:
            mac = self._read_field(f"sys/class/net/{name}/address")
            if not is_null_mac(mac):
                macs.append(mac)
        return tuple(macs)

    def audio(self) -> tuple[AudioDevice, ...] | None:
        output = self.runner.run(["aplay", "-l"])
        if output is None:
            return None
        return parse_aplay_cards(output)

    def usb_devices(self) -> tuple[UsbDevice, ...] | None:
        output = self.runner.run(["lsusb"])
        if output is None:
            return None
        return parse_lsusb(output)

    def optical(self) -> tuple[OpticalDevice, ...] | None:
        text = self._read("proc/sys/dev/cdrom/info")
        devices = parse_cdrom_info(text) if text else ()
        if not devices and (self.root / "dev/sr0").exists():
            devices = (OpticalDevice(name="sr0", model="CD/DVD Drive", vendor=UNKNOWN),)
        return devices

    def block_device(self, device: str) -> BlockDeviceFacts | None:
        name = Path(device).name
        if not name:
            return None
        entry = self.root / "sys/class/block" / name
        if not entry.exists():
            return None

        disk = name
        if (entry / "partition").exists():
            disk = entry.resolve().parent.name

        base = f"sys/block/{disk}"
        sectors = self._read_field(f"{base}/size")
        return BlockDeviceFacts(
            kind=_ROTATIONAL_KIND.get(self._read_field(f"{base}/queue/rotational"), ""),
            interface_type=interface_for_device(disk),
            size=int(sectors) * SECTOR_SIZE if sectors.isdigit() else 0,
        )

    def uefi(self) -> bool | None:
        return (self.root / "sys/firmware/efi").is_dir()

    def os_identity(self) -> tuple[str, str] | None:
        text = self._read("etc/os-release") or self._read("usr/lib/os-release")
        if not text:
            return None
        values = parse_os_release(text)
        return values.get("PRETTY_NAME") or values.get("NAME", ""), values.get("VERSION_ID", "")
