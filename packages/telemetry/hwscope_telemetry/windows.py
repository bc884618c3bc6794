"""Windows hardware source backed by CIM queries."""

from __future__ import annotations

from functools import cached_property
from typing import Any, Iterable

from .models import (
    AudioDevice,
    BaseboardInfo,
    BiosInfo,
    GpuController,
    MemorySlot,
    OpticalDevice,
    UsbDevice,
)
from .parsers import UNKNOWN, USB_VENDOR_LABEL, infer_gpu_vendor, parse_cpu_caption, parse_usb_pnp_id
from .process import ToolRunner
from .sources import HardwareSource
from .units import KIB, is_null_mac, normalize_firmware_date
from .wmi import POWERSHELL, CimQuery, number, text

# SMBIOS memory device codes as reported by Win32_PhysicalMemory.
FORM_FACTORS = {
    1: "Other", 2: "SIP", 3: "DIP", 4: "ZIP", 5: "SOJ", 6: "Proprietary",
    7: "SIMM", 8: "DIMM", 9: "TSOP", 10: "PGA", 11: "RIMM", 12: "SODIMM",
    13: "SRIMM", 14: "SMD", 15: "SSMP", 16: "QFP", 17: "TQFP", 18: "SOIC",
    19: "LCC", 20: "PLCC", 21: "BGA", 22: "FPBGA", 23: "LGA",
}
MEMORY_TYPES = {20: "DDR", 21: "DDR2", 22: "DDR2 FB-DIMM", 24: "DDR3", 26: "DDR4", 34: "DDR5"}

_UINT32 = 2**32


def _adapter_ram(row: dict[str, Any]) -> int:
    # AdapterRAM is a uint32 that older providers hand back sign-wrapped.
    value = row.get("AdapterRAM")
    if isinstance(value, bool) or not isinstance(value, int):
        return number(row, "AdapterRAM")
    return value + _UINT32 if value < 0 else value


def _memory_type(row: dict[str, Any]) -> str:
    code = number(row, "SMBIOSMemoryType")
    if code in MEMORY_TYPES:
        return MEMORY_TYPES[code]
    return MEMORY_TYPES.get(number(row, "MemoryType"), "")


class WindowsSource(HardwareSource):
    name = "windows"

    def __init__(self, runner: ToolRunner | None = None, cim: CimQuery | None = None) -> None:
        self.runner = runner or ToolRunner()
        self.cim = cim or CimQuery(self.runner)

    @cached_property
    def _processor(self) -> dict[str, Any] | None:
        rows = self.cim.query("Win32_Processor", ("Name", "Caption", "L2CacheSize", "L3CacheSize"))
        return rows[0] if rows else None

    def cache_sizes(self) -> tuple[int, int] | None:
        row = self._processor
        if row is None:
            return None
        return number(row, "L2CacheSize") * KIB, number(row, "L3CacheSize") * KIB

    def cpu_ids(self) -> tuple[str, str, str] | None:
        row = self._processor
        if row is None:
            return None
        return parse_cpu_caption(text(row, "Caption"))

    def gpus(self) -> tuple[GpuController, ...] | None:
        rows = self.cim.query(
            "Win32_VideoController", ("Name", "AdapterCompatibility", "AdapterRAM", "PNPDeviceID")
        )
        controllers = []
        for row in rows:
            name = text(row, "Name")
            compat = text(row, "AdapterCompatibility")
            controllers.append(
                GpuController(
                    model=name,
                    vendor=infer_gpu_vendor(f"{compat} {name}") or compat,
                    vram=_adapter_ram(row),
                    bus=text(row, "PNPDeviceID"),
                )
            )
        return tuple(controllers)

    def memory_layout(self) -> tuple[MemorySlot, ...] | None:
        rows = self.cim.query(
            "Win32_PhysicalMemory",
            (
                "Capacity",
                "Speed",
                "ConfiguredClockSpeed",
                "SMBIOSMemoryType",
                "MemoryType",
                "FormFactor",
                "Manufacturer",
                "PartNumber",
                "SerialNumber",
            ),
        )
        slots = []
        for index, row in enumerate(rows):
            size = number(row, "Capacity")
            if size <= 0:
                continue
            slots.append(
                MemorySlot(
                    slot=index,
                    size=size,
                    clock_speed=number(row, "ConfiguredClockSpeed") or number(row, "Speed"),
                    type=_memory_type(row),
                    form_factor=FORM_FACTORS.get(number(row, "FormFactor"), ""),
                    manufacturer=text(row, "Manufacturer"),
                    part_num=text(row, "PartNumber"),
                    serial_num=text(row, "SerialNumber"),
                )
            )
        return tuple(slots)

    def baseboard(self) -> BaseboardInfo | None:
        rows = self.cim.query("Win32_BaseBoard", ("Manufacturer", "Product", "Version", "SerialNumber"))
        if not rows:
            return None
        row = rows[0]
        return BaseboardInfo(
            manufacturer=text(row, "Manufacturer"),
            model=text(row, "Product"),
            version=text(row, "Version"),
            serial=text(row, "SerialNumber"),
        )

    def bios(self) -> BiosInfo | None:
        rows = self.cim.query("Win32_BIOS", ("Manufacturer", "SMBIOSBIOSVersion", "ReleaseDate"))
        if not rows:
            return None
        row = rows[0]
        return BiosInfo(
            vendor=text(row, "Manufacturer"),
            version=text(row, "SMBIOSBIOSVersion"),
            release_date=normalize_firmware_date(text(row, "ReleaseDate")),
        )

    def macs(self, interface_names: Iterable[str]) -> tuple[str, ...] | None:
        rows = self.cim.query("Win32_NetworkAdapterConfiguration", ("MACAddress",), where="IPEnabled=True")
        macs = [text(row, "MACAddress") for row in rows]
        return tuple(mac for mac in macs if not is_null_mac(mac))

    def audio(self) -> tuple[AudioDevice, ...] | None:
        rows = self.cim.query("Win32_SoundDevice", ("Name", "Manufacturer", "Status"))
        return tuple(
            AudioDevice(
                name=text(row, "Name"),
                manufacturer=text(row, "Manufacturer") or UNKNOWN,
                status=text(row, "Status"),
            )
            for row in rows
        )

    def usb_devices(self) -> tuple[UsbDevice, ...] | None:
        rows = self.cim.query(
            "Win32_PnPEntity", ("Name", "Manufacturer", "PNPDeviceID"), where="PNPDeviceID LIKE 'USB%'"
        )
        devices = []
        for row in rows:
            vendor_id, product_id = parse_usb_pnp_id(text(row, "PNPDeviceID"))
            if not vendor_id:
                # Root hubs and composite parents carry no VID/PID pair.
                continue
            devices.append(
                UsbDevice(
                    name=text(row, "Name"),
                    vendor=text(row, "Manufacturer") or USB_VENDOR_LABEL,
                    vendor_id=vendor_id,
                    product_id=product_id,
                )
            )
        return tuple(devices)

    def optical(self) -> tuple[OpticalDevice, ...] | None:
        rows = self.cim.query("Win32_CDROMDrive", ("Drive", "Caption", "Manufacturer"))
        return tuple(
            OpticalDevice(
                name=text(row, "Drive"),
                model=text(row, "Caption"),
                vendor=text(row, "Manufacturer") or UNKNOWN,
            )
            for row in rows
        )

    def uefi(self) -> bool | None:
        output = self.runner.run([POWERSHELL, "-NoProfile", "-NonInteractive", "-Command", "$env:firmware_type"])
        if output is None:
            return None
        return output.strip().upper() == "UEFI"

    def os_identity(self) -> tuple[str, str] | None:
        rows = self.cim.query("Win32_OperatingSystem", ("Caption", "Version"))
        if not rows:
            return None
        return text(rows[0], "Caption"), text(rows[0], "Version")
