"""Parsers for fixed-format command and kernel table output.

Every parser is a pure function of its input text: no I/O, no globals, and
malformed lines are skipped rather than partially recorded.
"""

from __future__ import annotations

import re
from dataclasses import replace

from .models import AudioDevice, GpuController, MemorySlot, OpticalDevice, UsbDevice
from .units import parse_clock_speed, parse_module_size, split_field

GPU_CLASS_MARKERS = ("VGA", "3D", "Display")

# Checked in order; the first keyword found decides the vendor.
GPU_VENDOR_KEYWORDS = (
    ("NVIDIA", "NVIDIA"),
    ("AMD", "AMD"),
    ("ATI", "AMD"),
    ("Intel", "Intel"),
)

USB_VENDOR_LABEL = "USB Device"
UNKNOWN = "Unknown"

_CPU_ID_KEYS = {"cpu family": "family", "model": "model", "stepping": "stepping"}

_DMI_TEXT_FIELDS = {
    "Type": "type",
    "Form Factor": "form_factor",
    "Manufacturer": "manufacturer",
    "Part Number": "part_num",
    "Serial Number": "serial_num",
}

_CAPTION_RE = re.compile(r"Family\s+(\d+)\s+Model\s+(\d+)\s+Stepping\s+(\d+)", re.IGNORECASE)
_PNP_USB_RE = re.compile(r"VID_([0-9A-F]{4})&PID_([0-9A-F]{4})", re.IGNORECASE)


def parse_cpuinfo_ids(text: str) -> tuple[str, str, str]:
    """Family, model and stepping from a ``/proc/cpuinfo`` style table."""
    found: dict[str, str] = {}
    for line in text.splitlines():
        key, value = split_field(line)
        name = _CPU_ID_KEYS.get(key)
        if name and name not in found:
            found[name] = value
        if len(found) == len(_CPU_ID_KEYS):
            break
    return found.get("family", ""), found.get("model", ""), found.get("stepping", "")


def parse_cpu_caption(text: str) -> tuple[str, str, str]:
    m = _CAPTION_RE.search(text)
    if not m:
        return "", "", ""
    family, model, stepping = m.groups()
    return family, model, stepping


def parse_dmidecode_memory(text: str) -> tuple[MemorySlot, ...]:
    """Memory modules from ``dmidecode -t 17`` output.

    Slots are numbered by block order; blocks without a positive size (empty
    sockets) are dropped.
    """
    slots: list[MemorySlot] = []
    current: MemorySlot | None = None
    index = 0

    for raw in text.splitlines():
        line = raw.strip()
        if line == "Memory Device":
            if current is not None and current.size > 0:
                slots.append(current)
            current = MemorySlot(slot=index)
            index += 1
            continue
        if current is None:
            continue

        key, value = split_field(line)
        if key == "Size":
            current = replace(current, size=parse_module_size(value))
        elif key == "Speed":
            current = replace(current, clock_speed=parse_clock_speed(value))
        elif key in _DMI_TEXT_FIELDS:
            current = replace(current, **{_DMI_TEXT_FIELDS[key]: value})

    if current is not None and current.size > 0:
        slots.append(current)
    return tuple(slots)


def infer_gpu_vendor(description: str) -> str:
    for keyword, vendor in GPU_VENDOR_KEYWORDS:
        if keyword in description:
            return vendor
    return ""


def parse_lspci_gpus(text: str) -> tuple[GpuController, ...]:
    controllers: list[GpuController] = []
    for line in text.splitlines():
        if not any(marker in line for marker in GPU_CLASS_MARKERS):
            continue
        bus, _, description = line.partition(" ")
        if not description:
            continue
        controllers.append(
            GpuController(
                model=description.rsplit(":", 1)[-1].strip(),
                vendor=infer_gpu_vendor(description),
                vram=0,
                bus=bus,
            )
        )
    return tuple(controllers)


def parse_aplay_cards(text: str) -> tuple[AudioDevice, ...]:
    """Sound cards from ``aplay -l``.

    ``card 0: PCH [HDA Intel PCH], device 0: ALC3246 Analog [ALC3246 Analog]``
    becomes name ``PCH`` and manufacturer ``HDA Intel PCH``.
    """
    devices: list[AudioDevice] = []
    for line in text.splitlines():
        if not line.startswith("card"):
            continue
        parts = line.split(":", 3)
        if len(parts) < 2:
            continue
        card = parts[1].strip()
        name, bracket, rest = card.partition("[")
        manufacturer = UNKNOWN
        if bracket:
            manufacturer = rest.partition("]")[0]
        devices.append(AudioDevice(name=name.strip(), manufacturer=manufacturer, status="Active"))
    return tuple(devices)


def parse_lsusb(text: str) -> tuple[UsbDevice, ...]:
    """Devices from plain ``lsusb``.

    ``Bus 002 Device 001: ID 1d6b:0003 Linux Foundation 3.0 root hub``
    """
    devices: list[UsbDevice] = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 7 or parts[4] != "ID":
            continue
        ids = parts[5].split(":")
        if len(ids) != 2:
            continue
        devices.append(
            UsbDevice(
                name=" ".join(parts[6:]),
                vendor=USB_VENDOR_LABEL,
                vendor_id=ids[0],
                product_id=ids[1],
                bus=parts[1],
                device=parts[3].rstrip(":"),
            )
        )
    return tuple(devices)


def parse_usb_pnp_id(text: str) -> tuple[str, str]:
    m = _PNP_USB_RE.search(text)
    if not m:
        return "", ""
    return m.group(1).lower(), m.group(2).lower()


def _columns(value: str) -> list[str]:
    return [col.strip() for col in value.split("\t") if col.strip()]


def parse_cdrom_info(text: str) -> tuple[OpticalDevice, ...]:
    """Optical drives from ``/proc/sys/dev/cdrom/info``.

    A ``drive name:`` row is paired with the next ``drive model:`` row. The
    kernel prints one tab separated column per drive, so several names are
    matched positionally with the model columns.
    """
    devices: list[OpticalDevice] = []
    pending: list[str] = []
    for line in text.splitlines():
        if line.startswith("drive name:"):
            pending = _columns(split_field(line)[1])
        elif pending and line.startswith("drive model:"):
            value = split_field(line)[1]
            models = _columns(value) if len(pending) > 1 else [value]
            for pos, name in enumerate(pending):
                model = models[pos] if pos < len(models) else ""
                devices.append(OpticalDevice(name=name, model=model, vendor=UNKNOWN))
            pending = []
    return tuple(devices)


def parse_os_release(text: str) -> dict[str, str]:
    """``KEY=value`` pairs from an os-release file, with shell quoting removed."""
    values: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        key, found, value = line.partition("=")
        if not found:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        values[key.strip()] = value
    return values
