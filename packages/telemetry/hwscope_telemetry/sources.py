"""Per-domain hardware source interface.

A source answers one question per hardware domain. Returning ``None`` means
"no data from this source"; the assembler owns the substitution of defaults.
The base class is also the source used on platforms without an adapter.
"""

from __future__ import annotations

from typing import Iterable

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


class HardwareSource:
    name = "stub"

    def cache_sizes(self) -> tuple[int, int] | None:
        """L2 and L3 cache sizes in bytes."""
        return None

    def cpu_ids(self) -> tuple[str, str, str] | None:
        """CPU family, model and stepping as text."""
        return None

    def gpus(self) -> tuple[GpuController, ...] | None:
        return None

    def memory_layout(self) -> tuple[MemorySlot, ...] | None:
        return None

    def baseboard(self) -> BaseboardInfo | None:
        return None

    def bios(self) -> BiosInfo | None:
        return None

    def macs(self, interface_names: Iterable[str]) -> tuple[str, ...] | None:
        return None

    def audio(self) -> tuple[AudioDevice, ...] | None:
        return None

    def usb_devices(self) -> tuple[UsbDevice, ...] | None:
        return None

    def optical(self) -> tuple[OpticalDevice, ...] | None:
        return None

    def block_device(self, device: str) -> BlockDeviceFacts | None:
        return None

    def uefi(self) -> bool | None:
        return None

    def os_identity(self) -> tuple[str, str] | None:
        """Long distribution name and release version."""
        return None
