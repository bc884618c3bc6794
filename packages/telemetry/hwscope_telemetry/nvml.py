"""Dedicated GPU memory from NVIDIA NVML, keyed by PCI bus address."""

from __future__ import annotations

import logging

import pynvml

logger = logging.getLogger("hwscope.telemetry")


def normalize_bus_id(bus: str) -> str:
    """``00000000:01:00.0`` and ``0000:01:00.0`` both become ``01:00.0``."""
    parts = bus.strip().lower().split(":")
    return ":".join(parts[-2:])


def read_vram_by_bus() -> dict[str, int]:
    try:
        pynvml.nvmlInit()
    except pynvml.NVMLError as exc:
        logger.debug("NVML unavailable: %s", exc, extra={"event": "nvml_unavailable"})
        return {}

    vram: dict[str, int] = {}
    try:
        for index in range(pynvml.nvmlDeviceGetCount()):
            handle = pynvml.nvmlDeviceGetHandleByIndex(index)
            bus = pynvml.nvmlDeviceGetPciInfo(handle).busId
            if isinstance(bus, bytes):
                bus = bus.decode("ascii", errors="replace")
            vram[normalize_bus_id(bus)] = int(pynvml.nvmlDeviceGetMemoryInfo(handle).total)
    except pynvml.NVMLError as exc:
        logger.debug("NVML query failed: %s", exc, extra={"event": "nvml_error"})
    finally:
        try:
            pynvml.nvmlShutdown()
        except pynvml.NVMLError:
            pass
    return vram


def nvml_available() -> bool:
    try:
        pynvml.nvmlInit()
    except pynvml.NVMLError:
        return False
    try:
        pynvml.nvmlShutdown()
    except pynvml.NVMLError:
        pass
    return True
