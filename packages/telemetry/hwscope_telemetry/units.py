"""Unit conversion and line tokenizing helpers for tool and kernel output."""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Iterable

KIB = 1024
MIB = 1024**2
GIB = 1024**3
TIB = 1024**4

_CACHE_UNITS = {"": 1, "K": KIB, "M": MIB}
_MODULE_UNITS = {"KB": KIB, "MB": MIB, "GB": GIB, "TB": TIB}

_CACHE_RE = re.compile(r"^(\d+)\s*([KM]?)$")
_MODULE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*([KMGT]B)$", re.IGNORECASE)
_CLOCK_RE = re.compile(r"^(\d+)\s*(?:MT/s|MHz)$", re.IGNORECASE)

_PS_DATE_RE = re.compile(r"^/Date\((-?\d+)(?:[+-]\d{4})?\)/$")
_CIM_DATE_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})\d{6}")
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")

_NULL_MAC_RE = re.compile(r"^[0:\-.]*$")


def parse_cache_size(text: str) -> int:
    """Sysfs cache size (``32K``, ``8M`` or plain bytes) to bytes."""
    m = _CACHE_RE.match(text.strip())
    if not m:
        return 0
    return int(m.group(1)) * _CACHE_UNITS[m.group(2)]


def parse_module_size(text: str) -> int:
    """SMBIOS module size (``8192 MB``, ``16 GB``) to bytes; unitless text is 0."""
    m = _MODULE_RE.match(text.strip())
    if not m:
        return 0
    return int(float(m.group(1)) * _MODULE_UNITS[m.group(2).upper()])


def parse_clock_speed(text: str) -> int:
    m = _CLOCK_RE.match(text.strip())
    return int(m.group(1)) if m else 0


def percent(part: float, whole: float) -> float:
    if not whole:
        return 0.0
    return part / whole * 100.0


def saturating_sub(a: int, b: int) -> int:
    return max(a - b, 0)


def mean(values: Iterable[float]) -> float:
    items = list(values)
    return sum(items) / max(len(items), 1)


def finite(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


def normalize_firmware_date(text: str) -> str:
    """Bring firmware dates to the sysfs ``MM/DD/YYYY`` form.

    Handles PowerShell 5.1 JSON dates (``/Date(ms)/``), CIM datetimes
    (``YYYYMMDDhhmmss.ffffff+UUU``) and ISO dates. Anything else is returned
    trimmed.
    """
    value = text.strip()
    if not value:
        return ""

    m = _PS_DATE_RE.match(value)
    if m:
        try:
            stamp = datetime.fromtimestamp(int(m.group(1)) / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return value
        return stamp.strftime("%m/%d/%Y")

    m = _CIM_DATE_RE.match(value) or _ISO_DATE_RE.match(value)
    if m:
        year, month, day = m.groups()
        return f"{month}/{day}/{year}"
    return value


def split_field(line: str, sep: str = ":") -> tuple[str, str]:
    key, found, value = line.partition(sep)
    if not found:
        return line.strip(), ""
    return key.strip(), value.strip()


def is_null_mac(text: str) -> bool:
    return _NULL_MAC_RE.match(text.strip()) is not None
