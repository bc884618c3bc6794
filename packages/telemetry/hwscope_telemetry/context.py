"""Host identity and clock values captured once per collection call."""

from __future__ import annotations

import platform
import socket
import sys
import time
from dataclasses import dataclass

import psutil

from .models import RuntimeInfo

_PLATFORMS = {"linux": "linux", "win32": "win32", "darwin": "darwin"}


def platform_name(target: str | None = None) -> str:
    target = target or sys.platform
    if target.startswith("linux"):
        return "linux"
    return _PLATFORMS.get(target, target)


@dataclass(frozen=True)
class HostContext:
    hostname: str = ""
    fqdn: str = ""
    boot_time: float = 0.0
    now: float = 0.0
    kernel: str = ""
    os_release: str = ""
    arch: str = ""
    platform: str = ""
    python_version: str = ""

    @classmethod
    def capture(cls) -> HostContext:
        hostname = socket.gethostname()
        return cls(
            hostname=hostname,
            fqdn=hostname,
            boot_time=psutil.boot_time(),
            now=time.time(),
            kernel=platform.release(),
            os_release=platform.version(),
            arch=platform.machine(),
            platform=platform_name(),
            python_version=platform.python_version(),
        )

    def runtime(self) -> RuntimeInfo:
        return RuntimeInfo(uptime=max(int(self.now - self.boot_time), 0), current=int(self.now))
