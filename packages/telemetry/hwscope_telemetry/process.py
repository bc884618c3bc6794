"""Bounded external tool invocation and the privilege elevation retry policy."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger("hwscope.telemetry")

NO_ELEVATION_ENV = "HWSCOPE_NO_ELEVATION"
_TRUTHY = ("1", "true", "yes", "on")


def _creation_flags() -> int:
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


class ToolRunner:
    """Spawns a command-line tool and returns its stdout, or None on any failure."""

    def __init__(self, timeout_s: float = 5.0) -> None:
        self.timeout_s = timeout_s

    def run(self, argv: Sequence[str], timeout_s: float | None = None) -> str | None:
        limit = self.timeout_s if timeout_s is None else timeout_s
        try:
            result = subprocess.run(
                list(argv),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=limit,
                stdin=subprocess.DEVNULL,
                creationflags=_creation_flags(),
            )
        except FileNotFoundError:
            logger.debug("tool not found: %s", argv[0], extra={"event": "tool_missing"})
            return None
        except subprocess.TimeoutExpired:
            logger.debug("tool timed out after %.1fs: %s", limit, argv[0], extra={"event": "tool_timeout"})
            return None
        except OSError as exc:
            logger.debug("tool failed to start: %s (%s)", argv[0], exc, extra={"event": "tool_error"})
            return None

        if result.returncode != 0:
            logger.debug(
                "tool exited with %s: %s %s",
                result.returncode,
                argv[0],
                (result.stderr or "").strip()[:200],
                extra={"event": "tool_exit"},
            )
            return None
        return result.stdout


def elevation_disabled_by_env() -> bool:
    return os.environ.get(NO_ELEVATION_ENV, "").strip().lower() in _TRUTHY


@dataclass(frozen=True)
class ElevationPolicy:
    """Direct attempt first, then one retry through an interactive elevation wrapper."""

    enabled: bool = True
    wrapper: str = "pkexec"
    timeout_s: float = 60.0

    @property
    def active(self) -> bool:
        return self.enabled and not elevation_disabled_by_env()

    def run(self, runner: ToolRunner, argv: Sequence[str]) -> str | None:
        output = runner.run(argv)
        if output is not None or not self.active:
            return output
        logger.info("retrying %s with %s", argv[0], self.wrapper, extra={"event": "elevation_retry"})
        return runner.run([self.wrapper, *argv], timeout_s=self.timeout_s)
