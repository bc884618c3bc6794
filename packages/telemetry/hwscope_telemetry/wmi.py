"""Management-interface queries through a PowerShell CIM subprocess."""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

from .process import ToolRunner

logger = logging.getLogger("hwscope.telemetry")

POWERSHELL = "powershell"


def build_script(class_name: str, fields: Sequence[str], where: str | None = None) -> str:
    # -InputObject @(...) keeps a single instance from collapsing into a bare object.
    query = f"Get-CimInstance -ClassName {class_name}"
    if where:
        query += f" -Filter \"{where}\""
    selected = ", ".join(fields)
    return f"ConvertTo-Json -InputObject @({query} | Select-Object {selected}) -Compress -Depth 2"


def decode_rows(stdout: str | None) -> list[dict[str, Any]]:
    if not stdout or not stdout.strip():
        return []
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as exc:
        logger.debug("undecodable CIM output: %s", exc, extra={"event": "cim_decode_error"})
        return []
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        return []
    return [row for row in data if isinstance(row, dict)]


class CimQuery:
    """Runs ``Get-CimInstance`` for one class and decodes the JSON rows."""

    def __init__(self, runner: ToolRunner | None = None) -> None:
        self.runner = runner or ToolRunner()

    def query(self, class_name: str, fields: Sequence[str], where: str | None = None) -> list[dict[str, Any]]:
        script = build_script(class_name, fields, where)
        stdout = self.runner.run([POWERSHELL, "-NoProfile", "-NonInteractive", "-Command", script])
        return decode_rows(stdout)


def text(row: dict[str, Any], key: str) -> str:
    value = row.get(key)
    if isinstance(value, dict):
        # Serialized DateTime objects carry the raw value under "value".
        value = value.get("value")
    if value is None:
        return ""
    return str(value).strip()


def number(row: dict[str, Any], key: str) -> int:
    value = row.get(key)
    if isinstance(value, bool) or value is None:
        return 0
    try:
        result = int(value)
    except (TypeError, ValueError):
        return 0
    return max(result, 0)
