"""Settings, logging and diagnostics shared by the hwscope front ends."""

from .config import AppConfig, load_config, save_config
from .diagnostics import DiagnosticsExporter, build_doctor_payload

__all__ = [
    "AppConfig",
    "DiagnosticsExporter",
    "build_doctor_payload",
    "load_config",
    "save_config",
]
