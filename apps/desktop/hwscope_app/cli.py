"""CLI entrypoints for hardware snapshots, diagnostics, and settings."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from hwscope_core import AppConfig, DiagnosticsExporter, build_doctor_payload, load_config, save_config
from hwscope_core.config import config_path
from hwscope_core.logging_setup import configure_logging

from .commands import CommandError, get_hardware_info, get_hardware_live


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _dump(data: object, cfg: AppConfig, compact: bool) -> str:
    if compact:
        return json.dumps(data, separators=(",", ":"), sort_keys=cfg.output.sort_keys)
    return json.dumps(data, indent=cfg.output.indent or None, sort_keys=cfg.output.sort_keys)


def cmd_info(args: argparse.Namespace) -> int:
    cfg = load_config()
    if args.no_elevation:
        cfg.collector.allow_elevation = False
    if args.serial:
        cfg.collector.parallel_sources = False

    text = _dump(get_hardware_info(cfg), cfg, args.compact)
    if args.out:
        out = Path(args.out).expanduser()
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text + "\n", encoding="utf-8")
        print(str(out.resolve()))
    else:
        print(text)
    return 0


def cmd_live(args: argparse.Namespace) -> int:
    cfg = load_config()
    print(_dump(get_hardware_live(cfg), cfg, args.compact))
    return 0


def cmd_doctor(args: argparse.Namespace) -> int:
    cfg = load_config()
    payload = build_doctor_payload(cfg)

    if args.export:
        snapshot = get_hardware_info(cfg) if cfg.diagnostics.include_snapshot else None
        exporter = DiagnosticsExporter()
        out_dir = Path(args.out_dir).expanduser().resolve() if args.out_dir else None
        bundle = exporter.bundle(cfg=cfg, doctor_payload=payload, snapshot=snapshot, output_dir=out_dir)
        payload["diagnostics_bundle"] = str(bundle)

    _print_json(payload)
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    if args.config_cmd == "path":
        print(str(config_path()))
    elif args.config_cmd == "reset":
        print(str(save_config(AppConfig())))
    else:
        _print_json(asdict(load_config()))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hwscope", description="Hardware inventory and live telemetry")
    parser.add_argument("--verbose", action="store_true", help="Log debug output to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    info_cmd = sub.add_parser("info", help="Print the full hardware snapshot")
    info_cmd.add_argument("--out", default=None, help="Write the snapshot to a file instead of stdout")
    info_cmd.add_argument("--compact", action="store_true", help="Single-line JSON")
    info_cmd.add_argument("--no-elevation", action="store_true", help="Never retry dmidecode through pkexec")
    info_cmd.add_argument("--serial", action="store_true", help="Query sources one at a time")
    info_cmd.set_defaults(func=cmd_info)

    live_cmd = sub.add_parser("live", help="Print the live telemetry snapshot")
    live_cmd.add_argument("--compact", action="store_true", help="Single-line JSON")
    live_cmd.set_defaults(func=cmd_live)

    doctor_cmd = sub.add_parser("doctor", help="Print collector diagnostics")
    doctor_cmd.add_argument("--export", action="store_true", help="Export offline diagnostics bundle")
    doctor_cmd.add_argument("--out-dir", default=None, help="Optional output directory for diagnostics bundle")
    doctor_cmd.set_defaults(func=cmd_doctor)

    config_cmd = sub.add_parser("config", help="Inspect or reset settings")
    config_cmd.add_argument("config_cmd", choices=["show", "path", "reset"])
    config_cmd.set_defaults(func=cmd_config)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(console=args.verbose, level=logging.DEBUG if args.verbose else logging.INFO)
    try:
        return int(args.func(args))
    except CommandError as exc:
        print(str(exc), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
