import io
import json
import sys
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "apps" / "desktop"))
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from hwscope_app import cli
from hwscope_app.cli import build_parser
from hwscope_app.commands import CommandError
from hwscope_core.config import AppConfig


class CliParserTests(unittest.TestCase):
    def test_info_command(self):
        args = build_parser().parse_args(["info", "--compact", "--no-elevation", "--out", "snap.json"])
        self.assertEqual(args.command, "info")
        self.assertTrue(args.compact)
        self.assertTrue(args.no_elevation)
        self.assertEqual(args.out, "snap.json")

    def test_live_command(self):
        args = build_parser().parse_args(["--verbose", "live"])
        self.assertEqual(args.command, "live")
        self.assertTrue(args.verbose)

    def test_doctor_command(self):
        args = build_parser().parse_args(["doctor", "--export", "--out-dir", "/tmp/x"])
        self.assertTrue(args.export)
        self.assertEqual(args.out_dir, "/tmp/x")

    def test_config_command(self):
        args = build_parser().parse_args(["config", "path"])
        self.assertEqual(args.config_cmd, "path")


class CliMainTests(unittest.TestCase):
    def setUp(self):
        for target, value in (
            ("hwscope_app.cli.configure_logging", None),
            ("hwscope_app.cli.load_config", AppConfig()),
        ):
            patcher = mock.patch(target, return_value=value)
            patcher.start()
            self.addCleanup(patcher.stop)

    def test_info_prints_payload_and_applies_flags(self):
        seen = []

        def fake_info(cfg):
            seen.append(cfg)
            return {"cpu": {"cores": 8}}

        out = io.StringIO()
        with mock.patch("hwscope_app.cli.get_hardware_info", side_effect=fake_info), redirect_stdout(out):
            rc = cli.main(["info", "--compact", "--no-elevation", "--serial"])
        self.assertEqual(rc, 0)
        self.assertEqual(out.getvalue().strip(), '{"cpu":{"cores":8}}')
        self.assertFalse(seen[0].collector.allow_elevation)
        self.assertFalse(seen[0].collector.parallel_sources)

    def test_live_pretty_output(self):
        out = io.StringIO()
        with mock.patch("hwscope_app.cli.get_hardware_live", return_value={"currentLoad": {"currentLoad": 3.5}}), redirect_stdout(out):
            rc = cli.main(["live"])
        self.assertEqual(rc, 0)
        self.assertEqual(json.loads(out.getvalue()), {"currentLoad": {"currentLoad": 3.5}})

    def test_command_error_exits_one(self):
        err = io.StringIO()
        with mock.patch("hwscope_app.cli.get_hardware_info", side_effect=CommandError("get_hardware_info failed: boom")), redirect_stderr(err):
            rc = cli.main(["info"])
        self.assertEqual(rc, 1)
        self.assertIn("boom", err.getvalue())


if __name__ == "__main__":
    unittest.main()
