from __future__ import annotations

import runpy
from pathlib import Path

import pytest

import hwscope_app.__main__ as desktop_main


@pytest.fixture
def cli_calls(monkeypatch) -> list[list[str]]:
    calls: list[list[str]] = []
    monkeypatch.setattr(desktop_main, "_cli_main", lambda argv=None: calls.append(list(argv or [])) or 0)
    return calls


@pytest.mark.parametrize(
    ("argv", "expected"),
    [
        ([], ["info"]),
        (["--verbose"], ["--verbose", "info"]),
        (["doctor", "--export"], ["doctor", "--export"]),
        (["--verbose", "live"], ["--verbose", "live"]),
    ],
)
def test_main_routes_to_cli(cli_calls, argv, expected) -> None:
    assert desktop_main.main(argv) == 0
    assert cli_calls == [expected]


def test_main_reads_process_argv(cli_calls, monkeypatch) -> None:
    monkeypatch.setattr(desktop_main.sys, "argv", ["hwscope", "config", "path"])
    desktop_main.main()
    assert cli_calls == [["config", "path"]]


def test_main_module_runpath_without_package_context() -> None:
    main_path = Path(__file__).resolve().parents[1] / "apps" / "desktop" / "hwscope_app" / "__main__.py"
    result = runpy.run_path(str(main_path))
    assert "main" in result
