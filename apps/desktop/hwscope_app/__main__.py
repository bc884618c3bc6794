from __future__ import annotations

import sys

try:
    # Normal package import path.
    from .cli import main as _cli_main
except ImportError:
    # Script/frozen entrypoint path.
    from hwscope_app.cli import main as _cli_main

DEFAULT_COMMAND = "info"
GLOBAL_FLAGS = {"--verbose"}


def main(argv: list[str] | None = None) -> int:
    """Run the CLI; with no subcommand (``hwscope`` or ``hwscope --verbose``) print the inventory."""
    args = list(sys.argv[1:] if argv is None else argv)
    if all(arg in GLOBAL_FLAGS for arg in args):
        args.append(DEFAULT_COMMAND)
    return int(_cli_main(args))


if __name__ == "__main__":
    raise SystemExit(main())
