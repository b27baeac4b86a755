"""Punto de entrada de la CLI."""

from __future__ import annotations

import sys

from vitals_tool.cli import main as cli_main


def main() -> int:
    """Run CLI entrypoint."""
    try:
        return cli_main()
    except (ValueError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
