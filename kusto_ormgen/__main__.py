#!/usr/bin/env python3
"""
Kusto ORM generator CLI.

Usage:
    python -m kusto_ormgen <command> [options]

Commands:
    generate    Generate C# models and a DbContext from Kusto schemas
    clean       Remove previously generated output

Examples:
    python -m kusto_ormgen generate ormgen.yaml --snapshot schema.yaml
    python -m kusto_ormgen generate ormgen.yaml --cluster https://help.kusto.windows.net --clean
    python -m kusto_ormgen clean ormgen.yaml --dry-run
"""

from __future__ import annotations

import sys


def _run(entry, args: list[str]) -> int:
    try:
        entry(args)
        return 0
    except SystemExit as e:
        if e.code is None or isinstance(e.code, int):
            return e.code or 0
        print(e.code, file=sys.stderr)
        return 1


def cmd_generate(args: list[str]) -> int:
    """Generate models and context."""
    from kusto_ormgen.orm_codegen import main as generator
    return _run(generator.main, args)


def cmd_clean(args: list[str]) -> int:
    """Clean generated output."""
    from kusto_ormgen import clean
    return _run(clean.main, args)


COMMANDS = {
    "generate": (cmd_generate, "Generate C# models and a DbContext from Kusto schemas"),
    "clean": (cmd_clean, "Remove previously generated output"),
}


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] in ("-h", "--help"):
        print(__doc__)
        print("Available commands:")
        for name, (_, desc) in COMMANDS.items():
            print(f"  {name:12} {desc}")
        print("\nUse '<command> --help' for command-specific options.")
        return 0

    command = argv[0]
    args = argv[1:]

    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print(f"Available commands: {', '.join(COMMANDS.keys())}")
        return 1

    handler, _ = COMMANDS[command]
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
