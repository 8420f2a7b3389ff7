#!/usr/bin/env python3
"""
Convenience wrapper that forwards to the kusto_ormgen module.
Run with --help to see available commands.

Usage:
    python ormgen.py <command> [options]
    ./ormgen.py <command> [options]  (on Unix with execute permission)

Commands:
    generate    Generate C# models and a DbContext from Kusto schemas
    clean       Remove previously generated output

Examples:
    python ormgen.py generate ormgen.yaml --snapshot schema.yaml
    python ormgen.py clean ormgen.yaml --dry-run
"""

import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent


def child_env() -> dict[str, str]:
    """Current environment with ROOT prepended to PYTHONPATH."""
    env = dict(os.environ)
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = os.pathsep.join([str(ROOT), existing]) if existing else str(ROOT)
    return env


def main() -> int:
    """Forward all arguments to the kusto_ormgen module."""
    return subprocess.call(
        [sys.executable, "-m", "kusto_ormgen"] + sys.argv[1:],
        env=child_env(),
    )


if __name__ == "__main__":
    sys.exit(main())
