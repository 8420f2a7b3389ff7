#!/usr/bin/env python3
"""
Generate C# ORM models and a DbContext from Kusto database schemas.

Schemas come either from a live cluster (--cluster/--token) or from a YAML
snapshot (--snapshot).

Examples:
    python -m kusto_ormgen generate ormgen.yaml --snapshot schema.yaml
    python -m kusto_ormgen generate ormgen.yaml --cluster https://help.kusto.windows.net
"""

from __future__ import annotations

import argparse
import asyncio
import os
from dataclasses import replace
from pathlib import Path

from ..shared import ConfigurationError, OrmGenError
from .config import GeneratorConfig, load_config
from .orchestrator import ConsoleProgressReporter, GenerationOrchestrator, GenerationSummary
from .schema_source import KustoRestSchemaSource, SchemaSource, SnapshotSchemaSource

TOKEN_ENV_VAR = "KUSTO_ACCESS_TOKEN"


def build_source(args: argparse.Namespace) -> SchemaSource:
    """Pick the schema source from the command-line options."""
    if args.snapshot is not None:
        if args.cluster:
            raise ConfigurationError("cannot be combined with --cluster", "snapshot")
        return SnapshotSchemaSource.from_file(args.snapshot)
    if not args.cluster:
        raise ConfigurationError("either --cluster or --snapshot is required", "source")
    return KustoRestSchemaSource(args.cluster, args.token or "", timeout=args.timeout)


def apply_overrides(config: GeneratorConfig, args: argparse.Namespace) -> GeneratorConfig:
    if args.clean:
        config = replace(config, clean_before_generate=True)
    if args.no_context:
        config = replace(config, create_context=False)
    if args.nullable:
        config = replace(config, enable_nullable=True)
    return config


def generate(config: GeneratorConfig, source: SchemaSource) -> GenerationSummary:
    """Run a generation to completion with console progress."""
    orchestrator = GenerationOrchestrator(config, source, progress=ConsoleProgressReporter())
    return asyncio.run(orchestrator.generate())


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("config", type=Path, help="Generator configuration YAML file")
    parser.add_argument("--cluster", default=None, help="Kusto cluster URL")
    parser.add_argument(
        "--token",
        default=os.environ.get(TOKEN_ENV_VAR),
        help=f"Bearer token for the cluster (default: ${TOKEN_ENV_VAR})",
    )
    parser.add_argument(
        "--snapshot",
        type=Path,
        default=None,
        help="Read schemas from a YAML snapshot instead of a cluster",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Per-request timeout in seconds",
    )
    parser.add_argument(
        "--clean",
        action="store_true",
        help="Remove previously generated output first",
    )
    parser.add_argument(
        "--no-context",
        action="store_true",
        help="Generate models only",
    )
    parser.add_argument(
        "--nullable",
        action="store_true",
        help="Emit nullable reference type annotations",
    )

    args = parser.parse_args(argv)

    try:
        config = apply_overrides(load_config(args.config), args)
        summary = generate(config, build_source(args))
    except OrmGenError as e:
        raise SystemExit(f"Error: {e}") from e

    print(
        f"\nGenerated {len(summary.model_paths)} model(s) from "
        f"{len(config.databases)} database(s)"
    )
    if summary.context_path is not None:
        print(f"Context: {summary.context_path}")


if __name__ == "__main__":
    main()
