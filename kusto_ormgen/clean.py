#!/usr/bin/env python3
"""
Clean generated ORM output.

Removes:
- The generated DbContext file
- Every file under the models folder (emptied subfolders are pruned)
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Iterator

from kusto_ormgen.shared import FilesystemError, OrmGenError


def find_generated_files(root: Path) -> Iterator[Path]:
    """Find every file under root, recursively."""
    for path in sorted(root.rglob("*")):
        if path.is_file():
            yield path


def format_size(size_bytes: int) -> str:
    """Format size in human-readable form."""
    for unit in ("B", "KB", "MB", "GB"):
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} TB"


def clean_file(path: Path, *, dry_run: bool = False) -> int:
    """Remove a file, returning bytes freed."""
    if not path.is_file():
        return 0

    try:
        size = path.stat().st_size
        if dry_run:
            print(f"  Would remove: {path} - {format_size(size)}")
        else:
            path.unlink()
    except OSError as e:
        raise FilesystemError(f"Failed to remove file ({e.strerror or e})", path) from e
    return size


def prune_empty_dirs(root: Path) -> None:
    """Remove empty directories below root, deepest first. Root itself is kept."""
    if not root.is_dir():
        return
    subdirs = sorted(
        (p for p in root.rglob("*") if p.is_dir()),
        key=lambda p: len(p.parts),
        reverse=True,
    )
    for path in subdirs:
        try:
            if not any(path.iterdir()):
                path.rmdir()
        except OSError as e:
            raise FilesystemError(f"Failed to remove directory ({e.strerror or e})", path) from e


def clean_models_folder(models_folder: Path, *, dry_run: bool = False) -> int:
    """Remove every file under the models folder, returning bytes freed."""
    if not models_folder.is_dir():
        return 0

    total = 0
    for path in find_generated_files(models_folder):
        total += clean_file(path, dry_run=dry_run)
    if not dry_run:
        prune_empty_dirs(models_folder)
    return total


def clean_generated_output(
    models_folder: Path,
    context_file: Path | None,
    *,
    dry_run: bool = False,
) -> int:
    """Remove the context file and all generated models.

    Runs to completion before returning so callers can start writing
    new output afterwards.
    """
    total = 0
    if context_file is not None:
        total += clean_file(context_file, dry_run=dry_run)
    total += clean_models_folder(models_folder, dry_run=dry_run)
    return total


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("config", type=Path, help="Generator configuration YAML file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be cleaned without removing anything",
    )
    args = parser.parse_args(argv)

    from kusto_ormgen.orm_codegen.config import load_config

    try:
        config = load_config(args.config).resolve()
        print("Cleaning generated output...")
        total_freed = clean_generated_output(
            config.models_folder,
            config.context_file,
            dry_run=args.dry_run,
        )
    except OrmGenError as e:
        raise SystemExit(f"Error: {e}") from e

    action = "Would free" if args.dry_run else "Freed"
    print(f"\n{action}: {format_size(total_freed)}")

    if args.dry_run:
        print("\nRun without --dry-run to actually clean.")


if __name__ == "__main__":
    main()
