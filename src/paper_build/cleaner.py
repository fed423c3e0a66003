"""Removal of generated build artifacts."""

from __future__ import annotations

import shutil
from pathlib import Path

DEFAULT_BUILD_DIRS = ("build", "build_annotated")
DEFAULT_CONTRACTS_DIR = "artifacts/contracts"


def clean_artifacts(
    root: str | Path,
    include_contracts: bool = False,
    build_dirs: tuple[str, ...] | list[str] = DEFAULT_BUILD_DIRS,
    contracts_dir: str = DEFAULT_CONTRACTS_DIR,
) -> list[Path]:
    """Delete generated output directories under ``root``.

    Missing directories are skipped, so calling this twice leaves the same
    tree as calling it once.

    Returns:
        The directories that existed and were removed.
    """

    root_path = Path(root)
    targets = [root_path / name for name in build_dirs]
    if include_contracts:
        targets.append(root_path / contracts_dir)

    removed: list[Path] = []
    for target in targets:
        if not target.exists():
            continue
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink()
        removed.append(target)
    return removed
