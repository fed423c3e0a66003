"""Protocol interfaces for orchestration dependency typing."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol

from .models import BuildTarget, BuildVariant, ContractReport, PipelineResult


class CommandRunner(Protocol):
    """Runs one external command and returns its exit status."""

    def __call__(
        self,
        cmd: Sequence[str],
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> int: ...


class CompilePipelineInterface(Protocol):
    """One compile variant of a build target."""

    variant: BuildVariant

    def run(self, target: BuildTarget) -> PipelineResult: ...


class ContractExtractorInterface(Protocol):
    """Produces the contract snapshot for a repository."""

    def __call__(self, root: Path, clean: bool = True) -> ContractReport: ...

