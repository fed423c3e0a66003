"""Core data models for paper builds and contract snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path


class BuildVariant(str, Enum):
    """The two realizations of a build target."""

    STANDARD = "standard"
    ANNOTATED = "annotated"


@dataclass(slots=True)
class BuildTarget:
    """A source document and the name its outputs are published under."""

    source: Path
    name: str

    @classmethod
    def from_source(cls, source: str | Path) -> "BuildTarget":
        path = Path(source)
        return cls(source=path, name=path.stem)

    @property
    def source_dir(self) -> Path:
        return self.source.parent

    def job_name(self, variant: BuildVariant) -> str:
        if variant is BuildVariant.ANNOTATED:
            return f"{self.name}_annotated"
        return self.name


@dataclass(slots=True)
class PipelineResult:
    """Outcome of one compile pipeline."""

    variant: BuildVariant
    success: bool
    message: str | None = None
    output_path: Path | None = None
    log_path: Path | None = None
    bib_log_path: Path | None = None
    first_error: str | None = None
    first_bib_error: str | None = None
    failed_pass: str | None = None


@dataclass(slots=True)
class FrontMatter:
    """Title, abstract and keywords scraped from the main source.

    ``None`` means the field was not found, which is not an error.
    """

    title: str | None = None
    abstract: str | None = None
    keywords: str | None = None


@dataclass(slots=True)
class ContractDocument:
    """The included source fragment holding the paper's contract."""

    path: Path | None = None
    text: str | None = None


@dataclass(slots=True)
class ContractReport:
    """Everything rendered into the contract snapshot."""

    main_source: Path
    front_matter: FrontMatter
    contract: ContractDocument
    generated_at: datetime
    output_path: Path | None = None


@dataclass(slots=True)
class OrchestrationResult:
    """Outcome metadata for one orchestrated build."""

    success: bool
    failed_stage: str | None = None
    message: str | None = None
    results: list[PipelineResult] = field(default_factory=list)
    report: ContractReport | None = None
