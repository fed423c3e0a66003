"""Compile pipelines for the standard and annotated paper builds."""

from __future__ import annotations

import os
import shutil
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from pathlib import Path

from .interfaces import CommandRunner
from .models import BuildTarget, BuildVariant, PipelineResult
from .toolchain import BIB_SEARCH_VAR, SubprocessRunner, bib_search_path, scoped_env

# bibtex messages that mean the bibliography did not resolve.
BIB_FATAL_MARKERS = (
    "I was expecting",
    "missing a field name",
    "couldn't open database file",
    "couldn't open style file",
    "Repeated entry",
    "Illegal",
    "I didn't find a database entry",
)


def _read_lines(path: Path | None) -> list[str]:
    if path is None or not path.is_file():
        return []
    return path.read_text(encoding="utf-8", errors="replace").splitlines()


def first_log_error(log_path: Path | None) -> str | None:
    """First ``!`` line of a TeX log, the tool family's fatal-error marker."""

    for line in _read_lines(log_path):
        if line.startswith("!"):
            return line.strip()
    return None


def first_bib_error(blg_path: Path | None) -> str | None:
    """First line of a bibtex log that carries a known fatal message."""

    for line in _read_lines(blg_path):
        if any(marker in line for marker in BIB_FATAL_MARKERS):
            return line.strip()
    return None


def publish(artifact: Path, destination: Path) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(artifact, destination)
    return destination


def _run(
    runner: CommandRunner,
    cmd: list[str],
    cwd: Path,
    env: Mapping[str, str] | None = None,
) -> tuple[int, str | None]:
    """Run a command, turning a missing executable into a failed status."""

    try:
        return runner(cmd, cwd, env), None
    except FileNotFoundError as exc:
        return 127, f"{cmd[0]} could not be executed: {exc}"


@dataclass(slots=True)
class StandardPipeline:
    """latexmk build: multi-pass compile plus bibliography in one call."""

    root: Path
    build_dir: str = "build"
    latexmk: str = "latexmk"
    runner: CommandRunner = field(default_factory=SubprocessRunner)

    variant = BuildVariant.STANDARD

    @property
    def output_dir(self) -> Path:
        return (self.root / self.build_dir).resolve()

    def command(self, target: BuildTarget) -> list[str]:
        out = self.output_dir
        return [
            self.latexmk,
            "-pdf",
            "-bibtex",
            "-interaction=nonstopmode",
            "-halt-on-error",
            "-file-line-error",
            f"-auxdir={out}",
            f"-outdir={out}",
            target.source.name,
        ]

    def run(self, target: BuildTarget) -> PipelineResult:
        """Compile ``target`` and copy the PDF to the repository root."""

        out = self.output_dir
        out.mkdir(parents=True, exist_ok=True)
        job = target.job_name(self.variant)
        log_path = out / f"{job}.log"
        blg_path = out / f"{job}.blg"
        pdf_path = out / f"{job}.pdf"

        status, error = _run(self.runner, self.command(target), target.source_dir.resolve())
        if status != 0:
            return PipelineResult(
                variant=self.variant,
                success=False,
                message=error or f"{self.latexmk} exited with code {status}",
                log_path=log_path,
                bib_log_path=blg_path,
                failed_pass=self.latexmk,
            )

        if not pdf_path.is_file():
            return PipelineResult(
                variant=self.variant,
                success=False,
                message=f"{self.latexmk} reported success but {pdf_path} is missing",
                log_path=log_path,
                bib_log_path=blg_path,
                failed_pass=self.latexmk,
            )

        published = publish(pdf_path, self.root / f"{target.name}.pdf")
        return PipelineResult(
            variant=self.variant,
            success=True,
            output_path=published,
            log_path=log_path,
            bib_log_path=blg_path,
        )


@dataclass(slots=True)
class AnnotatedPipeline:
    """Explicit pdflatex, bibtex, pdflatex, pdflatex build with the annotation macro defined."""

    root: Path
    build_dir: str = "build_annotated"
    pdflatex: str = "pdflatex"
    bibtex: str = "bibtex"
    macro: str = "ANNOTATED"
    runner: CommandRunner = field(default_factory=SubprocessRunner)
    environ: MutableMapping[str, str] | None = None

    variant = BuildVariant.ANNOTATED

    @property
    def output_dir(self) -> Path:
        return (self.root / self.build_dir).resolve()

    def tex_command(self, target: BuildTarget) -> list[str]:
        job = target.job_name(self.variant)
        entry = rf"\def\{self.macro}{{}}\input{{{target.source.name}}}"
        return [
            self.pdflatex,
            "-interaction=nonstopmode",
            "-halt-on-error",
            f"-jobname={job}",
            f"-output-directory={self.output_dir}",
            entry,
        ]

    def bib_command(self, target: BuildTarget) -> list[str]:
        return [self.bibtex, target.job_name(self.variant)]

    def run(self, target: BuildTarget) -> PipelineResult:
        """Run the four passes in order, stopping at the first failure."""

        out = self.output_dir
        out.mkdir(parents=True, exist_ok=True)
        job = target.job_name(self.variant)
        source_dir = target.source_dir.resolve()
        log_path = out / f"{job}.log"
        blg_path = out / f"{job}.blg"
        aux_path = out / f"{job}.aux"
        pdf_path = out / f"{job}.pdf"

        def failure(pass_name: str, message: str, bib_ran: bool = True) -> PipelineResult:
            # Before bibtex runs, any .blg on disk is from an earlier build.
            return PipelineResult(
                variant=self.variant,
                success=False,
                message=f"{pass_name}: {message}",
                log_path=log_path,
                bib_log_path=blg_path,
                first_error=first_log_error(log_path),
                first_bib_error=first_bib_error(blg_path) if bib_ran else None,
                failed_pass=pass_name,
            )

        status, error = _run(self.runner, self.tex_command(target), source_dir)
        if status != 0:
            return failure("pdflatex pass 1", error or f"exited with code {status}", bib_ran=False)
        if not aux_path.is_file():
            return failure("pdflatex pass 1", f"reported success but {aux_path} is missing", bib_ran=False)

        status, error = self._run_bibtex(target, search_path=bib_search_path(out, source_dir))
        if status != 0:
            return failure("bibtex", error or f"exited with code {status}")

        for pass_name in ("pdflatex pass 2", "pdflatex pass 3"):
            status, error = _run(self.runner, self.tex_command(target), source_dir)
            if status != 0:
                return failure(pass_name, error or f"exited with code {status}")

        if not pdf_path.is_file():
            return failure("pdflatex pass 3", f"reported success but {pdf_path} is missing")

        published = publish(pdf_path, self.root / f"{job}.pdf")
        return PipelineResult(
            variant=self.variant,
            success=True,
            output_path=published,
            log_path=log_path,
            bib_log_path=blg_path,
        )

    def _run_bibtex(self, target: BuildTarget, search_path: str) -> tuple[int, str | None]:
        env = os.environ if self.environ is None else self.environ
        with scoped_env(BIB_SEARCH_VAR, search_path, environ=env):
            return _run(self.runner, self.bib_command(target), self.output_dir, dict(env))
