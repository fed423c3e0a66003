"""Build orchestration: preflight, clean, contract snapshot, then both compile variants."""

from __future__ import annotations

from collections.abc import Callable, MutableMapping
from dataclasses import dataclass, field
from pathlib import Path

from . import console
from .cleaner import clean_artifacts
from .config import AppConfig
from .contracts import extract_contracts, summarize_report
from .errors import MainSourceNotFoundError, MissingToolError
from .interfaces import CompilePipelineInterface, ContractExtractorInterface
from .models import BuildTarget, OrchestrationResult, PipelineResult
from .tex_extract import find_main_source
from .toolchain import preflight

STAGE_PREFLIGHT = "preflight"
STAGE_SOURCE = "source"
STAGE_CLEAN = "clean"
STAGE_CONTRACT = "contract"


@dataclass(slots=True)
class BuildOrchestrator:
    """Run every build stage in order and stop at the first failure."""

    root: Path
    config: AppConfig
    pipelines: list[CompilePipelineInterface]
    skip_clean: bool = False
    extractor: ContractExtractorInterface | None = None
    tool_check: Callable[..., dict[str, str]] = preflight
    environ: MutableMapping[str, str] | None = None
    results: list[PipelineResult] = field(default_factory=list)

    def run(self) -> OrchestrationResult:
        """Run the full build once."""

        self.results = []

        console.step("Checking toolchain")
        try:
            resolved = self.tool_check(self.config.tools, environ=self.environ)
        except MissingToolError as exc:
            return self._fail(STAGE_PREFLIGHT, str(exc))
        for tool, location in resolved.items():
            console.hint(f"{tool} -> {location}")

        try:
            target = self._locate_target()
        except MainSourceNotFoundError as exc:
            return self._fail(STAGE_SOURCE, str(exc))
        console.step(f"Main source: {target.source.name}")

        if self.skip_clean:
            console.step("Skipping clean")
        else:
            console.step("Cleaning build directories")
            runtime = self.config.runtime
            try:
                removed = clean_artifacts(self.root, build_dirs=(runtime.build_dir, runtime.annotated_build_dir))
            except OSError as exc:
                return self._fail(STAGE_CLEAN, f"Could not remove build output: {exc}")
            for path in removed:
                console.hint(f"removed {path}")

        console.step("Extracting contract snapshot")
        extractor = self.extractor or self._default_extractor
        try:
            report = extractor(self.root, clean=not self.skip_clean)
        except MainSourceNotFoundError as exc:
            return self._fail(STAGE_CONTRACT, str(exc))
        except OSError as exc:
            # Snapshot is advisory; compile anyway.
            console.failed(f"{STAGE_CONTRACT}: could not write contract snapshot: {exc}")
            console.hint("continuing without a contract snapshot")
            report = None
        if report is not None:
            for line in summarize_report(report):
                console.hint(line)

        for pipeline in self.pipelines:
            variant = pipeline.variant
            console.step(f"Compiling {variant.value} build of {target.name}")
            result = pipeline.run(target)
            self.results.append(result)
            if not result.success:
                self._report_failure(result)
                return self._fail(variant.value, result.message or "compile failed", report=report)
            console.ok(f"{variant.value} build -> {result.output_path}")

        console.ok("All builds completed")
        return OrchestrationResult(success=True, results=list(self.results), report=report)

    def _locate_target(self) -> BuildTarget:
        configured = self.config.runtime.main_source
        if configured:
            source = self.root / configured
            if not source.is_file():
                raise MainSourceNotFoundError(f"Configured main source not found: {source}")
            return BuildTarget.from_source(source)
        return BuildTarget.from_source(find_main_source(self.root))

    def _default_extractor(self, root: Path, clean: bool = True):
        return extract_contracts(root, clean=clean, runtime=self.config.runtime)

    def _report_failure(self, result: PipelineResult) -> None:
        if result.log_path is not None:
            console.hint(f"log: {result.log_path}")
        if result.bib_log_path is not None:
            console.hint(f"bibliography log: {result.bib_log_path}")
        if result.first_error:
            console.hint(f"first error: {result.first_error}")
        if result.first_bib_error:
            console.hint(f"first bibliography error: {result.first_bib_error}")

    def _fail(self, stage: str, message: str, report=None) -> OrchestrationResult:
        console.failed(f"{stage}: {message}")
        completed = [result.variant.value for result in self.results if result.success]
        if completed:
            console.hint(f"completed before failure: {', '.join(completed)}")
        return OrchestrationResult(
            success=False,
            failed_stage=stage,
            message=message,
            results=list(self.results),
            report=report,
        )
