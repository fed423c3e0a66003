"""Application entry points for building and cleaning the paper."""

from __future__ import annotations

import argparse
from pathlib import Path

from . import console
from .cleaner import clean_artifacts
from .config import AppConfig, load_config
from .interfaces import CommandRunner, CompilePipelineInterface
from .models import BuildVariant, OrchestrationResult
from .orchestrator import BuildOrchestrator
from .pipelines import AnnotatedPipeline, StandardPipeline
from .toolchain import SubprocessRunner


def _build_runtime_log_lines(config: AppConfig, root: Path, skip_clean: bool) -> list[str]:
    tools = config.tools
    runtime = config.runtime
    return [
        f"root={root.resolve()}",
        f"main_source={runtime.main_source or 'auto'}",
        f"skip_clean={skip_clean}",
        f"build_dir={runtime.build_dir}",
        f"annotated_build_dir={runtime.annotated_build_dir}",
        f"contracts_dir={runtime.contracts_dir}",
        f"output_pdf={runtime.output_pdf}",
        f"latexmk={tools.latexmk}",
        f"pdflatex={tools.pdflatex}",
        f"bibtex={tools.bibtex}",
    ]


def _build_pipelines(
    config: AppConfig,
    root: Path,
    runner: CommandRunner,
    only: str | None = None,
) -> list[CompilePipelineInterface]:
    pipelines: list[CompilePipelineInterface] = []
    if only in (None, BuildVariant.STANDARD.value):
        pipelines.append(
            StandardPipeline(
                root=root,
                build_dir=config.runtime.build_dir,
                latexmk=config.tools.latexmk,
                runner=runner,
            )
        )
    if only in (None, BuildVariant.ANNOTATED.value):
        pipelines.append(
            AnnotatedPipeline(
                root=root,
                build_dir=config.runtime.annotated_build_dir,
                pdflatex=config.tools.pdflatex,
                bibtex=config.tools.bibtex,
                macro=config.runtime.annotation_macro,
                runner=runner,
            )
        )
    return pipelines


def run_build(
    root: str | Path = ".",
    config_path: str | None = None,
    skip_clean: bool = False,
    only: str | None = None,
    runner: CommandRunner | None = None,
) -> OrchestrationResult:
    """Build dependencies from config and execute one orchestrated build."""

    root_path = Path(root)
    config = load_config(config_path, root=root_path)
    console.step(f"Loading configuration for {root_path.resolve()}")
    for line in _build_runtime_log_lines(config, root_path, skip_clean):
        console.hint(line)

    orchestrator = BuildOrchestrator(
        root=root_path,
        config=config,
        pipelines=_build_pipelines(config, root_path, runner or SubprocessRunner(), only=only),
        skip_clean=skip_clean,
    )
    return orchestrator.run()


def main(argv: list[str] | None = None) -> int:
    """CLI main function."""

    parser = argparse.ArgumentParser(description="Build the standard and annotated paper PDFs")
    parser.add_argument("--root", type=str, default=".", help="Repository root. Default: current directory")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config json. Default: config/build_config.json under --root",
    )
    parser.add_argument("--no-clean", action="store_true", help="Skip removing previous build output")
    parser.add_argument(
        "--only",
        choices=[variant.value for variant in BuildVariant],
        default=None,
        help="Build a single variant",
    )
    parser.add_argument("--verbose", action="store_true", help="Stream compiler output to the terminal")
    args = parser.parse_args(argv)

    result = run_build(
        root=args.root,
        config_path=args.config,
        skip_clean=args.no_clean,
        only=args.only,
        runner=SubprocessRunner(verbose=args.verbose),
    )
    return 0 if result.success else 1


def clean_main(argv: list[str] | None = None) -> int:
    """CLI entry point for removing generated output."""

    parser = argparse.ArgumentParser(description="Remove generated build output")
    parser.add_argument("--root", type=str, default=".", help="Repository root. Default: current directory")
    parser.add_argument("--config", type=str, default=None, help="Path to config json")
    parser.add_argument("--contracts", action="store_true", help="Also remove the contract snapshot directory")
    args = parser.parse_args(argv)

    config = load_config(args.config, root=args.root)
    runtime = config.runtime
    removed = clean_artifacts(
        args.root,
        include_contracts=args.contracts,
        build_dirs=(runtime.build_dir, runtime.annotated_build_dir),
        contracts_dir=runtime.contracts_dir,
    )
    for path in removed:
        console.hint(f"removed {path}")
    console.ok(f"Cleaned {len(removed)} director{'y' if len(removed) == 1 else 'ies'}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
