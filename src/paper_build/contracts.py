"""Contract snapshot extraction: front matter and contract section to markdown."""

from __future__ import annotations

import argparse
from datetime import datetime, timezone
from pathlib import Path

from . import console
from .cleaner import clean_artifacts
from .config import RuntimeConfig, load_config
from .errors import MainSourceNotFoundError
from .models import ContractDocument, ContractReport, FrontMatter
from .output_writer import ReportWriter
from .renderer import render_contract_report
from .tex_extract import extract, find_contract, find_main_source, strip_comments


def read_front_matter(source: str) -> FrontMatter:
    """Extract title, abstract and keywords from comment-stripped source."""

    return FrontMatter(
        title=extract(source, "title"),
        abstract=extract(source, "abstract"),
        keywords=extract(source, "keywords"),
    )


def read_contract(main_source: Path, source: str) -> ContractDocument:
    path = find_contract(main_source, source)
    if path is None or not path.is_file():
        return ContractDocument(path=path, text=None)
    text = path.read_text(encoding="utf-8", errors="replace")
    return ContractDocument(path=path, text=text.strip() or None)


def extract_contracts(
    root: str | Path,
    clean: bool = True,
    runtime: RuntimeConfig | None = None,
    now: datetime | None = None,
) -> ContractReport:
    """Locate the main source, extract its fields and write the snapshot.

    Missing fields are rendered as placeholders.

    Raises:
        MainSourceNotFoundError: If no main source exists. This is the only
            hard failure.
    """

    runtime = runtime or RuntimeConfig()
    root_path = Path(root)
    output_dir = root_path / runtime.contracts_dir

    if runtime.main_source:
        main_source = root_path / runtime.main_source
        if not main_source.is_file():
            raise MainSourceNotFoundError(f"Configured main source not found: {main_source}")
    else:
        main_source = find_main_source(root_path)

    if clean:
        clean_artifacts(root_path, include_contracts=True, build_dirs=(), contracts_dir=runtime.contracts_dir)

    source = strip_comments(main_source.read_text(encoding="utf-8", errors="replace"))
    report = ContractReport(
        main_source=main_source,
        front_matter=read_front_matter(source),
        contract=read_contract(main_source, source),
        generated_at=(now or datetime.now(timezone.utc)).astimezone(timezone.utc),
    )

    writer = ReportWriter(output_dir, filename=runtime.contracts_file, output_pdf=runtime.output_pdf)
    report.output_path = writer.write(render_contract_report(report))
    return report


def summarize_report(report: ContractReport) -> list[str]:
    """Short per-field status lines for console output."""

    front = report.front_matter
    contract_name = report.contract.path.name if report.contract.path else None
    return [
        f"main_source={report.main_source.name}",
        f"title={'found' if front.title else 'not found'}",
        f"abstract={'found' if front.abstract else 'not found'}",
        f"keywords={'found' if front.keywords else 'not found'}",
        f"contract={contract_name or 'not found'}",
    ]


def main(argv: list[str] | None = None) -> int:
    """CLI main function."""

    parser = argparse.ArgumentParser(description="Extract title, abstract, keywords and contract to markdown")
    parser.add_argument("--root", type=str, default=".", help="Repository root. Default: current directory")
    parser.add_argument("--config", type=str, default=None, help="Path to config json")
    parser.add_argument("--no-clean", action="store_true", help="Keep existing artifacts/contracts content")
    parser.add_argument("--pdf", action="store_true", help="Also write a PDF copy of the snapshot")
    args = parser.parse_args(argv)

    config = load_config(args.config, root=args.root)
    if args.pdf:
        config.runtime.output_pdf = True

    console.step(f"Extracting contract snapshot in {Path(args.root).resolve()}")
    try:
        report = extract_contracts(args.root, clean=not args.no_clean, runtime=config.runtime)
    except MainSourceNotFoundError as exc:
        console.failed(str(exc))
        return 1

    for line in summarize_report(report):
        console.hint(line)
    console.ok(f"Contract snapshot written to {report.output_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
