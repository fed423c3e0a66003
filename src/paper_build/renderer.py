"""Markdown rendering for contract snapshots."""

from __future__ import annotations

from .models import ContractReport

REPORT_HEADER = "# Contract Snapshot"
NOT_FOUND = "_not found_"


def _fenced(value: str | None) -> list[str]:
    if value is None:
        return [NOT_FOUND]
    return ["```tex", value.rstrip("\n"), "```"]


def render_contract_report(report: ContractReport) -> str:
    """Render extracted front matter and contract text to markdown."""

    front = report.front_matter
    contract = report.contract
    generated = report.generated_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip()

    blocks = [
        REPORT_HEADER,
        "",
        f"- **Generated**: {generated}",
        f"- **Main source**: `{report.main_source.name}`",
        "",
        "## Title",
        "",
        *_fenced(front.title),
        "",
        "## Abstract",
        "",
        *_fenced(front.abstract),
        "",
        "## Keywords",
        "",
        *_fenced(front.keywords),
        "",
        "## Contract",
        "",
    ]
    if contract.path is not None:
        blocks.extend([f"- **File**: `{contract.path.name}`", ""])
    blocks.extend(_fenced(contract.text))

    return "\n".join(blocks).strip() + "\n"

