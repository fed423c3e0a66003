"""Writers for the contract snapshot: markdown plus an optional PDF mirror."""

from __future__ import annotations

import html
import re
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import ListFlowable, ListItem, Paragraph, Preformatted, SimpleDocTemplate, Spacer

PDF_TITLE = "Contract Snapshot"
MARGIN = 18 * mm

HEADING_PATTERN = re.compile(r"^(#{1,2})\s+(.*)$")
BULLET_PATTERN = re.compile(r"^[-*]\s+(.*)$")
INLINE_CODE_PATTERN = re.compile(r"`([^`]+)`")
BOLD_PATTERN = re.compile(r"\*\*([^*]+)\*\*")
EMPHASIS_PATTERN = re.compile(r"(?<![\w*])_([^_]+)_(?![\w*])")

# kind -> (sample style, font, size, space after)
BLOCK_STYLES = {
    "h1": ("Title", "Helvetica-Bold", 16, 8),
    "h2": ("Heading2", "Helvetica-Bold", 12, 4),
    "p": ("BodyText", "Helvetica", 10, 6),
    "code": ("Code", "Courier", 9, 8),
}


class ReportWriter:
    """Write the snapshot to ``<output_dir>/<filename>`` and optionally a PDF beside it."""

    def __init__(self, output_dir: str | Path, filename: str = "contracts.md", output_pdf: bool = False):
        self.output_dir = Path(output_dir)
        self.filename = filename
        self.output_pdf = output_pdf

    @property
    def markdown_path(self) -> Path:
        return self.output_dir / self.filename

    @property
    def pdf_path(self) -> Path:
        return self.markdown_path.with_suffix(".pdf")

    def write(self, text: str) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.markdown_path.write_text(text, encoding="utf-8")
        if self.output_pdf:
            self._write_pdf(text=text, output_path=self.pdf_path)
        return self.markdown_path

    def _write_pdf(self, text: str, output_path: Path) -> None:
        story = _build_story(_parse_markdown_blocks(text))
        doc = SimpleDocTemplate(
            str(output_path),
            pagesize=A4,
            leftMargin=MARGIN,
            rightMargin=MARGIN,
            topMargin=MARGIN,
            bottomMargin=MARGIN,
            title=PDF_TITLE,
        )
        doc.build(story, onFirstPage=_stamp_page, onLaterPages=_stamp_page)


def _stamp_page(canvas, doc) -> None:  # type: ignore[no-untyped-def]
    canvas.saveState()
    canvas.setFont("Helvetica", 8)
    canvas.setFillColor(colors.grey)
    canvas.drawString(MARGIN, MARGIN / 2, PDF_TITLE)
    canvas.drawRightString(A4[0] - MARGIN, MARGIN / 2, str(doc.page))
    canvas.restoreState()


def _build_styles() -> dict[str, ParagraphStyle]:
    sample = getSampleStyleSheet()
    styles = {}
    for kind, (parent, font, size, after) in BLOCK_STYLES.items():
        styles[kind] = ParagraphStyle(
            kind,
            parent=sample[parent],
            fontName=font,
            fontSize=size,
            leading=size * 1.3,
            spaceAfter=after,
            alignment=0,
        )
    styles["code"].backColor = colors.whitesmoke
    styles["code"].borderPadding = 4
    return styles


def _build_story(blocks: list[tuple[str, str]]):
    styles = _build_styles()
    story = []
    bullets: list[ListItem] = []

    def flush_bullets() -> None:
        if bullets:
            story.append(ListFlowable(list(bullets), bulletType="bullet", leftIndent=10))
            story.append(Spacer(1, 6))
            bullets.clear()

    for kind, content in blocks:
        if kind == "li":
            bullets.append(ListItem(Paragraph(_inline_to_reportlab(content), styles["p"])))
            continue
        flush_bullets()
        if kind == "code":
            story.append(Preformatted(content, styles["code"]))
        else:
            story.append(Paragraph(_inline_to_reportlab(content), styles[kind]))
    flush_bullets()
    return story


def _parse_markdown_blocks(text: str) -> list[tuple[str, str]]:
    """Split the snapshot into (kind, content) blocks: h1, h2, li, code, p."""

    blocks: list[tuple[str, str]] = []
    fence: list[str] | None = None

    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith("```"):
            if fence is not None:
                blocks.append(("code", "\n".join(fence).rstrip()))
                fence = None
            else:
                fence = []
        elif fence is not None:
            fence.append(raw)
        elif line:
            blocks.append(_classify(line))

    if fence:
        blocks.append(("code", "\n".join(fence).rstrip()))
    return blocks


def _classify(line: str) -> tuple[str, str]:
    heading = HEADING_PATTERN.match(line)
    if heading:
        return f"h{len(heading.group(1))}", heading.group(2).strip()
    bullet = BULLET_PATTERN.match(line)
    if bullet:
        return "li", bullet.group(1).strip()
    return "p", line


def _inline_to_reportlab(text: str) -> str:
    escaped = html.escape(text)
    escaped = INLINE_CODE_PATTERN.sub(r"<font name='Courier'>\1</font>", escaped)
    escaped = BOLD_PATTERN.sub(r"<b>\1</b>", escaped)
    return EMPHASIS_PATTERN.sub(r"<i>\1</i>", escaped)
