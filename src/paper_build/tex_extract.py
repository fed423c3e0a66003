"""Best-effort field extraction from LaTeX sources.

Everything here is pattern matching over comment-stripped text, not a TeX
parser. Each lookup is an ordered list of candidates where the first match
wins, so a real parser can replace ``extract`` without touching callers.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from pathlib import Path

from .errors import MainSourceNotFoundError

COMMENT_PATTERN = re.compile(r"(?<!\\)%.*$", re.MULTILINE)

# One level of nested braces, e.g. \title{A \emph{B} C}.
_BRACED = r"\{((?:[^{}]|\{[^{}]*\})*)\}"

FIELD_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    "title": (re.compile(r"\\title\s*(?:\[[^\]]*\])?\s*" + _BRACED, re.DOTALL),),
    "abstract": (re.compile(r"\\begin\{abstract\}(.*?)\\end\{abstract\}", re.DOTALL),),
    "keywords": (
        re.compile(r"\\begin\{keywords\}(.*?)\\end\{keywords\}", re.DOTALL),
        re.compile(r"\\keywords\s*" + _BRACED, re.DOTALL),
    ),
}

INPUT_PATTERN = re.compile(r"\\(?:input|include)\s*\{([^{}]+)\}")
NUMBERED_PREFIX_PATTERN = re.compile(r"^\d+[_-].*\.tex$")
CONTRACT_KEYWORD = "contract"


def strip_comments(text: str) -> str:
    """Drop everything from an unescaped ``%`` to the end of its line."""

    return COMMENT_PATTERN.sub("", text)


def extract(source: str, field: str) -> str | None:
    """Return the first match for ``field`` in ``source``, or None.

    ``source`` is expected to be comment-stripped already.

    Raises:
        KeyError: If ``field`` has no registered patterns.
    """

    for pattern in FIELD_PATTERNS[field]:
        match = pattern.search(source)
        if match is None:
            continue
        value = match.group(1).strip()
        if value:
            return value
    return None


def find_inputs(source: str) -> list[str]:
    """Arguments of every ``\\input``/``\\include`` directive, in order."""

    return [match.group(1).strip() for match in INPUT_PATTERN.finditer(source)]


def resolve_input(reference: str, base_dir: Path) -> Path:
    """Resolve an inclusion argument the way TeX does for ``\\input{name}``."""

    path = base_dir / reference
    if not path.suffix:
        path = path.with_name(path.name + ".tex")
    return path


MAIN_SOURCE_MATCHERS: list[tuple[str, Callable[[Path], bool]]] = [
    ("numbered", lambda path: bool(NUMBERED_PREFIX_PATTERN.match(path.name))),
    ("theorem", lambda path: "theorem" in path.name.lower()),
    # Name order only; may pick a fragment such as contract.tex.
    # Set runtime.main_source to pin the entry file.
    ("any", lambda path: True),
]


def find_main_source(root: str | Path) -> Path:
    """Pick the main ``.tex`` file in ``root`` by matcher priority.

    Raises:
        MainSourceNotFoundError: If ``root`` holds no ``.tex`` file.
    """

    root_path = Path(root)
    candidates = sorted(path for path in root_path.glob("*.tex") if path.is_file())
    for _label, matches in MAIN_SOURCE_MATCHERS:
        for path in candidates:
            if matches(path):
                return path
    raise MainSourceNotFoundError(f"No .tex source found in {root_path.resolve()}")


def _contract_from_inputs(main_source: Path, source: str) -> Path | None:
    for reference in find_inputs(source):
        resolved = resolve_input(reference, main_source.parent)
        if CONTRACT_KEYWORD in resolved.name.lower():
            return resolved
    return None


def _contract_from_directory(main_source: Path, source: str) -> Path | None:
    for path in sorted(main_source.parent.glob("*.tex")):
        if path != main_source and CONTRACT_KEYWORD in path.name.lower():
            return path
    return None


CONTRACT_STRATEGIES: list[Callable[[Path, str], Path | None]] = [
    _contract_from_inputs,
    _contract_from_directory,
]


def find_contract(main_source: Path, source: str) -> Path | None:
    """Locate the contract fragment referenced by, or sitting next to, the main source."""

    for strategy in CONTRACT_STRATEGIES:
        found = strategy(main_source, source)
        if found is not None:
            return found
    return None
