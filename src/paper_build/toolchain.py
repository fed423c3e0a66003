"""External toolchain discovery and invocation."""

from __future__ import annotations

import glob
import os
import shutil
import subprocess
from collections.abc import Iterator, Mapping, MutableMapping, Sequence
from contextlib import contextmanager
from pathlib import Path

from .config import ToolsConfig
from .errors import MissingToolError

# Common TeX install locations that are often missing from a non-login PATH.
KNOWN_TOOL_DIRS = (
    "/Library/TeX/texbin",
    "/usr/texbin",
    "/opt/homebrew/bin",
    "/usr/local/bin",
)
TEXLIVE_GLOB = "/usr/local/texlive/*/bin/*"

BIB_SEARCH_VAR = "BIBINPUTS"


def candidate_tool_dirs(extra_dirs: Sequence[str] = ()) -> list[str]:
    """Known install directories plus configured ones, newest TeX Live first."""

    texlive = sorted(glob.glob(TEXLIVE_GLOB), reverse=True)
    return [*extra_dirs, *KNOWN_TOOL_DIRS, *texlive]


def extend_path(
    extra_dirs: Sequence[str] = (),
    environ: MutableMapping[str, str] | None = None,
) -> list[str]:
    """Append existing install directories to ``PATH``.

    Returns:
        The directories that were added.
    """

    env = os.environ if environ is None else environ
    current = [item for item in env.get("PATH", "").split(os.pathsep) if item]
    added: list[str] = []
    for directory in candidate_tool_dirs(extra_dirs):
        if directory in current or directory in added:
            continue
        if Path(directory).is_dir():
            added.append(directory)
    if added:
        env["PATH"] = os.pathsep.join(current + added)
    return added


def preflight(
    tools: ToolsConfig,
    environ: MutableMapping[str, str] | None = None,
) -> dict[str, str]:
    """Check that latexmk, pdflatex and bibtex resolve on PATH.

    Raises:
        MissingToolError: If any tool is missing. Nothing on disk is touched.
    """

    env = os.environ if environ is None else environ
    extend_path(tools.extra_tool_dirs, environ=env)
    search_path = env.get("PATH", "")

    resolved: dict[str, str] = {}
    missing: list[str] = []
    for tool in (tools.latexmk, tools.pdflatex, tools.bibtex):
        location = shutil.which(tool, path=search_path)
        if location is None:
            missing.append(tool)
        else:
            resolved[tool] = location
    if missing:
        raise MissingToolError(missing)
    return resolved


class SubprocessRunner:
    """Run external commands synchronously and report the exit status."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def __call__(
        self,
        cmd: Sequence[str],
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> int:
        result = subprocess.run(
            list(cmd),
            cwd=str(cwd),
            env=dict(env) if env is not None else None,
            capture_output=not self.verbose,
            text=True,
            errors="replace",
        )
        return result.returncode


@contextmanager
def scoped_env(
    name: str,
    value: str,
    environ: MutableMapping[str, str] | None = None,
) -> Iterator[None]:
    """Set an environment variable for the duration of the block.

    The previous value is restored on exit, or the variable is removed if it
    was not set before, including when the block raises.
    """

    env = os.environ if environ is None else environ
    previous = env.get(name)
    env[name] = value
    try:
        yield
    finally:
        if previous is None:
            env.pop(name, None)
        else:
            env[name] = previous


def bib_search_path(*directories: Path) -> str:
    """Join directories into a ``BIBINPUTS`` value.

    The trailing separator keeps bibtex's default search path in effect.
    """

    return os.pathsep.join(str(directory) for directory in directories) + os.pathsep
