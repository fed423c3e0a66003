import os
from pathlib import Path

import pytest


def _option(cmd, prefix):
    for arg in cmd:
        if arg.startswith(prefix):
            return arg[len(prefix):]
    return None


class FakeToolchain:
    """Stand-in for latexmk/pdflatex/bibtex that writes the files they would."""

    def __init__(self, fail_on=None, exit_code=1, skip_outputs=(), raise_on=None):
        self.fail_on = fail_on
        self.exit_code = exit_code
        self.skip_outputs = set(skip_outputs)
        self.raise_on = raise_on
        self.calls = []
        self.bibinputs_seen = []

    def __call__(self, cmd, cwd, env=None):
        name = Path(cmd[0]).name
        index = sum(1 for call in self.calls if Path(call[0][0]).name == name) + 1
        label = f"{name}#{index}"
        self.calls.append((list(cmd), Path(cwd), dict(env) if env is not None else None))

        if name == "bibtex":
            source = env if env is not None else os.environ
            self.bibinputs_seen.append(source.get("BIBINPUTS"))

        if self.raise_on in (name, label):
            raise RuntimeError(f"{label} crashed")
        if self.fail_on in (name, label):
            return self.exit_code

        if name == "latexmk":
            out = Path(_option(cmd, "-outdir="))
            stem = Path(cmd[-1]).stem
            if "pdf" not in self.skip_outputs:
                (out / f"{stem}.pdf").write_bytes(b"%PDF-1.5 standard")
        elif name == "pdflatex":
            out = Path(_option(cmd, "-output-directory="))
            job = _option(cmd, "-jobname=")
            if "aux" not in self.skip_outputs:
                (out / f"{job}.aux").write_text("\\citation{x}\n", encoding="utf-8")
            if "pdf" not in self.skip_outputs and index >= 3:
                (out / f"{job}.pdf").write_bytes(b"%PDF-1.5 annotated")
        elif name == "bibtex":
            (Path(cwd) / f"{cmd[-1]}.blg").write_text("Database file #1: refs.bib\n", encoding="utf-8")
        return 0

    def tools_called(self):
        return [Path(cmd[0]).name for cmd, _cwd, _env in self.calls]


@pytest.fixture
def fake_toolchain():
    return FakeToolchain


@pytest.fixture
def paper_repo(tmp_path: Path) -> Path:
    (tmp_path / "paper.tex").write_text(
        "\\documentclass{article}\n"
        "\\title{Example Title} % working title\n"
        "\\begin{document}\n"
        "\\begin{abstract}\nA short abstract.\n\\end{abstract}\n"
        "\\keywords{builds, contracts}\n"
        "\\input{sections/intro}\n"
        "\\input{sections/contract}\n"
        "\\end{document}\n",
        encoding="utf-8",
    )
    sections = tmp_path / "sections"
    sections.mkdir()
    (sections / "intro.tex").write_text("Intro.\n", encoding="utf-8")
    (sections / "contract.tex").write_text("\\section{Contract}\nWe commit to X.\n", encoding="utf-8")
    return tmp_path
