import os
from pathlib import Path

import pytest

from paper_build.models import BuildTarget, BuildVariant
from paper_build.pipelines import (
    AnnotatedPipeline,
    StandardPipeline,
    first_bib_error,
    first_log_error,
)


@pytest.fixture
def target(paper_repo: Path) -> BuildTarget:
    return BuildTarget.from_source(paper_repo / "paper.tex")


def test_standard_pipeline_publishes_pdf(paper_repo, target, fake_toolchain) -> None:
    runner = fake_toolchain()

    result = StandardPipeline(root=paper_repo, runner=runner).run(target)

    assert result.success is True
    assert result.output_path == paper_repo / "paper.pdf"
    assert (paper_repo / "paper.pdf").read_bytes().startswith(b"%PDF")
    cmd, cwd, _env = runner.calls[0]
    assert cmd[0] == "latexmk"
    assert {"-pdf", "-bibtex", "-interaction=nonstopmode", "-halt-on-error"} <= set(cmd)
    assert f"-outdir={(paper_repo / 'build').resolve()}" in cmd
    assert cwd == paper_repo.resolve()


def test_standard_pipeline_zero_exit_without_pdf_fails(paper_repo, target, fake_toolchain) -> None:
    runner = fake_toolchain(skip_outputs={"pdf"})

    result = StandardPipeline(root=paper_repo, runner=runner).run(target)

    assert result.success is False
    assert "missing" in result.message
    assert not (paper_repo / "paper.pdf").exists()


def test_standard_pipeline_non_zero_exit_reports_log_paths(paper_repo, target, fake_toolchain) -> None:
    runner = fake_toolchain(fail_on="latexmk", exit_code=12)

    result = StandardPipeline(root=paper_repo, runner=runner).run(target)

    build = (paper_repo / "build").resolve()
    assert result.success is False
    assert "12" in result.message
    assert result.log_path == build / "paper.log"
    assert result.bib_log_path == build / "paper.blg"


def test_missing_executable_is_a_failed_result(paper_repo, target) -> None:
    def runner(cmd, cwd, env=None):
        raise FileNotFoundError(cmd[0])

    result = StandardPipeline(root=paper_repo, runner=runner).run(target)

    assert result.success is False
    assert "could not be executed" in result.message


def test_annotated_pipeline_runs_passes_in_order(paper_repo, target, fake_toolchain, monkeypatch) -> None:
    monkeypatch.delenv("BIBINPUTS", raising=False)
    runner = fake_toolchain()

    result = AnnotatedPipeline(root=paper_repo, runner=runner).run(target)

    assert result.success is True
    assert result.variant is BuildVariant.ANNOTATED
    assert result.output_path == paper_repo / "paper_annotated.pdf"
    assert runner.tools_called() == ["pdflatex", "bibtex", "pdflatex", "pdflatex"]

    first_cmd = runner.calls[0][0]
    assert "-jobname=paper_annotated" in first_cmd
    assert first_cmd[-1] == "\\def\\ANNOTATED{}\\input{paper.tex}"

    bib_cmd, bib_cwd, _env = runner.calls[1]
    out = (paper_repo / "build_annotated").resolve()
    assert bib_cmd == ["bibtex", "paper_annotated"]
    assert bib_cwd == out
    assert runner.bibinputs_seen[0].split(os.pathsep)[:2] == [str(out), str(paper_repo.resolve())]


def test_annotated_pipeline_restores_bibinputs_after_success(paper_repo, target, fake_toolchain, monkeypatch) -> None:
    monkeypatch.setenv("BIBINPUTS", "/custom/bib")

    AnnotatedPipeline(root=paper_repo, runner=fake_toolchain()).run(target)

    assert os.environ["BIBINPUTS"] == "/custom/bib"


def test_annotated_pipeline_restores_bibinputs_after_bibtex_failure(paper_repo, target, fake_toolchain, monkeypatch) -> None:
    monkeypatch.delenv("BIBINPUTS", raising=False)
    runner = fake_toolchain(fail_on="bibtex")

    result = AnnotatedPipeline(root=paper_repo, runner=runner).run(target)

    assert result.success is False
    assert result.failed_pass == "bibtex"
    assert runner.bibinputs_seen[0] is not None
    assert "BIBINPUTS" not in os.environ


def test_annotated_pipeline_restores_bibinputs_when_bibtex_raises(paper_repo, target, fake_toolchain) -> None:
    env = {"BIBINPUTS": "/before"}
    runner = fake_toolchain(raise_on="bibtex")

    with pytest.raises(RuntimeError):
        AnnotatedPipeline(root=paper_repo, runner=runner, environ=env).run(target)

    assert env == {"BIBINPUTS": "/before"}


def test_annotated_pipeline_names_failing_pass(paper_repo, target, fake_toolchain) -> None:
    runner = fake_toolchain(fail_on="pdflatex#2")

    result = AnnotatedPipeline(root=paper_repo, runner=runner).run(target)

    assert result.success is False
    assert result.failed_pass == "pdflatex pass 2"
    assert runner.tools_called() == ["pdflatex", "bibtex", "pdflatex"]


def test_annotated_pipeline_requires_aux_after_first_pass(paper_repo, target, fake_toolchain) -> None:
    runner = fake_toolchain(skip_outputs={"aux"})

    result = AnnotatedPipeline(root=paper_repo, runner=runner).run(target)

    assert result.success is False
    assert result.failed_pass == "pdflatex pass 1"
    assert runner.tools_called() == ["pdflatex"]


def test_annotated_pipeline_requires_pdf_after_last_pass(paper_repo, target, fake_toolchain) -> None:
    runner = fake_toolchain(skip_outputs={"pdf"})

    result = AnnotatedPipeline(root=paper_repo, runner=runner).run(target)

    assert result.success is False
    assert result.failed_pass == "pdflatex pass 3"
    assert not (paper_repo / "paper_annotated.pdf").exists()


def _seed_annotated_logs(root: Path) -> None:
    out = root / "build_annotated"
    out.mkdir()
    (out / "paper_annotated.log").write_text(
        "This is pdfTeX\n! Undefined control sequence.\nl.12 \\foo\n! Emergency stop.\n",
        encoding="utf-8",
    )
    (out / "paper_annotated.blg").write_text(
        "Database file #1: refs.bib\nRepeated entry---line 7 of file refs.bib\n",
        encoding="utf-8",
    )


def test_annotated_bibtex_failure_surfaces_first_log_errors(paper_repo, target, fake_toolchain) -> None:
    _seed_annotated_logs(paper_repo)
    runner = fake_toolchain(fail_on="bibtex")

    result = AnnotatedPipeline(root=paper_repo, runner=runner).run(target)

    assert result.failed_pass == "bibtex"
    assert result.first_error == "! Undefined control sequence."
    assert result.first_bib_error == "Repeated entry---line 7 of file refs.bib"


def test_annotated_first_pass_failure_ignores_stale_bibtex_log(paper_repo, target, fake_toolchain) -> None:
    _seed_annotated_logs(paper_repo)
    runner = fake_toolchain(fail_on="pdflatex#1")

    result = AnnotatedPipeline(root=paper_repo, runner=runner).run(target)

    assert result.failed_pass == "pdflatex pass 1"
    assert result.first_error == "! Undefined control sequence."
    assert result.first_bib_error is None
    assert runner.tools_called() == ["pdflatex"]


def test_log_scanners_tolerate_missing_files(tmp_path: Path) -> None:
    assert first_log_error(tmp_path / "absent.log") is None
    assert first_bib_error(None) is None
