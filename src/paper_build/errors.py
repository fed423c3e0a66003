"""Exception types raised by the build tooling."""

from __future__ import annotations


class PaperBuildError(Exception):
    """Base class for fatal build errors."""


class MissingToolError(PaperBuildError):
    """One or more external tools could not be resolved on PATH."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Required tools not found on PATH: {', '.join(self.missing)}")


class MainSourceNotFoundError(PaperBuildError, FileNotFoundError):
    """No main ``.tex`` source exists in the repository root."""
