"""Build and contract-snapshot tooling for a LaTeX paper."""

__version__ = "0.1.0"
