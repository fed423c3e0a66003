"""Colored status lines for build stages."""

from __future__ import annotations

from rich.console import Console
from rich.text import Text

console = Console(highlight=False)


def step(message: str) -> None:
    console.print(Text.assemble(("[STEP] ", "bold cyan"), message))


def ok(message: str) -> None:
    console.print(Text.assemble(("OK: ", "bold green"), message))


def failed(message: str) -> None:
    console.print(Text.assemble(("FAILED: ", "bold red"), message))


def hint(message: str) -> None:
    console.print(Text(f"  {message}", style="dim"))
