"""Configuration loading for paper builds."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(slots=True)
class ToolsConfig:
    """External toolchain configuration."""

    latexmk: str = "latexmk"
    pdflatex: str = "pdflatex"
    bibtex: str = "bibtex"
    extra_tool_dirs: list[str] = field(default_factory=list)


@dataclass(slots=True)
class RuntimeConfig:
    """Runtime behavior configuration."""

    build_dir: str = "build"
    annotated_build_dir: str = "build_annotated"
    contracts_dir: str = "artifacts/contracts"
    contracts_file: str = "contracts.md"
    main_source: str | None = None
    output_pdf: bool = False
    annotation_macro: str = "ANNOTATED"


@dataclass(slots=True)
class AppConfig:
    """Application configuration object."""

    tools: ToolsConfig = field(default_factory=ToolsConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)


DEFAULT_CONFIG_PATH = Path("config/build_config.json")


def _lookup(data: dict, key: str, default):
    """Read ``key`` case-insensitively, so ``OUTPUT_PDF`` and ``output_pdf`` both work."""

    if key in data:
        return data[key]
    lowered = {str(name).lower(): value for name, value in data.items()}
    return lowered.get(key.lower(), default)


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def load_config(path: str | Path | None = None, root: str | Path | None = None) -> AppConfig:
    """Load configuration from JSON file.

    Args:
        path: Custom config path. If omitted, ``config/build_config.json``
            under ``root`` is used when present.
        root: Repository root used to resolve the default config path.

    Returns:
        Parsed AppConfig object.

    Raises:
        FileNotFoundError: If an explicitly given config file does not exist.
        ValueError: If the file is not a JSON object.
    """

    if path:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config not found: {config_path}")
    else:
        config_path = Path(root or ".") / DEFAULT_CONFIG_PATH
        if not config_path.exists():
            return AppConfig()

    data = json.loads(config_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Config must be a JSON object: {config_path}")

    defaults_tools = ToolsConfig()
    tools_data = data.get("tools") or {}
    tools = ToolsConfig(
        latexmk=_lookup(tools_data, "latexmk", defaults_tools.latexmk),
        pdflatex=_lookup(tools_data, "pdflatex", defaults_tools.pdflatex),
        bibtex=_lookup(tools_data, "bibtex", defaults_tools.bibtex),
        extra_tool_dirs=[str(item) for item in _lookup(tools_data, "extra_tool_dirs", [])],
    )

    defaults_runtime = RuntimeConfig()
    runtime_data = data.get("runtime") or {}
    runtime = RuntimeConfig(
        build_dir=_lookup(runtime_data, "build_dir", defaults_runtime.build_dir),
        annotated_build_dir=_lookup(
            runtime_data, "annotated_build_dir", defaults_runtime.annotated_build_dir
        ),
        contracts_dir=_lookup(runtime_data, "contracts_dir", defaults_runtime.contracts_dir),
        contracts_file=_lookup(runtime_data, "contracts_file", defaults_runtime.contracts_file),
        main_source=_lookup(runtime_data, "main_source", None),
        output_pdf=_as_bool(_lookup(runtime_data, "output_pdf", False)),
        annotation_macro=_lookup(runtime_data, "annotation_macro", defaults_runtime.annotation_macro),
    )

    return AppConfig(tools=tools, runtime=runtime)
