"""TOML config loading for dragon.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from yeoldedragon.compiler import OUTPUT_TYPES

CONFIG_NAME = "dragon.toml"


@dataclass
class BuildConfig:
    output: str = "js"
    optimize: bool = True


@dataclass
class DiagnosticsConfig:
    pretty: bool = False
    color: bool = True


@dataclass
class DragonConfig:
    build: BuildConfig = field(default_factory=BuildConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


def find_config(start_path: Path | None = None) -> Path | None:
    """Walk up directories to find dragon.toml. Returns None if there is none."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            return None
        path = parent


def load_config(path: Path | None) -> DragonConfig:
    """Parse a dragon.toml file into a DragonConfig. None gives the defaults."""
    config = DragonConfig()
    if path is None:
        return config

    with open(path, "rb") as f:
        data = tomllib.load(f)

    if "build" in data:
        bld = data["build"]
        output = bld.get("output", "js")
        if output not in OUTPUT_TYPES:
            raise ValueError(
                f"{path}: [build] output must be one of {', '.join(OUTPUT_TYPES)}"
            )
        config.build = BuildConfig(
            output=output,
            optimize=bld.get("optimize", True),
        )

    if "diagnostics" in data:
        diag = data["diagnostics"]
        config.diagnostics = DiagnosticsConfig(
            pretty=diag.get("pretty", False),
            color=diag.get("color", True),
        )

    return config
