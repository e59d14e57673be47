"""Configuration loading for docmd (.docmd.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .models import DocMdError

CONFIG_FILENAME = ".docmd.yml"
DEFAULT_OUTPUT = "target/doc-md"
DEFAULT_RENDER_COMMAND = ("rustdoc-md", "{input}", "--output", "{output}", "{private}")
DEFAULT_LEGACY_DIRS = ("deps",)


class ConfigError(DocMdError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class CargoConfig:
    """How cargo and rustdoc are invoked."""

    executable: str = "cargo"
    toolchain: Optional[str] = "nightly"


@dataclass
class RendererConfig:
    """External command turning one rustdoc JSON file into markdown."""

    command: List[str] = field(default_factory=lambda: list(DEFAULT_RENDER_COMMAND))


@dataclass
class DocMdConfig:
    """Represents the settings defined in .docmd.yml."""

    root: Path
    output: Optional[Path] = None
    include_private: bool = False
    cargo: CargoConfig = field(default_factory=CargoConfig)
    renderer: RendererConfig = field(default_factory=RendererConfig)
    legacy_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_LEGACY_DIRS))

    def resolve_output(self, override: Optional[Path] = None) -> Path:
        """Return the output root, preferring an explicit override."""
        output = override or self.output or Path(DEFAULT_OUTPUT)
        output = output.expanduser()
        if not output.is_absolute():
            output = self.root / output
        return output


def load_config(config_path: Path) -> DocMdConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DocMdConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    output_str = _as_str(data.get("output"))
    include_private = _as_bool(data.get("include_private")) or False

    cargo = CargoConfig()
    cargo_data = _as_dict(data.get("cargo"))
    if cargo_data:
        cargo.executable = _as_str(cargo_data.get("executable")) or cargo.executable
        if "toolchain" in cargo_data:
            # an explicit null selects the default toolchain
            cargo.toolchain = _as_str(cargo_data.get("toolchain"))

    renderer = RendererConfig()
    renderer_data = _as_dict(data.get("renderer"))
    if renderer_data:
        command = _as_str_list(renderer_data.get("command"))
        if command:
            renderer.command = command

    legacy_dirs = list(DEFAULT_LEGACY_DIRS)
    if "legacy_dirs" in data:
        legacy_dirs = _as_str_list(data.get("legacy_dirs"))

    return DocMdConfig(
        root=root,
        output=Path(output_str) if output_str else None,
        include_private=include_private,
        cargo=cargo,
        renderer=renderer,
        legacy_dirs=legacy_dirs,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []
