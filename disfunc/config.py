"""Tool configuration.

Defaults suit `go tool objdump` output on amd64. A YAML file can override
them, and command line flags override the file.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from disfunc.highlight import DEFAULT_TAB_WIDTH
from disfunc.listing import BLOCK_HEADER_PREFIX
from disfunc.traps import DEFAULT_TRAP_ROUTINES


class ConfigError(Exception):
    """Raised when a configuration file cannot be used.
    """


@dataclass
class ToolConfig:
    """Settings shared by disfunc and boundcheck."""

    trap_routines: list[str] = field(default_factory=lambda: list(DEFAULT_TRAP_ROUTINES))
    """Call targets, matched by prefix, that mark a bounds check trap."""

    block_header_prefix: str = BLOCK_HEADER_PREFIX
    """Marker starting a symbol block header line."""

    tab_width: int = DEFAULT_TAB_WIDTH
    """Spaces printed for each tab of a source line."""

    source_root: str | None = None
    """Directory that relative source file names are resolved against.

    None means the current working directory.
    """

    context_lines: int = 1
    """Source lines shown above and below each trap site by boundcheck."""

    @staticmethod
    def from_yaml(path: str | Path) -> ToolConfig:
        """Load a config from a YAML mapping; missing keys keep their defaults.

        Raises:
            ConfigError: If the file is not a mapping or has unknown or mistyped keys.

        """
        config_path = Path(path)
        try:
            with config_path.open("r", encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"failed to read {config_path}: {exc}") from exc

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigError(f"expected a YAML mapping in {config_path}, got {type(raw).__name__}")
        return ToolConfig.from_dict(raw)

    @staticmethod
    def from_dict(raw: dict[str, Any]) -> ToolConfig:
        known = {f.name for f in fields(ToolConfig)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ConfigError(f"unknown config keys: {', '.join(unknown)}")

        config = ToolConfig()
        if "trap_routines" in raw:
            routines = raw["trap_routines"]
            if isinstance(routines, str):
                routines = [routines]
            if not isinstance(routines, list) or not all(isinstance(r, str) and r for r in routines):
                raise ConfigError("trap_routines must be a list of non-empty strings")
            config.trap_routines = list(routines)
        if "block_header_prefix" in raw:
            config.block_header_prefix = _expect(raw, "block_header_prefix", str)
        if "tab_width" in raw:
            config.tab_width = _expect(raw, "tab_width", int)
        if "source_root" in raw:
            root = raw["source_root"]
            config.source_root = None if root is None else _expect(raw, "source_root", str)
        if "context_lines" in raw:
            config.context_lines = _expect(raw, "context_lines", int)
        if config.tab_width < 0 or config.context_lines < 0:
            raise ConfigError("tab_width and context_lines must be >= 0")
        return config

    def resolve_source_path(self, name: str) -> Path:
        """Resolve a source file name relative to the source root."""
        path = Path(name)
        if path.is_absolute() or self.source_root is None:
            return path
        return Path(self.source_root) / path


def _expect(raw: dict[str, Any], key: str, kind: type) -> Any:
    value = raw[key]
    # bool is an int subclass, and never what is meant here.
    if not isinstance(value, kind) or isinstance(value, bool):
        raise ConfigError(f"{key} must be of type {kind.__name__}, got {type(value).__name__}")
    return value
