from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .constants import CONFIG_FILENAME, DEFAULT_BEGIN, DEFAULT_END
from .io_utils import read_json, write_json_atomic
from .markers import MarkerPatterns, make_patterns


@dataclass(frozen=True)
class ToolMarkers:
    begin: str = DEFAULT_BEGIN
    end: str = DEFAULT_END


@dataclass
class ToolConfig:
    version: int = 1
    markers: ToolMarkers = field(default_factory=ToolMarkers)
    verbose: bool = False
    strict: bool = False
    # Documents processed when the CLI gets no explicit paths.
    files: list[str] = field(default_factory=list)

    def patterns(self) -> MarkerPatterns:
        return make_patterns(self.markers.begin, self.markers.end)

    def to_json(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "markers": {"begin": self.markers.begin, "end": self.markers.end},
            "verbose": self.verbose,
            "strict": self.strict,
            "files": list(self.files),
        }

    @staticmethod
    def from_json(d: dict[str, Any]) -> "ToolConfig":
        cfg = ToolConfig()
        cfg.version = int(d.get("version", 1))

        m = d.get("markers", {}) or {}
        cfg.markers = ToolMarkers(
            begin=str(m.get("begin", cfg.markers.begin)),
            end=str(m.get("end", cfg.markers.end)),
        )
        cfg.verbose = bool(d.get("verbose", False))
        cfg.strict = bool(d.get("strict", False))
        cfg.files = [str(x) for x in (d.get("files", []) or []) if str(x).strip()]
        return cfg

    def with_overrides(
        self,
        *,
        begin: str | None = None,
        end: str | None = None,
        verbose: bool | None = None,
        strict: bool | None = None,
    ) -> "ToolConfig":
        # CLI options win over the config file.
        cfg = ToolConfig.from_json(self.to_json())
        cfg.markers = ToolMarkers(
            begin=begin if begin is not None else cfg.markers.begin,
            end=end if end is not None else cfg.markers.end,
        )
        if verbose is not None:
            cfg.verbose = verbose
        if strict is not None:
            cfg.strict = strict
        return cfg


def default_config_path(cwd: Path | None = None) -> Path:
    return (cwd or Path.cwd()) / CONFIG_FILENAME


def load_tool_config(path: Path) -> ToolConfig:
    if not path.exists():
        return ToolConfig()
    return ToolConfig.from_json(read_json(path))


def save_tool_config(path: Path, cfg: ToolConfig) -> None:
    write_json_atomic(path, cfg.to_json())
