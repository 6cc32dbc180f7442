from __future__ import annotations

import difflib
import logging
from dataclasses import dataclass
from pathlib import Path

from .config import ToolConfig
from .errors import SectionError
from .io_utils import read_text, write_text_atomic
from .markers import MarkerPatterns, find_sections, has_any_markers, line_number, validate_markers
from .splice import sync_text


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileResult:
    path: Path
    action: str  # updated|skipped|error
    message: str = ""
    changed: bool = False
    diff: str = ""
    output: str = ""


@dataclass(frozen=True)
class SectionInfo:
    name: str
    source: str
    begin_line: int
    end_line: int


def _log_section(name: str, source: str) -> None:
    logger.info("section=%s source=%s", name, source)


def _unified_diff(path: Path, old: str, new: str) -> str:
    old_lines = old.splitlines(keepends=True)
    new_lines = new.splitlines(keepends=True)
    return "".join(
        difflib.unified_diff(
            old_lines,
            new_lines,
            fromfile=str(path),
            tofile=str(path),
        )
    )


def _write_or_diff(
    path: Path, old: str, new: str, dry_run: bool, print_diff: bool
) -> tuple[bool, str]:
    if old == new:
        return False, ""
    d = _unified_diff(path, old, new) if print_diff else ""
    if not dry_run:
        write_text_atomic(path, new)
    return True, d


def sync_file(
    path: Path,
    cfg: ToolConfig,
    *,
    dry_run: bool,
    print_diff: bool,
) -> FileResult:
    try:
        existing = read_text(path)
    except (OSError, UnicodeDecodeError) as e:
        return FileResult(path=path, action="error", message=str(e))

    try:
        synced = sync_text(
            existing,
            cfg.patterns(),
            log_sink=_log_section,
            strict=cfg.strict,
        )
    except SectionError as e:
        return FileResult(path=path, action="error", message=str(e))

    try:
        changed, d = _write_or_diff(path, existing, synced, dry_run=dry_run, print_diff=print_diff)
    except OSError as e:
        return FileResult(path=path, action="error", message=str(e))

    return FileResult(
        path=path,
        action="updated" if changed else "skipped",
        message="updated" if changed else "no changes",
        changed=changed,
        diff=d,
        output=synced,
    )


def inspect_file(path: Path, patterns: MarkerPatterns) -> list[SectionInfo]:
    text = read_text(path)
    return [
        SectionInfo(
            name=s.name,
            source=s.source,
            begin_line=line_number(text, s.start),
            end_line=line_number(text, s.end),
        )
        for s in find_sections(text, patterns)
    ]


def check_file(path: Path, cfg: ToolConfig) -> tuple[list[str], list[str]]:
    problems: list[str] = []
    warnings: list[str] = []

    try:
        text = read_text(path)
    except (OSError, UnicodeDecodeError) as e:
        return [f"{path}: {e}"], warnings

    patterns = cfg.patterns()
    if not has_any_markers(text, patterns):
        warnings.append(f"{path}: no {patterns.begin} markers")
        return problems, warnings

    for p in validate_markers(text, patterns):
        if p.kind == "duplicate" and not cfg.strict:
            warnings.append(f"{path}: {p.message}")
        else:
            problems.append(f"{path}: {p.message}")

    # Source paths are resolved like the sync does: against the working directory.
    seen: set[str] = set()
    for m in patterns.begin_re.finditer(text):
        source = m.group(2) or ""
        if not source or source in seen:
            continue
        seen.add(source)
        if not Path(source).is_file():
            problems.append(f"{path}: section {m.group(1)}: source file not found: {source}")

    return problems, warnings
