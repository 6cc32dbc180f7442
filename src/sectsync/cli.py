from __future__ import annotations

import json
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .actions import FileResult, check_file, inspect_file, sync_file
from .config import ToolConfig, default_config_path, load_tool_config, save_tool_config
from .errors import SectionError
from .logging_setup import setup_logging

from . import __version__


app = typer.Typer(
    add_completion=False,
    help="Replace marked sections of text files with the contents of source files",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.callback()
def _root(
    version: bool = typer.Option(
        False, "--version", help="Print version and exit", is_eager=True
    ),
) -> None:
    if version:
        console.print(__version__)
        raise typer.Exit(code=0)


console = Console(stderr=False)
err_console = Console(stderr=True)


def _load_config(
    config: Path | None,
    *,
    begin: str | None = None,
    end: str | None = None,
    verbose: bool | None = None,
    strict: bool | None = None,
) -> ToolConfig:
    cfg_path = config or default_config_path()
    try:
        cfg = load_tool_config(cfg_path)
    except (OSError, ValueError) as e:
        err_console.print(f"ERROR: {cfg_path}: {e}", markup=False, soft_wrap=True)
        raise typer.Exit(code=1)

    cfg = cfg.with_overrides(begin=begin, end=end, verbose=verbose, strict=strict)
    try:
        cfg.patterns()
    except ValueError as e:
        raise typer.BadParameter(str(e))
    return cfg


OUTPUT_FORMATS = ("text", "json")


def _validate_format(value: str) -> str:
    value = (value or "").strip().lower()
    if value not in OUTPUT_FORMATS:
        raise typer.BadParameter(f"expected one of: {', '.join(OUTPUT_FORMATS)}")
    return value


def _targets(files: list[Path] | None, cfg: ToolConfig) -> list[Path]:
    targets = list(files or []) or [Path(f) for f in cfg.files]
    if not targets:
        err_console.print(
            "ERROR: no input file. Pass FILE or list files in .sectsync.json"
        )
        raise typer.Exit(code=2)
    return targets


def _print_results(results: list[FileResult], print_diff: bool) -> None:
    table = Table(title="sectsync")
    table.add_column("Action", style="bold")
    table.add_column("Path")
    table.add_column("Message")
    for r in results:
        table.add_row(r.action, str(r.path), r.message)
    console.print(table)

    if print_diff:
        for r in results:
            if r.diff:
                console.print(r.diff, markup=False, highlight=False)


def _results_payload(results: list[FileResult]) -> list[dict[str, object]]:
    return [
        {
            "path": str(r.path),
            "action": r.action,
            "message": r.message,
            "changed": bool(r.changed),
            "diff": r.diff or "",
        }
        for r in results
    ]


def _report_errors(results: list[FileResult]) -> None:
    for e in results:
        if e.action == "error":
            err_console.print(f"ERROR: {e.path}: {e.message}", markup=False, soft_wrap=True)


@app.command()
def sync(
    files: list[Path] | None = typer.Argument(
        None, help="Documents to update (default: files listed in .sectsync.json)"
    ),
    begin: str | None = typer.Option(
        None, "--begin", help="Begin marker prefix (default: BEGIN SECTION)"
    ),
    end: str | None = typer.Option(
        None, "--end", help="End marker prefix (default: END SECTION)"
    ),
    stdout: bool = typer.Option(
        False, "--stdout", help="Print the result instead of writing the file"
    ),
    verbose: bool | None = typer.Option(
        None, "--verbose/--quiet", help="Log details about processed sections"
    ),
    strict: bool | None = typer.Option(
        None, "--strict/--no-strict", help="Fail when a section name is declared twice"
    ),
    check: bool = typer.Option(
        False,
        "--check",
        help="Validate that sections are up to date (non-zero if drift is detected)",
    ),
    format: str = typer.Option(
        "text", "--format", help="Output format: text|json", callback=_validate_format
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Do not write files"),
    print_diff: bool = typer.Option(False, "--print-diff", help="Print unified diff"),
    config: Path | None = typer.Option(
        None, "--config", help="Config file (default: ./.sectsync.json)"
    ),
):
    """Replace every marked section with the trimmed contents of its file= source."""
    cfg = _load_config(config, begin=begin, end=end, verbose=verbose, strict=strict)
    setup_logging(verbose=cfg.verbose)
    targets = _targets(files, cfg)

    dry_run_effective = dry_run or check or stdout
    results = [
        sync_file(p, cfg, dry_run=dry_run_effective, print_diff=print_diff)
        for p in targets
    ]
    errors = [r for r in results if r.action == "error"]
    drift = any(r.changed for r in results)

    if stdout:
        for r in results:
            if r.action != "error":
                sys.stdout.write(r.output)
        _report_errors(results)
        raise typer.Exit(code=1 if errors else 0)

    status = "ok"
    if errors:
        status = "error"
    elif check and drift:
        status = "drift"

    summary = (
        f"sync:{status} "
        f"(updated={sum(1 for r in results if r.action == 'updated')}, "
        f"skipped={sum(1 for r in results if r.action == 'skipped')}, "
        f"errors={len(errors)})"
    )

    if format == "json":
        sys.stdout.write(
            json.dumps(
                {
                    "status": status,
                    "summary": summary,
                    "check": check,
                    "dry_run": dry_run_effective,
                    "results": _results_payload(results),
                },
                indent=2,
            )
            + "\n"
        )
    else:
        _print_results(results, print_diff=print_diff)
        console.print(summary)
        if check and drift:
            err_console.print(
                "Section drift detected. Run `sectsync sync` to update the files."
            )

    if errors:
        _report_errors(results)
        raise typer.Exit(code=1)
    if check and drift:
        raise typer.Exit(code=1)


@app.command(name="list")
def list_cmd(
    file: Path = typer.Argument(..., exists=True, file_okay=True, dir_okay=False),
    begin: str | None = typer.Option(None, "--begin", help="Begin marker prefix"),
    end: str | None = typer.Option(None, "--end", help="End marker prefix"),
    format: str = typer.Option(
        "text", "--format", help="Output format: text|json", callback=_validate_format
    ),
    config: Path | None = typer.Option(None, "--config", help="Config file"),
):
    """List the sections of a document and their sources."""
    cfg = _load_config(config, begin=begin, end=end)
    try:
        sections = inspect_file(file, cfg.patterns())
    except (SectionError, OSError, UnicodeDecodeError) as e:
        err_console.print(f"ERROR: {file}: {e}", markup=False, soft_wrap=True)
        raise typer.Exit(code=1)

    if format == "json":
        payload = [
            {
                "name": s.name,
                "source": s.source,
                "begin_line": s.begin_line,
                "end_line": s.end_line,
            }
            for s in sections
        ]
        sys.stdout.write(json.dumps(payload, indent=2) + "\n")
        raise typer.Exit(code=0)

    table = Table(title=str(file))
    table.add_column("Section", style="bold")
    table.add_column("Source")
    table.add_column("Lines")
    if not sections:
        table.add_row("none", "-", "-")
    for s in sections:
        table.add_row(s.name, s.source or "(missing)", f"{s.begin_line}-{s.end_line}")
    console.print(table)


@app.command(name="check")
def check_cmd(
    files: list[Path] | None = typer.Argument(None, help="Documents to validate"),
    begin: str | None = typer.Option(None, "--begin", help="Begin marker prefix"),
    end: str | None = typer.Option(None, "--end", help="End marker prefix"),
    strict: bool | None = typer.Option(
        None, "--strict/--no-strict", help="Treat duplicated section names as errors"
    ),
    config: Path | None = typer.Option(None, "--config", help="Config file"),
):
    """Validate markers and sources without writing. Non-zero exit code on problems."""
    cfg = _load_config(config, begin=begin, end=end, strict=strict)
    problems: list[str] = []
    for p in _targets(files, cfg):
        file_problems, warnings = check_file(p, cfg)
        for w in warnings:
            err_console.print(f"WARN: {w}", markup=False, soft_wrap=True)
        problems.extend(file_problems)

    if problems:
        for p in problems:
            err_console.print(f"- {p}", markup=False, soft_wrap=True)
        raise typer.Exit(code=1)
    console.print("check: ok")


@app.command()
def init(
    file: list[str] | None = typer.Option(
        None, "--file", help="Document to sync by default (repeatable)"
    ),
    begin: str | None = typer.Option(None, "--begin", help="Begin marker prefix"),
    end: str | None = typer.Option(None, "--end", help="End marker prefix"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config"),
    config: Path | None = typer.Option(None, "--config", help="Config file to write"),
):
    """Write a .sectsync.json with the default marker prefixes."""
    cfg_path = config or default_config_path()
    if cfg_path.exists() and not force:
        err_console.print(
            f"ERROR: {cfg_path} already exists (use --force)", markup=False, soft_wrap=True
        )
        raise typer.Exit(code=1)

    cfg = ToolConfig(files=list(file or [])).with_overrides(begin=begin, end=end)
    try:
        cfg.patterns()
    except ValueError as e:
        raise typer.BadParameter(str(e))
    save_tool_config(cfg_path, cfg)
    console.print(f"wrote {cfg_path}")


def main(argv: list[str] | None = None) -> None:
    app(prog_name="sectsync")


if __name__ == "__main__":
    main(sys.argv[1:])
