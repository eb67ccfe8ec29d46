"""
beanparse command line.

    beanparse parse main.beancount            # one line per entry
    beanparse parse main.beancount --json     # entries as JSON
    beanparse check *.beancount               # exit 1 on unknown directives or balance errors
    beanparse kinds                           # directive kinds in dispatch order

Configuration is read from ``--config`` or the nearest ``beanparse.toml``
above the first file.
"""

from __future__ import annotations

import json
import logging
import platform
from pathlib import Path
from typing import Any

import typer

from . import __version__
from .core import ir
from .core.balancing import BalanceError, balance_transactions
from .core.errors import BeanparseError
from .core.manifest import ProjectManifest, find_manifest, load_manifest
from .core.parser import create_parser

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Schema-driven parser for Beancount-style ledgers.",
    no_args_is_help=True,
)


def get_version() -> str:
    """Get beanparse version from package metadata."""
    try:
        from importlib.metadata import version

        return version("beanparse")
    except Exception:
        return __version__


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"beanparse version {get_version()}")
        typer.echo(f"  Python:        {platform.python_implementation()} {platform.python_version()}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """beanparse CLI main callback for global options."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_manifest(config: Path | None, files: list[Path]) -> ProjectManifest:
    if config is not None:
        return load_manifest(config)
    found = find_manifest(files[0] if files else Path.cwd())
    if found is None:
        return ProjectManifest()
    logger.debug("Using configuration %s", found)
    return load_manifest(found)


def _parse_files(
    files: list[Path], manifest: ProjectManifest, balance: bool
) -> list[tuple[Path, list[ir.Entry], list[BalanceError]]]:
    config = manifest.build_config()
    results = []
    for file in files:
        parser = create_parser(config, manifest.source_name_for(file))
        entries = parser.parse(file.read_text(encoding="utf-8"))
        errors: list[BalanceError] = []
        if balance:
            balanced = balance_transactions(entries)
            entries, errors = balanced.entries, balanced.errors
        logger.info("Parsed %d entries from %s", len(entries), file)
        results.append((file, entries, errors))
    return results


def _describe(entry: ir.Entry) -> str:
    if isinstance(entry, ir.Transaction):
        title = f"{entry.payee} | {entry.narration}" if entry.payee else entry.narration
        return f'{entry.flag} "{title}" ({len(entry.postings)} postings)'
    if isinstance(entry, ir.UnknownDirective):
        return f"{entry.warning}: {entry.body.splitlines()[0] if entry.body else ''}"
    parts = [
        str(value)
        for name, value in (entry.model_extra or {}).items()
        if name not in ("keyword", "tags", "links") and value is not None
    ]
    return " ".join(parts)


def _entry_json(entry: ir.Entry) -> dict[str, Any]:
    return entry.model_dump(mode="json")


@app.command()
def parse(
    files: list[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Ledger files"),  # noqa: B008
    config: Path | None = typer.Option(  # noqa: B008
        None, "--config", "-c", exists=True, dir_okay=False, help="Path to beanparse.toml"
    ),
    balance: bool | None = typer.Option(
        None, "--balance/--no-balance", help="Infer missing posting amounts (default: from config)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print entries as JSON"),
) -> None:
    """Parse ledger files and print their entries."""
    try:
        manifest = _load_manifest(config, files)
        do_balance = manifest.balancing.enabled if balance is None else balance
        results = _parse_files(files, manifest, do_balance)
    except BeanparseError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if as_json:
        payload = [
            {
                "file": str(file),
                "entries": [_entry_json(entry) for entry in entries],
                "balance_errors": [str(error) for error in errors],
            }
            for file, entries, errors in results
        ]
        typer.echo(json.dumps(payload, indent=2))
        return

    for _file, entries, errors in results:
        for entry in entries:
            typer.echo(f"{entry.location}  {entry.date}  {entry.kind}  {_describe(entry)}")
        for error in errors:
            logger.warning("%s", error)


@app.command()
def check(
    files: list[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Ledger files"),  # noqa: B008
    config: Path | None = typer.Option(  # noqa: B008
        None, "--config", "-c", exists=True, dir_okay=False, help="Path to beanparse.toml"
    ),
) -> None:
    """Report unknown directives and unbalanced transactions."""
    try:
        manifest = _load_manifest(config, files)
        results = _parse_files(files, manifest, balance=True)
    except BeanparseError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    problems = 0
    for _file, entries, errors in results:
        for entry in entries:
            if isinstance(entry, ir.UnknownDirective):
                problems += 1
                typer.echo(f"{entry.location}: {entry.warning}", err=True)
        for error in errors:
            problems += 1
            typer.echo(str(error), err=True)

    if problems:
        typer.echo(f"{problems} problem(s) found", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"OK: {len(files)} file(s) parsed cleanly.")


@app.command()
def kinds(
    config: Path | None = typer.Option(  # noqa: B008
        None, "--config", "-c", exists=True, dir_okay=False, help="Path to beanparse.toml"
    ),
) -> None:
    """List directive kinds in dispatch order."""
    try:
        manifest = _load_manifest(config, [])
        for module in manifest.build_config().modules:
            for directive in module.directives:
                typer.echo(f"{directive.kind}  ({module.name} {module.version})")
    except BeanparseError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
