"""CLI entry point for dualdiff."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer

from dualdiff.core.content import CompareThresholds, ContentComparator
from dualdiff.core.errors import RootError
from dualdiff.core.filtering import FilterConfig
from dualdiff.core.scanner import check_root
from dualdiff.log import DEFAULT_LOG_FILE, configure_logging

app = typer.Typer(
    name="dualdiff",
    help="Compare two directory trees side by side.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

logger = logging.getLogger(__name__)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from dualdiff import __version__

        typer.echo(f"dualdiff {__version__}")
        raise typer.Exit()


def _build_filter_config(
    *,
    respect_gitignore: bool,
    skip_hidden: bool,
    include: list[str] | None,
    exclude: list[str] | None,
) -> FilterConfig:
    """Build FilterConfig from CLI flags."""
    return FilterConfig(
        respect_gitignore=respect_gitignore,
        include_hidden=not skip_hidden,
        include_patterns=tuple(include) if include else (),
        exclude_patterns=tuple(exclude) if exclude else (),
    )


def _build_comparator(hash_algo: str) -> ContentComparator:
    """Build the content comparator, rejecting unknown hash algorithms."""
    import hashlib

    if hash_algo not in hashlib.algorithms_available:
        msg = f"Unknown hash algorithm '{hash_algo}'"
        raise ValueError(msg)
    return ContentComparator(CompareThresholds(hash_algo=hash_algo))


def _run_simple(
    left: Path,
    right: Path,
    comparator: ContentComparator,
    filter_config: FilterConfig,
) -> None:
    from dualdiff.core.session import build_tree
    from dualdiff.output.simple_output import SimpleRenderer

    tree = build_tree(left, right, comparator=comparator, filter_config=filter_config)
    SimpleRenderer().render(tree)


def _run_interactive(
    left: Path,
    right: Path,
    comparator: ContentComparator,
    filter_config: FilterConfig,
) -> str | None:
    """Run the TUI; returns the fatal scan failure, if there was one."""
    from dualdiff.core.controller import SyncController
    from dualdiff.core.launcher import Launcher
    from dualdiff.tui import DualDiffApp

    launcher = Launcher.detect()
    controller = SyncController(
        left,
        right,
        comparator=comparator,
        filter_config=filter_config,
        open_diff_or_view=launcher.open_diff_or_view,
    )
    DualDiffApp(controller).run()
    return controller.failure


@app.command()
def main(
    left: Annotated[
        Path,
        typer.Argument(help="Left directory to compare."),
    ],
    right: Annotated[
        Path,
        typer.Argument(help="Right directory to compare."),
    ],
    simple: Annotated[
        bool,
        typer.Option("--simple", help="Print differences as plain lines instead of the TUI."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Write a diagnostic log file."),
    ] = False,
    log_file: Annotated[
        Path,
        typer.Option("--log-file", help="Log file used with --verbose."),
    ] = DEFAULT_LOG_FILE,
    hash_algo: Annotated[
        str,
        typer.Option("--hash", help="Hash algorithm for medium-sized files."),
    ] = "sha256",
    respect_gitignore: Annotated[
        bool,
        typer.Option("--respect-gitignore", help="Skip entries matched by .gitignore files."),
    ] = False,
    skip_hidden: Annotated[
        bool,
        typer.Option("--skip-hidden", help="Skip hidden files and directories."),
    ] = False,
    include: Annotated[
        list[str] | None,
        typer.Option("--include", "-I", help="Glob pattern(s) for files to include."),
    ] = None,
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", "-E", help="Glob pattern(s) for entries to exclude."),
    ] = None,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """Compare two directories in synchronized side-by-side panels.

    With --simple, print one line per differing entry: [L] left only,
    [R] right only, [D] different, [E] unreadable.
    """
    configure_logging(verbose, log_file)

    try:
        left_root = check_root(left)
        right_root = check_root(right)
        comparator = _build_comparator(hash_algo)
        filter_config = _build_filter_config(
            respect_gitignore=respect_gitignore,
            skip_hidden=skip_hidden,
            include=include,
            exclude=exclude,
        )
    except (RootError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=2) from None

    logger.info("Comparing %s and %s", left_root, right_root)
    try:
        if simple:
            _run_simple(left_root, right_root, comparator, filter_config)
            return
        failure = _run_interactive(left_root, right_root, comparator, filter_config)
    except RootError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    if failure is not None:
        typer.echo(f"Error: {failure}", err=True)
        raise typer.Exit(code=1)
