"""CLI entry point for staticfier."""

import logging
from pathlib import Path
from typing import Any, Optional

import click
import libcst as cst
from rich.console import Console
from rich.logging import RichHandler

from staticfier import __version__
from staticfier.commands.base import BaseCommand
from staticfier.commands.registry import apply_refactoring, discover_and_register_commands

# Dynamically discover and import all command modules
discover_and_register_commands()

LOG_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def configure_logging(verbosity: int) -> None:
    """Route the package loggers through a Rich handler on stderr.

    Args:
        verbosity: Number of -v flags given; 0 logs warnings, 1 info, 2+ debug
    """
    level = LOG_LEVELS[min(verbosity, len(LOG_LEVELS) - 1)]
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger("staticfier")
    package_logger.handlers = [handler]
    package_logger.setLevel(level)
    package_logger.propagate = False


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", count=True, help="Log conversions (-v) and rejections (-vv).")
def main(verbose: int) -> None:
    """Staticfier - turn private methods that ignore their instance into static methods.

    A method is only rewritten when it is private, carries no decorator other
    than @final, and provably touches no instance state.
    """
    configure_logging(verbose)


def refactor_file(refactoring_name: str, file_path: Path, **params: Any) -> BaseCommand:
    """Apply a refactoring to a file.

    Args:
        refactoring_name: Name of the refactoring to apply
        file_path: Path to the file to refactor
        **params: Additional parameters for the refactoring

    Returns:
        The executed command

    Raises:
        ValueError: If refactoring_name is not recognized
    """
    return apply_refactoring(refactoring_name, Path(file_path), **params)


def refactor_directory(refactoring_name: str, directory: Path, **params: Any) -> list[BaseCommand]:
    """Apply a refactoring across all Python files in a directory.

    Only the top level of the directory is searched.

    Args:
        refactoring_name: Name of the refactoring to apply
        directory: Path to the directory containing Python files
        **params: Additional parameters for the refactoring

    Returns:
        The executed commands, one per file

    Raises:
        ValueError: If refactoring_name is not recognized or directory doesn't exist
    """
    directory = Path(directory)
    if not directory.exists():
        raise ValueError(f"Directory does not exist: {directory}")
    if not directory.is_dir():
        raise ValueError(f"Path is not a directory: {directory}")

    py_files = sorted(directory.glob("*.py"))
    if not py_files:
        raise ValueError(f"No Python files found in {directory}")

    return [apply_refactoring(refactoring_name, file_path, **params) for file_path in py_files]


@main.command("make-method-static")
@click.argument("path", type=click.Path(exists=True, path_type=Path))
@click.option("--target", default=None, help="'ClassName' or 'ClassName::method_name'.")
@click.option("--check", is_flag=True, help="Report files that would change without writing them.")
def make_method_static(path: Path, target: Optional[str], check: bool) -> None:
    """Make eligible private methods in PATH static.

    PATH is a Python file or a directory whose top-level *.py files are processed.

    With --check the exit status is 1 when a file would change. Errors exit with
    status 1 as well, and print an "Error:" line on stderr instead of the report.
    """
    params: dict[str, Any] = {"check": check}
    if target is not None:
        params["target"] = target

    try:
        if path.is_dir():
            commands = refactor_directory("make-method-static", path, **params)
        else:
            commands = [refactor_file("make-method-static", path, **params)]
    except cst.ParserSyntaxError as e:
        raise click.ClickException(f"Could not parse {path}: {e.message}") from e
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    verb = "Would make" if check else "Made"
    for command in commands:
        for method in command.converted:
            click.echo(f"{command.file_path}: {verb} {method} static")

    if check and any(command.changed for command in commands):
        raise SystemExit(1)


if __name__ == "__main__":
    main()
