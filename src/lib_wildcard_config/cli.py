"""CLI adapter for ``lib_wildcard_config`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators inspect what a wildcard registration resolves to (which files
match, which value wins) without writing Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command wiring traceback handling into ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata.
* :func:`cli_read` – prints the merged configuration as JSON.
* :func:`cli_keys` – lists child key segments below a parent path.
* :func:`cli_files` – lists the files a pattern matches, in precedence order.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
Outermost layer: it only calls :mod:`lib_wildcard_config.core` and the file
provider adapter. ``lib_cli_exit_tools`` centralises the exit code strategy so
all commands behave consistently across shells and CI.
"""

from __future__ import annotations

import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.file_providers.physical import PhysicalFileProvider
from .core import SOURCE_TYPES, build_configuration

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000

FORMAT_CHOICES: Final[tuple[str, ...]] = tuple(SOURCE_TYPES)

_BASE_DIR_OPTION = click.option(
    "--base-dir",
    type=click.Path(path_type=Path, exists=True, file_okay=False, dir_okay=True, readable=True),
    default=None,
    help="Directory the pattern is relative to (defaults to CWD)",
)
_FORMAT_OPTION = click.option(
    "--format",
    "file_format",
    type=click.Choice(FORMAT_CHOICES, case_sensitive=False),
    default="json",
    show_default=True,
    help="File format of the matched files",
)


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` when metadata is unavailable."""

    try:
        return metadata.version("lib_wildcard_config")
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Merge every configuration file matching a wildcard",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name="lib_wildcard_config",
    message="lib_wildcard_config version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata("lib_wildcard_config")
    except metadata.PackageNotFoundError:
        click.echo("lib_wildcard_config (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', 'lib_wildcard_config')}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.11')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("files", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("pattern")
@_BASE_DIR_OPTION
def cli_files(pattern: str, base_dir: Optional[Path]) -> None:
    """List the files matching PATTERN, highest precedence first."""

    provider = PhysicalFileProvider(base_dir or Path.cwd())
    click.echo(json.dumps(provider.glob(pattern), indent=2))


@cli.command("read", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("pattern")
@_BASE_DIR_OPTION
@_FORMAT_OPTION
@click.option(
    "--env-prefix",
    default=None,
    help="Also apply environment variables starting with this prefix ('__' nests)",
)
@click.option(
    "--indent",
    type=int,
    default=None,
    help="Pretty-print JSON output with the provided indent size",
)
@click.option(
    "--provenance/--no-provenance",
    default=False,
    help="Include the winning provider for each key in the output",
)
def cli_read(
    pattern: str,
    base_dir: Optional[Path],
    file_format: str,
    env_prefix: Optional[str],
    indent: Optional[int],
    provenance: bool,
) -> None:
    """Merge every file matching PATTERN and print the result as JSON.

    Files are merged in sorted name order and the first file defining a key wins.
    """

    with build_configuration(pattern, base_dir=base_dir, format=file_format, env_prefix=env_prefix) as root:
        config = root.as_config()
    if provenance:
        payload = {"config": config.as_dict(), "provenance": config.provenance()}
        click.echo(json.dumps(payload, indent=indent, separators=(",", ":")))
        return
    click.echo(config.to_json(indent=indent))


@cli.command("keys", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("pattern")
@_BASE_DIR_OPTION
@_FORMAT_OPTION
@click.option("--parent", default=None, help="Parent path (colon-delimited) to list children of")
def cli_keys(pattern: str, base_dir: Optional[Path], file_format: str, parent: Optional[str]) -> None:
    """List the distinct key segments directly below --parent across matched files."""

    with build_configuration(pattern, base_dir=base_dir, format=file_format) as root:
        keys = root.get_children_keys(parent)
    for key in keys:
        click.echo(key)


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name="lib_wildcard_config",
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
