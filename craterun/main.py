"""
craterun: CLI entrypoint.

Usage:
    craterun --help
    craterun run ripgrep -- --version
    craterun run ripgrep@14.1.0 --bin rg -q -- -n TODO src/
    craterun which ripgrep --bin rg
    craterun dirs
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import NoReturn

import click

from craterun import __version__
from craterun.core.config.loader import find_config_file, load_settings
from craterun.core.errors import (
    EXIT_INSTALL_FAILED,
    CraterunError,
    InstallError,
    ParseError,
)
from craterun.core.observability.logging_config import (
    LOG_FILE_ENV,
    LOG_FILE_LEVEL_ENV,
    resolve_level,
    setup_logging,
)
from craterun.core.use_cases.run import Workspace, snapshot_environ

RAW_ARGS_KEY = "craterun.raw_args"


class PassthroughCommand(click.Command):
    """A command that hands its raw tokens to the callback untouched.

    click's parser would swallow ``--`` and reject unknown options;
    the run command needs both, so parsing is left to the argument
    splitter. ``--help`` as the first token still shows click's help.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if args and args[0] in self.get_help_option_names(ctx):
            return super().parse_args(ctx, args)
        ctx.meta[RAW_ARGS_KEY] = list(args)
        return super().parse_args(ctx, [])


def _fail(err: CraterunError) -> NoReturn:
    click.secho(f"craterun: error: {err}", fg="red", err=True)
    sys.exit(err.exit_code)


def _status(line: str) -> None:
    click.secho(f"craterun: {line}", fg="cyan", err=True)


def _echo_backend(line: str) -> None:
    click.echo(line, err=True)


def _workspace(ctx: click.Context) -> Workspace:
    environ = ctx.obj["environ"]
    try:
        settings = load_settings(environ, ctx.obj.get("config_path"))
    except CraterunError as e:
        _fail(e)
    return Workspace.create(settings, environ)


@click.group()
@click.version_option(version=__version__, prog_name="craterun")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to config.yml (default: CRATERUN_CONFIG or the user config dir).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool, config_path: str | None) -> None:
    """craterun: run a crate's binary, installing it on demand."""
    ctx.ensure_object(dict)

    # ── Environment snapshot (once, at process start) ───────────
    environ = snapshot_environ()
    ctx.obj["environ"] = environ
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(environ, verbose=verbose, debug=debug),
        log_file=environ.get(LOG_FILE_ENV),
        log_file_level=environ.get(LOG_FILE_LEVEL_ENV),
    )


@cli.command(cls=PassthroughCommand)
@click.pass_context
def run(ctx: click.Context) -> None:
    """Run a crate's binary, installing it first if needed.

    \b
    craterun run <package[@version]> [--bin <name>] [-f|--force]
                 [-q|--quiet] [-s|--build-from-source] [--] [binary-args...]

    The binary is looked up in craterun's own install directory and on
    PATH (never in ~/.cargo/bin, ~/.local/bin or /usr/local/bin). If it
    is missing it is installed with cargo-binstall, falling back to
    cargo install. The binary's exit code becomes craterun's.

    Examples:

        craterun run ripgrep --bin rg -- --version

        craterun run bat@0.24.0 -q README.md

        craterun run tokei --force --build-from-source -- .
    """
    from craterun.core.services.argsplit import USAGE, split_invocation
    from craterun.core.use_cases.run import build_dispatcher, run_invocation

    try:
        request = split_invocation(ctx.meta.get(RAW_ARGS_KEY, []))
    except ParseError as e:
        click.echo(f"Usage: {USAGE}", err=True)
        _fail(e)

    workspace = _workspace(ctx)
    dispatcher = build_dispatcher(workspace.settings, status=_status)

    try:
        child = run_invocation(request, workspace, dispatcher=dispatcher, echo=_echo_backend)
    except InstallError as e:
        # Quiet mode kept the backend output off the terminal; show it now
        if request.quiet and e.diagnostics:
            click.echo(e.diagnostics, err=True)
        _fail(e)
    except CraterunError as e:
        _fail(e)

    if child.signal is not None:
        click.secho(
            f"craterun: {request.binary_name} terminated by {child.signal_name}",
            fg="red",
            err=True,
        )
    sys.exit(child.exit_code)


@cli.command()
@click.argument("package")
@click.option("--bin", "binary", default=None, help="Binary name if it differs from the package.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def which(ctx: click.Context, package: str, binary: str | None, as_json: bool) -> None:
    """Show where a package's binary would be run from, without installing."""
    from craterun.core.services.argsplit import parse_spec
    from craterun.core.use_cases.run import locate

    try:
        spec = parse_spec(package, binary=binary)
    except ParseError as e:
        _fail(e)

    workspace = _workspace(ctx)
    try:
        resolved = locate(spec, workspace)
    except CraterunError as e:
        _fail(e)

    if as_json:
        result = {"binary": spec.binary_name, "found": resolved is not None}
        if resolved is not None:
            result.update(resolved.to_dict())
        click.echo(json.dumps(result, indent=2))
        sys.exit(0 if resolved is not None else EXIT_INSTALL_FAILED)

    if resolved is None:
        click.secho(f"✗ {spec.binary_name} is not installed in an allowed location", fg="yellow")
        sys.exit(EXIT_INSTALL_FAILED)

    click.echo(str(resolved.path))
    if resolved.origin == "path":
        click.secho("   (found on PATH)", fg="cyan", err=True)


@cli.command("dirs")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def dirs(ctx: click.Context, as_json: bool) -> None:
    """Show the install directory, deny-list and config file in use."""
    workspace = _workspace(ctx)
    config_file = find_config_file(ctx.obj["environ"], ctx.obj.get("config_path"))

    result = workspace.to_dict()
    result["config_file"] = str(config_file) if config_file else None

    if as_json:
        click.echo(json.dumps(result, indent=2))
        return

    click.secho("📦 craterun", fg="cyan", bold=True)
    click.echo(f"   Install dir: {result['install_dir']}")
    click.echo(f"   Binaries:    {result['bin_dir']}")
    click.echo(f"   Config:      {result['config_file'] or '(none)'}")
    click.echo(f"   Cargo:       {result['cargo']}")
    click.secho("   Never resolved from:", fg="white", bold=True)
    for denied in result["deny_dirs"]:
        click.echo(f"     • {denied}")


if __name__ == "__main__":
    cli()
