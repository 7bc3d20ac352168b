"""CLI entry point for lockstep."""

from __future__ import annotations

from pathlib import Path

import click
from pydantic import BaseModel

from lockstep.cargo import CargoFormat
from lockstep.engine import check as check_workspace
from lockstep.engine import update as update_workspace
from lockstep.errors import LockstepError
from lockstep.loader import load_workspace
from lockstep.models import Workspace
from lockstep.report import Reporter, affected_locations
from lockstep.sources import FileManifestSource, ManifestFormat, detect_format
from lockstep.uv import UvFormat
from lockstep.versions import normalize_version

FORMATS: dict[str, type[ManifestFormat]] = {"cargo": CargoFormat, "uv": UvFormat}


class RunOptions(BaseModel):
    """Options shared by every subcommand."""

    root: Path
    format: str = "auto"
    include_root: bool = False
    quiet: bool = False
    verbose: bool = False


def _load(opts: RunOptions) -> tuple[FileManifestSource, Workspace]:
    """Resolve the dialect, then load the workspace or fail the command."""
    try:
        fmt = detect_format(opts.root) if opts.format == "auto" else FORMATS[opts.format]()
        source = FileManifestSource(opts.root, fmt, include_root=opts.include_root)
        return source, load_workspace(source)
    except LockstepError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group(context_settings={"auto_envvar_prefix": "LOCKSTEP"})
@click.version_option(package_name="lockstep", prog_name="lockstep")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Workspace root directory.",
)
@click.option(
    "--format",
    type=click.Choice(["auto", *FORMATS]),
    default="auto",
    show_default=True,
    help="Manifest dialect; auto picks Cargo.toml or pyproject.toml.",
)
@click.option(
    "--include-root",
    is_flag=True,
    help="Also version the root manifest when it declares a package.",
)
@click.option("-q", "--quiet", is_flag=True, help="Don't print anything but errors.")
@click.option("-v", "--verbose", is_flag=True, help="List discovered packages.")
@click.pass_context
def cli(
    ctx: click.Context,
    root: Path,
    format: str,
    include_root: bool,
    quiet: bool,
    verbose: bool,
) -> None:
    """Keep every package in a workspace on one version."""
    ctx.obj = RunOptions(
        root=root,
        format=format,
        include_root=include_root,
        quiet=quiet,
        verbose=verbose,
    )


@cli.command("check")
@click.argument("version")
@click.pass_context
def cmd_check(ctx: click.Context, version: str) -> None:
    """Verify all packages and internal pins are at VERSION.

    VERSION may be a git tag such as v1.2.3. Exits 1 if anything differs.
    """
    opts: RunOptions = ctx.obj
    reporter = Reporter(quiet=opts.quiet, verbose=opts.verbose)
    target = normalize_version(version)

    _, workspace = _load(opts)
    reporter.workspace(workspace)

    violations = check_workspace(workspace, target)
    if violations:
        reporter.violations(violations)
        reporter.needs_update(affected_locations(workspace, violations))
        ctx.exit(1)

    reporter.echo("All files had the correct version")


@cli.command("update")
@click.argument("version")
@click.pass_context
def cmd_update(ctx: click.Context, version: str) -> None:
    """Rewrite all packages and pinned internal deps to VERSION.

    Unpinned internal dependencies are left as they are. Each manifest is
    written on its own: if one write fails the others still happen and are
    not rolled back. Exits 1 if any write failed.
    """
    opts: RunOptions = ctx.obj
    reporter = Reporter(quiet=opts.quiet, verbose=opts.verbose)
    target = normalize_version(version)

    source, workspace = _load(opts)
    reporter.workspace(workspace)

    result = update_workspace(workspace, target, source)
    if not result.changes:
        reporter.echo("All files had the correct version")
        return

    reporter.violations(result.changes, fixing=True)
    reporter.updated(result.written)
    for failure in result.failures:
        reporter.error(failure)
    if not result.ok:
        ctx.exit(1)
