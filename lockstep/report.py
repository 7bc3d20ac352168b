"""Terminal output for check and update runs.

Plain lines through click.echo; errors always go to stderr, everything else
is silenced by quiet mode.
"""

from __future__ import annotations

from collections.abc import Iterable

import click

from .errors import LockstepError
from .models import (
    DependencyVersionMismatch,
    Violation,
    Workspace,
    WorkspaceDependencyMismatch,
    WorkspaceVersionMismatch,
)


def format_violation(violation: Violation, *, fixing: bool = False) -> str:
    """Render one violation as a single line.

    Examples:
        "Version for b was 1.0.0 want 2.0.0"
        "Version for dependency a of b was 1.0.0 want 2.0.0 (fixing)"
    """
    if isinstance(violation, WorkspaceVersionMismatch):
        subject = f"workspace {violation.location}"
    elif isinstance(violation, WorkspaceDependencyMismatch):
        subject = f"dependency {violation.depends_on} of workspace {violation.location}"
    elif isinstance(violation, DependencyVersionMismatch):
        subject = f"dependency {violation.depends_on} of {violation.package}"
    else:
        subject = violation.package
    suffix = " (fixing)" if fixing else ""
    return f"Version for {subject} was {violation.found} want {violation.expected}{suffix}"


def affected_locations(workspace: Workspace, violations: Iterable[Violation]) -> list[str]:
    """Manifest locations touched by the given violations, first-seen order."""
    locations: list[str] = []
    for violation in violations:
        if isinstance(violation, (WorkspaceVersionMismatch, WorkspaceDependencyMismatch)):
            location = violation.location
        else:
            location = workspace.packages[violation.package].location
        if location not in locations:
            locations.append(location)
    return locations


def step(msg: str) -> None:
    """Print a visually distinct step header."""
    click.echo(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


class Reporter:
    """Prints run progress unless quiet; verbose adds the discovered packages."""

    def __init__(self, *, quiet: bool = False, verbose: bool = False) -> None:
        self.quiet = quiet
        self.verbose = verbose and not quiet

    def echo(self, msg: str) -> None:
        if not self.quiet:
            click.echo(msg)

    def workspace(self, workspace: Workspace) -> None:
        if not self.verbose:
            return
        step("Discovered workspace packages")
        if workspace.version is not None:
            click.echo(f"  workspace {workspace.version} ({workspace.root})")
        for name, info in workspace.packages.items():
            version = info.version or "<workspace>"
            deps = sorted({d.referenced_name for d in info.internal_dependencies.values()})
            dep_list = f" → [{', '.join(deps)}]" if deps else ""
            click.echo(f"  {name} {version} ({info.location}){dep_list}")

    def violations(self, violations: Iterable[Violation], *, fixing: bool = False) -> None:
        for violation in violations:
            self.echo(format_violation(violation, fixing=fixing))

    def needs_update(self, locations: Iterable[str]) -> None:
        for location in locations:
            self.echo(f"{location} needs to be updated")

    def updated(self, locations: Iterable[str]) -> None:
        for location in locations:
            self.echo(f"{location} was updated")

    def error(self, err: LockstepError | str) -> None:
        click.echo(f"Error: {err}", err=True)
