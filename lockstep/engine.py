"""Consistency engine: compare a workspace against a target version.

``check`` reports every place where the workspace disagrees with the target;
``update`` rewrites exactly those places and persists the touched manifests.
Internal dependencies without a pinned version are never reported and never
gain a pin.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from functools import partial

import tomlkit
from tomlkit.exceptions import TOMLKitError

from .errors import LockstepError, WriteFailed
from .models import (
    DependencyRef,
    DependencyVersionMismatch,
    Package,
    PackageVersionMismatch,
    UpdateResult,
    Violation,
    Workspace,
    WorkspaceDependencyMismatch,
    WorkspaceVersionMismatch,
)
from .sources import ManifestSource

Edit = Callable[[tomlkit.TOMLDocument], None]


def check(workspace: Workspace, target: str) -> list[Violation]:
    """List every mismatch against target, in a deterministic order.

    The workspace version comes first, then the root's shared dependency
    pins, then packages in index order. Within a package its own version
    precedes its dependency pins. Pins are sorted by dependency name.
    """
    violations: list[Violation] = []
    if workspace.version is not None and workspace.version != target:
        violations.append(
            WorkspaceVersionMismatch(
                location=workspace.root, found=workspace.version, expected=target
            )
        )
    for dep in _stale(workspace.dependencies.values(), target):
        violations.append(
            WorkspaceDependencyMismatch(
                location=workspace.root,
                depends_on=dep.referenced_name,
                found=dep.version_constraint,
                expected=target,
            )
        )
    for package in workspace.packages.values():
        violations.extend(_package_violations(package, target))
    return violations


def _package_violations(package: Package, target: str) -> Iterator[Violation]:
    # Packages inheriting the workspace version are covered by the root check
    if package.version is not None and package.version != target:
        yield PackageVersionMismatch(
            package=package.name, found=package.version, expected=target
        )

    for dep in _stale(package.dependencies.values(), target):
        yield DependencyVersionMismatch(
            package=package.name,
            depends_on=dep.referenced_name,
            found=dep.version_constraint,
            expected=target,
        )


def _stale(deps: Iterable[DependencyRef], target: str) -> list[DependencyRef]:
    """Internal pinned deps that differ from target, sorted by name."""
    stale = [
        dep
        for dep in deps
        if dep.is_internal
        and dep.version_constraint is not None
        and dep.version_constraint != target
    ]
    return sorted(stale, key=lambda d: (d.referenced_name, d.key))


def update(workspace: Workspace, target: str, source: ManifestSource) -> UpdateResult:
    """Bring the workspace to target and write back every changed manifest.

    The set of changes is exactly what ``check`` reports. Each manifest is
    re-read, edited in place and written independently: a failed write is
    recorded and the remaining manifests are still attempted, so a partial
    failure leaves earlier writes in place.
    """
    result = UpdateResult(changes=check(workspace, target))
    if not result.changes:
        return result

    fmt = source.format
    edits: dict[str, list[Edit]] = {}

    if workspace.version is not None and workspace.version != target:
        workspace.version = target
        edits.setdefault(workspace.root, []).append(
            partial(fmt.set_workspace_version, version=target)
        )

    if _retarget_deps(workspace.dependencies.values(), target):
        edits.setdefault(workspace.root, []).append(
            partial(fmt.apply_workspace_dependencies, dependencies=workspace.dependencies)
        )

    for package in workspace.packages.values():
        if _retarget(package, target):
            edits.setdefault(package.location, []).append(
                partial(fmt.apply_package, package=package)
            )

    for location, location_edits in edits.items():
        try:
            doc = source.read(location)
            for edit in location_edits:
                edit(doc)
            source.write(location, doc)
        except (OSError, UnicodeDecodeError, TOMLKitError, LockstepError) as exc:
            result.failures.append(WriteFailed(location, exc))
            continue
        result.written.append(location)

    return result


def _retarget(package: Package, target: str) -> bool:
    """Move a package model to target; returns True if anything changed."""
    changed = _retarget_deps(package.dependencies.values(), target)
    if package.version is not None and package.version != target:
        package.version = target
        changed = True
    return changed


def _retarget_deps(deps: Iterable[DependencyRef], target: str) -> bool:
    changed = False
    for dep in _stale(deps, target):
        dep.version_constraint = target
        changed = True
    return changed
