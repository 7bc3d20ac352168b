"""Workspace loading: manifests → indexed Package models."""

from __future__ import annotations

from pathlib import PurePosixPath

from tomlkit.exceptions import TOMLKitError

from .errors import DuplicatePackage, MalformedManifest
from .models import Package, Workspace
from .sources import ManifestSource


def load_workspace(source: ManifestSource) -> Workspace:
    """Read every member manifest and index the packages by name.

    First pass parses each member into a Package; second pass marks the
    dependency entries that point at another member as internal. Nothing
    is returned unless every manifest loads.

    Raises:
        MalformedManifest: If any manifest cannot be read or parsed.
        DuplicatePackage: If two members declare the same name.
    """
    fmt = source.format
    root_doc = _read(source, source.root)
    workspace = Workspace(
        root=source.root,
        version=fmt.workspace_version(root_doc),
        dependencies=fmt.workspace_dependencies(root_doc),
    )

    # First pass: parse members and build the name index
    for location in source.members():
        doc = root_doc if location == source.root else _read(source, location)
        fallback_name = PurePosixPath(location).parent.name
        package = fmt.parse_package(doc, location, fallback_name)

        existing = workspace.packages.get(package.name)
        if existing is not None:
            raise DuplicatePackage(package.name, existing.location, location)

        if package.inherits_version and workspace.version is None:
            raise MalformedManifest(
                location,
                "version is inherited from the workspace, "
                f"but {source.root} declares no shared version",
            )
        workspace.packages[package.name] = package

    # Second pass: identify which deps are internal (within workspace)
    refs = list(workspace.dependencies.values())
    for package in workspace.packages.values():
        refs.extend(package.dependencies.values())
    for dep in refs:
        dep.is_internal = dep.referenced_name in workspace.packages

    return workspace


def _read(source: ManifestSource, location: str):
    try:
        return source.read(location)
    except (OSError, UnicodeDecodeError, TOMLKitError) as exc:
        raise MalformedManifest(location, exc) from exc
