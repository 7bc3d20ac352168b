"""Data models for lockstep.

These Pydantic models describe a loaded workspace and the findings produced
when checking it against a target version.
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import WriteFailed


class DependencyRef(BaseModel):
    """One dependency entry inside a package manifest.

    Attributes:
        key: Identifies the entry within its manifest (the table key for
             Cargo, ``<group>[<index>]`` for pyproject dependency lists).
        referenced_name: Name of the package the entry depends on.
        version_constraint: Version pinned by the entry, or None when the
             entry depends purely by path or workspace membership.
        path: Path sub-field, if the manifest declares one.
        is_internal: True iff referenced_name is a member of the same
             workspace. Set once by the loader.
    """

    key: str
    referenced_name: str
    version_constraint: str | None = None
    path: str | None = None
    is_internal: bool = False


class Package(BaseModel):
    """Metadata for a single workspace member.

    Attributes:
        name: Package name, unique within the workspace.
        location: Manifest location as reported by the manifest source.
        version: Declared version, or None when the version is inherited
                 from the workspace root or declared dynamic.
        inherits_version: True when the manifest explicitly takes its
                 version from the workspace root.
        dependencies: All dependency entries keyed by DependencyRef.key.
    """

    name: str
    location: str
    version: str | None
    inherits_version: bool = False
    dependencies: dict[str, DependencyRef] = Field(default_factory=dict)

    @property
    def internal_dependencies(self) -> dict[str, DependencyRef]:
        """Dependency entries that point at other workspace members."""
        return {k: d for k, d in self.dependencies.items() if d.is_internal}


class Workspace(BaseModel):
    """The full set of members loaded from one workspace root.

    Attributes:
        root: Location of the root manifest.
        version: Shared version declared by the root, if any.
        dependencies: Dependency entries the root declares for members to
                 inherit, keyed by DependencyRef.key.
        packages: Members keyed by name, in enumeration order.
    """

    root: str
    version: str | None = None
    dependencies: dict[str, DependencyRef] = Field(default_factory=dict)
    packages: dict[str, Package] = Field(default_factory=dict)


class WorkspaceVersionMismatch(BaseModel):
    kind: Literal["workspace"] = "workspace"
    location: str
    found: str
    expected: str


class WorkspaceDependencyMismatch(BaseModel):
    kind: Literal["workspace-dependency"] = "workspace-dependency"
    location: str
    depends_on: str
    found: str
    expected: str


class PackageVersionMismatch(BaseModel):
    kind: Literal["package"] = "package"
    package: str
    found: str
    expected: str


class DependencyVersionMismatch(BaseModel):
    kind: Literal["dependency"] = "dependency"
    package: str
    depends_on: str
    found: str
    expected: str


Violation = Union[
    WorkspaceVersionMismatch,
    WorkspaceDependencyMismatch,
    PackageVersionMismatch,
    DependencyVersionMismatch,
]


class UpdateResult(BaseModel):
    """Outcome of an update run.

    Attributes:
        changes: Findings that were fixed, in check order.
        written: Manifest locations that were persisted.
        failures: Write errors collected across all manifests.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    changes: list[Violation] = Field(default_factory=list)
    written: list[str] = Field(default_factory=list)
    failures: list[WriteFailed] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures
