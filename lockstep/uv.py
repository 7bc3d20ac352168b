"""pyproject.toml dialect for uv workspaces.

The root declares ``[tool.uv.workspace] members``; each member declares
``[project]`` with PEP 508 dependency strings in three places:

- [project].dependencies
- [project].optional-dependencies.*
- [dependency-groups].*

Every string in those lists becomes one DependencyRef keyed by its list and
index, e.g. ``project.optional-dependencies.dev[1]``.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import tomlkit
from packaging.requirements import InvalidRequirement
from packaging.utils import canonicalize_name

from .deps import dep_canonical_name, dep_version_constraint, pin_dep
from .errors import MalformedManifest
from .models import DependencyRef, Package
from .toml import as_str, get_table, section, string_list


class UvFormat:
    name = "uv"
    manifest_name = "pyproject.toml"

    def member_patterns(self, root_doc: tomlkit.TOMLDocument) -> tuple[list[str], list[str]]:
        workspace = get_table(root_doc, "tool", "uv", "workspace")
        if workspace is None:
            raise MalformedManifest(self.manifest_name, "no [tool.uv.workspace] section")
        return (
            string_list(
                workspace.get("members"), self.manifest_name, "[tool.uv.workspace] members"
            ),
            string_list(
                workspace.get("exclude"), self.manifest_name, "[tool.uv.workspace] exclude"
            ),
        )

    def has_package(self, doc: tomlkit.TOMLDocument) -> bool:
        return get_table(doc, "project") is not None

    def workspace_version(self, root_doc: tomlkit.TOMLDocument) -> str | None:
        # uv has no workspace-wide version; every member declares its own
        return None

    def set_workspace_version(self, root_doc: tomlkit.TOMLDocument, version: str) -> None:
        raise MalformedManifest(
            self.manifest_name, "uv workspaces do not declare a shared version"
        )

    def workspace_dependencies(self, root_doc: tomlkit.TOMLDocument) -> dict[str, DependencyRef]:
        # Shared pins live in each member's own lists
        return {}

    def apply_workspace_dependencies(
        self, root_doc: tomlkit.TOMLDocument, dependencies: dict[str, DependencyRef]
    ) -> None:
        pass

    def parse_package(
        self, doc: tomlkit.TOMLDocument, location: str, fallback_name: str
    ) -> Package:
        """Build a Package from [project].

        Names are normalized per PEP 503 so they compare equal to the
        canonical names extracted from dependency strings. A missing name
        falls back to the member directory name.
        """
        project = section(doc, location, "project")
        if project is None:
            raise MalformedManifest(location, "no [project] section")

        name = canonicalize_name(as_str(project.get("name")) or fallback_name)

        version = as_str(project.get("version"))
        if version is None:
            if "version" in project:
                raise MalformedManifest(location, "version in [project] wasn't a string")
            dynamic = string_list(project.get("dynamic"), location, "[project] dynamic")
            if "version" not in dynamic:
                raise MalformedManifest(location, "no version in [project]")

        dependencies: dict[str, DependencyRef] = {}
        for group, entries in _dependency_lists(doc, location):
            for index, dep_str in enumerate(entries):
                # Skip {include-group = "..."} entries in dependency groups
                if not isinstance(dep_str, str):
                    continue
                key = f"{group}[{index}]"
                try:
                    dependencies[key] = DependencyRef(
                        key=key,
                        referenced_name=dep_canonical_name(str(dep_str)),
                        version_constraint=dep_version_constraint(str(dep_str)),
                    )
                except InvalidRequirement as exc:
                    raise MalformedManifest(location, exc) from exc

        return Package(
            name=name, location=location, version=version, dependencies=dependencies
        )

    def apply_package(self, doc: tomlkit.TOMLDocument, package: Package) -> None:
        project = doc["project"]
        current_version = as_str(project.get("version"))  # type: ignore[union-attr]
        if package.version is not None and current_version != package.version:
            project["version"] = package.version  # type: ignore[index]

        lists = dict(_dependency_lists(doc, package.location))
        for dep in package.internal_dependencies.values():
            if dep.version_constraint is None:
                continue
            group, index = _split_key(dep.key)
            entries = lists[group]
            current = str(entries[index])
            if dep_version_constraint(current) != dep.version_constraint:
                entries[index] = pin_dep(current, dep.version_constraint)


def _dependency_lists(doc: tomlkit.TOMLDocument, location: str) -> Iterator[tuple[str, Any]]:
    """Yield (group path, list) for every dependency list in the document.

    Raises:
        MalformedManifest: If a dependency section has the wrong shape.
    """
    project = section(doc, location, "project") or {}
    deps = project.get("dependencies")
    if deps is not None:
        yield "project.dependencies", _array(deps, location, "[project] dependencies")
    # Optional dependency groups (e.g., [project.optional-dependencies.dev])
    optional = section(doc, location, "project", "optional-dependencies") or {}
    for group, group_deps in optional.items():
        yield f"project.optional-dependencies.{group}", _array(
            group_deps, location, f"[project.optional-dependencies] {group}"
        )
    # PEP 735 dependency groups (e.g., [dependency-groups.test])
    for group, group_deps in (section(doc, location, "dependency-groups") or {}).items():
        yield f"dependency-groups.{group}", _array(
            group_deps, location, f"[dependency-groups] {group}"
        )


def _array(value: Any, location: str, what: str) -> Any:
    if not isinstance(value, list):
        raise MalformedManifest(location, f"{what} must be an array")
    return value


def _split_key(key: str) -> tuple[str, int]:
    """Split ``project.dependencies[3]`` into ("project.dependencies", 3)."""
    group, _, index = key.rpartition("[")
    return group, int(index.rstrip("]"))
