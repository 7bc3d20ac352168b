"""Cargo.toml dialect.

A workspace root declares ``[workspace] members`` (and optionally a shared
``[workspace.package] version`` and shared ``[workspace.dependencies]``); each
member declares ``[package]`` and a ``[dependencies]`` table whose entries are
either a bare version string or a table with ``version``/``path``/``package``
sub-fields.
"""

from __future__ import annotations

from typing import Any

import tomlkit

from .errors import MalformedManifest
from .models import DependencyRef, Package
from .toml import as_str, get_table, is_table, section, string_list


class CargoFormat:
    name = "cargo"
    manifest_name = "Cargo.toml"

    def member_patterns(self, root_doc: tomlkit.TOMLDocument) -> tuple[list[str], list[str]]:
        workspace = get_table(root_doc, "workspace")
        if workspace is None:
            raise MalformedManifest(self.manifest_name, "no [workspace] section")
        return (
            string_list(workspace.get("members"), self.manifest_name, "[workspace] members"),
            string_list(workspace.get("exclude"), self.manifest_name, "[workspace] exclude"),
        )

    def has_package(self, doc: tomlkit.TOMLDocument) -> bool:
        return get_table(doc, "package") is not None

    def workspace_version(self, root_doc: tomlkit.TOMLDocument) -> str | None:
        shared = section(root_doc, self.manifest_name, "workspace", "package")
        if shared is None or "version" not in shared:
            return None
        version = as_str(shared["version"])
        if version is None:
            raise MalformedManifest(
                self.manifest_name, "version in [workspace.package] wasn't a string"
            )
        return version

    def set_workspace_version(self, root_doc: tomlkit.TOMLDocument, version: str) -> None:
        shared = root_doc["workspace"]["package"]  # type: ignore[index]
        if as_str(shared.get("version")) != version:
            shared["version"] = version

    def workspace_dependencies(self, root_doc: tomlkit.TOMLDocument) -> dict[str, DependencyRef]:
        """Entries of [workspace.dependencies], which members inherit with
        ``dep = { workspace = true }``."""
        return _parse_dependencies(
            section(root_doc, self.manifest_name, "workspace", "dependencies"),
            self.manifest_name,
        )

    def apply_workspace_dependencies(
        self, root_doc: tomlkit.TOMLDocument, dependencies: dict[str, DependencyRef]
    ) -> None:
        _apply_pins(root_doc["workspace"]["dependencies"], dependencies)  # type: ignore[index]

    def parse_package(
        self, doc: tomlkit.TOMLDocument, location: str, fallback_name: str
    ) -> Package:
        package = section(doc, location, "package")
        if package is None:
            raise MalformedManifest(location, "no [package] section")

        name = as_str(package.get("name"))
        if name is None:
            raise MalformedManifest(location, "no package name in [package]")

        version = _package_version(package, location)

        return Package(
            name=name,
            location=location,
            version=version,
            inherits_version=version is None,
            dependencies=_parse_dependencies(section(doc, location, "dependencies"), location),
        )

    def apply_package(self, doc: tomlkit.TOMLDocument, package: Package) -> None:
        if package.version is not None:
            table = doc["package"]
            if as_str(table.get("version")) != package.version:  # type: ignore[union-attr]
                table["version"] = package.version  # type: ignore[index]

        pinned = package.internal_dependencies
        if pinned:
            _apply_pins(doc["dependencies"], pinned)


def _package_version(package: Any, location: str) -> str | None:
    """Read [package].version; None when inherited via ``version.workspace = true``."""
    if "version" not in package:
        raise MalformedManifest(location, "no version in [package]")
    version = package["version"]
    if isinstance(version, str):
        return str(version)
    if is_table(version) and version.get("workspace") is True:
        return None
    raise MalformedManifest(location, "version in [package] wasn't a string")


def _parse_dependencies(deps: Any, location: str) -> dict[str, DependencyRef]:
    if deps is None:
        return {}

    parsed: dict[str, DependencyRef] = {}
    for key, spec in deps.items():
        key = str(key)
        if isinstance(spec, str):
            # Short form: name = "1.2.3"
            parsed[key] = DependencyRef(
                key=key, referenced_name=key, version_constraint=str(spec)
            )
        elif is_table(spec):
            version = spec.get("version")
            if version is not None and not isinstance(version, str):
                raise MalformedManifest(
                    location, f"version of dependency {key} wasn't a string"
                )
            parsed[key] = DependencyRef(
                key=key,
                referenced_name=as_str(spec.get("package")) or key,
                version_constraint=as_str(version),
                path=as_str(spec.get("path")),
            )
        else:
            raise MalformedManifest(
                location, f"dependency {key} must be a string or a table"
            )
    return parsed


def _apply_pins(table: Any, dependencies: dict[str, DependencyRef]) -> None:
    """Write each pinned version back into its entry of a dependencies table."""
    for dep in dependencies.values():
        if not dep.is_internal or dep.version_constraint is None:
            continue
        entry = table[dep.key]
        if isinstance(entry, str):
            if str(entry) != dep.version_constraint:
                table[dep.key] = dep.version_constraint
        elif as_str(entry.get("version")) != dep.version_constraint:
            entry["version"] = dep.version_constraint
