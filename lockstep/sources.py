"""Manifest sources: where workspace manifests come from and go back to.

The loader and engine only talk to the :class:`ManifestSource` protocol, and
only interpret documents through a :class:`ManifestFormat`. The file-system
implementation lives here; tests substitute an in-memory source.
"""

from __future__ import annotations

import glob
from pathlib import Path
from typing import Protocol

import tomlkit
from tomlkit.exceptions import TOMLKitError

from .errors import MalformedManifest
from .models import DependencyRef, Package
from .toml import get_table, load_toml, save_toml

GLOB_CHARS = frozenset("*?[")


class ManifestFormat(Protocol):
    """Knows the layout of one manifest dialect (Cargo.toml, pyproject.toml)."""

    name: str
    manifest_name: str

    def member_patterns(self, root_doc: tomlkit.TOMLDocument) -> tuple[list[str], list[str]]:
        """Return (members, exclude) patterns declared by the workspace root."""
        ...

    def has_package(self, doc: tomlkit.TOMLDocument) -> bool:
        """True if the document declares package-level fields."""
        ...

    def workspace_version(self, root_doc: tomlkit.TOMLDocument) -> str | None:
        """Shared version declared by the workspace root, if any."""
        ...

    def set_workspace_version(self, root_doc: tomlkit.TOMLDocument, version: str) -> None:
        ...

    def workspace_dependencies(self, root_doc: tomlkit.TOMLDocument) -> dict[str, DependencyRef]:
        """Dependency pins declared once at the root for members to inherit."""
        ...

    def apply_workspace_dependencies(
        self, root_doc: tomlkit.TOMLDocument, dependencies: dict[str, DependencyRef]
    ) -> None:
        ...

    def parse_package(
        self, doc: tomlkit.TOMLDocument, location: str, fallback_name: str
    ) -> Package:
        """Build a Package with is_internal left unresolved."""
        ...

    def apply_package(self, doc: tomlkit.TOMLDocument, package: Package) -> None:
        """Write the package's version and internal pins back into doc."""
        ...


class ManifestSource(Protocol):
    """Enumerates, reads and writes the manifests of one workspace."""

    root: str
    format: ManifestFormat

    def members(self) -> list[str]:
        """Member manifest locations, in a stable order."""
        ...

    def read(self, location: str) -> tomlkit.TOMLDocument: ...

    def write(self, location: str, doc: tomlkit.TOMLDocument) -> None: ...


class FileManifestSource:
    """Manifests on disk, addressed by POSIX paths relative to the root dir.

    Args:
        root_dir: Directory holding the workspace root manifest.
        format: Dialect used to find members in the root manifest.
        include_root: Also treat the root manifest as a member when it
            declares package fields. Off by default.
    """

    def __init__(
        self, root_dir: Path, format: ManifestFormat, *, include_root: bool = False
    ) -> None:
        self.root_dir = root_dir
        self.format = format
        self.include_root = include_root
        self.root = format.manifest_name

    def _path(self, location: str) -> Path:
        return self.root_dir / location

    def read(self, location: str) -> tomlkit.TOMLDocument:
        return load_toml(self._path(location))

    def write(self, location: str, doc: tomlkit.TOMLDocument) -> None:
        save_toml(self._path(location), doc)

    def members(self) -> list[str]:
        """Expand the root's member globs into manifest locations.

        Glob matches without a manifest are skipped, as are excluded
        directories. Literal member paths are kept even when the manifest
        is missing, so the loader reports them as malformed.

        Raises:
            MalformedManifest: If the root cannot be read or declares no members.
        """
        try:
            root_doc = self.read(self.root)
        except (OSError, UnicodeDecodeError, TOMLKitError) as exc:
            raise MalformedManifest(self.root, exc) from exc

        patterns, exclude = self.format.member_patterns(root_doc)
        if not patterns:
            raise MalformedManifest(self.root, "no workspace members declared")

        excluded = {
            self._relative(Path(match))
            for pattern in exclude
            for match in glob.glob(str(self.root_dir / pattern))
        }

        locations: list[str] = []
        if self.include_root and self.format.has_package(root_doc):
            locations.append(self.root)

        for pattern in patterns:
            if GLOB_CHARS.isdisjoint(pattern):
                member_dirs = [self.root_dir / pattern]
                require_manifest = False
            else:
                member_dirs = [Path(m) for m in sorted(glob.glob(str(self.root_dir / pattern)))]
                require_manifest = True

            for d in member_dirs:
                rel_dir = self._relative(d)
                if rel_dir in excluded:
                    continue
                manifest = d / self.format.manifest_name
                if require_manifest and not manifest.is_file():
                    continue
                location = self._relative(manifest)
                if location not in locations:
                    locations.append(location)

        return locations

    def _relative(self, path: Path) -> str:
        return path.resolve().relative_to(self.root_dir.resolve()).as_posix()


def detect_format(root_dir: Path) -> ManifestFormat:
    """Pick the manifest dialect from the files at the workspace root.

    A Cargo.toml with a [workspace] table wins; otherwise a pyproject.toml
    with [tool.uv.workspace] selects the uv dialect.

    Raises:
        MalformedManifest: If no supported workspace root is found.
    """
    from .cargo import CargoFormat
    from .uv import UvFormat

    cargo = root_dir / CargoFormat.manifest_name
    if cargo.is_file() and get_table(_load_or_raise(cargo), "workspace") is not None:
        return CargoFormat()

    pyproject = root_dir / UvFormat.manifest_name
    if (
        pyproject.is_file()
        and get_table(_load_or_raise(pyproject), "tool", "uv", "workspace")
        is not None
    ):
        return UvFormat()

    raise MalformedManifest(
        str(root_dir),
        "no Cargo.toml [workspace] or pyproject.toml [tool.uv.workspace] found",
    )


def _load_or_raise(path: Path) -> tomlkit.TOMLDocument:
    try:
        return load_toml(path)
    except (OSError, UnicodeDecodeError, TOMLKitError) as exc:
        raise MalformedManifest(path.name, exc) from exc
