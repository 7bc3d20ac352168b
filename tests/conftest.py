"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
import tomlkit

from lockstep.cargo import CargoFormat
from lockstep.sources import ManifestFormat

CARGO_ROOT = """\
[workspace]
members = ["a", "b"]
"""

CARGO_A = """\
[package]
name = "a"
version = "1.0.0"
"""

CARGO_B = """\
[package]
name = "b"
version = "1.0.0"  # bumped by release tooling

[dependencies]
a = { path = "../a", version = "1.0.0" }
serde = "1.0"
"""

CARGO_B_PATH_ONLY = """\
[package]
name = "b"
version = "1.0.0"

[dependencies]
a = { path = "../a" }
serde = "1.0"
"""


class InMemorySource:
    """A ManifestSource backed by a dict of location → TOML text.

    Locations listed in ``fail_writes`` raise OSError on write.
    """

    def __init__(
        self,
        files: dict[str, str],
        members: list[str],
        format: ManifestFormat | None = None,
        root: str = "Cargo.toml",
    ) -> None:
        self.files = dict(files)
        self._members = members
        self.format = format or CargoFormat()
        self.root = root
        self.fail_writes: set[str] = set()
        self.writes: list[str] = []

    def members(self) -> list[str]:
        return list(self._members)

    def read(self, location: str) -> tomlkit.TOMLDocument:
        if location not in self.files:
            raise FileNotFoundError(location)
        return tomlkit.parse(self.files[location])

    def write(self, location: str, doc: tomlkit.TOMLDocument) -> None:
        if location in self.fail_writes:
            raise OSError(f"read-only: {location}")
        self.files[location] = tomlkit.dumps(doc)
        self.writes.append(location)


@pytest.fixture
def scenario_a() -> InMemorySource:
    """Packages a@1.0.0 and b@1.0.0, with b pinning a to 1.0.0."""
    return InMemorySource(
        {"Cargo.toml": CARGO_ROOT, "a/Cargo.toml": CARGO_A, "b/Cargo.toml": CARGO_B},
        members=["a/Cargo.toml", "b/Cargo.toml"],
    )


@pytest.fixture
def scenario_b() -> InMemorySource:
    """Same as scenario_a, but b depends on a by path only."""
    return InMemorySource(
        {
            "Cargo.toml": CARGO_ROOT,
            "a/Cargo.toml": CARGO_A,
            "b/Cargo.toml": CARGO_B_PATH_ONLY,
        },
        members=["a/Cargo.toml", "b/Cargo.toml"],
    )


def write_files(root: Path, files: dict[str, str]) -> None:
    """Write a tree of files under root, creating directories as needed."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


@pytest.fixture
def cargo_workspace(tmp_path: Path) -> Path:
    """A Cargo workspace on disk with a shared workspace version."""
    write_files(
        tmp_path,
        {
            "Cargo.toml": """\
[workspace]
members = ["crates/*"]
exclude = ["crates/scratch"]

[workspace.package]
version = "0.3.0"
""",
            "crates/core/Cargo.toml": """\
[package]
name = "demo-core"
version.workspace = true
""",
            "crates/cli/Cargo.toml": """\
[package]
name = "demo-cli"
version = "0.3.0"
edition = "2021"

[dependencies]
# keep in sync with the workspace
demo-core = { path = "../core", version = "0.3.0" }
clap = { version = "4", features = ["derive"] }
""",
            "crates/scratch/Cargo.toml": """\
[package]
name = "scratch"
version = "9.9.9"
""",
            "crates/docs/README.md": "not a crate\n",
        },
    )
    return tmp_path


@pytest.fixture
def uv_workspace(tmp_path: Path) -> Path:
    """A uv workspace on disk with exact and unpinned internal deps."""
    write_files(
        tmp_path,
        {
            "pyproject.toml": """\
[project]
name = "monorepo"
version = "0.0.0"

[tool.uv.workspace]
members = ["packages/*"]
""",
            "packages/pkg-alpha/pyproject.toml": """\
[project]
name = "pkg-alpha"
version = "0.1.0"
dependencies = ["requests>=2.0"]
""",
            "packages/pkg-beta/pyproject.toml": """\
[project]
name = "pkg_beta"
version = "0.1.0"
dependencies = [
    "pkg-alpha==0.1.0",
    "click>=8.0",
]

[project.optional-dependencies]
dev = ["pkg-alpha"]

[dependency-groups]
test = ["pytest>=8.0", "pkg-alpha[extra]==0.1.0; python_version >= '3.10'"]
""",
        },
    )
    return tmp_path
