"""Tests for lockstep.cli."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from conftest import CARGO_A, CARGO_B, CARGO_ROOT, write_files
from lockstep.cli import cli


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def scenario_a_dir(tmp_path: Path) -> Path:
    write_files(
        tmp_path,
        {"Cargo.toml": CARGO_ROOT, "a/Cargo.toml": CARGO_A, "b/Cargo.toml": CARGO_B},
    )
    return tmp_path


class TestCheck:
    def test_consistent(self, runner: CliRunner, scenario_a_dir: Path) -> None:
        result = runner.invoke(cli, ["--root", str(scenario_a_dir), "check", "v1.0.0"])
        assert result.exit_code == 0
        assert result.output == "All files had the correct version\n"

    def test_violations_exit_nonzero(self, runner: CliRunner, scenario_a_dir: Path) -> None:
        result = runner.invoke(cli, ["--root", str(scenario_a_dir), "check", "v2.0.0"])
        assert result.exit_code == 1
        assert result.output.splitlines() == [
            "Version for a was 1.0.0 want 2.0.0",
            "Version for b was 1.0.0 want 2.0.0",
            "Version for dependency a of b was 1.0.0 want 2.0.0",
            "a/Cargo.toml needs to be updated",
            "b/Cargo.toml needs to be updated",
        ]

    def test_check_does_not_write(self, runner: CliRunner, scenario_a_dir: Path) -> None:
        before = (scenario_a_dir / "b/Cargo.toml").read_text()
        runner.invoke(cli, ["--root", str(scenario_a_dir), "check", "2.0.0"])
        assert (scenario_a_dir / "b/Cargo.toml").read_text() == before

    def test_quiet(self, runner: CliRunner, scenario_a_dir: Path) -> None:
        result = runner.invoke(cli, ["--root", str(scenario_a_dir), "-q", "check", "2.0.0"])
        assert result.exit_code == 1
        assert result.output == ""

    def test_duplicate_package_is_an_error(self, runner: CliRunner, tmp_path: Path) -> None:
        write_files(
            tmp_path,
            {
                "Cargo.toml": '[workspace]\nmembers = ["x", "y"]\n',
                "x/Cargo.toml": '[package]\nname = "shared"\nversion = "1.0.0"\n',
                "y/Cargo.toml": '[package]\nname = "shared"\nversion = "1.0.0"\n',
            },
        )
        result = runner.invoke(cli, ["--root", str(tmp_path), "check", "1.0.0"])
        assert result.exit_code == 1
        assert "Error: Package 'shared' is declared by both" in result.output

    @pytest.mark.parametrize(
        "member",
        [
            b'package = "a"\n',
            b'dependencies = ["x"]\n\n[package]\nname = "a"\nversion = "1.0.0"\n',
            b"\xff\n",
        ],
        ids=["package-string", "dependencies-array", "undecodable"],
    )
    def test_malformed_member_is_an_error(
        self, runner: CliRunner, tmp_path: Path, member: bytes
    ) -> None:
        write_files(tmp_path, {"Cargo.toml": '[workspace]\nmembers = ["a"]\n'})
        (tmp_path / "a").mkdir()
        (tmp_path / "a/Cargo.toml").write_bytes(member)

        result = runner.invoke(cli, ["--root", str(tmp_path), "check", "1.0.0"])

        assert result.exit_code == 1
        assert "Error: a/Cargo.toml: " in result.output
        assert "Traceback" not in result.output
        assert isinstance(result.exception, SystemExit)

    def test_no_workspace(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["--root", str(tmp_path), "check", "1.0.0"])
        assert result.exit_code == 1
        assert "no Cargo.toml [workspace]" in result.output

    def test_root_from_environment(self, runner: CliRunner, scenario_a_dir: Path) -> None:
        result = runner.invoke(cli, ["check", "1.0.0"], env={"LOCKSTEP_ROOT": str(scenario_a_dir)})
        assert result.exit_code == 0

    def test_explicit_format(self, runner: CliRunner, uv_workspace: Path) -> None:
        result = runner.invoke(
            cli, ["--root", str(uv_workspace), "--format", "uv", "check", "0.1.0"]
        )
        assert result.exit_code == 0, result.output

    def test_verbose(self, runner: CliRunner, scenario_a_dir: Path) -> None:
        result = runner.invoke(cli, ["--root", str(scenario_a_dir), "-v", "check", "1.0.0"])
        assert "Discovered workspace packages" in result.output
        assert "b 1.0.0 (b/Cargo.toml) → [a]" in result.output


class TestUpdate:
    def test_update_then_check(self, runner: CliRunner, scenario_a_dir: Path) -> None:
        result = runner.invoke(cli, ["--root", str(scenario_a_dir), "update", "v2.0.0"])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert "Version for dependency a of b was 1.0.0 want 2.0.0 (fixing)" in lines
        assert "a/Cargo.toml was updated" in lines
        assert "b/Cargo.toml was updated" in lines

        result = runner.invoke(cli, ["--root", str(scenario_a_dir), "check", "v2.0.0"])
        assert result.exit_code == 0

    def test_nothing_to_do(self, runner: CliRunner, scenario_a_dir: Path) -> None:
        result = runner.invoke(cli, ["--root", str(scenario_a_dir), "update", "1.0.0"])
        assert result.exit_code == 0
        assert result.output == "All files had the correct version\n"

    def test_write_failure_exits_nonzero(
        self, runner: CliRunner, scenario_a_dir: Path
    ) -> None:
        original = Path.write_text

        def flaky_write(self: Path, data: str, *args, **kwargs):
            if self.parent.name == "a":
                raise PermissionError("read-only file system")
            return original(self, data, *args, **kwargs)

        with patch.object(Path, "write_text", flaky_write):
            result = runner.invoke(cli, ["--root", str(scenario_a_dir), "update", "2.0.0"])

        assert result.exit_code == 1
        assert "Error: Failed to write a/Cargo.toml: read-only file system" in result.output
        assert "b/Cargo.toml was updated" in result.output
        assert 'version = "2.0.0"' in (scenario_a_dir / "b/Cargo.toml").read_text()


def test_version_option(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("lockstep, version ")
