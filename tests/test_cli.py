"""Tests for the pkgcompat command line."""

import json

import pytest
from typer.testing import CliRunner

from pkgcompat.cli import cli
from pkgcompat.directory import DirectoryInstaller, PackageDirectory
from pkgcompat.models import Package

runner = CliRunner()


@pytest.fixture
def snapshot_files(tmp_path, installed_snapshot, available_snapshot):
    installed = tmp_path / "installed.json"
    installed.write_text(json.dumps(installed_snapshot))
    available = tmp_path / "archive-contents.json"
    available.write_text(json.dumps(available_snapshot))
    return installed, available


def test_outdated(snapshot_files):
    installed, available = snapshot_files
    result = runner.invoke(cli, ["outdated", "--installed", str(installed), "--available", str(available)])
    assert result.exit_code == 0, result.output
    assert "Upgradable packages (3)" in result.output
    assert "1.2.0" in result.output


def test_outdated_when_up_to_date(tmp_path, snapshot_files):
    _, available = snapshot_files
    installed = tmp_path / "current.json"
    installed.write_text(json.dumps({"qux": {"name": "qux", "version": "3.0"}}))
    result = runner.invoke(cli, ["outdated", "--installed", str(installed), "-a", str(available)])
    assert result.exit_code == 0, result.output
    assert "All packages are up to date." in result.output


def test_outdated_requires_available(snapshot_files):
    installed, _ = snapshot_files
    result = runner.invoke(cli, ["outdated", "--installed", str(installed)])
    assert result.exit_code == 1
    assert "--available" in result.output


def test_available_merges_archives(tmp_path, snapshot_files):
    _, available = snapshot_files
    extra = tmp_path / "extra.json"
    extra.write_text(json.dumps({"zap": [[0, 1], [], "Zap"]}))
    result = runner.invoke(cli, ["available", "-a", str(available), "-a", str(extra)])
    assert result.exit_code == 0, result.output
    assert "Available packages (6)" in result.output
    assert "zap" in result.output


def test_installed_scans_root(tmp_path):
    archives = tmp_path / "archives"
    (archives / "foo-1.0").mkdir(parents=True)
    root = tmp_path / "packages"
    DirectoryInstaller(PackageDirectory(root), archives).install(Package(name="foo", version=(1, 0)))

    result = runner.invoke(cli, ["installed", "--root", str(root)])
    assert result.exit_code == 0, result.output
    assert "Installed packages (1)" in result.output
    assert "foo" in result.output


def test_show(snapshot_files):
    installed, available = snapshot_files
    result = runner.invoke(cli, ["show", "bar", "--installed", str(installed), "-a", str(available)])
    assert result.exit_code == 0, result.output
    assert "2.0 (installed)" in result.output
    assert "Requires: foo (>= 1.0)" in result.output


def test_show_unknown_package(snapshot_files):
    installed, _ = snapshot_files
    result = runner.invoke(cli, ["show", "nope", "--installed", str(installed)])
    assert result.exit_code == 1
    assert "neither installed nor available" in result.output


def test_malformed_snapshot_reports_error(tmp_path, snapshot_files):
    _, available = snapshot_files
    installed = tmp_path / "bad.json"
    installed.write_text(json.dumps({"foo": "not a descriptor"}))
    result = runner.invoke(cli, ["outdated", "--installed", str(installed), "-a", str(available)])
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_undecodable_snapshot_reports_error(tmp_path, snapshot_files):
    _, available = snapshot_files
    installed = tmp_path / "latin1.json"
    installed.write_bytes(b'{"foo": {"name": "foo", "version": "1.0", "summary": "caf\xe9"}}')
    result = runner.invoke(cli, ["outdated", "--installed", str(installed), "-a", str(available)])
    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "not valid UTF-8" in result.output


def test_undecodable_package_info_reports_error(tmp_path):
    pkg_dir = tmp_path / "packages" / "foo-1.0"
    pkg_dir.mkdir(parents=True)
    (pkg_dir / "pkg-info").write_bytes(b"Package: foo\nVersion: 1.0\nSummary: caf\xe9\n")
    result = runner.invoke(cli, ["installed", "--root", str(tmp_path / "packages")])
    assert result.exit_code == 1
    assert "not valid UTF-8" in result.output


class TestUpgrade:
    @pytest.fixture
    def layout(self, tmp_path):
        archives = tmp_path / "archives"
        for full_name in ("foo-1.0", "foo-1.2"):
            (archives / full_name).mkdir(parents=True)
        root = tmp_path / "packages"
        DirectoryInstaller(PackageDirectory(root), archives).install(Package(name="foo", version=(1, 0)))
        available = tmp_path / "archive-contents.json"
        available.write_text(json.dumps({"foo": [[1, 2], [], "Foo"]}))
        return root, archives, available

    def test_dry_run(self, layout):
        root, archives, available = layout
        result = runner.invoke(
            cli,
            ["upgrade", "--root", str(root), "--archive-dir", str(archives)]
            + ["-a", str(available), "--dry-run"],
        )
        assert result.exit_code == 0, result.output
        assert "Upgrades (1)" in result.output
        assert (root / "foo-1.0").is_dir()
        assert not (root / "foo-1.2").exists()

    def test_upgrade(self, layout):
        root, archives, available = layout
        result = runner.invoke(
            cli, ["upgrade", "foo", "--root", str(root), "--archive-dir", str(archives), "-a", str(available)]
        )
        assert result.exit_code == 0, result.output
        assert "Upgraded 1 package(s)." in result.output
        assert (root / "foo-1.2").is_dir()
        assert not (root / "foo-1.0").exists()

    def test_preserve_obsolete(self, layout):
        root, archives, available = layout
        result = runner.invoke(
            cli,
            [
                "upgrade",
                "--root",
                str(root),
                "--archive-dir",
                str(archives),
                "-a",
                str(available),
                "--preserve-obsolete",
            ],
        )
        assert result.exit_code == 0, result.output
        assert (root / "foo-1.0").is_dir()
        assert (root / "foo-1.2").is_dir()

    def test_installer_failure_exits(self, layout, tmp_path):
        root, _, available = layout
        result = runner.invoke(
            cli,
            ["upgrade", "--root", str(root), "--archive-dir", str(tmp_path / "empty"), "-a", str(available)],
        )
        assert result.exit_code == 1
        assert "Failed to install foo 1.0 -> 1.2" in result.output
