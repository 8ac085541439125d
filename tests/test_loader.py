"""Tests for the workspace manifest loader."""

from pathlib import Path

import pytest

from workspace_cycles.analysis import analyze_records
from workspace_cycles.graph.cycle_detector import Cycle
from workspace_cycles.graph.package_graph import DependencyKind
from workspace_cycles.workspace.loader import ManifestError, WorkspaceLoader, WorkspaceLoadError

REG = DependencyKind.REGULAR
DEV = DependencyKind.DEV
BUILD = DependencyKind.BUILD


def write_manifest(directory: Path, content: str, manifest_name: str = "Cargo.toml") -> Path:
    """Create a package directory containing a manifest."""
    directory.mkdir(parents=True, exist_ok=True)
    manifest_path = directory / manifest_name
    manifest_path.write_text(content)
    return manifest_path


@pytest.fixture
def loader():
    """Fixture to create a WorkspaceLoader instance."""
    return WorkspaceLoader()


class TestReadManifest:
    """Test parsing of single manifests."""

    def test_regular_and_dev_dependencies(self, loader, tmp_path):
        """Test that dependency tables map to dependency kinds."""
        manifest = write_manifest(
            tmp_path / "web",
            """
[package]
name = "web"
version = "0.1.0"

[dependencies]
core = { path = "../core" }
serde = "1"

[dev-dependencies]
test-utils = { path = "../test-utils" }

[build-dependencies]
cc = "1"
""",
        )

        record = loader.read_manifest(manifest)

        assert record.name == "web"
        assert record.manifest_path == manifest
        assert record.dependencies == [
            ("core", REG),
            ("serde", REG),
            ("test-utils", DEV),
        ]

    def test_build_dependencies_opt_in(self, tmp_path):
        """Test that build dependencies are read when enabled."""
        manifest = write_manifest(
            tmp_path / "web",
            '[package]\nname = "web"\n\n[build-dependencies]\ncodegen = { path = "../codegen" }\n',
        )

        record = WorkspaceLoader(include_build_dependencies=True).read_manifest(manifest)

        assert record.dependencies == [("codegen", BUILD)]

    def test_no_dependencies(self, loader, tmp_path):
        """Test a manifest with only a package section."""
        manifest = write_manifest(tmp_path / "util", '[package]\nname = "util"\n')

        assert loader.read_manifest(manifest).dependencies == []

    def test_missing_package_section(self, loader, tmp_path):
        """Test that a manifest without [package] is rejected with its path."""
        manifest = write_manifest(tmp_path / "virtual", '[workspace]\nmembers = ["a"]\n')

        with pytest.raises(ManifestError) as exc_info:
            loader.read_manifest(manifest)

        assert exc_info.value.path == manifest
        assert str(manifest) in str(exc_info.value)

    def test_missing_package_name(self, loader, tmp_path):
        """Test that an anonymous package is rejected."""
        manifest = write_manifest(tmp_path / "anon", '[package]\nversion = "0.1.0"\n')

        with pytest.raises(ManifestError, match="no name"):
            loader.read_manifest(manifest)

    def test_invalid_toml(self, loader, tmp_path):
        """Test that unparseable manifests abort loading."""
        manifest = write_manifest(tmp_path / "broken", "[package\nname = ")

        with pytest.raises(ManifestError, match="invalid TOML"):
            loader.read_manifest(manifest)

    def test_dependencies_must_be_table(self, loader, tmp_path):
        """Test that a non-table dependency section is rejected."""
        manifest = write_manifest(tmp_path / "odd", 'dependencies = "core"\n[package]\nname = "odd"\n')

        with pytest.raises(ManifestError, match="must be a table"):
            loader.read_manifest(manifest)

    def test_manifest_error_is_load_error(self):
        """Test the exception hierarchy."""
        assert issubclass(ManifestError, WorkspaceLoadError)


class TestLoadRoots:
    """Test scanning of workspace roots."""

    def test_immediate_subdirectories_only(self, loader, tmp_path):
        """Test that only direct children with a manifest become packages."""
        root = tmp_path / "crate"
        write_manifest(root / "b", '[package]\nname = "b"\n')
        write_manifest(root / "a", '[package]\nname = "a"\n')
        write_manifest(root / "a" / "nested", '[package]\nname = "nested"\n')
        (root / "docs").mkdir()
        (root / "Cargo.toml").write_text('[package]\nname = "root-level"\n')

        records = loader.load([root])

        assert [record.name for record in records] == ["a", "b"]

    def test_package_name_comes_from_manifest(self, loader, tmp_path):
        """Test that the directory name does not matter."""
        write_manifest(tmp_path / "root" / "dir-name", '[package]\nname = "real-name"\n')

        records = loader.load([tmp_path / "root"])

        assert records[0].name == "real-name"

    def test_multiple_roots_in_order(self, loader, tmp_path):
        """Test that roots are scanned in the order given."""
        write_manifest(tmp_path / "crate" / "lib", '[package]\nname = "lib"\n')
        write_manifest(tmp_path / "app" / "bin", '[package]\nname = "bin"\n')

        records = loader.load([tmp_path / "app", tmp_path / "crate"])

        assert [record.name for record in records] == ["bin", "lib"]

    def test_custom_manifest_name(self, tmp_path):
        """Test scanning for a different manifest file name."""
        write_manifest(tmp_path / "root" / "a", '[package]\nname = "a"\n', "package.toml")
        write_manifest(tmp_path / "root" / "b", '[package]\nname = "b"\n')

        records = WorkspaceLoader("package.toml").load([tmp_path / "root"])

        assert [record.name for record in records] == ["a"]

    def test_missing_root(self, loader, tmp_path):
        """Test that a missing root aborts with its path."""
        missing = tmp_path / "nope"

        with pytest.raises(WorkspaceLoadError) as exc_info:
            loader.load([missing])

        assert exc_info.value.path == missing

    def test_root_is_a_file(self, loader, tmp_path):
        """Test that a file given as root is rejected."""
        not_a_dir = tmp_path / "file.txt"
        not_a_dir.write_text("")

        with pytest.raises(WorkspaceLoadError, match="not a directory"):
            loader.load([not_a_dir])

    def test_bad_manifest_aborts_whole_load(self, loader, tmp_path):
        """Test that one broken manifest fails the whole run."""
        root = tmp_path / "root"
        write_manifest(root / "good", '[package]\nname = "good"\n')
        write_manifest(root / "bad", "[dependencies]\ncore = '1'\n")

        with pytest.raises(ManifestError):
            loader.load([root])


class TestLoadAndAnalyze:
    """End-to-end tests from directories to cycles."""

    def test_web_core_util_workspace(self, loader, tmp_path):
        """Test that web <-> core is the only cycle and util is not involved."""
        root = tmp_path / "crate"
        write_manifest(root / "web", '[package]\nname = "web"\n[dependencies]\ncore = { path = "../core" }\n')
        write_manifest(root / "core", '[package]\nname = "core"\n[dependencies]\nweb = { path = "../web" }\n')
        write_manifest(root / "util", '[package]\nname = "util"\n')

        report = analyze_records(loader.load([root]))

        assert report.cycles == [Cycle(("core", "web"))]
        assert all("util" not in cycle.members for cycle in report.cycles)

    def test_dev_dependency_cycle_across_roots(self, loader, tmp_path):
        """Test a dev-dependency loop spread over two roots."""
        write_manifest(
            tmp_path / "app" / "server",
            '[package]\nname = "server"\n[dependencies]\nmodel = { path = "../../crate/model" }\n',
        )
        write_manifest(
            tmp_path / "crate" / "model",
            '[package]\nname = "model"\n[dev-dependencies]\nserver = { path = "../../app/server" }\n',
        )

        report = analyze_records(loader.load([tmp_path / "app", tmp_path / "crate"]))

        assert len(report.cycles) == 1
        assert report.cycles[0].members == ("model", "server")
        assert report.cycles[0].links == (DEV, REG)
