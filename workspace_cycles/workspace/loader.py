"""Workspace loader for package manifests.

This module scans workspace root directories for package manifests
(Cargo.toml by default) and turns each one into a PackageRecord:
- ``[package] name`` becomes the record name
- keys of ``[dependencies]`` become regular dependencies
- keys of ``[dev-dependencies]`` become dev dependencies
- keys of ``[build-dependencies]`` become build dependencies (opt-in)
"""

import tomllib
from collections.abc import Iterable
from pathlib import Path
from typing import Any, ClassVar

import structlog

from workspace_cycles.graph.package_graph import DependencyKind, PackageRecord

logger = structlog.get_logger(__name__)

DEFAULT_MANIFEST_NAME = "Cargo.toml"


class WorkspaceLoadError(Exception):
    """Exception raised when a workspace root or manifest cannot be loaded."""

    def __init__(self, path: Path, message: str):
        """Initialize the exception with the failing path.

        Args:
            path: File or directory that failed to load
            message: Description of the failure
        """
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


class ManifestError(WorkspaceLoadError):
    """Exception raised when a manifest is unreadable, invalid or anonymous."""


class WorkspaceLoader:
    """Reads package records from the immediate subdirectories of workspace roots.

    Example:
        >>> loader = WorkspaceLoader()
        >>> records = loader.load(["app", "crate"])
    """

    DEPENDENCY_TABLES: ClassVar[dict[str, DependencyKind]] = {
        "dependencies": DependencyKind.REGULAR,
        "dev-dependencies": DependencyKind.DEV,
        "build-dependencies": DependencyKind.BUILD,
    }

    def __init__(
        self,
        manifest_name: str = DEFAULT_MANIFEST_NAME,
        *,
        include_build_dependencies: bool = False,
    ):
        """Initialize the loader.

        Args:
            manifest_name: File name of the manifest inside each package directory
            include_build_dependencies: Also read ``[build-dependencies]``
        """
        self.manifest_name = manifest_name
        self.include_build_dependencies = include_build_dependencies

    def load(self, roots: Iterable[str | Path]) -> list[PackageRecord]:
        """Load the records of every package under the given roots.

        Args:
            roots: Workspace root directories, scanned in order

        Returns:
            Records for all packages found, roots in order, packages sorted
            by directory name within each root

        Raises:
            WorkspaceLoadError: If a root cannot be read
            ManifestError: If a manifest cannot be parsed or has no name
        """
        records: list[PackageRecord] = []
        for root in roots:
            records.extend(self.read_root(root))

        logger.info("workspace_loaded", package_count=len(records))
        return records

    def read_root(self, root: str | Path) -> list[PackageRecord]:
        """Load the records of the packages directly under one root."""
        root_path = Path(root)

        if not root_path.is_dir():
            msg = "workspace root does not exist or is not a directory"
            raise WorkspaceLoadError(root_path, msg)

        try:
            entries = sorted(root_path.iterdir())
        except OSError as e:
            logger.exception("workspace_root_unreadable", root=str(root_path), error=str(e))
            raise WorkspaceLoadError(root_path, f"cannot read directory: {e}") from e

        records = []
        for entry in entries:
            manifest_path = entry / self.manifest_name
            if entry.is_dir() and manifest_path.is_file():
                records.append(self.read_manifest(manifest_path))

        logger.debug("workspace_root_scanned", root=str(root_path), package_count=len(records))
        return records

    def read_manifest(self, manifest_path: str | Path) -> PackageRecord:
        """Parse one manifest into a PackageRecord.

        Raises:
            ManifestError: If the file is unreadable, not valid TOML, or
                lacks a ``[package]`` name
        """
        manifest_path = Path(manifest_path)

        try:
            with manifest_path.open("rb") as f:
                manifest = tomllib.load(f)
        except OSError as e:
            raise ManifestError(manifest_path, f"cannot read manifest: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ManifestError(manifest_path, f"invalid TOML: {e}") from e

        package = manifest.get("package")
        name = package.get("name") if isinstance(package, dict) else None
        if not isinstance(name, str) or not name:
            msg = "[package] section missing or has no name"
            raise ManifestError(manifest_path, msg)

        dependencies = []
        for table, kind in self.DEPENDENCY_TABLES.items():
            if kind is DependencyKind.BUILD and not self.include_build_dependencies:
                continue
            dependencies.extend((dep, kind) for dep in self._table_keys(manifest, table, manifest_path))

        logger.debug(
            "manifest_parsed",
            package=name,
            manifest=str(manifest_path),
            dependency_count=len(dependencies),
        )
        return PackageRecord(name=name, dependencies=dependencies, manifest_path=manifest_path)

    @staticmethod
    def _table_keys(manifest: dict[str, Any], table: str, manifest_path: Path) -> list[str]:
        """Dependency names declared in one table of the manifest."""
        section = manifest.get(table, {})
        if not isinstance(section, dict):
            msg = f"[{table}] must be a table"
            raise ManifestError(manifest_path, msg)
        return list(section)
