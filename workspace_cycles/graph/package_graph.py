"""Package graph construction from loaded workspace records.

This module provides the PackageGraph class, a closed graph of workspace
packages whose edges only point at other packages of the same workspace.
Dependencies on anything outside the workspace are dropped at construction
time, so every edge reachable during traversal resolves to a node.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


class DependencyKind(Enum):
    """Classification of a declared dependency."""

    REGULAR = "regular"
    DEV = "dev"
    BUILD = "build"


class MissingPackageError(Exception):
    """Exception raised when an edge points at a package absent from the graph.

    This is an internal-consistency fault: the graph builder filters every
    non-workspace name, so it signals a defect rather than bad user input.
    """

    def __init__(self, package: str, missing: str):
        """Initialize the exception with the dangling edge.

        Args:
            package: Name of the package declaring the dependency
            missing: Name of the dependency target that could not be resolved
        """
        message = f"Expected `{package}` to have dependency on: `{missing}`"
        super().__init__(message)
        self.message = message
        self.package = package
        self.missing = missing


@dataclass(frozen=True)
class Dependency:
    """A dependency edge: target package name plus dependency kind."""

    name: str
    kind: DependencyKind


@dataclass(frozen=True)
class Package:
    """A workspace package node.

    Attributes:
        name: Unique package name
        dependencies: De-duplicated dependency edges in declaration order
    """

    name: str
    dependencies: tuple[Dependency, ...] = ()


@dataclass
class PackageRecord:
    """Raw package description as produced by the workspace loader.

    Attributes:
        name: Package name from the manifest
        dependencies: Declared (name, kind) pairs, possibly duplicated and
            possibly naming packages outside the workspace
        manifest_path: Manifest the record was read from, if any
    """

    name: str
    dependencies: list[tuple[str, DependencyKind]] = field(default_factory=list)
    manifest_path: Path | None = None


class PackageGraph:
    """Closed dependency graph over the packages of one workspace.

    The graph is immutable once built. It holds no traversal state; walkers
    keep their own visitation maps.

    Example:
        >>> graph = PackageGraph.from_records([
        ...     PackageRecord("web", [("core", DependencyKind.REGULAR)]),
        ...     PackageRecord("core", [("serde", DependencyKind.REGULAR)]),
        ... ])
        >>> graph.package("web").dependencies
        (Dependency(name='core', kind=<DependencyKind.REGULAR: 'regular'>),)
        >>> graph.package("core").dependencies
        ()
    """

    def __init__(self, packages: Iterable[Package] = ()):
        """Initialize the graph from already-closed package nodes."""
        self._packages: dict[str, Package] = {}
        for package in packages:
            self._packages[package.name] = package

    @classmethod
    def from_records(cls, records: Iterable[PackageRecord]) -> "PackageGraph":
        """Build a closed graph from loader records.

        Duplicate (name, kind) declarations collapse into one edge, edges to
        names outside the record set are dropped, and self-edges are kept.
        Records sharing a package name are merged into one node.

        Args:
            records: Loader output, in the order packages were discovered

        Returns:
            The constructed PackageGraph
        """
        declared: dict[str, list[tuple[str, DependencyKind]]] = {}
        for record in records:
            if record.name in declared:
                logger.warning(
                    "duplicate_package",
                    package=record.name,
                    manifest=str(record.manifest_path) if record.manifest_path else None,
                )
                declared[record.name].extend(record.dependencies)
            else:
                declared[record.name] = list(record.dependencies)

        packages = []
        for name, dependencies in declared.items():
            # dict keeps first-declaration order while de-duplicating
            edges: dict[Dependency, None] = {}
            for dep_name, kind in dependencies:
                if dep_name not in declared:
                    logger.debug("external_dependency_dropped", package=name, dependency=dep_name)
                    continue
                edges[Dependency(dep_name, kind)] = None
            packages.append(Package(name=name, dependencies=tuple(edges)))

        graph = cls(packages)
        logger.info(
            "package_graph_built",
            package_count=len(graph),
            edge_count=graph.edge_count,
        )
        return graph

    def package(self, name: str, *, required_by: str | None = None) -> Package:
        """Look up a package by name.

        Args:
            name: Package name to resolve
            required_by: Name of the package whose edge is being resolved,
                used to report a dangling edge

        Returns:
            The package node

        Raises:
            MissingPackageError: If no package has that name
        """
        try:
            return self._packages[name]
        except KeyError as e:
            logger.exception("dependency_not_in_graph", package=required_by, missing=name)
            raise MissingPackageError(required_by or "<graph>", name) from e

    def edge_kind(self, source: str, target: str) -> DependencyKind | None:
        """Return the kind of the first declared edge from source to target."""
        package = self._packages.get(source)
        if package is None:
            return None
        for dep in package.dependencies:
            if dep.name == target:
                return dep.kind
        return None

    @property
    def names(self) -> list[str]:
        """Package names in insertion order."""
        return list(self._packages)

    @property
    def edge_count(self) -> int:
        """Total number of dependency edges."""
        return sum(len(package.dependencies) for package in self._packages.values())

    def __contains__(self, name: object) -> bool:
        return name in self._packages

    def __iter__(self) -> Iterator[Package]:
        return iter(self._packages.values())

    def __len__(self) -> int:
        return len(self._packages)
