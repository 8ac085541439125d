"""Graph module for package dependency graphs and cycle detection.

This module builds closed package graphs from loaded manifests, finds
dependency cycles with a kind-aware depth-first search, and collapses
repeated discoveries into canonical cycles.
"""

from workspace_cycles.graph.cycle_detector import Cycle, CycleDetector, VisitState
from workspace_cycles.graph.deduplicator import deduplicate_cycles
from workspace_cycles.graph.package_graph import (
    Dependency,
    DependencyKind,
    MissingPackageError,
    Package,
    PackageGraph,
    PackageRecord,
)
from workspace_cycles.graph.report import CycleReport

__all__ = [
    "Cycle",
    "CycleDetector",
    "CycleReport",
    "Dependency",
    "DependencyKind",
    "MissingPackageError",
    "Package",
    "PackageGraph",
    "PackageRecord",
    "VisitState",
    "deduplicate_cycles",
]
