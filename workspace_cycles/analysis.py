"""Workspace analysis pipeline: graph construction, detection and de-duplication.

This is a pure function of the loaded package records; it does no I/O.
"""

from collections.abc import Iterable

import structlog

from workspace_cycles.graph.cycle_detector import CycleDetector
from workspace_cycles.graph.deduplicator import deduplicate_cycles
from workspace_cycles.graph.package_graph import PackageGraph, PackageRecord
from workspace_cycles.graph.report import CycleReport

logger = structlog.get_logger(__name__)


def analyze_records(records: Iterable[PackageRecord], *, trim_to_loop: bool = True) -> CycleReport:
    """Find the canonical dependency cycles among package records.

    Args:
        records: Loader output
        trim_to_loop: Record cycles from the re-entered package only (see
            CycleDetector)

    Returns:
        CycleReport with the de-duplicated cycles

    Raises:
        MissingPackageError: If graph construction left a dangling edge
    """
    graph = PackageGraph.from_records(records)
    return analyze_graph(graph, trim_to_loop=trim_to_loop)


def analyze_graph(graph: PackageGraph, *, trim_to_loop: bool = True) -> CycleReport:
    """Find the canonical dependency cycles of an already-built graph."""
    raw_cycles = CycleDetector(graph, trim_to_loop=trim_to_loop).detect_all()
    cycles = deduplicate_cycles(raw_cycles)

    report = CycleReport(
        package_count=len(graph),
        edge_count=graph.edge_count,
        cycles=cycles,
        raw_cycle_count=len(raw_cycles),
    )

    if report.has_cycles:
        logger.warning(
            "dependency_cycles_found",
            cycle_count=len(cycles),
            cycles=[" -> ".join(cycle.members) for cycle in cycles],
        )
    else:
        logger.info("no_dependency_cycles", package_count=report.package_count)

    return report
