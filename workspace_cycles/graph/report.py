"""Cycle report produced by a workspace analysis."""

from dataclasses import dataclass, field

from workspace_cycles.graph.cycle_detector import Cycle


@dataclass
class CycleReport:
    """Result of analysing one workspace.

    Attributes:
        package_count: Number of packages in the graph
        edge_count: Number of workspace-internal dependency edges
        cycles: Canonical cycles, one per distinct loop
        raw_cycle_count: Cycles found before de-duplication
    """

    package_count: int = 0
    edge_count: int = 0
    cycles: list[Cycle] = field(default_factory=list)
    raw_cycle_count: int = 0

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)

    def filtered(self, min_size: int = 1) -> list[Cycle]:
        """Cycles with at least min_size members."""
        return [cycle for cycle in self.cycles if len(cycle) >= min_size]

    def summary(self) -> str:
        """Generate a human-readable summary of the report."""
        lines = []
        lines.append(f"Status: {'CYCLES FOUND' if self.has_cycles else 'PASS'}")
        lines.append(f"Packages: {self.package_count}")
        lines.append(f"Dependencies: {self.edge_count}")
        lines.append(f"Cycles: {len(self.cycles)}")

        if self.cycles:
            lines.append("\nCycles Detected:")
            for i, cycle in enumerate(self.cycles, 1):
                cycle_path = " -> ".join([*cycle.members, cycle.members[0]])
                lines.append(f"  {i}. {cycle_path}")

        return "\n".join(lines)
