"""Render dependency cycles as Graphviz DOT or Mermaid text.

Each cycle becomes its own cluster. Node identifiers carry the cluster index
so a package that takes part in several cycles is drawn once per cycle.
Mermaid identifiers are positional and the package name is only a label.
"""

from collections.abc import Iterable

import structlog

from workspace_cycles.graph.cycle_detector import Cycle
from workspace_cycles.graph.package_graph import DependencyKind

logger = structlog.get_logger(__name__)

SUPPORTED_FORMATS = ("dot", "mermaid")

EDGE_LABELS = {
    DependencyKind.REGULAR: "REG",
    DependencyKind.DEV: "DEV",
    DependencyKind.BUILD: "BUILD",
}

DOT_NODE_STYLE = """\
    node [
        fillcolor = "#bbddff",
        fontname = "consolas",
        fontsize = 11,
        shape = box,
        style = filled,
        width = 1.5,
    ];"""


class CycleEmitter:
    """Turns canonical cycles into graph description text.

    Example:
        >>> emitter = CycleEmitter(min_cycle_size=2)
        >>> print(emitter.render(cycles, output_format="dot"))
    """

    def __init__(self, min_cycle_size: int = 2, graph_name: str = "World"):
        """Initialize the emitter.

        Args:
            min_cycle_size: Cycles with fewer members are left out of the output
            graph_name: Name of the top-level digraph
        """
        if min_cycle_size < 1:
            msg = f"min_cycle_size must be at least 1, got {min_cycle_size}"
            raise ValueError(msg)
        self.min_cycle_size = min_cycle_size
        self.graph_name = graph_name

    def select(self, cycles: Iterable[Cycle]) -> list[Cycle]:
        """Apply the presentation filter."""
        selected = [cycle for cycle in cycles if len(cycle) >= self.min_cycle_size]
        logger.debug("cycles_selected_for_output", count=len(selected), min_size=self.min_cycle_size)
        return selected

    def render(self, cycles: Iterable[Cycle], output_format: str = "dot") -> str:
        """Render cycles in the requested format.

        Args:
            cycles: Canonical cycles to draw
            output_format: 'dot' or 'mermaid' (case-insensitive)

        Returns:
            The graph description text

        Raises:
            ValueError: If an unsupported format is requested
        """
        output_format = output_format.lower().strip()

        if output_format == "dot":
            return self._generate_graphviz(self.select(cycles))
        if output_format == "mermaid":
            return self._generate_mermaid(self.select(cycles))
        error_msg = f"Unsupported format: {output_format}. Use 'dot' or 'mermaid'."
        raise ValueError(error_msg)

    def _generate_graphviz(self, cycles: list[Cycle]) -> str:
        """Generate a Graphviz DOT digraph with one dotted cluster per cycle."""

        def escape_dot_string(s: str) -> str:
            return s.replace("\\", "\\\\").replace('"', '\\"')

        def node_id(name: str, index: int) -> str:
            # ':' keeps the cluster index apart from names ending in digits
            return f'"{index}:{escape_dot_string(name)}"'

        lines = [f'digraph "{escape_dot_string(self.graph_name)}" {{']
        lines.append(DOT_NODE_STYLE)

        for index, cycle in enumerate(cycles):
            lines.append("")
            lines.append(f"    subgraph cluster_{index} {{")
            lines.append("        style = dotted;")
            lines.append("")

            lines.extend(
                f'        {node_id(name, index)} [label = "{escape_dot_string(name)}"];'
                for name in cycle.members
            )

            edges = cycle.edges()
            if edges:
                lines.append("")
            lines.extend(
                f"        {node_id(source, index)} -> {node_id(target, index)}"
                f" [label = <<b>  {EDGE_LABELS[kind]}</b>>];"
                for source, target, kind in edges
            )

            lines.append("    }")

        lines.append("}")
        return "\n".join(lines)

    def _generate_mermaid(self, cycles: list[Cycle]) -> str:
        """Generate a Mermaid flowchart with one subgraph per cycle."""

        def node_id(index: int, position: int) -> str:
            return f"c{index}_{position}"

        def escape_label(s: str) -> str:
            return s.replace('"', "#quot;")

        lines = ["graph LR"]

        if not cycles:
            lines.append("    Empty[No cycles]")
            return "\n".join(lines)

        for index, cycle in enumerate(cycles):
            size = len(cycle)
            lines.append(f"    subgraph cycle_{index}")
            lines.extend(
                f'        {node_id(index, position)}["{escape_label(name)}"]'
                for position, name in enumerate(cycle.members)
            )
            lines.extend(
                f"        {node_id(index, position)} -->|{EDGE_LABELS[kind]}| "
                f"{node_id(index, (position + 1) % size)}"
                for position, kind in enumerate(cycle.links)
                if kind is not None
            )
            lines.append("    end")

        return "\n".join(lines)
