"""Tests for rendering cycles as DOT and Mermaid."""

import pytest

from workspace_cycles.graph.cycle_detector import Cycle
from workspace_cycles.graph.package_graph import DependencyKind
from workspace_cycles.render.emitter import CycleEmitter

REG = DependencyKind.REGULAR
DEV = DependencyKind.DEV
BUILD = DependencyKind.BUILD


@pytest.fixture
def cycles():
    """Fixture providing a self cycle, a labelled cycle and a partially known cycle."""
    return [
        Cycle(("solo",), (REG,)),
        Cycle(("core", "web"), (REG, DEV)),
        Cycle(("a", "b", "c"), (BUILD, REG, None)),
    ]


class TestDotOutput:
    """Test Graphviz DOT rendering."""

    def test_empty_graph(self):
        """Test rendering with no cycles still yields a valid digraph."""
        text = CycleEmitter().render([])

        assert text.startswith('digraph "World" {')
        assert text.endswith("}")
        assert "subgraph" not in text

    def test_node_style_block(self):
        """Test the shared node style is emitted."""
        text = CycleEmitter().render([])

        assert 'fillcolor = "#bbddff"' in text
        assert "shape = box" in text

    def test_one_cluster_per_cycle(self, cycles):
        """Test that single-node cycles are filtered by default."""
        text = CycleEmitter().render(cycles)

        assert text.count("subgraph cluster_") == 2
        assert "subgraph cluster_0 {" in text
        assert "subgraph cluster_1 {" in text
        assert "solo" not in text
        assert "style = dotted;" in text

    def test_nodes_are_indexed_per_cluster(self, cycles):
        """Test node identifiers carry the cluster index."""
        text = CycleEmitter().render(cycles)

        assert '"0:core" [label = "core"];' in text
        assert '"0:web" [label = "web"];' in text
        assert '"1:a" [label = "a"];' in text

    def test_edge_labels(self, cycles):
        """Test that edges are labelled by dependency kind."""
        text = CycleEmitter().render(cycles)

        assert '"0:core" -> "0:web" [label = <<b>  REG</b>>];' in text
        assert '"0:web" -> "0:core" [label = <<b>  DEV</b>>];' in text
        assert '"1:a" -> "1:b" [label = <<b>  BUILD</b>>];' in text

    def test_unknown_links_are_omitted(self, cycles):
        """Test that links without a known edge are not drawn."""
        text = CycleEmitter().render(cycles)

        assert '"1:c" -> "1:a"' not in text
        assert '"1:b" -> "1:c"' in text

    def test_min_cycle_size_one_includes_self_cycles(self, cycles):
        """Test that self cycles can be drawn."""
        text = CycleEmitter(min_cycle_size=1).render(cycles)

        assert text.count("subgraph cluster_") == 3
        assert '"0:solo" -> "0:solo" [label = <<b>  REG</b>>];' in text

    def test_graph_name_and_escaping(self):
        """Test that names with quotes are escaped."""
        text = CycleEmitter(graph_name='my "ws"').render([Cycle(('q"1', "b"), (REG, REG))])

        assert text.startswith('digraph "my \\"ws\\"" {')
        assert '"0:q\\"1" [label = "q\\"1"];' in text

    def test_node_ids_unique_across_many_clusters(self):
        """Test that a name ending in a digit never meets another cluster's node."""
        cycles = [Cycle(("a1", "z"), (REG, REG))]
        cycles += [Cycle((f"m{i}", f"n{i}"), (REG, REG)) for i in range(9)]
        cycles.append(Cycle(("a", "y"), (REG, REG)))

        text = CycleEmitter().render(cycles)

        assert text.count("subgraph cluster_") == 11
        assert '"0:a1" [label = "a1"];' in text
        assert '"10:a" [label = "a"];' in text
        assert '"0:a1" -> "0:z" [label = <<b>  REG</b>>];' in text
        assert '"10:a" -> "10:y" [label = <<b>  REG</b>>];' in text
        assert '"a10"' not in text


class TestMermaidOutput:
    """Test Mermaid rendering."""

    def test_empty(self):
        """Test Mermaid output with nothing to draw."""
        assert CycleEmitter().render([], output_format="mermaid") == "graph LR\n    Empty[No cycles]"

    def test_subgraphs_and_edges(self, cycles):
        """Test Mermaid subgraphs with positional ids and name labels."""
        text = CycleEmitter().render(
            [*cycles, Cycle(("my-lib", "x.y"), (REG, REG))],
            output_format="mermaid",
        )

        assert text.startswith("graph LR")
        assert "    subgraph cycle_0" in text
        assert '        c0_0["core"]' in text
        assert "        c0_0 -->|REG| c0_1" in text
        assert "        c0_1 -->|DEV| c0_0" in text
        assert '        c2_0["my-lib"]' in text
        assert '        c2_1["x.y"]' in text
        assert "        c2_0 -->|REG| c2_1" in text
        assert text.count("    end") == 3

    def test_unknown_links_are_omitted(self, cycles):
        """Test that links without a known edge are not drawn."""
        text = CycleEmitter().render(cycles, output_format="mermaid")

        assert "        c1_0 -->|BUILD| c1_1" in text
        assert "        c1_1 -->|REG| c1_2" in text
        assert "c1_2 -->" not in text

    def test_similar_names_get_distinct_nodes(self):
        """Test that names differing only in punctuation stay separate nodes."""
        text = CycleEmitter().render(
            [Cycle(("foo-bar", "foo_bar"), (REG, DEV))],
            output_format="mermaid",
        )

        assert '        c0_0["foo-bar"]' in text
        assert '        c0_1["foo_bar"]' in text
        assert "        c0_0 -->|REG| c0_1" in text
        assert "        c0_1 -->|DEV| c0_0" in text

    def test_quotes_in_labels(self):
        """Test that quotes in names do not break the label."""
        text = CycleEmitter(min_cycle_size=1).render([Cycle(('q"1',), (REG,))], output_format="mermaid")

        assert '        c0_0["q#quot;1"]' in text
        assert "        c0_0 -->|REG| c0_0" in text


class TestEmitterOptions:
    """Test emitter configuration and format handling."""

    def test_format_is_case_insensitive(self, cycles):
        """Test that format names are normalized."""
        emitter = CycleEmitter()

        assert emitter.render(cycles, output_format=" DOT ") == emitter.render(cycles)

    def test_unsupported_format(self, cycles):
        """Test that unknown formats are rejected."""
        with pytest.raises(ValueError, match="Unsupported format"):
            CycleEmitter().render(cycles, output_format="svg")

    def test_invalid_min_cycle_size(self):
        """Test that the size filter must be positive."""
        with pytest.raises(ValueError, match="at least 1"):
            CycleEmitter(min_cycle_size=0)

    def test_select(self, cycles):
        """Test the presentation filter on its own."""
        assert len(CycleEmitter().select(cycles)) == 2
        assert len(CycleEmitter(min_cycle_size=3).select(cycles)) == 1
