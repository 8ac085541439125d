"""Depth-first cycle detection over a package graph.

The detector walks the graph once per package, starting each walk from a
freshly reset visitation map. Dev dependencies are only followed from the
walk root; deeper in the walk only regular and build dependencies count,
since a dev dependency reached through someone else's regular chain does
not take part in the build order.
"""

from dataclasses import dataclass
from enum import Enum

import structlog

from workspace_cycles.graph.package_graph import DependencyKind, PackageGraph

logger = structlog.get_logger(__name__)


class VisitState(Enum):
    """Per-walk visitation marker."""

    UNVISITED = "unvisited"
    VISITED = "visited"


@dataclass(frozen=True, eq=False)
class Cycle:
    """A closed loop of packages.

    Attributes:
        members: Package names in loop order
        links: Kind of the edge from members[i] to members[(i + 1) % len],
            or None when no such edge is known

    Two cycles are equal when they contain the same multiset of packages,
    regardless of rotation or direction.
    """

    members: tuple[str, ...]
    links: tuple[DependencyKind | None, ...] = ()

    def __post_init__(self):
        if not self.members:
            msg = "A cycle needs at least one member"
            raise ValueError(msg)
        if not self.links:
            object.__setattr__(self, "links", (None,) * len(self.members))
        elif len(self.links) != len(self.members):
            msg = (
                f"Cycle has {len(self.members)} members but {len(self.links)} links; "
                "expected one link per member"
            )
            raise ValueError(msg)

    @property
    def key(self) -> tuple[str, ...]:
        """Canonical identity: the sorted member names."""
        return tuple(sorted(self.members))

    def rotated(self) -> "Cycle":
        """Return the same loop starting at its lexicographically smallest member."""
        start = self.members.index(min(self.members))
        return Cycle(
            members=self.members[start:] + self.members[:start],
            links=self.links[start:] + self.links[:start],
        )

    def edges(self) -> list[tuple[str, str, DependencyKind]]:
        """Known edges of the loop as (source, target, kind) triples."""
        size = len(self.members)
        return [
            (self.members[i], self.members[(i + 1) % size], kind)
            for i, kind in enumerate(self.links)
            if kind is not None
        ]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cycle):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __len__(self) -> int:
        return len(self.members)


class CycleDetector:
    """Finds every dependency cycle reachable from each package.

    Branches that can neither re-enter an open package nor reach a cycle are
    pruned, so acyclic regions cost polynomial time. Pruning never removes a
    branch inside a group of mutually dependent packages: there the walk
    still enumerates every simple path, which is exponential in the group's
    size in the worst case.

    Example:
        >>> detector = CycleDetector(graph)
        >>> cycles = detector.detect_all()  # raw, one entry per discovery
        >>> cycles_from_web = detector.detect_from("web")
    """

    def __init__(self, graph: PackageGraph, *, trim_to_loop: bool = True):
        """Initialize the detector.

        Args:
            graph: Closed package graph to search
            trim_to_loop: If True, a cycle starts at the package that was
                re-entered; if False, the whole root-to-frontier path is
                recorded, including leading packages outside the loop
        """
        self.graph = graph
        self.trim_to_loop = trim_to_loop
        self._reach = self._build_reachability(graph)
        cyclic = {name for name, reachable in self._reach.items() if name in reachable}
        self._leads_to_cycle = {
            name for name, reachable in self._reach.items() if name in cyclic or reachable & cyclic
        }

    @staticmethod
    def _build_reachability(graph: PackageGraph) -> dict[str, frozenset[str]]:
        """Compute, per package, what it reaches through one or more non-dev edges."""
        reach: dict[str, frozenset[str]] = {}
        for package in graph:
            seen: set[str] = set()
            queue = [package.name]
            while queue:
                current = graph.package(queue.pop())
                for dep in current.dependencies:
                    if dep.kind is DependencyKind.DEV or dep.name in seen:
                        continue
                    seen.add(graph.package(dep.name, required_by=current.name).name)
                    queue.append(dep.name)
            reach[package.name] = frozenset(seen)
        return reach

    def _can_close_loop(self, target: str, path: set[str]) -> bool:
        """Whether descending into target can ever re-enter an open package."""
        return (
            target in path
            or target in self._leads_to_cycle
            or not self._reach.get(target, frozenset()).isdisjoint(path)
        )

    def detect_all(self) -> list[Cycle]:
        """Run one walk per package and collect every cycle found.

        Returns:
            All discovered cycles, including rotations of the same loop found
            from different roots
        """
        if not len(self.graph):
            logger.warning("detecting_cycles_in_empty_graph")
            return []

        cycles: list[Cycle] = []
        for package in self.graph:
            cycles.extend(self.detect_from(package.name))

        logger.info(
            "cycle_detection_complete",
            package_count=len(self.graph),
            raw_cycle_count=len(cycles),
        )
        return cycles

    def detect_from(self, root: str) -> list[Cycle]:
        """Walk the graph from a single root.

        Every package starts UNVISITED. Re-entering a VISITED package that is
        still on the current path closes a cycle and ends that branch. Each
        branch carries its own copy of the path.

        Args:
            root: Name of the package to start from

        Returns:
            Cycles found during this walk, in discovery order

        Raises:
            MissingPackageError: If root or any followed edge does not resolve
        """
        self.graph.package(root)
        visits = dict.fromkeys(self.graph.names, VisitState.UNVISITED)
        cycles: list[Cycle] = []

        # (package, path to it, kinds of the edges along path and into package)
        stack: list[tuple[str, tuple[str, ...], tuple[DependencyKind, ...]]] = [(root, (), ())]

        while stack:
            name, path, links = stack.pop()

            if visits[name] is VisitState.VISITED and name in path:
                cycle = self._close(name, path, links)
                logger.debug("cycle_found", root=root, members=list(cycle.members))
                cycles.append(cycle)
                continue

            visits[name] = VisitState.VISITED
            package = self.graph.package(name)
            at_root = not path
            next_path = (*path, name)
            open_packages = set(next_path)

            children = []
            for dep in package.dependencies:
                if not at_root and dep.kind is DependencyKind.DEV:
                    continue
                target = self.graph.package(dep.name, required_by=name).name
                if not self._can_close_loop(target, open_packages):
                    continue
                children.append((target, next_path, (*links, dep.kind)))

            # Reversed so the first declared dependency is explored first
            stack.extend(reversed(children))

        return cycles

    def _close(
        self,
        reentered: str,
        path: tuple[str, ...],
        links: tuple[DependencyKind, ...],
    ) -> Cycle:
        """Build the cycle record for a re-entered package."""
        start = path.index(reentered)
        if self.trim_to_loop:
            return Cycle(members=path[start:], links=links[start:])

        if start == 0:
            return Cycle(members=path, links=links)

        closing = self.graph.edge_kind(path[-1], path[0])
        return Cycle(members=path, links=(*links[:-1], closing))
