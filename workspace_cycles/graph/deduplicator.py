"""Collapse rotated and repeated cycle discoveries into canonical cycles."""

from collections.abc import Iterable

import structlog

from workspace_cycles.graph.cycle_detector import Cycle

logger = structlog.get_logger(__name__)


def deduplicate_cycles(cycles: Iterable[Cycle]) -> list[Cycle]:
    """Reduce cycles to one canonical entry per distinct member multiset.

    The first discovery of each loop wins and is rotated to start at its
    smallest member. The result is ordered by canonical key so it does not
    depend on the order the walks ran in.

    Args:
        cycles: Raw detector output

    Returns:
        Canonical cycles sorted by key

    Example:
        >>> a = Cycle(("b", "c", "a"))
        >>> b = Cycle(("c", "a", "b"))
        >>> deduplicate_cycles([a, b])
        [Cycle(members=('a', 'b', 'c'), links=(None, None, None))]
    """
    canonical: dict[tuple[str, ...], Cycle] = {}
    total = 0
    for cycle in cycles:
        total += 1
        if cycle.key not in canonical:
            canonical[cycle.key] = cycle.rotated()

    unique = [canonical[key] for key in sorted(canonical)]
    logger.debug("cycles_deduplicated", raw_count=total, unique_count=len(unique))
    return unique
