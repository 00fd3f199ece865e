"""
File: core/cycle_detector.py
Purpose: Enumerate dependency cycles in a canister graph.
Dependencies: Standard library only
Performance: O(V+E) traversal, O(C^2) substring dedup over C cycles

Implements iterative DFS with a recursion-stack set.  All traversal state
is local to one ``detect`` call.
"""

from __future__ import annotations

import time
from typing import Iterator, List, Optional, Set, Tuple

from canister_graph.config import (
    CYCLE_DEDUP_CANONICAL,
    CanisterGraphConfig,
)
from canister_graph.schema import CanisterGraph
from canister_graph.telemetry import get_logger

logger = get_logger("canister_graph.cycle_detector")


def canonical_cycle(cycle: List[str]) -> List[str]:
    """Rotate a closed cycle to start at its smallest member.

    >>> canonical_cycle(["b", "c", "a", "b"])
    ['a', 'b', 'c', 'a']
    """
    body = cycle[:-1]
    if not body:
        return list(cycle)
    start = body.index(min(body))
    rotated = body[start:] + body[:start]
    return rotated + [rotated[0]]


class CycleDetector:
    """Finds cycles reachable along dependency edges.

    Dangling dependency names (no node in the graph) are leaves and
    never take part in a cycle.

    Args:
        config: Engine configuration; ``detection.cycle_dedup`` picks
            the dedup policy.

    Example::

        cycles = CycleDetector().detect(graph)
        # [["A", "B", "A"]]
    """

    def __init__(
        self, config: Optional[CanisterGraphConfig] = None
    ) -> None:
        self._config = config or CanisterGraphConfig()

    def detect(
        self,
        graph: CanisterGraph,
        correlation_id: str = "",
    ) -> List[List[str]]:
        """Return every distinct cycle found by the DFS.

        Args:
            graph: Built canister graph.
            correlation_id: Request correlation ID.

        Returns:
            Closed name sequences (first element repeated at the end).
        """
        start = time.perf_counter()
        canonical = self._config.detection.cycle_dedup == CYCLE_DEDUP_CANONICAL

        node_map = graph.node_map()
        visited: Set[str] = set()
        rec_stack: Set[str] = set()
        path: List[str] = []
        cycles: List[List[str]] = []
        # joined strings of recorded cycles, for substring dedup
        seen_strings: List[str] = []

        def record(cycle: List[str]) -> None:
            if canonical:
                cycle = canonical_cycle(cycle)
                if cycle not in cycles:
                    cycles.append(cycle)
                return
            cycle_str = "->".join(cycle)
            for existing in seen_strings:
                if cycle_str in existing or existing in cycle_str:
                    return
            cycles.append(cycle)
            seen_strings.append(cycle_str)

        def enter(name: str) -> Tuple[str, Iterator[str]]:
            visited.add(name)
            rec_stack.add(name)
            path.append(name)
            return name, iter(node_map[name].dependencies)

        def dfs(root: str) -> None:
            # Explicit frame stack: chains deeper than the interpreter's
            # recursion limit are valid input.
            stack = [enter(root)]
            while stack:
                name, deps = stack[-1]
                for dep in deps:
                    if dep not in node_map:
                        continue
                    if dep not in visited:
                        stack.append(enter(dep))
                        break
                    if dep in rec_stack:
                        # Back edge: the cycle is the path slice from dep
                        cycle_start = path.index(dep)
                        record(path[cycle_start:] + [dep])
                else:
                    stack.pop()
                    path.pop()
                    rec_stack.discard(name)

        for node in graph.nodes:
            if node.name not in visited:
                dfs(node.name)

        elapsed_ms = (time.perf_counter() - start) * 1000
        if cycles:
            logger.warning(
                f"Dependency cycles detected: {len(cycles)}",
                extra={
                    "correlation_id": correlation_id,
                    "layer": "cycle_detection",
                    "context": {
                        "cycle_paths": cycles,
                        "cycle_count": len(cycles),
                        "latency_ms": round(elapsed_ms, 2),
                    },
                },
            )
        else:
            logger.debug(
                f"No cycles in {len(graph.nodes)} nodes, {elapsed_ms:.2f}ms",
                extra={
                    "correlation_id": correlation_id,
                    "layer": "cycle_detection",
                },
            )
        return cycles
