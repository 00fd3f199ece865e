"""
File: core/build_order.py
Purpose: Resolve a deploy-safe build order for an acyclic canister graph.
Dependencies: Standard library only
Performance: O(V+E)

All-or-nothing: any detected cycle yields an empty order.
"""

from __future__ import annotations

from typing import List, Set

from canister_graph.schema import CanisterGraph
from canister_graph.telemetry import get_logger

logger = get_logger("canister_graph.build_order")


class BuildOrderResolver:
    """Topological order via post-order DFS.

    Every canister appears after all of its dependencies.  Nodes are
    visited in declaration order so disconnected components are covered
    and the result is deterministic.

    Example::

        order = BuildOrderResolver().resolve(graph, cycles=[])
        # ["C", "B", "A"] for A -> B -> C
    """

    def resolve(
        self,
        graph: CanisterGraph,
        cycles: List[List[str]],
        correlation_id: str = "",
    ) -> List[str]:
        """Return the build order, or ``[]`` if ``cycles`` is non-empty.

        Args:
            graph: Built canister graph.
            cycles: Output of :class:`CycleDetector` for the same graph.
            correlation_id: Request correlation ID.
        """
        if cycles:
            logger.info(
                "Build order unavailable: graph contains cycles",
                extra={
                    "correlation_id": correlation_id,
                    "layer": "build_order",
                    "context": {"cycle_count": len(cycles)},
                },
            )
            return []

        node_map = graph.node_map()
        order: List[str] = []
        visited: Set[str] = set()

        def visit(root: str) -> None:
            visited.add(root)
            stack = [(root, iter(node_map[root].dependencies))]
            while stack:
                name, deps = stack[-1]
                for dep in deps:
                    if dep in visited or dep not in node_map:
                        continue
                    visited.add(dep)
                    stack.append((dep, iter(node_map[dep].dependencies)))
                    break
                else:
                    # post-order: every dependency is already in ``order``
                    stack.pop()
                    order.append(name)

        for node in graph.nodes:
            if node.name not in visited:
                visit(node.name)

        logger.debug(
            f"Build order resolved: {' -> '.join(order)}",
            extra={"correlation_id": correlation_id, "layer": "build_order"},
        )
        return order
