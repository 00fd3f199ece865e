"""
File: core/transitive_closure.py
Purpose: Depth and reachability queries over a built canister graph.
Dependencies: Standard library only
Performance: O(V+E) per query, iterative, finished depths memoized per call
"""

from __future__ import annotations

from typing import Dict, List, Set

from canister_graph.schema import (
    CanisterGraph,
    CanisterNode,
    CyclicDependencyError,
)


class TransitiveClosureQuery:
    """Read-only queries bound to one graph.

    Args:
        graph: Built canister graph.

    Example::

        query = TransitiveClosureQuery(graph)
        query.get_dependency_depth("frontend")        # 2
        query.get_transitive_dependencies("frontend") # ["backend", "ledger"]
    """

    def __init__(self, graph: CanisterGraph) -> None:
        self._nodes: Dict[str, CanisterNode] = graph.node_map()

    def get_dependency_depth(self, name: str) -> int:
        """Length of the longest dependency chain below ``name``.

        0 for a canister without dependencies, and for names with no
        node (dangling references are leaves).

        Raises:
            CyclicDependencyError: If a cycle is reachable from ``name``.
        """
        if self._is_leaf(name):
            return 0

        depth: Dict[str, int] = {}
        active: List[str] = [name]
        stack = [(name, iter(self._nodes[name].dependencies))]
        while stack:
            current, deps = stack[-1]
            for dep in deps:
                if dep in depth:
                    continue
                if self._is_leaf(dep):
                    depth[dep] = 0
                    continue
                if dep in active:
                    raise CyclicDependencyError(
                        active[active.index(dep):] + [dep]
                    )
                active.append(dep)
                stack.append((dep, iter(self._nodes[dep].dependencies)))
                break
            else:
                stack.pop()
                active.pop()
                depth[current] = 1 + max(
                    depth[dep] for dep in self._nodes[current].dependencies
                )
        return depth[name]

    def _is_leaf(self, name: str) -> bool:
        node = self._nodes.get(name)
        return node is None or not node.dependencies

    def get_transitive_dependencies(self, name: str) -> List[str]:
        """Every name reachable from ``name``, excluding ``name`` itself.

        Safe on cyclic graphs.  Dangling names are included as terminal
        leaves.  Order is DFS discovery order.
        """
        visited: Set[str] = {name}
        found: List[str] = []
        start = self._nodes.get(name)
        if start is None:
            return found

        stack = [iter(start.dependencies)]
        while stack:
            for dep in stack[-1]:
                if dep in visited:
                    continue
                visited.add(dep)
                found.append(dep)
                node = self._nodes.get(dep)
                if node is not None:
                    stack.append(iter(node.dependencies))
                break
            else:
                stack.pop()
        return found


def get_dependency_depth(name: str, graph: CanisterGraph) -> int:
    return TransitiveClosureQuery(graph).get_dependency_depth(name)


def get_transitive_dependencies(name: str, graph: CanisterGraph) -> List[str]:
    return TransitiveClosureQuery(graph).get_transitive_dependencies(name)
