"""
File: validator.py
Purpose: 10-check validation for a computed DependencyGraph.
Dependencies: Schema models only
Performance: O(V+E) over the graph, O(C) over cycles

Validation categories:
  Structural (2 checks): Unique nodes, edges anchored at nodes
  Graph      (3 checks): Dependents, edge typing, edge/dependency agreement
  Cycle      (1 check):  Cycles are closed walks
  Order      (3 checks): All-or-nothing, coverage, edge postcondition
  Reference  (1 check):  Unknown dependency names (warnings)
"""

from __future__ import annotations

import time
from typing import Dict, List, Set, Tuple

from canister_graph.schema import (
    DependencyGraph,
    EdgeType,
    ValidationResult,
    ValidationSeverity,
    ValidatorError,
)
from canister_graph.telemetry import get_logger

logger = get_logger("canister_graph.validator")


class OutputValidator:
    """Validates a DependencyGraph against its structural invariants.

    Validation failures are informational: they do NOT block output
    generation.  Unknown dependency references are reported as
    WARNING diagnostics, everything else as CRITICAL errors.  Stateless:
    one instance can validate any number of graphs.

    Example::

        result = OutputValidator().validate(graph)
        print(result.validation_passed)
    """

    def validate(
        self,
        graph: DependencyGraph,
        correlation_id: str = "",
    ) -> ValidationResult:
        """Run all 10 validation checks.

        Args:
            graph: The assembled graph result.
            correlation_id: Request correlation ID.

        Returns:
            ValidationResult with errors and warnings.
        """
        start = time.perf_counter()
        errors: List[ValidatorError] = []
        warnings: List[ValidatorError] = []
        checks = 0

        names = [n.name for n in graph.nodes]
        node_names = set(names)
        deps_of: Dict[str, List[str]] = {
            n.name: n.dependencies for n in graph.nodes
        }

        # ── Structural Checks (1–2) ────────────────────────────

        # 1. node names are unique
        checks += 1
        if len(node_names) != len(names):
            dupes = sorted({n for n in names if names.count(n) > 1})
            errors.append(ValidatorError(
                check_number=1,
                check_name="node_names_unique",
                error_description="duplicate canister nodes",
                expected="unique names",
                actual=", ".join(dupes),
                severity=ValidationSeverity.CRITICAL,
            ))

        # 2. every edge source is a node
        checks += 1
        for edge in graph.edges:
            if edge.source not in node_names:
                errors.append(ValidatorError(
                    check_number=2,
                    check_name="edge_source_exists",
                    error_description=(
                        f"Edge source '{edge.source}' has no node"
                    ),
                    expected="source in nodes",
                    actual=edge.source,
                    severity=ValidationSeverity.CRITICAL,
                ))

        # ── Graph Checks (3–5) ─────────────────────────────────

        # 3. dependents(X) == {Y : X in dependencies(Y)}
        checks += 1
        for node in graph.nodes:
            expected_dependents = {
                other for other, deps in deps_of.items()
                if node.name in deps
            }
            if set(node.dependents) != expected_dependents:
                errors.append(ValidatorError(
                    check_number=3,
                    check_name="dependents_consistent",
                    error_description=(
                        f"dependents of '{node.name}' disagree with "
                        f"forward dependencies"
                    ),
                    expected=str(sorted(expected_dependents)),
                    actual=str(sorted(node.dependents)),
                    severity=ValidationSeverity.CRITICAL,
                ))

        # 4. no inferred edge shadows an explicit edge
        checks += 1
        explicit_pairs: Set[Tuple[str, str]] = {
            (e.source, e.target) for e in graph.edges
            if e.edge_type == EdgeType.EXPLICIT
        }
        for edge in graph.edges:
            pair = (edge.source, edge.target)
            if edge.edge_type == EdgeType.INFERRED and pair in explicit_pairs:
                errors.append(ValidatorError(
                    check_number=4,
                    check_name="inferred_edge_not_shadowed",
                    error_description=(
                        f"Inferred edge {edge.source} -> {edge.target} "
                        f"duplicates an explicit edge"
                    ),
                    expected="explicit edge only",
                    actual="explicit + inferred",
                    severity=ValidationSeverity.CRITICAL,
                ))

        # 5. every edge target is listed in its source's dependencies
        checks += 1
        for edge in graph.edges:
            if edge.target not in deps_of.get(edge.source, []):
                errors.append(ValidatorError(
                    check_number=5,
                    check_name="edge_in_dependencies",
                    error_description=(
                        f"Edge {edge.source} -> {edge.target} missing "
                        f"from node dependencies"
                    ),
                    expected=edge.target,
                    actual=str(deps_of.get(edge.source, [])),
                    severity=ValidationSeverity.CRITICAL,
                ))

        # ── Cycle Check (6) ────────────────────────────────────

        # 6. each cycle is a closed walk along dependency edges
        checks += 1
        for cycle in graph.cycles:
            closed = len(cycle) >= 2 and cycle[0] == cycle[-1]
            walk = closed and all(
                b in deps_of.get(a, []) for a, b in zip(cycle, cycle[1:])
            )
            if not walk:
                errors.append(ValidatorError(
                    check_number=6,
                    check_name="cycle_is_closed_walk",
                    error_description="cycle is not a closed dependency walk",
                    expected="closed walk",
                    actual=" -> ".join(cycle),
                    severity=ValidationSeverity.CRITICAL,
                ))

        # ── Order Checks (7–9) ─────────────────────────────────

        # 7. build order is empty iff cycles exist
        checks += 1
        if graph.cycles and graph.build_order:
            errors.append(ValidatorError(
                check_number=7,
                check_name="order_empty_when_cyclic",
                error_description="build order present despite cycles",
                expected="[]",
                actual=str(graph.build_order),
                severity=ValidationSeverity.CRITICAL,
            ))

        # 8. acyclic build order lists every node exactly once
        checks += 1
        if not graph.cycles and (
            len(graph.build_order) != len(names)
            or set(graph.build_order) != node_names
        ):
            errors.append(ValidatorError(
                check_number=8,
                check_name="order_covers_nodes",
                error_description="build order does not cover every node once",
                expected=str(sorted(node_names)),
                actual=str(graph.build_order),
                severity=ValidationSeverity.CRITICAL,
            ))

        # 9. dependencies precede dependents in the build order
        checks += 1
        position = {name: i for i, name in enumerate(graph.build_order)}
        for edge in graph.edges:
            if edge.source in position and edge.target in position:
                if position[edge.target] >= position[edge.source]:
                    errors.append(ValidatorError(
                        check_number=9,
                        check_name="order_respects_edges",
                        error_description=(
                            f"'{edge.target}' is built after its "
                            f"dependent '{edge.source}'"
                        ),
                        expected=f"{edge.target} before {edge.source}",
                        actual=str(graph.build_order),
                        severity=ValidationSeverity.CRITICAL,
                    ))

        # ── Reference Check (10) ───────────────────────────────

        # 10. dependency names that match no canister
        checks += 1
        for node in graph.nodes:
            for dep in node.dependencies:
                if dep not in node_names:
                    warnings.append(ValidatorError(
                        check_number=10,
                        check_name="unknown_dependency",
                        error_description=(
                            f"Canister '{node.name}' depends on unknown "
                            f"canister '{dep}'"
                        ),
                        expected="dependency in nodes",
                        actual=dep,
                        severity=ValidationSeverity.WARNING,
                    ))

        elapsed_ms = (time.perf_counter() - start) * 1000
        passed = len(errors) == 0

        logger.debug(
            f"Validation complete: {checks} checks, "
            f"{len(errors)} errors, {len(warnings)} warnings, "
            f"{elapsed_ms:.2f}ms",
            extra={
                "correlation_id": correlation_id,
                "layer": "validation",
                "context": {
                    "checks_executed": checks,
                    "error_count": len(errors),
                    "warning_count": len(warnings),
                    "passed": passed,
                    "latency_ms": round(elapsed_ms, 2),
                },
            },
        )

        return ValidationResult(
            validation_passed=passed,
            checks_executed=checks,
            errors=errors,
            warnings=warnings,
            validation_latency_ms=round(elapsed_ms, 2),
        )
