"""
File: analyzer.py
Purpose: Pipeline facade: build graph, detect cycles, resolve order, validate.
Dependencies: All canister_graph sub-modules.
Performance: Dominated by concurrent file reads during extraction.

Coordinates one dependency analysis:
  Phase 1: Graph construction (concurrent extraction fan-out)
  Phase 2: Cycle detection + build order resolution
  Phase 3: Validation + output assembly

Every call is traced via correlation ID.  Nothing is cached between
calls; each analysis recomputes the graph from the snapshot.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List, Optional

from canister_graph.config import CanisterGraphConfig
from canister_graph.core.build_order import BuildOrderResolver
from canister_graph.core.cycle_detector import CycleDetector
from canister_graph.core.graph_builder import GraphBuilder
from canister_graph.core.transitive_closure import TransitiveClosureQuery
from canister_graph.schema import (
    AnalysisMetadata,
    CanisterGraph,
    DependencyAnalysisOutput,
    DependencyGraph,
    EdgeType,
    ProjectSnapshot,
    ValidationResult,
)
from canister_graph.telemetry import TelemetryCollector, get_logger
from canister_graph.validator import OutputValidator

logger = get_logger("canister_graph.analyzer")


class DependencyAnalyzer:
    """Dependency analysis for a multi-canister project.

    Pipeline::

        Snapshot → [Build graph] → [Cycles] → [Build order] → [Validate] → Output

    Args:
        config: Engine configuration.

    Example::

        analyzer = DependencyAnalyzer(CanisterGraphConfig())
        output = analyzer.analyze(ProjectSnapshot(
            project_root="/work/dapp",
            canisters=[CanisterDescriptor(name="backend")],
        ))
        print(output.graph.build_order)
    """

    def __init__(
        self, config: Optional[CanisterGraphConfig] = None
    ) -> None:
        self._config = config or CanisterGraphConfig()
        self._telemetry = TelemetryCollector()

        self._graph_builder = GraphBuilder(
            self._config, telemetry=self._telemetry
        )
        self._cycle_detector = CycleDetector(self._config)
        self._build_order = BuildOrderResolver()
        self._validator = OutputValidator()

        logger.info(
            f"DependencyAnalyzer initialized, "
            f"dedup={self._config.detection.cycle_dedup}, "
            f"import_scan={'enabled' if self._config.features.enable_import_scan else 'disabled'}, "
            f"manifest_scan={'enabled' if self._config.features.enable_manifest_scan else 'disabled'}, "
            f"validation={'enabled' if self._config.features.enable_validation else 'disabled'}",
        )

    # ─── public API ─────────────────────────────────────────────

    def analyze(
        self,
        snapshot: ProjectSnapshot,
        correlation_id: str = "",
    ) -> DependencyAnalysisOutput:
        """Run the full pipeline synchronously.

        Must not be called from inside a running event loop; use
        :meth:`analyze_async` there.
        """
        return asyncio.run(self.analyze_async(snapshot, correlation_id))

    async def analyze_async(
        self,
        snapshot: ProjectSnapshot,
        correlation_id: str = "",
    ) -> DependencyAnalysisOutput:
        """Run the full analysis pipeline.

        Args:
            snapshot: Canister descriptors supplied by the project provider.
            correlation_id: Optional correlation ID.

        Returns:
            DependencyAnalysisOutput with graph, metadata and validation.
        """
        cid = correlation_id or snapshot.correlation_id
        pipeline_start = time.perf_counter()
        self._telemetry.analyses_total.inc()

        logger.info(
            "Analysis started",
            extra={
                "correlation_id": cid,
                "layer": "pipeline",
                "context": {
                    "canister_count": len(snapshot.canisters),
                    "project_root": snapshot.project_root,
                },
            },
        )

        try:
            timings: Dict[str, float] = {}

            # ── Phase 1: Graph construction ─────────────────────
            gb_start = time.perf_counter()
            with self._telemetry.measure("graph_build", cid):
                graph = await self._graph_builder.build(snapshot, cid)
            timings["graph_build"] = (time.perf_counter() - gb_start) * 1000

            # ── Phase 2: Cycles + build order ───────────────────
            cd_start = time.perf_counter()
            with self._telemetry.measure("cycle_detection", cid):
                cycles = self._cycle_detector.detect(graph, cid)
            timings["cycle_detection"] = (
                (time.perf_counter() - cd_start) * 1000
            )
            if cycles:
                self._telemetry.cycles_detected.inc(len(cycles))

            bo_start = time.perf_counter()
            with self._telemetry.measure("build_order", cid):
                order = self._build_order.resolve(graph, cycles, cid)
            timings["build_order"] = (time.perf_counter() - bo_start) * 1000

            result = DependencyGraph(
                nodes=graph.nodes,
                edges=graph.edges,
                cycles=cycles,
                build_order=order,
            )

            # ── Phase 3: Validate + assemble ────────────────────
            validation = self._validate(result, cid)

            pipeline_elapsed = (time.perf_counter() - pipeline_start) * 1000
            output = DependencyAnalysisOutput(
                graph=result,
                correlation_id=cid,
                metadata=AnalysisMetadata(
                    graph_build_time_ms=round(timings["graph_build"], 2),
                    cycle_detection_time_ms=round(
                        timings["cycle_detection"], 2
                    ),
                    build_order_time_ms=round(timings["build_order"], 2),
                    validation_time_ms=(
                        validation.validation_latency_ms if validation else 0.0
                    ),
                    total_time_ms=round(pipeline_elapsed, 2),
                    total_canisters=len(graph.nodes),
                    total_edges=len(graph.edges),
                    inferred_edges=sum(
                        1 for e in graph.edges
                        if e.edge_type == EdgeType.INFERRED
                    ),
                    cycle_dedup=self._config.detection.cycle_dedup,
                    correlation_id=cid,
                ),
                validation=validation,
            )

            self._telemetry.analyses_succeeded.inc()
            self._telemetry.measure_value("pipeline_total", pipeline_elapsed)

            logger.info(
                f"Analysis completed, {len(graph.nodes)} canisters, "
                f"{len(cycles)} cycles, {pipeline_elapsed:.2f}ms",
                extra={
                    "correlation_id": cid,
                    "layer": "pipeline",
                    "context": {
                        "cycles": len(cycles),
                        "build_order_length": len(order),
                        "latency_ms": round(pipeline_elapsed, 2),
                    },
                },
            )
            return output

        except Exception as e:
            self._telemetry.analyses_failed.inc()
            logger.error(
                f"Analysis failed: {e}",
                extra={
                    "correlation_id": cid,
                    "layer": "pipeline",
                    "context": {"error": str(e)},
                },
                exc_info=True,
            )
            raise

    def get_dependency_depth(
        self, graph: DependencyGraph, name: str
    ) -> int:
        """Depth query; raises CyclicDependencyError on cyclic input."""
        return self._query(graph).get_dependency_depth(name)

    def get_transitive_dependencies(
        self, graph: DependencyGraph, name: str
    ) -> List[str]:
        return self._query(graph).get_transitive_dependencies(name)

    def health_check(self) -> Dict[str, Any]:
        """Return analyzer health status and metrics."""
        return {
            "status": "healthy",
            "component": "canister_graph",
            "config": {
                "cycle_dedup": self._config.detection.cycle_dedup,
                "max_concurrent_reads": (
                    self._config.performance.max_concurrent_reads
                ),
                "validation_enabled": (
                    self._config.features.enable_validation
                ),
            },
            "components": {
                "graph_builder": "healthy",
                "cycle_detector": "healthy",
                "build_order": "healthy",
                "validator": "healthy",
            },
            "metrics": self._telemetry.snapshot(),
        }

    @property
    def telemetry(self) -> TelemetryCollector:
        """Access the telemetry collector."""
        return self._telemetry

    # ─── internals ──────────────────────────────────────────────

    @staticmethod
    def _query(graph: DependencyGraph) -> TransitiveClosureQuery:
        return TransitiveClosureQuery(
            CanisterGraph(nodes=graph.nodes, edges=graph.edges)
        )

    def _validate(
        self, result: DependencyGraph, correlation_id: str
    ) -> Optional[ValidationResult]:
        if not self._config.features.enable_validation:
            return None
        with self._telemetry.measure("validation", correlation_id):
            validation = self._validator.validate(result, correlation_id)
        if not validation.validation_passed:
            self._telemetry.record_validation_failure(correlation_id)
        return validation
