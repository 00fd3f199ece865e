"""Core deterministic algorithms for canister dependency analysis."""

from canister_graph.core.build_order import BuildOrderResolver
from canister_graph.core.cycle_detector import CycleDetector
from canister_graph.core.dependency_extractor import DependencyExtractor
from canister_graph.core.graph_builder import GraphBuilder
from canister_graph.core.transitive_closure import TransitiveClosureQuery

__all__ = [
    "BuildOrderResolver",
    "CycleDetector",
    "DependencyExtractor",
    "GraphBuilder",
    "TransitiveClosureQuery",
]
