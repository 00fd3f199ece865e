"""Canister dependency graph engine: dependencies, cycles and build order."""

from canister_graph.analyzer import DependencyAnalyzer
from canister_graph.config import CanisterGraphConfig
from canister_graph.core.transitive_closure import (
    get_dependency_depth,
    get_transitive_dependencies,
)
from canister_graph.schema import (
    CanisterDescriptor,
    CanisterKind,
    CyclicDependencyError,
    DependencyAnalysisOutput,
    DependencyGraph,
    ProjectSnapshot,
)

__all__ = [
    "CanisterDescriptor",
    "CanisterGraphConfig",
    "CanisterKind",
    "CyclicDependencyError",
    "DependencyAnalysisOutput",
    "DependencyAnalyzer",
    "DependencyGraph",
    "ProjectSnapshot",
    "get_dependency_depth",
    "get_transitive_dependencies",
]
