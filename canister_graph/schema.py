"""
File: schema.py
Purpose: Type-safe Pydantic v2 schemas for the canister graph pipeline.
Dependencies: pydantic >=2.0
Performance: Schema validation <1ms per object

Defines input/output contracts for every layer: project snapshot,
graph construction, cycle detection, build order and validation.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import (
    BaseModel,
    Field,
    field_validator,
)


# ═══════════════════════════════════════════════════════════════
#  ENUMS
# ═══════════════════════════════════════════════════════════════


class CanisterKind(str, Enum):
    """Kind of canister, selects the extraction strategy."""
    MOTOKO = "motoko"
    RUST = "rust"
    ASSETS = "assets"
    CUSTOM = "custom"


class EdgeType(str, Enum):
    """Origin of a dependency edge."""
    EXPLICIT = "explicit"
    INFERRED = "inferred"


class ValidationSeverity(str, Enum):
    """Severity of a validation failure."""
    CRITICAL = "critical"
    WARNING = "warning"


# ═══════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ═══════════════════════════════════════════════════════════════


class CyclicDependencyError(Exception):
    """Raised by depth queries that run into a dependency cycle."""

    def __init__(self, cycle: List[str]) -> None:
        self.cycle = cycle
        super().__init__(
            f"Dependency cycle prevents depth calculation: {' -> '.join(cycle)}"
        )


# ═══════════════════════════════════════════════════════════════
#  INPUT SCHEMAS
# ═══════════════════════════════════════════════════════════════


class CanisterDescriptor(BaseModel):
    """One canister as reported by the project-structure provider.

    Example::

        CanisterDescriptor(
            name="backend",
            kind=CanisterKind.MOTOKO,
            dependencies=["ledger"],
            main_path="src/backend/main.mo",
        )
    """
    name: str = Field(..., min_length=1)
    kind: CanisterKind = CanisterKind.CUSTOM
    dependencies: List[str] = Field(default_factory=list)
    main_path: Optional[str] = None
    package_dir: Optional[str] = None

    @field_validator("dependencies")
    @classmethod
    def dependency_names_non_empty(cls, v: List[str]) -> List[str]:
        """Every declared dependency must name a canister."""
        if any(not name for name in v):
            raise ValueError("dependency names must be non-empty")
        return v


class ProjectSnapshot(BaseModel):
    """Project snapshot consumed by a single analysis call.

    Example::

        ProjectSnapshot(
            project_root="/work/my_dapp",
            canisters=[CanisterDescriptor(name="backend")],
        )
    """
    project_root: str = "."
    canisters: List[CanisterDescriptor] = Field(default_factory=list)
    correlation_id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
    )

    def known_names(self) -> List[str]:
        """Declared canister names, first occurrence, declaration order."""
        return list(dict.fromkeys(c.name for c in self.canisters))


# ═══════════════════════════════════════════════════════════════
#  GRAPH SCHEMAS
# ═══════════════════════════════════════════════════════════════


class CanisterNode(BaseModel):
    """A canister node with forward and reverse dependency lists."""
    name: str = Field(..., min_length=1)
    dependencies: List[str] = Field(default_factory=list)
    dependents: List[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class DependencyEdge(BaseModel):
    """A directed edge: ``source`` depends on ``target``.

    Example::

        DependencyEdge(source="frontend", target="backend",
                       edge_type=EdgeType.EXPLICIT)
    """
    source: str = Field(..., min_length=1, alias="from")
    target: str = Field(..., min_length=1, alias="to")
    edge_type: EdgeType = Field(default=EdgeType.EXPLICIT, alias="type")

    model_config = {"frozen": True, "populate_by_name": True}


class CanisterGraph(BaseModel):
    """Nodes and edges of one project, immutable once built."""
    nodes: List[CanisterNode] = Field(default_factory=list)
    edges: List[DependencyEdge] = Field(default_factory=list)

    model_config = {"frozen": True}

    def node_map(self) -> Dict[str, CanisterNode]:
        return {node.name: node for node in self.nodes}


class DependencyGraph(BaseModel):
    """Complete graph result handed to reporting collaborators.

    ``model_dump(by_alias=True)`` yields the wire shape
    ``{nodes, edges, cycles, buildOrder}``.
    """
    nodes: List[CanisterNode] = Field(default_factory=list)
    edges: List[DependencyEdge] = Field(default_factory=list)
    cycles: List[List[str]] = Field(default_factory=list)
    build_order: List[str] = Field(
        default_factory=list, alias="buildOrder"
    )

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("cycles")
    @classmethod
    def cycles_must_be_closed(cls, v: List[List[str]]) -> List[List[str]]:
        for cycle in v:
            if len(cycle) < 2 or cycle[0] != cycle[-1]:
                raise ValueError(f"cycle is not closed: {cycle}")
        return v


# ═══════════════════════════════════════════════════════════════
#  VALIDATION SCHEMAS
# ═══════════════════════════════════════════════════════════════


class ValidatorError(BaseModel):
    """A single validation failure."""
    check_number: int
    check_name: str
    error_description: str
    expected: str
    actual: str
    severity: ValidationSeverity = ValidationSeverity.WARNING


class ValidationResult(BaseModel):
    """Output of the validation layer."""
    validation_passed: bool
    checks_executed: int = Field(ge=0)
    errors: List[ValidatorError] = Field(default_factory=list)
    warnings: List[ValidatorError] = Field(default_factory=list)
    validation_latency_ms: float = Field(ge=0.0, default=0.0)


# ═══════════════════════════════════════════════════════════════
#  OUTPUT SCHEMAS
# ═══════════════════════════════════════════════════════════════


class AnalysisMetadata(BaseModel):
    """Pipeline execution metadata."""
    graph_build_time_ms: float = Field(ge=0.0, default=0.0)
    cycle_detection_time_ms: float = Field(ge=0.0, default=0.0)
    build_order_time_ms: float = Field(ge=0.0, default=0.0)
    validation_time_ms: float = Field(ge=0.0, default=0.0)
    total_time_ms: float = Field(ge=0.0, default=0.0)
    total_canisters: int = Field(ge=0, default=0)
    total_edges: int = Field(ge=0, default=0)
    inferred_edges: int = Field(ge=0, default=0)
    cycle_dedup: str = ""
    correlation_id: str = ""


class DependencyAnalysisOutput(BaseModel):
    """Final output of a dependency analysis.

    Example::

        DependencyAnalysisOutput(
            graph=DependencyGraph(...),
            metadata=AnalysisMetadata(...),
        )
    """
    analysis_timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).strftime(
            "%Y-%m-%dT%H:%M:%SZ"
        ),
    )
    graph: DependencyGraph = Field(default_factory=DependencyGraph)
    correlation_id: str = ""
    metadata: Optional[AnalysisMetadata] = None
    validation: Optional[ValidationResult] = None

    @property
    def has_cycles(self) -> bool:
        return bool(self.graph.cycles)
