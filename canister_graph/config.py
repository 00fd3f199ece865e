"""
File: config.py
Purpose: Configuration for the canister dependency graph engine.
Dependencies: Standard library (dataclasses, os)
Performance: O(1), static config, no I/O

Provides feature flags, extraction patterns, cycle-dedup policy,
and performance budgets.  All values configurable via environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


CYCLE_DEDUP_SUBSTRING = "substring"
CYCLE_DEDUP_CANONICAL = "canonical"
_DEDUP_POLICIES = (CYCLE_DEDUP_SUBSTRING, CYCLE_DEDUP_CANONICAL)


@dataclass(frozen=True)
class FeatureFlags:
    """Feature toggles for the analysis pipeline.

    Attributes:
        enable_import_scan: Scan Motoko sources for canister imports.
        enable_manifest_scan: Scan Cargo.toml manifests for canister names.
        enable_validation: Run output validation checks.
    """
    enable_import_scan: bool = True
    enable_manifest_scan: bool = True
    enable_validation: bool = True


@dataclass(frozen=True)
class ExtractionConfig:
    """Patterns and file locations used by dependency extraction.

    Attributes:
        import_pattern: Regex with one group capturing the canister name.
        manifest_filename: Manifest file read by the manifest scan.
        default_package_dir: Package directory template, ``{name}`` is
            replaced with the canister name.
        encoding: Text encoding for source and manifest reads.
    """
    import_pattern: str = r'import\s+\w+\s+"canister:(\w+)"'
    manifest_filename: str = "Cargo.toml"
    default_package_dir: str = "src/{name}"
    encoding: str = "utf-8"


@dataclass(frozen=True)
class DetectionConfig:
    """Cycle detection settings.

    Attributes:
        cycle_dedup: ``"substring"`` keeps the legacy string-containment
            dedup; ``"canonical"`` rotates each cycle to its smallest
            member and dedups by equality.
    """
    cycle_dedup: str = CYCLE_DEDUP_SUBSTRING

    def __post_init__(self) -> None:
        if self.cycle_dedup not in _DEDUP_POLICIES:
            raise ValueError(
                f"cycle_dedup must be one of {_DEDUP_POLICIES}, "
                f"got '{self.cycle_dedup}'"
            )


@dataclass(frozen=True)
class PerformanceConfig:
    """Performance budgets and limits.

    Attributes:
        max_concurrent_reads: Upper bound on in-flight file reads.
        max_canisters: Snapshot size above which a warning is logged.
    """
    max_concurrent_reads: int = 32
    max_canisters: int = 10000


@dataclass
class CanisterGraphConfig:
    """Master configuration for the canister graph engine.

    Example::

        config = CanisterGraphConfig.from_env()
        analyzer = DependencyAnalyzer(config)
    """
    features: FeatureFlags = None  # type: ignore[assignment]
    extraction: ExtractionConfig = None  # type: ignore[assignment]
    detection: DetectionConfig = None  # type: ignore[assignment]
    performance: PerformanceConfig = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.features is None:
            self.features = FeatureFlags()
        if self.extraction is None:
            self.extraction = ExtractionConfig()
        if self.detection is None:
            self.detection = DetectionConfig()
        if self.performance is None:
            self.performance = PerformanceConfig()

    @classmethod
    def from_env(cls) -> CanisterGraphConfig:
        """Build config from environment variables.

        Environment variables:
            CANISTER_GRAPH_CYCLE_DEDUP: "substring" or "canonical".
            CANISTER_GRAPH_MAX_CONCURRENT_READS: Read fan-out bound.
            CANISTER_GRAPH_ENABLE_VALIDATION: "false" to skip validation.
            CANISTER_GRAPH_ENABLE_IMPORT_SCAN: "false" to skip import scans.
            CANISTER_GRAPH_ENABLE_MANIFEST_SCAN: "false" to skip manifests.

        Returns:
            Configured CanisterGraphConfig.
        """
        return cls(
            features=FeatureFlags(
                enable_import_scan=_env_flag(
                    "CANISTER_GRAPH_ENABLE_IMPORT_SCAN", True
                ),
                enable_manifest_scan=_env_flag(
                    "CANISTER_GRAPH_ENABLE_MANIFEST_SCAN", True
                ),
                enable_validation=_env_flag(
                    "CANISTER_GRAPH_ENABLE_VALIDATION", True
                ),
            ),
            detection=DetectionConfig(
                cycle_dedup=os.getenv(
                    "CANISTER_GRAPH_CYCLE_DEDUP", CYCLE_DEDUP_SUBSTRING
                ).lower(),
            ),
            performance=PerformanceConfig(
                max_concurrent_reads=_env_int(
                    "CANISTER_GRAPH_MAX_CONCURRENT_READS", 32
                ),
            ),
        )


def _env_flag(name: str, default: bool) -> bool:
    raw: Optional[str] = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() == "true"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return max(1, int(raw))
    except ValueError:
        return default
