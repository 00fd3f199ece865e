"""
File: core/dependency_extractor.py
Purpose: Infer undeclared canister dependencies from source and manifests.
Dependencies: Standard library only (asyncio, re, pathlib)
Performance: One file read + one linear scan per canister

Implements two strategies selected by canister kind:
  Import scan:   Motoko ``import X "canister:name"`` references
  Manifest scan: substring heuristic over the package's Cargo.toml
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Iterable, List, Optional

from canister_graph.config import CanisterGraphConfig
from canister_graph.schema import CanisterDescriptor, CanisterKind
from canister_graph.telemetry import TelemetryCollector, get_logger

logger = get_logger("canister_graph.dependency_extractor")


class DependencyExtractor:
    """Derives inferred dependencies for one canister.

    Extraction is best effort.  A missing or unreadable file yields an
    empty list and a warning; nothing is ever raised to the caller.

    Args:
        config: Engine configuration (patterns, feature flags).
        telemetry: Optional collector for failure counts.

    Example::

        extractor = DependencyExtractor()
        deps = await extractor.extract(descriptor, "/work/dapp", {"ledger"})
    """

    def __init__(
        self,
        config: Optional[CanisterGraphConfig] = None,
        telemetry: Optional[TelemetryCollector] = None,
    ) -> None:
        self._config = config or CanisterGraphConfig()
        self._telemetry = telemetry
        self._import_re = re.compile(self._config.extraction.import_pattern)

    async def extract(
        self,
        canister: CanisterDescriptor,
        project_root: str,
        known_names: Iterable[str],
        correlation_id: str = "",
    ) -> List[str]:
        """Return inferred dependency names not declared explicitly.

        Args:
            canister: Descriptor of the canister to scan.
            project_root: Root that relative paths resolve against.
            known_names: Names of all canisters in the project.
            correlation_id: Request correlation ID.

        Returns:
            Names in discovery order, without duplicates.
        """
        path = self._source_path(canister, project_root)
        if path is None:
            return []
        text = await asyncio.to_thread(
            self._read_text, path, canister.name, correlation_id
        )
        return self._scan(canister, text, known_names)

    def extract_sync(
        self,
        canister: CanisterDescriptor,
        project_root: str,
        known_names: Iterable[str],
        correlation_id: str = "",
    ) -> List[str]:
        """Blocking variant of :meth:`extract`."""
        path = self._source_path(canister, project_root)
        if path is None:
            return []
        text = self._read_text(path, canister.name, correlation_id)
        return self._scan(canister, text, known_names)

    # ── strategy selection ──────────────────────────────────────

    def _source_path(
        self, canister: CanisterDescriptor, project_root: str
    ) -> Optional[Path]:
        features = self._config.features
        root = Path(project_root)

        if canister.kind == CanisterKind.MOTOKO:
            if not features.enable_import_scan or not canister.main_path:
                return None
            return root / canister.main_path

        if canister.kind == CanisterKind.RUST:
            if not features.enable_manifest_scan:
                return None
            package_dir = (
                canister.package_dir
                or self._config.extraction.default_package_dir.format(
                    name=canister.name
                )
            )
            return root / package_dir / self._config.extraction.manifest_filename

        return None

    def _scan(
        self,
        canister: CanisterDescriptor,
        text: Optional[str],
        known_names: Iterable[str],
    ) -> List[str]:
        if not text:
            return []

        known = list(dict.fromkeys(known_names))
        if canister.kind == CanisterKind.MOTOKO:
            found = self._scan_imports(text, set(known))
        else:
            found = self._scan_manifest(text, known)

        declared = set(canister.dependencies)
        return [
            name for name in found
            if name not in declared and name != canister.name
        ]

    # ── Strategy 1: import scan ─────────────────────────────────

    def _scan_imports(self, text: str, known: set) -> List[str]:
        found: List[str] = []
        for match in self._import_re.finditer(text):
            name = match.group(1)
            if name in known and name not in found:
                found.append(name)
        return found

    # ── Strategy 2: manifest scan ───────────────────────────────

    @staticmethod
    def _scan_manifest(text: str, known: List[str]) -> List[str]:
        # Substring heuristic, not a TOML parse: may over- and under-match.
        return [
            name for name in known
            if f"{name} =" in text or f'"{name}"' in text
        ]

    # ── I/O ─────────────────────────────────────────────────────

    def _read_text(
        self, path: Path, canister_name: str, correlation_id: str
    ) -> Optional[str]:
        try:
            return path.read_text(encoding=self._config.extraction.encoding)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.warning(
                f"Failed to read {path} for canister '{canister_name}': {e}",
                extra={
                    "correlation_id": correlation_id,
                    "layer": "extraction",
                    "context": {
                        "canister": canister_name,
                        "path": str(path),
                        "error": str(e),
                    },
                },
            )
            if self._telemetry is not None:
                self._telemetry.record_extraction_failure(
                    str(path), correlation_id
                )
            return None
