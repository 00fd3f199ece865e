"""Tests for DependencyExtractor: import scan and manifest scan."""

from pathlib import Path

import pytest

from canister_graph.config import CanisterGraphConfig, FeatureFlags
from canister_graph.core.dependency_extractor import DependencyExtractor
from canister_graph.schema import CanisterDescriptor, CanisterKind
from canister_graph.telemetry import TelemetryCollector

KNOWN = ["frontend", "backend", "ledger", "wallet"]


@pytest.fixture
def extractor(config: CanisterGraphConfig) -> DependencyExtractor:
    return DependencyExtractor(config)


def _motoko(name: str, main: str | None, deps: list[str] | None = None):
    return CanisterDescriptor(
        name=name,
        kind=CanisterKind.MOTOKO,
        main_path=main,
        dependencies=deps or [],
    )


class TestImportScan:
    """Motoko ``import X "canister:name"`` references."""

    def test_known_imports_collected(
        self, extractor: DependencyExtractor, project_root: Path
    ) -> None:
        deps = extractor.extract_sync(
            _motoko("frontend", "src/frontend/main.mo"),
            str(project_root),
            KNOWN,
        )
        assert deps == ["backend"]

    def test_unknown_reference_dropped(
        self, extractor: DependencyExtractor, project_root: Path
    ) -> None:
        deps = extractor.extract_sync(
            _motoko("frontend", "src/frontend/main.mo"),
            str(project_root),
            KNOWN,
        )
        assert "ghost" not in deps

    def test_non_canister_imports_ignored(
        self, extractor: DependencyExtractor, project_root: Path
    ) -> None:
        deps = extractor.extract_sync(
            _motoko("backend", "src/backend/main.mo"),
            str(project_root),
            KNOWN,
        )
        assert deps == ["ledger"]

    def test_declared_dependencies_excluded(
        self, extractor: DependencyExtractor, project_root: Path
    ) -> None:
        deps = extractor.extract_sync(
            _motoko("frontend", "src/frontend/main.mo", ["backend"]),
            str(project_root),
            KNOWN,
        )
        assert deps == []

    def test_absolute_main_path(
        self, extractor: DependencyExtractor, project_root: Path
    ) -> None:
        main = project_root / "src" / "backend" / "main.mo"
        deps = extractor.extract_sync(
            _motoko("backend", str(main)), "/nonexistent-root", KNOWN
        )
        assert deps == ["ledger"]

    def test_no_main_path_yields_nothing(
        self, extractor: DependencyExtractor, project_root: Path
    ) -> None:
        assert extractor.extract_sync(
            _motoko("backend", None), str(project_root), KNOWN
        ) == []

    @pytest.mark.asyncio
    async def test_async_extract_matches_sync(
        self, extractor: DependencyExtractor, project_root: Path
    ) -> None:
        canister = _motoko("backend", "src/backend/main.mo")
        deps = await extractor.extract(canister, str(project_root), KNOWN)
        assert deps == extractor.extract_sync(
            canister, str(project_root), KNOWN
        )


class TestManifestScan:
    """Cargo.toml substring heuristic."""

    def test_bare_token_matches(
        self, extractor: DependencyExtractor, project_root: Path
    ) -> None:
        wallet = CanisterDescriptor(name="wallet", kind=CanisterKind.RUST)
        deps = extractor.extract_sync(wallet, str(project_root), KNOWN)
        assert deps == ["ledger"]

    def test_own_package_name_not_a_dependency(
        self, extractor: DependencyExtractor, project_root: Path
    ) -> None:
        wallet = CanisterDescriptor(name="wallet", kind=CanisterKind.RUST)
        deps = extractor.extract_sync(wallet, str(project_root), KNOWN)
        assert "wallet" not in deps

    def test_quoted_token_matches(
        self, extractor: DependencyExtractor, tmp_path: Path
    ) -> None:
        pkg = tmp_path / "canisters" / "vault"
        pkg.mkdir(parents=True)
        (pkg / "Cargo.toml").write_text(
            'features = ["backend"]\n', encoding="utf-8"
        )
        vault = CanisterDescriptor(
            name="vault",
            kind=CanisterKind.RUST,
            package_dir="canisters/vault",
        )
        deps = extractor.extract_sync(vault, str(tmp_path), KNOWN)
        assert deps == ["backend"]

    def test_matches_follow_known_name_order(
        self, extractor: DependencyExtractor, tmp_path: Path
    ) -> None:
        pkg = tmp_path / "src" / "hub"
        pkg.mkdir(parents=True)
        (pkg / "Cargo.toml").write_text(
            'wallet = "1"\nbackend = "1"\n', encoding="utf-8"
        )
        hub = CanisterDescriptor(name="hub", kind=CanisterKind.RUST)
        deps = extractor.extract_sync(hub, str(tmp_path), KNOWN)
        assert deps == ["backend", "wallet"]


class TestExtractionFailures:
    """Missing files degrade to an empty result."""

    def test_missing_source_returns_empty(
        self, project_root: Path
    ) -> None:
        telemetry = TelemetryCollector()
        extractor = DependencyExtractor(telemetry=telemetry)
        deps = extractor.extract_sync(
            _motoko("frontend", "src/frontend/missing.mo"),
            str(project_root),
            KNOWN,
        )
        assert deps == []
        assert telemetry.extraction_failures.value == 1

    def test_missing_manifest_returns_empty(
        self, extractor: DependencyExtractor, tmp_path: Path
    ) -> None:
        rust = CanisterDescriptor(name="ledger", kind=CanisterKind.RUST)
        assert extractor.extract_sync(rust, str(tmp_path), KNOWN) == []

    def test_missing_source_logs_warning(
        self,
        extractor: DependencyExtractor,
        project_root: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level("WARNING", logger="canister_graph"):
            extractor.extract_sync(
                _motoko("frontend", "nope.mo"), str(project_root), KNOWN
            )
        assert any(r.levelname == "WARNING" for r in caplog.records)

    @pytest.mark.asyncio
    async def test_async_missing_source_does_not_raise(
        self, extractor: DependencyExtractor, tmp_path: Path
    ) -> None:
        deps = await extractor.extract(
            _motoko("frontend", "nope.mo"), str(tmp_path), KNOWN
        )
        assert deps == []

    def test_nul_byte_in_path_returns_empty(
        self, project_root: Path
    ) -> None:
        telemetry = TelemetryCollector()
        extractor = DependencyExtractor(telemetry=telemetry)
        deps = extractor.extract_sync(
            _motoko("frontend", "src/frontend/ma\x00in.mo"),
            str(project_root),
            KNOWN,
        )
        assert deps == []
        assert telemetry.extraction_failures.value == 1


class TestStrategySelection:
    """Kinds without a strategy and disabled strategies."""

    @pytest.mark.parametrize("kind", [CanisterKind.ASSETS, CanisterKind.CUSTOM])
    def test_kinds_without_strategy(
        self,
        extractor: DependencyExtractor,
        project_root: Path,
        kind: CanisterKind,
    ) -> None:
        canister = CanisterDescriptor(
            name="frontend", kind=kind, main_path="src/frontend/main.mo"
        )
        assert extractor.extract_sync(
            canister, str(project_root), KNOWN
        ) == []

    def test_import_scan_disabled(self, project_root: Path) -> None:
        extractor = DependencyExtractor(CanisterGraphConfig(
            features=FeatureFlags(enable_import_scan=False),
        ))
        deps = extractor.extract_sync(
            _motoko("frontend", "src/frontend/main.mo"),
            str(project_root),
            KNOWN,
        )
        assert deps == []

    def test_manifest_scan_disabled(self, project_root: Path) -> None:
        extractor = DependencyExtractor(CanisterGraphConfig(
            features=FeatureFlags(enable_manifest_scan=False),
        ))
        wallet = CanisterDescriptor(name="wallet", kind=CanisterKind.RUST)
        assert extractor.extract_sync(
            wallet, str(project_root), KNOWN
        ) == []
